from typing import Annotated

from pydantic import (
    AfterValidator,
    AnyHttpUrl,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    TypeAdapter,
    ValidationError,
)
from pydantic.alias_generators import to_camel

_http_url = TypeAdapter(AnyHttpUrl)


def _check_http_url(value: str) -> str:
    # Validate only; the caller's text is stored as sent, not the normalised URL.
    try:
        _http_url.validate_python(value)
    except ValidationError as exc:
        raise ValueError(f"Invalid http(s) URL: {exc.errors()[0]['msg']}") from None
    return value


HttpUrlText = Annotated[str, AfterValidator(_check_http_url)]


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Auth ---

class SignupInput(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: str | None = None


class SigninInput(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    message: str
    token: str


# --- User ---

class UserUpdate(BaseModel):
    name: str | None = None
    bio: str | None = None
    image: HttpUrlText | None = None


# --- Post ---

class PostCreate(CamelModel):
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    is_private: bool | None = None
    tags: list[str] | None = None
    image_urls: list[HttpUrlText] | None = None


class PostUpdate(CamelModel):
    title: str | None = Field(None, min_length=1)
    content: str | None = Field(None, min_length=1)
    is_private: bool | None = None
    tags: list[str] | None = None
    image_urls: list[HttpUrlText] | None = None


# --- Comment ---

class CommentCreate(BaseModel):
    content: str = Field(min_length=1)


# --- Pagination ---

class PaginationMeta(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int


class PostPage(BaseModel):
    posts: list[dict]
    pagination: PaginationMeta


class MessageResponse(BaseModel):
    message: str
