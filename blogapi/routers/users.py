from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.auth import ProfileUserRoute, current_user_id
from blogapi.config import Settings
from blogapi.database import get_db
from blogapi.dependencies import get_settings
from blogapi.errors import Failure, respond
from blogapi.schemas import SigninInput, SignupInput, TokenResponse, UserUpdate
from blogapi.services import user_service
from blogapi.tokens import encode_token

router = APIRouter(prefix="/api/v1/user", tags=["user"])

# The caller's own profile; authenticated before the body is parsed.
profile_router = APIRouter(prefix="/api/v1/user", tags=["user"], route_class=ProfileUserRoute)


def _token_response(result: int | Failure, message: str, settings: Settings):
    if isinstance(result, Failure):
        return respond(result)
    token = encode_token(result, settings.JWT_SECRET, settings.JWT_ALGORITHM)
    return TokenResponse(message=message, token=token)


@router.post("/signup", response_model=TokenResponse)
async def signup(
    data: SignupInput,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    result = await user_service.signup(db, data)
    return _token_response(result, "User Created Successfully", settings)


@router.post("/signin", response_model=TokenResponse)
async def signin(
    data: SigninInput,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    result = await user_service.signin(db, data)
    return _token_response(result, "User Signed in Successfully", settings)


@profile_router.get("/me")
async def get_me(
    user_id: int = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return respond(await user_service.get_profile(db, user_id))


@profile_router.put("/me")
async def update_me(
    data: UserUpdate,
    user_id: int = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return respond(await user_service.update_profile(db, user_id, data))
