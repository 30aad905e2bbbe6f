"""
User service: credentials and profile for the User aggregate.

Signup and signin sit on top of the password hashing helpers in
``blogapi.passwords``; both return the user id the router signs a token for.
Email uniqueness is enforced by the unique constraint on ``users.email``; a
pre-check gives the common case a clear message and the constraint catches
the concurrent one.
"""
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.errors import ErrorKind, Failure, conflict, not_found
from blogapi.models import Comment, Like, Post, User
from blogapi.passwords import hash_password, verify_password
from blogapi.schemas import SigninInput, SignupInput, UserUpdate

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL = "User with this email already exists"
INVALID_CREDENTIALS = "Invalid credentials"


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _profile_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "bio": user.bio,
        "image": user.image,
    }


def public_identity(user: User | None) -> dict | None:
    """The fields of a user that other users may see."""
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "image": user.image}


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------

async def find_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def signup(db: AsyncSession, data: SignupInput) -> int | Failure:
    """Create a user with a hashed password and return the new id."""
    if await find_by_email(db, data.email) is not None:
        return conflict(DUPLICATE_EMAIL)

    user = User(
        email=data.email,
        password=await hash_password(data.password),
        name=data.name,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        return conflict(DUPLICATE_EMAIL)

    logger.info("User %d signed up", user.id)
    return user.id


async def signin(db: AsyncSession, data: SigninInput) -> int | Failure:
    """
    Return the id of the user matching *data*.

    Unknown email and wrong password fail identically so the response does
    not reveal which addresses are registered.
    """
    user = await find_by_email(db, data.email)
    if user is None or not await verify_password(data.password, user.password):
        logger.info("Failed signin attempt")
        return Failure(ErrorKind.UNAUTHORIZED, INVALID_CREDENTIALS)
    return user.id


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

async def get_profile(db: AsyncSession, user_id: int) -> dict | Failure:
    """Return the caller's profile with post/like/comment counts."""
    posts = select(func.count()).select_from(Post).where(Post.author_id == User.id).scalar_subquery()
    likes = select(func.count()).select_from(Like).where(Like.user_id == User.id).scalar_subquery()
    comments = (
        select(func.count()).select_from(Comment).where(Comment.user_id == User.id).scalar_subquery()
    )

    q = select(User, posts, likes, comments).where(User.id == user_id)
    row = (await db.execute(q)).one_or_none()
    if row is None:
        return not_found("User not found")

    user, post_count, like_count, comment_count = row
    data = _profile_to_dict(user)
    data["counts"] = {"posts": post_count, "likes": like_count, "comments": comment_count}
    return data


async def update_profile(db: AsyncSession, user_id: int, data: UserUpdate) -> dict | Failure:
    """Apply the supplied profile fields and return the updated profile."""
    user = await db.get(User, user_id)
    if user is None:
        return not_found("User not found")

    for field, value in data.model_dump(exclude_unset=True, mode="json").items():
        setattr(user, field, value)

    await db.flush()
    return _profile_to_dict(user)
