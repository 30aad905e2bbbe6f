"""
Engagement service: likes and comments on posts.

Both operations require the target post to be visible to the requester, so a
private post of another user cannot be liked or commented on and is reported
as missing.  A like is set membership keyed by ``(user_id, post_id)``;
toggling flips that membership and the primary key keeps it unique without
any in-process locking.  Comments are append-only.
"""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.errors import Failure, not_found
from blogapi.models import Comment, Like, User
from blogapi.schemas import CommentCreate
from blogapi.services.post_service import POST_NOT_FOUND, comment_to_dict, find_visible_post
from blogapi.services.user_service import public_identity

logger = logging.getLogger(__name__)

LIKED = "Post liked"
UNLIKED = "Post unliked"


async def toggle_like(db: AsyncSession, post_id: int, user_id: int) -> dict | Failure:
    """
    Like the post if *user_id* has not liked it yet, otherwise remove the
    like.  Returns ``{"message": "Post liked" | "Post unliked"}``.
    """
    if await find_visible_post(db, post_id, user_id) is None:
        return not_found(POST_NOT_FOUND)

    existing = await db.get(Like, (user_id, post_id))
    if existing is not None:
        await db.delete(existing)
        await db.flush()
        return {"message": UNLIKED}

    db.add(Like(user_id=user_id, post_id=post_id))
    try:
        await db.flush()
    except IntegrityError:
        # A concurrent toggle inserted the same (user, post) row first.
        await db.rollback()
        logger.info("Concurrent like by user %d on post %d", user_id, post_id)
    return {"message": LIKED}


async def add_comment(
    db: AsyncSession, post_id: int, user_id: int, data: CommentCreate
) -> dict | Failure:
    """Append a comment by *user_id* and return it with the author's public identity."""
    if await find_visible_post(db, post_id, user_id) is None:
        return not_found(POST_NOT_FOUND)

    comment = Comment(content=data.content, user_id=user_id, post_id=post_id)
    db.add(comment)
    await db.flush()

    result = comment_to_dict(comment)
    result["user"] = public_identity(await db.get(User, user_id))
    return result
