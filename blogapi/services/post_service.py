"""
Post service: the access policy for the Post aggregate.

Design notes
------------
- Reads are filtered by ``visible_to(user_id)``: a post is visible when it is
  public or the requester owns it.  A post the requester may not see is
  reported exactly like one that does not exist.
- Updates and deletes are owner-scoped commands: the ownership check is part
  of the ``WHERE`` clause of the UPDATE/DELETE itself, so a non-owner matches
  zero rows and nothing changes.  There is no separate permission lookup.
- ``images`` and ``tags`` are replaced wholesale when supplied on update.
- Relationships are ``lazy="noload"`` on the models; every query states the
  eager loads it needs (``joinedload`` for many-to-one, ``selectinload`` for
  collections).  ``populate_existing`` keeps objects already in the session's
  identity map in step with the rows just read.
- Service functions flush but do not commit; the transaction boundary is
  owned by the ``get_db`` dependency.
"""
import logging

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from blogapi.dependencies import PaginationParams
from blogapi.errors import Failure, not_found
from blogapi.models import Comment, Like, Post, PostImage, Tag, utcnow
from blogapi.schemas import PostCreate, PostPage, PostUpdate
from blogapi.services.user_service import public_identity

logger = logging.getLogger(__name__)

POST_NOT_FOUND = "Post not found"


# ---------------------------------------------------------------------------
# Visibility predicate
# ---------------------------------------------------------------------------

def visible_to(user_id: int):
    """SQL predicate: the post is public, or *user_id* owns it."""
    return or_(Post.is_private.is_(False), Post.author_id == user_id)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _iso(value) -> str | None:
    return value.isoformat() if value else None


def _post_to_dict(post: Post) -> dict:
    """Serialise a Post with its images and tags."""
    return {
        "id": post.id,
        "title": post.title,
        "content": post.content,
        "isPrivate": post.is_private,
        "authorId": post.author_id,
        "createdAt": _iso(post.created_at),
        "updatedAt": _iso(post.updated_at),
        "images": [{"id": i.id, "url": i.url, "postId": i.post_id} for i in post.images],
        "tags": [{"id": t.id, "name": t.name} for t in post.tags],
    }


def comment_to_dict(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "content": comment.content,
        "userId": comment.user_id,
        "postId": comment.post_id,
        "createdAt": _iso(comment.created_at),
        "user": public_identity(comment.user),
    }


def _post_detail_to_dict(post: Post) -> dict:
    data = _post_to_dict(post)
    data["author"] = public_identity(post.author)
    data["likes"] = [
        {"userId": like.user_id, "postId": like.post_id, "createdAt": _iso(like.created_at)}
        for like in post.likes
    ]
    data["comments"] = [comment_to_dict(c) for c in post.comments]
    return data


# ---------------------------------------------------------------------------
# Tag resolution helper (used by create / update)
# ---------------------------------------------------------------------------

async def _find_tag(db: AsyncSession, name: str) -> Tag | None:
    result = await db.execute(select(Tag).where(Tag.name == name))
    return result.scalar_one_or_none()


async def _resolve_tags(db: AsyncSession, tag_names: list[str]) -> list[Tag]:
    """
    Return one Tag per distinct name in *tag_names* (first occurrence
    wins), creating any that do not exist yet.

    Each insert runs in a SAVEPOINT; losing the unique-name race to a
    concurrent request rolls back only that insert and reuses the winner's
    row.
    """
    tags: list[Tag] = []
    for name in dict.fromkeys(tag_names):
        tag = await _find_tag(db, name)
        if tag is None:
            try:
                async with db.begin_nested():
                    tag = Tag(name=name)
                    db.add(tag)
                    await db.flush()
            except IntegrityError:
                logger.info("Tag %r created concurrently; reusing it", name)
                tag = await _find_tag(db, name)
        tags.append(tag)
    return tags


def _image_rows(urls) -> list[PostImage]:
    return [PostImage(url=url) for url in urls]


async def find_visible_post(db: AsyncSession, post_id: int, user_id: int) -> Post | None:
    """Return the bare Post if *user_id* may see it, else None."""
    result = await db.execute(select(Post).where(Post.id == post_id, visible_to(user_id)))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def create_post(db: AsyncSession, author_id: int, data: PostCreate) -> dict:
    """Create a post owned by *author_id* and return it with images and tags."""
    post = Post(
        title=data.title,
        content=data.content,
        is_private=bool(data.is_private),
        author_id=author_id,
    )
    post.images = _image_rows(data.image_urls or [])
    post.tags = await _resolve_tags(db, data.tags or [])

    db.add(post)
    await db.flush()
    logger.info("User %d created post %d", author_id, post.id)
    return _post_to_dict(post)


async def get_post(db: AsyncSession, post_id: int, user_id: int) -> dict | Failure:
    """
    Return the full detail dict for *post_id* as seen by *user_id*: author,
    images, tags, likes and comments (each with its author).
    """
    q = (
        select(Post)
        .where(Post.id == post_id, visible_to(user_id))
        .options(
            joinedload(Post.author),
            selectinload(Post.images),
            selectinload(Post.tags),
            selectinload(Post.likes),
            selectinload(Post.comments).joinedload(Comment.user),
        )
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    post = result.unique().scalar_one_or_none()
    if post is None:
        return not_found(POST_NOT_FOUND)
    return _post_detail_to_dict(post)


async def list_posts(db: AsyncSession, user_id: int, pagination: PaginationParams) -> PostPage:
    """
    Return one page of the posts visible to *user_id*, newest first.

    Two statements (plus the eager loads) are issued:
    1. COUNT over the visibility predicate.
    2. SELECT over the same predicate with OFFSET/LIMIT, carrying like and
       comment counts as correlated subqueries.
    """
    visible = visible_to(user_id)

    count_q = select(func.count()).select_from(Post).where(visible)
    total: int = (await db.execute(count_q)).scalar_one()

    like_count = (
        select(func.count()).select_from(Like).where(Like.post_id == Post.id).scalar_subquery()
    )
    comment_count = (
        select(func.count()).select_from(Comment).where(Comment.post_id == Post.id).scalar_subquery()
    )
    q = (
        select(Post, like_count, comment_count)
        .where(visible)
        .options(joinedload(Post.author), selectinload(Post.images), selectinload(Post.tags))
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset(pagination.skip)
        .limit(pagination.take)
        .execution_options(populate_existing=True)
    )
    rows = (await db.execute(q)).unique().all()

    posts = []
    for post, likes, comments in rows:
        item = _post_to_dict(post)
        item["author"] = public_identity(post.author)
        item["counts"] = {"likes": likes, "comments": comments}
        posts.append(item)

    return PostPage(posts=posts, pagination=pagination.meta(total))


async def update_post(
    db: AsyncSession, post_id: int, user_id: int, data: PostUpdate
) -> dict | Failure:
    """
    Apply *data* to the post if *user_id* owns it and return the result
    with images and tags.

    Fields left out of the payload (or sent as null) keep their values.
    """
    changes = data.model_dump(exclude_none=True, exclude={"tags", "image_urls"})
    owned = await db.execute(
        update(Post)
        .where(Post.id == post_id, Post.author_id == user_id)
        .values(**changes, updated_at=utcnow())
    )
    if owned.rowcount == 0:
        return not_found(POST_NOT_FOUND)

    q = (
        select(Post)
        .where(Post.id == post_id)
        .options(selectinload(Post.images), selectinload(Post.tags))
        .execution_options(populate_existing=True)
    )
    post = (await db.execute(q)).scalar_one()

    if data.image_urls is not None:
        post.images = _image_rows(data.image_urls)
    if data.tags is not None:
        post.tags = await _resolve_tags(db, data.tags)

    await db.flush()
    return _post_to_dict(post)


async def delete_post(db: AsyncSession, post_id: int, user_id: int) -> dict | Failure:
    """Delete the post if *user_id* owns it."""
    result = await db.execute(
        delete(Post)
        .where(Post.id == post_id, Post.author_id == user_id)
    )
    if result.rowcount == 0:
        return not_found(POST_NOT_FOUND)

    logger.info("User %d deleted post %d", user_id, post_id)
    return {"message": "Post deleted successfully"}
