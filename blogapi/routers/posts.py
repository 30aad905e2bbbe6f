from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.auth import BlogUserRoute, current_user_id
from blogapi.database import get_db
from blogapi.dependencies import PaginationParams
from blogapi.errors import respond
from blogapi.schemas import CommentCreate, MessageResponse, PostCreate, PostPage, PostUpdate
from blogapi.services import engagement_service, post_service

# Every route on this router authenticates before its body is parsed.
router = APIRouter(prefix="/api/v1/post", tags=["post"], route_class=BlogUserRoute)


@router.post("", status_code=201)
async def create_post(
    data: PostCreate,
    user_id: int = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.create_post(db, user_id, data)


@router.get("", response_model=PostPage)
async def list_posts(
    pagination: PaginationParams = Depends(),
    user_id: int = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.list_posts(db, user_id, pagination)


@router.get("/{post_id}")
async def get_post(
    post_id: int,
    user_id: int = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return respond(await post_service.get_post(db, post_id, user_id))


@router.put("/{post_id}")
async def update_post(
    post_id: int,
    data: PostUpdate,
    user_id: int = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return respond(await post_service.update_post(db, post_id, user_id, data))


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: int,
    user_id: int = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return respond(await post_service.delete_post(db, post_id, user_id))


@router.post("/{post_id}/like", response_model=MessageResponse)
async def toggle_like(
    post_id: int,
    user_id: int = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return respond(await engagement_service.toggle_like(db, post_id, user_id))


@router.post("/{post_id}/comment", status_code=201)
async def add_comment(
    post_id: int,
    data: CommentCreate,
    user_id: int = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return respond(await engagement_service.add_comment(db, post_id, user_id, data))
