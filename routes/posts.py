from typing import Any, Dict, Optional

from fastapi import APIRouter, Query, Response

from dependencies import CurrentUser, Firestore, S3
from models.post import CreatePostRequest, UpdatePostRequest
from services import posts as post_service

router = APIRouter()


@router.get("")
async def get_posts(
        db: Firestore,
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        sortby: Optional[str] = None,
) -> Dict[str, Any]:
    """Paginated posts sorted by new, top, best, hot, controversial or old"""
    return post_service.get_posts(db, page, limit, sortby)


@router.get("/subscribed")
async def get_subscribed_posts(
        db: Firestore,
        current_user: CurrentUser,
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
) -> Dict[str, Any]:
    return post_service.get_subscribed_posts(db, current_user.user_id, page, limit)


@router.get("/search")
async def get_searched_posts(
        db: Firestore,
        query: str = Query(..., min_length=1, max_length=200),
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
) -> Dict[str, Any]:
    return post_service.get_searched_posts(db, query, page, limit)


@router.get("/{post_id}/comments")
async def get_post_and_comments(db: Firestore, post_id: str) -> Dict[str, Any]:
    """Single post with its comment tree"""
    return post_service.get_post_and_comments(db, post_id)


@router.post("", status_code=201)
async def create_post(
        db: Firestore,
        s3_service: S3,
        post_data: CreatePostRequest,
        current_user: CurrentUser,
) -> Dict[str, Any]:
    return await post_service.create_new_post(db, s3_service, current_user.user_id, post_data)


@router.patch("/{post_id}", status_code=202)
async def update_post(
        db: Firestore,
        s3_service: S3,
        post_id: str,
        post_data: UpdatePostRequest,
        current_user: CurrentUser,
) -> Dict[str, Any]:
    return await post_service.update_post(db, s3_service, current_user.user_id, post_id, post_data)


@router.delete("/{post_id}", status_code=204)
async def delete_post(
        db: Firestore,
        s3_service: S3,
        post_id: str,
        current_user: CurrentUser,
) -> Response:
    await post_service.delete_post(db, s3_service, current_user.user_id, post_id)
    return Response(status_code=204)
