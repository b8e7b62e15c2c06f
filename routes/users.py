from typing import Any, Dict

from fastapi import APIRouter, Query, Response

from dependencies import CurrentUser, Firestore, S3
from models.user import AvatarRequest
from services import users as user_service

router = APIRouter()


@router.post("/avatar", status_code=201)
async def set_user_avatar(
        db: Firestore,
        s3_service: S3,
        avatar: AvatarRequest,
        current_user: CurrentUser,
) -> Dict[str, Any]:
    """Upload a base64 image as the current user's avatar"""
    return await user_service.set_user_avatar(db, s3_service, current_user.user_id, avatar.avatar_image)


@router.delete("/avatar", status_code=204)
async def remove_user_avatar(
        db: Firestore,
        s3_service: S3,
        current_user: CurrentUser,
) -> Response:
    await user_service.remove_user_avatar(db, s3_service, current_user.user_id)
    return Response(status_code=204)


@router.get("/{username}")
async def get_user(
        db: Firestore,
        username: str,
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
) -> Dict[str, Any]:
    """Public profile and posts of a user"""
    return user_service.get_user(db, username, page, limit)
