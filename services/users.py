import logging
from typing import Any, Dict, Optional

from models.user import Avatar
from services.firestore import FirestoreDB
from services.s3 import S3Service
from utils.errors import NotFoundError, UpstreamError, ValidationError
from utils.images import decode_data_url
from utils.pagination import paginate_results, paginated_response
from utils.sorting import SORT_ORDERS

logger = logging.getLogger(__name__)

AVATAR_CONTENT_TYPE = "image/jpeg"
AVATAR_EXTENSION = "jpg"


def get_user(db: FirestoreDB, username: str, page: int, limit: int) -> Dict[str, Any]:
    """Profile of `username` along with their posts, newest first"""
    user = db.find_user_by_username(username)
    if not user:
        raise NotFoundError(f"Username '{username}' does not exist on server.")

    posts_count = db.count_posts(author=user["id"])
    paginated = paginate_results(page, limit, posts_count)
    posts = db.get_posts_page(SORT_ORDERS["new"], paginated["startIndex"], limit, author=user["id"])

    return {
        "userDetails": user,
        "posts": paginated_response(paginated, db.populate_posts(posts)),
    }


def _get_acting_user(db: FirestoreDB, user_id: str) -> Dict[str, Any]:
    user = db.get_user(user_id)
    if not user:
        raise NotFoundError("User does not exist in database.")
    return user


async def set_user_avatar(
        db: FirestoreDB,
        s3: S3Service,
        user_id: str,
        avatar_image: Optional[str],
) -> Dict[str, Any]:
    if not avatar_image:
        raise ValidationError("Image URL needed for setting avatar.")

    user = _get_acting_user(db, user_id)

    image = decode_data_url(avatar_image)
    key = s3.generate_key(AVATAR_EXTENSION)
    try:
        uploaded = await s3.upload_image(image.data, key, AVATAR_CONTENT_TYPE)
    except UpstreamError as e:
        raise UpstreamError(f"Error uploading image to S3: {e.detail}")

    avatar = Avatar(exists=True, imageLink=uploaded["location"], imageId=uploaded["key"])
    avatar_record = avatar.model_dump(by_alias=True)
    db.update_user(user["id"], {"avatar": avatar_record})

    logger.info("Avatar %s set for user %s", key, user["id"])
    return {"avatar": avatar_record}


async def remove_user_avatar(db: FirestoreDB, s3: S3Service, user_id: str) -> None:
    user = _get_acting_user(db, user_id)

    avatar = user.get("avatar") or {}
    if not avatar.get("exists"):
        raise NotFoundError("No avatar to remove.")

    try:
        await s3.delete_file(avatar.get("imageId"))
    except UpstreamError as e:
        raise UpstreamError(f"Error deleting image from S3: {e.detail}")

    db.update_user(user["id"], {"avatar": Avatar().model_dump(by_alias=True)})
    logger.info("Avatar removed for user %s", user["id"])
