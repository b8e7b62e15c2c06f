import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from google.api_core.exceptions import GoogleAPICallError

from models.post import CreatePostRequest, PostType, UpdatePostRequest
from services.firestore import FirestoreDB
from services.s3 import S3Service
from utils.errors import ForbiddenError, InternalError, NotFoundError, UpstreamError
from utils.images import decode_data_url
from utils.pagination import paginate_results, paginated_response
from utils.post_type_validator import parse_post_type, validate_post_type
from utils.sorting import HOT_ORDER, get_sort_order, sort_posts

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "User does not exist in database."


def _post_not_found(post_id: str) -> NotFoundError:
    return NotFoundError(f"Post with ID: '{post_id}' does not exist in database.")


def get_posts(db: FirestoreDB, page: int, limit: int, sort_by: Optional[str] = None) -> Dict[str, Any]:
    """Page through every post in the order selected by `sort_by`"""
    posts_count = db.count_posts()
    paginated = paginate_results(page, limit, posts_count)
    posts = db.get_posts_page(get_sort_order(sort_by), paginated["startIndex"], limit)
    return paginated_response(paginated, db.populate_posts(posts))


def get_subscribed_posts(db: FirestoreDB, user_id: str, page: int, limit: int) -> Dict[str, Any]:
    """Hot-ordered posts from the subreddits the user is subscribed to"""
    user = db.get_user(user_id)
    if not user:
        raise NotFoundError(USER_NOT_FOUND)

    subscribed_ids = list(user.get("subscribedSubs") or [])
    subscribed_subs = db.get_subreddits(subscribed_ids)
    posts_count = sum(len(sub.get("posts") or []) for sub in subscribed_subs)

    paginated = paginate_results(page, limit, posts_count)
    start = paginated["startIndex"]
    posts = db.get_posts_in_subreddits(subscribed_ids, HOT_ORDER, start + limit)
    return paginated_response(paginated, db.populate_posts(posts[start:start + limit]))


def get_searched_posts(db: FirestoreDB, query: str, page: int, limit: int) -> Dict[str, Any]:
    """Hot-ordered posts whose title or text contains `query`"""
    posts = sort_posts(db.search_posts(query), HOT_ORDER)
    paginated = paginate_results(page, limit, len(posts))
    start = paginated["startIndex"]
    return paginated_response(paginated, db.populate_posts(posts[start:start + limit]))


def get_post_and_comments(db: FirestoreDB, post_id: str) -> Dict[str, Any]:
    post = db.get_post(post_id)
    if not post:
        raise _post_not_found(post_id)
    return db.populate_posts([post], with_comments=True)[0]


async def upload_post_image(s3: S3Service, data_url: str) -> Dict[str, str]:
    """
    Upload a base64 data URL and return the image record stored on the post.
    S3 failures are reported as 401 with S3's message.
    """
    image = decode_data_url(data_url)
    key = s3.generate_key(image.extension)
    logger.info("Uploading post image %s (%s, %d bytes)", key, image.mime_type, len(image.data))

    try:
        uploaded = await s3.upload_image(image.data, key, image.mime_type)
    except UpstreamError as e:
        logger.error("Error uploading image to S3: %s", e.detail)
        raise UpstreamError(e.detail, status_code=401)

    return {"imageLink": uploaded["location"], "imageId": uploaded["key"]}


async def create_new_post(
        db: FirestoreDB,
        s3: S3Service,
        user_id: str,
        request: CreatePostRequest,
) -> Dict[str, Any]:
    """
    Create a post owned by `user_id` in `request.subreddit`.

    The author starts as the only upvoter. Image posts are uploaded before
    anything is written, so a failed upload leaves no post behind.
    """
    validated_fields = validate_post_type(
        request.post_type,
        request.text_submission,
        request.link_submission,
        request.image_submission,
    )
    logger.info(
        "Creating %s post '%s' in subreddit %s for user %s",
        validated_fields["postType"], request.title, request.subreddit, user_id,
    )

    author = db.get_user(user_id)
    if not author:
        raise NotFoundError(USER_NOT_FOUND)

    target_subreddit = db.get_subreddit(request.subreddit)
    if not target_subreddit:
        raise NotFoundError(f"Subreddit with ID: '{request.subreddit}' does not exist in database.")

    if validated_fields["postType"] == PostType.IMAGE.value:
        validated_fields["imageSubmission"] = await upload_post_image(
            s3, validated_fields["imageSubmission"]
        )

    now = datetime.now(timezone.utc)
    post_data = {
        "title": request.title,
        "subreddit": target_subreddit["id"],
        "author": author["id"],
        "upvotedBy": [author["id"]],
        "downvotedBy": [],
        "pointsCount": 1,
        "voteRatio": 0,
        "hotAlgo": 0,
        "controversialAlgo": 0,
        "comments": [],
        "commentCount": 0,
        "createdAt": now,
        "updatedAt": now,
        **validated_fields,
    }

    try:
        post_id = db.create_post(post_data, author["id"], target_subreddit["id"])
    except GoogleAPICallError as e:
        logger.exception("Error creating new post: %s", e)
        raise InternalError()

    logger.info("Post %s saved", post_id)
    return db.populate_posts([{"id": post_id, **post_data}])[0]


def _load_owned_post(db: FirestoreDB, user_id: str, post_id: str):
    post = db.get_post(post_id)
    if not post:
        raise _post_not_found(post_id)

    author = db.get_user(user_id)
    if not author:
        raise NotFoundError(USER_NOT_FOUND)

    if post.get("author") != author["id"]:
        raise ForbiddenError()

    return post, author


async def update_post(
        db: FirestoreDB,
        s3: S3Service,
        user_id: str,
        post_id: str,
        request: UpdatePostRequest,
) -> Dict[str, Any]:
    """
    Edit the submission of a post. The post type cannot change, only the
    submission matching it is accepted.
    """
    post, _ = _load_owned_post(db, user_id, post_id)
    kind = parse_post_type(post.get("postType"))

    validated_fields = validate_post_type(
        kind,
        request.text_submission,
        request.link_submission,
        request.image_submission,
        required=kind is not PostType.IMAGE,
    )
    validated_fields.pop("postType")

    replaced_image_id = None
    if kind is PostType.IMAGE and "imageSubmission" in validated_fields:
        validated_fields["imageSubmission"] = await upload_post_image(
            s3, validated_fields["imageSubmission"]
        )
        replaced_image_id = (post.get("imageSubmission") or {}).get("imageId")

    validated_fields["updatedAt"] = datetime.now(timezone.utc)

    try:
        db.update_post(post_id, validated_fields)
    except GoogleAPICallError as e:
        logger.exception("Error updating post %s: %s", post_id, e)
        raise InternalError()

    if replaced_image_id:
        await _discard_image(s3, replaced_image_id)

    return get_post_and_comments(db, post_id)


async def _discard_image(s3: S3Service, image_id: str) -> None:
    """Delete an image that is no longer referenced. Failures are only logged."""
    try:
        await s3.delete_file(image_id)
    except UpstreamError as e:
        logger.warning("Error deleting image %s from S3: %s", image_id, e.detail)


async def delete_post(db: FirestoreDB, s3: S3Service, user_id: str, post_id: str) -> None:
    post, author = _load_owned_post(db, user_id, post_id)

    subreddit = db.get_subreddit(post.get("subreddit"))
    if not subreddit:
        raise NotFoundError(f"Subreddit with ID: '{post.get('subreddit')}' does not exist in database.")

    image_id = (post.get("imageSubmission") or {}).get("imageId")
    if image_id:
        await _discard_image(s3, image_id)

    try:
        db.delete_post(post_id, author["id"], subreddit["id"])
    except GoogleAPICallError as e:
        logger.exception("Error deleting post %s: %s", post_id, e)
        raise InternalError()

    logger.info("Post %s deleted by %s", post_id, user_id)
