from typing import Any, Dict, Optional

from models.post import PostType
from utils.errors import InvalidPostTypeError, ValidationError

SUBMISSION_FIELDS = {
    PostType.TEXT: "textSubmission",
    PostType.LINK: "linkSubmission",
    PostType.IMAGE: "imageSubmission",
}


def _is_empty(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def parse_post_type(post_type: Any) -> PostType:
    try:
        return PostType(post_type)
    except ValueError:
        raise InvalidPostTypeError()


def validate_post_type(
        post_type: Any,
        text_submission: Optional[str] = None,
        link_submission: Optional[str] = None,
        image_submission: Optional[str] = None,
        required: bool = True,
) -> Dict[str, Any]:
    """
    Check that exactly the submission matching `post_type` is filled in.

    Args:
        required: when False an empty matching submission is accepted and
            only `postType` is returned (image posts edited without a new image)

    Returns:
        The fields to persist: `postType` plus the single submission field.
        Image payloads are returned untouched, the caller uploads them and
        replaces the value with the stored image record.

    Raises:
        InvalidPostTypeError: unknown post type
        ValidationError: required submission missing or another one supplied
    """
    kind = parse_post_type(post_type)
    submissions = {
        PostType.TEXT: text_submission,
        PostType.LINK: link_submission,
        PostType.IMAGE: image_submission,
    }

    for other, value in submissions.items():
        if other is not kind and not _is_empty(value):
            raise ValidationError(
                f"Only {SUBMISSION_FIELDS[kind]} is allowed for {kind.value} posts."
            )

    value = submissions[kind]
    if _is_empty(value):
        if not required:
            return {"postType": kind.value}
        raise ValidationError(f"{SUBMISSION_FIELDS[kind]} is required for {kind.value} posts.")

    if kind is PostType.LINK:
        value = value.strip()

    return {
        "postType": kind.value,
        SUBMISSION_FIELDS[kind]: value,
    }
