from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class PostType(str, Enum):
    TEXT = "Text"
    LINK = "Link"
    IMAGE = "Image"


class CreatePostRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    subreddit: str
    # checked by the post type validator so an unknown type is a 403, not a 422
    post_type: str = Field(..., alias="postType")
    text_submission: Optional[str] = Field(None, alias="textSubmission")
    link_submission: Optional[str] = Field(None, alias="linkSubmission")
    image_submission: Optional[str] = Field(None, alias="imageSubmission")


class UpdatePostRequest(BaseModel):
    text_submission: Optional[str] = Field(None, alias="textSubmission")
    link_submission: Optional[str] = Field(None, alias="linkSubmission")
    image_submission: Optional[str] = Field(None, alias="imageSubmission")
