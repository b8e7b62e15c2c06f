from typing import Optional

from pydantic import BaseModel, Field


class User(BaseModel):
    """Identity decoded from the Firebase ID token"""
    user_id: str
    email: Optional[str] = None


class Avatar(BaseModel):
    exists: bool = False
    image_link: Optional[str] = Field(None, alias="imageLink")
    image_id: Optional[str] = Field(None, alias="imageId")


class AvatarRequest(BaseModel):
    avatar_image: Optional[str] = Field(None, alias="avatarImage")
