"""Community post and comment schema definitions."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from schemas.user import AuthorInfo

Category = Literal["education", "environment", "discussion", "announcement"]
MediaType = Literal["image", "video", "audio", "document"]


def _clean_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return None
    cleaned = [tag.strip() for tag in tags if tag and tag.strip()]
    if len(cleaned) > 10:
        raise ValueError("Cannot have more than 10 tags")
    return cleaned


class CreatePostRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1, max_length=5000)
    category: Category
    tags: List[str] = Field(default_factory=list)
    media_url: Optional[str] = None
    media_type: Optional[MediaType] = None

    @field_validator("title", "content")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, value: List[str]) -> List[str]:
        return _clean_tags(value)


class UpdatePostRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    content: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    category: Optional[Category] = None
    tags: Optional[List[str]] = None
    media_url: Optional[str] = None
    media_type: Optional[MediaType] = None

    @field_validator("title", "content")
    @classmethod
    def strip_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_tags(value)


class CreateCommentRequest(BaseModel):
    text: str = Field(min_length=1, max_length=1000)
    parent_comment: Optional[str] = None

    @field_validator("text")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Comment text is required")
        return value


class ModerateRequest(BaseModel):
    is_approved: bool
    moderation_note: Optional[str] = Field(default=None, max_length=500)
    is_pinned: Optional[bool] = None


class CommentInfo(BaseModel):
    comment_id: str
    post_id: str
    text: str
    author: Optional[AuthorInfo] = None
    parent_comment_id: Optional[str] = None
    like_count: int = 0
    is_approved: bool
    moderation_note: Optional[str] = None
    created_at: str
    updated_at: str


class PostInfo(BaseModel):
    post_id: str
    title: str
    content: str
    media_url: Optional[str] = None
    media_type: Optional[str] = None
    category: str
    tags: List[str]
    author: Optional[AuthorInfo] = None
    views: int
    is_approved: bool
    is_pinned: bool
    moderation_note: Optional[str] = None
    like_count: int = 0
    is_liked_by_user: bool = False
    comment_count: int = 0
    created_at: str
    updated_at: str


class PostDetail(PostInfo):
    comments: List[CommentInfo] = Field(default_factory=list)


class LikeResult(BaseModel):
    is_liked: bool
    like_count: int
