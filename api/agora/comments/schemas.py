"""Pydantic schemas for comments.

Request and response models for:
- Creating a comment
- Comment listing projection
- Thank toggle result
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateCommentRequest(BaseModel):
    """Create a comment on a post."""

    text: str = Field(..., min_length=1, max_length=10000, description="Comment text")

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        if not v.strip():
            msg = "Comment text must not be blank"
            raise ValueError(msg)
        return v


# ==============================================================================
# Response Schemas
# ==============================================================================


class CommentAuthor(BaseModel):
    """The author fields shown next to a comment."""

    id: UUID
    name: str
    avatar_url: str | None = None


class CommentResponse(BaseModel):
    """A comment as listed under a post."""

    id: UUID
    text: str
    created_at: datetime
    user: CommentAuthor | None = None
    is_thanked: bool = Field(False, description="Whether the requester thanked it")


class ThankResponse(BaseModel):
    """State after a thank toggle."""

    thanked: bool


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
    success: bool = True
