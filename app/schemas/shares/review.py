import uuid
from datetime import datetime
from typing import Annotated, Literal

from pydantic import AfterValidator, Field

from app.schemas.shares.base import CamelModel, InstituteBrief, UserBrief

COMMENT_MIN = 10


def _clean_comment(value: str) -> str:
    value = value.strip()
    if len(value) < COMMENT_MIN:
        raise ValueError(f"Comment must be at least {COMMENT_MIN} characters long")
    return value


CommentText = Annotated[str, Field(max_length=1000), AfterValidator(_clean_comment)]


class ReviewCreate(CamelModel):
    institute: uuid.UUID
    rating: Annotated[int, Field(ge=1, le=5)]
    title: Annotated[str, Field(max_length=100)] | None = None
    comment: CommentText


class ReviewUpdate(CamelModel):
    rating: Annotated[int, Field(ge=1, le=5)] | None = None
    title: Annotated[str, Field(max_length=100)] | None = None
    comment: CommentText | None = None


class ReviewFlag(CamelModel):
    flag: bool = True
    reason: Annotated[str, Field(max_length=500)] | None = None


class ReviewFilters(CamelModel):
    """One nullable field per supported filter; the service adds a predicate only for present ones."""

    page: Annotated[int, Field(ge=1, le=10_000)] = 1
    limit: Annotated[int, Field(ge=1, le=100)] = 10
    institute: uuid.UUID | None = None
    user: uuid.UUID | None = None
    status: Literal["approved", "pending", "flagged", "all"] | None = "approved"
    rating: int | None = None
    search: str | None = None
    sort_by: Literal["createdAt", "updatedAt", "rating"] = "createdAt"
    sort_order: Literal["asc", "desc"] = "desc"


class ReviewOut(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    institute_id: uuid.UUID
    user: UserBrief | None = None
    institute: InstituteBrief | None = None
    rating: int
    title: str | None = None
    comment: str
    approved: bool
    flagged: bool
    flag_reason: str | None = None
    flagged_by: uuid.UUID | None = None
    flagged_at: datetime | None = None
    approved_by: uuid.UUID | None = None
    approved_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
