import uuid
from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import EmailStr, Field, field_validator

from app.core.enum import EnquiryPriority, EnquirySource, EnquiryStatus, values
from app.schemas.auth.user import PHONE_PATTERN
from app.schemas.shares.base import CamelModel, InstituteBrief, UserBrief


class EnquiryCreate(CamelModel):
    name: Annotated[str, Field(min_length=1, max_length=100)]
    email: EmailStr
    phone: Annotated[str, Field(pattern=PHONE_PATTERN)] | None = None
    course: Annotated[str, Field(max_length=100)] | None = None
    message: Annotated[str, Field(min_length=10, max_length=1000)]
    institute: uuid.UUID
    priority: EnquiryPriority = EnquiryPriority.MEDIUM
    source: EnquirySource = EnquirySource.WEBSITE

    @field_validator("name", "message")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()


class EnquiryReply(CamelModel):
    reply: Annotated[str, Field(max_length=2000)]
    status: str = EnquiryStatus.REPLIED.value

    @field_validator("reply")
    @classmethod
    def reply_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Reply message is required")
        return value.strip()

    @field_validator("status")
    @classmethod
    def known_status(cls, value: str) -> str:
        if value not in values(EnquiryStatus):
            raise ValueError("Invalid status value")
        return value


class EnquiryStatusUpdate(CamelModel):
    status: str

    @field_validator("status")
    @classmethod
    def known_status(cls, value: str) -> str:
        if value not in values(EnquiryStatus):
            raise ValueError("Invalid status value")
        return value


class EnquiryFilters(CamelModel):
    page: Annotated[int, Field(ge=1, le=10_000)] = 1
    limit: Annotated[int, Field(ge=1, le=100)] = 10
    status: str | None = None
    institute: uuid.UUID | None = None
    search: str | None = None
    sort_by: Literal["createdAt", "updatedAt", "status", "name"] = "createdAt"
    sort_order: Literal["asc", "desc"] = "desc"


class EnquiryOut(CamelModel):
    id: uuid.UUID
    name: str
    email: str
    phone: str | None = None
    course: str | None = None
    message: str
    institute_id: uuid.UUID
    user_id: uuid.UUID | None = None
    institute: InstituteBrief | None = None
    user: UserBrief | None = None
    status: str
    priority: str
    source: str
    reply: dict[str, Any] | None = None
    resolved_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
