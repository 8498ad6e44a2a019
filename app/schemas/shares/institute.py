import uuid
from datetime import datetime
from typing import Annotated, Any

from pydantic import Field

from app.schemas.shares.base import CamelModel


class InstituteOut(CamelModel):
    id: uuid.UUID
    name: str
    email: str
    category: str
    description: str | None = None
    website: str | None = None
    contact: dict[str, Any] | None = None
    address: dict[str, Any] | None = None
    facilities: list[str] | None = None
    established_year: int | None = None
    stats: dict[str, Any] = Field(default_factory=dict)
    features: dict[str, bool] = Field(default_factory=dict)
    approval_status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class InstituteFilters(CamelModel):
    """Optional filters for the public institute listing; None means "not filtered"."""

    page: Annotated[int, Field(ge=1, le=10_000)] = 1
    limit: Annotated[int, Field(ge=1, le=100)] = 10
    featured: bool | None = None
    category: str | None = None
    city: str | None = None
    search: str | None = None
