import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase keys, always renders camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    @classmethod
    def serialize(cls, obj: Any) -> dict[str, Any]:
        """ORM row -> camelCase JSON-ready dict."""
        return cls.model_validate(obj).model_dump(by_alias=True, mode="json")


class UserBrief(CamelModel):
    id: uuid.UUID
    name: str
    email: str | None = None
    avatar: str | None = None


class InstituteBrief(CamelModel):
    id: uuid.UUID
    name: str
    category: str
    verified: bool | None = None
    rating: float | None = None


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(
            current_page=page,
            total_pages=(total + limit - 1) // limit if total else 0,
            total=total,
            has_next=page * limit < total,
            has_prev=page > 1,
        )
