import uuid
from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import Field, field_validator

from app.core.enum import CourseCategory, CourseLevel, CourseStatus, DeliveryMode
from app.schemas.shares.base import CamelModel, InstituteBrief


class CourseResource(CamelModel):
    title: str | None = None
    type: Literal["video", "pdf", "document", "link", "quiz"] | None = None
    url: str | None = None


class CurriculumModule(CamelModel):
    module_title: Annotated[str, Field(min_length=1, max_length=100)]
    module_description: Annotated[str, Field(max_length=500)] | None = None
    duration: str | None = None
    topics: list[str] = Field(default_factory=list)
    resources: list[CourseResource] = Field(default_factory=list)


def curriculum_json(modules: list[CurriculumModule]) -> list[dict[str, Any]]:
    return [m.model_dump(by_alias=True, mode="json") for m in modules]


def _money(value: float | None) -> float | None:
    return None if value is None else round(float(value), 2)


class CourseCreate(CamelModel):
    title: Annotated[str, Field(min_length=3, max_length=100)]
    description: Annotated[str, Field(min_length=10, max_length=1000)]
    duration: Annotated[str, Field(min_length=1, max_length=50)]
    price: Annotated[float, Field(ge=0)]
    original_price: Annotated[float, Field(ge=0)] | None = None
    institute: uuid.UUID | None = None
    category: CourseCategory
    level: CourseLevel = CourseLevel.ALL_LEVELS
    status: CourseStatus = CourseStatus.DRAFT
    featured: bool = False
    max_enrollments: Annotated[int, Field(ge=1)] = 100
    curriculum: list[CurriculumModule] = Field(default_factory=list)
    requirements: list[Annotated[str, Field(max_length=200)]] = Field(default_factory=list)
    learning_outcomes: list[Annotated[str, Field(max_length=200)]] = Field(default_factory=list)
    tags: list[Annotated[str, Field(max_length=30)]] = Field(default_factory=list)
    delivery_mode: DeliveryMode = DeliveryMode.OFFLINE

    @field_validator("title", "description", "duration")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()

    @field_validator("price", "original_price")
    @classmethod
    def two_decimals(cls, value: float | None) -> float | None:
        return _money(value)

    def columns(self) -> dict[str, Any]:
        data = self.model_dump(mode="json", exclude={"institute", "curriculum"})
        data["curriculum"] = curriculum_json(self.curriculum)
        if data["original_price"] is None:
            data["original_price"] = data["price"]
        return data


class CourseUpdate(CamelModel):
    title: Annotated[str, Field(min_length=3, max_length=100)] | None = None
    description: Annotated[str, Field(min_length=10, max_length=1000)] | None = None
    duration: Annotated[str, Field(min_length=1, max_length=50)] | None = None
    price: Annotated[float, Field(ge=0)] | None = None
    original_price: Annotated[float, Field(ge=0)] | None = None
    category: CourseCategory | None = None
    level: CourseLevel | None = None
    status: CourseStatus | None = None
    featured: bool | None = None
    max_enrollments: Annotated[int, Field(ge=1)] | None = None
    curriculum: list[CurriculumModule] | None = None
    requirements: list[Annotated[str, Field(max_length=200)]] | None = None
    learning_outcomes: list[Annotated[str, Field(max_length=200)]] | None = None
    tags: list[Annotated[str, Field(max_length=30)]] | None = None
    delivery_mode: DeliveryMode | None = None

    @field_validator("price", "original_price")
    @classmethod
    def two_decimals(cls, value: float | None) -> float | None:
        return _money(value)

    def changes(self) -> dict[str, Any]:
        """Only the fields the client actually sent, ready for the ORM columns."""
        data = self.model_dump(
            exclude_unset=True, exclude_none=True, mode="json", exclude={"curriculum"}
        )
        if self.curriculum is not None:
            data["curriculum"] = curriculum_json(self.curriculum)
        return data


class CourseFilters(CamelModel):
    page: Annotated[int, Field(ge=1, le=10_000)] = 1
    limit: Annotated[int, Field(ge=1, le=100)] = 10
    search: str | None = None
    institute: uuid.UUID | None = None
    category: CourseCategory | None = None
    status: CourseStatus | None = None


class CourseOut(CamelModel):
    id: uuid.UUID
    title: str
    description: str
    duration: str
    price: float
    original_price: float | None = None
    institute_id: uuid.UUID
    institute: InstituteBrief | None = None
    category: str
    level: str
    status: str
    featured: bool
    enrollment_count: int = 0
    max_enrollments: int = 100
    curriculum: list[dict[str, Any]] | None = None
    requirements: list[str] | None = None
    learning_outcomes: list[str] | None = None
    tags: list[str] | None = None
    delivery_mode: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
