import uuid
from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import EmailStr, Field, model_validator

from app.core.enum import InstituteCategory
from app.schemas.shares.base import CamelModel

PHONE_PATTERN = r"^\+?[1-9]\d{0,15}$"


class UserCreate(CamelModel):
    name: Annotated[str, Field(min_length=1, max_length=100)]
    email: EmailStr
    password: Annotated[str, Field(min_length=6, max_length=72)]
    phone: Annotated[str, Field(pattern=PHONE_PATTERN)] | None = None
    user_type: Literal["user", "institute"] = "user"

    # institute accounts only
    category: InstituteCategory | None = None
    city: str | None = None
    state: str | None = None
    description: Annotated[str, Field(max_length=2000)] | None = None
    website: Annotated[str, Field(pattern=r"^https?://.+\..+")] | None = None

    @model_validator(mode="after")
    def check_institute_fields(self):
        if self.user_type == "institute":
            missing = [
                name
                for name in ("category", "city", "state")
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(
                    f"{', '.join(missing)} required for institute registration"
                )
        return self


class LoginUser(CamelModel):
    email: EmailStr
    password: Annotated[str, Field(min_length=1)]
    user_type: Literal["user", "institute", "admin"] = "user"


class ChangePassword(CamelModel):
    current_password: Annotated[str, Field(min_length=1)]
    new_password: Annotated[str, Field(min_length=6, max_length=72)]


class ProfileUpdate(CamelModel):
    name: Annotated[str, Field(min_length=1, max_length=200)] | None = None
    phone: Annotated[str, Field(pattern=PHONE_PATTERN)] | None = None
    avatar: str | None = None
    bio: Annotated[str, Field(max_length=500)] | None = None
    address: dict[str, Any] | None = None
    preferences: dict[str, bool] | None = None

    # institute profile
    description: Annotated[str, Field(max_length=2000)] | None = None
    website: Annotated[str, Field(pattern=r"^https?://.+\..+")] | None = None
    contact: dict[str, Any] | None = None
    facilities: list[Annotated[str, Field(max_length=100)]] | None = None
    established_year: Annotated[int, Field(ge=1800)] | None = None


class UserOut(CamelModel):
    id: uuid.UUID
    name: str
    email: str
    phone: str | None = None
    role: str
    institute_id: uuid.UUID | None = None
    avatar: str | None = None
    bio: str | None = None
    address: dict[str, Any] | None = None
    preferences: dict[str, Any] | None = None
    reviews_count: int = 0
    enquiries_count: int = 0
    saved_institutes: int = 0
    status: str
    email_verified: bool = False
    last_login: datetime | None = None
    created_at: datetime | None = None


class AdminOut(CamelModel):
    id: uuid.UUID
    name: str
    email: str
    role: str
    last_login: datetime | None = None
    created_at: datetime | None = None
