from enum import Enum


class Role(str, Enum):
    """Role tag carried by every authenticated identity."""
    USER = "user"
    INSTITUTE = "institute"
    ADMIN = "admin"


class AccountType(str, Enum):
    """Table an identity is loaded from (the `account` claim of the token)."""
    USER = "user"
    INSTITUTE = "institute"
    ADMIN = "admin"


class AdminRole(str, Enum):
    SUPERADMIN = "superadmin"
    ADMINISTRATOR = "administrator"
    MODERATOR = "moderator"


class AccountStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class InstituteCategory(str, Enum):
    SCHOOL = "school"
    COLLEGE = "college"
    COACHING = "coaching"
    PRESCHOOL = "preschool"
    UNIVERSITY = "university"
    VOCATIONAL = "vocational"


class CourseCategory(str, Enum):
    ACADEMIC = "academic"
    COMPETITIVE = "competitive"
    VOCATIONAL = "vocational"
    PROFESSIONAL = "professional"
    LANGUAGE = "language"
    ARTS = "arts"
    SPORTS = "sports"
    TECHNOLOGY = "technology"
    BUSINESS = "business"
    HEALTHCARE = "healthcare"
    ENGINEERING = "engineering"
    LAW = "law"
    OTHER = "other"


class CourseLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    ALL_LEVELS = "all-levels"


class CourseStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"
    SUSPENDED = "suspended"


class DeliveryMode(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    HYBRID = "hybrid"


class EnquiryStatus(str, Enum):
    PENDING = "pending"
    REPLIED = "replied"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"


class EnquiryPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class EnquirySource(str, Enum):
    WEBSITE = "website"
    PHONE = "phone"
    EMAIL = "email"
    WALK_IN = "walk-in"
    REFERRAL = "referral"


def values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]
