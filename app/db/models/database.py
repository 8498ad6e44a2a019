from typing import Any, Optional
import datetime
import uuid

from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum, Float, ForeignKeyConstraint, Index, Integer, JSON, PrimaryKeyConstraint, SmallInteger, String, Text, UniqueConstraint, Uuid, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from app.core.enum import AccountStatus, AdminRole, ApprovalStatus, CourseCategory, CourseLevel, CourseStatus, DeliveryMode, EnquiryPriority, EnquirySource, EnquiryStatus, InstituteCategory, Role, values
from app.libs.formats.datetime import now


def _enum(enum_cls, name: str) -> Enum:
    return Enum(*values(enum_cls), name=name, native_enum=False, validate_strings=True)


class Base(DeclarativeBase):
    pass


class Institute(Base):
    __tablename__ = 'institutes'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='institutes_pkey'),
        UniqueConstraint('email', name='institutes_email_key'),
        CheckConstraint('rating >= 0 AND rating <= 5', name='institutes_rating_check'),
        Index('idx_institutes_category', 'category'),
        Index('idx_institutes_rating', 'rating'),
        Index('idx_institutes_featured_created', 'featured', 'created_at'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False)
    password: Mapped[str] = mapped_column(String, nullable=False)
    category: Mapped[str] = mapped_column(_enum(InstituteCategory, 'institute_category_enum'), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, default='')
    website: Mapped[Optional[str]] = mapped_column(String)
    contact: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, default=dict)
    address: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, default=dict)
    facilities: Mapped[Optional[list[str]]] = mapped_column(JSON, default=list)
    established_year: Mapped[Optional[int]] = mapped_column(Integer)
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0, server_default=text('0'))
    reviews_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text('0'))
    courses_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text('0'))
    enquiries_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text('0'))
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text('0'))
    last_rating_update: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime)
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    approval_status: Mapped[str] = mapped_column(_enum(ApprovalStatus, 'institute_approval_enum'), nullable=False, default=ApprovalStatus.PENDING.value)
    last_login: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now, onupdate=now)

    members: Mapped[list['User']] = relationship('User', back_populates='institute')
    courses: Mapped[list['Course']] = relationship('Course', back_populates='institute', passive_deletes=True)
    enquiries: Mapped[list['Enquiry']] = relationship('Enquiry', back_populates='institute', passive_deletes=True)
    reviews: Mapped[list['Review']] = relationship('Review', back_populates='institute', passive_deletes=True)

    @property
    def stats(self) -> dict[str, Any]:
        return {
            'rating': self.rating or 0,
            'reviewsCount': self.reviews_count or 0,
            'coursesCount': self.courses_count or 0,
            'enquiriesCount': self.enquiries_count or 0,
            'views': self.views or 0,
            'lastRatingUpdate': self.last_rating_update,
        }

    @property
    def features(self) -> dict[str, bool]:
        return {'verified': self.verified, 'featured': self.featured, 'active': self.is_active}


class User(Base):
    __tablename__ = 'users'
    __table_args__ = (
        ForeignKeyConstraint(['institute_id'], ['institutes.id'], ondelete='SET NULL', name='users_institute_id_fkey'),
        PrimaryKeyConstraint('id', name='users_pkey'),
        UniqueConstraint('email', name='users_email_key'),
        Index('idx_users_role', 'role'),
        Index('idx_users_created_at', 'created_at'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False)
    password: Mapped[str] = mapped_column(String, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String)
    role: Mapped[str] = mapped_column(_enum(Role, 'user_role_enum'), nullable=False, default=Role.USER.value)
    institute_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    avatar: Mapped[Optional[str]] = mapped_column(String, default='')
    bio: Mapped[Optional[str]] = mapped_column(String(500), default='')
    address: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, default=dict)
    preferences: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, default=lambda: {'emailNotifications': True, 'smsNotifications': False, 'newsletter': True})
    reviews_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text('0'))
    enquiries_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text('0'))
    saved_institutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text('0'))
    status: Mapped[str] = mapped_column(_enum(AccountStatus, 'user_status_enum'), nullable=False, default=AccountStatus.ACTIVE.value)
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_login: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now, onupdate=now)

    institute: Mapped[Optional['Institute']] = relationship('Institute', back_populates='members')
    enquiries: Mapped[list['Enquiry']] = relationship('Enquiry', back_populates='user')
    reviews: Mapped[list['Review']] = relationship('Review', back_populates='user', passive_deletes=True)


class Admin(Base):
    __tablename__ = 'admins'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='admins_pkey'),
        UniqueConstraint('email', name='admins_email_key'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False)
    password: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[str] = mapped_column(_enum(AdminRole, 'admin_role_enum'), nullable=False, default=AdminRole.ADMINISTRATOR.value)
    last_login: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)


class Course(Base):
    __tablename__ = 'courses'
    __table_args__ = (
        CheckConstraint('price >= 0', name='courses_price_check'),
        ForeignKeyConstraint(['institute_id'], ['institutes.id'], ondelete='CASCADE', name='courses_institute_id_fkey'),
        PrimaryKeyConstraint('id', name='courses_pkey'),
        Index('idx_courses_institute_created', 'institute_id', 'created_at'),
        Index('idx_courses_category_status', 'category', 'status'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    duration: Mapped[str] = mapped_column(String(50), nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    original_price: Mapped[Optional[float]] = mapped_column(Float)
    institute_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    category: Mapped[str] = mapped_column(_enum(CourseCategory, 'course_category_enum'), nullable=False)
    level: Mapped[str] = mapped_column(_enum(CourseLevel, 'course_level_enum'), nullable=False, default=CourseLevel.ALL_LEVELS.value)
    status: Mapped[str] = mapped_column(_enum(CourseStatus, 'course_status_enum'), nullable=False, default=CourseStatus.DRAFT.value)
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    enrollment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text('0'))
    max_enrollments: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    curriculum: Mapped[Optional[list[dict[str, Any]]]] = mapped_column(JSON, default=list)
    requirements: Mapped[Optional[list[str]]] = mapped_column(JSON, default=list)
    learning_outcomes: Mapped[Optional[list[str]]] = mapped_column(JSON, default=list)
    tags: Mapped[Optional[list[str]]] = mapped_column(JSON, default=list)
    delivery_mode: Mapped[str] = mapped_column(_enum(DeliveryMode, 'course_delivery_enum'), nullable=False, default=DeliveryMode.OFFLINE.value)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now, onupdate=now)

    institute: Mapped['Institute'] = relationship('Institute', back_populates='courses')


class Enquiry(Base):
    __tablename__ = 'enquiries'
    __table_args__ = (
        ForeignKeyConstraint(['institute_id'], ['institutes.id'], ondelete='CASCADE', name='enquiries_institute_id_fkey'),
        ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL', name='enquiries_user_id_fkey'),
        PrimaryKeyConstraint('id', name='enquiries_pkey'),
        Index('idx_enquiries_institute_created', 'institute_id', 'created_at'),
        Index('idx_enquiries_status', 'status'),
        Index('idx_enquiries_email', 'email'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String)
    course: Mapped[Optional[str]] = mapped_column(String(100))
    message: Mapped[str] = mapped_column(Text, nullable=False)
    institute_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    status: Mapped[str] = mapped_column(_enum(EnquiryStatus, 'enquiry_status_enum'), nullable=False, default=EnquiryStatus.PENDING.value)
    priority: Mapped[str] = mapped_column(_enum(EnquiryPriority, 'enquiry_priority_enum'), nullable=False, default=EnquiryPriority.MEDIUM.value)
    source: Mapped[str] = mapped_column(_enum(EnquirySource, 'enquiry_source_enum'), nullable=False, default=EnquirySource.WEBSITE.value)
    reply: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON)
    resolved_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now, onupdate=now)

    institute: Mapped['Institute'] = relationship('Institute', back_populates='enquiries')
    user: Mapped[Optional['User']] = relationship('User', back_populates='enquiries')


class Review(Base):
    __tablename__ = 'reviews'
    __table_args__ = (
        CheckConstraint('rating >= 1 AND rating <= 5', name='reviews_rating_check'),
        ForeignKeyConstraint(['institute_id'], ['institutes.id'], ondelete='CASCADE', name='reviews_institute_id_fkey'),
        ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE', name='reviews_user_id_fkey'),
        PrimaryKeyConstraint('id', name='reviews_pkey'),
        UniqueConstraint('user_id', 'institute_id', name='reviews_user_institute_key'),
        Index('idx_reviews_institute_created', 'institute_id', 'created_at'),
        Index('idx_reviews_approved_flagged', 'approved', 'flagged'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    institute_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    rating: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(100))
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    flagged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    flag_reason: Mapped[Optional[str]] = mapped_column(String(500))
    flagged_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    flagged_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime)
    approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    approved_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now, onupdate=now)

    institute: Mapped['Institute'] = relationship('Institute', back_populates='reviews')
    user: Mapped['User'] = relationship('User', back_populates='reviews')
