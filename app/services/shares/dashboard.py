import uuid
from datetime import datetime
from typing import Any

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.deps import CurrentIdentity
from app.core.enum import AccountType, ApprovalStatus, EnquiryStatus, values
from app.db.models.database import Course, Enquiry, Institute, Review, User
from app.db.session import get_session
from app.libs.formats.datetime import month_label, months_back
from app.libs.formats.number import round_half_up
from app.schemas.auth.user import UserOut
from app.schemas.shares.course import CourseOut
from app.schemas.shares.enquiry import EnquiryOut
from app.schemas.shares.institute import InstituteOut
from app.schemas.shares.review import ReviewOut

INSTITUTE_QUICK_ACTIONS = [
    {"label": "Add New Course", "action": "create_course", "icon": "📚"},
    {"label": "View Enquiries", "action": "view_enquiries", "icon": "📧"},
    {"label": "Manage Profile", "action": "manage_profile", "icon": "🏫"},
    {"label": "View Analytics", "action": "view_analytics", "icon": "📊"},
]

USER_QUICK_ACTIONS = [
    {"label": "Browse Institutes", "action": "browse_institutes", "icon": "🏫"},
    {"label": "My Enquiries", "action": "view_enquiries", "icon": "📧"},
    {"label": "Write Review", "action": "write_review", "icon": "⭐"},
    {"label": "Update Profile", "action": "update_profile", "icon": "👤"},
]


def bucket_by_month(
    timestamps: list[datetime], months: list[tuple[int, int]]
) -> dict[tuple[int, int], int]:
    counts = {key: 0 for key in months}
    for ts in timestamps:
        key = (ts.year, ts.month)
        if key in counts:
            counts[key] += 1
    return counts


class DashboardService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def _count(self, model, *conditions) -> int:
        return await self.db.scalar(select(func.count(model.id)).where(*conditions)) or 0

    async def _average_rating(self, *conditions) -> float:
        average = await self.db.scalar(select(func.avg(Review.rating)).where(*conditions))
        return round_half_up(average) if average else 0

    async def _created_since(self, column, start: datetime, *conditions) -> list[datetime]:
        return list(
            (await self.db.scalars(select(column).where(column >= start, *conditions))).all()
        )

    async def get_dashboard_async(self, identity: CurrentIdentity) -> dict[str, Any]:
        try:
            if identity.is_admin:
                data = await self._admin_dashboard()
            elif identity.is_institute and identity.institute_id:
                data = await self._institute_dashboard(identity.institute_id)
            else:
                data = await self._user_dashboard(identity)
            return {
                "success": True,
                "message": "Dashboard data fetched successfully",
                **data,
            }
        except HTTPException:
            raise
        except Exception as e:
            logger.exception(f"🔥 Dashboard error for {identity.email}: {e}")
            raise HTTPException(500, "Error fetching dashboard data")

    # ==============================
    # 🛡️ ADMIN
    # ==============================

    async def _admin_dashboard(self) -> dict[str, Any]:
        recent_institutes = (
            await self.db.scalars(
                select(Institute).order_by(Institute.created_at.desc()).limit(5)
            )
        ).all()
        recent_users = (
            await self.db.scalars(select(User).order_by(User.created_at.desc()).limit(5))
        ).all()

        categories = await self.db.execute(
            select(Institute.category, func.count(Institute.id)).group_by(Institute.category)
        )

        return {
            "role": "admin",
            "stats": {
                "totalInstitutes": await self._count(Institute),
                "totalUsers": await self._count(User),
                "totalCourses": await self._count(Course),
                "totalEnquiries": await self._count(Enquiry),
                "totalReviews": await self._count(Review),
                "pendingInstitutes": await self._count(
                    Institute, Institute.approval_status == ApprovalStatus.PENDING.value
                ),
                "avgPlatformRating": await self._average_rating(),
            },
            "recentActivity": {
                "newInstitutes": [InstituteOut.serialize(i) for i in recent_institutes],
                "newUsers": [UserOut.serialize(u) for u in recent_users],
            },
            "charts": {
                "instituteCategories": {category: count for category, count in categories.all()},
                "monthlyGrowth": await self._monthly_growth(),
            },
        }

    async def _monthly_growth(self) -> list[dict[str, Any]]:
        months = months_back(6)
        start = datetime(months[0][0], months[0][1], 1)
        institutes = bucket_by_month(
            await self._created_since(Institute.created_at, start), months
        )
        users = bucket_by_month(await self._created_since(User.created_at, start), months)
        return [
            {
                "month": month_label(year, month),
                "institutes": institutes[(year, month)],
                "users": users[(year, month)],
            }
            for year, month in months
        ]

    # ==============================
    # 🏫 INSTITUTE
    # ==============================

    async def _institute_dashboard(self, institute_id: uuid.UUID) -> dict[str, Any]:
        institute = await self.db.get(Institute, institute_id)
        courses = (
            await self.db.scalars(
                select(Course)
                .where(Course.institute_id == institute_id)
                .order_by(Course.created_at.desc())
            )
        ).all()

        enquiry_stats: dict[str, int] = {status: 0 for status in values(EnquiryStatus)}
        rows = await self.db.execute(
            select(Enquiry.status, func.count(Enquiry.id))
            .where(Enquiry.institute_id == institute_id)
            .group_by(Enquiry.status)
        )
        for status, count in rows.all():
            enquiry_stats[status] = count
        enquiry_stats["total"] = sum(enquiry_stats.values())

        distribution = {rating: 0 for rating in (5, 4, 3, 2, 1)}
        rows = await self.db.execute(
            select(Review.rating, func.count(Review.id))
            .where(Review.institute_id == institute_id)
            .group_by(Review.rating)
        )
        for rating, count in rows.all():
            distribution[int(rating)] = count

        recent_enquiries = (
            await self.db.scalars(
                select(Enquiry)
                .options(selectinload(Enquiry.user), selectinload(Enquiry.institute))
                .where(Enquiry.institute_id == institute_id)
                .order_by(Enquiry.created_at.desc())
                .limit(5)
            )
        ).all()
        recent_reviews = (
            await self.db.scalars(
                select(Review)
                .options(selectinload(Review.user), selectinload(Review.institute))
                .where(Review.institute_id == institute_id)
                .order_by(Review.created_at.desc())
                .limit(5)
            )
        ).all()

        months = months_back(6)
        start = datetime(months[0][0], months[0][1], 1)
        monthly = bucket_by_month(
            await self._created_since(
                Enquiry.created_at, start, Enquiry.institute_id == institute_id
            ),
            months,
        )

        return {
            "role": "institute",
            "institute": {
                "id": str(institute_id),
                "name": institute.name if institute else None,
                "verified": institute.verified if institute else None,
                "category": institute.category if institute else None,
            },
            "stats": {
                "coursesCount": len(courses),
                "enquiriesCount": enquiry_stats["total"],
                "reviewsCount": sum(distribution.values()),
                "pendingEnquiries": enquiry_stats[EnquiryStatus.PENDING.value],
                "avgRating": await self._average_rating(Review.institute_id == institute_id),
                "totalRevenue": round(
                    sum((c.price or 0) * (c.enrollment_count or 0) for c in courses), 2
                ),
            },
            "analytics": {
                "ratingDistribution": {str(k): v for k, v in distribution.items()},
                "enquiryStats": enquiry_stats,
                "monthlyEnquiries": [
                    {"month": month_label(year, month), "enquiries": monthly[(year, month)]}
                    for year, month in months
                ],
                "coursePerformance": [
                    {
                        "name": c.title,
                        "enrollments": c.enrollment_count or 0,
                        "revenue": round((c.price or 0) * (c.enrollment_count or 0), 2),
                    }
                    for c in courses[:5]
                ],
            },
            "recentActivity": {
                "enquiries": [EnquiryOut.serialize(e) for e in recent_enquiries],
                "reviews": [ReviewOut.serialize(r) for r in recent_reviews],
            },
            "quickActions": INSTITUTE_QUICK_ACTIONS,
        }

    # ==============================
    # 👤 USER
    # ==============================

    async def _user_dashboard(self, identity: CurrentIdentity) -> dict[str, Any]:
        enquiries: list[Enquiry] = []
        reviews: list[Review] = []
        saved_institutes = 0
        if identity.account == AccountType.USER.value:
            enquiries = list(
                (
                    await self.db.scalars(
                        select(Enquiry)
                        .options(selectinload(Enquiry.institute), selectinload(Enquiry.user))
                        .where(Enquiry.user_id == identity.id)
                        .order_by(Enquiry.created_at.desc())
                    )
                ).all()
            )
            reviews = list(
                (
                    await self.db.scalars(
                        select(Review)
                        .options(selectinload(Review.institute), selectinload(Review.user))
                        .where(Review.user_id == identity.id)
                        .order_by(Review.created_at.desc())
                    )
                ).all()
            )
            user = await self.db.get(User, identity.id)
            saved_institutes = user.saved_institutes if user else 0

        featured = (
            await self.db.scalars(
                select(Institute)
                .where(Institute.featured.is_(True))
                .order_by(Institute.rating.desc())
                .limit(4)
            )
        ).all()
        popular = (
            await self.db.scalars(
                select(Course)
                .options(selectinload(Course.institute))
                .order_by(Course.enrollment_count.desc())
                .limit(4)
            )
        ).all()

        return {
            "role": "user",
            "stats": {
                "enrolledCourses": 0,
                "pendingEnquiries": sum(
                    1 for e in enquiries if e.status == EnquiryStatus.PENDING.value
                ),
                "writtenReviews": len(reviews),
                "savedInstitutes": saved_institutes,
            },
            "recentActivity": {
                "enquiries": [EnquiryOut.serialize(e) for e in enquiries[:3]],
                "reviews": [ReviewOut.serialize(r) for r in reviews[:3]],
            },
            "recommendations": {
                "featuredInstitutes": [InstituteOut.serialize(i) for i in featured],
                "popularCourses": [CourseOut.serialize(c) for c in popular],
            },
            "quickActions": USER_QUICK_ACTIONS,
        }

    # ==============================
    # 📊 STATS ENDPOINTS
    # ==============================

    async def get_institute_stats_async(self, institute_id: uuid.UUID) -> dict[str, Any]:
        try:
            return {
                "success": True,
                "message": "Institute statistics fetched successfully",
                "stats": {
                    "courses": await self._count(Course, Course.institute_id == institute_id),
                    "enquiries": await self._count(Enquiry, Enquiry.institute_id == institute_id),
                    "reviews": await self._count(Review, Review.institute_id == institute_id),
                    "avgRating": await self._average_rating(Review.institute_id == institute_id),
                },
            }
        except Exception as e:
            logger.exception(f"🔥 Institute stats error for {institute_id}: {e}")
            raise HTTPException(500, "Error fetching institute statistics")

    async def get_platform_stats_async(self) -> dict[str, Any]:
        try:
            return {
                "success": True,
                "message": "Platform statistics fetched successfully",
                "stats": {
                    "institutes": await self._count(Institute),
                    "users": await self._count(User),
                    "courses": await self._count(Course),
                    "enquiries": await self._count(Enquiry),
                    "reviews": await self._count(Review),
                    "avgRating": await self._average_rating(),
                },
            }
        except Exception as e:
            logger.exception(f"🔥 Platform stats error: {e}")
            raise HTTPException(500, "Error fetching platform statistics")
