import uuid
from typing import Any

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.context import get_request
from app.core.deps import AuthorizationService, CurrentIdentity
from app.core.exceptions import api_error
from app.db.models.database import Course, Institute
from app.db.session import get_session
from app.libs.formats.datetime import now as get_now
from app.libs.formats.text import LIKE_ESCAPE, like_pattern
from app.schemas.shares.course import CourseCreate, CourseFilters, CourseOut, CourseUpdate
from app.services.shares.rating import RatingService


class CourseService:
    def __init__(
        self,
        db: AsyncSession = Depends(get_session),
        rating: RatingService = Depends(RatingService),
    ):
        self.db = db
        self.rating = rating

    async def _get_course(self, course_id: uuid.UUID, refresh: bool = False) -> Course | None:
        stmt = (
            select(Course)
            .options(selectinload(Course.institute))
            .where(Course.id == course_id)
        )
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        return await self.db.scalar(stmt)

    async def _refresh_courses_count(self, institute_id: uuid.UUID) -> None:
        total = await self.db.scalar(
            select(func.count(Course.id)).where(Course.institute_id == institute_id)
        )
        await self.db.execute(
            update(Institute)
            .where(Institute.id == institute_id)
            .values(courses_count=total or 0)
        )

    async def _paginate(
        self, conditions: list[Any], page: int, limit: int
    ) -> tuple[list[Course], int]:
        total = await self.db.scalar(select(func.count(Course.id)).where(*conditions)) or 0
        courses = (
            await self.db.scalars(
                select(Course)
                .options(selectinload(Course.institute))
                .where(*conditions)
                .order_by(Course.created_at.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
        ).all()
        return list(courses), total

    # ==============================
    # 📖 PUBLIC
    # ==============================

    async def get_courses_async(self, filters: CourseFilters) -> dict[str, Any]:
        try:
            conditions: list[Any] = []
            if filters.institute:
                conditions.append(Course.institute_id == filters.institute)
            if filters.category:
                conditions.append(Course.category == filters.category.value)
            if filters.status:
                conditions.append(Course.status == filters.status.value)
            if filters.search:
                pattern = like_pattern(filters.search)
                conditions.append(
                    or_(
                        Course.title.ilike(pattern, escape=LIKE_ESCAPE),
                        Course.description.ilike(pattern, escape=LIKE_ESCAPE),
                    )
                )

            courses, total = await self._paginate(conditions, filters.page, filters.limit)
            return {
                "success": True,
                "message": "Courses fetched successfully",
                "courses": [CourseOut.serialize(c) for c in courses],
                "totalPages": (total + filters.limit - 1) // filters.limit,
                "currentPage": filters.page,
                "total": total,
            }
        except Exception as e:
            logger.exception(f"🔥 Get courses error: {e}")
            raise HTTPException(500, "Error fetching courses")

    async def get_courses_by_institute_async(
        self, institute_id: uuid.UUID, page: int = 1, limit: int = 10
    ) -> dict[str, Any]:
        try:
            courses, total = await self._paginate(
                [Course.institute_id == institute_id], page, limit
            )
            return {
                "success": True,
                "message": "Institute courses fetched successfully",
                "courses": [CourseOut.serialize(c) for c in courses],
                "totalPages": (total + limit - 1) // limit,
                "currentPage": page,
                "total": total,
            }
        except Exception as e:
            logger.exception(f"🔥 Get courses of institute {institute_id} error: {e}")
            raise HTTPException(500, "Error fetching institute courses")

    async def get_course_async(self, course_id: uuid.UUID) -> dict[str, Any]:
        course = await self._get_course(course_id)
        if not course:
            raise api_error(404, "Course not found")
        return {
            "success": True,
            "message": "Course fetched successfully",
            "course": CourseOut.serialize(course),
        }

    # ==============================
    # 🏫 INSTITUTE / ADMIN
    # ==============================

    async def create_course_async(
        self, schema: CourseCreate, institute_id: uuid.UUID
    ) -> dict[str, Any]:
        """Create a course under an institute the caller has already been cleared to manage."""
        try:
            if not await self.db.get(Institute, institute_id):
                raise api_error(404, "Institute not found")

            course = Course(institute_id=institute_id, **schema.columns())
            self.db.add(course)
            await self.db.flush()
            await self._refresh_courses_count(institute_id)
            await self.db.commit()
            logger.info(f"📚 Course {course.id} created for institute {institute_id}")

            course = await self._get_course(course.id, refresh=True)
            return {
                "success": True,
                "message": "Course created successfully",
                "course": CourseOut.serialize(course),
            }
        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"🔥 Create course error: {e}")
            raise HTTPException(500, "Error creating course")

    async def update_course_async(
        self, course_id: uuid.UUID, schema: CourseUpdate, identity: CurrentIdentity
    ) -> dict[str, Any]:
        try:
            course = await self._get_course(course_id)
            if not course:
                raise api_error(404, "Course not found")
            request = get_request()
            AuthorizationService.require_institute_owner(
                identity, course.institute_id, request.method, request.url.path
            )

            for field, value in schema.changes().items():
                setattr(course, field, value)
            course.updated_at = get_now()
            await self.db.commit()

            course = await self._get_course(course_id, refresh=True)
            return {
                "success": True,
                "message": "Course updated successfully",
                "course": CourseOut.serialize(course),
            }
        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"🔥 Update course {course_id} error: {e}")
            raise HTTPException(500, "Error updating course")

    async def delete_course_async(
        self, course_id: uuid.UUID, identity: CurrentIdentity
    ) -> dict[str, Any]:
        try:
            course = await self._get_course(course_id)
            if not course:
                raise api_error(404, "Course not found")
            request = get_request()
            AuthorizationService.require_institute_owner(
                identity, course.institute_id, request.method, request.url.path
            )

            institute_id = course.institute_id
            await self.db.delete(course)
            await self.db.flush()
            await self._refresh_courses_count(institute_id)
            await self.db.commit()
            logger.info(f"🗑️ Course {course_id} deleted by {identity.email}")

            await self.rating.update_institute_rating(institute_id)
            return {"success": True, "message": "Course deleted successfully"}
        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"🔥 Delete course {course_id} error: {e}")
            raise HTTPException(500, "Error deleting course")
