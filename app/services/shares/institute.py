import uuid
from typing import Any

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enum import ApprovalStatus
from app.core.exceptions import api_error
from app.db.models.database import Institute
from app.db.session import get_session
from app.libs.formats.text import LIKE_ESCAPE, like_pattern
from app.schemas.shares.base import Pagination
from app.schemas.shares.institute import InstituteFilters, InstituteOut


class InstituteService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def get_institutes_async(self, filters: InstituteFilters) -> dict[str, Any]:
        """Public directory: approved, active institutes only."""
        try:
            conditions: list[Any] = [
                Institute.is_active.is_(True),
                Institute.approval_status == ApprovalStatus.APPROVED.value,
            ]
            if filters.featured is not None:
                conditions.append(Institute.featured.is_(filters.featured))
            if filters.category:
                conditions.append(Institute.category == filters.category)
            if filters.city:
                # city lives inside the address JSON
                conditions.append(
                    func.lower(Institute.address["city"].as_string())
                    == filters.city.strip().lower()
                )
            if filters.search:
                pattern = like_pattern(filters.search)
                conditions.append(
                    or_(
                        Institute.name.ilike(pattern, escape=LIKE_ESCAPE),
                        Institute.description.ilike(pattern, escape=LIKE_ESCAPE),
                    )
                )

            total = await self.db.scalar(
                select(func.count(Institute.id)).where(*conditions)
            ) or 0
            institutes = (
                await self.db.scalars(
                    select(Institute)
                    .where(*conditions)
                    .order_by(
                        Institute.featured.desc(),
                        Institute.rating.desc(),
                        Institute.created_at.desc(),
                    )
                    .offset((filters.page - 1) * filters.limit)
                    .limit(filters.limit)
                )
            ).all()

            return {
                "success": True,
                "message": "Institutes fetched successfully",
                "institutes": [InstituteOut.serialize(i) for i in institutes],
                "pagination": Pagination.build(
                    filters.page, filters.limit, total
                ).model_dump(by_alias=True),
            }
        except Exception as e:
            logger.exception(f"🔥 Get institutes error: {e}")
            raise HTTPException(500, "Error fetching institutes")

    async def get_institute_async(self, institute_id: uuid.UUID) -> dict[str, Any]:
        try:
            institute = await self.db.get(Institute, institute_id)
            if not institute:
                raise api_error(404, "Institute not found")

            await self.db.execute(
                update(Institute)
                .where(Institute.id == institute_id)
                .values(views=Institute.views + 1)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
            await self.db.refresh(institute)

            return {
                "success": True,
                "message": "Institute fetched successfully",
                "institute": InstituteOut.serialize(institute),
            }
        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"🔥 Get institute {institute_id} error: {e}")
            raise HTTPException(500, "Error fetching institute")
