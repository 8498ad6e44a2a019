import uuid
from typing import Any

from fastapi import BackgroundTasks, Depends, HTTPException
from loguru import logger
from sqlalchemy import asc, desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.deps import CurrentIdentity
from app.core.enum import AccountType, EnquiryStatus, values
from app.core.exceptions import api_error
from app.db.models.database import Enquiry, Institute, User
from app.db.session import get_session
from app.libs.formats.datetime import days_ago, now as get_now
from app.libs.formats.number import round_half_up
from app.libs.formats.text import LIKE_ESCAPE, like_pattern, normalize_email
from app.schemas.shares.base import Pagination
from app.schemas.shares.enquiry import (
    EnquiryCreate,
    EnquiryFilters,
    EnquiryOut,
    EnquiryReply,
    EnquiryStatusUpdate,
)
from app.services.shares.mailer import MailerService

SORT_COLUMNS = {
    "createdAt": Enquiry.created_at,
    "updatedAt": Enquiry.updated_at,
    "status": Enquiry.status,
    "name": Enquiry.name,
}


def scope_for(identity: CurrentIdentity, requested: uuid.UUID | None = None) -> list[Any]:
    """Institute callers only ever see their own enquiries; admins may narrow by institute."""
    if identity.is_institute:
        return [Enquiry.institute_id == identity.institute_id]
    if requested:
        return [Enquiry.institute_id == requested]
    return []


class EnquiryService:
    def __init__(
        self,
        db: AsyncSession = Depends(get_session),
        mailer: MailerService = Depends(MailerService),
    ):
        self.db = db
        self.mailer = mailer

    async def _get_enquiry(self, enquiry_id: uuid.UUID, refresh: bool = False) -> Enquiry | None:
        stmt = (
            select(Enquiry)
            .options(selectinload(Enquiry.institute), selectinload(Enquiry.user))
            .where(Enquiry.id == enquiry_id)
        )
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        return await self.db.scalar(stmt)

    async def _require_accessible(
        self, enquiry_id: uuid.UUID, identity: CurrentIdentity
    ) -> Enquiry:
        enquiry = await self._get_enquiry(enquiry_id)
        if not enquiry:
            raise api_error(404, "Enquiry not found")
        if identity.is_institute and not identity.owns_institute(enquiry.institute_id):
            raise api_error(403, "Access denied to this enquiry")
        return enquiry

    # ==============================
    # 📨 PUBLIC
    # ==============================

    async def create_enquiry_async(
        self, schema: EnquiryCreate, identity: CurrentIdentity | None = None
    ) -> dict[str, Any]:
        try:
            if not await self.db.get(Institute, schema.institute):
                raise api_error(404, "Institute not found")

            user_id = (
                identity.id
                if identity and identity.account == AccountType.USER.value
                else None
            )
            enquiry = Enquiry(
                name=schema.name,
                email=normalize_email(schema.email),
                phone=schema.phone,
                course=schema.course,
                message=schema.message,
                institute_id=schema.institute,
                user_id=user_id,
                priority=schema.priority.value,
                source=schema.source.value,
            )
            self.db.add(enquiry)

            await self.db.execute(
                update(Institute)
                .where(Institute.id == schema.institute)
                .values(enquiries_count=Institute.enquiries_count + 1)
                .execution_options(synchronize_session=False)
            )
            if user_id:
                await self.db.execute(
                    update(User)
                    .where(User.id == user_id)
                    .values(enquiries_count=User.enquiries_count + 1)
                    .execution_options(synchronize_session=False)
                )
            await self.db.commit()
            logger.info(f"📨 Enquiry {enquiry.id} submitted to institute {schema.institute}")

            enquiry = await self._get_enquiry(enquiry.id, refresh=True)
            return {
                "success": True,
                "message": "Enquiry submitted successfully",
                "enquiry": EnquiryOut.serialize(enquiry),
                "notification": "We have received your enquiry and will get back to you soon.",
            }
        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"🔥 Create enquiry error: {e}")
            raise HTTPException(500, "Error submitting enquiry")

    # ==============================
    # 🏫 INSTITUTE / ADMIN
    # ==============================

    async def get_enquiries_async(
        self, filters: EnquiryFilters, identity: CurrentIdentity
    ) -> dict[str, Any]:
        try:
            conditions = scope_for(identity, filters.institute)
            scope = list(conditions)

            if filters.status and filters.status != "all":
                conditions.append(Enquiry.status == filters.status)
            if filters.search:
                pattern = like_pattern(filters.search)
                conditions.append(
                    or_(
                        Enquiry.name.ilike(pattern, escape=LIKE_ESCAPE),
                        Enquiry.email.ilike(pattern, escape=LIKE_ESCAPE),
                        Enquiry.course.ilike(pattern, escape=LIKE_ESCAPE),
                        Enquiry.message.ilike(pattern, escape=LIKE_ESCAPE),
                    )
                )

            total = await self.db.scalar(
                select(func.count(Enquiry.id)).where(*conditions)
            ) or 0

            sort_column = SORT_COLUMNS.get(filters.sort_by, Enquiry.created_at)
            sort_func = asc if filters.sort_order == "asc" else desc
            enquiries = (
                await self.db.scalars(
                    select(Enquiry)
                    .options(selectinload(Enquiry.institute), selectinload(Enquiry.user))
                    .where(*conditions)
                    .order_by(sort_func(sort_column))
                    .offset((filters.page - 1) * filters.limit)
                    .limit(filters.limit)
                )
            ).all()

            status_counts = {status: 0 for status in values(EnquiryStatus)}
            rows = await self.db.execute(
                select(Enquiry.status, func.count(Enquiry.id))
                .where(*scope)
                .group_by(Enquiry.status)
            )
            for status, count in rows.all():
                status_counts[status] = count

            return {
                "success": True,
                "message": "Enquiries fetched successfully",
                "enquiries": [EnquiryOut.serialize(e) for e in enquiries],
                "pagination": Pagination.build(
                    filters.page, filters.limit, total
                ).model_dump(by_alias=True),
                "filters": {"status": status_counts},
            }
        except HTTPException:
            raise
        except Exception as e:
            logger.exception(f"🔥 Get enquiries error: {e}")
            raise HTTPException(500, "Error fetching enquiries")

    async def get_enquiry_async(
        self, enquiry_id: uuid.UUID, identity: CurrentIdentity
    ) -> dict[str, Any]:
        enquiry = await self._require_accessible(enquiry_id, identity)
        return {
            "success": True,
            "message": "Enquiry fetched successfully",
            "enquiry": EnquiryOut.serialize(enquiry),
        }

    async def reply_enquiry_async(
        self,
        enquiry_id: uuid.UUID,
        schema: EnquiryReply,
        identity: CurrentIdentity,
        background_tasks: BackgroundTasks,
    ) -> dict[str, Any]:
        try:
            enquiry = await self._require_accessible(enquiry_id, identity)

            replied_at = get_now()
            enquiry.reply = {
                "message": schema.reply,
                "repliedAt": replied_at.isoformat(),
                "repliedBy": str(identity.id),
            }
            enquiry.status = schema.status
            if schema.status == EnquiryStatus.RESOLVED.value:
                enquiry.resolved_at = replied_at
            enquiry.updated_at = replied_at
            await self.db.commit()
            logger.info(f"💬 Enquiry {enquiry_id} replied by {identity.email}")

            enquiry = await self._get_enquiry(enquiry_id, refresh=True)
            background_tasks.add_task(
                self.mailer.send_enquiry_reply_email,
                enquiry.email,
                enquiry.name,
                enquiry.institute.name if enquiry.institute else "EduList",
                enquiry.message,
                schema.reply,
            )
            return {
                "success": True,
                "message": "Reply sent successfully",
                "enquiry": EnquiryOut.serialize(enquiry),
            }
        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"🔥 Reply enquiry {enquiry_id} error: {e}")
            raise HTTPException(500, "Error sending reply")

    async def update_status_async(
        self,
        enquiry_id: uuid.UUID,
        schema: EnquiryStatusUpdate,
        identity: CurrentIdentity,
    ) -> dict[str, Any]:
        try:
            enquiry = await self._require_accessible(enquiry_id, identity)

            # any status may follow any other
            enquiry.status = schema.status
            enquiry.updated_at = get_now()
            if schema.status == EnquiryStatus.RESOLVED.value:
                enquiry.resolved_at = get_now()
            await self.db.commit()

            enquiry = await self._get_enquiry(enquiry_id, refresh=True)
            return {
                "success": True,
                "message": f"Enquiry marked as {schema.status}",
                "enquiry": EnquiryOut.serialize(enquiry),
            }
        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"🔥 Update enquiry {enquiry_id} status error: {e}")
            raise HTTPException(500, "Error updating enquiry status")

    async def delete_enquiry_async(
        self, enquiry_id: uuid.UUID, identity: CurrentIdentity
    ) -> dict[str, Any]:
        try:
            enquiry = await self._require_accessible(enquiry_id, identity)
            await self.db.delete(enquiry)
            await self.db.commit()
            logger.info(f"🗑️ Enquiry {enquiry_id} deleted by {identity.email}")
            return {"success": True, "message": "Enquiry deleted successfully"}
        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"🔥 Delete enquiry {enquiry_id} error: {e}")
            raise HTTPException(500, "Error deleting enquiry")

    async def get_enquiry_stats_async(self, identity: CurrentIdentity) -> dict[str, Any]:
        try:
            scope = scope_for(identity)

            stats: dict[str, int] = {status: 0 for status in values(EnquiryStatus)}
            rows = await self.db.execute(
                select(Enquiry.status, func.count(Enquiry.id))
                .where(*scope)
                .group_by(Enquiry.status)
            )
            for status, count in rows.all():
                stats[status] = count
            total = sum(stats.values())
            stats["total"] = total

            recent = await self.db.scalar(
                select(func.count(Enquiry.id)).where(
                    *scope, Enquiry.created_at >= days_ago(7)
                )
            ) or 0

            answered = stats[EnquiryStatus.REPLIED.value] + stats[EnquiryStatus.RESOLVED.value]
            return {
                "success": True,
                "message": "Enquiry statistics fetched successfully",
                "stats": stats,
                "recentActivity": {
                    "last7Days": recent,
                    "responseRate": round_half_up(answered / total * 100) if total else 0,
                },
            }
        except Exception as e:
            logger.exception(f"🔥 Get enquiry stats error: {e}")
            raise HTTPException(500, "Error fetching enquiry statistics")
