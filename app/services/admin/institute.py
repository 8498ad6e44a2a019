import uuid
from typing import Any

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import CurrentIdentity
from app.core.enum import ApprovalStatus
from app.core.exceptions import api_error
from app.db.models.database import Institute
from app.db.session import get_session
from app.libs.formats.datetime import now as get_now
from app.schemas.admin.institute import InstituteApproval
from app.schemas.shares.institute import InstituteOut


class AdminInstituteService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def get_pending_institutes_async(self) -> dict[str, Any]:
        institutes = (
            await self.db.scalars(
                select(Institute)
                .where(Institute.approval_status == ApprovalStatus.PENDING.value)
                .order_by(Institute.created_at.asc())
            )
        ).all()
        return {
            "success": True,
            "message": "Pending institutes fetched successfully",
            "institutes": [InstituteOut.serialize(i) for i in institutes],
        }

    async def update_approval_status_async(
        self,
        institute_id: uuid.UUID,
        schema: InstituteApproval,
        identity: CurrentIdentity,
    ) -> dict[str, Any]:
        try:
            institute = await self.db.get(Institute, institute_id)
            if not institute:
                raise api_error(404, "Institute not found")

            institute.approval_status = schema.status
            # an approved listing is a verified one
            institute.verified = schema.status == ApprovalStatus.APPROVED.value
            institute.updated_at = get_now()
            await self.db.commit()
            await self.db.refresh(institute)
            logger.info(
                f"🏫 Institute {institute_id} {schema.status} by {identity.email}"
            )

            return {
                "success": True,
                "message": f"Institute {schema.status} successfully",
                "institute": InstituteOut.serialize(institute),
            }
        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"🔥 Update approval of institute {institute_id} error: {e}")
            raise HTTPException(500, "Error updating institute approval status")
