import uuid
from typing import Any

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import api_error
from app.db.models.database import Enquiry, Review, User
from app.db.session import get_session
from app.schemas.auth.user import UserOut
from app.schemas.shares.enquiry import EnquiryOut
from app.schemas.shares.review import ReviewOut


class ProfileService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def get_profile_by_user_id(self, user_id: uuid.UUID) -> dict[str, Any]:
        user = await self.db.get(User, user_id)
        if not user:
            raise api_error(404, "User not found")
        return {
            "success": True,
            "message": "User fetched successfully",
            "user": UserOut.serialize(user),
        }

    async def get_activity_async(self, user_id: uuid.UUID, limit: int = 10) -> dict[str, Any]:
        """Latest enquiries and reviews written by one user."""
        try:
            if not await self.db.get(User, user_id):
                raise api_error(404, "User not found")

            enquiries = (
                await self.db.scalars(
                    select(Enquiry)
                    .options(selectinload(Enquiry.institute), selectinload(Enquiry.user))
                    .where(Enquiry.user_id == user_id)
                    .order_by(Enquiry.created_at.desc())
                    .limit(limit)
                )
            ).all()
            reviews = (
                await self.db.scalars(
                    select(Review)
                    .options(selectinload(Review.institute), selectinload(Review.user))
                    .where(Review.user_id == user_id)
                    .order_by(Review.created_at.desc())
                    .limit(limit)
                )
            ).all()

            return {
                "success": True,
                "message": "User activity fetched successfully",
                "activity": {
                    "enquiries": [EnquiryOut.serialize(e) for e in enquiries],
                    "reviews": [ReviewOut.serialize(r) for r in reviews],
                },
            }
        except HTTPException:
            raise
        except Exception as e:
            logger.exception(f"🔥 Get activity of user {user_id} error: {e}")
            raise HTTPException(500, "Error fetching user activity")
