import uuid
from typing import Iterable

from fastapi import Depends
from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.database import Institute, Review
from app.db.session import get_session
from app.libs.formats.datetime import now as get_now
from app.libs.formats.number import mean_half_up


def compute_rating(ratings: Iterable[int]) -> tuple[float, int]:
    """
    Aggregate rating of a set of approved reviews
    - empty -> (0, 0)
    - otherwise (mean rounded half away from zero to one decimal, count)
    """
    values = [int(r) for r in ratings]
    if not values:
        return 0.0, 0
    return mean_half_up(sum(values), len(values)), len(values)


class RatingService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def update_institute_rating(
        self, institute_id: uuid.UUID
    ) -> tuple[float, int] | None:
        """
        Recompute institute.rating / reviews_count from approved reviews and overwrite them.
        Failures are logged and swallowed: the triggering action keeps its success response.
        """
        try:
            ratings = (
                await self.db.scalars(
                    select(Review.rating).where(
                        Review.institute_id == institute_id,
                        Review.approved.is_(True),
                    )
                )
            ).all()
            rating, count = compute_rating(ratings)

            await self.db.execute(
                update(Institute)
                .where(Institute.id == institute_id)
                .values(
                    rating=rating,
                    reviews_count=count,
                    last_rating_update=get_now(),
                )
            )
            await self.db.commit()
            logger.info(
                f"⭐ Institute {institute_id} rating recomputed: {rating} ({count} reviews)"
            )
            return rating, count
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"🔥 Update institute rating error for {institute_id}: {e}")
            return None
