import uuid
from typing import Any

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import asc, case, desc, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.deps import CurrentIdentity
from app.core.enum import AccountType
from app.core.exceptions import api_error
from app.db.models.database import Institute, Review, User
from app.db.session import get_session
from app.libs.formats.datetime import now as get_now
from app.libs.formats.number import round_half_up
from app.libs.formats.text import LIKE_ESCAPE, like_pattern
from app.schemas.shares.base import Pagination
from app.schemas.shares.review import (
    ReviewCreate,
    ReviewFilters,
    ReviewFlag,
    ReviewOut,
    ReviewUpdate,
)
from app.services.shares.rating import RatingService

SORT_COLUMNS = {
    "createdAt": Review.created_at,
    "updatedAt": Review.updated_at,
    "rating": Review.rating,
}


def review_query():
    return select(Review).options(
        selectinload(Review.user), selectinload(Review.institute)
    )


def build_review_conditions(
    filters: ReviewFilters, identity: CurrentIdentity | None = None
) -> list[Any]:
    """One predicate per filter that is actually present."""
    conditions: list[Any] = []

    institute_id = filters.institute
    if institute_id is None and identity and identity.is_institute and identity.institute_id:
        institute_id = identity.institute_id
    if institute_id:
        conditions.append(Review.institute_id == institute_id)

    if filters.user:
        conditions.append(Review.user_id == filters.user)

    if filters.status and filters.status != "all":
        if filters.status == "flagged":
            conditions.append(Review.flagged.is_(True))
        elif filters.status == "pending":
            conditions.append(Review.approved.is_(False))
        elif filters.status == "approved":
            conditions.append(Review.approved.is_(True))
            conditions.append(Review.flagged.is_(False))

    if filters.rating:
        conditions.append(Review.rating == filters.rating)

    if filters.search:
        pattern = like_pattern(filters.search)
        conditions.append(
            or_(
                Review.comment.ilike(pattern, escape=LIKE_ESCAPE),
                Review.user.has(User.name.ilike(pattern, escape=LIKE_ESCAPE)),
            )
        )
    return conditions


class ReviewService:
    def __init__(
        self,
        db: AsyncSession = Depends(get_session),
        rating: RatingService = Depends(RatingService),
    ):
        self.db = db
        self.rating = rating

    async def _get_review(self, review_id: uuid.UUID, refresh: bool = False) -> Review | None:
        stmt = review_query().where(Review.id == review_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        return await self.db.scalar(stmt)

    async def _require_review(self, review_id: uuid.UUID) -> Review:
        review = await self._get_review(review_id)
        if not review:
            raise api_error(404, "Review not found")
        return review

    # ==============================
    # 📖 READ
    # ==============================

    async def get_reviews_async(
        self, filters: ReviewFilters, identity: CurrentIdentity | None = None
    ) -> dict[str, Any]:
        try:
            conditions = build_review_conditions(filters, identity)

            total = await self.db.scalar(
                select(func.count(Review.id)).where(*conditions)
            ) or 0

            sort_column = SORT_COLUMNS.get(filters.sort_by, Review.created_at)
            sort_func = asc if filters.sort_order == "asc" else desc
            reviews = (
                await self.db.scalars(
                    review_query()
                    .where(*conditions)
                    .order_by(sort_func(sort_column))
                    .offset((filters.page - 1) * filters.limit)
                    .limit(filters.limit)
                )
            ).all()

            distribution = (
                await self.db.execute(
                    select(Review.rating, func.count(Review.id))
                    .where(*conditions)
                    .group_by(Review.rating)
                    .order_by(Review.rating.desc())
                )
            ).all()

            average = await self.db.scalar(
                select(func.avg(Review.rating)).where(
                    *conditions, Review.approved.is_(True)
                )
            )

            return {
                "success": True,
                "message": "Reviews fetched successfully",
                "reviews": [ReviewOut.serialize(r) for r in reviews],
                "pagination": Pagination.build(
                    filters.page, filters.limit, total
                ).model_dump(by_alias=True),
                "statistics": {
                    "ratingDistribution": [
                        {"rating": rating, "count": count}
                        for rating, count in distribution
                    ],
                    "averageRating": round_half_up(average) if average else 0,
                    "totalReviews": total,
                },
            }
        except HTTPException:
            raise
        except Exception as e:
            logger.exception(f"🔥 Get reviews error: {e}")
            raise HTTPException(500, "Error fetching reviews")

    async def get_review_async(
        self, review_id: uuid.UUID, identity: CurrentIdentity
    ) -> dict[str, Any]:
        try:
            review = await self._require_review(review_id)
            if identity.is_institute and not identity.owns_institute(review.institute_id):
                raise api_error(403, "Access denied to this review")
            return {
                "success": True,
                "message": "Review fetched successfully",
                "review": ReviewOut.serialize(review),
            }
        except HTTPException:
            raise
        except Exception as e:
            logger.exception(f"🔥 Get review {review_id} error: {e}")
            raise HTTPException(500, "Error fetching review")

    async def get_review_stats_async(
        self, identity: CurrentIdentity | None = None
    ) -> dict[str, Any]:
        try:
            conditions: list[Any] = []
            if identity and identity.is_institute and identity.institute_id:
                conditions.append(Review.institute_id == identity.institute_id)

            row = (
                await self.db.execute(
                    select(
                        func.count(Review.id).label("total"),
                        func.avg(Review.rating).label("average"),
                        func.sum(case((Review.approved.is_(True), 1), else_=0)).label("approved"),
                        func.sum(
                            case(
                                (
                                    Review.approved.is_(False) & Review.flagged.is_(False),
                                    1,
                                ),
                                else_=0,
                            )
                        ).label("pending"),
                        func.sum(case((Review.flagged.is_(True), 1), else_=0)).label("flagged"),
                    ).where(*conditions)
                )
            ).one()

            distribution = (
                await self.db.execute(
                    select(Review.rating, func.count(Review.id))
                    .where(*conditions)
                    .group_by(Review.rating)
                    .order_by(Review.rating.desc())
                )
            ).all()

            return {
                "success": True,
                "message": "Review statistics fetched successfully",
                "stats": {
                    "totalReviews": int(row.total or 0),
                    "averageRating": round_half_up(row.average) if row.average else 0,
                    "approvedReviews": int(row.approved or 0),
                    "pendingReviews": int(row.pending or 0),
                    "flaggedReviews": int(row.flagged or 0),
                    "ratingDistribution": [
                        {"rating": rating, "count": count}
                        for rating, count in distribution
                    ],
                },
            }
        except Exception as e:
            logger.exception(f"🔥 Get review stats error: {e}")
            raise HTTPException(500, "Error fetching review statistics")

    # ==============================
    # ✍️ WRITE
    # ==============================

    async def create_review_async(
        self, schema: ReviewCreate, identity: CurrentIdentity
    ) -> dict[str, Any]:
        try:
            if identity.account != AccountType.USER.value:
                raise api_error(
                    403, "Only user accounts can submit reviews", "USER_ACCOUNT_REQUIRED"
                )

            existing = await self.db.scalar(
                select(Review.id).where(
                    Review.user_id == identity.id,
                    Review.institute_id == schema.institute,
                )
            )
            if existing:
                raise api_error(400, "You have already reviewed this institute")

            institute = await self.db.get(Institute, schema.institute)
            if not institute:
                raise api_error(404, "Institute not found")

            # admins are auto-approved, everyone else waits for moderation
            auto_approved = identity.is_admin
            review = Review(
                user_id=identity.id,
                institute_id=schema.institute,
                rating=schema.rating,
                title=schema.title,
                comment=schema.comment,
                approved=auto_approved,
            )
            if auto_approved:
                review.approved_by = identity.id
                review.approved_at = get_now()
            self.db.add(review)
            await self.db.commit()
            logger.info(
                f"📝 Review {review.id} created by {identity.email} (approved={auto_approved})"
            )

            if auto_approved:
                await self.rating.update_institute_rating(schema.institute)

            review = await self._get_review(review.id, refresh=True)
            return {
                "success": True,
                "message": (
                    "Review submitted successfully"
                    if auto_approved
                    else "Review submitted and pending approval"
                ),
                "review": ReviewOut.serialize(review),
                "requiresApproval": not auto_approved,
            }
        except HTTPException:
            raise
        except IntegrityError:
            await self.db.rollback()
            raise api_error(400, "You have already reviewed this institute")
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"🔥 Create review error: {e}")
            raise HTTPException(500, "Error submitting review")

    async def update_review_async(
        self, review_id: uuid.UUID, schema: ReviewUpdate, identity: CurrentIdentity
    ) -> dict[str, Any]:
        try:
            review = await self._require_review(review_id)
            if str(review.user_id) != str(identity.id) and not identity.is_admin:
                raise api_error(403, "Access denied to update this review")

            was_approved = review.approved
            if schema.rating is not None:
                review.rating = schema.rating
            if schema.title is not None:
                review.title = schema.title
            if schema.comment is not None:
                review.comment = schema.comment
                # edited text has to be moderated again
                if not identity.is_admin:
                    review.approved = False
            review.updated_at = get_now()
            await self.db.commit()

            if schema.rating is not None or (was_approved and not review.approved):
                await self.rating.update_institute_rating(review.institute_id)

            review = await self._get_review(review_id, refresh=True)
            return {
                "success": True,
                "message": "Review updated successfully",
                "review": ReviewOut.serialize(review),
                "requiresApproval": not identity.is_admin and schema.comment is not None,
            }
        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"🔥 Update review {review_id} error: {e}")
            raise HTTPException(500, "Error updating review")

    async def flag_review_async(
        self, review_id: uuid.UUID, schema: ReviewFlag, identity: CurrentIdentity
    ) -> dict[str, Any]:
        try:
            review = await self._require_review(review_id)
            if identity.is_institute and not identity.owns_institute(review.institute_id):
                raise api_error(403, "Access denied to flag this review")

            if schema.flag:
                review.flagged = True
                review.flag_reason = schema.reason
                review.flagged_at = get_now()
                review.flagged_by = identity.id
                review.approved = False
            else:
                review.flagged = False
                review.flag_reason = None
                review.flagged_at = None
                review.flagged_by = None
            await self.db.commit()

            await self.rating.update_institute_rating(review.institute_id)

            review = await self._get_review(review_id, refresh=True)
            return {
                "success": True,
                "message": (
                    "Review flagged successfully"
                    if schema.flag
                    else "Review unflagged successfully"
                ),
                "review": ReviewOut.serialize(review),
            }
        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"🔥 Flag review {review_id} error: {e}")
            raise HTTPException(500, "Error updating review flag status")

    async def approve_review_async(
        self, review_id: uuid.UUID, identity: CurrentIdentity
    ) -> dict[str, Any]:
        try:
            review = await self._require_review(review_id)
            if not identity.is_admin:
                raise api_error(403, "Only administrators can approve reviews")

            review.approved = True
            review.flagged = False
            review.flag_reason = None
            review.approved_at = get_now()
            review.approved_by = identity.id
            await self.db.commit()

            await self.rating.update_institute_rating(review.institute_id)

            review = await self._get_review(review_id, refresh=True)
            return {
                "success": True,
                "message": "Review approved successfully",
                "review": ReviewOut.serialize(review),
            }
        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"🔥 Approve review {review_id} error: {e}")
            raise HTTPException(500, "Error approving review")

    async def delete_review_async(
        self, review_id: uuid.UUID, identity: CurrentIdentity
    ) -> dict[str, Any]:
        try:
            review = await self._require_review(review_id)

            is_owner = str(review.user_id) == str(identity.id)
            is_institute_owner = identity.is_institute and identity.owns_institute(
                review.institute_id
            )
            if not (is_owner or is_institute_owner or identity.is_admin):
                raise api_error(403, "Access denied to delete this review")

            institute_id = review.institute_id
            await self.db.delete(review)
            await self.db.commit()
            logger.info(f"🗑️ Review {review_id} deleted by {identity.email}")

            await self.rating.update_institute_rating(institute_id)
            return {"success": True, "message": "Review deleted successfully"}
        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"🔥 Delete review {review_id} error: {e}")
            raise HTTPException(500, "Error deleting review")
