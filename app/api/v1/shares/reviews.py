import uuid
from typing import Annotated

from fastapi import APIRouter, Body, Depends, Query, status

from app.core.deps import AuthorizationService
from app.schemas.shares.review import ReviewCreate, ReviewFilters, ReviewFlag, ReviewUpdate
from app.services.shares.review import ReviewService

router = APIRouter(prefix="/reviews", tags=["Reviews"])


# ---------------- PUBLIC (optional auth) ----------------
@router.get("")
async def get_reviews(
    filters: Annotated[ReviewFilters, Query()],
    service: ReviewService = Depends(ReviewService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    identity = await authorization.get_current_user_if_any()
    return await service.get_reviews_async(filters, identity)


@router.get("/stats")
async def get_review_stats(
    service: ReviewService = Depends(ReviewService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    identity = await authorization.get_current_user_if_any()
    return await service.get_review_stats_async(identity)


# ---------------- AUTHENTICATED ----------------
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_review(
    schema: ReviewCreate = Body(),
    service: ReviewService = Depends(ReviewService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    identity = await authorization.require_role()
    return await service.create_review_async(schema, identity)


@router.get("/{review_id}")
async def get_review(
    review_id: uuid.UUID,
    service: ReviewService = Depends(ReviewService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    identity = await authorization.require_role()
    return await service.get_review_async(review_id, identity)


@router.put("/{review_id}")
async def update_review(
    review_id: uuid.UUID,
    schema: ReviewUpdate = Body(),
    service: ReviewService = Depends(ReviewService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    identity = await authorization.require_role()
    return await service.update_review_async(review_id, schema, identity)


@router.delete("/{review_id}")
async def delete_review(
    review_id: uuid.UUID,
    service: ReviewService = Depends(ReviewService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    identity = await authorization.require_role()
    return await service.delete_review_async(review_id, identity)


# ---------------- MODERATION ----------------
@router.put("/{review_id}/flag")
async def flag_review(
    review_id: uuid.UUID,
    schema: ReviewFlag = Body(),
    service: ReviewService = Depends(ReviewService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    identity = await authorization.require_role(["institute", "admin"])
    return await service.flag_review_async(review_id, schema, identity)


@router.put("/{review_id}/approve")
async def approve_review(
    review_id: uuid.UUID,
    service: ReviewService = Depends(ReviewService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    identity = await authorization.require_role(["admin"])
    return await service.approve_review_async(review_id, identity)
