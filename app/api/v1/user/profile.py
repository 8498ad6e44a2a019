from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.deps import AuthorizationService
from app.services.user.profile import ProfileService

router = APIRouter(prefix="/users", tags=["User Profile"])


@router.get("/{user_id}", status_code=status.HTTP_200_OK)
async def get_user(
    user_id: UUID,
    profile_service: ProfileService = Depends(ProfileService),
    authorization_service: AuthorizationService = Depends(AuthorizationService),
):
    identity = await authorization_service.get_current_user()
    authorization_service.require_self_or_admin(identity, user_id)
    return await profile_service.get_profile_by_user_id(user_id)


@router.get("/{user_id}/activity", status_code=status.HTTP_200_OK)
async def get_user_activity(
    user_id: UUID,
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
    profile_service: ProfileService = Depends(ProfileService),
    authorization_service: AuthorizationService = Depends(AuthorizationService),
):
    identity = await authorization_service.get_current_user()
    authorization_service.require_self_or_admin(identity, user_id)
    return await profile_service.get_activity_async(user_id, limit)
