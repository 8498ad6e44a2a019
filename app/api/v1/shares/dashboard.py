import uuid

from fastapi import APIRouter, Depends

from app.core.deps import AuthorizationService
from app.services.shares.dashboard import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("")
async def get_dashboard(
    service: DashboardService = Depends(DashboardService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    identity = await authorization.get_current_user()
    return await service.get_dashboard_async(identity)


@router.get("/stats/institute")
async def get_institute_stats(
    institute: uuid.UUID | None = None,
    service: DashboardService = Depends(DashboardService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    # `institute` is declared for validation; the ownership gate reads it from the query
    identity = await authorization.require_role(["institute", "admin"])
    target = authorization.require_institute_owner_for_request(
        identity, default=identity.institute_id
    )
    return await service.get_institute_stats_async(target)


@router.get("/stats/platform")
async def get_platform_stats(
    service: DashboardService = Depends(DashboardService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(["admin"])
    return await service.get_platform_stats_async()
