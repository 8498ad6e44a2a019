import uuid

from fastapi import APIRouter, Body, Depends

from app.core.deps import AuthorizationService
from app.schemas.admin.institute import InstituteApproval
from app.services.admin.institute import AdminInstituteService

router = APIRouter(prefix="/admin", tags=["ADMIN INSTITUTES"])


@router.get("/institutes/pending")
async def get_pending_institutes(
    service: AdminInstituteService = Depends(AdminInstituteService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(["admin"])
    return await service.get_pending_institutes_async()


@router.put("/institutes/{institute_id}/approval")
async def update_approval_status(
    institute_id: uuid.UUID,
    schema: InstituteApproval = Body(),
    service: AdminInstituteService = Depends(AdminInstituteService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    identity = await authorization.require_role(["admin"])
    return await service.update_approval_status_async(institute_id, schema, identity)
