import uuid
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Query, status

from app.core.deps import AuthorizationService
from app.schemas.shares.enquiry import (
    EnquiryCreate,
    EnquiryFilters,
    EnquiryReply,
    EnquiryStatusUpdate,
)
from app.services.shares.enquiry import EnquiryService

router = APIRouter(prefix="/enquiries", tags=["Enquiries"])

MANAGER_ROLES = ["institute", "admin"]


# ---------------- PUBLIC (optional auth) ----------------
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_enquiry(
    schema: EnquiryCreate = Body(),
    service: EnquiryService = Depends(EnquiryService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    identity = await authorization.get_current_user_if_any()
    return await service.create_enquiry_async(schema, identity)


# ---------------- INSTITUTE / ADMIN ----------------
@router.get("")
async def get_enquiries(
    filters: Annotated[EnquiryFilters, Query()],
    service: EnquiryService = Depends(EnquiryService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    identity = await authorization.require_role(MANAGER_ROLES)
    return await service.get_enquiries_async(filters, identity)


@router.get("/stats")
async def get_enquiry_stats(
    service: EnquiryService = Depends(EnquiryService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    identity = await authorization.require_role(MANAGER_ROLES)
    return await service.get_enquiry_stats_async(identity)


@router.get("/{enquiry_id}")
async def get_enquiry(
    enquiry_id: uuid.UUID,
    service: EnquiryService = Depends(EnquiryService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    identity = await authorization.require_role(MANAGER_ROLES)
    return await service.get_enquiry_async(enquiry_id, identity)


@router.put("/{enquiry_id}/reply")
async def reply_enquiry(
    enquiry_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    schema: EnquiryReply = Body(),
    service: EnquiryService = Depends(EnquiryService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    identity = await authorization.require_role(MANAGER_ROLES)
    return await service.reply_enquiry_async(enquiry_id, schema, identity, background_tasks)


@router.put("/{enquiry_id}/status")
async def update_enquiry_status(
    enquiry_id: uuid.UUID,
    schema: EnquiryStatusUpdate = Body(),
    service: EnquiryService = Depends(EnquiryService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    identity = await authorization.require_role(MANAGER_ROLES)
    return await service.update_status_async(enquiry_id, schema, identity)


@router.delete("/{enquiry_id}")
async def delete_enquiry(
    enquiry_id: uuid.UUID,
    service: EnquiryService = Depends(EnquiryService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    identity = await authorization.require_role(MANAGER_ROLES)
    return await service.delete_enquiry_async(enquiry_id, identity)
