import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.schemas.shares.institute import InstituteFilters
from app.services.shares.institute import InstituteService

router = APIRouter(prefix="/institutes", tags=["Institutes"])


@router.get("")
async def get_institutes(
    filters: Annotated[InstituteFilters, Query()],
    service: InstituteService = Depends(InstituteService),
):
    return await service.get_institutes_async(filters)


@router.get("/{institute_id}")
async def get_institute(
    institute_id: uuid.UUID,
    service: InstituteService = Depends(InstituteService),
):
    return await service.get_institute_async(institute_id)
