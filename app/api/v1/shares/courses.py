import uuid
from typing import Annotated

from fastapi import APIRouter, Body, Depends, Query, status

from app.core.deps import AuthorizationService
from app.schemas.shares.course import CourseCreate, CourseFilters, CourseUpdate
from app.services.shares.course import CourseService

router = APIRouter(prefix="/courses", tags=["Courses"])


# ---------------- PUBLIC ----------------
@router.get("")
async def get_courses(
    filters: Annotated[CourseFilters, Query()],
    service: CourseService = Depends(CourseService),
):
    return await service.get_courses_async(filters)


@router.get("/institute/{institute_id}")
async def get_courses_by_institute(
    institute_id: uuid.UUID,
    page: Annotated[int, Query(ge=1, le=10_000)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    service: CourseService = Depends(CourseService),
):
    return await service.get_courses_by_institute_async(institute_id, page, limit)


@router.get("/{course_id}")
async def get_course(
    course_id: uuid.UUID,
    service: CourseService = Depends(CourseService),
):
    return await service.get_course_async(course_id)


# ---------------- INSTITUTE / ADMIN ----------------
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_course(
    schema: CourseCreate = Body(),
    service: CourseService = Depends(CourseService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    identity = await authorization.require_role(["institute", "admin"])
    institute_id = authorization.require_institute_owner_for_request(
        identity,
        schema.model_dump(include={"institute"}),
        default=identity.institute_id,
    )
    return await service.create_course_async(schema, institute_id)


@router.put("/{course_id}")
async def update_course(
    course_id: uuid.UUID,
    schema: CourseUpdate = Body(),
    service: CourseService = Depends(CourseService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    identity = await authorization.require_role(["institute", "admin"])
    return await service.update_course_async(course_id, schema, identity)


@router.delete("/{course_id}")
async def delete_course(
    course_id: uuid.UUID,
    service: CourseService = Depends(CourseService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    identity = await authorization.require_role(["institute", "admin"])
    return await service.delete_course_async(course_id, identity)
