from fastapi import APIRouter, BackgroundTasks, Body, Depends, Response, status

from app.core.deps import AuthorizationService
from app.schemas.auth.user import ChangePassword, LoginUser, ProfileUpdate, UserCreate
from app.services.shares.auth import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


def get_auth_service(auth: AuthService = Depends(AuthService)) -> AuthService:
    return auth


def get_authorization_service(
    authorization_service: AuthorizationService = Depends(AuthorizationService),
) -> AuthorizationService:
    return authorization_service


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    res: Response,
    background_tasks: BackgroundTasks,
    schema: UserCreate = Body(),
    auth_service: AuthService = Depends(get_auth_service),
):
    return await auth_service.register_async(schema, res, background_tasks)


@router.post("/login", status_code=status.HTTP_200_OK)
async def login(
    res: Response,
    schema: LoginUser = Body(),
    auth_service: AuthService = Depends(get_auth_service),
):
    return await auth_service.login_async(schema, res)


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(
    res: Response,
    auth_service: AuthService = Depends(get_auth_service),
):
    return await auth_service.logout_async(res)


@router.get("/profile")
async def get_profile(
    auth_service: AuthService = Depends(get_auth_service),
    authorization: AuthorizationService = Depends(get_authorization_service),
):
    identity = await authorization.get_current_user()
    return await auth_service.get_profile_async(identity)


@router.put("/profile")
async def update_profile(
    schema: ProfileUpdate = Body(),
    auth_service: AuthService = Depends(get_auth_service),
    authorization: AuthorizationService = Depends(get_authorization_service),
):
    identity = await authorization.get_current_user()
    return await auth_service.update_profile_async(identity, schema)


@router.put("/change-password")
async def change_password(
    schema: ChangePassword = Body(),
    auth_service: AuthService = Depends(get_auth_service),
    authorization: AuthorizationService = Depends(get_authorization_service),
):
    identity = await authorization.get_current_user()
    return await auth_service.change_password_async(identity, schema)
