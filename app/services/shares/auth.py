from __future__ import annotations

from typing import Any

from fastapi import BackgroundTasks, Depends, HTTPException, Response, status
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import ACCESS_TOKEN_COOKIE, CurrentIdentity
from app.core.enum import AccountStatus, AccountType, Role
from app.core.exceptions import api_error
from app.core.security import SecurityService
from app.core.settings import settings
from app.db.models.database import Admin, Institute, User
from app.db.session import get_session
from app.libs.formats.datetime import now as get_now
from app.libs.formats.text import normalize_email
from app.schemas.auth.user import (
    AdminOut,
    ChangePassword,
    LoginUser,
    ProfileUpdate,
    UserCreate,
    UserOut,
)
from app.schemas.shares.institute import InstituteOut
from app.services.shares.mailer import MailerService

ACCOUNT_MODELS = {
    AccountType.USER.value: User,
    AccountType.INSTITUTE.value: Institute,
    AccountType.ADMIN.value: Admin,
}

USER_PROFILE_FIELDS = ("name", "phone", "avatar", "bio", "address")
INSTITUTE_PROFILE_FIELDS = (
    "name",
    "description",
    "website",
    "contact",
    "address",
    "facilities",
    "established_year",
)


def serialize_account(account: str, entity: Any) -> dict[str, Any]:
    if account == AccountType.INSTITUTE.value:
        return InstituteOut.serialize(entity)
    if account == AccountType.ADMIN.value:
        return AdminOut.serialize(entity)
    return UserOut.serialize(entity)


class AuthService:
    def __init__(
        self,
        db: AsyncSession = Depends(get_session),
        security: SecurityService = Depends(SecurityService),
        mail_service: MailerService = Depends(MailerService),
    ):
        self.db = db
        self.security = security
        self.mail_service = mail_service

    @staticmethod
    def _set_token_cookie(res: Response, token: str) -> None:
        res.set_cookie(
            key=ACCESS_TOKEN_COOKIE,
            value=token,
            httponly=True,
            secure=False,  # Dev = False, Prod = True
            samesite="lax",
            max_age=int(settings.ACCESS_TOKEN_EXPIRE_MINUTES) * 60,
            path="/",
        )

    async def _issue_token(self, res: Response, identity: CurrentIdentity) -> str:
        token = await self.security.create_access_token(
            str(identity.id), account=identity.account
        )
        self._set_token_cookie(res, token)
        return token

    async def _load_account(self, identity: CurrentIdentity):
        model = ACCOUNT_MODELS.get(identity.account, User)
        entity = await self.db.get(model, identity.id)
        if not entity:
            raise api_error(404, "Account not found", "USER_NOT_FOUND")
        return entity

    # ==============================
    # 🔑 REGISTER / LOGIN
    # ==============================

    async def register_async(
        self, schema: UserCreate, res: Response, background_tasks: BackgroundTasks
    ) -> dict[str, Any]:
        try:
            email = normalize_email(schema.email)
            model = Institute if schema.user_type == "institute" else User

            # 1️⃣ EMAIL ALREADY TAKEN
            existing_id = await self.db.scalar(select(model.id).where(model.email == email))
            if existing_id:
                raise api_error(
                    status.HTTP_409_CONFLICT, "Email already registered", "EMAIL_EXISTS"
                )

            # 2️⃣ CREATE ACCOUNT
            password_hash = await self.security.hash_password(schema.password)
            if schema.user_type == "institute":
                entity = Institute(
                    name=schema.name.strip(),
                    email=email,
                    password=password_hash,
                    category=schema.category.value,
                    description=schema.description or "",
                    website=schema.website,
                    contact={"email": email, "phone": schema.phone},
                    address={"city": schema.city, "state": schema.state},
                )
            else:
                entity = User(
                    name=schema.name.strip(),
                    email=email,
                    password=password_hash,
                    phone=schema.phone,
                    role=Role.USER.value,
                )
            self.db.add(entity)
            await self.db.commit()

            identity = (
                CurrentIdentity.from_institute(entity)
                if schema.user_type == "institute"
                else CurrentIdentity.from_user(entity)
            )
            logger.info(f"🆕 Registered {identity.account} account {identity.email}")

            # 3️⃣ TOKEN + COOKIE + WELCOME MAIL
            token = await self._issue_token(res, identity)
            background_tasks.add_task(
                self.mail_service.send_welcome_email,
                identity.email,
                identity.name,
                identity.account,
            )
            return {
                "success": True,
                "message": "Registration successful",
                "token": token,
                "user": identity.to_dict(),
            }
        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"🔥 Register error: {e}")
            raise HTTPException(500, "Error during registration")

    async def login_async(self, schema: LoginUser, res: Response) -> dict[str, Any]:
        try:
            model = ACCOUNT_MODELS[schema.user_type]
            entity = await self.db.scalar(
                select(model).where(model.email == normalize_email(schema.email))
            )

            # 1️⃣ UNKNOWN EMAIL OR WRONG PASSWORD
            if not entity or not await self.security.verify_password(
                schema.password, entity.password or ""
            ):
                logger.warning(f"⚠️ Failed {schema.user_type} login for {schema.email}")
                raise api_error(401, "Invalid email or password", "INVALID_CREDENTIALS")

            if schema.user_type == AccountType.INSTITUTE.value:
                identity = CurrentIdentity.from_institute(entity)
            elif schema.user_type == AccountType.ADMIN.value:
                identity = CurrentIdentity.from_admin(entity)
            else:
                identity = CurrentIdentity.from_user(entity)

            # 2️⃣ DEACTIVATED ACCOUNT
            if identity.status and identity.status != AccountStatus.ACTIVE.value:
                raise api_error(
                    401,
                    "Your account has been deactivated. Please contact support.",
                    "ACCOUNT_DEACTIVATED",
                )

            entity.last_login = get_now()
            await self.db.commit()

            # 3️⃣ TOKEN + COOKIE
            token = await self._issue_token(res, identity)
            logger.info(f"✅ {identity.account} {identity.email} logged in")
            return {
                "success": True,
                "message": "Login successful",
                "token": token,
                "user": identity.to_dict(),
            }
        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"🔥 Login error: {e}")
            raise HTTPException(500, "Error during login")

    async def logout_async(self, res: Response) -> dict[str, Any]:
        res.delete_cookie(
            key=ACCESS_TOKEN_COOKIE,
            httponly=True,
            secure=False,
            samesite="lax",
            path="/",
        )
        return {"success": True, "message": "Logged out successfully"}

    # ==============================
    # 👤 PROFILE
    # ==============================

    async def get_profile_async(self, identity: CurrentIdentity) -> dict[str, Any]:
        entity = await self._load_account(identity)
        return {
            "success": True,
            "message": "Profile fetched successfully",
            "user": serialize_account(identity.account, entity),
        }

    async def update_profile_async(
        self, identity: CurrentIdentity, schema: ProfileUpdate
    ) -> dict[str, Any]:
        try:
            entity = await self._load_account(identity)
            changes = schema.model_dump(exclude_unset=True, exclude_none=True)

            if identity.account == AccountType.INSTITUTE.value:
                allowed = INSTITUTE_PROFILE_FIELDS
                if "phone" in changes:
                    changes["contact"] = {
                        **(entity.contact or {}),
                        **changes.get("contact", {}),
                        "phone": changes["phone"],
                    }
            elif identity.account == AccountType.ADMIN.value:
                allowed = ("name",)
            else:
                allowed = USER_PROFILE_FIELDS
                if "preferences" in changes:
                    # partial preference updates keep the other toggles
                    entity.preferences = {**(entity.preferences or {}), **changes["preferences"]}

            for field in allowed:
                if field in changes:
                    setattr(entity, field, changes[field])
            if hasattr(entity, "updated_at"):
                entity.updated_at = get_now()
            await self.db.commit()
            await self.db.refresh(entity)

            return {
                "success": True,
                "message": "Profile updated successfully",
                "user": serialize_account(identity.account, entity),
            }
        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"🔥 Update profile error for {identity.email}: {e}")
            raise HTTPException(500, "Error updating profile")

    async def change_password_async(
        self, identity: CurrentIdentity, schema: ChangePassword
    ) -> dict[str, Any]:
        try:
            entity = await self._load_account(identity)
            if not await self.security.verify_password(
                schema.current_password, entity.password or ""
            ):
                raise api_error(400, "Current password is incorrect", "INVALID_PASSWORD")

            entity.password = await self.security.hash_password(schema.new_password)
            await self.db.commit()
            logger.info(f"🔑 Password changed for {identity.email}")
            return {"success": True, "message": "Password changed successfully"}
        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"🔥 Change password error for {identity.email}: {e}")
            raise HTTPException(500, "Error changing password")
