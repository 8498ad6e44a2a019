# app/core/deps.py
import uuid
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from fastapi import Depends, Request
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.context import get_request
from app.core.enum import AccountStatus, AccountType, Role
from app.core.exceptions import api_error
from app.core.security import (
    InvalidTokenError,
    SecurityService,
    TokenExpiredError,
    TokenVerificationError,
)
from app.db.models.database import Admin, Institute, User
from app.db.session import get_session

ACCESS_TOKEN_COOKIE = "access_token"


@dataclass
class CurrentIdentity:
    """The authenticated caller of one request. Never carries the password hash."""

    id: uuid.UUID
    email: str
    name: str
    role: str
    account: str = AccountType.USER.value
    institute_id: Optional[uuid.UUID] = None
    status: Optional[str] = None
    admin_role: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    @property
    def is_institute(self) -> bool:
        return self.role == Role.INSTITUTE.value

    def owns_institute(self, institute_id: Any) -> bool:
        return self.institute_id is not None and str(self.institute_id) == str(institute_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "account": self.account,
            "institute": str(self.institute_id) if self.institute_id else None,
            "status": self.status,
            "adminRole": self.admin_role,
        }

    @classmethod
    def from_user(cls, user: User) -> "CurrentIdentity":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            account=AccountType.USER.value,
            institute_id=user.institute_id,
            status=user.status,
        )

    @classmethod
    def from_institute(cls, institute: Institute) -> "CurrentIdentity":
        return cls(
            id=institute.id,
            email=institute.email,
            name=institute.name,
            role=Role.INSTITUTE.value,
            account=AccountType.INSTITUTE.value,
            institute_id=institute.id,
            status=(
                AccountStatus.ACTIVE.value
                if institute.is_active
                else AccountStatus.INACTIVE.value
            ),
        )

    @classmethod
    def from_admin(cls, admin: Admin) -> "CurrentIdentity":
        return cls(
            id=admin.id,
            email=admin.email,
            name=admin.name,
            role=Role.ADMIN.value,
            account=AccountType.ADMIN.value,
            admin_role=admin.role,
        )


def extract_token(request: Request) -> str | None:
    """Bearer header first, then the access_token cookie."""
    authorization = request.headers.get("authorization")
    if authorization and authorization.startswith("Bearer"):
        parts = authorization.split(" ", 1)
        token = parts[1].strip() if len(parts) == 2 else ""
        return token or None
    return request.cookies.get(ACCESS_TOKEN_COOKIE) or None


def resolve_institute_id(
    path_params: Mapping[str, Any] | None = None,
    body: Mapping[str, Any] | None = None,
    query: Mapping[str, Any] | None = None,
) -> str | None:
    """Target institute of a request: path param, then body, then query (first present wins)."""
    candidates = (
        (path_params or {}).get("institute_id") or (path_params or {}).get("instituteId"),
        (body or {}).get("institute"),
        (query or {}).get("institute"),
    )
    for candidate in candidates:
        if candidate:
            return str(candidate)
    return None


class AuthorizationService:
    def __init__(
        self,
        db: AsyncSession = Depends(get_session),
        security: SecurityService = Depends(SecurityService),
    ):
        self.db = db
        self.security = security

    # ==============================
    # 🧩 CORE AUTH CHECKS
    # ==============================

    async def _load_identity(self, payload: dict[str, Any]) -> CurrentIdentity | None:
        try:
            identity_id = uuid.UUID(str(payload.get("sub")))
        except ValueError:
            return None

        account = payload.get("account") or AccountType.USER.value
        if account == AccountType.INSTITUTE.value:
            institute = await self.db.get(Institute, identity_id)
            return CurrentIdentity.from_institute(institute) if institute else None
        if account == AccountType.ADMIN.value:
            admin = await self.db.get(Admin, identity_id)
            return CurrentIdentity.from_admin(admin) if admin else None
        user = await self.db.get(User, identity_id)
        return CurrentIdentity.from_user(user) if user else None

    async def get_current_user(self) -> CurrentIdentity:
        """Verify the request token and load its identity, or raise 401/500."""
        request = get_request()
        token = extract_token(request)
        if not token:
            raise api_error(
                401,
                "Access denied. No authentication token provided.",
                "NO_TOKEN",
            )

        try:
            payload = await self.security.decode_access_token(token)
        except TokenExpiredError:
            raise api_error(
                401,
                "Authentication token has expired. Please login again.",
                "TOKEN_EXPIRED",
            )
        except InvalidTokenError:
            raise api_error(401, "Invalid authentication token.", "INVALID_TOKEN")
        except TokenVerificationError:
            raise api_error(401, "Authentication failed.", "AUTH_FAILED")

        try:
            identity = await self._load_identity(payload)
        except Exception as e:
            logger.exception(f"🔥 Authentication lookup error: {e}")
            raise api_error(500, "Authentication server error.", "SERVER_ERROR")

        if not identity:
            raise api_error(401, "User no longer exists.", "USER_NOT_FOUND")
        if identity.status and identity.status != AccountStatus.ACTIVE.value:
            raise api_error(
                401,
                "Your account has been deactivated. Please contact support.",
                "ACCOUNT_DEACTIVATED",
            )

        request.state.identity = identity
        logger.info(f"🔐 Authenticated {identity.email} ({identity.role})")
        return identity

    async def get_current_user_if_any(self) -> Optional[CurrentIdentity]:
        """Same checks as get_current_user, but any failure means "anonymous"."""
        request = get_request()
        token = extract_token(request)
        if not token:
            return None
        try:
            payload = await self.security.decode_access_token(token)
            identity = await self._load_identity(payload)
        except Exception:
            logger.debug("🔐 Optional auth: invalid token, continuing without user")
            return None

        if not identity or (
            identity.status and identity.status != AccountStatus.ACTIVE.value
        ):
            return None
        request.state.identity = identity
        return identity

    # ==============================
    # 🧩 ROLE-BASED ACCESS CONTROL
    # ==============================

    @staticmethod
    def authorize(
        identity: Optional[CurrentIdentity], roles: Iterable[str]
    ) -> CurrentIdentity:
        allowed = [str(r) for r in roles]
        if identity is None:
            raise api_error(401, "Authentication required.", "AUTH_REQUIRED")
        if identity.role not in allowed:
            raise api_error(
                403,
                f"Access denied. {identity.role} role is not authorized to access this resource.",
                "ROLE_FORBIDDEN",
                requiredRoles=allowed,
                userRole=identity.role,
            )
        return identity

    async def require_role(self, required_roles: Optional[list[str]] = None) -> CurrentIdentity:
        current = await self.get_current_user()
        if not required_roles:
            return current
        self.authorize(current, required_roles)
        logger.info(f"✅ Authorized {current.role} access for {current.email}")
        return current

    @staticmethod
    def require_institute_owner(
        identity: Optional[CurrentIdentity],
        institute_id: Any,
        method: str,
        path: str,
    ) -> CurrentIdentity:
        if identity is None:
            raise api_error(401, "Authentication required.", "AUTH_REQUIRED")
        if not institute_id:
            raise api_error(
                400,
                "Institute ID is required for this operation.",
                "INSTITUTE_ID_REQUIRED",
            )

        if identity.is_admin:
            return identity

        if identity.is_institute:
            if identity.owns_institute(institute_id):
                return identity
            raise api_error(
                403,
                "Access denied. You can only manage your own institute.",
                "INSTITUTE_OWNER_REQUIRED",
            )

        if identity.role == Role.USER.value:
            if method.upper() == "POST" and ("/reviews" in path or "/enquiries" in path):
                return identity
            raise api_error(
                403,
                "Access denied. Institute management requires institute or admin role.",
                "INSTITUTE_ACCESS_DENIED",
            )

        raise api_error(403, "Access denied.", "ACCESS_DENIED")

    def require_institute_owner_for_request(
        self,
        identity: Optional[CurrentIdentity],
        body: Mapping[str, Any] | None = None,
        default: Any = None,
    ) -> uuid.UUID:
        """Ownership gate with the target institute taken from the current request.

        The target is the path param, then ``body["institute"]``, then the
        ``institute`` query param, then ``default``. Returns the target id.
        """
        request = get_request()
        institute_id = (
            resolve_institute_id(request.path_params, body, request.query_params)
            or default
        )
        self.require_institute_owner(
            identity, institute_id, request.method, request.url.path
        )
        try:
            return uuid.UUID(str(institute_id))
        except ValueError:
            raise api_error(400, "Invalid institute")

    @staticmethod
    def require_self_or_admin(
        identity: Optional[CurrentIdentity], resource_id: Any
    ) -> CurrentIdentity:
        if identity is None:
            raise api_error(401, "Authentication required.", "AUTH_REQUIRED")
        if identity.is_admin:
            return identity
        if resource_id is not None and str(identity.id) == str(resource_id):
            return identity
        raise api_error(
            403,
            "Access denied. You can only access your own resources.",
            "SELF_ACCESS_ONLY",
        )
