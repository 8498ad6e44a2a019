from datetime import timedelta
from typing import Any, Dict

import bcrypt
import jwt

from app.core.settings import settings
from app.libs.formats.datetime import now_tzinfo


class TokenExpiredError(Exception):
    """Signature is valid but `exp` is in the past."""


class InvalidTokenError(Exception):
    """Token is malformed or its signature does not match."""


class TokenVerificationError(Exception):
    """Any other verification failure (missing claim, immature token, ...)."""


class SecurityService:
    def __init__(self):
        self.secret_key = settings.SECRET_KEY
        self.algorithm = settings.ALGORITHM
        self.access_token_expire_minutes = float(settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False

    # 🔐 JWT
    async def create_access_token(
        self,
        sub: str,
        account: str = "user",
        expires_delta: timedelta | None = None,
    ) -> str:
        issued = now_tzinfo()
        expire = issued + (
            expires_delta
            if expires_delta is not None
            else timedelta(minutes=self.access_token_expire_minutes)
        )
        payload: Dict[str, Any] = {
            "sub": sub,
            "account": account,
            "iat": issued,
            "exp": expire,
        }
        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        return str(token)

    async def decode_access_token(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token expired")
        except (jwt.DecodeError, jwt.InvalidAlgorithmError) as e:
            raise InvalidTokenError(str(e))
        except jwt.PyJWTError as e:
            raise TokenVerificationError(str(e))

    # 🔑 PASSWORD
    @staticmethod
    async def hash_password(plain: str) -> str:
        salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
        return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    async def verify_password(plain: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            return False
