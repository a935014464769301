"""Bearer-token authentication.

Tokens are HS256 JWTs issued by the storefront's identity provider. Claims:
``sub`` (user id), ``email`` and ``role`` (``customer`` or ``admin``).
"""

import os
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from storefront.api.shared.helpers.errors import APIError
from storefront.db.models import UserRole
from storefront.domain.error_codes import ErrorCode
from storefront.logging_config import get_logger, set_context

logger = get_logger(__name__)

AUTH_JWT_SECRET = os.getenv("AUTH_JWT_SECRET", "")
AUTH_JWT_ALGORITHM = os.getenv("AUTH_JWT_ALGORITHM", "HS256")

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthenticatedUser:
    """Identity extracted from a verified token."""

    user_id: str
    email: Optional[str] = None
    role: str = UserRole.CUSTOMER.value

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


def decode_token(token: str) -> AuthenticatedUser:
    """Verify a bearer token and return its identity.

    Raises:
        APIError: 401 if the token is invalid, expired or auth is unconfigured
    """
    if not AUTH_JWT_SECRET:
        logger.error("AUTH_JWT_SECRET not configured; rejecting token")
        raise APIError(ErrorCode.AUTH_INVALID_TOKEN)

    try:
        claims = jwt.decode(
            token,
            AUTH_JWT_SECRET,
            algorithms=[AUTH_JWT_ALGORITHM],
            options={"require": ["sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise APIError(ErrorCode.AUTH_INVALID_TOKEN, detail="Authentication token has expired.")
    except jwt.InvalidTokenError as e:
        logger.info(f"Rejected bearer token: {e}")
        raise APIError(ErrorCode.AUTH_INVALID_TOKEN)

    return AuthenticatedUser(
        user_id=str(claims["sub"]),
        email=claims.get("email"),
        role=claims.get("role", UserRole.CUSTOMER.value),
    )


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[AuthenticatedUser]:
    """Identity if a bearer token was sent, None for anonymous callers."""
    if credentials is None:
        return None
    user = decode_token(credentials.credentials)
    set_context(user_id=user.user_id)
    return user


async def get_current_user(
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> AuthenticatedUser:
    """Require an authenticated caller (401 otherwise)."""
    if user is None:
        raise APIError(ErrorCode.AUTH_MISSING_TOKEN)
    return user


async def require_admin(
    user: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    """Require an admin caller (401 without a token, 403 for non-admins)."""
    if not user.is_admin:
        logger.warning("Non-admin attempted admin route", extra={"user_id": user.user_id})
        raise APIError(ErrorCode.AUTH_ADMIN_REQUIRED)
    return user
