"""Bearer token verification and role checks.

Tokens are HS256 JWTs signed with the shared secret from settings. The
subject is read from ``sub`` and the role from ``role``. When an issuer is
configured the ``iss`` claim must be present and match it. Each check is a
pure function of the credential and the required roles.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Collection

import jwt

from .config import settings
from .errors import Forbidden, Unauthenticated
from .models.domain import Principal

logger = logging.getLogger(__name__)

DRIVER_ROLE = "driver"


def extract_bearer(authorization: str | None) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        raise Unauthenticated("Missing bearer credential")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthenticated("Missing bearer credential")
    return token.strip()


def verify_token(
    token: str | None,
    *,
    secret: str | None = None,
    algorithm: str | None = None,
    issuer: str | None = None,
) -> Principal:
    if not token:
        raise Unauthenticated("Missing bearer credential")
    issuer = issuer or settings.jwt_issuer
    required = ["sub", "exp", "iss"] if issuer else ["sub", "exp"]
    try:
        payload = jwt.decode(
            token,
            secret or settings.jwt_secret,
            algorithms=[algorithm or settings.jwt_algorithm],
            issuer=issuer,
            options={"require": required},
        )
    except jwt.ExpiredSignatureError as exc:
        raise Unauthenticated("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise Unauthenticated(f"Invalid token: {exc}") from exc

    role = payload.get("role")
    if not isinstance(role, str) or not role:
        raise Unauthenticated("Token carries no role claim")
    return Principal(subject=str(payload["sub"]), role=role, claims=payload)


def authorize(principal: Principal, required_roles: Collection[str] | None) -> Principal:
    if required_roles and principal.role not in required_roles:
        logger.info(f"Role '{principal.role}' of {principal.subject} not in {sorted(required_roles)}")
        raise Forbidden(f"Role '{principal.role}' is not allowed here")
    return principal


def authenticate(
    authorization: str | None,
    required_roles: Collection[str] | None = None,
    *,
    secret: str | None = None,
) -> Principal:
    """Run presence, validity and role checks in order."""
    token = extract_bearer(authorization)
    principal = verify_token(token, secret=secret)
    return authorize(principal, required_roles)


def create_access_token(
    subject: str,
    role: str,
    *,
    expires_delta: timedelta | None = None,
    secret: str | None = None,
) -> str:
    """Mint a token; tokens are normally issued by the identity service."""
    now = datetime.now(tz=timezone.utc)
    expires = now + (expires_delta or timedelta(seconds=settings.jwt_expiry_seconds))
    payload = {
        "sub": subject,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(expires.timestamp()),
        "jti": str(uuid.uuid4()),
    }
    if settings.jwt_issuer:
        payload["iss"] = settings.jwt_issuer
    return jwt.encode(payload, secret or settings.jwt_secret, algorithm=settings.jwt_algorithm)
