from datetime import UTC, datetime
from typing import Any

import jwt

from admin_client.core.constants import Role
from admin_client.core.exceptions import AuthorizationError
from admin_client.schemas.common import CurrentUser


def decode_session_token(token: str) -> dict[str, Any]:
    # The backend owns the signing key; the client only reads the claims.
    return jwt.decode(token, options={"verify_signature": False, "verify_exp": False})


def is_token_expired(payload: dict[str, Any], now: datetime | None = None) -> bool:
    exp = payload.get("exp")
    if exp is None:
        return False
    current = now or datetime.now(UTC)
    return current.timestamp() >= float(exp)


def current_user_from_token(token: str | None) -> CurrentUser | None:
    if not token:
        return None
    try:
        payload = decode_session_token(token)
    except jwt.PyJWTError:
        return None
    if is_token_expired(payload):
        return None
    user_id = payload.get("user_id", payload.get("id", payload.get("pk")))
    return CurrentUser(
        user_id=user_id,
        username=payload.get("username") or payload.get("user") or payload.get("email"),
        email=payload.get("email"),
        role=payload.get("role"),
    )


def is_admin(user: CurrentUser | None) -> bool:
    return user is not None and user.role == Role.ADMIN


def require_admin(user: CurrentUser | None) -> CurrentUser:
    if not is_admin(user):
        raise AuthorizationError()
    return user
