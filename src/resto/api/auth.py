from __future__ import annotations

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from resto.application.use_cases.context import Actor
from resto.config import get_settings
from resto.domain.common.ids import UserId
from resto.domain.user.entities import UserRole

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_actor(token: str) -> Actor:
    settings = get_settings()
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise _unauthorized("invalid or expired access token") from exc

    user_id = claims.get("id") or claims.get("_id") or claims.get("sub")
    if not user_id:
        raise _unauthorized("access token carries no user id")
    role = UserRole.ADMIN if claims.get("role") == UserRole.ADMIN.value else UserRole.CUSTOMER
    return Actor(user_id=UserId(str(user_id)), role=role)


def get_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Actor:
    if credentials is None or not credentials.credentials:
        raise _unauthorized("missing bearer token")
    return decode_actor(credentials.credentials)


def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="admin role required")
    return actor
