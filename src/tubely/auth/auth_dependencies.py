"""Common authentication dependencies for FastAPI routers."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .auth_service import AuthService, InvalidTokenError, TokenExpiredError

security = HTTPBearer(auto_error=False)


def get_auth_service(request: Request) -> AuthService:
    try:
        return request.app.state.auth_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover
        raise RuntimeError("AuthService is not configured") from exc


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"status": "error", "failure_reason": "unauthorized", "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def require_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    service: AuthService = Depends(get_auth_service),
) -> UUID:
    if credentials is None:
        raise _unauthorized("Couldn't find JWT")

    try:
        return service.validate_token(credentials.credentials)
    except TokenExpiredError as exc:
        raise _unauthorized("Token expired") from exc
    except InvalidTokenError as exc:
        raise _unauthorized("Couldn't validate JWT") from exc


__all__ = ["get_auth_service", "require_user_id"]
