"""Authentication dependencies for FastAPI routes."""

import logging

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from storefront_auth.config import get_settings
from storefront_auth.database import get_db
from storefront_auth.errors import AuthError, UnauthorizedError
from storefront_auth.models.account import Account
from storefront_auth.services.auth import AuthService

logger = logging.getLogger("storefront_auth")


def get_auth_service(request: Request) -> AuthService:
    """The AuthService built at startup."""
    return request.app.state.auth_service


def extract_token(request: Request) -> str | None:
    """Bearer header first, then the session cookie."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]
    return request.cookies.get(get_settings().AUTH_COOKIE_NAME)


def get_current_account(
    request: Request,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> Account:
    """Resolve the account for the request. Raises 401 if not authenticated."""
    token = extract_token(request)
    if not token:
        raise UnauthorizedError("Authentication required")

    try:
        return auth_service.resolve_session(db, token)
    except AuthError as e:
        logger.debug("Session rejected (%s): %s", type(e).__name__, e.message)
        raise


def get_optional_account(
    request: Request,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> Account | None:
    """Like get_current_account, but returns None instead of raising."""
    token = extract_token(request)
    if not token:
        return None
    try:
        return auth_service.resolve_session(db, token)
    except AuthError:
        return None


def set_auth_cookie(response: Response, token: str) -> None:
    """Set the session cookie."""
    settings = get_settings()
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.COOKIE_SECURE,
        max_age=settings.JWT_EXPIRE_MINUTES * 60,
        path="/",
    )


def clear_auth_cookie(response: Response) -> None:
    """Clear the session cookie."""
    settings = get_settings()
    response.delete_cookie(
        key=settings.AUTH_COOKIE_NAME,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.COOKIE_SECURE,
    )
