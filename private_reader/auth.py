"""
Shared-password gate.

A successful login stores an HMAC of the access password in an HttpOnly
cookie. The marker is recomputed on every request, so rotating
ACCESS_PASSWORD logs everybody out.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from private_reader.config import get_settings

logger = logging.getLogger(__name__)

COOKIE_NAME = "authenticated"
COOKIE_MAX_AGE = 60 * 60 * 24

PUBLIC_API_PATHS = ("/api/auth", "/api/logout")


def session_marker(password: str) -> str:
    return hmac.new(password.encode("utf-8"), b"private-reader-session", hashlib.sha256).hexdigest()


def password_matches(candidate: str, password: str) -> bool:
    return hmac.compare_digest(candidate.encode("utf-8"), password.encode("utf-8"))


def is_authenticated(request: Request) -> bool:
    password = get_settings().access_password
    cookie = request.cookies.get(COOKIE_NAME)
    if not password or not cookie:
        return False
    return hmac.compare_digest(cookie, session_marker(password))


def set_session_cookie(response: Response, password: str, *, secure: bool) -> None:
    response.set_cookie(
        COOKIE_NAME,
        session_marker(password),
        max_age=COOKIE_MAX_AGE,
        path="/",
        httponly=True,
        secure=secure,
        samesite="strict",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(COOKIE_NAME, path="/")


class PasswordGateMiddleware(BaseHTTPMiddleware):
    """Redirects page requests and rejects API calls that lack a valid session marker."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        path = request.url.path
        authed = is_authenticated(request)

        if path.startswith("/app") and not authed:
            return RedirectResponse("/", status_code=307)

        if path == "/" and authed:
            return RedirectResponse("/app", status_code=307)

        if path.startswith("/api/") and path not in PUBLIC_API_PATHS and not authed:
            logger.warning("Rejected unauthenticated %s %s", request.method, path)
            return JSONResponse(status_code=401, content={"detail": "Authentication required"})

        return await call_next(request)
