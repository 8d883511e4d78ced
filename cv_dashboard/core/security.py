"""HTTP Basic authentication gate.

A single shared username/password pair protects every route.  Requests to
exempt path prefixes (static assets) pass through untouched.  When either
credential is unset the gate rejects everyone rather than opening up.
"""

from __future__ import annotations

import base64
import binascii
import logging
import secrets
from collections.abc import Iterable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


def parse_basic_credentials(header: str | None) -> tuple[str, str] | None:
    """Decode an ``Authorization: Basic ...`` header into ``(user, password)``.

    Returns None for a missing header, another scheme, or undecodable data.
    The password keeps any ``:`` it contains.
    """
    if not header:
        return None
    scheme, _, encoded = header.strip().partition(" ")
    if scheme.lower() != "basic" or not encoded:
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    user, sep, password = decoded.partition(":")
    if not sep:
        return None
    return user, password


class BasicAuthMiddleware(BaseHTTPMiddleware):
    """Reject unauthenticated requests with ``401`` and a Basic challenge."""

    def __init__(
        self,
        app: ASGIApp,
        username: str,
        password: str,
        realm: str = "CV Dashboard",
        exempt_paths: Iterable[str] = (),
    ) -> None:
        super().__init__(app)
        self.username = username
        self.password = password
        self.realm = realm
        self.exempt_paths = tuple(exempt_paths)

    def is_exempt(self, path: str) -> bool:
        return any(path == p or path.startswith(p) for p in self.exempt_paths)

    def is_authorized(self, header: str | None) -> bool:
        if not self.username or not self.password:
            return False
        credentials = parse_basic_credentials(header)
        if credentials is None:
            return False
        user, password = credentials
        # Evaluate both comparisons so timing does not reveal which one failed
        user_ok = secrets.compare_digest(user.encode(), self.username.encode())
        password_ok = secrets.compare_digest(password.encode(), self.password.encode())
        return user_ok and password_ok

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if self.is_exempt(request.url.path):
            return await call_next(request)

        if self.is_authorized(request.headers.get("authorization")):
            return await call_next(request)

        logger.info(
            "basic_auth_rejected",
            extra={"path": request.url.path},
        )
        return PlainTextResponse(
            "Authentication required",
            status_code=401,
            headers={"WWW-Authenticate": f'Basic realm="{self.realm}"'},
        )
