"""Optional HTTP Basic auth for the sync API."""

from __future__ import annotations

import base64
import binascii
import secrets

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


def decode_basic_auth(header_value: str) -> tuple[str, str] | None:
    """Return (username, password) from an Authorization header, or None."""
    scheme, _, token = (header_value or "").partition(" ")
    if scheme.lower() != "basic" or not token:
        return None
    try:
        decoded = base64.b64decode(token.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    if ":" not in decoded:
        return None
    username, password = decoded.split(":", 1)
    return username, password


def credentials_match(header_value: str, username: str, password: str) -> bool:
    creds = decode_basic_auth(header_value)
    if creds is None:
        return False
    # Compare both parts even when the first differs.
    user_ok = secrets.compare_digest(creds[0].encode("utf-8"), username.encode("utf-8"))
    pass_ok = secrets.compare_digest(creds[1].encode("utf-8"), password.encode("utf-8"))
    return user_ok and pass_ok


class BasicAuthMiddleware(BaseHTTPMiddleware):
    """Require HTTP Basic credentials on every path except the public ones."""

    def __init__(self, app, *, username: str, password: str, public_paths=("/health",)):
        super().__init__(app)
        self.username = username
        self.password = password
        self.public_paths = frozenset(public_paths)

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.public_paths:
            return await call_next(request)
        if credentials_match(request.headers.get("Authorization", ""), self.username, self.password):
            return await call_next(request)
        return Response(
            content="Unauthorized",
            status_code=401,
            headers={"WWW-Authenticate": 'Basic realm="BoardSync", charset="UTF-8"'},
        )
