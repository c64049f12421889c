"""Request validation middleware: screens Basic credentials before auth.

Runs ahead of authentication. Undecodable Basic headers are answered
with 401 right away, and usernames containing "test" are refused with
400 so test accounts can never log in against this service.
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from bankgate.auth.basic import BadCredentialsError, decode_basic_credentials, is_basic
from bankgate.auth.dependencies import BASIC_CHALLENGE

logger = structlog.get_logger()

BLOCKED_USERNAME_FRAGMENT = "test"


class RequestValidationMiddleware(BaseHTTPMiddleware):
    """Reject malformed or disallowed Basic credentials."""

    async def dispatch(self, request: Request, call_next) -> Response:
        header = request.headers.get("Authorization")
        if not is_basic(header):
            return await call_next(request)

        try:
            username, _ = decode_basic_credentials(header)
        except BadCredentialsError as e:
            logger.warning("request_validation.undecodable", error=str(e))
            return JSONResponse(
                status_code=401,
                content={"detail": str(e)},
                headers=BASIC_CHALLENGE,
            )

        if BLOCKED_USERNAME_FRAGMENT in username.lower():
            logger.warning("request_validation.blocked_username", username=username)
            return JSONResponse(
                status_code=400,
                content={"detail": "Bad Request"},
            )

        return await call_next(request)
