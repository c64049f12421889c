"""Audit logging around the authentication step.

AuthoritiesLoggingAtMiddleware sits next to Basic authentication and
notes that validation is under way; AuthoritiesLoggingAfterMiddleware
runs once authentication is settled and records who got in and with
which authorities.
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()


class AuthoritiesLoggingAtMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        logger.info("auth.validation_in_progress")
        return await call_next(request)


class AuthoritiesLoggingAfterMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        authentication = getattr(request.state, "authentication", None)
        if authentication is not None:
            logger.info(
                "auth.authenticated",
                username=authentication.username,
                authorities=authentication.authorities,
                method=authentication.method,
            )
        return await call_next(request)
