"""HTTP Basic authentication middleware.

Checks "Authorization: Basic ..." against the customer table on every
request that carries it. Nothing is remembered afterwards: no session,
no session cookie. In JWT mode only /user sees Basic headers; in Basic
mode every protected route does.
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from bankgate.auth.basic import BadCredentialsError, decode_basic_credentials, is_basic
from bankgate.auth.dependencies import BASIC_CHALLENGE
from bankgate.auth.users import authenticate

logger = structlog.get_logger()


class BasicAuthenticationMiddleware(BaseHTTPMiddleware):
    """Authenticate Basic credentials and attach the result to request.state."""

    async def dispatch(self, request: Request, call_next) -> Response:
        header = request.headers.get("Authorization")
        if not is_basic(header):
            return await call_next(request)

        try:
            username, password = decode_basic_credentials(header)
        except BadCredentialsError as e:
            return self._unauthorized(str(e))

        existing = getattr(request.state, "authentication", None)
        if existing is not None and existing.username == username:
            return await call_next(request)

        session_factory = request.app.state.session_factory
        async with session_factory() as session:
            try:
                authentication = await authenticate(session, username, password)
            except BadCredentialsError as e:
                logger.warning("auth.basic_failed", username=username, error=str(e))
                return self._unauthorized(str(e))

        request.state.authentication = authentication
        return await call_next(request)

    @staticmethod
    def _unauthorized(detail: str) -> JSONResponse:
        return JSONResponse(
            status_code=401,
            content={"detail": detail},
            headers=BASIC_CHALLENGE,
        )
