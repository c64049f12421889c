"""FastAPI application factory.

App factory pattern: create_app() returns a configured FastAPI instance.
The security setup is the middleware stack registered here: its order is
the order in which every request is screened, authenticated and logged.
Route-level role rules live next to the routes in bankgate.api.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bankgate import __version__
from bankgate.api import api_router
from bankgate.config import Settings, settings
from bankgate.db.engine import build_engine, build_session_factory

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    app_settings: Settings = app.state.settings
    logger.info(
        "bankgate.starting",
        version=__version__,
        environment=app_settings.environment,
        port=app_settings.port,
        jwt_enabled=app_settings.jwt_enabled,
    )

    yield

    logger.info("bankgate.shutdown")
    await app.state.engine.dispose()


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application.

    Pass a Settings instance to build the app with a different security
    setup than the environment describes (e.g. jwt_enabled=False). The
    engine, the token parameters and the bcrypt work factor all come from
    the instance stored on app.state.settings.
    """
    app_settings = app_settings or settings

    app = FastAPI(
        title="Bankgate",
        description="Security layer for the bank account, loan, card and notice endpoints",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.engine = build_engine(app_settings)
    app.state.session_factory = build_session_factory(app.state.engine)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow:
    #   RequestId → CORS → SecurityHeaders → Csrf → RequestValidation
    #   → JwtValidator* → AuthoritiesLoggingAt → BasicAuthentication
    #   → AuthoritiesLoggingAfter → CsrfCookie → JwtGenerator* → handler
    # (* JWT mode only)

    from bankgate.middleware.authorities_logging import (
        AuthoritiesLoggingAfterMiddleware,
        AuthoritiesLoggingAtMiddleware,
    )
    from bankgate.middleware.basic_auth import BasicAuthenticationMiddleware
    from bankgate.middleware.csrf import CsrfCookieMiddleware, CsrfMiddleware
    from bankgate.middleware.jwt_filters import (
        JwtGeneratorMiddleware,
        JwtValidatorMiddleware,
    )
    from bankgate.middleware.request_id import RequestIdMiddleware
    from bankgate.middleware.request_validation import RequestValidationMiddleware
    from bankgate.middleware.security import SecurityHeadersMiddleware

    if app_settings.jwt_enabled:
        app.add_middleware(JwtGeneratorMiddleware, header_name=app_settings.jwt_header)
    app.add_middleware(CsrfCookieMiddleware, cookie_name=app_settings.csrf_cookie_name)
    app.add_middleware(AuthoritiesLoggingAfterMiddleware)
    app.add_middleware(BasicAuthenticationMiddleware)
    app.add_middleware(AuthoritiesLoggingAtMiddleware)
    if app_settings.jwt_enabled:
        app.add_middleware(JwtValidatorMiddleware, header_name=app_settings.jwt_header)
    app.add_middleware(RequestValidationMiddleware)
    app.add_middleware(
        CsrfMiddleware,
        cookie_name=app_settings.csrf_cookie_name,
        header_name=app_settings.csrf_header_name,
        parameter_name=app_settings.csrf_parameter_name,
        ignored_paths=tuple(app_settings.csrf_ignored_paths),
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=app_settings.cors_methods,
        allow_headers=app_settings.cors_allow_headers,
        expose_headers=app_settings.cors_expose_headers,
        max_age=app_settings.cors_max_age,
    )
    app.add_middleware(RequestIdMiddleware)

    # Mount API routes
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: bankgate.main:app)
app = create_app()
