"""API route aggregation.

All routers registered here get mounted in main.py at the root path.
Authentication happens in the middleware chain; each route states its
own access rule through a has_role/has_any_role/get_current_user
dependency. Routes without one (health, notices, contact, register)
are open to everyone.
"""

from fastapi import APIRouter

from bankgate.api.accounts import router as accounts_router
from bankgate.api.health import router as health_router
from bankgate.api.public import router as public_router
from bankgate.api.users import router as users_router

api_router = APIRouter()

# Open routes
api_router.include_router(health_router, tags=["health"])
api_router.include_router(public_router, tags=["public"])

# Registration is open; /user requires authentication
api_router.include_router(users_router, tags=["users"])

# Role-protected routes
api_router.include_router(accounts_router, tags=["accounts"])
