"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter, so every contacts route fails closed even if a
handler forgot to ask for an Identity. FastAPI caches the dependency per
request, so handlers that do ask for it don't re-run the gate. Health
and auth routers are open.
"""

from fastapi import APIRouter, Depends

from contactbook.api.auth import router as auth_router
from contactbook.api.contacts import router as contacts_router
from contactbook.api.health import router as health_router
from contactbook.auth.dependencies import get_current_identity

# All protected routers require authentication
_auth = [Depends(get_current_identity)]

api_router = APIRouter()

# Open routes: no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes: require a valid bearer token
api_router.include_router(contacts_router, tags=["contacts"], dependencies=_auth)
