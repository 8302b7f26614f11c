"""Service banner and health check.

Learn: /health uses the *optional* auth gate — it answers the same for
everyone, plus an `authenticated` flag when a good token is presented.
A bad token never turns a health check into a 401.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from contactbook import __version__
from contactbook.auth.dependencies import Identity, get_optional_identity
from contactbook.db.engine import get_db
from contactbook.schemas.common import ok

router = APIRouter()


@router.get("/")
async def banner():
    return ok(
        "Contactbook API is running",
        {
            "version": __version__,
            "endpoints": {"docs": "/docs", "auth": "/auth", "contacts": "/contacts"},
        },
    )


@router.get("/health")
async def health_check(
    db: AsyncSession = Depends(get_db),
    identity: Optional[Identity] = Depends(get_optional_identity),
):
    """Check server health and database connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    status = "healthy" if checks["database"] == "ok" else "degraded"
    return ok(
        status,
        {"status": status, **checks, "authenticated": identity is not None},
    )
