"""Contactbook operator CLI.

Usage:
    contactbook init-db                      # Create tables (dev / first run)
    contactbook create-account a@b.com       # Register an account (prompts for password)
    contactbook gen-secret                   # Print a fresh CONTACTBOOK_JWT_SECRET
    contactbook serve --port 8000            # Run the API with uvicorn

These talk to the database directly using the same services the API
uses, so registration rules (normalization, uniqueness, hashing) are
identical.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import secrets
import sys
from typing import Optional

import click

from contactbook import __version__

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="contactbook")
def main():
    """Contactbook — account and contact API administration."""


@main.command("init-db")
def init_db():
    """Create all tables that don't exist yet.

    Production deployments should run `alembic upgrade head` instead.
    """
    _run(_init_db_impl())
    click.secho("Tables created.", fg="green")


async def _init_db_impl():
    from contactbook.db.engine import engine
    from contactbook.db.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()


@main.command("create-account")
@click.argument("email")
@click.password_option()
def create_account(email: str, password: str):
    """Register an account without going through the HTTP API."""
    from contactbook import validation
    from contactbook.errors import DuplicateEmail

    errors = validation.registration_errors(email, password)
    if errors:
        for err in errors:
            click.secho(f"{err.field}: {err.message}", fg="red", err=True)
        sys.exit(1)

    try:
        result = _run(_create_account_impl(email, password))
    except DuplicateEmail as e:
        click.secho(f"Error: {e.message}", fg="red", err=True)
        sys.exit(1)

    click.secho(f"Account {result.account.email} created ({result.account.id})", fg="green")


async def _create_account_impl(email: str, password: str):
    from contactbook.db.engine import async_session_factory, engine
    from contactbook.services.auth_service import AuthService

    try:
        async with async_session_factory() as session:
            return await AuthService(session).register(email, password)
    finally:
        await engine.dispose()


@main.command("gen-secret")
@click.option("--bytes", "nbytes", default=32, show_default=True, help="Entropy in bytes")
def gen_secret(nbytes: int):
    """Print a random value suitable for CONTACTBOOK_JWT_SECRET."""
    click.echo(secrets.token_urlsafe(nbytes))


@main.command()
@click.option("--host", default=None, help="Bind address (default from settings)")
@click.option("--port", default=None, type=int, help="Port (default from settings)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from contactbook.config import settings

    uvicorn.run(
        "contactbook.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


if __name__ == "__main__":
    main()
