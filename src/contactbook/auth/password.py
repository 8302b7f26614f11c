"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and embeds both salt and cost in the digest
("$2b$12$<salt><hash>"), so raising CONTACTBOOK_BCRYPT_ROUNDS later
never breaks verification of older digests.

Hashing is CPU-bound (~100ms at 12 rounds). The async wrappers push it
onto a small bounded thread pool so one login can't stall the event loop
for every other request.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from functools import lru_cache
from typing import Optional

import bcrypt

from contactbook.config import settings

_executor: Optional[ThreadPoolExecutor] = None


@lru_cache(maxsize=None)
def _decoy_hash(rounds: int) -> bytes:
    """Digest checked for accounts that don't exist, at the live cost."""
    return bcrypt.hashpw(b"contactbook-decoy", bcrypt.gensalt(rounds=rounds))


def _pw_bytes(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes
    return password.encode("utf-8")[:72]


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password with bcrypt at the configured cost."""
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(_pw_bytes(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(_pw_bytes(password), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def dummy_verify(password: str) -> bool:
    """Burn a verification against the decoy digest. Always False."""
    bcrypt.checkpw(_pw_bytes(password), _decoy_hash(settings.bcrypt_rounds))
    return False


def hash_rounds(password_hash: str) -> int:
    """Cost factor embedded in a bcrypt digest."""
    return int(password_hash.split("$")[2])


def _get_executor() -> ThreadPoolExecutor:
    global _executor
    if _executor is None:
        _executor = ThreadPoolExecutor(
            max_workers=settings.password_hash_workers,
            thread_name_prefix="contactbook-hash",
        )
    return _executor


async def hash_password_async(password: str) -> str:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(_get_executor(), hash_password, password)


async def verify_password_async(password: str, password_hash: Optional[str]) -> bool:
    """Verify off the event loop. A None hash runs the decoy check."""
    loop = asyncio.get_running_loop()
    if password_hash is None:
        return await loop.run_in_executor(_get_executor(), dummy_verify, password)
    return await loop.run_in_executor(
        _get_executor(), verify_password, password, password_hash
    )


def shutdown_executor() -> None:
    """Stop the hashing pool (called from the app lifespan)."""
    global _executor
    if _executor is not None:
        _executor.shutdown(wait=False)
        _executor = None
