"""Contact API routes.

Learn: Every route gets its ContactService from `_svc`, which can only be
built with a resolved Identity — there is no code path that reaches the
contacts table without one. Routes validate and trim input, services
enforce ownership.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from contactbook import validation
from contactbook.auth.dependencies import Identity, get_current_identity
from contactbook.db.engine import get_db
from contactbook.schemas.common import ok
from contactbook.schemas.contact import (
    MAX_PAGE_SIZE,
    ContactCreate,
    ContactQuery,
    ContactUpdate,
    SortField,
)
from contactbook.services.contact_service import ContactService

router = APIRouter(prefix="/contacts")


def _svc(
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> ContactService:
    return ContactService(db, identity)


@router.get("")
async def list_contacts(
    search: Optional[str] = Query(None, max_length=100),
    sort: SortField = Query("lastName"),
    order: Literal["asc", "desc"] = Query("asc"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    svc: ContactService = Depends(_svc),
):
    """List the caller's contacts with search, sort and pagination."""
    query = ContactQuery(search=search, sort=sort, order=order, page=page, limit=limit)
    result = await svc.list_contacts(query)
    return ok("Contacts retrieved", result)


@router.get("/{contact_id}")
async def get_contact(contact_id: str, svc: ContactService = Depends(_svc)):
    contact = await svc.get_contact(contact_id)
    return ok("Contact retrieved", {"contact": contact})


@router.post("", status_code=201)
async def create_contact(body: ContactCreate, svc: ContactService = Depends(_svc)):
    fields = validation.clean_contact_fields(body.model_dump())
    validation.ensure_valid(validation.contact_errors(fields))
    contact = await svc.create_contact(fields)
    return ok("Contact created", {"contact": contact})


@router.patch("/{contact_id}")
async def update_contact(
    contact_id: str,
    body: ContactUpdate,
    svc: ContactService = Depends(_svc),
):
    """Partial update — fields missing from the body are left untouched."""
    fields = validation.clean_contact_fields(body.model_dump(exclude_unset=True))
    validation.ensure_valid(validation.contact_errors(fields, partial=True))
    contact = await svc.update_contact(contact_id, fields)
    return ok("Contact updated", {"contact": contact})


@router.delete("/{contact_id}")
async def delete_contact(contact_id: str, svc: ContactService = Depends(_svc)):
    contact = await svc.delete_contact(contact_id)
    return ok("Contact deleted", {"contact": contact})


@router.delete("")
async def delete_all_contacts(svc: ContactService = Depends(_svc)):
    """Delete every contact the caller owns (and only those)."""
    count = await svc.delete_all()
    return ok(f"{count} contact(s) deleted", {"deletedCount": count})
