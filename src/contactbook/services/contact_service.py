"""Contact service — every contact query scoped to one owner.

Learn: The Identity is a constructor argument, not an optional filter.
Every statement this class builds starts from `_owned()`, so a query
that forgets the owner check can't be written here. A contact owned by
someone else is indistinguishable from one that doesn't exist: both
raise ResourceNotFound (404), never a 403 that would confirm the id.
"""

import uuid
from typing import Any, Union

import structlog
from sqlalchemy import Select, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from contactbook.auth.dependencies import Identity
from contactbook.db.models import Contact
from contactbook.errors import ResourceNotFound
from contactbook.schemas.contact import (
    SORTABLE_FIELDS,
    ContactPage,
    ContactQuery,
    ContactRead,
)

logger = structlog.get_logger()

# Columns a caller may write. owner_id is never among them.
WRITABLE_FIELDS = ("first_name", "last_name", "phone", "email", "address")

ContactId = Union[str, uuid.UUID]


class ContactService:
    """Business logic for one account's contacts."""

    def __init__(self, db: AsyncSession, identity: Identity):
        self.db = db
        self.identity = identity

    def _owned(self) -> Select:
        return select(Contact).where(Contact.owner_id == self.identity.id)

    @staticmethod
    def _writable(fields: dict[str, Any]) -> dict[str, Any]:
        return {k: v for k, v in fields.items() if k in WRITABLE_FIELDS}

    async def _get_owned(self, contact_id: ContactId) -> Contact:
        """Fetch by id AND owner. Bad ids, other owners' ids → 404."""
        try:
            cid = contact_id if isinstance(contact_id, uuid.UUID) else uuid.UUID(str(contact_id))
        except ValueError:
            raise ResourceNotFound()

        result = await self.db.execute(self._owned().where(Contact.id == cid))
        contact = result.scalars().first()
        if contact is None:
            raise ResourceNotFound()
        return contact

    # ─── Read ────────────────────────────────────────────

    async def list_contacts(self, query: ContactQuery) -> ContactPage:
        """Search, sort and paginate the caller's contacts.

        Learn: `search` is a literal substring (LIKE wildcards escaped),
        matched case-insensitively against first name, last name OR
        phone. Sorting is only by allow-listed columns; id breaks ties so
        pages don't overlap.
        """
        stmt = self._owned()
        term = (query.search or "").strip()
        if term:
            stmt = stmt.where(
                or_(
                    Contact.first_name.icontains(term, autoescape=True),
                    Contact.last_name.icontains(term, autoescape=True),
                    Contact.phone.icontains(term, autoescape=True),
                )
            )

        total = await self.db.scalar(
            select(func.count()).select_from(stmt.subquery())
        )

        column = getattr(Contact, SORTABLE_FIELDS[query.sort])
        ordering = column.desc() if query.order == "desc" else column.asc()
        result = await self.db.execute(
            stmt.order_by(ordering, Contact.id).offset(query.skip).limit(query.limit)
        )
        contacts = [ContactRead.model_validate(c) for c in result.scalars().all()]
        return ContactPage.build(contacts, total or 0, query)

    async def get_contact(self, contact_id: ContactId) -> ContactRead:
        return ContactRead.model_validate(await self._get_owned(contact_id))

    # ─── Write ───────────────────────────────────────────

    async def create_contact(self, fields: dict[str, Any]) -> ContactRead:
        """Create a contact. The owner is always the caller."""
        contact = Contact(**self._writable(fields), owner_id=self.identity.id)
        self.db.add(contact)
        await self.db.commit()
        logger.info("contacts.created", contact_id=str(contact.id))
        return ContactRead.model_validate(contact)

    async def update_contact(self, contact_id: ContactId, fields: dict[str, Any]) -> ContactRead:
        """Apply only the given fields; everything else is left alone."""
        contact = await self._get_owned(contact_id)
        for name, value in self._writable(fields).items():
            setattr(contact, name, value)
        await self.db.commit()
        logger.info("contacts.updated", contact_id=str(contact.id), fields=sorted(fields))
        return ContactRead.model_validate(contact)

    async def delete_contact(self, contact_id: ContactId) -> ContactRead:
        contact = await self._get_owned(contact_id)
        snapshot = ContactRead.model_validate(contact)
        await self.db.delete(contact)
        await self.db.commit()
        logger.info("contacts.deleted", contact_id=str(snapshot.id))
        return snapshot

    async def delete_all(self) -> int:
        """Delete every contact the caller owns. Returns the count."""
        result = await self.db.execute(
            delete(Contact).where(Contact.owner_id == self.identity.id)
        )
        await self.db.commit()
        logger.info("contacts.deleted_all", count=result.rowcount)
        return result.rowcount
