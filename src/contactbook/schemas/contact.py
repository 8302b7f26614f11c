"""Pydantic schemas for contacts and contact listing.

Learn: Separate "Create" (input), "Update" (partial input) and "Read"
(output) schemas. None of the input schemas has an owner field — the
owner always comes from the authenticated identity. Unknown keys such
as "ownerId" are ignored by pydantic's default extra="ignore".
"""

import math
import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from contactbook.schemas.common import CamelModel

# Wire name → ORM attribute. Anything else is rejected.
SORTABLE_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "email": "email",
    "phone": "phone",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

SortField = Literal[
    "firstName", "lastName", "email", "phone", "createdAt", "updatedAt"
]

MAX_PAGE_SIZE = 100


class ContactCreate(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None


class ContactUpdate(ContactCreate):
    """Partial update. Only keys present in the payload are applied."""


class ContactRead(CamelModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    first_name: str
    last_name: str
    full_name: str
    phone: str
    email: Optional[str] = None
    address: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ContactQuery(CamelModel):
    search: Optional[str] = None
    sort: SortField = "lastName"
    order: Literal["asc", "desc"] = "asc"
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=MAX_PAGE_SIZE)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


class Pagination(CamelModel):
    total: int
    page: int
    pages: int
    limit: int


class ContactPage(CamelModel):
    contacts: list[ContactRead]
    pagination: Pagination

    @classmethod
    def build(
        cls, contacts: list[ContactRead], total: int, query: ContactQuery
    ) -> "ContactPage":
        return cls(
            contacts=contacts,
            pagination=Pagination(
                total=total,
                page=query.page,
                pages=math.ceil(total / query.limit),
                limit=query.limit,
            ),
        )
