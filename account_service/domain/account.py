from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

DEFAULT_ROLE = "user"
ADMIN_ROLE = "Admin"
AVATAR_FOLDER = "avatars"


@dataclass(slots=True)
class Avatar:
    """Pointer to an image held by the blob store."""

    resource_id: str
    url: str


@dataclass(slots=True)
class Address:
    """Postal address embedded in, and owned by, a single account."""

    address_id: str
    address_type: str
    country: str = ""
    city: str = ""
    address1: str = ""
    address2: str = ""
    zip_code: str = ""
    phone_number: str = ""


@dataclass(slots=True)
class Account:
    """Aggregate root for a marketplace customer identity."""

    account_id: str
    name: str
    email: str
    password_hash: str
    created_at: datetime
    role: str = DEFAULT_ROLE
    phone_number: str | None = None
    avatar: Avatar | None = None
    addresses: list[Address] = field(default_factory=list)

    def find_address(self, address_id: str) -> Address | None:
        for address in self.addresses:
            if address.address_id == address_id:
                return address
        return None


@dataclass(slots=True, frozen=True)
class PendingRegistration:
    """Unconfirmed account data; only ever lives inside a signed activation token."""

    name: str
    email: str
    password_hash: str
    avatar: Avatar | None = None
