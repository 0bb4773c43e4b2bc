"""Domain-level request contracts and collaborator interfaces shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from .account import Account, Avatar


@dataclass(slots=True)
class RegisterInput:
    """Validated inputs required to stage a new registration."""

    name: str
    email: str
    password: str
    avatar_source: str | None = None


@dataclass(slots=True)
class BasicInfoUpdate:
    """Profile fields accepted by the reauthenticated basic info update."""

    email: str
    password: str
    name: str
    phone_number: str | None = None


@dataclass(slots=True)
class AddressInput:
    """Address payload; a missing ``address_id`` means a brand new entry."""

    address_type: str
    address_id: str | None = None
    country: str = ""
    city: str = ""
    address1: str = ""
    address2: str = ""
    zip_code: str = ""
    phone_number: str = ""


@dataclass(slots=True)
class RegistrationTicket:
    """Outcome of staging a registration; the token must never reach the HTTP client."""

    email: str
    pending_token: str
    activation_url: str


@dataclass(slots=True)
class SessionGrant:
    """An authenticated account together with its freshly signed session token."""

    account: Account
    session_token: str


class AccountStore(Protocol):
    """Persistence operations the domain services rely on."""

    def find_by_email(self, email: str) -> Account | None: ...

    def find_by_id(self, account_id: str) -> Account | None: ...

    def create(self, account: Account) -> Account: ...

    def update(self, account: Account) -> Account: ...

    def delete(self, account_id: str) -> bool: ...

    def list_newest_first(self) -> list[Account]: ...

    def pull_address(self, account_id: str, address_id: str) -> Account | None: ...


class BlobStore(Protocol):
    """Binary storage for avatar images."""

    def upload(self, source: str, *, folder: str) -> Avatar: ...

    def destroy(self, resource_id: str) -> None: ...


class Notifier(Protocol):
    """Out-of-band message delivery to an email address."""

    def notify(self, *, email: str, subject: str, message: str) -> None: ...
