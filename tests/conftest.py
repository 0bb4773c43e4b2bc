from __future__ import annotations

import copy
import uuid
from datetime import datetime, timezone

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from account_service.api import routes
from account_service.api.errors import register_exception_handlers
from account_service.config import get_settings
from account_service.domain.account import DEFAULT_ROLE, Account, Avatar
from account_service.domain.admin import AccountAdmin
from account_service.domain.errors import BlobStoreFailure, NotificationFailed
from account_service.domain.identity import IdentityService
from account_service.domain.profile import ProfileManager
from account_service.domain.sessions import SessionIssuer
from account_service.main import install_services
from account_service.security.guard import AuthGuard
from account_service.security.passwords import hash_password
from account_service.security.throttle import SlidingWindowThrottle
from account_service.security.tokens import TokenCodec

ACTIVATION_SECRET = "test-activation-secret-0123456789abcdef"
SESSION_SECRET = "test-session-secret-0123456789abcdef0123"
ISSUER = "tests.accounts"


class FakeRepository:
    """In-memory repository mimicking the Postgres-backed behaviours.

    Accounts are deep-copied on the way in and out so callers never share
    state with what is "stored", exactly like a database round trip.
    """

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}

    def find_by_email(self, email: str):
        for account in self._accounts.values():
            if account.email == email:
                return copy.deepcopy(account)
        return None

    def find_by_id(self, account_id: str):
        account = self._accounts.get(account_id)
        return copy.deepcopy(account) if account else None

    def create(self, account: Account):
        self._accounts[account.account_id] = copy.deepcopy(account)
        return copy.deepcopy(account)

    def update(self, account: Account):
        if account.account_id in self._accounts:
            self._accounts[account.account_id] = copy.deepcopy(account)
        return copy.deepcopy(account)

    def delete(self, account_id: str) -> bool:
        return self._accounts.pop(account_id, None) is not None

    def list_newest_first(self):
        ordered = sorted(self._accounts.values(), key=lambda a: a.created_at, reverse=True)
        return [copy.deepcopy(account) for account in ordered]

    def pull_address(self, account_id: str, address_id: str):
        account = self._accounts.get(account_id)
        if account is None:
            return None
        account.addresses = [entry for entry in account.addresses if entry.address_id != address_id]
        return copy.deepcopy(account)

    def all(self) -> list[Account]:
        return [copy.deepcopy(account) for account in self._accounts.values()]


class FakeBlobStore:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []
        self.live: set[str] = set()
        self.fail_upload = False
        self.fail_destroy = False
        self._seq = 0

    def upload(self, source: str, *, folder: str) -> Avatar:
        self.calls.append(("upload", source))
        if self.fail_upload:
            raise BlobStoreFailure("Image upload failed: provider unavailable")
        self._seq += 1
        resource_id = f"{folder}/img-{self._seq}"
        self.live.add(resource_id)
        return Avatar(resource_id=resource_id, url=f"https://cdn.test/{resource_id}.png")

    def destroy(self, resource_id: str) -> None:
        self.calls.append(("destroy", resource_id))
        if self.fail_destroy:
            raise BlobStoreFailure("Image removal failed: provider unavailable")
        self.live.discard(resource_id)


class FakeNotifier:
    def __init__(self) -> None:
        self.sent: list[dict[str, str]] = []
        self.fail = False

    def notify(self, *, email: str, subject: str, message: str) -> None:
        if self.fail:
            raise NotificationFailed("smtp relay refused the message")
        self.sent.append({"email": email, "subject": subject, "message": message})


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(
        activation_secret=ACTIVATION_SECRET,
        session_secret=SESSION_SECRET,
        issuer=ISSUER,
        activation_ttl_seconds=300,
        session_ttl_seconds=3600,
    )


@pytest.fixture
def sessions(repository, codec) -> SessionIssuer:
    return SessionIssuer(repository, codec)


@pytest.fixture
def identity(repository, codec, blob_store, notifier, sessions) -> IdentityService:
    return IdentityService(
        repository,
        codec,
        blob_store,
        notifier,
        sessions,
        client_url="https://shop.test",
    )


@pytest.fixture
def profiles(repository, blob_store) -> ProfileManager:
    return ProfileManager(repository, blob_store)


@pytest.fixture
def admin(repository, blob_store) -> AccountAdmin:
    return AccountAdmin(repository, blob_store)


@pytest.fixture
def guard(repository, codec) -> AuthGuard:
    return AuthGuard(repository, codec)


@pytest.fixture
def make_account(repository):
    """Store an account directly, bypassing the activation flow."""

    def _make(
        email: str = "buyer@shop.com",
        password: str = "s3cret-pass",
        *,
        name: str = "Buyer",
        role: str = DEFAULT_ROLE,
        avatar: Avatar | None = None,
        created_at: datetime | None = None,
    ) -> Account:
        return repository.create(
            Account(
                account_id=str(uuid.uuid4()),
                name=name,
                email=email,
                password_hash=hash_password(password),
                role=role,
                avatar=avatar,
                created_at=created_at or datetime.now(timezone.utc),
            )
        )

    return _make


@pytest.fixture
def api_client(repository, blob_store, notifier):
    """Provide a FastAPI test client with isolated state."""
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(routes.router)
    install_services(app, repository, blob_store, notifier, get_settings())
    app.state.throttle = SlidingWindowThrottle(max_requests=100, window_seconds=60)

    with TestClient(app) as client:
        yield client, app


@pytest.fixture
def login_as():
    """Log in through the API and attach the session cookie to the client."""

    def _login(client: TestClient, email: str, password: str) -> str:
        response = client.post("/api/v2/user/login-user", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        token = response.json()["token"]
        client.cookies.set("token", token)
        return token

    return _login
