"""Registration workflow: stage a signed pending registration, then confirm it."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from .account import AVATAR_FOLDER, DEFAULT_ROLE, Account, PendingRegistration
from .contracts import AccountStore, BlobStore, Notifier, RegisterInput, RegistrationTicket, SessionGrant
from .errors import DuplicateAccount
from .sessions import SessionIssuer
from ..metrics import REGISTRATIONS
from ..security.passwords import hash_password
from ..security.tokens import TokenCodec

logger = logging.getLogger(__name__)


class IdentityService:
    """Account creation deferred until the owner proves control of the email address.

    Nothing is written to the store before confirmation: the pending account
    only exists inside the activation token, so abandoned sign-ups need no
    cleanup.
    """

    def __init__(
        self,
        store: AccountStore,
        codec: TokenCodec,
        blob_store: BlobStore,
        notifier: Notifier,
        sessions: SessionIssuer,
        *,
        client_url: str,
    ) -> None:
        self._store = store
        self._codec = codec
        self._blob_store = blob_store
        self._notifier = notifier
        self._sessions = sessions
        self._client_url = client_url.rstrip("/")

    def register(self, payload: RegisterInput) -> RegistrationTicket:
        """Stage a registration and email its activation link.

        Raises ``DuplicateAccount`` when the email is taken and
        ``NotificationFailed`` when the activation mail cannot be sent; an
        avatar uploaded before a failed notification is not rolled back.
        """
        if self._store.find_by_email(payload.email) is not None:
            raise DuplicateAccount()

        avatar = None
        if payload.avatar_source:
            avatar = self._blob_store.upload(payload.avatar_source, folder=AVATAR_FOLDER)

        pending = PendingRegistration(
            name=payload.name,
            email=payload.email,
            password_hash=hash_password(payload.password),
            avatar=avatar,
        )
        token = self._codec.issue_pending(pending)
        activation_url = f"{self._client_url}/activation/{token}"

        self._notifier.notify(
            email=payload.email,
            subject="Activate your account",
            message=(
                f"Hello {payload.name}, please click on the link to activate your account: "
                f"{activation_url}"
            ),
        )
        REGISTRATIONS.labels(stage="staged").inc()
        return RegistrationTicket(email=payload.email, pending_token=token, activation_url=activation_url)

    def confirm(self, pending_token: str | None) -> SessionGrant:
        """Persist the account carried by ``pending_token`` and open a session for it."""
        pending = self._codec.verify_pending(pending_token)

        # Another token for the same email may have been confirmed since issuance.
        if self._store.find_by_email(pending.email) is not None:
            raise DuplicateAccount()

        account = self._store.create(
            Account(
                account_id=str(uuid.uuid4()),
                name=pending.name,
                email=pending.email,
                password_hash=pending.password_hash,
                avatar=pending.avatar,
                role=DEFAULT_ROLE,
                created_at=datetime.now(timezone.utc),
            )
        )
        REGISTRATIONS.labels(stage="confirmed").inc()
        logger.info("account %s activated", account.account_id)
        return self._sessions.start(account)
