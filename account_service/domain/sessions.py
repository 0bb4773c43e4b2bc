"""Credential verification and session issuance."""

from __future__ import annotations

import logging

from .account import Account
from .contracts import AccountStore, SessionGrant
from .errors import InvalidCredentials, NotFound
from ..metrics import LOGINS
from ..security.passwords import hash_password, needs_rehash, verify_password
from ..security.tokens import TokenCodec

logger = logging.getLogger(__name__)


class SessionIssuer:
    """Exchange credentials for signed session tokens.

    Sessions are stateless: logging out only clears the client cookie and a
    token stays valid until it expires.
    """

    def __init__(self, store: AccountStore, codec: TokenCodec) -> None:
        self._store = store
        self._codec = codec

    @property
    def session_ttl_seconds(self) -> int:
        return self._codec.session_ttl_seconds

    def login(self, email: str, password: str) -> SessionGrant:
        account = self._store.find_by_email(email)
        if account is None:
            LOGINS.labels(outcome="failure").inc()
            raise NotFound()
        if not verify_password(password, account.password_hash):
            LOGINS.labels(outcome="failure").inc()
            logger.warning("login rejected for account %s: bad password", account.account_id)
            raise InvalidCredentials()
        if needs_rehash(account.password_hash):
            account.password_hash = hash_password(password)
            account = self._store.update(account)
        LOGINS.labels(outcome="success").inc()
        return self.start(account)

    def start(self, account: Account) -> SessionGrant:
        """Issue a session for an account whose identity is already established."""
        return SessionGrant(account=account, session_token=self._codec.issue_session(account.account_id))

    def logout(self) -> None:
        # Nothing is tracked server side; the HTTP layer expires the cookie.
        return None
