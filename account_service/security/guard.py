"""Session validation and role checks for protected operations."""

from __future__ import annotations

import logging

from ..domain.account import Account
from ..domain.contracts import AccountStore
from ..domain.errors import Forbidden, InvalidToken, Unauthenticated
from .tokens import TokenCodec

logger = logging.getLogger(__name__)


class AuthGuard:
    """Resolve the caller behind a session cookie and enforce roles."""

    def __init__(self, store: AccountStore, codec: TokenCodec) -> None:
        self._store = store
        self._codec = codec

    def authenticate(self, token: str | None) -> Account:
        """Return the account owning ``token`` or raise ``Unauthenticated``."""
        if not token:
            raise Unauthenticated()
        try:
            account_id = self._codec.verify_session(token)
        except InvalidToken as exc:
            logger.info("rejected session token: %s", exc.message)
            raise Unauthenticated() from exc
        account = self._store.find_by_id(account_id)
        if account is None:
            raise Unauthenticated()
        return account

    def require_role(self, account: Account, *roles: str) -> Account:
        if account.role not in roles:
            raise Forbidden(f"{account.role} can not access this resource")
        return account
