"""Privileged account administration."""

from __future__ import annotations

import logging

from .account import Account
from .contracts import AccountStore, BlobStore
from .errors import NotFound
from ..metrics import DELETIONS

logger = logging.getLogger(__name__)


class AccountAdmin:
    """Listing, public lookup and cascade deletion of accounts.

    Role checks happen at the HTTP boundary through the auth guard; this class
    assumes its privileged callers were already vetted.
    """

    def __init__(self, store: AccountStore, blob_store: BlobStore) -> None:
        self._store = store
        self._blob_store = blob_store

    def list_all(self) -> list[Account]:
        return self._store.list_newest_first()

    def get_public(self, account_id: str) -> Account:
        account = self._store.find_by_id(account_id)
        if account is None:
            raise NotFound()
        return account

    def delete_account(self, account_id: str) -> None:
        """Destroy the avatar image, then the account row.

        A failing blob store aborts before the row is touched, so a stored
        account never references an image that was only half cleaned up.
        """
        account = self._store.find_by_id(account_id)
        if account is None:
            raise NotFound("User is not available with this id")
        if account.avatar is not None:
            self._blob_store.destroy(account.avatar.resource_id)
        self._store.delete(account_id)
        DELETIONS.inc()
        logger.info("account %s deleted", account_id)
