"""Self-service mutations of an existing account."""

from __future__ import annotations

import logging
import uuid

from .account import AVATAR_FOLDER, Account, Address
from .contracts import AccountStore, AddressInput, BasicInfoUpdate, BlobStore
from .errors import DuplicateAccount, DuplicateAddressType, InvalidCredentials, NotFound, PasswordMismatch
from ..security.passwords import hash_password, verify_password

logger = logging.getLogger(__name__)


class ProfileManager:
    """Profile updates for the authenticated caller.

    Every operation is one read-modify-write of a single account row. The
    address-type check is a pre-check only, so two concurrent upserts of the
    same type may both succeed.
    """

    def __init__(self, store: AccountStore, blob_store: BlobStore) -> None:
        self._store = store
        self._blob_store = blob_store

    def _load(self, account_id: str) -> Account:
        account = self._store.find_by_id(account_id)
        if account is None:
            raise NotFound()
        return account

    def update_basic_info(self, account_id: str, update: BasicInfoUpdate) -> Account:
        """Change name, email and phone after re-checking the current password."""
        account = self._load(account_id)
        if not verify_password(update.password, account.password_hash):
            raise InvalidCredentials()
        if update.email != account.email:
            holder = self._store.find_by_email(update.email)
            if holder is not None and holder.account_id != account.account_id:
                raise DuplicateAccount("Email is already used by another account")

        account.name = update.name
        account.email = update.email
        account.phone_number = update.phone_number
        return self._store.update(account)

    def rotate_password(self, account_id: str, old_password: str, new_password: str, confirm_password: str) -> None:
        account = self._load(account_id)
        if not verify_password(old_password, account.password_hash):
            raise InvalidCredentials("Old password is incorrect!")
        if new_password != confirm_password:
            raise PasswordMismatch()
        account.password_hash = hash_password(new_password)
        self._store.update(account)
        logger.info("password rotated for account %s", account_id)

    def update_avatar(self, account_id: str, avatar_source: str | None) -> Account:
        """Swap the avatar image.

        The old image is destroyed before the new one is uploaded; if the
        upload then fails the account keeps pointing at the removed image.
        """
        account = self._load(account_id)
        if not avatar_source:
            return account
        if account.avatar is not None:
            self._blob_store.destroy(account.avatar.resource_id)
        account.avatar = self._blob_store.upload(avatar_source, folder=AVATAR_FOLDER)
        return self._store.update(account)

    def upsert_address(self, account_id: str, payload: AddressInput) -> Account:
        account = self._load(account_id)

        for existing in account.addresses:
            if existing.address_type == payload.address_type and existing.address_id != payload.address_id:
                raise DuplicateAddressType(payload.address_type)

        current = account.find_address(payload.address_id) if payload.address_id else None
        if current is not None:
            current.address_type = payload.address_type
            current.country = payload.country
            current.city = payload.city
            current.address1 = payload.address1
            current.address2 = payload.address2
            current.zip_code = payload.zip_code
            current.phone_number = payload.phone_number
        else:
            account.addresses.append(
                Address(
                    address_id=payload.address_id or uuid.uuid4().hex,
                    address_type=payload.address_type,
                    country=payload.country,
                    city=payload.city,
                    address1=payload.address1,
                    address2=payload.address2,
                    zip_code=payload.zip_code,
                    phone_number=payload.phone_number,
                )
            )
        return self._store.update(account)

    def delete_address(self, account_id: str, address_id: str) -> Account:
        """Remove an address; unknown ids leave the account untouched."""
        account = self._store.pull_address(account_id, address_id)
        if account is None:
            raise NotFound()
        return account
