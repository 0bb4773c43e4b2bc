"""Request and response models for the account HTTP surface.

Keys are camelCase on the wire; snake_case names are accepted on input too.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from ..domain.account import Account, Address, Avatar


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AvatarView(CamelModel):
    resource_id: str
    url: str

    @classmethod
    def from_domain(cls, avatar: Avatar) -> "AvatarView":
        return cls(resource_id=avatar.resource_id, url=avatar.url)


class AddressView(CamelModel):
    address_id: str
    address_type: str
    country: str
    city: str
    address1: str
    address2: str
    zip_code: str
    phone_number: str

    @classmethod
    def from_domain(cls, address: Address) -> "AddressView":
        return cls(
            address_id=address.address_id,
            address_type=address.address_type,
            country=address.country,
            city=address.city,
            address1=address.address1,
            address2=address.address2,
            zip_code=address.zip_code,
            phone_number=address.phone_number,
        )


class AccountView(CamelModel):
    """Serialised representation of an `Account`; the password hash is never included."""

    account_id: str
    name: str
    email: str
    phone_number: str | None
    avatar: AvatarView | None
    addresses: list[AddressView]
    role: str
    created_at: datetime

    @classmethod
    def from_domain(cls, account: Account) -> "AccountView":
        """Build a response model from the domain aggregate."""
        return cls(
            account_id=account.account_id,
            name=account.name,
            email=account.email,
            phone_number=account.phone_number,
            avatar=AvatarView.from_domain(account.avatar) if account.avatar else None,
            addresses=[AddressView.from_domain(address) for address in account.addresses],
            role=account.role,
            created_at=account.created_at,
        )


class CreateUserRequest(CamelModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=4)
    avatar: str | None = None


class ActivationRequest(CamelModel):
    activation_token: str


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class UpdateInfoRequest(CamelModel):
    """Basic profile change; ``password`` is the current password, used to reauthenticate."""

    email: EmailStr
    password: str
    name: str = Field(..., min_length=1)
    phone_number: str | None = None


class UpdateAvatarRequest(CamelModel):
    avatar: str = ""


class AddressRequest(CamelModel):
    address_type: str = Field(..., min_length=1)
    address_id: str | None = None
    country: str = ""
    city: str = ""
    address1: str = ""
    address2: str = ""
    zip_code: str = ""
    phone_number: str = ""


class PasswordChangeRequest(CamelModel):
    old_password: str
    new_password: str = Field(..., min_length=4)
    confirm_password: str


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class UserResponse(CamelModel):
    success: bool = True
    user: AccountView


class SessionResponse(CamelModel):
    success: bool = True
    user: AccountView
    token: str


class UserListResponse(CamelModel):
    success: bool = True
    users: list[AccountView]


class ErrorResponse(CamelModel):
    success: bool = False
    message: str
    status_code: int
