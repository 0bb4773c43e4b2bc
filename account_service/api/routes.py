"""HTTP route definitions for the account service."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response, status

from ..config import get_settings
from ..domain.account import Account
from ..domain.admin import AccountAdmin
from ..domain.contracts import AddressInput, BasicInfoUpdate, RegisterInput, SessionGrant
from ..domain.identity import IdentityService
from ..domain.profile import ProfileManager
from ..domain.sessions import SessionIssuer
from ..security.throttle import Throttle, enforce
from .dependencies import (
    SESSION_COOKIE,
    current_account,
    get_admin,
    get_identity,
    get_profiles,
    get_sessions,
    get_throttle,
    require_admin,
)
from .schemas import (
    AccountView,
    ActivationRequest,
    AddressRequest,
    CreateUserRequest,
    LoginRequest,
    MessageResponse,
    PasswordChangeRequest,
    SessionResponse,
    UpdateAvatarRequest,
    UpdateInfoRequest,
    UserListResponse,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v2/user", tags=["accounts"])

settings = get_settings()


def _open_session(response: Response, grant: SessionGrant, ttl_seconds: int) -> SessionResponse:
    """Set the HTTP-only session cookie and build the matching response body."""
    response.set_cookie(
        SESSION_COOKIE,
        grant.session_token,
        max_age=ttl_seconds,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        path="/",
    )
    return SessionResponse(user=AccountView.from_domain(grant.account), token=grant.session_token)


@router.post("/create-user", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: CreateUserRequest,
    identity: IdentityService = Depends(get_identity),
    throttle: Throttle = Depends(get_throttle),
) -> MessageResponse:
    """Stage a registration and email the activation link; the token itself is never returned."""
    enforce(throttle, f"create:{payload.email}")
    ticket = identity.register(
        RegisterInput(
            name=payload.name,
            email=payload.email,
            password=payload.password,
            avatar_source=payload.avatar,
        )
    )
    return MessageResponse(message=f"Please check your email:- {ticket.email} to activate your account")


@router.post("/activation", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def activate(
    payload: ActivationRequest,
    response: Response,
    identity: IdentityService = Depends(get_identity),
    sessions: SessionIssuer = Depends(get_sessions),
) -> SessionResponse:
    grant = identity.confirm(payload.activation_token)
    return _open_session(response, grant, sessions.session_ttl_seconds)


@router.post("/login-user", response_model=SessionResponse)
def login(
    payload: LoginRequest,
    response: Response,
    sessions: SessionIssuer = Depends(get_sessions),
    throttle: Throttle = Depends(get_throttle),
) -> SessionResponse:
    enforce(throttle, f"login:{payload.email}")
    grant = sessions.login(payload.email, payload.password)
    return _open_session(response, grant, sessions.session_ttl_seconds)


@router.get("/get-user", response_model=UserResponse)
def get_user(account: Account = Depends(current_account)) -> UserResponse:
    return UserResponse(user=AccountView.from_domain(account))


@router.get("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    account: Account = Depends(current_account),
    sessions: SessionIssuer = Depends(get_sessions),
) -> MessageResponse:
    """Expire the session cookie; the token itself stays valid until it expires."""
    sessions.logout()
    response.delete_cookie(
        SESSION_COOKIE,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )
    return MessageResponse(message="Log out Successful")


@router.put("/update-user-info", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def update_user_info(
    payload: UpdateInfoRequest,
    account: Account = Depends(current_account),
    profiles: ProfileManager = Depends(get_profiles),
) -> UserResponse:
    updated = profiles.update_basic_info(
        account.account_id,
        BasicInfoUpdate(
            email=payload.email,
            password=payload.password,
            name=payload.name,
            phone_number=payload.phone_number,
        ),
    )
    return UserResponse(user=AccountView.from_domain(updated))


@router.put("/update-avatar", response_model=UserResponse)
def update_avatar(
    payload: UpdateAvatarRequest,
    account: Account = Depends(current_account),
    profiles: ProfileManager = Depends(get_profiles),
) -> UserResponse:
    updated = profiles.update_avatar(account.account_id, payload.avatar)
    return UserResponse(user=AccountView.from_domain(updated))


@router.put("/update-user-addresses", response_model=UserResponse)
def update_user_addresses(
    payload: AddressRequest,
    account: Account = Depends(current_account),
    profiles: ProfileManager = Depends(get_profiles),
) -> UserResponse:
    updated = profiles.upsert_address(
        account.account_id,
        AddressInput(
            address_type=payload.address_type,
            address_id=payload.address_id,
            country=payload.country,
            city=payload.city,
            address1=payload.address1,
            address2=payload.address2,
            zip_code=payload.zip_code,
            phone_number=payload.phone_number,
        ),
    )
    return UserResponse(user=AccountView.from_domain(updated))


@router.delete("/delete-user-address/{address_id}", response_model=UserResponse)
def delete_user_address(
    address_id: str,
    account: Account = Depends(current_account),
    profiles: ProfileManager = Depends(get_profiles),
) -> UserResponse:
    updated = profiles.delete_address(account.account_id, address_id)
    return UserResponse(user=AccountView.from_domain(updated))


@router.put("/update-user-password", response_model=MessageResponse)
def update_user_password(
    payload: PasswordChangeRequest,
    account: Account = Depends(current_account),
    profiles: ProfileManager = Depends(get_profiles),
) -> MessageResponse:
    profiles.rotate_password(
        account.account_id,
        payload.old_password,
        payload.new_password,
        payload.confirm_password,
    )
    return MessageResponse(message="Password updated successfully!")


@router.get("/user-info/{account_id}", response_model=UserResponse)
def user_info(account_id: str, admin: AccountAdmin = Depends(get_admin)) -> UserResponse:
    """Public profile lookup; no session required."""
    return UserResponse(user=AccountView.from_domain(admin.get_public(account_id)))


@router.get("/admin-all-users", response_model=UserListResponse)
def admin_all_users(
    caller: Account = Depends(require_admin),
    admin: AccountAdmin = Depends(get_admin),
) -> UserListResponse:
    return UserListResponse(users=[AccountView.from_domain(account) for account in admin.list_all()])


@router.delete("/delete-user/{account_id}", response_model=MessageResponse)
def delete_user(
    account_id: str,
    caller: Account = Depends(require_admin),
    admin: AccountAdmin = Depends(get_admin),
) -> MessageResponse:
    admin.delete_account(account_id)
    logger.info("admin %s deleted account %s", caller.account_id, account_id)
    return MessageResponse(message="User deleted successfully!")
