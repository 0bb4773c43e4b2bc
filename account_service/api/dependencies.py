"""FastAPI dependencies resolving services from application state and guarding routes."""

from __future__ import annotations

from fastapi import Depends, Request

from ..domain.account import ADMIN_ROLE, Account
from ..domain.admin import AccountAdmin
from ..domain.identity import IdentityService
from ..domain.profile import ProfileManager
from ..domain.sessions import SessionIssuer
from ..security.guard import AuthGuard
from ..security.throttle import Throttle

SESSION_COOKIE = "token"


def get_identity(request: Request) -> IdentityService:
    return request.app.state.identity_service


def get_sessions(request: Request) -> SessionIssuer:
    return request.app.state.session_issuer


def get_profiles(request: Request) -> ProfileManager:
    return request.app.state.profile_manager


def get_admin(request: Request) -> AccountAdmin:
    return request.app.state.account_admin


def get_throttle(request: Request) -> Throttle:
    return request.app.state.throttle


def get_guard(request: Request) -> AuthGuard:
    return request.app.state.auth_guard


def current_account(request: Request, guard: AuthGuard = Depends(get_guard)) -> Account:
    """Resolve the caller from the session cookie, raising ``Unauthenticated`` otherwise."""
    return guard.authenticate(request.cookies.get(SESSION_COOKIE))


def require_admin(
    account: Account = Depends(current_account),
    guard: AuthGuard = Depends(get_guard),
) -> Account:
    return guard.require_role(account, ADMIN_ROLE)
