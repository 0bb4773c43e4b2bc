"""Signing and verification of activation and session JWTs."""

from __future__ import annotations

import time
from dataclasses import asdict
from typing import Any, Callable

import jwt

from ..domain.account import Avatar, PendingRegistration
from ..domain.errors import InvalidToken

ALGORITHM = "HS256"
PENDING_TOKEN_TYPE = "activation"
SESSION_TOKEN_TYPE = "session"


class TokenCodec:
    """Issue and verify the two bearer token kinds used by the account service.

    Pending-registration tokens and session tokens are signed with independent
    secrets and tagged with a ``typ`` claim, so one kind can never be replayed
    as the other.

    Parameters
    ----------
    activation_secret:
        HMAC secret for pending-registration tokens.
    session_secret:
        HMAC secret for session tokens.
    issuer:
        Value embedded in (and required from) the ``iss`` claim.
    activation_ttl_seconds:
        Default lifetime of pending-registration tokens.
    session_ttl_seconds:
        Default lifetime of session tokens.
    clock:
        Source of the current UNIX time used for ``iat``/``exp``.
    """

    def __init__(
        self,
        *,
        activation_secret: str,
        session_secret: str,
        issuer: str,
        activation_ttl_seconds: int = 300,
        session_ttl_seconds: int = 90 * 24 * 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._activation_secret = activation_secret
        self._session_secret = session_secret
        self._issuer = issuer
        self._activation_ttl = activation_ttl_seconds
        self._session_ttl = session_ttl_seconds
        self._clock = clock

    @property
    def session_ttl_seconds(self) -> int:
        return self._session_ttl

    def issue_pending(self, payload: PendingRegistration, ttl_seconds: int | None = None) -> str:
        """Encode a pending registration as a short-lived signed token."""
        claims = {
            "name": payload.name,
            "email": payload.email,
            "password_hash": payload.password_hash,
            "avatar": asdict(payload.avatar) if payload.avatar else None,
        }
        ttl = self._activation_ttl if ttl_seconds is None else ttl_seconds
        return self._encode(claims, PENDING_TOKEN_TYPE, self._activation_secret, ttl)

    def verify_pending(self, token: str | None) -> PendingRegistration:
        """Decode a pending-registration token.

        Raises
        ------
        InvalidToken
            When the signature, expiry, issuer or token type do not check out,
            or when required claims are missing.
        """
        claims = self._decode(token, PENDING_TOKEN_TYPE, self._activation_secret)
        try:
            avatar_claim = claims.get("avatar")
            avatar = Avatar(**avatar_claim) if avatar_claim else None
            return PendingRegistration(
                name=claims["name"],
                email=claims["email"],
                password_hash=claims["password_hash"],
                avatar=avatar,
            )
        except (KeyError, TypeError) as exc:
            raise InvalidToken("Invalid activation token") from exc

    def issue_session(self, account_id: str, ttl_seconds: int | None = None) -> str:
        """Create a signed session token for ``account_id``."""
        ttl = self._session_ttl if ttl_seconds is None else ttl_seconds
        return self._encode({"sub": account_id}, SESSION_TOKEN_TYPE, self._session_secret, ttl)

    def verify_session(self, token: str | None) -> str:
        """Return the account id carried by a valid session token."""
        claims = self._decode(token, SESSION_TOKEN_TYPE, self._session_secret)
        subject = claims.get("sub")
        if not subject:
            raise InvalidToken("Invalid session token")
        return str(subject)

    def _encode(self, claims: dict[str, Any], token_type: str, secret: str, ttl: int) -> str:
        now = int(self._clock())
        payload = {
            **claims,
            "typ": token_type,
            "iss": self._issuer,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, secret, algorithm=ALGORITHM)

    def _decode(self, token: str | None, token_type: str, secret: str) -> dict[str, Any]:
        if not token:
            raise InvalidToken(f"Missing {token_type} token")
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[ALGORITHM],
                issuer=self._issuer,
                options={"require": ["exp", "iat", "iss"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise InvalidToken(f"Expired {token_type} token") from exc
        except jwt.PyJWTError as exc:
            raise InvalidToken(f"Invalid {token_type} token") from exc
        if claims.get("typ") != token_type:
            raise InvalidToken(f"Invalid {token_type} token")
        return claims
