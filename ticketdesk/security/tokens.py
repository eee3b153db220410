"""Signed identity tokens.

Tokens are HS256 JWTs carrying ``sub`` (the user id as a string), ``iss``,
``userType``, ``iat`` and ``exp``. Verification pins the algorithm before
checking the signature so that ``none`` or asymmetric headers are never
accepted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from ticketdesk.core.config import Settings
from ticketdesk.users.models import User, UserRole

ALGORITHM = "HS256"
DEFAULT_TOKEN_TTL = timedelta(hours=24)


class TokenError(Exception):
    """Base error for token issuing and verification."""


class SigningError(TokenError):
    """Raised when a token cannot be signed."""


class InvalidSignature(TokenError):
    """Raised when the token signature does not match or the token is malformed."""


class UnsupportedAlgorithm(TokenError):
    """Raised when the token header names an algorithm other than HS256."""


class TokenExpired(TokenError):
    """Raised when the token lifetime has elapsed."""


class InvalidClaims(TokenError):
    """Raised when the payload is signed correctly but carries unusable claims."""


@dataclass(frozen=True, slots=True)
class Claims:
    """Decoded payload of a verified identity token."""

    subject: int
    role: UserRole
    issuer: str
    issued_at: datetime
    expires_at: datetime


class TokenService:
    """Issue and verify identity tokens with a shared symmetric secret."""

    def __init__(
        self,
        secret: str | None,
        *,
        issuer: str = "ticketdesk",
        ttl: timedelta = DEFAULT_TOKEN_TTL,
    ) -> None:
        self._secret = secret
        self._issuer = issuer
        self._ttl = ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            settings.token_secret,
            issuer=settings.token_issuer,
            ttl=timedelta(seconds=settings.token_ttl_seconds),
        )

    def issue(self, user: User, *, now: datetime | None = None) -> str:
        if not self._secret:
            raise SigningError("token secret is not configured")

        issued_at = now or datetime.now(timezone.utc)
        claims: dict[str, Any] = {
            "sub": str(user.id),
            "iss": self._issuer,
            "userType": UserRole(user.role).value,
            "iat": issued_at,
            "exp": issued_at + self._ttl,
        }
        try:
            return jwt.encode(claims, self._secret, algorithm=ALGORITHM)
        except JWTError as exc:
            raise SigningError(f"error signing token: {exc}") from exc

    def verify(self, token: str) -> Claims:
        if not self._secret:
            raise SigningError("token secret is not configured")

        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise InvalidSignature("malformed token") from exc

        algorithm = header.get("alg")
        if algorithm != ALGORITHM:
            raise UnsupportedAlgorithm(f"unexpected signing algorithm: {algorithm!r}")

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                issuer=self._issuer,
                options={"require_exp": True, "require_iat": True, "require_sub": True},
            )
        except ExpiredSignatureError as exc:
            raise TokenExpired("token has expired") from exc
        except JWTClaimsError as exc:
            raise InvalidClaims(str(exc)) from exc
        except JWTError as exc:
            raise InvalidSignature(str(exc)) from exc

        return _claims_from_payload(payload)


def _claims_from_payload(payload: dict[str, Any]) -> Claims:
    try:
        subject = int(payload["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidClaims("subject is not a user id") from exc

    role = payload.get("userType")
    if not isinstance(role, str) or not UserRole.is_valid(role):
        raise InvalidClaims(f"unknown user type: {role!r}")

    return Claims(
        subject=subject,
        role=UserRole(role),
        issuer=str(payload.get("iss", "")),
        issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc),
        expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
    )
