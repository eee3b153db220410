"""Identity token and password hashing utilities."""

from .passwords import PasslibPasswordHasher, PasswordHasher
from .tokens import (
    Claims,
    InvalidClaims,
    InvalidSignature,
    SigningError,
    TokenError,
    TokenExpired,
    TokenService,
    UnsupportedAlgorithm,
)

__all__ = [
    "Claims",
    "InvalidClaims",
    "InvalidSignature",
    "PasslibPasswordHasher",
    "PasswordHasher",
    "SigningError",
    "TokenError",
    "TokenExpired",
    "TokenService",
    "UnsupportedAlgorithm",
]
