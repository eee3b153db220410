from __future__ import annotations

from typing import Iterable, Protocol

from passlib.context import CryptContext


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str:
        ...

    def verify(self, password: str, hashed: str) -> bool:
        ...


class PasslibPasswordHasher:
    """Password hashing backed by a passlib ``CryptContext``."""

    def __init__(self, schemes: Iterable[str] = ("argon2",)) -> None:
        self._context = CryptContext(schemes=list(schemes), deprecated="auto")

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, hashed: str) -> bool:
        if not hashed:
            return False
        try:
            return self._context.verify(password, hashed)
        except ValueError:
            # Stored value is not a hash any configured scheme recognises.
            return False
