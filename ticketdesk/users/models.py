from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class UserRole(str, Enum):
    """Supported roles."""

    ADMIN = "admin"
    USER = "user"

    @classmethod
    def is_valid(cls, value: str) -> bool:
        return value in cls._value2member_map_


@dataclass(slots=True)
class User:
    """Application account. ``password`` only ever holds a hash once stored."""

    name: str
    email: str
    password: str
    role: UserRole = UserRole.USER
    id: int = 0
    created_at: datetime | None = None
