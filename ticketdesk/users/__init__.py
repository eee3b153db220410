"""User accounts, persistence and authentication."""

from .models import User, UserRole
from .repository import DuplicateUserError, UserNotFoundError, UserRepository
from .service import AuthService, InvalidCredentialsError, LoginResult

__all__ = [
    "AuthService",
    "DuplicateUserError",
    "InvalidCredentialsError",
    "LoginResult",
    "User",
    "UserNotFoundError",
    "UserRepository",
    "UserRole",
]
