from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Protocol

from ticketdesk.core.errors import BadRequestError, ConflictError

from .models import User, UserRole
from .repository import DuplicateUserError, UserNotFoundError

if TYPE_CHECKING:
    from ticketdesk.security.passwords import PasswordHasher
    from ticketdesk.security.tokens import TokenService

logger = logging.getLogger(__name__)


class InvalidCredentialsError(BadRequestError):
    def __init__(self) -> None:
        super().__init__("invalid credentials")


class UserStore(Protocol):
    async def create_user(self, user: User) -> User:
        ...

    async def get_user_by_email(self, email: str) -> User:
        ...


@dataclass(slots=True)
class LoginResult:
    user: User
    token: str


class AuthService:
    """Account creation and credential exchange."""

    def __init__(self, repository: UserStore, *, hasher: PasswordHasher, tokens: TokenService) -> None:
        self._repository = repository
        self._hasher = hasher
        self._tokens = tokens

    async def create_user(self, user: User) -> User:
        _validate_new_user(user)

        hashed = self._hasher.hash(user.password)
        try:
            created = await self._repository.create_user(replace(user, password=hashed))
        except DuplicateUserError as exc:
            raise ConflictError("duplicate fields") from exc

        logger.info("user_created user_id=%s role=%s", created.id, UserRole(created.role).value)
        return replace(created, password="")

    async def login(self, email: str, password: str) -> LoginResult:
        if not email:
            raise BadRequestError("missing email")
        if not password:
            raise BadRequestError("missing password")

        try:
            user = await self._repository.get_user_by_email(email)
        except UserNotFoundError as exc:
            raise InvalidCredentialsError() from exc

        if not self._hasher.verify(password, user.password):
            logger.info("login_rejected user_id=%s", user.id)
            raise InvalidCredentialsError()

        token = self._tokens.issue(user)
        return LoginResult(user=replace(user, password=""), token=token)


def _validate_new_user(user: User) -> None:
    if not user.email:
        raise BadRequestError("missing email")
    if not user.name:
        raise BadRequestError("missing name")
    if not user.password:
        raise BadRequestError("missing password")
    role = user.role.value if isinstance(user.role, UserRole) else user.role
    if not role:
        raise BadRequestError("missing type")
    if not UserRole.is_valid(role):
        raise BadRequestError("invalid type")
