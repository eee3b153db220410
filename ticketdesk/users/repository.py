from __future__ import annotations

from typing import Any

import asyncpg

from .models import User, UserRole


class UserRepositoryError(RuntimeError):
    """Base error for user persistence."""


class UserNotFoundError(UserRepositoryError):
    """Raised when no user matches the lookup."""


class DuplicateUserError(UserRepositoryError):
    """Raised when a unique column (email) already holds the value."""


class UserRepository:
    """Data access layer for user accounts."""

    _CREATE_USERS_SQL = """
    CREATE TABLE IF NOT EXISTS users (
        id BIGSERIAL PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        password TEXT NOT NULL,
        user_type TEXT NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """

    _INSERT_USER_SQL = """
    INSERT INTO users (name, email, password, user_type)
    VALUES ($1, $2, $3, $4)
    RETURNING id, name, email, password, user_type, created_at
    """

    _SELECT_USER_BY_EMAIL_SQL = """
    SELECT id, name, email, password, user_type, created_at
    FROM users
    WHERE email = $1
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        if pool is None:
            raise UserRepositoryError("missing pool")
        self._pool = pool

    async def ensure_schema(self) -> None:
        async with self._pool.acquire() as connection:
            await connection.execute(self._CREATE_USERS_SQL)

    async def create_user(self, user: User) -> User:
        async with self._pool.acquire() as connection:
            try:
                row = await connection.fetchrow(
                    self._INSERT_USER_SQL,
                    user.name,
                    user.email,
                    user.password,
                    UserRole(user.role).value,
                )
            except asyncpg.UniqueViolationError as exc:
                raise DuplicateUserError(f"User with email {user.email} already exists") from exc
        if row is None:
            raise UserRepositoryError("Failed to insert user")
        return self._row_to_user(row)

    async def get_user_by_email(self, email: str) -> User:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(self._SELECT_USER_BY_EMAIL_SQL, email)
        if row is None:
            raise UserNotFoundError(f"User {email} not found")
        return self._row_to_user(row)

    @staticmethod
    def _row_to_user(row: Any) -> User:
        return User(
            id=int(row["id"]),
            name=str(row["name"]),
            email=str(row["email"]),
            password=str(row["password"]),
            role=UserRole(str(row["user_type"])),
            created_at=row["created_at"],
        )
