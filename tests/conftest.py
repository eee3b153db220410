from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from ticketdesk.core.config import Settings
from ticketdesk.main import create_app
from ticketdesk.security.tokens import TokenService
from ticketdesk.tickets.models import Ticket, TicketChange, TicketStatus, TicketType, TicketUpdate
from ticketdesk.tickets.ports import NothingToUpdateError, StaleTicketError, TicketNotFoundError
from ticketdesk.tickets.service import TicketService
from ticketdesk.users.models import User, UserRole
from ticketdesk.users.repository import DuplicateUserError, UserNotFoundError
from ticketdesk.users.service import AuthService

TEST_SECRET = "test-secret"


class InMemoryTicketStore:
    """Ticket store double that mimics the PostgreSQL repository's contract."""

    def __init__(self) -> None:
        self.tickets: dict[int, Ticket] = {}
        self.changes: list[TicketChange] = []
        self.fail_change_writes = False
        self._next_id = 1

    async def save_ticket(self, ticket: Ticket) -> Ticket:
        now = datetime.now(timezone.utc)
        stored = replace(ticket, id=self._next_id, created_at=now, updated_at=now, version=1)
        self._next_id += 1
        self.tickets[stored.id] = stored
        return replace(stored)

    async def get_ticket(self, ticket_id: int) -> Ticket:
        if ticket_id not in self.tickets:
            raise TicketNotFoundError(f"Ticket {ticket_id} not found")
        return replace(self.tickets[ticket_id])

    async def get_tickets(self, after_id: int, limit: int) -> list[Ticket]:
        return [replace(t) for tid, t in sorted(self.tickets.items()) if tid > after_id][:limit]

    async def get_tickets_by_creator(self, creator_id: int, after_id: int, limit: int) -> list[Ticket]:
        return [
            replace(t)
            for tid, t in sorted(self.tickets.items())
            if tid > after_id and t.creator_id == creator_id
        ][:limit]

    async def update_ticket(self, ticket_id: int, update: TicketUpdate, *, expected_version: int) -> Ticket:
        if update.is_empty():
            raise NothingToUpdateError("nothing to update")
        current = self.tickets.get(ticket_id)
        if current is None:
            raise TicketNotFoundError(f"Ticket {ticket_id} not found")
        if current.version != expected_version:
            raise StaleTicketError(f"Ticket {ticket_id} changed")

        now = datetime.now(timezone.utc)
        stored = replace(current, updated_at=now, version=current.version + 1)
        if update.owner_id is not None:
            stored.owner_id = update.owner_id
        if update.status is not None:
            stored.status = update.status
            stored.resolved_at = (current.resolved_at or now) if update.status == TicketStatus.RESOLVED else None
        self.tickets[ticket_id] = stored
        return replace(stored)

    async def save_ticket_change(self, change: TicketChange) -> None:
        if self.fail_change_writes:
            raise ConnectionError("tickets_changes unavailable")
        self.changes.append(replace(change, changed_at=datetime.now(timezone.utc)))

    async def get_ticket_changes(self, creator_id: int) -> list[TicketChange]:
        return [change for change in self.changes if change.creator_id == creator_id]


class InMemoryUserStore:
    def __init__(self) -> None:
        self.users: dict[int, User] = {}
        self._next_id = 1

    async def create_user(self, user: User) -> User:
        if any(existing.email == user.email for existing in self.users.values()):
            raise DuplicateUserError(user.email)
        stored = replace(user, id=self._next_id, created_at=datetime.now(timezone.utc))
        self._next_id += 1
        self.users[stored.id] = stored
        return replace(stored)

    async def get_user_by_email(self, email: str) -> User:
        for user in self.users.values():
            if user.email == email:
                return replace(user)
        raise UserNotFoundError(email)


class PlainHasher:
    """Reversible stand-in for the passlib hasher; keeps tests fast."""

    def hash(self, password: str) -> str:
        return f"hashed:{password}"

    def verify(self, password: str, hashed: str) -> bool:
        return hashed == f"hashed:{password}"


def make_ticket(
    *,
    ticket_id: int = 1,
    creator_id: int = 7,
    status: TicketStatus = TicketStatus.PENDING,
    version: int = 1,
) -> Ticket:
    now = datetime.now(timezone.utc)
    return Ticket(
        id=ticket_id,
        title="Printer offline",
        description="The third floor printer does not respond",
        type=TicketType.SUPPORT,
        severity=2,
        priority=3,
        status=status,
        creator_id=creator_id,
        created_at=now,
        updated_at=now,
        version=version,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, token_secret=TEST_SECRET)


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(TEST_SECRET)


@pytest.fixture
def ticket_store() -> InMemoryTicketStore:
    return InMemoryTicketStore()


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def plain_hasher() -> PlainHasher:
    return PlainHasher()


@pytest.fixture
def app(settings, ticket_store, user_store, plain_hasher):
    app = create_app(settings)
    app.state.ticket_service = TicketService(ticket_store)
    app.state.auth_service = AuthService(user_store, hasher=plain_hasher, tokens=app.state.token_service)
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_headers(token_service):
    def build(user_id: int, role: UserRole = UserRole.USER) -> dict[str, str]:
        user = User(name="n", email="e@x.com", password="", role=role, id=user_id)
        return {"Authorization": f"Bearer {token_service.issue(user)}"}

    return build


@pytest.fixture
def ticket_factory():
    return make_ticket
