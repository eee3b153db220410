from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class TicketType(str, Enum):
    """Kinds of request a ticket can represent."""

    SUPPORT = "support"
    SUGGESTION = "suggestion"
    ASSISTANCE = "assistance"

    @classmethod
    def is_valid(cls, value: str) -> bool:
        return value in cls._value2member_map_


class TicketStatus(str, Enum):
    """Supported states for a ticket's lifecycle."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"

    @classmethod
    def initial_state(cls) -> "TicketStatus":
        return cls.PENDING

    @classmethod
    def is_valid(cls, value: str) -> bool:
        return value in cls._value2member_map_


@dataclass(slots=True)
class TicketDraft:
    """Caller supplied fields for a new ticket."""

    title: str = ""
    description: str = ""
    type: str = ""
    severity: int = 0
    priority: int = 0
    status: str | None = None


@dataclass(slots=True)
class Ticket:
    """Aggregate representing a support ticket entry."""

    id: int
    title: str
    description: str
    type: TicketType
    severity: int
    priority: int
    status: TicketStatus
    creator_id: int
    owner_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    resolved_at: datetime | None = None
    version: int = 1


@dataclass(slots=True)
class TicketUpdate:
    """Fields to overwrite on an existing ticket; ``None`` leaves a column untouched."""

    owner_id: int | None = None
    status: TicketStatus | None = None

    def is_empty(self) -> bool:
        return self.owner_id is None and self.status is None


@dataclass(frozen=True, slots=True)
class TicketChange:
    """Append-only record of a ticket's status change."""

    ticket_id: int
    creator_id: int
    to_status: TicketStatus
    changed_at: datetime | None = field(default=None, compare=False)


@dataclass(slots=True)
class TicketPage:
    """One page of tickets ordered by id, plus the cursor to continue from."""

    tickets: list[Ticket]
    last: int
    total: int

    @classmethod
    def empty(cls) -> "TicketPage":
        return cls(tickets=[], last=0, total=0)
