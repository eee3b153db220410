from __future__ import annotations

from typing import Protocol, Sequence

from .models import Ticket, TicketChange, TicketUpdate


class TicketStoreError(RuntimeError):
    """Base error raised by ticket store implementations."""


class TicketNotFoundError(TicketStoreError):
    """Raised when no ticket row matches the request."""


class NothingToUpdateError(TicketStoreError):
    """Raised when an update carries no field to set."""


class StaleTicketError(TicketStoreError):
    """Raised when a ticket changed after it was read by the caller."""


class TicketStore(Protocol):
    """Persistence contract the ticket service depends on."""

    async def save_ticket(self, ticket: Ticket) -> Ticket:
        ...

    async def get_ticket(self, ticket_id: int) -> Ticket:
        """Return the ticket or raise :class:`TicketNotFoundError`."""
        ...

    async def get_tickets(self, after_id: int, limit: int) -> Sequence[Ticket]:
        """Return up to ``limit`` tickets with ``id > after_id`` ordered by id."""
        ...

    async def get_tickets_by_creator(self, creator_id: int, after_id: int, limit: int) -> Sequence[Ticket]:
        ...

    async def update_ticket(self, ticket_id: int, update: TicketUpdate, *, expected_version: int) -> Ticket:
        """Apply ``update`` only if the stored version still equals ``expected_version``."""
        ...

    async def save_ticket_change(self, change: TicketChange) -> None:
        ...

    async def get_ticket_changes(self, creator_id: int) -> Sequence[TicketChange]:
        ...
