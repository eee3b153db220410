from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from ticketdesk.core.errors import BadRequestError, ConflictError, NotFoundError
from ticketdesk.users.models import UserRole

from .models import Ticket, TicketChange, TicketDraft, TicketPage, TicketStatus, TicketType, TicketUpdate
from .patch import PatchOperation, SetOwner, SetStatus
from .ports import NothingToUpdateError, StaleTicketError, TicketNotFoundError, TicketStore

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 1000
MIN_LEVEL = 1
MAX_LEVEL = 4


class MissingFieldError(BadRequestError):
    """Raised when a required ticket field is absent."""

    def __init__(self, field_name: str) -> None:
        super().__init__(f"missing {field_name}")
        self.field_name = field_name


class InvalidFieldError(BadRequestError):
    """Raised when a ticket field is present but unusable."""

    def __init__(self, field_name: str) -> None:
        super().__init__(f"invalid {field_name}")
        self.field_name = field_name


@dataclass(frozen=True, slots=True)
class Viewer:
    """Caller on whose behalf a ticket is read or changed."""

    user_id: int
    role: UserRole

    def can_access(self, ticket: Ticket) -> bool:
        return self.role == UserRole.ADMIN or ticket.creator_id == self.user_id


class TicketService:
    """High level orchestration for ticket creation, listing and patching."""

    def __init__(self, store: TicketStore, *, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self._store = store
        self._page_size = page_size

    async def create_ticket(self, draft: TicketDraft, creator_id: int) -> Ticket:
        _validate_draft(draft, creator_id)

        ticket = Ticket(
            id=0,
            title=draft.title,
            description=draft.description,
            type=TicketType(draft.type),
            severity=draft.severity,
            priority=draft.priority,
            status=TicketStatus.initial_state(),
            creator_id=creator_id,
        )
        created = await self._store.save_ticket(ticket)
        logger.info("ticket_created ticket_id=%s creator_id=%s", created.id, creator_id)
        return created

    async def get_tickets(self, user_id: int, role: UserRole, after_id: int = 0) -> TicketPage:
        try:
            if role == UserRole.ADMIN:
                tickets = await self._store.get_tickets(after_id, self._page_size)
            else:
                tickets = await self._store.get_tickets_by_creator(user_id, after_id, self._page_size)
        except TicketNotFoundError:
            return TicketPage.empty()

        if not tickets:
            return TicketPage.empty()

        items = list(tickets)
        return TicketPage(tickets=items, last=items[-1].id, total=len(items))

    async def get_ticket(self, ticket_id: int, *, viewer: Viewer | None = None) -> Ticket:
        try:
            ticket = await self._store.get_ticket(ticket_id)
        except TicketNotFoundError as exc:
            raise NotFoundError("ticket") from exc

        if viewer is not None and not viewer.can_access(ticket):
            logger.info("ticket_access_denied ticket_id=%s user_id=%s", ticket_id, viewer.user_id)
            raise NotFoundError("ticket")
        return ticket

    async def update_ticket(
        self,
        ticket_id: int,
        operations: Sequence[PatchOperation],
        *,
        viewer: Viewer | None = None,
    ) -> Ticket:
        ticket = await self.get_ticket(ticket_id, viewer=viewer)

        update = TicketUpdate()
        new_status: TicketStatus | None = None
        for operation in operations:
            if isinstance(operation, SetOwner):
                update.owner_id = operation.owner_id
            elif isinstance(operation, SetStatus):
                update.status = operation.status
                new_status = operation.status

        try:
            updated = await self._store.update_ticket(ticket.id, update, expected_version=ticket.version)
        except NothingToUpdateError as exc:
            raise BadRequestError("nothing to update") from exc
        except TicketNotFoundError as exc:
            raise NotFoundError("ticket") from exc
        except StaleTicketError as exc:
            raise ConflictError("ticket was modified by another request") from exc

        if new_status is not None:
            await self._record_change(
                TicketChange(ticket_id=ticket.id, creator_id=ticket.creator_id, to_status=new_status)
            )

        return updated

    async def get_ticket_changes(self, creator_id: int) -> list[TicketChange]:
        return list(await self._store.get_ticket_changes(creator_id))

    async def _record_change(self, change: TicketChange) -> None:
        # The ticket update has already been committed; a failed audit write
        # must not fail the request.
        try:
            await self._store.save_ticket_change(change)
        except Exception:
            logger.exception(
                "ticket_change_append_failed ticket_id=%s to_status=%s",
                change.ticket_id,
                change.to_status.value,
            )


def _validate_draft(draft: TicketDraft, creator_id: int) -> None:
    if not draft.title:
        raise MissingFieldError("title")
    if not draft.description:
        raise MissingFieldError("description")
    if not draft.type:
        raise MissingFieldError("type")
    if not TicketType.is_valid(draft.type):
        raise InvalidFieldError("type")
    if not draft.severity:
        raise MissingFieldError("severity")
    if not MIN_LEVEL <= draft.severity <= MAX_LEVEL:
        raise InvalidFieldError("severity")
    if not draft.priority:
        raise MissingFieldError("priority")
    if not MIN_LEVEL <= draft.priority <= MAX_LEVEL:
        raise InvalidFieldError("priority")
    if not creator_id:
        raise MissingFieldError("creator id")
