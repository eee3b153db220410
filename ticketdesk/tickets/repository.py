from __future__ import annotations

from typing import Any

import asyncpg

from .models import Ticket, TicketChange, TicketStatus, TicketType, TicketUpdate
from .ports import NothingToUpdateError, StaleTicketError, TicketNotFoundError, TicketStoreError

_TICKET_COLUMNS = (
    "id, title, ticket_description, ticket_type, severity, ticket_priority, ticket_status, "
    "creator_id, owner_id, created_at, updated_at, resolved_at, version"
)


class TicketRepository:
    """PostgreSQL implementation of the ticket store."""

    _CREATE_TICKETS_SQL = """
    CREATE TABLE IF NOT EXISTS tickets (
        id BIGSERIAL PRIMARY KEY,
        title TEXT NOT NULL,
        ticket_description TEXT NOT NULL,
        ticket_type TEXT NOT NULL,
        severity SMALLINT NOT NULL,
        ticket_priority SMALLINT NOT NULL,
        ticket_status TEXT NOT NULL,
        creator_id BIGINT NOT NULL REFERENCES users(id),
        owner_id BIGINT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
        resolved_at TIMESTAMPTZ NULL,
        version INTEGER NOT NULL DEFAULT 1
    )
    """

    _CREATE_CREATOR_INDEX_SQL = """
    CREATE INDEX IF NOT EXISTS tickets_creator_id_idx ON tickets (creator_id, id)
    """

    _CREATE_CHANGES_SQL = """
    CREATE TABLE IF NOT EXISTS tickets_changes (
        id BIGSERIAL PRIMARY KEY,
        ticket_id BIGINT NOT NULL REFERENCES tickets(id) ON DELETE CASCADE,
        creator_id BIGINT NOT NULL,
        to_status TEXT NOT NULL,
        changed_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """

    _INSERT_TICKET_SQL = f"""
    INSERT INTO tickets (title, ticket_description, ticket_type, severity, ticket_priority, ticket_status, creator_id)
    VALUES ($1, $2, $3, $4, $5, $6, $7)
    RETURNING {_TICKET_COLUMNS}
    """

    _SELECT_TICKET_SQL = f"""
    SELECT {_TICKET_COLUMNS}
    FROM tickets
    WHERE id = $1
    """

    _LIST_TICKETS_SQL = f"""
    SELECT {_TICKET_COLUMNS}
    FROM tickets
    WHERE id > $1
    ORDER BY id ASC
    LIMIT $2
    """

    _LIST_TICKETS_BY_CREATOR_SQL = f"""
    SELECT {_TICKET_COLUMNS}
    FROM tickets
    WHERE creator_id = $1 AND id > $2
    ORDER BY id ASC
    LIMIT $3
    """

    _SELECT_VERSION_SQL = """
    SELECT version FROM tickets WHERE id = $1
    """

    _INSERT_CHANGE_SQL = """
    INSERT INTO tickets_changes (ticket_id, creator_id, to_status)
    VALUES ($1, $2, $3)
    """

    _SELECT_CHANGES_SQL = """
    SELECT ticket_id, creator_id, to_status, changed_at
    FROM tickets_changes
    WHERE creator_id = $1
    ORDER BY changed_at ASC, id ASC
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        if pool is None:
            raise TicketStoreError("missing pool")
        self._pool = pool

    async def ensure_schema(self) -> None:
        async with self._pool.acquire() as connection:
            await connection.execute(self._CREATE_TICKETS_SQL)
            await connection.execute(self._CREATE_CREATOR_INDEX_SQL)
            await connection.execute(self._CREATE_CHANGES_SQL)

    async def save_ticket(self, ticket: Ticket) -> Ticket:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(
                self._INSERT_TICKET_SQL,
                ticket.title,
                ticket.description,
                TicketType(ticket.type).value,
                ticket.severity,
                ticket.priority,
                TicketStatus(ticket.status).value,
                ticket.creator_id,
            )
        if row is None:
            raise TicketStoreError("Failed to insert ticket")
        return self._row_to_ticket(row)

    async def get_ticket(self, ticket_id: int) -> Ticket:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(self._SELECT_TICKET_SQL, ticket_id)
        if row is None:
            raise TicketNotFoundError(f"Ticket {ticket_id} not found")
        return self._row_to_ticket(row)

    async def get_tickets(self, after_id: int, limit: int) -> list[Ticket]:
        async with self._pool.acquire() as connection:
            rows = await connection.fetch(self._LIST_TICKETS_SQL, after_id, limit)
        return [self._row_to_ticket(row) for row in rows]

    async def get_tickets_by_creator(self, creator_id: int, after_id: int, limit: int) -> list[Ticket]:
        async with self._pool.acquire() as connection:
            rows = await connection.fetch(self._LIST_TICKETS_BY_CREATOR_SQL, creator_id, after_id, limit)
        return [self._row_to_ticket(row) for row in rows]

    async def update_ticket(self, ticket_id: int, update: TicketUpdate, *, expected_version: int) -> Ticket:
        if update.is_empty():
            raise NothingToUpdateError(f"Nothing to update on ticket {ticket_id}")

        query, params = self._build_update(ticket_id, update, expected_version)
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(query, *params)
            if row is None:
                current = await connection.fetchval(self._SELECT_VERSION_SQL, ticket_id)
                if current is None:
                    raise TicketNotFoundError(f"Ticket {ticket_id} not found")
                raise StaleTicketError(
                    f"Ticket {ticket_id} is at version {current}, expected {expected_version}"
                )
        return self._row_to_ticket(row)

    async def save_ticket_change(self, change: TicketChange) -> None:
        async with self._pool.acquire() as connection:
            await connection.execute(
                self._INSERT_CHANGE_SQL,
                change.ticket_id,
                change.creator_id,
                TicketStatus(change.to_status).value,
            )

    async def get_ticket_changes(self, creator_id: int) -> list[TicketChange]:
        async with self._pool.acquire() as connection:
            rows = await connection.fetch(self._SELECT_CHANGES_SQL, creator_id)
        return [self._row_to_change(row) for row in rows]

    @staticmethod
    def _build_update(ticket_id: int, update: TicketUpdate, expected_version: int) -> tuple[str, list[Any]]:
        params: list[Any] = [ticket_id, expected_version]
        assignments: list[str] = []

        if update.owner_id is not None:
            params.append(update.owner_id)
            assignments.append(f"owner_id = ${len(params)}")

        if update.status is not None:
            params.append(update.status.value)
            placeholder = f"${len(params)}"
            assignments.append(f"ticket_status = {placeholder}")
            assignments.append(
                f"resolved_at = CASE WHEN {placeholder} = '{TicketStatus.RESOLVED.value}' "
                "THEN COALESCE(resolved_at, CURRENT_TIMESTAMP) ELSE NULL END"
            )

        assignments.append("updated_at = CURRENT_TIMESTAMP")
        assignments.append("version = version + 1")

        query = (
            f"UPDATE tickets SET {', '.join(assignments)} "
            f"WHERE id = $1 AND version = $2 "
            f"RETURNING {_TICKET_COLUMNS}"
        )
        return query, params

    @staticmethod
    def _row_to_ticket(row: Any) -> Ticket:
        owner_id = row["owner_id"]
        return Ticket(
            id=int(row["id"]),
            title=str(row["title"]),
            description=str(row["ticket_description"]),
            type=TicketType(str(row["ticket_type"])),
            severity=int(row["severity"]),
            priority=int(row["ticket_priority"]),
            status=TicketStatus(str(row["ticket_status"])),
            creator_id=int(row["creator_id"]),
            owner_id=int(owner_id) if owner_id is not None else None,
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            resolved_at=row["resolved_at"],
            version=int(row["version"]),
        )

    @staticmethod
    def _row_to_change(row: Any) -> TicketChange:
        return TicketChange(
            ticket_id=int(row["ticket_id"]),
            creator_id=int(row["creator_id"]),
            to_status=TicketStatus(str(row["to_status"])),
            changed_at=row["changed_at"],
        )
