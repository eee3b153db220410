from __future__ import annotations

from fastapi import Request

from ticketdesk.core.errors import ServiceUnavailableError
from ticketdesk.tickets.service import TicketService
from ticketdesk.users.service import AuthService


async def get_ticket_service(request: Request) -> TicketService:
    service = getattr(request.app.state, "ticket_service", None)
    if service is None:
        raise ServiceUnavailableError("ticket service is not configured")
    return service


async def get_auth_service(request: Request) -> AuthService:
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        raise ServiceUnavailableError("auth service is not configured")
    return service
