from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Path, Query, status
from pydantic import BaseModel, ConfigDict, Field

from ticketdesk.core.errors import BadRequestError
from ticketdesk.dependencies.auth import CurrentIdentity
from ticketdesk.dependencies.services import get_ticket_service
from ticketdesk.tickets.models import Ticket, TicketChange, TicketDraft, TicketPage, TicketStatus, TicketType
from ticketdesk.tickets.patch import parse_patch_request
from ticketdesk.tickets.service import TicketService

router = APIRouter(tags=["tickets"])

# ticket ids are BIGSERIAL
MAX_TICKET_ID = 2**63 - 1


class TicketCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    description: str = ""
    type: str = Field(default="", alias="ticketType")
    severity: int = 0
    priority: int = 0
    # Accepted for compatibility; new tickets always start as pending.
    status: str | None = None

    def to_draft(self) -> TicketDraft:
        return TicketDraft(
            title=self.title,
            description=self.description,
            type=self.type,
            severity=self.severity,
            priority=self.priority,
            status=self.status,
        )


class PatchOperationRequest(BaseModel):
    op: str = ""
    path: str = ""
    value: Any = None


class TicketResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int = Field(alias="ticketID")
    title: str
    description: str
    type: TicketType = Field(alias="ticketType")
    severity: int
    priority: int
    status: TicketStatus
    creator_id: int = Field(alias="creatorID")
    owner_id: int | None = Field(default=None, alias="ownerID")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
    resolved_at: datetime | None = Field(default=None, alias="resolvedAt")
    version: int


class TicketPageResponse(BaseModel):
    tickets: list[TicketResponse]
    last: int
    total: int


class TicketChangeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    ticket_id: int = Field(alias="ticketID")
    creator_id: int = Field(alias="creatorID")
    to_status: TicketStatus = Field(alias="to")
    changed_at: datetime | None = Field(default=None, alias="changedAt")


TicketServiceDep = Annotated[TicketService, Depends(get_ticket_service)]
TicketID = Annotated[int, Path(gt=0, le=MAX_TICKET_ID)]


def _to_response(ticket: Ticket) -> TicketResponse:
    return TicketResponse.model_validate(ticket)


def _to_page_response(page: TicketPage) -> TicketPageResponse:
    return TicketPageResponse(
        tickets=[_to_response(ticket) for ticket in page.tickets],
        last=page.last,
        total=page.total,
    )


def _to_change_response(change: TicketChange) -> TicketChangeResponse:
    return TicketChangeResponse.model_validate(change)


def _parse_after_id(raw: str | None) -> int:
    if not raw:
        return 0
    try:
        return int(raw)
    except ValueError as exc:
        raise BadRequestError("invalid pagination start id") from exc


@router.post("/tickets", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    payload: TicketCreateRequest,
    service: TicketServiceDep,
    identity: CurrentIdentity,
) -> TicketResponse:
    ticket = await service.create_ticket(payload.to_draft(), identity.user_id)
    return _to_response(ticket)


@router.get("/tickets", response_model=TicketPageResponse)
async def list_tickets(
    service: TicketServiceDep,
    identity: CurrentIdentity,
    after_id: str | None = Query(default=None),
) -> TicketPageResponse:
    page = await service.get_tickets(identity.user_id, identity.role, _parse_after_id(after_id))
    return _to_page_response(page)


@router.get("/tickets/{ticket_id}", response_model=TicketResponse)
async def get_ticket(ticket_id: TicketID, service: TicketServiceDep, identity: CurrentIdentity) -> TicketResponse:
    ticket = await service.get_ticket(ticket_id, viewer=identity.as_viewer())
    return _to_response(ticket)


@router.patch("/tickets/{ticket_id}", response_model=TicketResponse)
async def update_ticket(
    ticket_id: TicketID,
    payload: Annotated[list[PatchOperationRequest], Body()],
    service: TicketServiceDep,
    identity: CurrentIdentity,
) -> TicketResponse:
    operations = parse_patch_request(operation.model_dump() for operation in payload)
    ticket = await service.update_ticket(ticket_id, operations, viewer=identity.as_viewer())
    return _to_response(ticket)


@router.get("/changes", response_model=list[TicketChangeResponse])
async def get_changes(service: TicketServiceDep, identity: CurrentIdentity) -> list[TicketChangeResponse]:
    changes = await service.get_ticket_changes(identity.user_id)
    return [_to_change_response(change) for change in changes]
