"""Ticket domain models, store contract and lifecycle service."""

from .models import Ticket, TicketChange, TicketDraft, TicketPage, TicketStatus, TicketType, TicketUpdate
from .patch import PatchOperation, SetOwner, SetStatus, parse_patch_request
from .ports import NothingToUpdateError, StaleTicketError, TicketNotFoundError, TicketStore, TicketStoreError
from .service import InvalidFieldError, MissingFieldError, TicketService, Viewer

__all__ = [
    "InvalidFieldError",
    "MissingFieldError",
    "NothingToUpdateError",
    "PatchOperation",
    "SetOwner",
    "SetStatus",
    "StaleTicketError",
    "Ticket",
    "TicketChange",
    "TicketDraft",
    "TicketNotFoundError",
    "TicketPage",
    "TicketService",
    "TicketStatus",
    "TicketStore",
    "TicketStoreError",
    "TicketType",
    "TicketUpdate",
    "Viewer",
]
