"""Partial-update operations for tickets.

Requests arrive as a JSON array of ``{"op", "path", "value"}`` objects. They
are parsed once, here, into :class:`SetOwner` / :class:`SetStatus` values so
the service never inspects untyped payloads. Only the ``update`` operation
exists, and only the ``ownerID`` and ``status`` paths are applied; any other
path is skipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Union

from ticketdesk.core.errors import BadRequestError

from .models import TicketStatus

logger = logging.getLogger(__name__)

UPDATE_OPERATION = "update"
OWNER_PATH = "ownerID"
STATUS_PATH = "status"


class MissingPatchOperation(BadRequestError):
    def __init__(self) -> None:
        super().__init__("missing patch operation")


class MissingPatchPath(BadRequestError):
    def __init__(self) -> None:
        super().__init__("missing patch path")


class MissingPatchValue(BadRequestError):
    def __init__(self) -> None:
        super().__init__("missing patch value")


class InvalidPatchOperation(BadRequestError):
    def __init__(self, op: str) -> None:
        super().__init__(f"invalid patch operation: {op}")
        self.op = op


class InvalidOwnerID(BadRequestError):
    def __init__(self) -> None:
        super().__init__("invalid owner id")


class InvalidStatus(BadRequestError):
    def __init__(self) -> None:
        super().__init__("invalid status")


@dataclass(frozen=True, slots=True)
class SetOwner:
    owner_id: int


@dataclass(frozen=True, slots=True)
class SetStatus:
    status: TicketStatus


PatchOperation = Union[SetOwner, SetStatus]


def parse_patch_operation(raw: Mapping[str, Any]) -> PatchOperation | None:
    """Validate one wire operation; returns ``None`` for paths that are not patchable."""

    op = raw.get("op")
    path = raw.get("path")
    value = raw.get("value")

    if not op:
        raise MissingPatchOperation()
    if not path:
        raise MissingPatchPath()
    if value is None or value == "":
        raise MissingPatchValue()
    if op != UPDATE_OPERATION:
        raise InvalidPatchOperation(str(op))

    if path == OWNER_PATH:
        # bool is an int subclass but never a user id
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidOwnerID()
        return SetOwner(owner_id=value)

    if path == STATUS_PATH:
        if not isinstance(value, str) or not TicketStatus.is_valid(value):
            raise InvalidStatus()
        return SetStatus(status=TicketStatus(value))

    logger.debug("patch_path_skipped path=%s", path)
    return None


def parse_patch_request(raw_operations: Iterable[Mapping[str, Any]]) -> list[PatchOperation]:
    """Parse a patch request, keeping the order in which operations were given."""

    operations: list[PatchOperation] = []
    for raw in raw_operations:
        parsed = parse_patch_operation(raw)
        if parsed is not None:
            operations.append(parsed)
    return operations
