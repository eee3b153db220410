from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ticketdesk.core.errors import ForbiddenError, UnauthorizedError
from ticketdesk.security.tokens import SigningError, TokenError, TokenService
from ticketdesk.tickets.service import Viewer
from ticketdesk.users.models import UserRole

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True, slots=True)
class Identity:
    """Verified caller identity for the duration of one request."""

    user_id: int
    role: UserRole

    def as_viewer(self) -> Viewer:
        return Viewer(user_id=self.user_id, role=self.role)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def authenticate(token: str | None, tokens: TokenService) -> Identity:
    """Turn a raw bearer token into an identity or raise the matching HTTP error."""

    if not token:
        raise UnauthorizedError()

    try:
        claims = tokens.verify(token)
    except SigningError as exc:
        logger.error("token_verification_unavailable reason=server_misconfigured detail=%s", exc)
        raise ForbiddenError() from exc
    except TokenError as exc:
        # Clients only ever see "forbidden"; the reason stays in the logs.
        logger.info("token_rejected reason=%s detail=%s", type(exc).__name__, exc)
        raise ForbiddenError() from exc

    return Identity(user_id=claims.subject, role=claims.role)


async def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    request: Request,
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> Identity:
    cached = getattr(request.state, "identity", None)
    if isinstance(cached, Identity):
        return cached

    token = credentials.credentials if credentials is not None else None
    identity = authenticate(token, tokens)
    request.state.identity = identity
    return identity


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
