from fastapi import APIRouter

from ticketdesk.dependencies.auth import CurrentIdentity

router = APIRouter(prefix="/ping", tags=["health"])


@router.get("", summary="Public health probe")
async def ping() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/secure", summary="Token protected probe")
async def secure_ping(identity: CurrentIdentity) -> dict[str, str]:
    return {"status": "ok", "user": str(identity.user_id), "role": identity.role.value}
