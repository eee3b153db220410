from __future__ import annotations

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field

from ticketdesk.dependencies.services import get_auth_service
from ticketdesk.users.models import User, UserRole
from ticketdesk.users.service import AuthService

router = APIRouter(tags=["auth"])


class SignupRequest(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class UserResponse(BaseModel):
    """Public view of an account; the password hash is never part of it."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int = Field(alias="userID")
    name: str
    email: str
    role: UserRole = Field(alias="userType")
    created_at: datetime | None = Field(default=None, alias="createdAt")


class LoginResponse(BaseModel):
    user: UserResponse
    token: str


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def signup(payload: SignupRequest, service: AuthServiceDep) -> UserResponse:
    # Self-service accounts are always plain users; admins are provisioned elsewhere.
    user = User(name=payload.name, email=payload.email, password=payload.password, role=UserRole.USER)
    created = await service.create_user(user)
    return UserResponse.model_validate(created)


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, service: AuthServiceDep) -> LoginResponse:
    result = await service.login(payload.email, payload.password)
    return LoginResponse(user=UserResponse.model_validate(result.user), token=result.token)
