"""HTTP route definitions for the user service."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr, Field, StringConstraints, field_validator

from schemas import UserProfile

from ..config import get_settings
from ..domain.contracts import LoginInput, RegisterInput
from ..domain.errors import AccountError, AlreadyExistsError, InactiveAccountError, InvalidCredentialsError
from ..domain.service import AccountService
from ..security.passwords import MAX_PASSWORD_BYTES
from ..security.tokens import UserClaims
from .dependencies import enforce_rate_limit, get_current_user, get_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix=get_settings().api_prefix)

_ERROR_STATUS: dict[type[AccountError], int] = {
    AlreadyExistsError: status.HTTP_409_CONFLICT,
    InvalidCredentialsError: status.HTTP_401_UNAUTHORIZED,
    InactiveAccountError: status.HTTP_401_UNAUTHORIZED,
}

DisplayName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]


class RegisterRequest(BaseModel):
    """Payload accepted when registering a user."""

    email: EmailStr
    password: str = Field(..., min_length=6)
    name: DisplayName

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class LoginRequest(BaseModel):
    """Credentials accepted by the login endpoint."""

    email: EmailStr
    password: str = Field(..., min_length=1)


def _public(view: dict[str, Any]) -> dict[str, Any]:
    """Re-validate a redacted view so only profile fields reach the wire."""
    return UserProfile.model_validate(view).model_dump(mode="json")


def _error_response(exc: AccountError) -> JSONResponse:
    status_code = _ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(status_code=status_code, content={"success": False, "message": str(exc)})


@router.post(
    "/auth/register",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_rate_limit)],
)
def register(payload: RegisterRequest, service: AccountService = Depends(get_service)) -> Any:
    """Create an account and return its first session token."""
    try:
        result = service.register(
            RegisterInput(email=payload.email, password=payload.password, name=payload.name)
        )
    except AccountError as exc:
        logger.info("registration rejected: %s", exc)
        return _error_response(exc)
    return {"success": True, "message": "User registered successfully", "data": result.to_dict()}


@router.post("/auth/login", dependencies=[Depends(enforce_rate_limit)])
def login(payload: LoginRequest, service: AccountService = Depends(get_service)) -> Any:
    """Exchange credentials for a session token."""
    try:
        result = service.login(LoginInput(email=payload.email, password=payload.password))
    except AccountError as exc:
        logger.info("login rejected: %s", exc)
        return _error_response(exc)
    return {"success": True, "message": "Login successful", "data": result.to_dict()}


@router.get("/profile")
def get_profile(
    claims: UserClaims = Depends(get_current_user),
    service: AccountService = Depends(get_service),
) -> Any:
    """Return the authenticated user's profile."""
    user = service.get_profile(claims.user_id)
    if user is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"success": False, "message": "User not found"},
        )
    return {"success": True, "data": _public(user)}


@router.get("/profile/financial")
def get_profile_with_financial_data(
    claims: UserClaims = Depends(get_current_user),
    service: AccountService = Depends(get_service),
) -> Any:
    """Return the profile merged with optional wallet balance and transactions."""
    profile = service.get_profile_with_financial_data(claims.user_id)
    if profile is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"success": False, "message": "User not found"},
        )
    return {
        "success": True,
        "data": {"user": _public(profile["user"]), "wallet": profile["wallet"]},
    }


@router.get("/users")
def list_users(
    _claims: UserClaims = Depends(get_current_user),
    service: AccountService = Depends(get_service),
) -> Any:
    """List every user, newest first."""
    users = [_public(view) for view in service.get_all_users()]
    return {"success": True, "data": users, "count": len(users)}
