"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class RegisterInput:
    """Validated inputs required to register a new user."""

    email: str
    password: str
    name: str


@dataclass(slots=True)
class LoginInput:
    """Credentials presented at login."""

    email: str
    password: str


@dataclass(slots=True)
class CreateAccountInput:
    """Row values handed to the repository; the password is already hashed."""

    email: str
    password_hash: str
    name: str
    is_active: bool = True


@dataclass(slots=True)
class AuthResult:
    """Token plus identity block returned by register and login."""

    token: str
    user: dict[str, str]

    def to_dict(self) -> dict[str, object]:
        return {"token": self.token, "user": dict(self.user)}
