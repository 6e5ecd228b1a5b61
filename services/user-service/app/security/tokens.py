"""Utilities for issuing and validating user and service JWTs."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any

import jwt

from ..config import Settings
from ..domain.errors import InvalidTokenError
from ..metrics import TOKENS_REJECTED

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
USER_AUDIENCE = "user"
SERVICE_AUDIENCE = "internal"


@dataclass(frozen=True, slots=True)
class UserClaims:
    user_id: str
    email: str


@dataclass(frozen=True, slots=True)
class ServiceClaims:
    service_name: str


@dataclass(frozen=True, slots=True)
class _SigningKey:
    secret: str
    ttl_seconds: int
    audience: str


class TokenIssuer:
    """Signs and verifies the two token classes used by the service.

    User session tokens and service-to-service tokens each have their own secret,
    expiry window and audience, so a token minted for one class never verifies as
    the other even if the secrets were configured identically.
    """

    def __init__(
        self,
        *,
        user_secret: str,
        user_ttl_seconds: int,
        service_secret: str,
        service_ttl_seconds: int,
        issuer: str,
    ) -> None:
        self._user_key = _SigningKey(user_secret, user_ttl_seconds, USER_AUDIENCE)
        self._service_key = _SigningKey(service_secret, service_ttl_seconds, SERVICE_AUDIENCE)
        self._issuer = issuer

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            user_secret=settings.jwt_secret,
            user_ttl_seconds=settings.jwt_ttl_seconds,
            service_secret=settings.jwt_internal_secret,
            service_ttl_seconds=settings.jwt_internal_ttl_seconds,
            issuer=settings.jwt_issuer,
        )

    @property
    def user_ttl_seconds(self) -> int:
        return self._user_key.ttl_seconds

    def issue_user_token(self, user_id: str, email: str) -> str:
        """Create a signed session token carrying ``userId`` and ``email`` claims."""
        return self._encode({"userId": user_id, "email": email}, self._user_key)

    def verify_user_token(self, token: str) -> UserClaims:
        """Decode a session token.

        Raises
        ------
        InvalidTokenError
            When the token is expired, tampered with, or not a user token.
        """
        payload = self._decode(token, self._user_key)
        user_id = payload.get("userId")
        email = payload.get("email")
        if not isinstance(user_id, str) or not isinstance(email, str):
            self._reject("malformed", USER_AUDIENCE)
        return UserClaims(user_id=user_id, email=email)

    def issue_service_token(self, service_name: str) -> str:
        """Create a short-lived token identifying this service to a collaborator."""
        return self._encode({"service": service_name}, self._service_key)

    def verify_service_token(self, token: str) -> ServiceClaims:
        payload = self._decode(token, self._service_key)
        service_name = payload.get("service")
        if not isinstance(service_name, str):
            self._reject("malformed", SERVICE_AUDIENCE)
        return ServiceClaims(service_name=service_name)

    def _encode(self, claims: dict[str, Any], key: _SigningKey) -> str:
        now = int(time.time())
        payload: dict[str, Any] = {
            **claims,
            "iss": self._issuer,
            "aud": key.audience,
            "iat": now,
            "exp": now + key.ttl_seconds,
            "jti": uuid.uuid4().hex,
        }
        # PyJWT returns str for HS256 even in PyJWT>=2
        return jwt.encode(payload, key.secret, algorithm=ALGORITHM)

    def _decode(self, token: str, key: _SigningKey) -> dict[str, Any]:
        try:
            return jwt.decode(
                token,
                key.secret,
                algorithms=[ALGORITHM],
                audience=key.audience,
                issuer=self._issuer,
            )
        except jwt.ExpiredSignatureError as exc:
            self._reject("expired", key.audience, exc)
        except jwt.PyJWTError as exc:
            self._reject("malformed", key.audience, exc)

    def _reject(self, reason: str, audience: str, exc: Exception | None = None) -> None:
        TOKENS_REJECTED.labels(audience=audience, reason=reason).inc()
        logger.info("rejected %s token (%s): %s", audience, reason, exc or "missing claims")
        raise InvalidTokenError(reason) from exc
