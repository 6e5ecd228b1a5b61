from __future__ import annotations

import jwt
import pytest

from app.domain.errors import InvalidTokenError
from app.security.tokens import TokenIssuer


def test_user_token_round_trip(tokens: TokenIssuer):
    token = tokens.issue_user_token("user-1", "a@b.com")
    claims = tokens.verify_user_token(token)
    assert claims.user_id == "user-1"
    assert claims.email == "a@b.com"

    payload = jwt.decode(token, options={"verify_signature": False})
    assert payload["exp"] - payload["iat"] == 86400
    assert payload["aud"] == "user"


def test_service_token_round_trip(tokens: TokenIssuer):
    token = tokens.issue_service_token("user-service")
    assert tokens.verify_service_token(token).service_name == "user-service"

    payload = jwt.decode(token, options={"verify_signature": False})
    assert payload["exp"] - payload["iat"] == 3600
    assert "userId" not in payload


def test_token_classes_do_not_cross_verify(tokens: TokenIssuer):
    user_token = tokens.issue_user_token("user-1", "a@b.com")
    service_token = tokens.issue_service_token("user-service")

    with pytest.raises(InvalidTokenError):
        tokens.verify_service_token(user_token)
    with pytest.raises(InvalidTokenError):
        tokens.verify_user_token(service_token)


def test_token_classes_do_not_cross_verify_with_shared_secret():
    issuer = TokenIssuer(
        user_secret="same",
        user_ttl_seconds=60,
        service_secret="same",
        service_ttl_seconds=60,
        issuer="user-service-test",
    )
    with pytest.raises(InvalidTokenError):
        issuer.verify_user_token(issuer.issue_service_token("user-service"))
    with pytest.raises(InvalidTokenError):
        issuer.verify_service_token(issuer.issue_user_token("user-1", "a@b.com"))


def test_expired_token_is_rejected_as_expired():
    issuer = TokenIssuer(
        user_secret="user",
        user_ttl_seconds=-30,
        service_secret="service",
        service_ttl_seconds=-30,
        issuer="user-service-test",
    )
    with pytest.raises(InvalidTokenError) as excinfo:
        issuer.verify_user_token(issuer.issue_user_token("user-1", "a@b.com"))
    assert excinfo.value.reason == "expired"

    with pytest.raises(InvalidTokenError) as excinfo:
        issuer.verify_service_token(issuer.issue_service_token("user-service"))
    assert excinfo.value.reason == "expired"


def test_tampered_token_is_rejected_as_malformed(tokens: TokenIssuer):
    token = tokens.issue_user_token("user-1", "a@b.com")
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[::-1]])

    for candidate in (tampered, "not-a-jwt", ""):
        with pytest.raises(InvalidTokenError) as excinfo:
            tokens.verify_user_token(candidate)
        assert excinfo.value.reason == "malformed"


def test_each_service_token_is_fresh(tokens: TokenIssuer):
    assert tokens.issue_service_token("user-service") != tokens.issue_service_token("user-service")
