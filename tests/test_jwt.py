"""Tests for session tokens."""

from datetime import datetime, timedelta

import pytest
from jose import jwt

from storefront_auth.config import get_settings
from storefront_auth.errors import TokenExpiredError, TokenInvalidError, UnauthorizedError
from storefront_auth.services.jwt import JWTService


@pytest.fixture(name="jwt_service")
def jwt_service_fixture() -> JWTService:
    return JWTService()


def test_issue_and_verify(jwt_service: JWTService):
    token = jwt_service.issue_token(42)
    assert jwt_service.verify_token(token) == 42


def test_default_lifetime_is_seven_days(jwt_service: JWTService):
    token = jwt_service.issue_token(1)
    claims = jwt.get_unverified_claims(token)
    assert claims["sub"] == "1"
    assert claims["exp"] - claims["iat"] == 7 * 24 * 60 * 60


def test_expired_token(jwt_service: JWTService):
    token = jwt_service.issue_token(1, now=datetime.utcnow() - timedelta(days=7, seconds=1))
    with pytest.raises(TokenExpiredError):
        jwt_service.verify_token(token)


def test_token_just_inside_lifetime(jwt_service: JWTService):
    token = jwt_service.issue_token(1, now=datetime.utcnow() - timedelta(days=7) + timedelta(minutes=1))
    assert jwt_service.verify_token(token) == 1


def test_tampered_signature(jwt_service: JWTService):
    token = jwt_service.issue_token(1)
    head, payload, signature = token.split(".")
    forged = ".".join([head, payload, signature[::-1]])
    with pytest.raises(TokenInvalidError):
        jwt_service.verify_token(forged)


def test_token_signed_with_other_secret(jwt_service: JWTService):
    forged = jwt.encode({"sub": "1", "exp": datetime.utcnow() + timedelta(hours=1)}, "other-secret", algorithm="HS256")
    with pytest.raises(TokenInvalidError):
        jwt_service.verify_token(forged)


def test_malformed_token(jwt_service: JWTService):
    with pytest.raises(TokenInvalidError):
        jwt_service.verify_token("not-a-jwt")


def test_non_numeric_subject(jwt_service: JWTService):
    token = jwt.encode(
        {"sub": "admin", "exp": datetime.utcnow() + timedelta(hours=1)},
        get_settings().jwt_secret,
        algorithm="HS256",
    )
    with pytest.raises(TokenInvalidError):
        jwt_service.verify_token(token)


def test_both_failures_are_unauthorized():
    assert issubclass(TokenExpiredError, UnauthorizedError)
    assert issubclass(TokenInvalidError, UnauthorizedError)
    assert TokenExpiredError.status_code == TokenInvalidError.status_code == 401
