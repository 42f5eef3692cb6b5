from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt
import pytest

from src.tubely.auth.auth_service import (
    TOKEN_ISSUER,
    AuthService,
    InvalidTokenError,
    TokenExpiredError,
)


def build_service() -> AuthService:
    return AuthService(signing_key="test-key", token_ttl=timedelta(hours=1))


def test_issued_token_validates_to_user_id() -> None:
    service = build_service()
    user_id = uuid4()

    token = service.issue_token(user_id)

    assert service.validate_token(token) == user_id
    payload = jwt.decode(token, "test-key", algorithms=["HS256"], issuer=TOKEN_ISSUER)
    assert payload["sub"] == str(user_id)
    assert payload["exp"] - payload["iat"] == 3600


def test_expired_token_rejected() -> None:
    service = build_service()
    token = service.issue_token(
        uuid4(), issued_at=datetime.now(tz=timezone.utc) - timedelta(hours=2)
    )

    with pytest.raises(TokenExpiredError):
        service.validate_token(token)


def test_token_signed_with_other_key_rejected() -> None:
    token = AuthService(signing_key="other-key").issue_token(uuid4())

    with pytest.raises(InvalidTokenError):
        build_service().validate_token(token)


def test_garbage_token_rejected() -> None:
    with pytest.raises(InvalidTokenError):
        build_service().validate_token("not-a-jwt")


def test_token_without_uuid_subject_rejected() -> None:
    now = int(datetime.now(tz=timezone.utc).timestamp())
    token = jwt.encode(
        {"iss": TOKEN_ISSUER, "sub": "serg", "iat": now, "exp": now + 60},
        "test-key",
        algorithm="HS256",
    )

    with pytest.raises(InvalidTokenError):
        build_service().validate_token(token)


def test_token_from_other_issuer_rejected() -> None:
    now = int(datetime.now(tz=timezone.utc).timestamp())
    token = jwt.encode(
        {"iss": "someone-else", "sub": str(uuid4()), "iat": now, "exp": now + 60},
        "test-key",
        algorithm="HS256",
    )

    with pytest.raises(InvalidTokenError):
        build_service().validate_token(token)


def test_empty_signing_key_refused() -> None:
    with pytest.raises(RuntimeError):
        AuthService(signing_key="")
