import base64
import json
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from ticketdesk.security.tokens import (
    InvalidClaims,
    InvalidSignature,
    SigningError,
    TokenExpired,
    TokenService,
    UnsupportedAlgorithm,
)
from ticketdesk.users.models import User, UserRole


def _user(user_id: int = 42, role: UserRole = UserRole.USER) -> User:
    return User(name="Ana", email="ana@example.com", password="", role=role, id=user_id)


@pytest.mark.parametrize("role", [UserRole.USER, UserRole.ADMIN])
def test_issue_then_verify_recovers_subject_and_role(token_service, role):
    token = token_service.issue(_user(42, role))

    claims = token_service.verify(token)

    assert claims.subject == 42
    assert claims.role == role
    assert claims.issuer == "ticketdesk"
    assert claims.expires_at - claims.issued_at == timedelta(hours=24)


def test_token_carries_wire_claims(token_service):
    token = token_service.issue(_user(5, UserRole.ADMIN))

    payload = jwt.get_unverified_claims(token)
    header = jwt.get_unverified_header(token)

    assert header["alg"] == "HS256"
    assert payload["sub"] == "5"
    assert payload["userType"] == "admin"
    assert {"iss", "iat", "exp"} <= payload.keys()


def test_issue_without_secret_raises_signing_error():
    with pytest.raises(SigningError):
        TokenService(None).issue(_user())


def test_expired_token_is_rejected(token_service):
    issued = datetime.now(timezone.utc) - timedelta(days=2)
    token = token_service.issue(_user(), now=issued)

    with pytest.raises(TokenExpired):
        token_service.verify(token)


def test_token_signed_with_other_secret_is_rejected(token_service):
    token = TokenService("another-secret").issue(_user())

    with pytest.raises(InvalidSignature):
        token_service.verify(token)


def test_tampered_payload_is_rejected(token_service):
    header, _, signature = token_service.issue(_user(1)).split(".")
    forged_payload = jwt.encode(
        {"sub": "1", "userType": "admin", "iss": "ticketdesk", "iat": 0, "exp": 4102444800},
        "x",
        algorithm="HS256",
    ).split(".")[1]

    with pytest.raises(InvalidSignature):
        token_service.verify(f"{header}.{forged_payload}.{signature}")


def test_other_algorithm_is_rejected(token_service):
    token = TokenService("test-secret").issue(_user())
    # same secret and claims, only the header algorithm differs
    payload = jwt.get_unverified_claims(token)
    other = jwt.encode(payload, "test-secret", algorithm="HS512")

    with pytest.raises(UnsupportedAlgorithm):
        token_service.verify(other)


def test_unsigned_token_is_rejected(token_service):
    def segment(data: dict) -> str:
        return base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()

    token = segment({"alg": "none", "typ": "JWT"}) + "." + segment({"sub": "1", "userType": "admin"}) + "."

    with pytest.raises(UnsupportedAlgorithm):
        token_service.verify(token)


def test_garbage_token_is_rejected(token_service):
    with pytest.raises(InvalidSignature):
        token_service.verify("not-a-token")


def test_unknown_user_type_is_rejected(token_service):
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": "3", "userType": "root", "iss": "ticketdesk", "iat": now, "exp": now + timedelta(hours=1)},
        "test-secret",
        algorithm="HS256",
    )

    with pytest.raises(InvalidClaims):
        token_service.verify(token)


def test_foreign_issuer_is_rejected(token_service):
    token = TokenService("test-secret", issuer="someone-else").issue(_user())

    with pytest.raises(InvalidClaims):
        token_service.verify(token)
