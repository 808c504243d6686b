from __future__ import annotations

import base64
import json

import pytest

from kanri.security.errors import InvalidSessionToken
from kanri.security.roles import Role
from kanri.security.tokens import decode_session_token, issue_session_token


NOW = 1_700_000_000


def test_issued_token_verifies_with_claims():
    token, expires_at = issue_session_token(
        sub="u-1", role=Role.MANAGER, department="Sales", secret="s", ttl_seconds=600, now=NOW
    )
    claims = decode_session_token(token, "s", now=NOW + 1)
    assert claims["sub"] == "u-1"
    assert claims["role"] == "manager"
    assert claims["department"] == "Sales"
    assert claims["exp"] == NOW + 600
    assert int(expires_at.timestamp()) == NOW + 600


def test_expired_token_is_rejected():
    token, _ = issue_session_token(sub="u-1", role=Role.MEMBER, secret="s", ttl_seconds=60, now=NOW)
    with pytest.raises(InvalidSessionToken, match="expired"):
        decode_session_token(token, "s", now=NOW + 60)


def test_tampered_payload_is_rejected():
    token, _ = issue_session_token(sub="u-1", role=Role.MEMBER, secret="s", ttl_seconds=60, now=NOW)
    header, _payload, sig = token.split(".")
    forged = base64.urlsafe_b64encode(json.dumps({"sub": "u-1", "role": "admin"}).encode()).decode().rstrip("=")
    with pytest.raises(InvalidSessionToken, match="signature"):
        decode_session_token(f"{header}.{forged}.{sig}", "s", now=NOW)


@pytest.mark.parametrize("token", ["", "abc", "a.b", "a.b.c.d", "a.b.é"])
def test_malformed_tokens_are_rejected(token: str):
    with pytest.raises(InvalidSessionToken):
        decode_session_token(token, "s")
