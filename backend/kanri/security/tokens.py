"""Signed session tokens (HS256 JWT).

Tokens carry `sub`, `role`, optional `department` and `exp`. Signing and
verification use `hmac`/`hashlib` directly.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import time
from datetime import datetime, timezone
from typing import Any, Optional

from kanri.security.errors import InvalidSessionToken
from kanri.security.roles import Role


UTC = timezone.utc

_HEADER = {"alg": "HS256", "typ": "JWT"}


def _b64url_decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _hmac_sha256(key: bytes, msg: bytes) -> bytes:
    return hmac.new(key, msg, hashlib.sha256).digest()


def _encode_segment(obj: dict[str, Any]) -> str:
    return _b64url_encode(json.dumps(obj, separators=(",", ":")).encode("utf-8"))


def issue_session_token(
    *,
    sub: str,
    role: Role,
    secret: str,
    ttl_seconds: int,
    department: Optional[str] = None,
    now: Optional[int] = None,
) -> tuple[str, datetime]:
    """Mint a session token; returns (token, expires_at)."""
    issued_at = int(time.time()) if now is None else now
    exp = issued_at + ttl_seconds
    payload: dict[str, Any] = {"sub": sub, "role": role.value, "iat": issued_at, "exp": exp}
    if department:
        payload["department"] = department

    signing_input = f"{_encode_segment(_HEADER)}.{_encode_segment(payload)}"
    sig = _b64url_encode(_hmac_sha256(secret.encode("utf-8"), signing_input.encode("ascii")))
    return f"{signing_input}.{sig}", datetime.fromtimestamp(exp, tz=UTC)


def decode_session_token(token: str, secret: str, *, now: Optional[int] = None) -> dict[str, Any]:
    """Verify signature and standard claims, returning the payload.

    Required claims: `sub`, `role`. `exp` is enforced when present.
    """
    try:
        header_b64, payload_b64, sig_b64 = token.split(".")
    except ValueError as e:
        raise InvalidSessionToken("Invalid token format.") from e

    signing_input = f"{header_b64}.{payload_b64}".encode("ascii", errors="replace")
    expected_sig = _b64url_encode(_hmac_sha256(secret.encode("utf-8"), signing_input))
    if not hmac.compare_digest(expected_sig.encode("ascii"), sig_b64.encode("utf-8")):
        raise InvalidSessionToken("Invalid token signature.")

    try:
        header = json.loads(_b64url_decode(header_b64))
        payload = json.loads(_b64url_decode(payload_b64))
    except Exception as e:  # noqa: BLE001
        raise InvalidSessionToken("Invalid token encoding.") from e

    if not isinstance(header, dict) or not isinstance(payload, dict):
        raise InvalidSessionToken("Invalid token encoding.")
    if header.get("alg") != "HS256" or header.get("typ") != "JWT":
        raise InvalidSessionToken("Unsupported token header.")

    exp = payload.get("exp")
    if exp is not None:
        try:
            exp_i = int(exp)
        except (TypeError, ValueError) as e:
            raise InvalidSessionToken("Invalid exp claim.") from e
        current = int(time.time()) if now is None else now
        if current >= exp_i:
            raise InvalidSessionToken("Token expired.")

    if "sub" not in payload or "role" not in payload:
        raise InvalidSessionToken("Missing required claims.")

    return payload
