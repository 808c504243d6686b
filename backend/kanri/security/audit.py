"""Security audit log.

One JSON line per authorization outcome on the `kanri.audit` logger. Entries
never contain credentials or authorization headers.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import AbstractSet, Any, Literal, Optional

from fastapi import Request

from kanri.core.settings import get_settings
from kanri.security.principal import Principal


logger = logging.getLogger("kanri.audit")

UTC = timezone.utc

AuditResult = Literal["success", "unauthorized", "forbidden", "escalation_denied", "rate_limited", "error"]


def client_address(request: Request, trusted_proxies: AbstractSet[str] = frozenset()) -> str:
    """Address of the calling client.

    Forwarding headers are client-controlled, so they are only honoured when
    the direct peer is one of `trusted_proxies`.
    """
    peer = request.client.host if request.client is not None else None
    if peer is not None and peer in trusted_proxies:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip.strip()
    return peer or "unknown"


class SecurityAuditLogger:
    @staticmethod
    def log_api_access(
        request: Request,
        principal: Optional[Principal],
        operation: str,
        result: AuditResult,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        entry = {
            "event": "api_access",
            "timestamp": datetime.now(tz=UTC).isoformat(),
            "user_id": principal.id if principal else None,
            "user_role": principal.role.value if principal else None,
            "fallback_principal": bool(principal and principal.is_fallback),
            "ip_address": client_address(request, get_settings().trusted_proxies),
            "method": request.method,
            "path": request.url.path,
            "operation": operation,
            "result": result,
            "details": details,
        }
        if result == "success":
            logger.info(json.dumps(entry, default=str))
        else:
            logger.warning(json.dumps(entry, default=str))
