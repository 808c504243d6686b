"""FastAPI application.

Every request gets:
- an `x-request-id` (propagated from the caller or generated),
- one JSON access line on the `kanri` logger naming the resolved principal,
- a generic 503 body when the database is unreachable and a generic 500 body
  for anything else unhandled.

Authorization itself happens in route dependencies (`require_role`).
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Any, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from kanri.api.router import router as api_router
from kanri.security.principal import Principal
import kanri.models as _models  # noqa: F401  (register ORM models before first query)


logger = logging.getLogger("kanri")
logger.setLevel(logging.INFO)

DEV_FRONTEND_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


def _error(status_code: int, detail: str, request_id: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail}, headers={"x-request-id": request_id})


def _access_entry(request: Request, request_id: str, status_code: Optional[int], started: float) -> dict[str, Any]:
    principal: Optional[Principal] = getattr(request.state, "principal", None)
    return {
        "event": "access",
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "status_code": status_code,
        "duration_ms": int((time.perf_counter() - started) * 1000),
        "user_id": principal.id if principal else None,
        "user_role": principal.role.value if principal else None,
        "fallback_principal": bool(principal and principal.is_fallback),
    }


def create_app() -> FastAPI:
    app = FastAPI(
        title="kanri API",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
        description="Marketing budget management backend: sessions, roles and user administration.",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=DEV_FRONTEND_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )
    app.include_router(api_router)

    @app.middleware("http")
    async def request_id_and_access_log(request: Request, call_next: Callable):
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except OperationalError:
            logger.exception("Database unavailable (request_id=%s)", request_id)
            response = _error(503, "Service temporarily unavailable.", request_id)
        except Exception:  # noqa: BLE001
            logger.exception("Unhandled error (request_id=%s)", request_id)
            response = _error(500, "Internal Server Error", request_id)
        else:
            response.headers["x-request-id"] = request_id

        # Never includes headers, so credentials cannot leak into the log.
        logger.info(json.dumps(_access_entry(request, request_id, response.status_code, started)))
        return response

    return app


app = create_app()
