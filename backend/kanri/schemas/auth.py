"""Schemas for session endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from kanri.security.roles import Role


class SignInRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=1024)


class PrincipalResponse(BaseModel):
    id: str
    role: Role
    department: Optional[str] = None
    is_fallback: bool = False


class SessionTokenResponse(BaseModel):
    token: str
    expires_at: datetime
    principal: PrincipalResponse
