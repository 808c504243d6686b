"""API v1 root router."""

from __future__ import annotations

from fastapi import APIRouter

from kanri.api.v1.auth import router as auth_router
from kanri.api.v1.profile import router as profile_router
from kanri.api.v1.users import router as users_router


router = APIRouter()
router.include_router(auth_router, prefix="/auth", tags=["auth"])
router.include_router(users_router, prefix="/users", tags=["users"])
router.include_router(profile_router, prefix="/profile", tags=["profile"])
