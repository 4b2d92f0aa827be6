#!/usr/bin/env python

"""
    Admin dashboard routes for Tably. Everything except login/logout
    requires a signed `admin_session` cookie or Bearer token.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Cookie, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from tably.configs import SCHEME
from tably.core import auth
from tably.core.analytics import QueueAnalytics
from tably.core.exceptions import (
    AuthenticationError,
    InvalidTransitionError,
    ValidationError,
)
from tably.core.queue import QueueAPI
from tably.routes.queue import not_found, conflict, failure
from tably.schemas.admin import DayStats, LoginRequest, Stats
from tably.schemas.entry import QueueEntry

logger = logging.getLogger(__name__)

router = APIRouter()

def require_admin(request: Request, admin_session: Optional[str] = Cookie(None)) -> str:
    """Resolves the logged-in admin from the session cookie or a Bearer token."""
    session = admin_session
    if not session:
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            session = auth_header.split(" ")[1]
    if not (username := auth.verify_session_cookie(session)):
        raise AuthenticationError("Not authenticated")
    return username

@router.post("/login")
async def admin_login(payload: LoginRequest, response: Response):
    token = auth.login(payload.username, payload.password)
    response.set_cookie(
        key=auth.COOKIE_NAME,
        value=token,
        max_age=auth.COOKIE_TTL,
        httponly=True,
        secure=SCHEME == "https",
        samesite="Lax",
        path="/"
    )
    return {"success": True, "token": token}

@router.post("/logout")
async def admin_logout(response: Response):
    response.delete_cookie(key=auth.COOKIE_NAME, path="/")
    return {"success": True}

@router.get("/entries", response_model=List[QueueEntry])
async def list_entries(admin: str = Depends(require_admin)):
    try:
        return QueueAPI().get_all_entries()
    except Exception:
        return failure("fetch entries")

@router.get("/stats", response_model=Stats)
async def get_stats(admin: str = Depends(require_admin)):
    try:
        return QueueAnalytics().stats()
    except Exception:
        return failure("fetch stats")

@router.get("/analytics", response_model=List[DayStats])
async def get_analytics(period: str = "day", admin: str = Depends(require_admin)):
    try:
        return QueueAnalytics().detailed(period)
    except ValidationError as e:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=e.to_dict())
    except Exception:
        return failure("fetch analytics")

@router.post("/call/{entry_id}", response_model=QueueEntry)
async def call_entry(entry_id: str, admin: str = Depends(require_admin)):
    try:
        if entry := QueueAPI().call(entry_id):
            logger.info(f"{admin} called entry {entry_id}")
            return entry
        return not_found()
    except InvalidTransitionError as e:
        return conflict(e)
    except Exception:
        return failure("call queue entry")

@router.post("/complete/{entry_id}", response_model=QueueEntry)
async def complete_entry(entry_id: str, admin: str = Depends(require_admin)):
    try:
        if entry := QueueAPI().complete(entry_id):
            logger.info(f"{admin} completed entry {entry_id}")
            return entry
        return not_found()
    except InvalidTransitionError as e:
        return conflict(e)
    except Exception:
        return failure("complete queue entry")
