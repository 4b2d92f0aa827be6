#!/usr/bin/env python

"""
    Customer-facing queue routes for Tably:
    joining, checking position and cancelling.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import logging
from typing import List, Optional
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from tably.core.queue import QueueAPI
from tably.core.exceptions import (
    ENTRY_NOT_FOUND,
    ValidationError,
    InvalidTransitionError,
)
from tably.schemas.entry import JoinRequest, JoinResponse, Position, QueueEntry

logger = logging.getLogger(__name__)

router = APIRouter()

def not_found():
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=ENTRY_NOT_FOUND)

def conflict(e: InvalidTransitionError):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"message": str(e)})

def failure(action: str):
    """Generic 500; the cause is logged, never returned."""
    logger.exception(f"Failed to {action}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": f"Failed to {action}"}
    )

@router.get("/queue", response_model=List[QueueEntry])
async def list_queue():
    try:
        return QueueAPI().get_queue()
    except Exception:
        return failure("fetch queue")

@router.get("/queue/phone/{phone_number}", response_model=Optional[QueueEntry])
async def get_entry_by_phone(phone_number: str):
    try:
        return QueueAPI().get_by_phone(phone_number)
    except Exception:
        return failure("fetch queue entry")

@router.get("/queue/{entry_id}", response_model=QueueEntry)
async def get_entry(entry_id: str):
    try:
        if entry := QueueAPI().get_entry(entry_id):
            return entry
        return not_found()
    except Exception:
        return failure("fetch queue entry")

@router.post("/queue", response_model=JoinResponse, status_code=status.HTTP_201_CREATED)
async def join_queue(payload: JoinRequest):
    """
    Adds a party to the waitlist.

    Returns 201 for a brand new entry, 200 when the phone is already
    waiting (`isExisting`) or an earlier visit was put back in line
    (`isReUsed`).
    """
    try:
        entry, is_existing, is_reused = QueueAPI().join(
            name=payload.name,
            phone_number=payload.phone_number,
            number_of_people=payload.number_of_people,
        )
    except ValidationError as e:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=e.to_dict())
    except Exception:
        return failure("create queue entry")

    response = JoinResponse.model_validate(entry)
    response.is_existing = is_existing
    response.is_re_used = is_reused
    is_new = not (is_existing or is_reused)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED if is_new else status.HTTP_200_OK,
        content=response.model_dump(by_alias=True, mode="json"),
    )

@router.patch("/queue/{entry_id}/cancel", response_model=QueueEntry)
async def cancel_entry(entry_id: str):
    try:
        if entry := QueueAPI().cancel(entry_id):
            return entry
        return not_found()
    except InvalidTransitionError as e:
        return conflict(e)
    except Exception:
        return failure("cancel queue entry")

@router.get("/queue/{entry_id}/position", response_model=Position)
async def get_position(entry_id: str):
    try:
        if position := QueueAPI().get_position(entry_id):
            return position
        return not_found()
    except Exception:
        return failure("get position")
