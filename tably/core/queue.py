#!/usr/bin/env python

"""
    Queue lifecycle for Tably: joining, calling, completing and
    cancelling waitlist entries.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import logging
import threading
from typing import List, Optional, Tuple
from pydantic import ValidationError as PydanticValidationError
from tably.core.allocator import PositionAllocator
from tably.core.exceptions import InvalidTransitionError, ValidationError
from tably.core.models import QueueEntry, StatusEnum
from tably.core.repository import EntryRepository
from tably.core.utils import utcnow, normalize_phone
from tably.schemas.entry import JoinRequest

logger = logging.getLogger(__name__)

CALL = "call"
COMPLETE = "complete"
CANCEL = "cancel"
REJOIN = "rejoin"

# (current status, event) -> next status. Anything missing is rejected.
TRANSITIONS = {
    (StatusEnum.WAITING, CALL): StatusEnum.CALLED,
    (StatusEnum.WAITING, COMPLETE): StatusEnum.COMPLETED,
    (StatusEnum.WAITING, CANCEL): StatusEnum.CANCELLED,
    (StatusEnum.CALLED, COMPLETE): StatusEnum.COMPLETED,
    (StatusEnum.CALLED, CANCEL): StatusEnum.CANCELLED,
    (StatusEnum.CALLED, REJOIN): StatusEnum.WAITING,
    (StatusEnum.CANCELLED, CANCEL): StatusEnum.CANCELLED,
    (StatusEnum.CANCELLED, REJOIN): StatusEnum.WAITING,
    (StatusEnum.COMPLETED, REJOIN): StatusEnum.WAITING,
}


def next_status(entry: QueueEntry, event: str) -> StatusEnum:
    """Returns the status `event` moves `entry` to.

    Raises:
        InvalidTransitionError: if `event` is not allowed from the
        entry's current status.
    """
    status = StatusEnum(entry.status)
    try:
        return TRANSITIONS[(status, event)]
    except KeyError:
        raise InvalidTransitionError(entry.id, status.value, event)


def validate_join(name: str, phone_number: str, number_of_people: int) -> JoinRequest:
    try:
        return JoinRequest.model_validate({
            "name": name,
            "phoneNumber": phone_number,
            "numberOfPeople": number_of_people,
        })
    except PydanticValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(p) for p in error["loc"])
        raise ValidationError(error["msg"], field=field or None)


class QueueAPI:

    # Serializes join so position allocation and the write happen together
    join_lock = threading.Lock()

    def __init__(self, session=None, clock=utcnow):
        self.repository = EntryRepository(session)
        self.allocator = PositionAllocator(self.repository)
        self.clock = clock

    def get_queue(self) -> List[QueueEntry]:
        """Waiting entries, front of the line first."""
        return self.repository.list_waiting()

    def get_all_entries(self) -> List[QueueEntry]:
        """Every entry ever recorded, most recent activity first."""
        return self.repository.list_all()

    def get_entry(self, entry_id) -> Optional[QueueEntry]:
        return self.repository.get(entry_id)

    def get_by_phone(self, phone_number: str) -> Optional[QueueEntry]:
        return self.repository.latest_by_phone(normalize_phone(phone_number))

    def join(self, name: str, phone_number: str, number_of_people: int
             ) -> Tuple[QueueEntry, bool, bool]:
        """
        Puts a party on the waitlist.

        Args:
            name: Customer name.
            phone_number: 10 digit phone number, used to recognise returning customers.
            number_of_people: Party size.

        Returns:
            (entry, is_existing, is_reused). `is_existing` means the phone
            was already waiting and nothing changed; `is_reused` means an
            earlier entry with the same phone and name was put back in line.

        Raises:
            ValidationError: If any input is malformed or out of range.
        """
        request = validate_join(name, phone_number, number_of_people)

        with self.join_lock:
            active = self.repository.latest_by_phone(request.phone_number)
            if active and active.status == StatusEnum.WAITING:
                return active, True, False

            previous = self.repository.latest_by_phone_and_name(
                request.phone_number, request.name)
            if previous:
                if previous.status == StatusEnum.WAITING:
                    return previous, True, False
                entry = self.repository.update(
                    previous,
                    number_of_people=request.number_of_people,
                    status=next_status(previous, REJOIN),
                    position=self.allocator.next_position(),
                    created_at=self.clock(),
                    called_at=None,
                )
                logger.info(f"Entry {entry.id} rejoined at position {entry.position}")
                return entry, False, True

            entry = self.repository.add(QueueEntry(
                name=request.name,
                phone_number=request.phone_number,
                number_of_people=request.number_of_people,
                status=StatusEnum.WAITING,
                position=self.allocator.next_position(),
                created_at=self.clock(),
                visit_count=1,
            ))
            logger.info(f"Entry {entry.id} joined at position {entry.position}")
            return entry, False, False

    def get_position(self, entry_id) -> Optional[dict]:
        """Rank of a waiting entry among everyone still waiting.

        Rank counts the waiting entries with a smaller stored position, so
        gaps left by cancellations never show up to the customer.
        """
        entry = self.repository.get(entry_id)
        if not entry or entry.status != StatusEnum.WAITING:
            return None
        return {
            "position": self.repository.count_waiting_before(entry.position) + 1,
            "total_waiting": self.repository.count_waiting(),
        }

    def call(self, entry_id) -> Optional[QueueEntry]:
        if not (entry := self.repository.get(entry_id)):
            return None
        entry = self.repository.update(
            entry,
            status=next_status(entry, CALL),
            called_at=self.clock(),
        )
        logger.info(f"Entry {entry.id} called")
        return entry

    def complete(self, entry_id) -> Optional[QueueEntry]:
        if not (entry := self.repository.get(entry_id)):
            return None
        entry = self.repository.update(
            entry,
            status=next_status(entry, COMPLETE),
            position=0,
            visit_count=(entry.visit_count or 0) + 1,
        )
        logger.info(f"Entry {entry.id} completed, visit #{entry.visit_count}")
        return entry

    def cancel(self, entry_id) -> Optional[QueueEntry]:
        if not (entry := self.repository.get(entry_id)):
            return None
        entry = self.repository.update(
            entry,
            status=next_status(entry, CANCEL),
            position=0,
        )
        logger.info(f"Entry {entry.id} cancelled")
        return entry
