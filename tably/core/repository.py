"""
    Entry repository for Tably.

    Every read goes straight to the database; nothing is cached between
    calls, so callers always act on the current state of an entry.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import logging
from typing import List, Optional
from sqlalchemy import func
from tably.core.db import session as db
from tably.core.models import QueueEntry, StatusEnum
from tably.core.exceptions import DatabaseInsertError

logger = logging.getLogger(__name__)


class EntryRepository:

    def __init__(self, session=None):
        self.db = session if session is not None else db

    def _query(self):
        return self.db.query(QueueEntry).populate_existing()

    def get(self, entry_id) -> Optional[QueueEntry]:
        try:
            entry_id = int(entry_id)
        except (TypeError, ValueError):
            return None
        return self.db.get(QueueEntry, entry_id, populate_existing=True)

    def latest_by_phone(self, phone_number: str) -> Optional[QueueEntry]:
        return self._query().filter(
            QueueEntry.phone_number == phone_number
        ).order_by(QueueEntry.created_at.desc(), QueueEntry.id.desc()).first()

    def latest_by_phone_and_name(self, phone_number: str, name: str) -> Optional[QueueEntry]:
        return self._query().filter(
            QueueEntry.phone_number == phone_number,
            QueueEntry.name == name,
        ).order_by(QueueEntry.created_at.desc(), QueueEntry.id.desc()).first()

    def list_waiting(self) -> List[QueueEntry]:
        return self._query().filter(
            QueueEntry.status == StatusEnum.WAITING
        ).order_by(QueueEntry.position.asc(), QueueEntry.id.asc()).all()

    def list_all(self) -> List[QueueEntry]:
        return self._query().order_by(
            QueueEntry.created_at.desc(), QueueEntry.id.desc()
        ).all()

    def list_called(self) -> List[QueueEntry]:
        return self._query().filter(
            QueueEntry.status == StatusEnum.CALLED
        ).all()

    def list_created_since(self, since) -> List[QueueEntry]:
        return self._query().filter(QueueEntry.created_at >= since).all()

    def count_waiting(self) -> int:
        return self._query().filter(
            QueueEntry.status == StatusEnum.WAITING
        ).count()

    def count_waiting_before(self, position: int) -> int:
        return self._query().filter(
            QueueEntry.status == StatusEnum.WAITING,
            QueueEntry.position < position,
        ).count()

    def max_waiting_position(self) -> Optional[int]:
        return self.db.query(func.max(QueueEntry.position)).filter(
            QueueEntry.status == StatusEnum.WAITING
        ).scalar()

    def count_all(self) -> int:
        return self._query().count()

    def count_distinct_phones(self) -> int:
        return self.db.query(
            func.count(func.distinct(QueueEntry.phone_number))
        ).scalar() or 0

    def add(self, entry: QueueEntry) -> QueueEntry:
        try:
            self.db.add(entry)
            self.db.commit()
            return entry
        except Exception as e:
            self.db.rollback()
            raise DatabaseInsertError(f"Failed to create queue entry: {str(e)}.")

    def update(self, entry: QueueEntry, **fields) -> QueueEntry:
        """Apply `fields` to a single entry and commit them together."""
        try:
            for key, value in fields.items():
                setattr(entry, key, value)
            self.db.add(entry)
            self.db.commit()
            return entry
        except Exception as e:
            self.db.rollback()
            raise DatabaseInsertError(f"Failed to update queue entry: {str(e)}.")
