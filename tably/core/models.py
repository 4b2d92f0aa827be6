#!/usr/bin/env python 

"""
    Queue Entry Model for Tably,
    including the definition of the queue_entries table and its attributes.
    
    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

from sqlalchemy import Column, String, Integer, DateTime, Enum as SQLAlchemyEnum
from tably.core.db import Base
from tably.core.utils import utcnow
import enum

class StatusEnum(str, enum.Enum):
    WAITING = "waiting"
    CALLED = "called"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

class QueueEntry(Base):
    __tablename__ = 'queue_entries'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    phone_number = Column(String(32), nullable=False, index=True)
    number_of_people = Column(Integer, nullable=False)
    position = Column(Integer, nullable=False, default=0)
    status = Column(
        SQLAlchemyEnum(
            StatusEnum,
            name="queue_status",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=StatusEnum.WAITING,
        index=True,
    )
    created_at = Column(DateTime, nullable=False, default=utcnow)
    called_at = Column(DateTime, nullable=True)
    visit_count = Column(Integer, nullable=False, default=1)

    @property
    def wait_minutes(self):
        """Minutes between joining and being called, or None if never called."""
        if self.called_at is None or self.created_at is None:
            return None
        return (self.called_at - self.created_at).total_seconds() / 60

    def __repr__(self):
        return f"<QueueEntry {self.id} {self.phone_number} {self.status.value} #{self.position}>"
