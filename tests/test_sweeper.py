#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
    tests.test_sweeper
    ~~~~~~~~~~~~~~~~~~

    This module tests auto-cancellation of called entries that were
    never seated.

    :copyright: (c) 2025 by Authors.
    :license: see LICENSE for more details.
"""

import os
os.environ["TESTING"] = "true"

import asyncio
import datetime
import threading
import pytest
from unittest.mock import patch
from tably.core.db import Base
from tably.core.models import StatusEnum
from tably.core.queue import QueueAPI
from tably.core.sweeper import ExpirySweeper


class FakeClock:

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += datetime.timedelta(**kwargs)


@pytest.fixture
def db_session():
    from sqlalchemy import create_engine
    from sqlalchemy.orm import sessionmaker

    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)

@pytest.fixture
def clock():
    return FakeClock(datetime.datetime(2025, 6, 15, 19, 30, 0))

@pytest.fixture
def queue(db_session, clock):
    return QueueAPI(session=db_session, clock=clock)

@pytest.fixture
def sweeper(db_session, clock):
    return ExpirySweeper(interval=30, timeout=300, session=db_session, clock=clock)


def test_called_entry_expires_after_timeout(queue, sweeper, clock):
    alice, _, _ = queue.join("Alice", "5551234567", 2)
    queue.call(alice.id)

    clock.advance(minutes=4)
    assert sweeper.sweep() == []
    assert queue.get_entry(alice.id).status == StatusEnum.CALLED

    clock.advance(minutes=2)
    assert sweeper.sweep() == [alice.id]

    entry = queue.get_entry(alice.id)
    assert entry.status == StatusEnum.CANCELLED
    assert entry.position == 0
    assert entry.visit_count == 1

def test_exactly_at_timeout_is_not_expired(queue, sweeper, clock):
    alice, _, _ = queue.join("Alice", "5551234567", 2)
    queue.call(alice.id)
    assert sweeper.sweep(now=clock.now + datetime.timedelta(minutes=5)) == []

def test_waiting_and_completed_entries_are_ignored(queue, sweeper, clock):
    waiting, _, _ = queue.join("Alice", "5551234567", 2)
    seated, _, _ = queue.join("Bob", "5559876543", 4)
    queue.call(seated.id)
    queue.complete(seated.id)

    clock.advance(hours=1)

    assert sweeper.sweep() == []
    assert queue.get_entry(waiting.id).status == StatusEnum.WAITING
    assert queue.get_entry(seated.id).status == StatusEnum.COMPLETED

def test_one_failing_entry_does_not_stop_the_sweep(queue, sweeper, clock):
    alice, _, _ = queue.join("Alice", "5551234567", 2)
    bob, _, _ = queue.join("Bob", "5559876543", 4)
    queue.call(alice.id)
    queue.call(bob.id)
    clock.advance(minutes=10)

    real_cancel = sweeper.queue.cancel

    def flaky_cancel(entry_id):
        if entry_id == alice.id:
            raise RuntimeError("database hiccup")
        return real_cancel(entry_id)

    with patch.object(sweeper.queue, "cancel", side_effect=flaky_cancel):
        assert sweeper.sweep() == [bob.id]

    assert queue.get_entry(alice.id).status == StatusEnum.CALLED
    assert queue.get_entry(bob.id).status == StatusEnum.CANCELLED

def test_scan_failure_is_contained(sweeper):
    with patch.object(sweeper.queue.repository, "list_called", side_effect=RuntimeError("down")):
        assert sweeper.sweep() == []

def test_run_keeps_going_after_failed_tick(sweeper):
    calls = []
    loop_thread = threading.get_ident()

    def flaky_sweep(now=None):
        calls.append(threading.get_ident())
        if len(calls) == 1:
            raise RuntimeError("boom")
        return []

    async def scenario():
        sweeper.interval = 0
        with patch.object(sweeper, "sweep", side_effect=flaky_sweep):
            sweeper.start()
            while len(calls) < 3:
                await asyncio.sleep(0.01)
            await sweeper.stop()

    asyncio.run(asyncio.wait_for(scenario(), timeout=5))
    assert len(calls) >= 3
    assert loop_thread not in calls
    assert sweeper._task is None
