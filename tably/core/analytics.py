"""
    Dashboard figures for Tably: per-day counts and average wait time,
    plus all-time customer totals.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import datetime
import logging
from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP
from typing import List
from dateutil.relativedelta import relativedelta
from tably.core.exceptions import ValidationError
from tably.core.models import StatusEnum
from tably.core.repository import EntryRepository
from tably.core.utils import utcnow, local_midnight_utc
from tably.schemas.admin import DayStats, Stats

logger = logging.getLogger(__name__)

PERIODS = ("day", "week", "month")
ACCEPTED = {StatusEnum.COMPLETED, StatusEnum.CALLED}


def average_minutes(waits) -> float:
    """Mean wait rounded half-up to one decimal, 0 when nobody was called."""
    if not waits:
        return 0
    mean = Decimal(str(sum(waits) / len(waits)))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class QueueAnalytics:

    def __init__(self, session=None, clock=utcnow):
        self.repository = EntryRepository(session)
        self.clock = clock

    def window_start(self, period: str) -> datetime.datetime:
        now = self.clock()
        if period == "day":
            return local_midnight_utc(now)
        if period == "week":
            return now - datetime.timedelta(days=7)
        if period == "month":
            return now - relativedelta(months=1)
        raise ValidationError(
            f"Period must be one of: {', '.join(PERIODS)}", field="period")

    def detailed(self, period: str = "day") -> List[DayStats]:
        """Per-day totals for entries created inside `period`, newest day first.

        `avg_wait_time` is the mean minutes from joining to being called,
        over entries that were called, rounded to one decimal.
        """
        since = self.window_start(period)
        days = defaultdict(lambda: {"total": 0, "accepted": 0, "cancelled": 0, "waits": []})

        for entry in self.repository.list_created_since(since):
            day = days[entry.created_at.date()]
            day["total"] += 1
            if entry.status in ACCEPTED:
                day["accepted"] += 1
            if entry.status == StatusEnum.CANCELLED:
                day["cancelled"] += 1
            if (wait := entry.wait_minutes) is not None:
                day["waits"].append(wait)

        return [
            DayStats(
                date=date,
                total=day["total"],
                accepted=day["accepted"],
                cancelled=day["cancelled"],
                avg_wait_time=average_minutes(day["waits"]),
            )
            for date, day in sorted(days.items(), reverse=True)
        ]

    def stats(self) -> Stats:
        return Stats(
            total_customers=self.repository.count_distinct_phones(),
            total_visits=self.repository.count_all(),
        )
