"""
Delta Engine

Turns cumulative platform counters into non-negative month-to-date and daily
deltas.

    monthly = max(0, cumulative - month baseline)
    daily   = max(0, monthly - yesterday's ledger value)

The month baseline is the latest snapshot taken before the first day of the
month. Without one, the whole cumulative counter counts as this month.
Yesterday's ledger row only applies when yesterday is in the same month;
otherwise the daily delta equals the monthly one.

Counters without a fresh reading are carried forward from the latest
snapshot, so a platform outage never retracts progress.

Usage:
    engine = DeltaEngine(db)
    deltas = await engine.compute_deltas(user_id, today, readings)
    await engine.persist_snapshot(user_id, today, deltas.cumulative)
"""

import logging
from collections.abc import Mapping
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from tracker.models.activity import CounterReadings, CounterValues, DeltaResult
from tracker.services.ledger import ActivityLedger
from tracker.services.snapshots import SnapshotStore
from tracker.utils.dates import month_start, same_month

logger = logging.getLogger(__name__)

# Counter name -> snapshot column
SNAPSHOT_COLUMNS: dict[str, str] = {
    "leetcode": "leetcode_total",
    "codechef": "codechef_total",
    "codeforces": "codeforces_total",
    "codeforces_contests": "codeforces_contest_total",
    "codechef_contests": "codechef_contest_total",
}

# Counter name -> ledger column (coding counters only)
LEDGER_COLUMNS: dict[str, str] = {
    "leetcode": "leetcode_solved",
    "codechef": "codechef_solved",
    "codeforces": "codeforces_solved",
}

CONTEST_COUNTERS: tuple[str, ...] = ("codeforces_contests", "codechef_contests")


def clamp_deltas(
    current: Mapping[str, int], reference: Optional[Mapping[str, int]]
) -> dict[str, int]:
    """
    Per-counter increase of current over reference, never below zero.

    A missing reference (or a counter missing from it) counts as zero.
    """
    reference = reference or {}
    return {name: max(0, value - reference.get(name, 0)) for name, value in current.items()}


class DeltaEngine:
    """Computes deltas and records snapshots within the caller's session."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.snapshots = SnapshotStore(db)
        self.ledger = ActivityLedger(db)

    async def resolve_cumulative(
        self, user_id: str, today: date, readings: CounterReadings
    ) -> dict[str, int]:
        """Fill counters without a reading from the latest snapshot (or zero)."""
        latest = await self.snapshots.latest_on_or_before(user_id, today)
        cumulative: dict[str, int] = {}
        for counter, column in SNAPSHOT_COLUMNS.items():
            value = getattr(readings, counter)
            if value is None:
                value = getattr(latest, column) if latest is not None else 0
                logger.debug(f"Carrying forward {counter}={value} for {user_id}")
            cumulative[counter] = value
        return cumulative

    async def compute_deltas(
        self, user_id: str, today: date, readings: CounterReadings
    ) -> DeltaResult:
        """
        Compute month-to-date and daily deltas for one user and day.

        Args:
            user_id: User being synced
            today: Day the readings belong to
            readings: Fresh cumulative readings; None entries are carried forward

        Returns:
            DeltaResult with cumulative, monthly and daily counters
        """
        cumulative = await self.resolve_cumulative(user_id, today, readings)

        baseline = await self.snapshots.latest_before(user_id, month_start(today))
        baseline_values = (
            {c: getattr(baseline, col) for c, col in SNAPSHOT_COLUMNS.items()}
            if baseline is not None
            else None
        )
        monthly = clamp_deltas(cumulative, baseline_values)

        yesterday = today - timedelta(days=1)
        daily = dict(monthly)
        yesterday_recorded = False
        if same_month(yesterday, today):
            yesterday_row = await self.ledger.get_entry(user_id, yesterday)
            if yesterday_row is not None:
                yesterday_recorded = True
                daily.update(
                    clamp_deltas(
                        {c: monthly[c] for c in LEDGER_COLUMNS},
                        {c: getattr(yesterday_row, col) for c, col in LEDGER_COLUMNS.items()},
                    )
                )

            # Contest counters are not in the ledger; diff against yesterday's snapshot
            yesterday_snapshot = await self.snapshots.get(user_id, yesterday)
            if yesterday_snapshot is not None:
                daily.update(
                    clamp_deltas(
                        {c: cumulative[c] for c in CONTEST_COUNTERS},
                        {c: getattr(yesterday_snapshot, SNAPSHOT_COLUMNS[c]) for c in CONTEST_COUNTERS},
                    )
                )

        result = DeltaResult(
            cumulative=CounterValues(**cumulative),
            monthly=CounterValues(**monthly),
            daily=CounterValues(**daily),
            baseline_date=baseline.snapshot_date if baseline is not None else None,
            yesterday_recorded=yesterday_recorded,
        )
        logger.info(
            f"Deltas for {user_id} on {today}: monthly={result.monthly.total} "
            f"daily={result.daily.total} baseline={result.baseline_date}"
        )
        return result

    async def persist_snapshot(
        self, user_id: str, today: date, cumulative: CounterValues
    ) -> None:
        """Record today's absolute counters."""
        await self.snapshots.upsert(
            user_id,
            today,
            {
                column: getattr(cumulative, counter) or 0
                for counter, column in SNAPSHOT_COLUMNS.items()
            },
        )
