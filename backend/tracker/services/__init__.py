"""
Services for syncing platform counters and deriving progress.

Usage:
    from tracker.services import SyncOrchestrator, StreakCalculator
"""

from tracker.services.deltas import DeltaEngine, clamp_deltas
from tracker.services.goals import GoalProgressAggregator, GoalService, percent_complete
from tracker.services.ledger import ActivityLedger, daily_contributions
from tracker.services.milestones import MilestoneService
from tracker.services.profiles import PlatformProfileService
from tracker.services.snapshots import SnapshotStore
from tracker.services.streaks import StreakCalculator
from tracker.services.sync import SyncOrchestrator

__all__ = [
    "ActivityLedger",
    "DeltaEngine",
    "GoalProgressAggregator",
    "GoalService",
    "MilestoneService",
    "PlatformProfileService",
    "SnapshotStore",
    "StreakCalculator",
    "SyncOrchestrator",
    "clamp_deltas",
    "daily_contributions",
    "percent_complete",
]
