"""API routers."""

from tracker.routers import activity, health, milestones, streaks, sync

__all__ = ["activity", "health", "milestones", "streaks", "sync"]
