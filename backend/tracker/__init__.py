"""Code Progress Tracker backend: activity sync and progress ledger engine."""
