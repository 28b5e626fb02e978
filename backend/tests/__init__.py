"""
Code Progress Tracker Test Suite

Test Structure:
    tests/
    ├── conftest.py      # Shared fixtures, seeding helpers, fake adapters
    └── unit/            # Service, adapter and API tests

Running Tests:
    # Run all tests
    pytest backend/tests/ -v
"""
