"""
Unit Tests

Each test gets a throwaway SQLite database; judge platforms are replaced by
fake adapters or httpx.MockTransport, so no network or services are needed.
"""
