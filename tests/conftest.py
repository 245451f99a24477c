import pytest

from smartconfig.resolution import CandidateRecord
from smartconfig.stores import MemoryStore


@pytest.fixture
def candidate_records():
    """Five stored rows for one setting, by environment and version."""
    return [
        CandidateRecord("Timeout", "v0", {"Environment": "*", "Version": "*"}),
        CandidateRecord("Timeout", "v1", {"Environment": "ABC", "Version": "1.3.0"}),
        CandidateRecord("Timeout", "v2", {"Environment": "XYZ", "Version": "2.4.0"}),
        CandidateRecord("Timeout", "v3", {"Environment": "*", "Version": "3.0.0"}),
        CandidateRecord("Timeout", "v4", {"Environment": "JKL", "Version": "4.1.8"}),
    ]


@pytest.fixture
def memory_store(candidate_records):
    """Provide an in-memory store seeded with the candidate records."""
    return MemoryStore(candidate_records)


@pytest.fixture(scope="session", autouse=True)
def setup_test_logging():
    """Configure logging for tests."""
    from loguru import logger
    import sys

    # Remove default handlers
    logger.remove()

    # Add test-specific handler with appropriate level
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    )

    yield

    # Cleanup
    logger.remove()


@pytest.fixture(scope="session")
def test_db_config():
    """Database configuration for testing (SQLite in-memory)."""
    return "sqlite:///:memory:"


@pytest.fixture(scope="function")
def session_manager(test_db_config):
    """Provide a session manager on a fresh in-memory database with all tables."""
    from smartconfig.database import SessionManager, init_database

    manager = SessionManager(connection_string=test_db_config)
    init_database(manager)

    try:
        yield manager
    finally:
        manager.close()


@pytest.fixture(scope="function")
def db_session(session_manager):
    """Provide a database session for testing.

    Each test gets a new SQLite in-memory database, so nothing leaks
    between tests.
    """
    session = session_manager.get_session()

    try:
        yield session
    finally:
        session.close()
