from datetime import datetime, timezone

import pytest
from loguru import logger


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_tutor.db")
    return db_path


@pytest.fixture
def now():
    """A fixed reference time so schedules are reproducible."""
    return datetime(2023, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def log_messages():
    """Capture loguru output as a list of plain messages."""
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
