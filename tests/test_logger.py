import logging

import pytest
from loguru import logger

from tirepoint_search.storage.database import Database
from tirepoint_search.utils.logger import InterceptHandler, intercept_stdlib_logging


@pytest.fixture
def captured():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    messages = []
    sink_id = logger.add(lambda message: messages.append(message.record), level="DEBUG")

    yield messages

    logger.remove(sink_id)
    root.handlers = saved_handlers
    root.setLevel(saved_level)


def test_stdlib_records_reach_loguru(captured):
    handler = intercept_stdlib_logging("DEBUG")

    logging.getLogger("tirepoint_search.storage.database").warning("Duplicate term %s", "gmc")

    assert isinstance(handler, InterceptHandler)
    assert any(
        record["message"] == "Duplicate term gmc" and record["level"].name == "WARNING"
        for record in captured
    )


def test_intercept_respects_level(captured):
    intercept_stdlib_logging("WARNING")

    logging.getLogger("sqlalchemy.engine").info("SELECT 1")

    assert not any(record["message"] == "SELECT 1" for record in captured)


def test_storage_logging_is_forwarded(captured):
    intercept_stdlib_logging("DEBUG")

    db = Database("sqlite:///:memory:")
    db.insert_term("vehicle-make", "GMC")

    assert any(record["name"].startswith("tirepoint_search") for record in captured)
