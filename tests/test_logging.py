"""
Tests for the logging setup.
"""

import json
import logging

from ledger.logging_config import JSONFormatter, setup_logging


class TestLogging:

    def test_json_formatter_emits_one_object(self):
        record = logging.LogRecord(
            name="ledger.stores.durable",
            level=logging.ERROR,
            pathname=__file__,
            lineno=1,
            msg="Durable store failed during %s",
            args=("list_accounts",),
            exc_info=None,
        )
        entry = json.loads(JSONFormatter().format(record))

        assert entry["level"] == "ERROR"
        assert entry["logger"] == "ledger.stores.durable"
        assert entry["message"] == "Durable store failed during list_accounts"
        assert "timestamp" in entry

    def test_setup_is_idempotent(self):
        setup_logging("DEBUG", logger_name="ledger-test")
        logger = setup_logging("WARNING", json_format=True, logger_name="ledger-test")

        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)
        assert logger.level == logging.WARNING
