"""Tests for util.logger correlation ids and util.timing."""
from __future__ import annotations

import logging
import re

from util.logger import CorrelationFilter, correlation_id, new_correlation_id
from util.timing import timed


class TestCorrelation:
    def test_id_format(self) -> None:
        assert re.fullmatch(r"\d{13}-[a-z0-9]{5}", new_correlation_id())

    def test_filter_stamps_current_id(self) -> None:
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        token = correlation_id.set("1700000000000-abcde")
        try:
            assert CorrelationFilter().filter(record) is True
        finally:
            correlation_id.reset(token)
        assert record.cid == "1700000000000-abcde"

    def test_default_id(self) -> None:
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        CorrelationFilter().filter(record)
        assert record.cid == "-"


class TestTimed:
    def test_logs_done_line_with_fields(self, caplog) -> None:
        log = logging.getLogger("tests.timing")
        with caplog.at_level(logging.INFO, logger="tests.timing"):
            with timed(log, "work", items=3) as elapsed:
                pass
        assert elapsed.ms >= 0
        assert re.search(r"work\.done ms=\d+ items=3", caplog.text)
