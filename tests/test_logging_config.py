"""
Tests for structured JSON logging helpers.
"""

import json
import logging

import numpy as np

from bimanifold.logging_config import COMPONENTS, JSONFormatter, Timer, field_summary, setup_logging


def reset_logging(logger):
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    for comp in COMPONENTS:
        logging.getLogger(f'bimanifold.{comp}').setLevel(logging.NOTSET)


def make_record(extra_data=None):
    record = logging.LogRecord(
        name='bimanifold.monitor', level=logging.WARNING, pathname=__file__, lineno=1,
        msg="Second-law violation flagged", args=(), exc_info=None,
    )
    if extra_data is not None:
        record.extra_data = extra_data
    return record


class TestJSONFormatter:

    def test_basic_fields(self):
        entry = json.loads(JSONFormatter().format(make_record()))
        assert entry['level'] == 'WARNING'
        assert entry['logger'] == 'bimanifold.monitor'
        assert entry['message'] == "Second-law violation flagged"
        assert 'timestamp' in entry

    def test_extra_data_merged_with_numpy_values(self):
        record = make_record({'entropy': np.float64(0.25), 'psi': np.array([1.0, 2.0])})
        entry = json.loads(JSONFormatter().format(record))
        assert entry['entropy'] == 0.25
        assert entry['psi'] == [1.0, 2.0]


class TestSetupLogging:

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "run.log"
        logger = setup_logging(logging.INFO, str(log_file))
        try:
            logging.getLogger('bimanifold.scenarios').info("hello", extra={"extra_data": {"N": 32}})
            for handler in logger.handlers:
                handler.flush()
            line = log_file.read_text().strip().splitlines()[-1]
            assert json.loads(line)['N'] == 32
        finally:
            reset_logging(logger)

    def test_handlers_replaced(self):
        logger = setup_logging(logging.DEBUG)
        try:
            logger = setup_logging(logging.DEBUG)
            assert len(logger.handlers) == 1
        finally:
            reset_logging(logger)


class TestHelpers:

    def test_timer(self):
        with Timer("work") as timer:
            sum(range(1000))
        assert timer.elapsed_ms() >= 0.0
        assert Timer().elapsed_ms() == 0.0

    def test_timer_running_and_stopped(self):
        timer = Timer("run")
        with timer:
            running = timer.elapsed_ms()
        stopped = timer.elapsed_ms()
        assert 0.0 <= running <= stopped
        assert timer.elapsed_ms() == stopped

    def test_field_summary(self):
        summary = field_summary(np.array([[1.0, -3.0], [2.0, 6.0]]))
        assert summary == {"min": -3.0, "max": 6.0, "max_abs": 6.0}
        assert json.dumps(summary)

    def test_field_summary_empty(self):
        assert field_summary(np.array([]))["max_abs"] is None
