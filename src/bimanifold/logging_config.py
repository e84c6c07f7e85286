import logging
import json
import time
import threading
from datetime import datetime

import numpy as np

COMPONENTS = ['stepper', 'monitor', 'scenarios', 'policy', 'invariants', 'timestep', 'junction']


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "thread": threading.current_thread().name,
            "thread_id": threading.get_ident(),
        }

        # Structured payload passed as extra={"extra_data": {...}}
        if hasattr(record, 'extra_data'):
            log_entry.update(record.extra_data)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=_json_default)


def _json_default(obj):
    if isinstance(obj, np.generic):
        return obj.item()
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    return str(obj)


def setup_logging(level=logging.INFO, log_file=None):
    """Setup structured JSON logging for the simulator components."""
    logger = logging.getLogger('bimanifold')
    logger.setLevel(level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    formatter = JSONFormatter()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    for comp in COMPONENTS:
        comp_logger = logging.getLogger(f'bimanifold.{comp}')
        comp_logger.setLevel(level)
        comp_logger.propagate = True

    return logger


class Timer:
    """Wall-clock span of a `with` block, readable while it is still running."""

    def __init__(self, name=""):
        self.name = name
        self._span = None

    def __enter__(self):
        self._span = [time.perf_counter(), None]
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._span[1] = time.perf_counter()

    def elapsed_ms(self):
        if self._span is None:
            return 0.0
        start, stop = self._span
        return ((stop or time.perf_counter()) - start) * 1000


def field_summary(values):
    """Range and peak magnitude of a grid field for log payloads."""
    values = np.asarray(values, dtype=np.float64)
    if values.size == 0:
        return {"min": None, "max": None, "max_abs": None}
    return {
        "min": float(values.min()),
        "max": float(values.max()),
        "max_abs": float(np.abs(values).max()),
    }
