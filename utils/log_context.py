import logging
import os
import time
import uuid
from datetime import datetime

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(log_dir: str, level: str = "INFO") -> str:
    """
    Configure console logging plus a daily log file.

    Args:
        log_dir: Directory for the log file, created if missing
        level: Logging level name

    Returns:
        Path of the log file
    """
    os.makedirs(log_dir, exist_ok=True)
    logging.basicConfig(level=level, format=LOG_FORMAT)

    log_file_path = os.path.join(log_dir, f"app_{datetime.now().strftime('%Y%m%d')}.log")
    root = logging.getLogger()
    already_attached = any(
        isinstance(handler, logging.FileHandler) and handler.baseFilename == os.path.abspath(log_file_path)
        for handler in root.handlers
    )
    if not already_attached:
        file_handler = logging.FileHandler(log_file_path)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(file_handler)
    return log_file_path


def new_request_id() -> str:
    return str(uuid.uuid4())[:8]


class LogContext:
    """
    Log the start and end of one stage of request handling.

    Every record emitted by the context carries the request id plus any
    extra fields given at construction, and the closing record adds the
    stage duration in milliseconds. An exception leaving the block is
    logged with its traceback and then re-raised.
    """
    def __init__(self, stage: str, **fields):
        self.stage = stage
        self.request_id = fields.pop('request_id', None) or new_request_id()
        self.fields = fields
        self.started = None

    def _extra(self, **more):
        return {"request_id": self.request_id, **self.fields, **more}

    def __enter__(self):
        self.started = time.perf_counter()
        logger.info(f"{self.stage} started", extra=self._extra())
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration_ms = round((time.perf_counter() - self.started) * 1000, 2)
        if exc_type is None:
            logger.info(f"{self.stage} finished in {duration_ms}ms", extra=self._extra(duration_ms=duration_ms))
        else:
            logger.error(
                f"{self.stage} failed after {duration_ms}ms: {exc_val}",
                extra=self._extra(duration_ms=duration_ms),
                exc_info=(exc_type, exc_val, exc_tb)
            )
        return False
