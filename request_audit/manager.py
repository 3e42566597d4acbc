"""RequestLogManager — the single process-wide owner of request logging state."""

import logging
from datetime import datetime

from request_audit.config import Config
from request_audit.entry import LogRecord
from request_audit.maintenance import MaintenanceSweeper, SweepResult
from request_audit.rotation import RotationCoordinator
from request_audit.tasks import BackgroundTasks
from request_audit.writer import RequestLogWriter

logger = logging.getLogger(__name__)


class RequestLogManager:
    """Wires writer, rotation coordinator, and maintenance sweeper together.

    Construct once at startup and share by reference with every request
    handler. Nothing here raises into the caller: failures only reduce the
    amount of logging.
    """

    def __init__(self, config: Config, spawn=None, time_func=None, serializer=None):
        self.config = config
        self.tasks = BackgroundTasks()
        time_func = time_func or datetime.now
        self.time_func = time_func
        self.sweeper = MaintenanceSweeper(config, time_func=time_func)
        self.coordinator = RotationCoordinator(
            config,
            sweeper=self.sweeper,
            spawn=spawn or self.tasks.submit,
            time_func=time_func,
        )
        self.writer = RequestLogWriter(
            config, self.coordinator, serializer=serializer, time_func=time_func
        )
        if config.enabled:
            logger.info(
                "Request logging to %s (max_size=%d bytes, max_records=%d, max_age=%dd, "
                "max_backups=%d, compress_age=%dd)",
                config.request_log_dir, config.max_file_size_bytes, config.max_records,
                config.max_age_days, config.max_backups, config.compress_age_days,
            )
        else:
            logger.info("Request logging disabled (no log directory configured)")

    @property
    def active_path(self) -> str | None:
        return self.writer.active_path

    def log_request(self, record: LogRecord) -> bool:
        return self.writer.append(record)

    def rotate(self):
        """Rotate now, synchronously. No-op when disabled or a rotation is running."""
        if not self.config.enabled:
            return None
        return self.coordinator.rotate(self.writer)

    def sweep(self) -> SweepResult | None:
        """Run one maintenance pass now over the request log directory."""
        if not self.config.enabled:
            return None
        return self.sweeper.sweep(self.config.request_log_dir, lambda: self.writer.active_path)

    def close(self, timeout: float | None = 5.0):
        if not self.tasks.join(timeout):
            logger.warning("Background request log tasks still running at shutdown")
        self.writer.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False
