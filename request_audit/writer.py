"""Append-only JSON Lines writer for request records."""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO

from request_audit.config import Config
from request_audit.entry import LogRecord, serialize
from request_audit.policy import rotation_reason

logger = logging.getLogger(__name__)


@dataclass
class ActiveFile:
    handle: BinaryIO
    path: str
    date_stamp: str
    bytes_written: int = 0
    records_written: int = 0


class RequestLogWriter:
    """Thread-safe writer owning the single live request log file.

    Every append and every swap of the live file happens under one lock, so
    concurrent callers never interleave partial lines and never observe a
    half-replaced file. Replacing the file is delegated to the coordinator.
    """

    def __init__(self, config: Config, coordinator, serializer=None, time_func=None):
        self._config = config
        self._coordinator = coordinator
        self._serializer = serializer or serialize
        self._time_func = time_func or datetime.now
        self._lock = threading.Lock()
        self._active: ActiveFile | None = None

    @property
    def active_path(self) -> str | None:
        with self._lock:
            return self._active.path if self._active else None

    def snapshot(self) -> dict | None:
        """Counters of the live file, for diagnostics."""
        with self._lock:
            if self._active is None:
                return None
            return {
                "path": self._active.path,
                "date_stamp": self._active.date_stamp,
                "bytes_written": self._active.bytes_written,
                "records_written": self._active.records_written,
            }

    def publish(self, new_active: ActiveFile) -> ActiveFile | None:
        """Swap in a fully opened file. Returns the previous one for the caller to close."""
        with self._lock:
            previous = self._active
            self._active = new_active
            return previous

    def append(self, record: LogRecord) -> bool:
        """Append one record as a line. Returns False if the record was skipped."""
        if not self._config.enabled:
            return False

        if self.active_path is None:
            self._coordinator.initialize(self)
            if self.active_path is None:
                return False

        try:
            line = self._serializer(record) + b"\n"
        except (TypeError, ValueError):
            logger.exception("Failed to serialize request log entry, dropping it")
            return False

        with self._lock:
            active = self._active
            if active is None:
                return False
            try:
                active.handle.write(line)
                active.handle.flush()
            except (OSError, ValueError) as e:
                logger.error("Failed to write request log to %s: %s", active.path, e)
                return False
            active.bytes_written += len(line)
            active.records_written += 1
            reason = rotation_reason(active, self._config, self._time_func())

        if reason is not None:
            self._coordinator.request_rotation(self, reason)
        return True

    def close(self):
        with self._lock:
            active, self._active = self._active, None
        if active is not None:
            try:
                active.handle.close()
            except OSError as e:
                logger.warning("Failed to close request log %s: %s", active.path, e)
