"""Rotation coordinator: swaps the live request log for a fresh file, one rotation at a time."""

import logging
import os
import threading
from datetime import datetime

from request_audit.config import Config
from request_audit.policy import DATE_STAMP_FORMAT
from request_audit.tasks import BackgroundTasks
from request_audit.writer import ActiveFile

logger = logging.getLogger(__name__)

FILE_PREFIX = "requests-"
FILE_SUFFIX = ".jsonl"


def build_log_path(directory: str, now: datetime, suffix: int = 0) -> str:
    """requests-YYYYMMDD-HHMMSS.jsonl, with -N appended for same-second collisions."""
    name = FILE_PREFIX + now.strftime("%Y%m%d-%H%M%S")
    if suffix:
        name += f"-{suffix}"
    return os.path.join(directory, name + FILE_SUFFIX)


class RotationCoordinator:
    """Opens the next request log file and publishes it to the writer.

    The rotation lock is only ever try-acquired on the rotation path: a
    trigger that loses the race is a logged no-op, and the next append that
    still finds the file due will trigger again. The new file is fully opened
    before it is published, so writers see either the old handle or the new
    one, never neither.
    """

    def __init__(self, config: Config, sweeper=None, spawn=None, time_func=None):
        self._config = config
        self._sweeper = sweeper
        self._spawn = spawn or BackgroundTasks().submit
        self._time_func = time_func or datetime.now
        self._lock = threading.Lock()
        self._pending_lock = threading.Lock()
        self._pending = False

    @property
    def pending(self) -> bool:
        with self._pending_lock:
            return self._pending

    def initialize(self, writer) -> ActiveFile | None:
        """First-time setup. Waits for an in-flight rotation instead of skipping."""
        with self._lock:
            if writer.active_path is not None:
                return None
            return self._rotate_locked(writer)

    def rotate(self, writer) -> ActiveFile | None:
        """Replace the writer's live file. No-op if a rotation is already running."""
        if not self._lock.acquire(blocking=False):
            logger.info("Request log rotation already in progress, skipping")
            return None
        try:
            return self._rotate_locked(writer)
        finally:
            self._lock.release()

    def request_rotation(self, writer, reason: str | None = None) -> bool:
        """Schedule a background rotation unless one is already pending."""
        with self._pending_lock:
            if self._pending:
                return False
            self._pending = True

        logger.info("Request log rotation due (%s), scheduling", reason or "requested")
        try:
            self._spawn(self._rotate_in_background, writer)
        except RuntimeError as e:
            logger.error("Failed to schedule request log rotation: %s", e)
            with self._pending_lock:
                self._pending = False
            return False
        return True

    def _rotate_in_background(self, writer):
        try:
            self.rotate(writer)
        finally:
            with self._pending_lock:
                self._pending = False

    def _open(self, path: str):
        return open(path, "ab")

    def _next_path(self, directory: str, now: datetime, current: str | None) -> str:
        suffix = 0
        path = build_log_path(directory, now)
        while path == current or os.path.exists(path):
            suffix += 1
            path = build_log_path(directory, now, suffix)
        return path

    def _rotate_locked(self, writer) -> ActiveFile | None:
        directory = self._config.request_log_dir
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            logger.error("Failed to create request log directory %s: %s", directory, e)
            return None

        now = self._time_func()
        path = self._next_path(directory, now, writer.active_path)
        try:
            handle = self._open(path)
        except OSError as e:
            logger.error("Failed to open request log file %s: %s", path, e)
            return None

        try:
            size = os.fstat(handle.fileno()).st_size
        except OSError:
            size = 0

        new_active = ActiveFile(
            handle=handle,
            path=path,
            date_stamp=now.strftime(DATE_STAMP_FORMAT),
            bytes_written=size,
        )
        previous = writer.publish(new_active)
        if previous is not None:
            self._close_quietly(previous)

        logger.info("Request logger initialized: %s", path)
        self._schedule_sweep(directory, writer)
        return new_active

    def _close_quietly(self, active: ActiveFile):
        try:
            active.handle.close()
        except OSError as e:
            logger.warning("Failed to close previous request log %s: %s", active.path, e)

    def _schedule_sweep(self, directory: str, writer):
        if self._sweeper is None:
            return
        try:
            # resolved per file: the pass may outlive a later rotation
            self._spawn(self._sweeper.sweep, directory, lambda: writer.active_path)
        except RuntimeError as e:
            logger.error("Failed to schedule request log maintenance: %s", e)
