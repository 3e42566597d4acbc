"""Post-rotation maintenance: compression and retention of historical request logs."""

import glob
import gzip
import logging
import os
import shutil
import tempfile
import threading
from dataclasses import dataclass, field
from datetime import datetime

from request_audit.config import Config

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60
LOG_GLOB = "requests-*.jsonl"
GZ_SUFFIX = ".gz"


@dataclass
class SweepResult:
    compressed: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)


def list_log_files(directory: str) -> list[str]:
    """Return paths of plain and gzip-compressed request logs in directory."""
    plain = glob.glob(os.path.join(directory, LOG_GLOB))
    compressed = glob.glob(os.path.join(directory, LOG_GLOB + GZ_SUFFIX))
    return plain + compressed


def compress_file(filepath: str) -> str:
    """Gzip-compress a file in place. Returns the .gz path.

    The archive is written to a unique temporary sibling and renamed into
    place, and the original is removed only after that. On any failure the
    temporary file is removed and the original left untouched. A source that
    disappears after the archive is in place was already compressed by a
    concurrent pass.
    """
    gz_path = filepath + GZ_SUFFIX
    directory, name = os.path.split(filepath)
    with open(filepath, "rb") as f_in:
        src_stat = os.fstat(f_in.fileno())
        fd, tmp_path = tempfile.mkstemp(dir=directory or ".", prefix=name + ".", suffix=".gz.tmp")
        try:
            with os.fdopen(fd, "wb") as raw_out:
                with gzip.GzipFile(filename=name, mode="wb", fileobj=raw_out) as f_out:
                    shutil.copyfileobj(f_in, f_out)
            # keep the source mtime so age and ordering survive compression
            os.utime(tmp_path, (src_stat.st_atime, src_stat.st_mtime))
            os.replace(tmp_path, gz_path)
        except Exception:
            _remove_quietly(tmp_path)
            raise
    try:
        os.remove(filepath)
    except FileNotFoundError:
        pass
    return gz_path


def _remove_quietly(path: str):
    try:
        os.remove(path)
    except OSError:
        pass


def _stat_sorted_newest_first(paths: list[str]) -> list[tuple[str, float]]:
    entries = []
    for path in paths:
        try:
            entries.append((path, os.stat(path).st_mtime))
        except OSError:
            # vanished between listing and stat
            continue
    entries.sort(key=lambda item: item[1], reverse=True)
    return entries


def _resolve_path(active_path) -> str | None:
    path = active_path() if callable(active_path) else active_path
    return os.path.abspath(path) if path else None


class MaintenanceSweeper:
    """Applies age, count, and compression policies to a request log directory.

    Only one pass runs at a time; a pass started while another is running is
    skipped. ``active_path`` may be a path or a callable returning the live
    path, which is consulted for every file so a pass that outlives a later
    rotation still never touches the current file.
    """

    def __init__(self, config: Config, time_func=None):
        self._config = config
        self._time_func = time_func or datetime.now
        self._lock = threading.Lock()

    def sweep(self, directory: str, active_path=None) -> SweepResult:
        if not self._lock.acquire(blocking=False):
            logger.info("Request log maintenance already in progress, skipping")
            return SweepResult()
        try:
            return self._sweep_locked(directory, active_path)
        finally:
            self._lock.release()

    def _sweep_locked(self, directory: str, active_path) -> SweepResult:
        result = SweepResult()
        try:
            files = list_log_files(directory)
        except OSError as e:
            logger.error("Failed to list request log files in %s: %s", directory, e)
            return result
        if not files:
            return result

        now = self._time_func().timestamp()
        cfg = self._config
        rank = 0

        for path, mtime in _stat_sorted_newest_first(files):
            if os.path.abspath(path) == _resolve_path(active_path):
                continue

            name = os.path.basename(path)
            age_days = int((now - mtime) // SECONDS_PER_DAY)
            file_rank = rank
            rank += 1

            if cfg.max_age_days > 0 and age_days > cfg.max_age_days:
                if self._delete(path):
                    result.deleted.append(path)
                    logger.info("Deleted old request log: %s (age: %d days)", name, age_days)
                continue

            if cfg.max_backups > 0 and file_rank >= cfg.max_backups:
                if self._delete(path):
                    result.deleted.append(path)
                    logger.info(
                        "Deleted excess request log: %s (exceeds max backups: %d)",
                        name, cfg.max_backups,
                    )
                continue

            if (
                cfg.compress_age_days > 0
                and age_days >= cfg.compress_age_days
                and not path.endswith(GZ_SUFFIX)
            ):
                try:
                    gz_path = compress_file(path)
                except FileNotFoundError:
                    logger.debug("Request log %s vanished before compression", name)
                    continue
                except OSError as e:
                    logger.error("Failed to compress request log %s: %s", name, e)
                    continue
                result.compressed.append(gz_path)
                logger.info("Compressed request log: %s (age: %d days)", name, age_days)

        if result.compressed or result.deleted:
            logger.info(
                "Request log maintenance completed: compressed=%d, deleted=%d",
                len(result.compressed), len(result.deleted),
            )
        return result

    @staticmethod
    def _delete(path: str) -> bool:
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error("Failed to delete request log %s: %s", os.path.basename(path), e)
            return False
        return True
