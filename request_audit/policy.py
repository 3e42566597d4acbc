"""Rotation policy: decides when the active request log must be replaced."""

from datetime import datetime

from request_audit.config import Config

DATE_STAMP_FORMAT = "%Y%m%d"


def rotation_reason(active, config: Config, now: datetime) -> str | None:
    """Return why the active file needs rotating ("date", "size", "records"), or None."""
    if active.date_stamp != now.strftime(DATE_STAMP_FORMAT):
        return "date"
    if config.max_file_size_bytes > 0 and active.bytes_written >= config.max_file_size_bytes:
        return "size"
    if config.max_records > 0 and active.records_written >= config.max_records:
        return "records"
    return None


def should_rotate(active, config: Config, now: datetime) -> bool:
    return rotation_reason(active, config, now) is not None
