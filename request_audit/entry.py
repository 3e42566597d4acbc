"""Request log record and its JSON Lines serialization."""

import json
from dataclasses import dataclass
from datetime import datetime

# Fields dropped from the wire form when zero or empty.
_OMIT_WHEN_EMPTY = (
    "user_id",
    "token_name",
    "channel_id",
    "channel_name",
    "original_model",
    "content_type",
)


def format_timestamp(dt: datetime) -> str:
    """Format as ``YYYY-MM-DD HH:MM:SS.mmm``."""
    return dt.strftime("%Y-%m-%d %H:%M:%S.") + f"{dt.microsecond // 1000:03d}"


@dataclass(frozen=True)
class LogRecord:
    timestamp: datetime
    request_id: str
    user_id: int = 0
    token_name: str = ""
    channel_id: int = 0
    channel_name: str = ""
    model: str = ""
    original_model: str = ""
    method: str = ""
    path: str = ""
    request_body: str = ""
    content_type: str = ""

    def to_dict(self) -> dict:
        data = {
            "timestamp": format_timestamp(self.timestamp),
            "request_id": self.request_id,
            "user_id": self.user_id,
            "token_name": self.token_name,
            "channel_id": self.channel_id,
            "channel_name": self.channel_name,
            "model": self.model,
            "original_model": self.original_model,
            "method": self.method,
            "path": self.path,
            "request_body": self.request_body,
            "content_type": self.content_type,
        }
        for key in _OMIT_WHEN_EMPTY:
            if not data[key]:
                del data[key]
        return data


def serialize(record: LogRecord) -> bytes:
    """Encode a record as one compact UTF-8 JSON object (no trailing newline)."""
    return json.dumps(
        record.to_dict(), ensure_ascii=False, separators=(",", ":")
    ).encode("utf-8")


def build_record(
    request_id: str,
    method: str,
    path: str,
    body: bytes | str = b"",
    *,
    user_id: int = 0,
    token_name: str = "",
    channel_id: int = 0,
    channel_name: str = "",
    model: str = "",
    original_model: str = "",
    content_type: str = "",
    time_func=None,
) -> LogRecord:
    """Assemble a LogRecord from per-request metadata, stamped with the local clock."""
    now = (time_func or datetime.now)()
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    return LogRecord(
        timestamp=now,
        request_id=request_id,
        user_id=user_id,
        token_name=token_name,
        channel_id=channel_id,
        channel_name=channel_name,
        model=model,
        original_model=original_model,
        method=method,
        path=path,
        request_body=body,
        content_type=content_type,
    )
