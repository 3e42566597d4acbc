import os
from datetime import datetime, timedelta

import pytest

from request_audit.config import Config
from request_audit.entry import LogRecord


class FakeClock:
    """Mutable clock injected wherever a time_func is accepted."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def run_inline(fn, *args):
    """Spawn replacement that runs background work synchronously."""
    fn(*args)


def read_lines(path) -> list[str]:
    with open(path, "r", encoding="utf-8") as f:
        return f.readlines()


def request_log_files(config: Config) -> list[str]:
    directory = config.request_log_dir
    if not os.path.isdir(directory):
        return []
    return sorted(os.path.join(directory, name) for name in os.listdir(directory))


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 1, 15, 12, 0, 0))


@pytest.fixture
def config(tmp_path):
    """Logging enabled, every threshold disabled; tests override what they need."""
    return Config(
        log_dir=str(tmp_path),
        max_file_size_bytes=0,
        max_records=0,
        max_age_days=0,
        max_backups=0,
        compress_age_days=0,
    )


@pytest.fixture
def make_record(clock):
    counter = {"n": 0}

    def _make(**overrides) -> LogRecord:
        counter["n"] += 1
        fields = dict(
            timestamp=clock(),
            request_id=f"req-{counter['n']:06d}",
            model="gpt-4o",
            method="POST",
            path="/v1/chat/completions",
            request_body='{"messages": []}',
        )
        fields.update(overrides)
        return LogRecord(**fields)

    return _make
