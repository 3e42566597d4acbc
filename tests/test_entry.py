"""Tests for request_audit/entry.py — LogRecord, serialize, build_record."""

import dataclasses
import json
from datetime import datetime

import pytest

from request_audit.entry import LogRecord, build_record, format_timestamp, serialize

TS = datetime(2025, 1, 15, 9, 5, 7, 123456)


class TestFormatTimestamp:
    def test_millisecond_precision(self):
        assert format_timestamp(TS) == "2025-01-15 09:05:07.123"

    def test_zero_padded_millis(self):
        assert format_timestamp(datetime(2025, 1, 15, 0, 0, 0, 4000)) == "2025-01-15 00:00:00.004"


class TestToDict:
    def test_optional_fields_omitted_when_empty(self):
        data = LogRecord(timestamp=TS, request_id="abc").to_dict()
        assert data == {
            "timestamp": "2025-01-15 09:05:07.123",
            "request_id": "abc",
            "model": "",
            "method": "",
            "path": "",
            "request_body": "",
        }

    def test_all_fields_in_wire_order(self):
        record = LogRecord(
            timestamp=TS,
            request_id="abc",
            user_id=7,
            token_name="default",
            channel_id=3,
            channel_name="primary",
            model="gpt-4o",
            original_model="gpt-4",
            method="POST",
            path="/v1/chat/completions",
            request_body="{}",
            content_type="application/json",
        )
        assert list(record.to_dict()) == [
            "timestamp", "request_id", "user_id", "token_name", "channel_id",
            "channel_name", "model", "original_model", "method", "path",
            "request_body", "content_type",
        ]

    def test_record_is_immutable(self):
        record = LogRecord(timestamp=TS, request_id="abc")
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.model = "other"


class TestSerialize:
    def test_single_compact_line(self):
        data = serialize(LogRecord(timestamp=TS, request_id="abc", request_body="a\nb"))
        assert b"\n" not in data
        assert b", " not in data
        assert json.loads(data)["request_body"] == "a\nb"

    def test_non_ascii_kept_as_utf8(self):
        data = serialize(LogRecord(timestamp=TS, request_id="abc", request_body="你好"))
        assert "你好".encode("utf-8") in data


class TestBuildRecord:
    def test_stamps_clock_and_decodes_body(self):
        record = build_record(
            "req-1", "POST", "/v1/chat", b'{"q": 1}',
            model="gpt-4o", time_func=lambda: TS,
        )
        assert record.timestamp == TS
        assert record.request_body == '{"q": 1}'
        assert record.model == "gpt-4o"

    def test_undecodable_bytes_replaced(self):
        record = build_record("req-1", "POST", "/", b"\xff\xfeok", time_func=lambda: TS)
        assert record.request_body.endswith("ok")
        assert "�" in record.request_body

    def test_text_body_passed_through(self):
        record = build_record("req-1", "GET", "/", "plain", time_func=lambda: TS)
        assert record.request_body == "plain"
