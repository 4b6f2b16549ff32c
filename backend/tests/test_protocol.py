"""Unit tests for the card reader line protocol.

Run with: pytest tests/test_protocol.py -v
"""

import pytest

from checkin_service.bridge.protocol import (
    CardDetected,
    CardRemoved,
    DeviceError,
    DeviceStatus,
    Diagnostic,
    decode_line,
    parse_line,
)


class TestParseLine:
    """Tests for parse_line."""

    def test_card_detected(self):
        event = parse_line('{"event": "card_detected", "uuid": "card-A", "uid_hardware": "04:A2:19"}')
        assert event == CardDetected(card_identifier="card-A", hardware_uid="04:A2:19")

    def test_card_detected_without_hardware_uid(self):
        assert parse_line('{"event": "card_detected", "uuid": "card-A"}') == CardDetected("card-A")

    def test_card_removed(self):
        assert parse_line('{"event": "card_removed"}') == CardRemoved()

    def test_status(self):
        assert parse_line('{"status": "ready"}') == DeviceStatus("ready")

    def test_error(self):
        assert parse_line('{"error": "antenna fault"}') == DeviceError("antenna fault")

    @pytest.mark.parametrize(
        "line",
        [
            "RC522 reader v2.1 booting",
            '{"event": "card_detected", "uuid": ',
            '{"event": "card_detected"}',
            '{"event": "card_detected", "uuid": ""}',
            '{"event": "card_detected", "uuid": 42}',
            '{"event": "unknown"}',
            "[1, 2, 3]",
            "",
        ],
    )
    def test_everything_else_is_diagnostic(self, line):
        """Malformed or unknown frames never raise."""
        assert isinstance(parse_line(line), Diagnostic)

    def test_surrounding_whitespace_is_ignored(self):
        assert parse_line('  {"status": "ready"}\r\n') == DeviceStatus("ready")


class TestDecodeLine:
    def test_invalid_utf8_is_replaced(self):
        assert decode_line(b"\xff\xfeok\r\n") == "��ok"
