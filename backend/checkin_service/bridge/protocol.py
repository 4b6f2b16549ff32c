"""Card reader line protocol.

The reader writes one JSON object per line::

    {"event": "card_detected", "uuid": "...", "uid_hardware": "..."}
    {"event": "card_removed"}
    {"status": "ready"}
    {"error": "..."}

Anything else (boot banners, partial frames, garbage) is diagnostic text.
``parse_line`` never raises.
"""

import json
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class CardDetected:
    card_identifier: str
    hardware_uid: str | None = None


@dataclass(frozen=True)
class CardRemoved:
    pass


@dataclass(frozen=True)
class DeviceStatus:
    status: str


@dataclass(frozen=True)
class DeviceError:
    error: str


@dataclass(frozen=True)
class Diagnostic:
    text: str


ReaderEvent = Union[CardDetected, CardRemoved, DeviceStatus, DeviceError, Diagnostic]


def decode_line(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace").strip()


def parse_line(line: str) -> ReaderEvent:
    """Turn one line from the reader into an event."""
    text = line.strip()
    try:
        payload = json.loads(text)
    except ValueError:
        return Diagnostic(text)
    if not isinstance(payload, dict):
        return Diagnostic(text)

    event = payload.get("event")
    if event == "card_detected":
        card_identifier = payload.get("uuid")
        if not isinstance(card_identifier, str) or not card_identifier.strip():
            return Diagnostic(text)
        hardware_uid = payload.get("uid_hardware")
        return CardDetected(
            card_identifier=card_identifier.strip(),
            hardware_uid=str(hardware_uid) if hardware_uid is not None else None,
        )
    if event == "card_removed":
        return CardRemoved()
    if "error" in payload:
        return DeviceError(str(payload["error"]))
    if "status" in payload:
        return DeviceStatus(str(payload["status"]))
    return Diagnostic(text)
