from checkin_service.bridge.channel import Channel, SerialChannel
from checkin_service.bridge.service import (
    BridgeStatus,
    CardScanBridge,
    ConnectionState,
    ScanOutcome,
)

__all__ = [
    "BridgeStatus",
    "CardScanBridge",
    "Channel",
    "ConnectionState",
    "ScanOutcome",
    "SerialChannel",
]
