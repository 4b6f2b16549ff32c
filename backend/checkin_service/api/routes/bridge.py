from fastapi import APIRouter, Depends

from checkin_service.api.deps import get_bridge
from checkin_service.bridge.service import CardScanBridge
from checkin_service.schemas import BridgeStatusResult

router = APIRouter()

@router.get("/bridge/status", response_model=BridgeStatusResult)
async def bridge_status(bridge: CardScanBridge = Depends(get_bridge)):
    """Connection state of the card reader bridge"""
    current = bridge.status()
    return BridgeStatusResult(
        connected=current.connected,
        channel_id=current.channel_id,
        speed=current.speed,
        state=current.state,
        last_error=current.last_error,
        scans_processed=current.scans_processed,
        reconnect_attempts=current.reconnect_attempts,
    )
