from fastapi import APIRouter, Depends
import logging

from checkin_service.api.deps import get_bridge, get_store
from checkin_service.bridge.service import CardScanBridge
from checkin_service.schemas import HealthResult
from checkin_service.stores.interfaces import Store

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("/health", response_model=HealthResult)
async def health_check(
    store: Store = Depends(get_store),
    bridge: CardScanBridge = Depends(get_bridge),
):
    """Health check endpoint"""
    database_ok = await store.ping()
    if not database_ok:
        logger.error("Health check failed: database unreachable")

    return HealthResult(
        status="healthy" if database_ok else "unhealthy",
        database="connected" if database_ok else "unreachable",
        bridge=bridge.state,
        service="rfid-checkin",
    )
