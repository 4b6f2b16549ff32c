from fastapi import Request

from checkin_service.bridge.service import CardScanBridge
from checkin_service.services import (
    AttendeeDirectory,
    CertificateIssuer,
    CheckinLedger,
    SessionRegistry,
)
from checkin_service.stores.interfaces import Store

# Services are built once in the application lifespan and kept on app.state

def get_store(request: Request) -> Store:
    return request.app.state.store

def get_directory(request: Request) -> AttendeeDirectory:
    return request.app.state.directory

def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry

def get_ledger(request: Request) -> CheckinLedger:
    return request.app.state.ledger

def get_issuer(request: Request) -> CertificateIssuer:
    return request.app.state.issuer

def get_bridge(request: Request) -> CardScanBridge:
    return request.app.state.bridge
