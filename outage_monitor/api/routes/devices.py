"""
Device status endpoints
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from outage_monitor.api.dependencies import require_api_key
from outage_monitor.core.timeutils import now_ms
from outage_monitor.database.connection import get_database
from outage_monitor.schemas.device import DeviceListResponse, DeviceResponse, DeviceStatus, StatusResponse
from outage_monitor.services import ledger

router = APIRouter(dependencies=[Depends(require_api_key)])

@router.get("/status", response_model=StatusResponse)
def get_status(db: Session = Depends(get_database)):
    """Current status of every device"""
    now = now_ms()
    devices = [
        DeviceStatus(
            id=d.id,
            name=d.name,
            group_name=d.group_name,
            status=d.status,
            last_ping=d.last_ping,
            last_ping_ago=(now - d.last_ping) // 1000 if d.last_ping else None,
            last_status_change=d.last_status_change,
        )
        for d in ledger.list_devices(db)
    ]
    return StatusResponse(devices=devices, timestamp=now)

@router.get("/devices", response_model=DeviceListResponse)
def get_devices(db: Session = Depends(get_database)):
    """All registered devices"""
    return DeviceListResponse(devices=[DeviceResponse.from_orm(d) for d in ledger.list_devices(db)])
