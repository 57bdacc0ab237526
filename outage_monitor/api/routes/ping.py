"""
Heartbeat and registration endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import structlog

from outage_monitor.api.dependencies import is_api_key, require_api_key
from outage_monitor.core.timeutils import now_ms
from outage_monitor.database.connection import get_database
from outage_monitor.schemas.device import RegisterRequest, RegisterResponse
from outage_monitor.services import ledger
from outage_monitor.services.device_status import handle_heartbeat

logger = structlog.get_logger(__name__)
router = APIRouter()

@router.get("/ping")
def ping(key: Optional[str] = Query(None), db: Session = Depends(get_database)):
    """Heartbeat from a pinger.

    A device key pings that device; the deployment API key pings the
    implicit default device.
    """
    now = now_ms()
    device = ledger.get_device_by_key(db, key)
    if device is None:
        if not is_api_key(key):
            raise HTTPException(status_code=401, detail="Unauthorized")
        device = ledger.ensure_default_device(db, now)

    handle_heartbeat(db, device, now)
    return {"ok": True}

@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(body: RegisterRequest, db: Session = Depends(get_database), _: str = Depends(require_api_key)):
    """Register a new pinger and hand out its ping key"""
    name = (body.name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Device name is required")
    group_name = (body.group_name or "").strip()

    device = ledger.register_device(db, name, group_name, now_ms())
    db.commit()

    logger.info("Device registered", device_id=device.id, name=name, group_name=group_name)
    return RegisterResponse(
        id=device.id,
        key=device.key,
        name=device.name,
        group_name=device.group_name,
        ping_url=f"/ping?key={device.key}",
    )
