"""
Device / outage ledger.

Thin query layer over the ORM models. Writes that must not apply twice are
conditional (update-only-if-expected-state, insert-if-absent) so overlapping
invocations cannot open a second outage or a second chart message. Functions
here never commit; the caller owns the transaction.
"""

import uuid
from typing import List, Optional

from sqlalchemy import and_, func, or_, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import FlushError
from sqlalchemy.orm import Session
import structlog

from outage_monitor.models import (
    Device, DeviceState, DEFAULT_DEVICE_ID, Ping, Outage,
    WeeklyChartState, CHART_STATE_ID,
)

logger = structlog.get_logger(__name__)

# Devices

def get_device(db: Session, device_id: str) -> Optional[Device]:
    return db.query(Device).filter(Device.id == device_id).first()

def get_device_by_key(db: Session, key: str) -> Optional[Device]:
    if not key:
        return None
    return db.query(Device).filter(Device.key == key).first()

def list_devices(db: Session) -> List[Device]:
    return db.query(Device).order_by(Device.group_name, Device.name).all()

def ensure_default_device(db: Session, now: int) -> Device:
    """Return the implicit single-deployment device, creating it on first use."""
    device = get_device(db, DEFAULT_DEVICE_ID)
    if device:
        return device

    try:
        with db.begin_nested():
            device = Device(id=DEFAULT_DEVICE_ID, name="device", group_name="",
                            status=DeviceState.UNKNOWN, created_at=now)
            db.add(device)
        logger.info("Default device created", device_id=DEFAULT_DEVICE_ID)
        return device
    except IntegrityError:
        # Created by a concurrent request
        return get_device(db, DEFAULT_DEVICE_ID)

def register_device(db: Session, name: str, group_name: str, now: int) -> Device:
    device = Device(
        id=str(uuid.uuid4()),
        key=uuid.uuid4().hex,
        name=name,
        group_name=group_name or "",
        status=DeviceState.UNKNOWN,
        created_at=now,
    )
    db.add(device)
    db.flush()
    return device

def get_stale_online_devices(db: Session, threshold_ms: int, now: int) -> List[Device]:
    cutoff = now - threshold_ms
    return db.query(Device).filter(
        Device.status == DeviceState.ONLINE,
        Device.last_ping < cutoff,
    ).all()

def record_ping(db: Session, device_id: str, now: int):
    db.add(Ping(device_id=device_id, timestamp=now))
    db.execute(
        update(Device).where(Device.id == device_id).values(last_ping=now)
    )

def mark_online(db: Session, device_id: str, from_status: str, now: int) -> bool:
    """Move a device to online if it is still in from_status.

    Only a recovery from offline stamps last_status_change.
    """
    values = {"status": DeviceState.ONLINE}
    if from_status == DeviceState.OFFLINE:
        values["last_status_change"] = now
    result = db.execute(
        update(Device)
        .where(Device.id == device_id, Device.status == from_status)
        .values(**values)
    )
    return result.rowcount == 1

def mark_offline(db: Session, device_id: str, changed_at: int, cutoff: int) -> bool:
    """Move a device to offline if it is still online and stale at cutoff."""
    result = db.execute(
        update(Device)
        .where(
            Device.id == device_id,
            Device.status == DeviceState.ONLINE,
            Device.last_ping < cutoff,
        )
        .values(status=DeviceState.OFFLINE, last_status_change=changed_at)
    )
    return result.rowcount == 1

# Outages

def get_open_outage(db: Session, device_id: str) -> Optional[Outage]:
    return db.query(Outage).filter(
        Outage.device_id == device_id,
        Outage.end_time.is_(None),
    ).order_by(Outage.start_time.desc()).first()

def open_outage(db: Session, device_id: str, start_time: int) -> Optional[Outage]:
    """Insert an open outage unless one is already open for the device."""
    if get_open_outage(db, device_id) is not None:
        return None
    outage = Outage(device_id=device_id, start_time=start_time)
    db.add(outage)
    db.flush()
    return outage

def close_outage(db: Session, device_id: str, end_time: int) -> Optional[Outage]:
    """Close the most recent open outage. No open outage is a no-op."""
    outage = get_open_outage(db, device_id)
    if outage is None:
        logger.info("No open outage to close", device_id=device_id)
        return None
    end_time = max(end_time, outage.start_time)
    outage.end_time = end_time
    outage.duration = (end_time - outage.start_time) // 1000
    db.flush()
    return outage

def outages_overlapping(db: Session, start_ms: int, end_ms: int, device_id: str = None) -> List[Outage]:
    """Outages intersecting [start_ms, end_ms), open ones included."""
    query = db.query(Outage).filter(
        Outage.start_time < end_ms,
        or_(Outage.end_time.is_(None), Outage.end_time > start_ms),
    )
    if device_id:
        query = query.filter(Outage.device_id == device_id)
    return query.order_by(Outage.start_time).all()

def get_outages(db: Session, since_ms: int) -> list:
    """Outages started after since_ms, newest first, with device name and group."""
    rows = db.query(Outage, Device.name, Device.group_name).join(
        Device, Outage.device_id == Device.id
    ).filter(Outage.start_time > since_ms).order_by(Outage.start_time.desc()).all()
    return [
        {
            "id": outage.id,
            "device_id": outage.device_id,
            "start_time": outage.start_time,
            "end_time": outage.end_time,
            "duration": outage.duration,
            "device_name": name,
            "device_group": group_name,
        }
        for outage, name, group_name in rows
    ]

def get_stats(db: Session, since_ms: int) -> list:
    """Closed-outage totals per device since since_ms."""
    rows = db.query(
        Device.id,
        Device.name,
        Device.group_name,
        func.coalesce(func.sum(Outage.duration), 0),
        func.count(Outage.id),
    ).outerjoin(
        Outage,
        and_(
            Outage.device_id == Device.id,
            Outage.start_time > since_ms,
            Outage.duration.isnot(None),
        ),
    ).group_by(Device.id, Device.name, Device.group_name).order_by(Device.group_name, Device.name).all()

    return [
        {
            "device_id": device_id,
            "device_name": name,
            "group_name": group_name,
            "total_outage_seconds": int(total or 0),
            "outage_count": int(count or 0),
        }
        for device_id, name, group_name, total, count in rows
    ]

# Weekly chart state

def get_chart_state(db: Session) -> Optional[WeeklyChartState]:
    return db.query(WeeklyChartState).filter(WeeklyChartState.id == CHART_STATE_ID).first()

def create_chart_state(db: Session, message_id: int, week_start: int) -> bool:
    """Insert the chart row if absent. False when another tick got there first."""
    try:
        with db.begin_nested():
            db.add(WeeklyChartState(id=CHART_STATE_ID, message_id=message_id, week_start=week_start))
        return True
    except (IntegrityError, FlushError):
        return False

def clear_chart_state(db: Session, message_id: int, week_start: int) -> bool:
    """Delete the chart row only if it still tracks the expected message and week."""
    result = db.execute(
        delete(WeeklyChartState).where(
            WeeklyChartState.id == CHART_STATE_ID,
            WeeklyChartState.message_id == message_id,
            WeeklyChartState.week_start == week_start,
        )
    )
    return result.rowcount == 1
