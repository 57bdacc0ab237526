"""
Device status state machine: Unknown -> Online <-> Offline.

Online is entered only from a heartbeat, Offline only from the staleness
sweep. Each transition updates the device row and opens or closes the
matching Outage in one transaction, guarded by a conditional update on the
expected prior status so overlapping invocations cannot apply it twice.
Notifications are sent after commit and are best effort.
"""

from dataclasses import dataclass
from typing import List, Optional

import structlog
from sqlalchemy.orm import Session

from outage_monitor.core.config import settings
from outage_monitor.core.timeutils import now_ms as current_ms, to_local
from outage_monitor.models import Device, DeviceState, Outage
from outage_monitor.services import ledger
from outage_monitor.services.messages import format_outage_message, format_recovery_message
from outage_monitor.services.schedule import get_next_scheduled_outage, get_scheduled_restoration
from outage_monitor.services.schedule_cache import load_today_tomorrow, schedule_group_for
from outage_monitor.services.telegram import TelegramClient

logger = structlog.get_logger(__name__)

@dataclass
class Transition:
    """Outcome of a heartbeat or sweep for one device"""
    device_id: str
    from_status: str
    to_status: str
    at: int
    outage: Optional[Outage] = None
    duration_ms: int = 0  # time spent in from_status
    notified: bool = False

def outage_start_for(device: Device, now: int) -> int:
    """Instant an outage is recorded to begin.

    The last heartbeat is the last moment the device was known to have
    power; detection lags it by up to one staleness threshold.
    """
    if settings.outage_start_from_last_ping and device.last_ping is not None:
        return min(device.last_ping, now)
    return now

def handle_heartbeat(db: Session, device: Device, now: int = None, messenger: TelegramClient = None) -> Optional[Transition]:
    """Record a ping; recover the device if it was offline.

    Returns the transition applied, or None when the device was already online.
    """
    now = now or current_ms()
    prior_status = device.status
    prior_change = device.last_status_change
    device_id = device.id

    ledger.record_ping(db, device_id, now)

    if prior_status == DeviceState.ONLINE:
        db.commit()
        return None

    if not ledger.mark_online(db, device_id, prior_status, now):
        # Another invocation already moved it
        db.commit()
        return None

    outage = None
    if prior_status == DeviceState.OFFLINE:
        outage = ledger.close_outage(db, device_id, now)
    db.commit()

    transition = Transition(
        device_id=device_id,
        from_status=prior_status,
        to_status=DeviceState.ONLINE,
        at=now,
        outage=outage,
        duration_ms=now - prior_change if prior_change else 0,
    )
    logger.info("Device online", device_id=device_id, from_status=prior_status,
                offline_ms=transition.duration_ms)

    if prior_status == DeviceState.OFFLINE:
        transition.notified = _notify_recovery(db, device, transition, messenger)
    return transition

def _notify_recovery(db: Session, device: Device, transition: Transition, messenger: TelegramClient = None) -> bool:
    try:
        today, tomorrow = load_today_tomorrow(db, schedule_group_for(device.group_name), transition.at)
        next_outage = get_next_scheduled_outage(today, tomorrow, to_local(transition.at))
        message = format_recovery_message(transition.at, transition.duration_ms, next_outage)
        return (messenger or TelegramClient()).send_message(message)
    except Exception as e:
        logger.error("Failed to send recovery notification", device_id=transition.device_id, error=str(e))
        return False

def mark_device_offline(db: Session, device: Device, now: int, messenger: TelegramClient = None) -> Optional[Transition]:
    """Apply the Online -> Offline transition to one stale device."""
    device_id = device.id
    prior_change = device.last_status_change
    started_at = outage_start_for(device, now)
    cutoff = now - settings.stale_threshold_ms

    if not ledger.mark_offline(db, device_id, started_at, cutoff):
        # Pinged meanwhile, or already offline
        db.rollback()
        return None

    outage = ledger.open_outage(db, device_id, started_at)
    db.commit()

    transition = Transition(
        device_id=device_id,
        from_status=DeviceState.ONLINE,
        to_status=DeviceState.OFFLINE,
        at=started_at,
        outage=outage,
        duration_ms=started_at - prior_change if prior_change else 0,
    )
    logger.info("Device offline", device_id=device_id, outage_start=started_at,
                online_ms=transition.duration_ms, outage_opened=outage is not None)

    transition.notified = _notify_outage(db, device, transition, now, messenger)
    return transition

def _notify_outage(db: Session, device: Device, transition: Transition, now: int, messenger: TelegramClient = None) -> bool:
    try:
        today, tomorrow = load_today_tomorrow(db, schedule_group_for(device.group_name), now)
        restoration = get_scheduled_restoration(today, tomorrow, to_local(now))
        message = format_outage_message(transition.at, transition.duration_ms, restoration)
        return (messenger or TelegramClient()).send_message(message)
    except Exception as e:
        logger.error("Failed to send outage notification", device_id=transition.device_id, error=str(e))
        return False

def sweep_stale_devices(db: Session, now: int = None, messenger: TelegramClient = None) -> List[Transition]:
    """Mark every online device without a recent heartbeat as offline.

    Devices are processed independently: a failure rolls back that device
    and the sweep moves on.
    """
    now = now or current_ms()
    messenger = messenger or TelegramClient()
    stale = ledger.get_stale_online_devices(db, settings.stale_threshold_ms, now)

    transitions = []
    for device in stale:
        device_id = device.id
        try:
            transition = mark_device_offline(db, device, now, messenger)
        except Exception as e:
            db.rollback()
            logger.error("Error marking device offline", device_id=device_id, error=str(e))
            continue
        if transition:
            transitions.append(transition)

    if stale:
        logger.info("Staleness sweep finished", stale=len(stale), transitioned=len(transitions))
    return transitions
