"""
Notification texts (Telegram HTML)
"""

from typing import Optional

from outage_monitor.core.timeutils import MINUTE_MS, clock_str
from outage_monitor.services.schedule import OutageWindow, SlotTime

def format_duration(ms: int) -> str:
    total_min = ms // MINUTE_MS
    hours, mins = divmod(total_min, 60)
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins}m"

def format_outage_message(time_ms: int, online_duration_ms: int, restoration: Optional[SlotTime]) -> str:
    """
    🔴 05:48 Power went out
    🕓 It was on for 3h 4m
    🗓 Expected by schedule at 12:30
    """
    lines = [f"<b>🔴 {clock_str(time_ms)} Power went out</b>"]
    if online_duration_ms > 0:
        lines.append(f"🕓 It was on for {format_duration(online_duration_ms)}")
    if restoration is not None:
        when = f"tomorrow at {restoration.clock}" if restoration.next_day else f"at {restoration.clock}"
        lines.append(f"🗓 Expected by schedule <b>{when}</b>")
    return "\n".join(lines)

def format_recovery_message(time_ms: int, offline_duration_ms: int, next_outage: Optional[OutageWindow]) -> str:
    """
    🟢 02:44 Power is back
    🕓 It was off for 7h 19m
    🗓 Next planned outage: 05:30 - 12:30
    """
    lines = [f"<b>🟢 {clock_str(time_ms)} Power is back</b>"]
    if offline_duration_ms > 0:
        lines.append(f"🕓 It was off for {format_duration(offline_duration_ms)}")
    if next_outage is not None:
        lines.append(f"🗓 Next planned outage: <b>{next_outage.start} - {next_outage.end}</b>")
    return "\n".join(lines)
