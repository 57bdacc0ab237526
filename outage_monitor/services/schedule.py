"""
Half-hour schedule slot model and reconciliation.

A day is 48 booleans; slot i covers [i*30min, (i+1)*30min) of the local day
and is True when power is scheduled ON. Everything here is a pure function of
(schedule, now) so it can be table-tested.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Mapping, Optional, Sequence

SLOTS_PER_DAY = 48
SLOT_MINUTES = 30

Slots = Sequence[bool]

class SlotCode(Enum):
    """Per-hour code published by the schedule feed"""
    OFF = "no"
    FIRST_HALF_OFF = "first"
    SECOND_HALF_OFF = "second"
    ON = "yes"

    @classmethod
    def from_raw(cls, raw) -> "SlotCode":
        # Unknown or missing codes mean power is on for the whole hour
        for code in cls:
            if code.value == raw:
                return code
        return cls.ON

    @property
    def halves(self) -> tuple:
        return _HALVES[self]

_HALVES = {
    SlotCode.OFF: (False, False),
    SlotCode.FIRST_HALF_OFF: (False, True),
    SlotCode.SECOND_HALF_OFF: (True, False),
    SlotCode.ON: (True, True),
}

@dataclass(frozen=True)
class SlotTime:
    """A slot boundary as a local clock time, optionally on the following day"""
    slot: int
    next_day: bool = False

    @property
    def clock(self) -> str:
        idx = self.slot % SLOTS_PER_DAY
        return f"{idx // 2:02d}:{(idx % 2) * SLOT_MINUTES:02d}"

    def __str__(self):
        return self.clock

@dataclass(frozen=True)
class OutageWindow:
    """A contiguous block of scheduled OFF slots"""
    start: str
    end: str

def parse_day(day_schedule: Optional[Mapping[str, str]]) -> list:
    """Expand feed hour codes ("1".."24", hour h covers h-1:00..h:00) into 48 slots."""
    day_schedule = day_schedule or {}
    slots = []
    for hour in range(1, 25):
        slots.extend(SlotCode.from_raw(day_schedule.get(str(hour))).halves)
    return slots

def slot_to_time(slot_index: int) -> str:
    return SlotTime(slot_index).clock

def current_slot(now: datetime) -> int:
    """Slot index of a local datetime"""
    return now.hour * 2 + (1 if now.minute >= SLOT_MINUTES else 0)

def is_valid_day(slots) -> bool:
    return slots is not None and len(slots) == SLOTS_PER_DAY

def get_scheduled_restoration(today: Optional[Slots], tomorrow: Optional[Slots], now: datetime) -> Optional[SlotTime]:
    """When the ongoing outage should end according to the schedule.

    Returns None for an unplanned outage (the current slot is scheduled ON)
    or when no ON slot is left in the data. Without today's schedule only
    tomorrow is searched.
    """
    if is_valid_day(today):
        slot = current_slot(now)
        if today[slot]:
            return None

        for i in range(slot, SLOTS_PER_DAY):
            if today[i]:
                return SlotTime(i)

    if is_valid_day(tomorrow):
        for i in range(SLOTS_PER_DAY):
            if tomorrow[i]:
                return SlotTime(i, next_day=True)

    return None

def get_next_scheduled_outage(today: Optional[Slots], tomorrow: Optional[Slots], now: datetime) -> Optional[OutageWindow]:
    """Next distinct scheduled OFF block after now, over today and tomorrow.

    If now falls inside an OFF block, that block is skipped so the reported
    window is the following one.
    """
    if not is_valid_day(today):
        return None

    timeline = list(today) + (list(tomorrow) if is_valid_day(tomorrow) else [])
    slot = current_slot(now)

    search_from = slot + 1
    if not timeline[slot]:
        while search_from < len(timeline) and not timeline[search_from]:
            search_from += 1

    start = next((i for i in range(search_from, len(timeline)) if not timeline[i]), None)
    if start is None:
        return None

    end = start
    while end < len(timeline) and not timeline[end]:
        end += 1

    return OutageWindow(start=slot_to_time(start), end=slot_to_time(end))
