"""
Weekly aggregation of outage intervals against the cached schedule.

A week runs from Monday 00:00 local time (inclusive) to the next Monday
(exclusive). Days are fixed 24-hour windows from the week start, so a DST
change shifts the later days by the offset difference.

compute_weekly_stats is pure: every call re-derives the snapshot from raw
outage and schedule rows, nothing is accumulated between calls.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from outage_monitor.core.config import settings
from outage_monitor.core.timeutils import DAY_MS, HOUR_MS, local_tz, to_local, to_ms
from outage_monitor.services import ledger
from outage_monitor.services.schedule import SLOTS_PER_DAY, is_valid_day
from outage_monitor.services.schedule_cache import load_schedule_days

DAY_LABELS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
SLOT_HOURS = 0.5

def round1(value: float) -> float:
    """Round half up to one decimal"""
    return math.floor(value * 10 + 0.5) / 10

@dataclass(frozen=True)
class WeekBounds:
    start_ms: int
    end_ms: int
    start_date: date

    @property
    def dates(self) -> List[date]:
        return [self.start_date + timedelta(days=i) for i in range(7)]

    def day_start_ms(self, index: int) -> int:
        return self.start_ms + index * DAY_MS

    @property
    def label(self) -> str:
        last = self.start_date + timedelta(days=6)
        return f"{self.start_date:%d.%m} - {last:%d.%m}"

def week_bounds(ref_ms: int, tz=None) -> WeekBounds:
    """Week containing ref_ms"""
    tz = tz or local_tz()
    local = to_local(ref_ms, tz)
    monday = local.date() - timedelta(days=local.weekday())
    start = to_ms(datetime(monday.year, monday.month, monday.day, tzinfo=tz))
    return WeekBounds(start_ms=start, end_ms=start + 7 * DAY_MS, start_date=monday)

@dataclass(frozen=True)
class Interval:
    """Hours since the start of a day, 0 <= start_hour <= end_hour <= 24"""
    start_hour: float
    end_hour: float

    @property
    def hours(self) -> float:
        return self.end_hour - self.start_hour

def merge_intervals(intervals: Iterable[Tuple[float, float]]) -> List[Tuple[float, float]]:
    """Sort and merge overlapping or touching intervals"""
    merged = []
    for start, end in sorted(intervals):
        if merged and start <= merged[-1][1]:
            if end > merged[-1][1]:
                merged[-1] = (merged[-1][0], end)
        else:
            merged.append((start, end))
    return merged

@dataclass(frozen=True)
class ChartDay:
    label: str
    day_date: date
    is_today: bool
    is_future: bool
    now_hour: Optional[float]
    outages: Tuple[Interval, ...] = ()
    schedule: Tuple[bool, ...] = ()

    @property
    def has_schedule(self) -> bool:
        return len(self.schedule) == SLOTS_PER_DAY

    @property
    def day_end_hour(self) -> float:
        if self.is_today and self.now_hour is not None:
            return self.now_hour
        return 24.0

    @property
    def outage_hours(self) -> float:
        return sum(end - start for start, end in merge_intervals((o.start_hour, o.end_hour) for o in self.outages))

    @property
    def actual_on_hours(self) -> float:
        return max(0.0, self.day_end_hour - self.outage_hours)

    def scheduled_hours(self) -> Tuple[float, float]:
        """(on, off) scheduled hours up to the end of the elapsed part of the day"""
        on = off = 0.0
        if not self.has_schedule:
            return on, off
        day_end = self.day_end_hour
        for slot, powered in enumerate(self.schedule):
            slot_start = slot * SLOT_HOURS
            if slot_start >= day_end:
                break
            duration = min(SLOT_HOURS, day_end - slot_start)
            if powered:
                on += duration
            else:
                off += duration
        return on, off

@dataclass(frozen=True)
class WeeklyStats:
    total_power_on_hours: float = 0.0
    total_power_off_hours: float = 0.0
    scheduled_on_hours: float = 0.0
    scheduled_off_hours: float = 0.0
    diff_minutes: int = 0
    diff_percent: float = 0.0
    outage_count: int = 0
    longest_on: float = 0.0
    longest_off: float = 0.0
    avg_outage: float = 0.0
    elapsed_hours: float = 0.0

    @property
    def uptime_percent(self) -> float:
        return round1(self.total_power_on_hours / max(self.elapsed_hours, 1) * 100)

@dataclass(frozen=True)
class WeeklyChart:
    week: WeekBounds
    group: str
    days: Tuple[ChartDay, ...]
    stats: WeeklyStats
    complete: bool = False

    @property
    def week_label(self) -> str:
        return self.week.label

def clip_outages(outages: Iterable, day_start_ms: int, cutoff_ms: int, now_ms: int) -> List[Interval]:
    """Clip outage rows to [day_start_ms, cutoff_ms) as hours from day start.

    Ongoing outages (no end_time) end at now_ms for this purpose.
    """
    clipped = []
    for outage in outages:
        end = outage.end_time if outage.end_time is not None else now_ms
        if end <= day_start_ms or outage.start_time >= cutoff_ms:
            continue
        start = max(outage.start_time, day_start_ms)
        end = min(end, cutoff_ms)
        if end <= start:
            continue
        clipped.append(Interval(
            start_hour=max(0.0, (start - day_start_ms) / HOUR_MS),
            end_hour=min(24.0, (end - day_start_ms) / HOUR_MS),
        ))
    return clipped

def build_chart_days(outages: Sequence, schedule_by_date: Dict[str, Sequence[bool]], week: WeekBounds,
                     now_ms: int, complete: bool = False, tz=None) -> List[ChartDay]:
    """Per-day clipped intervals and schedule slots for one week.

    complete=True renders a finished week: every day counts as past and no
    day carries a now marker.
    """
    tz = tz or local_tz()
    now_local = to_local(now_ms, tz)
    today = now_local.date()

    days = []
    for i, day_date in enumerate(week.dates):
        day_start = week.day_start_ms(i)
        is_today = not complete and day_date == today
        is_future = not complete and day_date > today

        intervals = []
        if not is_future:
            cutoff = now_ms if is_today else day_start + DAY_MS
            intervals = clip_outages(outages, day_start, cutoff, now_ms)

        schedule = schedule_by_date.get(day_date.isoformat())
        days.append(ChartDay(
            label=DAY_LABELS[i],
            day_date=day_date,
            is_today=is_today,
            is_future=is_future,
            now_hour=min(24.0, (now_ms - day_start) / HOUR_MS) if is_today else None,
            outages=tuple(intervals),
            schedule=tuple(schedule) if is_valid_day(schedule) else (),
        ))
    return days

def compute_weekly_stats(days: Sequence[ChartDay]) -> WeeklyStats:
    """Aggregate the elapsed (non-future) part of a week.

    Intervals are placed on one week-long timeline so an outage crossing
    midnight counts once and streaks can span days.
    """
    pieces = []
    elapsed = 0.0
    window_end = 0.0
    sched_on = sched_off = 0.0
    actual_on_scheduled = 0.0
    has_schedule = False

    for index, day in enumerate(days):
        if day.is_future:
            continue
        base = index * 24.0
        day_end = day.day_end_hour
        elapsed += day_end
        window_end = base + day_end
        pieces.extend((base + o.start_hour, base + o.end_hour) for o in day.outages)

        if day.has_schedule:
            has_schedule = True
            on, off = day.scheduled_hours()
            sched_on += on
            sched_off += off
            actual_on_scheduled += day.actual_on_hours

    merged = merge_intervals(pieces)
    total_off = sum(end - start for start, end in merged)
    total_on = max(0.0, elapsed - total_off)
    outage_count = len(merged)
    longest_off = max((end - start for start, end in merged), default=0.0)

    longest_on = 0.0
    prev_end = 0.0
    for start, end in merged:
        longest_on = max(longest_on, start - prev_end)
        prev_end = end
    longest_on = max(longest_on, window_end - prev_end)

    diff_hours = actual_on_scheduled - sched_on if has_schedule else 0.0
    diff_percent = round1(diff_hours / sched_on * 100) if sched_on > 0 else 0.0

    return WeeklyStats(
        total_power_on_hours=round1(total_on),
        total_power_off_hours=round1(total_off),
        scheduled_on_hours=round1(sched_on),
        scheduled_off_hours=round1(sched_off),
        diff_minutes=int(math.floor(diff_hours * 60 + 0.5)),
        diff_percent=diff_percent,
        outage_count=outage_count,
        longest_on=round1(longest_on),
        longest_off=round1(longest_off),
        avg_outage=round1(total_off / outage_count) if outage_count else 0.0,
        elapsed_hours=round1(elapsed),
    )

def build_weekly_chart(db: Session, ref_ms: int, now_ms: int, complete: bool = False,
                       group: str = None, device_id: str = None) -> WeeklyChart:
    """Load a week's outages and schedule and aggregate them."""
    group = group if group is not None else settings.outage_group
    device_id = device_id if device_id is not None else settings.chart_device_id
    week = week_bounds(ref_ms)

    # One day of lookback catches outages that started before Monday
    outages = ledger.outages_overlapping(db, week.start_ms - DAY_MS, week.end_ms, device_id)
    schedule = load_schedule_days(db, group, [d.isoformat() for d in week.dates])

    days = build_chart_days(outages, schedule, week, now_ms, complete=complete)
    return WeeklyChart(
        week=week,
        group=group,
        days=tuple(days),
        stats=compute_weekly_stats(days),
        complete=complete,
    )
