"""
Weekly chart renderer.

Each day row has two bars: the actual bar (green = power, red = outage,
only for elapsed time) and a thin schedule bar (yellow = scheduled on,
gray = scheduled off). A blue marker shows "now" on today's row. The
statistics block sits under the axis.
"""

import io
from dataclasses import dataclass

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.patches import Patch

from outage_monitor.core.config import settings
from outage_monitor.services.weekly import WeeklyChart, round1

COLORS = {
    "green": "#22c55e",
    "red": "#ef4444",
    "yellow": "#eab308",
    "sched_off": "#cbd5e1",
    "empty": "#f1f5f9",
    "accent": "#3b82f6",
    "today_bg": "#eff6ff",
    "text": "#1e293b",
    "muted": "#64748b",
    "diff_pos": "#059669",
    "diff_neg": "#dc2626",
}

ACTUAL_H = 0.5
SCHED_H = 0.2
ROW_H = 1.0
DPI = 100

@dataclass(frozen=True)
class ChartArtifact:
    png: bytes
    caption: str

def format_hours(hours: float) -> str:
    hrs = int(hours)
    mins = int(round((hours - hrs) * 60))
    if mins == 60:
        hrs, mins = hrs + 1, 0
    if hrs == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hrs}h"
    return f"{hrs}h {mins}m"

def _signed_hours(hours: float) -> str:
    sign = "+" if hours > 0 else ("-" if hours < 0 else "")
    return f"{sign}{format_hours(abs(hours))}"

def _schedule_runs(schedule):
    """(start_hour, length, powered) for each run of equal slots"""
    runs = []
    start = 0
    for i in range(1, len(schedule) + 1):
        if i == len(schedule) or schedule[i] != schedule[start]:
            runs.append((start * 0.5, (i - start) * 0.5, schedule[start]))
            start = i
    return runs

def render_weekly_chart(chart: WeeklyChart) -> bytes:
    """Draw the chart and return PNG bytes"""
    width_in = settings.chart_width_px / 2 / DPI
    fig, ax = plt.subplots(figsize=(width_in, 7.6), dpi=DPI * 2)
    try:
        for i, day in enumerate(chart.days):
            y = (6 - i) * ROW_H
            actual_y = y + 0.35
            sched_y = y + 0.1

            if day.is_today:
                ax.axhspan(y, y + ROW_H, xmin=0, xmax=1, color=COLORS["today_bg"], zorder=0)

            if day.is_future:
                ax.broken_barh([(0, 24)], (actual_y, ACTUAL_H), facecolors=COLORS["empty"],
                               edgecolor=COLORS["sched_off"], linestyle="--", linewidth=0.5)
            else:
                ax.broken_barh([(0, day.day_end_hour)], (actual_y, ACTUAL_H), facecolors=COLORS["green"])
                segments = [(o.start_hour, o.hours) for o in day.outages if o.hours > 0]
                if segments:
                    ax.broken_barh(segments, (actual_y, ACTUAL_H), facecolors=COLORS["red"])

            if day.has_schedule:
                for start, length, powered in _schedule_runs(day.schedule):
                    ax.broken_barh([(start, length)], (sched_y, SCHED_H),
                                   facecolors=COLORS["yellow"] if powered else COLORS["sched_off"])
            else:
                ax.broken_barh([(0, 24)], (sched_y, SCHED_H), facecolors=COLORS["empty"],
                               edgecolor=COLORS["sched_off"], linestyle="--", linewidth=0.4)

            if not day.is_future:
                summary = format_hours(round1(day.actual_on_hours))
                color = COLORS["text"]
                if day.has_schedule:
                    expected = round1(day.scheduled_hours()[0])
                    diff = round1(round1(day.actual_on_hours) - expected)
                    summary += f"\n{format_hours(expected)}\n{_signed_hours(diff)}"
                    color = COLORS["diff_pos"] if diff > 0 else (COLORS["diff_neg"] if diff < 0 else COLORS["text"])
                ax.text(24.4, y + 0.5, summary, va="center", ha="left", fontsize=6, color=color)

            if day.is_today and day.now_hour is not None:
                ax.plot([day.now_hour, day.now_hour], [sched_y - 0.05, actual_y + ACTUAL_H + 0.05],
                        color=COLORS["accent"], linewidth=2, solid_capstyle="round", zorder=5)

        ax.set_xlim(0, 24)
        ax.set_ylim(0, 7 * ROW_H)
        ax.set_xticks(range(0, 25, 4))
        ax.set_xticks(range(0, 25), minor=True)
        ax.set_yticks([(6 - i) * ROW_H + 0.5 for i in range(len(chart.days))])
        ax.set_yticklabels([f"{d.label}\n{d.day_date:%d.%m}" for d in chart.days], fontsize=7)
        ax.grid(axis="x", which="major", color=COLORS["sched_off"], linewidth=0.6)
        ax.grid(axis="x", which="minor", color=COLORS["empty"], linewidth=0.3)
        ax.set_axisbelow(True)
        for spine in ax.spines.values():
            spine.set_visible(False)

        title = f"Outages for the week {chart.week_label}"
        if chart.group:
            title += f"\nGroup: {chart.group}"
        ax.set_title(title, fontsize=9, color=COLORS["text"])

        ax.legend(
            handles=[
                Patch(color=COLORS["green"], label="Power on"),
                Patch(color=COLORS["red"], label="Outage"),
                Patch(color=COLORS["yellow"], label="Schedule: on"),
                Patch(color=COLORS["sched_off"], label="Schedule: off"),
            ],
            loc="upper center", bbox_to_anchor=(0.5, -0.06), ncol=4, fontsize=6, frameon=False,
        )

        fig.text(0.08, 0.02, stats_text(chart), fontsize=6, color=COLORS["muted"], va="bottom", family="monospace")
        fig.subplots_adjust(left=0.08, right=0.88, top=0.9, bottom=0.2)

        buffer = io.BytesIO()
        fig.savefig(buffer, format="png", facecolor="white")
        return buffer.getvalue()
    finally:
        plt.close(fig)

def stats_text(chart: WeeklyChart) -> str:
    stats = chart.stats
    diff_sign = "+" if stats.diff_minutes > 0 else ""
    pct_sign = "+" if stats.diff_percent > 0 else ""
    rows = [
        (f"With power: {format_hours(stats.total_power_on_hours)} ({stats.uptime_percent}%)",
         f"Without power: {format_hours(stats.total_power_off_hours)}, {stats.outage_count} outages"),
        (f"Longest with power: {format_hours(stats.longest_on)}",
         f"Longest without power: {format_hours(stats.longest_off)}"),
        (f"Average outage: {format_hours(stats.avg_outage)}",
         f"Difference from schedule: {diff_sign}{stats.diff_minutes}m ({pct_sign}{stats.diff_percent}%)"),
    ]
    return "\n".join(f"{left:<44}{right}" for left, right in rows)

def build_caption(chart: WeeklyChart) -> str:
    stats = chart.stats
    lines = ["<b>Weekly outage chart</b>"]
    if chart.group:
        lines.append(f"Group: {chart.group}")
    lines.append(f"Outages: {stats.outage_count}, total {stats.total_power_off_hours} h")
    lines.append("🟢 power  🔴 outage  🟡 scheduled on  ⬛ scheduled off")
    return "\n".join(lines)

def render_chart(chart: WeeklyChart) -> ChartArtifact:
    return ChartArtifact(png=render_weekly_chart(chart), caption=build_caption(chart))
