"""
Weekly chart message lifecycle.

States: no tracking row (NoMessage) or Live(week_start, message_id).

- NoMessage: render the in-progress week, send it, remember the message.
- Live in the current week: re-render and edit the same message.
- Live in an earlier week: render that week as complete and the new week
  in progress, give the old message a final edit, clear the row, then send
  the new week's message.

A chart that cannot be produced leaves the row untouched so the next tick
retries from the same state. Row creation is insert-if-absent and clearing
is delete-if-unchanged, so overlapping ticks cannot track two messages.
"""

from enum import Enum
from typing import Callable, Optional

import structlog
from sqlalchemy.orm import Session

from outage_monitor.core.timeutils import now_ms as current_ms
from outage_monitor.services import ledger
from outage_monitor.services.chart_image import ChartArtifact, render_chart
from outage_monitor.services.telegram import TelegramClient
from outage_monitor.services.weekly import WeeklyChart, build_weekly_chart, week_bounds

logger = structlog.get_logger(__name__)

class ChartAction(str, Enum):
    CREATED = "created"
    EDITED = "edited"
    ROLLED_OVER = "rolled_over"
    SKIPPED = "skipped"

class ChartLifecycle:
    """Owns the telegram_chart row and the message it points at"""

    def __init__(self, db: Session, messenger: TelegramClient = None,
                 renderer: Callable[[WeeklyChart], ChartArtifact] = None,
                 group: str = None, device_id: str = None):
        self.db = db
        self.messenger = messenger or TelegramClient()
        self.renderer = renderer or render_chart
        self.group = group
        self.device_id = device_id

    def produce(self, ref_ms: int, now: int, complete: bool = False) -> Optional[ChartArtifact]:
        """Aggregate and render the week containing ref_ms. None on failure."""
        try:
            chart = build_weekly_chart(self.db, ref_ms, now, complete=complete,
                                       group=self.group, device_id=self.device_id)
            return self.renderer(chart)
        except Exception as e:
            logger.error("Failed to produce weekly chart", ref_ms=ref_ms, complete=complete, error=str(e))
            return None

    def tick(self, now: int = None) -> ChartAction:
        now = now or current_ms()
        current_week = week_bounds(now).start_ms
        state = ledger.get_chart_state(self.db)

        if state is None:
            return self._start_week(current_week, now)

        message_id, week_start = state.message_id, state.week_start

        if week_start == current_week:
            artifact = self.produce(now, now)
            if artifact is None:
                return ChartAction.SKIPPED
            if not self.messenger.edit_message_photo(message_id, artifact.png, artifact.caption):
                logger.warning("Weekly chart edit failed", message_id=message_id)
                return ChartAction.SKIPPED
            logger.info("Weekly chart updated", message_id=message_id, week_start=week_start)
            return ChartAction.EDITED

        return self._roll_over(message_id, week_start, current_week, now)

    def _roll_over(self, message_id: int, week_start: int, current_week: int, now: int) -> ChartAction:
        final = self.produce(week_start, now, complete=True)
        if final is None:
            return ChartAction.SKIPPED
        artifact = self.produce(now, now)
        if artifact is None:
            return ChartAction.SKIPPED

        # The old message may have been deleted; the rollover goes ahead regardless
        if not self.messenger.edit_message_photo(message_id, final.png, final.caption):
            logger.warning("Final edit of previous week's chart failed", message_id=message_id, week_start=week_start)

        if not ledger.clear_chart_state(self.db, message_id, week_start):
            # A concurrent tick already rolled the week over
            self.db.rollback()
            return ChartAction.SKIPPED
        self.db.commit()
        logger.info("Weekly chart closed", message_id=message_id, week_start=week_start)

        action = self._publish(artifact, current_week)
        return ChartAction.ROLLED_OVER if action == ChartAction.CREATED else action

    def _start_week(self, current_week: int, now: int) -> ChartAction:
        artifact = self.produce(now, now)
        if artifact is None:
            return ChartAction.SKIPPED
        return self._publish(artifact, current_week)

    def _publish(self, artifact: ChartArtifact, current_week: int) -> ChartAction:
        message_id = self.messenger.send_photo(artifact.png, artifact.caption)
        if message_id is None:
            logger.warning("Weekly chart could not be sent")
            return ChartAction.SKIPPED

        if not ledger.create_chart_state(self.db, message_id, current_week):
            self.db.rollback()
            logger.warning("Chart row already present, new message is untracked", message_id=message_id)
            return ChartAction.SKIPPED
        self.db.commit()
        logger.info("Weekly chart created", message_id=message_id, week_start=current_week)
        return ChartAction.CREATED

def update_weekly_chart(db: Session, now: int = None, messenger: TelegramClient = None) -> ChartAction:
    return ChartLifecycle(db, messenger=messenger).tick(now)
