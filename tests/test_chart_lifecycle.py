import os
import sys
from unittest.mock import MagicMock

import pytest

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from conftest import local_ms
from outage_monitor.services import ledger
from outage_monitor.services.chart_image import ChartArtifact
from outage_monitor.services.chart_lifecycle import ChartAction, ChartLifecycle, update_weekly_chart

WEEK_1 = local_ms(2024, 1, 1)
WEEK_2 = local_ms(2024, 1, 8)

@pytest.fixture
def renderer():
    return MagicMock(return_value=ChartArtifact(png=b"png-bytes", caption="caption"))

@pytest.fixture
def lifecycle(db_session, mock_messenger, renderer):
    return ChartLifecycle(db_session, messenger=mock_messenger, renderer=renderer, group="GPV1.1")

def track(db, message_id, week_start):
    assert ledger.create_chart_state(db, message_id, week_start)
    db.commit()

def tracked(db):
    db.expire_all()
    state = ledger.get_chart_state(db)
    return (state.message_id, state.week_start) if state else None

class TestChartLifecycle:
    """Weekly chart message state machine"""

    def test_first_tick_sends_new_message(self, db_session, lifecycle, mock_messenger):
        action = lifecycle.tick(local_ms(2024, 1, 3, 12, 0))

        assert action == ChartAction.CREATED
        mock_messenger.send_photo.assert_called_once_with(b"png-bytes", "caption")
        mock_messenger.edit_message_photo.assert_not_called()
        assert tracked(db_session) == (101, WEEK_1)

    def test_same_week_edits_in_place(self, db_session, lifecycle, mock_messenger):
        track(db_session, 101, WEEK_1)

        action = lifecycle.tick(local_ms(2024, 1, 5, 18, 0))

        assert action == ChartAction.EDITED
        mock_messenger.edit_message_photo.assert_called_once_with(101, b"png-bytes", "caption")
        mock_messenger.send_photo.assert_not_called()
        assert tracked(db_session) == (101, WEEK_1)

    def test_rollover_finalises_previous_week(self, db_session, lifecycle, mock_messenger, renderer):
        track(db_session, 42, WEEK_1)

        action = lifecycle.tick(local_ms(2024, 1, 8, 0, 10))

        assert action == ChartAction.ROLLED_OVER
        final_chart, new_chart = [c[0][0] for c in renderer.call_args_list]
        assert final_chart.complete is True
        assert final_chart.week.start_ms == WEEK_1
        assert new_chart.complete is False
        assert new_chart.week.start_ms == WEEK_2

        mock_messenger.edit_message_photo.assert_called_once_with(42, b"png-bytes", "caption")
        mock_messenger.send_photo.assert_called_once()
        assert tracked(db_session) == (101, WEEK_2)

    def test_rollover_after_missed_weeks(self, db_session, lifecycle, mock_messenger):
        track(db_session, 42, WEEK_1)

        action = lifecycle.tick(local_ms(2024, 1, 24, 9, 0))

        assert action == ChartAction.ROLLED_OVER
        assert tracked(db_session) == (101, local_ms(2024, 1, 22))

    def test_failed_final_edit_still_rolls_over(self, db_session, lifecycle, mock_messenger):
        track(db_session, 42, WEEK_1)
        mock_messenger.edit_message_photo.return_value = False

        assert lifecycle.tick(local_ms(2024, 1, 8, 0, 10)) == ChartAction.ROLLED_OVER
        assert tracked(db_session) == (101, WEEK_2)

    def test_render_failure_leaves_state_untouched(self, db_session, lifecycle, mock_messenger, renderer):
        track(db_session, 42, WEEK_1)
        renderer.side_effect = RuntimeError("no fonts")

        assert lifecycle.tick(local_ms(2024, 1, 8, 0, 10)) == ChartAction.SKIPPED
        assert lifecycle.tick(local_ms(2024, 1, 3, 12, 0)) == ChartAction.SKIPPED
        mock_messenger.edit_message_photo.assert_not_called()
        mock_messenger.send_photo.assert_not_called()
        assert tracked(db_session) == (42, WEEK_1)

    def test_new_week_render_failure_keeps_old_message(self, db_session, lifecycle, mock_messenger, renderer):
        track(db_session, 42, WEEK_1)
        renderer.side_effect = [ChartArtifact(png=b"final", caption="final"), RuntimeError("no fonts")]

        assert lifecycle.tick(local_ms(2024, 1, 8, 0, 10)) == ChartAction.SKIPPED
        mock_messenger.edit_message_photo.assert_not_called()
        mock_messenger.send_photo.assert_not_called()
        assert tracked(db_session) == (42, WEEK_1)

    def test_send_failure_after_rollover_starts_fresh(self, db_session, lifecycle, mock_messenger):
        track(db_session, 42, WEEK_1)
        mock_messenger.send_photo.return_value = None

        assert lifecycle.tick(local_ms(2024, 1, 8, 0, 10)) == ChartAction.SKIPPED
        mock_messenger.edit_message_photo.assert_called_once()
        assert tracked(db_session) is None

        mock_messenger.send_photo.return_value = 7
        assert lifecycle.tick(local_ms(2024, 1, 8, 0, 20)) == ChartAction.CREATED
        assert tracked(db_session) == (7, WEEK_2)

    def test_render_failure_without_message(self, db_session, lifecycle, mock_messenger, renderer):
        renderer.side_effect = RuntimeError("no fonts")

        assert lifecycle.tick(local_ms(2024, 1, 3, 12, 0)) == ChartAction.SKIPPED
        mock_messenger.send_photo.assert_not_called()
        assert tracked(db_session) is None

    def test_send_failure_records_nothing(self, db_session, lifecycle, mock_messenger):
        mock_messenger.send_photo.return_value = None

        assert lifecycle.tick(local_ms(2024, 1, 3, 12, 0)) == ChartAction.SKIPPED
        assert tracked(db_session) is None

        mock_messenger.send_photo.return_value = 7
        assert lifecycle.tick(local_ms(2024, 1, 3, 12, 10)) == ChartAction.CREATED
        assert tracked(db_session) == (7, WEEK_1)

    def test_edit_failure_keeps_message(self, db_session, lifecycle, mock_messenger):
        track(db_session, 101, WEEK_1)
        mock_messenger.edit_message_photo.return_value = False

        assert lifecycle.tick(local_ms(2024, 1, 3, 12, 0)) == ChartAction.SKIPPED
        assert tracked(db_session) == (101, WEEK_1)

    def test_real_renderer_sends_png(self, db_session, mock_messenger):
        action = update_weekly_chart(db_session, local_ms(2024, 1, 3, 12, 0), mock_messenger)

        assert action == ChartAction.CREATED
        png, caption = mock_messenger.send_photo.call_args[0]
        assert png.startswith(b"\x89PNG")
        assert "Weekly outage chart" in caption

class TestChartState:

    def test_second_insert_is_rejected(self, db_session):
        track(db_session, 101, WEEK_1)
        db_session.expunge_all()

        assert ledger.create_chart_state(db_session, 202, WEEK_2) is False
        db_session.rollback()
        assert tracked(db_session) == (101, WEEK_1)

    def test_clear_only_matching_row(self, db_session):
        track(db_session, 101, WEEK_1)

        assert ledger.clear_chart_state(db_session, 101, WEEK_2) is False
        assert ledger.clear_chart_state(db_session, 999, WEEK_1) is False
        assert ledger.clear_chart_state(db_session, 101, WEEK_1) is True
        db_session.commit()
        assert tracked(db_session) is None
