"""
Tests for the Qt SessionController adapter.
"""

import pytest
from PySide6.QtCore import Qt
from PySide6.QtGui import QCloseEvent

from exam_toolkit.gui import SessionController
from exam_toolkit.session import (
    REVIEW_INCOMPLETE_MESSAGE,
    ExamSession,
    SessionConfig,
    SessionMode,
    SessionStatus,
)


def make_controller(paper, mode=SessionMode.PRACTICE, answer=True, **config):
    """Controller whose confirm dialog always returns `answer`."""
    session = ExamSession(paper, SessionConfig(mode=mode, **config))
    controller = SessionController(session, confirm=lambda prompt: answer)
    exits = []
    controller.exit_requested.connect(exits.append)
    return controller, exits


class TestTimer:
    """Tests for the QTimer-driven countdown."""

    def test_start_when_timed_then_timer_runs(self, qtbot, capital_paper):
        """The timer only runs for timed sessions."""
        controller, _ = make_controller(capital_paper, SessionMode.TIMED)
        controller.start()
        assert controller.timer_active
        controller.teardown()

    def test_start_when_practice_then_no_timer(self, qtbot, capital_paper):
        controller, _ = make_controller(capital_paper)
        controller.start()
        assert not controller.timer_active

    def test_pause_when_timed_then_timer_stops_until_resume(self, qtbot, capital_paper):
        """Pausing stops the timer; resuming restarts it."""
        controller, _ = make_controller(capital_paper, SessionMode.TIMED)
        controller.start()
        assert controller.pause()
        assert not controller.timer_active
        assert controller.resume()
        assert controller.timer_active
        controller.teardown()
        assert not controller.timer_active

    def test_timeout_when_limit_reached_then_submitted_emitted(self, qtbot, capital_paper):
        """The timer submits the session when time runs out."""
        controller, _ = make_controller(
            capital_paper, SessionMode.TIMED, duration_seconds=3, tick_interval_ms=10
        )
        with qtbot.waitSignal(controller.submitted, timeout=2000) as blocker:
            controller.start()

        assert blocker.args[0].summary.total_marks == 3
        assert controller.session.status is SessionStatus.SUBMITTED
        assert not controller.timer_active

    def test_timeout_when_ticked_then_time_updated(self, qtbot, capital_paper):
        """Each counted tick reports elapsed and remaining seconds."""
        controller, _ = make_controller(capital_paper, SessionMode.TIMED, duration_seconds=600)
        controller.start()
        updates = []
        controller.time_updated.connect(lambda elapsed, remaining: updates.append((elapsed, remaining)))

        controller._on_timeout()

        assert updates == [(1, 599)]
        controller.teardown()


class TestNavigationAndKeys:
    """Tests for signals and keyboard handling."""

    def test_handle_key_when_arrows_then_navigates(self, qtbot, capital_paper):
        """Right/left arrows move between questions."""
        controller, _ = make_controller(capital_paper)
        controller.start()
        moves = []
        controller.question_changed.connect(moves.append)

        assert controller.handle_key(Qt.Key.Key_Right)
        assert controller.handle_key(Qt.Key.Key_Right)
        assert controller.handle_key(Qt.Key.Key_Left)

        assert moves == [1, 0]

    def test_handle_key_when_unrelated_key_then_not_handled(self, qtbot, capital_paper):
        controller, _ = make_controller(capital_paper)
        assert controller.handle_key(Qt.Key.Key_A) is False
        assert controller.handle_key("not a key") is False

    @pytest.mark.parametrize("answer,expected", [(False, []), (True, [None])])
    def test_handle_key_when_escape_then_confirmed_exit(self, qtbot, capital_paper, answer, expected):
        """Escape asks for confirmation before leaving a running session."""
        controller, exits = make_controller(capital_paper, answer=answer)
        controller.start()
        controller.handle_key(Qt.Key.Key_Escape)
        assert exits == expected

    def test_answer_when_recorded_then_signal_carries_marks(self, qtbot, capital_paper):
        controller, _ = make_controller(capital_paper)
        controller.start()
        recorded = []
        controller.answer_recorded.connect(lambda key, marks: recorded.append((key, marks)))

        assert controller.answer("q1", "B")
        assert recorded == [("q1", 2.0)]


class TestReviewAndClose:
    """Tests for QA completion and window close interception."""

    def test_complete_review_when_unvisited_then_blocked_signal(self, qtbot, capital_paper):
        controller, exits = make_controller(capital_paper, SessionMode.QA)
        controller.start()
        with qtbot.waitSignal(controller.review_blocked, timeout=1000) as blocker:
            assert controller.complete_review() is False
        assert blocker.args == [REVIEW_INCOMPLETE_MESSAGE]
        assert exits == []

    def test_complete_review_when_visited_then_exit_with_report(self, qtbot, capital_paper):
        controller, exits = make_controller(capital_paper, SessionMode.QA)
        controller.start()
        controller.next_question()
        assert controller.complete_review()
        assert len(exits) == 1
        assert exits[0].total_questions == 2

    def test_intercept_close_when_declined_then_event_ignored(self, qtbot, capital_paper):
        """Closing mid-run needs confirmation."""
        controller, exits = make_controller(capital_paper, answer=False)
        controller.start()
        event = QCloseEvent()

        assert controller.intercept_close(event) is False
        assert not event.isAccepted()
        assert exits == []
        assert not controller.session.is_torn_down

    def test_intercept_close_when_confirmed_then_exits(self, qtbot, capital_paper):
        controller, exits = make_controller(capital_paper, answer=True)
        controller.start()
        event = QCloseEvent()

        assert controller.intercept_close(event)
        assert event.isAccepted()
        assert exits == [None]
        assert controller.session.is_torn_down

    def test_intercept_close_when_idle_then_accepted_without_prompt(self, qtbot, capital_paper):
        """Nothing to lose before the run starts."""
        controller, exits = make_controller(capital_paper, answer=False)
        event = QCloseEvent()
        assert controller.intercept_close(event)
        assert exits == [None]
