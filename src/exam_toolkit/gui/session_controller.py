"""Qt adapter around ExamSession.

Drives the one-second tick with a QTimer, re-emits every session
transition as a Qt signal, maps arrow/escape keys to navigation and the
exit path, and intercepts window close while a run is in progress.

Usage:
    controller = SessionController(session, confirm=ask_user)
    controller.submitted.connect(show_results)
    controller.exit_requested.connect(leave_session)
    controller.start()
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from PySide6.QtCore import QObject, Qt, QTimer, Signal
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import QMessageBox, QWidget

from exam_toolkit.session.engine import ExamSession
from exam_toolkit.session.reports import QAReviewReport, ReviewBlocked
from exam_toolkit.session.state import SessionMode, SessionStatus

logger = logging.getLogger(__name__)

ConfirmFn = Callable[[str], bool]


def message_box_confirm(parent: Optional[QWidget] = None) -> ConfirmFn:
    """Build a confirm function that asks with a Yes/No QMessageBox."""
    def _confirm(prompt: str) -> bool:
        answer = QMessageBox.question(
            parent,
            "Exit",
            prompt,
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        return answer == QMessageBox.StandardButton.Yes
    return _confirm


class SessionController(QObject):
    """Qt host adapter for one ExamSession.

    The timer only runs while the session is RUNNING in TIMED mode; it is
    stopped on pause, submit, review completion, exit and teardown.
    """

    # Emitted with the new SessionStatus value
    status_changed = Signal(str)
    # Emitted with the new current index
    question_changed = Signal(int)
    # Emitted after each counted tick with (elapsed, remaining or -1)
    time_updated = Signal(int, int)
    # Emitted with (answer key, marks awarded)
    answer_recorded = Signal(str, float)
    # Emitted with the SubmissionResult
    submitted = Signal(object)
    # Emitted with the QAReviewReport
    review_completed = Signal(object)
    # Emitted with the user-facing rejection message
    review_blocked = Signal(str)
    # Emitted with None (plain exit) or the QAReviewReport
    exit_requested = Signal(object)

    def __init__(
        self,
        session: ExamSession,
        confirm: Optional[ConfirmFn] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.session = session
        self._confirm = confirm or message_box_confirm()
        self.session.set_exit_callback(self._on_session_exit)

        self._timer = QTimer(self)
        self._timer.setInterval(session.config.tick_interval_ms)
        self._timer.timeout.connect(self._on_timeout)

    @property
    def timer_active(self) -> bool:
        return self._timer.isActive()

    # ─────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    def start(self) -> bool:
        started = self.session.start()
        if started:
            self.status_changed.emit(str(self.session.status))
            self.question_changed.emit(self.session.current_index)
        self._sync_timer()
        return started

    def pause(self) -> bool:
        return self._transition(self.session.pause)

    def resume(self) -> bool:
        return self._transition(self.session.resume)

    def retry(self) -> bool:
        return self._transition(self.session.retry)

    def submit(self) -> bool:
        result = self.session.submit()
        self._sync_timer()
        if result is None:
            return False
        self.status_changed.emit(str(self.session.status))
        self.submitted.emit(result)
        return True

    def complete_review(self) -> bool:
        outcome = self.session.complete_review()
        self._sync_timer()
        if isinstance(outcome, ReviewBlocked):
            self.review_blocked.emit(outcome.message)
            return False
        self.status_changed.emit(str(self.session.status))
        self.review_completed.emit(outcome)
        return True

    def teardown(self) -> None:
        self._timer.stop()
        self.session.teardown()

    def _transition(self, operation: Callable[[], bool]) -> bool:
        changed = operation()
        self._sync_timer()
        if changed:
            self.status_changed.emit(str(self.session.status))
        return changed

    # ─────────────────────────────────────────────────────────────────────────
    # Navigation and Answers
    # ─────────────────────────────────────────────────────────────────────────

    def navigate(self, index: int) -> bool:
        return self._moved(self.session.navigate(index))

    def next_question(self) -> bool:
        return self._moved(self.session.next_question())

    def previous_question(self) -> bool:
        return self._moved(self.session.previous_question())

    def _moved(self, moved: bool) -> bool:
        if moved:
            self.question_changed.emit(self.session.current_index)
        return moved

    def answer(
        self,
        question_id: str,
        value: Any,
        part_id: Optional[str] = None,
        subpart_id: Optional[str] = None,
    ) -> bool:
        stored = self.session.answer(question_id, value, part_id, subpart_id)
        if stored is None:
            return False
        self.answer_recorded.emit(stored.key, float(stored.marks_awarded))
        return True

    def handle_key(self, key: Any) -> bool:
        """Left/right navigate (clamped), escape starts the exit path.

        Returns:
            True if the key was handled
        """
        try:
            key = Qt.Key(key)
        except (ValueError, TypeError):
            return False
        if key == Qt.Key.Key_Left:
            self.previous_question()
            return True
        if key == Qt.Key.Key_Right:
            self.next_question()
            return True
        if key == Qt.Key.Key_Escape:
            self.request_exit()
            return True
        return False

    # ─────────────────────────────────────────────────────────────────────────
    # Exit Path
    # ─────────────────────────────────────────────────────────────────────────

    def request_exit(self) -> bool:
        return self.session.request_exit(self._confirm)

    def intercept_close(self, event: QCloseEvent) -> bool:
        """Ask before closing the host window mid-run.

        Returns:
            True if the close was accepted
        """
        prompt = self.session.exit_prompt()
        if prompt is not None and self.session.should_block_unload() and not self._confirm(prompt):
            event.ignore()
            return False
        event.accept()
        self.session.request_exit(None)
        return True

    def _on_session_exit(self, report: Optional[QAReviewReport]) -> None:
        self._timer.stop()
        self.exit_requested.emit(report)

    # ─────────────────────────────────────────────────────────────────────────
    # Timer
    # ─────────────────────────────────────────────────────────────────────────

    def _should_tick(self) -> bool:
        return (
            not self.session.is_torn_down
            and self.session.mode is SessionMode.TIMED
            and self.session.status is SessionStatus.RUNNING
        )

    def _sync_timer(self) -> None:
        if self._should_tick():
            if not self._timer.isActive():
                self._timer.start()
        else:
            self._timer.stop()

    def _on_timeout(self) -> None:
        if not self.session.tick():
            self._sync_timer()
            return
        remaining = self.session.remaining_seconds
        self.time_updated.emit(
            self.session.state.elapsed_seconds,
            -1 if remaining is None else remaining,
        )
        if self.session.status is SessionStatus.SUBMITTED:
            logger.info("Time limit reached; timer stopped")
            self._timer.stop()
            self.status_changed.emit(str(self.session.status))
            self.submitted.emit(self.session.last_submission)
