"""
Module: session.engine

Purpose:
    ExamSession - the state machine driving one run through a paper.
    Captures answers at every answerable level, scores them on change,
    tracks visitation, counts down timed sessions and produces the
    submission result or QA review report.

Lifecycle:
    IDLE -> RUNNING <-> PAUSED -> SUBMITTED

    - start(): IDLE/SUBMITTED -> RUNNING (fresh answers, visitation = {first})
    - pause()/resume(): TIMED mode only
    - tick(): one second in TIMED mode; auto-submits once at the limit
    - submit(): RUNNING/PAUSED -> SUBMITTED
    - complete_review(): QA mode only, once every question is visited

Review and QA sessions are open from construction: the first question is
visited and timed straight away, and no start() is needed to complete a
QA review.

Guarded preconditions never raise: operations return False / None /
ReviewBlocked and log at DEBUG.

Dependencies:
    - scoring.engine.validate
    - results.aggregator.aggregate_results
    - session.visitation, session.state, session.reports

Used By:
    - gui.session_controller.SessionController
"""

from __future__ import annotations

import logging
import math
import time
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Union

from exam_toolkit.core.models.items import AnswerableItem
from exam_toolkit.core.models.paper import Paper
from exam_toolkit.core.models.submissions import SubmittedValue, UserAnswer, answer_key
from exam_toolkit.results.aggregator import aggregate_results
from exam_toolkit.scoring.engine import validate

from .config import SessionConfig
from .diagnostics import DiagnosticsCollector
from .reports import (
    REVIEW_CLOSED_MESSAGE,
    REVIEW_INCOMPLETE_MESSAGE,
    REVIEW_WRONG_MODE_MESSAGE,
    QAReviewReport,
    ReviewBlocked,
    SubmissionResult,
)
from .state import SessionMode, SessionState, SessionStatus
from .visitation import VisitationTracker

logger = logging.getLogger(__name__)

# Exit confirmation messages
EXIT_QA_UNVISITED_MESSAGE = (
    "You have not reviewed every question. Exit without completing the QA review?"
)
EXIT_QA_INCOMPLETE_MESSAGE = (
    'Use "Complete QA Review" to mark this simulation as finished. Exit without completing?'
)
EXIT_IN_PROGRESS_MESSAGE = "Are you sure you want to exit? Your progress will be lost."

# Question status values
STATUS_ANSWERED = "answered"
STATUS_PARTIAL = "partial"
STATUS_UNANSWERED = "unanswered"

ResultSink = Callable[[SubmissionResult], None]
ExitCallback = Callable[[Optional[QAReviewReport]], None]
ConfirmCallback = Callable[[str], bool]


def _round_percent(part: int, whole: int) -> int:
    """Percentage rounded half-up (0 when whole is 0)."""
    if whole <= 0:
        return 0
    return math.floor(part / whole * 100 + 0.5)


class ExamSession:
    """
    State machine for one run through a paper.

    The paper is shared read-only; all mutable data lives in `self.state`,
    which retry() replaces wholesale.

    Args:
        paper: Paper to sit
        config: Mode, duration and scoring settings
        clock: Monotonic seconds source (injectable for tests)
        on_exit: Exit callback, called with None or the QA report

    Example:
        >>> session = ExamSession(paper, SessionConfig(mode=SessionMode.TIMED))
        >>> session.start()
        True
        >>> session.answer("q1", "B").marks_awarded
        2.0
    """

    def __init__(
        self,
        paper: Paper,
        config: Optional[SessionConfig] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        on_exit: Optional[ExitCallback] = None,
    ) -> None:
        self.paper = paper
        self.config = config or SessionConfig()
        self.diagnostics = DiagnosticsCollector()
        self._clock = clock
        self._on_exit = on_exit
        self._result_sinks: List[ResultSink] = []
        self._torn_down = False
        self._exited = False
        self.last_submission: Optional[SubmissionResult] = None
        self.last_report: Optional[QAReviewReport] = None
        self.state = self._fresh_state()

        if (
            self.config.is_timed
            and self.config.effective_duration(paper) is None
        ):
            logger.warning(
                f"Timed session for paper {paper.id} has no positive duration; "
                f"auto-submit disabled"
            )

    def _fresh_state(self) -> SessionState:
        state = SessionState(
            mode=self.config.mode,
            visitation=VisitationTracker(self.paper.question_ids),
        )
        # Review and QA sessions are open as soon as they exist
        if state.mode in (SessionMode.REVIEW, SessionMode.QA) and self.paper.questions:
            now = self._clock()
            first = self.paper.questions[0].id
            state.visitation.reset(first)
            state.start_times[first] = now
            state.started_at = now
        return state

    # ─────────────────────────────────────────────────────────────────────────
    # Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def mode(self) -> SessionMode:
        return self.state.mode

    @property
    def status(self) -> SessionStatus:
        return self.state.status

    @property
    def current_index(self) -> int:
        return self.state.current_index

    @property
    def current_question(self) -> Optional[AnswerableItem]:
        if not self.paper.questions:
            return None
        return self.paper.questions[self.state.current_index]

    @property
    def duration_seconds(self) -> Optional[int]:
        return self.config.effective_duration(self.paper)

    @property
    def remaining_seconds(self) -> Optional[int]:
        duration = self.duration_seconds
        if duration is None:
            return None
        return max(duration - self.state.elapsed_seconds, 0)

    @property
    def is_torn_down(self) -> bool:
        return self._torn_down

    # ─────────────────────────────────────────────────────────────────────────
    # Collaborators
    # ─────────────────────────────────────────────────────────────────────────

    def add_result_sink(self, sink: ResultSink) -> None:
        """Register a collaborator that receives every SubmissionResult."""
        self._result_sinks.append(sink)

    def set_exit_callback(self, callback: Optional[ExitCallback]) -> None:
        self._on_exit = callback

    # ─────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    def start(self) -> bool:
        """Begin (or restart) a run. Resets answers, flags, timing and visitation."""
        if self._torn_down:
            return False
        if self.state.status not in (SessionStatus.IDLE, SessionStatus.SUBMITTED):
            logger.debug(f"start() ignored in status {self.state.status}")
            return False

        state = self._fresh_state()
        state.status = SessionStatus.RUNNING
        state.started_at = self._clock()
        self.state = state
        self.diagnostics.clear()
        self.last_submission = None
        self.last_report = None

        if self.paper.questions:
            first = self.paper.questions[0].id
            state.visitation.reset(first)
            state.start_times[first] = state.started_at

        logger.info(
            f"Session started: paper={self.paper.id} mode={self.mode} "
            f"duration={self.duration_seconds}"
        )
        return True

    def retry(self) -> bool:
        """Discard all progress and return to IDLE with fresh state."""
        if self._torn_down:
            return False
        self.state = self._fresh_state()
        self.diagnostics.clear()
        self.last_submission = None
        self.last_report = None
        self._exited = False
        logger.info(f"Session reset for retry: paper={self.paper.id}")
        return True

    def pause(self) -> bool:
        if self.mode is not SessionMode.TIMED or self.state.status is not SessionStatus.RUNNING:
            logger.debug(f"pause() ignored: mode={self.mode} status={self.state.status}")
            return False
        self.state.status = SessionStatus.PAUSED
        logger.debug(f"Session paused at {self.state.elapsed_seconds}s")
        return True

    def resume(self) -> bool:
        if self.mode is not SessionMode.TIMED or self.state.status is not SessionStatus.PAUSED:
            logger.debug(f"resume() ignored: mode={self.mode} status={self.state.status}")
            return False
        self.state.status = SessionStatus.RUNNING
        logger.debug(f"Session resumed at {self.state.elapsed_seconds}s")
        return True

    def tick(self) -> bool:
        """
        Advance the timed-mode clock by one second.

        At the time limit the elapsed count is clamped and the session is
        submitted. Ticks outside a running timed session are ignored.

        Returns:
            True if the tick was counted
        """
        if self._torn_down:
            return False
        if self.mode is not SessionMode.TIMED or self.state.status is not SessionStatus.RUNNING:
            return False

        self.state.elapsed_seconds += 1
        duration = self.duration_seconds
        if duration is not None and self.state.elapsed_seconds >= duration:
            self.state.elapsed_seconds = duration
            logger.info(f"Time limit of {duration}s reached; submitting")
            self.submit()
        return True

    def teardown(self) -> None:
        """Stop all further timer-driven mutation."""
        self._torn_down = True
        logger.debug(f"Session torn down: paper={self.paper.id}")

    # ─────────────────────────────────────────────────────────────────────────
    # Navigation
    # ─────────────────────────────────────────────────────────────────────────

    def navigate(self, index: int) -> bool:
        """
        Display the question at `index`.

        Out-of-range indices and submitted sessions are ignored (returns
        False). The first display of a question records its start time.
        """
        if self.state.status is SessionStatus.SUBMITTED:
            logger.debug(f"navigate({index}) ignored after submission")
            return False
        if not 0 <= index < self.paper.question_count:
            logger.debug(f"navigate({index}) ignored: {self.paper.question_count} questions")
            return False

        question_id = self.paper.questions[index].id
        self.state.current_index = index
        self.state.visitation.visit(question_id)
        self.state.start_times.setdefault(question_id, self._clock())
        logger.debug(f"Navigated to question {question_id} (index {index})")
        return True

    def next_question(self) -> bool:
        if not self.paper.questions:
            return False
        target = min(self.state.current_index + 1, self.paper.question_count - 1)
        if target == self.state.current_index:
            return False
        return self.navigate(target)

    def previous_question(self) -> bool:
        if not self.paper.questions:
            return False
        target = max(self.state.current_index - 1, 0)
        if target == self.state.current_index:
            return False
        return self.navigate(target)

    # ─────────────────────────────────────────────────────────────────────────
    # Answers and Flags
    # ─────────────────────────────────────────────────────────────────────────

    def answer(
        self,
        question_id: str,
        value: Any,
        part_id: Optional[str] = None,
        subpart_id: Optional[str] = None,
    ) -> Optional[UserAnswer]:
        """
        Record, score and store an answer. Last write wins.

        Args:
            question_id: Top-level question id
            value: SubmittedValue or a raw value accepted by SubmittedValue.coerce
            part_id: Part id for part/subpart answers
            subpart_id: Subpart id for subpart answers

        Returns:
            The stored UserAnswer, or None if the answer was ignored (session
            submitted, or the ids name no answerable item)
        """
        if self.state.status is SessionStatus.SUBMITTED:
            logger.debug(f"answer() ignored after submission: {question_id}")
            return None

        item = self.paper.resolve(question_id, part_id, subpart_id)
        if item is None:
            logger.warning(
                f"Ignoring answer for unknown or non-answerable item "
                f"{question_id}/{part_id}/{subpart_id}"
            )
            return None
        key = answer_key(question_id, part_id, subpart_id)

        try:
            submitted = SubmittedValue.coerce(value)
        except TypeError as e:
            logger.warning(f"Ignoring answer for {key}: {e}")
            return None

        now = self._clock()
        start = self.state.start_times.get(key)
        if start is None:
            start = self.state.start_times.get(question_id, now)
            self.state.start_times[key] = start
        time_spent = max(math.floor(now - start), 0)

        result = validate(item, submitted, self.config.scoring)
        for warning in result.warnings:
            self.diagnostics.add(key, warning)

        stored = UserAnswer(
            question_id=question_id,
            part_id=part_id,
            subpart_id=subpart_id,
            value=submitted,
            is_correct=result.is_correct,
            marks_awarded=result.marks_awarded(item.marks),
            time_spent=time_spent,
            partial_credit=result.partial_credit,
        )
        self.state.answers[key] = stored
        logger.debug(
            f"Answer {key}: score={result.score:.3f} "
            f"marks={stored.marks_awarded}/{item.marks} time={time_spent}s"
        )
        return stored

    def flag(self, question_id: str) -> bool:
        if not self._can_flag(question_id):
            return False
        self.state.flagged.add(question_id)
        return True

    def unflag(self, question_id: str) -> bool:
        if not self._can_flag(question_id) or question_id not in self.state.flagged:
            return False
        self.state.flagged.discard(question_id)
        return True

    def toggle_flag(self, question_id: str) -> Optional[bool]:
        """Flip a flag. Returns the new flagged state, or None if ignored."""
        if not self._can_flag(question_id):
            return None
        if question_id in self.state.flagged:
            self.state.flagged.discard(question_id)
            return False
        self.state.flagged.add(question_id)
        return True

    def is_flagged(self, question_id: str) -> bool:
        return question_id in self.state.flagged

    def _can_flag(self, question_id: str) -> bool:
        if self.state.status is SessionStatus.SUBMITTED:
            return False
        if self.paper.get_question(question_id) is None:
            logger.debug(f"Ignoring flag change for unknown question {question_id!r}")
            return False
        return True

    # ─────────────────────────────────────────────────────────────────────────
    # Progress Queries
    # ─────────────────────────────────────────────────────────────────────────

    def question_status(self, question_id: str) -> str:
        """
        answered / partial / unanswered, by attempted answerable items.

        A question with parts is "partial" until every part (and subpart)
        has an attempted answer.
        """
        question = self.paper.get_question(question_id)
        if question is None:
            return STATUS_UNANSWERED
        keys = [
            answer_key(*(node.id for node in path))
            for path in question.iter_leaf_paths()
        ]
        attempted = sum(
            1 for key in keys
            if key in self.state.answers and self.state.answers[key].is_attempted
        )
        if attempted == 0:
            return STATUS_UNANSWERED
        if attempted == len(keys):
            return STATUS_ANSWERED
        return STATUS_PARTIAL

    def answered_count(self) -> int:
        """Questions with at least one attempted answer."""
        return sum(
            1 for qid in self.paper.question_ids
            if self.question_status(qid) != STATUS_UNANSWERED
        )

    def progress(self) -> int:
        """Percentage of questions with at least one attempted answer."""
        return _round_percent(self.answered_count(), self.paper.question_count)

    # ─────────────────────────────────────────────────────────────────────────
    # Submission and QA Review
    # ─────────────────────────────────────────────────────────────────────────

    def submit(self) -> Optional[SubmissionResult]:
        """
        Freeze the session and aggregate results.

        The result is dispatched to every registered sink; a failing sink is
        logged and never rolls back the submission.

        Returns:
            SubmissionResult, or None if the session was not in progress
        """
        if not self.state.status.in_progress:
            logger.debug(f"submit() ignored in status {self.state.status}")
            return None

        self.state.status = SessionStatus.SUBMITTED
        self.state.submitted_at = self._clock()
        summary = aggregate_results(self.paper, self.state.answers)
        result = SubmissionResult(snapshot=self.state.snapshot(), summary=summary)
        self.last_submission = result
        logger.info(
            f"Session submitted: paper={self.paper.id} "
            f"marks={summary.earned_marks}/{summary.total_marks} grade={summary.grade}"
        )

        for sink in list(self._result_sinks):
            try:
                sink(result)
            except Exception:
                logger.exception(f"Result sink {sink!r} failed; submission kept")
        return result

    def complete_review(self) -> Union[QAReviewReport, ReviewBlocked]:
        """
        Complete a QA review.

        Rejected (state untouched) outside QA mode, once already completed or
        submitted, or while any question is unvisited. No start() is needed. On success the session is frozen and the
        exit callback receives the report.
        """
        if self.mode is not SessionMode.QA:
            return ReviewBlocked(REVIEW_WRONG_MODE_MESSAGE)
        if self.state.status is SessionStatus.SUBMITTED:
            return ReviewBlocked(REVIEW_CLOSED_MESSAGE)
        visitation = self.state.visitation
        if not visitation.is_complete:
            logger.debug(f"QA completion blocked; unvisited: {visitation.remaining}")
            return ReviewBlocked(REVIEW_INCOMPLETE_MESSAGE, visitation.remaining)

        report = self._build_report()
        self.state.status = SessionStatus.SUBMITTED
        self.state.submitted_at = self._clock()
        self.last_report = report
        logger.info(
            f"QA review completed: paper={self.paper.id} "
            f"answered={report.answered_count}/{report.total_questions}"
        )
        self._exit(report)
        return report

    def _build_report(self) -> QAReviewReport:
        question_times = {}
        for stored in self.state.answers.values():
            previous = question_times.get(stored.question_id, 0)
            question_times[stored.question_id] = max(previous, stored.time_spent)

        answered = self.answered_count()
        total = self.paper.question_count
        flagged = tuple(qid for qid in self.paper.question_ids if qid in self.state.flagged)
        issues = tuple(self.diagnostics.messages())

        return QAReviewReport(
            completed_at=datetime.now(timezone.utc),
            flagged_questions=flagged,
            question_times=question_times,
            score=_round_percent(answered, total),
            time_elapsed=self._time_elapsed(),
            answered_count=answered,
            total_questions=total,
            visited_questions=self.state.visitation.visited,
            issues=issues,
            recommendations=self._recommendations(answered, total, flagged, issues),
        )

    def _time_elapsed(self) -> int:
        if self.mode is SessionMode.TIMED:
            return self.state.elapsed_seconds
        if self.state.started_at is None:
            return 0
        return max(math.floor(self._clock() - self.state.started_at), 0)

    def _recommendations(self, answered, total, flagged, issues) -> tuple:
        recommendations = []
        if flagged:
            recommendations.append(f"Re-check flagged questions: {', '.join(flagged)}")
        if answered < total:
            recommendations.append(
                f"Answer the remaining {total - answered} question(s) to confirm their mark schemes"
            )
        if issues:
            recommendations.append("Fix the answer data listed under issues before publishing")
        manual = [
            entry.key for entry in self.paper.iter_answerable()
            if entry.item.requires_manual_marking
        ]
        if manual:
            recommendations.append(f"Arrange manual marking for: {', '.join(manual)}")
        return tuple(recommendations)

    # ─────────────────────────────────────────────────────────────────────────
    # Exit Path
    # ─────────────────────────────────────────────────────────────────────────

    def exit_prompt(self) -> Optional[str]:
        """Confirmation message required before exiting, or None."""
        if self.state.status is SessionStatus.SUBMITTED:
            return None
        if self.mode is SessionMode.QA:
            if not self.state.visitation.is_complete:
                return EXIT_QA_UNVISITED_MESSAGE
            return EXIT_QA_INCOMPLETE_MESSAGE
        if not self.state.status.in_progress:
            return None
        return EXIT_IN_PROGRESS_MESSAGE

    def request_exit(self, confirm: Optional[ConfirmCallback] = None) -> bool:
        """
        Leave the session (plain exit).

        Args:
            confirm: Called with the exit prompt when one is required; a
                False answer cancels the exit. None means the host has
                already confirmed.

        Returns:
            True if the exit callback was invoked
        """
        prompt = self.exit_prompt()
        if prompt is not None and confirm is not None and not confirm(prompt):
            logger.debug("Exit cancelled by user")
            return False
        return self._exit(None)

    def should_block_unload(self) -> bool:
        """True while a run is ticking and leaving would lose progress."""
        return self.state.status is SessionStatus.RUNNING

    def _exit(self, report: Optional[QAReviewReport]) -> bool:
        if self._exited:
            return False
        self._exited = True
        self.teardown()
        if self._on_exit is None:
            return True
        try:
            self._on_exit(report)
        except Exception:
            logger.exception("Exit callback failed")
        return True
