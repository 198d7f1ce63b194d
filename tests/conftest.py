import os
import pytest
import sys
from pathlib import Path

# Run Qt headless when no display is available.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Add src to sys.path so we can import exam_toolkit
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from exam_toolkit.core.models import (  # noqa: E402
    AnswerableItem,
    AnswerRequirement,
    CorrectAnswer,
    Difficulty,
    ItemLevel,
    ItemType,
    Option,
    Paper,
)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_mcq(item_id="q1", marks=2, correct=(1,), count=4, requirement=None, kind=ItemLevel.QUESTION):
    """MCQ item with `count` options; positions in `correct` are flagged correct."""
    options = tuple(
        Option(id=f"{item_id}-opt{i}", text=f"Choice {i}", is_correct=i in correct, position=i)
        for i in range(count)
    )
    return AnswerableItem(
        id=item_id,
        label=item_id,
        kind=kind,
        marks=marks,
        type=ItemType.MCQ,
        options=options,
        answer_requirement=requirement,
    )


def make_descriptive(item_id, answers, marks=1, requirement=None, kind=ItemLevel.QUESTION, **kwargs):
    """Descriptive item; `answers` may be strings or CorrectAnswer instances."""
    correct = tuple(a if isinstance(a, CorrectAnswer) else CorrectAnswer(answer=a) for a in answers)
    return AnswerableItem(
        id=item_id,
        label=item_id,
        kind=kind,
        marks=marks,
        type=ItemType.DESCRIPTIVE,
        correct_answers=correct,
        answer_requirement=requirement,
        **kwargs,
    )


# Common test fixtures
@pytest.fixture
def mcq():
    """Factory for MCQ items."""
    return make_mcq


@pytest.fixture
def descriptive():
    """Factory for descriptive items."""
    return make_descriptive


@pytest.fixture
def clock():
    """Return a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def capital_paper() -> Paper:
    """One MCQ (option B correct, 2 marks) and one any_one_from descriptive (1 mark)."""
    return Paper(
        id="paper-1",
        code="GEO/1",
        subject="Geography",
        questions=(
            make_mcq("q1", marks=2, correct=(1,)),
            make_descriptive(
                "q2",
                ["Paris", "paris, france"],
                marks=1,
                requirement=AnswerRequirement.ANY_ONE_FROM,
            ),
        ),
        duration_minutes=10,
    )


@pytest.fixture
def nested_paper() -> Paper:
    """Three questions; q2 has parts and q2(b) has subparts."""
    q1 = make_descriptive("q1", ["oxygen"], marks=1, difficulty=Difficulty.EASY, topic="Gases")
    q2 = AnswerableItem(
        id="q2",
        label="2",
        kind=ItemLevel.QUESTION,
        marks=0,
        difficulty=Difficulty.HARD,
        topic="Forces",
        children=(
            make_descriptive("a", ["5 N"], marks=2, kind=ItemLevel.PART),
            AnswerableItem(
                id="b",
                label="(b)",
                kind=ItemLevel.PART,
                marks=0,
                topic="Energy",
                children=(
                    make_descriptive("i", ["kinetic"], marks=1, kind=ItemLevel.SUBPART),
                    make_descriptive("ii", ["potential"], marks=1, kind=ItemLevel.SUBPART),
                ),
            ),
        ),
    )
    q3 = make_mcq("q3", marks=1, correct=(0,), count=3)
    return Paper(id="paper-2", code="SCI/2", subject="Science", questions=(q1, q2, q3))


@pytest.fixture
def raw_paper() -> dict:
    """Paper JSON data as stored by the authoring tool (with legacy spellings)."""
    return {
        "id": "paper-raw",
        "code": "0620/12",
        "subject": "Chemistry",
        "duration_minutes": "45",
        "total_marks": 4,
        "questions": [
            {
                "id": "1",
                "marks": 1,
                "type": "tf",
                "text": "Water boils at 100 °C at sea level.",
                "options": [
                    {"id": "t", "text": "True", "is_correct": True, "order": 1},
                    {"id": "f", "text": "False", "order": 2},
                ],
            },
            {
                "id": "2",
                "marks": 0,
                "topic": "Gases",
                "parts": [
                    {
                        "id": "a",
                        "marks": 1,
                        "type": "descriptive",
                        "correct_answers": [{"answer": "CO2"}],
                    },
                    {
                        "id": "b",
                        "marks": 2,
                        "answer_requirement": "all_required",
                        "correct_answers": [
                            {"answer": "oxygen", "alternative_id": "o"},
                            {"answer": "nitrogen", "alternative_id": "n"},
                        ],
                    },
                ],
            },
        ],
    }
