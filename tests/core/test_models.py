"""
Unit Tests for Core Models

Tests for Option labels, the recursive AnswerableItem tree, Paper key
resolution and the submission value types.
"""

import logging

import pytest

from exam_toolkit.core.models import (
    AnswerableItem,
    AnswerContext,
    AnswerRequirement,
    CorrectAnswer,
    ItemLevel,
    Option,
    Paper,
    SubmittedValue,
    UserAnswer,
    ValueKind,
    answer_key,
    label_for,
)
from exam_toolkit.core.models.answers import describe_requirement


class TestLabelFor:
    """Tests for label_for bijective base-26 labels."""

    @pytest.mark.parametrize("index,expected", [
        (0, "A"), (1, "B"), (25, "Z"), (26, "AA"), (27, "AB"), (51, "AZ"), (52, "BA"), (701, "ZZ"), (702, "AAA"),
    ])
    def test_label_for_when_index_given_then_returns_base26_label(self, index, expected):
        """Labels continue past Z without wrapping."""
        assert label_for(index) == expected

    def test_label_for_when_negative_then_clamps_to_a(self):
        """Negative positions are clamped."""
        assert label_for(-3) == "A"

    def test_option_label_when_position_set_then_derived(self):
        """Option label is derived from position, never stored."""
        assert Option(id="x", text="Choice", position=2).label == "C"

    def test_option_when_negative_position_then_raises_error(self):
        """Negative option position is rejected."""
        with pytest.raises(ValueError, match="cannot be negative"):
            Option(id="x", text="Choice", position=-1)


class TestAnswerableItem:
    """Tests for the recursive AnswerableItem tree."""

    # ─────────────────────────────────────────────────────────────────────────
    # Constructor Tests
    # ─────────────────────────────────────────────────────────────────────────

    def test_init_when_leaf_without_marks_then_raises_error(self):
        """Answerable leaves must carry positive marks."""
        with pytest.raises(ValueError, match="positive marks"):
            AnswerableItem(id="q1", label="1", kind=ItemLevel.QUESTION, marks=0)

    def test_init_when_child_level_skipped_then_raises_error(self):
        """A question cannot contain subparts directly."""
        subpart = AnswerableItem(id="i", label="(i)", kind=ItemLevel.SUBPART, marks=1)
        with pytest.raises(ValueError, match="cannot contain"):
            AnswerableItem(id="q1", label="1", kind=ItemLevel.QUESTION, marks=0, children=(subpart,))

    def test_init_when_subpart_has_children_then_raises_error(self):
        """Subparts are always leaves."""
        inner = AnswerableItem(id="x", label="x", kind=ItemLevel.SUBPART, marks=1)
        with pytest.raises(ValueError, match="cannot contain"):
            AnswerableItem(id="i", label="(i)", kind=ItemLevel.SUBPART, marks=0, children=(inner,))

    def test_init_when_duplicate_child_ids_then_raises_error(self):
        """Sibling ids must be unique."""
        a1 = AnswerableItem(id="a", label="(a)", kind=ItemLevel.PART, marks=1)
        a2 = AnswerableItem(id="a", label="(a)", kind=ItemLevel.PART, marks=2)
        with pytest.raises(ValueError, match="Duplicate child id"):
            AnswerableItem(id="q1", label="1", kind=ItemLevel.QUESTION, marks=0, children=(a1, a2))

    def test_init_when_options_out_of_order_then_raises_error(self):
        """Options must be ordered by position."""
        options = (Option("b", "B", position=1), Option("a", "A", position=0))
        with pytest.raises(ValueError, match="ordered by position"):
            AnswerableItem(id="q1", label="1", kind=ItemLevel.QUESTION, marks=1, options=options)

    # ─────────────────────────────────────────────────────────────────────────
    # Property Tests
    # ─────────────────────────────────────────────────────────────────────────

    def test_total_marks_when_parent_marks_stale_then_calculated_from_leaves(self, nested_paper):
        """Parent marks are always summed from leaves."""
        q2 = nested_paper.get_question("q2")
        assert q2.marks == 0
        assert q2.total_marks == 4
        assert q2.leaf_count == 3

    def test_iter_leaves_when_nested_then_yields_tree_order(self, nested_paper):
        """Leaves come back in tree order."""
        q2 = nested_paper.get_question("q2")
        assert [leaf.id for leaf in q2.iter_leaves()] == ["a", "i", "ii"]

    def test_find_option_when_label_given_then_case_insensitive(self, mcq):
        """Options resolve by id first, then by derived label."""
        item = mcq("q1")
        assert item.find_option("b").id == "q1-opt1"
        assert item.find_option("q1-opt3").label == "D"
        assert item.find_option("Z") is None


class TestPaper:
    """Tests for Paper key resolution."""

    def test_resolve_when_question_has_parts_then_returns_none(self, nested_paper):
        """A question with parts is never itself answerable."""
        assert nested_paper.resolve("q2") is None
        assert nested_paper.resolve("q2", "b") is None
        assert nested_paper.resolve("q2", "b", "ii").id == "ii"

    def test_iter_answerable_when_nested_then_keys_name_leaves(self, nested_paper):
        """Every answerable key is q[-p[-s]] for a leaf."""
        keys = [entry.key for entry in nested_paper.iter_answerable()]
        assert keys == ["q1", "q2-a", "q2-b-i", "q2-b-ii", "q3"]

    def test_inherited_when_leaf_lacks_topic_then_uses_nearest_ancestor(self, nested_paper):
        """Topic and difficulty are inherited from the closest ancestor."""
        entry = nested_paper.entry_for_key("q2-b-i")
        assert entry.inherited("topic") == "Energy"
        assert str(entry.inherited("difficulty")) == "hard"

    def test_init_when_declared_total_mismatch_then_logs_warning(self, nested_paper, caplog):
        """A wrong declared total is logged, never trusted."""
        with caplog.at_level(logging.WARNING):
            paper = Paper(
                id="p", code="c", subject="s",
                questions=nested_paper.questions,
                declared_total_marks=99,
            )
        assert paper.total_marks == 6
        assert "does not match calculated total" in caplog.text

    def test_init_when_duplicate_question_ids_then_raises_error(self, mcq):
        """Question ids are unique within a paper."""
        with pytest.raises(ValueError, match="Duplicate question id"):
            Paper(id="p", code="c", subject="s", questions=(mcq("q1"), mcq("q1")))

    def test_init_when_answer_keys_collide_then_raises_error(self, descriptive):
        """Question "1-a" and part (a) of question "1" share the key "1-a"."""
        parent = AnswerableItem(
            id="1",
            label="1",
            kind=ItemLevel.QUESTION,
            marks=0,
            children=(descriptive("a", ["x"], kind=ItemLevel.PART),),
        )
        with pytest.raises(ValueError, match="answer key '1-a'"):
            Paper(id="p", code="c", subject="s", questions=(descriptive("1-a", ["y"]), parent))


class TestSubmissions:
    """Tests for answer keys and SubmittedValue."""

    def test_answer_key_when_levels_given_then_joins_with_dashes(self):
        """Composite key format is q[-p[-s]]."""
        assert answer_key("q1") == "q1"
        assert answer_key("q1", "a") == "q1-a"
        assert answer_key("q1", "a", "ii") == "q1-a-ii"

    def test_answer_key_when_subpart_without_part_then_raises_error(self):
        """A subpart always belongs to a part."""
        with pytest.raises(ValueError):
            answer_key("q1", None, "ii")

    @pytest.mark.parametrize("raw,kind", [
        ("Paris", ValueKind.TEXT),
        (3.5, ValueKind.TEXT),
        (["a", "b"], ValueKind.OPTION),
        ({"a": "x"}, ValueKind.STRUCTURED),
    ])
    def test_coerce_when_raw_value_then_tags_kind(self, raw, kind):
        """Raw host values are wrapped in the tagged variant."""
        assert SubmittedValue.coerce(raw).kind is kind

    def test_coerce_when_bool_then_text_true_false(self):
        """Booleans become true/false text."""
        assert SubmittedValue.coerce(True).text == "true"

    def test_coerce_when_unsupported_type_then_raises_type_error(self):
        """Unknown host types are rejected."""
        with pytest.raises(TypeError):
            SubmittedValue.coerce(object())

    def test_is_empty_when_whitespace_only_then_true(self):
        """Whitespace-only answers count as empty."""
        assert SubmittedValue.from_text("   ").is_empty
        assert SubmittedValue.from_fields({"a": " "}).is_empty
        assert not SubmittedValue.from_options("B").is_empty

    def test_user_answer_when_negative_marks_then_raises_error(self):
        """marks_awarded is never negative."""
        with pytest.raises(ValueError):
            UserAnswer("q1", SubmittedValue.from_text("x"), False, -1)


class TestAnswerModel:
    """Tests for requirements and alternatives."""

    def test_required_count_when_any_two_from_then_two(self):
        """any_N_from exposes N."""
        assert AnswerRequirement.ANY_TWO_FROM.required_count == 2
        assert AnswerRequirement.ALL_REQUIRED.required_count is None

    def test_describe_requirement_when_none_then_none(self):
        """No requirement has no description."""
        assert describe_requirement(None) is None
        assert "Any two" in describe_requirement(AnswerRequirement.ANY_TWO_FROM)

    def test_slot_names_when_underscored_value_then_includes_suffix(self):
        """Context slots can be addressed by value, label or value suffix."""
        context = AnswerContext(type="label", value="option_A", label="First")
        assert context.slot_names() == ("option_a", "first", "a")

    def test_to_dict_when_defaults_then_only_answer(self):
        """Serialized alternatives omit default fields."""
        assert CorrectAnswer(answer="Paris").to_dict() == {"answer": "Paris"}
