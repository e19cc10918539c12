"""
Tests for question type normalisation and display names
"""
import pytest

from xrtraining.models.question_types import (
    QuestionType,
    normalize_question_type,
    parse_question_type,
    to_display_name,
)


class TestParseQuestionType:
    """Accepted spellings resolve to the storage value"""

    @pytest.mark.parametrize("value,expected", [
        ("text", QuestionType.TEXT),
        ("Open", QuestionType.TEXT),
        ("True or False", QuestionType.BOOLEAN),
        ("yes/no", QuestionType.BOOLEAN),
        ("  Multiple   Choice ", QuestionType.CHOICE),
        ("Selection checkboxes", QuestionType.CHECKBOXES),
        ("checkbox", QuestionType.CHECKBOXES),
        ("SCALE", QuestionType.SCALE),
        ("likert", QuestionType.SCALE),
    ])
    def test_known_spellings(self, value, expected):
        assert parse_question_type(value) == expected

    def test_unknown_returns_none(self):
        assert parse_question_type("essay") is None
        assert parse_question_type(None) is None
        assert parse_question_type("") is None


class TestNormalizeAndDisplay:

    def test_normalize_to_storage_value(self):
        assert normalize_question_type("Multiple choice") == "choice"
        assert normalize_question_type("Yes or No") == "boolean"

    def test_normalize_keeps_unknown_input(self):
        assert normalize_question_type("  essay ") == "essay"

    def test_display_names(self):
        assert to_display_name("text") == "Open"
        assert to_display_name("boolean") == "True or False"
        assert to_display_name("choice") == "Multiple choice"
        assert to_display_name("checkboxes") == "Selection checkboxes"
        assert to_display_name("scale") == "Scale"

    def test_unknown_display_passes_through(self):
        assert to_display_name("essay") == "essay"
