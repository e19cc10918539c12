"""
Quiz question types

Storage form (what the database and the evaluator use) differs from the
display form sent over the wire:

    text        <-> "Open"
    boolean     <-> "True or False"
    choice      <-> "Multiple choice"
    checkboxes  <-> "Selection checkboxes"
    scale       <-> "Scale"

Input is matched case-insensitively against storage values, display names
and the synonyms below, and always normalised to the storage value.
"""
from enum import Enum
from typing import Dict, Optional


class QuestionType(str, Enum):
    TEXT = "text"
    BOOLEAN = "boolean"
    CHOICE = "choice"
    CHECKBOXES = "checkboxes"
    SCALE = "scale"


DISPLAY_NAMES: Dict[QuestionType, str] = {
    QuestionType.TEXT: "Open",
    QuestionType.BOOLEAN: "True or False",
    QuestionType.CHOICE: "Multiple choice",
    QuestionType.CHECKBOXES: "Selection checkboxes",
    QuestionType.SCALE: "Scale",
}

_SYNONYMS: Dict[str, QuestionType] = {
    "yes/no": QuestionType.BOOLEAN,
    "yes or no": QuestionType.BOOLEAN,
    "single choice": QuestionType.CHOICE,
    "radio": QuestionType.CHOICE,
    # legacy storage values written by older authoring clients
    "multiple-choice": QuestionType.CHOICE,
    "single-choice": QuestionType.CHOICE,
    "checkbox": QuestionType.CHECKBOXES,
    "multi select": QuestionType.CHECKBOXES,
    "likert": QuestionType.SCALE,
    "rating": QuestionType.SCALE,
}

# Choice-like types are scored by exact answer-set comparison
CHOICE_TYPES = frozenset({QuestionType.BOOLEAN, QuestionType.CHOICE, QuestionType.CHECKBOXES})


def _build_lookup() -> Dict[str, QuestionType]:
    lookup: Dict[str, QuestionType] = {}
    for question_type in QuestionType:
        lookup[question_type.value] = question_type
        lookup[DISPLAY_NAMES[question_type].lower()] = question_type
    lookup.update(_SYNONYMS)
    return lookup


_LOOKUP = _build_lookup()


def parse_question_type(value: Optional[str]) -> Optional[QuestionType]:
    """
    Resolve any accepted spelling to a QuestionType.

    Returns None for unknown or empty values instead of raising, callers
    decide whether an unknown type is an error.

    Example:
        >>> parse_question_type("Yes/No")
        <QuestionType.BOOLEAN: 'boolean'>
        >>> parse_question_type("essay") is None
        True
    """
    if value is None:
        return None
    if isinstance(value, QuestionType):
        return value
    return _LOOKUP.get(" ".join(str(value).split()).lower())


def normalize_question_type(value: str) -> str:
    """Storage value for known spellings, the stripped input otherwise"""
    parsed = parse_question_type(value)
    if parsed is not None:
        return parsed.value
    return str(value).strip()


def to_display_name(value: str) -> str:
    """Wire display name for a stored type; unknown types pass through"""
    parsed = parse_question_type(value)
    if parsed is None:
        return value
    return DISPLAY_NAMES[parsed]
