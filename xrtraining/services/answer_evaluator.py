"""
Answer evaluator

Pure scoring function for one quiz question:

- boolean / choice / checkboxes: correct only when the submitted answer ids
  are exactly the set of answers flagged correct. No partial credit; an
  empty submission is never correct.
- scale: no notion of correctness, scores 0.
- text and unrecognised types: not auto-graded, score 0.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from ..models.material import QuizQuestion
from ..models.question_types import CHOICE_TYPES, parse_question_type
from ..models.submission import SubmittedAnswer

ZERO = Decimal("0")


@dataclass(frozen=True)
class Evaluation:
    score_awarded: Decimal
    is_correct: bool


def _correct_ids(question: QuizQuestion) -> set:
    return {answer.id for answer in question.answers if answer.correct_answer}


def evaluate_choice(question: QuizQuestion, answer_ids: Optional[Iterable[int]]) -> Evaluation:
    submitted = set(answer_ids or [])
    if not submitted:
        return Evaluation(ZERO, False)
    if submitted == _correct_ids(question):
        return Evaluation(question.score or ZERO, True)
    return Evaluation(ZERO, False)


def evaluate_answer(question: QuizQuestion, answer: SubmittedAnswer) -> Evaluation:
    """
    Score one answer against its question.

    Example:
        question 29 (choice, score 10) with answers 37 (correct) and 38:
        answer_ids=[37] -> (10, True); answer_ids=[38] -> (0, False)
    """
    question_type = parse_question_type(question.question_type)
    if question_type in CHOICE_TYPES:
        return evaluate_choice(question, answer.answer_ids)
    return Evaluation(ZERO, False)
