"""
Tests for the answer evaluator
"""
from decimal import Decimal

from xrtraining.models.material import QuizAnswer, QuizQuestion
from xrtraining.models.submission import SubmittedAnswer
from xrtraining.services.answer_evaluator import Evaluation, evaluate_answer


def _choice_question(question_type="choice", correct=(37,), wrong=(38,), score="10"):
    answers = [QuizAnswer(id=answer_id, text=str(answer_id), correct_answer=True) for answer_id in correct]
    answers += [QuizAnswer(id=answer_id, text=str(answer_id), correct_answer=False) for answer_id in wrong]
    return QuizQuestion(id=29, question_type=question_type, text="Q", score=Decimal(score), answers=answers)


class TestChoiceQuestions:
    """Exact set equality, no partial credit"""

    def test_correct_answer_awards_score(self):
        result = evaluate_answer(_choice_question(), SubmittedAnswer(answer_ids=[37]))
        assert result == Evaluation(Decimal("10"), True)

    def test_wrong_answer_scores_zero(self):
        result = evaluate_answer(_choice_question(), SubmittedAnswer(answer_ids=[38]))
        assert result == Evaluation(Decimal("0"), False)

    def test_empty_submission_is_never_correct(self):
        result = evaluate_answer(_choice_question(), SubmittedAnswer(answer_ids=[]))
        assert result.is_correct is False
        assert result.score_awarded == 0

    def test_boolean_uses_same_rule(self):
        question = _choice_question("boolean", correct=(1,), wrong=(2,), score="5")
        assert evaluate_answer(question, SubmittedAnswer(answer_ids=[1])).score_awarded == Decimal("5")
        assert evaluate_answer(question, SubmittedAnswer(answer_ids=[1, 2])).is_correct is False

    def test_question_without_score(self):
        question = _choice_question()
        question.score = None
        assert evaluate_answer(question, SubmittedAnswer(answer_ids=[37])) == Evaluation(Decimal("0"), True)


class TestCheckboxQuestions:

    def test_exact_set_is_correct(self):
        question = _choice_question("checkboxes", correct=(1, 2), wrong=(3,))
        result = evaluate_answer(question, SubmittedAnswer(answer_ids=[2, 1]))
        assert result == Evaluation(Decimal("10"), True)

    def test_subset_is_wrong(self):
        question = _choice_question("checkboxes", correct=(1, 2), wrong=(3,))
        assert evaluate_answer(question, SubmittedAnswer(answer_ids=[1])).is_correct is False

    def test_superset_is_wrong(self):
        question = _choice_question("checkboxes", correct=(1, 2), wrong=(3,))
        assert evaluate_answer(question, SubmittedAnswer(answer_ids=[1, 2, 3])).is_correct is False

    def test_duplicate_ids_collapse(self):
        question = _choice_question("checkboxes", correct=(1, 2), wrong=(3,))
        assert evaluate_answer(question, SubmittedAnswer(answer_ids=[1, 2, 2])).is_correct is True


class TestUngradedQuestions:

    def test_scale_scores_zero(self):
        question = QuizQuestion(id=1, question_type="scale", score=Decimal("3"), scale_config="{}")
        assert evaluate_answer(question, SubmittedAnswer(value=4)) == Evaluation(Decimal("0"), False)

    def test_text_scores_zero(self):
        question = QuizQuestion(id=1, question_type="text", score=Decimal("3"))
        assert evaluate_answer(question, SubmittedAnswer(text="Close the inlet")) == Evaluation(Decimal("0"), False)

    def test_unknown_type_scores_zero(self):
        question = QuizQuestion(id=1, question_type="essay", score=Decimal("3"))
        assert evaluate_answer(question, SubmittedAnswer(answer_ids=[1])) == Evaluation(Decimal("0"), False)
