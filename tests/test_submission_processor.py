"""
Tests for the quiz submission processor
"""
from decimal import Decimal

import pytest
from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from xrtraining.core.exceptions import (
    AnswerShapeError,
    MaterialNotFoundError,
    MaterialNotInProgramError,
    NotAQuizError,
    PersistenceError,
    ProgramNotFoundError,
)
from xrtraining.database.models import UserMaterialDataDB, UserMaterialScoreDB
from xrtraining.database.repositories import UserMaterialRepository
from xrtraining.models.submission import SubmissionRequest
from xrtraining.services.submission_processor import QuizSubmissionProcessor

USER = "trainee-7"


@pytest.fixture
def processor(db):
    return QuizSubmissionProcessor(db)


def _count(db, model):
    return db.execute(select(func.count()).select_from(model)).scalar_one()


def _answers(quiz, choice_index=0, boolean_index=1):
    """Request answering every question; indexes pick the choice/boolean answers"""
    choice, boolean, open_question, scale = quiz.questions
    return {
        "questions": [
            {"question_id": choice.id, "answer": {"answer_ids": [choice.answers[choice_index].id]}},
            {"question_id": boolean.id, "answer": {"answer_ids": [boolean.answers[boolean_index].id]}},
            {"question_id": open_question.id, "answer": {"text": "Close the inlet, then bleed"}},
            {"question_id": scale.id, "answer": {"value": 4}},
        ],
    }


class TestStandaloneSubmission:

    def test_scores_and_progress(self, processor, make_quiz):
        quiz = make_quiz()
        result = processor.submit(USER, quiz.id, SubmissionRequest(**_answers(quiz)))

        assert result.success is True
        assert result.score == Decimal("10")
        assert result.progress == 100
        assert result.program_id is None
        assert result.errors == []
        assert result.message is None

    def test_history_snapshot(self, processor, make_quiz, db):
        quiz = make_quiz()
        processor.submit(USER, quiz.id, SubmissionRequest(**_answers(quiz, boolean_index=0)))

        history = UserMaterialRepository(db).get_history(USER, quiz.id)
        assert history.data["version"] == 1
        assert history.data["total_score"] == 15.0
        by_question = {answer["question_id"]: answer for answer in history.data["answers"]}
        assert by_question[quiz.questions[0].id]["is_correct"] is True
        assert by_question[quiz.questions[2].id]["text"] == "Close the inlet, then bleed"
        assert by_question[quiz.questions[3].id]["is_correct"] is False
        assert by_question[quiz.questions[3].id]["value"] == 4

    def test_resubmission_overwrites(self, processor, make_quiz, db):
        quiz = make_quiz()
        processor.submit(USER, quiz.id, SubmissionRequest(**_answers(quiz)))
        result = processor.submit(USER, quiz.id, SubmissionRequest(**_answers(quiz, choice_index=1)))

        assert result.score == Decimal("0")
        assert _count(db, UserMaterialDataDB) == 1
        assert _count(db, UserMaterialScoreDB) == 1
        summary = UserMaterialRepository(db).get_summary(USER, quiz.id)
        assert summary.score == Decimal("0")
        assert summary.progress == 100

    def test_unknown_question_reported(self, processor, make_quiz):
        quiz = make_quiz()
        request = _answers(quiz)
        request["questions"].append({"question_id": 98765, "answer": {"answer_ids": [1]}})

        result = processor.submit(USER, quiz.id, SubmissionRequest(**request))
        assert result.success is True
        assert result.score == Decimal("10")
        assert [(e.question_id, e.error_code) for e in result.errors] == [(98765, "QUESTION_NOT_FOUND")]
        assert result.message == "1 question(s) could not be evaluated"

    def test_duplicate_question_reported(self, processor, make_quiz):
        quiz = make_quiz()
        choice = quiz.questions[0]
        request = {"questions": [
            {"question_id": choice.id, "answer": {"answer_ids": [choice.answers[0].id]}},
            {"question_id": choice.id, "answer": {"answer_ids": [choice.answers[0].id]}},
        ]}

        result = processor.submit(USER, quiz.id, SubmissionRequest(**request))
        assert result.score == Decimal("10")
        assert [e.error_code for e in result.errors] == ["DUPLICATE_QUESTION"]

    def test_empty_submission_still_completes(self, processor, make_quiz):
        quiz = make_quiz()
        result = processor.submit(USER, quiz.id, SubmissionRequest())
        assert result.score == Decimal("0")
        assert result.progress == 100


class TestRejectedSubmission:
    """Rejections leave no trace in the database"""

    def test_answer_shape_mismatch(self, processor, make_quiz, db):
        quiz = make_quiz()
        request = {"questions": [{"question_id": quiz.questions[0].id, "answer": {"text": "Inlet"}}]}

        with pytest.raises(AnswerShapeError) as exc_info:
            processor.submit(USER, quiz.id, SubmissionRequest(**request))
        assert exc_info.value.extra["expected"] == "answer_ids"
        assert _count(db, UserMaterialDataDB) == 0
        assert _count(db, UserMaterialScoreDB) == 0

    def test_scale_needs_value(self, processor, make_quiz):
        quiz = make_quiz()
        request = {"questions": [{"question_id": quiz.questions[3].id, "answer": {"answer_ids": [1]}}]}
        with pytest.raises(AnswerShapeError):
            processor.submit(USER, quiz.id, SubmissionRequest(**request))

    def test_fractional_scale_value(self, make_quiz):
        quiz = make_quiz()
        request = {"questions": [{"question_id": quiz.questions[3].id, "answer": {"value": 4.5}}]}
        with pytest.raises(ValidationError):
            SubmissionRequest(**request)

    def test_not_a_quiz(self, processor, make_material):
        pdf = make_material("pdf")
        with pytest.raises(NotAQuizError):
            processor.submit(USER, pdf.id, SubmissionRequest())

    def test_unknown_material(self, processor):
        with pytest.raises(MaterialNotFoundError):
            processor.submit(USER, 31337, SubmissionRequest())

    def test_unknown_program(self, processor, make_quiz):
        quiz = make_quiz()
        with pytest.raises(ProgramNotFoundError):
            processor.submit(USER, quiz.id, SubmissionRequest(program_id=55))

    def test_material_outside_program(self, processor, make_quiz, program_repo, db):
        quiz = make_quiz()
        program = program_repo.create_program("Unrelated")
        with pytest.raises(MaterialNotInProgramError):
            processor.submit(USER, quiz.id, SubmissionRequest(program_id=program.id))
        assert _count(db, UserMaterialScoreDB) == 0

    def test_storage_failure_rolls_back_both_rows(self, processor, make_quiz, db, monkeypatch):
        quiz = make_quiz()

        def failing_upsert(*args, **kwargs):
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(processor.store, "upsert_summary", failing_upsert)

        with pytest.raises(PersistenceError):
            processor.submit(USER, quiz.id, SubmissionRequest(**_answers(quiz)))
        assert _count(db, UserMaterialDataDB) == 0
        assert _count(db, UserMaterialScoreDB) == 0


class TestProgramSubmission:

    def test_progress_within_program(self, processor, make_quiz, make_material, program_repo):
        quiz = make_quiz()
        reading = make_material("pdf")
        program = program_repo.create_program("Plant safety")
        program_repo.add_material(program.id, quiz.id)
        program_repo.add_material(program.id, reading.id)

        result = processor.submit(USER, quiz.id, SubmissionRequest(program_id=program.id, **_answers(quiz)))

        assert result.program_id == program.id
        assert result.progress == 50
        assert result.learning_path_id is None
        assert result.learning_path_progress is None

    def test_learning_path_resolved(self, processor, make_quiz, make_material, program_repo, db):
        quiz = make_quiz()
        first, second, third = (make_material("pdf") for _ in range(3))
        program = program_repo.create_program("Plant safety")
        path = program_repo.create_learning_path("Valves")
        program_repo.add_material(program.id, first.id)
        program_repo.add_learning_path(program.id, path.id)
        program_repo.add_material_to_learning_path(path.id, second.id, display_order=1)
        program_repo.add_material_to_learning_path(path.id, quiz.id, display_order=2)
        program_repo.add_material_to_learning_path(path.id, third.id, display_order=3)

        result = processor.submit(USER, quiz.id, SubmissionRequest(program_id=program.id, **_answers(quiz)))

        assert result.learning_path_id == path.id
        assert result.learning_path_progress == 33
        assert result.progress == 25
        summary = UserMaterialRepository(db).get_summary(USER, quiz.id)
        assert summary.program_id == program.id
        assert summary.learning_path_id == path.id
        assert summary.progress == 25
