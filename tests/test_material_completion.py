"""
Tests for marking materials complete without a quiz submission
"""
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from xrtraining.core.exceptions import (
    MaterialNotFoundError,
    MaterialNotInProgramError,
    PersistenceError,
    ProgramNotFoundError,
)
from xrtraining.database.models import UserMaterialDataDB, UserMaterialScoreDB
from xrtraining.database.repositories import UserMaterialRepository
from xrtraining.models.submission import SubmissionRequest
from xrtraining.services.material_completion import MaterialCompletionService
from xrtraining.services.progress_reports import ProgressReportService
from xrtraining.services.submission_processor import QuizSubmissionProcessor

USER = "trainee-9"


@pytest.fixture
def service(db):
    return MaterialCompletionService(db)


def _count(db, model):
    return db.execute(select(func.count()).select_from(model)).scalar_one()


def _submit_correct(db, quiz, program_id=None):
    choice = quiz.questions[0]
    request = SubmissionRequest(
        program_id=program_id,
        questions=[{"question_id": choice.id, "answer": {"answer_ids": [choice.answers[0].id]}}],
    )
    return QuizSubmissionProcessor(db).submit(USER, quiz.id, request)


@pytest.fixture
def mixed_program(program_repo, make_quiz, make_material):
    """Quiz and PDF directly in the program, two videos through a learning path"""
    quiz = make_quiz()
    reading = make_material("pdf", name="Manual")
    intro, demo = make_material("video", name="Intro"), make_material("video", name="Demo")
    program = program_repo.create_program("Plant safety")
    path = program_repo.create_learning_path("Valves")
    program_repo.add_material(program.id, quiz.id)
    program_repo.add_material(program.id, reading.id)
    program_repo.add_learning_path(program.id, path.id)
    program_repo.add_material_to_learning_path(path.id, intro.id, display_order=1)
    program_repo.add_material_to_learning_path(path.id, demo.id, display_order=2)
    return {"program": program, "path": path, "quiz": quiz, "reading": reading, "intro": intro, "demo": demo}


class TestMarkComplete:

    def test_mixed_program_reaches_hundred(self, db, service, mixed_program):
        program_id = mixed_program["program"].id
        path_id = mixed_program["path"].id

        assert _submit_correct(db, mixed_program["quiz"], program_id=program_id).progress == 25

        result = service.mark_complete(USER, mixed_program["reading"].id, program_id)
        assert result.success is True
        assert result.progress == 50
        assert result.learning_path_id is None

        result = service.mark_complete(USER, mixed_program["intro"].id, program_id)
        assert result.progress == 75
        assert result.learning_path_id == path_id
        assert result.learning_path_progress == 50

        result = service.mark_complete(USER, mixed_program["demo"].id, program_id)
        assert result.progress == 100
        assert result.learning_path_progress == 100

        reports = ProgressReportService(db)
        assert reports.program_progress(USER, program_id).progress == 100
        assert reports.material_quiz_report(mixed_program["quiz"].id).users[0].progress == 100

    def test_existing_score_kept(self, db, service, mixed_program):
        quiz = mixed_program["quiz"]
        _submit_correct(db, quiz)

        service.mark_complete(USER, quiz.id, mixed_program["program"].id)

        store = UserMaterialRepository(db)
        summary = store.get_summary(USER, quiz.id)
        assert summary.score == Decimal("10")
        assert summary.program_id == mixed_program["program"].id
        assert summary.progress == 25
        assert store.get_history(USER, quiz.id).data["kind"] == "submission"

    def test_completion_snapshot(self, db, service, mixed_program):
        reading = mixed_program["reading"]
        service.mark_complete(USER, reading.id, mixed_program["program"].id)

        store = UserMaterialRepository(db)
        assert store.get_summary(USER, reading.id).score == Decimal("0")
        history = store.get_history(USER, reading.id).data
        assert history["kind"] == "completion"
        assert history["answers"] == []
        assert history["total_score"] == 0.0

    def test_repeat_is_idempotent(self, db, service, mixed_program):
        program_id = mixed_program["program"].id
        service.mark_complete(USER, mixed_program["reading"].id, program_id)
        result = service.mark_complete(USER, mixed_program["reading"].id, program_id)

        assert result.progress == 25
        assert _count(db, UserMaterialScoreDB) == 1
        assert _count(db, UserMaterialDataDB) == 1


class TestRejectedCompletion:
    """Rejections leave no trace in the database"""

    def test_material_outside_program(self, db, service, mixed_program, make_material):
        stray = make_material("pdf")
        with pytest.raises(MaterialNotInProgramError):
            service.mark_complete(USER, stray.id, mixed_program["program"].id)
        assert _count(db, UserMaterialScoreDB) == 0

    def test_unknown_material(self, service, mixed_program):
        with pytest.raises(MaterialNotFoundError):
            service.mark_complete(USER, 4242, mixed_program["program"].id)

    def test_unknown_program(self, service, make_material):
        reading = make_material("pdf")
        with pytest.raises(ProgramNotFoundError):
            service.mark_complete(USER, reading.id, 77)

    def test_storage_failure_rolls_back(self, db, service, mixed_program, monkeypatch):
        def failing_upsert(*args, **kwargs):
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(service.store, "upsert_summary", failing_upsert)

        with pytest.raises(PersistenceError):
            service.mark_complete(USER, mixed_program["reading"].id, mixed_program["program"].id)
        assert _count(db, UserMaterialDataDB) == 0
        assert _count(db, UserMaterialScoreDB) == 0


class TestBulkComplete:

    def test_per_item_results(self, db, service, mixed_program, make_material):
        stray = make_material("pdf")
        program_id = mixed_program["program"].id
        material_ids = [mixed_program["reading"].id, mixed_program["intro"].id, stray.id]

        result = service.bulk_mark_complete(USER, program_id, material_ids)

        assert result.success is True
        assert result.materials_completed == 2
        assert result.program_progress == 50
        assert [(item.material_id, item.success) for item in result.results] == [
            (mixed_program["reading"].id, True),
            (mixed_program["intro"].id, True),
            (stray.id, False),
        ]
        assert result.results[2].error == f"Material {stray.id} is not part of program {program_id}"
        assert result.results[1].learning_path_progress == 50
        assert [(lp.learning_path_id, lp.name, lp.progress) for lp in result.learning_path_summary] == [
            (mixed_program["path"].id, "Valves", 50),
        ]
        assert _count(db, UserMaterialScoreDB) == 2

    def test_whole_program(self, service, mixed_program):
        ids = [mixed_program[key].id for key in ("quiz", "reading", "intro", "demo")]
        result = service.bulk_mark_complete(USER, mixed_program["program"].id, ids)
        assert result.program_progress == 100
        assert result.learning_path_summary[0].progress == 100

    def test_nothing_completed(self, service, mixed_program, make_material):
        stray = make_material("pdf")
        result = service.bulk_mark_complete(USER, mixed_program["program"].id, [stray.id])
        assert result.success is False
        assert result.materials_completed == 0
        assert result.program_progress == 0
        assert result.learning_path_summary == []

    def test_unknown_program(self, service):
        with pytest.raises(ProgramNotFoundError):
            service.bulk_mark_complete(USER, 404, [1])
