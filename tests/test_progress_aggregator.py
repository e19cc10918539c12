"""
Tests for completion ratios and the progress aggregator
"""
import pytest

from xrtraining.core.exceptions import LearningPathNotFoundError, ProgramNotFoundError
from xrtraining.database.repositories import UserMaterialRepository
from xrtraining.services.progress_aggregator import ProgressAggregator, completion_ratio

USER = "user-42"


@pytest.fixture
def aggregator(db):
    return ProgressAggregator(db)


def _complete(db, user_id, *material_ids):
    store = UserMaterialRepository(db)
    for material_id in material_ids:
        store.upsert_summary(user_id, material_id, 0)
    db.commit()


class TestCompletionRatio:

    @pytest.mark.parametrize("completed,total,expected", [
        (0, 4, 0),
        (2, 4, 50),
        (1, 3, 33),
        (2, 3, 66),
        (4, 4, 100),
        (5, 4, 100),
        (0, 0, 0),
    ])
    def test_ratio(self, completed, total, expected):
        assert completion_ratio(completed, total) == expected


class TestProgramProgress:

    def test_direct_and_learning_path_materials(self, db, aggregator, program_repo, make_material):
        m1, m2, m3, m4 = (make_material("pdf") for _ in range(4))
        program = program_repo.create_program("Onboarding")
        path = program_repo.create_learning_path("Week 1")
        program_repo.add_material(program.id, m1.id)
        program_repo.add_material(program.id, m2.id)
        program_repo.add_learning_path(program.id, path.id)
        program_repo.add_material_to_learning_path(path.id, m3.id, display_order=1)
        program_repo.add_material_to_learning_path(path.id, m4.id, display_order=2)

        _complete(db, USER, m1.id, m3.id)

        assert aggregator.program_progress(USER, program.id) == 50
        assert aggregator.learning_path_progress(USER, path.id) == 50
        assert aggregator.material_progress(USER, m1.id, program_id=program.id) == 50

    def test_material_counted_once(self, db, aggregator, program_repo, make_material):
        shared, other = make_material("pdf"), make_material("pdf")
        program = program_repo.create_program("P")
        path = program_repo.create_learning_path("LP")
        program_repo.add_material(program.id, shared.id)
        program_repo.add_learning_path(program.id, path.id)
        program_repo.add_material_to_learning_path(path.id, shared.id)
        program_repo.add_material_to_learning_path(path.id, other.id)

        assert program_repo.program_material_ids(program.id) == [shared.id, other.id]
        _complete(db, USER, shared.id)
        assert aggregator.program_progress(USER, program.id) == 50

    def test_other_users_do_not_count(self, db, aggregator, program_repo, make_material):
        material = make_material("pdf")
        program = program_repo.create_program("P")
        program_repo.add_material(program.id, material.id)

        _complete(db, "someone-else", material.id)
        assert aggregator.program_progress(USER, program.id) == 0

    def test_empty_program(self, aggregator, program_repo):
        program = program_repo.create_program("Empty")
        assert aggregator.program_progress(USER, program.id) == 0

    def test_unknown_scopes(self, aggregator):
        with pytest.raises(ProgramNotFoundError):
            aggregator.program_progress(USER, 99)
        with pytest.raises(LearningPathNotFoundError):
            aggregator.learning_path_progress(USER, 99)


class TestStandaloneProgress:

    def test_zero_then_hundred(self, db, aggregator, make_material):
        material = make_material("pdf")
        assert aggregator.material_progress(USER, material.id) == 0
        _complete(db, USER, material.id)
        assert aggregator.material_progress(USER, material.id) == 100
