"""
Progress reports

Read-only views built from summary rows (user_material_scores) and, for the
submission detail, from the stored history snapshot.
"""
import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.constants import PROGRESS_MAX, PROGRESS_MIN
from ..core.exceptions import MaterialNotFoundError, SubmissionNotFoundError
from ..database.models import UserMaterialScoreDB
from ..database.repositories import MaterialRepository, ProgramRepository, UserMaterialRepository
from ..models.material import MaterialType
from ..models.progress import (
    LearningPathProgress,
    LearningPathQuizReport,
    MaterialProgress,
    ProgramProgress,
    ProgramQuizReport,
    QuizMaterialReport,
    QuizOverviewReport,
    SubmissionDetail,
    UserProgressOverview,
    UserQuizScore,
)
from ..models.submission import HistoryRecord
from .progress_aggregator import ProgressAggregator, completion_ratio

logger = logging.getLogger(__name__)


def average_score(scores: Iterable[Decimal]) -> Optional[Decimal]:
    values = [Decimal(score) for score in scores]
    if not values:
        return None
    return (sum(values, Decimal("0")) / len(values)).quantize(Decimal("0.01"))


class ProgressReportService:
    """Per-user progress views and per-material / per-program quiz reports"""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.materials = MaterialRepository(db_session)
        self.programs = ProgramRepository(db_session)
        self.store = UserMaterialRepository(db_session)
        self.aggregator = ProgressAggregator(db_session)

    # ---- per-user ------------------------------------------------------------

    def _material_rows(self, user_id: str, material_ids: List[int]) -> List[MaterialProgress]:
        summaries: Dict[int, UserMaterialScoreDB] = {
            row.material_id: row for row in self.store.list_summaries(user_id=user_id, material_ids=material_ids)
        }
        names = self.materials.get_summaries(material_ids)
        rows = []
        for material_id in material_ids:
            summary = summaries.get(material_id)
            info = names.get(material_id)
            rows.append(MaterialProgress(
                material_id=material_id,
                name=info.name if info else None,
                type=info.type if info else None,
                completed=summary is not None,
                score=summary.score if summary is not None else None,
                progress=PROGRESS_MAX if summary is not None else PROGRESS_MIN,
                updated_at=summary.updated_at if summary is not None else None,
            ))
        return rows

    def learning_path_progress(self, user_id: str, learning_path_id: int) -> LearningPathProgress:
        learning_path = self.programs.require_learning_path(learning_path_id)
        material_ids = self.programs.learning_path_material_ids(learning_path_id)
        materials = self._material_rows(user_id, material_ids)
        completed = sum(1 for material in materials if material.completed)
        return LearningPathProgress(
            learning_path_id=learning_path.id,
            name=learning_path.name,
            progress=completion_ratio(completed, len(material_ids)),
            total_materials=len(material_ids),
            completed_materials=completed,
            materials=materials,
        )

    def program_progress(self, user_id: str, program_id: int) -> ProgramProgress:
        program = self.programs.require_program(program_id)
        material_ids = self.programs.program_material_ids(program_id)
        materials = self._material_rows(user_id, material_ids)
        completed = sum(1 for material in materials if material.completed)
        return ProgramProgress(
            program_id=program.id,
            name=program.name,
            progress=completion_ratio(completed, len(material_ids)),
            total_materials=len(material_ids),
            completed_materials=completed,
            materials=materials,
            learning_paths=[
                self.learning_path_progress(user_id, learning_path.id)
                for learning_path in program.learning_paths
            ],
        )

    def user_overview(self, user_id: str) -> UserProgressOverview:
        """
        Programs the user has submissions in, standalone materials, and an
        overall figure (100 once anything was submitted).
        """
        rows = self.store.list_summaries(user_id=user_id)
        program_ids = sorted({row.program_id for row in rows if row.program_id is not None})
        standalone_ids = [row.material_id for row in rows if row.program_id is None]

        overview = UserProgressOverview(
            user_id=user_id,
            overall_progress=PROGRESS_MAX if rows else PROGRESS_MIN,
            programs=[self.program_progress(user_id, program_id) for program_id in program_ids],
            standalone_materials=self._material_rows(user_id, standalone_ids),
        )
        logger.debug(
            "User progress overview built",
            extra={"user_id": user_id, "programs": len(program_ids), "standalone": len(standalone_ids)},
        )
        return overview

    def submission_detail(self, user_id: str, material_id: int) -> SubmissionDetail:
        """Stored history snapshot plus summary score for (user, material)"""
        material = self.materials.get_row(material_id)
        if material is None:
            raise MaterialNotFoundError(material_id)
        history = self.store.get_history(user_id, material_id)
        if history is None:
            raise SubmissionNotFoundError(user_id, material_id)
        summary = self.store.get_summary(user_id, material_id)
        return SubmissionDetail(
            user_id=user_id,
            material_id=material_id,
            material_name=material.name,
            program_id=history.program_id,
            learning_path_id=history.learning_path_id,
            score=summary.score if summary is not None else None,
            progress=(
                self.aggregator.material_progress(user_id, material_id, summary.program_id)
                if summary is not None else None
            ),
            history=HistoryRecord.model_validate(history.data),
            updated_at=history.updated_at,
        )

    # ---- quiz reports ----------------------------------------------------------

    def _quiz_report(self, material_id: int, name: Optional[str]) -> QuizMaterialReport:
        rows = self.store.list_summaries(material_ids=[material_id])
        return QuizMaterialReport(
            material_id=material_id,
            name=name,
            total_attempts=len(rows),
            distinct_users=len({row.user_id for row in rows}),
            average_score=average_score(row.score for row in rows),
            users=[
                UserQuizScore(
                    user_id=row.user_id,
                    score=row.score,
                    progress=self.aggregator.material_progress(row.user_id, material_id, row.program_id),
                    program_id=row.program_id,
                    updated_at=row.updated_at,
                )
                for row in rows
            ],
        )

    def _quiz_reports(self, material_ids: Optional[List[int]] = None) -> List[QuizMaterialReport]:
        quizzes = self.materials.list_by_type(MaterialType.QUIZ, material_ids)
        return [self._quiz_report(quiz.id, quiz.name) for quiz in quizzes]

    def material_quiz_report(self, material_id: int) -> QuizMaterialReport:
        quiz = self.materials.get_quiz(material_id)
        return self._quiz_report(material_id, quiz.name)

    def program_quiz_report(self, program_id: int) -> ProgramQuizReport:
        program = self.programs.require_program(program_id)
        reports = self._quiz_reports(self.programs.program_material_ids(program_id))
        distinct_users, average = _totals(reports)
        return ProgramQuizReport(
            program_id=program.id,
            name=program.name,
            total_quizzes=len(reports),
            distinct_users=distinct_users,
            average_score=average,
            quizzes=reports,
        )

    def learning_path_quiz_report(self, learning_path_id: int) -> LearningPathQuizReport:
        learning_path = self.programs.require_learning_path(learning_path_id)
        reports = self._quiz_reports(self.programs.learning_path_material_ids(learning_path_id))
        distinct_users, average = _totals(reports)
        return LearningPathQuizReport(
            learning_path_id=learning_path.id,
            name=learning_path.name,
            total_quizzes=len(reports),
            distinct_users=distinct_users,
            average_score=average,
            quizzes=reports,
        )

    def quiz_report(self) -> QuizOverviewReport:
        """Every quiz material with its attempts"""
        reports = self._quiz_reports()
        distinct_users, average = _totals(reports)
        logger.debug("Quiz overview built", extra={"quizzes": len(reports), "users": distinct_users})
        return QuizOverviewReport(
            total_quizzes=len(reports),
            total_attempts=sum(report.total_attempts for report in reports),
            distinct_users=distinct_users,
            average_score=average,
            quizzes=reports,
        )


def _totals(reports: List[QuizMaterialReport]) -> Tuple[int, Optional[Decimal]]:
    """(distinct users, average score) across several quiz reports"""
    users = {user.user_id for report in reports for user in report.users}
    scores = [user.score for report in reports for user in report.users]
    return len(users), average_score(scores)
