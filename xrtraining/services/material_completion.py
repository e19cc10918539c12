"""
Mark materials complete without a quiz submission

Videos, documents, checklists and the other non-quiz materials reach a
program's progress through this path. Completing a material:

- requires the material to belong to the program, directly or through one of
  the program's learning paths
- upserts the user's summary row, keeping the existing score (0 otherwise)
- writes a completion snapshot unless a submission snapshot already exists
- recomputes program and learning-path progress

Single and bulk completions each run in one transaction.

Usage:
    service = MaterialCompletionService(db)
    result = service.mark_complete(user_id, material_id, program_id)
    bulk = service.bulk_mark_complete(user_id, program_id, [3, 4, 5])
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.constants import utc_now
from ..core.exceptions import MaterialNotFoundError, MaterialNotInProgramError, PersistenceError
from ..core.metrics import materials_completed_total
from ..database.models import UserMaterialScoreDB
from ..database.repositories import MaterialRepository, ProgramRepository, UserMaterialRepository
from ..database.transaction import transaction
from ..models.submission import (
    BulkCompleteResult,
    HistoryRecord,
    LearningPathProgressSummary,
    MarkCompleteResult,
    MaterialCompleteItem,
)
from .progress_aggregator import ProgressAggregator

logger = logging.getLogger(__name__)


class MaterialCompletionService:
    """Marks materials of a program as completed for one user"""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.materials = MaterialRepository(db_session)
        self.programs = ProgramRepository(db_session)
        self.store = UserMaterialRepository(db_session)
        self.aggregator = ProgressAggregator(db_session)

    def _complete(
        self, user_id: str, material_id: int, program_id: int, learning_path_id: Optional[int]
    ) -> UserMaterialScoreDB:
        """Upsert history and summary for one material; caller owns the transaction"""
        history, summary = self.store.lock_pair(user_id, material_id)
        score = summary.score if summary is not None else Decimal("0")

        if history is not None:
            data = history.data
        else:
            data = HistoryRecord(
                kind="completion", submitted_at=utc_now(), total_score=score
            ).model_dump(mode="json")
        self.store.upsert_history(
            user_id, material_id, data,
            program_id=program_id, learning_path_id=learning_path_id, existing=history,
        )
        return self.store.upsert_summary(
            user_id, material_id, score,
            program_id=program_id, learning_path_id=learning_path_id, existing=summary,
        )

    def mark_complete(self, user_id: str, material_id: int, program_id: int) -> MarkCompleteResult:
        """
        Mark one material of a program as completed.

        Raises:
            MaterialNotFoundError / ProgramNotFoundError: 404
            MaterialNotInProgramError: 400
            PersistenceError: 500, nothing written
        """
        if not self.materials.exists(material_id):
            raise MaterialNotFoundError(material_id)
        self.programs.require_program(program_id)
        if not self.programs.contains_material(program_id, material_id):
            raise MaterialNotInProgramError(material_id, program_id)
        learning_path_id = self.programs.resolve_learning_path(program_id, material_id)

        learning_path_progress: Optional[int] = None
        try:
            with transaction(self.db, f"Mark material {material_id} complete for user {user_id}"):
                summary = self._complete(user_id, material_id, program_id, learning_path_id)
                self.db.flush()
                progress = self.aggregator.program_progress(user_id, program_id)
                if learning_path_id is not None:
                    learning_path_progress = self.aggregator.learning_path_progress(user_id, learning_path_id)
                summary.progress = progress
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to mark material complete: {e}",
                extra={"user_id": user_id, "material_id": material_id, "program_id": program_id},
            )
            raise PersistenceError("mark material complete", str(e)) from e

        materials_completed_total.labels(mode="single").inc()
        logger.info(
            "Material marked complete",
            extra={
                "user_id": user_id,
                "material_id": material_id,
                "program_id": program_id,
                "progress": progress,
                "learning_path_id": learning_path_id,
                "learning_path_progress": learning_path_progress,
            },
        )
        return MarkCompleteResult(
            success=True,
            material_id=material_id,
            program_id=program_id,
            learning_path_id=learning_path_id,
            progress=progress,
            learning_path_progress=learning_path_progress,
        )

    def bulk_mark_complete(self, user_id: str, program_id: int, material_ids: List[int]) -> BulkCompleteResult:
        """
        Mark several materials of one program as completed.

        Materials outside the program are reported per item and skipped; an
        unknown program raises ProgramNotFoundError.
        """
        program = self.programs.require_program(program_id)
        members = set(self.programs.program_material_ids(program_id))
        learning_path_of: Dict[int, Optional[int]] = {}
        results: List[MaterialCompleteItem] = []
        summaries: List[UserMaterialScoreDB] = []

        try:
            with transaction(self.db, f"Bulk complete {len(material_ids)} material(s) in program {program_id}"):
                for material_id in material_ids:
                    if material_id not in members:
                        results.append(MaterialCompleteItem(
                            material_id=material_id,
                            success=False,
                            error=f"Material {material_id} is not part of program {program_id}",
                        ))
                        continue
                    if material_id not in learning_path_of:
                        learning_path_of[material_id] = self.programs.resolve_learning_path(program_id, material_id)
                    learning_path_id = learning_path_of[material_id]
                    summaries.append(self._complete(user_id, material_id, program_id, learning_path_id))
                    results.append(MaterialCompleteItem(
                        material_id=material_id, success=True, learning_path_id=learning_path_id,
                    ))

                self.db.flush()
                program_progress = self.aggregator.program_progress(user_id, program_id)
                for summary in summaries:
                    summary.progress = program_progress

                learning_path_summary: List[LearningPathProgressSummary] = []
                for learning_path in program.learning_paths:
                    if learning_path.id not in learning_path_of.values():
                        continue
                    progress = self.aggregator.learning_path_progress(user_id, learning_path.id)
                    learning_path_summary.append(LearningPathProgressSummary(
                        learning_path_id=learning_path.id, name=learning_path.name, progress=progress,
                    ))
                    for item in results:
                        if item.learning_path_id == learning_path.id:
                            item.learning_path_progress = progress
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to bulk mark materials complete: {e}",
                extra={"user_id": user_id, "program_id": program_id},
            )
            raise PersistenceError("bulk mark materials complete", str(e)) from e

        completed = sum(1 for item in results if item.success)
        materials_completed_total.labels(mode="bulk").inc(completed)
        logger.info(
            "Materials bulk completed",
            extra={
                "user_id": user_id,
                "program_id": program_id,
                "completed": completed,
                "rejected": len(results) - completed,
                "program_progress": program_progress,
            },
        )
        return BulkCompleteResult(
            success=completed > 0,
            program_id=program_id,
            program_progress=program_progress,
            materials_completed=completed,
            results=results,
            learning_path_summary=learning_path_summary,
        )
