"""
Progress aggregator

Completion percentages are derived from summary rows on every call; no
counters are stored. A material counts as completed for a user as soon as a
summary row exists for (user, material).
"""
import logging
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ..core.constants import PROGRESS_MAX, PROGRESS_MIN
from ..database.repositories import ProgramRepository, UserMaterialRepository

logger = logging.getLogger(__name__)


def completion_ratio(completed: int, total: int) -> int:
    """floor(100 * completed / total), capped at 100; 0 for an empty scope"""
    if total <= 0:
        return PROGRESS_MIN
    return min(PROGRESS_MAX, (PROGRESS_MAX * completed) // total)


class ProgressAggregator:
    """Computes 0-100 progress for material, program and learning-path scopes"""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.scores = UserMaterialRepository(db_session)
        self.programs = ProgramRepository(db_session)

    def _scope_progress(self, user_id: str, material_ids: Iterable[int]) -> int:
        ids = list(material_ids)
        completed = self.scores.completed_material_ids(user_id, ids)
        return completion_ratio(len(completed), len(ids))

    def material_progress(self, user_id: str, material_id: int, program_id: Optional[int] = None) -> int:
        """
        Standalone material: 100 once submitted, else 0.
        Inside a program: the program's completion ratio.
        """
        if program_id is None:
            return PROGRESS_MAX if self.scores.has_summary(user_id, material_id) else PROGRESS_MIN
        return self.program_progress(user_id, program_id)

    def program_progress(self, user_id: str, program_id: int) -> int:
        """Ratio over direct plus learning-path materials, deduplicated"""
        material_ids = self.programs.program_material_ids(program_id)
        progress = self._scope_progress(user_id, material_ids)
        logger.debug(
            "Program progress computed",
            extra={"user_id": user_id, "program_id": program_id, "materials": len(material_ids), "progress": progress},
        )
        return progress

    def learning_path_progress(self, user_id: str, learning_path_id: int) -> int:
        self.programs.require_learning_path(learning_path_id)
        return self._scope_progress(user_id, self.programs.learning_path_material_ids(learning_path_id))
