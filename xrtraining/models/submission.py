"""
Quiz submission models

Request and result of one submission, plus the versioned history record
stored for (user, material).
"""
from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

from ..core.constants import HISTORY_SCHEMA_VERSION

# Decimals travel as JSON numbers, not strings
JsonDecimal = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class SubmittedAnswer(BaseModel):
    """
    Answer payload for one question.

    Choice-like questions send answer_ids, scale questions a value and open
    questions a text. Which field is required depends on the question type
    and is checked by the submission processor.
    """
    model_config = ConfigDict(extra="forbid")

    answer_ids: Optional[List[int]] = None
    value: Optional[int] = None
    text: Optional[str] = None


class QuestionSubmission(BaseModel):
    model_config = ConfigDict(extra="forbid")

    question_id: int
    answer: SubmittedAnswer = Field(default_factory=SubmittedAnswer)


class SubmissionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    program_id: Optional[int] = None
    questions: List[QuestionSubmission] = Field(default_factory=list)


class QuestionError(BaseModel):
    question_id: int
    error_code: str
    message: str


class SubmissionResult(BaseModel):
    success: bool
    material_id: int
    program_id: Optional[int] = None
    learning_path_id: Optional[int] = None
    score: JsonDecimal = Decimal("0")
    progress: int = 0
    learning_path_progress: Optional[int] = None
    message: Optional[str] = None
    errors: List[QuestionError] = Field(default_factory=list)


class HistoryAnswer(BaseModel):
    question_id: int
    type: str
    answer_ids: Optional[List[int]] = None
    value: Optional[int] = None
    text: Optional[str] = None
    score_awarded: JsonDecimal = Decimal("0")
    is_correct: bool = False


class HistoryRecord(BaseModel):
    """
    Snapshot of the latest submission, stored as JSON.

    kind="completion" marks a material completed without answers (videos,
    documents, checklists); its answer list is empty.
    """
    version: int = HISTORY_SCHEMA_VERSION
    kind: Literal["submission", "completion"] = "submission"
    submitted_at: datetime
    answers: List[HistoryAnswer] = Field(default_factory=list)
    total_score: JsonDecimal = Decimal("0")


# =============================================================================
# MARK COMPLETE
# =============================================================================

class MarkCompleteRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    program_id: int


class MarkCompleteResult(BaseModel):
    success: bool
    material_id: int
    program_id: int
    learning_path_id: Optional[int] = None
    progress: int = 0
    learning_path_progress: Optional[int] = None
    message: Optional[str] = None


class BulkCompleteRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    material_ids: List[int] = Field(default_factory=list)


class MaterialCompleteItem(BaseModel):
    """Outcome for one material of a bulk completion"""
    material_id: int
    success: bool
    error: Optional[str] = None
    learning_path_id: Optional[int] = None
    learning_path_progress: Optional[int] = None


class LearningPathProgressSummary(BaseModel):
    learning_path_id: int
    name: Optional[str] = None
    progress: int = 0


class BulkCompleteResult(BaseModel):
    success: bool
    program_id: int
    program_progress: int = 0
    materials_completed: int = 0
    results: List[MaterialCompleteItem] = Field(default_factory=list)
    learning_path_summary: List[LearningPathProgressSummary] = Field(default_factory=list)
