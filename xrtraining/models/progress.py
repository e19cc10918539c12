"""
Read-side progress and quiz report models
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from .material import MaterialType
from .submission import HistoryRecord, JsonDecimal


class MaterialProgress(BaseModel):
    material_id: int
    name: Optional[str] = None
    type: Optional[MaterialType] = None
    completed: bool = False
    score: Optional[JsonDecimal] = None
    progress: int = 0
    updated_at: Optional[datetime] = None


class LearningPathProgress(BaseModel):
    learning_path_id: int
    name: Optional[str] = None
    progress: int = 0
    total_materials: int = 0
    completed_materials: int = 0
    materials: List[MaterialProgress] = Field(default_factory=list)


class ProgramProgress(BaseModel):
    program_id: int
    name: Optional[str] = None
    progress: int = 0
    total_materials: int = 0
    completed_materials: int = 0
    materials: List[MaterialProgress] = Field(default_factory=list)
    learning_paths: List[LearningPathProgress] = Field(default_factory=list)


class UserProgressOverview(BaseModel):
    user_id: str
    overall_progress: int = 0
    programs: List[ProgramProgress] = Field(default_factory=list)
    standalone_materials: List[MaterialProgress] = Field(default_factory=list)


class SubmissionDetail(BaseModel):
    user_id: str
    material_id: int
    material_name: Optional[str] = None
    program_id: Optional[int] = None
    learning_path_id: Optional[int] = None
    score: Optional[JsonDecimal] = None
    progress: Optional[int] = None
    history: HistoryRecord
    updated_at: Optional[datetime] = None


class UserQuizScore(BaseModel):
    """One user's summary row; progress is recomputed on read, never the stored value"""
    user_id: str
    score: JsonDecimal = Decimal("0")
    progress: int = 0
    program_id: Optional[int] = None
    updated_at: Optional[datetime] = None


class QuizMaterialReport(BaseModel):
    material_id: int
    name: Optional[str] = None
    total_attempts: int = 0
    distinct_users: int = 0
    average_score: Optional[JsonDecimal] = None
    users: List[UserQuizScore] = Field(default_factory=list)


class ProgramQuizReport(BaseModel):
    program_id: int
    name: Optional[str] = None
    total_quizzes: int = 0
    distinct_users: int = 0
    average_score: Optional[JsonDecimal] = None
    quizzes: List[QuizMaterialReport] = Field(default_factory=list)


class LearningPathQuizReport(BaseModel):
    learning_path_id: int
    name: Optional[str] = None
    total_quizzes: int = 0
    distinct_users: int = 0
    average_score: Optional[JsonDecimal] = None
    quizzes: List[QuizMaterialReport] = Field(default_factory=list)


class QuizOverviewReport(BaseModel):
    """Every quiz material of the tenant"""
    total_quizzes: int = 0
    total_attempts: int = 0
    distinct_users: int = 0
    average_score: Optional[JsonDecimal] = None
    quizzes: List[QuizMaterialReport] = Field(default_factory=list)
