"""
Database package for the XR training core

Provides:
- SQLAlchemy database configuration
- Database session management
- Base model for ORM
- ORM models (MaterialDB, MaterialRelationshipDB, UserMaterialScoreDB, etc.)
- Row <-> variant mappers for materials
- Repository pattern implementations
- Transaction management utilities
"""
from .config import DatabaseConfig, get_db_session, init_database, get_db_config, configure_engine
from .base import Base
from .transaction import transaction

# ORM Models
from .models import (
    JSONBCompatible,
    MaterialDB,
    ChecklistEntryDB,
    WorkflowStepDB,
    VideoTimestampDB,
    QuestionnaireEntryDB,
    ImageAnnotationDB,
    QuizQuestionDB,
    QuizAnswerDB,
    MaterialRelationshipDB,
    TrainingProgramDB,
    LearningPathDB,
    LearningPathMaterialDB,
    UserMaterialDataDB,
    UserMaterialScoreDB,
)

# Repositories
from .repositories import (
    MaterialRepository,
    RelationshipRepository,
    ProgramRepository,
    UserMaterialRepository,
)

__all__ = [
    # Configuration
    "DatabaseConfig",
    "get_db_session",
    "init_database",
    "get_db_config",
    "configure_engine",
    "Base",
    # Transaction management
    "transaction",
    # ORM Models
    "JSONBCompatible",
    "MaterialDB",
    "ChecklistEntryDB",
    "WorkflowStepDB",
    "VideoTimestampDB",
    "QuestionnaireEntryDB",
    "ImageAnnotationDB",
    "QuizQuestionDB",
    "QuizAnswerDB",
    "MaterialRelationshipDB",
    "TrainingProgramDB",
    "LearningPathDB",
    "LearningPathMaterialDB",
    "UserMaterialDataDB",
    "UserMaterialScoreDB",
    # Repositories
    "MaterialRepository",
    "RelationshipRepository",
    "ProgramRepository",
    "UserMaterialRepository",
]
