"""
SQLAlchemy ORM models for persistence

Models:
- MaterialDB: every material type in one table, discriminated by `type`
- Subcomponent tables: checklist entries, workflow steps, video timestamps,
  questionnaire entries, image annotations, quiz questions and answers
- MaterialRelationshipDB: generic links from a material or subcomponent to a material
- TrainingProgramDB / LearningPathDB: grouping entities (membership only)
- UserMaterialDataDB: detailed history of the latest submission (JSON)
- UserMaterialScoreDB: hot summary row read by progress queries
"""
from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship, validates
from sqlalchemy.types import TypeDecorator

from ..core.constants import AI_ASSISTANT_STATUSES
from ..core.exceptions import MaterialTypeChangeError
from .base import Base, BaseModel


class JSONBCompatible(TypeDecorator):
    """
    A JSON type that uses JSONB on PostgreSQL and JSON on other databases (e.g., SQLite).
    This allows tests to run with SQLite while production uses PostgreSQL with JSONB.
    """
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())


# =============================================================================
# MATERIALS
# =============================================================================

class MaterialDB(Base, BaseModel):
    """
    Database model for training materials

    Single table for all material types. Only the payload columns of the
    row's `type` are populated; the mapper clears the others on write.
    The type is set once at creation and cannot change afterwards.
    """

    __tablename__ = "materials"

    name = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    type = Column(String(32), nullable=False)

    # Shared by image, video, pdf, unity, default
    asset_id = Column(Integer, nullable=True)

    # image
    image_path = Column(String(500), nullable=True)
    image_width = Column(Integer, nullable=True)
    image_height = Column(Integer, nullable=True)
    image_format = Column(String(20), nullable=True)

    # video
    video_path = Column(String(500), nullable=True)
    video_duration = Column(Integer, nullable=True)  # seconds
    video_resolution = Column(String(20), nullable=True)
    start_time = Column(String(20), nullable=True)

    # pdf
    pdf_path = Column(String(500), nullable=True)
    pdf_page_count = Column(Integer, nullable=True)
    pdf_file_size = Column(BigInteger, nullable=True)

    # unity
    unity_version = Column(String(50), nullable=True)
    unity_build_target = Column(String(50), nullable=True)
    unity_scene_name = Column(String(255), nullable=True)
    unity_json = Column(Text, nullable=True)

    # chatbot
    chatbot_config = Column(Text, nullable=True)
    chatbot_model = Column(String(100), nullable=True)
    chatbot_prompt = Column(Text, nullable=True)

    # questionnaire
    questionnaire_config = Column(Text, nullable=True)
    questionnaire_type = Column(String(50), nullable=True)
    passing_score = Column(Numeric(10, 2), nullable=True)

    # mqtt_template
    message_type = Column(String(50), nullable=True)
    message_text = Column(Text, nullable=True)

    # quiz
    evaluation_mode = Column(Boolean, nullable=True)
    min_score = Column(Integer, nullable=True)

    # ai_assistant
    service_job_id = Column(String(100), nullable=True)
    ai_assistant_status = Column(String(20), nullable=True)
    asset_ids = Column(JSONBCompatible, nullable=True)  # [12, 15, ...]

    # Subcomponents (replaced as a set on update)
    checklist_entries = relationship(
        "ChecklistEntryDB", back_populates="material", cascade="all, delete-orphan",
        order_by="ChecklistEntryDB.position",
    )
    workflow_steps = relationship(
        "WorkflowStepDB", back_populates="material", cascade="all, delete-orphan",
        order_by="WorkflowStepDB.position",
    )
    video_timestamps = relationship(
        "VideoTimestampDB", back_populates="material", cascade="all, delete-orphan",
        order_by="VideoTimestampDB.position",
    )
    questionnaire_entries = relationship(
        "QuestionnaireEntryDB", back_populates="material", cascade="all, delete-orphan",
        order_by="QuestionnaireEntryDB.position",
    )
    image_annotations = relationship(
        "ImageAnnotationDB", back_populates="material", cascade="all, delete-orphan",
        order_by="ImageAnnotationDB.position",
    )
    quiz_questions = relationship(
        "QuizQuestionDB", back_populates="material", cascade="all, delete-orphan",
        order_by="QuizQuestionDB.position",
    )

    __table_args__ = (
        # Query: list materials of one type (reports, authoring lists)
        Index('idx_material_type', 'type'),
        CheckConstraint(
            "type IN ('image', 'video', 'pdf', 'unity', 'chatbot', 'questionnaire', "
            "'checklist', 'workflow', 'mqtt_template', 'quiz', 'default', 'ai_assistant')",
            name='ck_material_type_valid'
        ),
        CheckConstraint(
            "ai_assistant_status IS NULL OR ai_assistant_status IN ("
            + ", ".join(f"'{status}'" for status in AI_ASSISTANT_STATUSES) + ")",
            name='ck_material_ai_status_valid'
        ),
    )

    @validates("type")
    def _validate_type_immutable(self, key, value):
        if self.type is not None and value != self.type:
            raise MaterialTypeChangeError(self.id, self.type, value)
        return value


class ChecklistEntryDB(Base, BaseModel):
    __tablename__ = "checklist_entries"

    material_id = Column(Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    text = Column(Text, nullable=False, default="")
    description = Column(Text, nullable=True)

    material = relationship("MaterialDB", back_populates="checklist_entries")


class WorkflowStepDB(Base, BaseModel):
    __tablename__ = "workflow_steps"

    material_id = Column(Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    title = Column(String(255), nullable=False, default="")
    content = Column(Text, nullable=True)

    material = relationship("MaterialDB", back_populates="workflow_steps")


class VideoTimestampDB(Base, BaseModel):
    __tablename__ = "video_timestamps"

    material_id = Column(Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    title = Column(String(255), nullable=False, default="")
    start_time = Column(String(20), nullable=False, default="")  # "00:01:30"
    end_time = Column(String(20), nullable=False, default="")
    description = Column(Text, nullable=True)
    annotation_type = Column(String(50), nullable=True)

    material = relationship("MaterialDB", back_populates="video_timestamps")


class QuestionnaireEntryDB(Base, BaseModel):
    __tablename__ = "questionnaire_entries"

    material_id = Column(Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    text = Column(Text, nullable=False, default="")
    description = Column(Text, nullable=True)

    material = relationship("MaterialDB", back_populates="questionnaire_entries")


class ImageAnnotationDB(Base, BaseModel):
    __tablename__ = "image_annotations"

    material_id = Column(Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    client_id = Column(String(100), nullable=True)  # id assigned by the authoring client
    text = Column(Text, nullable=True)
    font_size = Column(Integer, nullable=True)
    x = Column(Float, nullable=False, default=0.0)
    y = Column(Float, nullable=False, default=0.0)

    material = relationship("MaterialDB", back_populates="image_annotations")


class QuizQuestionDB(Base, BaseModel):
    """
    Pregunta de un quiz

    question_type holds the storage form (text, boolean, choice, checkboxes,
    scale); display names are applied only on the wire.
    """

    __tablename__ = "quiz_questions"

    material_id = Column(Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    question_number = Column(Integer, nullable=False, default=0)
    question_type = Column(String(50), nullable=False, default="text")
    text = Column(Text, nullable=False, default="")
    description = Column(Text, nullable=True)
    score = Column(Numeric(10, 2), nullable=True)
    help_text = Column(Text, nullable=True)
    allow_multiple = Column(Boolean, nullable=False, default=False)
    scale_config = Column(Text, nullable=True)  # JSON text

    material = relationship("MaterialDB", back_populates="quiz_questions")
    answers = relationship(
        "QuizAnswerDB", back_populates="question", cascade="all, delete-orphan",
        order_by="QuizAnswerDB.position",
    )

    __table_args__ = (
        Index('idx_quiz_question_material_position', 'material_id', 'position'),
    )


class QuizAnswerDB(Base, BaseModel):
    __tablename__ = "quiz_answers"

    question_id = Column(Integer, ForeignKey("quiz_questions.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    text = Column(Text, nullable=False, default="")
    correct_answer = Column(Boolean, nullable=False, default=False)
    display_order = Column(Integer, nullable=True)
    extra = Column(Text, nullable=True)

    question = relationship("QuizQuestionDB", back_populates="answers")


# Kind tag -> subcomponent table; resolved only when reading a relationship source
SUBCOMPONENT_MODELS = {
    "checklist_entry": ChecklistEntryDB,
    "workflow_step": WorkflowStepDB,
    "video_timestamp": VideoTimestampDB,
    "questionnaire_entry": QuestionnaireEntryDB,
    "image_annotation": ImageAnnotationDB,
    "quiz_question": QuizQuestionDB,
    "quiz_answer": QuizAnswerDB,
}


# =============================================================================
# RELATIONSHIP GRAPH
# =============================================================================

class MaterialRelationshipDB(Base, BaseModel):
    """
    Link from a source reference to a target material

    The source is the owning material plus, for subcomponent links, a kind
    tag and the subcomponent id. Rows are ordered per source by
    display_order ascending (nulls last) and then by id (insertion order).
    """

    __tablename__ = "material_relationships"

    source_material_id = Column(Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False)
    source_kind = Column(String(32), nullable=True)
    source_id = Column(Integer, nullable=True)
    target_material_id = Column(Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False)
    relationship_type = Column(String(64), nullable=True)
    display_order = Column(Integer, nullable=True)

    source_material = relationship("MaterialDB", foreign_keys=[source_material_id])
    target_material = relationship("MaterialDB", foreign_keys=[target_material_id])

    __table_args__ = (
        # Query: outgoing links of a source reference, in display order
        Index('idx_relationship_source', 'source_material_id', 'source_kind', 'source_id', 'display_order'),
        # Query: parents of a material
        Index('idx_relationship_target', 'target_material_id'),
        CheckConstraint(
            "(source_kind IS NULL AND source_id IS NULL) OR "
            "(source_kind IS NOT NULL AND source_id IS NOT NULL)",
            name='ck_relationship_source_ref'
        ),
    )


# =============================================================================
# PROGRAMS AND LEARNING PATHS
# =============================================================================

program_materials = Table(
    "program_materials",
    Base.metadata,
    Column("program_id", Integer, ForeignKey("training_programs.id", ondelete="CASCADE"), primary_key=True),
    Column("material_id", Integer, ForeignKey("materials.id", ondelete="CASCADE"), primary_key=True),
)

program_learning_paths = Table(
    "program_learning_paths",
    Base.metadata,
    Column("program_id", Integer, ForeignKey("training_programs.id", ondelete="CASCADE"), primary_key=True),
    Column("learning_path_id", Integer, ForeignKey("learning_paths.id", ondelete="CASCADE"), primary_key=True),
)


class TrainingProgramDB(Base, BaseModel):
    __tablename__ = "training_programs"

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    objectives = Column(Text, nullable=True)
    requirements = Column(Text, nullable=True)

    materials = relationship("MaterialDB", secondary=program_materials, order_by="MaterialDB.id")
    learning_paths = relationship(
        "LearningPathDB", secondary=program_learning_paths, order_by="LearningPathDB.id",
        back_populates="programs",
    )


class LearningPathDB(Base, BaseModel):
    __tablename__ = "learning_paths"

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    material_links = relationship(
        "LearningPathMaterialDB", back_populates="learning_path", cascade="all, delete-orphan",
        order_by="LearningPathMaterialDB.display_order",
    )
    programs = relationship(
        "TrainingProgramDB", secondary=program_learning_paths, back_populates="learning_paths",
    )


class LearningPathMaterialDB(Base, BaseModel):
    __tablename__ = "learning_path_materials"

    learning_path_id = Column(Integer, ForeignKey("learning_paths.id", ondelete="CASCADE"), nullable=False)
    material_id = Column(Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False)
    display_order = Column(Integer, nullable=False, default=0)

    learning_path = relationship("LearningPathDB", back_populates="material_links")
    material = relationship("MaterialDB")

    __table_args__ = (
        UniqueConstraint('learning_path_id', 'material_id', name='uq_learning_path_material'),
        Index('idx_learning_path_material_order', 'learning_path_id', 'display_order'),
    )


# =============================================================================
# SUBMISSION HISTORY AND SUMMARY
# =============================================================================

class UserMaterialDataDB(Base, BaseModel):
    """
    Detailed history of the latest submission for (user, material)

    `data` holds the versioned snapshot:
    {
      "version": 1,
      "submitted_at": "...",
      "answers": [{"question_id", "type", "answer_ids", "value", "text",
                   "score_awarded", "is_correct"}],
      "total_score": 20.0
    }
    """

    __tablename__ = "user_material_data"

    user_id = Column(String(100), nullable=False)
    material_id = Column(Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False)
    program_id = Column(Integer, ForeignKey("training_programs.id", ondelete="SET NULL"), nullable=True)
    learning_path_id = Column(Integer, ForeignKey("learning_paths.id", ondelete="SET NULL"), nullable=True)
    data = Column(JSONBCompatible, nullable=False, default=dict)

    __table_args__ = (
        UniqueConstraint('user_id', 'material_id', name='uq_user_material_data'),
        # Query: submission history of a material (reports)
        Index('idx_user_material_data_material', 'material_id'),
    )


class UserMaterialScoreDB(Base, BaseModel):
    """
    Summary row read by every progress query

    Existence of the row means the user completed the material. Progress is
    derived server-side and stored as of the last submission.
    """

    __tablename__ = "user_material_scores"

    user_id = Column(String(100), nullable=False)
    material_id = Column(Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False)
    program_id = Column(Integer, ForeignKey("training_programs.id", ondelete="SET NULL"), nullable=True)
    learning_path_id = Column(Integer, ForeignKey("learning_paths.id", ondelete="SET NULL"), nullable=True)
    score = Column(Numeric(10, 2), nullable=False, default=0)
    progress = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint('user_id', 'material_id', name='uq_user_material_score'),
        # Query: completed materials of a user inside a program scope
        Index('idx_user_material_score_user', 'user_id', 'material_id'),
        # Query: per-material quiz report
        Index('idx_user_material_score_material', 'material_id'),
        CheckConstraint("progress >= 0 AND progress <= 100", name='ck_user_material_score_progress'),
    )
