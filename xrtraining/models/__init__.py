"""
Domain models (Pydantic)

- material: closed union of material variants and their subcomponents
- question_types: storage <-> display mapping for quiz question types
- relationships: composite source references and graph read models
- submission: quiz submission request/result and stored history record
- progress: read-side progress views and quiz reports
"""
from .question_types import (
    QuestionType,
    CHOICE_TYPES,
    parse_question_type,
    normalize_question_type,
    to_display_name,
)
from .material import (
    MaterialType,
    SubcomponentKind,
    RelatedMaterial,
    Subcomponent,
    ChecklistEntry,
    WorkflowStep,
    VideoTimestamp,
    QuestionnaireEntry,
    ImageAnnotation,
    QuizAnswer,
    QuizQuestion,
    MaterialBase,
    ImageMaterial,
    VideoMaterial,
    PDFMaterial,
    UnityMaterial,
    ChatbotMaterial,
    QuestionnaireMaterial,
    ChecklistMaterial,
    WorkflowMaterial,
    MQTTTemplateMaterial,
    QuizMaterial,
    DefaultMaterial,
    AIAssistantMaterial,
    Material,
    MATERIAL_VARIANTS,
    StructuralViolation,
    construct_material,
    parse_material,
    validate_material,
    serialize_material,
    iter_subcomponents,
    payload_fields,
)
from .relationships import (
    SourceRef,
    RelationshipItem,
    IncomingRelationship,
    HierarchyNode,
    MaterialHierarchy,
)
from .submission import (
    SubmittedAnswer,
    QuestionSubmission,
    SubmissionRequest,
    QuestionError,
    SubmissionResult,
    HistoryAnswer,
    HistoryRecord,
    MarkCompleteRequest,
    MarkCompleteResult,
    BulkCompleteRequest,
    MaterialCompleteItem,
    LearningPathProgressSummary,
    BulkCompleteResult,
)
from .progress import (
    MaterialProgress,
    LearningPathProgress,
    ProgramProgress,
    UserProgressOverview,
    SubmissionDetail,
    UserQuizScore,
    QuizMaterialReport,
    ProgramQuizReport,
    LearningPathQuizReport,
    QuizOverviewReport,
)

__all__ = [
    "QuestionType",
    "CHOICE_TYPES",
    "parse_question_type",
    "normalize_question_type",
    "to_display_name",
    "MaterialType",
    "SubcomponentKind",
    "RelatedMaterial",
    "Subcomponent",
    "ChecklistEntry",
    "WorkflowStep",
    "VideoTimestamp",
    "QuestionnaireEntry",
    "ImageAnnotation",
    "QuizAnswer",
    "QuizQuestion",
    "MaterialBase",
    "ImageMaterial",
    "VideoMaterial",
    "PDFMaterial",
    "UnityMaterial",
    "ChatbotMaterial",
    "QuestionnaireMaterial",
    "ChecklistMaterial",
    "WorkflowMaterial",
    "MQTTTemplateMaterial",
    "QuizMaterial",
    "DefaultMaterial",
    "AIAssistantMaterial",
    "Material",
    "MATERIAL_VARIANTS",
    "StructuralViolation",
    "construct_material",
    "parse_material",
    "validate_material",
    "serialize_material",
    "iter_subcomponents",
    "payload_fields",
    "SourceRef",
    "RelationshipItem",
    "IncomingRelationship",
    "HierarchyNode",
    "MaterialHierarchy",
    "SubmittedAnswer",
    "QuestionSubmission",
    "SubmissionRequest",
    "QuestionError",
    "SubmissionResult",
    "HistoryAnswer",
    "HistoryRecord",
    "MaterialProgress",
    "LearningPathProgress",
    "ProgramProgress",
    "UserProgressOverview",
    "SubmissionDetail",
    "UserQuizScore",
    "QuizMaterialReport",
    "ProgramQuizReport",
    "LearningPathQuizReport",
    "QuizOverviewReport",
    "MarkCompleteRequest",
    "MarkCompleteResult",
    "BulkCompleteRequest",
    "MaterialCompleteItem",
    "LearningPathProgressSummary",
    "BulkCompleteResult",
]
