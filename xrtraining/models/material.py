"""
Material variant model

A Material is a closed discriminated union: shared identity/audit fields plus
exactly one type-specific payload, selected by the `type` discriminant.
Variants forbid unknown fields, so a checklist can never carry a video path
and a quiz can never carry checklist entries.

Operations:
- construct_material(type): zero-valued variant with the defaults of that type
- parse_material(data): wire dict -> variant (discriminant picks the shape)
- validate_material(variant): structural violations, never raises
- serialize_material(variant): wire dict with question display names
"""
import json
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Dict, Iterator, List, Literal, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from .question_types import QuestionType, normalize_question_type, parse_question_type, to_display_name


class MaterialType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    PDF = "pdf"
    UNITY = "unity"
    CHATBOT = "chatbot"
    QUESTIONNAIRE = "questionnaire"
    CHECKLIST = "checklist"
    WORKFLOW = "workflow"
    MQTT_TEMPLATE = "mqtt_template"
    QUIZ = "quiz"
    DEFAULT = "default"
    AI_ASSISTANT = "ai_assistant"


class SubcomponentKind(str, Enum):
    CHECKLIST_ENTRY = "checklist_entry"
    WORKFLOW_STEP = "workflow_step"
    VIDEO_TIMESTAMP = "video_timestamp"
    QUIZ_QUESTION = "quiz_question"
    QUIZ_ANSWER = "quiz_answer"
    QUESTIONNAIRE_ENTRY = "questionnaire_entry"
    IMAGE_ANNOTATION = "image_annotation"


# =============================================================================
# RELATED MATERIALS
# =============================================================================

class RelatedMaterial(BaseModel):
    """
    Link from a material or subcomponent to a target material.

    On input only `id` (target material) and the optional relationship
    type/order are read; name and type are filled in on read.
    """
    model_config = ConfigDict(extra="forbid")

    id: int
    name: Optional[str] = None
    type: Optional[MaterialType] = None
    relationship_type: Optional[str] = None
    display_order: Optional[int] = None
    relationship_id: Optional[int] = None


# =============================================================================
# SUBCOMPONENTS
# =============================================================================

class Subcomponent(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: Optional[int] = None
    related: List[RelatedMaterial] = Field(default_factory=list)


class ChecklistEntry(Subcomponent):
    text: str = ""
    description: Optional[str] = None


class WorkflowStep(Subcomponent):
    title: str = ""
    content: Optional[str] = None


class VideoTimestamp(Subcomponent):
    title: str = ""
    start_time: str = ""
    end_time: str = ""
    description: Optional[str] = None
    annotation_type: Optional[str] = None


class QuestionnaireEntry(Subcomponent):
    text: str = ""
    description: Optional[str] = None


class ImageAnnotation(Subcomponent):
    client_id: Optional[str] = None
    text: Optional[str] = None
    font_size: Optional[int] = None
    x: float = 0.0
    y: float = 0.0


class QuizAnswer(Subcomponent):
    text: str = ""
    correct_answer: bool = False
    display_order: Optional[int] = None
    extra: Optional[str] = None


class QuizQuestion(Subcomponent):
    question_number: int = 0
    question_type: str = QuestionType.TEXT.value
    text: str = ""
    description: Optional[str] = None
    score: Optional[Decimal] = None
    help_text: Optional[str] = None
    allow_multiple: bool = False
    scale_config: Optional[str] = None
    answers: List[QuizAnswer] = Field(default_factory=list)

    @field_validator("question_type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> str:
        if value is None:
            return QuestionType.TEXT.value
        return normalize_question_type(value)

    @field_validator("scale_config", mode="before")
    @classmethod
    def _scale_config_to_text(cls, value: Any) -> Optional[str]:
        # Clients send the scale configuration either as JSON text or as an object
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return value


# =============================================================================
# MATERIAL VARIANTS
# =============================================================================

class MaterialBase(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: Optional[int] = None
    name: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ImageMaterial(MaterialBase):
    type: Literal["image"] = "image"
    asset_id: Optional[int] = None
    image_path: Optional[str] = None
    image_width: Optional[int] = None
    image_height: Optional[int] = None
    image_format: Optional[str] = None
    annotations: List[ImageAnnotation] = Field(default_factory=list)


class VideoMaterial(MaterialBase):
    type: Literal["video"] = "video"
    asset_id: Optional[int] = None
    video_path: Optional[str] = None
    video_duration: Optional[int] = None
    video_resolution: Optional[str] = None
    start_time: Optional[str] = None
    timestamps: List[VideoTimestamp] = Field(default_factory=list)


class PDFMaterial(MaterialBase):
    type: Literal["pdf"] = "pdf"
    asset_id: Optional[int] = None
    pdf_path: Optional[str] = None
    pdf_page_count: Optional[int] = None
    pdf_file_size: Optional[int] = None


class UnityMaterial(MaterialBase):
    type: Literal["unity"] = "unity"
    asset_id: Optional[int] = None
    unity_version: Optional[str] = None
    unity_build_target: Optional[str] = None
    unity_scene_name: Optional[str] = None
    unity_json: Optional[str] = None


class ChatbotMaterial(MaterialBase):
    type: Literal["chatbot"] = "chatbot"
    chatbot_config: Optional[str] = None
    chatbot_model: Optional[str] = None
    chatbot_prompt: Optional[str] = None


class QuestionnaireMaterial(MaterialBase):
    type: Literal["questionnaire"] = "questionnaire"
    questionnaire_config: Optional[str] = None
    questionnaire_type: Optional[str] = None
    passing_score: Optional[Decimal] = None
    entries: List[QuestionnaireEntry] = Field(default_factory=list)


class ChecklistMaterial(MaterialBase):
    type: Literal["checklist"] = "checklist"
    entries: List[ChecklistEntry] = Field(default_factory=list)


class WorkflowMaterial(MaterialBase):
    type: Literal["workflow"] = "workflow"
    steps: List[WorkflowStep] = Field(default_factory=list)


class MQTTTemplateMaterial(MaterialBase):
    type: Literal["mqtt_template"] = "mqtt_template"
    message_type: Optional[str] = None
    message_text: Optional[str] = None


class QuizMaterial(MaterialBase):
    type: Literal["quiz"] = "quiz"
    evaluation_mode: bool = False
    min_score: Optional[int] = None
    questions: List[QuizQuestion] = Field(default_factory=list)

    def find_question(self, question_id: int) -> Optional[QuizQuestion]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


class DefaultMaterial(MaterialBase):
    type: Literal["default"] = "default"
    asset_id: Optional[int] = None


class AIAssistantMaterial(MaterialBase):
    type: Literal["ai_assistant"] = "ai_assistant"
    service_job_id: Optional[str] = None
    ai_assistant_status: Literal["ready", "process", "notready"] = "notready"
    asset_ids: List[int] = Field(default_factory=list)


Material = Annotated[
    Union[
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
    ],
    Field(discriminator="type"),
]

MATERIAL_VARIANTS: Dict[MaterialType, Type[MaterialBase]] = {
    MaterialType.IMAGE: ImageMaterial,
    MaterialType.VIDEO: VideoMaterial,
    MaterialType.PDF: PDFMaterial,
    MaterialType.UNITY: UnityMaterial,
    MaterialType.CHATBOT: ChatbotMaterial,
    MaterialType.QUESTIONNAIRE: QuestionnaireMaterial,
    MaterialType.CHECKLIST: ChecklistMaterial,
    MaterialType.WORKFLOW: WorkflowMaterial,
    MaterialType.MQTT_TEMPLATE: MQTTTemplateMaterial,
    MaterialType.QUIZ: QuizMaterial,
    MaterialType.DEFAULT: DefaultMaterial,
    MaterialType.AI_ASSISTANT: AIAssistantMaterial,
}

# Collection attribute -> subcomponent kind, per variant
SUBCOMPONENT_COLLECTIONS: Dict[MaterialType, Tuple[str, SubcomponentKind]] = {
    MaterialType.IMAGE: ("annotations", SubcomponentKind.IMAGE_ANNOTATION),
    MaterialType.VIDEO: ("timestamps", SubcomponentKind.VIDEO_TIMESTAMP),
    MaterialType.QUESTIONNAIRE: ("entries", SubcomponentKind.QUESTIONNAIRE_ENTRY),
    MaterialType.CHECKLIST: ("entries", SubcomponentKind.CHECKLIST_ENTRY),
    MaterialType.WORKFLOW: ("steps", SubcomponentKind.WORKFLOW_STEP),
    MaterialType.QUIZ: ("questions", SubcomponentKind.QUIZ_QUESTION),
}

_material_adapter = TypeAdapter(Material)


def material_type_of(material: MaterialBase) -> MaterialType:
    return MaterialType(material.type)


def construct_material(material_type: Union[MaterialType, str], **fields: Any) -> MaterialBase:
    """
    Zero-valued variant for a type.

    A fresh quiz has no questions and evaluation_mode off, a fresh AI
    assistant is 'notready', every payload field is empty.
    """
    variant = MATERIAL_VARIANTS[MaterialType(material_type)]
    return variant(**fields)


def parse_material(data: Dict[str, Any]) -> MaterialBase:
    """Validate a wire dict into the variant selected by its `type`"""
    return _material_adapter.validate_python(data)


def payload_fields(material_type: Union[MaterialType, str]) -> Tuple[str, ...]:
    """Type-specific scalar fields of a variant (no base fields, no collections)"""
    material_type = MaterialType(material_type)
    variant = MATERIAL_VARIANTS[material_type]
    collection = SUBCOMPONENT_COLLECTIONS.get(material_type)
    excluded = set(MaterialBase.model_fields) | {"type"}
    if collection:
        excluded.add(collection[0])
    return tuple(name for name in variant.model_fields if name not in excluded)


def iter_subcomponents(material: MaterialBase) -> Iterator[Tuple[SubcomponentKind, Subcomponent]]:
    """Every subcomponent of a material, quiz answers included"""
    collection = SUBCOMPONENT_COLLECTIONS.get(material_type_of(material))
    if not collection:
        return
    attribute, kind = collection
    for item in getattr(material, attribute):
        yield kind, item
        if kind == SubcomponentKind.QUIZ_QUESTION:
            for answer in item.answers:
                yield SubcomponentKind.QUIZ_ANSWER, answer


# =============================================================================
# STRUCTURAL VALIDATION
# =============================================================================

class StructuralViolation(BaseModel):
    code: str
    message: str
    question_id: Optional[int] = None
    question_position: int


BOOLEAN_ANSWER_COUNT = "BOOLEAN_ANSWER_COUNT"
CHOICE_ANSWER_COUNT = "CHOICE_ANSWER_COUNT"
SCALE_CONFIG_MISSING = "SCALE_CONFIG_MISSING"
UNKNOWN_QUESTION_TYPE = "UNKNOWN_QUESTION_TYPE"


def _question_violations(position: int, question: QuizQuestion) -> List[StructuralViolation]:
    def violation(code: str, message: str) -> StructuralViolation:
        return StructuralViolation(
            code=code,
            message=message,
            question_id=question.id,
            question_position=position,
        )

    question_type = parse_question_type(question.question_type)
    answer_count = len(question.answers)

    if question_type is None:
        return [violation(UNKNOWN_QUESTION_TYPE, f"Unknown question type '{question.question_type}'")]
    if question_type == QuestionType.BOOLEAN and answer_count != 2:
        return [violation(BOOLEAN_ANSWER_COUNT, f"Boolean question needs exactly 2 answers, has {answer_count}")]
    if question_type in (QuestionType.CHOICE, QuestionType.CHECKBOXES) and answer_count < 2:
        return [violation(CHOICE_ANSWER_COUNT, f"Choice question needs at least 2 answers, has {answer_count}")]
    if question_type == QuestionType.SCALE and not (question.scale_config or "").strip():
        return [violation(SCALE_CONFIG_MISSING, "Scale question has no scale configuration")]
    return []


def validate_material(material: MaterialBase) -> List[StructuralViolation]:
    """
    Structural violations of a material.

    Only quizzes carry structural rules today. Questions are reported by id
    when they have one and always by 1-based position.
    """
    if not isinstance(material, QuizMaterial):
        return []

    violations: List[StructuralViolation] = []
    for position, question in enumerate(material.questions, start=1):
        violations.extend(_question_violations(position, question))
    return violations


# =============================================================================
# WIRE SERIALIZATION
# =============================================================================

def serialize_material(material: MaterialBase) -> Dict[str, Any]:
    """Wire representation; question types leave as display names"""
    data = material.model_dump(mode="json")
    if isinstance(material, QuizMaterial):
        for question in data["questions"]:
            question["question_type"] = to_display_name(question["question_type"])
    return data
