"""
Row <-> variant mapping for materials

The `type` column selects which payload columns belong to a row. Writing a
variant sets its own payload columns and clears every other one; reading a
row builds the variant of its type from its own columns only.

Subcomponents are written as a fresh set. `apply_material` returns the
(kind, model, row) triples it created so the caller can recreate the
related-material links once the rows have ids.
"""
from typing import Dict, List, Optional, Tuple, Type

from ..models.material import (
    MATERIAL_VARIANTS,
    SUBCOMPONENT_COLLECTIONS,
    ChecklistEntry,
    ImageAnnotation,
    MaterialBase,
    MaterialType,
    QuestionnaireEntry,
    QuizAnswer,
    QuizQuestion,
    RelatedMaterial,
    Subcomponent,
    SubcomponentKind,
    VideoTimestamp,
    WorkflowStep,
    payload_fields,
)
from .models import (
    ChecklistEntryDB,
    ImageAnnotationDB,
    MaterialDB,
    QuestionnaireEntryDB,
    QuizAnswerDB,
    QuizQuestionDB,
    VideoTimestampDB,
    WorkflowStepDB,
)

RelatedLookup = Dict[Tuple[str, int], List[RelatedMaterial]]
CreatedSubcomponent = Tuple[SubcomponentKind, Subcomponent, object]

# kind -> (ORM relationship attribute on MaterialDB, ORM class, Pydantic class)
_SUBCOMPONENT_TABLES: Dict[SubcomponentKind, Tuple[str, type, Type[Subcomponent]]] = {
    SubcomponentKind.IMAGE_ANNOTATION: ("image_annotations", ImageAnnotationDB, ImageAnnotation),
    SubcomponentKind.VIDEO_TIMESTAMP: ("video_timestamps", VideoTimestampDB, VideoTimestamp),
    SubcomponentKind.QUESTIONNAIRE_ENTRY: ("questionnaire_entries", QuestionnaireEntryDB, QuestionnaireEntry),
    SubcomponentKind.CHECKLIST_ENTRY: ("checklist_entries", ChecklistEntryDB, ChecklistEntry),
    SubcomponentKind.WORKFLOW_STEP: ("workflow_steps", WorkflowStepDB, WorkflowStep),
    SubcomponentKind.QUIZ_QUESTION: ("quiz_questions", QuizQuestionDB, QuizQuestion),
}

# Columns copied between a subcomponent model and its row
_NON_COLUMN_FIELDS = {"id", "related", "answers"}

ALL_PAYLOAD_COLUMNS: Tuple[str, ...] = tuple(
    sorted({name for material_type in MaterialType for name in payload_fields(material_type)})
)


def _column_fields(model: Type[Subcomponent]) -> List[str]:
    return [name for name in model.model_fields if name not in _NON_COLUMN_FIELDS]


def _build_row(orm_class: type, item: Subcomponent, position: int):
    values = {name: getattr(item, name) for name in _column_fields(type(item))}
    return orm_class(position=position, **values)


def apply_material(row: MaterialDB, material: MaterialBase) -> List[CreatedSubcomponent]:
    """
    Write a variant onto a row (new or existing) and rebuild its subcomponents.

    Raises MaterialTypeChangeError (from the row) when the variant's type
    differs from an existing row's type.
    """
    material_type = MaterialType(material.type)
    row.type = material_type.value
    row.name = material.name
    row.description = material.description

    own_fields = set(payload_fields(material_type))
    for column in ALL_PAYLOAD_COLUMNS:
        value = getattr(material, column) if column in own_fields else None
        if column == "asset_ids" and value is not None:
            value = list(value)
        setattr(row, column, value)

    created: List[CreatedSubcomponent] = []
    collection = SUBCOMPONENT_COLLECTIONS.get(material_type)
    # Clear every subcomponent collection; only the variant's own gets refilled
    for attribute, _, _ in _SUBCOMPONENT_TABLES.values():
        if getattr(row, attribute):
            setattr(row, attribute, [])
    if collection is None:
        return created

    model_attribute, kind = collection
    row_attribute, orm_class, _ = _SUBCOMPONENT_TABLES[kind]
    new_rows = []
    for position, item in enumerate(getattr(material, model_attribute)):
        sub_row = _build_row(orm_class, item, position)
        created.append((kind, item, sub_row))
        if kind == SubcomponentKind.QUIZ_QUESTION:
            for answer_position, answer in enumerate(item.answers):
                answer_row = _build_row(QuizAnswerDB, answer, answer_position)
                sub_row.answers.append(answer_row)
                created.append((SubcomponentKind.QUIZ_ANSWER, answer, answer_row))
        new_rows.append(sub_row)
    setattr(row, row_attribute, new_rows)
    return created


def _read_subcomponent(
    model: Type[Subcomponent],
    kind: SubcomponentKind,
    sub_row,
    related: RelatedLookup,
    **extra,
) -> Subcomponent:
    values = {name: getattr(sub_row, name) for name in _column_fields(model)}
    return model(
        id=sub_row.id,
        related=related.get((kind.value, sub_row.id), []),
        **values,
        **extra,
    )


def row_to_material(row: MaterialDB, related: Optional[RelatedLookup] = None) -> MaterialBase:
    """Build the variant for a row; `related` maps (kind, subcomponent id) -> links"""
    related = related or {}
    material_type = MaterialType(row.type)
    variant = MATERIAL_VARIANTS[material_type]

    values = {
        "id": row.id,
        "name": row.name,
        "description": row.description,
        "created_at": row.created_at,
        "updated_at": row.updated_at,
    }
    for column in payload_fields(material_type):
        value = getattr(row, column)
        if value is not None:
            values[column] = value

    collection = SUBCOMPONENT_COLLECTIONS.get(material_type)
    if collection is not None:
        model_attribute, kind = collection
        row_attribute, _, model = _SUBCOMPONENT_TABLES[kind]
        items = []
        for sub_row in getattr(row, row_attribute):
            if kind == SubcomponentKind.QUIZ_QUESTION:
                answers = [
                    _read_subcomponent(QuizAnswer, SubcomponentKind.QUIZ_ANSWER, answer_row, related)
                    for answer_row in sub_row.answers
                ]
                items.append(_read_subcomponent(model, kind, sub_row, related, answers=answers))
            else:
                items.append(_read_subcomponent(model, kind, sub_row, related))
        values[model_attribute] = items

    return variant(**values)
