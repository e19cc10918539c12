"""
Request/response schemas for the related-material endpoints
"""
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from ...models.material import SubcomponentKind
from ...models.relationships import RelationshipItem, SourceRef


class CreateRelationshipRequest(BaseModel):
    """
    Link a material, or one of its subcomponents, to a target material.

    Leave source_kind and source_id empty for a material-level link.
    """
    source_material_id: int
    source_kind: Optional[SubcomponentKind] = None
    source_id: Optional[int] = None
    target_material_id: int
    relationship_type: Optional[str] = None
    display_order: Optional[int] = None

    @model_validator(mode="after")
    def _kind_and_id_together(self) -> "CreateRelationshipRequest":
        if (self.source_kind is None) != (self.source_id is None):
            raise ValueError("source_kind and source_id must be given together")
        return self

    def source_ref(self) -> SourceRef:
        return SourceRef(
            material_id=self.source_material_id,
            kind=self.source_kind,
            subcomponent_id=self.source_id,
        )


class CreateRelationshipResponse(BaseModel):
    id: int


class ReplaceRelatedRequest(BaseModel):
    items: List[RelationshipItem] = Field(default_factory=list)
