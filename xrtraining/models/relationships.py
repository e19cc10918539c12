"""
Relationship graph value types

A relationship source is a composite reference: the owning material, and
optionally a subcomponent kind plus its id inside that material. A reference
without a kind points at the material itself.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .material import MaterialType, RelatedMaterial, SubcomponentKind


class SourceRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    material_id: int
    kind: Optional[SubcomponentKind] = None
    subcomponent_id: Optional[int] = None

    @model_validator(mode="after")
    def _kind_and_id_together(self) -> "SourceRef":
        if (self.kind is None) != (self.subcomponent_id is None):
            raise ValueError("kind and subcomponent_id must be given together")
        return self

    @property
    def is_material_level(self) -> bool:
        return self.kind is None

    @classmethod
    def material(cls, material_id: int) -> "SourceRef":
        return cls(material_id=material_id)

    @classmethod
    def subcomponent(cls, material_id: int, kind: SubcomponentKind, subcomponent_id: int) -> "SourceRef":
        return cls(material_id=material_id, kind=kind, subcomponent_id=subcomponent_id)


class RelationshipItem(BaseModel):
    """One entry of a replace_outgoing request"""
    target_material_id: int
    relationship_type: Optional[str] = None
    display_order: Optional[int] = None


class IncomingRelationship(BaseModel):
    """Source reference pointing at a material, with the owner's summary"""
    relationship_id: int
    source: SourceRef
    source_material_name: Optional[str] = None
    source_material_type: Optional[MaterialType] = None
    relationship_type: Optional[str] = None
    display_order: Optional[int] = None
    created_at: Optional[datetime] = None


class HierarchyNode(BaseModel):
    material_id: int
    name: Optional[str] = None
    type: Optional[MaterialType] = None
    relationship_type: Optional[str] = None
    display_order: Optional[int] = None
    depth: int = 0
    children: List["HierarchyNode"] = Field(default_factory=list)


HierarchyNode.model_rebuild()

class MaterialHierarchy(BaseModel):
    root: HierarchyNode
    total_depth: int
    total_materials: int


__all__ = [
    "SourceRef",
    "RelationshipItem",
    "IncomingRelationship",
    "HierarchyNode",
    "MaterialHierarchy",
    "RelatedMaterial",
]
