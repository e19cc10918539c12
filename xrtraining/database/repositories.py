"""
Repository pattern for database operations

Provides:
- MaterialRepository: create/replace/read/delete whole materials
- RelationshipRepository: related-material graph (links, ordering, hierarchy)
- ProgramRepository: training programs, learning paths and their membership
- UserMaterialRepository: submission history (JSON) and summary score rows

TRANSACTION MANAGEMENT:
----------------------
Authoring operations (create/replace/delete, link/unlink/replace) open their
own transaction and commit. Submission writes never commit: the caller owns
the pair-write and wraps it in `transaction()`:

    from xrtraining.database.transaction import transaction

    with transaction(db, "Submit quiz"):
        history, summary = repo.lock_pair(user_id, material_id)
        repo.upsert_history(user_id, material_id, data, existing=history)
        repo.upsert_summary(user_id, material_id, score, existing=summary)
        db.flush()
"""
import logging
from collections import deque
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.constants import DEFAULT_HIERARCHY_MAX_DEPTH
from ..core.exceptions import (
    LearningPathNotFoundError,
    MaterialNotFoundError,
    MaterialTypeChangeError,
    NotAQuizError,
    PersistenceError,
    ProgramNotFoundError,
    RelationshipNotFoundError,
    SubcomponentNotFoundError,
    ValidationFailureError,
)
from ..core.metrics import materials_written_total, relationship_replacements_total
from ..models.material import (
    MaterialBase,
    MaterialType,
    QuizMaterial,
    RelatedMaterial,
    SubcomponentKind,
    iter_subcomponents,
    validate_material,
)
from ..models.relationships import (
    HierarchyNode,
    IncomingRelationship,
    MaterialHierarchy,
    RelationshipItem,
    SourceRef,
)
from .mappers import CreatedSubcomponent, RelatedLookup, apply_material, row_to_material
from .models import (
    SUBCOMPONENT_MODELS,
    LearningPathDB,
    LearningPathMaterialDB,
    MaterialDB,
    MaterialRelationshipDB,
    QuizAnswerDB,
    QuizQuestionDB,
    TrainingProgramDB,
    UserMaterialDataDB,
    UserMaterialScoreDB,
    program_materials,
)
from .transaction import transaction

logger = logging.getLogger(__name__)


def _relationship_order():
    """Explicit order ascending, nulls last, then insertion order"""
    return (
        MaterialRelationshipDB.display_order.is_(None),
        MaterialRelationshipDB.display_order,
        MaterialRelationshipDB.id,
    )


def _source_filter(source: SourceRef):
    clauses = [MaterialRelationshipDB.source_material_id == source.material_id]
    if source.is_material_level:
        clauses.append(MaterialRelationshipDB.source_kind.is_(None))
        clauses.append(MaterialRelationshipDB.source_id.is_(None))
    else:
        clauses.append(MaterialRelationshipDB.source_kind == source.kind.value)
        clauses.append(MaterialRelationshipDB.source_id == source.subcomponent_id)
    return and_(*clauses)


def _related_from_row(relationship: MaterialRelationshipDB, target: MaterialDB) -> RelatedMaterial:
    return RelatedMaterial(
        id=target.id,
        name=target.name,
        type=MaterialType(target.type),
        relationship_type=relationship.relationship_type,
        display_order=relationship.display_order,
        relationship_id=relationship.id,
    )


def _dedupe(values: Iterable[int]) -> List[int]:
    seen: Set[int] = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


# =============================================================================
# RELATIONSHIP GRAPH
# =============================================================================

class RelationshipRepository:
    """Repository for related-material links"""

    def __init__(self, db_session: Session):
        self.db = db_session

    # ---- validation helpers -------------------------------------------------

    def _require_material(self, material_id: int) -> MaterialDB:
        material = self.db.get(MaterialDB, material_id)
        if material is None:
            raise MaterialNotFoundError(material_id)
        return material

    def subcomponent_belongs_to(self, source: SourceRef) -> bool:
        """True if the subcomponent exists and is owned by source.material_id"""
        if source.kind == SubcomponentKind.QUIZ_ANSWER:
            stmt = (
                select(QuizAnswerDB.id)
                .join(QuizQuestionDB, QuizQuestionDB.id == QuizAnswerDB.question_id)
                .where(
                    QuizAnswerDB.id == source.subcomponent_id,
                    QuizQuestionDB.material_id == source.material_id,
                )
            )
        else:
            model = SUBCOMPONENT_MODELS[source.kind.value]
            stmt = select(model.id).where(
                model.id == source.subcomponent_id,
                model.material_id == source.material_id,
            )
        return self.db.execute(stmt).first() is not None

    def require_source(self, source: SourceRef) -> None:
        self._require_material(source.material_id)
        if not source.is_material_level and not self.subcomponent_belongs_to(source):
            raise SubcomponentNotFoundError(source.material_id, source.kind.value, source.subcomponent_id)

    def missing_materials(self, material_ids: Iterable[int]) -> List[int]:
        wanted = set(material_ids)
        if not wanted:
            return []
        found = set(self.db.execute(select(MaterialDB.id).where(MaterialDB.id.in_(wanted))).scalars())
        return sorted(wanted - found)

    def _check_material_link(self, parent_id: int, child_id: int) -> None:
        if parent_id == child_id:
            raise ValidationFailureError(
                "A material cannot be related to itself",
                violations=[{"code": "SELF_REFERENCE", "material_id": parent_id}],
            )
        if self.would_create_cycle(parent_id, child_id):
            raise ValidationFailureError(
                f"Linking material '{parent_id}' to '{child_id}' would create a circular reference",
                violations=[{
                    "code": "CIRCULAR_REFERENCE",
                    "parent_material_id": parent_id,
                    "child_material_id": child_id,
                }],
            )

    # ---- reads ---------------------------------------------------------------

    def _outgoing_rows(self, source: SourceRef) -> Sequence[Tuple[MaterialRelationshipDB, MaterialDB]]:
        stmt = (
            select(MaterialRelationshipDB, MaterialDB)
            .join(MaterialDB, MaterialDB.id == MaterialRelationshipDB.target_material_id)
            .where(_source_filter(source))
            .order_by(*_relationship_order())
        )
        return self.db.execute(stmt).all()

    def _child_ids(self, material_id: int) -> List[int]:
        stmt = (
            select(MaterialRelationshipDB.target_material_id)
            .where(_source_filter(SourceRef.material(material_id)))
            .order_by(*_relationship_order())
        )
        return list(self.db.execute(stmt).scalars())

    def get_by_id(self, relationship_id: int) -> Optional[MaterialRelationshipDB]:
        return self.db.get(MaterialRelationshipDB, relationship_id)

    def list_outgoing(self, source: SourceRef) -> List[RelatedMaterial]:
        """Targets of a source reference, in display order"""
        self.require_source(source)
        return [_related_from_row(rel, target) for rel, target in self._outgoing_rows(source)]

    def list_incoming(self, material_id: int) -> List[IncomingRelationship]:
        """Source references pointing at a material (its parents)"""
        self._require_material(material_id)
        stmt = (
            select(MaterialRelationshipDB, MaterialDB)
            .join(MaterialDB, MaterialDB.id == MaterialRelationshipDB.source_material_id)
            .where(MaterialRelationshipDB.target_material_id == material_id)
            .order_by(*_relationship_order())
        )
        result = []
        for rel, owner in self.db.execute(stmt).all():
            if rel.source_kind is None:
                source = SourceRef.material(rel.source_material_id)
            else:
                source = SourceRef.subcomponent(
                    rel.source_material_id, SubcomponentKind(rel.source_kind), rel.source_id
                )
            result.append(IncomingRelationship(
                relationship_id=rel.id,
                source=source,
                source_material_name=owner.name,
                source_material_type=MaterialType(owner.type),
                relationship_type=rel.relationship_type,
                display_order=rel.display_order,
                created_at=rel.created_at,
            ))
        return result

    def related_lookup(self, material_id: int) -> RelatedLookup:
        """Subcomponent-sourced links of a material grouped by (kind, subcomponent id)"""
        stmt = (
            select(MaterialRelationshipDB, MaterialDB)
            .join(MaterialDB, MaterialDB.id == MaterialRelationshipDB.target_material_id)
            .where(
                MaterialRelationshipDB.source_material_id == material_id,
                MaterialRelationshipDB.source_kind.is_not(None),
            )
            .order_by(*_relationship_order())
        )
        lookup: RelatedLookup = {}
        for rel, target in self.db.execute(stmt).all():
            lookup.setdefault((rel.source_kind, rel.source_id), []).append(_related_from_row(rel, target))
        return lookup

    def would_create_cycle(self, parent_id: int, child_id: int) -> bool:
        """
        True if a material-level link parent -> child would close a cycle,
        i.e. parent is already reachable from child.
        """
        if parent_id == child_id:
            return True
        visited = {child_id}
        queue = deque([child_id])
        while queue:
            current = queue.popleft()
            for next_id in self._child_ids(current):
                if next_id == parent_id:
                    return True
                if next_id not in visited:
                    visited.add(next_id)
                    queue.append(next_id)
        return False

    def hierarchy(self, root_material_id: int, max_depth: int = DEFAULT_HIERARCHY_MAX_DEPTH) -> MaterialHierarchy:
        """
        Tree of material-level links below a root, breadth first.

        A material reached twice is listed only under its first parent.
        """
        root = self._require_material(root_material_id)
        root_node = HierarchyNode(material_id=root.id, name=root.name, type=MaterialType(root.type))
        visited = {root.id}
        frontier = [root_node]
        total_depth = 0

        for depth in range(1, max_depth + 1):
            next_frontier = []
            for node in frontier:
                for rel, target in self._outgoing_rows(SourceRef.material(node.material_id)):
                    if target.id in visited:
                        continue
                    visited.add(target.id)
                    child = HierarchyNode(
                        material_id=target.id,
                        name=target.name,
                        type=MaterialType(target.type),
                        relationship_type=rel.relationship_type,
                        display_order=rel.display_order,
                        depth=depth,
                    )
                    node.children.append(child)
                    next_frontier.append(child)
            if not next_frontier:
                break
            total_depth = depth
            frontier = next_frontier

        return MaterialHierarchy(root=root_node, total_depth=total_depth, total_materials=len(visited))

    # ---- writes --------------------------------------------------------------

    def add_links(self, source: SourceRef, related: Iterable[RelatedMaterial]) -> None:
        """
        Stage links for a freshly created subcomponent (no commit).

        Targets must already be checked by the caller. Duplicate targets keep
        the first occurrence.
        """
        seen: Set[int] = set()
        for item in related:
            if item.id in seen:
                continue
            seen.add(item.id)
            self.db.add(MaterialRelationshipDB(
                source_material_id=source.material_id,
                source_kind=source.kind.value if source.kind else None,
                source_id=source.subcomponent_id,
                target_material_id=item.id,
                relationship_type=item.relationship_type,
                display_order=item.display_order,
            ))

    def delete_subcomponent_links(self, material_id: int) -> None:
        """Stage deletion of every subcomponent-sourced link of a material (no commit)"""
        self.db.execute(
            delete(MaterialRelationshipDB)
            .where(
                MaterialRelationshipDB.source_material_id == material_id,
                MaterialRelationshipDB.source_kind.is_not(None),
            )
            .execution_options(synchronize_session="fetch")
        )

    def link(
        self,
        source: SourceRef,
        target_material_id: int,
        relationship_type: Optional[str] = None,
        display_order: Optional[int] = None,
    ) -> int:
        """
        Create one link and return its id.

        Raises:
            MaterialNotFoundError / SubcomponentNotFoundError: unknown source or target
            ValidationFailureError: self link, cycle, or the link already exists
        """
        self.require_source(source)
        self._require_material(target_material_id)
        if source.is_material_level:
            self._check_material_link(source.material_id, target_material_id)

        existing = self.db.execute(
            select(MaterialRelationshipDB.id).where(
                _source_filter(source),
                MaterialRelationshipDB.target_material_id == target_material_id,
            )
        ).first()
        if existing is not None:
            raise ValidationFailureError(
                "Relationship already exists",
                violations=[{"code": "RELATIONSHIP_EXISTS", "relationship_id": existing[0]}],
            )

        try:
            with transaction(self.db, "Link related material"):
                relationship = MaterialRelationshipDB(
                    source_material_id=source.material_id,
                    source_kind=source.kind.value if source.kind else None,
                    source_id=source.subcomponent_id,
                    target_material_id=target_material_id,
                    relationship_type=relationship_type,
                    display_order=display_order,
                )
                self.db.add(relationship)
                self.db.flush()
                relationship_id = relationship.id
        except SQLAlchemyError as e:
            raise PersistenceError("link related material", str(e)) from e

        logger.info(
            "Related material linked",
            extra={
                "relationship_id": relationship_id,
                "source_material_id": source.material_id,
                "source_kind": source.kind.value if source.kind else None,
                "target_material_id": target_material_id,
            },
        )
        return relationship_id

    def unlink(self, relationship_id: int) -> None:
        relationship = self.get_by_id(relationship_id)
        if relationship is None:
            raise RelationshipNotFoundError(relationship_id)
        try:
            with transaction(self.db, "Unlink related material"):
                self.db.delete(relationship)
        except SQLAlchemyError as e:
            raise PersistenceError("unlink related material", str(e)) from e
        logger.info("Related material unlinked", extra={"relationship_id": relationship_id})

    def replace_outgoing(self, source: SourceRef, items: Sequence[RelationshipItem]) -> List[RelatedMaterial]:
        """
        Replace every outgoing link of a source in one transaction.

        Readers see either the old set or the new one, never a partial set.
        Duplicate targets keep the first occurrence.
        """
        self.require_source(source)

        unique: List[RelationshipItem] = []
        seen: Set[int] = set()
        for item in items:
            if item.target_material_id in seen:
                continue
            seen.add(item.target_material_id)
            unique.append(item)

        missing = self.missing_materials(seen)
        if missing:
            raise MaterialNotFoundError(missing[0])

        try:
            with transaction(self.db, "Replace related materials"):
                self.db.execute(
                    delete(MaterialRelationshipDB)
                    .where(_source_filter(source))
                    .execution_options(synchronize_session="fetch")
                )
                for item in unique:
                    if source.is_material_level:
                        self._check_material_link(source.material_id, item.target_material_id)
                    self.db.add(MaterialRelationshipDB(
                        source_material_id=source.material_id,
                        source_kind=source.kind.value if source.kind else None,
                        source_id=source.subcomponent_id,
                        target_material_id=item.target_material_id,
                        relationship_type=item.relationship_type,
                        display_order=item.display_order,
                    ))
                    # Cycle checks read the links staged so far
                    self.db.flush()
        except SQLAlchemyError as e:
            raise PersistenceError("replace related materials", str(e)) from e

        relationship_replacements_total.inc()
        logger.info(
            "Related materials replaced",
            extra={
                "source_material_id": source.material_id,
                "source_kind": source.kind.value if source.kind else None,
                "source_id": source.subcomponent_id,
                "count": len(unique),
            },
        )
        return self.list_outgoing(source)

    def reorder(self, source: SourceRef, orders: Dict[int, Optional[int]]) -> List[RelatedMaterial]:
        """Set display_order per target material id for one source"""
        self.require_source(source)
        rows = {rel.target_material_id: rel for rel, _ in self._outgoing_rows(source)}
        unknown = sorted(target_id for target_id in orders if target_id not in rows)
        if unknown:
            raise ValidationFailureError(
                "Targets are not linked to this source",
                violations=[{"code": "TARGET_NOT_LINKED", "target_material_id": t} for t in unknown],
            )
        try:
            with transaction(self.db, "Reorder related materials"):
                for target_id, order in orders.items():
                    rows[target_id].display_order = order
        except SQLAlchemyError as e:
            raise PersistenceError("reorder related materials", str(e)) from e
        return self.list_outgoing(source)


# =============================================================================
# MATERIALS
# =============================================================================

class MaterialRepository:
    """Repository for whole-material authoring and reads"""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.relationships = RelationshipRepository(db_session)

    def get_row(self, material_id: int, for_update: bool = False) -> Optional[MaterialDB]:
        stmt = select(MaterialDB).where(MaterialDB.id == material_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def exists(self, material_id: int) -> bool:
        return self.db.execute(select(MaterialDB.id).where(MaterialDB.id == material_id)).first() is not None

    def get(self, material_id: int) -> MaterialBase:
        """Variant with every subcomponent's related list"""
        row = self.get_row(material_id)
        if row is None:
            raise MaterialNotFoundError(material_id)
        return row_to_material(row, self.relationships.related_lookup(material_id))

    def get_quiz(self, material_id: int) -> QuizMaterial:
        row = self.get_row(material_id)
        if row is None:
            raise MaterialNotFoundError(material_id)
        if row.type != MaterialType.QUIZ.value:
            raise NotAQuizError(material_id, row.type)
        return row_to_material(row)

    def get_summaries(self, material_ids: Iterable[int]) -> Dict[int, RelatedMaterial]:
        """id -> (id, name, type) for the materials that exist"""
        ids = set(material_ids)
        if not ids:
            return {}
        rows = self.db.execute(
            select(MaterialDB.id, MaterialDB.name, MaterialDB.type).where(MaterialDB.id.in_(ids))
        ).all()
        return {
            row.id: RelatedMaterial(id=row.id, name=row.name, type=MaterialType(row.type))
            for row in rows
        }

    def list_by_type(self, material_type: MaterialType, material_ids: Optional[Iterable[int]] = None) -> List[MaterialDB]:
        stmt = select(MaterialDB).where(MaterialDB.type == MaterialType(material_type).value)
        if material_ids is not None:
            stmt = stmt.where(MaterialDB.id.in_(list(material_ids)))
        return list(self.db.execute(stmt.order_by(MaterialDB.id)).scalars())

    def _check_structure(self, material: MaterialBase) -> None:
        violations = validate_material(material)
        if violations:
            logger.warning(
                "Material rejected by structural validation",
                extra={"material_type": material.type, "violations": len(violations)},
            )
            raise ValidationFailureError(
                "Material has structural violations",
                violations=[violation.model_dump() for violation in violations],
            )

    def _require_targets(self, material: MaterialBase) -> None:
        targets = {item.id for _, sub in iter_subcomponents(material) for item in sub.related}
        missing = self.relationships.missing_materials(targets)
        if missing:
            raise MaterialNotFoundError(missing[0])

    def _write_links(self, material_id: int, created: List[CreatedSubcomponent]) -> None:
        for kind, item, sub_row in created:
            if item.related:
                self.relationships.add_links(SourceRef.subcomponent(material_id, kind, sub_row.id), item.related)

    def create(self, material: MaterialBase) -> MaterialBase:
        """
        Persist a new material with its subcomponents and their related lists.

        Raises:
            ValidationFailureError: structural violations (listed in extra)
            MaterialNotFoundError: a related target does not exist
            PersistenceError: database failure (nothing written)
        """
        self._check_structure(material)
        self._require_targets(material)

        try:
            with transaction(self.db, "Create material"):
                row = MaterialDB()
                created = apply_material(row, material)
                self.db.add(row)
                self.db.flush()
                self._write_links(row.id, created)
                material_id = row.id
        except SQLAlchemyError as e:
            raise PersistenceError("create material", str(e)) from e

        materials_written_total.labels(operation="create", material_type=material.type).inc()
        logger.info("Material created", extra={"material_id": material_id, "material_type": material.type})
        return self.get(material_id)

    def replace(self, material_id: int, material: MaterialBase) -> MaterialBase:
        """
        Replace a material wholesale in one transaction.

        Subcomponents and their related lists are deleted and recreated;
        material-level links are untouched. The type cannot change.
        """
        row = self.get_row(material_id)
        if row is None:
            raise MaterialNotFoundError(material_id)
        if row.type != material.type:
            raise MaterialTypeChangeError(material_id, row.type, material.type)
        self._check_structure(material)
        self._require_targets(material)

        try:
            with transaction(self.db, f"Replace material {material_id}"):
                row = self.get_row(material_id, for_update=True)
                self.relationships.delete_subcomponent_links(material_id)
                created = apply_material(row, material)
                self.db.flush()
                self._write_links(material_id, created)
        except SQLAlchemyError as e:
            raise PersistenceError("replace material", str(e)) from e

        materials_written_total.labels(operation="replace", material_type=material.type).inc()
        logger.info("Material replaced", extra={"material_id": material_id, "material_type": material.type})
        return self.get(material_id)

    def delete(self, material_id: int) -> None:
        """Delete a material, its subcomponents, links in both directions and user rows"""
        row = self.get_row(material_id)
        if row is None:
            raise MaterialNotFoundError(material_id)
        try:
            with transaction(self.db, f"Delete material {material_id}"):
                self.db.execute(
                    delete(MaterialRelationshipDB)
                    .where(or_(
                        MaterialRelationshipDB.source_material_id == material_id,
                        MaterialRelationshipDB.target_material_id == material_id,
                    ))
                    .execution_options(synchronize_session="fetch")
                )
                self.db.execute(delete(UserMaterialDataDB).where(UserMaterialDataDB.material_id == material_id))
                self.db.execute(delete(UserMaterialScoreDB).where(UserMaterialScoreDB.material_id == material_id))
                self.db.execute(delete(LearningPathMaterialDB).where(LearningPathMaterialDB.material_id == material_id))
                self.db.execute(delete(program_materials).where(program_materials.c.material_id == material_id))
                self.db.delete(row)
        except SQLAlchemyError as e:
            raise PersistenceError("delete material", str(e)) from e
        logger.info("Material deleted", extra={"material_id": material_id})


# =============================================================================
# PROGRAMS AND LEARNING PATHS
# =============================================================================

class ProgramRepository:
    """Repository for training programs and learning paths (membership only)"""

    def __init__(self, db_session: Session):
        self.db = db_session

    def get_program(self, program_id: int) -> Optional[TrainingProgramDB]:
        return self.db.get(TrainingProgramDB, program_id)

    def require_program(self, program_id: int) -> TrainingProgramDB:
        program = self.get_program(program_id)
        if program is None:
            raise ProgramNotFoundError(program_id)
        return program

    def get_learning_path(self, learning_path_id: int) -> Optional[LearningPathDB]:
        return self.db.get(LearningPathDB, learning_path_id)

    def require_learning_path(self, learning_path_id: int) -> LearningPathDB:
        learning_path = self.get_learning_path(learning_path_id)
        if learning_path is None:
            raise LearningPathNotFoundError(learning_path_id)
        return learning_path

    def create_program(
        self,
        name: str,
        description: Optional[str] = None,
        objectives: Optional[str] = None,
        requirements: Optional[str] = None,
    ) -> TrainingProgramDB:
        try:
            with transaction(self.db, "Create training program"):
                program = TrainingProgramDB(
                    name=name, description=description, objectives=objectives, requirements=requirements
                )
                self.db.add(program)
        except SQLAlchemyError as e:
            raise PersistenceError("create training program", str(e)) from e
        self.db.refresh(program)
        logger.info("Training program created", extra={"program_id": program.id})
        return program

    def create_learning_path(self, name: str, description: Optional[str] = None) -> LearningPathDB:
        try:
            with transaction(self.db, "Create learning path"):
                learning_path = LearningPathDB(name=name, description=description)
                self.db.add(learning_path)
        except SQLAlchemyError as e:
            raise PersistenceError("create learning path", str(e)) from e
        self.db.refresh(learning_path)
        return learning_path

    def _require_material(self, material_id: int) -> MaterialDB:
        material = self.db.get(MaterialDB, material_id)
        if material is None:
            raise MaterialNotFoundError(material_id)
        return material

    def add_material(self, program_id: int, material_id: int) -> None:
        """Assign a material directly to a program (idempotent)"""
        program = self.require_program(program_id)
        material = self._require_material(material_id)
        if material in program.materials:
            return
        try:
            with transaction(self.db, "Assign material to program"):
                program.materials.append(material)
        except SQLAlchemyError as e:
            raise PersistenceError("assign material to program", str(e)) from e

    def add_learning_path(self, program_id: int, learning_path_id: int) -> None:
        """Attach a learning path to a program (idempotent)"""
        program = self.require_program(program_id)
        learning_path = self.require_learning_path(learning_path_id)
        if learning_path in program.learning_paths:
            return
        try:
            with transaction(self.db, "Attach learning path to program"):
                program.learning_paths.append(learning_path)
        except SQLAlchemyError as e:
            raise PersistenceError("attach learning path to program", str(e)) from e

    def add_material_to_learning_path(self, learning_path_id: int, material_id: int, display_order: int = 0) -> None:
        learning_path = self.require_learning_path(learning_path_id)
        self._require_material(material_id)
        existing = next((link for link in learning_path.material_links if link.material_id == material_id), None)
        try:
            with transaction(self.db, "Add material to learning path"):
                if existing is not None:
                    existing.display_order = display_order
                else:
                    learning_path.material_links.append(
                        LearningPathMaterialDB(material_id=material_id, display_order=display_order)
                    )
        except SQLAlchemyError as e:
            raise PersistenceError("add material to learning path", str(e)) from e

    def learning_path_material_ids(self, learning_path_id: int) -> List[int]:
        """Ordered material set of a learning path"""
        stmt = (
            select(LearningPathMaterialDB.material_id)
            .where(LearningPathMaterialDB.learning_path_id == learning_path_id)
            .order_by(LearningPathMaterialDB.display_order, LearningPathMaterialDB.id)
        )
        return _dedupe(self.db.execute(stmt).scalars())

    def program_material_ids(self, program_id: int) -> List[int]:
        """
        Full material set of a program: direct materials, then the materials
        of each learning path, without duplicates.
        """
        program = self.require_program(program_id)
        ids = [material.id for material in program.materials]
        for learning_path in program.learning_paths:
            ids.extend(self.learning_path_material_ids(learning_path.id))
        return _dedupe(ids)

    def contains_material(self, program_id: int, material_id: int) -> bool:
        return material_id in self.program_material_ids(program_id)

    def resolve_learning_path(self, program_id: int, material_id: int) -> Optional[int]:
        """First learning path of the program that contains the material"""
        program = self.require_program(program_id)
        for learning_path in program.learning_paths:
            if material_id in self.learning_path_material_ids(learning_path.id):
                return learning_path.id
        return None


# =============================================================================
# SUBMISSION HISTORY AND SUMMARY
# =============================================================================

class UserMaterialRepository:
    """
    Two-tier submission store

    - user_material_data: detailed JSON snapshot of the latest submission
    - user_material_scores: summary row read by progress queries

    Upserts only stage changes; the caller's transaction commits both rows
    together.
    """

    def __init__(self, db_session: Session):
        self.db = db_session

    def get_history(self, user_id: str, material_id: int) -> Optional[UserMaterialDataDB]:
        stmt = select(UserMaterialDataDB).where(
            UserMaterialDataDB.user_id == user_id,
            UserMaterialDataDB.material_id == material_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_summary(self, user_id: str, material_id: int) -> Optional[UserMaterialScoreDB]:
        stmt = select(UserMaterialScoreDB).where(
            UserMaterialScoreDB.user_id == user_id,
            UserMaterialScoreDB.material_id == material_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def lock_pair(
        self, user_id: str, material_id: int
    ) -> Tuple[Optional[UserMaterialDataDB], Optional[UserMaterialScoreDB]]:
        """Existing history and summary rows, locked with SELECT ... FOR UPDATE"""
        history = self.db.execute(
            select(UserMaterialDataDB)
            .where(UserMaterialDataDB.user_id == user_id, UserMaterialDataDB.material_id == material_id)
            .with_for_update()
        ).scalar_one_or_none()
        summary = self.db.execute(
            select(UserMaterialScoreDB)
            .where(UserMaterialScoreDB.user_id == user_id, UserMaterialScoreDB.material_id == material_id)
            .with_for_update()
        ).scalar_one_or_none()
        return history, summary

    def upsert_history(
        self,
        user_id: str,
        material_id: int,
        data: Dict[str, Any],
        program_id: Optional[int] = None,
        learning_path_id: Optional[int] = None,
        existing: Optional[UserMaterialDataDB] = None,
    ) -> UserMaterialDataDB:
        if existing is None:
            existing = UserMaterialDataDB(user_id=user_id, material_id=material_id)
            self.db.add(existing)
        existing.data = data
        existing.program_id = program_id
        existing.learning_path_id = learning_path_id
        return existing

    def upsert_summary(
        self,
        user_id: str,
        material_id: int,
        score: Decimal,
        program_id: Optional[int] = None,
        learning_path_id: Optional[int] = None,
        existing: Optional[UserMaterialScoreDB] = None,
    ) -> UserMaterialScoreDB:
        if existing is None:
            existing = UserMaterialScoreDB(user_id=user_id, material_id=material_id, progress=0)
            self.db.add(existing)
        existing.score = score
        existing.program_id = program_id
        existing.learning_path_id = learning_path_id
        return existing

    def list_summaries(
        self,
        user_id: Optional[str] = None,
        material_ids: Optional[Iterable[int]] = None,
    ) -> List[UserMaterialScoreDB]:
        stmt = select(UserMaterialScoreDB)
        if user_id is not None:
            stmt = stmt.where(UserMaterialScoreDB.user_id == user_id)
        if material_ids is not None:
            stmt = stmt.where(UserMaterialScoreDB.material_id.in_(list(material_ids)))
        stmt = stmt.order_by(UserMaterialScoreDB.material_id, UserMaterialScoreDB.user_id)
        return list(self.db.execute(stmt).scalars())

    def completed_material_ids(self, user_id: str, material_ids: Iterable[int]) -> Set[int]:
        """Subset of material_ids for which the user has a summary row"""
        ids = list(material_ids)
        if not ids:
            return set()
        stmt = select(UserMaterialScoreDB.material_id).where(
            UserMaterialScoreDB.user_id == user_id,
            UserMaterialScoreDB.material_id.in_(ids),
        )
        return set(self.db.execute(stmt).scalars())

    def has_summary(self, user_id: str, material_id: int) -> bool:
        stmt = select(func.count()).select_from(UserMaterialScoreDB).where(
            UserMaterialScoreDB.user_id == user_id,
            UserMaterialScoreDB.material_id == material_id,
        )
        return self.db.execute(stmt).scalar_one() > 0
