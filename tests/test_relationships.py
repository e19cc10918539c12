"""
Tests for the related-material graph
"""
import pytest

from xrtraining.core.exceptions import (
    MaterialNotFoundError,
    RelationshipNotFoundError,
    SubcomponentNotFoundError,
    ValidationFailureError,
)
from xrtraining.database.repositories import RelationshipRepository
from xrtraining.models.material import SubcomponentKind
from xrtraining.models.relationships import RelationshipItem, SourceRef


@pytest.fixture
def repo(db):
    return RelationshipRepository(db)


class TestSourceRef:

    def test_kind_requires_id(self):
        with pytest.raises(ValueError):
            SourceRef(material_id=1, kind=SubcomponentKind.CHECKLIST_ENTRY)

    def test_material_level(self):
        assert SourceRef.material(3).is_material_level
        assert not SourceRef.subcomponent(3, SubcomponentKind.WORKFLOW_STEP, 8).is_material_level


class TestLinkAndList:

    def test_display_order_with_nulls_last(self, repo, make_material):
        parent = make_material("pdf", name="parent")
        second = make_material("pdf", name="second")
        unordered = make_material("pdf", name="unordered")
        first = make_material("pdf", name="first")

        repo.link(SourceRef.material(parent.id), second.id, display_order=2)
        repo.link(SourceRef.material(parent.id), unordered.id)
        repo.link(SourceRef.material(parent.id), first.id, display_order=1)

        related = repo.list_outgoing(SourceRef.material(parent.id))
        assert [item.name for item in related] == ["first", "second", "unordered"]

    def test_relationship_type_kept(self, repo, make_material):
        parent = make_material("pdf")
        child = make_material("video")
        repo.link(SourceRef.material(parent.id), child.id, relationship_type="prerequisite")

        related = repo.list_outgoing(SourceRef.material(parent.id))
        assert related[0].relationship_type == "prerequisite"
        assert related[0].type == "video"

    def test_incoming(self, repo, make_material):
        workflow = make_material("workflow", name="Procedure", steps=[{"title": "Open valve"}])
        target = make_material("pdf", name="Valve manual")
        step_id = workflow.steps[0].id

        repo.link(SourceRef.subcomponent(workflow.id, SubcomponentKind.WORKFLOW_STEP, step_id), target.id)

        incoming = repo.list_incoming(target.id)
        assert len(incoming) == 1
        assert incoming[0].source.kind == SubcomponentKind.WORKFLOW_STEP
        assert incoming[0].source.subcomponent_id == step_id
        assert incoming[0].source_material_name == "Procedure"

    def test_self_link_rejected(self, repo, make_material):
        material = make_material("pdf")
        with pytest.raises(ValidationFailureError) as exc_info:
            repo.link(SourceRef.material(material.id), material.id)
        assert exc_info.value.violations[0]["code"] == "SELF_REFERENCE"

    def test_cycle_rejected(self, repo, make_material):
        a, b, c = (make_material("pdf") for _ in range(3))
        repo.link(SourceRef.material(a.id), b.id)
        repo.link(SourceRef.material(b.id), c.id)

        with pytest.raises(ValidationFailureError) as exc_info:
            repo.link(SourceRef.material(c.id), a.id)
        assert exc_info.value.violations[0]["code"] == "CIRCULAR_REFERENCE"

    def test_subcomponent_link_to_owner_allowed(self, repo, make_material):
        checklist = make_material("checklist", entries=[{"text": "see above"}])
        source = SourceRef.subcomponent(checklist.id, SubcomponentKind.CHECKLIST_ENTRY, checklist.entries[0].id)
        repo.link(source, checklist.id)
        assert [item.id for item in repo.list_outgoing(source)] == [checklist.id]

    def test_duplicate_rejected(self, repo, make_material):
        parent = make_material("pdf")
        child = make_material("pdf")
        relationship_id = repo.link(SourceRef.material(parent.id), child.id)

        with pytest.raises(ValidationFailureError) as exc_info:
            repo.link(SourceRef.material(parent.id), child.id)
        assert exc_info.value.violations[0] == {"code": "RELATIONSHIP_EXISTS", "relationship_id": relationship_id}

    def test_subcomponent_must_belong_to_material(self, repo, make_material):
        owner = make_material("checklist", entries=[{"text": "mine"}])
        other = make_material("checklist", entries=[{"text": "theirs"}])
        target = make_material("pdf")

        foreign = SourceRef.subcomponent(owner.id, SubcomponentKind.CHECKLIST_ENTRY, other.entries[0].id)
        with pytest.raises(SubcomponentNotFoundError):
            repo.link(foreign, target.id)

    def test_quiz_answer_source(self, repo, make_quiz, make_material):
        quiz = make_quiz()
        target = make_material("video")
        answer_id = quiz.questions[0].answers[1].id
        source = SourceRef.subcomponent(quiz.id, SubcomponentKind.QUIZ_ANSWER, answer_id)

        repo.link(source, target.id)
        assert [item.id for item in repo.list_outgoing(source)] == [target.id]

    def test_unknown_target(self, repo, make_material):
        parent = make_material("pdf")
        with pytest.raises(MaterialNotFoundError):
            repo.link(SourceRef.material(parent.id), 999)

    def test_unlink(self, repo, make_material):
        parent = make_material("pdf")
        child = make_material("pdf")
        relationship_id = repo.link(SourceRef.material(parent.id), child.id)

        repo.unlink(relationship_id)
        assert repo.list_outgoing(SourceRef.material(parent.id)) == []
        with pytest.raises(RelationshipNotFoundError):
            repo.unlink(relationship_id)


class TestReplaceOutgoing:

    def test_replace_returns_exactly_new_set(self, repo, make_material):
        parent = make_material("pdf")
        old = make_material("pdf")
        new_a = make_material("pdf", name="a")
        new_b = make_material("pdf", name="b")
        repo.link(SourceRef.material(parent.id), old.id)

        related = repo.replace_outgoing(SourceRef.material(parent.id), [
            RelationshipItem(target_material_id=new_b.id, display_order=2),
            RelationshipItem(target_material_id=new_a.id, display_order=1),
        ])
        assert [item.name for item in related] == ["a", "b"]

    def test_duplicates_keep_first(self, repo, make_material):
        parent = make_material("pdf")
        child = make_material("pdf")

        related = repo.replace_outgoing(SourceRef.material(parent.id), [
            RelationshipItem(target_material_id=child.id, relationship_type="first"),
            RelationshipItem(target_material_id=child.id, relationship_type="second"),
        ])
        assert len(related) == 1
        assert related[0].relationship_type == "first"

    def test_empty_list_clears(self, repo, make_material):
        parent = make_material("pdf")
        child = make_material("pdf")
        repo.link(SourceRef.material(parent.id), child.id)

        assert repo.replace_outgoing(SourceRef.material(parent.id), []) == []

    def test_cycle_rolls_back_whole_replacement(self, repo, make_material):
        a, b, c = (make_material("pdf") for _ in range(3))
        repo.link(SourceRef.material(a.id), b.id)
        repo.link(SourceRef.material(b.id), c.id)

        with pytest.raises(ValidationFailureError):
            repo.replace_outgoing(SourceRef.material(c.id), [RelationshipItem(target_material_id=a.id)])

        with pytest.raises(ValidationFailureError):
            repo.replace_outgoing(SourceRef.material(b.id), [
                RelationshipItem(target_material_id=a.id),
            ])
        assert [item.id for item in repo.list_outgoing(SourceRef.material(b.id))] == [c.id]

    def test_missing_target_changes_nothing(self, repo, make_material):
        parent = make_material("pdf")
        child = make_material("pdf")
        repo.link(SourceRef.material(parent.id), child.id)

        with pytest.raises(MaterialNotFoundError):
            repo.replace_outgoing(SourceRef.material(parent.id), [RelationshipItem(target_material_id=4242)])
        assert [item.id for item in repo.list_outgoing(SourceRef.material(parent.id))] == [child.id]


class TestReorder:

    def test_reorder(self, repo, make_material):
        parent = make_material("pdf")
        x = make_material("pdf", name="x")
        y = make_material("pdf", name="y")
        repo.link(SourceRef.material(parent.id), x.id, display_order=1)
        repo.link(SourceRef.material(parent.id), y.id, display_order=2)

        related = repo.reorder(SourceRef.material(parent.id), {x.id: 5, y.id: 0})
        assert [item.name for item in related] == ["y", "x"]

    def test_reorder_unknown_target(self, repo, make_material):
        parent = make_material("pdf")
        stranger = make_material("pdf")
        with pytest.raises(ValidationFailureError) as exc_info:
            repo.reorder(SourceRef.material(parent.id), {stranger.id: 1})
        assert exc_info.value.violations[0]["code"] == "TARGET_NOT_LINKED"


class TestHierarchy:

    def _diamond(self, repo, make_material):
        root = make_material("pdf", name="root")
        left = make_material("pdf", name="left")
        right = make_material("pdf", name="right")
        leaf = make_material("pdf", name="leaf")
        repo.link(SourceRef.material(root.id), left.id, display_order=1)
        repo.link(SourceRef.material(root.id), right.id, display_order=2)
        repo.link(SourceRef.material(left.id), leaf.id)
        repo.link(SourceRef.material(right.id), leaf.id)
        return root

    def test_shared_child_listed_once(self, repo, make_material):
        root = self._diamond(repo, make_material)
        hierarchy = repo.hierarchy(root.id)

        assert hierarchy.total_materials == 4
        assert hierarchy.total_depth == 2
        left, right = hierarchy.root.children
        assert [child.name for child in left.children] == ["leaf"]
        assert right.children == []

    def test_max_depth(self, repo, make_material):
        root = self._diamond(repo, make_material)
        hierarchy = repo.hierarchy(root.id, max_depth=1)

        assert hierarchy.total_depth == 1
        assert hierarchy.total_materials == 3
        assert all(child.children == [] for child in hierarchy.root.children)

    def test_leaf_hierarchy(self, repo, make_material):
        alone = make_material("pdf")
        hierarchy = repo.hierarchy(alone.id)
        assert hierarchy.total_depth == 0
        assert hierarchy.total_materials == 1
