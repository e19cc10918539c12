"""
Router de materiales relacionados

- GET    /materials/{id}/related                                  material-level links
- PUT    /materials/{id}/related                                  replace material-level links
- GET    /materials/{id}/parents                                  sources pointing at the material
- GET    /materials/{id}/hierarchy                                nested material-level tree
- GET    /materials/{id}/subcomponents/{kind}/{sub_id}/related    links of one subcomponent
- PUT    /materials/{id}/subcomponents/{kind}/{sub_id}/related    replace them as a set
- POST   /relationships                                           create one link
- DELETE /relationships/{id}
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ...core.config import Settings
from ...database.repositories import RelationshipRepository
from ...models.material import RelatedMaterial, SubcomponentKind
from ...models.relationships import IncomingRelationship, MaterialHierarchy, SourceRef
from ..deps import get_app_settings, get_current_user, get_relationship_repository
from ..schemas.common import APIResponse
from ..schemas.relationships import (
    CreateRelationshipRequest,
    CreateRelationshipResponse,
    ReplaceRelatedRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Related Materials"])


@router.get(
    "/materials/{material_id}/related",
    response_model=APIResponse[List[RelatedMaterial]],
    summary="Materiales relacionados",
)
def list_related(
    material_id: int,
    repo: RelationshipRepository = Depends(get_relationship_repository),
    _current_user: str = Depends(get_current_user),
) -> APIResponse[List[RelatedMaterial]]:
    related = repo.list_outgoing(SourceRef.material(material_id))
    return APIResponse(success=True, data=related, message=f"{len(related)} related material(s)")


@router.put(
    "/materials/{material_id}/related",
    response_model=APIResponse[List[RelatedMaterial]],
    summary="Reemplazar materiales relacionados",
)
def replace_related(
    material_id: int,
    request: ReplaceRelatedRequest,
    repo: RelationshipRepository = Depends(get_relationship_repository),
    _current_user: str = Depends(get_current_user),
) -> APIResponse[List[RelatedMaterial]]:
    related = repo.replace_outgoing(SourceRef.material(material_id), request.items)
    return APIResponse(success=True, data=related, message=f"{len(related)} related material(s)")


@router.get(
    "/materials/{material_id}/parents",
    response_model=APIResponse[List[IncomingRelationship]],
    summary="Materiales que referencian a este material",
)
def list_parents(
    material_id: int,
    repo: RelationshipRepository = Depends(get_relationship_repository),
    _current_user: str = Depends(get_current_user),
) -> APIResponse[List[IncomingRelationship]]:
    parents = repo.list_incoming(material_id)
    return APIResponse(success=True, data=parents)


@router.get(
    "/materials/{material_id}/hierarchy",
    response_model=APIResponse[MaterialHierarchy],
    summary="Jerarquía de materiales",
)
def get_hierarchy(
    material_id: int,
    max_depth: Optional[int] = Query(default=None, ge=1, le=20),
    settings: Settings = Depends(get_app_settings),
    repo: RelationshipRepository = Depends(get_relationship_repository),
    _current_user: str = Depends(get_current_user),
) -> APIResponse[MaterialHierarchy]:
    hierarchy = repo.hierarchy(material_id, max_depth or settings.hierarchy_max_depth)
    return APIResponse(success=True, data=hierarchy)


@router.get(
    "/materials/{material_id}/subcomponents/{kind}/{subcomponent_id}/related",
    response_model=APIResponse[List[RelatedMaterial]],
    summary="Materiales relacionados de un subcomponente",
)
def list_subcomponent_related(
    material_id: int,
    kind: SubcomponentKind,
    subcomponent_id: int,
    repo: RelationshipRepository = Depends(get_relationship_repository),
    _current_user: str = Depends(get_current_user),
) -> APIResponse[List[RelatedMaterial]]:
    related = repo.list_outgoing(SourceRef.subcomponent(material_id, kind, subcomponent_id))
    return APIResponse(success=True, data=related)


@router.put(
    "/materials/{material_id}/subcomponents/{kind}/{subcomponent_id}/related",
    response_model=APIResponse[List[RelatedMaterial]],
    summary="Reemplazar materiales relacionados de un subcomponente",
)
def replace_subcomponent_related(
    material_id: int,
    kind: SubcomponentKind,
    subcomponent_id: int,
    request: ReplaceRelatedRequest,
    repo: RelationshipRepository = Depends(get_relationship_repository),
    _current_user: str = Depends(get_current_user),
) -> APIResponse[List[RelatedMaterial]]:
    related = repo.replace_outgoing(SourceRef.subcomponent(material_id, kind, subcomponent_id), request.items)
    return APIResponse(success=True, data=related, message=f"{len(related)} related material(s)")


@router.post(
    "/relationships",
    response_model=CreateRelationshipResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Crear relación",
)
def create_relationship(
    request: CreateRelationshipRequest,
    repo: RelationshipRepository = Depends(get_relationship_repository),
    current_user: str = Depends(get_current_user),
) -> CreateRelationshipResponse:
    relationship_id = repo.link(
        request.source_ref(),
        request.target_material_id,
        relationship_type=request.relationship_type,
        display_order=request.display_order,
    )
    logger.debug("Relationship created via API", extra={"relationship_id": relationship_id, "user_id": current_user})
    return CreateRelationshipResponse(id=relationship_id)


@router.delete(
    "/relationships/{relationship_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Eliminar relación",
)
def delete_relationship(
    relationship_id: int,
    repo: RelationshipRepository = Depends(get_relationship_repository),
    _current_user: str = Depends(get_current_user),
) -> Response:
    repo.unlink(relationship_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
