"""
Router de programas

- POST /programs/{id}/submit    mark several materials of the program complete
"""
from fastapi import APIRouter, Depends

from ...models.submission import BulkCompleteRequest, BulkCompleteResult
from ...services.material_completion import MaterialCompletionService
from ..deps import get_completion_service, get_current_user

router = APIRouter(prefix="/programs", tags=["Programs"])


@router.post(
    "/{program_id}/submit",
    response_model=BulkCompleteResult,
    summary="Completar materiales de un programa",
    description="""
    Marks every listed material complete for the current user in one
    transaction. Materials outside the program are reported in `results`
    with `success=false`; the others still complete.
    """,
)
def bulk_complete_materials(
    program_id: int,
    request: BulkCompleteRequest,
    user_id: str = Depends(get_current_user),
    service: MaterialCompletionService = Depends(get_completion_service),
) -> BulkCompleteResult:
    return service.bulk_mark_complete(user_id, program_id, request.material_ids)
