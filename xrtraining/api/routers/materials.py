"""
Router de materiales

- POST   /materials                    create a material (any type)
- GET    /materials/{id}               read with subcomponents and related lists
- PUT    /materials/{id}               wholesale replacement, same type
- DELETE /materials/{id}
- POST   /materials/{id}/submit        submit quiz answers
- POST   /materials/{id}/complete      mark a material complete within a program
- GET    /materials/{id}/submission    stored submission of the current user
"""
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Response, status

from ...database.repositories import MaterialRepository
from ...models.material import parse_material, serialize_material
from ...models.progress import SubmissionDetail
from ...models.submission import MarkCompleteRequest, MarkCompleteResult, SubmissionRequest, SubmissionResult
from ...services.material_completion import MaterialCompletionService
from ...services.progress_reports import ProgressReportService
from ...services.submission_processor import QuizSubmissionProcessor
from ..deps import (
    get_completion_service,
    get_current_user,
    get_material_repository,
    get_report_service,
    get_submission_processor,
)

router = APIRouter(prefix="/materials", tags=["Materials"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Crear material",
    description="Creates a material of any type. The `type` field selects the payload shape.",
)
def create_material(
    payload: Dict[str, Any] = Body(...),
    repo: MaterialRepository = Depends(get_material_repository),
    _current_user: str = Depends(get_current_user),
) -> Dict[str, Any]:
    material = parse_material(payload)
    return serialize_material(repo.create(material))


@router.get("/{material_id}", summary="Obtener material")
def get_material(
    material_id: int,
    repo: MaterialRepository = Depends(get_material_repository),
    _current_user: str = Depends(get_current_user),
) -> Dict[str, Any]:
    return serialize_material(repo.get(material_id))


@router.put(
    "/{material_id}",
    summary="Reemplazar material",
    description="Replaces payload and subcomponents as a whole. The material type cannot change.",
)
def replace_material(
    material_id: int,
    payload: Dict[str, Any] = Body(...),
    repo: MaterialRepository = Depends(get_material_repository),
    _current_user: str = Depends(get_current_user),
) -> Dict[str, Any]:
    material = parse_material(payload)
    return serialize_material(repo.replace(material_id, material))


@router.delete("/{material_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Eliminar material")
def delete_material(
    material_id: int,
    repo: MaterialRepository = Depends(get_material_repository),
    _current_user: str = Depends(get_current_user),
) -> Response:
    repo.delete(material_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{material_id}/submit",
    response_model=SubmissionResult,
    summary="Enviar respuestas de quiz",
    description="""
    Evaluates the answers of the current user, stores the submission and
    returns score and progress.

    Unknown question ids are reported in `errors` and skipped. An answer
    whose shape does not fit its question type rejects the whole submission.
    """,
)
def submit_quiz(
    material_id: int,
    request: SubmissionRequest,
    user_id: str = Depends(get_current_user),
    processor: QuizSubmissionProcessor = Depends(get_submission_processor),
) -> SubmissionResult:
    return processor.submit(user_id, material_id, request)


@router.post(
    "/{material_id}/complete",
    response_model=MarkCompleteResult,
    summary="Marcar material como completado",
    description="""
    Marks a material of a program complete for the current user without a
    quiz submission. An existing score is kept.
    """,
)
def complete_material(
    material_id: int,
    request: MarkCompleteRequest,
    user_id: str = Depends(get_current_user),
    service: MaterialCompletionService = Depends(get_completion_service),
) -> MarkCompleteResult:
    return service.mark_complete(user_id, material_id, request.program_id)


@router.get(
    "/{material_id}/submission",
    response_model=SubmissionDetail,
    summary="Detalle de la última entrega",
)
def get_submission(
    material_id: int,
    user_id: str = Depends(get_current_user),
    reports: ProgressReportService = Depends(get_report_service),
) -> SubmissionDetail:
    return reports.submission_detail(user_id, material_id)
