"""
Router de progreso y reportes de quiz

- GET /progress/me                         overview of the current user
- GET /progress/programs/{id}              program progress of the current user
- GET /progress/learning-paths/{id}        learning-path progress of the current user
- GET /quiz-progress/materials/{id}        per-material quiz report (all users)
- GET /quiz-progress/programs/{id}         per-program quiz report (all users)
- GET /quiz-progress/learning-paths/{id}   per-learning-path quiz report (all users)
- GET /quiz-progress                       every quiz of the tenant (all users)
"""
from fastapi import APIRouter, Depends

from ...models.progress import (
    LearningPathProgress,
    LearningPathQuizReport,
    ProgramProgress,
    ProgramQuizReport,
    QuizMaterialReport,
    QuizOverviewReport,
    UserProgressOverview,
)
from ...services.progress_reports import ProgressReportService
from ..deps import get_current_user, get_report_service
from ..schemas.common import APIResponse

router = APIRouter(tags=["Progress"])


@router.get("/progress/me", response_model=APIResponse[UserProgressOverview], summary="Mi progreso")
def get_my_progress(
    user_id: str = Depends(get_current_user),
    reports: ProgressReportService = Depends(get_report_service),
) -> APIResponse[UserProgressOverview]:
    return APIResponse(success=True, data=reports.user_overview(user_id))


@router.get(
    "/progress/programs/{program_id}",
    response_model=APIResponse[ProgramProgress],
    summary="Progreso en un programa",
)
def get_program_progress(
    program_id: int,
    user_id: str = Depends(get_current_user),
    reports: ProgressReportService = Depends(get_report_service),
) -> APIResponse[ProgramProgress]:
    return APIResponse(success=True, data=reports.program_progress(user_id, program_id))


@router.get(
    "/progress/learning-paths/{learning_path_id}",
    response_model=APIResponse[LearningPathProgress],
    summary="Progreso en un learning path",
)
def get_learning_path_progress(
    learning_path_id: int,
    user_id: str = Depends(get_current_user),
    reports: ProgressReportService = Depends(get_report_service),
) -> APIResponse[LearningPathProgress]:
    return APIResponse(success=True, data=reports.learning_path_progress(user_id, learning_path_id))


@router.get(
    "/quiz-progress/materials/{material_id}",
    response_model=APIResponse[QuizMaterialReport],
    summary="Reporte de un quiz",
)
def get_material_quiz_report(
    material_id: int,
    _current_user: str = Depends(get_current_user),
    reports: ProgressReportService = Depends(get_report_service),
) -> APIResponse[QuizMaterialReport]:
    return APIResponse(success=True, data=reports.material_quiz_report(material_id))


@router.get(
    "/quiz-progress/programs/{program_id}",
    response_model=APIResponse[ProgramQuizReport],
    summary="Reporte de quizzes de un programa",
)
def get_program_quiz_report(
    program_id: int,
    _current_user: str = Depends(get_current_user),
    reports: ProgressReportService = Depends(get_report_service),
) -> APIResponse[ProgramQuizReport]:
    return APIResponse(success=True, data=reports.program_quiz_report(program_id))


@router.get(
    "/quiz-progress/learning-paths/{learning_path_id}",
    response_model=APIResponse[LearningPathQuizReport],
    summary="Reporte de quizzes de un learning path",
)
def get_learning_path_quiz_report(
    learning_path_id: int,
    _current_user: str = Depends(get_current_user),
    reports: ProgressReportService = Depends(get_report_service),
) -> APIResponse[LearningPathQuizReport]:
    return APIResponse(success=True, data=reports.learning_path_quiz_report(learning_path_id))


@router.get("/quiz-progress", response_model=APIResponse[QuizOverviewReport], summary="Reporte de todos los quizzes")
def get_quiz_report(
    _current_user: str = Depends(get_current_user),
    reports: ProgressReportService = Depends(get_report_service),
) -> APIResponse[QuizOverviewReport]:
    return APIResponse(success=True, data=reports.quiz_report())
