"""
Dependencias de FastAPI

- get_db: one SQLAlchemy session per request
- get_current_user: opaque user id from the X-User-Id header (set by the
  identity provider in front of this service)
- repository / service factories bound to the request session
"""
from typing import Generator, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from ..core.config import Settings, get_settings
from ..database.config import get_db_session
from ..database.repositories import MaterialRepository, RelationshipRepository
from ..services.material_completion import MaterialCompletionService
from ..services.progress_reports import ProgressReportService
from ..services.submission_processor import QuizSubmissionProcessor
from .exceptions import AuthenticationError


def get_db() -> Generator[Session, None, None]:
    yield from get_db_session()


def get_app_settings() -> Settings:
    return get_settings()


def get_current_user(x_user_id: Optional[str] = Header(default=None, alias="X-User-Id")) -> str:
    if x_user_id is None or not x_user_id.strip():
        raise AuthenticationError()
    return x_user_id.strip()


def get_material_repository(db: Session = Depends(get_db)) -> MaterialRepository:
    return MaterialRepository(db)


def get_relationship_repository(db: Session = Depends(get_db)) -> RelationshipRepository:
    return RelationshipRepository(db)


def get_submission_processor(db: Session = Depends(get_db)) -> QuizSubmissionProcessor:
    return QuizSubmissionProcessor(db)


def get_report_service(db: Session = Depends(get_db)) -> ProgressReportService:
    return ProgressReportService(db)


def get_completion_service(db: Session = Depends(get_db)) -> MaterialCompletionService:
    return MaterialCompletionService(db)
