"""
Test configuration: in-memory SQLite shared through a StaticPool.

Environment variables are set before any project module is imported so the
process-wide settings never point at a real database.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Any, Callable, Dict

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from xrtraining.database import models  # noqa: F401
from xrtraining.database.base import Base
from xrtraining.database.config import configure_engine
from xrtraining.database.repositories import MaterialRepository, ProgramRepository
from xrtraining.models.material import MaterialBase, QuizMaterial, parse_material

USER_ID = "user-123"


@pytest.fixture
def engine():
    engine = configure_engine(create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    ))
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    from xrtraining.api.deps import get_db
    from xrtraining.api.main import create_app

    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"X-User-Id": USER_ID}


def quiz_payload(name: str = "Safety quiz") -> Dict[str, Any]:
    """Quiz with one question of each type; choice scores 10, boolean scores 5"""
    return {
        "type": "quiz",
        "name": name,
        "evaluation_mode": True,
        "min_score": 10,
        "questions": [
            {
                "question_number": 1,
                "question_type": "Multiple choice",
                "text": "Which valve closes first?",
                "score": 10,
                "answers": [
                    {"text": "Inlet", "correct_answer": True},
                    {"text": "Outlet", "correct_answer": False},
                    {"text": "Bypass", "correct_answer": False},
                ],
            },
            {
                "question_number": 2,
                "question_type": "True or False",
                "text": "Gloves are mandatory",
                "score": 5,
                "answers": [
                    {"text": "True", "correct_answer": True},
                    {"text": "False", "correct_answer": False},
                ],
            },
            {
                "question_number": 3,
                "question_type": "Open",
                "text": "Describe the procedure",
            },
            {
                "question_number": 4,
                "question_type": "Scale",
                "text": "How confident are you?",
                "scale_config": {"min": 1, "max": 5},
            },
        ],
    }


@pytest.fixture
def quiz_data() -> Dict[str, Any]:
    return quiz_payload()


@pytest.fixture
def material_repo(db) -> MaterialRepository:
    return MaterialRepository(db)


@pytest.fixture
def program_repo(db) -> ProgramRepository:
    return ProgramRepository(db)


@pytest.fixture
def make_material(material_repo) -> Callable[..., MaterialBase]:
    """Create and persist a material from a wire dict (defaults to a PDF)"""
    def _make(material_type: str = "pdf", **fields) -> MaterialBase:
        payload = {"type": material_type, "name": fields.pop("name", f"{material_type} material")}
        payload.update(fields)
        return material_repo.create(parse_material(payload))
    return _make


@pytest.fixture
def make_quiz(material_repo) -> Callable[..., QuizMaterial]:
    def _make(name: str = "Safety quiz") -> QuizMaterial:
        return material_repo.create(parse_material(quiz_payload(name)))
    return _make
