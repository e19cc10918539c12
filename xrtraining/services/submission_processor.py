"""
Quiz submission processor

One submission runs through these stages:

    RECEIVED    material exists, is a quiz, program membership resolved
    VALIDATING  unknown question ids collected as per-question errors,
                answer shapes checked against question types
    EVALUATING  evaluator per valid question, total score accumulated
    AGGREGATING history snapshot composed
    PERSISTED   history + summary upserted and progress derived, one transaction

Anything raised before PERSISTED leaves no trace in the database. A storage
failure rolls back both rows and surfaces as PersistenceError; it is not
retried here.

Usage:
    processor = QuizSubmissionProcessor(db)
    result = processor.submit(user_id, material_id, SubmissionRequest(...))
"""
import logging
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.constants import utc_now
from ..core.exceptions import (
    AnswerShapeError,
    InvalidTypeError,
    MaterialNotInProgramError,
    NotFoundError,
    PersistenceError,
    ValidationFailureError,
)
from ..core.metrics import question_errors_total, quiz_submissions_total
from ..database.repositories import MaterialRepository, ProgramRepository, UserMaterialRepository
from ..database.transaction import transaction
from ..models.material import QuizMaterial, QuizQuestion
from ..models.question_types import CHOICE_TYPES, QuestionType, parse_question_type
from ..models.submission import (
    HistoryAnswer,
    HistoryRecord,
    QuestionError,
    SubmissionRequest,
    SubmissionResult,
    SubmittedAnswer,
)
from .answer_evaluator import evaluate_answer
from .progress_aggregator import ProgressAggregator

logger = logging.getLogger(__name__)

QUESTION_NOT_FOUND = "QUESTION_NOT_FOUND"
DUPLICATE_QUESTION = "DUPLICATE_QUESTION"


class SubmissionStage(str, Enum):
    RECEIVED = "received"
    VALIDATING = "validating"
    EVALUATING = "evaluating"
    AGGREGATING = "aggregating"
    PERSISTED = "persisted"


def check_answer_shape(question: QuizQuestion, answer: SubmittedAnswer) -> None:
    """Raise AnswerShapeError when the answer lacks the field its question type needs"""
    question_type = parse_question_type(question.question_type)
    if question_type in CHOICE_TYPES and answer.answer_ids is None:
        raise AnswerShapeError(question.id, question_type.value, "answer_ids")
    if question_type == QuestionType.SCALE and answer.value is None:
        raise AnswerShapeError(question.id, question_type.value, "value")
    if question_type == QuestionType.TEXT and answer.text is None:
        raise AnswerShapeError(question.id, question_type.value, "text")


class QuizSubmissionProcessor:
    """Validates, evaluates and persists one quiz submission"""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.materials = MaterialRepository(db_session)
        self.programs = ProgramRepository(db_session)
        self.store = UserMaterialRepository(db_session)
        self.aggregator = ProgressAggregator(db_session)

    def _enter(self, stage: SubmissionStage, user_id: str, material_id: int) -> None:
        logger.debug(
            f"Submission stage: {stage.value}",
            extra={"stage": stage.value, "user_id": user_id, "material_id": material_id},
        )

    def submit(self, user_id: str, material_id: int, request: SubmissionRequest) -> SubmissionResult:
        """
        Process a submission and return the post-submission figures.

        Raises:
            MaterialNotFoundError / ProgramNotFoundError: 404
            NotAQuizError / MaterialNotInProgramError / AnswerShapeError: 400
            PersistenceError: 500, nothing written
        """
        try:
            result = self._submit(user_id, material_id, request)
        except NotFoundError:
            quiz_submissions_total.labels(status="not_found").inc()
            raise
        except (InvalidTypeError, ValidationFailureError):
            quiz_submissions_total.labels(status="invalid").inc()
            raise
        except PersistenceError:
            quiz_submissions_total.labels(status="persistence_error").inc()
            raise
        quiz_submissions_total.labels(status="success").inc()
        return result

    def _resolve_program(self, material_id: int, program_id: Optional[int]) -> Optional[int]:
        """Check membership and return the learning path the material belongs through"""
        if program_id is None:
            return None
        self.programs.require_program(program_id)
        if not self.programs.contains_material(program_id, material_id):
            raise MaterialNotInProgramError(material_id, program_id)
        learning_path_id = self.programs.resolve_learning_path(program_id, material_id)
        if learning_path_id is not None:
            logger.info(
                "Material belongs to learning path within program",
                extra={"material_id": material_id, "learning_path_id": learning_path_id, "program_id": program_id},
            )
        return learning_path_id

    def _validate(
        self, quiz: QuizMaterial, request: SubmissionRequest
    ) -> Tuple[List[Tuple[QuizQuestion, SubmittedAnswer]], List[QuestionError]]:
        valid: List[Tuple[QuizQuestion, SubmittedAnswer]] = []
        errors: List[QuestionError] = []
        seen = set()

        for submission in request.questions:
            question = quiz.find_question(submission.question_id)
            if question is None:
                errors.append(QuestionError(
                    question_id=submission.question_id,
                    error_code=QUESTION_NOT_FOUND,
                    message=f"Question '{submission.question_id}' is not part of quiz '{quiz.id}'",
                ))
                continue
            if question.id in seen:
                errors.append(QuestionError(
                    question_id=submission.question_id,
                    error_code=DUPLICATE_QUESTION,
                    message=f"Question '{submission.question_id}' was answered more than once",
                ))
                continue
            check_answer_shape(question, submission.answer)
            seen.add(question.id)
            valid.append((question, submission.answer))

        for error in errors:
            question_errors_total.labels(error_code=error.error_code).inc()
        return valid, errors

    def _submit(self, user_id: str, material_id: int, request: SubmissionRequest) -> SubmissionResult:
        self._enter(SubmissionStage.RECEIVED, user_id, material_id)
        quiz = self.materials.get_quiz(material_id)
        program_id = request.program_id
        learning_path_id = self._resolve_program(material_id, program_id)

        self._enter(SubmissionStage.VALIDATING, user_id, material_id)
        valid, errors = self._validate(quiz, request)

        self._enter(SubmissionStage.EVALUATING, user_id, material_id)
        answers: List[HistoryAnswer] = []
        total_score = Decimal("0")
        for question, answer in valid:
            evaluation = evaluate_answer(question, answer)
            total_score += evaluation.score_awarded
            answers.append(HistoryAnswer(
                question_id=question.id,
                type=question.question_type,
                answer_ids=answer.answer_ids,
                value=answer.value,
                text=answer.text,
                score_awarded=evaluation.score_awarded,
                is_correct=evaluation.is_correct,
            ))

        self._enter(SubmissionStage.AGGREGATING, user_id, material_id)
        record = HistoryRecord(submitted_at=utc_now(), answers=answers, total_score=total_score)
        learning_path_progress: Optional[int] = None

        try:
            with transaction(self.db, f"Submit quiz {material_id} for user {user_id}"):
                history, summary = self.store.lock_pair(user_id, material_id)
                self.store.upsert_history(
                    user_id, material_id, record.model_dump(mode="json"),
                    program_id=program_id, learning_path_id=learning_path_id, existing=history,
                )
                summary = self.store.upsert_summary(
                    user_id, material_id, total_score,
                    program_id=program_id, learning_path_id=learning_path_id, existing=summary,
                )
                # Progress queries must see this submission's summary row
                self.db.flush()
                progress = self.aggregator.material_progress(user_id, material_id, program_id)
                if learning_path_id is not None:
                    learning_path_progress = self.aggregator.learning_path_progress(user_id, learning_path_id)
                summary.progress = progress
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to persist submission: {e}",
                extra={"user_id": user_id, "material_id": material_id},
            )
            raise PersistenceError("submit quiz answers", str(e)) from e

        self._enter(SubmissionStage.PERSISTED, user_id, material_id)
        logger.info(
            "Quiz answers submitted",
            extra={
                "user_id": user_id,
                "material_id": material_id,
                "score": str(total_score),
                "progress": progress,
                "learning_path_id": learning_path_id,
                "learning_path_progress": learning_path_progress,
                "question_errors": len(errors),
            },
        )

        message = None
        if errors:
            message = f"{len(errors)} question(s) could not be evaluated"
        return SubmissionResult(
            success=True,
            material_id=material_id,
            program_id=program_id,
            learning_path_id=learning_path_id,
            score=total_score,
            progress=progress,
            learning_path_progress=learning_path_progress,
            message=message,
            errors=errors,
        )
