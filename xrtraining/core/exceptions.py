"""
Domain error taxonomy

Every failure path of the core raises one of these. They carry the HTTP
status the API layer answers with, a stable error code and structured
context, so the routers never need to translate them by hand.

- NotFoundError (404): material, question, program, relationship absent
- InvalidTypeError (400): wrong material type, answer shape mismatch
- ValidationFailureError (400): structural violations of a material
- PersistenceError (500): transactional write failed
"""
from typing import Any, Dict, List, Optional

from fastapi import status


class TrainingCoreError(Exception):
    """Base error for the training core"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        detail: str,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(detail)
        self.detail = detail
        if error_code is not None:
            self.error_code = error_code
        self.extra = extra or {}


class NotFoundError(TrainingCoreError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class MaterialNotFoundError(NotFoundError):
    """Material no encontrado"""

    def __init__(self, material_id: int):
        super().__init__(
            f"Material '{material_id}' not found",
            error_code="MATERIAL_NOT_FOUND",
            extra={"material_id": material_id},
        )


class SubcomponentNotFoundError(NotFoundError):
    def __init__(self, material_id: int, kind: str, subcomponent_id: int):
        super().__init__(
            f"{kind} '{subcomponent_id}' not found in material '{material_id}'",
            error_code="SUBCOMPONENT_NOT_FOUND",
            extra={
                "material_id": material_id,
                "subcomponent_kind": kind,
                "subcomponent_id": subcomponent_id,
            },
        )


class RelationshipNotFoundError(NotFoundError):
    def __init__(self, relationship_id: int):
        super().__init__(
            f"Relationship '{relationship_id}' not found",
            error_code="RELATIONSHIP_NOT_FOUND",
            extra={"relationship_id": relationship_id},
        )


class ProgramNotFoundError(NotFoundError):
    def __init__(self, program_id: int):
        super().__init__(
            f"Training program '{program_id}' not found",
            error_code="PROGRAM_NOT_FOUND",
            extra={"program_id": program_id},
        )


class LearningPathNotFoundError(NotFoundError):
    def __init__(self, learning_path_id: int):
        super().__init__(
            f"Learning path '{learning_path_id}' not found",
            error_code="LEARNING_PATH_NOT_FOUND",
            extra={"learning_path_id": learning_path_id},
        )


class SubmissionNotFoundError(NotFoundError):
    def __init__(self, user_id: str, material_id: int):
        super().__init__(
            f"No submission for material '{material_id}'",
            error_code="SUBMISSION_NOT_FOUND",
            extra={"user_id": user_id, "material_id": material_id},
        )


class InvalidTypeError(TrainingCoreError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "INVALID_TYPE"


class NotAQuizError(InvalidTypeError):
    """El material existe pero no es un quiz"""

    def __init__(self, material_id: int, material_type: str):
        super().__init__(
            f"Material '{material_id}' is of type '{material_type}', expected 'quiz'",
            error_code="MATERIAL_NOT_QUIZ",
            extra={"material_id": material_id, "material_type": material_type},
        )


class MaterialTypeChangeError(InvalidTypeError):
    def __init__(self, material_id: int, current_type: str, requested_type: str):
        super().__init__(
            f"Material '{material_id}' type is immutable "
            f"('{current_type}' cannot become '{requested_type}')",
            error_code="MATERIAL_TYPE_IMMUTABLE",
            extra={
                "material_id": material_id,
                "current_type": current_type,
                "requested_type": requested_type,
            },
        )


class AnswerShapeError(InvalidTypeError):
    def __init__(self, question_id: int, question_type: str, expected: str):
        super().__init__(
            f"Answer for question '{question_id}' ({question_type}) must provide '{expected}'",
            error_code="ANSWER_SHAPE_MISMATCH",
            extra={
                "question_id": question_id,
                "question_type": question_type,
                "expected": expected,
            },
        )


class MaterialNotInProgramError(InvalidTypeError):
    def __init__(self, material_id: int, program_id: int):
        super().__init__(
            f"Material '{material_id}' is not part of program '{program_id}'",
            error_code="MATERIAL_NOT_IN_PROGRAM",
            extra={"material_id": material_id, "program_id": program_id},
        )


class ValidationFailureError(TrainingCoreError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_FAILED"

    def __init__(
        self,
        detail: str,
        violations: Optional[List[Dict[str, Any]]] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        payload = dict(extra or {})
        payload["violations"] = violations or []
        super().__init__(detail, extra=payload)
        self.violations = violations or []


class PersistenceError(TrainingCoreError):
    """Error en operación de base de datos"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "PERSISTENCE_FAILED"

    def __init__(self, operation: str, details: Optional[str] = None):
        super().__init__(
            f"Database operation failed: {operation}",
            extra={"operation": operation, "details": details},
        )
