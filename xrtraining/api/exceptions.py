"""
Excepciones de la API REST y handlers

Domain errors (xrtraining.core.exceptions) and API-only errors share one
JSON body: {"detail", "error_code", "extra"}. Request validation failures are
answered with 400, not FastAPI's default 422.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ..core.exceptions import TrainingCoreError

logger = logging.getLogger(__name__)


class TrainingAPIException(HTTPException):
    """Excepción base para errores propios de la capa HTTP"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: Optional[Dict[str, str]] = None,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code
        self.extra = extra or {}


class AuthenticationError(TrainingAPIException):
    """Error de autenticación"""

    def __init__(self, detail: str = "Missing user identity"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="AUTHENTICATION_FAILED",
        )


def _error_body(detail: str, error_code: str, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {"detail": detail, "error_code": error_code, "extra": jsonable_encoder(extra or {})}


async def training_error_handler(request: Request, exc: TrainingCoreError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"{exc.error_code}: {exc.detail}",
        extra={"path": request.url.path, "error_code": exc.error_code, "status_code": exc.status_code},
    )
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.detail, exc.error_code, exc.extra))


async def api_exception_handler(request: Request, exc: TrainingAPIException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail), exc.error_code or "HTTP_ERROR", exc.extra),
        headers=exc.headers,
    )


async def request_validation_handler(request: Request, exc: Exception) -> JSONResponse:
    errors = exc.errors() if isinstance(exc, (RequestValidationError, ValidationError)) else []
    logger.info(
        "Request validation failed",
        extra={"path": request.url.path, "errors": len(errors)},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(
            "Request validation failed",
            "REQUEST_VALIDATION_FAILED",
            {"errors": [
                {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
                for error in errors
            ]},
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TrainingCoreError, training_error_handler)
    app.add_exception_handler(TrainingAPIException, api_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationError, request_validation_handler)
