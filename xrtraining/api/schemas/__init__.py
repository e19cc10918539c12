"""
API schemas (Pydantic). Domain models in xrtraining.models are reused directly
where they already are the wire contract.
"""
from .common import APIResponse, ErrorResponse, HealthResponse
from .relationships import CreateRelationshipRequest, CreateRelationshipResponse, ReplaceRelatedRequest

__all__ = [
    "APIResponse",
    "ErrorResponse",
    "HealthResponse",
    "CreateRelationshipRequest",
    "CreateRelationshipResponse",
    "ReplaceRelatedRequest",
]
