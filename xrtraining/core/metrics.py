"""
Prometheus metrics for the training core

Exposed through GET /metrics (see api/routers/metrics.py).
"""
from prometheus_client import Counter

quiz_submissions_total = Counter(
    "xr_training_quiz_submissions_total",
    "Quiz submissions processed",
    ["status"],  # success, not_found, invalid, persistence_error
)

question_errors_total = Counter(
    "xr_training_question_errors_total",
    "Per-question errors collected during submissions",
    ["error_code"],
)

relationship_replacements_total = Counter(
    "xr_training_relationship_replacements_total",
    "Related-material lists replaced as a whole",
)

materials_written_total = Counter(
    "xr_training_materials_written_total",
    "Materials created or replaced through the authoring path",
    ["operation", "material_type"],
)

materials_completed_total = Counter(
    "xr_training_materials_completed_total",
    "Materials marked complete without a quiz submission",
    ["mode"],  # single, bulk
)
