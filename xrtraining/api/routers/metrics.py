"""
Endpoint de Prometheus Metrics.

Expone métricas de observabilidad para scraping de Prometheus.

Endpoint:
- GET /metrics - Métricas en formato Prometheus
"""

import logging
from fastapi import APIRouter, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Monitoring"])


@router.get(
    "/metrics",
    summary="Prometheus Metrics",
    description="""
    Expone métricas del servicio en formato Prometheus.

    **Métricas disponibles**:
    - `xr_training_quiz_submissions_total{status}` - Entregas de quiz procesadas
    - `xr_training_question_errors_total{error_code}` - Errores por pregunta
    - `xr_training_relationship_replacements_total` - Listas de relacionados reemplazadas
    - `xr_training_materials_written_total{operation,material_type}` - Materiales creados/reemplazados
    - `xr_training_materials_completed_total{mode}` - Materiales marcados como completados

    **Configuración de Prometheus**:
    ```yaml
    scrape_configs:
      - job_name: 'xr-training-core'
        scrape_interval: 15s
        static_configs:
          - targets: ['localhost:8000']
    ```
    """,
    response_class=Response,
    responses={
        200: {
            "description": "Métricas en formato Prometheus",
            "content": {
                "text/plain": {
                    "example": """# HELP xr_training_quiz_submissions_total Quiz submissions processed
# TYPE xr_training_quiz_submissions_total counter
xr_training_quiz_submissions_total{status="success"} 42.0
"""
                }
            }
        }
    }
)
async def get_metrics() -> Response:
    """
    Expone métricas de Prometheus para scraping.

    Returns:
        Response con métricas en formato text/plain
    """
    metrics_output = generate_latest()
    logger.debug("Exported Prometheus metrics", extra={"size_bytes": len(metrics_output)})
    return Response(content=metrics_output, media_type=CONTENT_TYPE_LATEST)
