# backend/pawledger/routes/prometheus.py
"""
Prometheus metrics endpoint.

Public, following standard Prometheus practice. Exposes the service timings
recorded by ``@BaseService.measure_operation`` and the booking and checkout
counters.
"""

from fastapi import APIRouter, Response

from ..monitoring.prometheus_metrics import prometheus_metrics

router = APIRouter()


@router.get("/metrics/prometheus", include_in_schema=False, response_class=Response, response_model=None)
def get_prometheus_metrics() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
    )
