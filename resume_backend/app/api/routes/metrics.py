"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint.

    Exposes all registered Prometheus metrics including:
    - composition_latency_ms{operation, outcome}
    - composition_operations_total{operation, outcome}
    - snippet_relationships_migrated_total
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
