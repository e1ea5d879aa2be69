"""
Prometheus metrics endpoint for monitoring infrastructure.

This is a PUBLIC endpoint (no authentication required) following
standard Prometheus practices. It exposes the ledger's operation timings
and credit/cancellation counters.
"""

from time import monotonic
from typing import Optional, Tuple

from fastapi import APIRouter, Request, Response
from prometheus_client import Counter

from app.core.config import settings
from app.monitoring.prometheus_metrics import REGISTRY, prometheus_metrics

router = APIRouter()


_CACHE_TTL_SECONDS = 1.0
_metrics_cache: Optional[Tuple[float, bytes]] = None
_scrape_counter = Counter(
    "session_ledger_prometheus_scrapes_total",
    "Total number of Prometheus metrics scrapes",
    registry=REGISTRY,
)


def _get_metrics_payload(*, force_refresh: bool = False) -> bytes:
    """Return the exposition payload, reusing it for scrapes within the TTL."""
    global _metrics_cache

    now = monotonic()
    if settings.is_testing or force_refresh or _metrics_cache is None:
        payload = prometheus_metrics.get_metrics()
        _metrics_cache = (now, payload)
        return payload

    cached_ts, cached_payload = _metrics_cache
    if now - cached_ts < _CACHE_TTL_SECONDS:
        return cached_payload

    payload = prometheus_metrics.get_metrics()
    _metrics_cache = (now, payload)
    return payload


@router.get(
    "/metrics/prometheus", include_in_schema=False, response_class=Response, response_model=None
)
async def get_prometheus_metrics(request: Request) -> Response:
    """
    Expose Prometheus metrics for scraping.

    Returns:
        Response with Prometheus exposition format (text/plain)
    """
    refresh_flag = request.query_params.get("refresh", "").lower() in {"1", "true", "yes"}
    _scrape_counter.inc()
    metrics_data = _get_metrics_payload(force_refresh=refresh_flag)

    return Response(
        content=metrics_data,
        media_type=prometheus_metrics.get_content_type(),
        headers={
            "Cache-Control": "no-cache, no-store, must-revalidate",
            "Pragma": "no-cache",
            "Expires": "0",
        },
    )
