# profilesync/api/routers/metrics_router.py
"""
Prometheus metrics endpoint for the profile sync engine
"""

import logging

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

# Registers the engine's collectors when ENABLE_METRICS=true
from profilesync.infra.metrics import profile_sync_metrics  # noqa: F401

log = logging.getLogger("profilesync.metrics")

router = APIRouter(tags=["monitoring"])


@router.get("/metrics")
async def prometheus_metrics():
    """
    Prometheus metrics endpoint

    Exposes metrics in Prometheus text format for scraping:
    - Sync operations submitted and finished, retries scheduled
    - Propagation attempts and adapter latency per downstream system
    - Rollbacks by outcome, retained snapshots
    - Notification deliveries by channel

    Usage:
        curl http://localhost:5001/metrics
    """
    try:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
    except Exception as e:
        log.error(f"Failed to generate metrics: {e}", exc_info=True)
        return Response(
            content=f"# Error generating metrics: {str(e)}\n",
            media_type="text/plain",
            status_code=500
        )
