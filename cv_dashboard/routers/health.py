"""Health check endpoint.

Returns service status including Supabase connectivity, tested against the
candidates view the dashboard reads from.
"""

import logging
from typing import Any

from fastapi import APIRouter
from starlette.responses import JSONResponse

from cv_dashboard.core.config import settings
from cv_dashboard.db.supabase import get_supabase

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check() -> Any:
    """Return health status with a real Supabase connectivity test.

    Returns 200 OK when healthy, 503 when the database is unreachable.
    """
    db_status = "disconnected"

    try:
        client = get_supabase()
        result = (
            client.table(settings.CANDIDATES_VIEW)
            .select("id")
            .limit(1)
            .execute()
        )
        if result is not None:
            db_status = "connected"
    except Exception:
        logger.warning("Health check: Supabase connection failed", exc_info=True)

    payload: dict[str, str] = {
        "status": "ok" if db_status == "connected" else "degraded",
        "database": db_status,
    }

    if db_status != "connected":
        return JSONResponse(status_code=503, content=payload)

    return payload
