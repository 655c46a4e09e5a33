import logging
import os
import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.core.database import SessionLocal, database_reachable

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)

_started_at = time.time()


def _uptime() -> int:
    return int(max(0, time.time() - _started_at))


def _storage_writable() -> bool:
    for directory in (settings.uploads_dir, settings.packets_dir):
        if not directory.is_dir() or not os.access(directory, os.W_OK):
            logger.warning("Storage directory %s is missing or read-only", directory)
            return False
    return True


@router.get("/healthz")
def healthz():
    return {
        "status": "ok",
        "uptime_seconds": _uptime(),
        "service": settings.app_name,
        "stripe_configured": settings.stripe_configured,
    }


@router.get("/readyz")
def readyz():
    db = SessionLocal()
    try:
        checks = {"database": database_reachable(db), "storage": _storage_writable()}
    finally:
        db.close()

    failed = sorted(name for name, ok in checks.items() if not ok)
    if failed:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "error": f"unavailable: {', '.join(failed)}"},
        )
    return {"status": "ready", "uptime_seconds": _uptime()}
