from fastapi import APIRouter, Request
from datetime import datetime, timezone

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/ready")
def readiness_check(request: Request):
    catalog = getattr(request.app.state, "catalog", None)
    return {
        "ready": catalog is not None,
        "questions": len(catalog) if catalog is not None else 0,
        "version": "0.1.0",
    }
