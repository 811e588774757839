"""Health check endpoint."""

from fastapi import APIRouter
from typing import Dict, Any

from ...infrastructure.utils import utc_now

router = APIRouter()


@router.get("/health")
@router.get("/api/health")
def health() -> Dict[str, Any]:
    return {"status": "ok", "message": "Handy API is running", "timestamp": utc_now().isoformat()}
