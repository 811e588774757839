"""CORS for the Expo web and dev-client origins."""

from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ...infrastructure.config import get_env_var
from ...infrastructure.logging import get_logger

logger = get_logger(__name__)

# Metro bundler and Expo web defaults
DEFAULT_ORIGINS = ["http://localhost:8081", "http://127.0.0.1:8081", "http://localhost:19006"]
ALLOWED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def parse_origins(raw: str) -> List[str]:
    """Comma separated origins. A wildcard is dropped since credentials are allowed."""
    origins = [o.strip().rstrip("/") for o in raw.split(",") if o.strip()]
    return [o for o in origins if o != "*"]


def setup_cors(app: FastAPI) -> List[str]:
    origins = parse_origins(get_env_var("APP_ORIGIN", "") or "") or DEFAULT_ORIGINS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=ALLOWED_METHODS,
        allow_headers=["Authorization", "Content-Type", "X-Admin-Key"],
    )
    logger.debug("CORS origins: %s", ", ".join(origins))
    return origins
