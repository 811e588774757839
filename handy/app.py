"""FastAPI application for the Handy volunteer assistance service."""

from concurrent.futures import Executor
from typing import Optional

from dotenv import load_dotenv

from .infrastructure.config import get_int_env_var, get_project_root

# Load env as early as possible, before importing modules that read env at import-time
env_path = get_project_root() / ".env"
if env_path.exists():
    load_dotenv(env_path)

from fastapi import FastAPI

from .api.middleware.cors import setup_cors
from .api.middleware.errors import setup_error_handlers
from .api.middleware.rate_limit import setup_rate_limiting
from .api.routes import admin, auth, health, notifications, redeem, reports
from .database.db import init_db
from .domain.notifications.notifier import ExpoPushNotifier, Notifier
from .domain.redeem.service import RedemptionService
from .domain.reports.service import ReportLifecycleService
from .infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)


def create_app(
    notifier: Optional[Notifier] = None,
    redemption_service: Optional[RedemptionService] = None,
    initialize_db: bool = True,
    notification_executor: Optional[Executor] = None,
) -> FastAPI:
    """Build the application. Collaborators can be swapped in for tests."""
    setup_logging()
    if initialize_db:
        init_db()

    app = FastAPI(title="Handy API")
    notifier = notifier or ExpoPushNotifier()
    app.state.notifier = notifier
    app.state.report_service = ReportLifecycleService(notifier, executor=notification_executor)
    app.state.redemption_service = redemption_service or RedemptionService()

    setup_cors(app)
    setup_rate_limiting(app)
    setup_error_handlers(app)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(reports.router)
    app.include_router(redeem.router)
    app.include_router(notifications.router)
    app.include_router(admin.router)

    @app.on_event("shutdown")
    def _stop_notifications() -> None:
        app.state.report_service.shutdown(wait=False)

    logger.info("Handy API ready")
    return app


if __name__ == "__main__":
    import uvicorn

    port = get_int_env_var("PORT", 3000)
    uvicorn.run(create_app(), host="0.0.0.0", port=port)
