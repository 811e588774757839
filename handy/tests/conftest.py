"""Shared fixtures: a fresh sqlite file per test, users, sessions and fake notifiers."""

from concurrent.futures import Executor, Future
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from handy.database import db as db_module
from handy.domain.notifications.notifier import Notifier
from handy.domain.redeem.service import RedemptionService
from handy.domain.reports.service import ReportLifecycleService
from handy.domain.user import service as users
from handy.domain.user.models import Session, UserType
from handy.infrastructure.auth import create_token

ADMIN_KEY = "test-admin-key"


class RecordingNotifier(Notifier):
    """Keeps every notification in memory."""

    def __init__(self):
        self.new_reports: List[Dict[str, Any]] = []
        self.user_messages: List[Dict[str, Any]] = []

    def notify_volunteers_of_new_report(self, report, reporter):
        self.new_reports.append({"report_id": report.id, "reporter": reporter.id if reporter else None})
        return []

    def notify_user(self, user_id, title, body, data=None):
        self.user_messages.append({"user_id": user_id, "title": title, "body": body, "data": data or {}})
        return []

    def messages_for(self, user_id: str) -> List[Dict[str, Any]]:
        return [m for m in self.user_messages if m["user_id"] == user_id]


class InlineExecutor(Executor):
    """Runs submitted work on the calling thread so notifications land before asserts."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future


class FailingNotifier(Notifier):
    """Every call blows up, like a push service that is down."""

    def notify_volunteers_of_new_report(self, report, reporter):
        raise RuntimeError("push service unavailable")

    def notify_user(self, user_id, title, body, data=None):
        raise RuntimeError("push service unavailable")


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch):
    """Point the store at a temp sqlite file and create the schema."""
    monkeypatch.setattr(db_module, "DB_PATH", tmp_path / "handy.db")
    monkeypatch.setenv("HANDY_JWT_SECRET", "test-secret")
    monkeypatch.delenv("HANDY_JWT_AUDIENCE", raising=False)
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")
    monkeypatch.setenv("PUSH_ENABLED", "false")
    monkeypatch.setenv("HANDY_ADMIN_API_KEY", ADMIN_KEY)
    monkeypatch.delenv("HANDY_REFUND_ON_REJECTION", raising=False)
    db_module.init_db()
    return tmp_path / "handy.db"


def _set_points(user_id: str, points: int) -> None:
    with db_module.get_db() as conn:
        conn.execute("UPDATE users SET points = ? WHERE id = ?", (points, user_id))


@pytest.fixture
def set_points():
    return _set_points


@pytest.fixture
def points_of():
    def _points_of(user_id: str) -> Optional[int]:
        return users.get_user_by_id(user_id).points
    return _points_of


@pytest.fixture
def make_user():
    """Factory fixture that registers a user and returns their session."""

    def _make(user_id: str, user_type: UserType, points: Optional[int] = None, **profile) -> Session:
        users.create_user(user_id, f"{user_id}@handy.test", user_type.value, **profile)
        if points is not None:
            _set_points(user_id, points)
        return Session(user_id=user_id, user_type=user_type, email=f"{user_id}@handy.test")

    return _make


@pytest.fixture
def reporter(make_user):
    return make_user("reporter-1", UserType.DISABLED, name="Malee", surname="Jaidee", tel="0811111111")


@pytest.fixture
def volunteer(make_user):
    return make_user("volunteer-1", UserType.VOLUNTEER)


@pytest.fixture
def other_volunteer(make_user):
    return make_user("volunteer-2", UserType.VOLUNTEER)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def report_service(notifier):
    return ReportLifecycleService(notifier, executor=InlineExecutor())


@pytest.fixture
def redemption_service():
    return RedemptionService(refund_on_rejection=False)


@pytest.fixture
def sos_report(report_service, reporter):
    return report_service.create_report(reporter, "sos", "Fell near the BTS exit", "Siam", 13.75, 100.50)


@pytest.fixture
def normal_report(report_service, reporter):
    return report_service.create_report(reporter, "normal", "Need help crossing", "Silom", 13.72, 100.53)


@pytest.fixture
def client(notifier):
    from handy.app import create_app

    app = create_app(notifier=notifier, notification_executor=InlineExecutor())
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth():
    """Build bearer headers for a user id."""

    def _auth(user_id: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_token(user_id, f'{user_id}@handy.test')}"}

    return _auth


@pytest.fixture
def failing_notifier():
    return FailingNotifier()


@pytest.fixture
def failing_service(failing_notifier):
    return ReportLifecycleService(failing_notifier, executor=InlineExecutor())


@pytest.fixture
def admin_headers():
    return {"X-Admin-Key": ADMIN_KEY}
