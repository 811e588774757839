"""Push notification dispatch through the Expo push service.

Notification is best effort: callers in the report lifecycle wrap every call
and only log failures.
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from ...infrastructure.config import get_bool_env_var, get_env_var, get_float_env_var
from ...infrastructure.logging import get_logger
from ...infrastructure.utils import redact_payload, truncate
from ..reports.models import Report, ReportType
from ..user.models import User, UserType
from . import push_tokens

logger = get_logger(__name__)

DEFAULT_PUSH_URL = "https://exp.host/--/api/v2/push/send"
# Expo accepts at most 100 messages per request
PUSH_CHUNK_SIZE = 100
DEFAULT_TIMEOUT_SECONDS = 5.0

_EXPO_TOKEN_RE = re.compile(r"^Expo(nent)?PushToken\[.+\]$")
_UUID_TOKEN_RE = re.compile(r"^[a-z\d]{8}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{12}$", re.IGNORECASE)

NEW_CASE_TITLE = "Handy: แจ้งเตือนเคสใหม่"
NEW_CASE_BODY = {
    ReportType.SOS: "มีเหตุฉุกเฉินที่ต้องการความช่วยเหลือด่วน",
    ReportType.NORMAL: "มีคำขอความช่วยเหลือใหม่",
}


def is_expo_push_token(token: Any) -> bool:
    if not isinstance(token, str):
        return False
    return bool(_EXPO_TOKEN_RE.match(token) or _UUID_TOKEN_RE.match(token))


def build_message(to: str, title: str, body: str, data: Optional[Dict[str, Any]] = None,
                  sound: Optional[str] = "default") -> Dict[str, Any]:
    return {
        "to": to,
        "title": title,
        "body": body,
        "sound": sound,
        "data": data or {},
        "priority": "high",
        "channelId": "default",
    }


def _chunks(items: List[Any], size: int) -> List[List[Any]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class Notifier(ABC):
    """Interface the report lifecycle uses to tell people what happened."""

    @abstractmethod
    def notify_volunteers_of_new_report(self, report: Report, reporter: Optional[User]) -> List[Dict[str, Any]]:
        """Tell every registered volunteer device about a new report."""

    @abstractmethod
    def notify_user(self, user_id: str, title: str, body: str,
                    data: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Push a message to every device of one user."""


class ExpoPushNotifier(Notifier):
    """Sends notifications to device tokens stored in the push token table."""

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        push_url: Optional[str] = None,
        access_token: Optional[str] = None,
        timeout: Optional[float] = None,
        enabled: Optional[bool] = None,
    ):
        self.push_url = push_url or get_env_var("EXPO_PUSH_URL", DEFAULT_PUSH_URL)
        self.access_token = access_token if access_token is not None else get_env_var("EXPO_ACCESS_TOKEN")
        self.timeout = timeout if timeout is not None else get_float_env_var(
            "PUSH_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS
        )
        self.enabled = enabled if enabled is not None else get_bool_env_var("PUSH_ENABLED", True)
        self._client = client

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    def _post(self, chunk: List[Dict[str, Any]]) -> httpx.Response:
        if self._client is not None:
            return self._client.post(self.push_url, json=chunk, headers=self._headers(), timeout=self.timeout)
        with httpx.Client(timeout=self.timeout) as client:
            return client.post(self.push_url, json=chunk, headers=self._headers())

    def send(self, messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Send messages in chunks and return the push tickets.

        A failing chunk is logged and skipped so the remaining chunks still go out.
        """
        if not self.enabled or not messages:
            return []

        tickets: List[Dict[str, Any]] = []
        for chunk in _chunks(messages, PUSH_CHUNK_SIZE):
            try:
                response = self._post(chunk)
                response.raise_for_status()
                chunk_tickets = response.json().get("data") or []
            except (httpx.HTTPError, ValueError) as exc:
                logger.error("Failed to send push chunk of %d: %s", len(chunk), exc)
                continue
            self._prune_unregistered(chunk, chunk_tickets)
            tickets.extend(chunk_tickets)
        return tickets

    def _prune_unregistered(self, chunk: List[Dict[str, Any]], tickets: List[Dict[str, Any]]) -> None:
        for message, ticket in zip(chunk, tickets):
            if ticket.get("status") != "error":
                continue
            details = ticket.get("details") or {}
            if details.get("error") == "DeviceNotRegistered":
                push_tokens.remove_token(message["to"])
                logger.info("Removed unregistered push token")
            else:
                logger.warning("Push ticket error: %s", truncate(redact_payload(ticket)))

    def notify_volunteers_of_new_report(self, report: Report, reporter: Optional[User]) -> List[Dict[str, Any]]:
        tokens = [t for t in push_tokens.get_tokens_by_user_type([UserType.VOLUNTEER.value])
                  if is_expo_push_token(t["token"])]
        if not tokens:
            return []

        data = {
            "reportId": report.id,
            "type": report.type.value,
            "latitude": report.latitude,
            "longitude": report.longitude,
            "requesterId": report.user_id,
            "requesterName": reporter.name if reporter else None,
        }
        messages = [
            build_message(t["token"], NEW_CASE_TITLE, NEW_CASE_BODY[report.type], data)
            for t in tokens
        ]
        return self.send(messages)

    def notify_user(self, user_id: str, title: str, body: str,
                    data: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        tokens = [t for t in push_tokens.get_tokens_by_user_ids([user_id]) if is_expo_push_token(t["token"])]
        if not tokens:
            return []
        return self.send([build_message(t["token"], title, body, data) for t in tokens])
