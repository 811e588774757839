import hashlib
import json
import re
import uuid
from datetime import datetime, timezone
from typing import Any

_REDACT_KEY_PATTERNS = (
    "password",
    "secret",
    "api_key",
    "token",
    "authorization",
)

# Expo message recipient field
_REDACT_EXACT_KEYS = {"to"}

_SUMMARIZE_KEY_PATTERNS = (
    "details",
    "body",
)

_SECRET_VALUE_PATTERNS = (
    re.compile(r"Expo(nent)?PushToken\[[^\]]+\]"),
    re.compile(r"^[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+$"),  # JWT-like
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def _hash_preview(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8", errors="ignore")).hexdigest()[:12]


def _looks_like_secret(value: str) -> bool:
    if "bearer " in value.lower():
        return True
    return any(pattern.search(value) for pattern in _SECRET_VALUE_PATTERNS)


def redact_payload(payload: Any, key_hint: str = "") -> Any:
    """Redact push tokens and free text while preserving useful debugging shape."""
    key = (key_hint or "").lower()

    if isinstance(payload, dict):
        return {k: redact_payload(v, str(k)) for k, v in payload.items()}
    if isinstance(payload, (list, tuple)):
        return [redact_payload(v, key_hint) for v in payload]

    if isinstance(payload, str):
        if key in _REDACT_EXACT_KEYS or any(pattern in key for pattern in _REDACT_KEY_PATTERNS):
            return f"<redacted sha256={_hash_preview(payload)}>"
        if any(pattern in key for pattern in _SUMMARIZE_KEY_PATTERNS):
            return f"<redacted len={len(payload)}>"
        if _looks_like_secret(payload):
            return "<redacted secret>"
        return payload

    return payload


def truncate(value: Any, max_len: int = 2000) -> str:
    try:
        if isinstance(value, str):
            s = value
        else:
            s = json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        s = str(value)
    if len(s) > max_len:
        return s[:max_len] + "... [truncated]"
    return s
