"""Redaction module to mask secrets in outputs and logs."""
import re
from typing import Any, Dict

REDACTED = "[REDACTED]"

SECRET_KEYS = (
    "password",
    "passwd",
    "username",
    "access_token",
    "refresh_token",
    "authorization",
    "cookie",
    "service_role",
)

# Patterns to redact
_PATTERNS = [
    (r'(["\']?password["\']?\s*[:=]\s*)(["\']?)[^"\',\s}]+\2', r'\1\2[REDACTED]\2'),
    (r'(["\']?username["\']?\s*[:=]\s*)(["\']?)[^"\',\s}]+\2', r'\1\2[REDACTED]\2'),
    (r'(["\']?(?:access|refresh)_token["\']?\s*[:=]\s*)(["\']?)[^"\',\s}]+\2', r'\1\2[REDACTED]\2'),
    (r'(Authorization["\']?\s*[:=]\s*["\']?Bearer\s+)[^"\'\s,]+', r'\1[REDACTED]'),
    (r'\bBearer\s+[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+', r'Bearer [REDACTED]'),
    (r'(Cookie["\']?\s*[:=]\s*)[^\n]+', r'\1[REDACTED]'),
]


def redact_string(text: str) -> str:
    """Redact secrets from a string."""
    if not text:
        return text

    result = text
    for pattern, replacement in _PATTERNS:
        result = re.sub(pattern, replacement, result, flags=re.IGNORECASE)

    return result


def _is_secret_key(key: str) -> bool:
    key_lower = key.lower()
    return any(secret in key_lower for secret in SECRET_KEYS)


def redact_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively redact secrets from a dictionary."""
    if not isinstance(data, dict):
        return data

    redacted = {}
    for key, value in data.items():
        if isinstance(key, str) and _is_secret_key(key):
            redacted[key] = REDACTED
        elif isinstance(value, dict):
            redacted[key] = redact_dict(value)
        elif isinstance(value, list):
            redacted[key] = [redact_json(item) for item in value]
        elif isinstance(value, str):
            redacted[key] = redact_string(value)
        else:
            redacted[key] = value

    return redacted


def redact_json(data: Any) -> Any:
    """Redact secrets from JSON-serializable data."""
    if isinstance(data, dict):
        return redact_dict(data)
    elif isinstance(data, list):
        return [redact_json(item) for item in data]
    elif isinstance(data, str):
        return redact_string(data)
    else:
        return data
