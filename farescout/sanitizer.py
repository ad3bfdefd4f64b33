"""Redaction of credentials and secret-looking values.

Everything that may end up on a screen, in a log line or in an error report
goes through :func:`sanitize_text`, :func:`sanitize_url` or
:func:`sanitize_structure` first.

Vendor-prefixed keys are matched with a minimum body length: ``sk-`` needs 4
characters after the prefix, ``pk_``/``sk_`` need 6 and ``AIza`` needs 10.
Quoted values after a secret keyword are redacted up to the closing quote.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping
from urllib.parse import unquote, urlsplit, urlunsplit

KEY_MARKER = "[API_KEY_REDACTED]"
VALUE_MARKER = "[REDACTED]"

SENSITIVE_PARAMS = frozenset({"key", "api_key", "apikey", "token", "secret", "auth"})

_LONG_SEGMENT_RE = re.compile(r"^[A-Za-z0-9]{20,}$")


@dataclass(frozen=True, slots=True)
class SanitizationPattern:
    label: str
    pattern: re.Pattern[str]
    replacement: str

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


# Order matters: path segments are redacted before the keyword heuristics.
PATTERNS: tuple[SanitizationPattern, ...] = (
    SanitizationPattern(
        "path_segment",
        re.compile(r"(?<=/)[A-Za-z0-9]{20,}(?=[/?#\s]|$)"),
        KEY_MARKER,
    ),
    SanitizationPattern(
        "quoted_value",
        re.compile(
            r"\b((?:api[_\s-]?key|apikey|access[_-]?token|token|secret|password|passwd"
            r"|auth|key)[\"']?\s*[:=]\s*)([\"'])(?:(?!\2)[^\n])*\2",
            re.IGNORECASE,
        ),
        r"\g<1>\g<2>" + VALUE_MARKER + r"\g<2>",
    ),
    SanitizationPattern(
        "query_param",
        re.compile(
            r"(?<![A-Za-z0-9_])((?:api_?key|apikey|key|token|secret|auth)=)[^&#\s\"']+",
            re.IGNORECASE,
        ),
        r"\g<1>" + VALUE_MARKER,
    ),
    SanitizationPattern(
        "openai_style_key",
        re.compile(r"(?<![A-Za-z0-9])sk-[A-Za-z0-9_-]{4,}"),
        KEY_MARKER,
    ),
    SanitizationPattern(
        "stripe_style_key",
        re.compile(r"(?<![A-Za-z0-9])[ps]k_(?:live_|test_)?[A-Za-z0-9]{6,}"),
        KEY_MARKER,
    ),
    SanitizationPattern(
        "google_api_key",
        re.compile(r"AIza[A-Za-z0-9_-]{10,}"),
        KEY_MARKER,
    ),
    SanitizationPattern(
        "bearer_token",
        re.compile(r"\b(Bearer\s+)[^\s\"',;]+", re.IGNORECASE),
        r"\g<1>" + VALUE_MARKER,
    ),
    SanitizationPattern(
        "secret_keyword",
        re.compile(
            r"\b((?:api[_\s-]?key|access[_-]?token|token|secret|password|passwd|auth)"
            r"[\"']?\s*[:=]\s*[\"']?)[^\s&\"',;]+",
            re.IGNORECASE,
        ),
        r"\g<1>" + VALUE_MARKER,
    ),
    SanitizationPattern(
        "long_token",
        re.compile(r"[A-Za-z0-9]{32,}"),
        KEY_MARKER,
    ),
)


def _redact_literals(text: str, secrets: Iterable[str]) -> str:
    for secret in secrets:
        # values under 4 characters would match inside the markers
        if secret and len(secret) >= 4:
            text = text.replace(secret, KEY_MARKER)
    return text


def sanitize_text(text: Any, secrets: Iterable[str] = ()) -> Any:
    """Return *text* with every secret-looking substring replaced.

    ``secrets`` are literal values (for example the configured API key) that
    are removed before the pattern heuristics run. Non-string input is
    returned unchanged. The function is idempotent.
    """
    if not isinstance(text, str):
        return text
    text = _redact_literals(text, secrets)
    for pattern in PATTERNS:
        text = pattern.apply(text)
    return text


def _sanitize_query(query: str) -> str:
    parts = []
    for pair in query.split("&"):
        name, sep, _value = pair.partition("=")
        if sep and unquote(name).lower() in SENSITIVE_PARAMS:
            parts.append(f"{name}={VALUE_MARKER}")
        else:
            parts.append(pair)
    return "&".join(parts)


def sanitize_url(url: Any, secrets: Iterable[str] = ()) -> Any:
    """URL-aware variant of :func:`sanitize_text`.

    Well-formed URLs are redacted through their structured parts (path
    segments, credentials, query parameters) and then passed through
    :func:`sanitize_text`; anything that does not parse falls back to the
    plain text path.
    """
    if not isinstance(url, str):
        return url
    secrets = tuple(secrets)
    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
    except ValueError:
        return sanitize_text(url, secrets)
    if not parts.scheme or not hostname:
        return sanitize_text(url, secrets)

    netloc = parts.netloc
    if parts.password is not None:
        netloc = f"{parts.username or ''}:{VALUE_MARKER}@{netloc.rpartition('@')[2]}"

    segments = [
        KEY_MARKER if _LONG_SEGMENT_RE.match(segment) else segment
        for segment in parts.path.split("/")
    ]
    rebuilt = urlunsplit(
        (
            parts.scheme,
            netloc,
            "/".join(segments),
            _sanitize_query(parts.query) if parts.query else "",
            parts.fragment,
        )
    )
    return sanitize_text(rebuilt, secrets)


def sanitize_structure(obj: Any, secrets: Iterable[str] = ()) -> Any:
    """Recursively sanitize string leaves of *obj*, keeping its shape."""
    secrets = tuple(secrets)
    if isinstance(obj, Mapping):
        cleaned = {}
        for key, value in obj.items():
            if isinstance(value, str):
                if isinstance(key, str) and key.lower() == "url":
                    cleaned[key] = sanitize_url(value, secrets)
                else:
                    cleaned[key] = sanitize_text(value, secrets)
            else:
                cleaned[key] = sanitize_structure(value, secrets)
        return cleaned
    if isinstance(obj, list):
        return [sanitize_structure(item, secrets) for item in obj]
    if isinstance(obj, tuple):
        return tuple(sanitize_structure(item, secrets) for item in obj)
    if isinstance(obj, str):
        return sanitize_text(obj, secrets)
    return obj


def describe_exception(exc: BaseException, secrets: Iterable[str] = ()) -> dict:
    """Build a sanitized diagnostic record of *exc* for operator logs."""
    response = getattr(exc, "response", None)
    request = getattr(exc, "request", None)
    status = getattr(exc, "status_code", None)
    if status is None and response is not None:
        status = getattr(response, "status_code", None)

    url = getattr(exc, "url", None) or getattr(request, "url", None)
    data = getattr(exc, "details", None)
    if data is None and response is not None:
        try:
            data = response.json()
        except ValueError:
            data = getattr(response, "text", None)

    return sanitize_structure(
        {
            "type": type(exc).__name__,
            "message": str(exc),
            "status": status,
            "url": url,
            "data": data,
        },
        secrets,
    )


__all__ = [
    "KEY_MARKER",
    "VALUE_MARKER",
    "PATTERNS",
    "SENSITIVE_PARAMS",
    "SanitizationPattern",
    "sanitize_text",
    "sanitize_url",
    "sanitize_structure",
    "describe_exception",
]
