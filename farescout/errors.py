"""Error taxonomy and classification of search failures."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping, Optional

import requests
from pydantic import ValidationError as PydanticValidationError

from .sanitizer import sanitize_structure, sanitize_text


# ────────────────────────────────────────────────────────────────
# Exceptions raised inside the integration layer
# ────────────────────────────────────────────────────────────────


class FareScoutError(RuntimeError):
    """Base class for errors raised by this package."""


class QueryValidationError(FareScoutError):
    """The search query failed validation; no request was made."""

    def __init__(self, field_errors: Mapping[str, str]) -> None:
        self.field_errors = dict(field_errors)
        super().__init__("; ".join(self.field_errors.values()) or "Invalid search query")

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> "QueryValidationError":
        errors: dict[str, str] = {}
        for err in exc.errors():
            loc = err.get("loc") or ()
            name = str(loc[0]) if loc else "query"
            name = _FIELD_NAMES.get(name, name)
            if name in errors:
                continue
            ctx_error = (err.get("ctx") or {}).get("error")
            if err.get("type") == "value_error" and ctx_error is not None:
                errors[name] = str(ctx_error)
            else:
                errors[name] = _FALLBACK_MESSAGES.get(name, "Invalid value")
        return cls(errors)


_FIELD_NAMES = {
    "departureDate": "departure_date",
    "returnDate": "return_date",
    "travelClass": "travel_class",
}

_FALLBACK_MESSAGES = {
    "origin": "Please enter a valid origin city or airport",
    "destination": "Please enter a valid destination city or airport",
    "departure_date": "Please select a departure date",
    "return_date": "Please select a valid return date",
    "passengers": "Number of passengers must be between 1 and 9",
    "travel_class": "Please select a valid travel class",
}


class NoResultsError(FareScoutError):
    """The provider answered but nothing could be normalized into an offer."""

    def __init__(self, origin_name: str, destination_name: str, departure_date) -> None:
        self.origin_name = origin_name
        self.destination_name = destination_name
        self.departure_date = str(departure_date)
        super().__init__(
            f"No flights found from {origin_name} to {destination_name} on "
            f"{self.departure_date}. Try different dates or airports."
        )


class FlightApiError(FareScoutError):
    """Communication with the flight provider failed."""


class ProviderHTTPError(FlightApiError):
    def __init__(self, status_code: int, details=None, url: Optional[str] = None) -> None:
        self.status_code = status_code
        self.details = details if details is not None else {}
        self.url = url
        super().__init__(f"Flight provider returned HTTP {status_code}")


class ProviderTimeoutError(FlightApiError):
    pass


class ProviderConnectionError(FlightApiError):
    pass


# ────────────────────────────────────────────────────────────────
# Classified result
# ────────────────────────────────────────────────────────────────


class ErrorKind(str, Enum):
    VALIDATION = "ValidationError"
    AUTH = "AuthError"
    QUOTA = "QuotaError"
    RATE_LIMIT = "RateLimitError"
    SERVER = "ServerError"
    NOT_FOUND = "NotFoundError"
    TIMEOUT = "TimeoutError"
    UNKNOWN = "UnknownError"


USER_MESSAGES = {
    ErrorKind.AUTH: "API authentication failed. Please check your API key configuration.",
    ErrorKind.QUOTA: (
        "Your API quota has reached its maximum limits. "
        "Please upgrade your plan to continue."
    ),
    ErrorKind.RATE_LIMIT: "Too many requests. Please wait a moment and try again.",
    ErrorKind.SERVER: "Flight service is temporarily unavailable. Please try again later.",
    ErrorKind.NOT_FOUND: (
        "No flights found for the specified route. Please check:\n"
        "• Airport names are spelled correctly\n"
        "• Try using 3-letter airport codes (e.g., DEL for Delhi, BOM for Mumbai)\n"
        "• Verify the route exists (some airports may not have direct connections)\n"
        "• Try different dates"
    ),
    ErrorKind.TIMEOUT: "Request timeout. Please try again or check your internet connection.",
    ErrorKind.UNKNOWN: "Flight search failed. Please try again.",
    ErrorKind.VALIDATION: "Invalid search parameters.",
}

SUGGESTIONS = {
    ErrorKind.VALIDATION: "Correct the highlighted fields and search again.",
    ErrorKind.AUTH: "There was an authentication issue. Please contact support.",
    ErrorKind.QUOTA: "Upgrade the provider plan or wait for the quota to reset.",
    ErrorKind.RATE_LIMIT: "Wait a few seconds before searching again.",
    ErrorKind.SERVER: "The provider is having trouble. Please try again later.",
    ErrorKind.NOT_FOUND: "Try adjusting your search criteria or check your spelling.",
    ErrorKind.TIMEOUT: "Please check your internet connection and try again.",
    ErrorKind.UNKNOWN: "Please try again or contact support if the problem persists.",
}

RETRIABLE = frozenset({ErrorKind.RATE_LIMIT, ErrorKind.SERVER, ErrorKind.TIMEOUT})


@dataclass(frozen=True, slots=True)
class ClassifiedError:
    kind: ErrorKind
    user_message: str
    retriable: bool
    status_code: Optional[int] = None
    field_errors: Mapping[str, str] = field(default_factory=dict)

    @property
    def suggestion(self) -> str:
        return SUGGESTIONS[self.kind]

    @classmethod
    def of(
        cls,
        kind: ErrorKind,
        message: Optional[str] = None,
        *,
        status_code: Optional[int] = None,
        field_errors: Optional[Mapping[str, str]] = None,
        secrets: Iterable[str] = (),
    ) -> "ClassifiedError":
        """Build a classified error; the message is always sanitized."""
        secrets = tuple(secrets)
        return cls(
            kind=kind,
            user_message=sanitize_text(message or USER_MESSAGES[kind], secrets),
            retriable=kind in RETRIABLE,
            status_code=status_code,
            field_errors=sanitize_structure(dict(field_errors or {}), secrets),
        )


# ────────────────────────────────────────────────────────────────
# Classification
# ────────────────────────────────────────────────────────────────

_TIMEOUT_TYPES = (
    ProviderTimeoutError,
    ProviderConnectionError,
    requests.Timeout,
    requests.ConnectionError,
    TimeoutError,
)


def status_of(exc: BaseException) -> Optional[int]:
    """Return the HTTP status carried by *exc*, if any."""
    status = getattr(exc, "status_code", None)
    if status is None:
        response = getattr(exc, "response", None)
        status = getattr(response, "status_code", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


def kind_for_status(status: int) -> Optional[ErrorKind]:
    if status == 401:
        return ErrorKind.AUTH
    if status == 403:
        return ErrorKind.QUOTA
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status == 429:
        return ErrorKind.RATE_LIMIT
    if status >= 500:
        return ErrorKind.SERVER
    return None


def kind_for_message(message: str) -> ErrorKind:
    """Last-resort heuristics for failures without a structured status."""
    lower = message.lower()
    if "quota" in lower:
        return ErrorKind.QUOTA
    if "timeout" in lower or "timed out" in lower:
        return ErrorKind.TIMEOUT
    if "network" in lower or "connection" in lower:
        return ErrorKind.TIMEOUT
    if "api" in lower or "key" in lower:
        return ErrorKind.AUTH
    return ErrorKind.UNKNOWN


def classify(exc: BaseException, secrets: Iterable[str] = ()) -> ClassifiedError:
    """Map *exc* onto the closed :class:`ErrorKind` taxonomy.

    Decisions look at the raw exception; everything placed in the result is
    sanitized.
    """
    secrets = tuple(secrets)

    if isinstance(exc, PydanticValidationError):
        exc = QueryValidationError.from_pydantic(exc)
    if isinstance(exc, QueryValidationError):
        first = next(iter(exc.field_errors.values()), None)
        return ClassifiedError.of(
            ErrorKind.VALIDATION, first, field_errors=exc.field_errors, secrets=secrets
        )
    if isinstance(exc, NoResultsError):
        return ClassifiedError.of(ErrorKind.NOT_FOUND, str(exc), secrets=secrets)

    status = status_of(exc)
    if status is not None:
        kind = kind_for_status(status)
        if kind is not None:
            return ClassifiedError.of(kind, status_code=status, secrets=secrets)
        return ClassifiedError.of(ErrorKind.UNKNOWN, status_code=status, secrets=secrets)

    if isinstance(exc, _TIMEOUT_TYPES):
        return ClassifiedError.of(ErrorKind.TIMEOUT, secrets=secrets)

    return ClassifiedError.of(kind_for_message(str(exc)), secrets=secrets)


__all__ = [
    "FareScoutError",
    "QueryValidationError",
    "NoResultsError",
    "FlightApiError",
    "ProviderHTTPError",
    "ProviderTimeoutError",
    "ProviderConnectionError",
    "ErrorKind",
    "ClassifiedError",
    "USER_MESSAGES",
    "SUGGESTIONS",
    "classify",
    "status_of",
    "kind_for_status",
    "kind_for_message",
]
