from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Optional, Union

import requests

from .config import Settings
from .errors import (
    FlightApiError,
    ProviderConnectionError,
    ProviderHTTPError,
    ProviderTimeoutError,
)
from .models import TravelClass
from .sanitizer import sanitize_structure, sanitize_text, sanitize_url

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 200.0


class FlightApiFetcher:
    """
    Client for the FlightAPI.io one-way and round-trip search endpoints.

    The API key is part of the URL path, so every URL, message and payload
    that leaves this class is sanitized first.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.flightapi.io",
        *,
        timeout: float = DEFAULT_TIMEOUT_S,
        currency: str = "USD",
        session: Optional[requests.Session] = None,
    ) -> None:
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.currency = currency.upper()
        self._http = session or requests

    @classmethod
    def from_settings(cls, settings: Settings) -> "FlightApiFetcher":
        return cls(
            settings.flight_api_key.get_secret_value(),
            settings.base_url,
            timeout=settings.timeout_s,
            currency=settings.currency,
        )

    def __repr__(self) -> str:
        return f"FlightApiFetcher(base_url={self.base_url!r}, timeout={self.timeout!r})"

    @property
    def secrets(self) -> tuple:
        return (self._api_key,)

    # ──────────────────────────────────────────────────────────

    def build_url(
        self,
        origin: str,
        destination: str,
        departure_date: Union[dt.date, str],
        passengers: int = 1,
        travel_class: Union[TravelClass, str] = TravelClass.ECONOMY,
        return_date: Union[dt.date, str, None] = None,
    ) -> str:
        """Build the provider URL. The result contains the API key."""
        cabin = TravelClass.parse(travel_class).slug
        dep = departure_date.isoformat() if isinstance(departure_date, dt.date) else departure_date
        route = f"{self._api_key}/{origin.lower()}/{destination.lower()}/{dep}"
        if return_date:
            ret = return_date.isoformat() if isinstance(return_date, dt.date) else return_date
            url = f"{self.base_url}/roundtrip/{route}/{ret}"
        else:
            url = f"{self.base_url}/onewaytrip/{route}"
        return f"{url}/{passengers}/0/0/{cabin}/{self.currency}"

    def fetch(
        self,
        origin: str,
        destination: str,
        departure_date: Union[dt.date, str],
        passengers: int = 1,
        travel_class: Union[TravelClass, str] = TravelClass.ECONOMY,
        return_date: Union[dt.date, str, None] = None,
    ) -> Any:
        """Perform the single search request and return the decoded JSON."""
        url = self.build_url(
            origin, destination, departure_date, passengers, travel_class, return_date
        )
        safe_url = sanitize_url(url, self.secrets)
        logger.info("Requesting %s", safe_url)

        # requests exceptions carry the raw URL. The wrapper is raised after the
        # except block so neither __cause__ nor __context__ references them.
        failure: Optional[FlightApiError] = None
        try:
            resp = self._http.get(
                url,
                timeout=self.timeout,
                headers={"Accept": "application/json", "Accept-Encoding": "gzip"},
            )
        except requests.Timeout:
            failure = ProviderTimeoutError(
                f"Request to {safe_url} timed out after {self.timeout}s"
            )
        except requests.ConnectionError as exc:
            failure = ProviderConnectionError(
                sanitize_text(f"Connection to flight provider failed: {exc}", self.secrets)
            )
        except requests.RequestException as exc:
            failure = FlightApiError(
                sanitize_text(f"Flight provider request failed: {exc}", self.secrets)
            )
        if failure is not None:
            raise failure

        if resp.status_code >= 400:
            try:
                details = resp.json()
            except ValueError:
                details = {"error": (resp.text or "")[:200]}
            details = sanitize_structure(details, self.secrets)
            logger.warning(
                "Flight provider error response: HTTP %s %s", resp.status_code, details
            )
            raise ProviderHTTPError(resp.status_code, details=details, url=safe_url)

        try:
            data = resp.json()
        except ValueError:
            raise FlightApiError("Flight provider response was not valid JSON.") from None

        logger.debug("Provider response received for %s", safe_url)
        return data


__all__ = ["FlightApiFetcher", "DEFAULT_TIMEOUT_S"]
