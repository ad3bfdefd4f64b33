"""Search boundary: validate, resolve, fetch, normalize, classify.

:func:`search_flights` never raises. It returns either a
:class:`SearchSuccess` or a :class:`~farescout.errors.ClassifiedError`, so
callers branch on the type instead of catching exceptions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from .airports import AirportResolver
from .errors import ClassifiedError, QueryValidationError, classify
from .flightapi_fetcher import FlightApiFetcher
from .models import FlightOffer, SearchQuery
from .normalizer import ResponseNormalizer
from .sanitizer import describe_exception, sanitize_structure

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SearchSuccess:
    offers: Tuple[FlightOffer, ...]
    origin_code: str
    destination_code: str


SearchOutcome = Union[SearchSuccess, ClassifiedError]


def parse_query(query: Union[SearchQuery, Mapping[str, Any]]) -> SearchQuery:
    """Return a validated :class:`SearchQuery` or raise ``QueryValidationError``."""
    if isinstance(query, SearchQuery):
        return query
    if not isinstance(query, Mapping):
        raise QueryValidationError({"query": "Missing required search parameters"})
    try:
        return SearchQuery.model_validate(dict(query))
    except PydanticValidationError as exc:
        raise QueryValidationError.from_pydantic(exc) from None


def search_flights(
    query: Union[SearchQuery, Mapping[str, Any]],
    *,
    fetcher: FlightApiFetcher,
    resolver: Optional[AirportResolver] = None,
    normalizer: Optional[ResponseNormalizer] = None,
) -> SearchOutcome:
    """Run one search against the provider.

    Validation failures return before any network call. Every failure is
    classified and its sanitized diagnostic logged.
    """
    resolver = resolver or AirportResolver()
    normalizer = normalizer or ResponseNormalizer(resolver)
    secrets = fetcher.secrets

    try:
        q = parse_query(query)
        logger.info(
            "Search parameters: %s",
            sanitize_structure(q.model_dump(mode="json"), secrets),
        )

        origin = resolver.resolve(q.origin)
        destination = resolver.resolve(q.destination)
        logger.info(
            "Converted airport codes: %s -> %s",
            sanitize_structure([q.origin, q.destination], secrets),
            sanitize_structure([origin, destination], secrets),
        )
        if origin == destination:
            raise QueryValidationError(
                {"destination": "Origin and destination cannot be the same."}
            )

        payload = fetcher.fetch(
            origin,
            destination,
            q.departure_date,
            q.passengers,
            q.travel_class,
            q.return_date,
        )
        offers = normalizer.normalize(
            payload,
            origin,
            destination,
            q.travel_class,
            departure_date=q.departure_date,
        )
    except Exception as exc:
        error = classify(exc, secrets)
        logger.warning(
            "Flight search error (%s): %s",
            error.kind.value,
            describe_exception(exc, secrets),
        )
        return error

    logger.info("Search returned %d offers", len(offers))
    return SearchSuccess(offers=offers, origin_code=origin, destination_code=destination)


__all__ = ["SearchSuccess", "SearchOutcome", "parse_query", "search_flights"]
