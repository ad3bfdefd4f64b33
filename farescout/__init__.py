"""Flight search integration layer: airport resolution, response
normalization and secret-safe error handling for FlightAPI.io."""

from .airports import AirportResolver, AliasTable, load_alias_table
from .errors import ClassifiedError, ErrorKind, NoResultsError, classify
from .flightapi_fetcher import FlightApiFetcher
from .models import FlightOffer, SearchQuery, TravelClass
from .normalizer import ResponseNormalizer
from .sanitizer import sanitize_structure, sanitize_text, sanitize_url
from .search import SearchSuccess, search_flights

__all__ = [
    "AirportResolver",
    "AliasTable",
    "load_alias_table",
    "ClassifiedError",
    "ErrorKind",
    "NoResultsError",
    "classify",
    "FlightApiFetcher",
    "FlightOffer",
    "SearchQuery",
    "TravelClass",
    "ResponseNormalizer",
    "sanitize_text",
    "sanitize_url",
    "sanitize_structure",
    "SearchSuccess",
    "search_flights",
]
