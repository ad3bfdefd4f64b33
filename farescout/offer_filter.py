from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from .models import FlightOffer


# ────────────────────────────────────────────────────────────────
# 1.  Formatting
# ────────────────────────────────────────────────────────────────


def format_duration(minutes: Optional[int]) -> str:
    """Format minutes as ``"2h 30m"``; ``"N/A"`` for missing or non-positive."""
    if not minutes or minutes < 0:
        return "N/A"
    hours, rest = divmod(int(minutes), 60)
    if hours == 0:
        return f"{rest}m"
    if rest == 0:
        return f"{hours}h"
    return f"{hours}h {rest}m"


def time_slot(hour: int) -> str:
    """Part of day for a 24h *hour*."""
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 22:
        return "evening"
    return "night"


# ────────────────────────────────────────────────────────────────
# 2.  Sorting
# ────────────────────────────────────────────────────────────────

SORT_KEYS = ("price", "duration", "departure", "arrival")


def _timestamp(value: Optional[datetime]) -> Optional[float]:
    return value.timestamp() if value is not None else None


def sort_offers(
    offers: Iterable[FlightOffer], sort_by: str = "price", order: str = "asc"
) -> List[FlightOffer]:
    """Return *offers* sorted by price, duration, departure or arrival.

    Unknown ``sort_by`` values sort by price. Offers without the relevant
    value (timestamp, or price for unpriced offers) always go last.
    """
    if sort_by not in SORT_KEYS:
        sort_by = "price"
    reverse = order == "desc"

    def value(offer: FlightOffer) -> Optional[float]:
        if sort_by == "duration":
            return float(offer.duration_minutes)
        if sort_by == "departure":
            return _timestamp(offer.departure_time)
        if sort_by == "arrival":
            return _timestamp(offer.arrival_time)
        return offer.price if offer.priced else None

    offers = list(offers)
    present = [o for o in offers if value(o) is not None]
    missing = [o for o in offers if value(o) is None]
    return sorted(present, key=value, reverse=reverse) + missing


# ────────────────────────────────────────────────────────────────
# 3.  Filtering
# ────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class OfferFilters:
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    max_duration: Optional[int] = None
    direct_only: bool = False
    max_stops: Optional[int] = None
    airlines: Sequence[str] = field(default_factory=tuple)
    departure_slot: Optional[str] = None


def matches(offer: FlightOffer, filters: OfferFilters) -> bool:
    price_filtered = filters.min_price is not None or filters.max_price is not None
    if price_filtered and not offer.priced:
        return False
    if filters.min_price is not None and offer.price < filters.min_price:
        return False
    if filters.max_price is not None and offer.price > filters.max_price:
        return False
    if filters.max_duration is not None and offer.duration_minutes > filters.max_duration:
        return False
    if filters.direct_only and offer.stops > 0:
        return False
    if filters.max_stops is not None and offer.stops > filters.max_stops:
        return False
    if filters.airlines:
        allowed = {code.strip().upper() for code in filters.airlines}
        if offer.airline.code.upper() not in allowed:
            return False
    if filters.departure_slot:
        if offer.departure_time is None:
            return False
        if time_slot(offer.departure_time.hour) != filters.departure_slot:
            return False
    return True


def filter_offers(
    offers: Iterable[FlightOffer], filters: Optional[OfferFilters] = None
) -> List[FlightOffer]:
    """Keep the offers that satisfy every criterion set in *filters*."""
    if filters is None:
        return list(offers)
    return [offer for offer in offers if matches(offer, filters)]


# ────────────────────────────────────────────────────────────────
# 4.  Exports
# ────────────────────────────────────────────────────────────────

__all__ = [
    "format_duration",
    "time_slot",
    "SORT_KEYS",
    "sort_offers",
    "OfferFilters",
    "matches",
    "filter_offers",
]
