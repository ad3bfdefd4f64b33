"""Normalization of FlightAPI.io responses into :class:`FlightOffer` records."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, List, Mapping, Optional, Tuple, Union

from .airports import AirportResolver
from .errors import NoResultsError
from .models import DEFAULT_AMENITIES, Airline, Baggage, FlightOffer, Place, TravelClass

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "USD"
DEFAULT_INR_PER_USD = 83.0
PROVIDER_NAME = "Flight API"

UNKNOWN_AIRLINE = Airline(name="Unknown Airline", code="UN")

INR_MARKERS = frozenset({"INR", "₹"})

PRICE_CLEAN_RE = re.compile(r"[^0-9.\-]")


# ────────────────────────────────────────────────────────────────
# Price shapes
# ────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class QuotedPrice:
    amount: float
    currency: str
    shape: str


@dataclass(frozen=True, slots=True)
class UnquotedPrice:
    """No known price shape matched the itinerary."""


NO_PRICE = UnquotedPrice()

Price = Union[QuotedPrice, UnquotedPrice]


def _parse_amount(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        amount = float(value)
    elif isinstance(value, str):
        cleaned = PRICE_CLEAN_RE.sub("", value)
        try:
            amount = float(cleaned)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(amount) or math.isinf(amount) or amount < 0:
        return None
    return amount


def _currency(value: Any, fallback: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return fallback


def _candidates(itinerary: Mapping[str, Any]):
    """Yield ``(raw value, currency, shape)`` in priority order."""
    options = itinerary.get("pricing_options")
    if isinstance(options, list) and options:
        option = options[0]
        if isinstance(option, Mapping):
            for name in ("price", "total_price", "amount"):
                if option.get(name):
                    currency = _currency(option.get("currency"), DEFAULT_CURRENCY)
                    yield option[name], currency, f"pricing_options.{name}"
                    return
        elif isinstance(option, (int, float)) and not isinstance(option, bool):
            yield option, DEFAULT_CURRENCY, "pricing_options.number"
            return

    if itinerary.get("price"):
        yield itinerary["price"], _currency(itinerary.get("currency"), DEFAULT_CURRENCY), "price"
    elif itinerary.get("total_price"):
        yield (
            itinerary["total_price"],
            _currency(itinerary.get("total_currency"), DEFAULT_CURRENCY),
            "total_price",
        )


def extract_price(itinerary: Mapping[str, Any]) -> Price:
    """Try each known price shape in order and return the first match."""
    for raw, currency, shape in _candidates(itinerary):
        if isinstance(raw, Mapping):
            nested = raw.get("amount") or raw.get("value")
            currency = _currency(raw.get("currency"), currency)
            raw = nested
            shape = f"{shape}.object"
        amount = _parse_amount(raw)
        if amount is not None:
            return QuotedPrice(amount=amount, currency=currency, shape=shape)
    return NO_PRICE


def to_usd(price: QuotedPrice, inr_per_usd: float = DEFAULT_INR_PER_USD) -> QuotedPrice:
    """Convert rupee prices to USD at a fixed, approximate rate.

    The rate is static configuration, not a live quote.
    """
    if price.currency.upper() in INR_MARKERS:
        return QuotedPrice(
            amount=price.amount / inr_per_usd, currency="USD", shape=price.shape
        )
    return QuotedPrice(amount=price.amount, currency=price.currency.upper(), shape=price.shape)


# ────────────────────────────────────────────────────────────────
# Helpers
# ────────────────────────────────────────────────────────────────


def _index(rows: Any) -> dict:
    """Index a list of provider rows by ``id``; the first row per id wins."""
    out: dict = {}
    if not isinstance(rows, list):
        return out
    for row in rows:
        if isinstance(row, Mapping) and _hashable(row.get("id")) and row["id"] not in out:
            out[row["id"]] = row
    return out


def _hashable(key: Any) -> bool:
    return isinstance(key, (str, int)) and not isinstance(key, bool)


def _lookup(index: dict, key: Any) -> Optional[Mapping[str, Any]]:
    return index.get(key) if _hashable(key) else None


def _first(ids: Any) -> Any:
    if isinstance(ids, list) and ids:
        return ids[0]
    return None


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None


def _duration(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)) and not math.isnan(value) and value > 0:
        return int(value)
    return 0


def _amenities(segment: Mapping[str, Any]) -> Tuple[str, ...]:
    raw = segment.get("amenities")
    if isinstance(raw, list):
        names = tuple(str(a).strip() for a in raw if isinstance(a, (str, int)) and str(a).strip())
        if names:
            return names
    return DEFAULT_AMENITIES


def _baggage(itinerary: Mapping[str, Any]) -> Baggage:
    raw = itinerary.get("baggage")
    if not isinstance(raw, Mapping):
        return Baggage()
    default = Baggage()
    return Baggage(
        carry_on=_text(raw.get("carry_on") or raw.get("carryOn")) or default.carry_on,
        checked=_text(raw.get("checked") or raw.get("checkedBags")) or default.checked,
    )


# ────────────────────────────────────────────────────────────────
# Normalizer
# ────────────────────────────────────────────────────────────────


class ResponseNormalizer:
    """Turns the itinerary/leg/segment/carrier/place graph into offers."""

    def __init__(
        self,
        resolver: Optional[AirportResolver] = None,
        inr_per_usd: float = DEFAULT_INR_PER_USD,
    ) -> None:
        self.resolver = resolver or AirportResolver()
        self.inr_per_usd = inr_per_usd

    def _place(self, code: str, place: Optional[Mapping[str, Any]]) -> Place:
        name = self.resolver.describe(code)
        if name == code and place:
            name = _text(place.get("name")) or code
        return Place(code=code, name=name)

    def normalize(
        self,
        payload: Any,
        origin: str,
        destination: str,
        travel_class: Union[TravelClass, str, None] = None,
        *,
        departure_date: Union[date, str, None] = None,
    ) -> Tuple[FlightOffer, ...]:
        """Return one offer per resolvable itinerary.

        Raises :class:`NoResultsError` when nothing could be normalized.
        """
        class_label = (
            travel_class.value if isinstance(travel_class, TravelClass)
            else (travel_class or TravelClass.ECONOMY.value)
        )

        offers: List[FlightOffer] = []
        itineraries = payload.get("itineraries") if isinstance(payload, Mapping) else None

        if isinstance(itineraries, list) and isinstance(payload.get("legs"), list):
            legs = _index(payload.get("legs"))
            segments = _index(payload.get("segments"))
            carriers = _index(payload.get("carriers"))
            places = _index(payload.get("places"))
            logger.info("Found %d itineraries in provider response", len(itineraries))

            for position, itinerary in enumerate(itineraries, start=1):
                if not isinstance(itinerary, Mapping):
                    continue
                offer = self._offer(
                    position, itinerary, legs, segments, carriers, places,
                    origin, destination, class_label,
                )
                if offer is not None:
                    offers.append(offer)
        else:
            logger.warning("Provider response has no itineraries/legs lists")

        if not offers:
            raise NoResultsError(
                self.resolver.describe(origin) or origin,
                self.resolver.describe(destination) or destination,
                departure_date if departure_date is not None else "the selected date",
            )

        logger.info("Normalized %d offers", len(offers))
        return tuple(offers)

    def _offer(
        self,
        position: int,
        itinerary: Mapping[str, Any],
        legs: dict,
        segments: dict,
        carriers: dict,
        places: dict,
        origin: str,
        destination: str,
        class_label: str,
    ) -> Optional[FlightOffer]:
        leg = _lookup(legs, _first(itinerary.get("leg_ids")))
        if not leg:
            return None
        segment_ids = leg.get("segment_ids")
        segment = _lookup(segments, _first(segment_ids))
        if not segment:
            return None

        carrier = _lookup(carriers, segment.get("marketing_carrier_id")) or {}
        airline = Airline(
            name=_text(carrier.get("name")) or UNKNOWN_AIRLINE.name,
            code=_text(carrier.get("iata_code") or carrier.get("display_code")) or UNKNOWN_AIRLINE.code,
        )

        price = extract_price(itinerary)
        if isinstance(price, QuotedPrice):
            price = to_usd(price, self.inr_per_usd)
            amount, currency, priced = price.amount, price.currency, True
        else:
            amount, currency, priced = 0.0, DEFAULT_CURRENCY, False

        return FlightOffer(
            offer_id=f"flight-{position}",
            airline=airline,
            flight_number=_text(segment.get("marketing_carrier_flight_number")) or f"FL{position}",
            origin=self._place(origin, _lookup(places, segment.get("origin_place_id"))),
            destination=self._place(destination, _lookup(places, segment.get("destination_place_id"))),
            departure_time=_parse_timestamp(segment.get("departure")),
            arrival_time=_parse_timestamp(segment.get("arrival")),
            duration_minutes=_duration(segment.get("duration_in_minutes") or segment.get("duration")),
            price=amount,
            currency=currency,
            stops=len(segment_ids) - 1,
            travel_class=class_label,
            provider=PROVIDER_NAME,
            priced=priced,
            amenities=_amenities(segment),
            baggage=_baggage(itinerary),
        )


__all__ = [
    "DEFAULT_INR_PER_USD",
    "PROVIDER_NAME",
    "QuotedPrice",
    "UnquotedPrice",
    "NO_PRICE",
    "Price",
    "extract_price",
    "to_usd",
    "ResponseNormalizer",
]
