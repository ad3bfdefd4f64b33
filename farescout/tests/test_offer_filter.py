from datetime import datetime

import pytest

from farescout.models import Airline, FlightOffer, Place
from farescout.offer_filter import (
    OfferFilters,
    filter_offers,
    format_duration,
    sort_offers,
    time_slot,
)


def make_offer(
    offer_id, price, *, hour=8, stops=0, duration=120, airline="AI", departs=True, priced=True
):
    return FlightOffer(
        offer_id=offer_id,
        airline=Airline(name=airline, code=airline),
        flight_number=f"{airline}100",
        origin=Place("DEL", "Delhi"),
        destination=Place("BOM", "Mumbai"),
        departure_time=datetime(2026, 12, 1, hour, 0) if departs else None,
        arrival_time=None,
        duration_minutes=duration,
        price=price,
        currency="USD",
        stops=stops,
        travel_class="Economy",
        provider="Flight API",
        priced=priced,
    )


@pytest.mark.parametrize(
    "minutes, text",
    [(150, "2h 30m"), (45, "45m"), (180, "3h"), (0, "N/A"), (None, "N/A"), (-5, "N/A")],
)
def test_format_duration(minutes, text):
    assert format_duration(minutes) == text


@pytest.mark.parametrize(
    "hour, slot",
    [(5, "morning"), (11, "morning"), (12, "afternoon"), (17, "evening"), (22, "night"), (3, "night")],
)
def test_time_slot(hour, slot):
    assert time_slot(hour) == slot


def test_sort_by_price():
    offers = [make_offer("a", 300), make_offer("b", 100), make_offer("c", 200)]
    assert [o.offer_id for o in sort_offers(offers)] == ["b", "c", "a"]
    assert [o.offer_id for o in sort_offers(offers, order="desc")] == ["a", "c", "b"]


def test_sort_by_departure_puts_missing_last():
    offers = [
        make_offer("late", 100, hour=20),
        make_offer("none", 100, departs=False),
        make_offer("early", 100, hour=6),
    ]
    assert [o.offer_id for o in sort_offers(offers, "departure")] == ["early", "late", "none"]
    assert [o.offer_id for o in sort_offers(offers, "departure", "desc")] == [
        "late",
        "early",
        "none",
    ]


def test_unknown_sort_key_falls_back_to_price():
    offers = [make_offer("a", 2), make_offer("b", 1)]
    assert [o.offer_id for o in sort_offers(offers, "rating")] == ["b", "a"]


def test_sort_accepts_iterables():
    offers = (make_offer(str(i), p) for i, p in enumerate([3, 1, 2]))
    assert [o.price for o in sort_offers(offers, "price")] == [1, 2, 3]


def test_filters():
    offers = [
        make_offer("cheap-direct", 100, stops=0, hour=7, airline="AI"),
        make_offer("cheap-stop", 120, stops=1, hour=14, airline="6E"),
        make_offer("pricey", 900, stops=0, hour=19, duration=400, airline="UK"),
    ]

    def ids(filters):
        return [o.offer_id for o in filter_offers(offers, filters)]

    assert ids(None) == ["cheap-direct", "cheap-stop", "pricey"]
    assert ids(OfferFilters(direct_only=True)) == ["cheap-direct", "pricey"]
    assert ids(OfferFilters(max_price=500)) == ["cheap-direct", "cheap-stop"]
    assert ids(OfferFilters(min_price=110)) == ["cheap-stop", "pricey"]
    assert ids(OfferFilters(max_duration=300)) == ["cheap-direct", "cheap-stop"]
    assert ids(OfferFilters(max_stops=0)) == ["cheap-direct", "pricey"]
    assert ids(OfferFilters(airlines=["6e", " uk "])) == ["cheap-stop", "pricey"]
    assert ids(OfferFilters(departure_slot="afternoon")) == ["cheap-stop"]


def test_unpriced_offers_sort_last():
    offers = [make_offer("unpriced", 0.0, priced=False), make_offer("priced", 100.0)]
    assert [o.offer_id for o in sort_offers(offers)] == ["priced", "unpriced"]
    assert [o.offer_id for o in sort_offers(offers, order="desc")] == ["priced", "unpriced"]


def test_unpriced_offers_fail_price_filters():
    offers = [make_offer("unpriced", 0.0, priced=False), make_offer("priced", 40.0)]
    assert [o.offer_id for o in filter_offers(offers, OfferFilters(max_price=50))] == ["priced"]
    assert [o.offer_id for o in filter_offers(offers, OfferFilters(min_price=0))] == ["priced"]
    assert len(filter_offers(offers, OfferFilters(direct_only=True))) == 2
