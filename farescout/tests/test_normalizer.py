import dataclasses
from datetime import datetime

import pytest

from farescout.airports import AirportResolver
from farescout.errors import NoResultsError
from farescout.models import Airline, Place, TravelClass
from farescout.normalizer import (
    NO_PRICE,
    PROVIDER_NAME,
    QuotedPrice,
    ResponseNormalizer,
    extract_price,
    to_usd,
)


def make_payload(**itinerary):
    base = {
        "id": "it-1",
        "leg_ids": ["leg-1"],
        "pricing_options": [{"price": {"amount": 420.5}}],
    }
    base.update(itinerary)
    return {
        "itineraries": [base],
        "legs": [{"id": "leg-1", "segment_ids": ["seg-1"]}],
        "segments": [
            {
                "id": "seg-1",
                "marketing_carrier_id": "c-1",
                "marketing_carrier_flight_number": "AI191",
                "origin_place_id": "p-1",
                "destination_place_id": "p-2",
                "departure": "2026-12-01T01:30:00",
                "arrival": "2026-12-01T07:10:00",
                "duration_in_minutes": 970,
            }
        ],
        "carriers": [{"id": "c-1", "name": "Air India", "iata_code": "AI"}],
        "places": [
            {"id": "p-1", "name": "Mumbai"},
            {"id": "p-2", "name": "New York John F. Kennedy"},
        ],
    }


@pytest.fixture
def normalizer():
    return ResponseNormalizer(AirportResolver())


def test_normalize_single_itinerary(normalizer):
    offers = normalizer.normalize(
        make_payload(), "BOM", "JFK", TravelClass.ECONOMY, departure_date="2026-12-01"
    )
    assert len(offers) == 1
    off = offers[0]
    assert off.offer_id == "flight-1"
    assert off.airline == Airline(name="Air India", code="AI")
    assert off.flight_number == "AI191"
    assert off.origin == Place(code="BOM", name="Chhatrapati Shivaji International Airport")
    assert off.destination.code == "JFK"
    assert off.departure_time == datetime(2026, 12, 1, 1, 30)
    assert off.arrival_time == datetime(2026, 12, 1, 7, 10)
    assert off.duration_minutes == 970
    assert off.price == pytest.approx(420.5)
    assert off.currency == "USD"
    assert off.priced
    assert off.stops == 0
    assert off.travel_class == "Economy"
    assert off.provider == PROVIDER_NAME


def test_offers_are_immutable(normalizer):
    off = normalizer.normalize(make_payload(), "BOM", "JFK")[0]
    with pytest.raises(dataclasses.FrozenInstanceError):
        off.price = 1.0


@pytest.mark.parametrize(
    "itinerary, amount, currency",
    [
        ({"pricing_options": [{"price": 100, "currency": "EUR"}]}, 100.0, "EUR"),
        ({"pricing_options": [{"total_price": "1,250.50"}]}, 1250.5, "USD"),
        ({"pricing_options": [{"amount": "$99"}]}, 99.0, "USD"),
        ({"pricing_options": [75]}, 75.0, "USD"),
        ({"price": 300, "currency": "GBP"}, 300.0, "GBP"),
        ({"total_price": 55, "total_currency": "EUR"}, 55.0, "EUR"),
        ({"price": {"value": 12, "currency": "EUR"}}, 12.0, "EUR"),
    ],
)
def test_extract_price_shapes(itinerary, amount, currency):
    price = extract_price(itinerary)
    assert isinstance(price, QuotedPrice)
    assert price.amount == pytest.approx(amount)
    assert price.currency == currency


@pytest.mark.parametrize(
    "itinerary",
    [{}, {"price": "n/a"}, {"price": True}, {"price": -5}, {"pricing_options": []}],
)
def test_extract_price_without_a_usable_shape(itinerary):
    assert extract_price(itinerary) is NO_PRICE


def test_pricing_options_take_priority():
    price = extract_price({"pricing_options": [{"price": 10}], "price": 999})
    assert price.amount == 10.0
    assert price.shape == "pricing_options.price"


def test_inr_is_converted_to_usd(normalizer):
    payload = make_payload(pricing_options=[{"price": 830, "currency": "INR"}])
    off = normalizer.normalize(payload, "BOM", "JFK")[0]
    assert off.price == pytest.approx(10.0)
    assert off.currency == "USD"


def test_rupee_symbol_and_custom_rate():
    converted = to_usd(QuotedPrice(830.0, "₹", "price"), inr_per_usd=100.0)
    assert converted.amount == pytest.approx(8.3)
    assert converted.currency == "USD"


def test_other_currencies_are_not_converted():
    converted = to_usd(QuotedPrice(50.0, "eur", "price"))
    assert converted.amount == 50.0
    assert converted.currency == "EUR"


def test_placeholders_for_missing_fields(normalizer):
    payload = make_payload(pricing_options=None)
    segment = payload["segments"][0]
    for name in ("marketing_carrier_id", "marketing_carrier_flight_number", "duration_in_minutes"):
        del segment[name]

    off = normalizer.normalize(payload, "BOM", "JFK")[0]
    assert off.airline == Airline(name="Unknown Airline", code="UN")
    assert off.flight_number == "FL1"
    assert off.duration_minutes == 0
    assert off.price == 0.0
    assert off.currency == "USD"
    assert not off.priced
    assert off.amenities == ("WiFi", "Entertainment")
    assert off.baggage.carry_on == "1 included"
    assert off.baggage.checked == "Extra fee"


def test_stops_count_segments(normalizer):
    payload = make_payload()
    payload["legs"][0]["segment_ids"] = ["seg-1", "seg-2", "seg-3"]
    assert normalizer.normalize(payload, "BOM", "JFK")[0].stops == 2


def test_unresolvable_itineraries_are_skipped(normalizer):
    payload = make_payload()
    payload["itineraries"].extend(
        [
            {"id": "it-2", "leg_ids": ["missing-leg"]},
            {"id": "it-3", "leg_ids": [{"not": "hashable"}]},
            {"id": "it-4", "leg_ids": "leg-1"},
            "garbage",
        ]
    )
    offers = normalizer.normalize(payload, "BOM", "JFK")
    assert [o.offer_id for o in offers] == ["flight-1"]


def test_duplicate_ids_first_row_wins(normalizer):
    payload = make_payload()
    payload["carriers"].append({"id": "c-1", "name": "Imposter Air", "iata_code": "XX"})
    assert normalizer.normalize(payload, "BOM", "JFK")[0].airline.code == "AI"


def test_unknown_code_uses_provider_place_name(normalizer):
    payload = make_payload()
    payload["places"][0]["name"] = "Somewhere Intl"
    off = normalizer.normalize(payload, "XQZ", "JFK")[0]
    assert off.origin == Place(code="XQZ", name="Somewhere Intl")


@pytest.mark.parametrize(
    "payload",
    [None, [], {}, {"itineraries": []}, {"itineraries": [{"id": "x"}], "legs": "bad"}],
)
def test_no_results(normalizer, payload):
    with pytest.raises(NoResultsError):
        normalizer.normalize(payload, "BOM", "JFK", departure_date="2026-12-01")


def test_no_results_message_names_airports(normalizer):
    payload = make_payload()
    payload["legs"] = []
    with pytest.raises(NoResultsError) as excinfo:
        normalizer.normalize(payload, "BOM", "JFK", departure_date="2026-12-01")
    msg = str(excinfo.value)
    assert "Chhatrapati Shivaji International Airport" in msg
    assert "2026-12-01" in msg
