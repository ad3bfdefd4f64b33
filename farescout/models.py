"""Data models used throughout the project."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

MAX_PASSENGERS = 9

DATE_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")

DEFAULT_AMENITIES: Tuple[str, ...] = ("WiFi", "Entertainment")


class TravelClass(str, Enum):
    ECONOMY = "Economy"
    PREMIUM_ECONOMY = "Premium Economy"
    BUSINESS = "Business"
    FIRST = "First"

    @property
    def slug(self) -> str:
        """Lower-case form used in provider URLs."""
        return self.value.lower().replace(" ", "_")

    @classmethod
    def parse(cls, value: object) -> "TravelClass":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            needle = value.strip().lower().replace("_", " ").replace("-", " ")
            for member in cls:
                if member.value.lower() == needle:
                    return member
        raise ValueError("Please select a valid travel class")


class SearchQuery(BaseModel):
    """Search parameters collected by the UI.

    Validation happens on construction, so a ``SearchQuery`` that exists is a
    query that may be sent to the provider.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    origin: str
    destination: str
    departure_date: date = Field(..., alias="departureDate")
    return_date: Optional[date] = Field(None, alias="returnDate")
    passengers: int = 1
    travel_class: TravelClass = Field(TravelClass.ECONOMY, alias="travelClass")

    @field_validator("origin")
    @classmethod
    def _origin_present(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Please enter a valid origin city or airport")
        return v

    @field_validator("destination")
    @classmethod
    def _destination_present(cls, v: str, info: ValidationInfo) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Please enter a valid destination city or airport")
        origin = info.data.get("origin")
        if origin and origin.lower() == v.lower():
            raise ValueError("Destination must be different from origin")
        return v

    @field_validator("departure_date", "return_date", mode="before")
    @classmethod
    def _parse_date(cls, v, info: ValidationInfo):
        if v is None or isinstance(v, date):
            return v
        if isinstance(v, str):
            text = v.strip()
            if not text and info.field_name == "return_date":
                return None
            if DATE_RE.match(text):
                try:
                    return date.fromisoformat(text)
                except ValueError:
                    pass
        if info.field_name == "return_date":
            raise ValueError("Invalid return date format. Please use YYYY-MM-DD format.")
        raise ValueError("Invalid departure date format. Please use YYYY-MM-DD format.")

    @field_validator("departure_date")
    @classmethod
    def _not_in_past(cls, v: date) -> date:
        if v < date.today():
            raise ValueError("Departure date must be today or in the future")
        return v

    @field_validator("return_date")
    @classmethod
    def _after_departure(cls, v: Optional[date], info: ValidationInfo) -> Optional[date]:
        departure = info.data.get("departure_date")
        if v is not None and departure is not None and v <= departure:
            raise ValueError("Return date must be after departure date")
        return v

    @field_validator("passengers", mode="before")
    @classmethod
    def _passenger_range(cls, v):
        message = f"Number of passengers must be between 1 and {MAX_PASSENGERS}"
        if v is None:
            return 1
        if isinstance(v, bool):
            raise ValueError(message)
        try:
            count = int(v)
        except (TypeError, ValueError):
            raise ValueError(message) from None
        if isinstance(v, float) and v != count:
            raise ValueError(message)
        if not 1 <= count <= MAX_PASSENGERS:
            raise ValueError(message)
        return count

    @field_validator("travel_class", mode="before")
    @classmethod
    def _travel_class(cls, v):
        if v is None:
            return TravelClass.ECONOMY
        return TravelClass.parse(v)

    @property
    def is_round_trip(self) -> bool:
        return self.return_date is not None


@dataclass(frozen=True, slots=True)
class Airline:
    name: str
    code: str


@dataclass(frozen=True, slots=True)
class Place:
    code: str
    name: str


@dataclass(frozen=True, slots=True)
class Baggage:
    carry_on: str = "1 included"
    checked: str = "Extra fee"


@dataclass(frozen=True, slots=True)
class FlightOffer:
    offer_id: str
    airline: Airline
    flight_number: str
    origin: Place
    destination: Place
    departure_time: Optional[datetime]
    arrival_time: Optional[datetime]
    duration_minutes: int
    price: float
    currency: str
    stops: int
    travel_class: str
    provider: str
    priced: bool = True
    amenities: Tuple[str, ...] = DEFAULT_AMENITIES
    baggage: Baggage = field(default_factory=Baggage)

    def __str__(self) -> str:
        price = f"{self.price:.2f} {self.currency}" if self.priced else "price n/a"
        stops = "direct" if self.stops == 0 else f"{self.stops} stop(s)"
        when = self.departure_time.isoformat(sep=" ") if self.departure_time else "time n/a"
        return (
            f"{self.airline.code} {self.flight_number} "
            f"{self.origin.code} ➔ {self.destination.code} {when} "
            f"{stops} {price}"
        )


__all__ = [
    "MAX_PASSENGERS",
    "DEFAULT_AMENITIES",
    "TravelClass",
    "SearchQuery",
    "Airline",
    "Place",
    "Baggage",
    "FlightOffer",
]
