from __future__ import annotations

import logging
from typing import Optional

import click
from pydantic import ValidationError as PydanticValidationError

from .airports import AirportResolver, load_alias_table
from .config import get_settings
from .errors import ClassifiedError
from .flightapi_fetcher import FlightApiFetcher
from .logging_setup import configure_logging
from .models import TravelClass
from .normalizer import ResponseNormalizer
from .offer_filter import SORT_KEYS, OfferFilters, filter_offers, format_duration, sort_offers
from .search import search_flights

logger = logging.getLogger(__name__)

CLASS_CHOICES = [member.value for member in TravelClass]


def _resolver(airports_file: Optional[str]) -> AirportResolver:
    if airports_file:
        logger.info("Using alias table %s", airports_file)
        return AirportResolver(load_alias_table(airports_file))
    return AirportResolver()


@click.group()
@click.option("--airports-file", envvar="AIRPORTS_FILE", default=None, help="Alias table JSON")
@click.option("--log-level", envvar="LOG_LEVEL", default="WARNING", show_default=True)
@click.pass_context
def cli(ctx: click.Context, airports_file: Optional[str], log_level: str) -> None:
    """Flight price search from the command line."""
    configure_logging(log_level)
    ctx.obj = {"airports_file": airports_file, "log_level": log_level}


@cli.command()
@click.argument("origin")
@click.argument("destination")
@click.option("--date", "departure_date", required=True, help="Departure date (YYYY-MM-DD)")
@click.option("--return-date", default=None, help="Return date (YYYY-MM-DD)")
@click.option("--passengers", type=int, default=1, show_default=True)
@click.option(
    "--travel-class",
    type=click.Choice(CLASS_CHOICES, case_sensitive=False),
    default=TravelClass.ECONOMY.value,
    show_default=True,
)
@click.option("--sort", "sort_by", type=click.Choice(SORT_KEYS), default="price", show_default=True)
@click.option("--order", type=click.Choice(["asc", "desc"]), default="asc", show_default=True)
@click.option("--direct-only", is_flag=True, help="Only non-stop flights")
@click.option("--max-stops", type=int, default=None)
@click.pass_context
def search(
    ctx: click.Context,
    origin: str,
    destination: str,
    departure_date: str,
    return_date: Optional[str],
    passengers: int,
    travel_class: str,
    sort_by: str,
    order: str,
    direct_only: bool,
    max_stops: Optional[int],
) -> None:
    """Search flights from ORIGIN to DESTINATION."""
    try:
        settings = get_settings()
    except PydanticValidationError as exc:
        fields = ", ".join(str(err["loc"][0]) for err in exc.errors() if err.get("loc"))
        raise click.ClickException(f"Invalid configuration: {fields}") from None

    configure_logging(ctx.obj["log_level"], settings.log_file, settings.secrets)
    resolver = _resolver(ctx.obj.get("airports_file") or settings.airports_file)
    outcome = search_flights(
        {
            "origin": origin,
            "destination": destination,
            "departure_date": departure_date,
            "return_date": return_date,
            "passengers": passengers,
            "travel_class": travel_class,
        },
        fetcher=FlightApiFetcher.from_settings(settings),
        resolver=resolver,
        normalizer=ResponseNormalizer(resolver, settings.inr_per_usd),
    )

    if isinstance(outcome, ClassifiedError):
        click.echo(f"{outcome.kind.value}: {outcome.user_message}", err=True)
        click.echo(outcome.suggestion, err=True)
        ctx.exit(1)

    offers = filter_offers(
        outcome.offers, OfferFilters(direct_only=direct_only, max_stops=max_stops)
    )
    offers = sort_offers(offers, sort_by, order)
    if not offers:
        click.echo("No offers match the selected filters")
        return
    for off in offers:
        click.echo(f"{off}  ({format_duration(off.duration_minutes)})")


@cli.command()
@click.argument("text")
@click.pass_context
def resolve(ctx: click.Context, text: str) -> None:
    """Print the IATA code for TEXT."""
    click.echo(_resolver(ctx.obj.get("airports_file")).resolve(text))


@cli.command()
@click.argument("code")
@click.pass_context
def describe(ctx: click.Context, code: str) -> None:
    """Print the display name for an IATA CODE."""
    click.echo(_resolver(ctx.obj.get("airports_file")).describe(code.strip().upper()))


@cli.command()
@click.argument("query")
@click.option("--limit", type=int, default=8, show_default=True)
@click.pass_context
def suggest(ctx: click.Context, query: str, limit: int) -> None:
    """Autocomplete airports matching QUERY."""
    results = _resolver(ctx.obj.get("airports_file")).suggest(query, limit)
    if not results:
        click.echo("No airports found")
        return
    for code, name in results:
        click.echo(f"{code}  {name}")


if __name__ == "__main__":
    cli()
