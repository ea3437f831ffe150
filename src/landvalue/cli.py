"""Command-line front end for landvalue.

Run via: landvalue <command> [options]
Or: python -m landvalue.cli <command> [options]
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .api.client import ApiClient
from .config import config
from .errors import LandValueError
from .location import GeoLocationGate, StaticLocationProvider
from .models.property import Position, Property, PropertyFeatures
from .query import FeatureFlag, PropertyQueryEngine, SortKey, ValueRange, ViewSpec, clamp_radius
from .valuation import ValuationSession

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with Rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _format_price(value: Optional[float]) -> str:
    return "N/A" if value is None else f"${value:,.0f}"


def print_properties(properties: list[Property], title: str) -> None:
    """Print listings as a Rich table."""
    if not properties:
        console.print("[yellow]No properties found.[/yellow]")
        return

    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Address", max_width=40)
    table.add_column("Zoning")
    table.add_column("Price", justify="right")
    table.add_column("Area (sq ft)", justify="right")
    table.add_column("$/sq ft", justify="right")
    table.add_column("Water")
    table.add_column("Road")
    table.add_column("Utilities")

    def flag(value: bool) -> str:
        return "[green]yes[/green]" if value else "[red]no[/red]"

    for prop in properties:
        table.add_row(
            escape(prop.address[:40]),
            (prop.zoning or "Unknown").capitalize(),
            _format_price(prop.price),
            f"{prop.area:,.0f}" if prop.area is not None else "N/A",
            f"{prop.price_per_sq_ft:,.2f}" if prop.price_per_sq_ft is not None else "N/A",
            flag(prop.features.near_water),
            flag(prop.features.road_access),
            flag(prop.features.utilities),
        )
    console.print(table)


async def resolve_position(args: argparse.Namespace) -> Position:
    """Use --lat/--lng when given, otherwise run the location gate."""
    if args.lat is not None and args.lng is not None:
        return Position(latitude=args.lat, longitude=args.lng)
    gate = GeoLocationGate(StaticLocationProvider.from_settings(config))
    return await gate.acquire()


def build_view(args: argparse.Namespace) -> ViewSpec:
    """Translate nearby/search filter flags into a ViewSpec."""
    return ViewSpec(
        sort_key=SortKey(args.sort),
        ascending=not args.desc,
        price_range=ValueRange(low=args.min_price, high=args.max_price),
        area_range=ValueRange(low=args.min_area, high=args.max_area),
        zoning=args.zoning,
        features=frozenset(FeatureFlag(f) for f in args.feature or []),
    )


async def cmd_locate(args: argparse.Namespace) -> int:
    position = await resolve_position(args)
    console.print(f"Position: {position.latitude:.6f}, {position.longitude:.6f}")
    return 0


async def cmd_nearby(args: argparse.Namespace) -> int:
    position = await resolve_position(args)
    radius = clamp_radius(args.radius)
    async with ApiClient() as client:
        engine = PropertyQueryEngine(client, position, radius=radius, limit=args.limit)
        engine.view = build_view(args)
        await engine.refresh()
        visible = engine.visible()

    print_properties(visible, f"Within {radius / 1000:.1f} km ({len(visible)} of {len(engine.collection)})")
    if engine.dropped:
        console.print(f"[dim]{engine.dropped} unreadable records skipped[/dim]")
    return 0


async def cmd_search(args: argparse.Namespace) -> int:
    async with ApiClient() as client:
        engine = PropertyQueryEngine(client, Position(latitude=0, longitude=0))
        engine.view = build_view(args)
        result = await engine.search(args.address)
        visible = engine.visible()

    if result is not None and result.degraded:
        console.print(f"[yellow]Backend did not geocode {args.address!r}[/yellow]")
    elif result is not None:
        location = result.location
        console.print(
            f"Located {location.formatted_address or args.address} "
            f"at {location.lat:.6f}, {location.lng:.6f}"
        )
    print_properties(visible, f"Near {args.address}")
    return 0


async def cmd_estimate(args: argparse.Namespace) -> int:
    position = await resolve_position(args)
    features = PropertyFeatures(
        near_water=args.near_water,
        road_access=not args.no_road_access,
        utilities=not args.no_utilities,
    )
    async with ApiClient() as client:
        session = ValuationSession(client, position)
        result = await session.estimate(args.area, args.zoning, features)

    if result is None:
        return 1

    valuation = result.valuation
    console.print(f"[bold green]Estimated value: ${valuation.estimated_value:,}[/bold green]")
    console.print(f"Land area: {valuation.area_in_sq_ft:,.0f} sq ft")
    console.print(f"Average price: ${valuation.avg_price_per_sq_ft:,.2f}/sq ft")
    console.print(f"Zoning: {valuation.zoning.capitalize()}")
    console.print(f"Location: {result.location.address}")

    for factor in valuation.valuation_factors:
        color = "green" if factor.is_increase else "red"
        console.print(f"  [{color}]{factor.factor}: {factor.adjustment}[/{color}]")

    if result.comparables:
        table = Table(title="Comparable properties", show_header=True, header_style="bold")
        table.add_column("Address", max_width=40)
        table.add_column("Price", justify="right")
        table.add_column("Area (sq ft)", justify="right")
        table.add_column("$/sq ft", justify="right")
        for comp in result.comparables:
            table.add_row(
                escape(comp.address[:40]),
                _format_price(comp.price),
                f"{comp.area:,.0f}",
                f"{comp.price_per_sq_ft:,.2f}",
            )
        console.print(table)
    return 0


async def cmd_scrape(args: argparse.Namespace) -> int:
    async with ApiClient() as client:
        ack = await client.scrape_listings(args.location)
    console.print(f"Scraping initiated: {escape(str(ack.get('message', ack)))}")
    console.print("[dim]Scraping runs in the background and may take several minutes.[/dim]")
    return 0


async def cmd_check(args: argparse.Namespace) -> int:
    async with ApiClient() as client:
        results = await client.check_endpoints()

    table = Table(title=f"API check: {client.base_url}", show_header=True, header_style="bold")
    table.add_column("Endpoint")
    table.add_column("Status")
    table.add_column("Detail", max_width=60)
    for name, status in results.items():
        label = "[green]ok[/green]" if status.ok else "[red]failed[/red]"
        if status.status is not None:
            label += f" ({status.status})"
        table.add_row(name, label, escape(status.detail))
    console.print(table)
    return 0 if all(s.ok for s in results.values()) else 1


COMMANDS = {
    "locate": cmd_locate,
    "nearby": cmd_nearby,
    "search": cmd_search,
    "estimate": cmd_estimate,
    "scrape": cmd_scrape,
    "check": cmd_check,
}


def _add_position_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--lat", type=float, help="Latitude (default: configured position)")
    parser.add_argument("--lng", type=float, help="Longitude (default: configured position)")


def _add_view_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--sort",
        choices=[k.value for k in SortKey],
        default=SortKey.PRICE.value,
        help="Sort field (default: price)",
    )
    parser.add_argument("--desc", action="store_true", help="Sort descending")
    parser.add_argument("--min-price", type=float, help="Minimum price")
    parser.add_argument("--max-price", type=float, help="Maximum price")
    parser.add_argument("--min-area", type=float, help="Minimum area in sq ft")
    parser.add_argument("--max-area", type=float, help="Maximum area in sq ft")
    parser.add_argument(
        "--zoning",
        default="all",
        help="Zoning to show: all, residential, commercial, agricultural, industrial",
    )
    parser.add_argument(
        "--feature",
        action="append",
        choices=[f.value for f in FeatureFlag],
        help="Required feature (repeatable)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="landvalue",
        description="Land listing and valuation client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  landvalue nearby --lat 37.7749 --lng -122.4194 --radius 8000 --sort area --desc
  landvalue search "San Francisco, CA" --feature nearWater
  landvalue estimate --area 1500 --zoning commercial --near-water
  landvalue check
        """,
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    locate = sub.add_parser("locate", help="Resolve the current position")
    _add_position_args(locate)

    nearby = sub.add_parser("nearby", help="List properties around a position")
    _add_position_args(nearby)
    nearby.add_argument(
        "--radius",
        type=float,
        default=config.default_radius,
        help=f"Search radius in meters, clamped to {config.min_radius:.0f}-{config.max_radius:.0f}",
    )
    nearby.add_argument("--limit", type=int, default=config.default_limit, help="Maximum listings")
    _add_view_args(nearby)

    search = sub.add_parser("search", help="Search properties by address")
    search.add_argument("address", help="Address or place name")
    _add_view_args(search)

    estimate = sub.add_parser("estimate", help="Estimate the value of a parcel")
    _add_position_args(estimate)
    estimate.add_argument("--area", required=True, help="Land area in sq ft")
    estimate.add_argument("--zoning", default="residential", help="Zoning class")
    estimate.add_argument("--near-water", action="store_true", help="Parcel is near water")
    estimate.add_argument("--no-road-access", action="store_true", help="Parcel has no road access")
    estimate.add_argument("--no-utilities", action="store_true", help="Parcel has no utilities")

    scrape = sub.add_parser("scrape", help="Ask the backend to scrape listings")
    scrape.add_argument("location", help="Location to scrape, e.g. a city or 'lat,lng'")

    sub.add_parser("check", help="Check every backend endpoint")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for CLI."""
    args = build_parser().parse_args(argv)
    setup_logging(verbose=args.verbose)

    try:
        code = asyncio.run(COMMANDS[args.command](args))
    except LandValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        if args.verbose:
            raise
        code = 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    main()
