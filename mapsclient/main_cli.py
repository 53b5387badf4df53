"""
Command-line lookups against the Maps Server API.

Reads credentials from the environment (or a .env file) and prints the
JSON result of one call.

Usage:
    mapsclient geocode "1 Infinite Loop, Cupertino"
    mapsclient reverse-geocode 37.3349 -122.009
    mapsclient search "coffee" --near 37.78,-122.41
    mapsclient autocomplete "Apple Par"
    mapsclient resolve "/v1/search?q=Apple%20Park&metadata=..."
    mapsclient directions "San Francisco" "Oakland" --transport Walking
    mapsclient eta 37.78,-122.41 37.80,-122.27 37.33,-121.89
"""

import argparse
import json
import sys
from typing import List, Optional, Tuple

from .config.config_module import ConfigError
from .config.logger_module import initialize_logger, log_error
from .maps.maps_client import MapsClient
from .pipeline.pipeline_errors import MapsClientError


def _parse_coordinates(text: str) -> Tuple[float, float]:
    try:
        lat, lng = (float(part) for part in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected 'lat,lng', got {text!r}")
    return lat, lng


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mapsclient", description="Query the Maps Server API")
    parser.add_argument("--env-file", default=".env", help="Path to a .env file (default: .env)")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    parser.add_argument("--log-file", default=None, help="Also write DEBUG logs to this file")
    parser.add_argument("--language", default=None, help="Response language, e.g. en-US")

    commands = parser.add_subparsers(dest="command", required=True)

    geocode = commands.add_parser("geocode", help="Geocode an address")
    geocode.add_argument("address")
    geocode.add_argument("--country", action="append", dest="countries", help="Limit to a country code")

    reverse = commands.add_parser("reverse-geocode", help="Find places at a coordinate")
    reverse.add_argument("latitude", type=float)
    reverse.add_argument("longitude", type=float)

    search = commands.add_parser("search", help="Search for places")
    search.add_argument("query")
    search.add_argument("--near", type=_parse_coordinates, help="Bias results to 'lat,lng'")

    autocomplete = commands.add_parser("autocomplete", help="Suggest completions for partial input")
    autocomplete.add_argument("query")
    autocomplete.add_argument("--near", type=_parse_coordinates, help="Bias suggestions to 'lat,lng'")

    resolve = commands.add_parser("resolve", help="Run the search behind an autocomplete result")
    resolve.add_argument("completion_url")

    directions = commands.add_parser("directions", help="Get directions")
    directions.add_argument("origin")
    directions.add_argument("destination")
    directions.add_argument("--transport", default=None, help="Automobile, Transit, Walking or Cycling")

    eta = commands.add_parser("eta", help="Estimate travel times")
    eta.add_argument("origin", type=_parse_coordinates)
    eta.add_argument("destinations", type=_parse_coordinates, nargs="+")
    eta.add_argument("--transport", default=None, help="Automobile, Transit, Walking or Cycling")

    return parser


def run_command(client: MapsClient, args: argparse.Namespace):
    """Dispatch parsed arguments to the matching client call."""
    if args.command == "geocode":
        return client.geocode(args.address, limit_to_countries=args.countries, language=args.language)
    if args.command == "reverse-geocode":
        return client.reverse_geocode(args.latitude, args.longitude, language=args.language)
    if args.command == "search":
        return client.search(args.query, language=args.language, search_location=args.near)
    if args.command == "autocomplete":
        return client.autocomplete(args.query, language=args.language, search_location=args.near)
    if args.command == "resolve":
        return client.resolve_completion_url(args.completion_url)
    if args.command == "directions":
        return client.directions(args.origin, args.destination,
                                 transport_type=args.transport, language=args.language)
    if args.command == "eta":
        return client.etas(args.origin, args.destinations, transport_type=args.transport)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    initialize_logger(log_level=args.log_level, log_file=args.log_file)

    try:
        with MapsClient.from_env(args.env_file) as client:
            result = run_command(client, args)
    except ConfigError as e:
        log_error(f"Configuration problem: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 2
    except (MapsClientError, ValueError) as e:
        log_error(f"{args.command} failed: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result.model_dump(mode="json", by_alias=True, exclude_none=True), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
