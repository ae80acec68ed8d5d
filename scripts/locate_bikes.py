from __future__ import annotations

# Allow running scripts without requiring an editable install (`pip install -e .`).
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
sys.path.insert(0, str(SRC_PATH))

# `argparse` provides a stable CLI interface (no interactive prompts).
import argparse
from dataclasses import replace
from typing import Optional

from bikelocator.config.loader import load_config
from bikelocator.ingestion.catalog import CatalogUnavailable
from bikelocator.ingestion.location import LocationUnavailable, location_provider_for
from bikelocator.pipeline.factory import build_catalogs, build_locator, open_sources
from bikelocator.pipeline.locator import StepState
from bikelocator.reporting.table import render_battery_details, render_table, results_to_frame
from bikelocator.utils.logging import configure_logging


STEP_LABELS = {
    "location": "GPS location",
    "publibike_map": "PubliBike map",
    "velospot_map": "Velospot map",
    "publibike_stations": "PubliBike stations",
    "velospot_stations": "Velospot stations",
    "stations": "Merged stations",
}


def _print_step(step: str, state: StepState, message: Optional[str]) -> None:
    label = STEP_LABELS.get(step, step)
    if state is StepState.PENDING:
        print(f"[ ] {label}…", file=sys.stderr)
    elif state is StepState.READY:
        print(f"[x] {label}", file=sys.stderr)
    else:
        print(f"[!] {label}: {message}", file=sys.stderr)


# Keep all side effects (config IO, network calls) inside `main()` so the module is import-safe.
def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="List the nearest PubliBike / Velospot stations.")
    parser.add_argument("--config", default=None, help="Config JSON path.")
    parser.add_argument("--lat", type=float, default=None)
    parser.add_argument("--lon", type=float, default=None)
    parser.add_argument("--max-distance", type=float, default=None, help="Ignore stations farther than this (meters).")
    parser.add_argument("--max-stations", type=int, default=None, help="Keep the N closest stations per operator.")
    parser.add_argument("--format", choices=("table", "csv", "json"), default="table")
    parser.add_argument("--details", action="store_true", help="Also list the best ebikes of each station.")
    parser.add_argument("--no-cache", action="store_true", help="Always refetch the station maps.")
    parser.add_argument("--quiet", action="store_true", help="Do not print progress steps.")
    args = parser.parse_args(argv)

    config = load_config(args.config)
    if args.max_distance is not None or args.max_stations is not None:
        config = replace(
            config,
            ranking=replace(
                config.ranking,
                max_distance_m=args.max_distance if args.max_distance is not None else config.ranking.max_distance_m,
                max_stations=args.max_stations if args.max_stations is not None else config.ranking.max_stations,
            ),
        )
    configure_logging(config.logging)

    try:
        location = location_provider_for(config, lat=args.lat, lon=args.lon)
        with open_sources(config, use_cache=not args.no_cache) as sources:
            locator = build_locator(config, location=location, catalogs=build_catalogs(config, sources))
            result = locator.locate(on_step=None if args.quiet else _print_step)
    except (LocationUnavailable, CatalogUnavailable) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.format == "csv":
        results_to_frame(result.stations).to_csv(sys.stdout, index=False)
        return 0
    if args.format == "json":
        sys.stdout.write(results_to_frame(result.stations).to_json(orient="records", force_ascii=False))
        sys.stdout.write("\n")
        return 0

    shown = config.display.max_shown_ebikes
    lines = render_table(result.stations, max_shown_ebikes=shown)
    print(lines[0])
    for line, entry in zip(lines[1:], result.stations):
        print(line)
        if args.details and entry.item.ebikes:
            print(f"    {render_battery_details(entry.item, max_shown_ebikes=shown)}")
    if not result.stations:
        print(f"No station within {config.ranking.max_distance_m:.0f}m.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
