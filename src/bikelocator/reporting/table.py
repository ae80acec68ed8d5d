from __future__ import annotations

from typing import Sequence

import pandas as pd

from bikelocator.reporting.formatting import battery_glyph, battery_label, format_distance, maps_url
from bikelocator.schemas.core import MergedStation, RankedStation


TABLE_COLUMNS = ["station_id", "operator", "name", "distance_m", "bikes", "ebikes", "best_battery", "lat", "lon", "maps_url"]


def render_table(results: Sequence[RankedStation[MergedStation]], *, max_shown_ebikes: int = 6) -> list[str]:
    """
    Text rendering of the located stations: Name, Dist, B (bikes), EB (ebikes), Bat (battery bars).

    Counts cover every ebike; only the first `max_shown_ebikes` get a battery bar.
    """

    rows = [("Name", "Dist", "B", "EB", "Bat")]
    for entry in results:
        station = entry.item
        shown = station.ebikes[:max_shown_ebikes]
        rows.append(
            (
                station.name,
                format_distance(entry.distance_m),
                str(station.bikes),
                str(len(station.ebikes)),
                "".join(battery_glyph(ebike.battery) for ebike in shown),
            )
        )

    widths = [max(len(row[col]) for row in rows) for col in range(len(rows[0]))]
    lines = []
    for row in rows:
        cells = [
            row[0].ljust(widths[0]),
            row[1].rjust(widths[1]),
            row[2].rjust(widths[2]),
            row[3].rjust(widths[3]),
            row[4].ljust(widths[4]),
        ]
        lines.append("  ".join(cells).rstrip())
    return lines


def render_battery_details(station: MergedStation, *, max_shown_ebikes: int = 6) -> str:
    return "  ".join(
        f"{ebike.name} ({battery_label(ebike.battery)})" for ebike in station.ebikes[:max_shown_ebikes]
    )


def results_to_frame(results: Sequence[RankedStation[MergedStation]]) -> pd.DataFrame:
    """One row per located station, in result order (ascending distance)."""

    records = []
    for entry in results:
        station = entry.item
        known = [ebike.battery for ebike in station.ebikes if ebike.battery is not None]
        records.append(
            {
                "station_id": station.station_id,
                "operator": station.operator.value,
                "name": station.name,
                "distance_m": round(entry.distance_m, 1),
                "bikes": station.bikes,
                "ebikes": len(station.ebikes),
                "best_battery": max(known) if known else None,
                "lat": station.coord.lat,
                "lon": station.coord.lon,
                "maps_url": maps_url(station.coord),
            }
        )
    df = pd.DataFrame.from_records(records, columns=TABLE_COLUMNS)
    return df.astype({"bikes": "int64", "ebikes": "int64", "best_battery": "float64"})
