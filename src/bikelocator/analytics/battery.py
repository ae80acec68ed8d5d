from __future__ import annotations

import math
from typing import Any, Optional

from bikelocator.config.models import BatterySettings


DEFAULT_BATTERY = BatterySettings()


def estimate_from_voltage(voltage: Optional[float], settings: BatterySettings = DEFAULT_BATTERY) -> Optional[float]:
    """
    Estimate state of charge (percent) of a 36V pack from its voltage.

    Inverse logistic curve centered on `settings.midpoint`:

        soc = midpoint - (1 / steepness) * ln((v_max - v) / (v - v_min))

    Readings at or above `v_max` are full, at or below `v_min` empty. A missing, NaN
    or zero reading returns `None` (unknown) rather than 0.
    """

    if voltage is None:
        return None
    voltage = float(voltage)
    # A reading of exactly 0 means the pack reported nothing, not an empty battery.
    if math.isnan(voltage) or voltage == 0:
        return None
    if voltage >= settings.v_max:
        return 100.0
    if voltage <= settings.v_min:
        return 0.0
    ratio = (settings.v_max - voltage) / (voltage - settings.v_min)
    soc = settings.midpoint - (1 / settings.steepness) * math.log(ratio)
    return max(0.0, min(100.0, soc))


def battery_from_percentage(raw: Any) -> Optional[float]:
    # Operators report 0 when the level is unknown; an empty pack is never reported as 0.
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or value == 0:
        return None
    return max(0.0, min(100.0, value))


def round_half_up(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return float(math.floor(value + 0.5))
