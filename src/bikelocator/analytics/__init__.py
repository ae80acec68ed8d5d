__all__ = [
    "battery_from_percentage",
    "estimate_from_voltage",
]

from bikelocator.analytics.battery import battery_from_percentage, estimate_from_voltage
