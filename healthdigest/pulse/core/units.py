"""
Health Unit Standardization Management

Provides unit conversion functionality with automatic bidirectional conversion generation.
Metric sources keep values in the indicator's standard unit and convert on the way
out to whatever unit a query asks for.
"""

import logging
from typing import Dict, Optional, Tuple

from .indicators_info import StandardIndicator

# ============================================================================
# RAW UNIT CONVERSIONS (Simple Configuration)
# ============================================================================

# Only configure base unit conversions - all bidirectional conversions are auto-generated
# Format: base_unit: {target_unit: conversion_factor}
# Where: 1 base_unit = conversion_factor × target_unit
_RAW_UNIT_CONVERSIONS: Dict[str, Dict[str, float]] = {
    # Mass: 1 kg = 1000 g = 2.20462 lb = 35.274 oz
    "kg": {
        "g": 1000,
        "lb": 2.20462,
        "oz": 35.274,
    },

    # Time: 1 min = 60 s = 60000 ms = 1/60 h
    "min": {
        "s": 60,
        "ms": 60000,
        "h": 1 / 60,
    },

    # Energy: 1 kcal = 1000 cal = 4.184 kJ = 4184 J
    "kcal": {
        "cal": 1000,
        "kJ": 4.184,
        "J": 4184,
    },

    # Frequency: all per-minute spellings are the same quantity
    "count/min": {
        "bpm": 1,
        "/min": 1,
        "beats/min": 1,
        "Hz": 1 / 60,
    },

    # Pressure: 1 mmHg = 0.133322 kPa = 0.0193368 psi
    "mmHg": {
        "kPa": 0.133322,
        "psi": 0.0193368,
    },
}

# Unit names used by health exports, mapped onto the symbols above
UNIT_ALIASES: Dict[str, str] = {
    "COUNT": "count",
    "KILOGRAM": "kg",
    "GRAM": "g",
    "POUND": "lb",
    "OUNCE": "oz",
    "MINUTE": "min",
    "MINUTES": "min",
    "SECOND": "s",
    "MILLISECOND": "ms",
    "HOUR": "h",
    "KILOCALORIE": "kcal",
    "Cal": "kcal",
    "CALORIE": "cal",
    "KILOJOULE": "kJ",
    "JOULE": "J",
    "BEATS_PER_MINUTE": "count/min",
    "MILLIMETER_OF_MERCURY": "mmHg",
    "KILOPASCAL": "kPa",
    "NO_UNIT": "",
}


# ============================================================================
# AUTO-GENERATE COMPLETE CONVERSIONS
# ============================================================================

def _build_complete_conversions(raw_conversions: Dict[str, Dict[str, float]]) -> Dict[str, Dict[str, float]]:
    """
    Auto-generate complete bidirectional and transitive conversions from raw config

    Example:
        Input:  {"min": {"s": 60, "h": 1/60}}
        Output: {
            "min": {"s": 60, "h": 1/60},
            "s": {"min": 1/60, "h": 1/3600},
            "h": {"min": 60, "s": 3600}
        }
    """
    result: Dict[str, Dict[str, float]] = {}

    for base_unit, conversions in raw_conversions.items():
        units = [base_unit] + list(conversions.keys())

        for from_unit in units:
            result.setdefault(from_unit, {})

            # from_unit -> base_unit
            from_to_base = 1.0 if from_unit == base_unit else 1.0 / conversions[from_unit]

            for to_unit in units:
                if from_unit == to_unit or to_unit in result[from_unit]:
                    continue

                # base_unit -> to_unit
                base_to_target = 1.0 if to_unit == base_unit else conversions[to_unit]
                result[from_unit][to_unit] = from_to_base * base_to_target

    return result


# Module-level auto-generation of complete conversions
UNIT_CONVERSIONS: Dict[str, Dict[str, float]] = _build_complete_conversions(_RAW_UNIT_CONVERSIONS)


# ============================================================================
# CORE API - Public Interface
# ============================================================================

def normalize_unit(unit: Optional[str]) -> str:
    """Map an export unit name (e.g. `KILOCALORIE`) to its symbol (`kcal`)"""
    if not unit:
        return ""

    stripped = unit.strip()
    return UNIT_ALIASES.get(stripped, UNIT_ALIASES.get(stripped.upper(), stripped))


def convert_unit(value: float, from_unit: str, to_unit: str) -> Tuple[float, bool]:
    """
    Generic unit conversion with O(1) lookup

    Examples:
        convert_unit(1, "kg", "lb")     # (2.20462, True)
        convert_unit(90, "s", "min")    # (1.5, True)
        convert_unit(1, "kg", "min")    # (1, False)

    Returns:
        Tuple[float, bool]: (converted_value, success)
    """
    from_unit = normalize_unit(from_unit)
    to_unit = normalize_unit(to_unit)

    if from_unit == to_unit:
        return value, True

    factor = UNIT_CONVERSIONS.get(from_unit, {}).get(to_unit)
    if factor is None:
        return value, False

    return value * factor, True


def convert_to_standard(indicator: StandardIndicator, value: float, unit: Optional[str]) -> Tuple[float, str]:
    """
    Convert value to the standard unit of the indicator

    An empty unit means the value is already in the standard unit. When no
    conversion rule exists the original value and unit are returned, so
    callers compare the returned unit with the standard one.

    Examples:
        >>> convert_to_standard(StandardIndicator.HEART_RATE, 75.0, "bpm")
        (75.0, "count/min")

        >>> convert_to_standard(StandardIndicator.BODY_MASS, 70000.0, "g")
        (70.0, "kg")
    """
    standard_unit = indicator.value.standard_unit

    if not unit or not unit.strip():
        return value, standard_unit

    converted, success = convert_unit(value, unit, standard_unit)
    if not success:
        logging.debug(f"No conversion rule for {unit} -> {standard_unit}, keeping original")
        return value, normalize_unit(unit)

    return converted, standard_unit
