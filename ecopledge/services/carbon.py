"""
Carbon estimator: Interpretation + duration -> CarbonEstimate.

Oracle first; the reply is accepted only when both perPeriod and total are
finite non-negative numbers. Anything else falls through to the
deterministic baseline table below (confidence forced to "low").
"""
from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Optional

from ecopledge.models.commitment import Category, Frequency
from ecopledge.services.oracle import Interpretation, Oracle, ask, extract_json_object

logger = logging.getLogger(__name__)

UNIT = "kg CO2"
CONFIDENCE_LEVELS = ("high", "medium", "low")

# kg CO2 saved per frequency period, by category
BASELINE_KG_PER_PERIOD: dict[str, float] = {
    Category.transport.value: 5.0,
    Category.energy.value: 3.0,
    Category.food.value: 2.5,
    Category.waste.value: 1.5,
    Category.water.value: 1.0,
    Category.consumption.value: 2.0,
    Category.other.value: 1.0,
}

FREQUENCY_MULTIPLIER: dict[str, int] = {
    Frequency.daily.value: 30,
    Frequency.weekly.value: 4,
    Frequency.monthly.value: 1,
    Frequency.once.value: 1,
}

BASELINE_EXPLANATION = "Estimated using baseline averages"
DEFAULT_ORACLE_EXPLANATION = "Estimated based on commitment details"


@dataclass
class CarbonEstimate:
    per_period: float
    total: float
    unit: str = UNIT
    confidence: str = "low"
    explanation: str = BASELINE_EXPLANATION
    degraded: bool = False


_ESTIMATE_PROMPT = """Estimate CO2 savings in kg for this commitment. Return JSON only.

Category: {category}
Frequency: {frequency}
Duration: {duration}
Details: {details}
Parameters: {parameters}

Calculate:
- perPeriod: kg CO2 saved per frequency period
- total: total kg CO2 for duration
- confidence: high/medium/low
- explanation: brief reasoning

Return valid JSON format."""


def parse_amount(value: Any) -> Optional[float]:
    """Parse a non-negative finite number; bools and garbage are rejected."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return number


def baseline_estimate(interpretation: Interpretation) -> CarbonEstimate:
    per_period = BASELINE_KG_PER_PERIOD.get(interpretation.category, 1.0)
    multiplier = FREQUENCY_MULTIPLIER.get(interpretation.frequency, 1)
    return CarbonEstimate(
        per_period=per_period,
        total=per_period * multiplier,
        unit=UNIT,
        confidence="low",
        explanation=BASELINE_EXPLANATION,
        degraded=True,
    )


def estimate_carbon_savings(
    interpretation: Interpretation,
    duration: str,
    oracle: Oracle,
) -> CarbonEstimate:
    reply = ask(
        oracle,
        _ESTIMATE_PROMPT.format(
            category=interpretation.category,
            frequency=interpretation.frequency,
            duration=duration,
            details=interpretation.extracted_details,
            parameters=json.dumps(interpretation.parameters, default=str),
        ),
        purpose="carbon estimate",
    )
    if reply is None:
        return baseline_estimate(interpretation)

    parsed = extract_json_object(reply)
    if parsed is None:
        logger.warning("oracle estimate reply could not be decoded; using baseline")
        return baseline_estimate(interpretation)

    per_period = parse_amount(parsed.get("perPeriod"))
    total = parse_amount(parsed.get("total"))
    if per_period is None or total is None:
        logger.warning("oracle estimate lacks numeric perPeriod/total; using baseline")
        return baseline_estimate(interpretation)

    confidence = parsed.get("confidence")
    explanation = parsed.get("explanation")
    return CarbonEstimate(
        per_period=per_period,
        total=total,
        unit=UNIT,
        confidence=confidence if confidence in CONFIDENCE_LEVELS else "medium",
        explanation=(
            explanation if isinstance(explanation, str) and explanation.strip()
            else DEFAULT_ORACLE_EXPLANATION
        ),
        degraded=False,
    )
