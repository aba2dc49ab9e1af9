"""
Milestone generator: proposes at most three milestone targets for a commitment.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ecopledge.services.carbon import parse_amount
from ecopledge.services.oracle import Interpretation, Oracle, ask, extract_json_array

logger = logging.getLogger(__name__)

MAX_MILESTONES = 3


@dataclass(frozen=True)
class MilestoneSuggestion:
    title: str
    description: str
    target_value: float
    estimated_carbon_savings: float


DEFAULT_MILESTONES: tuple[MilestoneSuggestion, ...] = (
    MilestoneSuggestion(
        title="First Week",
        description="Complete your commitment for 7 days",
        target_value=7,
        estimated_carbon_savings=5,
    ),
    MilestoneSuggestion(
        title="One Month Strong",
        description="Maintain your commitment for 30 days",
        target_value=30,
        estimated_carbon_savings=20,
    ),
    MilestoneSuggestion(
        title="Sustainability Champion",
        description="Complete 3 months of consistent action",
        target_value=90,
        estimated_carbon_savings=60,
    ),
)

_SUGGEST_PROMPT = """Suggest 3 achievable milestones for this commitment. Return JSON array only.

Commitment: "{text}"
Category: {category}
Frequency: {frequency}

For each milestone provide:
- title: short milestone name
- description: what to achieve
- targetValue: numeric goal
- estimatedCarbonSavings: kg CO2

Return valid JSON array format."""


def _from_reply(item: Any) -> MilestoneSuggestion:
    data = item if isinstance(item, dict) else {}
    title = data.get("title")
    description = data.get("description")
    target = parse_amount(data.get("targetValue"))
    savings = parse_amount(data.get("estimatedCarbonSavings"))
    return MilestoneSuggestion(
        title=title.strip()[:200] if isinstance(title, str) and title.strip() else "Milestone",
        description=description if isinstance(description, str) else "",
        target_value=target if target else 1,
        estimated_carbon_savings=savings if savings is not None else 0,
    )


def suggest_milestones(
    commitment_text: str,
    interpretation: Interpretation,
    oracle: Oracle,
) -> list[MilestoneSuggestion]:
    reply = ask(
        oracle,
        _SUGGEST_PROMPT.format(
            text=commitment_text,
            category=interpretation.category,
            frequency=interpretation.frequency,
        ),
        purpose="milestone suggestions",
    )
    if reply is None:
        return list(DEFAULT_MILESTONES)

    parsed = extract_json_array(reply)
    if not parsed:
        logger.warning("oracle milestone reply empty or undecodable; using defaults")
        return list(DEFAULT_MILESTONES)

    return [_from_reply(item) for item in parsed[:MAX_MILESTONES]]
