"""
Unit tests for the milestone generator.
"""
import json

from ecopledge.services.milestones import DEFAULT_MILESTONES, MAX_MILESTONES, suggest_milestones
from ecopledge.services.oracle import Interpretation

TEXT = "I will bring a reusable cup to the cafe"
INTERP = Interpretation(category="waste", frequency="daily")


def test_no_oracle_returns_three_defaults(oracle):
    result = suggest_milestones(TEXT, INTERP, oracle)
    assert result == list(DEFAULT_MILESTONES)
    assert [m.target_value for m in result] == [7, 30, 90]
    assert [m.title for m in result] == ["First Week", "One Month Strong", "Sustainability Champion"]


def test_oracle_reply_used(oracle):
    oracle.replies = [json.dumps([
        {"title": "10 cups", "description": "Skip 10 paper cups", "targetValue": 10,
         "estimatedCarbonSavings": 1.1},
        {"title": "50 cups", "description": "Skip 50 paper cups", "targetValue": 50,
         "estimatedCarbonSavings": 5.5},
    ])]
    result = suggest_milestones(TEXT, INTERP, oracle)
    assert [(m.title, m.target_value, m.estimated_carbon_savings) for m in result] == [
        ("10 cups", 10.0, 1.1),
        ("50 cups", 50.0, 5.5),
    ]


def test_truncated_to_three(oracle):
    oracle.replies = [json.dumps([{"title": f"m{i}", "targetValue": i + 1} for i in range(6)])]
    result = suggest_milestones(TEXT, INTERP, oracle)
    assert len(result) == MAX_MILESTONES
    assert [m.title for m in result] == ["m0", "m1", "m2"]


def test_fields_default_independently(oracle):
    oracle.replies = [json.dumps([
        {"description": "no title", "targetValue": 0, "estimatedCarbonSavings": -3},
        {"title": "  ", "targetValue": "abc"},
        "not an object",
    ])]
    first, second, third = suggest_milestones(TEXT, INTERP, oracle)
    assert (first.title, first.description, first.target_value, first.estimated_carbon_savings) == (
        "Milestone", "no title", 1, 0,
    )
    assert (second.title, second.target_value) == ("Milestone", 1)
    assert (third.title, third.description, third.target_value) == ("Milestone", "", 1)


def test_empty_array_uses_defaults(oracle):
    oracle.replies = ["[]"]
    assert suggest_milestones(TEXT, INTERP, oracle) == list(DEFAULT_MILESTONES)


def test_undecodable_reply_uses_defaults(oracle):
    oracle.replies = ["Here are some ideas: walk more."]
    assert suggest_milestones(TEXT, INTERP, oracle) == list(DEFAULT_MILESTONES)


def test_oracle_crash_uses_defaults(oracle):
    oracle.replies = [RuntimeError("socket closed")]
    assert suggest_milestones(TEXT, INTERP, oracle) == list(DEFAULT_MILESTONES)
