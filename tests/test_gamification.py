"""
Tests for the gamification engine: level table, badge rules and stats deltas.
"""
import itertools

import pytest

from ecopledge.core.errors import UserNotFoundError
from ecopledge.models.notification import Notification
from ecopledge.models.user import UserBadge
from ecopledge.services.gamification import (
    BADGE_RULES,
    LEVEL_THRESHOLDS,
    BadgeEvent,
    BadgeRule,
    apply_stats_delta,
    evaluate_badges,
    level_for,
)

MISSING_USER_ID = 987654321


class TestLevel:
    @pytest.mark.parametrize("total,level", [
        (0, 1), (9.99, 1), (10, 2), (15, 2), (49, 2), (50, 3), (100, 4),
        (999, 6), (1000, 7), (9999, 9), (10000, 10), (1_000_000, 10),
    ])
    def test_threshold_lookup(self, total, level):
        assert level_for(total) == level

    def test_minimum_is_one(self):
        assert level_for(-5) == 1
        assert level_for(5, thresholds=(10, 20)) == 1

    def test_custom_table(self):
        assert level_for(25, thresholds=(0, 5, 20, 100)) == 3

    @pytest.mark.parametrize("deltas", [
        [15],
        [5, 5, 5],
        [12, 3],
        [0.5] * 30,
        [60, 40, 900, 1.5],
    ])
    def test_level_independent_of_delta_order(self, db, make_user, deltas):
        expected = level_for(sum(deltas))
        for ordering in {tuple(p) for p in itertools.islice(itertools.permutations(deltas), 6)}:
            user = make_user()
            for d in ordering:
                apply_stats_delta(db, user.id, carbon_delta=d)
            db.commit()
            db.refresh(user)
            assert user.total_carbon_saved == pytest.approx(sum(deltas))
            assert user.level == expected


class TestBadges:
    def test_rule_table_order(self):
        assert [r.badge_id for r in BADGE_RULES] == [
            "first_commitment", "commitment_5", "commitment_10", "first_milestone",
            "carbon_10kg", "carbon_100kg", "carbon_1000kg", "7_day_streak", "30_day_streak",
        ]

    def test_carbon_delta_awards_badge_and_level(self, db, make_user):
        user = make_user()
        apply_stats_delta(db, user.id, carbon_delta=15)
        db.commit()
        db.refresh(user)
        assert user.total_carbon_saved == 15
        assert user.level == 2
        assert user.badge_ids == ["carbon_10kg"]

    def test_badge_awarded_once(self, db, make_user):
        user = make_user(total_carbon_saved=120.0)
        assert evaluate_badges(db, user.id, BadgeEvent.PROGRESS_UPDATE) == ["carbon_10kg", "carbon_100kg"]
        assert evaluate_badges(db, user.id, BadgeEvent.PROGRESS_UPDATE) == []
        db.commit()
        count = db.query(UserBadge).filter(UserBadge.user_id == user.id).count()
        assert count == 2

    def test_each_badge_notifies(self, db, make_user):
        user = make_user(total_carbon_saved=10.0)
        evaluate_badges(db, user.id, BadgeEvent.PROGRESS_UPDATE)
        db.commit()
        notes = db.query(Notification).filter(Notification.user_id == user.id).all()
        assert len(notes) == 1
        assert notes[0].type == "milestone"
        assert "10kg CO2 Saved" in notes[0].message

    def test_first_commitment_needs_its_event(self, db, make_user):
        user = make_user(total_commitments=1)
        assert evaluate_badges(db, user.id, BadgeEvent.PROGRESS_UPDATE) == []
        assert evaluate_badges(db, user.id, BadgeEvent.COMMITMENT_CREATED) == ["first_commitment"]
        db.commit()

    def test_first_milestone_on_milestone_event(self, db, make_user):
        user = make_user(completed_milestones=1)
        assert evaluate_badges(db, user.id, BadgeEvent.MILESTONE_COMPLETED) == ["first_milestone"]
        db.commit()

    def test_commitment_count_badges(self, db, make_user):
        user = make_user(total_commitments=4)
        apply_stats_delta(db, user.id, commitments_delta=1)
        assert evaluate_badges(db, user.id, BadgeEvent.COMMITMENT_CREATED) == ["commitment_5"]
        db.commit()

    @pytest.mark.parametrize("days,expected", [(6, []), (7, ["7_day_streak"]), (30, ["30_day_streak"])])
    def test_streak_rules_match_exact_days(self, db, make_user, days, expected):
        user = make_user()
        assert evaluate_badges(db, user.id, BadgeEvent.STREAK, data={"days": days}) == expected
        db.commit()

    def test_injected_rules(self, db, make_user):
        rules = (BadgeRule("always", "Always", lambda c: True),)
        user = make_user()
        assert evaluate_badges(db, user.id, BadgeEvent.PROGRESS_UPDATE, rules=rules) == ["always"]
        assert evaluate_badges(db, user.id, BadgeEvent.PROGRESS_UPDATE, rules=rules) == []
        db.commit()

    def test_missing_user_has_no_badges(self, db):
        assert evaluate_badges(db, MISSING_USER_ID, BadgeEvent.PROGRESS_UPDATE) == []


class TestApplyStatsDelta:
    def test_missing_user_raises(self, db):
        with pytest.raises(UserNotFoundError):
            apply_stats_delta(db, MISSING_USER_ID, carbon_delta=1)

    def test_counters_are_additive(self, db, make_user):
        user = make_user()
        apply_stats_delta(db, user.id, commitments_delta=2, milestones_delta=1)
        apply_stats_delta(db, user.id, commitments_delta=1)
        db.commit()
        db.refresh(user)
        assert (user.total_commitments, user.completed_milestones) == (3, 1)

    def test_zero_carbon_delta_skips_badges(self, db, make_user):
        user = make_user(total_carbon_saved=500.0)
        apply_stats_delta(db, user.id, carbon_delta=0)
        db.commit()
        db.refresh(user)
        assert user.badge_ids == []
        assert user.level == level_for(500.0)

    def test_custom_thresholds(self, db, make_user):
        user = make_user()
        apply_stats_delta(db, user.id, carbon_delta=3, thresholds=(0, 1, 2), rules=())
        db.commit()
        db.refresh(user)
        assert user.level == 3
        assert user.badge_ids == []

    def test_level_table_is_immutable(self):
        assert isinstance(LEVEL_THRESHOLDS, tuple)
        assert isinstance(BADGE_RULES, tuple)
