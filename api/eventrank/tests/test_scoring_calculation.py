"""Unit tests for final score calculation and boost aggregation."""

from __future__ import annotations

import itertools
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from eventrank.schema.scoring import AdminOverride, AdminOverrideSet, AIScores, CuratorBoost, CuratorBoostSet, ScoreOverride
from eventrank.services.scoring_service import (
    aggregate_curator_boosts,
    calculate_final_scores,
    format_curator_boosts,
)

NOW = datetime(2026, 10, 17, tzinfo=timezone.utc)


def _boost(curator_id: str, **categories: int) -> CuratorBoost:
    return CuratorBoost(curator_id=curator_id, boosted_at=NOW, **categories)


def _admin(**categories: int) -> AdminOverride:
    return AdminOverride(set_by="admin-1", set_at=NOW, **categories)


def test_no_override_sums_ai_scores():
    finals = calculate_final_scores({"rarity": 4, "unique": 7, "magnitude": 2}, None)
    assert (finals.rarity, finals.unique, finals.magnitude, finals.total) == (4, 7, 2, 13)


def test_two_curator_boosts_add_up():
    override = ScoreOverride(curator_boosts=[_boost("c1", rarity=2), _boost("c2", rarity=2)])
    finals = calculate_final_scores(AIScores(rarity=5, unique=5, magnitude=5), override)
    assert finals.rarity == 9
    assert finals.total == 19


def test_admin_override_replaces_category_regardless_of_boosts():
    override = ScoreOverride(
        admin_override=_admin(rarity=3),
        curator_boosts=[_boost("c1", rarity=2, unique=1), _boost("c2", rarity=2, magnitude=-1)],
    )
    finals = calculate_final_scores(AIScores(rarity=5, unique=5, magnitude=5), override)
    assert finals.rarity == 3
    assert finals.unique == 6
    assert finals.magnitude == 4
    assert finals.total == 13


def test_admin_override_of_zero_is_honored():
    override = ScoreOverride(admin_override=_admin(magnitude=0), curator_boosts=[_boost("c1", magnitude=2)])
    finals = calculate_final_scores(AIScores(rarity=1, unique=1, magnitude=9), override)
    assert finals.magnitude == 0


def test_aggregate_boosts_clamped_to_six():
    boosts = [_boost(f"c{i}", rarity=2, unique=-2) for i in range(5)]
    totals = aggregate_curator_boosts(boosts)
    assert totals.rarity == 6
    assert totals.unique == -6
    assert totals.magnitude == 0


def test_final_categories_clamped_to_zero_and_ten():
    boosts = [_boost(f"c{i}", rarity=2, unique=-2) for i in range(3)]
    finals = calculate_final_scores(AIScores(rarity=9, unique=1, magnitude=10), ScoreOverride(curator_boosts=boosts))
    assert finals.rarity == 10
    assert finals.unique == 0
    assert finals.total == 20


@pytest.mark.parametrize("rarity,boost", list(itertools.product([0, 5, 10], [-2, 0, 2])))
def test_totals_always_within_bounds(rarity, boost):
    boosts = [_boost(f"c{i}", rarity=boost, unique=boost, magnitude=boost) for i in range(4)]
    finals = calculate_final_scores(
        AIScores(rarity=rarity, unique=rarity, magnitude=rarity), ScoreOverride(curator_boosts=boosts)
    )
    for value in (finals.rarity, finals.unique, finals.magnitude):
        assert 0 <= value <= 10
    assert 0 <= finals.total <= 30


def test_total_is_monotonic_in_boosts():
    ai = AIScores(rarity=4, unique=4, magnitude=4)
    previous = -1
    for value in (-2, -1, 0, 1, 2):
        total = calculate_final_scores(ai, ScoreOverride(curator_boosts=[_boost("c1", rarity=value)])).total
        assert total >= previous
        previous = total


def test_clearing_admin_override_keeps_boost_effect():
    boosts = [_boost("c1", unique=2)]
    with_admin = ScoreOverride(admin_override=_admin(unique=1), curator_boosts=boosts)
    ai = AIScores(rarity=5, unique=5, magnitude=5)
    assert calculate_final_scores(ai, with_admin).unique == 1

    cleared = with_admin.model_copy(update={"admin_override": None})
    assert calculate_final_scores(ai, cleared).unique == 7


def test_missing_ai_scores_read_as_zero():
    finals = calculate_final_scores({}, ScoreOverride(curator_boosts=[_boost("c1", rarity=-2)]))
    assert finals.rarity == 0
    assert finals.total == 0


def test_null_ai_scores_read_as_zero():
    finals = calculate_final_scores({"rarity": None, "unique": 5, "magnitude": 5}, None)
    assert finals.rarity == 0
    assert finals.total == 10


def test_format_curator_boosts_summarizes_without_names():
    summary = format_curator_boosts([_boost("c1", rarity=2), _boost("c2", rarity=2, magnitude=-1)])
    assert summary == "Curator boosts: +4 rarity, -1 magnitude"
    assert "c1" not in summary
    assert format_curator_boosts([]) is None


def test_payloads_reject_out_of_range_values():
    with pytest.raises(ValidationError):
        AdminOverrideSet(rarity=11)
    with pytest.raises(ValidationError):
        CuratorBoostSet(unique=3)
    with pytest.raises(ValidationError):
        CuratorBoostSet()
