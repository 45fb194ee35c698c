"""Tests for the weighted trending score."""

from __future__ import annotations
from datetime import timedelta
import pytest
from mcp_telemetry.trending import ActivityAggregate, ServerSource
from mcp_telemetry.trending.scoring import (
    recency_multiplier,
    round_half_up,
    score_aggregate,
    trending_score,
)
from tests._telemetry_test_helpers import FIXED_NOW


def _aggregate(**counts: int) -> ActivityAggregate:
    return ActivityAggregate(
        server_key="srv",
        source=ServerSource.REGISTRY,
        last_activity_at=FIXED_NOW - timedelta(hours=12),
        **counts,
    )


def test_reference_scenario_scores_579() -> None:
    """Five installs, one uninstall and ten tool calls twelve hours ago."""
    aggregate = _aggregate(install_count=5, uninstall_count=1, tool_call_count=10)

    assert trending_score(aggregate, now=FIXED_NOW, window_hours=168) == 579


def test_no_momentum_scores_zero_regardless_of_recency() -> None:
    aggregate = _aggregate(install_count=1, uninstall_count=1)
    aggregate.last_activity_at = FIXED_NOW

    assert trending_score(aggregate, now=FIXED_NOW, window_hours=24) == 0


def test_negative_momentum_stays_negative() -> None:
    aggregate = _aggregate(uninstall_count=2)

    assert trending_score(aggregate, now=FIXED_NOW, window_hours=168) == -80


def test_resource_reads_and_prompt_gets_count_as_activity() -> None:
    aggregate = _aggregate(resource_read_count=1, prompt_get_count=1)

    assert aggregate.activity_count == 2
    assert trending_score(aggregate, now=FIXED_NOW, window_hours=168) == 99


@pytest.mark.parametrize(
    ("hours_ago", "expected"),
    [(0, 1.0), (84, 0.5), (120, 0.5), (-5, 1.0)],
)
def test_recency_multiplier_is_clamped(hours_ago: float, expected: float) -> None:
    value = recency_multiplier(
        FIXED_NOW - timedelta(hours=hours_ago), now=FIXED_NOW, window_hours=168
    )

    assert value == pytest.approx(expected)


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0.5, 1), (1.5, 2), (2.5, 3), (578.57, 579), (2.49, 2), (-0.5, 0)],
)
def test_round_half_up(value: float, expected: int) -> None:
    assert round_half_up(value) == expected


def test_score_aggregate_maps_counts() -> None:
    aggregate = _aggregate(
        install_count=3, uninstall_count=1, tool_call_count=2, total_count=6
    )

    result = score_aggregate(aggregate, now=FIXED_NOW, window_hours=168)

    assert result.server_key == "srv"
    assert result.net_install_count == 2
    assert result.tool_call_count == 2
    assert result.total_activity_count == 6
    assert result.last_activity_at == aggregate.last_activity_at
