from __future__ import annotations

import pytest

from screen_overlay.reconnect import ReconnectPolicy


def test_default_policy_doubles_and_caps_at_thirty_seconds() -> None:
    policy = ReconnectPolicy()
    assert [policy.delay_for(attempt) for attempt in range(1, 6)] == [1.0, 2.0, 4.0, 8.0, 16.0]
    assert policy.delay_for(6) is None


def test_delay_is_capped() -> None:
    policy = ReconnectPolicy(max_attempts=10, initial_delay=5.0, multiplier=3.0, max_delay=30.0)
    assert policy.delay_for(2) == 15.0
    assert policy.delay_for(3) == 30.0
    assert policy.delay_for(10) == 30.0


@pytest.mark.parametrize("attempt", [0, -1])
def test_non_positive_attempts_have_no_delay(attempt) -> None:
    assert ReconnectPolicy().delay_for(attempt) is None


def test_zero_attempts_disables_reconnect() -> None:
    assert ReconnectPolicy(max_attempts=0).delay_for(1) is None


def test_from_mapping_falls_back_per_value() -> None:
    policy = ReconnectPolicy.from_mapping(
        {"max_attempts": "3", "initial_delay": "bad", "multiplier": 0.5, "max_delay": -4}
    )
    assert policy == ReconnectPolicy(max_attempts=3, initial_delay=1.0, multiplier=1.0, max_delay=30.0)
