"""
Round search policy

Candidates start one round before the latest reported round, are capped at
the assigned round of a submitted request, and never go below zero.
"""

import pytest

from flare_attest.services.rounds import RoundSearchPolicy


def test_starts_one_before_latest():
    policy = RoundSearchPolicy(max_attempts=5)
    assert policy.start_round(100) == 99
    assert policy.candidates(100) == [99, 98, 97, 96, 95]


def test_candidates_strictly_decreasing_and_bounded():
    policy = RoundSearchPolicy(max_attempts=3)
    candidates = policy.candidates(1000)
    assert len(candidates) == 3
    assert all(a > b for a, b in zip(candidates, candidates[1:]))


def test_assigned_round_caps_the_start():
    policy = RoundSearchPolicy(max_attempts=3)
    # Request landed in round 90 while the DA layer is already at 100
    assert policy.candidates(100, ceiling=90) == [90, 89, 88]
    # Ceiling newer than latest - 1 has no effect
    assert policy.candidates(100, ceiling=150) == [99, 98, 97]


def test_never_negative():
    policy = RoundSearchPolicy(max_attempts=5)
    assert policy.candidates(2) == [1, 0]
    assert policy.candidates(0) == []


def test_rejects_zero_attempts():
    with pytest.raises(ValueError):
        RoundSearchPolicy(max_attempts=0)
