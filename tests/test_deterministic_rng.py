"""Tests for named deterministic RNG streams."""

from __future__ import annotations

from core.deterministic_rng import DeterministicRNG


def test_same_seed_and_name_replay_identically() -> None:
    a = DeterministicRNG(5).stream("population")
    b = DeterministicRNG(5).stream("population")

    assert [a.random() for _ in range(5)] == [b.random() for _ in range(5)]


def test_streams_are_independent_and_cached() -> None:
    rng = DeterministicRNG(5)
    pipes = rng.stream("pipes")
    expected = [DeterministicRNG(5).stream("pipes").random() for _ in range(1)]

    rng.stream("population").random()

    assert rng.stream("pipes") is pipes
    assert [pipes.random()] == expected
