"""Tests for the per-tick Flappy stepper: physics, kills, scoring, and turnover signal."""

from __future__ import annotations

import random

from agents.bird import BirdAgent
from agents.brain import PerceptronBrain
from configs.game_config import DEFAULT_GAME_CONFIG
from environment.flappy import FlappyEnvironment
from environment.pipes import Pipe

NEVER_JUMP = [0.0] * 5
ALWAYS_JUMP = [0.0, 0.0, 10.0, 10.0, 10.0]


def _bird(agent_id: int = 0, y: float = 200.0, weights: list[float] | None = None) -> BirdAgent:
    return BirdAgent(
        agent_id=agent_id,
        brain=PerceptronBrain(5, 1, weights or NEVER_JUMP),
        x=50.0,
        y=y,
    )


def _environment() -> FlappyEnvironment:
    return FlappyEnvironment(DEFAULT_GAME_CONFIG, random.Random(0))


def test_bird_above_ceiling_dies_on_next_tick_and_stays_frozen() -> None:
    env = _environment()
    bird = _bird(y=DEFAULT_GAME_CONFIG.ceiling_margin - 1)
    witness = _bird(agent_id=1)

    outcome = env.step([bird, witness], 16.0)

    assert outcome.deaths == (0,)
    assert bird.alive is False
    assert (bird.y, bird.velocity) == (-1000.0, 0.0)
    assert bird.decisions == []

    for _ in range(5):
        env.step([bird, witness], 16.0)
    assert (bird.y, bird.velocity) == (-1000.0, 0.0)
    assert bird.decisions == []


def test_bird_below_floor_dies_on_next_tick() -> None:
    env = _environment()
    bird = _bird(y=DEFAULT_GAME_CONFIG.max_y + 1)

    env.step([bird], 16.0)

    assert bird.alive is False


def test_gravity_is_clamped_to_terminal_velocity() -> None:
    env = _environment()
    bird = _bird(y=100.0)
    bird.velocity = 5.8

    env.step([bird], 16.0)

    assert bird.velocity == DEFAULT_GAME_CONFIG.max_velocity
    assert bird.y == 106.0


def test_jump_sets_velocity_unless_it_would_clip_ceiling() -> None:
    env = _environment()
    free = _bird(agent_id=0, y=200.0, weights=ALWAYS_JUMP)
    cramped = _bird(agent_id=1, y=75.0, weights=ALWAYS_JUMP)

    env.step([free, cramped], 16.0)

    assert free.velocity == DEFAULT_GAME_CONFIG.jump_force
    assert cramped.velocity == 0.5
    assert free.decisions == [True]
    assert cramped.decisions == [True]


def test_never_jumping_population_dies_and_signals_completion() -> None:
    env = _environment()
    birds = [_bird(agent_id=i) for i in range(4)]

    ticks = 0
    while any(b.alive for b in birds):
        outcome = env.step(birds, 1000.0 / 60.0)
        ticks += 1
        assert outcome.generation_complete is False
        assert ticks <= 28

    assert ticks == 28
    done = env.step(birds, 1000.0 / 60.0)
    assert done.generation_complete is True
    assert done.alive_count == 0
    assert env.tick == 28


def test_every_bird_scores_each_crossed_pipe_once() -> None:
    env = _environment()
    birds = [_bird(agent_id=0), _bird(agent_id=1)]
    env.pipe_stream.pipes = [Pipe(pipe_id=7, x=-8.0, top_height=150.0)]

    env.step(birds, 0.0)
    assert [b.score for b in birds] == [0, 0]

    env.step(birds, 0.0)
    assert [b.score for b in birds] == [1, 1]
    assert env.pipes[0].passed is True
    assert all(b.scored_pipes == {7} for b in birds)

    scores: list[list[int]] = []
    for _ in range(5):
        env.step(birds, 0.0)
        scores.append([b.score for b in birds])
    assert scores == [[1, 1]] * 5


def test_fitness_is_updated_every_tick() -> None:
    env = _environment()
    bird = _bird()

    env.step([bird], 16.0)

    assert bird.fitness == bird.recompute_fitness(DEFAULT_GAME_CONFIG.bird_y)
    assert bird.fitness > 0.0


def test_kill_all_and_export_state() -> None:
    env = _environment()
    birds = [_bird(agent_id=i) for i in range(3)]
    env.pipe_stream.spawn()

    assert env.kill_all(birds) == 3
    assert env.kill_all(birds) == 0

    state = env.export_state()
    assert state["bounds"] == [600.0, 400.0]
    assert (state["min_y"], state["max_y"]) == (50.0, 330.0)
    assert len(state["pipes"]) == 1


def test_observe_matches_decision_view() -> None:
    env = _environment()
    bird = _bird()
    env.pipe_stream.pipes = [Pipe(pipe_id=0, x=200.0, top_height=70.0)]

    view = env.observe(bird)

    assert view.next_pipe is env.pipes[0]
    assert view.pipe_gap == 150.0


def test_stuck_sweep_runs_on_interval_tick_and_reports_deaths() -> None:
    env = _environment()
    wedged = _bird(agent_id=0)
    wedged.position_history.extend([287.0] * 4)
    witness = _bird(agent_id=1)

    for _ in range(19):
        outcome = env.step([wedged, witness], 1000.0 / 60.0)
        assert outcome.deaths == ()

    outcome = env.step([wedged, witness], 1000.0 / 60.0)

    assert outcome.tick == DEFAULT_GAME_CONFIG.stuck_check_interval
    assert outcome.deaths == (0,)
    assert wedged.alive is False
    assert witness.alive is True
    assert witness.y == 287.0
    assert list(witness.position_history) == [287.0]
