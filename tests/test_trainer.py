"""Tests for the training session: liveness, determinism, pacing, and operator commands."""

from __future__ import annotations

import random

import pytest

from agents.brain import PerceptronBrain
from configs.game_config import DEFAULT_GAME_CONFIG
from configs.loader import TrainingConfig
from data.logger import SimulationLogger
from engine.trainer import SessionState, TrainingExecutionError, TrainingSession
from environment.flappy import FlappyEnvironment
from evolution.population import PopulationManager
from main import build_session

FRAME_MS = 1000.0 / 60.0


def _session(size: int = 4, speed: int = 1, max_frames: int | None = None, seed: int = 0) -> TrainingSession:
    population = PopulationManager(population_size=size, rng=random.Random(seed))
    environment = FlappyEnvironment(DEFAULT_GAME_CONFIG, random.Random(seed + 1))
    return TrainingSession(
        population=population,
        environment=environment,
        simulation_speed=speed,
        max_frames_per_generation=max_frames,
    )


def _silence(session: TrainingSession) -> None:
    for agent in session.population.agents:
        agent.brain = PerceptronBrain(5, 1, [0.0] * 5)


def test_never_jumping_generation_turns_over_exactly_once() -> None:
    session = _session(size=4)
    _silence(session)

    for _ in range(28):
        outcome = session.tick(FRAME_MS)
        assert outcome.generation_complete is False
    assert session.population.alive_count() == 0
    assert session.population.generation == 0

    outcome = session.tick(FRAME_MS)

    assert outcome.generation_complete is True
    assert session.population.generation == 1
    assert len(session.population.agents) == 4
    assert session.population.alive_count() == 4
    assert session.environment.tick == 0
    assert session.environment.pipes == []
    assert len(session.history) == 1
    assert session.history[0]["ticks"] == 28


@pytest.mark.parametrize("size", [1, 3])
def test_random_population_always_reaches_next_generation(size: int) -> None:
    session = _session(size=size, max_frames=400, seed=size)

    session.run(2, frame_delta=FRAME_MS, max_frames=2000)

    assert session.population.generation == 2
    assert session.control_state() == SessionState.IDLE.value


def test_equal_seeds_give_identical_trajectories() -> None:
    config = TrainingConfig(population_size=8, generations=2, mutation_rate=0.3, seed=11, max_frames_per_generation=300)

    def _trace() -> list[tuple[int, list[float], list[list[float]]]]:
        session = build_session(config)
        trace = []
        for _ in range(700):
            session.advance_frame(FRAME_MS)
            trace.append(
                (
                    session.population.generation,
                    [agent.y for agent in session.population.agents],
                    [list(agent.brain.weights) for agent in session.population.agents],
                )
            )
        return trace

    assert _trace() == _trace()


def test_pause_freezes_everything_and_resume_continues() -> None:
    session = _session(size=3)
    session.advance_frame(FRAME_MS)
    positions = [a.y for a in session.population.agents]
    tick = session.environment.tick
    timer = session.environment.pipe_stream.spawn_timer

    session.pause()
    session.pause()
    assert session.advance_frame(FRAME_MS) == []
    assert [a.y for a in session.population.agents] == positions
    assert (session.environment.tick, session.environment.pipe_stream.spawn_timer) == (tick, timer)

    assert session.toggle_pause() is False
    assert len(session.advance_frame(FRAME_MS)) == 1
    assert session.environment.tick == tick + 1


def test_speed_runs_sub_steps_with_split_delta() -> None:
    fast = _session(size=2, speed=3)
    slow = _session(size=2, speed=1)

    outcomes = fast.advance_frame(30.0)
    slow.advance_frame(30.0)

    assert len(outcomes) == 3
    assert fast.environment.tick == 3
    assert slow.environment.tick == 1
    assert fast.environment.pipe_stream.spawn_timer == pytest.approx(slow.environment.pipe_stream.spawn_timer)


def test_speed_must_be_positive() -> None:
    with pytest.raises(ValueError):
        _session(speed=0)
    session = _session()
    with pytest.raises(ValueError):
        session.set_simulation_speed(0)


def test_force_next_generation_discards_world() -> None:
    session = _session(size=5)
    for _ in range(10):
        session.advance_frame(FRAME_MS)
    session.environment.pipe_stream.spawn()

    assert session.force_next_generation() == 1
    assert session.population.alive_count() == 5
    assert session.environment.pipes == []
    assert session.environment.pipe_stream.spawn_timer == 0.0


def test_kill_all_agents_turns_over_on_next_tick() -> None:
    session = _session(size=5)
    session.advance_frame(FRAME_MS)
    session.environment.pipe_stream.spawn()

    assert session.kill_all_agents() == 5
    assert session.environment.pipes == []
    assert session.population.generation == 0

    outcome = session.tick(FRAME_MS)
    assert outcome.generation_complete is True
    assert session.population.generation == 1


def test_reset_training_starts_over() -> None:
    session = _session(size=4)
    session.force_next_generation()
    session.advance_frame(FRAME_MS)

    session.reset_training()

    assert session.population.generation == 0
    assert session.population.best_agent is None
    assert session.frame_count == 0
    assert session.history == []
    assert session.environment.tick == 0


def test_selected_agent_follows_first_live_bird() -> None:
    session = _session(size=3)
    assert session.selected_agent_id == 0

    session.population.agents[0].kill(DEFAULT_GAME_CONFIG.dead_y)
    session.tick(FRAME_MS)
    assert session.selected_agent_id == 1

    session.kill_all_agents()
    session.tick(FRAME_MS)
    assert session.selected_agent_id == 0


def test_frame_cap_bounds_generation_length() -> None:
    session = _session(size=3, max_frames=5)

    for _ in range(5):
        session.tick(FRAME_MS)
    assert session.population.alive_count() == 0

    session.tick(FRAME_MS)
    assert session.population.generation == 1


def test_generation_metrics_are_logged(tmp_path) -> None:
    logger = SimulationLogger(tmp_path / "metrics.db")
    population = PopulationManager(population_size=4, rng=random.Random(0))
    session = TrainingSession(
        population=population,
        environment=FlappyEnvironment(DEFAULT_GAME_CONFIG, random.Random(1)),
        seed=5,
        logger=logger,
        config={"population_size": 4},
        max_frames_per_generation=100,
    )

    session.run(2, frame_delta=FRAME_MS)

    assert session.experiment_id is not None
    rows = logger.fetch_metrics(session.experiment_id)
    logger.close()
    assert [row["generation_index"] for row in rows] == [0, 1]
    assert all(row["ticks"] <= 101 for row in rows)
    assert rows[1]["best_fitness_overall"] >= rows[0]["max_fitness"]


def test_logger_failures_are_wrapped(tmp_path) -> None:
    logger = SimulationLogger(tmp_path / "metrics.db")
    session = TrainingSession(
        population=PopulationManager(population_size=2, rng=random.Random(0)),
        environment=FlappyEnvironment(DEFAULT_GAME_CONFIG, random.Random(1)),
        logger=logger,
    )
    logger.close()

    with pytest.raises(TrainingExecutionError):
        session.force_next_generation()


def test_stop_halts_frames_and_run() -> None:
    session = _session(size=2)
    session.stop()

    assert session.advance_frame(FRAME_MS) == []
    session.run(3, frame_delta=FRAME_MS)

    assert session.population.generation == 0
    assert session.control_state() == SessionState.STOPPED.value


def test_always_jumping_population_dies_and_turns_over_without_cap() -> None:
    session = _session(size=6)
    for agent in session.population.agents:
        agent.brain = PerceptronBrain(5, 1, [0.0, 0.0, 10.0, 10.0, 10.0])

    ticks = 0
    while session.population.alive_count() > 0:
        outcome = session.tick(FRAME_MS)
        assert outcome.generation_complete is False
        ticks += 1
        assert ticks <= 28
    assert session.population.generation == 0

    outcome = session.tick(FRAME_MS)

    assert outcome.generation_complete is True
    assert session.population.generation == 1
    assert len(session.population.agents) == 6
    assert session.population.alive_count() == 6
