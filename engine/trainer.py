"""Frame-driven training session: stepping, generation turnover, operator commands."""

from __future__ import annotations

import enum
import logging
import threading
from typing import Any, Mapping

from agents.bird import BirdAgent
from core.render_state import RenderState, build_render_state
from data.logger import SimulationLogger
from environment.flappy import FlappyEnvironment, StepOutcome
from evolution.population import PopulationManager, PopulationStats

LOGGER = logging.getLogger(__name__)

DEFAULT_FRAME_DELTA_MS = 1000.0 / 60.0


class SessionState(str, enum.Enum):
    """Execution control states for frame stepping."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


class TrainingExecutionError(RuntimeError):
    """Raised when one training lifecycle phase fails."""


class TrainingSession:
    """Couples a population to one Flappy world and drives it frame by frame.

    Each rendered frame runs ``simulation_speed`` stepper ticks. When a tick
    reports that no bird is alive, the session records metrics for the
    finished generation, evolves exactly once, and resets the pipe stream
    before the next tick.
    """

    def __init__(
        self,
        population: PopulationManager,
        environment: FlappyEnvironment,
        simulation_speed: int = 1,
        seed: int | None = None,
        logger: SimulationLogger | None = None,
        config: Mapping[str, Any] | None = None,
        max_frames_per_generation: int | None = None,
    ) -> None:
        """Initialize session dependencies and register the experiment.

        Args:
            population (PopulationManager): Agents of the current generation.
            environment (FlappyEnvironment): Stepper owning pipes and physics.
            simulation_speed (int): Stepper ticks per rendered frame, ``>= 1``.
            seed (int | None): Recorded with the experiment metadata.
            logger (SimulationLogger | None): Optional per-generation sink.
            config (Mapping[str, Any] | None): Serializable run configuration.
            max_frames_per_generation (int | None): Tick cap after which every
                live bird is killed so the generation ends.
        """
        self.population = population
        self.environment = environment
        self.simulation_speed = 1
        self.set_simulation_speed(simulation_speed)
        if max_frames_per_generation is not None and int(max_frames_per_generation) <= 0:
            raise ValueError("max_frames_per_generation must be > 0")
        self.max_frames_per_generation = (
            int(max_frames_per_generation) if max_frames_per_generation is not None else None
        )

        self.seed = seed
        self.logger = logger
        self.config = dict(config or {})
        self.experiment_id: str | None = None
        if self.logger is not None:
            safe_seed = int(seed if seed is not None else 0)
            self.experiment_id = self.logger.start_experiment(
                config=self.config,
                seed=safe_seed,
                metadata={"population_size": self.population.population_size},
            )

        self.frame_count = 0
        self.selected_agent_id: int | None = None
        self.last_generation_metrics: dict[str, Any] | None = None
        self.history: list[dict[str, Any]] = []

        self._state = SessionState.IDLE
        self._state_lock = threading.Lock()
        self._update_selected_agent()

    # Control state

    def control_state(self) -> str:
        with self._state_lock:
            return str(self._state.value)

    @property
    def is_paused(self) -> bool:
        with self._state_lock:
            return self._state == SessionState.PAUSED

    def pause(self) -> None:
        with self._state_lock:
            if self._state in {SessionState.IDLE, SessionState.RUNNING}:
                self._state = SessionState.PAUSED
        LOGGER.info("Training paused at generation %d", self.population.generation)

    def resume(self) -> None:
        with self._state_lock:
            if self._state == SessionState.PAUSED:
                self._state = SessionState.RUNNING
        LOGGER.info("Training resumed at generation %d", self.population.generation)

    def toggle_pause(self) -> bool:
        """Flip between paused and running; returns the new paused flag."""
        if self.is_paused:
            self.resume()
        else:
            self.pause()
        return self.is_paused

    def stop(self) -> None:
        with self._state_lock:
            self._state = SessionState.STOPPED

    def set_simulation_speed(self, speed: int) -> None:
        speed = int(speed)
        if speed < 1:
            raise ValueError("simulation_speed must be >= 1")
        self.simulation_speed = speed

    # Stepping

    def advance_frame(self, frame_delta: float = DEFAULT_FRAME_DELTA_MS) -> list[StepOutcome]:
        """Run one rendered frame worth of ticks.

        Returns an empty list while paused or stopped; nothing moves and
        no timer advances.
        """
        with self._state_lock:
            if self._state in {SessionState.PAUSED, SessionState.STOPPED}:
                return []
            self._state = SessionState.RUNNING

        sub_delta = float(frame_delta) / self.simulation_speed
        outcomes = [self.tick(sub_delta) for _ in range(self.simulation_speed)]
        self.frame_count += 1
        return outcomes

    def tick(self, elapsed: float) -> StepOutcome:
        """Advance the world by one stepper tick and turn over finished generations."""
        outcome = self._safe_call(
            "environment.step",
            self.environment.step,
            self.population.agents,
            elapsed,
        )
        if outcome.generation_complete:
            self._complete_generation(forced=False)
        elif (
            self.max_frames_per_generation is not None
            and outcome.tick >= self.max_frames_per_generation
            and outcome.alive_count > 0
        ):
            killed = self.environment.kill_all(self.population.agents)
            LOGGER.info(
                "Generation %d hit the %d tick cap; killed %d birds",
                self.population.generation,
                self.max_frames_per_generation,
                killed,
            )
        self._update_selected_agent()
        return outcome

    def run(
        self,
        generations: int,
        frame_delta: float = DEFAULT_FRAME_DELTA_MS,
        max_frames: int | None = None,
    ) -> None:
        """Drive the session headless until ``generations`` more generations finish."""
        if generations < 0:
            raise ValueError("generations must be non-negative")

        with self._state_lock:
            if self._state == SessionState.STOPPED:
                LOGGER.info("Ignoring run request on a stopped session")
                return
            self._state = SessionState.RUNNING

        target = self.population.generation + int(generations)
        frames = 0
        try:
            while self.population.generation < target:
                with self._state_lock:
                    if self._state == SessionState.STOPPED:
                        break
                self.advance_frame(frame_delta)
                frames += 1
                if max_frames is not None and frames >= max_frames:
                    LOGGER.warning("Stopping run after %d frames at generation %d", frames, self.population.generation)
                    break
        finally:
            with self._state_lock:
                if self._state != SessionState.STOPPED:
                    self._state = SessionState.IDLE

    # Operator commands

    def force_next_generation(self) -> int:
        """End the current generation now and evolve, whatever is still alive."""
        LOGGER.info("Operator forced next generation from %d", self.population.generation)
        return self._complete_generation(forced=True)

    def reset_training(self) -> None:
        """Discard all progress and start over from a random generation 0."""
        LOGGER.info("Operator reset training at generation %d", self.population.generation)
        self.population.reset()
        self.environment.reset()
        self.frame_count = 0
        self.last_generation_metrics = None
        self.history = []
        self.selected_agent_id = None
        self._update_selected_agent()

    def kill_all_agents(self) -> int:
        """Kill every live bird and clear pipes; the next tick evolves."""
        killed = self.environment.kill_all(self.population.agents)
        self.environment.pipe_stream.reset()
        LOGGER.info("Operator killed %d birds in generation %d", killed, self.population.generation)
        return killed

    # Outputs

    def get_stats(self) -> PopulationStats:
        return self.population.get_stats()

    @property
    def selected_agent(self) -> BirdAgent | None:
        if self.selected_agent_id is None:
            return None
        return self.population.get_agent(self.selected_agent_id)

    def render_state(self) -> RenderState:
        return build_render_state(self)

    def on_generation_end(self, generation_index: int, metrics: Mapping[str, Any]) -> None:
        """Persist metrics for a completed generation if logger is configured."""
        if self.logger is None or self.experiment_id is None:
            return
        self._safe_call(
            "logger.log_metrics",
            self.logger.log_metrics,
            experiment_id=self.experiment_id,
            generation_index=generation_index,
            metrics=metrics,
        )

    def _complete_generation(self, forced: bool) -> int:
        stats = self.population.get_stats()
        ticks = int(self.environment.tick)
        diversity = self.population.diversity()

        self.environment.reset()
        if forced:
            generation = self._safe_call("population.force_evolution", self.population.force_evolution)
        else:
            generation = self._safe_call("population.evolve", self.population.evolve)

        best = self.population.best_agent
        metrics: dict[str, Any] = {
            "max_fitness": float(stats.max_fitness),
            "average_fitness": float(stats.average_fitness),
            "best_score": int(stats.best_score),
            "best_fitness_overall": float(best.fitness) if best is not None else 0.0,
            "diversity": float(diversity),
            "ticks": ticks,
            "mutation_ratio": float(getattr(self.population.strategy, "last_mutation_ratio", 0.0)),
        }
        self.last_generation_metrics = metrics
        self.history.append({"generation_index": stats.generation, **metrics})
        LOGGER.info(
            "Generation %d finished after %d ticks: max %.2f avg %.2f best score %d",
            stats.generation,
            ticks,
            stats.max_fitness,
            stats.average_fitness,
            stats.best_score,
        )
        self.on_generation_end(stats.generation, metrics)
        self.selected_agent_id = None
        self._update_selected_agent()
        return generation

    def _update_selected_agent(self) -> None:
        current = self.selected_agent
        if current is not None and current.alive:
            return
        for agent in self.population.agents:
            if agent.alive:
                self.selected_agent_id = agent.agent_id
                return
        self.selected_agent_id = self.population.agents[0].agent_id if self.population.agents else None

    @staticmethod
    def _safe_call(label: str, fn: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except TrainingExecutionError:
            raise
        except Exception as exc:
            raise TrainingExecutionError(f"{label} failed: {exc}") from exc
