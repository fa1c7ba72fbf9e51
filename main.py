"""Simple training runner for local validation."""

from __future__ import annotations

import logging
from pathlib import Path

from configs.loader import ConfigLoader, TrainingConfig
from core.deterministic_rng import DeterministicRNG
from data.logger import SimulationLogger
from engine.trainer import TrainingSession
from environment.flappy import FlappyEnvironment
from evolution.ga import GeneticEvolutionStrategy
from evolution.population import PopulationManager

LOGGER = logging.getLogger(__name__)


def build_session(config: TrainingConfig, logger: SimulationLogger | None = None) -> TrainingSession:
    """Build a training session from a validated configuration."""
    game = config.game_config()
    rng = DeterministicRNG(config.seed)

    strategy = GeneticEvolutionStrategy(
        mutation_rate=config.mutation_rate,
        crossover_rate=config.crossover_rate,
        elite_fraction=config.elite_fraction,
        tournament_size=config.tournament_size,
    )
    population = PopulationManager(
        population_size=config.population_size,
        rng=rng.stream("population"),
        strategy=strategy,
        spawn=(game.bird_x, game.bird_y),
    )
    environment = FlappyEnvironment(game, rng.stream("pipes"))

    return TrainingSession(
        population=population,
        environment=environment,
        simulation_speed=config.simulation_speed,
        seed=config.seed,
        logger=logger,
        config=config.to_dict(),
        max_frames_per_generation=config.max_frames_per_generation,
    )


def main(config_path: str = "configs/example_training.yaml") -> None:
    """Load config, build the session, and train headless."""
    config = ConfigLoader.load(config_path)
    logger = SimulationLogger(Path("simulation_metrics.db"))
    try:
        session = build_session(config=config, logger=logger)
        session.run(config.generations, frame_delta=config.frame_delta_ms)
        stats = session.get_stats()
        LOGGER.info("Finished at generation %d (best score %d)", stats.generation, stats.best_score)
    finally:
        logger.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main()
