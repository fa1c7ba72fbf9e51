"""Command-line entry points for training, batching, plotting, and streaming."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from configs.loader import ConfigLoader, TrainingConfig
from data.logger import SimulationLogger
from main import build_session
from streaming.websocket_server import RenderStateServer, serve_session
from visualization.plotting import plot_experiment

LOGGER = logging.getLogger(__name__)


def _run_single(config: TrainingConfig, db_path: Path) -> str:
    logger = SimulationLogger(db_path)
    experiment_id: str | None = None
    try:
        session = build_session(config=config, logger=logger)
        session.run(config.generations, frame_delta=config.frame_delta_ms)
        experiment_id = session.experiment_id
        stats = session.get_stats()
        LOGGER.info(
            "Experiment %s reached generation %d (best overall fitness %.2f)",
            experiment_id,
            stats.generation,
            session.population.best_agent.fitness if session.population.best_agent is not None else 0.0,
        )
    finally:
        logger.close()
    if experiment_id is None:
        raise RuntimeError("Expected experiment id when logger is configured.")
    return experiment_id


def _serve(config: TrainingConfig, host: str, port: int, fps: int, db_path: Path | None) -> None:
    logger = SimulationLogger(db_path) if db_path is not None else None
    try:
        session = build_session(config=config, logger=logger)
        server = RenderStateServer(host=host, port=port, max_fps=fps, session=session)
        max_generations = config.generations if config.generations > 0 else None
        asyncio.run(serve_session(session, server, config.frame_delta_ms, max_generations=max_generations))
    finally:
        if logger is not None:
            logger.close()


def run_cli(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="flappy-evolution")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = parser.add_subparsers(dest="command", required=True)

    run_cmd = sub.add_parser("run")
    run_cmd.add_argument("--config", default="configs/example_training.yaml")
    run_cmd.add_argument("--db", default="simulation_metrics.db")

    batch_cmd = sub.add_parser("batch")
    batch_cmd.add_argument("--config", default="configs/example_batch.yaml")
    batch_cmd.add_argument("--db", default="simulation_metrics.db")

    plot_cmd = sub.add_parser("plot")
    plot_cmd.add_argument("--experiment", default=None)
    plot_cmd.add_argument("--db", default="simulation_metrics.db")
    plot_cmd.add_argument("--out", default="artifacts/metrics.png")

    serve_cmd = sub.add_parser("serve")
    serve_cmd.add_argument("--config", default="configs/example_training.yaml")
    serve_cmd.add_argument("--host", default="127.0.0.1")
    serve_cmd.add_argument("--port", type=int, default=8765)
    serve_cmd.add_argument("--fps", type=int, default=30)
    serve_cmd.add_argument("--db", default=None)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "run":
        config = ConfigLoader.load(args.config)
        exp_id = _run_single(config, Path(args.db))
        print(exp_id)
        return 0

    if args.command == "batch":
        configs = ConfigLoader.load_many(args.config)
        for config in configs:
            exp_id = _run_single(config, Path(args.db))
            print(exp_id)
        return 0

    if args.command == "plot":
        experiment_id = args.experiment
        if experiment_id is None:
            logger = SimulationLogger(args.db)
            try:
                experiment_id = logger.latest_experiment_id()
            finally:
                logger.close()
            if experiment_id is None:
                parser.error(f"No experiments recorded in {args.db}")
        path = plot_experiment(args.db, experiment_id, args.out)
        print(path)
        return 0

    if args.command == "serve":
        config = ConfigLoader.load(args.config)
        _serve(config, args.host, args.port, args.fps, Path(args.db) if args.db else None)
        return 0

    return 1


if __name__ == "__main__":
    raise SystemExit(run_cli())
