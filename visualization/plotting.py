"""Plot utilities for persisted training metrics."""

from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt

from data.logger import SimulationLogger


def plot_experiment(db_path: str | Path, experiment_id: str, output_path: str | Path) -> Path:
    """Render fitness, score, and diversity curves for an experiment from SQLite logs."""
    logger = SimulationLogger(db_path)
    try:
        rows = logger.fetch_metrics(experiment_id)
    finally:
        logger.close()
    if not rows:
        raise ValueError(f"No generation metrics recorded for experiment '{experiment_id}'.")

    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    generations = [int(row["generation_index"]) for row in rows]
    max_fitness = [float(row["max_fitness"]) for row in rows]
    average_fitness = [float(row["average_fitness"]) for row in rows]
    best_overall = [float(row["best_fitness_overall"]) for row in rows]
    best_score = [int(row["best_score"]) for row in rows]
    diversity = [float(row["diversity"]) for row in rows]

    fig, (ax1, ax2, ax3) = plt.subplots(3, 1, figsize=(8, 8), sharex=True)
    ax1.plot(generations, max_fitness, label="max_fitness")
    ax1.plot(generations, average_fitness, label="average_fitness")
    ax1.plot(generations, best_overall, label="best_fitness_overall", linestyle="--")
    ax1.set_ylabel("fitness")
    ax1.legend()

    ax2.step(generations, best_score, where="mid", label="best_score", color="tab:orange")
    ax2.set_ylabel("pipes passed")
    ax2.legend()

    ax3.plot(generations, diversity, label="diversity", color="tab:green")
    ax3.set_ylabel("diversity")
    ax3.set_xlabel("generation")
    ax3.legend()

    fig.tight_layout()
    fig.savefig(output)
    plt.close(fig)
    return output
