"""SQLite-backed training run registry and per-generation metrics log."""

from __future__ import annotations

import hashlib
import json
import platform
import sqlite3
import time
from dataclasses import astuple, dataclass, fields
from pathlib import Path
from typing import Any, Mapping


@dataclass(frozen=True)
class GenerationMetrics:
    """One finished generation as stored in the ``generations`` table."""

    generation_index: int
    max_fitness: float = 0.0
    average_fitness: float = 0.0
    best_score: int = 0
    best_fitness_overall: float = 0.0
    diversity: float = 0.0
    ticks: int = 0
    mutation_ratio: float = 0.0

    @classmethod
    def from_mapping(cls, generation_index: int, metrics: Mapping[str, Any]) -> "GenerationMetrics":
        """Coerce a loose metrics mapping; missing keys default to zero."""
        values: dict[str, Any] = {"generation_index": int(generation_index)}
        for f in fields(cls)[1:]:
            caster = int if f.type in ("int", int) else float
            values[f.name] = caster(metrics.get(f.name, 0))
        return cls(**values)


_METRIC_COLUMNS: tuple[str, ...] = tuple(f.name for f in fields(GenerationMetrics))


class SimulationLogger:
    """Persist training runs and per-generation population metrics in SQLite.

    Each ``start_experiment`` call registers one run keyed by a short id
    derived from the config hash, the seed, and a wall-clock nonce, so
    repeated runs of the same config never collide.
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.connection = sqlite3.connect(self.db_path)
        self.connection.row_factory = sqlite3.Row
        self._ensure_schema()

    def close(self) -> None:
        self.connection.close()

    def _ensure_schema(self) -> None:
        with self.connection:
            self.connection.executescript(
                """
                CREATE TABLE IF NOT EXISTS experiments (
                    experiment_id TEXT PRIMARY KEY,
                    config_hash TEXT NOT NULL,
                    seed INTEGER NOT NULL,
                    population_size INTEGER,
                    difficulty TEXT,
                    config_json TEXT NOT NULL,
                    runtime_json TEXT NOT NULL,
                    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                );

                CREATE TABLE IF NOT EXISTS generations (
                    experiment_id TEXT NOT NULL REFERENCES experiments (experiment_id) ON DELETE CASCADE,
                    generation_index INTEGER NOT NULL,
                    max_fitness REAL NOT NULL,
                    average_fitness REAL NOT NULL,
                    best_score INTEGER NOT NULL,
                    best_fitness_overall REAL NOT NULL,
                    diversity REAL NOT NULL,
                    ticks INTEGER NOT NULL,
                    mutation_ratio REAL NOT NULL,
                    PRIMARY KEY (experiment_id, generation_index)
                );
                """
            )

    def start_experiment(self, config: Mapping[str, Any], seed: int, metadata: Mapping[str, Any] | None = None) -> str:
        """Register a run and return its id."""
        config_json = json.dumps(dict(config), sort_keys=True)
        config_hash = hashlib.sha256(config_json.encode("utf-8")).hexdigest()
        runtime = {"python_version": platform.python_version(), "platform": platform.platform()}
        runtime.update(dict(metadata or {}))
        experiment_id = hashlib.sha256(f"{config_hash}:{seed}:{time.time_ns()}".encode("utf-8")).hexdigest()[:16]

        population_size = config.get("population_size")
        with self.connection:
            self.connection.execute(
                """
                INSERT INTO experiments (
                    experiment_id, config_hash, seed, population_size, difficulty, config_json, runtime_json
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    experiment_id,
                    config_hash,
                    int(seed),
                    int(population_size) if population_size is not None else None,
                    config.get("difficulty"),
                    config_json,
                    json.dumps(runtime, sort_keys=True),
                ),
            )
        return experiment_id

    def log_metrics(self, experiment_id: str, generation_index: int, metrics: Mapping[str, Any]) -> None:
        """Insert or overwrite the row for one finished generation."""
        row = GenerationMetrics.from_mapping(generation_index, metrics)
        placeholders = ", ".join("?" for _ in range(len(_METRIC_COLUMNS) + 1))
        with self.connection:
            self.connection.execute(
                f"INSERT OR REPLACE INTO generations (experiment_id, {', '.join(_METRIC_COLUMNS)}) "
                f"VALUES ({placeholders})",
                (experiment_id, *astuple(row)),
            )

    def fetch_metrics(self, experiment_id: str) -> list[dict[str, Any]]:
        """Return ordered generation metrics for plotting/analysis."""
        rows = self.connection.execute(
            f"SELECT {', '.join(_METRIC_COLUMNS)} FROM generations "
            "WHERE experiment_id = ? ORDER BY generation_index ASC",
            (experiment_id,),
        ).fetchall()
        return [dict(row) for row in rows]

    def latest_experiment_id(self) -> str | None:
        row = self.connection.execute(
            "SELECT experiment_id FROM experiments ORDER BY created_at DESC, rowid DESC LIMIT 1"
        ).fetchone()
        return str(row[0]) if row is not None else None
