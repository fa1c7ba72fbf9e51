"""Tests for pipe spawning, scrolling, lookup, and collision geometry."""

from __future__ import annotations

import logging
import random

from configs.game_config import DEFAULT_GAME_CONFIG
from environment.collision import Rect, bird_rect, hits_any_pipe
from environment.pipes import Pipe, PipeStream


def test_spawn_places_pipe_at_right_edge_within_range() -> None:
    stream = PipeStream(DEFAULT_GAME_CONFIG, random.Random(0))

    for _ in range(50):
        pipe = stream.spawn()
        assert pipe is not None
        assert pipe.x == 600.0
        assert 50.0 <= pipe.top_height <= 80.0

    assert [p.pipe_id for p in stream.pipes] == list(range(50))


def test_too_short_world_skips_spawn_with_warning(caplog) -> None:
    config = DEFAULT_GAME_CONFIG.with_overrides({"world_height": 150})
    stream = PipeStream(config, random.Random(0))

    with caplog.at_level(logging.WARNING, logger="environment.pipes"):
        assert stream.spawn() is None

    assert stream.pipes == []
    assert "too small" in caplog.text


def test_empty_sampling_range_uses_fallback_placement() -> None:
    config = DEFAULT_GAME_CONFIG.with_overrides({"world_height": 250})
    stream = PipeStream(config, random.Random(0))

    assert stream.choose_top_height() == 100.0


def test_advance_spawns_on_timer_then_scrolls() -> None:
    stream = PipeStream(DEFAULT_GAME_CONFIG, random.Random(0))

    stream.advance(1000.0)
    assert stream.pipes == []
    assert stream.spawn_timer == 1000.0

    stream.advance(500.0)
    assert len(stream.pipes) == 1
    assert stream.spawn_timer == 0.0
    assert stream.pipes[0].x == 598.0


def test_advance_prunes_pipes_fully_off_screen() -> None:
    stream = PipeStream(DEFAULT_GAME_CONFIG, random.Random(0))
    stream.pipes = [Pipe(pipe_id=0, x=-59.0, top_height=60.0), Pipe(pipe_id=1, x=-50.0, top_height=60.0)]

    stream.advance(0.0)

    assert [p.pipe_id for p in stream.pipes] == [1]


def test_reset_clears_pipes_but_ids_keep_increasing() -> None:
    stream = PipeStream(DEFAULT_GAME_CONFIG, random.Random(0))
    stream.spawn()
    stream.spawn_timer = 42.0

    stream.reset()
    pipe = stream.spawn()

    assert stream.spawn_timer == 0.0
    assert pipe is not None and pipe.pipe_id == 1


def test_next_pipe_skips_crossed_and_scored_pipes() -> None:
    stream = PipeStream(DEFAULT_GAME_CONFIG, random.Random(0))
    behind = Pipe(pipe_id=0, x=-20.0, top_height=60.0)
    scored = Pipe(pipe_id=1, x=20.0, top_height=60.0)
    ahead = Pipe(pipe_id=2, x=100.0, top_height=60.0)
    stream.pipes = [behind, scored, ahead]

    assert stream.next_pipe_for(50.0) is scored
    assert stream.next_pipe_for(50.0, {1}) is ahead
    assert stream.next_pipe_for(500.0) is None


def test_rect_overlap_is_strict() -> None:
    a = Rect(left=0.0, right=10.0, top=0.0, bottom=10.0)

    assert a.overlaps(Rect(left=5.0, right=15.0, top=5.0, bottom=15.0))
    assert not a.overlaps(Rect(left=10.0, right=20.0, top=0.0, bottom=10.0))
    assert bird_rect(50.0, 200.0, 30.0) == Rect(left=35.0, right=65.0, top=185.0, bottom=215.0)


def test_hits_any_pipe_checks_top_and_bottom_halves() -> None:
    config = DEFAULT_GAME_CONFIG
    clear = Pipe(pipe_id=0, x=40.0, top_height=150.0)
    low_top = Pipe(pipe_id=1, x=40.0, top_height=190.0)
    high_bottom = Pipe(pipe_id=2, x=40.0, top_height=20.0)
    far = Pipe(pipe_id=3, x=300.0, top_height=190.0)

    assert hits_any_pipe(50.0, 200.0, [clear, far], config) is None
    assert hits_any_pipe(50.0, 200.0, [low_top], config) is low_top
    assert hits_any_pipe(50.0, 200.0, [high_bottom], config) is high_bottom
