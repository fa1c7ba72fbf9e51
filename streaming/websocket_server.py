"""RenderState websocket streaming server, broadcaster, and operator control channel."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Mapping

import websockets

from streaming.state_serializer import serialize_state

LOGGER = logging.getLogger(__name__)

STREAM_MODES: tuple[str, ...] = ("full_state", "metrics_only", "agent_positions_only")


@dataclass
class _Client:
    websocket: Any
    mode: str = "full_state"
    queue: asyncio.Queue[bytes] = field(default_factory=lambda: asyncio.Queue(maxsize=1))


def parse_mode(message: Any) -> str:
    """Read the stream mode from a client's first message, defaulting to full state."""
    if not isinstance(message, str):
        return "full_state"
    try:
        payload = json.loads(message)
    except json.JSONDecodeError:
        return "full_state"
    mode = payload.get("mode", "full_state") if isinstance(payload, Mapping) else "full_state"
    return mode if mode in STREAM_MODES else "full_state"


def apply_command(session: Any, message: Mapping[str, Any]) -> bool:
    """Dispatch one operator command to ``session``; returns False if unknown.

    Commands: ``pause``, ``resume``, ``toggle_pause``, ``next_generation``,
    ``reset``, ``kill_all``, and ``speed`` with an integer ``value``.
    """
    command = message.get("command")
    if command == "pause":
        session.pause()
    elif command == "resume":
        session.resume()
    elif command == "toggle_pause":
        session.toggle_pause()
    elif command == "next_generation":
        session.force_next_generation()
    elif command == "reset":
        session.reset_training()
    elif command == "kill_all":
        session.kill_all_agents()
    elif command == "speed":
        session.set_simulation_speed(int(message.get("value", 1)))
    else:
        return False
    return True


class RenderStateServer:
    """Broadcast render frames to websocket clients with backpressure control.

    A client's first message selects its stream mode. Later JSON messages
    carrying a ``command`` key are forwarded to the attached session.
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 8765,
        max_fps: int = 30,
        session: Any | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.max_fps = max(1, max_fps)
        self.session = session
        self._min_interval = 1.0 / self.max_fps
        self._last_broadcast = 0.0
        self._clients: list[_Client] = []
        self._server = None

    async def start(self) -> None:
        """Start websocket listener."""

        async def _handler(ws: Any) -> None:
            try:
                first_msg = await asyncio.wait_for(ws.recv(), timeout=1.0)
            except (asyncio.TimeoutError, websockets.ConnectionClosed):
                first_msg = None
            mode = parse_mode(first_msg)

            client = _Client(websocket=ws, mode=mode)
            self._clients.append(client)
            sender = asyncio.create_task(self._sender_loop(client))
            try:
                async for message in ws:
                    self._handle_message(message)
            except websockets.ConnectionClosed:
                LOGGER.debug("Client disconnected from %s:%d", self.host, self.port)
            finally:
                if client in self._clients:
                    self._clients.remove(client)
                sender.cancel()

        self._server = await websockets.serve(_handler, self.host, self.port)
        LOGGER.info("Streaming render state on ws://%s:%d", self.host, self.port)

    async def stop(self) -> None:
        """Stop listener and disconnect clients."""
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

    async def _sender_loop(self, client: _Client) -> None:
        while True:
            frame = await client.queue.get()
            try:
                await client.websocket.send(frame)
            except websockets.ConnectionClosed:
                return

    def _handle_message(self, message: Any) -> None:
        if self.session is None or not isinstance(message, str):
            return
        try:
            payload = json.loads(message)
        except json.JSONDecodeError:
            LOGGER.warning("Ignoring malformed control message")
            return
        if not isinstance(payload, Mapping) or "command" not in payload:
            return
        if not apply_command(self.session, payload):
            LOGGER.warning("Ignoring unknown command %r", payload.get("command"))

    async def broadcast(self, render_state: Any) -> None:
        """Broadcast frame to clients, dropping stale frames on backpressure."""
        now = time.monotonic()
        if (now - self._last_broadcast) < self._min_interval:
            return
        self._last_broadcast = now

        for client in list(self._clients):
            frame = serialize_state(self._apply_filter(render_state, client.mode))
            if client.queue.full():
                try:
                    client.queue.get_nowait()
                except asyncio.QueueEmpty:
                    pass
            client.queue.put_nowait(frame)

    def _apply_filter(self, render_state: Any, mode: str) -> Any:
        if mode == "metrics_only":
            return {
                "generation_index": getattr(render_state, "generation_index", 0),
                "step_index": getattr(render_state, "step_index", 0),
                "metrics": getattr(render_state, "metrics", {}),
                "timestamp": getattr(render_state, "timestamp", 0.0),
            }
        if mode == "agent_positions_only":
            agents = getattr(render_state, "agents", [])
            environment = getattr(render_state, "environment", None)
            return {
                "generation_index": getattr(render_state, "generation_index", 0),
                "step_index": getattr(render_state, "step_index", 0),
                "agents": [
                    {
                        "id": getattr(a, "id", None),
                        "position": getattr(a, "position", None),
                        "alive": getattr(a, "alive", False),
                    }
                    for a in agents
                ],
                "pipes": getattr(environment, "pipes", []),
                "timestamp": getattr(render_state, "timestamp", 0.0),
            }
        return render_state


async def serve_session(
    session: Any,
    server: RenderStateServer,
    frame_delta: float,
    max_generations: int | None = None,
) -> None:
    """Advance ``session`` one frame per tick of the wall clock and broadcast each frame."""
    await server.start()
    target = None if max_generations is None else session.population.generation + int(max_generations)
    try:
        while target is None or session.population.generation < target:
            session.advance_frame(frame_delta)
            await server.broadcast(session.render_state())
            await asyncio.sleep(frame_delta / 1000.0)
    finally:
        await server.stop()
