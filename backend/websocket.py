"""
WebSocket broadcast hub.

One coordinating task owns the set of live connections. Every public
operation only enqueues a command for that task, so producers on any
thread (request handlers, the flight poller) never block on the hub.
"""

import os
import json
import asyncio
import logging
import threading
from typing import Iterable, Optional, Set

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from contracts.constants import WS_CONTROL_REGISTER, WS_MESSAGE_TYPE_FLIGHT_UPDATE
from contracts.validation import (
    Flight,
    FlightPosition,
    FlightUpdateMessage,
    FlightUpdatePayload,
    GameEndMessage,
    GameEndPayload,
    GuessResultMessage,
    GuessResultPayload,
    RoundStartMessage,
    RoundStartPayload,
    ScoreResult,
    validate_register_message,
)
from backend.metrics import WEBSOCKET_CONNECTIONS, WEBSOCKET_DROPPED, WEBSOCKET_MESSAGES_SENT

logger = logging.getLogger(__name__)

WS_SEND_QUEUE_SIZE = int(os.getenv("WS_SEND_QUEUE_SIZE", "256"))

# Tells a write loop to stop
_CLOSE = object()


class Connection:
    """A live viewer: socket, bounded outbound queue and optional session id."""

    def __init__(self, websocket: WebSocket, session_id: str = "", queue_size: int = WS_SEND_QUEUE_SIZE):
        self.websocket = websocket
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=max(1, queue_size))
        self.closed = False
        self._session_id = session_id or ""
        self._session_lock = threading.Lock()

    @property
    def session_id(self) -> str:
        with self._session_lock:
            return self._session_id

    @session_id.setter
    def session_id(self, value: str):
        with self._session_lock:
            self._session_id = value or ""

    def offer(self, message: str) -> bool:
        """Queue a message without waiting. False when closed or the queue is full."""
        if self.closed:
            return False
        try:
            self.queue.put_nowait(message)
            return True
        except asyncio.QueueFull:
            return False

    def release(self) -> bool:
        """Drop pending messages and wake the write loop. Only the first call has an effect."""
        if self.closed:
            return False
        self.closed = True
        while not self.queue.empty():
            self.queue.get_nowait()
        self.queue.put_nowait(_CLOSE)
        return True


class BroadcastHub:
    """Fans out flight snapshots and delivers per-session game events."""

    def __init__(self, queue_size: int = WS_SEND_QUEUE_SIZE):
        self.queue_size = queue_size
        self._connections: Set[Connection] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._commands: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None
        self._last_snapshot: Optional[str] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self):
        """Start the coordinating task on the running loop."""
        if self._task is not None and not self._task.done():
            logger.warning("Hub already running")
            return
        self._loop = asyncio.get_running_loop()
        self._commands = asyncio.Queue()
        self._task = self._loop.create_task(self._run())
        logger.info("Broadcast hub started")

    async def stop(self):
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        for conn in list(self._connections):
            conn.release()
        self._connections.clear()
        WEBSOCKET_CONNECTIONS.set(0)
        logger.info("Broadcast hub stopped")

    async def flush(self):
        """Wait until every command submitted so far has been handled."""
        await asyncio.sleep(0)
        if self._commands is not None:
            await self._commands.join()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    # ------------------------------------------------------------------
    # Producer-side API (thread-safe, non-blocking)
    # ------------------------------------------------------------------

    def _submit(self, handler, *args):
        if self._loop is None or self._commands is None:
            logger.debug("Hub not started, dropping command")
            return
        try:
            self._loop.call_soon_threadsafe(self._commands.put_nowait, (handler, args))
        except RuntimeError:
            # Event loop already closed during shutdown
            logger.debug("Hub loop closed, dropping command")

    def register(self, conn: Connection):
        self._submit(self._do_register, conn)

    def unregister(self, conn: Connection):
        self._submit(self._do_unregister, conn)

    def broadcast(self, message: BaseModel):
        """Send a message to every live connection."""
        self._submit(self._do_broadcast, message.type, message.model_dump_json())

    def send_to_session(self, session_id: str, message: BaseModel):
        """Send a message to the connection(s) registered for a session, if any."""
        if not session_id:
            return
        self._submit(self._do_send_to_session, session_id, message.type, message.model_dump_json())

    def broadcast_flights(self, flights: Iterable[Flight]):
        positions = [FlightPosition.from_flight(f) for f in flights]
        self.broadcast(FlightUpdateMessage(payload=FlightUpdatePayload(flights=positions)))
        logger.debug(f"Queued flight update with {len(positions)} flights")

    def send_round_start(self, session_id: str, round_number: int, flight: Flight):
        self.send_to_session(session_id, RoundStartMessage(payload=RoundStartPayload(
            session_id=session_id,
            round_number=round_number,
            flight=flight,
        )))

    def send_guess_result(self, session_id: str, round_number: int, score: ScoreResult, total_score: int):
        self.send_to_session(session_id, GuessResultMessage(payload=GuessResultPayload(
            session_id=session_id,
            round_number=round_number,
            score=score,
            total_score=total_score,
        )))

    def send_game_end(self, session_id: str, total_score: int, rank: int):
        self.send_to_session(session_id, GameEndMessage(payload=GameEndPayload(
            session_id=session_id,
            total_score=total_score,
            rank=rank,
        )))

    # ------------------------------------------------------------------
    # Coordinating task (sole owner of self._connections)
    # ------------------------------------------------------------------

    async def _run(self):
        while True:
            handler, args = await self._commands.get()
            try:
                handler(*args)
            except Exception as e:
                logger.error(f"Error handling hub command {handler.__name__}: {e}", exc_info=True)
            finally:
                self._commands.task_done()

    def _do_register(self, conn: Connection):
        if conn.closed:
            return
        self._connections.add(conn)
        WEBSOCKET_CONNECTIONS.set(len(self._connections))
        logger.info(f"WebSocket connected. Total connections: {len(self._connections)}")

        if self._last_snapshot is not None:
            self._deliver(conn, WS_MESSAGE_TYPE_FLIGHT_UPDATE, self._last_snapshot)

    def _do_unregister(self, conn: Connection):
        was_live = conn in self._connections
        self._connections.discard(conn)
        conn.release()
        if was_live:
            WEBSOCKET_CONNECTIONS.set(len(self._connections))
            logger.info(f"WebSocket disconnected. Total connections: {len(self._connections)}")

    def _do_broadcast(self, message_type: str, text: str):
        if message_type == WS_MESSAGE_TYPE_FLIGHT_UPDATE:
            self._last_snapshot = text
        for conn in list(self._connections):
            self._deliver(conn, message_type, text)

    def _do_send_to_session(self, session_id: str, message_type: str, text: str):
        for conn in list(self._connections):
            if conn.session_id == session_id:
                self._deliver(conn, message_type, text)

    def _deliver(self, conn: Connection, message_type: str, text: str):
        if conn.offer(text):
            WEBSOCKET_MESSAGES_SENT.labels(type=message_type).inc()
            return
        WEBSOCKET_DROPPED.labels(reason="queue_full").inc()
        logger.warning(f"Dropping stalled connection (session={conn.session_id or '-'})")
        self._do_unregister(conn)

    # ------------------------------------------------------------------
    # Per-connection loops
    # ------------------------------------------------------------------

    async def _write_loop(self, conn: Connection):
        """Drain the outbound queue to the socket in FIFO order."""
        while True:
            message = await conn.queue.get()
            if message is _CLOSE:
                return
            try:
                await conn.websocket.send_text(message)
            except Exception as e:
                WEBSOCKET_DROPPED.labels(reason="send_failed").inc()
                logger.warning(f"Failed to send to connection: {e}")
                return

    async def _read_loop(self, conn: Connection):
        """Parse control messages until the client goes away."""
        while True:
            try:
                text = await conn.websocket.receive_text()
            except WebSocketDisconnect:
                logger.info("Client disconnected")
                return
            except Exception as e:
                logger.warning(f"WebSocket read error: {e}")
                return
            self._handle_control(conn, text)

    def _handle_control(self, conn: Connection, text: str):
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring non-JSON client message: {e}")
            return

        if not isinstance(data, dict) or data.get("type") != WS_CONTROL_REGISTER:
            logger.debug(f"Ignoring client message: {text[:100]}")
            return

        is_valid, message, error = validate_register_message(data)
        if not is_valid:
            logger.warning(f"Invalid register message: {error}")
            return

        conn.session_id = message.payload.session_id
        logger.info(f"Connection registered for session {conn.session_id}")

    async def handle_client(self, websocket: WebSocket, session_id: str = ""):
        """Serve one WebSocket client until either side goes away."""
        await websocket.accept()
        conn = Connection(websocket, session_id, self.queue_size)
        self.register(conn)

        reader = asyncio.create_task(self._read_loop(conn))
        writer = asyncio.create_task(self._write_loop(conn))
        try:
            await asyncio.wait({reader, writer}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            self.unregister(conn)
            for task in (reader, writer):
                task.cancel()
            # Must not absorb a cancellation of this handler
            await asyncio.wait({reader, writer})

            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"Close after disconnect failed: {e}")
