"""WebSocket client that streams bounding boxes and publishes them on the render context."""
from __future__ import annotations

import asyncio
import threading
from enum import Enum
from typing import Any, Callable, List, Optional, Union

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from screen_overlay.bounding_boxes import EMPTY_SET, BoundingBoxSet, FrameDecodeError, decode_frame
from screen_overlay.config import Endpoint
from screen_overlay.logging_utils import get_logger
from screen_overlay.reconnect import ReconnectPolicy
from screen_overlay.render_context import RenderContext

_LOGGER = get_logger("Client.StreamClient")

BoxObserver = Callable[[BoundingBoxSet], None]
StateObserver = Callable[["ConnectionState"], None]


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"
    CLOSED = "closed"


class AnnotationStreamClient:
    """Receive-only bounding box stream.

    Transport events arrive on a background thread running its own asyncio loop.
    Decoding happens there; swapping the published set and notifying observers
    happen inside callables posted to ``render_context``. Every callback carries
    the generation it was produced under and becomes a no-op once ``close()`` has
    bumped the generation.
    """

    def __init__(
        self,
        render_context: RenderContext,
        *,
        surface_height: float,
        endpoint: Optional[Endpoint] = None,
        scale: float = 1.0,
        reconnect: Optional[ReconnectPolicy] = None,
        open_timeout: float = 5.0,
        connect_fn: Optional[Callable[..., Any]] = None,
    ) -> None:
        self._render_context = render_context
        self._surface_height = float(surface_height)
        self._endpoint = endpoint or Endpoint()
        self._scale = float(scale)
        self._reconnect = reconnect or ReconnectPolicy()
        self._open_timeout = open_timeout
        self._connect_fn = connect_fn or websockets.connect
        self._boxes: BoundingBoxSet = EMPTY_SET
        self._state = ConnectionState.DISCONNECTED
        self._box_observers: List[BoxObserver] = []
        self._state_observers: List[StateObserver] = []
        # Guards lifecycle fields only; never held while observers run.
        self._lock = threading.Lock()
        self._generation = 0
        self._closed = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._task: Optional["asyncio.Task[None]"] = None

    # Public API -----------------------------------------------------------

    @property
    def endpoint(self) -> Endpoint:
        return self._endpoint

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def surface_height(self) -> float:
        return self._surface_height

    def set_surface_height(self, surface_height: float) -> None:
        """Flip subsequent frames against a new surface height (e.g. after a screen change)."""
        self._surface_height = float(surface_height)

    def current_boxes(self) -> BoundingBoxSet:
        return self._boxes

    def subscribe(self, observer: BoxObserver) -> Callable[[], None]:
        self._box_observers.append(observer)
        return lambda: self._discard(self._box_observers, observer)

    def subscribe_state(self, observer: StateObserver) -> Callable[[], None]:
        self._state_observers.append(observer)
        return lambda: self._discard(self._state_observers, observer)

    def connect(self, endpoint: Optional[Endpoint] = None) -> None:
        with self._lock:
            if self._closed:
                _LOGGER.warning("connect() ignored; client for %s is closed", self._endpoint)
                return
            if self._thread is not None and self._thread.is_alive():
                _LOGGER.debug("connect() ignored; already running against %s", self._endpoint)
                return
            if endpoint is not None:
                self._endpoint = endpoint
            generation = self._generation
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._thread_main,
                args=(generation,),
                name="ScreenOverlay-Stream",
                daemon=True,
            )
        self._set_state(ConnectionState.CONNECTING, generation)
        self._thread.start()

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._generation += 1
            self._state = ConnectionState.CLOSED
            loop = self._loop
            task = self._task
        self._stop_event.set()
        if loop is not None and task is not None:
            try:
                loop.call_soon_threadsafe(task.cancel)
            except RuntimeError as exc:
                _LOGGER.debug("Stream loop already closed while cancelling: %s", exc)
        _LOGGER.info("Annotation stream client for %s closed", self._endpoint)
        self._render_context.post(lambda: self._notify_state(ConnectionState.CLOSED))

    def wait_closed(self, timeout: float = 5.0) -> bool:
        """Join the worker thread; returns False if it is still running after ``timeout``."""
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return True
        thread.join(timeout=timeout)
        return not thread.is_alive()

    # Transport callbacks --------------------------------------------------

    def on_connected(self, generation: Optional[int] = None) -> None:
        gen = self._resolve_generation(generation)
        if self._is_stale(gen):
            return
        _LOGGER.info("Connected to %s", self._endpoint)
        self._set_state(ConnectionState.CONNECTED, gen)

    def on_message(self, raw_frame: Union[str, bytes], generation: Optional[int] = None) -> None:
        gen = self._resolve_generation(generation)
        if self._is_stale(gen):
            return
        if isinstance(raw_frame, (bytes, bytearray)):
            _LOGGER.debug("Ignoring %d byte binary frame from %s", len(raw_frame), self._endpoint)
            return
        try:
            boxes = decode_frame(raw_frame, self._surface_height, scale=self._scale, logger=_LOGGER)
        except FrameDecodeError as exc:
            _LOGGER.warning("Dropped malformed frame from %s: %s", self._endpoint, exc)
            return
        _LOGGER.debug("Decoded %d bounding box(es) from %s", len(boxes), self._endpoint)
        self._render_context.post(lambda: self._publish(boxes, gen))

    def on_disconnect(self, reason: Optional[str], code: Optional[int], generation: Optional[int] = None) -> None:
        gen = self._resolve_generation(generation)
        if self._is_stale(gen):
            return
        _LOGGER.warning("Disconnected from %s: %s (code %s)", self._endpoint, reason or "no reason", code)
        self._set_state(ConnectionState.DISCONNECTED, gen)

    def on_error(self, error: BaseException, generation: Optional[int] = None) -> None:
        gen = self._resolve_generation(generation)
        if self._is_stale(gen):
            return
        _LOGGER.warning("Stream error on %s: %s", self._endpoint, error)

    # Background thread ----------------------------------------------------

    def _thread_main(self, generation: int) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        with self._lock:
            if self._is_stale(generation):
                loop.close()
                return
            task = loop.create_task(self._run(generation))
            self._loop = loop
            self._task = task
        try:
            loop.run_until_complete(task)
        except asyncio.CancelledError:
            _LOGGER.debug("Stream task cancelled")
        finally:
            pending = asyncio.all_tasks(loop)
            for pending_task in pending:
                pending_task.cancel()
            if pending:
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            loop.run_until_complete(loop.shutdown_asyncgens())
            with self._lock:
                self._loop = None
                self._task = None
            loop.close()

    async def _run(self, generation: int) -> None:
        attempt = 0
        while not self._should_stop(generation):
            self._set_state(ConnectionState.CONNECTING, generation)
            try:
                async with self._connect_fn(self._endpoint.url, open_timeout=self._open_timeout) as websocket:
                    attempt = 0
                    self.on_connected(generation)
                    async for frame in websocket:
                        if self._should_stop(generation):
                            break
                        self.on_message(frame, generation)
                    self.on_disconnect(
                        getattr(websocket, "close_reason", None),
                        getattr(websocket, "close_code", None),
                        generation,
                    )
            except asyncio.CancelledError:
                raise
            except ConnectionClosed as exc:
                self.on_error(exc, generation)
                received = exc.rcvd
                self.on_disconnect(
                    received.reason if received is not None else None,
                    received.code if received is not None else None,
                    generation,
                )
            except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
                self.on_error(exc, generation)
                self._set_state(ConnectionState.FAILED, generation)

            if self._should_stop(generation):
                break
            attempt += 1
            delay = self._reconnect.delay_for(attempt)
            if delay is None:
                _LOGGER.error(
                    "Giving up on %s after %d reconnect attempt(s)",
                    self._endpoint,
                    self._reconnect.max_attempts,
                )
                self._set_state(ConnectionState.FAILED, generation)
                return
            _LOGGER.info(
                "Reconnecting to %s in %.1fs (attempt %d/%d)",
                self._endpoint,
                delay,
                attempt,
                self._reconnect.max_attempts,
            )
            await asyncio.sleep(delay)

    # Helpers --------------------------------------------------------------

    def _resolve_generation(self, generation: Optional[int]) -> int:
        return self._generation if generation is None else generation

    def _is_stale(self, generation: int) -> bool:
        return self._closed or generation != self._generation

    def _should_stop(self, generation: int) -> bool:
        return self._stop_event.is_set() or self._is_stale(generation)

    def _set_state(self, state: ConnectionState, generation: int) -> None:
        with self._lock:
            if self._is_stale(generation) or self._state == state:
                return
            self._state = state
        self._render_context.post(lambda: self._notify_state(state, generation))

    def _publish(self, boxes: BoundingBoxSet, generation: int) -> None:
        if self._is_stale(generation):
            return
        self._boxes = boxes
        for observer in list(self._box_observers):
            try:
                observer(boxes)
            except Exception:
                _LOGGER.exception("Bounding box observer %r failed", observer)

    def _notify_state(self, state: ConnectionState, generation: Optional[int] = None) -> None:
        if generation is not None and self._is_stale(generation):
            return
        for observer in list(self._state_observers):
            try:
                observer(state)
            except Exception:
                _LOGGER.exception("Connection state observer %r failed", observer)

    @staticmethod
    def _discard(observers: list, observer: Callable[..., None]) -> None:
        try:
            observers.remove(observer)
        except ValueError:
            pass
