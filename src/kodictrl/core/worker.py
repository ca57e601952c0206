"""QThread worker for running the async Kodi core in a Qt application.

Qt objects must be used from their owner thread, while the transport,
synchronizer and controller run on an asyncio loop. This worker runs that
loop in a background thread, polls Kodi on a fixed interval, and re-emits
results as Qt signals, which queued connections deliver to the owner thread.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from concurrent.futures import Future
from typing import Any

import httpx
from PySide6.QtCore import QThread, Signal

from kodictrl.api.client import KodiClient
from kodictrl.api.methods import Direction, InputAction
from kodictrl.api.transport import KodiTransport
from kodictrl.core.controller import KodiController
from kodictrl.core.synchronizer import PlayerSynchronizer
from kodictrl.core.widget_sink import WidgetSnapshotSink
from kodictrl.errors import KodiError
from kodictrl.models.endpoint import ServerEndpoint

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 2.0  # seconds


class KodiWorker(QThread):
    """Background thread worker for the Kodi core.

    Every public method is safe to call from the main thread; it schedules
    work on the worker's event loop and returns immediately.

    Example:
        worker = KodiWorker(ServerEndpoint("192.168.1.50"))
        worker.playback_changed.connect(state.update_playback)
        worker.request_failed.connect(state.report_error)
        worker.start()
        worker.toggle_play_pause()
    """

    # Snapshot signals
    playback_changed = Signal(object)  # PlaybackState
    media_item_changed = Signal(object)  # MediaItem
    phase_changed = Signal(object)  # PlayerPhase

    # Transport events
    request_completed = Signal(str)  # method name
    request_failed = Signal(str)  # human-readable message

    # Connectivity probe result
    ping_finished = Signal(bool, str)

    # Unexpected failure inside the worker
    error_occurred = Signal(object)  # Exception

    def __init__(
        self,
        endpoint: ServerEndpoint | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        widget_sink: WidgetSnapshotSink | None = None,
        initial_volume: int = 50,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the worker.

        Args:
            endpoint: Kodi endpoint (defaults to localhost:8080).
            poll_interval: Seconds between poll ticks.
            widget_sink: Optional sink for widget snapshots.
            initial_volume: Volume to report until Kodi is asked.
            http_transport: Optional httpx transport passed to KodiTransport.
        """
        super().__init__()
        self._endpoint = endpoint or ServerEndpoint()
        self._poll_interval = poll_interval
        self._widget_sink = widget_sink
        self._initial_volume = initial_volume
        self._http_transport = http_transport
        self._loop: asyncio.AbstractEventLoop | None = None
        self._transport: KodiTransport | None = None
        self._sync: PlayerSynchronizer | None = None
        self._controller: KodiController | None = None
        self._wake: asyncio.Event | None = None
        self._should_run = True

    @property
    def endpoint(self) -> ServerEndpoint:
        """Return the endpoint requests are sent to."""
        return self._endpoint

    @property
    def poll_interval(self) -> float:
        """Return seconds between poll ticks."""
        return self._poll_interval

    @property
    def is_running(self) -> bool:
        """Return True once the event loop runs and the core is built."""
        return self._loop is not None and self._loop.is_running() and self._controller is not None

    def stop(self) -> None:
        """Signal the worker to stop (called from main thread)."""
        self._should_run = False
        self._wake_up()

    def set_poll_interval(self, seconds: float) -> None:
        """Change the poll cadence; takes effect after the current sleep."""
        self._poll_interval = max(0.1, seconds)

    def apply_settings(self, host: str, port: int) -> ServerEndpoint:
        """Point the core at a new Kodi host/port.

        Requests already in flight finish against the old endpoint.

        Returns:
            The new endpoint.
        """
        endpoint = self._endpoint.with_address(host, port)
        self._endpoint = endpoint
        if self._loop and self._loop.is_running() and self._transport:
            self._loop.call_soon_threadsafe(self._transport.set_endpoint, endpoint)
            self.request_refresh()
        return endpoint

    def request_refresh(self) -> None:
        """Run a poll tick now instead of waiting for the interval."""
        self._wake_up()

    def _wake_up(self) -> None:
        """Interrupt the poll sleep from any thread."""
        if self._loop and self._loop.is_running() and self._wake:
            self._loop.call_soon_threadsafe(self._wake.set)

    def _submit(self, factory: Callable[[], Awaitable[Any]]) -> Future[Any] | None:
        """Schedule a coroutine on the worker loop (thread-safe)."""
        if not (self._loop and self._loop.is_running() and self._controller):
            logger.debug("Worker not running, dropping request")
            return None
        return asyncio.run_coroutine_threadsafe(self._guarded(factory), self._loop)

    async def _guarded(self, factory: Callable[[], Awaitable[Any]]) -> Any:
        """Await a coroutine, reporting unexpected exceptions."""
        try:
            return await factory()
        except KodiError:
            raise
        except Exception as e:
            logger.exception("Unexpected error in worker task")
            self.error_occurred.emit(e)
            raise

    # -- Intents (thread-safe) -------------------------------------------------

    def navigate(self, direction: Direction) -> None:
        """Move focus."""
        self._submit(lambda: self._require_controller().navigate(direction))

    def select(self) -> None:
        """Confirm the focused item."""
        self._submit(lambda: self._require_controller().select())

    def back(self) -> None:
        """Go back."""
        self._submit(lambda: self._require_controller().back())

    def input_action(self, action: InputAction) -> None:
        """Send Back, Home, ContextMenu or Info."""
        self._submit(lambda: self._require_controller().input_action(action))

    def send_text(self, text: str) -> None:
        """Type and submit text."""
        self._submit(lambda: self._require_controller().send_text(text))

    def toggle_play_pause(self) -> None:
        """Toggle play/pause and refresh."""
        self._submit(lambda: self._then_refresh(self._require_controller().toggle_play_pause()))

    def stop_playback(self) -> None:
        """Stop playback."""
        self._submit(lambda: self._require_controller().stop())

    def seek_forward(self) -> None:
        """Jump forward 30 seconds and refresh."""
        self._submit(lambda: self._then_refresh(self._require_controller().seek_forward()))

    def seek_backward(self) -> None:
        """Jump back 30 seconds and refresh."""
        self._submit(lambda: self._then_refresh(self._require_controller().seek_backward()))

    def seek_absolute(self, position: float, duration: float) -> None:
        """Seek to position/duration."""
        self._submit(
            lambda: self._then_refresh(self._require_controller().seek_absolute(position, duration))
        )

    def set_volume(self, volume: int) -> None:
        """Set absolute volume."""
        self._submit(lambda: self._require_controller().set_volume(volume))

    def volume_up(self) -> None:
        """Raise volume one step."""
        self._submit(lambda: self._require_controller().volume_up())

    def volume_down(self) -> None:
        """Lower volume one step."""
        self._submit(lambda: self._require_controller().volume_down())

    def toggle_mute(self) -> None:
        """Toggle mute."""
        self._submit(lambda: self._require_controller().toggle_mute())

    def test_connection(self) -> None:
        """Ping Kodi; the outcome arrives via ping_finished."""
        self._submit(self._ping)

    # -- Seeking (thread-safe) -------------------------------------------------

    def seek_begin(self) -> None:
        """User started scrubbing; polling pauses."""
        self._call_sync(lambda sync: sync.seek_begin())

    def seek_update(self, position: float) -> None:
        """User moved the scrubber."""
        self._call_sync(lambda sync: sync.seek_update(position))

    def seek_end(self, position: float) -> None:
        """User released the scrubber; the final position is sent to Kodi."""
        self._submit(lambda: self._require_sync().seek_end(position))

    def _call_sync(self, fn: Callable[[PlayerSynchronizer], Any]) -> None:
        """Run a synchronous synchronizer call on the worker loop."""
        if self._loop and self._loop.is_running() and self._sync:
            sync = self._sync
            self._loop.call_soon_threadsafe(fn, sync)

    def _require_controller(self) -> KodiController:
        """Return the controller (only valid while running)."""
        if self._controller is None:
            raise RuntimeError("Worker is not running")
        return self._controller

    def _require_sync(self) -> PlayerSynchronizer:
        """Return the synchronizer (only valid while running)."""
        if self._sync is None:
            raise RuntimeError("Worker is not running")
        return self._sync

    async def _then_refresh(self, intent: Awaitable[bool]) -> bool:
        """Await an intent and poll immediately if it succeeded."""
        ok = await intent
        if ok:
            self._wake_up()
        return ok

    async def _ping(self) -> None:
        """Run the connectivity probe and emit its outcome."""
        result = await self._require_controller().ping()
        self.ping_finished.emit(result.success, result.message)

    # -- Thread body -----------------------------------------------------------

    def run(self) -> None:
        """Run the worker thread (entry point)."""
        # Create new event loop for this thread
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)

        try:
            self._loop.run_until_complete(self._poll_loop())
        except Exception as e:
            logger.exception("Kodi worker crashed")
            self.error_occurred.emit(e)
        finally:
            # Clean up intents still in flight, then the HTTP client
            pending = asyncio.all_tasks(self._loop)
            for task in pending:
                task.cancel()
            if pending:
                self._loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            if self._transport:
                self._loop.run_until_complete(self._transport.aclose())
            self._loop.close()
            self._loop = None
            self._transport = None
            self._sync = None
            self._controller = None
            self._wake = None

    def _build_core(self) -> None:
        """Create transport, client, synchronizer and controller on this loop."""
        self._transport = KodiTransport(self._endpoint, http_transport=self._http_transport)
        self._transport.set_event_handlers(
            on_completed=self.request_completed.emit,
            on_failed=self._on_request_failed,
        )
        client = KodiClient(self._transport)
        self._sync = PlayerSynchronizer(
            client,
            widget_sink=self._widget_sink,
            initial_volume=self._initial_volume,
        )
        self._sync.set_event_handlers(
            on_playback_changed=self.playback_changed.emit,
            on_media_item_changed=self.media_item_changed.emit,
            on_phase_changed=self.phase_changed.emit,
        )
        self._controller = KodiController(client, self._sync)

    async def _poll_loop(self) -> None:
        """Tick the synchronizer every poll_interval seconds until stopped."""
        self._wake = asyncio.Event()
        self._build_core()
        sync = self._require_sync()
        logger.info(
            "Kodi worker polling %s every %.1fs",
            self._endpoint.address,
            self._poll_interval,
        )

        while self._should_run:
            self._wake.clear()
            started = time.monotonic()
            await sync.tick()
            remaining = self._poll_interval - (time.monotonic() - started)
            await self._sleep_interruptible(max(0.0, remaining))

        logger.info("Kodi worker stopped")

    async def _sleep_interruptible(self, seconds: float) -> None:
        """Sleep until the interval ends or someone wakes the loop."""
        if self._wake is None or not self._should_run:
            return
        try:
            await asyncio.wait_for(self._wake.wait(), timeout=seconds)
        except TimeoutError:
            pass

    def _on_request_failed(self, error: KodiError) -> None:
        """Forward a transport failure as a user-visible message."""
        self.request_failed.emit(error.user_message)
