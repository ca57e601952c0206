"""Player state synchronizer.

Tracks the active Kodi player and keeps a PlaybackState/MediaItem pair in
sync by polling. The synchronizer does not own a timer: a scheduler (the
worker, a CLI loop, a test) calls tick() at its own cadence.

Phases:
    DISCONNECTED -> DISCOVERING  Player.GetActivePlayers
    DISCOVERING  -> TRACKING     first active player adopted, polled at once
    TRACKING     -> TRACKING     Player.GetProperties (+ Player.GetItem)
    TRACKING     -> SEEKING      seek_begin(); ticks do nothing
    SEEKING      -> TRACKING     seek_end(position) sends Player.Seek
    TRACKING     -> DISCONNECTED stop confirmed, or poll without time data
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import replace

from kodictrl.api.client import KodiClient
from kodictrl.core.widget_sink import WidgetSnapshotSink
from kodictrl.errors import KodiError, RpcError, TransportError
from kodictrl.models.media_item import DEFAULT_TITLE, MediaItem
from kodictrl.models.playback import PlaybackState, PlayerPhase, seek_percentage
from kodictrl.models.widget import WidgetSnapshot

logger = logging.getLogger(__name__)

PlaybackHandler = Callable[[PlaybackState], None]
MediaItemHandler = Callable[[MediaItem], None]
PhaseHandler = Callable[[PlayerPhase], None]


class PlayerSynchronizer:
    """Reconciles Kodi's player state into observable snapshots.

    All mutation happens on the event loop that runs tick(); observers are
    notified through the handlers with immutable snapshots.

    Example:
        sync = PlayerSynchronizer(client)
        sync.set_event_handlers(on_playback_changed=print)
        while True:
            await sync.tick()
            await asyncio.sleep(2.0)
    """

    def __init__(
        self,
        client: KodiClient,
        widget_sink: WidgetSnapshotSink | None = None,
        initial_volume: int = 50,
    ) -> None:
        """Initialize the synchronizer.

        Args:
            client: Kodi API client.
            widget_sink: Optional sink receiving a snapshot after each poll.
            initial_volume: Volume to report until Kodi is asked.
        """
        self._client = client
        self._widget_sink = widget_sink
        self._phase = PlayerPhase.DISCONNECTED
        self._playback = PlaybackState(volume=initial_volume)
        self._media_item = MediaItem()
        self._tick_task: asyncio.Task[None] | None = None
        self._widget_written = False
        # Bumped by seek_begin(); polls started under an older value are stale
        self._seek_generation = 0

        # Event handlers
        self._on_playback_changed: PlaybackHandler | None = None
        self._on_media_item_changed: MediaItemHandler | None = None
        self._on_phase_changed: PhaseHandler | None = None

    @property
    def phase(self) -> PlayerPhase:
        """Return the current phase."""
        return self._phase

    @property
    def playback(self) -> PlaybackState:
        """Return the current playback snapshot."""
        return self._playback

    @property
    def media_item(self) -> MediaItem:
        """Return the current item snapshot."""
        return self._media_item

    @property
    def active_player_id(self) -> int | None:
        """Return the tracked player id, or None if nothing plays."""
        return self._playback.active_player_id

    def set_event_handlers(
        self,
        on_playback_changed: PlaybackHandler | None = None,
        on_media_item_changed: MediaItemHandler | None = None,
        on_phase_changed: PhaseHandler | None = None,
    ) -> None:
        """Set handlers notified when snapshots change.

        Args:
            on_playback_changed: Receives each new PlaybackState.
            on_media_item_changed: Receives each new MediaItem.
            on_phase_changed: Receives each new PlayerPhase.
        """
        self._on_playback_changed = on_playback_changed
        self._on_media_item_changed = on_media_item_changed
        self._on_phase_changed = on_phase_changed

    # -- Polling ---------------------------------------------------------------

    async def tick(self) -> None:
        """Run one refresh cycle.

        A tick still running from an earlier call is cancelled first; a
        cancelled tick publishes nothing further.
        """
        previous = self._tick_task
        if previous is not None and not previous.done():
            logger.debug("Cancelling superseded poll tick")
            previous.cancel()

        task = asyncio.ensure_future(self._run_tick())
        self._tick_task = task
        try:
            await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            logger.debug("Poll tick superseded by a newer one")
        finally:
            if self._tick_task is task:
                self._tick_task = None

    async def _run_tick(self) -> None:
        """Discover or poll depending on the phase."""
        if self._phase is PlayerPhase.SEEKING:
            logger.debug("Seek in progress, skipping poll")
            return

        self._publish(replace(self._playback, is_loading=True))
        try:
            player_id = self._playback.active_player_id
            if self._phase is PlayerPhase.TRACKING and player_id is not None:
                await self._poll(player_id)
            else:
                await self._discover()
        except RpcError as e:
            # Already reported by the transport; re-check players next tick
            logger.warning("Kodi rejected poll request: %s", e)
            if self._phase is PlayerPhase.TRACKING:
                self._set_phase(PlayerPhase.DISCOVERING)
            self._publish(replace(self._playback, is_connected=True, is_loading=False))
        except TransportError as e:
            # Keep the last good values; only connectivity changes
            logger.warning("Poll failed: %s", e.user_message)
            self._publish(replace(self._playback, is_connected=False, is_loading=False))

    async def _discover(self) -> None:
        """Look for an active player and adopt the first one."""
        if self._phase is PlayerPhase.DISCONNECTED:
            self._set_phase(PlayerPhase.DISCOVERING)

        players = await self._client.get_active_players()
        if not players:
            self.reset()
            self._publish(replace(self._playback, is_connected=True))
            return

        player_id = players[0].player_id
        logger.info("Tracking Kodi player %d (%s)", player_id, players[0].player_type or "unknown")
        self._set_phase(PlayerPhase.TRACKING)
        self._publish(replace(self._playback, active_player_id=player_id, is_connected=True))
        await self.refresh_volume()
        await self._poll(player_id)

    async def _poll(self, player_id: int) -> None:
        """Fetch position/duration and, while something plays, item metadata."""
        generation = self._seek_generation
        props = await self._client.get_player_properties(player_id)
        if self._playback.active_player_id != player_id:
            logger.debug("Player %d no longer tracked, dropping poll result", player_id)
            return
        if props is None:
            logger.info("Player %d reports no time data, treating as stopped", player_id)
            self.reset()
            self._publish(replace(self._playback, is_connected=True))
            return

        if self._phase is PlayerPhase.SEEKING or generation != self._seek_generation:
            # A seek began while the request was in flight; its position wins
            self._publish(replace(self._playback, is_connected=True, is_loading=False))
            return

        self._publish(
            replace(
                self._playback,
                position=props.position,
                duration=props.duration,
                is_playing=props.is_playing,
                is_connected=True,
                is_loading=False,
            )
        )

        if props.duration > 0:
            item = await self._client.get_item(player_id)
            if self._playback.active_player_id != player_id:
                # Stopped or lost while the item was being fetched
                logger.debug("Player %d no longer tracked, dropping item", player_id)
                return
            if item is not None:
                self._publish_item(item)
        else:
            self._publish_item(replace(self._media_item, title=DEFAULT_TITLE))

        self._write_widget()

    async def refresh_volume(self) -> None:
        """Ask Kodi for the application volume and publish it."""
        volume = await self._client.get_volume()
        if volume is not None:
            self.update_volume(volume)

    def update_volume(self, volume: int) -> None:
        """Record a volume level confirmed by Kodi."""
        self._publish(replace(self._playback, volume=volume))

    # -- Seeking ---------------------------------------------------------------

    def seek_begin(self) -> bool:
        """Start a user scrub; polling is suppressed until seek_end().

        Returns:
            True if the synchronizer entered SEEKING.
        """
        if self._phase is not PlayerPhase.TRACKING:
            logger.debug("Ignoring seek start in phase %s", self._phase.value)
            return False
        self._seek_generation += 1
        self._set_phase(PlayerPhase.SEEKING)
        self._publish(replace(self._playback, is_seeking=True))
        return True

    def seek_update(self, position: float) -> None:
        """Move the pinned position while the user scrubs."""
        if self._phase is not PlayerPhase.SEEKING:
            return
        self._publish(replace(self._playback, position=self._clamp_position(position)))

    async def seek_end(self, position: float) -> bool:
        """Finish a scrub and send the final position to Kodi.

        Args:
            position: Final position in seconds.

        Returns:
            True if Player.Seek was sent and accepted.
        """
        if self._phase is not PlayerPhase.SEEKING:
            logger.debug("Ignoring seek end in phase %s", self._phase.value)
            return False

        player_id = self._playback.active_player_id
        duration = self._playback.duration
        self._set_phase(PlayerPhase.TRACKING)
        self._publish(
            replace(self._playback, is_seeking=False, position=self._clamp_position(position))
        )

        percentage = seek_percentage(position, duration)
        if player_id is None or percentage is None:
            logger.debug("Seek dropped: player=%s duration=%s", player_id, duration)
            return False
        try:
            await self._client.seek_percentage(player_id, percentage)
        except KodiError as e:
            logger.warning("Seek to %d%% failed: %s", percentage, e)
            return False
        return True

    def _clamp_position(self, position: float) -> float:
        """Clamp a position into 0..duration."""
        return max(0.0, min(position, self._playback.duration))

    # -- Reset -----------------------------------------------------------------

    def reset(self) -> None:
        """Forget the active player (stop confirmed or player gone).

        Volume and connectivity are kept; everything else returns to defaults.
        """
        self._set_phase(PlayerPhase.DISCONNECTED)
        self._publish(
            PlaybackState(
                volume=self._playback.volume,
                is_connected=self._playback.is_connected,
            )
        )
        self._publish_item(MediaItem())
        if self._widget_sink is not None and self._widget_written:
            self._widget_written = False
            try:
                self._widget_sink.clear()
            except Exception:  # noqa: BLE001
                logger.exception("Failed to clear widget snapshot")

    # -- Publishing ------------------------------------------------------------

    def _set_phase(self, phase: PlayerPhase) -> None:
        """Switch phase and notify."""
        if phase is self._phase:
            return
        logger.debug("Phase %s -> %s", self._phase.value, phase.value)
        self._phase = phase
        if self._on_phase_changed:
            self._on_phase_changed(phase)

    def _publish(self, playback: PlaybackState) -> None:
        """Replace the playback snapshot and notify if it changed."""
        if playback == self._playback:
            return
        self._playback = playback
        if self._on_playback_changed:
            self._on_playback_changed(playback)

    def _publish_item(self, item: MediaItem) -> None:
        """Replace the item snapshot and notify if it changed."""
        if item == self._media_item:
            return
        self._media_item = item
        if self._on_media_item_changed:
            self._on_media_item_changed(item)

    def _write_widget(self) -> None:
        """Hand the widget sink a snapshot of the current state."""
        if self._widget_sink is None:
            return
        snapshot = WidgetSnapshot.from_state(
            self._playback,
            self._media_item,
            self._client.transport.endpoint,
        )
        try:
            self._widget_sink.write(snapshot)
            self._widget_written = True
        except Exception:  # noqa: BLE001
            logger.exception("Failed to write widget snapshot")
