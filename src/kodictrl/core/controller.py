"""Controller - turns remote-control intents into Kodi API calls.

Player commands need the id of the player the synchronizer is tracking.
Without one they do nothing: pressing pause with nothing playing is not an
error worth showing.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from kodictrl.api.client import KodiClient
from kodictrl.api.methods import Direction, InputAction, VolumeStep
from kodictrl.core.synchronizer import PlayerSynchronizer
from kodictrl.errors import KodiError, NoActivePlayerError
from kodictrl.models.endpoint import PingResult
from kodictrl.models.playback import seek_percentage

logger = logging.getLogger(__name__)

SEEK_STEP_SECONDS = 30


class KodiController:
    """User intents on top of KodiClient and PlayerSynchronizer.

    Every intent returns True if Kodi accepted the request. Failures have
    already been reported through the transport's failure handler, so the
    controller only logs them.

    Example:
        controller = KodiController(client, synchronizer)
        await controller.navigate(Direction.UP)
        await controller.toggle_play_pause()
    """

    def __init__(self, client: KodiClient, synchronizer: PlayerSynchronizer) -> None:
        """Initialize the controller.

        Args:
            client: The Kodi API client.
            synchronizer: Source of the active player id.
        """
        self._client = client
        self._sync = synchronizer

    def _require_player(self) -> int:
        """Return the tracked player id.

        Raises:
            NoActivePlayerError: If nothing is playing.
        """
        player_id = self._sync.active_player_id
        if player_id is None:
            raise NoActivePlayerError()
        return player_id

    async def _run(self, label: str, action: Callable[[], Awaitable[Any]]) -> bool:
        """Run an intent, absorbing missing-player and logged failures."""
        try:
            await action()
        except NoActivePlayerError:
            logger.debug("%s ignored: no active player", label)
            return False
        except KodiError as e:
            logger.warning("%s failed: %s", label, e.user_message)
            return False
        return True

    # -- Navigation ------------------------------------------------------------

    async def navigate(self, direction: Direction) -> bool:
        """Move focus in a direction."""
        return await self._run(
            f"Navigate {direction.value}", lambda: self._client.navigate(direction)
        )

    async def select(self) -> bool:
        """Confirm the focused item."""
        return await self._run("Select", self._client.select)

    async def back(self) -> bool:
        """Go back one screen."""
        return await self._run("Back", self._client.back)

    async def input_action(self, action: InputAction) -> bool:
        """Send Back, Home, ContextMenu or Info."""
        return await self._run(action.value, lambda: self._client.input_action(action))

    async def send_text(self, text: str) -> bool:
        """Type and submit text."""
        return await self._run("Send text", lambda: self._client.send_text(text))

    # -- Playback --------------------------------------------------------------

    async def toggle_play_pause(self) -> bool:
        """Toggle play/pause of the active player."""
        return await self._run(
            "Play/pause", lambda: self._client.play_pause(self._require_player())
        )

    async def stop(self) -> bool:
        """Stop playback; on success the synchronizer forgets the player."""

        async def stop_and_reset() -> None:
            await self._client.stop(self._require_player())
            self._sync.reset()

        return await self._run("Stop", stop_and_reset)

    async def seek_relative(self, seconds: int) -> bool:
        """Jump forward (positive) or backward (negative) by seconds."""
        return await self._run(
            f"Seek {seconds:+d}s",
            lambda: self._client.seek_relative(self._require_player(), seconds),
        )

    async def seek_forward(self) -> bool:
        """Jump forward 30 seconds."""
        return await self.seek_relative(SEEK_STEP_SECONDS)

    async def seek_backward(self) -> bool:
        """Jump back 30 seconds."""
        return await self.seek_relative(-SEEK_STEP_SECONDS)

    async def seek_absolute(self, position: float, duration: float) -> bool:
        """Seek to position/duration as a truncated percentage.

        Does nothing (no request) when duration is not positive.
        """
        percentage = seek_percentage(position, duration)
        if percentage is None:
            logger.debug("Seek ignored: duration %s", duration)
            return False
        return await self.seek_to_percentage(percentage)

    async def seek_to_percentage(self, percentage: int) -> bool:
        """Seek to an absolute percentage, clamped to 0-100."""
        percentage = max(0, min(100, percentage))
        return await self._run(
            f"Seek {percentage}%",
            lambda: self._client.seek_percentage(self._require_player(), percentage),
        )

    # -- Volume ----------------------------------------------------------------

    async def set_volume(self, volume: int) -> bool:
        """Set absolute volume, clamped to 0-100."""
        volume = max(0, min(100, volume))

        async def apply() -> None:
            reported = await self._client.set_volume(volume)
            self._sync.update_volume(reported if reported is not None else volume)

        return await self._run(f"Set volume {volume}", apply)

    async def volume_up(self) -> bool:
        """Raise volume by one Kodi step."""
        return await self._step_volume(VolumeStep.INCREMENT)

    async def volume_down(self) -> bool:
        """Lower volume by one Kodi step."""
        return await self._step_volume(VolumeStep.DECREMENT)

    async def _step_volume(self, step: VolumeStep) -> bool:
        """Step the volume and record the level Kodi reports."""

        async def apply() -> None:
            reported = await self._client.step_volume(step)
            if reported is not None:
                self._sync.update_volume(reported)

        return await self._run(f"Volume {step.value}", apply)

    async def toggle_mute(self) -> bool:
        """Toggle mute."""
        return await self._run("Toggle mute", self._client.toggle_mute)

    # -- Connectivity ----------------------------------------------------------

    async def ping(self) -> PingResult:
        """Probe the configured Kodi; never touches the error channel."""
        return await self._client.ping()
