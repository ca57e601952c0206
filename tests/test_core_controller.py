"""Tests for KodiController (user intents)."""

import httpx
import pytest

from conftest import FakeKodi
from kodictrl.api.client import KodiClient
from kodictrl.api.methods import Direction, InputAction
from kodictrl.core.controller import SEEK_STEP_SECONDS, KodiController
from kodictrl.core.synchronizer import PlayerSynchronizer
from kodictrl.models.playback import PlayerPhase


@pytest.fixture
def sync(client: KodiClient) -> PlayerSynchronizer:
    """Return a synchronizer on the fake Kodi."""
    return PlayerSynchronizer(client)


@pytest.fixture
def controller(client: KodiClient, sync: PlayerSynchronizer) -> KodiController:
    """Return a controller on the fake Kodi."""
    return KodiController(client, sync)


@pytest.fixture
async def playing(sync: PlayerSynchronizer, kodi: FakeKodi) -> PlayerSynchronizer:
    """Return the synchronizer after discovering a playing item."""
    kodi.play(725, 5400)
    kodi.results["Player.PlayPause"] = {"speed": 0}
    kodi.results["Player.Stop"] = "OK"
    kodi.results["Player.Seek"] = {}
    await sync.tick()
    kodi.calls.clear()
    return sync


class TestNavigation:
    """Test navigation intents (no player needed)."""

    @pytest.mark.asyncio
    async def test_navigate(self, controller: KodiController, kodi: FakeKodi) -> None:
        """Test navigation is sent without a player."""
        kodi.results["Input.Up"] = "OK"
        assert await controller.navigate(Direction.UP)
        assert kodi.methods() == ["Input.Up"]

    @pytest.mark.asyncio
    async def test_input_actions(self, controller: KodiController, kodi: FakeKodi) -> None:
        """Test select/back/home/text."""
        for method in ("Input.Select", "Input.Back", "Input.Home", "Input.SendText"):
            kodi.results[method] = "OK"
        assert await controller.select()
        assert await controller.back()
        assert await controller.input_action(InputAction.HOME)
        assert await controller.send_text("abc")
        assert kodi.methods() == ["Input.Select", "Input.Back", "Input.Home", "Input.SendText"]

    @pytest.mark.asyncio
    async def test_failure_returns_false(self, controller: KodiController, kodi: FakeKodi) -> None:
        """Test transport failures are absorbed into False."""
        kodi.fail_with = httpx.ConnectError("refused")
        assert not await controller.select()


class TestPlayerIntents:
    """Test intents that need the active player."""

    @pytest.mark.asyncio
    async def test_no_player_is_noop(self, controller: KodiController, kodi: FakeKodi) -> None:
        """Test player commands without a player send nothing."""
        assert not await controller.toggle_play_pause()
        assert not await controller.stop()
        assert not await controller.seek_forward()
        assert kodi.calls == []

    @pytest.mark.asyncio
    async def test_play_pause(
        self, controller: KodiController, playing: PlayerSynchronizer, kodi: FakeKodi
    ) -> None:
        """Test play/pause targets the tracked player."""
        assert await controller.toggle_play_pause()
        assert kodi.params_of("Player.PlayPause") == [{"playerid": 1}]

    @pytest.mark.asyncio
    async def test_stop_resets(
        self, controller: KodiController, playing: PlayerSynchronizer, kodi: FakeKodi
    ) -> None:
        """Test a confirmed stop resets the synchronizer."""
        assert await controller.stop()
        assert kodi.params_of("Player.Stop") == [{"playerid": 1}]
        assert playing.phase is PlayerPhase.DISCONNECTED
        assert playing.active_player_id is None
        assert playing.playback.position == 0.0

    @pytest.mark.asyncio
    async def test_failed_stop_keeps_player(
        self, controller: KodiController, playing: PlayerSynchronizer, kodi: FakeKodi
    ) -> None:
        """Test a rejected stop leaves tracking intact."""
        kodi.errors["Player.Stop"] = (-32100, "Failed to execute method.")
        assert not await controller.stop()
        assert playing.phase is PlayerPhase.TRACKING

    @pytest.mark.asyncio
    async def test_seek_steps(
        self, controller: KodiController, playing: PlayerSynchronizer, kodi: FakeKodi
    ) -> None:
        """Test forward/backward jump by 30 seconds."""
        assert await controller.seek_forward()
        assert await controller.seek_backward()
        assert kodi.params_of("Player.Seek") == [
            {"playerid": 1, "value": {"seconds": SEEK_STEP_SECONDS}},
            {"playerid": 1, "value": {"seconds": -SEEK_STEP_SECONDS}},
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("position", "duration", "percentage"),
        [(30, 100, 30), (33.9, 100, 33), (2700, 5400, 50), (6000, 5400, 100)],
    )
    async def test_seek_absolute(
        self,
        controller: KodiController,
        playing: PlayerSynchronizer,
        kodi: FakeKodi,
        position: float,
        duration: float,
        percentage: int,
    ) -> None:
        """Test absolute seeks truncate to an integer percentage."""
        assert await controller.seek_absolute(position, duration)
        assert kodi.params_of("Player.Seek") == [
            {"playerid": 1, "value": {"percentage": percentage}}
        ]

    @pytest.mark.asyncio
    async def test_seek_absolute_zero_duration(
        self, controller: KodiController, playing: PlayerSynchronizer, kodi: FakeKodi
    ) -> None:
        """Test no request is sent for a zero duration."""
        assert not await controller.seek_absolute(10, 0)
        assert kodi.calls == []


class TestVolumeIntents:
    """Test volume intents."""

    @pytest.mark.asyncio
    async def test_set_volume_updates_state(
        self, controller: KodiController, sync: PlayerSynchronizer, kodi: FakeKodi
    ) -> None:
        """Test the reported volume becomes the tracked volume."""
        kodi.results["Application.SetVolume"] = 30
        assert await controller.set_volume(30)
        assert sync.playback.volume == 30

    @pytest.mark.asyncio
    async def test_set_volume_clamps(
        self, controller: KodiController, sync: PlayerSynchronizer, kodi: FakeKodi
    ) -> None:
        """Test out-of-range levels are clamped before sending."""
        kodi.results["Application.SetVolume"] = "OK"
        assert await controller.set_volume(150)
        assert kodi.params_of("Application.SetVolume") == [{"volume": 100}]
        assert sync.playback.volume == 100

    @pytest.mark.asyncio
    async def test_volume_steps(
        self, controller: KodiController, sync: PlayerSynchronizer, kodi: FakeKodi
    ) -> None:
        """Test stepping records the level Kodi reports."""
        kodi.results["Application.SetVolume"] = 55
        assert await controller.volume_up()
        assert sync.playback.volume == 55
        kodi.results["Application.SetVolume"] = 50
        assert await controller.volume_down()
        assert sync.playback.volume == 50
        assert kodi.params_of("Application.SetVolume") == [
            {"volume": "increment"},
            {"volume": "decrement"},
        ]

    @pytest.mark.asyncio
    async def test_toggle_mute(self, controller: KodiController, kodi: FakeKodi) -> None:
        """Test mute toggle."""
        kodi.results["Application.SetMute"] = True
        assert await controller.toggle_mute()

    @pytest.mark.asyncio
    async def test_volume_failure(
        self, controller: KodiController, sync: PlayerSynchronizer, kodi: FakeKodi
    ) -> None:
        """Test a failed volume change leaves the tracked volume alone."""
        kodi.errors["Application.SetVolume"] = (-32602, "Invalid params.")
        assert not await controller.set_volume(10)
        assert sync.playback.volume == 50


class TestPing:
    """Test the connectivity probe."""

    @pytest.mark.asyncio
    async def test_ping(self, controller: KodiController) -> None:
        """Test ping delegates to the client."""
        result = await controller.ping()
        assert result.success
