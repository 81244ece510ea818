"""Player transport control against a silent transport."""

from __future__ import annotations

import math

import pytest

from audio_memory.pipelines.audio import (
    DetachedTransport,
    PlaybackController,
    initial_player_snapshot,
)
from audio_memory.pipelines.audio.playback import RING_CIRCUMFERENCE

AUDIO_URL = "https://cdn.example.com/1-1.mp3"


@pytest.fixture
def transport() -> DetachedTransport:
    return DetachedTransport(AUDIO_URL)


@pytest.fixture
def player(transport):
    with PlaybackController(transport) as controller:
        yield controller


def test_progress_is_zero_until_duration_is_known(player):
    player.seek(5)

    assert player.duration == 0
    assert player.progress == 0
    assert player.ring_offset == pytest.approx(RING_CIRCUMFERENCE)


def test_time_updates_drive_progress(player, transport):
    transport.load_metadata(120)
    transport.advance(30)

    snapshot = player.snapshot()
    assert snapshot.current_time == 30
    assert snapshot.progress == pytest.approx(0.25)
    assert snapshot.ring_offset == pytest.approx(RING_CIRCUMFERENCE * 0.75)
    assert snapshot.elapsed_label == "0:30"
    assert snapshot.duration_label == "2:00"


@pytest.mark.parametrize("duration", [math.inf, math.nan, 0])
def test_unusable_durations_are_ignored(player, transport, duration):
    transport.load_metadata(duration)

    assert player.duration == 0


async def test_toggle_plays_and_pauses(player, transport):
    await player.toggle()
    assert player.is_playing
    assert not transport.paused

    await player.toggle()
    assert not player.is_playing
    assert transport.paused


async def test_ended_stops_playing(player, transport):
    transport.load_metadata(10)
    await player.toggle()

    transport.advance(10)

    assert not player.is_playing
    assert player.progress == pytest.approx(1.0)


def test_seek_mirrors_position_immediately(player, transport):
    transport.load_metadata(60)

    player.seek(12)

    assert player.current_time == 12
    assert transport.current_time == 12


def test_raising_volume_unmutes(player, transport):
    player.toggle_mute()
    assert transport.muted

    player.set_volume(0.5)

    assert not player.muted
    assert not transport.muted
    assert transport.volume == 0.5


def test_zero_volume_keeps_mute(player):
    player.toggle_mute()

    player.set_volume(0)

    assert player.muted


@pytest.mark.parametrize(("requested", "applied"), [(1.7, 1.0), (-0.3, 0.0)])
def test_volume_is_clamped(player, transport, requested, applied):
    player.set_volume(requested)

    assert player.volume == applied
    assert transport.volume == applied


def test_detach_releases_listeners(transport):
    with PlaybackController(transport):
        assert transport.listener_count() == 5

    assert transport.listener_count() == 0


def test_initial_snapshot():
    snapshot = initial_player_snapshot(AUDIO_URL)

    assert snapshot.audio_url == AUDIO_URL
    assert not snapshot.is_playing
    assert snapshot.progress == 0
    assert snapshot.elapsed_label == "0:00"
    assert snapshot.duration_label == "0:00"
