"""Transport control for a single attached audio clip."""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass

from audio_memory.pipelines.audio.clock import format_clock
from audio_memory.pipelines.audio.types import AudioTransport, TransportListener

RING_RADIUS = 88
RING_CIRCUMFERENCE = 2 * math.pi * RING_RADIUS


@dataclass(frozen=True)
class PlayerSnapshot:
    """Render-ready view of the player."""

    audio_url: str
    is_playing: bool
    current_time: float
    duration: float
    volume: float
    muted: bool
    progress: float
    ring_offset: float
    elapsed_label: str
    duration_label: str


class PlaybackController:
    """Mirrors an audio transport's state and drives play/pause/seek/volume.

    ``attach``/``detach`` (or the context manager form) subscribe to and
    release the transport's notifications.

    The server only renders the initial state through ``DetachedTransport``;
    the player page's script mirrors these transitions on the live
    ``<audio>`` element.
    """

    def __init__(self, transport: AudioTransport) -> None:
        self._transport = transport
        self._audio_url = transport.src
        self.current_time = 0.0
        self.duration = 0.0
        self.is_playing = False
        self.volume = transport.volume
        self.muted = transport.muted
        self._subscriptions: dict[str, TransportListener] = {}

    @property
    def audio_url(self) -> str:
        return self._audio_url

    def attach(self) -> None:
        if self._subscriptions:
            return
        self._subscriptions = {
            "timeupdate": self._on_time_update,
            "loadedmetadata": self._on_duration_change,
            "durationchange": self._on_duration_change,
            "canplay": self._on_duration_change,
            "ended": self._on_ended,
        }
        for event, listener in self._subscriptions.items():
            self._transport.add_listener(event, listener)
        # Metadata may already be loaded.
        self._on_duration_change()

    def detach(self) -> None:
        subscriptions, self._subscriptions = self._subscriptions, {}
        for event, listener in subscriptions.items():
            self._transport.remove_listener(event, listener)

    def __enter__(self) -> "PlaybackController":
        self.attach()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.detach()

    async def toggle(self) -> None:
        if self.is_playing:
            self._transport.pause()
            self.is_playing = False
        else:
            await self._transport.play()
            self.is_playing = True

    def seek(self, time: float) -> None:
        self._transport.current_time = time
        self.current_time = time

    def set_volume(self, volume: float) -> None:
        volume = min(max(volume, 0.0), 1.0)
        self._transport.volume = volume
        self.volume = volume
        if volume > 0 and self.muted:
            self._transport.muted = False
            self.muted = False

    def toggle_mute(self) -> None:
        self.muted = not self.muted
        self._transport.muted = self.muted

    @property
    def progress(self) -> float:
        if self.duration <= 0:
            return 0.0
        return self.current_time / self.duration

    @property
    def ring_offset(self) -> float:
        return RING_CIRCUMFERENCE * (1 - self.progress)

    def snapshot(self) -> PlayerSnapshot:
        return PlayerSnapshot(
            audio_url=self._audio_url,
            is_playing=self.is_playing,
            current_time=self.current_time,
            duration=self.duration,
            volume=self.volume,
            muted=self.muted,
            progress=self.progress,
            ring_offset=self.ring_offset,
            elapsed_label=format_clock(self.current_time),
            duration_label=format_clock(self.duration),
        )

    def _on_time_update(self) -> None:
        self.current_time = self._transport.current_time

    def _on_duration_change(self) -> None:
        duration = self._transport.duration
        if duration and math.isfinite(duration):
            self.duration = duration

    def _on_ended(self) -> None:
        self.is_playing = False


class DetachedTransport:
    """Silent transport that only tracks state.

    Used to render a player's initial state on the server, before a browser
    has loaded the clip.
    """

    def __init__(self, src: str, duration: float = math.nan) -> None:
        self.src = src
        self.volume = 1.0
        self.muted = False
        self.paused = True
        self._duration = duration
        self._current_time = 0.0
        self._listeners: dict[str, list[TransportListener]] = defaultdict(list)

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def current_time(self) -> float:
        return self._current_time

    @current_time.setter
    def current_time(self, value: float) -> None:
        value = max(value, 0.0)
        if math.isfinite(self._duration):
            value = min(value, self._duration)
        self._current_time = value

    async def play(self) -> None:
        self.paused = False

    def pause(self) -> None:
        self.paused = True

    def add_listener(self, event: str, listener: TransportListener) -> None:
        self._listeners[event].append(listener)

    def remove_listener(self, event: str, listener: TransportListener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event: str | None = None) -> int:
        if event is not None:
            return len(self._listeners.get(event, []))
        return sum(len(listeners) for listeners in self._listeners.values())

    def emit(self, event: str) -> None:
        for listener in list(self._listeners.get(event, [])):
            listener()

    def load_metadata(self, duration: float) -> None:
        self._duration = duration
        self.emit("loadedmetadata")
        self.emit("durationchange")

    def advance(self, seconds: float) -> None:
        """Move the playhead forward as if ``seconds`` of audio had played."""

        self.current_time = self._current_time + seconds
        self.emit("timeupdate")
        if math.isfinite(self._duration) and self._current_time >= self._duration:
            self.paused = True
            self.emit("ended")


def initial_player_snapshot(audio_url: str) -> PlayerSnapshot:
    with PlaybackController(DetachedTransport(audio_url)) as player:
        return player.snapshot()


__all__ = [
    "RING_RADIUS",
    "RING_CIRCUMFERENCE",
    "PlayerSnapshot",
    "PlaybackController",
    "DetachedTransport",
    "initial_player_snapshot",
]
