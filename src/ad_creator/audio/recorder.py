"""Microphone capture state machine used for dictating business descriptions.

    IDLE ──start──> RECORDING ──stop──> STOPPED ──play──> PLAYING
      ^                                   ^  ^               │
      │                                   │  └──finished─────┤
      │                                   └──────play── PAUSED <──pause
      └────────────── reset (from any state) ─────────────────┘

The device and the player are injected, so the machine itself never
touches audio hardware. Tracks are held only while RECORDING.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Protocol

import structlog

from ad_creator.exceptions import RecorderStateError, ResourceError

logger = structlog.get_logger()


class MediaTrack(Protocol):
    def stop(self) -> None: ...


class MediaStream(Protocol):
    def get_tracks(self) -> list[MediaTrack]: ...


class AudioInputDevice(Protocol):
    async def open_stream(self, on_chunk: Callable[[bytes], None]) -> MediaStream:
        """Acquire the microphone and start delivering encoded chunks."""
        ...


class PlaybackBackend(Protocol):
    def load(self, path: Path) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def seek(self, seconds: float) -> None: ...

    def close(self) -> None: ...


class RecorderState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass
class RecorderSession:
    state: RecorderState = RecorderState.IDLE
    duration: int = 0
    recorded_audio: bytes | None = None
    playback_path: Path | None = None
    error: str | None = None

    @property
    def is_recording(self) -> bool:
        return self.state is RecorderState.RECORDING

    @property
    def is_playing(self) -> bool:
        return self.state is RecorderState.PLAYING

    @property
    def is_paused(self) -> bool:
        return self.state is RecorderState.PAUSED


def _stop_tracks(stream: MediaStream) -> None:
    for track in stream.get_tracks():
        track.stop()


class AudioRecorder:
    def __init__(
        self,
        device: AudioInputDevice,
        player: PlaybackBackend,
        *,
        tick_interval: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        suffix: str = ".webm",
    ):
        self._device = device
        self._player = player
        self._tick_interval = tick_interval
        self._sleep = sleep
        self._suffix = suffix

        self.session = RecorderSession()
        self._chunks: list[bytes] = []
        self._stream: MediaStream | None = None
        self._ticker: asyncio.Task | None = None
        self._player_loaded = False
        # a pending start owns the device until it commits or is superseded
        self._starting = False
        self._generation = 0

    @property
    def state(self) -> RecorderState:
        return self.session.state

    def _require(self, *allowed: RecorderState, action: str) -> None:
        if self.session.state not in allowed:
            raise RecorderStateError(
                f"Cannot {action} while {self.session.state.value}"
            )

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    async def start_recording(self) -> None:
        """Open the microphone and start capturing.

        A device failure (permission denied, no microphone) is stored in
        ``session.error`` and the recorder stays IDLE. If ``reset_recording``
        runs while the device is opening, the new stream is released at once.
        """
        self._require(RecorderState.IDLE, action="start recording")
        if self._starting:
            raise RecorderStateError("Cannot start recording while a start is pending")
        self._starting = True
        generation = self._generation
        self.session.error = None
        self._chunks = []

        try:
            stream = await self._device.open_stream(self._on_chunk)
        except Exception as exc:
            if generation == self._generation:
                self.session.error = str(exc) or "Could not access the microphone"
                logger.warning("audio_recorder.start_failed", error=self.session.error)
            return
        finally:
            if generation == self._generation:
                self._starting = False

        if generation != self._generation:
            _stop_tracks(stream)
            logger.info("audio_recorder.start_superseded")
            return

        self._stream = stream
        self.session.duration = 0
        self.session.state = RecorderState.RECORDING
        self._ticker = asyncio.create_task(self._tick())
        logger.info("audio_recorder.started")

    def _on_chunk(self, chunk: bytes) -> None:
        if chunk and self.session.state is RecorderState.RECORDING:
            self._chunks.append(chunk)

    async def _tick(self) -> None:
        while True:
            await self._sleep(self._tick_interval)
            self.session.duration += 1

    def stop_recording(self) -> None:
        """Finish capturing and write the audio to a temporary playback file.

        Raises:
            ResourceError: The playback file could not be written. The
                recording is discarded and the recorder returns to IDLE.
        """
        self._require(RecorderState.RECORDING, action="stop recording")
        self._release_capture()

        audio = b"".join(self._chunks)
        self._chunks = []

        try:
            path = self._write_playback_file(audio)
        except OSError as exc:
            error = f"Could not store the recording: {exc}"
            self.session = RecorderSession(error=error)
            logger.warning("audio_recorder.store_failed", error=str(exc))
            raise ResourceError(error) from exc

        self.session.recorded_audio = audio
        self.session.playback_path = path
        self.session.state = RecorderState.STOPPED
        logger.info(
            "audio_recorder.stopped",
            duration=self.session.duration,
            audio_bytes=len(audio),
        )

    def _write_playback_file(self, audio: bytes) -> Path:
        fd, name = tempfile.mkstemp(prefix="ad-creator-recording-", suffix=self._suffix)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(audio)
        except OSError:
            Path(name).unlink(missing_ok=True)
            raise
        return Path(name)

    def _release_capture(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        if self._stream is not None:
            _stop_tracks(self._stream)
            self._stream = None

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    def play_recording(self) -> None:
        """Play from the start when STOPPED; resume in place when PAUSED."""
        self._require(RecorderState.STOPPED, RecorderState.PAUSED, action="play")
        resuming = self.session.state is RecorderState.PAUSED

        try:
            if not self._player_loaded:
                self._player.load(self.session.playback_path)
                self._player_loaded = True
            if not resuming:
                self._player.seek(0)
            self._player.play()
        except Exception as exc:
            self._playback_failed(exc)
            return

        self.session.state = RecorderState.PLAYING

    def pause_playback(self) -> None:
        self._require(RecorderState.PLAYING, action="pause")
        try:
            self._player.pause()
        except Exception as exc:
            self._playback_failed(exc)
            return
        self.session.state = RecorderState.PAUSED

    def playback_finished(self) -> None:
        """Called by the playback backend when the audio reaches its end."""
        self._require(RecorderState.PLAYING, action="finish playback")
        self.session.state = RecorderState.STOPPED

    def _playback_failed(self, exc: Exception) -> None:
        self.session.error = f"Playback failed: {exc}"
        self.session.state = RecorderState.STOPPED
        logger.warning("audio_recorder.playback_failed", error=str(exc))

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def reset_recording(self) -> None:
        """Release everything and return to IDLE. Valid in any state."""
        self._generation += 1
        self._starting = False
        self._release_capture()

        if self._player_loaded:
            try:
                self._player.close()
            except Exception as exc:
                logger.warning("audio_recorder.player_close_failed", error=str(exc))
            self._player_loaded = False

        if self.session.playback_path is not None:
            self.session.playback_path.unlink(missing_ok=True)

        self._chunks = []
        self.session = RecorderSession()
        logger.info("audio_recorder.reset")
