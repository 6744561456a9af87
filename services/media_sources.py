"""Audio sources for meeting capture.

A meeting is captured from two inputs: the system/display audio (a loopback or
monitor input device carrying the meeting's remote participants) and the local
microphone. Both are sounddevice input streams that buffer float32 samples from
the PortAudio callback thread; MergedAudioStream mixes them into one mono signal.
"""
import io
import logging
import threading
from abc import ABC, abstractmethod
from typing import List

import numpy as np
import soundfile as sf

from utils.errors import MediaCaptureUnavailable

logger = logging.getLogger(__name__)

# Name fragments of input devices that carry system output audio
LOOPBACK_DEVICE_HINTS = ("monitor", "loopback", "stereo mix", "blackhole", "soundflower")


def _sounddevice():
    """Import sounddevice on first use; it needs the PortAudio shared library."""
    try:
        import sounddevice
    except OSError as e:
        logger.error(f"PortAudio library not available: error={e}")
        raise MediaCaptureUnavailable(f"Audio capture unavailable: {e}") from e
    return sounddevice


class MediaStream(ABC):
    """A started-on-demand source of mono float32 samples."""

    name: str = "stream"

    @abstractmethod
    def start(self) -> None:
        ...

    @abstractmethod
    def read_available(self) -> np.ndarray:
        """Return and clear all samples buffered since the previous read."""

    @abstractmethod
    def stop(self) -> None:
        """Release the underlying device; buffered samples stay readable."""

    @property
    @abstractmethod
    def active(self) -> bool:
        ...


class DeviceAudioStream(MediaStream):
    """Input device captured through a sounddevice InputStream callback."""

    def __init__(self, device, samplerate: int = 16000, channels: int = 1, name: str = "device"):
        self.device = device
        self.samplerate = samplerate
        self.channels = channels
        self.name = name
        self._blocks: List[np.ndarray] = []
        self._lock = threading.Lock()
        self._stream = None

    def _callback(self, indata, frames, time_info, status) -> None:
        if status:
            logger.debug(f"Input stream status: name={self.name}, status={status}")
        block = indata.mean(axis=1) if indata.ndim > 1 else indata.reshape(-1)
        with self._lock:
            self._blocks.append(block.astype(np.float32, copy=True))

    def start(self) -> None:
        sd = _sounddevice()
        try:
            self._stream = sd.InputStream(
                device=self.device,
                samplerate=self.samplerate,
                channels=self.channels,
                dtype="float32",
                callback=self._callback,
            )
            self._stream.start()
        except sd.PortAudioError as e:
            logger.error(f"Failed to open input device: name={self.name}, device={self.device}, error={e}")
            self._stream = None
            raise MediaCaptureUnavailable(f"Could not open {self.name} audio: {e}") from e
        logger.info(f"Input stream started: name={self.name}, device={self.device}, samplerate={self.samplerate}")

    def read_available(self) -> np.ndarray:
        with self._lock:
            blocks, self._blocks = self._blocks, []
        if not blocks:
            return np.zeros(0, dtype=np.float32)
        return np.concatenate(blocks)

    def stop(self) -> None:
        if self._stream is None:
            return
        try:
            self._stream.stop()
            self._stream.close()
        except _sounddevice().PortAudioError as e:
            logger.warning(f"Error closing input stream: name={self.name}, error={e}")
        finally:
            self._stream = None
        logger.info(f"Input stream stopped: name={self.name}")

    @property
    def active(self) -> bool:
        return self._stream is not None


class MergedAudioStream(MediaStream):
    """Mixes several sources into one mono signal (sum, clipped to [-1, 1])."""

    name = "merged"

    def __init__(self, sources: List[MediaStream]):
        self.sources = list(sources)
        self._active = False

    def start(self) -> None:
        self._active = True

    def read_available(self) -> np.ndarray:
        parts = [source.read_available() for source in self.sources]
        length = max((len(part) for part in parts), default=0)
        if length == 0:
            return np.zeros(0, dtype=np.float32)
        mixed = np.zeros(length, dtype=np.float32)
        for part in parts:
            mixed[:len(part)] += part
        return np.clip(mixed, -1.0, 1.0)

    def stop(self) -> None:
        self._active = False

    @property
    def active(self) -> bool:
        return self._active


def encode_wav(samples: np.ndarray, samplerate: int) -> bytes:
    """Encode mono float32 samples as 16-bit PCM WAV bytes."""
    buffer = io.BytesIO()
    sf.write(buffer, samples, samplerate, format="WAV", subtype="PCM_16")
    return buffer.getvalue()


class ChunkRecorder:
    """
    Records one chunk from a stream.

    start() discards audio buffered before the chunk window opened; stop()
    returns everything captured since as WAV bytes.
    """

    def __init__(self, stream: MediaStream, samplerate: int):
        self.stream = stream
        self.samplerate = samplerate
        self.recording = False

    def start(self) -> None:
        self.stream.read_available()
        self.recording = True

    def stop(self) -> bytes:
        self.recording = False
        return encode_wav(self.stream.read_available(), self.samplerate)


class DeviceMediaProvider:
    """Acquires the display (loopback) and microphone inputs by device lookup."""

    def __init__(self, samplerate: int = 16000, display_device_name: str = ""):
        self.samplerate = samplerate
        self.display_device_name = display_device_name

    def _input_devices(self) -> list[tuple[int, dict]]:
        sd = _sounddevice()
        try:
            devices = sd.query_devices()
        except sd.PortAudioError as e:
            raise MediaCaptureUnavailable(f"Audio devices unavailable: {e}") from e
        return [
            (idx, device) for idx, device in enumerate(devices)
            if device["max_input_channels"] > 0
        ]

    def find_display_device(self) -> int:
        """Index of the loopback/monitor input carrying system output audio."""
        hints = (self.display_device_name.lower(),) if self.display_device_name else LOOPBACK_DEVICE_HINTS
        for idx, device in self._input_devices():
            name = device["name"].lower()
            if any(hint in name for hint in hints):
                logger.info(f"Display audio device selected: index={idx}, name={device['name']}")
                return idx
        raise MediaCaptureUnavailable(
            "No system audio capture device found. Configure a loopback or monitor input."
        )

    def acquire_display_stream(self) -> MediaStream:
        return DeviceAudioStream(self.find_display_device(), self.samplerate, name="display")

    def acquire_microphone_stream(self) -> MediaStream:
        try:
            default_input = _sounddevice().default.device[0]
        except (TypeError, IndexError):
            default_input = None
        if default_input is None or default_input < 0:
            if not self._input_devices():
                raise MediaCaptureUnavailable("No microphone found.")
            default_input = None
        return DeviceAudioStream(default_input, self.samplerate, name="microphone")

    def merge(self, streams: List[MediaStream]) -> MediaStream:
        return MergedAudioStream(streams)
