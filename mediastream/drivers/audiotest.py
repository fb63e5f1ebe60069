import array
import math
import sys
import threading
import time
from typing import List

from ..driver import Driver
from ..io import EndOfStream
from ..prop import Media, MediaKind
from ..utils import maintain_rate


class AudioTestDriver(Driver):
    """Synthetic audio device producing a sine tone as s16 PCM"""

    kinds = frozenset({MediaKind.AUDIO})

    def __init__(self, device_id: str = "audiotest", sample_rate: int = 48000,
                 channel_count: int = 1, latency: float = 0.02, frequency: float = 440.0):
        super().__init__(device_id, label="Audio test source")
        self.sample_rate = sample_rate
        self.channel_count = channel_count
        self.latency = latency
        self.frequency = frequency
        self._closed = threading.Event()

    def properties(self) -> List[Media]:
        return [Media(device_id=self.id, channel_count=self.channel_count,
                      sample_rate=self.sample_rate, sample_size=16, latency=self.latency)]

    def _do_open(self) -> None:
        self._closed = threading.Event()

    def _do_close(self) -> None:
        self._closed.set()

    def _audio_record(self, media: Media):
        return _ToneReader(
            media.sample_rate or self.sample_rate,
            media.channel_count or self.channel_count,
            media.latency or self.latency,
            self.frequency,
            self._closed,
        )


class _ToneReader:

    def __init__(self, sample_rate: int, channels: int, latency: float,
                 frequency: float, closed: threading.Event):
        self.sample_rate = sample_rate
        self.channels = channels
        self.latency = latency
        self.frequency = frequency
        self.chunk_samples = max(1, int(sample_rate * latency))
        self._position = 0
        self._closed = closed
        self._last = None

    def read(self) -> bytes:
        if self._closed.is_set():
            raise EndOfStream()
        if self._last is not None:
            maintain_rate(self._last, self.latency)
            if self._closed.is_set():
                raise EndOfStream()
        self._last = time.time()

        pcm = array.array("h")
        step = 2 * math.pi * self.frequency / self.sample_rate
        for i in range(self._position, self._position + self.chunk_samples):
            value = int(0.3 * 32767 * math.sin(step * i))
            pcm.extend([value] * self.channels)
        self._position += self.chunk_samples
        if sys.byteorder == "big":
            pcm.byteswap()
        return pcm.tobytes()
