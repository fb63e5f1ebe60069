import threading
import logging
from typing import List, Optional

import av
import av.error

from ..driver import Driver
from ..errors import DeviceOpenError
from ..io import EndOfStream
from ..prop import Media, MediaKind
from ..utils import get_audio_backend, get_microphone_device_path

logger = logging.getLogger(__name__)

SAMPLE_RATES = (48000, 44100, 16000)
BYTES_PER_SAMPLE = 2

# (open, read) timeouts in seconds passed to av.open
DEFAULT_TIMEOUT = (5.0, 1.0)


class MicrophoneDriver(Driver):
    """
    Captures from a microphone using av (PyAV), resampled to s16 PCM.

    Every read returns exactly sample_rate * latency samples per channel,
    whatever the size of the frames the device delivers.

    :param input_format: overrides the platform audio backend; ``mic_id`` is
        then used as the input URL unchanged (e.g. a WAV file with ``'wav'``)
    """

    kinds = frozenset({MediaKind.AUDIO})

    def __init__(self, mic_id, channel_count: int = 1, latency: float = 0.02,
                 input_format: Optional[str] = None, timeout=DEFAULT_TIMEOUT):
        self.mic_id = mic_id
        safe_name = str(mic_id).replace(" ", "_").replace(":", "_")
        super().__init__(f"microphone_{safe_name}", label=str(mic_id))
        self.channel_count = channel_count
        self.latency = latency
        self.timeout = timeout
        if input_format is not None:
            self.input_format = input_format
            self.input_url = str(mic_id)
        else:
            self.input_format = get_audio_backend()
            self.input_url = get_microphone_device_path(mic_id)
        self.container = None
        self._reader_lock = threading.Lock()

    def properties(self) -> List[Media]:
        return [
            Media(device_id=self.id, channel_count=self.channel_count,
                  sample_rate=rate, sample_size=16, latency=self.latency)
            for rate in SAMPLE_RATES
        ]

    def _audio_record(self, media: Media):
        try:
            container = av.open(self.input_url, format=self.input_format, timeout=self.timeout)
        except (av.error.FFmpegError, OSError) as e:
            raise DeviceOpenError(f"Failed to open microphone {self.mic_id}: {e}") from e
        if not container.streams.audio:
            container.close()
            raise DeviceOpenError(f"{self.input_url} has no audio stream")

        self.container = container
        logger.info(f"Microphone {self.mic_id} opened with format {self.input_format}")
        channels = media.channel_count or self.channel_count
        sample_rate = media.sample_rate or SAMPLE_RATES[0]
        latency = media.latency or self.latency
        return _MicrophoneReader(
            self,
            container.streams.audio[0],
            av.AudioResampler(
                format='s16',
                layout='mono' if channels == 1 else 'stereo',
                rate=sample_rate,
            ),
            channels,
            max(1, int(sample_rate * latency)),
        )

    def _do_close(self) -> None:
        # is_open is already false, so a reader waiting out a read timeout gives up the lock
        with self._reader_lock:
            if self.container is not None:
                self.container.close()
                self.container = None


class _MicrophoneReader:

    def __init__(self, driver: MicrophoneDriver, stream, resampler, channels: int, chunk_samples: int):
        self._driver = driver
        self._stream = stream
        self._frames = driver.container.decode(stream)
        self._resampler = resampler
        self._fifo = av.AudioFifo()
        self._channels = channels
        self.chunk_samples = chunk_samples

    def _fill(self) -> bool:
        """Decode one more frame into the fifo, False when no frame arrived in time"""
        try:
            frame = next(self._frames)
        except StopIteration:
            raise EndOfStream()
        except av.error.ExitError:
            logger.debug(f"Microphone {self._driver.mic_id}: no audio within the read timeout")
            self._frames = self._driver.container.decode(self._stream)
            return False
        for resampled in self._resampler.resample(frame):
            # the fifo checks timestamps for continuity, device timestamps are not
            resampled.pts = None
            self._fifo.write(resampled)
        return True

    def read(self) -> bytes:
        while True:
            with self._driver._reader_lock:
                if not self._driver.is_open or self._driver.container is None:
                    raise EndOfStream()
                while self._fifo.samples < self.chunk_samples:
                    if not self._fill():
                        break
                else:
                    frame = self._fifo.read(self.chunk_samples)
                    # planes carry alignment padding past the last sample
                    return bytes(frame.planes[0])[:self.chunk_samples * self._channels * BYTES_PER_SAMPLE]
