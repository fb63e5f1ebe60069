"""
Tracks: one selected device, its encoder and the thread moving encoded
samples from the encoder to the track's sink.

Lifecycle::

    CREATED -> OPENED -> RUNNING -> STOPPED
                            \\-> ENDED (read, encode or write failure)

A failure observed while RUNNING ends the track and fires the ended callback
once. Anything the loop observes after stop(), end-of-stream included, is the
result of the stop and is not reported.
"""

import enum
import random
import threading
import time
import logging
from typing import Callable, Optional

from .errors import DeviceOpenError, EncoderError, MediaStreamError
from .io import InsufficientBufferError
from .prop import MediaKind
from .selector import Selection

logger = logging.getLogger(__name__)

INITIAL_BUFFER_SIZE = 1024
DEFAULT_STOP_TIMEOUT = 2.0


class TrackState(enum.Enum):
    CREATED = "created"
    OPENED = "opened"
    RUNNING = "running"
    STOPPED = "stopped"
    ENDED = "ended"


class EndedCallback:
    """Single callback slot, replaceable until it fires, fired at most once"""

    def __init__(self):
        self._lock = threading.Lock()
        self._callback: Optional[Callable] = None
        self._fired = False

    def set(self, callback: Optional[Callable]) -> None:
        with self._lock:
            self._callback = callback

    def fire(self, error: Exception) -> bool:
        with self._lock:
            if self._fired:
                return False
            self._fired = True
            callback = self._callback
        if callback is not None:
            try:
                callback(error)
            except Exception:
                logger.exception(f"Ended callback {callback!r} raised")
        return True


class Track:
    """Base class for video and audio tracks"""

    kind: MediaKind = None

    def __init__(self, selection: Selection, sink, stop_timeout: float = DEFAULT_STOP_TIMEOUT):
        self.driver = selection.driver
        self.codec = selection.codec
        self.properties = selection.properties
        self.sink = sink
        self.stop_timeout = stop_timeout
        self.encoder = None
        self.error: Optional[Exception] = None
        self.state = TrackState.CREATED
        self._state_lock = threading.RLock()
        self._ended = EndedCallback()
        self._thread: Optional[threading.Thread] = None

    @classmethod
    def create(cls, selection: Selection, track_generator: Callable,
               transform: Optional[Callable] = None,
               stop_timeout: float = DEFAULT_STOP_TIMEOUT) -> "Track":
        """Build the sink, open the device, build the encoder and start the loop"""
        codec = selection.codec
        sink = track_generator(
            codec.payload_type,
            random.getrandbits(32),
            selection.driver.id,
            str(codec.kind),
            codec,
        )
        track = cls(selection, sink, stop_timeout)
        track._open(transform)
        track._start()
        return track

    @property
    def id(self) -> str:
        return self.sink.id

    @property
    def device_id(self) -> str:
        return self.driver.id

    def on_ended(self, callback: Optional[Callable]) -> None:
        """Register the callback receiving the error that ends this track"""
        self._ended.set(callback)

    def _open(self, transform: Optional[Callable]) -> None:
        self.driver.open()
        self.state = TrackState.OPENED
        try:
            try:
                reader = self._record()
            except MediaStreamError:
                raise
            except Exception as e:
                raise DeviceOpenError(f"Device {self.driver.id} failed to record: {e}") from e
            if transform is not None:
                reader = transform(reader)
            try:
                self.encoder = self.codec.builder(reader, self.properties)
            except Exception as e:
                raise EncoderError(f"Failed to build {self.codec.name} encoder: {e}") from e
        except Exception:
            self.driver.close()
            raise

    def _record(self):
        raise NotImplementedError

    def _start(self) -> None:
        with self._state_lock:
            if self._thread is not None:
                raise RuntimeError(f"Track {self.id} is already running")
            self.state = TrackState.RUNNING
            self._thread = threading.Thread(target=self._run, name=f"track-{self.id}", daemon=True)
        self._thread.start()
        logger.info(f"Started {self.kind} track {self.id} ({self.codec.name} from {self.driver.id})")

    def _run(self) -> None:
        buffer = bytearray(INITIAL_BUFFER_SIZE)
        self._on_loop_start()
        while self.state is TrackState.RUNNING:
            try:
                n = self.encoder.readinto(buffer)
            except InsufficientBufferError as e:
                buffer = bytearray(2 * e.required_size)
                logger.debug(f"Track {self.id}: output buffer grown to {len(buffer)} bytes")
                continue
            except Exception as e:
                self._end(e)
                return

            if n == 0:
                continue

            error = None
            # no emission once stop() has returned
            with self._state_lock:
                if self.state is not TrackState.RUNNING:
                    break
                try:
                    self.sink.write_sample(bytes(buffer[:n]), self._sample_count(n))
                except Exception as e:
                    error = e
            if error is not None:
                self._end(error)
                return
        logger.debug(f"Track {self.id} loop exited ({self.state.value})")

    def _on_loop_start(self) -> None:
        pass

    def _sample_count(self, size: int) -> int:
        raise NotImplementedError

    def _end(self, error: Exception) -> None:
        with self._state_lock:
            if self.state is not TrackState.RUNNING:
                logger.debug(f"Track {self.id} stopped: {error!r}")
                return
            self.state = TrackState.ENDED
            self.error = error
        logger.error(f"Track {self.id} ended: {error!r}")
        try:
            self._release()
        except Exception:
            logger.exception(f"Track {self.id}: failed to release {self.driver.id}")
        finally:
            self._ended.fire(error)

    def _release(self) -> None:
        try:
            self.driver.close()
        finally:
            if self.encoder is not None:
                self.encoder.close()

    def stop(self) -> None:
        """Release the device and encoder; the loop exits without reporting"""
        with self._state_lock:
            if self.state in (TrackState.STOPPED, TrackState.ENDED):
                return
            self.state = TrackState.STOPPED
        self._release()
        logger.info(f"Stopped {self.kind} track {self.id}")
        self.join(self.stop_timeout)

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the loop to exit, returning True once it has"""
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return thread is None
        thread.join(timeout)
        return not thread.is_alive()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, state={self.state.value})"


class VideoTrack(Track):
    kind = MediaKind.VIDEO

    def _record(self):
        return self.driver.video_record(self.properties)

    def _on_loop_start(self) -> None:
        self._last_timestamp = time.monotonic()

    def _sample_count(self, size: int) -> int:
        # clock ticks elapsed since the previous sample
        now = time.monotonic()
        samples = int(self.codec.clock_rate * (now - self._last_timestamp))
        self._last_timestamp = now
        return samples


class AudioTrack(Track):
    kind = MediaKind.AUDIO

    def _record(self):
        return self.driver.audio_record(self.properties)

    def _on_loop_start(self) -> None:
        sample_rate = self.properties.sample_rate or 0
        latency = self.properties.latency or 0.0
        self._samples_per_read = int(sample_rate * latency)

    def _sample_count(self, size: int) -> int:
        return self._samples_per_read
