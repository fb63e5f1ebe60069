"""
Capture device contract.

A driver declares the kinds it can capture and exposes one record method per
kind. Opening is exclusive: a device belongs to at most one track at a time.
"""

import logging
import threading
from typing import FrozenSet, List

from .errors import DeviceOpenError, DriverError
from .prop import Media, MediaKind

logger = logging.getLogger(__name__)


class Driver:
    """Base class for capture devices"""

    kinds: FrozenSet[MediaKind] = frozenset()

    def __init__(self, device_id: str, label: str = ""):
        self.id = device_id
        self.label = label or device_id
        self._open = False
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        with self._lock:
            if self._open:
                raise DeviceOpenError(f"Device {self.id} is already open")
            try:
                self._do_open()
            except DeviceOpenError:
                raise
            except Exception as e:
                raise DeviceOpenError(f"Failed to open device {self.id}: {e}") from e
            self._open = True
        logger.info(f"Device {self.id} opened")

    def close(self) -> None:
        with self._lock:
            if not self._open:
                return
            self._open = False
            self._do_close()
        logger.info(f"Device {self.id} closed")

    def properties(self) -> List[Media]:
        """Configurations this device can produce"""
        raise NotImplementedError

    def video_record(self, media: Media):
        """Return a video reader producing frames for media"""
        self._check_kind(MediaKind.VIDEO)
        return self._video_record(media)

    def audio_record(self, media: Media):
        """Return an audio reader producing PCM chunks for media"""
        self._check_kind(MediaKind.AUDIO)
        return self._audio_record(media)

    def _check_kind(self, kind: MediaKind) -> None:
        if kind not in self.kinds:
            raise DriverError(f"Device {self.id} cannot record {kind}")
        if not self._open:
            raise DriverError(f"Device {self.id} is not open")

    def _do_open(self) -> None:
        pass

    def _do_close(self) -> None:
        pass

    def _video_record(self, media: Media):
        raise NotImplementedError

    def _audio_record(self, media: Media):
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.id!r})"
