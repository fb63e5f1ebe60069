import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from .constraints import MediaStreamConstraints
from .prop import MediaKind
from .registry import CodecRegistry, DriverRegistry
from .selector import select
from .sink import buffered_track_generator
from .track import DEFAULT_STOP_TIMEOUT, AudioTrack, Track, VideoTrack

logger = logging.getLogger(__name__)

TRACK_CLASSES = {
    MediaKind.VIDEO: VideoTrack,
    MediaKind.AUDIO: AudioTrack,
}


@dataclass(frozen=True)
class MediaDeviceInfo:
    device_id: str
    kind: MediaKind
    label: str


class MediaStream:
    """Ordered group of tracks returned by one provisioning call"""

    def __init__(self, tracks: Optional[List[Track]] = None):
        self._tracks: List[Track] = list(tracks or [])

    def get_tracks(self) -> List[Track]:
        return list(self._tracks)

    def get_video_tracks(self) -> List[Track]:
        return [t for t in self._tracks if t.kind is MediaKind.VIDEO]

    def get_audio_tracks(self) -> List[Track]:
        return [t for t in self._tracks if t.kind is MediaKind.AUDIO]

    def add_track(self, track: Track) -> None:
        if track not in self._tracks:
            self._tracks.append(track)

    def remove_track(self, track: Track) -> None:
        if track in self._tracks:
            self._tracks.remove(track)

    def __iter__(self):
        return iter(self.get_tracks())

    def __len__(self) -> int:
        return len(self._tracks)


class MediaDevices:
    """Provisions tracks from registered devices and codecs"""

    def __init__(self, codecs: CodecRegistry, drivers: DriverRegistry,
                 track_generator: Optional[Callable] = None,
                 stop_timeout: float = DEFAULT_STOP_TIMEOUT):
        self.codecs = codecs
        self.drivers = drivers
        self.track_generator = track_generator or buffered_track_generator
        self.stop_timeout = stop_timeout

    def enumerate_devices(self) -> List[MediaDeviceInfo]:
        devices = []
        for driver in self.drivers:
            for kind in MediaKind:
                if kind in driver.kinds:
                    devices.append(MediaDeviceInfo(driver.id, kind, driver.label))
        return devices

    def get_user_media(self, constraints: MediaStreamConstraints) -> MediaStream:
        """
        Select a device and codec for every enabled kind and start its track.

        Selection and acquisition errors propagate from here; tracks already
        started by this call are stopped first so a failed call leaves none.
        """
        tracks: List[Track] = []
        try:
            for kind, track_constraints in constraints.enabled().items():
                selection = select(kind, self.codecs, self.drivers, track_constraints)
                track = TRACK_CLASSES[kind].create(
                    selection,
                    self.track_generator,
                    transform=track_constraints.transform,
                    stop_timeout=self.stop_timeout,
                )
                tracks.append(track)
        except Exception as e:
            logger.error(f"get_user_media failed: {e}")
            for track in tracks:
                track.stop()
            raise

        return MediaStream(tracks)
