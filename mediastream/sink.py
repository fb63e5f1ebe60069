"""
Output sinks for encoded samples.

A sink is built per track by a track generator called as
generator(payload_type, ssrc, device_id, kind_name, codec) and must expose
write_sample(data, samples) plus codec, kind and id accessors.
"""

import collections
import threading
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

# File extensions per codec for DirectorySink
EXTENSIONS = {
    "JPEG": "jpg",
    "VP8": "vp8",
    "VP9": "vp9",
    "H264": "h264",
    "L16": "pcm",
}


@dataclass(frozen=True)
class Sample:
    data: bytes
    samples: int


class LocalSink:
    """Base sink holding the identity handed over by the track generator"""

    def __init__(self, codec, device_id: str, ssrc: int = 0):
        self.codec = codec
        self.device_id = device_id
        self.ssrc = ssrc
        self.id = f"{device_id}-{ssrc:08x}"

    @property
    def kind(self):
        return self.codec.kind

    def write_sample(self, data: bytes, samples: int) -> None:
        raise NotImplementedError


class BufferedSink(LocalSink):
    """Keeps the most recent samples in memory"""

    def __init__(self, codec, device_id: str, ssrc: int = 0, maxlen: Optional[int] = 256):
        super().__init__(codec, device_id, ssrc)
        self._samples = collections.deque(maxlen=maxlen)
        self._lock = threading.Lock()
        self.sample_count = 0

    def write_sample(self, data: bytes, samples: int) -> None:
        with self._lock:
            self._samples.append(Sample(bytes(data), samples))
            self.sample_count += 1

    def drain(self) -> List[Sample]:
        """Remove and return the buffered samples, oldest first"""
        with self._lock:
            samples = list(self._samples)
            self._samples.clear()
        return samples


def buffered_track_generator(payload_type, ssrc, device_id, kind_name, codec):
    return BufferedSink(codec, device_id, ssrc)


class DirectorySink(LocalSink):
    """Saves every sample as a timestamped file under a per-device directory"""

    def __init__(self, codec, device_id: str, output_dir: str, ssrc: int = 0):
        super().__init__(codec, device_id, ssrc)
        self.output_dir = Path(output_dir) / f"{device_id}_{codec.name.lower()}"
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.extension = EXTENSIONS.get(codec.name, "bin")
        self.frame_count = 0
        logger.info(f"Writing {codec.name} samples from {device_id} to {self.output_dir}")

    def write_sample(self, data: bytes, samples: int) -> None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")[:-3]
        filename = f"{self.device_id}_{timestamp}_{self.frame_count:06d}.{self.extension}"
        (self.output_dir / filename).write_bytes(bytes(data))
        self.frame_count += 1


def directory_track_generator(output_dir: str):
    """Return a track generator writing samples below output_dir"""
    def generator(payload_type, ssrc, device_id, kind_name, codec):
        return DirectorySink(codec, device_id, output_dir, ssrc)
    return generator
