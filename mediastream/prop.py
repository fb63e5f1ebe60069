"""
Media properties and the fitness distance used to rank capture candidates.
Distance follows https://w3c.github.io/mediacapture-main/#dfn-fitness-distance
"""

import enum
import math
from dataclasses import dataclass, fields, replace
from typing import List, Optional, Tuple

from .errors import ComparisonError


class MediaKind(enum.Enum):
    VIDEO = "video"
    AUDIO = "audio"

    def __str__(self) -> str:
        return self.value


class FrameFormat(enum.Enum):
    I420 = "I420"
    NV21 = "NV21"
    NV12 = "NV12"
    YUY2 = "YUY2"
    UYVY = "UYVY"
    RGBA = "RGBA"
    MJPEG = "MJPEG"
    Z16 = "Z16"


VIDEO_FIELDS = ("width", "height", "frame_rate", "frame_format")
AUDIO_FIELDS = ("channel_count", "sample_rate", "sample_size", "latency")
CODEC_FIELDS = ("codec_name", "bit_rate", "quality", "key_frame_interval")

# Fields taking part in the fitness distance, in comparison order
COMPARED_FIELDS = VIDEO_FIELDS + AUDIO_FIELDS


@dataclass(frozen=True)
class Media:
    """Snapshot of one stream configuration. None means not reported."""

    device_id: Optional[str] = None

    # Video
    width: Optional[int] = None
    height: Optional[int] = None
    frame_rate: Optional[float] = None
    frame_format: Optional[FrameFormat] = None

    # Audio
    channel_count: Optional[int] = None
    sample_rate: Optional[int] = None
    sample_size: Optional[int] = None
    latency: Optional[float] = None  # seconds

    # Codec
    codec_name: Optional[str] = None
    bit_rate: Optional[int] = None  # bps
    quality: Optional[int] = None  # 0-9, higher is better and slower
    key_frame_interval: Optional[int] = None  # frames

    def merge(self, other: "Media") -> "Media":
        """Return a copy where the fields set on other take precedence"""
        updates = {
            f.name: getattr(other, f.name)
            for f in fields(other)
            if getattr(other, f.name) is not None
        }
        return replace(self, **updates)

    def fitness_distance(self, ideal: "Media") -> float:
        return fitness_distance(self, ideal)


def _as_text(value) -> str:
    if isinstance(value, enum.Enum):
        return str(value.value)
    return str(value)


def _as_number(text: str) -> Optional[float]:
    try:
        return float(text)
    except ValueError:
        return None


class Comparisons:
    """Ordered (actual, ideal) pairs summed into a fitness distance"""

    def __init__(self):
        self._pairs: List[Tuple[str, str]] = []
        self._missing = 0

    def add(self, actual, ideal) -> None:
        if ideal is None:
            return
        if actual is None:
            # constrained field the candidate cannot report
            self._missing += 1
            return
        self._pairs.append((_as_text(actual), _as_text(ideal)))

    def __len__(self) -> int:
        return len(self._pairs) + self._missing

    def fitness_distance(self) -> float:
        dist = float(self._missing)
        for actual, ideal in self._pairs:
            if actual == ideal:
                continue

            actual_f = _as_number(actual)
            ideal_f = _as_number(ideal)

            if actual_f is not None and ideal_f is not None:
                if actual_f == ideal_f:
                    continue
                dist += abs(actual_f - ideal_f) / max(abs(actual_f), abs(ideal_f))
            elif actual_f is None and ideal_f is None:
                dist += 1
            else:
                raise ComparisonError(
                    f"fitness distance can't mix comparisons: {actual!r} vs {ideal!r}"
                )

        if math.isnan(dist):
            raise ComparisonError("fitness distance is not a number")
        return dist


def fitness_distance(actual: Media, ideal: Media) -> float:
    """Sum of normalized mismatches over the fields constrained by ideal"""
    cmps = Comparisons()
    for name in COMPARED_FIELDS:
        cmps.add(getattr(actual, name), getattr(ideal, name))
    return cmps.fitness_distance()
