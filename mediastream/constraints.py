"""
Caller-authored constraints for one provisioning call.
Unset fields stay None and are treated as unconstrained.
"""

from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, Mapping, Optional

from .prop import AUDIO_FIELDS, CODEC_FIELDS, VIDEO_FIELDS, FrameFormat, Media, MediaKind

_NON_NEGATIVE = (
    "width", "height", "frame_rate", "channel_count", "sample_rate",
    "sample_size", "latency", "bit_rate", "key_frame_interval",
)


def _is_number(value) -> bool:
    # bool is an int subclass but "width: yes" is not a width
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class MediaTrackConstraints:
    enabled: bool = False
    device_id: Optional[str] = None

    width: Optional[int] = None
    height: Optional[int] = None
    frame_rate: Optional[float] = None
    frame_format: Optional[FrameFormat] = None

    channel_count: Optional[int] = None
    sample_rate: Optional[int] = None
    sample_size: Optional[int] = None
    latency: Optional[float] = None

    codec_name: Optional[str] = None
    bit_rate: Optional[int] = None
    quality: Optional[int] = None
    key_frame_interval: Optional[int] = None

    # Applied to the raw reader before encoding, e.g. io.rotate180
    transform: Optional[Callable] = None

    def __post_init__(self):
        if isinstance(self.frame_format, str):
            self.frame_format = FrameFormat(self.frame_format)
        for name in _NON_NEGATIVE:
            value = getattr(self, name)
            if value is None:
                continue
            if not _is_number(value):
                raise ValueError(f"{name} must be a number, got {value!r}")
            if value < 0:
                raise ValueError(f"{name} must not be negative, got {value}")
        if self.quality is not None:
            if not _is_number(self.quality) or isinstance(self.quality, float):
                raise ValueError(f"quality must be an integer, got {self.quality!r}")
            if not 0 <= self.quality <= 9:
                raise ValueError(f"quality must be within 0-9, got {self.quality}")

    @property
    def media(self) -> Media:
        """The constrained values as a Media snapshot"""
        names = ("device_id",) + VIDEO_FIELDS + AUDIO_FIELDS + CODEC_FIELDS
        return Media(**{name: getattr(self, name) for name in names})

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MediaTrackConstraints":
        """Build constraints from a config section, rejecting unknown keys"""
        known = {f.name for f in fields(cls)} - {"transform"}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown constraint fields: {sorted(unknown)}")
        return cls(**dict(data))


@dataclass
class MediaStreamConstraints:
    video: Optional[MediaTrackConstraints] = None
    audio: Optional[MediaTrackConstraints] = None

    def enabled(self) -> Dict[MediaKind, MediaTrackConstraints]:
        """Enabled constraints keyed by kind, video first"""
        result = {}
        if self.video is not None and self.video.enabled:
            result[MediaKind.VIDEO] = self.video
        if self.audio is not None and self.audio.enabled:
            result[MediaKind.AUDIO] = self.audio
        return result
