"""
mediastream package
Selects capture devices and codecs that best fit caller constraints and runs
one capture -> encode -> emit thread per track.
Uses PyAV for capture and video encoding and Pillow for frame handling.
"""

from .constraints import MediaStreamConstraints, MediaTrackConstraints
from .errors import (
    ComparisonError,
    DeviceOpenError,
    DriverError,
    EncoderError,
    MediaStreamError,
    NoDeviceError,
    NoMatchError,
    RegistryError,
    SelectionError,
)
from .io import EndOfStream, InsufficientBufferError
from .mediadevices import MediaDeviceInfo, MediaDevices, MediaStream
from .prop import FrameFormat, Media, MediaKind, fitness_distance
from .registry import Codec, CodecRegistry, DriverRegistry
from .selector import Selection, select
from .track import AudioTrack, Track, TrackState, VideoTrack
from . import utils

__all__ = [
    "AudioTrack",
    "Codec",
    "CodecRegistry",
    "ComparisonError",
    "DeviceOpenError",
    "DriverError",
    "DriverRegistry",
    "EncoderError",
    "EndOfStream",
    "FrameFormat",
    "InsufficientBufferError",
    "Media",
    "MediaDeviceInfo",
    "MediaDevices",
    "MediaKind",
    "MediaStream",
    "MediaStreamConstraints",
    "MediaStreamError",
    "MediaTrackConstraints",
    "NoDeviceError",
    "NoMatchError",
    "RegistryError",
    "Selection",
    "SelectionError",
    "Track",
    "TrackState",
    "VideoTrack",
    "fitness_distance",
    "select",
    "utils",
]
