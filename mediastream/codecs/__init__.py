"""
Bundled encoders. A builder takes (reader, media) and returns an encoder
exposing readinto(buffer) and close(); it raises on invalid parameters.
"""

from .base import Encoder
from .jpeg import JPEGEncoder
from .libav import AVVideoEncoder, build_h264, build_vp8, build_vp9
from .pcm import L16Encoder
from ..prop import MediaKind
from ..registry import CodecRegistry


def default_codecs(registry: CodecRegistry = None) -> CodecRegistry:
    """Register the bundled encoders, returning the registry"""
    if registry is None:
        registry = CodecRegistry()
    registry.register(MediaKind.VIDEO, "JPEG", JPEGEncoder, payload_type=26)
    registry.register(MediaKind.VIDEO, "VP8", build_vp8)
    registry.register(MediaKind.VIDEO, "VP9", build_vp9)
    registry.register(MediaKind.VIDEO, "H264", build_h264)
    registry.register(MediaKind.AUDIO, "L16", L16Encoder)
    return registry


__all__ = [
    "AVVideoEncoder",
    "Encoder",
    "JPEGEncoder",
    "L16Encoder",
    "default_codecs",
]
