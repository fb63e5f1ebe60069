import functools
import logging
from fractions import Fraction

import av

from .base import Encoder

logger = logging.getLogger(__name__)

X264_PRESETS = (
    "ultrafast", "superfast", "veryfast", "faster", "fast",
    "medium", "slow", "slower", "veryslow", "placebo",
)


class AVVideoEncoder(Encoder):
    """Encodes frames with an FFmpeg video encoder through PyAV"""

    def __init__(self, codec_name: str, reader, media):
        if not media.bit_rate or media.bit_rate <= 0:
            raise ValueError(f"{codec_name} needs a positive bit rate, got {media.bit_rate}")
        if not media.width or not media.height:
            raise ValueError(f"{codec_name} needs the frame size")
        super().__init__(reader)

        fps = Fraction(media.frame_rate or 30).limit_denominator(1001)
        ctx = av.CodecContext.create(codec_name, "w")
        ctx.width = media.width
        ctx.height = media.height
        ctx.pix_fmt = "yuv420p"
        ctx.bit_rate = media.bit_rate
        ctx.framerate = fps
        ctx.time_base = 1 / fps
        if media.key_frame_interval:
            ctx.gop_size = media.key_frame_interval
        ctx.options = self._options(codec_name, media.quality)
        self.context = ctx
        self.frame_index = 0
        logger.debug(f"{codec_name} encoder: {media.width}x{media.height} @ {fps} fps, {media.bit_rate} bps")

    @staticmethod
    def _options(codec_name: str, quality):
        if codec_name == "libx264":
            preset = X264_PRESETS[quality] if quality is not None else "veryfast"
            return {"preset": preset, "tune": "zerolatency"}
        # no lookahead so every frame produces a packet
        return {"deadline": "realtime", "lag-in-frames": "0"}

    def _encode(self, raw) -> bytes:
        frame = av.VideoFrame.from_image(raw.convert("RGB"))
        frame = frame.reformat(width=self.context.width, height=self.context.height, format="yuv420p")
        frame.pts = self.frame_index
        frame.time_base = self.context.time_base
        self.frame_index += 1
        return b"".join(bytes(packet) for packet in self.context.encode(frame))

    def close(self) -> None:
        super().close()
        self.context = None


build_vp8 = functools.partial(AVVideoEncoder, "libvpx")
build_vp9 = functools.partial(AVVideoEncoder, "libvpx-vp9")
build_h264 = functools.partial(AVVideoEncoder, "libx264")
