import io

from PIL import Image

from .base import Encoder

DEFAULT_JPEG_QUALITY = 75


def jpeg_quality(quality) -> int:
    """Map codec quality 0-9 onto Pillow's JPEG quality 10-95"""
    if quality is None:
        return DEFAULT_JPEG_QUALITY
    return 10 + quality * 85 // 9


class JPEGEncoder(Encoder):
    """Encodes every frame as a standalone JPEG image using Pillow"""

    def __init__(self, reader, media):
        super().__init__(reader)
        self.quality = jpeg_quality(media.quality)

    def _encode(self, raw: Image.Image) -> bytes:
        out = io.BytesIO()
        raw.convert("RGB").save(out, "JPEG", quality=self.quality, optimize=True)
        return out.getvalue()
