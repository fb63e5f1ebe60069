import threading
import time
import logging
from typing import List, Sequence, Tuple

from PIL import Image, ImageDraw

from ..driver import Driver
from ..io import EndOfStream
from ..prop import FrameFormat, Media, MediaKind
from ..utils import maintain_rate

logger = logging.getLogger(__name__)

DEFAULT_SIZES = ((640, 480),)


class VideoTestDriver(Driver):
    """Synthetic video device producing a moving test pattern"""

    kinds = frozenset({MediaKind.VIDEO})

    def __init__(self, device_id: str = "videotest", sizes: Sequence[Tuple[int, int]] = DEFAULT_SIZES,
                 frame_rate: float = 30.0, frame_format: FrameFormat = FrameFormat.I420):
        super().__init__(device_id, label="Video test source")
        self.sizes = list(sizes)
        self.frame_rate = frame_rate
        self.frame_format = frame_format
        self._closed = threading.Event()

    def properties(self) -> List[Media]:
        return [
            Media(device_id=self.id, width=w, height=h,
                  frame_rate=self.frame_rate, frame_format=self.frame_format)
            for w, h in self.sizes
        ]

    def _do_open(self) -> None:
        self._closed = threading.Event()

    def _do_close(self) -> None:
        self._closed.set()

    def _video_record(self, media: Media):
        return _PatternReader(
            media.width or self.sizes[0][0],
            media.height or self.sizes[0][1],
            media.frame_rate or self.frame_rate,
            self._closed,
        )


class _PatternReader:

    def __init__(self, width: int, height: int, frame_rate: float, closed: threading.Event):
        self.width = width
        self.height = height
        self.frame_interval = 1.0 / frame_rate
        self.frame_count = 0
        self._closed = closed
        self._last = None

    def read(self) -> Image.Image:
        if self._closed.is_set():
            raise EndOfStream()
        if self._last is not None:
            maintain_rate(self._last, self.frame_interval)
            if self._closed.is_set():
                raise EndOfStream()
        self._last = time.time()

        image = Image.new("RGB", (self.width, self.height), (16, 16, 16))
        draw = ImageDraw.Draw(image)
        bar_width = max(1, self.width // 8)
        x = (self.frame_count * 4) % self.width
        draw.rectangle([x, 0, x + bar_width, self.height], fill=(235, 235, 235))
        self.frame_count += 1
        return image
