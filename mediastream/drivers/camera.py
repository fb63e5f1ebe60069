import threading
import logging
from typing import Dict, List, Optional, Tuple

import av
import av.error
from PIL import Image

from ..driver import Driver
from ..errors import DeviceOpenError
from ..io import EndOfStream
from ..prop import FrameFormat, Media, MediaKind
from ..utils import (
    IS_JETSON,
    IS_WINDOWS,
    get_camera_device_path,
    get_video_backend,
    resolve_windows_camera_name,
)

logger = logging.getLogger(__name__)

DEFAULT_SIZES = ((640, 480), (1280, 720), (1920, 1080))

# (open, read) timeouts in seconds passed to av.open
DEFAULT_TIMEOUT = (5.0, 1.0)


class CameraDriver(Driver):
    """
    Captures from a single camera using av (PyAV).

    The offered sizes are nominal: the device is not probed for its modes.
    When a backend rejects the selected size the camera is opened at its
    native size instead and frames are scaled to the selected size.
    """

    kinds = frozenset({MediaKind.VIDEO})

    def __init__(self, camera_id, fps: int = 30, sizes=DEFAULT_SIZES, timeout=DEFAULT_TIMEOUT):
        # On Windows, prefer device names for DirectShow. If numeric provided, try to resolve.
        if IS_WINDOWS and not isinstance(camera_id, str):
            resolved = resolve_windows_camera_name(camera_id)
            camera_id = resolved if resolved is not None else camera_id
        self.camera_id = camera_id
        safe_camera_name = str(camera_id).replace(" ", "_").replace(":", "_")
        super().__init__(f"camera_{safe_camera_name}", label=str(camera_id))
        self.fps = fps
        self.sizes = list(sizes)
        self.timeout = timeout
        self.input_format = get_video_backend()
        self.container = None
        self._reader_lock = threading.Lock()

    def properties(self) -> List[Media]:
        # Raw frames are converted to RGB images, so every size is offered as I420-compatible
        return [
            Media(device_id=self.id, width=w, height=h,
                  frame_rate=float(self.fps), frame_format=FrameFormat.I420)
            for w, h in self.sizes
        ]

    def _option_attempts(self, media: Media) -> List[Dict[str, str]]:
        """Build the list of option attempts, most specific first"""
        framerate = str(int(media.frame_rate or self.fps))
        size = f"{media.width}x{media.height}" if media.width and media.height else None
        base_options = {'framerate': framerate}
        if size:
            base_options['video_size'] = size

        # Many devices fail if you force size/framerate. Try progressively.
        attempts = [base_options, {'framerate': framerate}, {}]
        if size and self.input_format == 'dshow':
            attempts.insert(1, {'video_size': size})
        return attempts

    def _video_record(self, media: Media):
        input_url = get_camera_device_path(self.camera_id)
        logger.info(f"Using backend: {self.input_format}, Jetson: {IS_JETSON}")

        last_error: Optional[Exception] = None
        for opts in self._option_attempts(media):
            try:
                logger.debug(f"Opening with {self.input_format} URL: {input_url}, options: {opts}")
                container = av.open(input_url, format=self.input_format, options=opts,
                                    timeout=self.timeout)
            except (av.error.FFmpegError, OSError) as e:
                last_error = e
                continue
            if not container.streams.video:
                container.close()
                last_error = DeviceOpenError(f"{input_url} has no video stream")
                continue
            self.container = container
            stream = container.streams.video[0]
            stream.thread_type = 'AUTO'
            size = (media.width, media.height) if media.width and media.height else None
            if size and "video_size" not in opts:
                logger.warning(f"Camera {self.camera_id} opened at its native size, "
                               f"frames will be scaled to {media.width}x{media.height}")
            logger.info(f"Camera {self.camera_id} opened with format {self.input_format} and options {opts}")
            return _CameraReader(self, stream, size)

        raise DeviceOpenError(
            f"Failed to open camera {self.camera_id} with format {self.input_format}: {last_error}"
        )

    def _do_close(self) -> None:
        # is_open is already false, so a reader waiting out a read timeout gives up the lock
        with self._reader_lock:
            if self.container is not None:
                self.container.close()
                self.container = None


class _CameraReader:

    def __init__(self, driver: CameraDriver, stream, size: Optional[Tuple[int, int]] = None):
        self._driver = driver
        self._stream = stream
        self._size = size
        self._frames = driver.container.decode(stream)

    def read(self) -> Image.Image:
        while True:
            with self._driver._reader_lock:
                if not self._driver.is_open or self._driver.container is None:
                    raise EndOfStream()
                try:
                    frame = next(self._frames)
                except StopIteration:
                    raise EndOfStream()
                except av.error.ExitError:
                    # read timed out, the interrupted decoder has to be recreated
                    logger.debug(f"Camera {self._driver.camera_id}: no frame within the read timeout")
                    self._frames = self._driver.container.decode(self._stream)
                    continue
            image = frame.to_image()
            if self._size and image.size != self._size:
                image = image.resize(self._size)
            return image
