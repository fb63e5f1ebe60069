"""
Bundled capture drivers: PyAV cameras and microphones plus synthetic test sources.
"""

import logging

from .audiotest import AudioTestDriver
from .camera import CameraDriver
from .microphone import MicrophoneDriver
from .videotest import VideoTestDriver
from ..utils import list_available_cameras, list_available_microphones

logger = logging.getLogger(__name__)


def register_default_drivers(registry, test: bool = False, fps: int = 30) -> None:
    """Register the test sources, or every camera and microphone that can be probed"""
    if test:
        registry.register(VideoTestDriver())
        registry.register(AudioTestDriver())
        return

    for camera_id in list_available_cameras():
        registry.register(CameraDriver(camera_id, fps=fps))
    for mic_id in list_available_microphones():
        registry.register(MicrophoneDriver(mic_id))

    if not len(registry):
        logger.warning("No capture devices found")


__all__ = [
    "AudioTestDriver",
    "CameraDriver",
    "MicrophoneDriver",
    "VideoTestDriver",
    "register_default_drivers",
]
