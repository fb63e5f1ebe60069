import os
import platform
import time
import logging
from typing import List, Optional

import av
import av.error

logger = logging.getLogger(__name__)

# Platform detection
IS_WINDOWS = platform.system() == "Windows"
IS_LINUX = platform.system() == "Linux"
IS_MACOS = platform.system() == "Darwin"
IS_JETSON = os.path.exists("/etc/nv_tegra_release") if IS_LINUX else False

# DirectShow needs device names; these are the usual ones
COMMON_WINDOWS_CAMERAS = [
    "Integrated Webcam",
    "USB2.0 HD UVC WebCam",
    "USB Camera",
    "Webcam",
    "Camera",
]
COMMON_WINDOWS_MICROPHONES = [
    "Microphone",
    "Microphone Array",
    "Headset Microphone",
]

MAX_LINUX_VIDEO_DEVICES = 10


def maintain_rate(loop_start_time: float, interval: float) -> None:
    """Sleep just enough to keep one iteration per interval"""
    elapsed = time.time() - loop_start_time
    if elapsed < interval:
        time.sleep(interval - elapsed)


def should_stop(start_time: float, duration: Optional[float]) -> bool:
    return duration is not None and (time.time() - start_time) >= duration


def get_video_backend() -> str:
    """Return the AV input backend used for cameras on this platform."""
    if IS_WINDOWS:
        return 'dshow'
    elif IS_LINUX:
        return 'v4l2'
    else:
        return 'avfoundation'


def get_audio_backend() -> str:
    """Return the AV input backend used for microphones on this platform."""
    if IS_WINDOWS:
        return 'dshow'
    elif IS_LINUX:
        return 'alsa'
    else:
        return 'avfoundation'


def get_camera_device_path(camera_id) -> str:
    """Get the camera input URL for the platform backend"""
    if IS_WINDOWS:
        return f"video={camera_id}"
    elif IS_MACOS:
        return f"{camera_id}:none"
    return f"/dev/video{camera_id}"


def get_microphone_device_path(mic_id) -> str:
    """Get the microphone input URL for the platform backend"""
    if IS_WINDOWS:
        return f"audio={mic_id}"
    elif IS_MACOS:
        return f":{mic_id}"
    return str(mic_id)


def _probe(url: str, input_format: str, audio: bool = False) -> bool:
    try:
        container = av.open(url, format=input_format)
    except (av.error.FFmpegError, OSError) as e:
        logger.debug(f"Device check of {url} ({input_format}) failed: {e}")
        return False
    try:
        streams = container.streams.audio if audio else container.streams.video
        return len(streams) > 0
    finally:
        container.close()


def list_windows_cameras() -> List[str]:
    """List Windows camera names by probing common DirectShow names"""
    return [
        name for name in COMMON_WINDOWS_CAMERAS
        if _probe(get_camera_device_path(name), 'dshow')
    ]


def list_available_cameras() -> List:
    """List available camera devices based on platform"""
    if IS_WINDOWS:
        return list_windows_cameras()
    if IS_LINUX:
        available_cameras = []
        for i in range(MAX_LINUX_VIDEO_DEVICES):
            if os.path.exists(f"/dev/video{i}") and _probe(get_camera_device_path(i), 'v4l2'):
                available_cameras.append(i)
        return available_cameras
    # avfoundation cannot be enumerated without the FFmpeg CLI; try the default device
    return [0] if _probe(get_camera_device_path(0), 'avfoundation') else []


def list_available_microphones() -> List:
    """List available microphone devices based on platform"""
    backend = get_audio_backend()
    if IS_WINDOWS:
        candidates = COMMON_WINDOWS_MICROPHONES
    elif IS_LINUX:
        candidates = ["default"]
    else:
        candidates = [0]
    return [
        mic for mic in candidates
        if _probe(get_microphone_device_path(mic), backend, audio=True)
    ]


def resolve_windows_camera_name(camera_id) -> Optional[str]:
    """Map a numeric Windows camera_id to a DirectShow device name"""
    if isinstance(camera_id, str) and camera_id.strip():
        return camera_id
    for name in COMMON_WINDOWS_CAMERAS:
        if _probe(get_camera_device_path(name), 'dshow'):
            return name
    return None
