import struct

import pytest
from PIL import Image

from mediastream import io
from mediastream.drivers import AudioTestDriver, VideoTestDriver, register_default_drivers
from mediastream.errors import DeviceOpenError, DriverError
from mediastream.io import EndOfStream, ReaderFunc
from mediastream.prop import FrameFormat, Media, MediaKind
from mediastream.registry import DriverRegistry


def test_video_test_driver_properties() -> None:
    driver = VideoTestDriver(sizes=[(320, 240), (640, 480)], frame_rate=15)
    assert driver.kinds == {MediaKind.VIDEO}
    assert driver.properties() == [
        Media(device_id="videotest", width=320, height=240, frame_rate=15, frame_format=FrameFormat.I420),
        Media(device_id="videotest", width=640, height=480, frame_rate=15, frame_format=FrameFormat.I420),
    ]


def test_video_test_driver_frames_until_closed() -> None:
    driver = VideoTestDriver(frame_rate=100)
    driver.open()
    reader = driver.video_record(Media(width=32, height=24))
    frame = reader.read()
    assert isinstance(frame, Image.Image)
    assert frame.size == (32, 24)
    reader.read()
    assert reader.frame_count == 2

    driver.close()
    with pytest.raises(EndOfStream):
        reader.read()


def test_audio_test_driver_chunks() -> None:
    driver = AudioTestDriver(sample_rate=8000, channel_count=2, latency=0.01)
    driver.open()
    try:
        chunk = driver.audio_record(driver.properties()[0]).read()
    finally:
        driver.close()
    # 80 samples per channel, two channels, two bytes per sample
    assert len(chunk) == 80 * 2 * 2


def test_driver_open_is_exclusive() -> None:
    driver = AudioTestDriver()
    driver.open()
    with pytest.raises(DeviceOpenError):
        driver.open()
    driver.close()
    driver.close()
    driver.open()
    driver.close()


def test_driver_checks_kind_and_state() -> None:
    driver = AudioTestDriver()
    with pytest.raises(DriverError):
        driver.audio_record(driver.properties()[0])
    driver.open()
    try:
        with pytest.raises(DriverError):
            driver.video_record(Media())
    finally:
        driver.close()


def test_register_test_drivers() -> None:
    registry = DriverRegistry()
    register_default_drivers(registry, test=True)
    assert [d.id for d in registry] == ["videotest", "audiotest"]


def test_video_transforms() -> None:
    image = Image.new("RGB", (4, 2), (0, 0, 0))
    image.putpixel((0, 0), (255, 0, 0))
    reader = ReaderFunc(lambda: image)

    rotated = io.rotate180(reader).read()
    assert rotated.getpixel((3, 1)) == (255, 0, 0)

    assert io.scale(8, 6)(reader).read().size == (8, 6)

    gray = io.grayscale(reader).read()
    assert gray.mode == "RGB"
    r, g, b = gray.getpixel((0, 0))
    assert r == g == b


def test_gain_clips_to_sample_range() -> None:
    reader = ReaderFunc(lambda: struct.pack("<3h", 100, 20000, -20000))
    assert io.gain(2.0)(reader).read() == struct.pack("<3h", 200, 32767, -32768)


@pytest.mark.hardware
def test_camera_capture() -> None:
    from mediastream.drivers import CameraDriver
    from mediastream.utils import list_available_cameras

    cameras = list_available_cameras()
    if not cameras:
        pytest.skip("No camera found")
    driver = CameraDriver(cameras[0])
    driver.open()
    try:
        frame = driver.video_record(driver.properties()[0]).read()
        assert isinstance(frame, Image.Image)
    finally:
        driver.close()
