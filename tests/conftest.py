"""Shared pytest configuration and fixtures for the mediastream test suite."""

import sys
import threading
import time
from pathlib import Path

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from mediastream.codecs.base import Encoder
from mediastream.driver import Driver
from mediastream.errors import DeviceOpenError
from mediastream.io import EndOfStream
from mediastream.prop import Media, MediaKind
from mediastream.registry import CodecRegistry, DriverRegistry


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "hardware: mark test as requiring a physical camera or microphone"
    )


def pytest_addoption(parser):
    parser.addoption(
        "--run-hardware",
        action="store_true",
        default=False,
        help="Run tests that require physical capture devices",
    )


def pytest_collection_modifyitems(config, items):
    """Skip hardware tests unless --run-hardware is specified."""
    if config.getoption("--run-hardware"):
        return

    skip_hardware = pytest.mark.skip(reason="Need --run-hardware option to run")
    for item in items:
        if "hardware" in item.keywords:
            item.add_marker(skip_hardware)


# =============================================================================
# Helpers
# =============================================================================

def wait_for(predicate, timeout: float = 2.0, interval: float = 0.005) -> bool:
    """Poll predicate until it returns true or timeout elapses."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


class MockReader:
    """Raw reader that ends when its driver is closed or told to end."""

    def __init__(self, driver: "MockDriver", unit):
        self.driver = driver
        self.unit = unit
        self.reads = 0

    def read(self):
        # blocks briefly like a device waiting for the next frame
        if self.driver.closed.wait(0.002) or self.driver.eof.is_set():
            raise EndOfStream()
        self.reads += 1
        return self.unit


class MockDriver(Driver):

    def __init__(self, device_id, kinds=(MediaKind.VIDEO,), props=None, fail_open=False,
                 fail_properties=False):
        super().__init__(device_id)
        self.kinds = frozenset(kinds)
        self.props = props if props is not None else [Media(width=640, height=480)]
        self.fail_open = fail_open
        self.fail_properties = fail_properties
        self.closed = threading.Event()
        self.eof = threading.Event()
        self.open_count = 0
        self.reader = None

    def properties(self):
        if self.fail_properties:
            raise RuntimeError("device unplugged")
        return [p.merge(Media(device_id=self.id)) for p in self.props]

    def _do_open(self):
        if self.fail_open:
            raise DeviceOpenError(f"{self.id} is busy")
        self.closed = threading.Event()
        self.eof = threading.Event()
        self.open_count += 1

    def _do_close(self):
        self.closed.set()

    def _video_record(self, media):
        self.reader = MockReader(self, "frame")
        return self.reader

    def _audio_record(self, media):
        self.reader = MockReader(self, b"\x00\x00" * 16)
        return self.reader


class MockEncoder(Encoder):
    """Encodes every raw unit to unit_size bytes; raises once the fail event is set."""

    def __init__(self, reader, media, unit_size=10, fail=None):
        super().__init__(reader)
        self.media = media
        self.unit_size = unit_size
        self.fail = fail
        self.encoded = 0
        self.buffer_sizes = []

    def readinto(self, buffer):
        self.buffer_sizes.append(len(buffer))
        return super().readinto(buffer)

    def _encode(self, raw):
        if self.fail is not None and self.fail.is_set():
            raise RuntimeError("encoder failure")
        self.encoded += 1
        return b"\x01" * self.unit_size


class RecordingSink:

    def __init__(self, codec, device_id, ssrc, fail=None):
        self.codec = codec
        self.kind = codec.kind
        self.id = f"{device_id}-{ssrc}"
        self.fail = fail
        self.samples = []
        self.lock = threading.Lock()

    def write_sample(self, data, samples):
        with self.lock:
            if self.fail is not None and self.fail.is_set():
                raise IOError("transport closed")
            self.samples.append((bytes(data), samples))

    def count(self):
        with self.lock:
            return len(self.samples)


class SinkFactory:
    """Track generator recording every call and sink it creates."""

    def __init__(self, fail=None):
        self.fail = fail
        self.calls = []
        self.sinks = []

    def __call__(self, payload_type, ssrc, device_id, kind_name, codec):
        self.calls.append((payload_type, ssrc, device_id, kind_name, codec))
        sink = RecordingSink(codec, device_id, ssrc, self.fail)
        self.sinks.append(sink)
        return sink


def mock_video_builder(reader, media):
    if not media.bit_rate:
        raise ValueError("wrong codec parameter")
    return MockEncoder(reader, media)


def mock_audio_builder(reader, media):
    return MockEncoder(reader, media)


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def codecs() -> CodecRegistry:
    registry = CodecRegistry()
    registry.register(MediaKind.VIDEO, "MockVideo", mock_video_builder, payload_type=1)
    registry.register(MediaKind.AUDIO, "MockAudio", mock_audio_builder, payload_type=2)
    return registry


@pytest.fixture
def video_driver() -> MockDriver:
    return MockDriver("video0", kinds=(MediaKind.VIDEO,))


@pytest.fixture
def audio_driver() -> MockDriver:
    return MockDriver(
        "audio0",
        kinds=(MediaKind.AUDIO,),
        props=[Media(channel_count=1, sample_rate=48000, sample_size=16, latency=0.02)],
    )


@pytest.fixture
def drivers(video_driver, audio_driver) -> DriverRegistry:
    registry = DriverRegistry()
    registry.register(video_driver)
    registry.register(audio_driver)
    return registry


@pytest.fixture
def sink_factory() -> SinkFactory:
    return SinkFactory()
