import io
import struct

import av
import pytest
from PIL import Image

from mediastream.codecs import AVVideoEncoder, JPEGEncoder, L16Encoder, default_codecs
from mediastream.codecs.jpeg import jpeg_quality
from mediastream.codecs.libav import build_vp8
from mediastream.io import EndOfStream, InsufficientBufferError, ReaderFunc
from mediastream.prop import Media, MediaKind


def _frames(size=(64, 48), color=(200, 30, 30)):
    return ReaderFunc(lambda: Image.new("RGB", size, color))


def _vp8_available() -> bool:
    try:
        av.codec.Codec("libvpx", "w")
    except Exception:
        return False
    return True


def test_default_codecs() -> None:
    registry = default_codecs()
    assert [c.name for c in registry.codecs(MediaKind.VIDEO)] == ["JPEG", "VP8", "VP9", "H264"]
    assert [c.name for c in registry.codecs(MediaKind.AUDIO)] == ["L16"]
    assert registry.lookup(MediaKind.VIDEO, "JPEG").payload_type == 26


def test_jpeg_quality_mapping() -> None:
    assert jpeg_quality(None) == 75
    assert jpeg_quality(0) == 10
    assert jpeg_quality(9) == 95


def test_jpeg_encoder_produces_images() -> None:
    encoder = JPEGEncoder(_frames(), Media(quality=5))
    buffer = bytearray(64 * 1024)
    n = encoder.readinto(buffer)
    assert bytes(buffer[:2]) == b"\xff\xd8"
    decoded = Image.open(io.BytesIO(bytes(buffer[:n])))
    assert decoded.size == (64, 48)


def test_small_buffer_keeps_the_pending_unit() -> None:
    reads = []

    def read():
        reads.append(1)
        return Image.new("RGB", (64, 48), (0, 0, 255))

    encoder = JPEGEncoder(ReaderFunc(read), Media())
    with pytest.raises(InsufficientBufferError) as excinfo:
        encoder.readinto(bytearray(10))
    required = excinfo.value.required_size
    assert required > 10

    n = encoder.readinto(bytearray(required))
    assert n == required
    assert len(reads) == 1


def test_closed_encoder_reports_end_of_stream() -> None:
    encoder = JPEGEncoder(_frames(), Media())
    encoder.close()
    with pytest.raises(EndOfStream):
        encoder.readinto(bytearray(1024))


def test_l16_is_big_endian() -> None:
    encoder = L16Encoder(ReaderFunc(lambda: struct.pack("<3h", 1, -2, 300)), Media())
    buffer = bytearray(16)
    n = encoder.readinto(buffer)
    assert bytes(buffer[:n]) == struct.pack(">3h", 1, -2, 300)


@pytest.mark.parametrize("bit_rate", [None, 0, -5])
def test_av_encoder_rejects_missing_bit_rate(bit_rate) -> None:
    with pytest.raises(ValueError):
        build_vp8(_frames(), Media(width=64, height=48, bit_rate=bit_rate))


def test_av_encoder_needs_frame_size() -> None:
    with pytest.raises(ValueError):
        AVVideoEncoder("libvpx", _frames(), Media(bit_rate=100000))


@pytest.mark.skipif(not _vp8_available(), reason="FFmpeg build without libvpx")
def test_vp8_encoder_emits_packets() -> None:
    encoder = build_vp8(_frames(), Media(width=64, height=48, frame_rate=30, bit_rate=100000,
                                         key_frame_interval=30))
    buffer = bytearray(256 * 1024)
    sizes = [encoder.readinto(buffer) for _ in range(3)]
    assert sizes[0] > 0
    assert encoder.frame_index == 3
    encoder.close()
    assert encoder.context is None
