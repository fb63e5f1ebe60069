import argparse
import logging
import time

from mediastream import (
    CodecRegistry,
    DriverRegistry,
    MediaDevices,
    MediaStreamConstraints,
    MediaTrackConstraints,
    io,
)
from mediastream.codecs import default_codecs
from mediastream.drivers import register_default_drivers
from mediastream.sink import directory_track_generator

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Capture a rotated VP8 video track")
    parser.add_argument("--output", type=str, default="./samples", help="Output directory")
    parser.add_argument("--duration", type=float, default=5, help="Duration in seconds")
    parser.add_argument("--test-devices", action="store_true", help="Use the synthetic test source")
    args = parser.parse_args()

    drivers = DriverRegistry()
    register_default_drivers(drivers, test=args.test_devices)
    codecs = default_codecs(CodecRegistry())

    md = MediaDevices(codecs, drivers, track_generator=directory_track_generator(args.output))
    stream = md.get_user_media(MediaStreamConstraints(
        video=MediaTrackConstraints(
            enabled=True,
            codec_name="VP8",
            width=640,
            height=480,
            bit_rate=100000,  # 100kbps
            transform=io.rotate180,
        ),
    ))

    for track in stream:
        track.on_ended(lambda err, track=track: logger.error(f"Track {track.id} ended with error: {err!r}"))

    try:
        time.sleep(args.duration)
    finally:
        for track in stream:
            track.stop()


if __name__ == "__main__":
    main()
