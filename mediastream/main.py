import argparse
import logging
import platform
import time
from pathlib import Path

from .codecs import default_codecs
from .config import get_setting, load_config, load_stream_constraints
from .drivers import register_default_drivers
from .errors import MediaStreamError
from .mediadevices import MediaDevices
from .registry import DriverRegistry
from .sink import directory_track_generator
from .track import DEFAULT_STOP_TIMEOUT, TrackState
from .utils import IS_JETSON, should_stop

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Capture, encode and save live audio/video tracks")
    parser.add_argument("--config", type=str, default="./config.yaml",
                        help="Path to YAML config with video/audio constraints, output_dir, duration (default: ./config.yaml)")
    parser.add_argument("--list-devices", action="store_true",
                        help="List available capture devices and exit")
    parser.add_argument("--test-devices", action="store_true", default=None,
                        help="Use synthetic test sources instead of real devices")
    parser.add_argument("--output", type=str, default=None,
                        help="Output directory for encoded samples (overrides config)")
    parser.add_argument("--duration", type=float, default=None,
                        help="Capture duration in seconds (default: continuous)")
    parser.add_argument("--video-codec", type=str, default=None, help="Video codec name, e.g. JPEG, VP8, H264")
    parser.add_argument("--audio-codec", type=str, default=None, help="Audio codec name, e.g. L16")
    parser.add_argument("--width", type=int, default=None, help="Ideal video width")
    parser.add_argument("--height", type=int, default=None, help="Ideal video height")
    parser.add_argument("--bit-rate", type=int, default=None, help="Target video bit rate in bps")
    parser.add_argument("--no-video", action="store_true", help="Do not capture video")
    parser.add_argument("--no-audio", action="store_true", help="Do not capture audio")
    parser.add_argument("--log-level", type=str, default="INFO", help="Logging level (default: INFO)")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO),
                        format="%(asctime)s - %(levelname)s - %(message)s")

    config_data = {}
    config_path = Path(args.config) if args.config else None
    if config_path is not None and config_path.exists():
        config_data = load_config(args.config)
        logger.info(f"Loaded config from {config_path}")
    else:
        logger.info("Config file not found; using CLI values or defaults")

    test_devices = bool(get_setting(args.test_devices, config_data.get("test_devices"), False))
    drivers = DriverRegistry()
    register_default_drivers(drivers, test=test_devices)
    codecs = default_codecs()

    if args.list_devices:
        print(f"Platform: {platform.system()}")
        print(f"Jetson detected: {IS_JETSON}")
        devices = MediaDevices(codecs, drivers).enumerate_devices()
        if devices:
            for info in devices:
                print(f"{info.kind}\t{info.device_id}\t{info.label}")
        else:
            print("No devices found")
        return 0

    output_dir = Path(get_setting(args.output, config_data.get("output_dir"), "./samples"))
    output_dir.mkdir(parents=True, exist_ok=True)
    duration = get_setting(args.duration, config_data.get("duration"), None)
    stop_timeout = float(get_setting(None, config_data.get("stop_timeout"), DEFAULT_STOP_TIMEOUT))

    video_overrides = {
        "codec_name": args.video_codec,
        "width": args.width,
        "height": args.height,
        "bit_rate": args.bit_rate,
    }
    audio_overrides = {"codec_name": args.audio_codec}
    if "video" not in config_data and "audio" not in config_data:
        # nothing configured: capture both kinds with the defaults
        video_overrides["enabled"] = True
        audio_overrides["enabled"] = True
    if args.no_video:
        config_data.pop("video", None)
        video_overrides = None
    if args.no_audio:
        config_data.pop("audio", None)
        audio_overrides = None

    try:
        constraints = load_stream_constraints(config_data, video_overrides, audio_overrides)
    except ValueError as e:
        logger.error(f"Invalid constraints: {e}")
        return 2

    media_devices = MediaDevices(codecs, drivers,
                                 track_generator=directory_track_generator(str(output_dir)),
                                 stop_timeout=stop_timeout)
    try:
        stream = media_devices.get_user_media(constraints)
    except MediaStreamError as e:
        logger.error(f"Failed to start capture: {e}")
        return 1

    for track in stream:
        track.on_ended(lambda err, track=track: logger.error(
            f"Track {track.id} ({track.device_id}) ended with error: {err!r}"))

    try:
        if duration:
            logger.info(f"Capturing for {duration} seconds...")
        else:
            logger.info("Capturing continuously. Press Ctrl+C to stop...")

        start_time = time.time()
        while not should_stop(start_time, duration):
            if all(t.state is TrackState.ENDED for t in stream):
                logger.error("All tracks ended")
                return 1
            time.sleep(0.5)
    except KeyboardInterrupt:
        logger.info("Received interrupt signal")
    finally:
        for track in stream:
            track.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
