"""
Device/codec selection.

Every candidate configuration of every device registered for the requested
kind is scored with the fitness distance; the lowest score wins and ties go
to the first candidate enumerated.
"""

import math
import logging
from dataclasses import dataclass
from typing import Optional

from .constraints import MediaTrackConstraints
from .driver import Driver
from .errors import NoDeviceError, NoMatchError
from .prop import Media, MediaKind
from .registry import Codec, CodecRegistry, DriverRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Selection:
    driver: Driver
    codec: Codec
    properties: Media


def select(kind: MediaKind, codecs: CodecRegistry, drivers: DriverRegistry,
           constraints: MediaTrackConstraints) -> Selection:
    codec = codecs.lookup(kind, constraints.codec_name)
    if codec is None:
        raise NoMatchError(f"{kind} codec {constraints.codec_name} is not registered")

    ideal = constraints.media
    best_driver: Optional[Driver] = None
    best_props: Optional[Media] = None
    min_distance = math.inf

    for driver in drivers.drivers(kind):
        if ideal.device_id is not None and driver.id != ideal.device_id:
            continue
        try:
            candidates = driver.properties()
        except Exception as e:
            logger.warning(f"Skipping device {driver.id}: failed to query properties: {e}")
            continue

        for props in candidates:
            distance = props.fitness_distance(ideal)
            logger.debug(f"Candidate {driver.id} {props}: distance {distance:.4f}")
            if distance < min_distance:
                min_distance = distance
                best_driver = driver
                best_props = props

    if best_driver is None:
        raise NoDeviceError(f"No {kind} device matches codec {codec.name}")

    encoding = Media(
        device_id=best_driver.id,
        codec_name=codec.name,
        bit_rate=constraints.bit_rate,
        quality=constraints.quality,
        key_frame_interval=constraints.key_frame_interval,
    )
    properties = best_props.merge(encoding)
    logger.info(f"Selected {kind} device {best_driver.id} with {codec.name} (distance {min_distance:.4f})")
    return Selection(best_driver, codec, properties)
