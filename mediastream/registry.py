"""
Codec and driver registries.

Both are plain objects populated at startup and then only read while tracks
run, so lookups take no locks.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from .errors import RegistryError
from .prop import MediaKind

logger = logging.getLogger(__name__)

DEFAULT_CLOCK_RATES = {
    MediaKind.VIDEO: 90000,
    MediaKind.AUDIO: 48000,
}

FIRST_DYNAMIC_PAYLOAD_TYPE = 96


@dataclass(frozen=True)
class Codec:
    """A registered encoder and the descriptor handed to sinks"""

    name: str
    kind: MediaKind
    payload_type: int
    clock_rate: int
    builder: Callable


class CodecRegistry:
    """Maps (kind, codec name) to an encoder builder"""

    def __init__(self):
        self._codecs: Dict[Tuple[MediaKind, str], Codec] = {}
        self._next_payload_type = FIRST_DYNAMIC_PAYLOAD_TYPE

    def register(self, kind: MediaKind, name: str, builder: Callable,
                 payload_type: Optional[int] = None,
                 clock_rate: Optional[int] = None) -> Codec:
        key = (kind, name)
        if key in self._codecs:
            raise RegistryError(f"{kind} codec {name} is already registered")
        if payload_type is None:
            payload_type = self._next_payload_type
            self._next_payload_type += 1
        if clock_rate is None:
            clock_rate = DEFAULT_CLOCK_RATES[kind]

        codec = Codec(name, kind, payload_type, clock_rate, builder)
        self._codecs[key] = codec
        logger.debug(f"Registered {kind} codec {name} (payload type {payload_type})")
        return codec

    def lookup(self, kind: MediaKind, name: Optional[str]) -> Optional[Codec]:
        if name is None:
            return None
        return self._codecs.get((kind, name))

    def codecs(self, kind: MediaKind) -> List[Codec]:
        return [c for (k, _), c in self._codecs.items() if k == kind]


class DriverRegistry:
    """Devices in registration order; enumeration order breaks selection ties"""

    def __init__(self):
        self._drivers = []

    def register(self, driver) -> None:
        if self.get(driver.id) is not None:
            raise RegistryError(f"Device {driver.id} is already registered")
        self._drivers.append(driver)
        logger.info(f"Registered device {driver.id} ({', '.join(sorted(str(k) for k in driver.kinds))})")

    def drivers(self, kind: MediaKind) -> List:
        return [d for d in self._drivers if kind in d.kinds]

    def get(self, device_id: str):
        for driver in self._drivers:
            if driver.id == device_id:
                return driver
        return None

    def __iter__(self) -> Iterator:
        return iter(list(self._drivers))

    def __len__(self) -> int:
        return len(self._drivers)
