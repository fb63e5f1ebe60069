import array

from .base import Encoder


class L16Encoder(Encoder):
    """Linear 16-bit PCM in network byte order"""

    def __init__(self, reader, media):
        super().__init__(reader)

    def _encode(self, raw: bytes) -> bytes:
        # swapping each byte pair turns little-endian input into big-endian on any host
        samples = array.array("h")
        samples.frombytes(raw)
        samples.byteswap()
        return samples.tobytes()
