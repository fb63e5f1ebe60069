"""
Raw media readers, transforms and the signals shared by sources and encoders.

Video readers return a PIL image per read(); audio readers return interleaved
signed 16-bit little-endian PCM bytes per read().
"""

import array
import sys
from typing import Callable

from PIL import Image, ImageOps


class EndOfStream(Exception):
    """Raised by a reader or encoder once its source is closed or exhausted"""


class InsufficientBufferError(Exception):
    """Raised by an encoder when the output buffer must grow to required_size"""

    def __init__(self, required_size: int):
        super().__init__(f"buffer too small: {required_size} bytes required")
        self.required_size = required_size


class ReaderFunc:
    """Wraps a zero-argument callable as a reader"""

    def __init__(self, func: Callable):
        self._func = func

    def read(self):
        return self._func()


# Video transforms

def rotate180(reader):
    def read() -> Image.Image:
        return reader.read().transpose(Image.Transpose.ROTATE_180)
    return ReaderFunc(read)


def scale(width: int, height: int):
    """Return a transform resizing every frame to width x height"""
    def transform(reader):
        def read() -> Image.Image:
            return reader.read().resize((width, height))
        return ReaderFunc(read)
    return transform


def grayscale(reader):
    def read() -> Image.Image:
        # JPEG and yuv encoders expect three channels
        return ImageOps.grayscale(reader.read()).convert("RGB")
    return ReaderFunc(read)


# Audio transforms

def gain(factor: float):
    """Return a transform scaling s16 PCM by factor, clipped to the sample range"""
    def transform(reader):
        def read() -> bytes:
            samples = array.array("h")
            samples.frombytes(reader.read())
            if sys.byteorder == "big":
                samples.byteswap()
            for i, value in enumerate(samples):
                samples[i] = max(-32768, min(32767, int(value * factor)))
            if sys.byteorder == "big":
                samples.byteswap()
            return samples.tobytes()
        return ReaderFunc(read)
    return transform
