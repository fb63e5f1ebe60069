from ..io import EndOfStream, InsufficientBufferError


class Encoder:
    """
    Pull-based encoder over a raw reader.

    readinto() encodes one raw unit per call. When the encoded unit does not
    fit the caller's buffer it is kept and InsufficientBufferError is raised
    so the caller can retry the same unit with a bigger buffer.
    """

    def __init__(self, reader):
        self._reader = reader
        self._pending = None
        self._closed = False

    def readinto(self, buffer) -> int:
        if self._closed:
            raise EndOfStream()
        if self._pending is None:
            self._pending = self._encode(self._reader.read())

        data = self._pending
        if len(data) > len(buffer):
            raise InsufficientBufferError(len(data))
        buffer[:len(data)] = data
        self._pending = None
        return len(data)

    def close(self) -> None:
        self._closed = True
        self._pending = None

    @property
    def closed(self) -> bool:
        return self._closed

    def _encode(self, raw) -> bytes:
        raise NotImplementedError
