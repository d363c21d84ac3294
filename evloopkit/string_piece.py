"""A lightweight read-only view over a run of bytes."""

from __future__ import annotations

from typing import Iterator, Optional, Union

BytesLike = Union[bytes, bytearray, memoryview, str]


def _to_bytes(value: BytesLike) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


class StringPiece:
    """A view over part of a byte buffer, compared byte by byte.

    It accepts ``bytes``, ``bytearray``, ``memoryview`` or ``str`` (encoded
    as UTF-8). ``length``, when given, limits the view to the first
    ``length`` bytes of the buffer.
    """

    __slots__ = ("_buf", "_start", "_len")

    def __init__(self, buffer: BytesLike = b"", length: Optional[int] = None) -> None:
        self._buf = b""
        self._start = 0
        self._len = 0
        self.set(buffer, length)

    def data(self) -> bytes:
        """Return the bytes the view covers."""
        return self._buf[self._start:self._start + self._len]

    def empty(self) -> bool:
        """Return whether the view covers no bytes."""
        return self._len == 0

    def clear(self) -> None:
        """Make the view empty."""
        self._buf = b""
        self._start = 0
        self._len = 0

    def set(self, buffer: BytesLike, length: Optional[int] = None) -> None:
        """Point the view at ``buffer``, or at its first ``length`` bytes."""
        buf = _to_bytes(buffer)
        if length is None:
            length = len(buf)
        elif length < 0 or length > len(buf):
            raise ValueError(f"length {length} out of range for buffer of {len(buf)} bytes")
        self._buf = buf
        self._start = 0
        self._len = length

    def remove_prefix(self, n: int) -> None:
        """Drop the first ``n`` bytes from the view."""
        if n < 0 or n > self._len:
            raise ValueError(f"cannot remove {n} bytes from a view of {self._len}")
        self._start += n
        self._len -= n

    def remove_suffix(self, n: int) -> None:
        """Drop the last ``n`` bytes from the view."""
        if n < 0 or n > self._len:
            raise ValueError(f"cannot remove {n} bytes from a view of {self._len}")
        self._len -= n

    def compare(self, other: Union["StringPiece", BytesLike]) -> int:
        """Return -1, 0 or 1 as this view sorts before, equal to or after ``other``."""
        mine, theirs = self.data(), _coerce(other)
        if mine < theirs:
            return -1
        if mine > theirs:
            return 1
        return 0

    def as_string(self) -> str:
        """Return the bytes decoded as UTF-8, keeping undecodable bytes."""
        return self.data().decode("utf-8", "surrogateescape")

    def starts_with(self, other: Union["StringPiece", BytesLike]) -> bool:
        """Return whether the view begins with ``other``."""
        return self.data().startswith(_coerce(other))

    def __len__(self) -> int:
        return self._len

    def __getitem__(self, i):
        return self.data()[i]

    def __iter__(self) -> Iterator[int]:
        return iter(self.data())

    def __bytes__(self) -> bytes:
        return self.data()

    def __str__(self) -> str:
        return self.as_string()

    def __repr__(self) -> str:
        return f"StringPiece({self.data()!r})"

    def __hash__(self) -> int:
        return hash(self.data())

    def __eq__(self, other: object) -> bool:
        theirs = _try_coerce(other)
        if theirs is None:
            return NotImplemented
        return self.data() == theirs

    def __lt__(self, other: object) -> bool:
        theirs = _try_coerce(other)
        if theirs is None:
            return NotImplemented
        return self.data() < theirs

    def __le__(self, other: object) -> bool:
        theirs = _try_coerce(other)
        if theirs is None:
            return NotImplemented
        return self.data() <= theirs

    def __gt__(self, other: object) -> bool:
        theirs = _try_coerce(other)
        if theirs is None:
            return NotImplemented
        return self.data() > theirs

    def __ge__(self, other: object) -> bool:
        theirs = _try_coerce(other)
        if theirs is None:
            return NotImplemented
        return self.data() >= theirs


def _try_coerce(value: object) -> Optional[bytes]:
    if isinstance(value, StringPiece):
        return value.data()
    if isinstance(value, (bytes, bytearray, memoryview, str)):
        return _to_bytes(value)
    return None


def _coerce(value: object) -> bytes:
    result = _try_coerce(value)
    if result is None:
        raise TypeError(f"cannot compare StringPiece with {type(value).__name__}")
    return result