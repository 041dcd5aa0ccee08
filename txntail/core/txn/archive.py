"""
Reader for the binary record archive used inside transaction payloads.

Primitive encodings (big-endian):
    int      4 bytes, signed
    long     8 bytes, signed
    boolean  1 byte, non-zero is true
    buffer   int length + bytes; length -1 is null
    ustring  int length + UTF-8 bytes; length -1 is null
    vector   int count + elements; count -1 is null
"""

import struct
from typing import Callable, List, Optional, TypeVar

from txntail.core.log.format import TxnLogError

T = TypeVar("T")

_INT = struct.Struct(">i")
_LONG = struct.Struct(">q")


class DecodeError(TxnLogError):
    """A transaction payload could not be deserialized."""


class BinaryInputArchive:
    """
    Sequential reader over a serialized record.
    
    Attributes:
        position: Offset of the next unread byte
    """
    
    def __init__(self, data: bytes):
        self._data = data
        self.position = 0
    
    def remaining(self) -> int:
        """Number of unread bytes."""
        return len(self._data) - self.position
    
    def _take(self, n: int, tag: str) -> bytes:
        if n > self.remaining():
            raise DecodeError(
                f"Unexpected end of record reading {tag}: need {n} bytes "
                f"at position {self.position}, {self.remaining()} left"
            )
        chunk = self._data[self.position : self.position + n]
        self.position += n
        return chunk
    
    def read_rest(self) -> bytes:
        """Consume and return every unread byte."""
        return self._take(self.remaining(), "remainder")
    
    def read_byte(self, tag: str) -> int:
        return self._take(1, tag)[0]
    
    def read_bool(self, tag: str) -> bool:
        return self._take(1, tag)[0] != 0
    
    def read_int(self, tag: str) -> int:
        return _INT.unpack(self._take(_INT.size, tag))[0]
    
    def read_long(self, tag: str) -> int:
        return _LONG.unpack(self._take(_LONG.size, tag))[0]
    
    def read_buffer(self, tag: str) -> Optional[bytes]:
        length = self.read_int(tag)
        if length == -1:
            return None
        if length < 0:
            raise DecodeError(f"Invalid buffer length {length} reading {tag}")
        return self._take(length, tag)
    
    def read_string(self, tag: str) -> Optional[str]:
        raw = self.read_buffer(tag)
        if raw is None:
            return None
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"Invalid UTF-8 reading {tag}: {e}") from e
    
    def read_vector(self, tag: str, read_element: Callable[["BinaryInputArchive"], T]) -> List[T]:
        """
        Read a counted sequence, decoding each element with ``read_element``.
        
        A null vector decodes as an empty list.
        """
        count = self.read_int(tag)
        if count == -1:
            return []
        if count < 0:
            raise DecodeError(f"Invalid vector length {count} reading {tag}")
        return [read_element(self) for _ in range(count)]
