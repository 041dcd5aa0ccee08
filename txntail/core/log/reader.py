"""
Sequential frame reader for transaction log files.

Reads frames one at a time from an open binary stream and classifies what
it finds at the read cursor:

- a complete frame (trailer verified)
- an empty tail: a zero length field in the writer's pre-allocated space
- the true end of the file

Frames are not checksum-verified here; that is left to the caller so that
the read and verify steps can be reported separately.
"""

import struct
from typing import BinaryIO, Union

from txntail.core.log.format import (
    DEFAULT_MAX_FRAME_SIZE,
    FRAME_TRAILER,
    EmptyTail,
    Frame,
    FrameError,
    PartialTransactionError,
    TrueEof,
)

ReadResult = Union[Frame, EmptyTail, TrueEof]


class FrameReader:
    """
    Reads successive frames from a transaction log stream.
    
    The stream must already be positioned past the file header. The reader
    keeps no buffered state of its own, so rewinding is a plain seek on the
    underlying stream. Pass an unbuffered stream when following a file that
    is still being written.
    
    Usage:
        with open(path, "rb", buffering=0) as f:
            read_file_header(f)
            reader = FrameReader(f)
            result = reader.read_next_frame()
    """
    
    PREFIX_FORMAT = ">Qi"
    PREFIX_SIZE = struct.calcsize(PREFIX_FORMAT)
    
    def __init__(self, fd: BinaryIO, max_frame_size: int = DEFAULT_MAX_FRAME_SIZE):
        """
        Args:
            fd: Binary stream positioned at a frame boundary
            max_frame_size: Largest payload length accepted as plausible
        """
        self._fd = fd
        self.max_frame_size = max_frame_size
    
    def tell(self) -> int:
        """Current byte offset of the read cursor."""
        return self._fd.tell()
    
    def rewind(self, offset: int) -> None:
        """
        Move the read cursor back to ``offset``.
        
        The next read re-attempts the same byte range, picking up whatever
        the writer has put there since the previous attempt.
        """
        self._fd.seek(offset)
    
    def _read(self, n: int) -> bytes:
        """Read up to n bytes, stopping early only at end of file."""
        chunks = []
        remaining = n
        while remaining > 0:
            chunk = self._fd.read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)
    
    def read_next_frame(self) -> ReadResult:
        """
        Read the frame at the current cursor.
        
        Returns:
            Frame, EmptyTail or TrueEof
        
        Raises:
            FrameError: If the length field is negative or too large
            PartialTransactionError: If the trailer byte is missing or wrong
        """
        offset = self._fd.tell()
        
        prefix = self._read(self.PREFIX_SIZE)
        if len(prefix) < self.PREFIX_SIZE:
            return TrueEof(offset=offset, pending_bytes=len(prefix))
        
        checksum, length = struct.unpack(self.PREFIX_FORMAT, prefix)
        
        if length == 0:
            return EmptyTail(offset=offset)
        
        if length < 0 or length > self.max_frame_size:
            raise FrameError(
                f"Unreasonable frame length {length} at offset {offset}"
            )
        
        payload = self._read(length)
        if len(payload) < length:
            return TrueEof(offset=offset, pending_bytes=len(prefix) + len(payload))
        
        trailer = self._read(1)
        if not trailer:
            raise PartialTransactionError(
                f"Last transaction was partial: missing trailer at offset "
                f"{offset + len(prefix) + length}"
            )
        if trailer[0] != FRAME_TRAILER:
            raise PartialTransactionError(
                f"Last transaction was partial: trailer {trailer[0]:#04x} "
                f"at offset {offset + len(prefix) + length}"
            )
        
        return Frame(offset=offset, checksum=checksum, payload=payload, trailer=trailer[0])
