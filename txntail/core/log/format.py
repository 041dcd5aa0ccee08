"""
Binary structures of the transaction log file.

All integers are big-endian. A log file is one fixed header followed by
zero or more frames:

    FileHeader:  magic(4B) version(4B) dbid(8B)
    Frame:       checksum(8B) length(4B) payload(length B) trailer(1B == 'B')

The writer pre-extends the file with zeros, so a frame whose length field
is zero marks the boundary between written and not-yet-written space.
"""

import struct
from dataclasses import dataclass
from typing import BinaryIO

TXNLOG_MAGIC = struct.unpack(">i", b"ZKLG")[0]

# End-of-record sentinel written after every frame
FRAME_TRAILER = ord("B")

DEFAULT_MAX_FRAME_SIZE = 0xFFFFF + 1024


class TxnLogError(Exception):
    """Base class for errors raised while reading a transaction log."""


class HeaderError(TxnLogError):
    """The file header is missing, truncated or invalid."""


class InvalidMagicError(HeaderError):
    """The file does not start with the transaction log magic number."""
    
    def __init__(self, magic: int):
        super().__init__(
            f"Invalid magic number: expected {TXNLOG_MAGIC:#010x}, got {magic:#010x}"
        )
        self.magic = magic


class FrameError(TxnLogError):
    """A frame's length prefix is not a plausible value."""


class PartialTransactionError(TxnLogError):
    """The trailer after a frame is missing or is not the block sentinel."""


class ChecksumMismatchError(TxnLogError):
    """A frame's stored checksum does not match its payload."""
    
    def __init__(self, offset: int, expected: int, computed: int):
        super().__init__(
            f"Checksum doesn't match at offset {offset}: "
            f"stored {expected} vs computed {computed}"
        )
        self.offset = offset
        self.expected = expected
        self.computed = computed


@dataclass(frozen=True)
class FileHeader:
    """
    Fixed header at the start of every transaction log file.
    
    Attributes:
        magic: File type marker, must equal TXNLOG_MAGIC
        version: Log format version
        dbid: Identifier of the database the log belongs to
    """
    
    magic: int
    version: int
    dbid: int
    
    FORMAT = ">iiq"
    SIZE = struct.calcsize(FORMAT)
    
    def serialize(self) -> bytes:
        """Serialize the header to its 16-byte on-disk form."""
        return struct.pack(self.FORMAT, self.magic, self.version, self.dbid)
    
    @classmethod
    def deserialize(cls, data: bytes) -> "FileHeader":
        """
        Deserialize and validate a file header.
        
        Args:
            data: Exactly SIZE bytes read from the start of the file
        
        Returns:
            Parsed FileHeader
        
        Raises:
            HeaderError: If data is shorter than the header
            InvalidMagicError: If the magic number does not match
        """
        if len(data) < cls.SIZE:
            raise HeaderError(
                f"Truncated log file header: expected {cls.SIZE} bytes, got {len(data)}"
            )
        
        magic, version, dbid = struct.unpack(cls.FORMAT, data[: cls.SIZE])
        
        if magic != TXNLOG_MAGIC:
            raise InvalidMagicError(magic)
        
        return cls(magic=magic, version=version, dbid=dbid)


def read_file_header(fd: BinaryIO) -> FileHeader:
    """
    Read the file header from the current position of ``fd``.
    
    Advances the stream past the header exactly once; no frame is read.
    """
    return FileHeader.deserialize(fd.read(FileHeader.SIZE))


@dataclass(frozen=True)
class Frame:
    """
    One length-prefixed, checksum-protected record read from the log.
    
    Attributes:
        offset: Byte offset of the frame start (the checksum field)
        checksum: Stored checksum value
        payload: Serialized transaction bytes
        trailer: Byte following the payload
    """
    
    offset: int
    checksum: int
    payload: bytes
    trailer: int = FRAME_TRAILER
    
    CHECKSUM_SIZE = 8
    LENGTH_FIELD_SIZE = 4
    TRAILER_SIZE = 1
    
    def size(self) -> int:
        """On-disk size of this frame in bytes."""
        return (
            self.CHECKSUM_SIZE
            + self.LENGTH_FIELD_SIZE
            + len(self.payload)
            + self.TRAILER_SIZE
        )
    
    @property
    def end_offset(self) -> int:
        return self.offset + self.size()


@dataclass(frozen=True)
class EmptyTail:
    """Zero-length frame: the reader reached pre-allocated, unwritten space."""
    
    offset: int


@dataclass(frozen=True)
class TrueEof:
    """
    The stream ended before another frame could be read.
    
    Attributes:
        offset: Offset at which the next frame would have started
        pending_bytes: Bytes of an incomplete frame present at the end
    """
    
    offset: int
    pending_bytes: int = 0
