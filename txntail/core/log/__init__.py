"""
Transaction log file access.

This package provides read-only access to transaction log files:
- File header parsing and validation
- Frame reading with pre-allocated tail detection
- Payload checksum verification
"""

from txntail.core.log.checksum import ChecksumVerifier
from txntail.core.log.format import (
    FRAME_TRAILER,
    TXNLOG_MAGIC,
    ChecksumMismatchError,
    EmptyTail,
    FileHeader,
    Frame,
    FrameError,
    HeaderError,
    InvalidMagicError,
    PartialTransactionError,
    TrueEof,
    TxnLogError,
    read_file_header,
)
from txntail.core.log.reader import FrameReader

__all__ = [
    "FRAME_TRAILER",
    "TXNLOG_MAGIC",
    "ChecksumMismatchError",
    "ChecksumVerifier",
    "EmptyTail",
    "FileHeader",
    "Frame",
    "FrameError",
    "FrameReader",
    "HeaderError",
    "InvalidMagicError",
    "PartialTransactionError",
    "TrueEof",
    "TxnLogError",
    "read_file_header",
]
