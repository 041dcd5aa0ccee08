"""
txntail - read and follow replicated tree store transaction logs.

Decodes the append-only, checksum-protected transaction log written by
the server and prints one line per transaction:
- File header validation
- Frame reading with pre-allocated tail detection
- Checksum verification
- Decoding and formatting of every transaction type
- Following the file as the writer appends ("tail -f")
"""

__version__ = "0.1.0"
