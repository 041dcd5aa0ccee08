"""
Rendering of decoded transactions as text.

One record produces a summary line:

    2024-01-02 03:04:05.006Z session:0x1 cxid:0x2 zxid:0x3 create path:/a len:3

optionally followed by the payload as text and a structural dump of the
body. Formatting never raises on unknown operation codes or odd values.
"""

import base64
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from txntail.core.txn.opcodes import op_name
from txntail.core.txn.records import TxnBody, TxnHeader

_UINT64_MASK = 0xFFFFFFFFFFFFFFFF

TEXT_ENCODING = "utf-8"
FALLBACK_ENCODING = "base64"


@dataclass(frozen=True)
class RenderedText:
    """
    Payload bytes rendered for display.
    
    Attributes:
        text: Display text
        encoding: TEXT_ENCODING if the bytes were valid text, otherwise
            FALLBACK_ENCODING (the text is the base64 form of the bytes)
    """
    
    text: str
    encoding: str = TEXT_ENCODING
    
    @property
    def is_fallback(self) -> bool:
        return self.encoding == FALLBACK_ENCODING


def render_text(data: bytes) -> RenderedText:
    """
    Render payload bytes as text without losing information.
    
    Bytes that are valid UTF-8 are returned decoded; anything else is
    returned base64-encoded and tagged as a fallback.
    """
    try:
        return RenderedText(text=data.decode(TEXT_ENCODING, errors="strict"))
    except UnicodeDecodeError:
        return RenderedText(
            text=base64.b64encode(data).decode("ascii"),
            encoding=FALLBACK_ENCODING,
        )


def format_timestamp(time_ms: int) -> str:
    """
    Format epoch milliseconds as ``YYYY-MM-DD HH:MM:SS.mmmZ`` in UTC.
    
    Values outside the calendar range render as ``<invalid time N>``.
    """
    seconds, millis = divmod(time_ms, 1000)
    try:
        moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return f"<invalid time {time_ms}>"
    return f"{moment.strftime('%Y-%m-%d %H:%M:%S')}.{millis:03d}Z"


def _hex(value: int) -> str:
    # Ids are rendered as unsigned 64-bit, matching the writer's notation
    return f"0x{value & _UINT64_MASK:x}"


def format_txn_line(header: TxnHeader, body: TxnBody) -> str:
    """Build the one-line summary of a transaction."""
    return (
        f"{format_timestamp(header.time)}"
        f" session:{_hex(header.client_id)}"
        f" cxid:{_hex(header.cxid)}"
        f" zxid:{_hex(header.zxid)}"
        f" {op_name(header.type)} {body.summary()}"
    )


class TxnFormatter:
    """
    Renders decoded transactions as output lines.
    
    Attributes:
        show_data: Emit the payload text after the summary line
        verbose: Emit a structural dump of the body
    """
    
    def __init__(self, show_data: bool = False, verbose: bool = False):
        self.show_data = show_data
        self.verbose = verbose
    
    def format_data(self, body: TxnBody) -> Optional[str]:
        """Payload of ``body`` as display text, or None if it has none."""
        data = body.data()
        if data is None:
            return None
        return render_text(data).text
    
    def format(self, header: TxnHeader, body: TxnBody) -> List[str]:
        """
        Render one transaction.
        
        Args:
            header: Decoded transaction header
            body: Decoded transaction body
        
        Returns:
            Output lines, summary first
        """
        lines = [format_txn_line(header, body)]
        
        if self.show_data:
            data = self.format_data(body)
            if data is not None:
                lines.append(data)
        
        if self.verbose:
            lines.append(repr(body))
        
        return lines
