"""
Transaction decoding and formatting.

Turns verified frame payloads into typed records and renders them as
human-readable history lines.
"""

from txntail.core.txn.archive import BinaryInputArchive, DecodeError
from txntail.core.txn.decoder import decode_txn
from txntail.core.txn.formatter import (
    RenderedText,
    TxnFormatter,
    format_timestamp,
    format_txn_line,
    render_text,
)
from txntail.core.txn.opcodes import OP_NAMES, OpCode, op_name
from txntail.core.txn.records import (
    ACL,
    BODY_TYPES,
    CloseSessionTxn,
    CreateContainerTxn,
    CreateSessionTxn,
    CreateTxn,
    DeleteTxn,
    ErrorTxn,
    MultiTxn,
    SetDataTxn,
    SubTxn,
    TxnBody,
    TxnHeader,
    UnknownTxn,
    decode_body,
)

__all__ = [
    "ACL",
    "BODY_TYPES",
    "BinaryInputArchive",
    "CloseSessionTxn",
    "CreateContainerTxn",
    "CreateSessionTxn",
    "CreateTxn",
    "DecodeError",
    "DeleteTxn",
    "ErrorTxn",
    "MultiTxn",
    "OP_NAMES",
    "OpCode",
    "RenderedText",
    "SetDataTxn",
    "SubTxn",
    "TxnBody",
    "TxnFormatter",
    "TxnHeader",
    "UnknownTxn",
    "decode_body",
    "decode_txn",
    "format_timestamp",
    "format_txn_line",
    "op_name",
    "render_text",
]
