"""
Transaction payload decoding.

A frame payload holds one serialized transaction: the fixed TxnHeader
followed by a body chosen by the header's operation code. Operation codes
this module does not know still decode, as UnknownTxn, so that logs
written by newer servers remain readable.
"""

from typing import Tuple

from txntail.core.txn.archive import BinaryInputArchive, DecodeError
from txntail.core.txn.records import TxnBody, TxnHeader, decode_body


def decode_txn(payload: bytes) -> Tuple[TxnHeader, TxnBody]:
    """
    Decode a frame payload into its header and body.
    
    Bytes left over after the body are ignored; newer writers append
    fields (such as a tree digest) that older readers skip.
    
    Args:
        payload: Checksum-verified frame payload
    
    Returns:
        (header, body)
    
    Raises:
        DecodeError: If the payload is empty, truncated or malformed
    """
    if not payload:
        raise DecodeError("Empty transaction payload")
    
    archive = BinaryInputArchive(payload)
    header = TxnHeader.deserialize(archive)
    body = decode_body(header.type, archive)
    
    return header, body
