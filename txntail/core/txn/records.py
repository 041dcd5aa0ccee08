"""
Decoded transaction records.

A transaction payload is a TxnHeader followed by a body whose layout is
chosen by the header's operation code. Each body type knows how to read
itself from a BinaryInputArchive and how to summarize itself for display.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Optional, Type

from txntail.core.txn.archive import BinaryInputArchive, DecodeError
from txntail.core.txn.opcodes import OpCode


@dataclass(frozen=True)
class TxnHeader:
    """
    Fixed prefix of every transaction.
    
    Attributes:
        client_id: Session that issued the request
        cxid: Per-session request sequence number
        zxid: Globally ordered transaction id
        time: Wall-clock time of the transaction, epoch milliseconds
        type: Operation code
    """
    
    client_id: int
    cxid: int
    zxid: int
    time: int
    type: int
    
    @classmethod
    def deserialize(cls, archive: BinaryInputArchive) -> "TxnHeader":
        return cls(
            client_id=archive.read_long("clientId"),
            cxid=archive.read_int("cxid"),
            zxid=archive.read_long("zxid"),
            time=archive.read_long("time"),
            type=archive.read_int("type"),
        )


@dataclass(frozen=True)
class ACL:
    perms: int
    scheme: Optional[str]
    id: Optional[str]
    
    @classmethod
    def deserialize(cls, archive: BinaryInputArchive) -> "ACL":
        return cls(
            perms=archive.read_int("perms"),
            scheme=archive.read_string("scheme"),
            id=archive.read_string("id"),
        )


class TxnBody(ABC):
    """Operation-specific part of a transaction."""
    
    @abstractmethod
    def summary(self) -> str:
        """One-line summary shown after the operation name."""
    
    def data(self) -> Optional[bytes]:
        """
        Payload bytes for data display.
        
        Returns None for operations that carry no payload.
        """
        return None


@dataclass(frozen=True)
class CreateSessionTxn(TxnBody):
    timeout: int
    
    @classmethod
    def deserialize(cls, archive: BinaryInputArchive) -> "CreateSessionTxn":
        return cls(timeout=archive.read_int("timeOut"))
    
    def summary(self) -> str:
        return f"timeOut:{self.timeout}"


@dataclass(frozen=True)
class CloseSessionTxn(TxnBody):
    # Older logs write no body for closeSession
    paths_to_delete: List[str] = field(default_factory=list)
    
    @classmethod
    def deserialize(cls, archive: BinaryInputArchive) -> "CloseSessionTxn":
        if archive.remaining() == 0:
            return cls()
        return cls(
            paths_to_delete=archive.read_vector(
                "paths2Delete", lambda a: a.read_string("path")
            )
        )
    
    def summary(self) -> str:
        return ""


@dataclass(frozen=True)
class CreateTxn(TxnBody):
    """Body of create and create2."""
    
    path: Optional[str]
    data_bytes: bytes
    acl: List[ACL]
    ephemeral: bool
    parent_cversion: int = -1
    
    @classmethod
    def deserialize(cls, archive: BinaryInputArchive) -> "CreateTxn":
        path = archive.read_string("path")
        data = archive.read_buffer("data") or b""
        acl = archive.read_vector("acl", ACL.deserialize)
        ephemeral = archive.read_bool("ephemeral")
        # Legacy layout ends before parentCVersion
        parent_cversion = archive.read_int("parentCVersion") if archive.remaining() >= 4 else -1
        return cls(
            path=path,
            data_bytes=data,
            acl=acl,
            ephemeral=ephemeral,
            parent_cversion=parent_cversion,
        )
    
    def summary(self) -> str:
        return f"path:{self.path} len:{len(self.data_bytes)}"
    
    def data(self) -> Optional[bytes]:
        return self.data_bytes


@dataclass(frozen=True)
class CreateContainerTxn(TxnBody):
    path: Optional[str]
    data_bytes: bytes
    acl: List[ACL]
    parent_cversion: int
    
    @classmethod
    def deserialize(cls, archive: BinaryInputArchive) -> "CreateContainerTxn":
        return cls(
            path=archive.read_string("path"),
            data_bytes=archive.read_buffer("data") or b"",
            acl=archive.read_vector("acl", ACL.deserialize),
            parent_cversion=archive.read_int("parentCVersion"),
        )
    
    def summary(self) -> str:
        return f"path:{self.path} len:{len(self.data_bytes)}"
    
    def data(self) -> Optional[bytes]:
        return self.data_bytes


@dataclass(frozen=True)
class DeleteTxn(TxnBody):
    """Body of delete and deleteContainer."""
    
    path: Optional[str]
    
    @classmethod
    def deserialize(cls, archive: BinaryInputArchive) -> "DeleteTxn":
        return cls(path=archive.read_string("path"))
    
    def summary(self) -> str:
        return f"path:{self.path}"


@dataclass(frozen=True)
class SetDataTxn(TxnBody):
    """Body of setData and reconfig."""
    
    path: Optional[str]
    data_bytes: bytes
    version: int
    
    @classmethod
    def deserialize(cls, archive: BinaryInputArchive) -> "SetDataTxn":
        return cls(
            path=archive.read_string("path"),
            data_bytes=archive.read_buffer("data") or b"",
            version=archive.read_int("version"),
        )
    
    def summary(self) -> str:
        return f"path:{self.path} len:{len(self.data_bytes)}"
    
    def data(self) -> Optional[bytes]:
        return self.data_bytes


@dataclass(frozen=True)
class ErrorTxn(TxnBody):
    err: int
    
    @classmethod
    def deserialize(cls, archive: BinaryInputArchive) -> "ErrorTxn":
        return cls(err=archive.read_int("err"))
    
    def summary(self) -> str:
        return f"err:{self.err}"


@dataclass(frozen=True)
class SubTxn:
    """
    One operation inside a multi transaction.
    
    Attributes:
        type: Operation code of the sub-operation
        raw: Serialized sub-operation body
        body: Decoded body, or UnknownTxn if the body could not be decoded
    """
    
    type: int
    raw: bytes
    body: TxnBody


@dataclass(frozen=True)
class MultiTxn(TxnBody):
    txns: List[SubTxn]
    
    @classmethod
    def deserialize(cls, archive: BinaryInputArchive) -> "MultiTxn":
        def read_sub_txn(a: BinaryInputArchive) -> SubTxn:
            op = a.read_int("type")
            raw = a.read_buffer("data") or b""
            try:
                body = decode_body(op, BinaryInputArchive(raw))
            except DecodeError:
                # Undecodable sub-bodies keep their raw bytes
                body = UnknownTxn(type=op, raw=raw)
            return SubTxn(type=op, raw=raw, body=body)
        
        return cls(txns=archive.read_vector("txns", read_sub_txn))
    
    def summary(self) -> str:
        return f"len:{len(self.txns)}"
    
    def data(self) -> Optional[bytes]:
        return f"multi txn:{len(self.txns)}".encode("utf-8")


@dataclass(frozen=True)
class UnknownTxn(TxnBody):
    """
    Body of an operation code this reader does not decode.
    
    The raw bytes are kept so nothing is lost from a verbose dump.
    """
    
    type: int
    raw: bytes = b""
    
    UNKNOWN_PREFIX: ClassVar[str] = "unknown txn type"
    
    def summary(self) -> str:
        return f"{self.UNKNOWN_PREFIX}{self.type}"


BODY_TYPES: Dict[OpCode, Type[TxnBody]] = {
    OpCode.CREATE_SESSION: CreateSessionTxn,
    OpCode.CLOSE_SESSION: CloseSessionTxn,
    OpCode.CREATE: CreateTxn,
    OpCode.CREATE2: CreateTxn,
    OpCode.CREATE_CONTAINER: CreateContainerTxn,
    OpCode.DELETE: DeleteTxn,
    OpCode.DELETE_CONTAINER: DeleteTxn,
    OpCode.SET_DATA: SetDataTxn,
    OpCode.RECONFIG: SetDataTxn,
    OpCode.ERROR: ErrorTxn,
    OpCode.MULTI: MultiTxn,
}


def decode_body(op: int, archive: BinaryInputArchive) -> TxnBody:
    """
    Decode the body for operation code ``op`` from ``archive``.
    
    Codes without an entry in BODY_TYPES produce an UnknownTxn holding the
    undecoded remainder of the archive.
    
    Raises:
        DecodeError: If a known body is malformed or truncated
    """
    body_type = BODY_TYPES.get(op)
    if body_type is None:
        return UnknownTxn(type=op, raw=archive.read_rest())
    return body_type.deserialize(archive)
