"""
Shared fixtures: encoders for building transaction log files in tests.

The library only reads logs; these helpers produce the bytes a server
would write so tests can exercise the reader end to end.
"""

import struct
import zlib
from pathlib import Path
from typing import Iterable, List, Optional

import pytest

from txntail.core.log.format import TXNLOG_MAGIC


def enc_int(value: int) -> bytes:
    return struct.pack(">i", value)


def enc_long(value: int) -> bytes:
    return struct.pack(">q", value)


def enc_bool(value: bool) -> bytes:
    return b"\x01" if value else b"\x00"


def enc_buffer(value: Optional[bytes]) -> bytes:
    if value is None:
        return enc_int(-1)
    return enc_int(len(value)) + value


def enc_string(value: Optional[str]) -> bytes:
    return enc_buffer(None if value is None else value.encode("utf-8"))


def enc_vector(items: Optional[Iterable[bytes]]) -> bytes:
    if items is None:
        return enc_int(-1)
    items = list(items)
    return enc_int(len(items)) + b"".join(items)


class TxnEncoder:
    """Serializes transaction headers and bodies."""
    
    @staticmethod
    def header(
        op: int,
        client_id: int = 0x100,
        cxid: int = 1,
        zxid: int = 0x200000001,
        time: int = 1700000000123,
    ) -> bytes:
        return enc_long(client_id) + enc_int(cxid) + enc_long(zxid) + enc_long(time) + enc_int(op)
    
    @staticmethod
    def acl(perms: int = 31, scheme: str = "world", ident: str = "anyone") -> bytes:
        return enc_int(perms) + enc_string(scheme) + enc_string(ident)
    
    @classmethod
    def create(
        cls,
        path: str,
        data: bytes,
        ephemeral: bool = False,
        parent_cversion: Optional[int] = 1,
    ) -> bytes:
        body = enc_string(path) + enc_buffer(data) + enc_vector([cls.acl()]) + enc_bool(ephemeral)
        if parent_cversion is not None:
            body += enc_int(parent_cversion)
        return body
    
    @classmethod
    def create_container(cls, path: str, data: bytes, parent_cversion: int = 1) -> bytes:
        return enc_string(path) + enc_buffer(data) + enc_vector([cls.acl()]) + enc_int(parent_cversion)
    
    @staticmethod
    def create_session(timeout: int) -> bytes:
        return enc_int(timeout)
    
    @staticmethod
    def close_session(paths: Optional[List[str]] = None) -> bytes:
        if paths is None:
            return b""
        return enc_vector([enc_string(p) for p in paths])
    
    @staticmethod
    def delete(path: str) -> bytes:
        return enc_string(path)
    
    @staticmethod
    def set_data(path: str, data: bytes, version: int = 0) -> bytes:
        return enc_string(path) + enc_buffer(data) + enc_int(version)
    
    @staticmethod
    def error(err: int) -> bytes:
        return enc_int(err)
    
    @staticmethod
    def multi(sub_txns: List[tuple]) -> bytes:
        """Encode a multi body from (op, body_bytes) pairs."""
        return enc_vector([enc_int(op) + enc_buffer(body) for op, body in sub_txns])
    
    @classmethod
    def txn(cls, op: int, body: bytes = b"", **header_fields) -> bytes:
        return cls.header(op, **header_fields) + body


def file_header(magic: int = TXNLOG_MAGIC, version: int = 2, dbid: int = 7) -> bytes:
    return struct.pack(">iiq", magic, version, dbid)


def frame(payload: bytes, checksum: Optional[int] = None, trailer: bytes = b"B") -> bytes:
    """Encode one frame; the checksum defaults to Adler-32 of the payload."""
    if checksum is None:
        checksum = zlib.adler32(payload) & 0xFFFFFFFF
    return struct.pack(">Qi", checksum, len(payload)) + payload + trailer


def empty_tail(size: int = 64) -> bytes:
    """Zero-filled pre-allocated space."""
    return b"\x00" * size


@pytest.fixture
def txn():
    """Transaction encoder."""
    return TxnEncoder


@pytest.fixture
def make_frame():
    return frame


@pytest.fixture
def make_file_header():
    return file_header


@pytest.fixture
def make_empty_tail():
    return empty_tail


@pytest.fixture
def write_log(tmp_path):
    """
    Write a log file and return its path.
    
    Usage:
        path = write_log([frame(payload)], tail=empty_tail())
    """
    counter = {"n": 0}
    
    def _write(
        frames: Iterable[bytes] = (),
        header: Optional[bytes] = None,
        tail: bytes = b"",
        name: Optional[str] = None,
    ) -> Path:
        counter["n"] += 1
        path = tmp_path / (name or f"log.{counter['n']:08x}")
        data = (file_header() if header is None else header) + b"".join(frames) + tail
        path.write_bytes(data)
        return path
    
    return _write
