"""Tests for sequential frame reading."""

import io
import struct

import pytest

from txntail.core.log.format import (
    FRAME_TRAILER,
    EmptyTail,
    Frame,
    FrameError,
    PartialTransactionError,
    TrueEof,
)
from txntail.core.log.reader import FrameReader


class TestFrameReader:
    """Test FrameReader classification of what follows the cursor."""
    
    def test_reads_complete_frame(self, make_frame):
        """Test reading one frame with its offset and checksum."""
        data = make_frame(b"payload", checksum=1234)
        reader = FrameReader(io.BytesIO(data))
        
        result = reader.read_next_frame()
        
        assert isinstance(result, Frame)
        assert result.offset == 0
        assert result.checksum == 1234
        assert result.payload == b"payload"
        assert result.trailer == FRAME_TRAILER
        assert result.end_offset == len(data)
        assert reader.tell() == len(data)
    
    def test_reads_consecutive_frames(self, make_frame):
        """Test that offsets advance frame by frame."""
        first = make_frame(b"one")
        second = make_frame(b"second")
        reader = FrameReader(io.BytesIO(first + second))
        
        a = reader.read_next_frame()
        b = reader.read_next_frame()
        
        assert a.payload == b"one"
        assert b.payload == b"second"
        assert b.offset == len(first)
        assert isinstance(reader.read_next_frame(), TrueEof)
    
    def test_empty_stream_is_true_eof(self):
        """Test that no bytes at all is a clean end of file."""
        result = FrameReader(io.BytesIO(b"")).read_next_frame()
        
        assert result == TrueEof(offset=0, pending_bytes=0)
    
    def test_zero_length_is_empty_tail(self, make_empty_tail):
        """Test that pre-allocated zeros are reported as an empty tail."""
        result = FrameReader(io.BytesIO(make_empty_tail(64))).read_next_frame()
        
        assert result == EmptyTail(offset=0)
    
    def test_empty_tail_after_frames(self, make_frame, make_empty_tail):
        """Test that an empty tail reports the offset where it starts."""
        data = make_frame(b"abc")
        reader = FrameReader(io.BytesIO(data + make_empty_tail()))
        
        reader.read_next_frame()
        
        assert reader.read_next_frame() == EmptyTail(offset=len(data))
    
    def test_partial_prefix_is_true_eof(self, make_frame):
        """Test that a truncated checksum/length prefix ends the read."""
        data = make_frame(b"abc")[:5]
        
        result = FrameReader(io.BytesIO(data)).read_next_frame()
        
        assert result == TrueEof(offset=0, pending_bytes=5)
    
    def test_partial_payload_is_true_eof(self, make_frame):
        """Test that a truncated payload ends the read."""
        data = make_frame(b"abcdef")[:14]
        
        result = FrameReader(io.BytesIO(data)).read_next_frame()
        
        assert isinstance(result, TrueEof)
        assert result.pending_bytes == 14
    
    def test_wrong_trailer_is_partial_transaction(self, make_frame):
        """Test that a trailer other than 'B' is fatal."""
        data = make_frame(b"abc", trailer=b"X")
        
        with pytest.raises(PartialTransactionError, match="partial"):
            FrameReader(io.BytesIO(data)).read_next_frame()
    
    def test_zero_trailer_is_partial_transaction(self, make_frame):
        """Test that a frame followed by pre-allocated zeros is fatal."""
        data = make_frame(b"abc", trailer=b"\x00")
        
        with pytest.raises(PartialTransactionError):
            FrameReader(io.BytesIO(data)).read_next_frame()
    
    def test_missing_trailer_is_partial_transaction(self, make_frame):
        """Test that a frame cut off right before its trailer is fatal."""
        data = make_frame(b"abc", trailer=b"")
        
        with pytest.raises(PartialTransactionError, match="missing trailer"):
            FrameReader(io.BytesIO(data)).read_next_frame()
    
    def test_negative_length_rejected(self):
        """Test that a negative length prefix is fatal."""
        data = struct.pack(">Qi", 0, -5) + b"xxxxx"
        
        with pytest.raises(FrameError, match="Unreasonable frame length"):
            FrameReader(io.BytesIO(data)).read_next_frame()
    
    def test_oversized_length_rejected(self):
        """Test that a length above the limit is fatal."""
        data = struct.pack(">Qi", 0, 1000) + b"x" * 1000 + b"B"
        
        with pytest.raises(FrameError):
            FrameReader(io.BytesIO(data), max_frame_size=999).read_next_frame()
    
    def test_rewind_rereads_same_range(self, make_frame, make_empty_tail):
        """Test that rewinding after an empty tail sees newly written bytes."""
        stream = io.BytesIO(make_empty_tail(32))
        reader = FrameReader(stream)
        
        assert reader.read_next_frame() == EmptyTail(offset=0)
        
        stream.seek(0)
        stream.write(make_frame(b"late"))
        reader.rewind(0)
        
        result = reader.read_next_frame()
        
        assert isinstance(result, Frame)
        assert result.payload == b"late"
        assert result.offset == 0
    
    def test_frame_size(self):
        """Test on-disk frame size accounting."""
        frame = Frame(offset=10, checksum=0, payload=b"12345")
        
        assert frame.size() == 8 + 4 + 5 + 1
        assert frame.end_offset == 28
