"""
Log tailing driver.

Reads the file header once, then loops over frames: read, verify, decode,
format, count. A zero-length frame means the reader has caught up with
the writer inside pre-allocated space; the driver sleeps, seeks back to
the start of that frame and tries again. The true end of the file ends
the run.

State transitions:
    INIT → HEADER_READ → FRAME_WAIT
    FRAME_WAIT → FRAME_READY → EMIT → FRAME_WAIT
    FRAME_WAIT → TAIL_WAIT → SLEEP → REWIND → FRAME_WAIT
    FRAME_WAIT → DONE
    SLEEP → CANCELLED
    any non-terminal state → FATAL
"""

import select
import socket
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Optional, TextIO, Tuple, Union

from structlog.stdlib import BoundLogger

from txntail.core.log import (
    ChecksumMismatchError,
    ChecksumVerifier,
    EmptyTail,
    FileHeader,
    Frame,
    FrameReader,
    PartialTransactionError,
    TrueEof,
    TxnLogError,
    read_file_header,
)
from txntail.core.log.checksum import ALGORITHMS
from txntail.core.log.format import DEFAULT_MAX_FRAME_SIZE
from txntail.core.txn import TxnFormatter, UnknownTxn, decode_txn
from txntail.utils.config import Config
from txntail.utils.logging import get_logger

logger = get_logger(__name__)


class TailInterrupted(TxnLogError):
    """A tail wait was cancelled before the retry could run."""
    
    def __init__(self, records_processed: int):
        super().__init__(f"Tail wait interrupted after {records_processed} txns")
        self.records_processed = records_processed


class TailerState(Enum):
    """Driver lifecycle states."""
    
    INIT = "INIT"
    HEADER_READ = "HEADER_READ"
    FRAME_WAIT = "FRAME_WAIT"
    FRAME_READY = "FRAME_READY"
    EMIT = "EMIT"
    TAIL_WAIT = "TAIL_WAIT"
    SLEEP = "SLEEP"
    REWIND = "REWIND"
    DONE = "DONE"
    CANCELLED = "CANCELLED"
    FATAL = "FATAL"
    
    def is_terminal(self) -> bool:
        """Check if state is terminal."""
        return self in (TailerState.DONE, TailerState.CANCELLED, TailerState.FATAL)
    
    def can_transition_to(self, new_state: "TailerState") -> bool:
        """
        Check if transition to new state is valid.
        
        Args:
            new_state: Target state
        
        Returns:
            True if transition is valid
        """
        if new_state == TailerState.FATAL:
            return not self.is_terminal()
        
        valid_transitions = {
            TailerState.INIT: {TailerState.HEADER_READ},
            TailerState.HEADER_READ: {TailerState.FRAME_WAIT},
            TailerState.FRAME_WAIT: {
                TailerState.FRAME_READY,
                TailerState.TAIL_WAIT,
                TailerState.DONE,
                TailerState.CANCELLED,
            },
            TailerState.FRAME_READY: {TailerState.EMIT},
            TailerState.EMIT: {TailerState.FRAME_WAIT},
            TailerState.TAIL_WAIT: {TailerState.SLEEP},
            TailerState.SLEEP: {TailerState.REWIND, TailerState.CANCELLED},
            TailerState.REWIND: {TailerState.FRAME_WAIT},
        }
        
        return new_state in valid_transitions.get(self, set())


@dataclass
class TailerConfig:
    """
    Settings for a tailing run.
    
    Attributes:
        poll_interval_ms: Wait before re-reading an empty tail
        verbose_poll_interval_ms: Wait used instead in verbose mode
        checksum: Frame checksum algorithm name
        max_frame_size: Largest payload length accepted
    """
    
    poll_interval_ms: int = 500
    verbose_poll_interval_ms: int = 5000
    checksum: str = "adler32"
    max_frame_size: int = DEFAULT_MAX_FRAME_SIZE
    
    def __post_init__(self) -> None:
        if self.poll_interval_ms < 0:
            raise ValueError(f"poll_interval_ms must be non-negative, got {self.poll_interval_ms}")
        if self.verbose_poll_interval_ms < 0:
            raise ValueError(
                f"verbose_poll_interval_ms must be non-negative, got {self.verbose_poll_interval_ms}"
            )
        if self.max_frame_size <= 0:
            raise ValueError(f"max_frame_size must be positive, got {self.max_frame_size}")
        if self.checksum not in ALGORITHMS:
            raise ValueError(
                f"checksum must be one of {', '.join(sorted(ALGORITHMS))}, got {self.checksum!r}"
            )
    
    @classmethod
    def from_config(cls, config: Config) -> "TailerConfig":
        return cls(
            poll_interval_ms=int(config.get("tail.poll_interval_ms", 500)),
            verbose_poll_interval_ms=int(config.get("tail.verbose_poll_interval_ms", 5000)),
            checksum=str(config.get("log.checksum", "adler32")),
            max_frame_size=int(config.get("log.max_frame_size", DEFAULT_MAX_FRAME_SIZE)),
        )


@dataclass
class TailState:
    """
    Mutable state of a tailing run, owned by the driver.
    
    Attributes:
        file_path: Log file being read
        handle: Open binary handle on the log file
        current_offset: Offset of the next frame to read
        records_processed: Transactions emitted so far
        poll_interval: Tail wait in seconds
        poll_interval_verbose: Tail wait in seconds for verbose runs
    """
    
    file_path: Path
    handle: Optional[BinaryIO] = None
    current_offset: int = 0
    records_processed: int = 0
    poll_interval: float = 0.5
    poll_interval_verbose: float = 5.0


class CancellableWait:
    """
    Interruptible sleep.
    
    ``wait`` returns as soon as ``cancel`` is called, either from another
    thread or from a signal handler that interrupts ``wait`` on the same
    thread. ``cancel`` takes no locks: it sets a flag and writes one byte
    to a non-blocking socket that ``wait`` selects on.
    """
    
    def __init__(self):
        self._cancelled = False
        self._wakeup: Optional[Tuple[socket.socket, socket.socket]] = None
    
    @property
    def cancelled(self) -> bool:
        return self._cancelled
    
    def cancel(self) -> None:
        self._cancelled = True
        wakeup = self._wakeup
        if wakeup is None:
            return
        try:
            wakeup[1].send(b"\0")
        except BlockingIOError:
            # Buffer full, a wakeup is already pending
            pass
    
    def wait(self, timeout: float) -> bool:
        """
        Sleep for up to ``timeout`` seconds.
        
        Returns:
            True if the wait was cancelled
        """
        if self._wakeup is None:
            reader, writer = socket.socketpair()
            reader.setblocking(False)
            writer.setblocking(False)
            self._wakeup = (reader, writer)
        
        # Socket first, flag second: a cancel after the check always has a wakeup target
        if self._cancelled:
            return True
        select.select([self._wakeup[0]], [], [], timeout)
        return self._cancelled
    
    def close(self) -> None:
        wakeup, self._wakeup = self._wakeup, None
        if wakeup is not None:
            for sock in wakeup:
                sock.close()


class LogTailer:
    """
    Renders a transaction log as text, following it as it grows.
    
    Usage:
        tailer = LogTailer(Path("log.100000001"), show_data=True)
        count = tailer.run()
    """
    
    def __init__(
        self,
        path: Union[str, Path],
        config: Optional[TailerConfig] = None,
        show_data: bool = False,
        verbose: bool = False,
        out: Optional[TextIO] = None,
        reporter: Optional[BoundLogger] = None,
        waiter: Optional[CancellableWait] = None,
    ):
        """
        Initialize a log tailer.
        
        Args:
            path: Transaction log file to read
            config: Tailing settings; defaults apply if None
            show_data: Emit payload text for each record
            verbose: Emit body dumps, announce tail waits, wait longer
            out: Stream receiving rendered history (stdout if None)
            reporter: Bound logger receiving diagnostics
            waiter: Cancellable wait used between tail polls
        """
        self.config = config or TailerConfig()
        self.verbose = verbose
        self.out = out if out is not None else sys.stdout
        self._owns_waiter = waiter is None
        self.waiter = waiter if waiter is not None else CancellableWait()
        
        self._reporter = reporter if reporter is not None else logger
        self._verifier = ChecksumVerifier(self.config.checksum)
        self._formatter = TxnFormatter(show_data=show_data, verbose=verbose)
        
        self.state = TailerState.INIT
        self.tail = TailState(
            file_path=Path(path),
            poll_interval=self.config.poll_interval_ms / 1000,
            poll_interval_verbose=self.config.verbose_poll_interval_ms / 1000,
        )
    
    @property
    def records_processed(self) -> int:
        return self.tail.records_processed
    
    def _transition(self, new_state: TailerState) -> None:
        if not self.state.can_transition_to(new_state):
            raise RuntimeError(
                f"Invalid tailer transition {self.state.value} -> {new_state.value}"
            )
        self.state = new_state
    
    def _emit(self, line: str) -> None:
        print(line, file=self.out, flush=True)
    
    def run(self) -> int:
        """
        Read the log until its true end.
        
        Returns:
            Number of transactions emitted
        
        Raises:
            HeaderError: If the file is not a transaction log
            ChecksumMismatchError: If a frame fails verification
            PartialTransactionError: If a frame trailer is missing or wrong
            FrameError: If a frame length is implausible
            DecodeError: If a verified payload cannot be decoded
            TailInterrupted: If a tail wait is cancelled
        """
        # Unbuffered: a buffered reader may serve a rewind from stale bytes
        with open(self.tail.file_path, "rb", buffering=0) as fd:
            self.tail.handle = fd
            try:
                return self._run(fd)
            except TailInterrupted:
                raise
            except PartialTransactionError as e:
                self._reporter.error(
                    "Last transaction was partial",
                    offset=self.tail.current_offset,
                    error=str(e),
                )
                self._transition(TailerState.FATAL)
                raise
            except TxnLogError:
                self._transition(TailerState.FATAL)
                raise
            finally:
                self.tail.handle = None
                if self._owns_waiter:
                    self.waiter.close()
    
    def _run(self, fd: BinaryIO) -> int:
        self._transition(TailerState.HEADER_READ)
        header = read_file_header(fd)
        self._announce(header)
        
        self.tail.current_offset = fd.tell()
        reader = FrameReader(fd, max_frame_size=self.config.max_frame_size)
        
        while True:
            self._transition(TailerState.FRAME_WAIT)
            if self.waiter.cancelled:
                self._cancel()
            
            result = reader.read_next_frame()
            
            if isinstance(result, Frame):
                self._transition(TailerState.FRAME_READY)
                self._process_frame(result)
            elif isinstance(result, EmptyTail):
                self._transition(TailerState.TAIL_WAIT)
                self._wait_for_writer(reader, result)
            else:
                self._finish(result)
                return self.tail.records_processed
    
    def _announce(self, header: FileHeader) -> None:
        self._reporter.debug(
            "Read log file header",
            path=str(self.tail.file_path),
            dbid=header.dbid,
            version=header.version,
        )
        self._emit(
            f"Transactional log file with dbid {header.dbid} "
            f"txnlog format version {header.version}"
        )
    
    def _process_frame(self, frame: Frame) -> None:
        if not self._verifier.verify(frame.payload, frame.checksum):
            computed = self._verifier.compute(frame.payload)
            self._reporter.error(
                "Checksum mismatch",
                offset=frame.offset,
                stored=frame.checksum,
                computed=computed,
                algorithm=self._verifier.algorithm,
            )
            raise ChecksumMismatchError(frame.offset, frame.checksum, computed)
        
        header, body = decode_txn(frame.payload)
        
        if isinstance(body, UnknownTxn):
            self._reporter.debug(
                "Unknown operation code",
                type=header.type,
                zxid=header.zxid,
                offset=frame.offset,
            )
        
        self._transition(TailerState.EMIT)
        for line in self._formatter.format(header, body):
            self._emit(line)
        
        self.tail.records_processed += 1
        self.tail.current_offset = frame.end_offset
    
    def _wait_for_writer(self, reader: FrameReader, tail: EmptyTail) -> None:
        count = self.tail.records_processed
        self.tail.current_offset = tail.offset
        
        if self.verbose:
            self._emit(f"EOF reached after {count} txns. Resetting.")
            self._reporter.info(
                "Reached unwritten tail",
                offset=tail.offset,
                records=count,
            )
        
        self._transition(TailerState.SLEEP)
        interval = self.tail.poll_interval_verbose if self.verbose else self.tail.poll_interval
        if self.waiter.wait(interval):
            self._cancel()
        
        self._transition(TailerState.REWIND)
        reader.rewind(tail.offset)
    
    def _cancel(self) -> None:
        self._transition(TailerState.CANCELLED)
        self._reporter.warning(
            "Tailing interrupted",
            offset=self.tail.current_offset,
            records=self.tail.records_processed,
        )
        raise TailInterrupted(self.tail.records_processed)
    
    def _finish(self, eof: TrueEof) -> None:
        if eof.pending_bytes:
            self._reporter.warning(
                "Partial frame at end of file",
                offset=eof.offset,
                pending_bytes=eof.pending_bytes,
            )
        self._transition(TailerState.DONE)
        self._emit(f"EOF reached after {self.tail.records_processed} txns.")
