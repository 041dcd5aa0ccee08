"""
Log tailing driver and command-line interface.
"""

from txntail.tailer.driver import (
    CancellableWait,
    LogTailer,
    TailerConfig,
    TailerState,
    TailInterrupted,
    TailState,
)

__all__ = [
    "CancellableWait",
    "LogTailer",
    "TailerConfig",
    "TailerState",
    "TailInterrupted",
    "TailState",
]
