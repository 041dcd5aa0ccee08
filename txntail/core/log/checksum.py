"""
Frame checksum verification.

The log writer protects each frame's payload with Adler-32, a rolling
additive checksum. CRC-32C is supported for writers configured to use it.
"""

import zlib
from typing import Callable, Dict

import crc32c


def _adler32(payload: bytes) -> int:
    return zlib.adler32(payload) & 0xFFFFFFFF


def _crc32c(payload: bytes) -> int:
    return crc32c.crc32c(payload)


ALGORITHMS: Dict[str, Callable[[bytes], int]] = {
    "adler32": _adler32,
    "crc32c": _crc32c,
}


class ChecksumVerifier:
    """
    Computes and verifies 32-bit payload checksums.
    
    Attributes:
        algorithm: Name of the checksum algorithm in use
    """
    
    def __init__(self, algorithm: str = "adler32"):
        """
        Args:
            algorithm: One of the keys of ALGORITHMS
        
        Raises:
            ValueError: If the algorithm is not supported
        """
        try:
            self._compute = ALGORITHMS[algorithm]
        except KeyError:
            raise ValueError(
                f"Unsupported checksum algorithm: {algorithm!r} "
                f"(expected one of {', '.join(sorted(ALGORITHMS))})"
            ) from None
        self.algorithm = algorithm
    
    def compute(self, payload: bytes) -> int:
        return self._compute(payload)
    
    def verify(self, payload: bytes, expected: int) -> bool:
        """Return True if ``expected`` matches the checksum of ``payload``."""
        return self._compute(payload) == expected
