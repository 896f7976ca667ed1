import logging
from typing import Optional

from .errors import BufferAllocationError

MIN_ALLOCATION = 1024 * 1024


class DecompressionBuffer:
    """
    Scratch space for decompressed record payloads, reused for the whole
    session. It only grows, and only when a payload does not fit.

    Every acquire bumps ``generation`` so views handed out for an earlier
    payload can be recognised as stale.
    """

    def __init__(self, min_size: int = MIN_ALLOCATION, logger: Optional[logging.Logger] = None):
        if min_size <= 0:
            raise ValueError("min_size must be positive")
        self.min_size = min_size
        self.log = logger or logging.getLogger(__name__)
        self._buf: Optional[bytearray] = None
        self.allocations = 0
        self.generation = 0

    @property
    def capacity(self) -> int:
        return len(self._buf) if self._buf is not None else 0

    def ensure_capacity(self, required: int) -> None:
        if self._buf is not None and len(self._buf) >= required:
            return

        alloc_size = max(required, self.min_size)
        if self._buf is None:
            self.log.debug(f"Allocating {alloc_size} bytes for uncompressed buffer")
        else:
            self.log.debug(f"Reallocating uncompressed buffer from {len(self._buf)} to {alloc_size}")

        try:
            buf = bytearray(alloc_size)
        except MemoryError as e:
            raise BufferAllocationError(
                f"Failed to allocate {alloc_size} bytes for uncompressed buffer") from e

        self._buf = buf
        self.allocations += 1

    def acquire(self, required: int) -> bytearray:
        """
        Hand out the storage for the next payload of `required` bytes.
        Views from earlier payloads are stale from here on.
        """
        self.ensure_capacity(required)
        self.generation += 1
        return self._buf

    def view(self, n: int) -> memoryview:
        if self._buf is None or n > len(self._buf):
            raise ValueError(f"Buffer holds {self.capacity} bytes, asked for a view of {n}")
        return memoryview(self._buf)[:n]

    def release(self) -> None:
        self._buf = None
