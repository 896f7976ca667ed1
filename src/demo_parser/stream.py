import logging
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import cramjam
import snappy

from .buffer import MIN_ALLOCATION, DecompressionBuffer
from .commands import DEM_IS_COMPRESSED, command_name
from .errors import (
    DecompressError,
    FatalStreamError,
    FrameOverrunError,
    InvalidHeaderError,
    MalformedVarintError,
    StalePayloadError,
)
from .varint import read_varint32

DEMO_MAGIC = b"PBDEMS2\x00"

# Header: [Magic(8) | SummaryOffset(4) | PacketOffset(4)] = 16 bytes
DEMO_HEADER_FMT = "<8sII"
DEMO_HEADER_SIZE = struct.calcsize(DEMO_HEADER_FMT)


@dataclass(frozen=True)
class DemoHeader:
    magic: bytes
    summary_offset: int
    packet_offset: int

    @classmethod
    def parse(cls, data) -> "DemoHeader":
        if len(data) < DEMO_HEADER_SIZE:
            raise InvalidHeaderError(
                f"Demo is {len(data)} bytes, shorter than its {DEMO_HEADER_SIZE} byte header")
        magic, summary_offset, packet_offset = struct.unpack_from(DEMO_HEADER_FMT, data, 0)
        return cls(magic, summary_offset, packet_offset)

    @property
    def is_known_magic(self) -> bool:
        return self.magic == DEMO_MAGIC


class PayloadSource(Enum):
    RAW = "raw"          # slice of the demo file itself
    SCRATCH = "scratch"  # slice of the decompression buffer


class StreamStatus(Enum):
    READING = "reading"
    END = "end"
    FATAL = "fatal"


@dataclass(frozen=True, eq=False)
class Record:
    """
    One framed demo command. The payload is a view, never a copy: for
    compressed records it points into the parser's decompression buffer and
    goes stale as soon as the next compressed record is read.
    """

    kind: int
    tick: int
    size: int
    compressed: bool
    offset: int
    source: PayloadSource
    view: memoryview
    buffer: Optional[DecompressionBuffer] = None
    generation: int = 0

    @property
    def name(self) -> str:
        return command_name(self.kind)

    @property
    def length(self) -> int:
        return len(self.view)

    def is_valid(self) -> bool:
        if self.source is PayloadSource.RAW:
            return True
        return self.buffer is not None and self.buffer.generation == self.generation

    @property
    def data(self) -> memoryview:
        if not self.is_valid():
            raise StalePayloadError(
                f"Payload of {self.name} record at offset {self.offset} was overwritten")
        return self.view


class DemoStreamParser:
    """Walks the records of an in-memory demo, one call at a time."""

    def __init__(
        self,
        data,
        min_buffer_size: int = MIN_ALLOCATION,
        strict_magic: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        self.log = logger or logging.getLogger(__name__)
        self.data = data
        self.data_size = len(data)
        self._view = memoryview(data)

        self.header = DemoHeader.parse(data)
        if not self.header.is_known_magic:
            msg = f"Unexpected demo magic {self.header.magic!r}, expected {DEMO_MAGIC!r}"
            if strict_magic:
                raise InvalidHeaderError(msg)
            self.log.warning(msg)

        self.pos = DEMO_HEADER_SIZE
        self.buffer = DecompressionBuffer(min_buffer_size, logger=self.log)
        self.status = StreamStatus.READING

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self) -> None:
        self.buffer.release()
        if self.status is StreamStatus.READING:
            self.status = StreamStatus.END

    def progress(self) -> float:
        if not self.data_size:
            return 100.0
        return self.pos / self.data_size * 100.0

    def _read_varint(self) -> int:
        try:
            value, consumed = read_varint32(self.data, self.pos)
        except MalformedVarintError:
            # framing is lost, nothing after this point can be trusted
            self.pos = self.data_size
            raise
        self.pos += consumed
        return value

    def next_record(self) -> Optional[Record]:
        """
        Returns the next record, or None once the end of data is reached.
        Raises a DecodeError for a record that cannot be framed or
        decompressed; calling again moves on to the following record.
        """
        if self.status is StreamStatus.FATAL:
            raise FatalStreamError("Stream is in a fatal state")
        if self.status is StreamStatus.END:
            return None
        if self.pos >= self.data_size:
            self.log.debug("Reached end of stream")
            self.status = StreamStatus.END
            return None

        offset = self.pos
        cmd_raw = self._read_varint()
        tick = self._read_varint()
        size = self._read_varint()

        kind = cmd_raw & ~DEM_IS_COMPRESSED
        compressed = bool(cmd_raw & DEM_IS_COMPRESSED)
        assert not kind & DEM_IS_COMPRESSED

        self.log.debug(
            f"Type: {command_name(kind)} ({kind}) Compressed: {compressed} Size: {size} Tick: {tick}")

        start = self.pos
        end = start + size
        if end > self.data_size:
            self.pos = self.data_size
            raise FrameOverrunError(
                f"Record at offset {offset} declares {size} bytes, "
                f"only {self.data_size - start} left")

        # the outer cursor always moves by the framed size
        self.pos = end
        raw = self._view[start:end]

        if not compressed:
            return Record(kind, tick, size, False, offset, PayloadSource.RAW, raw)

        payload = self._decompress(raw, offset)
        return Record(
            kind, tick, size, True, offset, PayloadSource.SCRATCH, payload,
            buffer=self.buffer, generation=self.buffer.generation,
        )

    def _decompress(self, compressed: memoryview, offset: int) -> memoryview:
        self.log.debug("Decompressing packet...")
        block = compressed.tobytes()

        if not snappy.isValidCompressed(block):
            raise DecompressError(f"Invalid snappy block in record at offset {offset}")

        try:
            required = cramjam.snappy.decompress_raw_len(block)
        except cramjam.DecompressionError as e:
            raise DecompressError(
                f"Failed to calculate decompressed size of record at offset {offset}: {e}") from e
        self.log.debug(f"Uncompressed size: {required}")

        try:
            dest = self.buffer.acquire(required)
        except FatalStreamError:
            self.status = StreamStatus.FATAL
            raise

        try:
            actual = cramjam.snappy.decompress_raw_into(block, dest)
        except cramjam.DecompressionError as e:
            raise DecompressError(f"Failed to decompress record at offset {offset}: {e}") from e

        if actual != required:
            raise DecompressError(
                f"Record at offset {offset} decompressed to {actual} bytes, expected {required}")

        return self.buffer.view(actual)
