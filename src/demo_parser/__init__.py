"""Reader for CS2 demo (.dem) files."""
from .bitreader import BitReader, read_ubitvar
from .buffer import DecompressionBuffer
from .dispatcher import DecodedRecord, RecordDispatcher
from .session import SessionSummary, decode_demo
from .stream import DemoHeader, DemoStreamParser, PayloadSource, Record, StreamStatus
from .varint import read_varint32, write_varint32

__all__ = [
    "BitReader",
    "read_ubitvar",
    "DecompressionBuffer",
    "DecodedRecord",
    "RecordDispatcher",
    "SessionSummary",
    "decode_demo",
    "DemoHeader",
    "DemoStreamParser",
    "PayloadSource",
    "Record",
    "StreamStatus",
    "read_varint32",
    "write_varint32",
]
