import pytest
import snappy

from demo_parser.commands import DEM_IS_COMPRESSED
from demo_parser.protobufs import demomessages
from demo_parser.stream import DEMO_MAGIC
from demo_parser.varint import write_varint32


def build_header(magic=DEMO_MAGIC, summary_offset=0, packet_offset=0):
    return magic + summary_offset.to_bytes(4, "little") + packet_offset.to_bytes(4, "little")


def build_record(kind, payload=b"", tick=0, compressed=False):
    if compressed:
        payload = snappy.compress(payload)
        kind |= DEM_IS_COMPRESSED
    return write_varint32(kind) + write_varint32(tick) + write_varint32(len(payload)) + payload


def build_demo(*records, magic=DEMO_MAGIC):
    return build_header(magic) + b"".join(records)


class BitWriter:
    """LSB-first writer, the mirror of BitReader."""

    def __init__(self):
        self.bits = []

    def write_bits(self, value, n):
        for i in range(n):
            self.bits.append((value >> i) & 1)

    def write_ubitvar(self, value):
        if value < 0x10:
            self.write_bits(value, 6)
        elif value < 0x100:
            self.write_bits((value & 0x0F) | 0x10, 6)
            self.write_bits(value >> 4, 4)
        elif value < 0x1000:
            self.write_bits((value & 0x0F) | 0x20, 6)
            self.write_bits(value >> 4, 8)
        else:
            self.write_bits((value & 0x0F) | 0x30, 6)
            self.write_bits(value >> 4, 28)

    def getvalue(self):
        out = bytearray((len(self.bits) + 7) // 8)
        for i, bit in enumerate(self.bits):
            out[i >> 3] |= bit << (i & 7)
        return bytes(out)


@pytest.fixture
def file_header_bytes():
    msg = demomessages.CDemoFileHeader(
        demo_file_stamp="PBDEMS2",
        client_name="SourceTV Demo",
        map_name="de_nuke",
        server_name="Valve CS2 Server",
        game_directory="/home/server/csgo",
    )
    return msg.SerializeToString()
