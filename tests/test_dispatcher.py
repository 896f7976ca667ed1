import logging

import pytest

from demo_parser.commands import (
    DEM_CLASS_INFO,
    DEM_FILE_HEADER,
    DEM_FILE_INFO,
    DEM_PACKET,
    DEM_SEND_TABLES,
    DEM_SYNC_TICK,
)
from demo_parser.dispatcher import RecordDispatcher
from demo_parser.errors import BitstreamOverrunError, FrameOverrunError, MessageDecodeError
from demo_parser.protobufs import demomessages, parse_demo_payload
from demo_parser.stream import DemoStreamParser, PayloadSource, Record
from demo_parser.varint import write_varint32

from conftest import BitWriter, build_demo, build_record


def make_record(kind, payload, tick=0):
    return Record(kind, tick, len(payload), False, 0, PayloadSource.RAW, memoryview(payload))


def flattened_serializer():
    msg = demomessages.CSVCMsg_FlattenedSerializer()
    msg.symbols.extend(["CCSPlayerPawn", "m_iHealth", "int32"])
    serializer = msg.serializers.add()
    serializer.serializer_name_sym = 0
    serializer.serializer_version = 3
    serializer.fields_index.extend([0])
    field = msg.fields.add()
    field.var_type_sym = 2
    field.var_name_sym = 1
    return msg


def test_file_header(file_header_bytes, caplog):
    with caplog.at_level(logging.INFO):
        decoded = RecordDispatcher().handle(make_record(DEM_FILE_HEADER, file_header_bytes, tick=7))
    assert decoded.kind == DEM_FILE_HEADER
    assert decoded.tick == 7
    assert decoded.message.map_name == "de_nuke"
    assert decoded.message.demo_file_stamp == "PBDEMS2"
    assert "Map name: de_nuke" in caplog.text


def test_file_info():
    info = demomessages.CDemoFileInfo(playback_time=61.5, playback_ticks=3936, playback_frames=1968)
    info.game_info.cs.round_start_ticks.extend([100, 2000, 4000])
    decoded = RecordDispatcher().handle(make_record(DEM_FILE_INFO, info.SerializeToString()))
    assert decoded.message.playback_ticks == 3936
    assert list(decoded.message.game_info.cs.round_start_ticks) == [100, 2000, 4000]


def test_class_info(caplog):
    msg = demomessages.CDemoClassInfo()
    entry = msg.classes.add()
    entry.class_id = 12
    entry.network_name = "CCSPlayerPawn"
    entry.table_name = "CCSPlayerPawn"
    with caplog.at_level(logging.INFO):
        decoded = RecordDispatcher().handle(make_record(DEM_CLASS_INFO, msg.SerializeToString()))
    assert decoded.message.classes[0].class_id == 12
    assert "Class ID: 12" in caplog.text


def test_send_tables_decodes_inner_serializer():
    inner = flattened_serializer().SerializeToString()
    # bytes after the framed serializer must not reach its decoder
    blob = write_varint32(len(inner)) + inner + b"\xff\xff\xff"
    outer = demomessages.CDemoSendTables(data=blob).SerializeToString()

    decoded = RecordDispatcher().handle(make_record(DEM_SEND_TABLES, outer))
    assert list(decoded.inner.symbols) == ["CCSPlayerPawn", "m_iHealth", "int32"]
    assert decoded.inner.serializers[0].serializer_version == 3
    assert len(decoded.inner.fields) == 1


def test_send_tables_inner_overrun():
    inner = flattened_serializer().SerializeToString()
    blob = write_varint32(len(inner) + 10) + inner
    outer = demomessages.CDemoSendTables(data=blob).SerializeToString()
    with pytest.raises(FrameOverrunError):
        RecordDispatcher().handle(make_record(DEM_SEND_TABLES, outer))


@pytest.mark.parametrize("packet_id", [4, 40, 55, 0x123, 0x10000])
def test_packet_id(packet_id):
    writer = BitWriter()
    writer.write_ubitvar(packet_id)
    writer.write_bits(0x3FF, 10)
    packet = demomessages.CDemoPacket(data=writer.getvalue()).SerializeToString()

    decoded = RecordDispatcher().handle(make_record(DEM_PACKET, packet))
    assert decoded.packet_id == packet_id


def test_packet_id_is_named(caplog):
    packet = demomessages.CDemoPacket(data=b"\x98\x00").SerializeToString()
    with caplog.at_level(logging.INFO):
        decoded = RecordDispatcher().handle(make_record(DEM_PACKET, packet))
    assert decoded.packet_id == 40
    assert "svc_ServerInfo" in caplog.text


def test_packet_without_data():
    decoded = RecordDispatcher().handle(make_record(DEM_PACKET, b""))
    assert decoded.packet_id is None


def test_packet_with_truncated_id():
    packet = demomessages.CDemoPacket(data=b"\x30").SerializeToString()
    with pytest.raises(BitstreamOverrunError):
        RecordDispatcher().handle(make_record(DEM_PACKET, packet))


def test_unknown_kind_is_ignored():
    assert RecordDispatcher().handle(make_record(DEM_SYNC_TICK, b"\x01\x02")) is None
    assert RecordDispatcher().handle(make_record(42, b"")) is None


def test_malformed_message():
    with pytest.raises(MessageDecodeError):
        RecordDispatcher().handle(make_record(DEM_FILE_HEADER, b"\x0a\x05ab"))


def test_missing_required_field():
    with pytest.raises(MessageDecodeError):
        RecordDispatcher().handle(make_record(DEM_FILE_HEADER, b""))


def test_parse_demo_payload_without_schema():
    assert parse_demo_payload(DEM_SYNC_TICK, b"") is None


def test_compressed_payload_reaches_codec(file_header_bytes):
    data = build_demo(build_record(DEM_FILE_HEADER, file_header_bytes, compressed=True))
    record = DemoStreamParser(data).next_record()
    decoded = RecordDispatcher().handle(record)
    assert decoded.message.client_name == "SourceTV Demo"
