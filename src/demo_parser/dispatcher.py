import logging
from dataclasses import dataclass
from typing import Any, Optional

from .bitreader import BitReader, read_ubitvar
from .commands import (
    DEM_CLASS_INFO,
    DEM_FILE_HEADER,
    DEM_FILE_INFO,
    DEM_PACKET,
    DEM_SEND_TABLES,
    svc_message_name,
)
from .errors import FrameOverrunError
from .protobufs import demomessages, parse_demo_payload, unpack
from .stream import Record
from .varint import read_varint32


@dataclass
class DecodedRecord:
    kind: int
    tick: int
    message: Any
    # CSVCMsg_FlattenedSerializer for send tables
    inner: Any = None
    # first net message id of a packet
    packet_id: Optional[int] = None


class RecordDispatcher:
    """Routes a framed record to the message codec for its kind."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.log = logger or logging.getLogger(__name__)
        self._handlers = {
            DEM_FILE_HEADER: self._handle_file_header,
            DEM_FILE_INFO: self._handle_file_info,
            DEM_PACKET: self._handle_packet,
            DEM_CLASS_INFO: self._handle_class_info,
            DEM_SEND_TABLES: self._handle_send_tables,
        }

    def handle(self, record: Record) -> Optional[DecodedRecord]:
        """
        Decode one record. Returns None for kinds we do not decode.
        Codec failures are raised as DecodeError subclasses.
        """
        handler = self._handlers.get(record.kind)
        if handler is None:
            self.log.debug(f"Unsupported packet type {record.kind}. Skipping")
            return None

        self.log.debug("Processing packet..")
        message = parse_demo_payload(record.kind, record.data)
        decoded = DecodedRecord(record.kind, record.tick, message)
        handler(decoded)
        return decoded

    def _handle_file_header(self, decoded: DecodedRecord) -> None:
        header = decoded.message
        self.log.info("File header:")
        self.log.info(f"  Client name: {header.client_name}")
        self.log.info(f"  Demo file stamp: {header.demo_file_stamp}")
        self.log.info(f"  Game directory: {header.game_directory}")
        self.log.info(f"  Map name: {header.map_name}")
        self.log.info(f"  Server name: {header.server_name}")

    def _handle_file_info(self, decoded: DecodedRecord) -> None:
        info = decoded.message
        if info.HasField("playback_frames"):
            self.log.info(f"  Playback frames: {info.playback_frames}")
        if info.HasField("playback_ticks"):
            self.log.info(f"  Playback ticks: {info.playback_ticks}")
        if info.HasField("playback_time"):
            self.log.info(f"  Playback time: {info.playback_time:.2f}")
        if info.HasField("game_info"):
            self.log.info("  Game info:")
            self.log.info(f"    Rounds count: {len(info.game_info.cs.round_start_ticks)}")

    def _handle_packet(self, decoded: DecodedRecord) -> None:
        packet = decoded.message
        self.log.info("Packet:")
        self.log.info(f"  Has data: {packet.HasField('data')}")
        if not packet.HasField("data"):
            return

        reader = BitReader(packet.data)
        packet_id = read_ubitvar(reader)
        decoded.packet_id = packet_id
        self.log.info(f"Packet ID: {packet_id} ({svc_message_name(packet_id)})")

    def _handle_class_info(self, decoded: DecodedRecord) -> None:
        self.log.info("Class Info:")
        for i, class_info in enumerate(decoded.message.classes):
            self.log.info(f"  Class #{i}")
            if class_info.HasField("class_id"):
                self.log.info(f"    Class ID: {class_info.class_id}")
            self.log.info(f"    Network name: {class_info.network_name}")
            self.log.info(f"    Table name: {class_info.table_name}")

    def _handle_send_tables(self, decoded: DecodedRecord) -> None:
        blob = decoded.message.data

        # blob is [varint length | CSVCMsg_FlattenedSerializer]
        size, consumed = read_varint32(blob)
        end = consumed + size
        if end > len(blob):
            raise FrameOverrunError(
                f"Flattened serializer declares {size} bytes, only {len(blob) - consumed} present")

        serializer = unpack(demomessages.CSVCMsg_FlattenedSerializer, blob[consumed:end])
        decoded.inner = serializer

        self.log.info("Send Tables:")
        self.log.info(f"  Field count:      {len(serializer.fields)}")
        self.log.info(f"  Serializer count: {len(serializer.serializers)}")
        self.log.info(f"  Symbol count:     {len(serializer.symbols)}")
        for entry in serializer.serializers:
            if entry.HasField("serializer_name_sym"):
                self.log.info(f"  serializer_name_sym: {entry.serializer_name_sym}")
            if entry.HasField("serializer_version"):
                self.log.info(f"  serializer_version: {entry.serializer_version}")
