import logging

from google.protobuf import descriptor_pool, message_factory
from google.protobuf.descriptor_pb2 import FieldDescriptorProto, FileDescriptorProto
from google.protobuf.message import DecodeError as ProtoDecodeError

from .commands import (
    DEM_CLASS_INFO,
    DEM_FILE_HEADER,
    DEM_FILE_INFO,
    DEM_PACKET,
    DEM_SEND_TABLES,
)
from .errors import MessageDecodeError

log = logging.getLogger(__name__)

# --- Type Constants (Standard Protobuf) ---
TYPE_FLOAT = FieldDescriptorProto.TYPE_FLOAT
TYPE_INT32 = FieldDescriptorProto.TYPE_INT32
TYPE_BOOL = FieldDescriptorProto.TYPE_BOOL
TYPE_STRING = FieldDescriptorProto.TYPE_STRING
TYPE_MESSAGE = FieldDescriptorProto.TYPE_MESSAGE
TYPE_BYTES = FieldDescriptorProto.TYPE_BYTES

LABEL_OPTIONAL = FieldDescriptorProto.LABEL_OPTIONAL
LABEL_REQUIRED = FieldDescriptorProto.LABEL_REQUIRED
LABEL_REPEATED = FieldDescriptorProto.LABEL_REPEATED

_PACKAGE = "demo_parser"
_POOL = descriptor_pool.DescriptorPool()


def _create_proto_class(name, fields_dict):
    """Helper to build a proto2 message class from a field table."""
    file_proto = FileDescriptorProto(
        name=f"{_PACKAGE}/{name}.proto",
        package=_PACKAGE,
        syntax="proto2",
    )
    msg_proto = file_proto.message_type.add(name=name)

    for field_name, (number, field_type, label, nested_type) in fields_dict.items():
        fd = msg_proto.field.add(
            name=field_name,
            number=number,
            type=field_type,
            label=label,
        )
        if field_type == TYPE_MESSAGE:
            nested = nested_type.DESCRIPTOR
            fd.type_name = f".{nested.full_name}"
            if nested.file.name not in file_proto.dependency:
                file_proto.dependency.append(nested.file.name)

    _POOL.AddSerializedFile(file_proto.SerializeToString())
    desc = _POOL.FindMessageTypeByName(f"{_PACKAGE}.{name}")
    return message_factory.GetMessageClass(desc)


class demomessages:
    """Container for the CS2 demo protobuf definitions we decode."""

    CDemoFileHeader = _create_proto_class('CDemoFileHeader', {
        'demo_file_stamp': (1, TYPE_STRING, LABEL_REQUIRED, None),
        'network_protocol': (2, TYPE_INT32, LABEL_OPTIONAL, None),
        'server_name': (3, TYPE_STRING, LABEL_OPTIONAL, None),
        'client_name': (4, TYPE_STRING, LABEL_OPTIONAL, None),
        'map_name': (5, TYPE_STRING, LABEL_OPTIONAL, None),
        'game_directory': (6, TYPE_STRING, LABEL_OPTIONAL, None),
        'fullpackets_version': (7, TYPE_INT32, LABEL_OPTIONAL, None),
        'allow_clientside_entities': (8, TYPE_BOOL, LABEL_OPTIONAL, None),
        'allow_clientside_particles': (9, TYPE_BOOL, LABEL_OPTIONAL, None),
        'addons': (10, TYPE_STRING, LABEL_OPTIONAL, None),
        'demo_version_name': (11, TYPE_STRING, LABEL_OPTIONAL, None),
        'demo_version_guid': (12, TYPE_STRING, LABEL_OPTIONAL, None),
        'build_num': (13, TYPE_INT32, LABEL_OPTIONAL, None),
        'game': (14, TYPE_STRING, LABEL_OPTIONAL, None),
        'server_start_tick': (15, TYPE_INT32, LABEL_OPTIONAL, None),
    })

    CCSGameInfo = _create_proto_class('CCSGameInfo', {
        'round_start_ticks': (1, TYPE_INT32, LABEL_REPEATED, None),
    })

    CGameInfo = _create_proto_class('CGameInfo', {
        'cs': (5, TYPE_MESSAGE, LABEL_OPTIONAL, CCSGameInfo),
    })

    CDemoFileInfo = _create_proto_class('CDemoFileInfo', {
        'playback_time': (1, TYPE_FLOAT, LABEL_OPTIONAL, None),
        'playback_ticks': (2, TYPE_INT32, LABEL_OPTIONAL, None),
        'playback_frames': (3, TYPE_INT32, LABEL_OPTIONAL, None),
        'game_info': (4, TYPE_MESSAGE, LABEL_OPTIONAL, CGameInfo),
    })

    # data holds bit packed net messages, see bitreader.read_ubitvar
    CDemoPacket = _create_proto_class('CDemoPacket', {
        'data': (3, TYPE_BYTES, LABEL_OPTIONAL, None),
    })

    CDemoClassInfo_class_t = _create_proto_class('CDemoClassInfo_class_t', {
        'class_id': (1, TYPE_INT32, LABEL_OPTIONAL, None),
        'network_name': (2, TYPE_STRING, LABEL_OPTIONAL, None),
        'table_name': (3, TYPE_STRING, LABEL_OPTIONAL, None),
    })

    CDemoClassInfo = _create_proto_class('CDemoClassInfo', {
        'classes': (1, TYPE_MESSAGE, LABEL_REPEATED, CDemoClassInfo_class_t),
    })

    # data is a varint length followed by a CSVCMsg_FlattenedSerializer
    CDemoSendTables = _create_proto_class('CDemoSendTables', {
        'data': (1, TYPE_BYTES, LABEL_OPTIONAL, None),
    })

    ProtoFlattenedSerializerField_t = _create_proto_class('ProtoFlattenedSerializerField_t', {
        'var_type_sym': (1, TYPE_INT32, LABEL_OPTIONAL, None),
        'var_name_sym': (2, TYPE_INT32, LABEL_OPTIONAL, None),
        'bit_count': (3, TYPE_INT32, LABEL_OPTIONAL, None),
        'low_value': (4, TYPE_FLOAT, LABEL_OPTIONAL, None),
        'high_value': (5, TYPE_FLOAT, LABEL_OPTIONAL, None),
        'encode_flags': (6, TYPE_INT32, LABEL_OPTIONAL, None),
        'field_serializer_name_sym': (7, TYPE_INT32, LABEL_OPTIONAL, None),
        'field_serializer_version': (8, TYPE_INT32, LABEL_OPTIONAL, None),
        'send_node_sym': (9, TYPE_INT32, LABEL_OPTIONAL, None),
        'var_encoder_sym': (10, TYPE_INT32, LABEL_OPTIONAL, None),
    })

    ProtoFlattenedSerializer_t = _create_proto_class('ProtoFlattenedSerializer_t', {
        'serializer_name_sym': (1, TYPE_INT32, LABEL_OPTIONAL, None),
        'serializer_version': (2, TYPE_INT32, LABEL_OPTIONAL, None),
        'fields_index': (3, TYPE_INT32, LABEL_REPEATED, None),
    })

    CSVCMsg_FlattenedSerializer = _create_proto_class('CSVCMsg_FlattenedSerializer', {
        'serializers': (1, TYPE_MESSAGE, LABEL_REPEATED, ProtoFlattenedSerializer_t),
        'symbols': (2, TYPE_STRING, LABEL_REPEATED, None),
        'fields': (3, TYPE_MESSAGE, LABEL_REPEATED, ProtoFlattenedSerializerField_t),
    })


# Mapping of demo command ids to the Protobuf Class
_PROTO_MAP = {
    DEM_FILE_HEADER: demomessages.CDemoFileHeader,
    DEM_FILE_INFO: demomessages.CDemoFileInfo,
    DEM_SEND_TABLES: demomessages.CDemoSendTables,
    DEM_CLASS_INFO: demomessages.CDemoClassInfo,
    DEM_PACKET: demomessages.CDemoPacket,
}


def unpack(proto_class, payload):
    """Parse payload into a new proto_class message or raise MessageDecodeError."""
    name = proto_class.DESCRIPTOR.name
    msg = proto_class()
    try:
        msg.ParseFromString(bytes(payload))
    except (ProtoDecodeError, UnicodeDecodeError) as e:
        raise MessageDecodeError(f"Failed to extract {name}: {e}") from e
    # the pure python backend does not enforce required fields on parse
    if not msg.IsInitialized():
        missing = ", ".join(msg.FindInitializationErrors())
        raise MessageDecodeError(f"Failed to extract {name}: missing {missing}")
    return msg


def parse_demo_payload(command, payload):
    """Parses a record payload based on its demo command id, None if there is no schema."""
    proto_class = _PROTO_MAP.get(command)
    if proto_class is None:
        log.debug(f"No schema for demo command {command}")
        return None
    return unpack(proto_class, payload)
