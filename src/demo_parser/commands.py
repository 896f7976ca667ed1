# Demo command ids (EDemoCommands)
DEM_ERROR = -1
DEM_STOP = 0
DEM_FILE_HEADER = 1
DEM_FILE_INFO = 2
DEM_SYNC_TICK = 3
DEM_SEND_TABLES = 4
DEM_CLASS_INFO = 5
DEM_STRING_TABLES = 6
DEM_PACKET = 7
DEM_SIGNON_PACKET = 8
DEM_CONSOLE_CMD = 9
DEM_CUSTOM_DATA = 10
DEM_CUSTOM_DATA_CALLBACKS = 11
DEM_USER_CMD = 12
DEM_FULL_PACKET = 13
DEM_SAVE_GAME = 14
DEM_MAX = 15

# flag OR'd into the raw command id when the payload is snappy compressed
DEM_IS_COMPRESSED = 0x40

# index = command id
_COMMAND_NAMES = (
    "Stop",
    "File Header",
    "File Info",
    "Sync Tick",
    "Send Tables",
    "Class Info",
    "String Tables",
    "Packet",
    "Signon Packet",
    "Console Command",
    "Custom Data",
    "Custom Data Callbacks",
    "User Command",
    "Full Packet",
    "Save Game",
    "Max (Not valid)",
)

# SVC_Messages, the server to client net messages found inside CDemoPacket
_SVC_MESSAGE_NAMES = {
    40: "svc_ServerInfo",
    41: "svc_FlattenedSerializer",
    42: "svc_ClassInfo",
    43: "svc_SetPause",
    44: "svc_CreateStringTable",
    45: "svc_UpdateStringTable",
    46: "svc_VoiceInit",
    47: "svc_VoiceData",
    48: "svc_Print",
    49: "svc_Sounds",
    50: "svc_SetView",
    51: "svc_ClearAllStringTables",
    52: "svc_CmdKeyValues",
    53: "svc_BSPDecal",
    54: "svc_SplitScreen",
    55: "svc_PacketEntities",
    56: "svc_Prefetch",
    57: "svc_Menu",
    58: "svc_GetCvarValue",
    59: "svc_StopSound",
    60: "svc_PeerList",
    61: "svc_PacketReliable",
    62: "svc_HLTVStatus",
    63: "svc_ServerSteamID",
    70: "svc_FullFrameSplit",
    71: "svc_RconServerDetails",
    72: "svc_UserMessage",
    74: "svc_Broadcast_Command",
    75: "svc_HltvFixupOperatorStatus",
}


def command_name(kind: int) -> str:
    if kind == DEM_ERROR:
        return "Error"
    if 0 <= kind < len(_COMMAND_NAMES):
        return _COMMAND_NAMES[kind]
    return "Unknown"


def svc_message_name(packet_id: int) -> str:
    return _SVC_MESSAGE_NAMES.get(packet_id, "Unknown packet ID")
