from .errors import MalformedVarintError

MAX_VARINT32_BYTES = 5


def read_varint32(data, pos: int = 0):
    """
    Decode a protobuf style varint starting at data[pos].
    Returns (value, bytes_consumed). The value is truncated to 32 bits.
    """
    result = 0
    shift = 0
    consumed = 0
    length = len(data)

    while True:
        if consumed >= MAX_VARINT32_BYTES:
            raise MalformedVarintError(
                f"Varint at offset {pos} is longer than {MAX_VARINT32_BYTES} bytes")
        if pos + consumed >= length:
            raise MalformedVarintError(f"Truncated varint at offset {pos}")

        b = data[pos + consumed]
        result |= (b & 0x7F) << shift
        consumed += 1
        if not (b & 0x80):
            break
        shift += 7

    return result & 0xFFFFFFFF, consumed


def write_varint32(value: int) -> bytes:
    if not 0 <= value <= 0xFFFFFFFF:
        raise ValueError(f"{value} does not fit in an unsigned 32-bit varint")

    out = bytearray()
    while True:
        b = value & 0x7F
        value >>= 7
        if value:
            out.append(b | 0x80)
        else:
            out.append(b)
            return bytes(out)
