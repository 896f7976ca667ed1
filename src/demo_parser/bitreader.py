from .errors import BitstreamOverrunError

# extra bits that follow the 6 bit head of a ubitvar, keyed by the tag in bits 4-5
_UBITVAR_EXTRA_BITS = {
    0x10: 4,
    0x20: 8,
    0x30: 28,
}


class BitReader:
    """LSB-first bit cursor over a byte buffer."""

    def __init__(self, data):
        self.data = data
        self.size = len(data) * 8
        self.bitpos = 0

    def bits_remaining(self) -> int:
        return self.size - self.bitpos

    def read_bits(self, n: int) -> int:
        if not 0 <= n <= 32:
            raise ValueError(f"Can read at most 32 bits at once, asked for {n}")
        if self.bits_remaining() < n:
            # clamp so every following read fails too
            start = self.bitpos
            self.bitpos = self.size
            raise BitstreamOverrunError(
                f"Out of bits: wanted {n} at bit {start}, {self.size - start} left")

        val = 0
        for i in range(n):
            byte_index = self.bitpos >> 3
            bit_index = self.bitpos & 7
            bit = (self.data[byte_index] >> bit_index) & 1
            val |= bit << i
            self.bitpos += 1

        return val


def read_ubitvar(reader: BitReader) -> int:
    """
    Valve's variable width uint: 6 bits, where bits 4-5 select how many
    more bits (0, 4, 8 or 28) extend the low nibble.
    """
    head = reader.read_bits(6)
    extra = _UBITVAR_EXTRA_BITS.get(head & 0x30)
    if extra is None:
        return head
    return (head & 0x0F) | (reader.read_bits(extra) << 4)
