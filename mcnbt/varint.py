"""
Variable-length integers for the Bedrock network NBT variant.

Unsigned values are written as little-endian base-128 groups: 7 payload bits
per byte, high bit set on every byte except the last. Signed values are
zig-zag mapped first so small negative numbers stay short.
"""

from mcnbt.cursor import ByteReader, ByteWriter
from mcnbt.errors import InvariantViolation, MalformedVarint, UnexpectedEof


def zigzag_encode(n: int, bits: int = 32) -> int:
    """Map a signed ``bits``-wide integer onto an unsigned one."""
    low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    if not low <= n <= high:
        raise InvariantViolation(f"{n} is outside the int{bits} range")
    return ((n << 1) ^ (n >> (bits - 1))) & ((1 << bits) - 1)


def zigzag_decode(n: int) -> int:
    return (n >> 1) ^ -(n & 1)


def encode_varuint(value: int) -> bytes:
    if value < 0:
        raise InvariantViolation(f"Cannot encode negative value {value} as unsigned varint")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def read_varuint(reader: ByteReader, bits: int = 32) -> int:
    """Read an unsigned varint that must fit in ``bits`` bits."""
    start = reader.position
    limit = -(-bits // 7)
    result = 0
    for i in range(limit):
        try:
            byte = reader.read_ubyte()
        except UnexpectedEof:
            raise MalformedVarint("Truncated varint", start) from None
        result |= (byte & 0x7F) << (7 * i)
        if not byte & 0x80:
            if result >> bits:
                raise MalformedVarint(f"Varint does not fit in {bits} bits", start)
            return result
    raise MalformedVarint(f"Varint longer than {limit} bytes", start)


def write_varuint(writer: ByteWriter, value: int) -> None:
    writer.write_bytes(encode_varuint(value))


def read_varint(reader: ByteReader, bits: int = 32) -> int:
    """Read a zig-zag signed varint of width ``bits``."""
    return zigzag_decode(read_varuint(reader, bits))


def write_varint(writer: ByteWriter, value: int, bits: int = 32) -> None:
    write_varuint(writer, zigzag_encode(value, bits))
