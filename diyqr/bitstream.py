"""
Bit stream encoding: mode indicator, character count and payload, then the
terminator and pad codewords that fill the symbol's data capacity.
"""

import logging
from typing import Iterable, List

from .errors import PayloadTooLarge
from .modes import ALPHANUMERIC_TABLE, Mode, payload_length, text_to_bytes

logger = logging.getLogger(__name__)

PAD_CODEWORDS = (0xEC, 0x11)


class BitBuffer(list):
    """Append-only sequence of bits (0/1 ints), most significant first."""

    def append_bits(self, value: int, length: int):
        """Append the low `length` bits of value, MSB first."""
        assert 0 <= value < (1 << length)
        self.extend(int_to_bits(value, length))

    def to_bytes(self) -> List[int]:
        return bits_to_bytes(self)


def int_to_bits(value: int, length: int) -> List[int]:
    """Convert integer to list of bits with specified length."""
    return [(value >> (length - 1 - i)) & 1 for i in range(length)]


def bits_to_bytes(bits: Iterable[int]) -> List[int]:
    """Pack bits into bytes, zero-filling the last byte."""
    bits = list(bits)
    if len(bits) % 8:
        bits.extend([0] * (8 - len(bits) % 8))

    bytes_list = []
    for i in range(0, len(bits), 8):
        byte = 0
        for j in range(8):
            byte = (byte << 1) | bits[i + j]
        bytes_list.append(byte)
    return bytes_list


def encode_numeric(data: str, bits: BitBuffer):
    """Groups of 3 digits in 10 bits; a 2-digit tail in 7, a 1-digit tail in 4."""
    for i in range(0, len(data), 3):
        group = data[i:i + 3]
        bits.append_bits(int(group), (0, 4, 7, 10)[len(group)])


def encode_alphanumeric(data: str, bits: BitBuffer):
    """Pairs as 45*v1 + v2 in 11 bits; a trailing single character in 6."""
    data = data.upper()
    for i in range(0, len(data) - 1, 2):
        value = 45 * ALPHANUMERIC_TABLE[data[i]] + ALPHANUMERIC_TABLE[data[i + 1]]
        bits.append_bits(value, 11)
    if len(data) % 2:
        bits.append_bits(ALPHANUMERIC_TABLE[data[-1]], 6)


def encode_byte(data: str, bits: BitBuffer):
    for byte in text_to_bytes(data):
        bits.append_bits(byte, 8)


def encode_segment(text: str, mode: Mode, version: int) -> BitBuffer:
    """
    Encode text as a single segment.

    Returns:
        Bits for mode indicator, character count indicator and payload.
    """
    bits = BitBuffer()
    bits.append_bits(int(mode), 4)

    count_bits = mode.character_count_bits(version)
    count = payload_length(text, mode)
    # Capacity checks happen before this, so the count always fits
    assert count < (1 << count_bits)
    bits.append_bits(count, count_bits)

    if mode == Mode.NUMERIC:
        encode_numeric(text, bits)
    elif mode == Mode.ALPHANUMERIC:
        encode_alphanumeric(text, bits)
    elif mode == Mode.BYTE:
        encode_byte(text, bits)
    else:
        raise AssertionError(f"Mode {mode!r} is never selected")

    logger.debug("Encoded %d characters in %s mode: %d bits",
                 count, mode.name, len(bits))
    return bits


def pad_to_capacity(bits: List[int], capacity_bits: int) -> List[int]:
    """
    Add terminator and padding, returning the data codewords.

    Args:
        bits: Segment bits from encode_segment
        capacity_bits: Data capacity of the symbol, a multiple of 8

    Returns:
        Exactly capacity_bits // 8 data codewords.

    Raises:
        PayloadTooLarge: if the segment alone exceeds the capacity.
    """
    if len(bits) > capacity_bits:
        raise PayloadTooLarge(
            f"Segment is {len(bits)} bits, capacity is {capacity_bits}"
        )
    bits = BitBuffer(bits)

    # Terminator (up to 4 bits)
    bits.extend([0] * min(4, capacity_bits - len(bits)))

    # Pad to byte boundary
    bits.extend([0] * (-len(bits) % 8))

    codewords = bits.to_bytes()
    capacity_bytes = capacity_bits // 8
    i = 0
    while len(codewords) < capacity_bytes:
        codewords.append(PAD_CODEWORDS[i % 2])
        i += 1
    return codewords
