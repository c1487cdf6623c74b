"""
BCH codes for the format information (15,5) and version information (18,6).

Both are computed as polynomial division remainders over GF(2): the data
word is shifted up by the generator degree and the generator is XOR-ed in
under every set leading bit.
"""

from .tables import ErrorLevel

# BCH generator polynomial: x^10 + x^8 + x^5 + x^4 + x^2 + x + 1
FORMAT_GENERATOR = 0b10100110111

# x^12 + x^11 + x^10 + x^9 + x^8 + x^5 + x^2 + 1
VERSION_GENERATOR = 0b1111100100101

# Format mask pattern
FORMAT_MASK = 0b101010000010010


def bch_remainder(data: int, data_len: int, generator: int, check_len: int) -> int:
    """Remainder of data * x^check_len divided by the generator."""
    remainder = data << check_len
    for i in range(data_len + check_len - 1, check_len - 1, -1):
        if remainder & (1 << i):
            remainder ^= generator << (i - check_len)
    return remainder


def bch_encode(data_5bits: int) -> int:
    """
    Encode 5 data bits using (15,5) BCH code.

    Args:
        data_5bits: 5-bit integer (EC level 2 bits + mask pattern 3 bits)

    Returns:
        15-bit encoded format information (before final XOR)
    """
    return (data_5bits << 10) | bch_remainder(data_5bits, 5, FORMAT_GENERATOR, 10)


def format_bits(level: ErrorLevel, mask: int) -> int:
    """Generate the complete 15-bit format string."""
    data_5bits = (level.format_code << 3) | mask
    return bch_encode(data_5bits) ^ FORMAT_MASK


def version_bits(version: int) -> int:
    """18-bit version information; only meaningful for version 7 and up."""
    return (version << 12) | bch_remainder(version, 6, VERSION_GENERATOR, 12)
