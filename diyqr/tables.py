"""
Symbol geometry and capacity tables for versions 1-40, plus the version
resolver.

Only two tables are transcribed from ISO/IEC 18004 (Table 9): the total
number of error correction codewords and the number of blocks per
(version, level). Everything else, including raw module counts, data
capacities and alignment pattern centres, is computed.
"""

import logging
from enum import Enum
from typing import List, Tuple, Union

from .errors import InvalidConfiguration, PayloadTooLarge
from .modes import Mode

logger = logging.getLogger(__name__)

MIN_VERSION = 1
MAX_VERSION = 40


class ErrorLevel(Enum):
    """Error correction levels; value is the conventional letter."""
    L = 'L'  # ~7% recovery
    M = 'M'  # ~15%
    Q = 'Q'  # ~25%
    H = 'H'  # ~30%

    @property
    def ordinal(self) -> int:
        return 'LMQH'.index(self.value)

    @property
    def format_code(self) -> int:
        """2-bit indicator used in the format information."""
        return EC_LEVEL_BITS[self]

    @classmethod
    def parse(cls, value: Union['ErrorLevel', str]) -> 'ErrorLevel':
        """Accept an ErrorLevel or its letter in either case."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.upper() in ('L', 'M', 'Q', 'H'):
            return cls(value.upper())
        raise InvalidConfiguration(f"Invalid error correction level: {value!r}")


# Error correction level bits
EC_LEVEL_BITS = {
    ErrorLevel.L: 0b01,
    ErrorLevel.M: 0b00,
    ErrorLevel.Q: 0b11,
    ErrorLevel.H: 0b10,
}

# Total EC codewords per version, ordered (L, M, Q, H)
EC_CODEWORDS = {
    1: (7, 10, 13, 17),         2: (10, 16, 22, 28),
    3: (15, 26, 36, 44),        4: (20, 36, 52, 64),
    5: (26, 48, 72, 88),        6: (36, 64, 96, 112),
    7: (40, 72, 108, 130),      8: (48, 88, 132, 156),
    9: (60, 110, 160, 192),     10: (72, 130, 192, 224),
    11: (80, 150, 224, 264),    12: (96, 176, 260, 308),
    13: (104, 198, 288, 352),   14: (120, 216, 320, 384),
    15: (132, 240, 360, 432),   16: (144, 280, 408, 480),
    17: (168, 308, 448, 532),   18: (180, 338, 504, 588),
    19: (196, 364, 546, 650),   20: (224, 416, 600, 700),
    21: (224, 442, 644, 750),   22: (252, 476, 690, 816),
    23: (270, 504, 750, 900),   24: (300, 560, 810, 960),
    25: (312, 588, 870, 1050),  26: (336, 644, 952, 1110),
    27: (360, 700, 1020, 1200), 28: (390, 728, 1050, 1260),
    29: (420, 784, 1140, 1350), 30: (450, 812, 1200, 1440),
    31: (480, 868, 1290, 1530), 32: (510, 924, 1350, 1620),
    33: (540, 980, 1440, 1710), 34: (570, 1036, 1530, 1800),
    35: (570, 1064, 1590, 1890), 36: (600, 1120, 1680, 1980),
    37: (630, 1204, 1770, 2100), 38: (660, 1260, 1860, 2220),
    39: (720, 1316, 1950, 2310), 40: (750, 1372, 2040, 2430),
}

# Number of RS blocks per version, ordered (L, M, Q, H)
EC_BLOCKS = {
    1: (1, 1, 1, 1),     2: (1, 1, 1, 1),     3: (1, 1, 2, 2),
    4: (1, 2, 2, 4),     5: (1, 2, 4, 4),     6: (2, 4, 4, 4),
    7: (2, 4, 6, 5),     8: (2, 4, 6, 6),     9: (2, 5, 8, 8),
    10: (4, 5, 8, 8),    11: (4, 5, 8, 11),   12: (4, 8, 10, 11),
    13: (4, 9, 12, 16),  14: (4, 9, 16, 16),  15: (6, 10, 12, 18),
    16: (6, 10, 17, 16), 17: (6, 11, 16, 19), 18: (6, 13, 18, 21),
    19: (7, 14, 21, 25), 20: (8, 16, 20, 25), 21: (8, 17, 23, 25),
    22: (9, 17, 23, 34), 23: (9, 18, 25, 30), 24: (10, 20, 27, 32),
    25: (12, 21, 29, 35), 26: (12, 23, 34, 37), 27: (12, 25, 34, 40),
    28: (13, 26, 35, 42), 29: (14, 28, 38, 45), 30: (15, 29, 40, 48),
    31: (16, 31, 43, 51), 32: (17, 33, 45, 54), 33: (18, 35, 48, 57),
    34: (19, 37, 51, 60), 35: (19, 38, 53, 63), 36: (20, 40, 56, 66),
    37: (21, 43, 59, 70), 38: (22, 45, 62, 74), 39: (24, 47, 65, 77),
    40: (25, 49, 68, 81),
}


def check_version(version: int) -> int:
    if not isinstance(version, int) or not MIN_VERSION <= version <= MAX_VERSION:
        raise InvalidConfiguration(f"Version must be 1-40, got {version!r}")
    return version


def symbol_size(version: int) -> int:
    return 17 + 4 * version


def alignment_positions(version: int) -> List[int]:
    """
    Alignment pattern centre coordinates (used for both rows and columns).

    The first centre is always 6 and the last is size - 7; the ones in
    between are evenly spaced with an even step, measured from the end.
    """
    if version == 1:
        return []
    count = version // 7 + 2
    step = (version * 8 + count * 3 + 5) // (count * 4 - 4) * 2
    last = symbol_size(version) - 7
    positions = [last - i * step for i in range(count - 1)]
    positions.append(6)
    return sorted(positions)


def raw_data_modules(version: int) -> int:
    """
    Number of modules left for codewords and remainder bits once all
    function patterns and reserved areas are excluded.
    """
    result = (16 * version + 128) * version + 64
    if version >= 2:
        count = version // 7 + 2
        result -= (25 * count - 10) * count - 55
        if version >= 7:
            result -= 36
    return result


def total_codewords(version: int) -> int:
    return raw_data_modules(version) // 8


def ec_codewords(version: int, level: ErrorLevel) -> int:
    return EC_CODEWORDS[version][level.ordinal]


def data_codewords(version: int, level: ErrorLevel) -> int:
    """Data capacity in codewords for a version and level."""
    return total_codewords(version) - ec_codewords(version, level)


def block_layout(version: int, level: ErrorLevel) -> Tuple[List[int], int]:
    """
    Split the data codewords into RS blocks.

    Returns:
        (data length of each block, EC codewords per block). Short blocks
        come first and long blocks hold exactly one extra data codeword.
    """
    num_blocks = EC_BLOCKS[version][level.ordinal]
    ec_total = ec_codewords(version, level)
    assert ec_total % num_blocks == 0
    ec_per_block = ec_total // num_blocks

    data_total = data_codewords(version, level)
    short_len = data_total // num_blocks
    num_long = data_total % num_blocks
    lengths = [short_len] * (num_blocks - num_long) + [short_len + 1] * num_long
    return lengths, ec_per_block


def segment_bits(mode: Mode, version: int, payload_bits: int) -> int:
    """Mode indicator + character count indicator + payload."""
    return 4 + mode.character_count_bits(version) + payload_bits


def resolve_version(mode: Mode, payload_bits: int, level: ErrorLevel,
                    min_version: int = MIN_VERSION) -> int:
    """
    Pick the smallest version whose data capacity holds the segment.

    Raises:
        PayloadTooLarge: if not even version 40 is big enough.
    """
    check_version(min_version)
    for version in range(min_version, MAX_VERSION + 1):
        needed = segment_bits(mode, version, payload_bits)
        if needed <= data_codewords(version, level) * 8:
            logger.debug("Version %d fits %d bits at level %s",
                         version, needed, level.value)
            return version

    needed = segment_bits(mode, MAX_VERSION, payload_bits)
    capacity = data_codewords(MAX_VERSION, level) * 8
    raise PayloadTooLarge(
        f"Payload needs {needed} bits, version 40-{level.value} holds {capacity}"
    )
