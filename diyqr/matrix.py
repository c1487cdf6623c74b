"""
QR Code matrix construction: function patterns, reserved areas, data
placement and the format/version information writers.

References:
- https://www.thonky.com/qr-code-tutorial/module-placement-matrix
"""

import logging
from typing import List, Optional, Sequence

from .bch import format_bits, version_bits
from .tables import ErrorLevel, alignment_positions, check_version, symbol_size

logger = logging.getLogger(__name__)

Grid = List[List[Optional[int]]]


def format_bits_to_list(format_int: int) -> List[int]:
    """Convert 15-bit integer to list of bits, MSB first."""
    return [(format_int >> (14 - i)) & 1 for i in range(15)]


def draw_format_info(matrix: Grid, level: ErrorLevel, mask: int):
    """
    Write both copies of the format information into a grid.

    Primary copy around the top-left finder:
      bits 0-5 on row 8, columns 0-5; bit 6 at (8, 7); bit 7 at (8, 8);
      bit 8 at (7, 8); bits 9-14 on column 8, rows 5 up to 0.
    Secondary copy:
      bits 0-6 on column 8, rows size-1 up to size-7;
      bits 7-14 on row 8, columns size-8 to size-1.
    """
    size = len(matrix)
    bits = format_bits_to_list(format_bits(level, mask))

    for i in range(6):
        matrix[8][i] = bits[i]
    matrix[8][7] = bits[6]
    matrix[8][8] = bits[7]
    matrix[7][8] = bits[8]
    for i in range(6):
        matrix[5 - i][8] = bits[9 + i]

    for i in range(7):
        matrix[size - 1 - i][8] = bits[i]
    for i in range(8):
        matrix[8][size - 8 + i] = bits[7 + i]


class QRMatrix:
    """
    Module grid under construction.

    `matrix` holds None for unset cells, 0 for light and 1 for dark.
    `is_function` marks finder, separator, timing, alignment, dark module and
    the reserved format/version areas; data placement and masking never
    touch those cells.
    """

    def __init__(self, version: int):
        self.version = check_version(version)
        self.size = symbol_size(version)

        self.matrix: Grid = [[None] * self.size for _ in range(self.size)]
        self.is_function = [[False] * self.size for _ in range(self.size)]

        self._place_function_patterns()

    def _place_function_patterns(self):
        self._place_finder_patterns()
        self._place_separators()
        self._place_timing_patterns()
        self._place_dark_module()
        self._place_alignment_patterns()
        self._reserve_format_area()
        if self.version >= 7:
            self._reserve_version_area()

    def _place_finder_patterns(self):
        """Place the three finder patterns."""
        positions = [
            (0, 0),                          # Top-left
            (self.size - 7, 0),              # Top-right
            (0, self.size - 7)               # Bottom-left
        ]
        for (x, y) in positions:
            self._place_finder_pattern(x, y)

    def _place_finder_pattern(self, x: int, y: int):
        """Place a single finder pattern with its top-left corner at (x, y)."""
        for dy in range(7):
            for dx in range(7):
                if (dy == 0 or dy == 6 or dx == 0 or dx == 6 or
                        (2 <= dx <= 4 and 2 <= dy <= 4)):
                    value = 1
                else:
                    value = 0
                self._set_function(x + dx, y + dy, value)

    def _place_separators(self):
        """Place light separators around finder patterns."""
        for i in range(8):
            # Horizontal
            self._set_function(i, 7, 0)
            self._set_function(self.size - 8 + i, 7, 0)
            self._set_function(i, self.size - 8, 0)
            # Vertical
            self._set_function(7, i, 0)
            self._set_function(self.size - 8, i, 0)
            self._set_function(7, self.size - 8 + i, 0)

    def _place_timing_patterns(self):
        """Place timing patterns (row 6 and column 6), dark on even indices."""
        for i in range(8, self.size - 8):
            value = (i + 1) % 2
            self._set_function(i, 6, value)
            self._set_function(6, i, value)

    def _place_dark_module(self):
        self._set_function(8, 4 * self.version + 9, 1)

    def _place_alignment_patterns(self):
        positions = alignment_positions(self.version)
        for row in positions:
            for col in positions:
                if self._overlaps_finder(row, col):
                    continue
                self._place_alignment_pattern(col, row)

    def _overlaps_finder(self, row: int, col: int) -> bool:
        """Check if an alignment pattern would overlap a finder pattern."""
        if row <= 8 and col <= 8:
            return True
        if row <= 8 and col >= self.size - 9:
            return True
        if row >= self.size - 9 and col <= 8:
            return True
        return False

    def _place_alignment_pattern(self, x: int, y: int):
        """Place a single alignment pattern centered at (x, y)."""
        for dy in range(-2, 3):
            for dx in range(-2, 3):
                value = 1 if max(abs(dx), abs(dy)) != 1 else 0
                self._set_function(x + dx, y + dy, value)

    def _reserve_format_area(self):
        """Reserve space for format information; cells stay unset."""
        for i in range(9):
            self.is_function[8][i] = True
            self.is_function[i][8] = True
        for i in range(8):
            self.is_function[8][self.size - 1 - i] = True
            self.is_function[self.size - 1 - i][8] = True

    def _reserve_version_area(self):
        """Reserve the two 6x3 version information blocks (version 7+)."""
        for i in range(6):
            for j in range(3):
                self.is_function[i][self.size - 11 + j] = True
                self.is_function[self.size - 11 + j][i] = True

    def _set_function(self, x: int, y: int, value: int):
        """Set a function pattern module; overlapping patterns must agree."""
        current = self.matrix[y][x]
        assert current is None or current == value, (
            f"Function module ({y}, {x}) already set to {current}"
        )
        self.matrix[y][x] = value
        self.is_function[y][x] = True

    def place_version_info(self):
        """
        Write the 18-bit version information into both reserved blocks.

        Bit i (LSB first) goes to row i // 3, column size - 11 + i % 3 and is
        mirrored across the diagonal.
        """
        if self.version < 7:
            return
        bits = version_bits(self.version)
        for i in range(18):
            bit = (bits >> i) & 1
            a = self.size - 11 + i % 3
            b = i // 3
            self.matrix[b][a] = bit
            self.matrix[a][b] = bit

    def place_format_info(self, level: ErrorLevel, mask: int):
        draw_format_info(self.matrix, level, mask)

    def place_data(self, codewords: Sequence[int]) -> int:
        """
        Place codewords in the zigzag pattern.

        Column pairs are visited from the right edge leftwards, skipping the
        vertical timing column. A pair starting at column c runs upward when
        ((c + 1) & 2) == 0, which alternates from pair to pair. Every unset
        data cell receives the next bit, MSB first; once the codewords run out
        the remaining cells get 0.

        Returns:
            Number of codeword bits placed.
        """
        total_bits = len(codewords) * 8
        bit_index = 0

        col = self.size - 1
        while col >= 1:
            if col == 6:
                col -= 1
            upward = ((col + 1) & 2) == 0
            for i in range(self.size):
                row = self.size - 1 - i if upward else i
                for c in (col, col - 1):
                    if self.is_function[row][c] or self.matrix[row][c] is not None:
                        continue
                    if bit_index < total_bits:
                        byte = codewords[bit_index >> 3]
                        self.matrix[row][c] = (byte >> (7 - (bit_index & 7))) & 1
                        bit_index += 1
                    else:
                        self.matrix[row][c] = 0
            col -= 2

        assert bit_index == total_bits, (
            f"Placed {bit_index} of {total_bits} bits"
        )
        logger.debug("Placed %d bits in %dx%d matrix",
                     bit_index, self.size, self.size)
        return bit_index

    def data_module_count(self) -> int:
        return sum(not f for row in self.is_function for f in row)
