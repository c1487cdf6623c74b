"""
Data masking: the eight mask predicates, penalty scoring and mask selection.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from enum import Enum, IntEnum
from typing import List, Optional, Sequence, Tuple

from .matrix import Grid, draw_format_info
from .tables import ErrorLevel

logger = logging.getLogger(__name__)

# Finder-like 1:1:3:1:1 runs with four light modules on either side
FINDER_LIKE = (
    (1, 0, 1, 1, 1, 0, 1, 0, 0, 0, 0),
    (0, 0, 0, 0, 1, 0, 1, 1, 1, 0, 1),
)

# Masks that many phone scanners lock onto more reliably
SCANNER_FRIENDLY_MASKS = (0, 1, 2, 6)

# Penalty slack within which a scanner-friendly mask beats the optimum
SCANNER_TOLERANCE = 100


class MaskPattern(IntEnum):
    """The eight data mask patterns (ISO/IEC 18004 Table 10)."""
    CHECKERBOARD = 0
    HORIZONTAL_LINES = 1
    VERTICAL_LINES = 2
    DIAGONAL_LINES = 3
    LARGE_CHECKERBOARD = 4
    FIELDS = 5
    DIAMONDS = 6
    MEADOW = 7

    def applies(self, r: int, c: int) -> bool:
        """True when the module at row r, column c is inverted by this mask."""
        if self is MaskPattern.CHECKERBOARD:
            return (r + c) % 2 == 0
        elif self is MaskPattern.HORIZONTAL_LINES:
            return r % 2 == 0
        elif self is MaskPattern.VERTICAL_LINES:
            return c % 3 == 0
        elif self is MaskPattern.DIAGONAL_LINES:
            return (r + c) % 3 == 0
        elif self is MaskPattern.LARGE_CHECKERBOARD:
            return (r // 2 + c // 3) % 2 == 0
        elif self is MaskPattern.FIELDS:
            return (r * c) % 2 + (r * c) % 3 == 0
        elif self is MaskPattern.DIAMONDS:
            return ((r * c) % 2 + (r * c) % 3) % 2 == 0
        elif self is MaskPattern.MEADOW:
            return ((r + c) % 2 + (r * c) % 3) % 2 == 0
        raise AssertionError(f"Unhandled mask {self!r}")


class MaskPolicy(Enum):
    """
    How the winning mask is chosen.

    ISO picks the lowest total penalty (lowest index on ties).
    SCANNER_FRIENDLY is opt-in: it takes the first of SCANNER_FRIENDLY_MASKS
    whose penalty is within SCANNER_TOLERANCE of the minimum, and falls back
    to the ISO choice otherwise.
    """
    ISO = 'iso'
    SCANNER_FRIENDLY = 'scanner-friendly'


def apply_mask(matrix: Grid, is_function: List[List[bool]],
               mask: int) -> List[List[int]]:
    """Return a copy with the mask XOR-ed onto data modules only."""
    pattern = MaskPattern(mask)
    size = len(matrix)
    result = [list(row) for row in matrix]

    for r in range(size):
        for c in range(size):
            if not is_function[r][c] and pattern.applies(r, c):
                result[r][c] ^= 1

    return result


def calculate_penalty(matrix: Sequence[Sequence[int]]) -> int:
    """Calculate total penalty score for a masked matrix."""
    size = len(matrix)
    columns = [[matrix[r][c] for r in range(size)] for c in range(size)]
    lines = [list(row) for row in matrix] + columns

    penalty = 0
    penalty += sum(_penalty_runs(line) for line in lines)
    penalty += _penalty_boxes(matrix, size)
    penalty += sum(_penalty_finder_like(line) for line in lines)
    penalty += _penalty_balance(matrix, size)
    return penalty


def _penalty_runs(line: Sequence[int]) -> int:
    """N1: each run of 5+ same-colour modules scores its length minus 2."""
    penalty = 0
    run_length = 1
    for i in range(1, len(line)):
        if line[i] == line[i - 1]:
            run_length += 1
        else:
            if run_length >= 5:
                penalty += run_length - 2
            run_length = 1
    if run_length >= 5:
        penalty += run_length - 2
    return penalty


def _penalty_boxes(matrix: Sequence[Sequence[int]], size: int) -> int:
    """N2: 3 for every 2x2 block of one colour (blocks may overlap)."""
    penalty = 0
    for r in range(size - 1):
        for c in range(size - 1):
            color = matrix[r][c]
            if (matrix[r][c + 1] == color and matrix[r + 1][c] == color and
                    matrix[r + 1][c + 1] == color):
                penalty += 3
    return penalty


def _penalty_finder_like(line: Sequence[int]) -> int:
    """N3: 40 for every occurrence of a finder-like pattern."""
    penalty = 0
    for i in range(len(line) - 10):
        if tuple(line[i:i + 11]) in FINDER_LIKE:
            penalty += 40
    return penalty


def _penalty_balance(matrix: Sequence[Sequence[int]], size: int) -> int:
    """N4: 10 for every full 5% the dark share deviates from 50%."""
    dark_count = sum(sum(row) for row in matrix)
    total = size * size
    return abs(dark_count * 100 - 50 * total) // (5 * total) * 10


def evaluate_mask(matrix: Grid, is_function: List[List[bool]],
                  level: ErrorLevel, mask: int) -> int:
    """Penalty of the symbol as it would look with this mask and its format info."""
    masked = apply_mask(matrix, is_function, mask)
    draw_format_info(masked, level, mask)
    return calculate_penalty(masked)


def choose_best_mask(matrix: Grid, is_function: List[List[bool]],
                     level: ErrorLevel,
                     policy: MaskPolicy = MaskPolicy.ISO,
                     parallel: bool = False) -> Tuple[int, int]:
    """
    Score all eight masks and choose one.

    Args:
        matrix: Grid with data placed; only format cells may still be unset
        is_function: Function module map from QRMatrix
        level: Error level, needed to draw each candidate's format info
        policy: Selection policy, see MaskPolicy
        parallel: Evaluate the trials on a thread pool

    Returns:
        (mask, penalty)
    """
    masks = range(len(MaskPattern))
    if parallel:
        with ThreadPoolExecutor(max_workers=len(MaskPattern)) as pool:
            penalties = list(pool.map(
                lambda m: evaluate_mask(matrix, is_function, level, m), masks))
    else:
        penalties = [evaluate_mask(matrix, is_function, level, m) for m in masks]

    best_penalty, best_mask = min((p, m) for m, p in enumerate(penalties))
    logger.debug("Mask penalties: %s", penalties)

    chosen: Optional[int] = None
    if policy is MaskPolicy.SCANNER_FRIENDLY:
        for mask in SCANNER_FRIENDLY_MASKS:
            if penalties[mask] - best_penalty <= SCANNER_TOLERANCE:
                chosen = mask
                break
    if chosen is None:
        chosen = best_mask

    return chosen, penalties[chosen]
