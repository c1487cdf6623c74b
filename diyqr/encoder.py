"""
Complete QR code generation: text in, masked module matrix out, plus PNG
rendering of the result.
"""

import logging
import re
from typing import List, Optional, Sequence, Union

from .bitstream import encode_segment, pad_to_capacity
from .errors import InvalidConfiguration, PayloadTooLarge
from .masking import MaskPolicy, apply_mask, choose_best_mask, evaluate_mask
from .matrix import QRMatrix
from .modes import Mode, detect_mode, payload_bit_length
from .png import BLACK, WHITE, Color, render_png
from .reed_solomon import interleave_blocks
from .tables import ErrorLevel, data_codewords, resolve_version

logger = logging.getLogger(__name__)


class QRCode:
    """A finished QR symbol: the module matrix and how it was built."""

    def __init__(self, matrix: List[List[int]], version: int, error_level: ErrorLevel,
                 mode: Mode, mask: int, penalty: int):
        self.matrix = matrix
        self.version = version
        self.error_level = error_level
        self.mode = mode
        self.mask = mask
        self.penalty = penalty

    def __repr__(self) -> str:
        return (f"QRCode(version={self.version}, error_level={self.error_level.value}, "
                f"mode={self.mode.name}, mask={self.mask})")

    @property
    def size(self) -> int:
        return len(self.matrix)

    def to_string(self, border: int = 4) -> str:
        """Convert matrix to terminal art with quiet zone border."""
        lines = []
        blank = "  " * (self.size + 2 * border)

        for _ in range(border):
            lines.append(blank)
        for row in self.matrix:
            line = "  " * border
            line += "".join("██" if cell else "  " for cell in row)
            line += "  " * border
            lines.append(line)
        for _ in range(border):
            lines.append(blank)

        return "\n".join(lines)

    def to_png(self, scale: int = 8, border: int = 4,
               foreground: Color = BLACK, background: Color = WHITE) -> bytes:
        return render(self, scale, border, foreground, background)

    def to_pil_image(self, scale: int = 10, border: int = 4):
        """
        Build a 1-bit Pillow image of the symbol.

        Requires Pillow: pip install Pillow
        """
        try:
            from PIL import Image
        except ImportError as e:
            raise ImportError("to_pil_image needs Pillow: pip install Pillow") from e

        _check_render_args(scale, border)
        img_size = (self.size + 2 * border) * scale
        img = Image.new('1', (img_size, img_size), 1)  # White background
        pixels = img.load()

        for y in range(self.size):
            for x in range(self.size):
                if self.matrix[y][x] == 1:
                    for dy in range(scale):
                        for dx in range(scale):
                            pixels[(border + x) * scale + dx,
                                   (border + y) * scale + dy] = 0
        return img


def _check_mask(mask: Optional[int]) -> Optional[int]:
    if mask is None:
        return None
    if isinstance(mask, bool) or not isinstance(mask, int) or not 0 <= mask <= 7:
        raise InvalidConfiguration(f"Mask pattern must be 0-7, got {mask!r}")
    return mask


def _check_render_args(scale: int, border: int,
                       foreground: Color = BLACK, background: Color = WHITE):
    if not isinstance(scale, int) or scale < 1:
        raise InvalidConfiguration(f"Module scale must be a positive integer, got {scale!r}")
    if not isinstance(border, int) or border < 0:
        raise InvalidConfiguration(f"Border must be a non-negative integer, got {border!r}")
    for color in (foreground, background):
        if (not isinstance(color, tuple) or len(color) != 4 or
                not all(isinstance(v, int) and 0 <= v <= 255 for v in color)):
            raise InvalidConfiguration(
                f"Colour must be an RGBA tuple of 0-255 ints, got {color!r}")


# Content that scanners misread more often at the lower levels
_STRUCTURED_MARKERS = ('://', 'mailto:', 'tel:', 'WiFi:', 'sms:')
_SPECIAL_CHARS = re.compile(r'[@#$%^&*(){}\[\];:\'"<>?]')


def scanner_error_level(text: str, level: ErrorLevel) -> ErrorLevel:
    """
    Level to use when error correction upgrades are enabled.

    Text shorter than 10 characters always goes to H. At the default M,
    so do email addresses, URLs and other structured links, and short
    strings (under 20 characters) with punctuation scanners trip over.
    Anything else keeps the requested level.
    """
    if level is ErrorLevel.H:
        return level
    if len(text) < 10:
        return ErrorLevel.H
    if level is not ErrorLevel.M:
        return level
    if '@' in text or any(marker in text for marker in _STRUCTURED_MARKERS):
        return ErrorLevel.H
    if len(text) < 20 and _SPECIAL_CHARS.search(text):
        return ErrorLevel.H
    return level


def _upgrade_if_fits(text: str, mode: Mode, payload_bits: int,
                     level: ErrorLevel, min_version: int) -> ErrorLevel:
    upgraded = scanner_error_level(text, level)
    if upgraded is level:
        return level
    try:
        resolve_version(mode, payload_bits, upgraded, min_version)
    except PayloadTooLarge:
        logger.debug("Level %s does not fit, keeping %s", upgraded.value, level.value)
        return level
    logger.debug("Upgraded error correction from %s to %s", level.value, upgraded.value)
    return upgraded


def encode(text: str, error_level: Union[ErrorLevel, str] = ErrorLevel.M, *,
           mask: Optional[int] = None, min_version: int = 1,
           mask_policy: MaskPolicy = MaskPolicy.ISO,
           parallel: bool = False, upgrade_error_level: bool = False) -> QRCode:
    """
    Generate a QR code for the given text.

    Args:
        text: String to encode
        error_level: 'L' (7%), 'M' (15%), 'Q' (25%), or 'H' (30%)
        mask: Force a mask pattern 0-7 instead of choosing one
        min_version: Smallest version to consider
        mask_policy: How the mask is chosen when not forced
        parallel: Score the eight mask candidates on a thread pool
        upgrade_error_level: Raise the level to H for short or link-like
            text when the symbol still fits, see scanner_error_level

    Returns:
        The finished QRCode.

    Raises:
        InvalidConfiguration: for a bad level, mask, version or policy.
        UnsupportedCharacter: if byte-mode text cannot be encoded.
        PayloadTooLarge: if the text does not fit version 40.
    """
    level = ErrorLevel.parse(error_level)
    mask = _check_mask(mask)
    if not isinstance(mask_policy, MaskPolicy):
        raise InvalidConfiguration(f"Unknown mask policy: {mask_policy!r}")

    # Step 1: Mode, level and version
    mode = detect_mode(text)
    payload_bits = payload_bit_length(text, mode)
    if upgrade_error_level:
        level = _upgrade_if_fits(text, mode, payload_bits, level, min_version)
    version = resolve_version(mode, payload_bits, level, min_version)

    # Step 2: Data codewords
    bits = encode_segment(text, mode, version)
    data = pad_to_capacity(bits, data_codewords(version, level) * 8)
    logger.debug("Data codewords (%d): %s", len(data), data[:10])

    # Step 3: Error correction and interleaving
    codewords = interleave_blocks(data, version, level)

    # Step 4: Matrix and data placement
    qr = QRMatrix(version)
    qr.place_version_info()
    qr.place_data(codewords)

    # Step 5: Mask
    if mask is None:
        mask, penalty = choose_best_mask(qr.matrix, qr.is_function, level,
                                         mask_policy, parallel)
    else:
        penalty = evaluate_mask(qr.matrix, qr.is_function, level, mask)

    qr.matrix = apply_mask(qr.matrix, qr.is_function, mask)

    # Step 6: Format information
    qr.place_format_info(level, mask)
    assert all(cell in (0, 1) for row in qr.matrix for cell in row)

    logger.debug("Generated version %d-%s QR code (%s mode, mask %d, penalty %d)",
                 version, level.value, mode.name, mask, penalty)
    return QRCode(qr.matrix, version, level, mode, mask, penalty)


def render(qr: Union[QRCode, Sequence[Sequence[int]]], module_scale: int = 8,
           border_modules: int = 4, foreground: Color = BLACK,
           background: Color = WHITE) -> bytes:
    """
    Render a QR code (or a bare module matrix) as PNG bytes.

    Args:
        qr: QRCode from encode(), or a square list of 0/1 rows
        module_scale: Pixels per module side
        border_modules: Quiet zone width in modules
    """
    _check_render_args(module_scale, border_modules, foreground, background)
    matrix = qr.matrix if isinstance(qr, QRCode) else qr
    return render_png(matrix, module_scale, border_modules, foreground, background)
