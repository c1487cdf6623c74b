"""
Mode analysis: choose the narrowest encoding mode for a piece of text and
turn byte-mode text into bytes.
"""

import re
from enum import IntEnum

from .errors import UnsupportedCharacter


class Mode(IntEnum):
    """4-bit mode indicators (ISO/IEC 18004 Table 2)."""
    NUMERIC = 0b0001
    ALPHANUMERIC = 0b0010
    BYTE = 0b0100
    KANJI = 0b1000  # indicator only, never selected

    def character_count_bits(self, version: int) -> int:
        """Width of the character count indicator for this mode and version."""
        if version <= 9:
            tier = 0
        elif version <= 26:
            tier = 1
        else:
            tier = 2
        return CHARACTER_COUNT_BITS[self][tier]


# Count indicator widths for versions 1-9, 10-26, 27-40
CHARACTER_COUNT_BITS = {
    Mode.NUMERIC: (10, 12, 14),
    Mode.ALPHANUMERIC: (9, 11, 13),
    Mode.BYTE: (8, 16, 16),
    Mode.KANJI: (8, 10, 12),
}

ALPHANUMERIC_CHARSET = '0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ $%*+-./:'

# Alphanumeric character mapping
ALPHANUMERIC_TABLE = {c: i for i, c in enumerate(ALPHANUMERIC_CHARSET)}

_WEB_PREFIX = re.compile(r'^(?:https?://|mailto:|tel:|sms:)', re.IGNORECASE)
_EMAIL_LIKE = re.compile(r'@[^@\s]+\.[A-Za-z]{2,}')


def detect_mode(text: str) -> Mode:
    """Detect the most efficient encoding mode for the text."""
    if all(c in '0123456789' for c in text):
        return Mode.NUMERIC
    if all(c.upper() in ALPHANUMERIC_TABLE for c in text):
        return Mode.ALPHANUMERIC
    return Mode.BYTE


def is_web_content(text: str) -> bool:
    """True for URLs, mailto/tel/sms links and email-like strings."""
    return bool(_WEB_PREFIX.match(text) or _EMAIL_LIKE.search(text))


def text_to_bytes(text: str) -> bytes:
    """
    Encode byte-mode text.

    Web content and anything outside Latin-1 is sent as UTF-8, everything
    else as one Latin-1 byte per character.

    Raises:
        UnsupportedCharacter: if the text holds a code point UTF-8 cannot
            represent (an unpaired surrogate).
    """
    try:
        if is_web_content(text) or any(ord(c) > 0xFF for c in text):
            return text.encode('utf-8')
        return text.encode('latin-1')
    except UnicodeEncodeError as e:
        raise UnsupportedCharacter(
            f"Cannot encode {text[e.start:e.end]!r} at position {e.start}"
        ) from e


def payload_length(text: str, mode: Mode) -> int:
    """Value of the character count indicator: characters, or bytes in byte mode."""
    if mode == Mode.BYTE:
        return len(text_to_bytes(text))
    return len(text)


def payload_bit_length(text: str, mode: Mode) -> int:
    """Number of payload bits the text occupies, excluding mode and count."""
    n = payload_length(text, mode)
    if mode == Mode.NUMERIC:
        return 10 * (n // 3) + (0, 4, 7)[n % 3]
    if mode == Mode.ALPHANUMERIC:
        return 11 * (n // 2) + 6 * (n % 2)
    return 8 * n
