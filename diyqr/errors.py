"""
Exceptions raised by the QR encoder.

Every caller-visible failure derives from QRError, which is itself a
ValueError so callers that only care about "bad input" can catch that.
"""


class QRError(ValueError):
    """Base class for all encoder errors."""


class PayloadTooLarge(QRError):
    """The payload does not fit in a version 40 symbol at the requested level."""


class UnsupportedCharacter(QRError):
    """The text contains a code point the byte-mode policy cannot encode."""


class InvalidConfiguration(QRError):
    """An argument lies outside its defined domain (level, mask, version, ...)."""
