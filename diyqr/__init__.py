"""
diyqr
=====

QR Code generation from scratch, following ISO/IEC 18004, with a minimal
PNG writer. No external encoding or imaging library is needed.

    >>> import diyqr
    >>> qr = diyqr.encode("HELLO WORLD", "Q")
    >>> png = diyqr.render(qr, module_scale=8, border_modules=4)
"""

from .encoder import QRCode, encode, render
from .errors import InvalidConfiguration, PayloadTooLarge, QRError, UnsupportedCharacter
from .masking import MaskPattern, MaskPolicy
from .modes import Mode
from .tables import ErrorLevel

__version__ = "1.0.0"
__all__ = [
    'encode', 'render', 'QRCode',
    'ErrorLevel', 'Mode', 'MaskPattern', 'MaskPolicy',
    'QRError', 'PayloadTooLarge', 'UnsupportedCharacter', 'InvalidConfiguration',
]
