"""
Command line front end.

    diyqr "HELLO WORLD" -e Q -o hello.png
    diyqr "https://example.com" --ascii
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .encoder import encode
from .errors import QRError
from .masking import MaskPolicy

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='diyqr',
        description='Generate a QR code from scratch and write it as PNG.',
    )
    parser.add_argument('text', help='Text to encode (use "-" for stdin)')
    parser.add_argument('-e', '--error', default='M', choices=['L', 'M', 'Q', 'H'],
                        type=str.upper, help='Error correction level (default: M)')
    parser.add_argument('-o', '--output', type=Path,
                        help='PNG file to write')
    parser.add_argument('--scale', type=int, default=8,
                        help='Pixels per module (default: 8)')
    parser.add_argument('--border', type=int, default=4,
                        help='Quiet zone width in modules (default: 4)')
    parser.add_argument('--mask', type=int, default=None,
                        help='Force mask pattern 0-7')
    parser.add_argument('--scanner-friendly', action='store_true',
                        help='Prefer masks 0, 1, 2, 6 when their penalty is close')
    parser.add_argument('--upgrade-error', action='store_true',
                        help='Raise short, link or email text to level H when it fits')
    parser.add_argument('--parallel', action='store_true',
                        help='Score mask candidates on a thread pool')
    parser.add_argument('--ascii', action='store_true',
                        help='Print the symbol to the terminal')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Show debug output')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s %(name)s: %(message)s',
    )

    text = sys.stdin.read().rstrip('\n') if args.text == '-' else args.text
    policy = MaskPolicy.SCANNER_FRIENDLY if args.scanner_friendly else MaskPolicy.ISO

    try:
        qr = encode(text, args.error, mask=args.mask, mask_policy=policy,
                    parallel=args.parallel, upgrade_error_level=args.upgrade_error)
        if args.output is not None:
            args.output.write_bytes(qr.to_png(args.scale, args.border))
            logger.info("Saved version %d QR code to %s", qr.version, args.output)
    except QRError as e:
        print(f"diyqr: error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"diyqr: error: cannot write {args.output}: {e.strerror}", file=sys.stderr)
        return 1

    if args.ascii or args.output is None:
        print(qr.to_string(border=args.border))
    return 0
