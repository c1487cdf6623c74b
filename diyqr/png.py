"""
Minimal PNG writer.

Rasterizes a module matrix into 8-bit RGBA pixels and wraps them in a PNG
container. The zlib stream uses stored (uncompressed) deflate blocks, so the
file is valid but not small. CRC-32 and Adler-32 are computed here rather
than borrowed from zlib.
"""

import struct
from collections import namedtuple
from operator import mul
from typing import List, Sequence, Tuple

PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'

# zlib header: deflate, 32K window, no preset dictionary, fastest level
ZLIB_HEADER = b'\x78\x01'

MAX_STORED_BLOCK = 65535

BIT_DEPTH = 8
COLOR_TYPE_RGBA = 6

BLACK = (0, 0, 0, 255)
WHITE = (255, 255, 255, 255)

Color = Tuple[int, int, int, int]

PngHeader = namedtuple('PngHeader', 'width height bit_depth color_type')


def _make_crc_table() -> List[int]:
    table = []
    for n in range(256):
        c = n
        for _ in range(8):
            if c & 1:
                c = 0xEDB88320 ^ (c >> 1)
            else:
                c >>= 1
        table.append(c)
    return table


CRC_TABLE = _make_crc_table()


def crc32(data: bytes, crc: int = 0) -> int:
    """CRC-32 (reflected polynomial 0xEDB88320) as used by PNG chunks."""
    crc ^= 0xFFFFFFFF
    for byte in data:
        crc = CRC_TABLE[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return crc ^ 0xFFFFFFFF


def adler32(data: bytes) -> int:
    """
    Adler-32 of data, starting from 1.

    Uses the closed form b = n + n*sum(d) - sum(i*d_i) instead of a running
    update per byte.
    """
    n = len(data)
    a = 1 + sum(data)
    b = n + n * (a - 1) - sum(map(mul, range(n), data))
    return ((b % 65521) << 16) | (a % 65521)


def rasterize(matrix: Sequence[Sequence[int]], scale: int, border: int,
              foreground: Color = BLACK, background: Color = WHITE) -> bytes:
    """
    Draw the matrix as RGBA pixels, one scale x scale square per module.

    Returns:
        width * height * 4 bytes, rows top to bottom, where
        width = height = (len(matrix) + 2 * border) * scale.
    """
    fg = bytes(foreground) * scale
    bg = bytes(background) * scale
    modules = len(matrix) + 2 * border

    quiet_row = bg * modules
    margin = bg * border

    rows = [quiet_row] * (border * scale)
    for line in matrix:
        pixel_row = margin + b''.join(fg if cell else bg for cell in line) + margin
        rows.extend([pixel_row] * scale)
    rows.extend([quiet_row] * (border * scale))
    return b''.join(rows)


def stored_deflate(data: bytes) -> bytes:
    """Split data into stored deflate blocks of at most 65535 bytes."""
    out = bytearray()
    offset = 0
    while True:
        chunk = data[offset:offset + MAX_STORED_BLOCK]
        offset += len(chunk)
        final = 1 if offset >= len(data) else 0
        # BFINAL bit, BTYPE 00; LEN and NLEN little-endian
        out += struct.pack('<BHH', final, len(chunk), len(chunk) ^ 0xFFFF)
        out += chunk
        if final:
            return bytes(out)


def make_chunk(chunk_type: bytes, payload: bytes) -> bytes:
    """Length, type, payload, CRC-32 over type + payload."""
    return (struct.pack('>I', len(payload)) + chunk_type + payload +
            struct.pack('>I', crc32(chunk_type + payload)))


def write_png(pixels: bytes, width: int, height: int) -> bytes:
    """Serialize RGBA pixels into a PNG file."""
    stride = width * 4
    assert len(pixels) == stride * height

    # Every scanline starts with filter type 0 (None)
    raw = b''.join(b'\x00' + pixels[y * stride:(y + 1) * stride]
                   for y in range(height))

    ihdr = struct.pack('>IIBBBBB', width, height, BIT_DEPTH, COLOR_TYPE_RGBA,
                       0, 0, 0)
    idat = ZLIB_HEADER + stored_deflate(raw) + struct.pack('>I', adler32(raw))

    return (PNG_SIGNATURE +
            make_chunk(b'IHDR', ihdr) +
            make_chunk(b'IDAT', idat) +
            make_chunk(b'IEND', b''))


def render_png(matrix: Sequence[Sequence[int]], scale: int = 8, border: int = 4,
               foreground: Color = BLACK, background: Color = WHITE) -> bytes:
    """Rasterize a module matrix and return the PNG bytes."""
    side = (len(matrix) + 2 * border) * scale
    pixels = rasterize(matrix, scale, border, foreground, background)
    return write_png(pixels, side, side)


def read_png_header(data: bytes) -> PngHeader:
    """
    Parse the signature and IHDR chunk of a PNG.

    Raises:
        ValueError: if the data is not a PNG or the IHDR CRC does not match.
    """
    if data[:8] != PNG_SIGNATURE:
        raise ValueError("Missing PNG signature")
    length, chunk_type = struct.unpack('>I4s', data[8:16])
    if chunk_type != b'IHDR' or length != 13:
        raise ValueError("First chunk is not a 13-byte IHDR")
    payload = data[16:29]
    (crc,) = struct.unpack('>I', data[29:33])
    if crc != crc32(chunk_type + payload):
        raise ValueError("IHDR CRC mismatch")
    width, height, depth, color_type = struct.unpack('>IIBB', payload[:10])
    return PngHeader(width, height, depth, color_type)
