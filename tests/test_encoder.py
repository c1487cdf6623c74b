import pytest

import diyqr
from diyqr import (
    ErrorLevel,
    InvalidConfiguration,
    MaskPattern,
    MaskPolicy,
    Mode,
    PayloadTooLarge,
    QRCode,
    QRError,
    UnsupportedCharacter,
    encode,
    render,
)
from diyqr.bch import format_bits, version_bits
from diyqr.bitstream import encode_segment, pad_to_capacity
from diyqr.encoder import _upgrade_if_fits, scanner_error_level
from diyqr.masking import SCANNER_FRIENDLY_MASKS, evaluate_mask
from diyqr.matrix import QRMatrix, format_bits_to_list
from diyqr.modes import payload_bit_length
from diyqr.png import PNG_SIGNATURE, read_png_header
from diyqr.reed_solomon import rs_encoder
from diyqr.tables import block_layout, data_codewords, symbol_size, total_codewords


def read_format(matrix):
    """Both format copies as 15-bit lists, MSB first."""
    size = len(matrix)
    m = matrix
    primary = [m[8][0], m[8][1], m[8][2], m[8][3], m[8][4], m[8][5], m[8][7], m[8][8],
               m[7][8], m[5][8], m[4][8], m[3][8], m[2][8], m[1][8], m[0][8]]
    secondary = ([m[size - 1 - i][8] for i in range(7)] +
                 [m[8][size - 8 + i] for i in range(8)])
    return primary, secondary


def read_codewords(qr):
    """Walk the zigzag, undo the mask and return the raw interleaved codewords."""
    size = qr.size
    layout = QRMatrix(qr.version)
    pattern = MaskPattern(qr.mask)
    bits = []
    col = size - 1
    while col >= 1:
        if col == 6:
            col -= 1
        upward = ((col + 1) & 2) == 0
        for i in range(size):
            row = size - 1 - i if upward else i
            for c in (col, col - 1):
                if layout.is_function[row][c]:
                    continue
                bits.append(qr.matrix[row][c] ^ int(pattern.applies(row, c)))
        col -= 2

    codewords = []
    for i in range(total_codewords(qr.version)):
        byte = 0
        for bit in bits[i * 8:i * 8 + 8]:
            byte = (byte << 1) | bit
        codewords.append(byte)
    return codewords


def deinterleave(codewords, version, level):
    lengths, ec_len = block_layout(version, level)
    data_blocks = [[] for _ in lengths]
    ec_blocks = [[] for _ in lengths]
    it = iter(codewords)
    for i in range(max(lengths)):
        for b, length in enumerate(lengths):
            if i < length:
                data_blocks[b].append(next(it))
    for _ in range(ec_len):
        for b in range(len(lengths)):
            ec_blocks[b].append(next(it))
    return data_blocks, ec_blocks, ec_len


def assert_decodes_to(qr, text):
    codewords = read_codewords(qr)
    data_blocks, ec_blocks, ec_len = deinterleave(codewords, qr.version, qr.error_level)
    for data, ec in zip(data_blocks, ec_blocks):
        assert rs_encoder.syndromes(data + ec, ec_len) == [0] * ec_len

    data = [cw for block in data_blocks for cw in block]
    bits = encode_segment(text, qr.mode, qr.version)
    expected = pad_to_capacity(bits, data_codewords(qr.version, qr.error_level) * 8)
    assert data == expected
    return data


def assert_format_matches(qr):
    primary, secondary = read_format(qr.matrix)
    expected = format_bits_to_list(format_bits(qr.error_level, qr.mask))
    assert primary == expected
    assert secondary == expected


def test_numeric_version_1():
    qr = encode("12345", "M")
    assert isinstance(qr, QRCode)
    assert qr.version == 1
    assert qr.size == 21
    assert qr.mode == Mode.NUMERIC
    assert qr.error_level is ErrorLevel.M
    data = assert_decodes_to(qr, "12345")
    assert data[0] >> 4 == 0b0001
    assert_format_matches(qr)
    assert qr.matrix[4 * 1 + 9][8] == 1


def test_hello_world_quartile():
    qr = encode("HELLO WORLD", ErrorLevel.Q)
    assert (qr.version, qr.mode) == (1, Mode.ALPHANUMERIC)
    data = assert_decodes_to(qr, "HELLO WORLD")
    assert data == [32, 91, 11, 120, 209, 114, 220, 77, 67, 64, 236, 17, 236]
    assert_format_matches(qr)


def test_lowercase_uses_alphanumeric():
    qr = encode("hello")
    assert qr.mode == Mode.ALPHANUMERIC
    assert_decodes_to(qr, "HELLO")


def test_byte_mode_url():
    text = "https://example.com/path?q=1"
    qr = encode(text, "L")
    assert qr.mode == Mode.BYTE
    data = assert_decodes_to(qr, text)
    assert data[0] >> 4 == 0b0100
    assert ((data[0] & 0x0F) << 4 | data[1] >> 4) == len(text)


def test_empty_text():
    qr = encode("")
    assert qr.version == 1
    assert qr.mode == Mode.NUMERIC
    data = assert_decodes_to(qr, "")
    assert data == [0x10, 0x00, 0x00] + [0xEC, 0x11] * 6 + [0xEC]


def test_multi_block_symbol():
    qr = encode("HELLO WORLD", "Q", min_version=5)
    assert qr.version == 5
    assert block_layout(5, ErrorLevel.Q) == ([15, 15, 16, 16], 18)
    assert_decodes_to(qr, "HELLO WORLD")
    assert_format_matches(qr)


def test_version_info_present_from_version_7():
    qr = encode("VERSION SEVEN", "M", min_version=7)
    assert qr.version == 7
    size = qr.size
    value = 0
    mirrored = 0
    for i in range(18):
        value |= qr.matrix[i // 3][size - 11 + i % 3] << i
        mirrored |= qr.matrix[size - 11 + i % 3][i // 3] << i
    assert value == mirrored == version_bits(7) == 0x07C94
    assert_decodes_to(qr, "VERSION SEVEN")


def test_version_grows_with_payload():
    qr = encode("A" * 100, "H")
    assert qr.version > 1
    assert qr.size == symbol_size(qr.version)
    assert_decodes_to(qr, "A" * 100)


def test_large_payload():
    text = "x!" * 1000
    qr = encode(text, "L")
    assert qr.mode == Mode.BYTE
    assert qr.version > 27
    assert_decodes_to(qr, text)


def test_payload_too_large():
    with pytest.raises(PayloadTooLarge):
        encode("9" * 7090, "L")
    with pytest.raises(PayloadTooLarge):
        encode("x!" * 1477, "L")
    with pytest.raises(PayloadTooLarge):
        encode("\u00e9" * 1274, "H")


def test_all_modules_binary():
    qr = encode("Mixed content: 123 abc!", "H")
    assert all(cell in (0, 1) for row in qr.matrix for cell in row)
    assert all(len(row) == qr.size for row in qr.matrix)


def test_chosen_mask_has_lowest_penalty():
    qr = encode("HELLO WORLD", "Q")
    layout = QRMatrix(qr.version)
    layout.place_version_info()
    unmasked = [row[:] for row in qr.matrix]
    pattern = MaskPattern(qr.mask)
    for r in range(qr.size):
        for c in range(qr.size):
            if layout.is_function[r][c]:
                continue
            unmasked[r][c] ^= int(pattern.applies(r, c))
    penalties = [evaluate_mask(unmasked, layout.is_function, qr.error_level, m)
                 for m in range(8)]
    assert qr.penalty == min(penalties)
    assert qr.mask == penalties.index(min(penalties))


def test_forced_mask():
    for mask in range(8):
        qr = encode("FORCED", "M", mask=mask)
        assert qr.mask == mask
        assert_decodes_to(qr, "FORCED")
        assert_format_matches(qr)


def test_scanner_friendly_policy():
    qr = encode("HELLO WORLD", "Q", mask_policy=MaskPolicy.SCANNER_FRIENDLY)
    iso = encode("HELLO WORLD", "Q")
    assert qr.mask in SCANNER_FRIENDLY_MASKS or qr.mask == iso.mask
    assert qr.penalty >= iso.penalty
    assert_decodes_to(qr, "HELLO WORLD")


def test_parallel_matches_serial():
    serial = encode("https://example.com", "M")
    threaded = encode("https://example.com", "M", parallel=True)
    assert serial.matrix == threaded.matrix
    assert serial.mask == threaded.mask


def test_deterministic():
    assert encode("same input").matrix == encode("same input").matrix


@pytest.mark.parametrize("kwargs", [
    {"error_level": "X"},
    {"error_level": 2},
    {"mask": 8},
    {"mask": -1},
    {"mask": True},
    {"min_version": 0},
    {"min_version": 41},
    {"mask_policy": "iso"},
])
def test_invalid_configuration(kwargs):
    with pytest.raises(InvalidConfiguration):
        encode("HELLO", **kwargs)


def test_error_level_case_insensitive():
    assert encode("HELLO", "q").error_level is ErrorLevel.Q


def test_unsupported_character():
    with pytest.raises(UnsupportedCharacter):
        encode("bad \ud800 surrogate")


def test_errors_are_value_errors():
    assert issubclass(QRError, ValueError)
    for exc in (PayloadTooLarge, UnsupportedCharacter, InvalidConfiguration):
        assert issubclass(exc, QRError)


def test_render_png_header():
    qr = encode("HELLO WORLD", "Q")
    png = render(qr, module_scale=8, border_modules=4)
    assert png.startswith(PNG_SIGNATURE)
    header = read_png_header(png)
    assert header.width == header.height == (21 + 8) * 8
    assert qr.to_png(scale=2, border=0)[:8] == PNG_SIGNATURE
    assert read_png_header(qr.to_png(scale=2, border=0)).width == 42


def test_render_accepts_bare_matrix():
    png = render([[1, 0], [0, 1]], module_scale=1, border_modules=1)
    assert read_png_header(png).width == 4


@pytest.mark.parametrize("scale,border", [(0, 4), (-1, 4), (8, -1), (1.5, 4)])
def test_render_rejects_bad_arguments(scale, border):
    qr = encode("1")
    with pytest.raises(InvalidConfiguration):
        render(qr, scale, border)


def test_to_string():
    qr = encode("HELLO")
    text = qr.to_string(border=1)
    lines = text.split("\n")
    assert len(lines) == qr.size + 2
    assert all(len(line) == 2 * (qr.size + 2) for line in lines)
    assert lines[1].startswith("  ██████████████")


def test_to_pil_image():
    qr = encode("HELLO")
    img = qr.to_pil_image(scale=2, border=1)
    assert img.size == ((qr.size + 2) * 2,) * 2
    assert img.getpixel((0, 0)) != 0
    assert img.getpixel((2, 2)) == 0


def test_repr_and_version():
    qr = encode("12345")
    assert repr(qr) == f"QRCode(version=1, error_level=M, mode=NUMERIC, mask={qr.mask})"
    assert diyqr.__version__


@pytest.mark.parametrize("text,requested,expected", [
    # Under 10 characters goes to H from any level
    ("HELLO", ErrorLevel.L, ErrorLevel.H),
    ("123456789", ErrorLevel.Q, ErrorLevel.H),
    # Email addresses, links and structured payloads at M
    ("user@example.com", ErrorLevel.M, ErrorLevel.H),
    ("https://example.com/page", ErrorLevel.M, ErrorLevel.H),
    ("mailto:someone", ErrorLevel.M, ErrorLevel.H),
    ("tel:+15551234567", ErrorLevel.M, ErrorLevel.H),
    ("sms:+15551234567", ErrorLevel.M, ErrorLevel.H),
    ("WiFi:S:home;T:WPA;P:secret;;", ErrorLevel.M, ErrorLevel.H),
    # Short text with awkward punctuation at M
    ("Price (approx) 5$", ErrorLevel.M, ErrorLevel.H),
    # Left alone
    ("user@example.com", ErrorLevel.L, ErrorLevel.L),
    ("https://example.com/page", ErrorLevel.Q, ErrorLevel.Q),
    ("a much longer sentence (with brackets)", ErrorLevel.M, ErrorLevel.M),
    ("PLAIN TEXT OF SOME LENGTH", ErrorLevel.M, ErrorLevel.M),
    ("HI", ErrorLevel.H, ErrorLevel.H),
])
def test_scanner_error_level(text, requested, expected):
    assert scanner_error_level(text, requested) is expected


def test_upgrade_error_level_is_opt_in():
    assert encode("HELLO", "L").error_level is ErrorLevel.L
    qr = encode("HELLO", "L", upgrade_error_level=True)
    assert qr.error_level is ErrorLevel.H
    assert_decodes_to(qr, "HELLO")
    assert_format_matches(qr)


def test_upgrade_keeps_level_when_h_does_not_fit():
    # 1401 bytes fit version 40 at M but not at H
    text = "@" + "x!" * 700
    bits = payload_bit_length(text, Mode.BYTE)
    assert scanner_error_level(text, ErrorLevel.M) is ErrorLevel.H
    assert _upgrade_if_fits(text, Mode.BYTE, bits, ErrorLevel.M, 1) is ErrorLevel.M
    assert _upgrade_if_fits("x@y.org", Mode.BYTE, 56, ErrorLevel.M, 1) is ErrorLevel.H


@pytest.mark.parametrize("color", [
    (300, 0, 0, 255),
    (0, 0, 0, -1),
    (0, 0, 0),
    [0, 0, 0, 255],
    (0.5, 0, 0, 255),
])
def test_render_rejects_bad_colors(color):
    qr = encode("1")
    with pytest.raises(InvalidConfiguration):
        render(qr, 1, 0, foreground=color)
    with pytest.raises(InvalidConfiguration):
        qr.to_png(background=color)


def test_render_scaled_with_border():
    qr = encode("12345", "M")
    png = render(qr, module_scale=8, border_modules=4)
    header = read_png_header(png)
    assert header.width == header.height == (21 + 2 * 4) * 8
