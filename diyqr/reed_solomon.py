"""
Reed-Solomon error correction for QR codes, and the block split/interleave
that turns data codewords into the final codeword sequence.

References:
- https://en.wikipedia.org/wiki/Reed-Solomon_error_correction
- https://en.wikiversity.org/wiki/Reed-Solomon_codes_for_coders
"""

import logging
from typing import Dict, List, Sequence

from .galois import GF256, Polynomial, gf
from .tables import ErrorLevel, block_layout

logger = logging.getLogger(__name__)


class ReedSolomonEncoder:
    """Systematic RS encoder over GF(256); generators are cached per degree."""

    def __init__(self, field: GF256 = None):
        self.gf = field or gf
        self._generator_cache: Dict[int, Polynomial] = {}

    def build_generator(self, num_ec_codewords: int) -> Polynomial:
        """
        Build generator polynomial for given number of EC codewords.

        g(x) = (x - alpha^0)(x - alpha^1)...(x - alpha^(n-1))
             = (x + alpha^0)(x + alpha^1)...(x + alpha^(n-1))

        In GF(256), subtraction equals addition.
        """
        if num_ec_codewords in self._generator_cache:
            return self._generator_cache[num_ec_codewords]

        gen = Polynomial([1], self.gf)
        for i in range(num_ec_codewords):
            # coeffs [alpha^i, 1] represents alpha^i + x
            gen = gen.multiply(Polynomial([self.gf.exp_table[i], 1], self.gf))

        self._generator_cache[num_ec_codewords] = gen
        return gen

    def encode(self, data: Sequence[int], num_ec_codewords: int) -> List[int]:
        """
        Compute the error correction codewords for one block.

        Args:
            data: List of data bytes (integers 0-255)
            num_ec_codewords: Number of error correction codewords to generate

        Returns:
            List of error correction codewords
        """
        generator = self.build_generator(num_ec_codewords)
        return self._divide_for_remainder(data, generator, num_ec_codewords)

    def _divide_for_remainder(self, data: Sequence[int], generator: Polynomial,
                              num_ec: int) -> List[int]:
        """
        Remainder of data * x^num_ec divided by the generator, by synthetic
        division from the leading coefficient down.
        """
        result = list(data) + [0] * num_ec
        gen_coeffs = generator.high_first()

        for i in range(len(data)):
            coeff = result[i]
            if coeff != 0:
                for j in range(len(gen_coeffs)):
                    result[i + j] ^= self.gf.multiply(gen_coeffs[j], coeff)

        return result[len(data):]

    def syndromes(self, codeword: Sequence[int], num_ec_codewords: int) -> List[int]:
        """
        Evaluate a received block (data followed by EC, highest degree first)
        at alpha^0 .. alpha^(n-1). All zero means no detectable error.
        """
        poly = Polynomial(list(reversed(codeword)), self.gf)
        return [poly.evaluate(self.gf.exp_table[i]) for i in range(num_ec_codewords)]


# Shared encoder instance
rs_encoder = ReedSolomonEncoder()


def split_blocks(data: Sequence[int], version: int,
                 level: ErrorLevel) -> List[List[int]]:
    """Split data codewords into the RS blocks for this version and level."""
    lengths, _ = block_layout(version, level)
    assert sum(lengths) == len(data)
    blocks = []
    k = 0
    for length in lengths:
        blocks.append(list(data[k:k + length]))
        k += length
    return blocks


def interleave_blocks(data: Sequence[int], version: int,
                      level: ErrorLevel) -> List[int]:
    """
    Compute EC per block and interleave.

    The result is the column-wise interleave of the data blocks (long blocks
    contribute one trailing codeword) followed by the column-wise interleave
    of the EC blocks.
    """
    _, ec_len = block_layout(version, level)
    data_blocks = split_blocks(data, version, level)
    ec_blocks = [rs_encoder.encode(block, ec_len) for block in data_blocks]

    result = []
    for i in range(max(len(b) for b in data_blocks)):
        for block in data_blocks:
            if i < len(block):
                result.append(block[i])
    for i in range(ec_len):
        for block in ec_blocks:
            result.append(block[i])

    logger.debug("Interleaved %d blocks: %d data + %d EC codewords",
                 len(data_blocks), len(data), ec_len * len(ec_blocks))
    return result
