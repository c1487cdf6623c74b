"""
Galois Field GF(256) arithmetic and polynomials over it.

The field is built from the primitive polynomial x^8 + x^4 + x^3 + x^2 + 1
(0x11d) with generator alpha = 2, which is the field QR codes use for
Reed-Solomon error correction.

References:
- https://en.wikipedia.org/wiki/Finite_field_arithmetic
- https://research.swtch.com/field
"""

from typing import List, Sequence


class GF256:
    """
    Galois Field GF(2^8) with precomputed exponent and logarithm tables.

    The exponent table holds 512 entries: indices 255 and up repeat the first
    period so that exp_table[log a + log b] never needs a modulo.
    """

    PRIMITIVE_POLY = 0x11d  # x^8 + x^4 + x^3 + x^2 + 1 = 285

    def __init__(self):
        self.exp_table = [0] * 512
        self.log_table = [0] * 256
        self._build_tables()

    def _build_tables(self):
        """Build exponent and logarithm tables by repeated doubling."""
        x = 1
        for i in range(255):
            self.exp_table[i] = x
            self.log_table[x] = i
            x <<= 1
            if x & 0x100:  # 9th bit set, reduce
                x ^= self.PRIMITIVE_POLY
        for i in range(255, 512):
            self.exp_table[i] = self.exp_table[i - 255]

        self.log_table[0] = -1  # log(0) is undefined

    def multiply_no_table(self, a: int, b: int) -> int:
        """
        Multiply two elements without the lookup tables.

        Russian peasant multiplication with polynomial reduction; slow, but
        independent of the tables, which makes it a useful cross-check.
        """
        result = 0
        while b > 0:
            if b & 1:
                result ^= a
            b >>= 1
            a <<= 1
            if a & 0x100:
                a ^= self.PRIMITIVE_POLY
        return result

    def add(self, a: int, b: int) -> int:
        """Addition in GF(256) is XOR."""
        return a ^ b

    def multiply(self, a: int, b: int) -> int:
        """Multiply two GF(256) elements using log tables."""
        if a == 0 or b == 0:
            return 0
        return self.exp_table[(self.log_table[a] + self.log_table[b]) % 255]

    def divide(self, a: int, b: int) -> int:
        """Divide a by b in GF(256)."""
        if b == 0:
            raise ZeroDivisionError("Division by zero in GF(256)")
        if a == 0:
            return 0
        return self.exp_table[(self.log_table[a] - self.log_table[b]) % 255]

    def power(self, a: int, n: int) -> int:
        """Raise a to the power n in GF(256)."""
        if a == 0:
            return 0 if n > 0 else 1
        return self.exp_table[(self.log_table[a] * n) % 255]

    def inverse(self, a: int) -> int:
        """Multiplicative inverse of a; a^(-1) = a^254 since a^255 = 1."""
        if a == 0:
            raise ZeroDivisionError("No inverse for 0")
        return self.exp_table[255 - self.log_table[a]]


# Shared field instance
gf = GF256()


class Polynomial:
    """
    Polynomial with coefficients in GF(256).

    Coefficients are stored in ascending order of degree:
    coeffs[i] is the coefficient of x^i.
    """

    def __init__(self, coefficients: Sequence[int], field: GF256 = None):
        self.gf = field or gf
        self.coeffs = list(coefficients)
        while len(self.coeffs) > 1 and self.coeffs[-1] == 0:
            self.coeffs.pop()

    @property
    def degree(self) -> int:
        return len(self.coeffs) - 1

    def __repr__(self) -> str:
        terms = []
        for i, c in enumerate(self.coeffs):
            if c != 0:
                if i == 0:
                    terms.append(f"{c}")
                elif i == 1:
                    terms.append(f"{c}x")
                else:
                    terms.append(f"{c}x^{i}")
        return " + ".join(terms) if terms else "0"

    def evaluate(self, x: int) -> int:
        """Evaluate polynomial at x using Horner's method."""
        result = 0
        for coeff in reversed(self.coeffs):
            result = self.gf.add(self.gf.multiply(result, x), coeff)
        return result

    def multiply(self, other: 'Polynomial') -> 'Polynomial':
        """Multiply two polynomials."""
        result = [0] * (len(self.coeffs) + len(other.coeffs) - 1)
        for i, a in enumerate(self.coeffs):
            if a == 0:
                continue
            for j, b in enumerate(other.coeffs):
                result[i + j] ^= self.gf.multiply(a, b)
        return Polynomial(result, self.gf)

    def high_first(self) -> List[int]:
        """Coefficients from the highest degree down."""
        return list(reversed(self.coeffs))
