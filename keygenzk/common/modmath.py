"""
Modular arithmetic helpers shared by the proofs.

All heavy lifting is done by gmpy2. `ModInt` binds a modulus the same way
the proofs talk about "mod N" and exposes the exponentiation shapes that the
verification equations use.
"""

from typing import Tuple, Union
import gmpy2

from keygenzk.errors import ModularArithmeticError


IntLike = Union[int, "gmpy2.mpz"]


def mod_inverse(a: IntLike, m: IntLike) -> gmpy2.mpz:
    """Returns a^-1 mod m, raising if a is not invertible."""
    if m == 0:
        raise ModularArithmeticError("modulus must be non-zero")
    try:
        return gmpy2.invert(gmpy2.mpz(a), gmpy2.mpz(m))
    except ZeroDivisionError:  # gmpy2 raises this for non-invertible cases
        raise ModularArithmeticError(f"{a} is not invertible modulo {m}")


def extended_gcd(a: IntLike, b: IntLike) -> Tuple[gmpy2.mpz, gmpy2.mpz, gmpy2.mpz]:
    """Returns (g, x, y) with g = gcd(a, b) = x*a + y*b."""
    g, x, y = gmpy2.gcdext(gmpy2.mpz(a), gmpy2.mpz(b))
    return g, x, y


def jacobi(a: IntLike, n: IntLike) -> int:
    """Computes the Jacobi symbol (a/n) for odd positive n."""
    if n <= 0 or n % 2 == 0:
        raise ModularArithmeticError(f"Jacobi symbol needs an odd positive modulus, got {n}")
    return int(gmpy2.jacobi(gmpy2.mpz(a), gmpy2.mpz(n)))


def add_mul(a: IntLike, e: IntLike, b: IntLike) -> gmpy2.mpz:
    """
    Returns a + e*b over the integers.

    Proof responses built this way must stay unreduced: their size is what
    the verifier's range checks bound.
    """
    return gmpy2.mpz(a) + gmpy2.mpz(e) * gmpy2.mpz(b)


class ModInt:
    """Arithmetic modulo a fixed positive modulus."""

    def __init__(self, modulus: IntLike):
        if modulus <= 0:
            raise ModularArithmeticError(f"modulus must be positive, got {modulus}")
        self.m = gmpy2.mpz(modulus)

    def _signed_base(self, base: IntLike, exponent: IntLike) -> Tuple[gmpy2.mpz, gmpy2.mpz]:
        # x^-k == (x^-1)^k
        base, exponent = gmpy2.mpz(base) % self.m, gmpy2.mpz(exponent)
        if exponent < 0:
            return mod_inverse(base, self.m), -exponent
        return base, exponent

    def add(self, a: IntLike, b: IntLike) -> gmpy2.mpz:
        return (gmpy2.mpz(a) + gmpy2.mpz(b)) % self.m

    def mul(self, a: IntLike, b: IntLike) -> gmpy2.mpz:
        return (gmpy2.mpz(a) * gmpy2.mpz(b)) % self.m

    def inverse(self, a: IntLike) -> gmpy2.mpz:
        return mod_inverse(a, self.m)

    def exp(self, base: IntLike, exponent: IntLike) -> gmpy2.mpz:
        """Returns base^exponent mod m."""
        base, exponent = self._signed_base(base, exponent)
        return gmpy2.powmod(base, exponent, self.m)

    def mul_exp(self, a: IntLike, b: IntLike, e: IntLike) -> gmpy2.mpz:
        """Returns a * b^e mod m."""
        return (gmpy2.mpz(a) * self.exp(b, e)) % self.m

    def exp_mul_exp(self, a: IntLike, x: IntLike, b: IntLike, y: IntLike) -> gmpy2.mpz:
        """
        Returns a^x * b^y mod m.

        Both exponents are consumed by one square-and-multiply pass (Shamir's
        trick): a single squaring per bit and at most one multiplication by
        a, b or the precomputed a*b.
        """
        a, x = self._signed_base(a, x)
        b, y = self._signed_base(b, y)
        m = self.m
        ab = (a * b) % m

        result = gmpy2.mpz(1) % m
        for i in range(max(x.bit_length(), y.bit_length()) - 1, -1, -1):
            result = (result * result) % m
            xi, yi = x.bit_test(i), y.bit_test(i)
            if xi and yi:
                result = (result * ab) % m
            elif xi:
                result = (result * a) % m
            elif yi:
                result = (result * b) % m
        return result
