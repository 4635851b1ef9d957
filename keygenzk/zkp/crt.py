"""
Square and fourth roots modulo a product of two primes p, q = 3 mod 4.

Roots modulo each prime come from the closed form x^((p+1)/4), and are
glued together with the Chinese Remainder Theorem. The callers are
responsible for p and q really being such primes; proving that to others
is the job of the mod proof.
"""

from typing import List, Optional, Tuple
import gmpy2

from keygenzk.common.modmath import ModInt, extended_gcd


def bezout_coefficients(p: int, q: int) -> Tuple[gmpy2.mpz, gmpy2.mpz]:
    """Returns a, b with a*p + b*q = 1."""
    g, a, b = extended_gcd(p, q)
    if g != 1:
        raise ValueError("CRT moduli must be coprime")
    return a, b


def prime_sqrt(x: int, p: int) -> List[gmpy2.mpz]:
    """
    Returns [r, p - r] with r^2 = x mod p, or [] if x is not a square mod p.

    Only complete for primes p = 3 mod 4.
    """
    p = gmpy2.mpz(p)
    x = gmpy2.mpz(x) % p
    r = gmpy2.powmod(x, (p + 1) >> 2, p)
    if (r * r) % p != x:
        return []
    return [r, (-r) % p]


def composite_sqrt(
    x: int, p: int, q: int, n: int, coeffs: Optional[Tuple[int, int]] = None
) -> List[gmpy2.mpz]:
    """
    Returns the 0, 2 or 4 square roots of x modulo n = p*q.

    `coeffs` are the Bezout coefficients of (p, q); they are computed here
    when the caller does not pass them.
    """
    rps = prime_sqrt(x, p)
    rqs = prime_sqrt(x, q)
    if not rps or not rqs:
        return []

    a, b = coeffs if coeffs is not None else bezout_coefficients(p, q)
    mod_n = ModInt(n)
    # a*p + b*q = 1, so b*q = 1 mod p and a*p = 1 mod q
    bq = mod_n.mul(b, q)
    ap = mod_n.mul(a, p)

    res = []
    for rp in rps:
        for rq in rqs:
            res.append(mod_n.add(mod_n.mul(bq, rp), mod_n.mul(ap, rq)))
    return res


def composite_fourth_root(
    x: int, p: int, q: int, n: int, coeffs: Optional[Tuple[int, int]] = None
) -> List[gmpy2.mpz]:
    """Returns every fourth root of x modulo n = p*q, possibly with repeats."""
    if coeffs is None:
        coeffs = bezout_coefficients(p, q)
    res = []
    for sqroot in composite_sqrt(x, p, q, n, coeffs):
        res.extend(composite_sqrt(sqroot, p, q, n, coeffs))
    return res


def is_quadratic_residue_mod_prime(x: int, p: int) -> bool:
    return len(prime_sqrt(x, p)) > 0


def is_quadratic_residue_mod_composite(x: int, p: int, q: int) -> bool:
    return is_quadratic_residue_mod_prime(x, p) and is_quadratic_residue_mod_prime(x, q)


def quadratic_residue_mod_composite(
    x: int, p: int, q: int, n: int, y: int
) -> Optional[gmpy2.mpz]:
    """
    Returns the first square root r of y mod n for which r^4 = x mod n,
    or None when y has no such root.
    """
    mod_n = ModInt(n)
    for r in composite_sqrt(y, p, q, n):
        if mod_n.exp(r, 4) == gmpy2.mpz(x) % n:
            return r
    return None
