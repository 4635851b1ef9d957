import hashlib
import gmpy2
from Crypto.Util.number import getRandomRange

from keygenzk.common.modmath import jacobi


def get_random_int_below(bound: int) -> gmpy2.mpz:
    """Samples a uniformly random integer in [0, bound)."""
    return gmpy2.mpz(getRandomRange(0, int(bound)))


def get_random_positive_int(bound: int) -> gmpy2.mpz:
    """Samples a uniformly random integer in [1, bound)."""
    return gmpy2.mpz(getRandomRange(1, int(bound)))


def get_random_int_in_2power_mul_range(bits: int, m: int) -> gmpy2.mpz:
    """Samples a uniformly random integer in [0, 2^bits * m)."""
    return get_random_int_below(gmpy2.mpz(m) << bits)


def get_random_positive_relatively_prime_int(n: int) -> gmpy2.mpz:
    """Returns a random integer x where 0 < x < n and gcd(x, n) == 1."""
    while True:
        x = get_random_positive_int(n)
        if gmpy2.gcd(x, n) == 1:
            return x


def sample_invertible_with_neg_jacobi(n: int) -> gmpy2.mpz:
    """
    Samples a random integer 'w' in [1, n-1] such that its Jacobi
    symbol (w/n) is -1.
    """
    while True:
        w = get_random_positive_int(n)
        if jacobi(w, n) == -1:
            return w


def is_probable_prime(n: int, rounds: int) -> bool:
    """Miller-Rabin primality test with the given number of rounds."""
    return bool(gmpy2.is_prime(gmpy2.mpz(n), rounds))


def check_invertible_and_valid_mod(modulus: int, *vals: int) -> bool:
    """
    Checks if all provided values are in the range (0, modulus) and are
    relatively prime to the modulus.
    """
    for v in vals:
        if not (0 < v < modulus):
            return False
        if gmpy2.gcd(v, modulus) != 1:
            return False
    return True


def rejection_sample(modulus: int, h: int) -> gmpy2.mpz:
    """
    Generates a uniformly random integer in [0, modulus-1] from a seed 'h'.

    The seed is stretched with a counter until the accumulated value is
    wider than the modulus, so moduli larger than one digest are covered.
    """
    r = 0
    i = 0
    while r < modulus:
        inb = str(h + i).encode()
        r = (r << 256) | int.from_bytes(hashlib.sha256(inb).digest(), "big")
        i += 1
    return gmpy2.mpz(r % modulus)
