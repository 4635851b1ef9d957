"""
Paillier key material consumed by the key-generation proofs.

Only the modulus structure matters here: the proofs need N, its prime
factors and phi(N). Encryption lives with the protocol layer.
"""

from dataclasses import dataclass
from typing import Tuple, Union
from Crypto.Util.number import getPrime
import gmpy2

from keygenzk.common.numbers import (
    get_random_positive_int,
    get_random_positive_relatively_prime_int,
)


def generate_blum_prime(bits: int) -> int:
    """
    Generates a prime p of a given bit length with p = 3 mod 4, so that
    the product of two of them is a Blum integer.
    """
    while True:
        p = getPrime(bits)
        if p % 4 == 3:
            return p


class PublicKey:
    """The public part of a Paillier key pair."""

    def __init__(self, n: Union[int, gmpy2.mpz]):
        self.n: gmpy2.mpz = gmpy2.mpz(n)

    def __eq__(self, other) -> bool:
        return isinstance(other, PublicKey) and self.n == other.n

    def __hash__(self) -> int:
        return hash(int(self.n))


class PrivateKey(PublicKey):
    """
    A Paillier private key. Holds the factorization N = p*q and
    phi(N) = (p-1)(q-1); proofs only ever read these values.
    """

    def __init__(
        self,
        n: Union[int, gmpy2.mpz],
        p: Union[int, gmpy2.mpz],
        q: Union[int, gmpy2.mpz],
        phi_n: Union[int, gmpy2.mpz, None] = None,
    ):
        super().__init__(n)
        self.p: gmpy2.mpz = gmpy2.mpz(p)
        self.q: gmpy2.mpz = gmpy2.mpz(q)
        if phi_n is None:
            phi_n = (self.p - 1) * (self.q - 1)
        self.phi_n: gmpy2.mpz = gmpy2.mpz(phi_n)
        if self.p * self.q != self.n:
            raise ValueError("N must equal p*q")
        if self.p == self.q:
            raise ValueError("p and q must be distinct")

    @property
    def public_key(self) -> PublicKey:
        return PublicKey(self.n)


@dataclass(frozen=True)
class PedersenParams:
    """
    Ring-Pedersen parameters (N, s, t) with s = t^lam mod N.

    `lam` is the prover's secret and must never be sent to other parties.
    """

    n: int
    s: int
    t: int
    lam: int

    def public(self) -> Tuple[int, int, int]:
        return self.n, self.s, self.t


def generate_key_pair(modulus_bit_len: int = 2048) -> Tuple[PrivateKey, PublicKey]:
    """
    Generates a Paillier key pair whose modulus is a Blum integer.

    Returns:
        A tuple of (private_key, public_key).
    """
    prime_bits = modulus_bit_len // 2

    p = generate_blum_prime(prime_bits)
    q = generate_blum_prime(prime_bits)
    while p == q:
        q = generate_blum_prime(prime_bits)

    private_key = PrivateKey(gmpy2.mpz(p) * q, p, q)
    return private_key, private_key.public_key


def generate_pedersen_params(private_key: PrivateKey) -> PedersenParams:
    """
    Derives ring-Pedersen parameters over the key's modulus: t is a random
    square and s = t^lam for a secret lam in [1, phi(N)).
    """
    n = private_key.n
    lam = get_random_positive_int(private_key.phi_n)
    r = get_random_positive_relatively_prime_int(n)
    t = gmpy2.powmod(r, 2, n)
    s = gmpy2.powmod(t, lam, n)
    return PedersenParams(int(n), int(s), int(t), int(lam))
