"""
Implements the ring-Pedersen parameter proof (Paillier PRM) from CGGMP21.

This proof demonstrates knowledge of a discrete logarithm `lambda` such that
`s = t^lambda mod N`, where `s` and `t` are elements of Z_N^*. It is repeated
PARAM_M times with one challenge bit per repetition.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple
import logging
import gmpy2

from keygenzk.common.modmath import ModInt
from keygenzk.common.numbers import get_random_positive_int
from keygenzk.common.utils import bytes_to_int, int_to_bytes
from keygenzk.errors import (
    MalformedProofError,
    ProofDecodeError,
    ProofGenerationError,
    VerificationError,
)
from keygenzk.zkp.hash import hash_to_bits

logger = logging.getLogger(__name__)

PARAM_M = 80
Iterations = PARAM_M
ProofPrmBytesParts = Iterations * 2


def param_challenge(N: int, s: int, t: int, A: List[int]) -> List[int]:
    """Fiat-Shamir challenge bits for the commitments A."""
    return hash_to_bits([int(a) for a in A], int(N), int(s), int(t))


@dataclass(frozen=True)
class ProofPrm:
    """Represents a zero-knowledge proof of knowledge for Paillier PRM."""

    A: Tuple[Optional[int], ...]
    Z: Tuple[Optional[int], ...]

    def __post_init__(self):
        for name in ("A", "Z"):
            values = getattr(self, name)
            if values is not None:
                object.__setattr__(self, name, tuple(values))

    @staticmethod
    def new_proof(s: int, t: int, N: int, Phi: int, lam: int) -> "ProofPrm":
        """Generates a new Prm proof for s = t^lam mod N."""
        if not all([s, t, N, Phi, lam]):
            raise ProofGenerationError("Prm proof input is not valid")

        mod_n = ModInt(N)
        Phi, lam = gmpy2.mpz(Phi), gmpy2.mpz(lam)

        # 1. Sample random exponents and compute commitments.
        a = [get_random_positive_int(Phi) for _ in range(Iterations)]
        A = [mod_n.exp(t, ai) for ai in a]

        # 2. Compute Fiat-Shamir challenge.
        e = param_challenge(N, s, t, A)

        # 3. Compute responses.
        Z = [(a[i] + e[i] * lam) % Phi for i in range(Iterations)]

        logger.debug("generated prm proof over a %d-bit modulus", gmpy2.mpz(N).bit_length())
        return ProofPrm(tuple(int(v) for v in A), tuple(int(v) for v in Z))

    @staticmethod
    def from_bytes(parts: List[bytes]) -> "ProofPrm":
        """Deserializes a proof from a list of byte strings."""
        if not parts or len(parts) != ProofPrmBytesParts:
            raise ProofDecodeError(
                f"expected {ProofPrmBytesParts} byte parts to construct ProofPrm"
            )
        return ProofPrm.unmarshal(parts[:Iterations], parts[Iterations:])

    @staticmethod
    def unmarshal(as_: List[bytes], zs: List[bytes]) -> "ProofPrm":
        """Builds a proof from its commitment and response byte parts."""
        if as_ is None or len(as_) != Iterations:
            raise ProofDecodeError(
                f"incorrect number of commitments: {0 if as_ is None else len(as_)}, expected {Iterations}"
            )
        if zs is None or len(zs) != Iterations:
            raise ProofDecodeError(
                f"incorrect number of responses: {0 if zs is None else len(zs)}, expected {Iterations}"
            )
        for name, parts in (("A", as_), ("Z", zs)):
            for i, b in enumerate(parts):
                if not b:
                    raise ProofDecodeError(f"ProofPrm {name}[{i}] is empty")
        return ProofPrm(
            tuple(bytes_to_int(b) for b in as_), tuple(bytes_to_int(b) for b in zs)
        )

    def to_bytes_parts(self) -> List[bytes]:
        """Serializes the proof into a list of byte strings for transport."""
        out: List[bytes] = []
        out += [int_to_bytes(a) for a in self.A]
        out += [int_to_bytes(z) for z in self.Z]
        return out

    def validate_basic(self) -> bool:
        """Performs basic structural validation of the proof components."""
        if self.A is None or len(self.A) != Iterations or any(a is None for a in self.A):
            return False
        if self.Z is None or len(self.Z) != Iterations or any(z is None for z in self.Z):
            return False
        return True

    def _require_complete(self) -> None:
        for name, values in (("A", self.A), ("Z", self.Z)):
            if values is None or len(values) != Iterations:
                raise MalformedProofError(name)
            for i, v in enumerate(values):
                if v is None:
                    raise MalformedProofError(name, i)

    def verify(self, s: int, t: int, N: int) -> Tuple[bool, Optional[str]]:
        """
        Verifies the Prm proof.

        Returns (True, None) on success and (False, reason) otherwise. A proof
        with missing components raises MalformedProofError instead.
        """
        self._require_complete()
        if not all([s, t, N]) or N <= 0:
            return self._reject("public parameters N, s, t must be non-zero")

        N_mpz = gmpy2.mpz(N)
        mod_n = ModInt(N_mpz)

        # Perform security checks to ensure values are valid group elements.
        s_, t_ = gmpy2.mpz(s) % N_mpz, gmpy2.mpz(t) % N_mpz
        if not (1 < s_ < N_mpz) or not (1 < t_ < N_mpz) or s_ == t_:
            return self._reject("s and t must be distinct elements of (1, N)")
        for i, a in enumerate(self.A):
            if not (1 < a < N_mpz):
                return self._reject(f"A_{i} is outside (1, N)")
        # The `Z` values are exponents, not group elements, so they only need
        # to be non-negative.
        for i, z in enumerate(self.Z):
            if z < 0:
                return self._reject(f"Z_{i} is negative")

        # Recompute the Fiat-Shamir challenge.
        e = param_challenge(N, s, t, self.A)

        # Check: t^Z_i == A_i * s^e_i (mod N)
        for i in range(Iterations):
            if mod_n.exp(t, self.Z[i]) != mod_n.mul_exp(self.A[i], s, e[i]):
                return self._reject(f"t^Z_{i} != A_{i} * s^e_{i}")

        return True, None

    def ensure_verified(self, s: int, t: int, N: int) -> None:
        """Like verify, but raises VerificationError on rejection."""
        ok, reason = self.verify(s, t, N)
        if not ok:
            raise VerificationError(f"prm proof verify: {reason}")

    @staticmethod
    def _reject(reason: str) -> Tuple[bool, str]:
        logger.info("prm proof rejected: %s", reason)
        return False, reason
