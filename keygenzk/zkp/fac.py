"""
Implements the no-small-factor proof (Fac) from the CGGMP21 protocol.

The prover commits to the factors p, q of its modulus N0 with the
verifier's ring-Pedersen parameters (NCap, s, t) and shows that both
factors are below 2^(L+E) * sqrt(N0). Responses are plain integer linear
combinations and may be negative, so the proof uses signed encodings.
"""

from dataclasses import dataclass, fields
from typing import List, Optional, Tuple
import logging
import gmpy2

from keygenzk.common.modmath import ModInt, add_mul
from keygenzk.common.numbers import (
    check_invertible_and_valid_mod,
    get_random_int_in_2power_mul_range,
)
from keygenzk.common.utils import marshal_signed, unmarshal_signed
from keygenzk.errors import (
    MalformedProofError,
    ProofDecodeError,
    ProofGenerationError,
    VerificationError,
)
from keygenzk.zkp.hash import hash_to_n

logger = logging.getLogger(__name__)

PARAM_L = 256  # 1 * secp256k1 element bit length
PARAM_E = 512  # 2 * secp256k1 element bit length
FACTOR_CHALLENGE_BITS = 256
ProofFacBytesParts = 11


def factor_challenge(
    N: int, s: int, t: int, N0: int, P: int, Q: int, A: int, B: int, T: int, sigma: int
) -> int:
    """
    Fiat-Shamir challenge e in [-(q-1), q-1), q = 2^256.

    The q here only sets the challenge width; it plays the role of the
    curve order in the interactive protocol.
    """
    q = 1 << FACTOR_CHALLENGE_BITS
    h = hash_to_n(2 * q - 1, N, s, t, N0, P, Q, A, B, T, sigma)
    return h - (q - 1)


def response_bound(N0: int) -> gmpy2.mpz:
    """Bound 2^(L+E) * isqrt(N0) on |z1| and |z2|."""
    return gmpy2.isqrt(gmpy2.mpz(N0)) << (PARAM_L + PARAM_E)


@dataclass(frozen=True)
class ProofFac:
    """
    Represents a zero-knowledge proof that the factors of N0 are not small.
    It demonstrates that the prover knows p, q with N0 = p*q, each of about
    sqrt(N0) size, without revealing p and q.
    """

    # Commitment
    P: Optional[int]
    Q: Optional[int]
    A: Optional[int]
    B: Optional[int]
    T: Optional[int]
    Sigma: Optional[int]
    # Response
    Z1: Optional[int]
    Z2: Optional[int]
    W1: Optional[int]
    W2: Optional[int]
    V: Optional[int]

    @staticmethod
    def new_proof(
        N0: int,
        NCap: int,
        s: int,
        t: int,
        N0p: int,
        N0q: int,
    ) -> "ProofFac":
        """
        Generates a new ProofFac using the Fiat-Shamir heuristic.

        Args:
            N0: The modulus whose factorization (N0p, N0q) is known.
            NCap: The verifier's Ring-Pedersen modulus.
            s, t: The verifier's Ring-Pedersen parameters.
            N0p, N0q: The prime factors of N0.
        """
        if not all([N0, NCap, s, t, N0p, N0q]):
            raise ProofGenerationError("new_proof received a nil/zero argument")

        N0, NCap = map(gmpy2.mpz, (N0, NCap))
        s, t, N0p, N0q = map(gmpy2.mpz, (s, t, N0p, N0q))
        if N0p * N0q != N0:
            raise ProofGenerationError("N0 must equal N0p * N0q")

        sqrtN0 = gmpy2.isqrt(N0)

        # 1. Sample random values for the commitment phase.
        alpha = get_random_int_in_2power_mul_range(PARAM_L + PARAM_E, sqrtN0)
        beta = get_random_int_in_2power_mul_range(PARAM_L + PARAM_E, sqrtN0)
        mu = get_random_int_in_2power_mul_range(PARAM_L, NCap)
        nu = get_random_int_in_2power_mul_range(PARAM_L, NCap)
        sigma = get_random_int_in_2power_mul_range(PARAM_L, N0 * NCap)
        r = get_random_int_in_2power_mul_range(PARAM_L + PARAM_E, N0 * NCap)
        x = get_random_int_in_2power_mul_range(PARAM_L + PARAM_E, NCap)
        y = get_random_int_in_2power_mul_range(PARAM_L + PARAM_E, NCap)

        # 2. Create commitments to the secret values.
        mod_ncap = ModInt(NCap)
        P = mod_ncap.exp_mul_exp(s, N0p, t, mu)
        Q = mod_ncap.exp_mul_exp(s, N0q, t, nu)
        A = mod_ncap.exp_mul_exp(s, alpha, t, x)
        B = mod_ncap.exp_mul_exp(s, beta, t, y)
        T = mod_ncap.exp_mul_exp(Q, alpha, t, r)

        # 3. Generate Fiat-Shamir challenge from the public context and commitments.
        e = factor_challenge(NCap, s, t, N0, P, Q, A, B, T, sigma)

        # 4. Compute responses based on the challenge. None are reduced.
        sigma_hat = sigma - nu * N0p
        z1 = add_mul(alpha, e, N0p)
        z2 = add_mul(beta, e, N0q)
        w1 = add_mul(x, e, mu)
        w2 = add_mul(y, e, nu)
        v = add_mul(r, e, sigma_hat)

        logger.debug("generated fac proof for a %d-bit modulus", N0.bit_length())
        return ProofFac(
            *(int(i) for i in (P, Q, A, B, T, sigma, z1, z2, w1, w2, v))
        )

    @staticmethod
    def from_bytes(parts: List[bytes]) -> "ProofFac":
        """Deserializes a proof from a list of signed byte strings."""
        if not parts or len(parts) != ProofFacBytesParts:
            raise ProofDecodeError(
                f"expected {ProofFacBytesParts} byte parts to construct ProofFac"
            )
        return ProofFac(*(unmarshal_signed(b) for b in parts))

    def to_bytes_parts(self) -> List[bytes]:
        """Serializes the proof into a list of signed byte strings."""
        return [marshal_signed(v) for v in self._values()]

    def _values(self) -> List[Optional[int]]:
        return [getattr(self, f.name) for f in fields(self)]

    def validate_basic(self) -> bool:
        """Performs a basic check to ensure all proof components are present."""
        return all(v is not None for v in self._values())

    def _require_complete(self) -> None:
        for f in fields(self):
            if getattr(self, f.name) is None:
                raise MalformedProofError(f.name)

    def verify(self, N0: int, NCap: int, s: int, t: int) -> Tuple[bool, Optional[str]]:
        """
        Verifies the Proof of Factorization against the prover's modulus N0
        and the verifier's own Ring-Pedersen parameters (NCap, s, t).

        Returns (True, None) on success and (False, reason) otherwise. A proof
        with missing components raises MalformedProofError.
        """
        self._require_complete()
        if not all([N0, NCap, s, t]) or N0 <= 0 or NCap <= 0:
            return self._reject("public parameters N0, NCap, s, t must be positive")

        N0, NCap, s, t = map(gmpy2.mpz, (N0, NCap, s, t))
        if not check_invertible_and_valid_mod(NCap, s, t):
            return self._reject("s and t must be invertible elements of (0, NCap)")
        if not check_invertible_and_valid_mod(NCap, self.P, self.Q, self.A, self.B, self.T):
            return self._reject("P, Q, A, B, T must be invertible elements of (0, NCap)")
        if self.Sigma < 0:
            return self._reject("sigma must be non-negative")

        # 1. Recompute the Fiat-Shamir challenge.
        e = factor_challenge(NCap, s, t, N0, self.P, self.Q, self.A, self.B, self.T, self.Sigma)

        mod_ncap = ModInt(NCap)
        R = mod_ncap.exp_mul_exp(s, N0, t, self.Sigma)

        # 2. Verify the three cryptographic equalities.
        # Check 1: s^Z1 * t^W1 == A * P^e (mod NCap)
        if mod_ncap.exp_mul_exp(s, self.Z1, t, self.W1) != mod_ncap.mul_exp(self.A, self.P, e):
            return self._reject("s^z1 * t^w1 != A * P^e")
        # Check 2: s^Z2 * t^W2 == B * Q^e (mod NCap)
        if mod_ncap.exp_mul_exp(s, self.Z2, t, self.W2) != mod_ncap.mul_exp(self.B, self.Q, e):
            return self._reject("s^z2 * t^w2 != B * Q^e")
        # Check 3: Q^Z1 * t^V == T * (s^N0 * t^Sigma)^e (mod NCap)
        if mod_ncap.exp_mul_exp(self.Q, self.Z1, t, self.V) != mod_ncap.mul_exp(self.T, R, e):
            return self._reject("Q^z1 * t^v != T * R^e")

        # 3. Range checks on the responses.
        limit = response_bound(N0)
        if abs(gmpy2.mpz(self.Z1)) > limit:
            return self._reject("z1 exceeds 2^(L+E) * sqrt(N0)")
        if abs(gmpy2.mpz(self.Z2)) > limit:
            return self._reject("z2 exceeds 2^(L+E) * sqrt(N0)")

        return True, None

    def ensure_verified(self, N0: int, NCap: int, s: int, t: int) -> None:
        """Like verify, but raises VerificationError on rejection."""
        ok, reason = self.verify(N0, NCap, s, t)
        if not ok:
            raise VerificationError(f"fac proof verify: {reason}")

    @staticmethod
    def _reject(reason: str) -> Tuple[bool, str]:
        logger.info("fac proof rejected: %s", reason)
        return False, reason
