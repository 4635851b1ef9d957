"""
Implements the Paillier-Blum modulus proof from the CGGMP21 paper,
Figure 16, made non-interactive with Fiat-Shamir.

The proof demonstrates that N is a product of two primes p, q = 3 mod 4
without revealing them. Each of the PARAM_M rounds carries a fourth root
x_i of a sign/twist adjusted challenge and an N-th root z_i of the
challenge itself.
"""

from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Tuple
import logging
import gmpy2

from keygenzk.common.modmath import ModInt, jacobi, mod_inverse
from keygenzk.common.numbers import is_probable_prime, sample_invertible_with_neg_jacobi
from keygenzk.common.utils import bool_to_byte, byte_to_bool, bytes_to_int, int_to_bytes
from keygenzk.errors import (
    MalformedProofError,
    ModularArithmeticError,
    NotBlumModulusError,
    ProofDecodeError,
    ProofGenerationError,
    VerificationError,
)
from keygenzk.zkp.crt import bezout_coefficients, composite_fourth_root
from keygenzk.zkp.hash import hash_to_n
from keygenzk.zkp.prm import PARAM_M

logger = logging.getLogger(__name__)

Iterations = PARAM_M
PRIMALITY_ROUNDS = 30
ProofModBytesParts = 1 + Iterations * 4


class ModRound(NamedTuple):
    """One repetition: x^4 = (-1)^a * w^b * y (mod N) and z^N = y (mod N)."""

    x: Optional[int]
    a: Optional[bool]
    b: Optional[bool]
    z: Optional[int]


def mod_challenge(N: int, w: int) -> List[gmpy2.mpz]:
    """Derives the PARAM_M challenges y_i in [0, N)."""
    return [gmpy2.mpz(hash_to_n(N, N, w, i)) for i in range(Iterations)]


def twist(y: int, w: int, a: bool, b: bool, N: int) -> gmpy2.mpz:
    """Returns (-1)^a * w^b * y mod N."""
    yy = gmpy2.mpz(y)
    if b:
        yy = yy * w
    if a:
        yy = -yy
    return yy % N


def define_xi(
    w: int, y: int, p: int, q: int, N: int, coeffs: Optional[Tuple[int, int]] = None
) -> Optional[Tuple[bool, bool, gmpy2.mpz]]:
    """
    Finds a and b such that (-1)^a * w^b * y has a fourth root mod N and
    returns a, b and the first such root. Returns None if no combination works.
    """
    for a in (False, True):
        for b in (False, True):
            roots = composite_fourth_root(twist(y, w, a, b, N), p, q, N, coeffs)
            if roots:
                return a, b, roots[0]
    return None


@dataclass(frozen=True)
class ProofMod:
    """
    Represents a Zero-Knowledge Proof of Modularity.

    `W` is a Jacobi -1 element of Z_N and `rounds` holds one ModRound per
    challenge.
    """

    W: Optional[int]
    rounds: Tuple[ModRound, ...]

    def __post_init__(self):
        if self.rounds is not None:
            object.__setattr__(self, "rounds", tuple(ModRound(*r) for r in self.rounds))

    @property
    def X(self) -> List[int]:
        return [r.x for r in self.rounds]

    @property
    def A(self) -> List[bool]:
        return [r.a for r in self.rounds]

    @property
    def B(self) -> List[bool]:
        return [r.b for r in self.rounds]

    @property
    def Z(self) -> List[int]:
        return [r.z for r in self.rounds]

    @staticmethod
    def new_proof(N: int, Phi: int, P: int, Q: int) -> "ProofMod":
        """
        Generates a new proof that N = P * Q is a Blum integer.

        Args:
            N: The modulus.
            Phi: Euler's totient of N, (P-1)(Q-1).
            P: The first prime factor of N, P = 3 mod 4.
            Q: The second prime factor of N, Q = 3 mod 4.

        Raises:
            NotBlumModulusError: if some challenge has no fourth root for any
                sign/twist combination, meaning P, Q are not a Blum pair.
        """
        if not all([N, Phi, P, Q]):
            raise ProofGenerationError("Proof mod input is not valid")

        N, Phi, P, Q = map(gmpy2.mpz, (N, Phi, P, Q))
        if P * Q != N:
            raise ProofGenerationError("Proof mod input is not valid: N != P * Q")

        # Step 1: Pick a quadratic non-residue W modulo N.
        W = sample_invertible_with_neg_jacobi(N)

        # Step 2: Derive Y_i values via Fiat-Shamir from the public context.
        Y = mod_challenge(N, W)

        # Step 3: Compute N's inverse modulo Phi, needed for N-th roots.
        try:
            invN = mod_inverse(N, Phi)
        except ModularArithmeticError:
            raise ProofGenerationError("N is not invertible modulo Phi")

        try:
            coeffs = bezout_coefficients(P, Q)
        except ValueError:
            raise ProofGenerationError("P and Q must be coprime")

        mod_n = ModInt(N)
        rounds = []
        for i, yi in enumerate(Y):
            found = define_xi(W, yi, P, Q, N, coeffs)
            if found is None:
                raise NotBlumModulusError(i)
            a, b, xi = found
            zi = mod_n.exp(yi, invN)
            rounds.append(ModRound(int(xi), a, b, int(zi)))

        logger.debug("generated mod proof over a %d-bit modulus", N.bit_length())
        return ProofMod(int(W), tuple(rounds))

    @staticmethod
    def unmarshal(
        ws: bytes, xs: List[bytes], as_: List[bytes], bs: List[bytes], zs: List[bytes]
    ) -> "ProofMod":
        """Builds a proof from its per-field byte parts."""
        if not ws:
            raise ProofDecodeError("ProofMod W length zero")
        for name, parts in (("Xs", xs), ("As", as_), ("Bs", bs), ("Zs", zs)):
            if parts is None or len(parts) != Iterations:
                raise ProofDecodeError(
                    f"incorrect number of {name}: {0 if parts is None else len(parts)}, expected {Iterations}"
                )
        for name, parts in (("X", xs), ("Z", zs)):
            for i, b in enumerate(parts):
                if not b:
                    raise ProofDecodeError(f"ProofMod {name}[{i}] is empty")

        rounds = tuple(
            ModRound(bytes_to_int(xs[i]), byte_to_bool(as_[i]), byte_to_bool(bs[i]), bytes_to_int(zs[i]))
            for i in range(Iterations)
        )
        return ProofMod(bytes_to_int(ws), rounds)

    @staticmethod
    def from_bytes(parts: List[bytes]) -> "ProofMod":
        """Deserializes a ProofMod from a list of byte parts."""
        if not parts or len(parts) != ProofModBytesParts:
            raise ProofDecodeError(
                f"expected {ProofModBytesParts} byte parts to construct ProofMod"
            )
        m = Iterations
        return ProofMod.unmarshal(
            parts[0],
            parts[1 : 1 + m],
            parts[1 + m : 1 + 2 * m],
            parts[1 + 2 * m : 1 + 3 * m],
            parts[1 + 3 * m :],
        )

    def to_bytes_parts(self) -> List[bytes]:
        """Serializes the ProofMod as W, X[], A[], B[], Z[]."""
        out: List[bytes] = [int_to_bytes(self.W)]
        out += [int_to_bytes(x) for x in self.X]
        out += [bool_to_byte(a) for a in self.A]
        out += [bool_to_byte(b) for b in self.B]
        out += [int_to_bytes(z) for z in self.Z]
        return out

    def validate_basic(self) -> bool:
        """Performs basic non-null checks on proof components."""
        return (
            self.W is not None
            and self.rounds is not None
            and len(self.rounds) == Iterations
            and all(None not in r for r in self.rounds)
        )

    def _require_complete(self) -> None:
        if self.W is None:
            raise MalformedProofError("W")
        if self.rounds is None or len(self.rounds) != Iterations:
            raise MalformedProofError("rounds")
        for i, r in enumerate(self.rounds):
            for name, v in zip(("X", "A", "B", "Z"), r):
                if v is None:
                    raise MalformedProofError(name, i)

    def verify(self, N: int) -> Tuple[bool, Optional[str]]:
        """
        Verifies the ProofMod.

        Accepts iff N is an odd composite, W is a Jacobi -1 element and for
        every round z_i^N = y_i and x_i^4 = (-1)^a_i * w^b_i * y_i (mod N).
        A proof with missing components raises MalformedProofError.

        Args:
            N: The modulus that is claimed to be a Blum integer.
        """
        self._require_complete()
        if not N or N <= 0:
            return self._reject("modulus must be positive")

        N = gmpy2.mpz(N)
        W = gmpy2.mpz(self.W)

        if not gmpy2.is_odd(N):
            return self._reject(f"modulus {N} is even")
        if is_probable_prime(N, PRIMALITY_ROUNDS):
            return self._reject(f"modulus {N} seems prime")

        if not (0 < W < N) or jacobi(W, N) != -1:
            return self._reject("W must be an element of (0, N) with Jacobi symbol -1")
        for i, r in enumerate(self.rounds):
            if not (0 < r.x < N):
                return self._reject(f"x_{i} is outside (0, N)")
            if not (0 < r.z < N):
                return self._reject(f"z_{i} is outside (0, N)")

        # Recompute Y values using the same Fiat-Shamir derivation as the prover.
        Y = mod_challenge(N, W)

        mod_n = ModInt(N)
        for i, (r, yi) in enumerate(zip(self.rounds, Y)):
            # Check 1: z_i^N mod N == y_i
            if mod_n.exp(r.z, N) != yi:
                return self._reject(f"z_{i}^N != y_{i}")

            # Check 2: x_i^4 mod N == (-1)^a_i * w^b_i * y_i mod N
            if mod_n.exp(r.x, 4) != twist(yi, W, r.a, r.b, N):
                return self._reject(f"x_{i}^4 != (-1)^a_{i} * w^b_{i} * y_{i}")

        return True, None

    def ensure_verified(self, N: int) -> None:
        """Like verify, but raises VerificationError on rejection."""
        ok, reason = self.verify(N)
        if not ok:
            raise VerificationError(f"mod proof verify: {reason}")

    @staticmethod
    def _reject(reason: str) -> Tuple[bool, str]:
        logger.info("mod proof rejected: %s", reason)
        return False, reason
