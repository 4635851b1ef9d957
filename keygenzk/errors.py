"""Exceptions raised by the key-generation proof suite."""

from typing import Optional


class ProofError(ValueError):
    """Base exception for proof generation, decoding and verification."""

    pass


class ModularArithmeticError(ProofError):
    """Raised when a modular operation has no defined result."""

    pass


class MalformedProofError(ProofError):
    """Raised when a proof handed to a verifier is missing a component."""

    def __init__(self, field: str, index: Optional[int] = None):
        self.field = field
        self.index = index
        where = field if index is None else f"{field}[{index}]"
        super().__init__(f"proof component {where} is missing")


class ProofDecodeError(ProofError):
    """Raised when serialized proof parts cannot be turned back into a proof."""

    pass


class ProofGenerationError(ProofError):
    """Raised when a prover is handed inputs it cannot build a proof from."""

    pass


class NotBlumModulusError(ProofGenerationError):
    """
    Raised when no sign/twist combination of a challenge has a fourth root.

    This means the supplied primes do not form a Blum integer. Callers should
    regenerate their Paillier key instead of publishing a proof.
    """

    def __init__(self, index: int):
        self.index = index
        super().__init__(
            f"no fourth root found for mod challenge y_{index}; N is not a Blum integer"
        )


class VerificationError(ProofError):
    """Raised by callers that treat a rejected proof as an exception."""

    pass
