"""
Message-layer carriers for the key-generation proofs.

Proofs travel as byte parts. Each message offers a cheap `validate_basic`
pre-filter that the round logic runs before any cryptographic verification,
and converts back into the proof object with `unmarshal`.
"""

from dataclasses import dataclass, asdict, fields, is_dataclass
from typing import List, get_type_hints, get_origin, get_args
import json

from keygenzk.common.utils import (
    non_empty_bytes,
    non_empty_multi_bytes,
    serialize_bytes_list,
    deserialize_bytes_list,
)
from keygenzk.errors import ProofDecodeError
from keygenzk.zkp.fac import ProofFac
from keygenzk.zkp.mod import ProofMod
from keygenzk.zkp.prm import PARAM_M, ProofPrm


class ProtocolMessage:
    """
    Base class for protocol messages, providing JSON serialization and deserialization.
    It automatically handles the conversion of `bytes` and `List[bytes]` fields.
    """

    def to_dict(self) -> dict:
        """Serializes the dataclass instance to a dictionary for JSON conversion."""
        data = {}
        for key, value in asdict(self).items():
            if isinstance(value, bytes):
                data[key] = value.hex()
            elif isinstance(value, list) and value and isinstance(value[0], bytes):
                data[key] = serialize_bytes_list(value)
            else:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict):
        """Deserializes a dictionary into a dataclass instance."""
        if not is_dataclass(cls):
            raise TypeError("from_dict can only be called on a dataclass")

        kwargs = {}
        type_hints = get_type_hints(cls)

        for field_name, field_type in type_hints.items():
            if field_name not in data:
                continue

            value = data[field_name]

            try:
                if field_type is bytes:
                    kwargs[field_name] = bytes.fromhex(value) if isinstance(value, str) else value
                    continue

                origin = get_origin(field_type)
                args = get_args(field_type)
                if origin is list and args and args[0] is bytes:
                    kwargs[field_name] = deserialize_bytes_list(value)
                else:
                    kwargs[field_name] = value
            except (TypeError, ValueError) as e:
                raise ProofDecodeError(f"field {field_name} is not valid hex") from e

        return cls(**kwargs)

    def to_json(self) -> str:
        """Serializes the message object to a JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, json_str: str):
        """Deserializes a JSON string into a message object."""
        try:
            data = json.loads(json_str)
        except ValueError as e:
            raise ProofDecodeError("message is not valid JSON") from e
        return cls.from_dict(data)


def non_empty_bools(bzs: List[bytes], expected_len: int) -> bool:
    return (
        bzs is not None
        and len(bzs) == expected_len
        and all(b in (b"\x00", b"\x01") for b in bzs)
    )


@dataclass
class ParamProofMessage(ProtocolMessage):
    """Ring-Pedersen parameter proof: commitments A and responses Z."""

    A: List[bytes]
    Z: List[bytes]

    @classmethod
    def from_proof(cls, proof: ProofPrm) -> "ParamProofMessage":
        parts = proof.to_bytes_parts()
        return cls(A=parts[:PARAM_M], Z=parts[PARAM_M:])

    def validate_basic(self) -> bool:
        return non_empty_multi_bytes(self.A, PARAM_M) and non_empty_multi_bytes(
            self.Z, PARAM_M
        )

    def unmarshal(self) -> ProofPrm:
        return ProofPrm.unmarshal(self.A, self.Z)


@dataclass
class ModProofMessage(ProtocolMessage):
    """Paillier-Blum modulus proof, one byte per boolean in A and B."""

    W: bytes
    X: List[bytes]
    A: List[bytes]
    B: List[bytes]
    Z: List[bytes]

    @classmethod
    def from_proof(cls, proof: ProofMod) -> "ModProofMessage":
        parts = proof.to_bytes_parts()
        m = PARAM_M
        return cls(
            W=parts[0],
            X=parts[1 : 1 + m],
            A=parts[1 + m : 1 + 2 * m],
            B=parts[1 + 2 * m : 1 + 3 * m],
            Z=parts[1 + 3 * m :],
        )

    def validate_basic(self) -> bool:
        return (
            non_empty_bytes(self.W)
            and non_empty_multi_bytes(self.X, PARAM_M)
            and non_empty_bools(self.A, PARAM_M)
            and non_empty_bools(self.B, PARAM_M)
            and non_empty_multi_bytes(self.Z, PARAM_M)
        )

    def unmarshal(self) -> ProofMod:
        return ProofMod.unmarshal(self.W, self.X, self.A, self.B, self.Z)


@dataclass
class FactorProofMessage(ProtocolMessage):
    """No-small-factor proof with every integer in signed encoding."""

    P: bytes
    Q: bytes
    A: bytes
    B: bytes
    T: bytes
    Sigma: bytes
    Z1: bytes
    Z2: bytes
    W1: bytes
    W2: bytes
    V: bytes

    @classmethod
    def from_proof(cls, proof: ProofFac) -> "FactorProofMessage":
        return cls(*proof.to_bytes_parts())

    def validate_basic(self) -> bool:
        return all(non_empty_bytes(getattr(self, f.name)) for f in fields(self))

    def unmarshal(self) -> ProofFac:
        return ProofFac.from_bytes([getattr(self, f.name) for f in fields(self)])
