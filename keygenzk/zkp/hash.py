from typing import List
import hashlib

from keygenzk.common.numbers import rejection_sample
from keygenzk.common.utils import int_to_bytes

HASH_INPUT_DELIMITER = b"$"

# Number of challenge bits drawn by hash_to_bits.
CHALLENGE_BITS = 80


def sha512_256_util(h, in_data: List[bytes]) -> bytes:
    """Helper function to hash a list of byte strings."""
    if not in_data:
        return None
    data = bytearray()
    for b in in_data:
        data.extend(b)
        data.extend(HASH_INPUT_DELIMITER)
    h.update(data)
    return h.digest()


def int_to_hash_bytes(i: int) -> bytes:
    """
    Byte form of an integer fed to the hash: its minimal big-endian bytes,
    with 0 as b"".

    Only non-negative integers are hashed. A sign marker in front of the
    magnitude would read as the leading byte of some other positive value.
    """
    i = int(i)
    if i < 0:
        raise ValueError("cannot hash a negative integer")
    return int_to_bytes(i)


def sha512_256i(*in_data: int) -> int:
    """Computes the SHA-512/256 hash of one or more integers.

    Each integer is converted to its canonical byte representation
    before being securely joined and hashed. The result is returned as an integer.
    """
    if not in_data:
        return None
    h = hashlib.new("sha512_256")
    hashed_bytes = sha512_256_util(h, [int_to_hash_bytes(i) for i in in_data])
    return int.from_bytes(hashed_bytes, "big")


def hash_to_n(bound: int, *in_data: int) -> int:
    """Deterministically maps an ordered tuple of integers into [0, bound)."""
    if bound <= 0:
        raise ValueError("hash_to_n bound must be positive")
    return int(rejection_sample(bound, sha512_256i(*in_data)))


def bytes_to_bits(b: int, m: int = CHALLENGE_BITS) -> List[int]:
    """Returns the m least significant bits of b, least significant first."""
    b = int(b)
    return [(b >> i) & 1 for i in range(m)]


def hash_to_bits(commitments: List[int], *public: int) -> List[int]:
    """
    Derives a vector of CHALLENGE_BITS challenge bits.

    The commitments are hashed to one digest first, which is then hashed
    again behind the public values.
    """
    commitments_hash = sha512_256i(*commitments)
    e = sha512_256i(*public, commitments_hash)
    return bytes_to_bits(e)
