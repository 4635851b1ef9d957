from typing import List, Optional, Sequence

from keygenzk.errors import ProofDecodeError


SIGN_NON_NEGATIVE = 0x00
SIGN_NEGATIVE = 0x01


def int_to_bytes(i: int) -> bytes:
    """Minimal big-endian bytes of a non-negative integer; 0 encodes as b""."""
    i = int(i)
    if i < 0:
        raise ValueError("int_to_bytes expects a non-negative integer")
    return i.to_bytes((i.bit_length() + 7) // 8, "big") if i != 0 else b""


def bytes_to_int(b: bytes) -> int:
    return int.from_bytes(b, "big") if b else 0


def marshal_signed(i: int) -> bytes:
    """Encodes an integer as a sign byte followed by its magnitude."""
    i = int(i)
    sign = SIGN_NEGATIVE if i < 0 else SIGN_NON_NEGATIVE
    return bytes([sign]) + int_to_bytes(abs(i))


def unmarshal_signed(b: bytes) -> int:
    """Inverse of marshal_signed."""
    if not b:
        raise ProofDecodeError("signed integer encoding is empty")
    sign, magnitude = b[0], bytes_to_int(b[1:])
    if sign == SIGN_NON_NEGATIVE:
        return magnitude
    if sign == SIGN_NEGATIVE and magnitude != 0:
        return -magnitude
    raise ProofDecodeError(f"invalid sign byte {sign:#04x} in signed integer encoding")


def bool_to_byte(v: bool) -> bytes:
    return b"\x01" if v else b"\x00"


def byte_to_bool(b: bytes) -> bool:
    if b == b"\x01":
        return True
    if b == b"\x00":
        return False
    raise ProofDecodeError(f"boolean must be encoded as a single 0x00/0x01 byte, got {b!r}")


def non_empty_bytes(b: Optional[bytes]) -> bool:
    return b is not None and len(b) > 0


def non_empty_multi_bytes(bzs: Optional[Sequence[bytes]], expected_len: Optional[int] = None) -> bool:
    """True when every entry is non-empty and, if given, the count matches."""
    if bzs is None or len(bzs) == 0:
        return False
    if expected_len is not None and len(bzs) != expected_len:
        return False
    return all(non_empty_bytes(b) for b in bzs)


def serialize_bytes_list(bytes_list) -> List[str]:
    """Converts a list of bytes objects into a list of hex strings for JSON.

    Since raw bytes are not a valid JSON type, this function encodes them
    into a universally recognized string format. It can also gracefully handle
    a single bytes object by wrapping its hex representation in a list.

    Args:
        bytes_list: The list of bytes, or a single bytes object.

    Returns:
        A list of hexadecimal strings, or None if the input is None.
    """
    if bytes_list is None:
        return None
    # Handle the case where a single bytes object is passed instead of a list
    if not isinstance(bytes_list, list):
        return [bytes_list.hex()]
    return [b.hex() if isinstance(b, bytes) else b for b in bytes_list]


def deserialize_bytes_list(hex_list: List[str]) -> List[bytes]:
    """Converts a list of hexadecimal strings back into a list of bytes objects.

    This is the inverse operation of serialize_bytes_list, decoding the string
    representation used for data transfer back into its raw bytes form.

    Args:
        hex_list: The list of hexadecimal strings.

    Returns:
        The deserialized list of bytes objects, or None if the input is None.
    """
    if hex_list is None:
        return None
    return [bytes.fromhex(h) if isinstance(h, str) else h for h in hex_list]
