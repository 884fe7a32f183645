"""
Byte string <-> field element mapping.

A secret is read as a big-endian base-256 integer. The single-element
form only takes secrets below the prime; the block form cuts a secret
of any length into 3-byte chunks (always < 2^24 < p) behind a length
header, so each piece can be shared as its own field element.
"""

from .errors import EncodingError, EncodingOverflowError
from .field import PRIME

BLOCK_SIZE = 3


def encode(secret: bytes, prime: int = PRIME) -> int:
    """
    Pack a secret into one field element.

    Raises:
        EncodingError: Empty secret, or leading zero byte (would not survive decode)
        EncodingOverflowError: Numeric value is >= prime
    """
    if len(secret) == 0:
        raise EncodingError("Secret must not be empty")
    if secret[0] == 0:
        raise EncodingError("Secret must not start with a zero byte")

    value = 0
    for byte in secret:
        value = value * 256 + byte

    if value >= prime:
        raise EncodingOverflowError(
            f"Secret of {len(secret)} bytes exceeds the prime field "
            f"(value {value} >= {prime}); use split_blocks for longer secrets"
        )
    return value


def decode(value: int) -> bytes:
    """Unpack a field element into bytes. decode(0) is b''."""
    out = bytearray()
    while value > 0:
        out.append(value % 256)
        value //= 256
    out.reverse()
    return bytes(out)


def encode_blocks(secret: bytes, prime: int = PRIME) -> list:
    """Length header followed by one value per BLOCK_SIZE chunk."""
    if len(secret) == 0:
        raise EncodingError("Secret must not be empty")
    if prime <= 1 << (8 * BLOCK_SIZE):
        raise EncodingOverflowError(f"Prime {prime} is too small for {BLOCK_SIZE}-byte blocks")
    if len(secret) >= prime:
        raise EncodingOverflowError("Secret length exceeds the prime field")

    values = [len(secret)]
    for offset in range(0, len(secret), BLOCK_SIZE):
        chunk = secret[offset:offset + BLOCK_SIZE].ljust(BLOCK_SIZE, b'\x00')
        values.append(int.from_bytes(chunk, 'big'))
    return values


def decode_blocks(values: list) -> bytes:
    """Inverse of encode_blocks."""
    if not values:
        raise EncodingError("No blocks to decode")

    length, chunks = values[0], values[1:]
    expected = -(-length // BLOCK_SIZE)
    if length == 0 or len(chunks) != expected:
        raise EncodingError(
            f"Length header {length} does not match {len(chunks)} chunks"
        )

    data = bytearray()
    for value in chunks:
        if value >= 1 << (8 * BLOCK_SIZE):
            raise EncodingError(f"Chunk value {value} does not fit in {BLOCK_SIZE} bytes")
        data += value.to_bytes(BLOCK_SIZE, 'big')
    return bytes(data[:length])
