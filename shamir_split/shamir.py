"""
Shamir's Secret Sharing over GF(p), p = 2^31 - 1.

Splits a secret into N shares where any K shares can reconstruct
the original, but K-1 shares reveal nothing about it.

A share is an (index, value) pair. The polynomial behind a set of
shares lives only inside split_secret / split_blocks and is never
logged or returned.

Random coefficients come from an injected RandomSource. The default
draws from the OS CSPRNG through the `secrets` module.
"""

import logging
import secrets

from .codec import decode, decode_blocks, encode, encode_blocks
from .errors import (
    ConfigurationError,
    DegenerateShareSetError,
    InsufficientSharesError,
)
from .field import PRIME, evaluate, interpolate_at_zero

logger = logging.getLogger(__name__)


class SystemRandomSource:
    """Uniform field elements from the operating system's CSPRNG."""

    def __init__(self, prime: int = PRIME):
        self.prime = prime

    def next_field_element(self) -> int:
        return secrets.randbelow(self.prime)


def _check_params(n: int, k: int, prime: int):
    if k < 1:
        raise ConfigurationError(f"Threshold k must be >= 1, got {k}")
    if n < 1:
        raise ConfigurationError(f"Total shares n must be >= 1, got {n}")
    if k > n:
        raise ConfigurationError(
            f"Threshold k ({k}) cannot be greater than total shares n ({n})"
        )
    if n >= prime:
        raise ConfigurationError(f"Total shares n must be < {prime}")


def _random_polynomial(constant: int, k: int, rng) -> list:
    coeffs = [constant]
    for _ in range(k - 1):
        coeffs.append(rng.next_field_element())
    return coeffs


def split_secret(secret: bytes, n: int, k: int, prime: int = PRIME,
                 rng=None) -> list:
    """
    Split a secret into n shares, requiring k to reconstruct.

    Args:
        secret: The secret bytes (must encode below prime, see codec.encode)
        n: Total number of shares to generate
        k: Minimum shares needed to reconstruct (threshold)
        prime: The prime field modulus
        rng: Object with next_field_element(); defaults to SystemRandomSource

    Returns:
        List of (index, value) tuples. Index is 1-based.

    Raises:
        ConfigurationError: If n/k are invalid
        EncodingError: If the secret cannot be encoded as one field element
    """
    _check_params(n, k, prime)
    secret_int = encode(secret, prime)
    rng = rng or SystemRandomSource(prime)

    coeffs = _random_polynomial(secret_int, k, rng)
    shares = [(x, evaluate(coeffs, x, prime)) for x in range(1, n + 1)]

    logger.debug("Split %d-byte secret into %d shares (threshold %d)",
                 len(secret), n, k)
    return shares


def split_blocks(secret: bytes, n: int, k: int, prime: int = PRIME,
                 rng=None) -> list:
    """
    Split a secret of any length into n multi-value shares.

    Each block from codec.encode_blocks gets its own random polynomial;
    all blocks are evaluated at the same x = 1..n.

    Returns:
        List of (index, (value_0, ..., value_m)) tuples.
    """
    _check_params(n, k, prime)
    blocks = encode_blocks(secret, prime)
    rng = rng or SystemRandomSource(prime)

    columns = []
    for block in blocks:
        coeffs = _random_polynomial(block, k, rng)
        columns.append([evaluate(coeffs, x, prime) for x in range(1, n + 1)])

    shares = []
    for i in range(n):
        shares.append((i + 1, tuple(column[i] for column in columns)))

    logger.debug("Split %d-byte secret as %d blocks into %d shares (threshold %d)",
                 len(secret), len(blocks), n, k)
    return shares


def _select_points(shares: list, k: int, prime: int) -> list:
    if k < 1:
        raise ConfigurationError(f"Threshold k must be >= 1, got {k}")
    if len(shares) < k:
        raise InsufficientSharesError(f"Need at least {k} shares, got {len(shares)}")

    # Use only k shares (first k provided)
    points = list(shares)[:k]

    x_vals = [x % prime for x, _ in points]
    if 0 in x_vals:
        raise DegenerateShareSetError("Share index must be non-zero mod the prime")
    if len(set(x_vals)) != len(x_vals):
        raise DegenerateShareSetError("Duplicate share indices detected")
    return points


def _interpolate(points: list, prime: int) -> int:
    try:
        return interpolate_at_zero(points, prime)
    except ZeroDivisionError as e:
        raise DegenerateShareSetError(f"Share set is degenerate: {e}") from e


def reconstruct_secret(shares: list, k: int, prime: int = PRIME) -> bytes:
    """
    Reconstruct the secret from k shares using Lagrange interpolation.

    Args:
        shares: List of (index, value) tuples
        k: The threshold (must match the original split)
        prime: The prime field modulus

    Returns:
        The original secret bytes

    Raises:
        InsufficientSharesError: Fewer than k shares
        DegenerateShareSetError: Duplicate or zero indices
    """
    points = _select_points(shares, k, prime)
    secret_int = _interpolate([(x, y % prime) for x, y in points], prime)
    logger.debug("Reconstructed secret from shares %s", [x for x, _ in points])
    return decode(secret_int)


def reconstruct_blocks(shares: list, k: int, prime: int = PRIME) -> bytes:
    """Reconstruct a secret split with split_blocks."""
    points = _select_points(shares, k, prime)

    widths = {len(values) for _, values in points}
    if len(widths) != 1:
        raise DegenerateShareSetError("Shares carry different numbers of blocks")
    width = widths.pop()

    blocks = []
    for b in range(width):
        blocks.append(_interpolate([(x, values[b] % prime) for x, values in points], prime))

    logger.debug("Reconstructed %d blocks from shares %s", width, [x for x, _ in points])
    return decode_blocks(blocks)
