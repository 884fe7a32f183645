"""shamir-split: (k, n) threshold secret sharing over GF(2^31 - 1)."""

from .field import PRIME, modpow, mod_inverse, evaluate, interpolate_at_zero
from .codec import encode, decode, encode_blocks, decode_blocks
from .shamir import split_secret, reconstruct_secret, split_blocks, reconstruct_blocks
from .shamir import SystemRandomSource
from .envelope import seal, unseal, verify_shares, format_share, parse_share, Envelope
from .errors import (
    ShamirError, ConfigurationError, EncodingError, EncodingOverflowError,
    DegenerateShareSetError, InsufficientSharesError, ShareFormatError, EnvelopeError,
)

__all__ = [
    'PRIME', 'modpow', 'mod_inverse', 'evaluate', 'interpolate_at_zero',
    'encode', 'decode', 'encode_blocks', 'decode_blocks',
    'split_secret', 'reconstruct_secret', 'split_blocks', 'reconstruct_blocks',
    'SystemRandomSource',
    'seal', 'unseal', 'verify_shares', 'format_share', 'parse_share', 'Envelope',
    'ShamirError', 'ConfigurationError', 'EncodingError', 'EncodingOverflowError',
    'DegenerateShareSetError', 'InsufficientSharesError', 'ShareFormatError',
    'EnvelopeError',
]
