"""
Sealed envelopes: payloads of any size behind a Shamir-split key.

An envelope is:
1. A payload encrypted with AES-256-GCM under a fresh random key
2. The key split with split_blocks into N shares (K threshold)
3. Each share framed as a checksummed string naming its envelope

Only K share holders cooperating can rebuild the key and decrypt.
With a password, the encryption key is the split key XOR a PBKDF2 key
derived from the password, so opening needs both the shares and the
password. Storing the ciphertext and handing out shares is left to the
caller.
"""

import binascii
import hashlib
import json
import logging
import struct
import time

from . import crypto
from .errors import EnvelopeError, ShareFormatError
from .shamir import reconstruct_blocks, split_blocks

logger = logging.getLogger(__name__)

SHARE_PREFIX = 'SHAMIR_SPLIT_SHARE_v1'
ENVELOPE_VERSION = 'shamir_split_envelope_v1'


class Envelope:
    """Ciphertext plus the public parameters needed to open it."""

    def __init__(self, envelope_id: str, ciphertext: bytes, n: int, k: int,
                 created_at: float = None, metadata: dict = None):
        self.envelope_id = envelope_id
        self.ciphertext = ciphertext
        self.n = n
        self.k = k
        self.created_at = created_at or time.time()
        self.metadata = metadata or {}

    def to_dict(self) -> dict:
        return {
            'version': ENVELOPE_VERSION,
            'envelope_id': self.envelope_id,
            'n': self.n,
            'k': self.k,
            'ciphertext_hex': self.ciphertext.hex(),
            'ciphertext_size': len(self.ciphertext),
            'created_at': self.created_at,
            'metadata': self.metadata,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


def _crc32(data: bytes) -> int:
    return binascii.crc32(data) & 0xFFFFFFFF


def _payload_line(eid: str, index: int, values) -> str:
    joined = '-'.join(str(v) for v in values)
    return f"{SHARE_PREFIX}:{eid}:{index:03d}:{joined}"


def format_share(eid: str, index: int, values) -> str:
    """
    Format a block share as a portable string.

    Format: SHAMIR_SPLIT_SHARE_v1:<envelope_id>:<index>:<v0-v1-...>:<crc32>
    """
    payload = _payload_line(eid, index, values)
    checksum = struct.pack('>I', _crc32(payload.encode())).hex()
    return f"{payload}:{checksum}"


def parse_share(share_str: str) -> tuple:
    """
    Parse a formatted share string.

    Returns: (envelope_id, index, values)
    Raises ShareFormatError if format or checksum is invalid.
    """
    parts = share_str.strip().split(':')
    if len(parts) != 5:
        raise ShareFormatError(f"Invalid share format: expected 5 parts, got {len(parts)}")
    if parts[0] != SHARE_PREFIX:
        raise ShareFormatError(f"Unknown share version: {parts[0]}")

    eid, index_str, values_str, checksum = parts[1:]
    try:
        index = int(index_str)
        values = tuple(int(v) for v in values_str.split('-'))
    except ValueError as e:
        raise ShareFormatError(f"Invalid share number: {e}") from e

    expected = struct.pack('>I', _crc32(_payload_line(eid, index, values).encode())).hex()
    if checksum != expected:
        raise ShareFormatError("Share checksum mismatch (corrupted or tampered)")

    return eid, index, values


def _xor(a: bytes, b: bytes) -> bytes:
    return bytes(x ^ y for x, y in zip(a, b))


def seal(payload: bytes, n: int, k: int, label: str = None,
         password: str = None) -> tuple:
    """
    Encrypt a payload and split its key.

    Args:
        payload: The data to protect (any bytes)
        n: Total shares to generate
        k: Threshold shares needed to open
        label: Optional human-readable label (stored in metadata, NOT encrypted)
        password: Optional password also required to open

    Returns:
        (Envelope, list of formatted share strings)
    """
    if not payload:
        raise EnvelopeError("Payload must not be empty")
    if password is not None and not password:
        raise EnvelopeError("Password must not be empty")

    split_key = crypto.generate_key()
    raw_shares = split_blocks(split_key, n, k)

    if password is None:
        ciphertext = crypto.encrypt(payload, split_key, compress=True)
    else:
        salt = crypto.generate_salt()
        key = _xor(split_key, crypto.derive_key(password, salt))
        ciphertext = crypto.encrypt(payload, key, compress=True, salt=salt)
    eid = crypto.envelope_id(ciphertext)

    shares = [format_share(eid, index, values) for index, values in raw_shares]

    metadata = {
        'payload_size': len(payload),
        'compressed_encrypted_size': len(ciphertext),
        'crypto_backend': crypto.get_backend(),
        'payload_hash': hashlib.sha256(payload).hexdigest(),
    }
    if label:
        metadata['label'] = label
    metadata['password_protected'] = password is not None

    logger.debug("Sealed envelope %s: %d bytes, %d-of-%d", eid, len(payload), k, n)
    envelope = Envelope(envelope_id=eid, ciphertext=ciphertext, n=n, k=k, metadata=metadata)
    return envelope, shares


def unseal(shares: list, ciphertext: bytes, k: int, password: str = None) -> bytes:
    """
    Recover the original payload from share strings and ciphertext.

    Raises:
        ShamirError subclass if shares are invalid, mixed, below threshold,
        the password is missing or wrong, or decryption fails
    """
    parsed = []
    expected_eid = None
    for share_str in shares:
        eid, index, values = parse_share(share_str)

        if expected_eid is None:
            expected_eid = eid
        elif eid != expected_eid:
            raise EnvelopeError(
                f"Share {index} belongs to envelope {eid}, expected {expected_eid}. "
                "Cannot mix shares from different envelopes."
            )
        parsed.append((index, values))

    actual_eid = crypto.envelope_id(ciphertext)
    if expected_eid is not None and actual_eid != expected_eid:
        raise EnvelopeError(
            f"Ciphertext envelope ID {actual_eid} doesn't match shares envelope ID "
            f"{expected_eid}. Wrong ciphertext or tampered data."
        )

    salt = crypto.read_salt(ciphertext)
    if salt is not None and password is None:
        raise EnvelopeError("Envelope is password protected; a password is required")
    if salt is None and password is not None:
        raise EnvelopeError("Envelope is not password protected")

    key = reconstruct_blocks(parsed, k)
    if len(key) != crypto.KEY_SIZE:
        raise EnvelopeError(f"Reconstructed key has {len(key)} bytes, expected {crypto.KEY_SIZE}")
    if salt is not None:
        key = _xor(key, crypto.derive_key(password, salt))

    plaintext = crypto.decrypt(ciphertext, key)
    logger.debug("Unsealed envelope %s with %d shares", actual_eid, len(parsed))
    return plaintext


def verify_shares(shares: list) -> dict:
    """
    Verify a set of shares without decrypting.

    Returns dict with:
        - valid: bool (all shares parse and checksums match)
        - envelope_id: the common envelope ID
        - share_count: how many valid shares
        - indices: list of share indices
        - errors: list of error messages for invalid shares
    """
    result = {
        'valid': True,
        'envelope_id': None,
        'share_count': 0,
        'indices': [],
        'errors': [],
    }

    for i, share_str in enumerate(shares):
        try:
            eid, index, _ = parse_share(share_str)
        except ShareFormatError as e:
            result['errors'].append(f"Share {i+1}: {e}")
            result['valid'] = False
            continue

        if result['envelope_id'] is None:
            result['envelope_id'] = eid
        elif eid != result['envelope_id']:
            result['errors'].append(
                f"Share {i+1}: envelope ID mismatch ({eid} vs {result['envelope_id']})"
            )
            result['valid'] = False
            continue

        if index in result['indices']:
            result['errors'].append(f"Share {i+1}: duplicate index {index}")
            result['valid'] = False
            continue

        result['indices'].append(index)
        result['share_count'] += 1

    return result
