"""
AES-256-GCM for envelope payloads.

Blob layout:

    header = flags(1) [+ salt(16) when FLAG_PASSWORD is set]
    blob   = header + nonce(12) + ciphertext + tag(16)

The whole header is bound to the ciphertext as GCM associated data, so
flipping a flag or swapping the salt fails authentication like any other
tampering.

cryptography is the primary backend; PyCryptodome is used when it is
not installed.
"""

import hashlib
import os
import zlib

from .errors import EnvelopeError

try:
    from cryptography.exceptions import InvalidTag
    from cryptography.hazmat.primitives import hashes
    from cryptography.hazmat.primitives.ciphers.aead import AESGCM
    from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
    _BACKEND = 'cryptography'
except ImportError:
    try:
        from Crypto.Cipher import AES
        from Crypto.Hash import SHA256
        from Crypto.Protocol.KDF import PBKDF2
        _BACKEND = 'pycryptodome'
    except ImportError:
        _BACKEND = None

KEY_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16
SALT_SIZE = 16
PBKDF2_ITERATIONS = 100_000

FLAG_COMPRESSED = 0x01
FLAG_PASSWORD = 0x02
_KNOWN_FLAGS = FLAG_COMPRESSED | FLAG_PASSWORD


def _require_backend():
    if _BACKEND is None:
        raise RuntimeError(
            "No AES backend available. Install 'cryptography' or 'pycryptodome':\n"
            "  pip install cryptography"
        )


def generate_key() -> bytes:
    """Generate a cryptographically secure 256-bit key."""
    return os.urandom(KEY_SIZE)


def generate_salt() -> bytes:
    return os.urandom(SALT_SIZE)


def derive_key(password: str, salt: bytes) -> bytes:
    """PBKDF2-HMAC-SHA256 of the password, KEY_SIZE bytes."""
    _require_backend()
    if len(salt) != SALT_SIZE:
        raise EnvelopeError(f"Salt must be {SALT_SIZE} bytes, got {len(salt)}")

    secret = password.encode('utf-8')
    if _BACKEND == 'cryptography':
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_SIZE,
            salt=salt,
            iterations=PBKDF2_ITERATIONS,
        )
        return kdf.derive(secret)
    return PBKDF2(secret, salt, dkLen=KEY_SIZE, count=PBKDF2_ITERATIONS,
                  hmac_hash_module=SHA256)


def _check_key(key: bytes):
    if len(key) != KEY_SIZE:
        raise EnvelopeError(f"Key must be {KEY_SIZE} bytes, got {len(key)}")


def _split_header(blob: bytes) -> tuple:
    """Return (header, salt or None, rest) for a blob."""
    if len(blob) < 1:
        raise EnvelopeError("Blob too short to be valid")

    flags = blob[0]
    if flags & ~_KNOWN_FLAGS:
        raise EnvelopeError(f"Unknown envelope flags 0x{flags:02x}")

    header_size = 1 + (SALT_SIZE if flags & FLAG_PASSWORD else 0)
    if len(blob) < header_size + NONCE_SIZE + TAG_SIZE:
        raise EnvelopeError("Blob too short to be valid")

    header = blob[:header_size]
    salt = header[1:] if flags & FLAG_PASSWORD else None
    return header, salt, blob[header_size:]


def read_salt(blob: bytes):
    """Salt stored in a password-protected blob, or None."""
    _, salt, _ = _split_header(blob)
    return salt


def encrypt(plaintext: bytes, key: bytes, compress: bool = True,
            salt: bytes = None) -> bytes:
    """
    Encrypt plaintext with AES-256-GCM.

    Passing a salt marks the blob as password-protected and stores the salt
    in the header; the caller is responsible for mixing the password into key.
    """
    _check_key(key)
    _require_backend()

    flags = FLAG_COMPRESSED if compress else 0x00
    header = b''
    if salt is not None:
        if len(salt) != SALT_SIZE:
            raise EnvelopeError(f"Salt must be {SALT_SIZE} bytes, got {len(salt)}")
        flags |= FLAG_PASSWORD
        header = salt
    header = bytes([flags]) + header

    data = zlib.compress(plaintext, level=9) if compress else plaintext
    nonce = os.urandom(NONCE_SIZE)

    if _BACKEND == 'cryptography':
        sealed = AESGCM(key).encrypt(nonce, data, header)
    else:
        cipher = AES.new(key, AES.MODE_GCM, nonce=nonce)
        cipher.update(header)
        ciphertext, tag = cipher.encrypt_and_digest(data)
        sealed = ciphertext + tag

    return header + nonce + sealed


def decrypt(blob: bytes, key: bytes) -> bytes:
    """
    Decrypt a blob produced by encrypt().

    Raises:
        EnvelopeError: Wrong key, tampered header or body, or corrupt payload
    """
    _check_key(key)
    _require_backend()

    header, _, rest = _split_header(blob)
    nonce, sealed = rest[:NONCE_SIZE], rest[NONCE_SIZE:]

    if _BACKEND == 'cryptography':
        try:
            data = AESGCM(key).decrypt(nonce, sealed, header)
        except InvalidTag as e:
            raise EnvelopeError("Decryption failed (wrong key or tampered data)") from e
    else:
        cipher = AES.new(key, AES.MODE_GCM, nonce=nonce)
        cipher.update(header)
        try:
            data = cipher.decrypt_and_verify(sealed[:-TAG_SIZE], sealed[-TAG_SIZE:])
        except ValueError as e:
            raise EnvelopeError("Decryption failed (wrong key or tampered data)") from e

    if header[0] & FLAG_COMPRESSED:
        try:
            data = zlib.decompress(data)
        except zlib.error as e:
            raise EnvelopeError(f"Payload decompression failed: {e}") from e
    return data


def envelope_id(ciphertext: bytes) -> str:
    """First 16 hex chars of SHA-256(ciphertext); names an envelope."""
    return hashlib.sha256(ciphertext).hexdigest()[:16]


def get_backend() -> str:
    """Return the active crypto backend name."""
    return _BACKEND or 'none'
