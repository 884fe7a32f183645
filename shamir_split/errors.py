"""
Exception hierarchy for shamir_split.

Everything derives from ValueError so existing callers that catch
ValueError around split/reconstruct keep working.
"""


class ShamirError(ValueError):
    """Base class for all shamir_split errors."""


class ConfigurationError(ShamirError):
    """Invalid (n, k) parameters."""


class EncodingError(ShamirError):
    """Secret cannot be mapped to field elements (or back)."""


class EncodingOverflowError(EncodingError):
    """Secret's numeric value does not fit in one field element."""


class DegenerateShareSetError(ShamirError):
    """Duplicate or zero x-coordinates, or otherwise inconsistent shares."""


class InsufficientSharesError(ShamirError):
    """Fewer shares than the threshold were supplied."""


class ShareFormatError(ShamirError):
    """Share string is malformed or fails its checksum."""


class EnvelopeError(ShamirError):
    """Encryption, decryption or envelope/share mismatch failure."""
