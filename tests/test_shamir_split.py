"""
shamir_split: core test suite

Tests field arithmetic, the secret codec, and split/reconstruct
over GF(2^31 - 1), single-element and block forms.
"""

import itertools
import os
import sys

# Add parent to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from shamir_split import codec, field, shamir
from shamir_split.errors import (
    ConfigurationError,
    DegenerateShareSetError,
    EncodingError,
    EncodingOverflowError,
    InsufficientSharesError,
)

PRIME = field.PRIME


class FixedRandomSource:
    """Hands out preset coefficients in order."""

    def __init__(self, values):
        self.values = list(values)

    def next_field_element(self):
        return self.values.pop(0)


class ExplodingRandomSource:
    def next_field_element(self):
        raise AssertionError("random source must not be consulted")


# ==========================================================================
# Field arithmetic
# ==========================================================================

def test_modpow_known_values():
    assert field.modpow(2, 10, 1000) == 24
    assert field.modpow(3, 0, 7) == 1
    assert field.modpow(0, 5, 7) == 0
    assert field.modpow(10, 3, 7) == 6  # 1000 mod 7
    assert field.modpow(5, 117, PRIME) == pow(5, 117, PRIME)


def test_modpow_deterministic():
    a, e = 123456789, 987654321
    assert field.modpow(a, e, PRIME) == field.modpow(a, e, PRIME)


def test_mod_inverse():
    assert field.mod_inverse(3, 7) == 5
    assert field.mod_inverse(2) == (PRIME + 1) // 2
    for a in (1, 2, 26729, PRIME - 1):
        assert (a * field.mod_inverse(a)) % PRIME == 1


def test_mod_inverse_of_zero_fails():
    for a in (0, PRIME, 2 * PRIME):
        try:
            field.mod_inverse(a)
            assert False, "Should have raised ZeroDivisionError"
        except ZeroDivisionError:
            pass


def test_evaluate_horner():
    # 1 + 2x + 3x^2 at x = 2 is 17
    assert field.evaluate([1, 2, 3], 2, 7) == 3
    assert field.evaluate([1, 2, 3], 2) == 17
    assert field.evaluate([42], 999) == 42
    assert field.evaluate([5, 0, 0], 0) == 5


def test_interpolate_at_zero_line():
    # 5 + 3x over GF(7): (1, 1), (2, 4)
    assert field.interpolate_at_zero([(1, 1), (2, 4)], 7) == 5


def test_interpolate_repeated_x_fails():
    try:
        field.interpolate_at_zero([(3, 10), (3, 11)])
        assert False, "Should have raised ZeroDivisionError"
    except ZeroDivisionError:
        pass


# ==========================================================================
# Codec
# ==========================================================================

def test_encode_hi():
    assert codec.encode(b"hi") == 26729
    assert codec.decode(26729) == b"hi"


def test_encode_largest_fitting_value():
    assert codec.encode(b'\x7f\xff\xff\xfe') == PRIME - 1
    assert codec.decode(PRIME - 1) == b'\x7f\xff\xff\xfe'


def test_encode_overflow():
    for secret in (b'\x7f\xff\xff\xff', b'\xff\xff\xff\xff', b'hello'):
        try:
            codec.encode(secret)
            assert False, f"Should have raised EncodingOverflowError for {secret!r}"
        except EncodingOverflowError:
            pass


def test_encode_rejects_empty_and_leading_zero():
    for secret in (b'', b'\x00', b'\x00a'):
        try:
            codec.encode(secret)
            assert False, f"Should have raised EncodingError for {secret!r}"
        except EncodingError:
            pass


def test_decode_zero_is_empty():
    assert codec.decode(0) == b''


def test_encode_blocks_layout():
    values = codec.encode_blocks(b"abcd")
    assert values == [4, int.from_bytes(b"abc", 'big'), int.from_bytes(b"d\x00\x00", 'big')]
    assert codec.decode_blocks(values) == b"abcd"


def test_blocks_keep_zero_bytes():
    for secret in (b'\x00', b'\x00\x00\x01', b'\x00' * 7, b'ab\x00'):
        assert codec.decode_blocks(codec.encode_blocks(secret)) == secret


def test_decode_blocks_bad_header():
    try:
        codec.decode_blocks([10, 1])
        assert False, "Should have raised EncodingError"
    except EncodingError:
        pass


def test_decode_blocks_chunk_too_wide():
    try:
        codec.decode_blocks([3, 1 << 24])
        assert False, "Should have raised EncodingError"
    except EncodingError as e:
        assert "does not fit" in str(e)


# ==========================================================================
# Split / reconstruct
# ==========================================================================

def test_split_hi_3_of_5():
    shares = shamir.split_secret(b"hi", n=5, k=3)
    assert len(shares) == 5
    assert [x for x, _ in shares] == [1, 2, 3, 4, 5]
    assert all(0 <= y < PRIME for _, y in shares)

    subset = [shares[0], shares[2], shares[4]]
    assert shamir.reconstruct_secret(subset, k=3) == bytes([0x68, 0x69])


def test_split_with_fixed_coefficients():
    # 26729 + x + 2x^2
    shares = shamir.split_secret(b"hi", n=3, k=3, rng=FixedRandomSource([1, 2]))
    assert shares == [(1, 26732), (2, 26739), (3, 26750)]


def test_round_trip_every_subset():
    for secret in (b"a", b"hi", b"xyz", b'\x7f\x00\x00\x01'):
        for n, k in ((1, 1), (3, 1), (3, 2), (5, 3), (4, 4)):
            shares = shamir.split_secret(secret, n=n, k=k)
            for subset in itertools.combinations(shares, k):
                assert shamir.reconstruct_secret(list(subset), k=k) == secret


def test_threshold_one_shares_are_the_secret():
    shares = shamir.split_secret(b"hi", n=4, k=1, rng=ExplodingRandomSource())
    assert all(y == 26729 for _, y in shares)


def test_more_than_k_uses_first_k():
    shares = shamir.split_secret(b"ok", n=5, k=2)
    assert shamir.reconstruct_secret(shares, k=2) == b"ok"


def test_k_greater_than_n_rejected_before_arithmetic():
    try:
        shamir.split_secret(b"hi", n=3, k=5, rng=ExplodingRandomSource())
        assert False, "Should have raised ConfigurationError"
    except ConfigurationError:
        pass


def test_bad_parameters():
    for n, k in ((3, 0), (0, 0), (-1, 1), (PRIME, 2)):
        try:
            shamir.split_secret(b"hi", n=n, k=k, rng=ExplodingRandomSource())
            assert False, f"Should have raised ConfigurationError for n={n}, k={k}"
        except ConfigurationError:
            pass


def test_oversized_secret_rejected():
    try:
        shamir.split_secret(b"too long", n=3, k=2)
        assert False, "Should have raised EncodingOverflowError"
    except EncodingOverflowError:
        pass


def test_insufficient_shares():
    shares = shamir.split_secret(b"hi", n=5, k=3)
    try:
        shamir.reconstruct_secret(shares[:2], k=3)
        assert False, "Should have raised InsufficientSharesError"
    except InsufficientSharesError:
        pass


def test_k_minus_one_points_miss_the_secret():
    shares = shamir.split_secret(b"hi", n=3, k=3, rng=FixedRandomSource([1, 2]))
    # Line through (1, 26732) and (2, 26739) meets x = 0 at 26725
    assert field.interpolate_at_zero(shares[:2]) == 26725
    assert field.interpolate_at_zero(shares) == 26729


def test_shares_are_independent():
    a = shamir.split_secret(b"hi", n=5, k=3)
    b = shamir.split_secret(b"hi", n=5, k=3)
    assert [y for _, y in a] != [y for _, y in b]


def test_duplicate_x_rejected():
    try:
        shamir.reconstruct_secret([(1, 5), (1, 7)], k=2)
        assert False, "Should have raised DegenerateShareSetError"
    except DegenerateShareSetError:
        pass


def test_zero_x_rejected():
    for shares in ([(0, 5), (1, 7)], [(PRIME, 5), (1, 7)], [(1, 5), (PRIME + 1, 7)]):
        try:
            shamir.reconstruct_secret(shares, k=2)
            assert False, f"Should have raised DegenerateShareSetError for {shares}"
        except DegenerateShareSetError:
            pass


def test_errors_are_value_errors():
    try:
        shamir.reconstruct_secret([(1, 5)], k=2)
        assert False, "Should have raised ValueError"
    except ValueError:
        pass


# ==========================================================================
# Block split / reconstruct
# ==========================================================================

def test_blocks_32_byte_key():
    secret = os.urandom(32)
    shares = shamir.split_blocks(secret, n=5, k=3)
    assert len(shares) == 5
    # length header + 11 chunks
    assert all(len(values) == 12 for _, values in shares)

    for subset in itertools.combinations(shares, 3):
        assert shamir.reconstruct_blocks(list(subset), k=3) == secret


def test_blocks_long_text():
    secret = b"The quick brown fox jumps over the lazy dog" * 3
    shares = shamir.split_blocks(secret, n=4, k=2)
    assert shamir.reconstruct_blocks([shares[3], shares[1]], k=2) == secret


def test_blocks_mixed_widths_rejected():
    a = shamir.split_blocks(b"abc", n=3, k=2)
    b = shamir.split_blocks(b"abcdef", n=3, k=2)
    try:
        shamir.reconstruct_blocks([a[0], b[1]], k=2)
        assert False, "Should have raised DegenerateShareSetError"
    except DegenerateShareSetError:
        pass


def test_blocks_insufficient_shares():
    shares = shamir.split_blocks(b"secret", n=3, k=3)
    try:
        shamir.reconstruct_blocks(shares[:2], k=3)
        assert False, "Should have raised InsufficientSharesError"
    except InsufficientSharesError:
        pass


def test_blocks_k_greater_than_n():
    try:
        shamir.split_blocks(b"secret", n=2, k=3, rng=ExplodingRandomSource())
        assert False, "Should have raised ConfigurationError"
    except ConfigurationError:
        pass


# ==========================================================================
# Runner
# ==========================================================================

def run_all():
    tests = [v for k, v in sorted(globals().items()) if k.startswith('test_') and callable(v)]

    passed = 0
    failed = 0
    for t in tests:
        try:
            t()
            print(f"[PASS] {t.__name__}")
            passed += 1
        except Exception as e:
            print(f"[FAIL] {t.__name__}: {e}")
            import traceback
            traceback.print_exc()
            failed += 1

    print(f"\n--- shamir_split core tests: {passed} passed, {failed} failed ---")
    return failed == 0


if __name__ == "__main__":
    sys.exit(0 if run_all() else 1)
