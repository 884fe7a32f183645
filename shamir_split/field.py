"""
Arithmetic in GF(p) for the sharing scheme.

Modular exponentiation and inversion, plus the two polynomial
operations the scheme needs: Horner evaluation (to make shares) and
Lagrange interpolation at x = 0 (to recover the constant term).

p defaults to the Mersenne prime 2^31 - 1. Every intermediate result is
reduced mod p right after the multiply/add/subtract that produced it.
"""

# 2^31 - 1
PRIME = 2147483647


def modpow(base: int, exponent: int, modulus: int) -> int:
    """Compute base^exponent mod modulus by square-and-multiply."""
    if modulus <= 1:
        raise ValueError(f"Modulus must be > 1, got {modulus}")
    if exponent < 0:
        raise ValueError(f"Exponent must be >= 0, got {exponent}")

    result = 1
    base = base % modulus
    while exponent > 0:
        if exponent & 1:
            result = (result * base) % modulus
        exponent >>= 1
        base = (base * base) % modulus
    return result


def mod_inverse(a: int, modulus: int = PRIME) -> int:
    """
    Modular multiplicative inverse via Fermat's little theorem.

    modulus must be prime. Raises ZeroDivisionError when a is 0 mod modulus,
    which has no inverse.
    """
    if a % modulus == 0:
        raise ZeroDivisionError(f"{a} has no inverse mod {modulus}")
    return modpow(a, modulus - 2, modulus)


def evaluate(coefficients: list, x: int, prime: int = PRIME) -> int:
    """Evaluate polynomial at x using Horner's method in GF(prime)."""
    result = 0
    for coeff in reversed(coefficients):
        result = (result * x + coeff) % prime
    return result


def interpolate_at_zero(points: list, prime: int = PRIME) -> int:
    """
    Lagrange interpolation of the polynomial through `points` at x = 0.

    Args:
        points: List of (x, y) field-element pairs
        prime: The prime field modulus

    Returns:
        The constant term of the unique polynomial of degree < len(points)

    Raises:
        ZeroDivisionError: If two x values coincide mod prime
    """
    value = 0
    for i, (xi, yi) in enumerate(points):
        numerator = 1
        denominator = 1
        for j, (xj, _) in enumerate(points):
            if i == j:
                continue
            numerator = (numerator * (0 - xj)) % prime
            denominator = (denominator * (xi - xj)) % prime

        term = (yi * numerator) % prime
        term = (term * mod_inverse(denominator, prime)) % prime
        value = (value + term) % prime
    return value
