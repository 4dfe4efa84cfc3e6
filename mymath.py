"""
Number theory helpers behind the ID transform: a Miller-Rabin primality test,
modular inverses over power-of-two domains and a CSPRNG-backed integer source.
"""
import secrets
from typing import Tuple

import config
from core_logic import InvalidPrimeError, UnsupportedMagnitudeError, RandomSourceFailure

SMALL_PRIMES = (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41, 43, 47)


def random_in_range(low: int, high: int) -> int:
    """
    Returns a uniformly distributed integer in [low, high] from the platform CSPRNG.
    Never falls back to a non-cryptographic generator.
    """
    if low > high:
        raise ValueError(f"Empty range: [{low}, {high}]")
    try:
        return low + secrets.randbelow(high - low + 1)
    except (OSError, NotImplementedError) as e:
        raise RandomSourceFailure(f"Secure random source unavailable: {e}") from e


def is_probably_prime(n: int, rounds: int = config.PRIMALITY_ROUNDS,
                      max_bits: int = config.MAX_PRIME_BITS) -> bool:
    """
    Miller-Rabin primality test.

    A composite passes with probability at most 4^-rounds. Candidates wider
    than max_bits raise UnsupportedMagnitudeError instead of going unverified.
    """
    if rounds < 1:
        raise ValueError("At least one round is required")
    if n.bit_length() > max_bits:
        raise UnsupportedMagnitudeError(n, max_bits)
    if n < 2:
        return False
    for p in SMALL_PRIMES:
        if n == p:
            return True
        if n % p == 0:
            return False

    # n - 1 = 2^r * d with d odd
    r, d = 0, n - 1
    while d % 2 == 0:
        r += 1
        d //= 2

    for _ in range(rounds):
        a = random_in_range(2, n - 2)
        x = pow(a, d, n)
        if x == 1 or x == n - 1:
            continue
        for _ in range(r - 1):
            x = pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False
    return True


def assert_prime(n: int, rounds: int = config.PRIMALITY_ROUNDS,
                 max_bits: int = config.MAX_PRIME_BITS) -> None:
    """Raises InvalidPrimeError unless n passes the primality test."""
    if not is_probably_prime(n, rounds, max_bits):
        raise InvalidPrimeError.composite(n, rounds)


def extended_gcd(a: int, b: int) -> Tuple[int, int, int]:
    """Returns (g, x, y) such that a*x + b*y == g == gcd(a, b)."""
    old_r, r = a, b
    old_x, x = 1, 0
    old_y, y = 0, 1
    while r:
        q = old_r // r
        old_r, r = r, old_r - q * r
        old_x, x = x, old_x - q * x
        old_y, y = y, old_y - q * y
    return old_r, old_x, old_y


def is_domain_bound(max_int: int) -> bool:
    """True when max_int has the form 2^k - 1 with k >= 1."""
    return max_int > 0 and (max_int & (max_int + 1)) == 0


def mod_inverse(prime: int, max_int: int = config.MAX_INT,
                rounds: int = config.PRIMALITY_ROUNDS,
                max_bits: int = config.MAX_PRIME_BITS) -> int:
    """
    Calculates x such that (prime * x) & max_int == 1.

    The prime is verified first, so a composite raises InvalidPrimeError
    instead of producing an inverse that silently breaks decoding.
    """
    if not is_domain_bound(max_int):
        raise ValueError(f"Domain bound must have the form 2^k - 1, got {max_int}")
    if prime == 2:
        raise InvalidPrimeError(prime, "2 has no inverse modulo a power of two")
    assert_prime(prime, rounds, max_bits)

    modulus = max_int + 1
    g, x, _ = extended_gcd(prime % modulus, modulus)
    if g != 1:
        raise InvalidPrimeError(prime, f"not coprime with {modulus}")
    return x % modulus


def largest_prime_below(bound: int, rounds: int = config.PRIMALITY_ROUNDS,
                        max_bits: int = config.MAX_PRIME_BITS) -> int:
    """Returns the largest odd probable prime strictly below bound."""
    if bound <= 3:
        raise ValueError("No odd prime exists below 3")
    candidate = bound - 1 if bound % 2 == 0 else bound - 2
    while candidate >= 3:
        if is_probably_prime(candidate, rounds, max_bits):
            return candidate
        candidate -= 2
    raise ValueError(f"No odd prime below {bound}")
