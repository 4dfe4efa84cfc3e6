"""
Integer obfuscation to prevent sequential scraping of database IDs.

This uses Knuth's multiplicative hashing: multiply by a prime, reduce to the
domain's bit width and XOR with a random mask. Decoding multiplies by the
modular inverse of the prime. It is not encryption; anyone holding the prime,
its inverse and the mask can decode every ID, so treat all three as secrets.
"""
from functools import lru_cache

import config
from config import get_settings, max_int_for
from core_logic import OptimusError, InvalidPrimeError
from mymath import assert_prime, mod_inverse as compute_mod_inverse


class Optimus:
    """
    An immutable (prime, mod_inverse, random) triple over the domain [0, 2^bits - 1].

    The prime is verified with a Miller-Rabin test unless verify=False, in
    which case the caller vouches for it. The inverse is stored as given; a
    wrong inverse makes decode return wrong values without any error.
    """

    __slots__ = ("_prime", "_mod_inverse", "_random", "_bits", "_max_int")

    def __init__(self, prime: int, mod_inverse: int, random: int,
                 bits: int = config.DOMAIN_BITS, verify: bool = True,
                 rounds: int = config.PRIMALITY_ROUNDS):
        if not 2 <= bits <= 64:
            raise ValueError("Domain width must be between 2 and 64 bits")
        max_int = max_int_for(bits)
        if prime % 2 == 0:
            raise InvalidPrimeError(prime, "prime must be odd to be invertible in the domain")
        if not 0 < prime < max_int:
            raise InvalidPrimeError(prime, f"prime must be below the domain bound {max_int}")
        if verify:
            assert_prime(prime, rounds)
        if not 0 < mod_inverse <= max_int:
            raise ValueError(f"mod_inverse must be in [1, {max_int}]")
        if not 0 <= random <= max_int:
            raise ValueError(f"random must be in [0, {max_int}]")

        object.__setattr__(self, "_prime", prime)
        object.__setattr__(self, "_mod_inverse", mod_inverse)
        object.__setattr__(self, "_random", random)
        object.__setattr__(self, "_bits", bits)
        object.__setattr__(self, "_max_int", max_int)

    @classmethod
    def calculated(cls, prime: int, random: int, bits: int = config.DOMAIN_BITS,
                   rounds: int = config.PRIMALITY_ROUNDS) -> "Optimus":
        """Builds an Optimus, computing the modular inverse of prime."""
        inverse = compute_mod_inverse(prime, max_int_for(bits), rounds)
        # compute_mod_inverse already ran the primality test
        return cls(prime, inverse, random, bits=bits, verify=False)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __eq__(self, other):
        if not isinstance(other, Optimus):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        # Never print the key material.
        return f"Optimus(bits={self._bits})"

    def _key(self):
        return (self._prime, self._mod_inverse, self._random, self._bits)

    def encode(self, n: int) -> int:
        """
        Scrambles an ID. Only the low `bits` bits of n take part, so values
        above max_int encode the same as n & max_int.
        """
        if n < 0:
            raise ValueError("Only non-negative integers can be encoded")
        return ((n * self._prime) & self._max_int) ^ self._random

    def decode(self, n: int) -> int:
        """Reverses encode. Correct only with the same triple and domain width."""
        if n < 0:
            raise ValueError("Only non-negative integers can be decoded")
        return ((n ^ self._random) * self._mod_inverse) & self._max_int

    @property
    def prime(self) -> int:
        """The multiplier. Secret: do not expose."""
        return self._prime

    @property
    def mod_inverse(self) -> int:
        """The inverse of prime modulo 2^bits. Secret: do not expose."""
        return self._mod_inverse

    @property
    def random(self) -> int:
        """The XOR mask. Secret: do not expose."""
        return self._random

    @property
    def bits(self) -> int:
        return self._bits

    @property
    def max_int(self) -> int:
        return self._max_int


@lru_cache()
def get_optimus() -> Optimus:
    """
    Returns a cached Optimus built from the configured seed
    (OPTIMUS_PRIME, OPTIMUS_MOD_INVERSE, OPTIMUS_RANDOM).
    """
    settings = get_settings()
    if not settings.has_seed:
        raise OptimusError(
            "No seed configured: set OPTIMUS_PRIME, OPTIMUS_MOD_INVERSE and OPTIMUS_RANDOM"
        )
    return Optimus(
        settings.prime,
        settings.mod_inverse,
        settings.random,
        bits=settings.domain_bits,
        rounds=settings.primality_rounds,
    )


def obfuscate(n: int) -> int:
    """Scrambles a sequential integer ID to make it appear random."""
    return get_optimus().encode(n)


def deobfuscate(n: int) -> int:
    """Reverses the scrambling to retrieve the original sequential ID."""
    return get_optimus().decode(n)
