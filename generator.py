"""
Seed generation: one prime from a prime source, one CSPRNG mask, the computed
inverse, assembled into a verified Optimus.

This is slow (network, file or prime search). Run it once, store the seed
securely and reuse the resulting transform.
"""
import asyncio
from typing import Optional

import config
from config import max_int_for
from core_logic import logger, SourceTimeoutError
from mymath import random_in_range
from obfuscation import Optimus
from prime_sources import ArchivePrimeSource, PrimeSource, SearchPrimeSource


async def generate_seed(source: Optional[PrimeSource] = None,
                        bits: int = config.DOMAIN_BITS,
                        rounds: int = config.PRIMALITY_ROUNDS,
                        timeout: Optional[float] = None) -> Optimus:
    """
    Builds a fresh Optimus.

    Raises SourceUnavailableError when the source fails, SourceTimeoutError
    when it exceeds `timeout` seconds and InvalidPrimeError when the value it
    returned is not prime. Nothing is retried.
    """
    if source is None:
        source = SearchPrimeSource(bits=bits, rounds=rounds)

    logger.info(f"Generating seed with {type(source).__name__}")
    if isinstance(source, ArchivePrimeSource):
        logger.warning(
            "The prime comes from a remote archive. This is potentially insecure; "
            "it is verified locally before use."
        )

    try:
        prime = await asyncio.wait_for(source.get_prime(), timeout)
    except asyncio.TimeoutError as e:
        raise SourceTimeoutError(f"{type(source).__name__} did not answer within {timeout}s") from e

    random = random_in_range(0, max_int_for(bits))
    optimus = Optimus.calculated(prime, random, bits=bits, rounds=rounds)
    logger.info(f"Generated a {bits}-bit seed")
    return optimus


def generate_seed_sync(source: Optional[PrimeSource] = None,
                       bits: int = config.DOMAIN_BITS,
                       rounds: int = config.PRIMALITY_ROUNDS,
                       timeout: Optional[float] = None) -> Optimus:
    """Blocking wrapper around generate_seed for code without an event loop."""
    return asyncio.run(generate_seed(source, bits=bits, rounds=rounds, timeout=timeout))
