import os
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def _optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value not in (None, "") else None

# ============================================================================
# CONFIGURATION CLASS
# ============================================================================

class Config:
    """Centralized configuration with validation"""

    # Domain
    DOMAIN_BITS: int = int(os.getenv("OPTIMUS_DOMAIN_BITS", "31"))

    # Primality testing
    PRIMALITY_ROUNDS: int = int(os.getenv("OPTIMUS_PRIMALITY_ROUNDS", "20"))
    MAX_PRIME_BITS: int = 63  # signed 64-bit range

    # Remote prime archive
    PRIME_ARCHIVE_URL: str = os.getenv(
        "OPTIMUS_PRIME_ARCHIVE_URL",
        "https://t5k.org/lists/small/millions/primes{index}.zip",
    )
    PRIME_ARCHIVE_FILES: int = 50
    ARCHIVE_HEADER_OFFSET: int = 67  # each list starts with a text header

    # Timeouts
    HTTP_TIMEOUT: float = float(os.getenv("OPTIMUS_HTTP_TIMEOUT", "10.0"))

    # Logging
    LOG_FILE: Optional[str] = os.getenv("OPTIMUS_LOG_FILE") or None

    # Seed for the process-default transform. Keep these out of source control.
    PRIME: Optional[int] = _optional_int("OPTIMUS_PRIME")
    MOD_INVERSE: Optional[int] = _optional_int("OPTIMUS_MOD_INVERSE")
    RANDOM: Optional[int] = _optional_int("OPTIMUS_RANDOM")

    @classmethod
    def validate(cls):
        """Validate configuration on startup"""
        if cls.DOMAIN_BITS < 2 or cls.DOMAIN_BITS > 64:
            raise ValueError("DOMAIN_BITS must be between 2 and 64")
        if cls.PRIMALITY_ROUNDS < 1:
            raise ValueError("PRIMALITY_ROUNDS must be at least 1")
        if "{index}" not in cls.PRIME_ARCHIVE_URL:
            raise ValueError("PRIME_ARCHIVE_URL must contain an {index} placeholder")
        if cls.HTTP_TIMEOUT <= 0:
            raise ValueError("HTTP_TIMEOUT must be positive")

# ============================================================================
# SINGLETON INSTANCE & DERIVED CONSTANTS
# ============================================================================

config = Config()

# --- Expose class attributes as module constants for convenience ---
for attr in [a for a in dir(config) if not a.startswith('__') and not callable(getattr(config, a))]:
    globals()[attr] = getattr(config, attr)

# Largest encodable value for the configured domain
MAX_INT: int = (1 << config.DOMAIN_BITS) - 1

config.MAX_INT = MAX_INT


def max_int_for(bits: int) -> int:
    """Returns the domain bound 2**bits - 1."""
    if bits < 1:
        raise ValueError("Domain width must be at least one bit")
    return (1 << bits) - 1


# ============================================================================
# SETTINGS MODEL
# ============================================================================

class Settings(BaseModel):
    """Validated runtime settings, built from the environment-backed Config."""
    domain_bits: int = Field(default=Config.DOMAIN_BITS, ge=2, le=64)
    primality_rounds: int = Field(default=Config.PRIMALITY_ROUNDS, ge=1)
    max_prime_bits: int = Config.MAX_PRIME_BITS
    prime_archive_url: str = Config.PRIME_ARCHIVE_URL
    prime_archive_files: int = Config.PRIME_ARCHIVE_FILES
    archive_header_offset: int = Config.ARCHIVE_HEADER_OFFSET
    http_timeout: float = Field(default=Config.HTTP_TIMEOUT, gt=0)
    prime: Optional[int] = Config.PRIME
    mod_inverse: Optional[int] = Config.MOD_INVERSE
    random: Optional[int] = Config.RANDOM

    @field_validator('prime_archive_url')
    def validate_archive_url(cls, value):
        if "{index}" not in value:
            raise ValueError("Archive URL must contain an {index} placeholder")
        return value

    @field_validator('prime', 'mod_inverse', 'random')
    def validate_seed_part(cls, value):
        if value is not None and value < 0:
            raise ValueError("Seed values must be non-negative")
        return value

    @property
    def max_int(self) -> int:
        return max_int_for(self.domain_bits)

    @property
    def has_seed(self) -> bool:
        return None not in (self.prime, self.mod_inverse, self.random)


@lru_cache()
def get_settings() -> Settings:
    """
    Returns a cached, singleton Settings instance.
    Tests that change the environment must call get_settings.cache_clear().
    """
    Config.validate()
    return Settings()
