import os
import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

import config

# --- LOGGING SETUP ---

def setup_logging(log_file: Optional[str] = config.LOG_FILE) -> logging.Logger:
    """Configure the package logger with an optional rotating log file"""
    logger = logging.getLogger("optimus")
    logger.setLevel(logging.INFO)

    if not logger.handlers:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
        )

        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        if log_file:
            log_dir = os.path.dirname(os.path.abspath(log_file))
            os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=10_485_760,
                backupCount=5
            )
            file_handler.setLevel(logging.INFO)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger

logger = setup_logging()

# --- CUSTOM EXCEPTIONS ---

class OptimusError(Exception):
    """Base class for every error raised by this package."""


class InvalidPrimeError(OptimusError, ValueError):
    """The supplied or computed prime failed verification."""

    def __init__(self, prime: int, reason: str):
        self.prime = prime
        self.reason = reason
        super().__init__(f"Invalid prime: {reason}")

    @classmethod
    def composite(cls, prime: int, rounds: int) -> "InvalidPrimeError":
        return cls(
            prime,
            f"candidate failed {rounds} Miller-Rabin rounds "
            f"(expected accuracy: false-positive probability <= 4^-{rounds})",
        )


class UnsupportedMagnitudeError(OptimusError, ValueError):
    """The candidate is wider than the primality test can verify."""

    def __init__(self, value: int, max_bits: int):
        self.value = value
        self.max_bits = max_bits
        super().__init__(
            f"Cannot verify a {value.bit_length()}-bit value; "
            f"the limit is {max_bits} bits"
        )


class SourceUnavailableError(OptimusError):
    """A prime source could not supply a candidate (network, file or payload error)."""


class SourceTimeoutError(SourceUnavailableError):
    """A prime source did not answer within its timeout."""


class RandomSourceFailure(OptimusError):
    """The platform CSPRNG could not supply entropy."""
