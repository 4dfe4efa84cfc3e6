"""
Places a seed generator can get a prime from.

Every source implements `async get_prime() -> int` and raises
SourceUnavailableError (or its SourceTimeoutError subclass) when it cannot
deliver. Sources make no promise that the value is prime; the seed generator
verifies it before building a transform.
"""
import asyncio
import io
import zipfile
from typing import List, Optional, Protocol

import httpx

import config
from config import max_int_for
from core_logic import logger, SourceUnavailableError, SourceTimeoutError
from mymath import largest_prime_below, random_in_range


class PrimeSource(Protocol):
    async def get_prime(self) -> int:
        ...


def _pick(candidates: List[int]) -> int:
    return candidates[random_in_range(0, len(candidates) - 1)]


def _numbers(text: str, max_int: int) -> List[int]:
    """ASCII decimal tokens of text that could be an odd prime below max_int."""
    numbers = (int(tok) for tok in text.split() if tok.isascii() and tok.isdigit())
    return [n for n in numbers if 2 < n < max_int]


class SearchPrimeSource:
    """
    Finds the largest prime below a random bound in the upper half of the
    domain. Domains wider than the primality test are searched only up to
    the widest verifiable value.
    """

    def __init__(self, bits: int = config.DOMAIN_BITS, rounds: int = config.PRIMALITY_ROUNDS):
        self.bits = bits
        self.rounds = rounds

    def _search(self) -> int:
        search_bits = min(self.bits, config.MAX_PRIME_BITS)
        max_int = max_int_for(search_bits)
        bound = random_in_range(max(1 << (search_bits - 1), 4), max_int)
        return largest_prime_below(bound, self.rounds)

    async def get_prime(self) -> int:
        return await asyncio.to_thread(self._search)


class FilePrimeSource:
    """
    Reads primes from a local whitespace-separated list, such as an
    uncompressed file from the primes archive. Lines without numbers
    (headers, blank lines) are ignored.
    """

    def __init__(self, path: str, line: Optional[int] = None, bits: int = config.DOMAIN_BITS):
        self.path = path
        self.line = line
        self.bits = bits

    def _read_lines(self) -> List[List[int]]:
        max_int = max_int_for(self.bits)
        rows = []
        try:
            with open(self.path, 'r', encoding='ascii', errors='ignore') as f:
                for raw in f:
                    numbers = _numbers(raw, max_int)
                    if numbers:
                        rows.append(numbers)
        except OSError as e:
            raise SourceUnavailableError(f"Could not read prime list {self.path}: {e}") from e
        return rows

    def _select(self) -> int:
        rows = self._read_lines()
        if not rows:
            raise SourceUnavailableError(f"No usable primes in {self.path}")
        if self.line is None:
            return _pick([n for row in rows for n in row])
        if not 0 <= self.line < len(rows):
            raise SourceUnavailableError(
                f"Line {self.line} out of range: {self.path} has {len(rows)} lines of primes"
            )
        return _pick(rows[self.line])

    async def get_prime(self) -> int:
        return await asyncio.to_thread(self._select)


class ArchivePrimeSource:
    """
    Downloads one zip-compressed list of the first 50 million primes and
    picks one at random. The archive is a third party; the value it returns
    must be verified before use.

    An httpx.AsyncClient may be injected; otherwise one is created per call.
    """

    def __init__(self, index: Optional[int] = None, client: Optional[httpx.AsyncClient] = None,
                 url_template: str = config.PRIME_ARCHIVE_URL,
                 timeout: float = config.HTTP_TIMEOUT,
                 bits: int = config.DOMAIN_BITS):
        if index is not None and not 1 <= index <= config.PRIME_ARCHIVE_FILES:
            raise ValueError(f"Archive index must be between 1 and {config.PRIME_ARCHIVE_FILES}")
        self.index = index
        self.client = client
        self.url_template = url_template
        self.timeout = timeout
        self.bits = bits

    async def _download(self, client: httpx.AsyncClient, url: str) -> bytes:
        response = await client.get(url)
        response.raise_for_status()
        return response.content

    def _extract(self, payload: bytes) -> List[int]:
        try:
            with zipfile.ZipFile(io.BytesIO(payload)) as archive:
                names = archive.namelist()
                if not names:
                    raise SourceUnavailableError("Prime archive is empty")
                text = archive.read(names[0]).decode('ascii', errors='ignore')
        except zipfile.BadZipFile as e:
            raise SourceUnavailableError(f"Prime archive is not a valid zip file: {e}") from e

        return _numbers(text[config.ARCHIVE_HEADER_OFFSET:], max_int_for(self.bits))

    async def get_prime(self) -> int:
        index = self.index if self.index is not None else random_in_range(1, config.PRIME_ARCHIVE_FILES)
        url = self.url_template.format(index=index)
        logger.info(f"Using file: {url}")

        try:
            if self.client is not None:
                payload = await self._download(self.client, url)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    payload = await self._download(client, url)
        except httpx.TimeoutException as e:
            raise SourceTimeoutError(f"Timed out fetching {url}") from e
        except httpx.HTTPStatusError as e:
            raise SourceUnavailableError(f"HTTP {e.response.status_code} fetching {url}") from e
        except httpx.HTTPError as e:
            raise SourceUnavailableError(f"Could not fetch {url}: {e}") from e

        candidates = await asyncio.to_thread(self._extract, payload)
        if not candidates:
            raise SourceUnavailableError(f"No usable primes in {url}")
        return _pick(candidates)
