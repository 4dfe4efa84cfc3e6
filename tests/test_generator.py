import asyncio
import io
import os
import sys
import threading
import zipfile

import httpx
import pytest
import respx

# Add the project root to sys.path to resolve module imports correctly
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from core_logic import InvalidPrimeError, SourceTimeoutError, SourceUnavailableError
from generator import generate_seed, generate_seed_sync
from prime_sources import ArchivePrimeSource, FilePrimeSource, SearchPrimeSource

ARCHIVE_URL = "https://t5k.org/lists/small/millions/primes7.zip"
ARCHIVE_PRIMES = {837350711, 1580030173, 2123809381}


def make_archive(body: str) -> bytes:
    """Builds a zip laid out like the published prime lists: a header, then numbers."""
    header = "The First 1,000,000 Primes (from primes.utm.edu)".ljust(66) + "\n"
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("primes7.txt", header + body)
    return buffer.getvalue()


def assert_round_trips(o):
    for value in (0, 1, 15, 99999, o.max_int):
        if value > o.max_int:
            continue
        assert o.decode(o.encode(value)) == value


class SlowSource:
    async def get_prime(self) -> int:
        await asyncio.sleep(5)
        return 3


class FixedSource:
    def __init__(self, value):
        self.value = value

    async def get_prime(self) -> int:
        return self.value


# ===================================
# 1. Seed generation
# ===================================

def test_generate_seed_default_search():
    """The default source searches for a prime in the upper half of the domain."""
    o = generate_seed_sync()
    assert 2**29 < o.prime < 2**31 - 1
    assert (o.prime * o.mod_inverse) & o.max_int == 1
    assert 0 <= o.random <= o.max_int
    assert_round_trips(o)


def test_generate_seed_small_domain():
    o = generate_seed_sync(bits=16)
    assert o.bits == 16
    assert 2**14 < o.prime < 2**16
    assert_round_trips(o)
    assert o.decode(o.encode(99999)) == 99999 & o.max_int


def test_generate_seed_full_64_bit_domain():
    """The search stays within the primality test's width for a 64-bit domain."""
    o = generate_seed_sync(bits=64)
    assert o.bits == 64
    assert 2**61 < o.prime < 2**63
    assert (o.prime * o.mod_inverse) & o.max_int == 1
    assert_round_trips(o)


def test_generate_seed_from_fixed_source():
    o = asyncio.run(generate_seed(FixedSource(1580030173)))
    assert o.prime == 1580030173
    assert o.mod_inverse == 59260789


def test_generate_seed_rejects_composite():
    with pytest.raises(InvalidPrimeError):
        generate_seed_sync(FixedSource(15))


def test_generate_seed_timeout():
    with pytest.raises(SourceTimeoutError):
        generate_seed_sync(SlowSource(), timeout=0.05)


def test_seeds_differ():
    assert generate_seed_sync() != generate_seed_sync()


# ===================================
# 2. Local prime lists
# ===================================

def test_file_source_by_line(tmp_path):
    path = tmp_path / "primes.txt"
    path.write_text("The First Primes\n\n   2   3   5   7\n  11  13  17\n")
    prime = asyncio.run(FilePrimeSource(str(path), line=1).get_prime())
    assert prime in {11, 13, 17}


def test_file_source_anywhere(tmp_path):
    path = tmp_path / "primes.txt"
    path.write_text("837350711 1580030173\n2123809381\n")
    o = generate_seed_sync(FilePrimeSource(str(path)))
    assert o.prime in ARCHIVE_PRIMES


def test_file_source_missing_file(tmp_path):
    with pytest.raises(SourceUnavailableError):
        generate_seed_sync(FilePrimeSource(str(tmp_path / "missing.txt")))


def test_file_source_line_out_of_range(tmp_path):
    path = tmp_path / "primes.txt"
    path.write_text("3 5 7\n")
    with pytest.raises(SourceUnavailableError):
        asyncio.run(FilePrimeSource(str(path), line=4).get_prime())


def test_file_source_ignores_undecodable_bytes(tmp_path):
    """Non-ASCII bytes and digits are skipped instead of breaking the read."""
    path = tmp_path / "primes.txt"
    path.write_bytes(b"\xff\xfe header\n1580030173 \xc2\xb2\n")
    assert asyncio.run(FilePrimeSource(str(path)).get_prime()) == 1580030173


def test_file_source_only_garbage(tmp_path):
    path = tmp_path / "primes.txt"
    path.write_bytes(b"\xff\xfe\xc2\xb2\xc2\xb3\n")
    with pytest.raises(SourceUnavailableError):
        asyncio.run(FilePrimeSource(str(path)).get_prime())


def test_file_source_without_primes(tmp_path):
    path = tmp_path / "primes.txt"
    path.write_text("no numbers here\n")
    with pytest.raises(SourceUnavailableError):
        asyncio.run(FilePrimeSource(str(path)).get_prime())


# ===================================
# 3. Remote prime archive
# ===================================

@respx.mock
def test_archive_source(caplog):
    respx.get(ARCHIVE_URL).respond(200, content=make_archive("  837350711  1580030173  2123809381\n"))
    o = generate_seed_sync(ArchivePrimeSource(index=7))
    assert o.prime in ARCHIVE_PRIMES
    assert_round_trips(o)
    assert "potentially insecure" in caplog.text


@respx.mock
def test_archive_source_http_error():
    respx.get(ARCHIVE_URL).respond(404)
    with pytest.raises(SourceUnavailableError):
        generate_seed_sync(ArchivePrimeSource(index=7))


@respx.mock
def test_archive_source_timeout():
    respx.get(ARCHIVE_URL).mock(side_effect=httpx.ConnectTimeout)
    with pytest.raises(SourceTimeoutError):
        generate_seed_sync(ArchivePrimeSource(index=7))


@respx.mock
def test_archive_source_bad_payload():
    respx.get(ARCHIVE_URL).respond(200, content=b"not a zip file")
    with pytest.raises(SourceUnavailableError):
        generate_seed_sync(ArchivePrimeSource(index=7))


def test_archive_source_injected_client():
    """An injected client is used as-is, so any httpx transport can back it."""
    payload = make_archive("1580030173\n")

    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == ARCHIVE_URL
        return httpx.Response(200, content=payload)

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await generate_seed(ArchivePrimeSource(index=7, client=client))

    o = asyncio.run(run())
    assert o.prime == 1580030173


@respx.mock
def test_archive_parsing_runs_off_the_event_loop():
    """Unzipping and tokenizing a large list must not block the event loop thread."""
    respx.get(ARCHIVE_URL).respond(200, content=make_archive("1580030173\n"))

    class RecordingArchiveSource(ArchivePrimeSource):
        def _extract(self, payload):
            self.thread = threading.get_ident()
            return super()._extract(payload)

    source = RecordingArchiveSource(index=7)
    assert asyncio.run(source.get_prime()) == 1580030173
    assert source.thread != threading.get_ident()


def test_archive_index_validated():
    with pytest.raises(ValueError):
        ArchivePrimeSource(index=51)


def test_search_source_stays_in_domain():
    prime = asyncio.run(SearchPrimeSource(bits=20).get_prime())
    assert 2**18 < prime < 2**20
