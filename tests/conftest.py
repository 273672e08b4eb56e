"""
Shared pytest fixtures for primerscan tests.
"""

import pytest
import tempfile
from pathlib import Path

from primerscan.databases import PrimerLibrary
from primerscan.models import Primer


@pytest.fixture(scope="session")
def package_root():
    """Return the root directory of the primerscan package."""
    return Path(__file__).parent.parent


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that's cleaned up after the test."""
    with tempfile.TemporaryDirectory(prefix="primerscan_test_") as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def toy_library():
    """Two short primers; GCTA is ATCG read backwards."""
    return PrimerLibrary([Primer("P1", "ATCG"), Primer("P2", "GCTA")])


@pytest.fixture
def its_library():
    """Real fungal ITS primers, reverse primer in its usual 5'->3' notation."""
    return PrimerLibrary([
        Primer("ITS1F", "CTTGGTCATTTAGAGGAAGTAA"),
        Primer("ITS4", "TCCTCCGCTTATTGATATGC"),
    ])


@pytest.fixture
def its_amplicon():
    """Plus-strand read: ITS1F, insert, reverse complement of ITS4."""
    return ("CTTGGTCATTTAGAGGAAGTAA"
            "ACGTACGTACGTACGTACGTACGTACGTACGTACGTACGTACGTACGTACGTACGT"
            "GCATATCAATAAGCGGAGGA")


@pytest.fixture
def sample_primers_tsv():
    """Provide sample primer data in TSV layout."""
    return ("# name\tsequence\n"
            "ITS1F\tCTTGGTCATTTAGAGGAAGTAA\n"
            "\n"
            "ITS4\tTCCTCCGCTTATTGATATGC\n")


@pytest.fixture
def sample_primers_fasta():
    """Provide sample primer data in Fasta layout."""
    return """>ITS1F
CTTGGTCATTTAGAGGAAGTAA
>ITS4
TCCTCCGCTTATTGATATGC
"""


@pytest.fixture
def write_fastq(temp_dir):
    """Write (id, sequence) pairs as a FASTQ file with uniform quality."""
    def _write(name, reads):
        lines = []
        for read_id, seq in reads:
            lines += [f"@{read_id}", seq, "+", "I" * len(seq)]
        path = temp_dir / name
        path.write_text("\n".join(lines) + "\n")
        return path
    return _write


# Markers for test organization
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
