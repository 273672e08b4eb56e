"""Primerscan: primer location, strand and dimer analysis for amplicon reads."""

__version__ = "0.1.0"

# Re-export key functions and classes that might be useful for programmatic access
from .alignment import match_primer
from .classify import Classifier, classify
from .constants import Strand
from .databases import PrimerLibrary, read_primers_file
from .errors import ConfigurationError, InputError, PrimerScanError, RecordAnomaly, WorkerException
from .merging import merge_pair
from .models import (
    AnalysisParameters,
    AnalysisRecord,
    MergeOutcome,
    Primer,
    PrimerMatch,
    Read,
    ReadPair,
)
from .pipeline import RunResult, run
from .stats import Statistics

__all__ = [
    "AnalysisParameters",
    "AnalysisRecord",
    "Classifier",
    "ConfigurationError",
    "InputError",
    "MergeOutcome",
    "Primer",
    "PrimerLibrary",
    "PrimerMatch",
    "PrimerScanError",
    "Read",
    "ReadPair",
    "RecordAnomaly",
    "RunResult",
    "Statistics",
    "Strand",
    "WorkerException",
    "classify",
    "match_primer",
    "merge_pair",
    "read_primers_file",
    "run",
]
