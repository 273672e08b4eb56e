"""Data records passed between the primerscan components."""

from typing import List, NamedTuple, Optional, Tuple, Union

from Bio.Seq import reverse_complement

from .constants import AlignSymbol, Defaults, Strand, VALID_BASES
from .errors import ConfigurationError


class Primer:
    def __init__(self, name: str, seq: str):
        name = name.strip()
        sequence = seq.strip().upper()
        if not name:
            raise ConfigurationError("Primer name must not be empty")
        if not sequence:
            raise ConfigurationError(f"Empty sequence for primer {name}")
        invalid = set(sequence) - VALID_BASES
        if invalid:
            raise ConfigurationError(
                f"Invalid primer sequence for {name}: unexpected characters {''.join(sorted(invalid))}")

        self.name = name
        self.sequence = sequence
        self.sequence_rc = reverse_complement(sequence)

    def __len__(self):
        return len(self.sequence)

    def __eq__(self, other):
        if not isinstance(other, Primer):
            return NotImplemented
        return self.name == other.name and self.sequence == other.sequence

    def __hash__(self):
        return hash((self.name, self.sequence))

    def __repr__(self):
        return f"Primer({self.name!r}, {self.sequence!r})"


class Read(NamedTuple):
    id: str
    sequence: str
    quality: Tuple[int, ...] = ()


class ReadPair(NamedTuple):
    mate1: Read
    mate2: Read


class MergeOutcome(NamedTuple):
    read_id: str
    sequence: str
    quality: Tuple[int, ...]
    id_suffix: str
    merged: bool
    overlap: int = 0


class AlignmentTrace(NamedTuple):
    """Column-wise view of one primer placement.

    ``primer`` and ``read`` are the aligned segments with ``-`` for gaps,
    ``symbols`` holds one match/mismatch/indel symbol per column.
    """
    primer: str
    symbols: str
    read: str

    def __str__(self):
        return f"{self.primer}{AlignSymbol.MATCH}{self.symbols}{AlignSymbol.MATCH}{self.read}"


class PrimerMatch(NamedTuple):
    primer_name: Optional[str] = None
    found: bool = False
    position: Optional[int] = None
    end: Optional[int] = None
    errors: Optional[int] = None
    alignment: Optional[AlignmentTrace] = None

    @classmethod
    def not_found(cls, primer_name: Optional[str] = None) -> 'PrimerMatch':
        return cls(primer_name=primer_name)


NOT_FOUND = PrimerMatch()


class AnalysisRecord(NamedTuple):
    index: int
    read_id: str
    length: int
    strand: Strand
    forward_match: PrimerMatch
    reverse_match: PrimerMatch
    distance: Optional[int] = None
    is_dimer: bool = False

    @property
    def both_found(self) -> bool:
        return self.forward_match.found and self.reverse_match.found

    @property
    def primer_pair(self) -> Optional[Tuple[str, str]]:
        if not self.both_found:
            return None
        return self.forward_match.primer_name, self.reverse_match.primer_name


def unknown_record(index: int, read_id: str, length: int) -> AnalysisRecord:
    """Degraded record for reads that could not be classified."""
    return AnalysisRecord(index, read_id, length, Strand.UNKNOWN, NOT_FOUND, NOT_FOUND)


class AnalysisParameters:
    def __init__(self,
                 max_errors: int = Defaults.MAX_ERRORS,
                 min_distance: int = Defaults.MIN_DISTANCE,
                 max_output: int = Defaults.MAX_OUTPUT,
                 min_overlap: int = Defaults.MIN_OVERLAP,
                 max_mismatch_rate: float = Defaults.MAX_MISMATCH_RATE,
                 batch_size: int = Defaults.BATCH_SIZE,
                 search_len: Optional[int] = None,
                 alignments: bool = False,
                 sample_name: str = "",
                 threads: Optional[int] = 1,
                 cache_size: int = Defaults.CACHE_SIZE):
        self.max_errors = max_errors
        self.min_distance = min_distance
        self.max_output = max_output
        self.min_overlap = min_overlap
        self.max_mismatch_rate = max_mismatch_rate
        self.batch_size = batch_size
        self.search_len = search_len
        self.alignments = alignments
        self.sample_name = sample_name
        self.threads = threads
        self.cache_size = cache_size

    def validate(self) -> 'AnalysisParameters':
        """
        Check every threshold before processing begins.

        Returns:
            self, so construction and validation can be chained

        Raises:
            ConfigurationError: naming the first offending value
        """
        _require_int("max_errors", self.max_errors, 0)
        _require_int("min_distance", self.min_distance, 0)
        _require_int("max_output", self.max_output, 1)
        _require_int("min_overlap", self.min_overlap, 1)
        _require_int("batch_size", self.batch_size, 1)
        _require_int("cache_size", self.cache_size, 0)
        if self.search_len is not None:
            _require_int("search_len", self.search_len, 1)
        if self.threads is not None:
            _require_int("threads", self.threads, 1)
        if isinstance(self.max_mismatch_rate, bool) or not isinstance(self.max_mismatch_rate, (int, float)):
            raise ConfigurationError(f"max_mismatch_rate must be a number, got {self.max_mismatch_rate!r}")
        if not 0.0 <= self.max_mismatch_rate <= 1.0:
            raise ConfigurationError(f"max_mismatch_rate must be within [0, 1], got {self.max_mismatch_rate}")
        return self


def _require_int(name: str, value, minimum: int):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")


WorkUnit = Tuple[int, Union[Read, ReadPair]]


class SequenceBatch(NamedTuple):
    seq_number: int
    units: List[WorkUnit]
    start_idx: int
