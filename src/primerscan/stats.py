"""Aggregate statistics over analysis records."""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Tuple

from .constants import Strand
from .models import AnalysisRecord


@dataclass
class Statistics:
    """Counts over a set of analysis records.

    Instances combine with ``+``/``+=`` (field-wise sums, key-wise sums of
    primer pair counts), so per-batch partial statistics can be folded in
    any order.  The empty instance is the identity.
    """
    sample_name: str = ""
    total_reads: int = 0
    both_primers_found: int = 0
    plus_strand: int = 0
    minus_strand: int = 0
    dimer_count: int = 0
    primer_pair_counts: Counter = field(default_factory=Counter)

    def add_record(self, record: AnalysisRecord) -> None:
        self.total_reads += 1
        if record.strand == Strand.PLUS:
            self.plus_strand += 1
        elif record.strand == Strand.MINUS:
            self.minus_strand += 1
        if record.is_dimer:
            self.dimer_count += 1

        pair = record.primer_pair
        if pair is not None:
            self.both_primers_found += 1
            self.primer_pair_counts[pair] += 1

    @classmethod
    def from_records(cls, records: Iterable[AnalysisRecord], sample_name: str = "") -> 'Statistics':
        stats = cls(sample_name)
        for record in records:
            stats.add_record(record)
        return stats

    def __iadd__(self, other):
        """Merge statistics from another object into this one."""
        if not isinstance(other, Statistics):
            return NotImplemented

        self.sample_name = self.sample_name or other.sample_name
        self.total_reads += other.total_reads
        self.both_primers_found += other.both_primers_found
        self.plus_strand += other.plus_strand
        self.minus_strand += other.minus_strand
        self.dimer_count += other.dimer_count
        self.primer_pair_counts.update(other.primer_pair_counts)
        return self

    def __add__(self, other):
        if not isinstance(other, Statistics):
            return NotImplemented
        result = Statistics(self.sample_name, primer_pair_counts=Counter())
        result += self
        result += other
        return result

    @classmethod
    def merge(cls, partials: Iterable['Statistics'], sample_name: str = "") -> 'Statistics':
        total = cls(sample_name)
        for partial in partials:
            total += partial
        return total

    def _rate(self, count: int) -> float:
        return count / self.total_reads if self.total_reads > 0 else 0.0

    def sorted_pairs(self) -> Iterable[Tuple[Tuple[str, str], int]]:
        return sorted(self.primer_pair_counts.items(), key=lambda kv: (-kv[1], kv[0]))

    def report(self) -> Dict[str, Any]:
        """Finalized statistics with rates, in output field order."""
        return {
            "sample_name": self.sample_name,
            "total_reads": self.total_reads,
            "both_primers_found": self.both_primers_found,
            "success_rate": self._rate(self.both_primers_found),
            "plus_strand": self.plus_strand,
            "minus_strand": self.minus_strand,
            "dimer_count": self.dimer_count,
            "dimer_rate": self._rate(self.dimer_count),
            "primer_pairs": [
                {
                    "forward_primer": fwd,
                    "reverse_primer": rev,
                    "count": count,
                    "percentage": self._rate(count) * 100.0,
                }
                for (fwd, rev), count in self.sorted_pairs()
            ],
        }
