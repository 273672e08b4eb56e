"""
Strand and primer-dimer classification of single reads.

Every library primer is searched at the 5' end of the read in its given
orientation.  For each 5' hit the remaining primers are searched downstream,
as reverse complement (or, failing that, as given).  A pair whose 5' primer
was declared first in the library supports the plus strand, the mirrored
pair supports the minus strand.
"""

import logging
from typing import Dict, List, NamedTuple, Optional, Tuple

from cachetools import LRUCache

from .alignment import match_primer
from .constants import Strand
from .databases import PrimerLibrary
from .models import NOT_FOUND, AnalysisParameters, AnalysisRecord, Primer, PrimerMatch, unknown_record


class _Hit(NamedTuple):
    match: PrimerMatch
    query: str
    start: int
    end: int


class _Candidate(NamedTuple):
    score: int
    head: _Hit
    tail: _Hit


def _five_prime_hit(seq: str, primer: Primer, max_errors: int, search_len: Optional[int]) -> _Hit:
    end = -1 if search_len is None else search_len
    m = match_primer(seq, primer.sequence, max_errors, primer.name, 0, end)
    return _Hit(m, primer.sequence, 0, end)


def _three_prime_hit(seq: str, primer: Primer, max_errors: int, start: int,
                     search_len: Optional[int]) -> _Hit:
    if search_len is not None:
        start = max(start, len(seq) - search_len)

    rc = _Hit(match_primer(seq, primer.sequence_rc, max_errors, primer.name, start),
              primer.sequence_rc, start, -1)
    if primer.sequence_rc == primer.sequence:
        return rc

    literal = _Hit(match_primer(seq, primer.sequence, max_errors, primer.name, start),
                   primer.sequence, start, -1)
    if literal.match.found and (not rc.match.found or literal.match.errors < rc.match.errors):
        return literal
    return rc


def _best_hit(hits: List[_Hit]) -> Optional[_Hit]:
    """Lowest error count; earlier declaration wins ties."""
    best = None
    for hit in hits:
        if hit.match.found and (best is None or hit.match.errors < best.match.errors):
            best = hit
    return best


def _decide_strand(plus: Optional[_Candidate],
                   minus: Optional[_Candidate]) -> Tuple[Strand, Optional[_Candidate]]:
    if plus is None and minus is None:
        return Strand.UNKNOWN, None
    if minus is None:
        return Strand.PLUS, plus
    if plus is None:
        return Strand.MINUS, minus
    if plus.score < minus.score:
        return Strand.PLUS, plus
    if minus.score < plus.score:
        return Strand.MINUS, minus
    # both orientations explain the read equally well
    return Strand.UNKNOWN, plus


def _finish(seq: str, hit: Optional[_Hit], max_errors: int, alignments: bool) -> PrimerMatch:
    if hit is None:
        return NOT_FOUND
    if not alignments or not hit.match.found:
        return hit.match
    return match_primer(seq, hit.query, max_errors, hit.match.primer_name,
                        hit.start, hit.end, with_trace=True)


def classify(sequence: str, library: PrimerLibrary, max_errors: int, min_distance: int,
             read_id: str = "", index: int = 0,
             search_len: Optional[int] = None,
             alignments: bool = False) -> AnalysisRecord:
    """
    Locate the best forward/reverse primer pair in a read and classify it.

    Args:
        sequence: read (or merged pair) sequence
        library: primers in declaration order
        max_errors: edit distance allowed per primer
        min_distance: pairs closer than this many bases are dimers
        read_id, index: identity of the read, copied into the record
        search_len: restrict primer search to this many bases at each end
        alignments: attach alignment traces to the reported matches

    Returns:
        AnalysisRecord; distance and dimer flag are only set when both
        primers were found
    """
    length = len(sequence)
    if length == 0:
        return unknown_record(index, read_id, 0)

    seq = sequence.upper()
    heads = [_five_prime_hit(seq, p, max_errors, search_len) for p in library]
    tails: Dict[Tuple[int, int], _Hit] = {}

    plus = None
    minus = None
    for i, head in enumerate(heads):
        if not head.match.found:
            continue
        tail_start = head.match.position + 1
        for j, primer in enumerate(library):
            if i == j:
                continue
            key = (j, tail_start)
            if key not in tails:
                tails[key] = _three_prime_hit(seq, primer, max_errors, tail_start, search_len)
            tail = tails[key]
            if not tail.match.found:
                continue

            candidate = _Candidate(head.match.errors + tail.match.errors, head, tail)
            if i < j:
                if plus is None or candidate.score < plus.score:
                    plus = candidate
            elif minus is None or candidate.score < minus.score:
                minus = candidate

    strand, chosen = _decide_strand(plus, minus)
    if chosen is not None:
        forward_hit, reverse_hit = chosen.head, chosen.tail
    else:
        forward_hit = _best_hit(heads)
        reverse_hit = None
        if forward_hit is None:
            reverse_hit = _best_hit([_three_prime_hit(seq, p, max_errors, 0, search_len) for p in library])

    forward = _finish(seq, forward_hit, max_errors, alignments)
    reverse = _finish(seq, reverse_hit, max_errors, alignments)

    distance = None
    is_dimer = False
    if forward.found and reverse.found:
        distance = reverse.position - forward.end
        is_dimer = distance < min_distance

    return AnalysisRecord(index, read_id, length, strand, forward, reverse, distance, is_dimer)


class Classifier:
    """Per-process classifier with an LRU cache keyed by read sequence."""

    def __init__(self, library: PrimerLibrary, parameters: AnalysisParameters):
        self.library = library
        self.parameters = parameters
        self._cache = LRUCache(maxsize=parameters.cache_size) if parameters.cache_size > 0 else None
        self.hits = 0

    def _classify(self, sequence: str, read_id: str, index: int) -> AnalysisRecord:
        p = self.parameters
        return classify(sequence, self.library, p.max_errors, p.min_distance, read_id, index,
                        p.search_len, p.alignments)

    def classify(self, read_id: str, sequence: str, index: int = 0) -> AnalysisRecord:
        if self._cache is None:
            return self._classify(sequence, read_id, index)

        try:
            cached = self._cache[sequence]
            self.hits += 1
        except KeyError:
            cached = self._classify(sequence, read_id, index)
            self._cache[sequence] = cached
        return cached._replace(index=index, read_id=read_id)

    def log_cache_usage(self):
        if self._cache is not None:
            logging.debug(f"Classification cache: {self.hits:,} hits, {len(self._cache):,} entries")
