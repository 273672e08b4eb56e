"""Approximate primer matching on top of edlib."""

import re
from typing import Optional, Tuple

import edlib

from .constants import AlignMode, AlignSymbol
from .models import AlignmentTrace, PrimerMatch

_CIGAR_RE = re.compile(r"(\d+)([=XIDM])")


class AlignmentResult:
    """Wrapper around edlib match result"""
    def __init__(self, edlib_match):
        self._edlib_match = edlib_match

    def matched(self):
        return self._edlib_match['editDistance'] > -1

    def distance(self):
        return self._edlib_match['editDistance']

    def locations(self):
        return self._edlib_match['locations']

    def best_location(self) -> Tuple[int, int]:
        """Leftmost optimal placement, shortest span on ties (inclusive end)."""
        return min(self.locations(), key=lambda loc: (loc[0], loc[1] - loc[0]))

    def adjust_start(self, s):
        """Update start in locations by s"""
        if self.distance() == -1: return

        self._edlib_match['locations'] = [(loc[0] + s, loc[1] + s) for loc in self._edlib_match['locations']]


def align_seq(query: str, target: str, max_distance: int,
              start: int = 0, end: int = -1,
              mode: str = AlignMode.INFIX) -> AlignmentResult:
    s = max(0, start)
    e = len(target) if end == -1 else min(end, len(target))
    t = target[s:e]

    if not query or not t:
        return AlignmentResult({'editDistance': -1, 'locations': []})

    # k bounds the DP band, so cost stays linear in the target length
    r = edlib.align(query, t, mode, 'locations', max_distance)

    # Handle edlib sometimes returning non-match with high edit distance
    if r['editDistance'] != -1 and r['editDistance'] > max_distance:
        r['editDistance'] = -1

    m = AlignmentResult(r)
    m.adjust_start(s)
    return m


def trace_alignment(query: str, segment: str) -> AlignmentTrace:
    """Column-wise alignment of query against the full read segment it was placed on."""
    r = edlib.align(query, segment, AlignMode.GLOBAL, 'path')

    primer_aln = []
    read_aln = []
    symbols = []
    q = t = 0
    for count, op in _CIGAR_RE.findall(r['cigar'] or ''):
        for _ in range(int(count)):
            if op in '=XM':
                primer_aln.append(query[q])
                read_aln.append(segment[t])
                symbols.append(AlignSymbol.MATCH if query[q] == segment[t] else AlignSymbol.MISMATCH)
                q += 1
                t += 1
            elif op == 'I':
                # base present in the primer only
                primer_aln.append(query[q])
                read_aln.append(AlignSymbol.GAP)
                symbols.append(AlignSymbol.INDEL)
                q += 1
            else:
                primer_aln.append(AlignSymbol.GAP)
                read_aln.append(segment[t])
                symbols.append(AlignSymbol.INDEL)
                t += 1

    return AlignmentTrace(''.join(primer_aln), ''.join(symbols), ''.join(read_aln))


def match_primer(sequence: str, primer: str, max_errors: int,
                 name: Optional[str] = None,
                 start: int = 0, end: int = -1,
                 with_trace: bool = False) -> PrimerMatch:
    """
    Find the best placement of a primer anywhere inside a window of a sequence.

    Args:
        sequence: read sequence to search
        primer: primer sequence in the orientation to look for
        max_errors: maximum substitutions + insertions + deletions
        name: primer name reported in the match
        start, end: window of the sequence to search (end=-1 for the end);
            reported positions are relative to the whole sequence
        with_trace: build the column-wise alignment of the selected placement

    Returns:
        PrimerMatch with 0-based start and exclusive end, or a not-found
        match whose position, end and errors are None
    """
    result = align_seq(primer, sequence, max_errors, start, end)
    if not result.matched():
        return PrimerMatch.not_found(name)

    loc_start, loc_end = result.best_location()
    alignment = None
    if with_trace:
        alignment = trace_alignment(primer, sequence[loc_start:loc_end + 1])

    return PrimerMatch(primer_name=name, found=True, position=loc_start, end=loc_end + 1,
                       errors=result.distance(), alignment=alignment)
