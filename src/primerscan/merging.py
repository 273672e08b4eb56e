"""Overlap merging of paired-end mates into a single sequence."""

from typing import List, Tuple

from Bio.Seq import reverse_complement

from .constants import MergeTag
from .errors import RecordAnomaly
from .models import MergeOutcome, Read


def core_read_id(read_id: str) -> str:
    """Read id without description and without a /1 or /2 mate marker."""
    parts = read_id.split()
    core = parts[0] if parts else read_id
    if core.endswith(("/1", "/2")):
        core = core[:-2]
    return core


def _qualities(read: Read) -> Tuple[int, ...]:
    if not read.quality:
        return (0,) * len(read.sequence)
    if len(read.quality) != len(read.sequence):
        raise RecordAnomaly(f"Quality length {len(read.quality)} does not match "
                            f"sequence length {len(read.sequence)} for {read.id}")
    return tuple(read.quality)


def find_overlap(left: str, right: str, min_overlap: int, max_mismatch_rate: float) -> int:
    """
    Best overlap between the 3' end of left and the 5' end of right.

    Returns:
        Overlap length with the lowest mismatch rate not above
        max_mismatch_rate, preferring the longest on ties; 0 if none qualifies
    """
    best_len = 0
    best_rate = None
    for overlap_len in range(min(len(left), len(right)), min_overlap - 1, -1):
        a = left[len(left) - overlap_len:]
        mismatches = 0
        for i in range(overlap_len):
            if a[i] != right[i]:
                mismatches += 1
                if mismatches / overlap_len > max_mismatch_rate:
                    break

        rate = mismatches / overlap_len
        if rate > max_mismatch_rate:
            continue
        if best_rate is None or rate < best_rate:
            best_len = overlap_len
            best_rate = rate
            if rate == 0.0:
                # scanning from the longest, nothing later can beat a perfect overlap
                break
    return best_len


def merge_pair(mate1: Read, mate2: Read, min_overlap: int, max_mismatch_rate: float) -> MergeOutcome:
    """
    Merge two mates into one sequence.

    mate2 is reverse complemented (qualities reversed) and placed after mate1.
    When an acceptable overlap exists the overlapping bases are resolved by
    quality, mate1 winning ties; otherwise the two are simply concatenated.

    Raises:
        RecordAnomaly: if a mate's quality track does not match its sequence
    """
    q1 = _qualities(mate1)
    q2_rc = _qualities(mate2)[::-1]
    s1 = mate1.sequence
    s2_rc = reverse_complement(mate2.sequence)
    core = core_read_id(mate1.id)

    overlap = find_overlap(s1, s2_rc, min_overlap, max_mismatch_rate)
    if not overlap:
        return MergeOutcome(read_id=f"{core}_{MergeTag.CONCAT}",
                            sequence=s1 + s2_rc,
                            quality=q1 + q2_rc,
                            id_suffix=MergeTag.CONCAT,
                            merged=False)

    prefix_len = len(s1) - overlap
    seq: List[str] = [s1[:prefix_len]]
    qual: List[int] = list(q1[:prefix_len])
    for i in range(overlap):
        b1, b2 = s1[prefix_len + i], s2_rc[i]
        x1, x2 = q1[prefix_len + i], q2_rc[i]
        if x1 >= x2:
            seq.append(b1)
            qual.append(x1)
        else:
            seq.append(b2)
            qual.append(x2)
    seq.append(s2_rc[overlap:])
    qual.extend(q2_rc[overlap:])

    suffix = f"{MergeTag.OVERLAP_PREFIX}{overlap}"
    return MergeOutcome(read_id=f"{core}_{suffix}",
                        sequence=''.join(seq),
                        quality=tuple(qual),
                        id_suffix=suffix,
                        merged=True,
                        overlap=overlap)
