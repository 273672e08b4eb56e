"""
Unit tests for paired-end merging.
"""

import pytest

from primerscan.errors import RecordAnomaly
from primerscan.merging import core_read_id, find_overlap, merge_pair
from primerscan.models import Read


@pytest.mark.unit
class TestMergePair:

    def test_overlap_merge(self):
        mate1 = Read("r1/1", "ACGTACGT")
        mate2 = Read("r1/2", "AAAAACGT")
        outcome = merge_pair(mate1, mate2, min_overlap=4, max_mismatch_rate=0.0)
        assert outcome.merged
        assert outcome.overlap == 4
        assert outcome.sequence == "ACGTACGTTTTT"
        assert outcome.id_suffix == "merged_overlap_4"
        assert outcome.read_id == "r1_merged_overlap_4"

    def test_lower_rate_beats_longer_overlap(self):
        # L=5 passes with one mismatch, L=4 is perfect
        mate1 = Read("r", "GGGCAAAA")
        mate2 = Read("r", "AAATTTTT")
        outcome = merge_pair(mate1, mate2, 4, 0.25)
        assert outcome.overlap == 4
        assert outcome.sequence == "GGGCAAAAATTT"

    def test_longest_overlap_wins_rate_ties(self):
        mate1 = Read("r", "ACGTACGT")
        mate2 = Read("r", "TTACGTACGT")
        outcome = merge_pair(mate1, mate2, 4, 0.0)
        assert outcome.overlap == 8
        assert outcome.sequence == "ACGTACGTAA"

    def test_concatenation_fallback(self):
        mate1 = Read("r1", "AAAAAAAA")
        mate2 = Read("r1", "GGGGGGGG")
        outcome = merge_pair(mate1, mate2, 4, 0.1)
        assert not outcome.merged
        assert outcome.id_suffix == "merged_concat"
        assert outcome.read_id == "r1_merged_concat"
        assert outcome.sequence == "AAAAAAAACCCCCCCC"
        assert len(outcome.sequence) == len(mate1.sequence) + len(mate2.sequence)

    def test_min_overlap_is_respected(self):
        mate1 = Read("r", "ACGTACGT")
        mate2 = Read("r", "AAAAACGT")
        outcome = merge_pair(mate1, mate2, 5, 0.0)
        assert not outcome.merged

    def test_higher_quality_base_wins(self):
        mate1 = Read("r", "ACGTACGA", (20,) * 8)
        mate2 = Read("r", "AAAAACGT", (40,) * 8)
        outcome = merge_pair(mate1, mate2, 4, 0.25)
        assert outcome.overlap == 4
        assert outcome.sequence == "ACGTACGTTTTT"
        assert outcome.quality == (20,) * 4 + (40,) * 8

    def test_first_mate_wins_quality_ties(self):
        mate1 = Read("r", "ACGTACGA", (30,) * 8)
        mate2 = Read("r", "AAAAACGT", (30,) * 8)
        outcome = merge_pair(mate1, mate2, 4, 0.25)
        assert outcome.sequence == "ACGTACGATTTT"

    def test_second_mate_qualities_are_reversed(self):
        mate1 = Read("r", "AAAAAAAA", (10,) * 8)
        mate2 = Read("r", "GGGG", (1, 2, 3, 4))
        outcome = merge_pair(mate1, mate2, 4, 0.0)
        assert not outcome.merged
        assert outcome.quality == (10,) * 8 + (4, 3, 2, 1)

    def test_quality_length_mismatch(self):
        mate1 = Read("r", "ACGT", (30, 30))
        mate2 = Read("r", "ACGT", (30, 30, 30, 30))
        with pytest.raises(RecordAnomaly):
            merge_pair(mate1, mate2, 4, 0.1)


@pytest.mark.unit
class TestFindOverlap:
    def test_no_overlap(self):
        assert find_overlap("AAAA", "CCCC", 2, 0.0) == 0

    def test_overlap_bounded_by_shorter_sequence(self):
        assert find_overlap("ACGTACGT", "CGT", 2, 0.0) == 3

    def test_rate_exactly_at_limit_is_accepted(self):
        # 29 mismatches in 100 bases is a rate of exactly 0.29
        assert find_overlap("A" * 100, "C" * 29 + "A" * 71, 100, 0.29) == 100
        assert find_overlap("A" * 100, "C" * 30 + "A" * 70, 100, 0.29) == 0


@pytest.mark.unit
@pytest.mark.parametrize("read_id,core", [
    ("read1/1", "read1"),
    ("read1/2 extra description", "read1"),
    ("read2", "read2"),
    ("M001:1:ABC 1:N:0:1", "M001:1:ABC"),
])
def test_core_read_id(read_id, core):
    assert core_read_id(read_id) == core
