"""
Unit tests for strand and dimer classification.
"""

import pytest
from Bio.Seq import reverse_complement

from primerscan.classify import Classifier, classify
from primerscan.constants import Strand
from primerscan.databases import PrimerLibrary
from primerscan.models import NOT_FOUND, AnalysisParameters, Primer


@pytest.mark.unit
class TestToyLibrary:
    """Short reads against the two-primer toy library."""

    def test_plus_strand_read(self, toy_library):
        record = classify("ATCGNNNNNNGCTA", toy_library, max_errors=0, min_distance=5,
                          read_id="r1", index=3)
        assert record.read_id == "r1"
        assert record.index == 3
        assert record.length == 14
        assert record.strand == Strand.PLUS
        f, r = record.forward_match, record.reverse_match
        assert (f.primer_name, f.found, f.position, f.errors) == ("P1", True, 0, 0)
        assert (r.primer_name, r.found, r.position, r.errors) == ("P2", True, 10, 0)
        assert record.distance == 6
        assert record.is_dimer is False

    def test_dimer_read(self, toy_library):
        record = classify("ATCGGCTA", toy_library, max_errors=0, min_distance=5)
        assert record.length == 8
        assert record.distance == 0
        assert record.is_dimer is True

    @pytest.mark.parametrize("min_distance,is_dimer", [(5, False), (6, False), (7, True)])
    def test_dimer_threshold_is_strict(self, toy_library, min_distance, is_dimer):
        record = classify("ATCGNNNNNNGCTA", toy_library, 0, min_distance)
        assert record.distance == 6
        assert record.is_dimer is is_dimer

    def test_single_primer_is_unknown(self, toy_library):
        record = classify("ATCGAAAAAAAAAA", toy_library, 0, 5)
        assert record.strand == Strand.UNKNOWN
        assert record.forward_match.found
        assert record.forward_match.primer_name == "P1"
        assert not record.reverse_match.found
        assert record.distance is None
        assert record.is_dimer is False
        assert record.primer_pair is None

    def test_no_primer(self, toy_library):
        record = classify("AAAAAAAAAAAA", toy_library, 0, 5)
        assert record.strand == Strand.UNKNOWN
        assert record.forward_match == NOT_FOUND
        assert record.reverse_match == NOT_FOUND
        assert record.distance is None

    def test_only_three_prime_primer(self, toy_library):
        record = classify("AAAAAAAAAATAGC", toy_library, 0, 5)
        assert record.strand == Strand.UNKNOWN
        assert not record.forward_match.found
        assert record.reverse_match.found
        assert record.reverse_match.primer_name == "P2"
        assert record.reverse_match.position == 10

    def test_empty_read(self, toy_library):
        record = classify("", toy_library, 0, 5, read_id="empty")
        assert record.length == 0
        assert record.strand == Strand.UNKNOWN
        assert not record.forward_match.found
        assert not record.reverse_match.found

    def test_lowercase_read(self, toy_library):
        record = classify("atcgnnnnnngcta", toy_library, 0, 5)
        assert record.strand == Strand.PLUS
        assert record.distance == 6

    def test_equal_orientations_are_unknown(self, toy_library):
        # P1...P2 and P2...P1 both explain this read without errors
        record = classify("ATCGNNNNGCTANNNNATCG", toy_library, 0, 0)
        assert record.strand == Strand.UNKNOWN
        assert record.forward_match.primer_name == "P1"
        assert record.forward_match.position == 0
        assert record.reverse_match.primer_name == "P2"
        assert record.reverse_match.position == 8
        assert record.distance == 4

    def test_errors_are_reported(self, toy_library):
        record = classify("ATGGNNNNNNGCTA", toy_library, 1, 5)
        assert record.strand == Strand.PLUS
        assert record.forward_match.position == 0
        assert record.forward_match.errors == 1
        assert record.reverse_match.errors == 0

    def test_declaration_order_breaks_ties(self):
        library = PrimerLibrary([Primer("A", "ATCG"), Primer("B", "ATCG"), Primer("C", "GCTA")])
        record = classify("ATCGNNNNNNGCTA", library, 0, 5)
        assert record.strand == Strand.PLUS
        assert record.forward_match.primer_name == "A"
        assert record.reverse_match.primer_name == "C"

    def test_search_len_limits_both_ends(self, toy_library):
        seq = "A" * 10 + "ATCG" + "A" * 10 + "GCTA"
        unrestricted = classify(seq, toy_library, 0, 5)
        assert unrestricted.forward_match.position == 10
        assert unrestricted.reverse_match.position == 24

        restricted = classify(seq, toy_library, 0, 5, search_len=8)
        assert not restricted.forward_match.found
        assert restricted.reverse_match.found
        assert restricted.reverse_match.position == 24

    def test_alignments_attached_on_request(self, toy_library):
        plain = classify("ATCGNNNNNNGCTA", toy_library, 0, 5)
        assert plain.forward_match.alignment is None

        record = classify("ATCGNNNNNNGCTA", toy_library, 0, 5, alignments=True)
        assert str(record.forward_match.alignment) == "ATCG||||||ATCG"
        assert record.reverse_match.alignment.read == "GCTA"
        assert record.reverse_match.position == 10


@pytest.mark.unit
class TestITSAmplicons:
    """Full-length amplicons with real ITS primers."""

    def test_plus_strand(self, its_library, its_amplicon):
        record = classify(its_amplicon, its_library, 2, 20)
        assert len(its_amplicon) == 98
        assert record.strand == Strand.PLUS
        assert record.forward_match.primer_name == "ITS1F"
        assert record.forward_match.position == 0
        assert record.forward_match.end == 22
        assert record.reverse_match.primer_name == "ITS4"
        assert record.reverse_match.position == 78
        assert record.distance == 56
        assert not record.is_dimer
        assert record.primer_pair == ("ITS1F", "ITS4")

    def test_minus_strand(self, its_library, its_amplicon):
        record = classify(reverse_complement(its_amplicon), its_library, 2, 20)
        assert record.strand == Strand.MINUS
        assert record.forward_match.primer_name == "ITS4"
        assert record.forward_match.position == 0
        assert record.reverse_match.primer_name == "ITS1F"
        assert record.reverse_match.position == 76
        assert record.distance == 56
        assert record.primer_pair == ("ITS4", "ITS1F")

    def test_primer_with_substitution(self, its_library, its_amplicon):
        read = "CTTGGTCATTTAGAGGTAGTAA" + its_amplicon[22:]
        record = classify(read, its_library, 2, 20)
        assert record.strand == Strand.PLUS
        assert record.forward_match.errors == 1

    def test_dimer(self, its_library):
        read = "CTTGGTCATTTAGAGGAAGTAA" + "ACGT" + "GCATATCAATAAGCGGAGGA"
        record = classify(read, its_library, 2, 20)
        assert record.strand == Strand.PLUS
        assert record.distance == 4
        assert record.is_dimer


@pytest.mark.unit
class TestClassifier:
    def test_cache_reuses_classification(self, toy_library):
        params = AnalysisParameters(max_errors=0, min_distance=5, cache_size=10)
        classifier = Classifier(toy_library, params)

        first = classifier.classify("a", "ATCGNNNNNNGCTA", 0)
        second = classifier.classify("b", "ATCGNNNNNNGCTA", 7)
        assert classifier.hits == 1
        assert (second.read_id, second.index) == ("b", 7)
        assert (first.read_id, first.index) == ("a", 0)
        assert second._replace(read_id="a", index=0) == first

    def test_without_cache(self, toy_library):
        params = AnalysisParameters(max_errors=0, min_distance=5, cache_size=0)
        classifier = Classifier(toy_library, params)
        classifier.classify("a", "ATCGGCTA")
        classifier.classify("b", "ATCGGCTA")
        assert classifier.hits == 0

    def test_matches_function(self, toy_library):
        params = AnalysisParameters(max_errors=0, min_distance=5, search_len=None)
        record = Classifier(toy_library, params).classify("r", "ATCGGCTA", 2)
        assert record == classify("ATCGGCTA", toy_library, 0, 5, read_id="r", index=2)
