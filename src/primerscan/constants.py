"""Constants and enums shared across primerscan modules."""

from enum import Enum


VALID_BASES = frozenset("ACGTN")

# Rendering of values that are not available for a record
UNAVAILABLE = "-"


class AlignMode:
    GLOBAL = 'NW'
    INFIX = 'HW'


class AlignSymbol:
    MATCH = '|'
    MISMATCH = '*'
    INDEL = ' '
    GAP = '-'


class MergeTag:
    OVERLAP_PREFIX = "merged_overlap_"
    CONCAT = "merged_concat"


class Strand(Enum):
    PLUS = '+'
    MINUS = '-'
    UNKNOWN = '?'

    def to_string(self) -> str:
        """Symbol used in the detail table."""
        return self.value


class Defaults:
    MAX_ERRORS = 3
    MIN_DISTANCE = 100
    MAX_OUTPUT = 10000
    MIN_OVERLAP = 10
    MAX_MISMATCH_RATE = 0.1
    BATCH_SIZE = 1000
    CACHE_SIZE = 10000
