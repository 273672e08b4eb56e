"""Reading reads from FASTQ/FASTA files and cutting them into batches."""

import gzip
import itertools
import os
from typing import Iterable, Iterator, List

from Bio import SeqIO

from .errors import InputError
from .models import Read, ReadPair, SequenceBatch, WorkUnit


def detect_file_format(filename: str) -> str:
    """
    Detect file format from filename, handling compressed files.

    Args:
        filename: Path to sequence file

    Returns:
        str: Detected format ('fastq' or 'fasta')
    """

    # Strip compression extensions recursively (handles cases like .fastq.gz.gz)
    base_name = os.path.basename(filename)
    compression_exts = ['.gz', '.gzip']

    root, ext = os.path.splitext(base_name)
    while ext.lower() in compression_exts:
        base_name = root
        root, ext = os.path.splitext(base_name)

    if base_name.lower().endswith(('.fastq', '.fq')):
        return 'fastq'
    elif base_name.lower().endswith(('.fasta', '.fa', '.fna')):
        return 'fasta'

    # Check the first character if the extension doesn't help
    try:
        if filename.endswith(('.gz', '.gzip')):
            with gzip.open(filename, 'rt') as f:
                first_char = f.read(1)
        else:
            with open(filename, 'rt') as f:
                first_char = f.read(1)
    except OSError as e:
        raise InputError(f"Cannot read sequence file {filename}: {e}") from e

    return 'fastq' if first_char == '@' else 'fasta'


def _records_to_reads(records) -> Iterator[Read]:
    for record in records:
        quality = record.letter_annotations.get("phred_quality", ())
        yield Read(record.id, str(record.seq).upper(), tuple(quality))


def open_sequence_file(filename: str) -> Iterator[Read]:
    """
    Stream the reads of a sequence file, detecting format and compression.

    Parse failures (malformed or truncated records, broken gzip streams)
    surface as InputError while iterating.
    """
    if not os.path.exists(filename):
        raise InputError(f"Sequence file not found: {filename}")

    file_format = detect_file_format(filename)
    is_gzipped = filename.endswith((".gz", ".gzip"))

    def reads():
        try:
            if is_gzipped:
                with gzip.open(filename, "rt") as handle:
                    yield from _records_to_reads(SeqIO.parse(handle, file_format))
            else:
                yield from _records_to_reads(SeqIO.parse(filename, file_format))
        except (ValueError, EOFError, OSError) as e:
            raise InputError(f"Input truncated or malformed in {filename}: {e}") from e

    return reads()


def pair_reads(reads: Iterable[Read], mates: Iterable[Read]) -> Iterator[ReadPair]:
    """Pair two read streams by position; unequal lengths are fatal."""
    sentinel = object()
    for mate1, mate2 in itertools.zip_longest(reads, mates, fillvalue=sentinel):
        if mate1 is sentinel or mate2 is sentinel:
            which = "first" if mate1 is sentinel else "second"
            raise InputError(f"Input truncated: {which} read file ended before its mate file")
        yield ReadPair(mate1, mate2)


def iter_batches(units: Iterable, batch_size: int) -> Iterator[SequenceBatch]:
    """Helper to iterate over indexed batches of work units"""
    it = iter(units)
    num_units = 0
    seq_number = 0
    while True:
        batch: List[WorkUnit] = [(num_units + i, unit) for i, unit in enumerate(itertools.islice(it, batch_size))]
        if not batch:
            break
        yield SequenceBatch(seq_number, batch, num_units)
        num_units += len(batch)
        seq_number += 1
