"""Writers for the detail table and the statistics JSON."""

import gzip
import json
import logging
import os
import tempfile
from typing import Iterable, List, Optional, Tuple

from .constants import UNAVAILABLE
from .models import AnalysisRecord, PrimerMatch
from .stats import Statistics

HEADER = ["Read_ID", "Length", "Strand", "F_Primer", "R_Primer",
          "F_Found", "F_Pos", "F_Errors", "R_Found", "R_Pos", "R_Errors",
          "Distance", "Is_Dimer"]
ALIGNMENT_HEADER = ["F_Alignment", "R_Alignment"]


def _fmt(value) -> str:
    return UNAVAILABLE if value is None else str(value)


def _fmt_bool(value: bool) -> str:
    return "true" if value else "false"


def _fmt_alignment(match: PrimerMatch) -> str:
    return UNAVAILABLE if match.alignment is None else str(match.alignment)


def format_record(record: AnalysisRecord, alignments: bool = False) -> List[str]:
    f, r = record.forward_match, record.reverse_match
    fields = [
        record.read_id,
        str(record.length),
        record.strand.to_string(),
        _fmt(f.primer_name),
        _fmt(r.primer_name),
        _fmt_bool(f.found),
        _fmt(f.position),
        _fmt(f.errors),
        _fmt_bool(r.found),
        _fmt(r.position),
        _fmt(r.errors),
        _fmt(record.distance),
        _fmt_bool(record.is_dimer),
    ]
    if alignments:
        fields += [_fmt_alignment(f), _fmt_alignment(r)]
    return fields


class AnalysisWriter:
    """Tab-separated detail table, gzip-compressed when asked or for .gz names."""

    def __init__(self, filename: str, alignments: bool = False, compress: Optional[bool] = None):
        self.filename = filename
        self.alignments = alignments
        self.compress = filename.endswith('.gz') if compress is None else compress
        self.count = 0
        self._handle = None

    def __enter__(self):
        if self.compress:
            self._handle = gzip.open(self.filename, 'wt', newline='')
        else:
            self._handle = open(self.filename, 'w', newline='')
        header = HEADER + (ALIGNMENT_HEADER if self.alignments else [])
        self._write_line(header)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _write_line(self, fields: List[str]):
        self._handle.write('\t'.join(fields) + '\n')

    def write(self, record: AnalysisRecord):
        self._write_line(format_record(record, self.alignments))
        self.count += 1

    def write_all(self, records: Iterable[AnalysisRecord]):
        for record in records:
            self.write(record)

    def mark_truncated(self, total: int):
        self._handle.write(f"# truncated: {self.count} of {total} records shown\n")

    def close(self):
        if self._handle is not None:
            self._handle.close()
            self._handle = None


class _PendingFile:
    """Temporary file next to its destination, moved into place on commit."""

    def __init__(self, path: str):
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)
        fd, self.temp_path = tempfile.mkstemp(prefix=f".{os.path.basename(path)}.", suffix=".tmp", dir=directory)
        os.close(fd)
        self.path = path

    def commit(self):
        # mkstemp creates owner-only files
        os.chmod(self.temp_path, 0o644)
        os.replace(self.temp_path, self.path)

    def discard(self):
        if os.path.exists(self.temp_path):
            os.unlink(self.temp_path)


def write_statistics(filename: str, statistics: Statistics):
    with open(filename, 'w') as f:
        json.dump(statistics.report(), f, indent=2)
        f.write('\n')


def output_paths(output_dir: str, sample_name: str, compress: bool = False) -> Tuple[str, str]:
    analysis_name = f"{sample_name}_primer_analysis.txt" + (".gz" if compress else "")
    return (os.path.join(output_dir, analysis_name),
            os.path.join(output_dir, f"{sample_name}_statistics.json"))


def write_outputs(output_dir: str, sample_name: str, records: List[AnalysisRecord],
                  statistics: Statistics, truncated: bool,
                  alignments: bool = False, compress: bool = False) -> Tuple[str, str]:
    """
    Write the detail table and statistics of a completed run.

    Both files are written to temporaries first and only renamed into place
    once both are complete, so a failure leaves no output behind.

    Returns:
        (detail table path, statistics path)
    """
    analysis_path, stats_path = output_paths(output_dir, sample_name, compress)
    pending = []
    try:
        analysis_file = _PendingFile(analysis_path)
        pending.append(analysis_file)
        with AnalysisWriter(analysis_file.temp_path, alignments, compress) as writer:
            writer.write_all(records)
            if truncated:
                writer.mark_truncated(statistics.total_reads)

        stats_file = _PendingFile(stats_path)
        pending.append(stats_file)
        write_statistics(stats_file.temp_path, statistics)
    except BaseException:
        for p in pending:
            p.discard()
        raise

    for p in pending:
        p.commit()

    logging.info(f"Wrote {len(records):,} records to {analysis_path}")
    logging.info(f"Wrote statistics to {stats_path}")
    return analysis_path, stats_path
