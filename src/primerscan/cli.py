#!/usr/bin/env python3

"""
primerscan: locate primers in amplicon sequencing reads, classify strand and
detect primer dimers.
"""

import argparse
import logging
import sys

from . import __version__
from .constants import Defaults
from .databases import read_primers_file
from .errors import ConfigurationError, InputError, WorkerException
from .models import AnalysisParameters
from .output import write_outputs
from .pipeline import run
from .sequences import open_sequence_file
from .stats import Statistics


def version():
    return f"primerscan version {__version__}"


def parse_args(argv):
    parser = argparse.ArgumentParser(
        description="Primerscan: locate primers in sequencing reads, classify strand and detect primer dimers.")

    parser.add_argument("primer_file", help="Primer file: TSV (name<TAB>sequence) or Fasta")
    parser.add_argument("sequence_file", help="Sequence file in Fasta or Fastq format, gzipped or plain text")
    parser.add_argument("-2", "--mate-file", help="Second mate file for paired-end reads (merged before analysis)")

    parser.add_argument("-S", "--sample", required=True, help="Sample name used for output files and statistics")
    parser.add_argument("-O", "--output-dir", default="output", help="Output directory (default: output)")
    parser.add_argument("-e", "--max-errors", type=int, default=Defaults.MAX_ERRORS,
                        help=f"Maximum primer edit distance (default: {Defaults.MAX_ERRORS})")
    parser.add_argument("-d", "--min-distance", type=int, default=Defaults.MIN_DISTANCE,
                        help=f"Primer pairs closer than this many bases are dimers (default: {Defaults.MIN_DISTANCE})")
    parser.add_argument("-n", "--max-output", type=int, default=Defaults.MAX_OUTPUT,
                        help=f"Maximum number of detailed records written (default: {Defaults.MAX_OUTPUT})")
    parser.add_argument("-o", "--min-overlap", type=int, default=Defaults.MIN_OVERLAP,
                        help=f"Minimum mate overlap for merging (default: {Defaults.MIN_OVERLAP})")
    parser.add_argument("-m", "--max-mismatch-rate", type=float, default=Defaults.MAX_MISMATCH_RATE,
                        help=f"Maximum mismatch rate in the mate overlap (default: {Defaults.MAX_MISMATCH_RATE})")
    parser.add_argument("-l", "--search-len", type=int, default=None,
                        help="Length to search for primers at start and end of sequence (default: whole read)")
    parser.add_argument("-b", "--batch-size", type=int, default=Defaults.BATCH_SIZE,
                        help=f"Reads per work batch (default: {Defaults.BATCH_SIZE})")
    parser.add_argument("-t", "--threads", type=int, default=-1, help="Number of worker processes (default: all cores)")
    parser.add_argument("--cache-size", type=int, default=Defaults.CACHE_SIZE,
                        help=f"Per-worker cache of classified sequences, 0 disables (default: {Defaults.CACHE_SIZE})")
    parser.add_argument("--alignments", action="store_true", help="Add F_Alignment and R_Alignment columns")
    parser.add_argument("--gzip", action="store_true", help="Gzip the detail table")
    parser.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    parser.add_argument("-D", "--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("-v", "--version", action="version", version=version())

    return parser.parse_args(argv[1:])


def parameters_from_args(args) -> AnalysisParameters:
    return AnalysisParameters(
        max_errors=args.max_errors,
        min_distance=args.min_distance,
        max_output=args.max_output,
        min_overlap=args.min_overlap,
        max_mismatch_rate=args.max_mismatch_rate,
        batch_size=args.batch_size,
        search_len=args.search_len,
        alignments=args.alignments,
        sample_name=args.sample,
        threads=args.threads if args.threads > 0 else None,
        cache_size=args.cache_size,
    )


def log_summary(statistics: Statistics):
    report = statistics.report()
    logging.info(f"Sample: {report['sample_name']}")
    logging.info(f"Total reads: {report['total_reads']:,}")
    logging.info(f"Both primers found: {report['both_primers_found']:,} ({report['success_rate']:.2%})")
    logging.info(f"Plus strand: {report['plus_strand']:,}, minus strand: {report['minus_strand']:,}")
    logging.info(f"Dimers: {report['dimer_count']:,} ({report['dimer_rate']:.2%})")
    for pair in report['primer_pairs']:
        logging.info(f"  {pair['forward_primer']} - {pair['reverse_primer']}: "
                     f"{pair['count']:,} ({pair['percentage']:.2f}%)")


def primerscan(args):
    parameters = parameters_from_args(args).validate()
    library = read_primers_file(args.primer_file)

    reads = open_sequence_file(args.sequence_file)
    mates = None
    if args.mate_file:
        logging.info("Paired-end input: mates will be merged before analysis")
        mates = open_sequence_file(args.mate_file)

    result = run(reads, library, parameters, mates, progress=not args.no_progress)
    if result.truncated:
        logging.info(f"Detailed output limited to the first {len(result.records):,} records")

    write_outputs(args.output_dir, args.sample, result.records, result.statistics, result.truncated,
                  alignments=args.alignments, compress=args.gzip)
    log_summary(result.statistics)


def main(argv=None):
    if argv is None:
        argv = sys.argv
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        primerscan(args)
    except ConfigurationError as e:
        logging.error(f"Invalid configuration: {e}")
        sys.exit(2)
    except InputError as e:
        logging.error(f"Input error: {e}")
        sys.exit(1)
    except WorkerException as e:
        logging.error(f"Unexpected error in worker (see details above): {e}")
        sys.exit(1)


if __name__ == "__main__":
    main(sys.argv)
