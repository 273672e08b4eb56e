"""
Batch pipeline: merge, classify and aggregate a stream of reads.

Batches are processed in worker processes; results are consumed in
submission order, so detailed records come out in input order while the
statistics are folded from per-batch partials.
"""

import logging
import multiprocessing
import timeit
import traceback
from collections import deque
from multiprocessing import Pool
from typing import Iterable, List, NamedTuple, Optional, Union

from tqdm import tqdm

from .classify import Classifier
from .databases import PrimerLibrary
from .errors import InputError, RecordAnomaly, WorkerException
from .merging import core_read_id, merge_pair
from .models import AnalysisParameters, AnalysisRecord, Read, ReadPair, SequenceBatch, unknown_record
from .sequences import iter_batches, pair_reads
from .stats import Statistics


class BatchResult(NamedTuple):
    seq_number: int
    start_idx: int
    records: List[AnalysisRecord]
    statistics: Statistics


class RunResult(NamedTuple):
    records: List[AnalysisRecord]
    statistics: Statistics
    truncated: bool


def analyze_unit(index: int, unit: Union[Read, ReadPair], classifier: Classifier,
                 parameters: AnalysisParameters) -> AnalysisRecord:
    """Merge (paired mode) and classify one work unit."""
    if not isinstance(unit, ReadPair):
        return classifier.classify(unit.id, unit.sequence, index)

    mate1, mate2 = unit
    read_id = core_read_id(mate1.id)
    try:
        if core_read_id(mate2.id) != read_id:
            raise RecordAnomaly(f"mate ids differ ({mate1.id} / {mate2.id})")
        outcome = merge_pair(mate1, mate2, parameters.min_overlap, parameters.max_mismatch_rate)
    except RecordAnomaly as e:
        logging.warning(f"Read pair {index} not classified: {e}")
        return unknown_record(index, read_id, len(mate1.sequence) + len(mate2.sequence))

    return classifier.classify(outcome.read_id, outcome.sequence, index)


def process_batch(batch: SequenceBatch, classifier: Classifier,
                  parameters: AnalysisParameters) -> BatchResult:
    statistics = Statistics(parameters.sample_name)
    records = []
    for index, unit in batch.units:
        record = analyze_unit(index, unit, classifier, parameters)
        statistics.add_record(record)
        # no batch can contribute more than the global cap
        if len(records) < parameters.max_output:
            records.append(record)

    logging.debug(f"Batch {batch.seq_number}: {statistics.total_reads} reads from index {batch.start_idx}")
    return BatchResult(batch.seq_number, batch.start_idx, records, statistics)


# Global variables for worker processes
_classifier = None
_parameters = None


def init_worker(library: PrimerLibrary, parameters: AnalysisParameters, log_level: int = logging.INFO):
    """Initialize worker process with shared resources"""
    global _classifier, _parameters
    logging.basicConfig(level=log_level, format='%(asctime)s - %(levelname)s - %(message)s')
    _parameters = parameters
    _classifier = Classifier(library, parameters)


def worker(batch: SequenceBatch) -> BatchResult:
    """Process a batch of reads inside a worker process"""
    try:
        result = process_batch(batch, _classifier, _parameters)
        _classifier.log_cache_usage()
        return result
    except Exception as e:
        logging.error(traceback.format_exc())
        raise WorkerException(f"{type(e).__name__}: {e}")


class _Collector:
    """Folds batch results, keeping the first max_output records in stream order."""

    def __init__(self, parameters: AnalysisParameters, pbar: tqdm):
        self.max_output = parameters.max_output
        self.records: List[AnalysisRecord] = []
        self.statistics = Statistics(parameters.sample_name)
        self.pbar = pbar

    def add(self, result: BatchResult):
        self.statistics += result.statistics
        room = self.max_output - len(self.records)
        if room > 0:
            self.records.extend(result.records[:room])

        self.pbar.update(result.statistics.total_reads)
        if self.statistics.total_reads > 0:
            rate = self.statistics.both_primers_found / self.statistics.total_reads
            self.pbar.set_description(f"Processing reads [Both primers: {rate:.1%}]")

    def result(self) -> RunResult:
        truncated = self.statistics.total_reads > len(self.records)
        return RunResult(self.records, self.statistics, truncated)


def _run_serial(batches: Iterable[SequenceBatch], library: PrimerLibrary,
                parameters: AnalysisParameters, collector: _Collector):
    classifier = Classifier(library, parameters)
    for batch in batches:
        collector.add(process_batch(batch, classifier, parameters))
    classifier.log_cache_usage()


def _run_parallel(batches: Iterable[SequenceBatch], library: PrimerLibrary,
                  parameters: AnalysisParameters, collector: _Collector, num_processes: int):
    max_pending = 2 * num_processes
    logging.info(f"Will run {num_processes} worker processes")

    with Pool(processes=num_processes,
              initializer=init_worker,
              initargs=(library, parameters, logging.getLogger().getEffectiveLevel())) as pool:
        pending = deque()
        try:
            for batch in batches:
                pending.append(pool.apply_async(worker, (batch,)))
                if len(pending) >= max_pending:
                    collector.add(pending.popleft().get())
        except InputError:
            logging.error("Input failed; waiting for in-flight batches before aborting")
            for async_result in pending:
                async_result.wait()
            raise

        while pending:
            collector.add(pending.popleft().get())


def run(reads: Iterable[Read], library: PrimerLibrary, parameters: AnalysisParameters,
        mates: Optional[Iterable[Read]] = None, progress: bool = True) -> RunResult:
    """
    Analyze a read stream (or two positionally paired mate streams).

    Args:
        reads: reads in file order
        library: validated primer library
        parameters: analysis parameters; validated here
        mates: second mate stream for paired-end input
        progress: show a tqdm progress bar

    Returns:
        RunResult with at most max_output records in input order, the
        statistics over every read, and whether records were dropped

    Raises:
        ConfigurationError: invalid parameters or empty library
        InputError: the input could not be read to the end
        WorkerException: unexpected failure in a worker process
    """
    parameters.validate()
    library.validate()

    units = pair_reads(reads, mates) if mates is not None else reads
    batches = iter_batches(units, parameters.batch_size)
    num_processes = parameters.threads if parameters.threads else multiprocessing.cpu_count()

    start_time = timeit.default_timer()
    pbar = tqdm(desc="Processing reads", unit="read", disable=not progress)
    collector = _Collector(parameters, pbar)
    try:
        if num_processes == 1:
            _run_serial(batches, library, parameters, collector)
        else:
            _run_parallel(batches, library, parameters, collector, num_processes)
    finally:
        pbar.close()

    result = collector.result()
    stats = result.statistics
    if stats.total_reads > 0:
        rate = stats.both_primers_found / stats.total_reads
        logging.info(f"Processed {stats.total_reads:,} reads, both primers found: {rate:.1%}")
    else:
        logging.warning("No reads found in input")
    logging.info(f"Elapsed time: {timeit.default_timer() - start_time:.2f} seconds")
    return result
