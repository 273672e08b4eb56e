import logging
import os
from typing import Dict, Iterator, List, Optional

from Bio import SeqIO

from .errors import ConfigurationError
from .models import Primer


class PrimerLibrary:
    """Ordered, read-only collection of primers.

    Declaration order is significant: it decides which primer of a pair is
    treated as forward and breaks ties between equally good matches.
    """

    def __init__(self, primers: Optional[List[Primer]] = None):
        self._primers: List[Primer] = []
        self._by_name: Dict[str, Primer] = {}
        for primer in primers or []:
            self.add_primer(primer)

    def add_primer(self, primer: Primer) -> None:
        """
        Append a primer to the library

        Raises:
            ConfigurationError: If primer name already exists
        """
        if primer.name in self._by_name:
            raise ConfigurationError(f"Duplicate primer name: {primer.name}")
        self._primers.append(primer)
        self._by_name[primer.name] = primer

    def get_primer(self, name: str) -> Optional[Primer]:
        return self._by_name.get(name)

    def names(self) -> List[str]:
        return [p.name for p in self._primers]

    def validate(self) -> 'PrimerLibrary':
        if not self._primers:
            raise ConfigurationError("Primer library is empty")
        return self

    def __iter__(self) -> Iterator[Primer]:
        return iter(self._primers)

    def __len__(self):
        return len(self._primers)

    def __repr__(self):
        return f"PrimerLibrary({self.names()!r})"


def _is_fasta(filename: str) -> bool:
    if filename.lower().endswith(('.fasta', '.fa', '.fna')):
        return True
    with open(filename, 'r', encoding='utf-8-sig') as f:
        for line in f:
            if line.strip():
                return line.startswith('>')
    return False


def _parse_primers(filename: str) -> PrimerLibrary:
    library = PrimerLibrary()
    if _is_fasta(filename):
        with open(filename, 'r', encoding='utf-8-sig') as f:
            for record in SeqIO.parse(f, "fasta"):
                library.add_primer(Primer(record.id, str(record.seq)))
        return library

    with open(filename, 'r', encoding='utf-8-sig') as f:
        for line_num, line in enumerate(f, start=1):
            if not line.strip() or line.startswith('#'):
                continue
            parts = line.rstrip('\r\n').split('\t')
            if len(parts) < 2:
                raise ConfigurationError(f"Malformed primer line {line_num}: {line.strip()!r}")
            library.add_primer(Primer(parts[0], parts[1]))
    return library


def read_primers_file(filename: str) -> PrimerLibrary:
    """
    Read a primer file and build the primer library.

    Two layouts are accepted: FASTA (record id is the primer name) and
    tab-separated ``name<TAB>sequence`` lines, where blank lines and lines
    starting with ``#`` are ignored.

    Returns:
        Validated PrimerLibrary in file order

    Raises:
        ConfigurationError: on malformed lines, invalid sequences, duplicate
            names, an empty library, or a file that cannot be read as UTF-8
    """
    if not os.path.exists(filename):
        raise ConfigurationError(f"Primer file not found: {filename}")

    try:
        library = _parse_primers(filename)
    except (UnicodeDecodeError, OSError) as e:
        raise ConfigurationError(f"Cannot read primer file {filename}, possibly an encoding problem: {e}") from e

    library.validate()
    logging.info(f"Loaded {len(library)} primers from {filename}")
    return library
