"""Failure kinds raised by primerscan."""


class PrimerScanError(Exception):
    pass


class ConfigurationError(PrimerScanError, ValueError):
    """Invalid primers or parameters, detected before any read is processed."""


class InputError(PrimerScanError):
    """Sequence input could not be read completely."""


class RecordAnomaly(PrimerScanError):
    """A single read (or pair) cannot be analyzed; the run continues."""


class WorkerException(PrimerScanError):
    pass
