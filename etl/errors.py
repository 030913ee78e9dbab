"""
Exception types raised by the ETL pipeline.

Row-level problems never raise: they are counted and logged. Only failures to
acquire resources during setup, or unrecoverable I/O while finalizing indexes,
surface as exceptions.
"""


class PipelineError(Exception):
    """Base class for pipeline failures."""


class PipelineSetupError(PipelineError):
    """Input, output directories or catalog streams could not be opened."""


class IndexFinalizeError(PipelineError):
    """Index pages or metadata could not be rewritten during finalize."""


class IndexWriteError(PipelineError):
    """An index page could not be written while flushing a buffer."""
