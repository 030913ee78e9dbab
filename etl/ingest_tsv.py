# WORKFLOW: Batched ingestion of the gzip-compressed tab-separated export.
# Used by: Batch pipeline
# Functions:
# 1. read_header() - Header row of the export (fatal if unreadable)
# 2. iter_batches() - Stream fixed-size batches of raw rows
#
# Ingestion flow: .csv.gz -> pandas chunked reader -> Batch(rows, malformed)
# Rows longer than the header are malformed: dropped and counted in strict
# mode, truncated to the header width otherwise. Short rows are padded.
# Columns are positional (header=None, index_col=False) so the shape of the
# first data row never changes how the rest of the file is read.

"""
Batched ingestion of the tab-separated product export.
"""

import csv
import logging
from typing import Iterator, List, NamedTuple, Tuple

import pandas as pd

from etl.errors import PipelineSetupError

logger = logging.getLogger(__name__)

SEPARATOR = "\t"

READ_OPTIONS = dict(
    sep=SEPARATOR,
    header=None,
    index_col=False,
    dtype=str,
    keep_default_na=False,
    na_filter=False,
    quoting=csv.QUOTE_NONE,
    compression="infer",
    encoding="utf-8",
    encoding_errors="replace",
    engine="python",
)


class Batch(NamedTuple):
    rows: List[Tuple]
    malformed: int


def read_header(path: str) -> List[str]:
    """
    Read the header row of the export.

    Args:
        path: Path to the (optionally gzip-compressed) TSV file

    Returns:
        List of column names
    """
    try:
        frame = pd.read_csv(path, nrows=1, **READ_OPTIONS)
    except (OSError, pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        raise PipelineSetupError(f"Failed to open input file {path}: {e}") from e
    if frame.empty:
        raise PipelineSetupError(f"Input file {path} has no header row")
    header = [c if isinstance(c, str) else "" for c in frame.iloc[0].tolist()]
    logger.info(f"Read header from {path}: {len(header)} columns")
    return header


def iter_batches(path: str, batch_size: int, strict: bool = False, width: int = 0) -> Iterator[Batch]:
    """
    Stream the export in batches of raw rows.

    One column past the header width is read as an overflow marker: a row
    with a cell there has more cells than the header.

    Args:
        path: Path to the TSV file
        batch_size: Rows per batch
        strict: Drop rows with more cells than the header instead of truncating
        width: Header width; read from the file when 0

    Yields:
        Batch of row tuples, each exactly ``width`` cells, plus the number of
        malformed rows dropped from it
    """
    if not width:
        width = len(read_header(path))

    try:
        reader = pd.read_csv(
            path,
            skiprows=1,
            names=list(range(width + 1)),
            chunksize=batch_size,
            on_bad_lines=lambda bad_line: bad_line[: width + 1],
            **READ_OPTIONS,
        )
    except OSError as e:
        raise PipelineSetupError(f"Failed to open input file {path}: {e}") from e

    with reader:
        for chunk in reader:
            rows = []
            malformed = 0
            for row in chunk.itertuples(index=False, name=None):
                if isinstance(row[width], str) and strict:
                    malformed += 1
                    continue
                rows.append(row[:width])
            yield Batch(rows=rows, malformed=malformed)
