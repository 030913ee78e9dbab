"""Shared fixtures for the ETL and API test suites."""

import gzip
import sys
from pathlib import Path

import pytest

# Make the top-level packages importable when running from a checkout
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from etl.countries import CountryResolver  # noqa: E402


@pytest.fixture(scope="session")
def resolver() -> CountryResolver:
    """Country resolver built once for the whole session."""
    return CountryResolver()


@pytest.fixture
def write_tsv(tmp_path):
    """Write header + rows as a gzip-compressed TSV and return its path."""

    def _write(header, rows, name="products.csv.gz"):
        path = tmp_path / name
        lines = ["\t".join(header)] + ["\t".join(row) for row in rows]
        with gzip.open(path, "wt", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")
        return path

    return _write
