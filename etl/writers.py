# WORKFLOW: Static file writers for product documents and catalog streams.
# Used by: Batch pipeline reduce step
# Functions:
# 1. EntityWriter.write() - One <products_dir>/<code>.json document per Product
# 2. CatalogWriter.append() - One JSON-Lines row per catalog entry
# 3. CatalogWriter.close() - Flush and close every open catalog stream
# 4. compress_file() - Stream a closed file through brotli or gzip
# 5. CatalogWriter.compress_all() - Compress closed catalogs in parallel
#
# Write flow: Product -> document file -> catalog line(s) -> close -> compress -> remove plain file
# Catalog handles are owned by the pipeline thread; only compression runs in a pool.

"""
Static file writers for product documents and catalog streams.
"""

import gzip
import json
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, IO, List, Optional

import brotli

from etl.errors import PipelineSetupError
from etl.models import CatalogEntry, Product

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
CATALOG_FILE = "catalog.jsonl"

PER_COUNTRY = "per_country"
SINGLE = "single"

COMPRESSION_SUFFIXES = {"br": ".br", "gz": ".gz"}


def ensure_dir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PipelineSetupError(f"Failed to create directory {path}: {e}") from e


def compress_file(src: Path, dst: Path, codec: str = "br") -> None:
    """
    Compress ``src`` into ``dst`` in fixed-size chunks.

    Args:
        src: Closed plain file
        dst: Output path
        codec: "br" (brotli) or "gz" (gzip)
    """
    if codec == "br":
        compressor = brotli.Compressor()
        with open(src, "rb") as reader, open(dst, "wb") as writer:
            while True:
                chunk = reader.read(CHUNK_SIZE)
                if not chunk:
                    break
                writer.write(compressor.process(chunk))
            writer.write(compressor.finish())
    elif codec == "gz":
        with open(src, "rb") as reader, gzip.open(dst, "wb") as writer:
            while True:
                chunk = reader.read(CHUNK_SIZE)
                if not chunk:
                    break
                writer.write(chunk)
    else:
        raise ValueError(f"Unsupported compression codec: {codec}")


class EntityWriter:
    """Writes one JSON document per accepted product."""

    def __init__(self, products_dir: str):
        self.products_dir = Path(products_dir)
        self.written = 0

    def setup(self) -> None:
        ensure_dir(self.products_dir)

    def path_for(self, code: str) -> Path:
        return self.products_dir / f"{code}.json"

    def write(self, product: Product) -> Path:
        """Write the product document; OSError propagates to the caller."""
        path = self.path_for(product.code)
        with open(path, "w", encoding="utf-8") as f:
            f.write(product.model_dump_json())
        self.written += 1
        return path


class CatalogWriter:
    """
    Append-only catalog streams.

    In ``per_country`` mode each country code gets its own
    ``<catalog_dir>/<code>/catalog.jsonl``; in ``single`` mode every product
    is one row of ``<catalog_dir>/catalog.jsonl``.
    """

    def __init__(self, catalog_dir: str, mode: str = PER_COUNTRY, codec: str = "br", max_workers: int = 4):
        if mode not in (PER_COUNTRY, SINGLE):
            raise ValueError(f"Unknown catalog mode: {mode}")
        if codec not in COMPRESSION_SUFFIXES:
            raise ValueError(f"Unsupported compression codec: {codec}")
        self.catalog_dir = Path(catalog_dir)
        self.mode = mode
        self.codec = codec
        self.max_workers = max_workers
        self._handles: Dict[str, IO[str]] = {}
        self._paths: Dict[str, Path] = {}
        self.lines_written = 0

    def setup(self) -> None:
        ensure_dir(self.catalog_dir)
        if self.mode == SINGLE:
            self._open(SINGLE, self.catalog_dir / CATALOG_FILE)

    def _open(self, key: str, path: Path) -> IO[str]:
        ensure_dir(path.parent)
        try:
            handle = open(path, "w", encoding="utf-8", buffering=CHUNK_SIZE)
        except OSError as e:
            raise PipelineSetupError(f"Failed to open catalog stream {path}: {e}") from e
        self._handles[key] = handle
        self._paths[key] = path
        return handle

    def _handle_for(self, country: str) -> IO[str]:
        key = SINGLE if self.mode == SINGLE else country
        handle = self._handles.get(key)
        if handle is None:
            if self.mode == SINGLE:
                raise PipelineSetupError("Catalog stream is not open; call setup() first")
            handle = self._open(key, self.catalog_dir / country / CATALOG_FILE)
        return handle

    def append(self, entry: CatalogEntry) -> None:
        handle = self._handle_for(entry.country or "unknown")
        handle.write(json.dumps(entry.to_row(), ensure_ascii=False, separators=(",", ":")))
        handle.write("\n")
        self.lines_written += 1

    def append_product(self, product: Product, entries: List[CatalogEntry]) -> None:
        """Per-country entries, or one row with comma-joined countries in single mode."""
        if self.mode == PER_COUNTRY:
            for entry in entries:
                self.append(entry)
        elif entries:
            self.append(entries[0].model_copy(update={"country": ",".join(product.countries)}))

    @property
    def keys(self) -> List[str]:
        return sorted(self._paths)

    def close(self) -> None:
        for key, handle in self._handles.items():
            handle.flush()
            handle.close()
            logger.debug(f"Closed catalog stream {self._paths[key]}")
        self._handles.clear()

    def compressed_path(self, path: Path) -> Path:
        return path.with_name(path.name + COMPRESSION_SUFFIXES[self.codec])

    def _compress_one(self, path: Path) -> Optional[Path]:
        if not path.exists():
            return None
        target = self.compressed_path(path)
        try:
            compress_file(path, target, self.codec)
        except OSError as e:
            logger.error(f"Failed to compress catalog {path}: {e}")
            return None
        os.remove(path)
        return target

    def compress_all(self) -> List[Path]:
        """Compress every closed catalog file and remove the plain copies."""
        if self._handles:
            self.close()
        paths = [self._paths[key] for key in self.keys]
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            results = list(executor.map(self._compress_one, paths))
        compressed = [p for p in results if p is not None]
        logger.info(f"Compressed {len(compressed)}/{len(paths)} catalog files ({self.codec})")
        return compressed
