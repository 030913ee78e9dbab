# WORKFLOW: Batch orchestrator for the static catalog build.
# Used by: scripts/build_static.py, end-to-end tests
# Functions:
# 1. Pipeline.setup() - Output directories, country cache, catalog streams
# 2. Pipeline.process_batch() - Parallel transform, then sequential writes
# 3. Pipeline.finalize() - Close/compress catalogs, finalize every index
# 4. Pipeline.run() - Drive the whole input stream and return a RunSummary
#
# Pipeline flow: TSV batches -> worker pool (transform_record) -> in-order reduce
#                (product document -> catalog lines -> index items) -> finalize
# Workers only read immutable inputs; catalog handles and index buffers are owned
# by the coordinating thread. The transform pool is a thread pool by default; a
# process pool (transform_pool="process") sidesteps the GIL for the CPU-bound
# transform at the cost of pickling rows and results.

"""
Batch orchestrator for the static catalog build.
"""

import logging
import os
import time
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from core.config import Settings, settings as default_settings
from etl.countries import CountryResolver
from etl.errors import IndexFinalizeError, IndexWriteError, PipelineSetupError
from etl.ingest_tsv import iter_batches, read_header
from etl.paginated_index import PaginatedIndex
from etl.schema import SchemaColumnMap
from etl.transform import BRAND, CATEGORY, COUNTRY, TransformResult, transform_record
from etl.validators import NutrientBasis
from etl.writers import CatalogWriter, EntityWriter

logger = logging.getLogger(__name__)

THREAD_POOL = "thread"
PROCESS_POOL = "process"

# Per-process transform inputs, set once by the process pool initializer
_worker_context: Dict[str, Any] = {}


def _init_worker(columns: SchemaColumnMap, resolver: CountryResolver, policy: NutrientBasis, products_prefix: str) -> None:
    _worker_context.update(columns=columns, resolver=resolver, policy=policy, products_prefix=products_prefix)


def _transform_in_worker(row: Sequence) -> Optional[TransformResult]:
    try:
        return transform_record(row, **_worker_context)
    except Exception as e:
        logger.error(f"Error processing record: {e}")
        return None


@dataclass
class RunSummary:
    processed: int = 0
    skipped: int = 0
    malformed: int = 0
    write_errors: int = 0
    elapsed_seconds: float = 0.0

    @property
    def rate(self) -> float:
        if self.elapsed_seconds <= 0:
            return 0.0
        return self.processed / self.elapsed_seconds

    def as_dict(self) -> Dict[str, float]:
        return {
            "processed": self.processed,
            "skipped": self.skipped,
            "malformed": self.malformed,
            "write_errors": self.write_errors,
            "elapsed_seconds": round(self.elapsed_seconds, 2),
            "rate": round(self.rate, 1),
        }


class Pipeline:
    """Owns every shared writer and drives the input in bounded batches."""

    def __init__(self, config: Optional[Settings] = None, resolver: Optional[CountryResolver] = None):
        self.config = config or default_settings
        self.policy = NutrientBasis(self.config.nutrient_basis)
        if self.config.transform_pool not in (THREAD_POOL, PROCESS_POOL):
            raise ValueError(f"Unknown transform pool: {self.config.transform_pool}")
        self.resolver = resolver
        self.columns: Optional[SchemaColumnMap] = None
        self.entities = EntityWriter(self.config.products_dir)
        self.catalog = CatalogWriter(
            self.config.catalog_dir,
            mode=self.config.catalog_mode,
            codec=self.config.catalog_compression,
            max_workers=self.config.max_workers,
        )
        self.indexes: Dict[str, PaginatedIndex] = {
            key_type: PaginatedIndex(self.config.index_dir, key_type, self.config.page_size)
            for key_type in (CATEGORY, BRAND, COUNTRY)
        }
        self.products_prefix = _relative_prefix(self.config.products_dir, self.config.static_dir)
        self.summary = RunSummary()

    def setup(self) -> None:
        """
        Acquire every resource the run needs.

        Raises:
            PipelineSetupError: input unreadable or outputs cannot be created
        """
        logger.info("Setting up directories and streams...")
        header = read_header(self.config.input_file)
        self.columns = SchemaColumnMap.from_headers(header)
        self.entities.setup()
        self.catalog.setup()
        try:
            os.makedirs(self.config.index_dir, exist_ok=True)
        except OSError as e:
            raise PipelineSetupError(f"Failed to create index directory {self.config.index_dir}: {e}") from e
        if self.resolver is None:
            self.resolver = CountryResolver()
        logger.info(f"Country cache ready ({len(self.resolver)} entries)")

    def executor(self) -> Executor:
        """Worker pool for the transform step; call after setup()."""
        if self.config.transform_pool == PROCESS_POOL:
            return ProcessPoolExecutor(
                max_workers=self.config.max_workers,
                initializer=_init_worker,
                initargs=(self.columns, self.resolver, self.policy, self.products_prefix),
            )
        return ThreadPoolExecutor(max_workers=self.config.max_workers)

    def _transform(self, row: Sequence) -> Optional[TransformResult]:
        try:
            return transform_record(row, self.columns, self.resolver, self.policy, self.products_prefix)
        except Exception as e:
            logger.error(f"Error processing record: {e}")
            return None

    def _reduce(self, result: TransformResult) -> bool:
        product = result.product
        try:
            self.entities.write(product)
        except OSError as e:
            logger.error(f"Failed to write product {product.code}: {e}")
            self.summary.write_errors += 1
            return False

        try:
            self.catalog.append_product(product, [entry for _, entry in result.catalog_entries])
        except OSError as e:
            logger.error(f"Failed to write catalog entry for {product.code}: {e}")
            self.summary.write_errors += 1
            return False

        indexed = True
        for key_type, key, item in result.index_entries:
            try:
                self.indexes[key_type].add(key, item)
            except IndexWriteError as e:
                logger.error(f"Failed to index product {product.code} under {key_type}/{key}: {e}")
                indexed = False
        if not indexed:
            self.summary.write_errors += 1
        return indexed

    def process_batch(self, rows: List[Tuple], executor: Executor) -> Tuple[int, int]:
        """
        Transform a batch in parallel and apply results in row order.

        Returns:
            (processed, skipped) for the batch
        """
        if isinstance(executor, ProcessPoolExecutor):
            chunksize = max(1, len(rows) // (self.config.max_workers * 4))
            results = list(executor.map(_transform_in_worker, rows, chunksize=chunksize))
        else:
            results = list(executor.map(self._transform, rows))

        processed = 0
        for result in results:
            if result is None or not result.accepted:
                continue
            if self._reduce(result):
                processed += 1

        skipped = len(rows) - processed
        self.summary.processed += processed
        self.summary.skipped += skipped
        return processed, skipped

    def finalize(self) -> None:
        """
        Close and compress catalogs, then finalize every index.

        Raises:
            IndexFinalizeError: after all indexes were attempted, if any failed
        """
        logger.info("Finalizing streams...")
        self.catalog.close()
        self.catalog.compress_all()

        failed = []
        for key_type, index in self.indexes.items():
            try:
                index.finalize()
            except IndexFinalizeError as e:
                logger.error(str(e))
                failed.append(key_type)
        if failed:
            raise IndexFinalizeError(f"Failed to finalize indexes: {', '.join(failed)}")

    def run(self) -> RunSummary:
        start = time.time()
        self.setup()

        logger.info(f"Processing {self.config.input_file} in batches of {self.config.batch_size}")
        try:
            with self.executor() as executor:
                for batch in iter_batches(
                    self.config.input_file,
                    self.config.batch_size,
                    strict=self.config.strict_rows,
                    width=self.columns.width,
                ):
                    if batch.malformed:
                        logger.warning(f"Skipped {batch.malformed} malformed rows")
                        self.summary.malformed += batch.malformed
                        self.summary.skipped += batch.malformed
                    if batch.rows:
                        self.process_batch(batch.rows, executor)
                        logger.info(
                            f"Progress: {self.summary.processed} processed, {self.summary.skipped} skipped"
                        )
        finally:
            self.catalog.close()

        self.finalize()
        self.summary.elapsed_seconds = time.time() - start

        logger.info(
            f"Processing complete: {self.summary.processed} processed, "
            f"{self.summary.skipped} skipped in {self.summary.elapsed_seconds:.2f}s "
            f"({self.summary.rate:.0f} products/sec)"
        )
        return self.summary


def _relative_prefix(products_dir: str, static_dir: str) -> str:
    """Product directory as referenced from index items, relative to the static root."""
    try:
        rel = os.path.relpath(products_dir, static_dir)
    except ValueError:
        return "products"
    if rel.startswith(".."):
        return "products"
    return rel.replace(os.sep, "/")
