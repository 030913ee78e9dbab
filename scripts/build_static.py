# WORKFLOW: Build script that turns the product export into the static tree.
# Used by: Initial setup, scheduled rebuilds, container entrypoint
# Functions:
# 1. configure_logging() - Console + file logging
# 2. check_input() - Verify the export file is present
# 3. main() - Parse arguments, run the pipeline, report the summary
#
# Build flow: products.csv.gz -> Pipeline.run() -> products/, indexes/, catalogs/ -> Summary

"""
Build the static product tree from the Open Food Facts export.
"""

import sys
import logging
import argparse
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.config import settings  # noqa: E402
from etl.errors import PipelineError  # noqa: E402
from etl.pipeline import Pipeline  # noqa: E402

logger = logging.getLogger(__name__)


def configure_logging(level: str, log_file: str) -> None:
    handlers = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )


def check_input(input_file: str) -> bool:
    """
    Check that the export file exists.

    Returns:
        True if the file is present
    """
    path = Path(input_file)
    if not path.is_file():
        logger.error(f"Input file not found: {path}")
        logger.info("Download it with: curl -L https://static.openfoodfacts.org/data/en.openfoodfacts.org.products.csv.gz")
        return False
    logger.info(f"Input file: {path} ({path.stat().st_size} bytes)")
    return True


def main(argv=None) -> int:
    """
    Main build function.
    """
    parser = argparse.ArgumentParser(description='Build the static food catalog')
    parser.add_argument('--input', help='Path to the gzip TSV export')
    parser.add_argument('--output', help='Static root (products/ and indexes/ are created inside)')
    parser.add_argument('--batch-size', type=int, help='Rows per batch')
    parser.add_argument('--workers', type=int, help='Transform worker threads')
    parser.add_argument('--page-size', type=int, help='Items per index page')
    parser.add_argument('--strict', action='store_true', help='Drop rows with extra cells')
    parser.add_argument('--catalog-mode', choices=['per_country', 'single'])
    parser.add_argument('--compression', choices=['br', 'gz'])
    parser.add_argument('--basis', choices=['per_100g', 'serving_with_fallback'])
    parser.add_argument('--pool', choices=['thread', 'process'], help='Transform worker pool')

    args = parser.parse_args(argv)

    overrides = {}
    if args.input:
        overrides['input_file'] = args.input
    if args.output:
        output = Path(args.output)
        overrides['static_dir'] = str(output)
        overrides['products_dir'] = str(output / 'products')
        overrides['index_dir'] = str(output / 'indexes')
        overrides['catalog_dir'] = str(output / 'indexes' / 'catalogs')
    if args.batch_size:
        overrides['batch_size'] = args.batch_size
    if args.workers:
        overrides['max_workers'] = args.workers
    if args.page_size:
        overrides['page_size'] = args.page_size
    if args.strict:
        overrides['strict_rows'] = True
    if args.catalog_mode:
        overrides['catalog_mode'] = args.catalog_mode
    if args.compression:
        overrides['catalog_compression'] = args.compression
    if args.basis:
        overrides['nutrient_basis'] = args.basis
    if args.pool:
        overrides['transform_pool'] = args.pool

    config = settings.model_copy(update=overrides)
    configure_logging(config.log_level, config.log_file)

    if not check_input(config.input_file):
        return 1

    try:
        summary = Pipeline(config).run()
    except PipelineError as e:
        logger.error(f"Build failed: {e}")
        return 1

    logger.info("All done! Static tree written:")
    logger.info(f"   Products: {config.products_dir}")
    logger.info(f"   Indexes:  {config.index_dir}")
    logger.info(f"   Catalogs: {config.catalog_dir}")
    logger.info(f"   Summary:  {summary.as_dict()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
