# WORKFLOW: ETL (Extract, Transform, Load) package for the static catalog build.
# Used by: Build script, end-to-end tests
# Modules include:
# 1. ingest_tsv.py - Stream the gzip TSV export in bounded batches
# 2. schema.py - Header -> column map, tolerant field extraction
# 3. units.py - Numeric and serving-size parsing
# 4. countries.py - Country text -> ISO alpha-2 codes
# 5. validators.py - Identifier and nutrient completeness rules
# 6. transform.py - Row -> Product + catalog/index projections
# 7. writers.py - Product documents, catalog streams, compression
# 8. paginated_index.py - Sharded paginated indexes with finalize pass
# 9. pipeline.py - Batch orchestrator
#
# ETL flow: TSV.gz -> Batches -> Transform (parallel) -> Documents -> Catalogs -> Indexes
# This produces every static file served by the API package.

"""
ETL package for the static food catalog build.
"""
