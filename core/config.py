# WORKFLOW: Core configuration management for the static catalog builder.
# Used by: ETL pipeline, build script, static file API
# Configuration includes:
# - Input dataset location and output directory layout
# - Batch size, worker pool size and row strictness
# - Index page size and catalog layout/compression
# - Nutrient completeness policy
# - API settings (host, port, CORS)
# - Logging configuration
#
# Loaded at startup and shared read-only by the pipeline and the API.

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Input
    input_file: str = "food_facts_raw_data/products.csv.gz"
    strict_rows: bool = False

    # Output layout
    static_dir: str = "output/static"
    products_dir: str = "output/static/products"
    index_dir: str = "output/static/indexes"
    catalog_dir: str = "output/static/indexes/catalogs"

    # Processing
    batch_size: int = 10_000
    max_workers: int = 8
    # Transform pool: "thread" or "process"
    transform_pool: str = "thread"
    page_size: int = 100

    # Catalog: "per_country" or "single"; compression: "br" or "gz"
    catalog_mode: str = "per_country"
    catalog_compression: str = "br"

    # Nutrient completeness: "per_100g" or "serving_with_fallback"
    nutrient_basis: str = "per_100g"

    # API
    project_name: str = "Food Facts Static Server"
    version: str = "1.0.0"
    api_host: str = "0.0.0.0"
    api_port: int = 8443

    # Environment
    environment: str = "development"
    debug: bool = False

    # Logging
    log_level: str = "INFO"
    log_file: str = "logs/build_static.log"

    # CORS
    allowed_origins: list[str] = ["*"]
    allowed_methods: list[str] = ["GET", "OPTIONS"]
    allowed_headers: list[str] = ["*"]

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
