# WORKFLOW: Transform one raw export row into a Product and its projections.
# Used by: Batch pipeline worker pool
# Functions:
# 1. build_breakdown() - Parse every per-100g nutrient into the nested Breakdown
# 2. catalog_entries_for() - One CatalogEntry per resolved country
# 3. index_entries_for() - (key type, key, IndexItem) for category/brand/country
# 4. transform_record() - Identifier -> serving -> countries -> validation -> Product
#
# Transform flow: Raw row -> Column map lookups -> Numeric/country normalization
#                 -> Nutrient policy -> Product + catalog/index projections
# Pure function of its inputs: safe to run concurrently, performs no I/O.

"""
Transform one raw export row into a Product and its catalog/index projections.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from etl.countries import CountryResolver
from etl.models import (
    Breakdown, CatalogEntry, FatBreakdown, IndexItem, MacroNutrients, Minerals,
    OtherNutrients, Product, Vitamins,
)
from etl.schema import (
    NUTRIENT_FIELDS, SERVING_NUTRIENTS, SchemaColumnMap, nutrient_field, serving_field,
)
from etl.units import catalog_serving, parse_number, parse_serving
from etl.validators import NutrientBasis, RejectReason, extract_code, validate_nutrients

CATEGORY = "categories"
BRAND = "brands"
COUNTRY = "countries"

SECTION_MODELS = {
    "macros": MacroNutrients,
    "vitamins": Vitamins,
    "minerals": Minerals,
    "fats": FatBreakdown,
    "other": OtherNutrients,
}


@dataclass
class TransformResult:
    """Outcome of transforming one row; ``product`` is None when rejected."""

    product: Optional[Product] = None
    catalog_entries: List[Tuple[str, CatalogEntry]] = field(default_factory=list)
    index_entries: List[Tuple[str, str, IndexItem]] = field(default_factory=list)
    reason: Optional[RejectReason] = None

    @property
    def accepted(self) -> bool:
        return self.product is not None


def build_breakdown(row: Sequence, columns: SchemaColumnMap) -> Breakdown:
    """
    Parse every per-100g nutrient the schema knows about.

    Missing columns and unparseable cells become None.
    """
    sections = {}
    for section, fields in NUTRIENT_FIELDS.items():
        values = {
            attr: parse_number(columns.get(row, nutrient_field(attr)))
            for attr, _ in fields
        }
        sections[section] = SECTION_MODELS[section](**values)
    return Breakdown(**sections)


def serving_values(row: Sequence, columns: SchemaColumnMap) -> Dict[str, Optional[float]]:
    return {
        attr: parse_number(columns.get(row, serving_field(attr)))
        for attr, _ in SERVING_NUTRIENTS
    }


def split_brands(brands: Optional[str]) -> List[str]:
    """Distinct, trimmed brand names from a comma-separated field."""
    result: List[str] = []
    for brand in (brands or "").split(","):
        brand = brand.strip()
        if brand and brand not in result:
            result.append(brand)
    return result


def catalog_entries_for(
    product: Product,
    per_serving: Dict[str, Optional[float]],
) -> List[Tuple[str, CatalogEntry]]:
    if product.nutrient_basis == "serving":
        size, unit = product.serving_size, product.serving_unit
        fiber = per_serving.get("fiber")
        carbs = per_serving.get("carbohydrates")
        fat = per_serving.get("fat")
        protein = per_serving.get("proteins")
    else:
        macros = product.breakdown.macros
        size, unit = catalog_serving(product.serving_size, product.serving_unit)
        fiber, carbs, fat, protein = macros.fiber, macros.carbohydrates, macros.fat, macros.proteins

    return [
        (
            country,
            CatalogEntry(
                code=product.code,
                name=product.product_name,
                brand=product.brands,
                country=country,
                serving_size=size,
                serving_unit=unit,
                fiber=fiber,
                carbs=carbs,
                fat=fat,
                protein=protein,
            ),
        )
        for country in product.countries
    ]


def index_entries_for(product: Product, products_prefix: str = "products") -> List[Tuple[str, str, IndexItem]]:
    item = IndexItem(
        code=product.code,
        name=product.product_name,
        brand=product.brands,
        path=f"{products_prefix}/{product.code}.json",
    )
    entries: List[Tuple[str, str, IndexItem]] = []
    if product.main_category:
        entries.append((CATEGORY, product.main_category, item))
    for brand in split_brands(product.brands):
        entries.append((BRAND, brand, item))
    for country in product.countries:
        entries.append((COUNTRY, country, item))
    return entries


def transform_record(
    row: Sequence,
    columns: SchemaColumnMap,
    resolver: CountryResolver,
    policy: NutrientBasis = NutrientBasis.PER_100G,
    products_prefix: str = "products",
) -> TransformResult:
    """
    Build a Product from one raw row.

    Args:
        row: Raw cells of one data row
        columns: Column map built from the header row
        resolver: Shared read-only country resolver
        policy: Nutrient completeness policy
        products_prefix: Product document directory relative to the static root

    Returns:
        TransformResult; rejected rows carry only a reason
    """
    code = extract_code(columns.first_cell(row))
    if not code:
        return TransformResult(reason=RejectReason.MISSING_CODE)

    serving = parse_serving(columns.get(row, "serving_size"), columns.get(row, "serving_quantity"))
    breakdown = build_breakdown(row, columns)
    per_serving = serving_values(row, columns)

    macros = breakdown.macros
    per_100g = {
        "energy_kcal": macros.energy_kcal,
        "carbohydrates": macros.carbohydrates,
        "fat": macros.fat,
        "proteins": macros.proteins,
        "fiber": macros.fiber,
    }
    validation = validate_nutrients(per_100g, per_serving, serving.quantity, serving.unit, policy)
    if not validation.accepted:
        return TransformResult(reason=validation.reason)

    product = Product(
        code=code,
        product_name=columns.get(row, "product_name"),
        generic_name=columns.get(row, "generic_name"),
        ingredients_text=columns.get(row, "ingredients_text"),
        brands=columns.get(row, "brands"),
        main_category=columns.get(row, "main_category"),
        serving_size=serving.quantity,
        serving_unit=serving.unit,
        countries=resolver.normalize(columns.get(row, "countries")),
        nutrient_basis=validation.basis,
        breakdown=breakdown,
    )

    return TransformResult(
        product=product,
        catalog_entries=catalog_entries_for(product, per_serving),
        index_entries=index_entries_for(product, products_prefix),
    )
