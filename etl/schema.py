# WORKFLOW: Column schema for the tab-separated product export.
# Used by: Record transformer, validators, batch ingestion
# Functions:
# 1. SCHEMA_FIELDS - Declarative (canonical name, accepted headers) table
# 2. NUTRIENT_FIELDS - Per-100g nutrients grouped by breakdown section
# 3. SchemaColumnMap.from_headers() - Build name -> position lookup once per file
# 4. SchemaColumnMap.get() - Trimmed cell value or None for a canonical field
#
# Extraction flow: Header row -> Alias resolution -> Column map -> Per-row lookups
# Unknown headers are ignored, missing columns and ragged rows resolve to None.

"""
Column schema and field extraction for the product export.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


# Breakdown section -> [(attribute, dataset header stem)]. The dataset header
# for a per-100g value is "<stem>_100g".
NUTRIENT_FIELDS: Dict[str, List[Tuple[str, str]]] = {
    "macros": [
        ("energy_kcal", "energy-kcal"),
        ("energy_kj", "energy-kj"),
        ("carbohydrates", "carbohydrates"),
        ("fat", "fat"),
        ("proteins", "proteins"),
        ("sugars", "sugars"),
        ("fiber", "fiber"),
        ("salt", "salt"),
        ("added_sugars", "added-sugars"),
        ("sucrose", "sucrose"),
        ("glucose", "glucose"),
        ("fructose", "fructose"),
        ("galactose", "galactose"),
        ("lactose", "lactose"),
        ("maltose", "maltose"),
        ("maltodextrins", "maltodextrins"),
        ("psicose", "psicose"),
        ("starch", "starch"),
        ("polyols", "polyols"),
        ("erythritol", "erythritol"),
        ("isomalt", "isomalt"),
        ("maltitol", "maltitol"),
        ("sorbitol", "sorbitol"),
        ("soluble_fiber", "soluble-fiber"),
        ("insoluble_fiber", "insoluble-fiber"),
        ("polydextrose", "polydextrose"),
    ],
    "vitamins": [
        ("vitamin_a", "vitamin-a"),
        ("beta_carotene", "beta-carotene"),
        ("vitamin_d", "vitamin-d"),
        ("vitamin_e", "vitamin-e"),
        ("vitamin_k", "vitamin-k"),
        ("vitamin_c", "vitamin-c"),
        ("vitamin_b1", "vitamin-b1"),
        ("vitamin_b2", "vitamin-b2"),
        ("vitamin_pp", "vitamin-pp"),
        ("vitamin_b6", "vitamin-b6"),
        ("vitamin_b9", "vitamin-b9"),
        ("folates", "folates"),
        ("vitamin_b12", "vitamin-b12"),
        ("biotin", "biotin"),
        ("pantothenic_acid", "pantothenic-acid"),
        ("choline", "choline"),
        ("phylloquinone", "phylloquinone"),
        ("inositol", "inositol"),
    ],
    "minerals": [
        ("sodium", "sodium"),
        ("calcium", "calcium"),
        ("phosphorus", "phosphorus"),
        ("iron", "iron"),
        ("magnesium", "magnesium"),
        ("zinc", "zinc"),
        ("copper", "copper"),
        ("manganese", "manganese"),
        ("fluoride", "fluoride"),
        ("selenium", "selenium"),
        ("chromium", "chromium"),
        ("molybdenum", "molybdenum"),
        ("iodine", "iodine"),
        ("potassium", "potassium"),
        ("chloride", "chloride"),
        ("silica", "silica"),
        ("bicarbonate", "bicarbonate"),
        ("sulphate", "sulphate"),
        ("nitrate", "nitrate"),
    ],
    "fats": [
        ("saturated", "saturated-fat"),
        ("unsaturated", "unsaturated-fat"),
        ("monounsaturated", "monounsaturated-fat"),
        ("polyunsaturated", "polyunsaturated-fat"),
        ("trans", "trans-fat"),
        ("cholesterol", "cholesterol"),
        ("omega_3", "omega-3-fat"),
        ("omega_6", "omega-6-fat"),
        ("omega_9", "omega-9-fat"),
        ("alpha_linolenic_acid", "alpha-linolenic-acid"),
        ("eicosapentaenoic_acid", "eicosapentaenoic-acid"),
        ("docosahexaenoic_acid", "docosahexaenoic-acid"),
        ("linoleic_acid", "linoleic-acid"),
        ("arachidonic_acid", "arachidonic-acid"),
        ("gamma_linolenic_acid", "gamma-linolenic-acid"),
        ("dihomo_gamma_linolenic_acid", "dihomo-gamma-linolenic-acid"),
        ("oleic_acid", "oleic-acid"),
        ("elaidic_acid", "elaidic-acid"),
        ("gondoic_acid", "gondoic-acid"),
        ("mead_acid", "mead-acid"),
        ("erucic_acid", "erucic-acid"),
        ("nervonic_acid", "nervonic-acid"),
        ("butyric_acid", "butyric-acid"),
        ("caproic_acid", "caproic-acid"),
        ("caprylic_acid", "caprylic-acid"),
        ("capric_acid", "capric-acid"),
        ("lauric_acid", "lauric-acid"),
        ("myristic_acid", "myristic-acid"),
        ("palmitic_acid", "palmitic-acid"),
        ("stearic_acid", "stearic-acid"),
        ("arachidic_acid", "arachidic-acid"),
        ("behenic_acid", "behenic-acid"),
        ("lignoceric_acid", "lignoceric-acid"),
        ("cerotic_acid", "cerotic-acid"),
        ("montanic_acid", "montanic-acid"),
        ("melissic_acid", "melissic-acid"),
    ],
    "other": [
        ("caffeine", "caffeine"),
        ("taurine", "taurine"),
        ("carnitine", "carnitine"),
        ("beta_glucan", "beta-glucan"),
        ("alcohol", "alcohol"),
        ("nucleotides", "nucleotides"),
        ("casein", "casein"),
        ("serum_proteins", "serum-proteins"),
        ("methylsulfonylmethane", "methylsulfonylmethane"),
        ("energy_from_fat", "energy-from-fat"),
        ("added_salt", "added-salt"),
    ],
}


def nutrient_field(attr: str) -> str:
    """Canonical field name of a per-100g nutrient attribute."""
    return f"{attr}_100g"


def serving_field(attr: str) -> str:
    """Canonical field name of a per-serving nutrient attribute."""
    return f"{attr}_serving"


# Nutrients also read on the serving basis.
SERVING_NUTRIENTS: List[Tuple[str, str]] = [
    ("energy_kcal", "energy-kcal"),
    ("carbohydrates", "carbohydrates"),
    ("fat", "fat"),
    ("proteins", "proteins"),
    ("fiber", "fiber"),
]


def _header_aliases(header: str) -> Tuple[str, ...]:
    underscored = header.replace("-", "_")
    if underscored == header:
        return (header,)
    return (header, underscored)


def _build_schema_fields() -> List[Tuple[str, Tuple[str, ...]]]:
    fields: List[Tuple[str, Tuple[str, ...]]] = [
        ("code", ("code", "barcode")),
        ("product_name", ("product_name", "product_name_en")),
        ("generic_name", ("generic_name", "generic_name_en")),
        ("ingredients_text", ("ingredients_text", "ingredients_text_en")),
        ("brands", ("brands",)),
        ("main_category", ("main_category", "main_category_en")),
        ("countries", ("countries", "countries_en", "countries_tags")),
        ("serving_size", ("serving_size",)),
        ("serving_quantity", ("serving_quantity",)),
    ]
    for section in NUTRIENT_FIELDS.values():
        for attr, stem in section:
            fields.append((nutrient_field(attr), _header_aliases(f"{stem}_100g")))
    for attr, stem in SERVING_NUTRIENTS:
        fields.append((serving_field(attr), _header_aliases(f"{stem}_serving")))
    return fields


# Ordered (canonical name, accepted headers). Earlier aliases take priority.
SCHEMA_FIELDS: List[Tuple[str, Tuple[str, ...]]] = _build_schema_fields()


@dataclass(frozen=True)
class SchemaColumnMap:
    """
    Canonical field name -> column position, built once from the header row.

    Fields whose header is missing map to ``None``. ``headers`` keeps a plain
    header-name -> position map for columns the schema table does not know.
    """

    positions: Dict[str, Optional[int]]
    headers: Dict[str, int] = field(default_factory=dict)
    width: int = 0

    @classmethod
    def from_headers(cls, header_row: Sequence[str]) -> "SchemaColumnMap":
        by_name: Dict[str, int] = {}
        for i, header in enumerate(header_row):
            name = str(header).strip()
            if name and name not in by_name:
                by_name[name] = i

        positions: Dict[str, Optional[int]] = {}
        for canonical, aliases in SCHEMA_FIELDS:
            positions[canonical] = next(
                (by_name[alias] for alias in aliases if alias in by_name), None
            )

        present = sum(1 for pos in positions.values() if pos is not None)
        logger.info(
            f"Built column map: {present}/{len(positions)} schema fields present, "
            f"{len(by_name)} headers"
        )
        return cls(positions=positions, headers=by_name, width=len(header_row))

    def has(self, field_name: str) -> bool:
        return self.positions.get(field_name) is not None

    def get(self, row: Sequence, field_name: str) -> Optional[str]:
        """Trimmed cell for ``field_name``, or None if absent or empty."""
        return _cell(row, self.positions.get(field_name))

    def get_by_header(self, row: Sequence, header: str) -> Optional[str]:
        """Name-based lookup for headers outside the schema table."""
        return _cell(row, self.headers.get(header))

    def first_cell(self, row: Sequence) -> str:
        """Raw first cell (the identifier column), empty string if missing."""
        if not row:
            return ""
        value = row[0]
        return value if isinstance(value, str) else ""


def _cell(row: Sequence, position: Optional[int]) -> Optional[str]:
    if position is None or position >= len(row):
        return None
    value = row[position]
    # pandas pads short rows with NaN
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None
