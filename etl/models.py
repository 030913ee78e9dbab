# WORKFLOW: Pydantic models for everything the pipeline writes to disk.
# Used by: Record transformer, entity/catalog writers, paginated index
# Models include:
# 1. Product - Full entity document with nested nutrient Breakdown
# 2. CatalogEntry - Positionally encoded catalog row
# 3. IndexItem/IndexPage/IndexMeta - Paginated index files
#
# Serialization flow: Transformer -> Model -> model_dump_json() -> static file
# Entity models are frozen: once built they are never modified.

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class MacroNutrients(_Frozen):
    energy_kcal: Optional[float] = None
    energy_kj: Optional[float] = None
    carbohydrates: Optional[float] = None
    fat: Optional[float] = None
    proteins: Optional[float] = None
    sugars: Optional[float] = None
    fiber: Optional[float] = None
    salt: Optional[float] = None
    added_sugars: Optional[float] = None
    sucrose: Optional[float] = None
    glucose: Optional[float] = None
    fructose: Optional[float] = None
    galactose: Optional[float] = None
    lactose: Optional[float] = None
    maltose: Optional[float] = None
    maltodextrins: Optional[float] = None
    psicose: Optional[float] = None
    starch: Optional[float] = None
    polyols: Optional[float] = None
    erythritol: Optional[float] = None
    isomalt: Optional[float] = None
    maltitol: Optional[float] = None
    sorbitol: Optional[float] = None
    soluble_fiber: Optional[float] = None
    insoluble_fiber: Optional[float] = None
    polydextrose: Optional[float] = None


class Vitamins(_Frozen):
    vitamin_a: Optional[float] = None
    beta_carotene: Optional[float] = None
    vitamin_d: Optional[float] = None
    vitamin_e: Optional[float] = None
    vitamin_k: Optional[float] = None
    vitamin_c: Optional[float] = None
    vitamin_b1: Optional[float] = None
    vitamin_b2: Optional[float] = None
    vitamin_pp: Optional[float] = None
    vitamin_b6: Optional[float] = None
    vitamin_b9: Optional[float] = None
    folates: Optional[float] = None
    vitamin_b12: Optional[float] = None
    biotin: Optional[float] = None
    pantothenic_acid: Optional[float] = None
    choline: Optional[float] = None
    phylloquinone: Optional[float] = None
    inositol: Optional[float] = None


class Minerals(_Frozen):
    sodium: Optional[float] = None
    calcium: Optional[float] = None
    phosphorus: Optional[float] = None
    iron: Optional[float] = None
    magnesium: Optional[float] = None
    zinc: Optional[float] = None
    copper: Optional[float] = None
    manganese: Optional[float] = None
    fluoride: Optional[float] = None
    selenium: Optional[float] = None
    chromium: Optional[float] = None
    molybdenum: Optional[float] = None
    iodine: Optional[float] = None
    potassium: Optional[float] = None
    chloride: Optional[float] = None
    silica: Optional[float] = None
    bicarbonate: Optional[float] = None
    sulphate: Optional[float] = None
    nitrate: Optional[float] = None


class FatBreakdown(_Frozen):
    saturated: Optional[float] = None
    unsaturated: Optional[float] = None
    monounsaturated: Optional[float] = None
    polyunsaturated: Optional[float] = None
    trans: Optional[float] = None
    cholesterol: Optional[float] = None
    omega_3: Optional[float] = None
    omega_6: Optional[float] = None
    omega_9: Optional[float] = None
    alpha_linolenic_acid: Optional[float] = None
    eicosapentaenoic_acid: Optional[float] = None
    docosahexaenoic_acid: Optional[float] = None
    linoleic_acid: Optional[float] = None
    arachidonic_acid: Optional[float] = None
    gamma_linolenic_acid: Optional[float] = None
    dihomo_gamma_linolenic_acid: Optional[float] = None
    oleic_acid: Optional[float] = None
    elaidic_acid: Optional[float] = None
    gondoic_acid: Optional[float] = None
    mead_acid: Optional[float] = None
    erucic_acid: Optional[float] = None
    nervonic_acid: Optional[float] = None
    butyric_acid: Optional[float] = None
    caproic_acid: Optional[float] = None
    caprylic_acid: Optional[float] = None
    capric_acid: Optional[float] = None
    lauric_acid: Optional[float] = None
    myristic_acid: Optional[float] = None
    palmitic_acid: Optional[float] = None
    stearic_acid: Optional[float] = None
    arachidic_acid: Optional[float] = None
    behenic_acid: Optional[float] = None
    lignoceric_acid: Optional[float] = None
    cerotic_acid: Optional[float] = None
    montanic_acid: Optional[float] = None
    melissic_acid: Optional[float] = None


class OtherNutrients(_Frozen):
    caffeine: Optional[float] = None
    taurine: Optional[float] = None
    carnitine: Optional[float] = None
    beta_glucan: Optional[float] = None
    alcohol: Optional[float] = None
    nucleotides: Optional[float] = None
    casein: Optional[float] = None
    serum_proteins: Optional[float] = None
    methylsulfonylmethane: Optional[float] = None
    energy_from_fat: Optional[float] = None
    added_salt: Optional[float] = None


class Breakdown(_Frozen):
    macros: MacroNutrients = Field(default_factory=MacroNutrients)
    vitamins: Vitamins = Field(default_factory=Vitamins)
    minerals: Minerals = Field(default_factory=Minerals)
    fats: FatBreakdown = Field(default_factory=FatBreakdown)
    other: OtherNutrients = Field(default_factory=OtherNutrients)


class Product(_Frozen):
    code: str = Field(..., pattern=r"^[0-9]+$")
    product_name: Optional[str] = None
    generic_name: Optional[str] = None
    ingredients_text: Optional[str] = None
    brands: Optional[str] = None
    main_category: Optional[str] = None
    serving_size: Optional[float] = None
    serving_unit: Optional[str] = None
    countries: List[str] = Field(default_factory=list)
    nutrient_basis: str = "100g"
    breakdown: Breakdown = Field(default_factory=Breakdown)


class CatalogEntry(_Frozen):
    code: str
    name: Optional[str] = None
    brand: Optional[str] = None
    country: Optional[str] = None
    serving_size: Optional[float] = None
    serving_unit: Optional[str] = None
    fiber: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None
    protein: Optional[float] = None

    def to_row(self) -> list:
        """Positional encoding used in catalog JSON-Lines files."""
        return [
            self.code,
            self.name,
            self.brand,
            self.country,
            self.serving_size,
            self.serving_unit,
            self.fiber,
            self.carbs,
            self.fat,
            self.protein,
        ]


class IndexItem(_Frozen):
    code: str
    name: Optional[str] = None
    brand: Optional[str] = None
    path: str


class IndexPage(BaseModel):
    tag: str
    page: int = Field(..., ge=1)
    page_size: int
    items: List[IndexItem]
    prev: Optional[str] = None
    next: Optional[str] = None
    total_pages: Optional[int] = None
    count: Optional[int] = None


class IndexMeta(BaseModel):
    tag: str
    count: int
    page_size: int
    total_pages: int
