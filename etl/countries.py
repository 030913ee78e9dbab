# WORKFLOW: Country normalization for free-text geography fields.
# Used by: Record transformer, country catalog and country index
# Functions:
# 1. build_country_cache() - ISO names, alpha-2 codes and aliases -> alpha-2
# 2. CountryResolver.map_country() - Resolve one token (cache, code, fuzzy)
# 3. CountryResolver.normalize() - Resolve a delimited list of countries
#
# Resolution flow: Token -> "world" check -> Strip lang prefix -> Cache hit
#                  -> Two-letter ISO code -> Substring match -> "unknown"
# The cache is built once and shared read-only by all transform workers.

"""
Country normalization for free-text geography fields.
"""

import logging
import re
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

import pycountry

logger = logging.getLogger(__name__)

GLOBAL = "global"
UNKNOWN = "unknown"

TOKEN_SPLIT_RE = re.compile(r"[,;|]")
ALPHA2_RE = re.compile(r"^[a-z]{2}$")

COUNTRY_ALIASES: List[Tuple[str, str]] = [
    ("united states", "us"),
    ("usa", "us"),
    ("united states of america", "us"),
    ("united kingdom", "gb"),
    ("uk", "gb"),
    ("great britain", "gb"),
    ("britain", "gb"),
    ("england", "gb"),
    ("scotland", "gb"),
    ("wales", "gb"),
    ("germany", "de"),
    ("deutschland", "de"),
    ("netherlands", "nl"),
    ("holland", "nl"),
    ("switzerland", "ch"),
    ("schweiz", "ch"),
    ("brazil", "br"),
    ("brasil", "br"),
    ("south korea", "kr"),
    ("korea", "kr"),
    ("czech republic", "cz"),
    ("czechia", "cz"),
    ("congo", "cg"),
    ("democratic republic of the congo", "cd"),
    ("drc", "cd"),
    ("cape verde", "cv"),
    ("cabo verde", "cv"),
    ("ivory coast", "ci"),
    ("cote d'ivoire", "ci"),
    ("myanmar", "mm"),
    ("burma", "mm"),
    ("united arab emirates", "ae"),
    ("uae", "ae"),
    ("french guiana", "gf"),
    ("north macedonia", "mk"),
    ("russia", "ru"),
    ("turkey", "tr"),
    ("vietnam", "vn"),
    ("kosovo", "xk"),
    ("world", GLOBAL),
]


def iso_countries() -> List[Tuple[str, str]]:
    """
    ISO 3166 countries as (lowercase name, lowercase alpha-2).

    Ordered by English short name. This order is the tie-break for partial
    matches.
    """
    countries = sorted(pycountry.countries, key=lambda c: c.name)
    return [(c.name.lower(), c.alpha_2.lower()) for c in countries]


def build_country_cache() -> Dict[str, str]:
    """
    Build the lookup of country names, codes and aliases.

    Returns:
        Mapping from lowercase name/alias/alpha-2 to lowercase alpha-2
    """
    cache: Dict[str, str] = {}

    for country in pycountry.countries:
        code = country.alpha_2.lower()
        names = [country.name]
        for attr in ("common_name", "official_name"):
            value = getattr(country, attr, None)
            if value:
                names.append(value)
        for name in names:
            lowered = name.lower()
            cache[lowered] = code
            # tokens arrive with hyphens already replaced by spaces
            cache[lowered.replace("-", " ")] = code
        cache[code] = code

    for alias, code in COUNTRY_ALIASES:
        cache[alias] = code

    logger.info(f"Country cache built ({len(cache)} entries)")
    return cache


class CountryResolver:
    """Resolves free-text country lists to ISO alpha-2 codes."""

    def __init__(self, cache: Optional[Mapping[str, str]] = None):
        self._cache = MappingProxyType(dict(cache if cache is not None else build_country_cache()))
        self._countries = tuple(iso_countries())
        self._alpha2 = frozenset(code for _, code in self._countries)

    def __reduce__(self):
        # MappingProxyType does not pickle; process pool workers rebuild from a dict
        return (self.__class__, (dict(self._cache),))

    @property
    def cache(self) -> Mapping[str, str]:
        return self._cache

    def __len__(self) -> int:
        return len(self._cache)

    def map_country(self, token: str) -> str:
        """
        Resolve a single lowercased token.

        Args:
            token: Country text such as "en:united-kingdom", "france" or "de"

        Returns:
            Lowercase alpha-2 code, "global" or "unknown"
        """
        name = token.lower().strip()
        if ":" in name:
            name = name.split(":", 1)[1]
        name = name.replace("-", " ").strip()

        if not name:
            return UNKNOWN

        code = self._cache.get(name)
        if code is not None:
            return code

        if ALPHA2_RE.match(name) and name in self._alpha2:
            return name

        # Partial match for compound names; first entry in ISO order wins.
        for country_name, alpha2 in self._countries:
            if name in country_name or country_name in name:
                return alpha2

        return UNKNOWN

    def normalize(self, countries_text: Optional[str]) -> List[str]:
        """
        Resolve a comma/semicolon/pipe separated list of countries.

        Returns:
            Codes in first-seen order without duplicates; ["unknown"] if the
            text is empty
        """
        codes: List[str] = []
        for raw in TOKEN_SPLIT_RE.split(countries_text or ""):
            token = raw.strip().lower()
            if not token:
                continue
            if "world" in token:
                code = GLOBAL
            else:
                code = self.map_country(token)
            if code not in codes:
                codes.append(code)

        if not codes:
            codes.append(UNKNOWN)
        return codes
