"""
Find-or-create resolution of the locations and products a sales row refers to.
"""

import logging
import re
from typing import Optional

from . import settings
from .models import Location, Product
from .parsers import normalize_location_code
from .store import SqlStore

logger = logging.getLogger(__name__)

_FLAVOR_SUFFIX = re.compile(
    r"\s+(" + "|".join(settings.FLAVOR_QUALIFIERS) + r").*$", re.IGNORECASE
)


def categorize_product(product_name: str) -> str:
    name = product_name.lower()
    for category, keywords in settings.CATEGORY_KEYWORDS:
        if any(keyword in name for keyword in keywords):
            return category
    return settings.DEFAULT_CATEGORY


def normalize_product_name(name: str) -> str:
    """'Celsius Arctic Berry' -> 'celsius'. Drops the first flavor word and what follows."""
    return _FLAVOR_SUFFIX.sub("", name).strip().lower()


class LocationResolver:
    def __init__(self, store: SqlStore):
        self.store = store

    def candidate_codes(self, location_code: str) -> list[str]:
        """Every spelling of the code that names the same site, most preferred first."""
        supplied = location_code.strip()
        normalized = normalize_location_code(supplied)
        legacy = f"{settings.LEGACY_LOCATION_PREFIX}{normalized}"

        codes = []
        for code in (normalized, supplied, legacy):
            if code not in codes:
                codes.append(code)
        return codes

    def find(self, location_code: str) -> Optional[Location]:
        codes = self.candidate_codes(location_code)
        matches = self.store.find_locations_by_codes(codes)
        if not matches:
            return None
        return min(matches, key=lambda loc: codes.index(loc.location_code))

    def resolve(self, location_code: str, data_source: str) -> Location:
        location = self.find(location_code)
        if location is not None:
            return location

        code = normalize_location_code(location_code)
        location = self.store.insert_location(
            location_code=code,
            name=f"Location {code}",
            address=f"Auto-created from {data_source} data",
        )
        logger.info(f"  > 🆕 Created location {code}")
        return location


class ProductResolver:
    """Exact UPC match, then a fuzzy name match, then create."""

    def __init__(self, store: SqlStore):
        self.store = store

    def find_exact(self, upc: str) -> Optional[Product]:
        if not upc:
            return None
        return self.store.find_product_by_upc(upc)

    def find_similar(self, name: str) -> Optional[Product]:
        fragment = normalize_product_name(name)
        if not fragment:
            return None
        matches = self.store.search_products_by_name(fragment)
        if matches:
            logger.debug(
                f"Matched '{name}' to existing product '{matches[0].name}' by name"
            )
            return matches[0]
        return None

    def create(self, upc: str, name: str) -> Product:
        product = self.store.insert_product(
            name=name, upc=upc or None, category=categorize_product(name)
        )
        logger.info(f"  > 🆕 Created product {name} ({upc}) as {product.category}")
        return product

    def resolve(self, upc: str, name: str) -> Product:
        return self.find_exact(upc) or self.find_similar(name) or self.create(upc, name)
