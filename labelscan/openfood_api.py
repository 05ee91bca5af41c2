"""
Open Food Facts product lookup.

Fetches a product by barcode and maps its per-100g nutriments onto a
``ProductRecord`` in the units the rest of the package uses (kcal, grams,
sodium in mg).
"""

import logging
from typing import Any, Mapping, Optional

import requests

from labelscan.analyzer import FaultTolerantAnalyzer
from labelscan.errors import ProductLookupError, ProductNotFound
from labelscan.models import AnalysisResult, ProductRecord

logger = logging.getLogger(__name__)

API_BASE = "https://world.openfoodfacts.org/api/v0/product/{barcode}.json"
HEADERS = {"User-Agent": "LabelScan/1.0", "Accept": "application/json"}
DEFAULT_TIMEOUT = 8

KJ_PER_KCAL = 4.184

# Open Food Facts nutriment -> ProductRecord key, values taken as-is.
DIRECT_NUTRIMENTS = {
    "sugars_100g": "sugar",
    "saturated-fat_100g": "saturatedFat",
    "fat_100g": "fat",
    "proteins_100g": "protein",
    "fiber_100g": "fiber",
    "carbohydrates_100g": "carbohydrates",
    "salt_100g": "salt",
}


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool) or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def product_record_from_off(barcode: str, product: Mapping[str, Any]) -> ProductRecord:
    """Only nutriments present in the source are carried over."""
    nutriments = product.get("nutriments") or {}
    nutrients = {}

    calories = _number(nutriments.get("energy-kcal_100g"))
    if calories is None:
        energy_kj = _number(nutriments.get("energy_100g"))
        if energy_kj is not None:
            calories = round(energy_kj / KJ_PER_KCAL, 1)
    if calories is not None:
        nutrients["calories"] = calories

    for source, key in DIRECT_NUTRIMENTS.items():
        value = _number(nutriments.get(source))
        if value is not None:
            nutrients[key] = value

    sodium = _number(nutriments.get("sodium_100g"))
    if sodium is not None:
        nutrients["sodium"] = round(sodium * 1000, 3)

    return ProductRecord(
        barcode=barcode,
        name=product.get("product_name") or product.get("generic_name") or "Unknown Product",
        brand=product.get("brands") or None,
        nutrients=nutrients,
        ingredients_text=product.get("ingredients_text_en") or product.get("ingredients_text") or None,
    )


def fetch_product(barcode: str, session=None, timeout: float = DEFAULT_TIMEOUT) -> ProductRecord:
    """
    Look up a barcode. Raises ProductNotFound when the database has no such
    product and ProductLookupError when the database cannot be reached or
    answers with something unusable.
    """
    http = session or requests
    url = API_BASE.format(barcode=barcode)
    logger.info(f"Fetching product {barcode} from Open Food Facts")
    try:
        response = http.get(url, headers=HEADERS, timeout=timeout)
    except requests.RequestException as exc:
        logger.warning(f"Open Food Facts request failed for {barcode}: {exc}")
        raise ProductLookupError(f"Product lookup failed: {exc}") from exc

    if response.status_code == 404:
        raise ProductNotFound(barcode)
    if response.status_code != 200:
        raise ProductLookupError(f"Product lookup failed with status {response.status_code}")

    try:
        data = response.json()
    except ValueError as exc:
        raise ProductLookupError("Product lookup returned invalid JSON") from exc

    if not isinstance(data, dict) or data.get("status") != 1 or not data.get("product"):
        raise ProductNotFound(barcode)

    return product_record_from_off(barcode, data["product"])


def analyze_product_record(record: ProductRecord, analyzer: Optional[FaultTolerantAnalyzer] = None) -> AnalysisResult:
    return (analyzer or FaultTolerantAnalyzer()).analyze_record(record)
