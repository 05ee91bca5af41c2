"""
Nutrient extraction from the nutrition-facts region of a label.

Each nutrient has an ordered cascade of ``NutrientPattern`` entries, from
"keyword directly followed by a number" down to "number next to a
truncated keyword stem". The first entry that matches and yields a
plausible value wins, and the entry's tier becomes the reading's
extraction confidence.
"""

import logging
import math
import re
from typing import Dict, List, NamedTuple, Optional, Pattern, Tuple

from labelscan.confidence import ConfidenceAggregator
from labelscan.config import RuleSet, default_rules
from labelscan.models import NUTRIENT_KEYS, ConfidenceTier, NutrientExtraction

logger = logging.getLogger(__name__)

_NUM = r"(\d+(?:\.\d+)?)"
_SEP = r"[\s:()|\-]*"
_LOOSE_SEP = r"[\s|\-]*"
# Rejects a number that is really the kJ half of an "energy" line.
_NOT_KJ = r"(?![\d.]|\s*kj)"
_NOT_SATURATED = r"(?<!saturated )(?<!saturated)(?<!sat )(?<!sat\. )(?<!trans )"

HIGH = ConfidenceTier.HIGH
MEDIUM = ConfidenceTier.MEDIUM


class NutrientPattern(NamedTuple):
    pattern: Pattern
    tier: ConfidenceTier
    # Multiplier applied to the captured number, e.g. salt grams to sodium mg.
    scale: float = 1.0


def _p(regex: str, tier: ConfidenceTier, scale: float = 1.0) -> NutrientPattern:
    return NutrientPattern(re.compile(regex, re.I), tier, scale)


NUTRIENT_PATTERNS: Dict[str, Tuple[NutrientPattern, ...]] = {
    "calories": (
        _p(rf"(?:energy|calories?|kcal){_SEP}{_NUM}{_NOT_KJ}", HIGH),
        _p(rf"{_NUM}\s*(?:kcal|cal|calories?)", MEDIUM),
        _p(rf"(?:ener|calo)[a-z]*{_SEP}{_NUM}{_NOT_KJ}", MEDIUM),
    ),
    "carbohydrates": (
        _p(rf"(?:total\s+)?(?:carbohydrates?|carbs?){_SEP}{_NUM}", HIGH),
        _p(rf"{_NUM}\s*g?\s*carb", MEDIUM),
        _p(rf"carb[a-z]*{_LOOSE_SEP}{_NUM}", MEDIUM),
    ),
    "sugar": (
        _p(rf"sugars?{_SEP}{_NUM}", HIGH),
        _p(rf"{_NUM}\s*g?\s*sugar", MEDIUM),
        _p(rf"sug[a-z]*{_LOOSE_SEP}{_NUM}", MEDIUM),
    ),
    "fat": (
        _p(rf"{_NOT_SATURATED}(?:total\s+)?fat{_SEP}{_NUM}", HIGH),
        _p(rf"{_NUM}\s*g?\s*(?:total\s+)?fat\b", MEDIUM),
        _p(rf"total\s*f[a-z]*{_SEP}{_NUM}", MEDIUM),
    ),
    "saturatedFat": (
        _p(rf"(?:saturated|sat\.?)\s*fat(?:s|ty acids)?{_SEP}{_NUM}", HIGH),
        _p(rf"{_NUM}\s*g?\s*saturated", MEDIUM),
        _p(rf"satur[a-z]*{_SEP}{_NUM}", MEDIUM),
        _p(rf"sat{_LOOSE_SEP}{_NUM}", MEDIUM),
    ),
    "protein": (
        _p(rf"proteins?{_SEP}{_NUM}", HIGH),
        _p(rf"{_NUM}\s*g?\s*protein", MEDIUM),
        _p(rf"prot[a-z]*{_LOOSE_SEP}{_NUM}", MEDIUM),
    ),
    "sodium": (
        _p(rf"sodium{_SEP}{_NUM}", HIGH),
        _p(rf"{_NUM}\s*(?:mg|g)?\s*sodium", MEDIUM),
        _p(rf"sod[a-z]*{_LOOSE_SEP}{_NUM}", MEDIUM),
        _p(rf"salt{_SEP}{_NUM}", MEDIUM, scale=400.0),
    ),
    "fiber": (
        _p(rf"(?:dietary\s+)?fib(?:er|re){_SEP}{_NUM}", HIGH),
        _p(rf"{_NUM}\s*g?\s*fib", MEDIUM),
        _p(rf"fib[a-z]*{_LOOSE_SEP}{_NUM}", MEDIUM),
    ),
}


class NutritionParser:
    def __init__(
        self,
        rules: Optional[RuleSet] = None,
        patterns: Optional[Dict[str, Tuple[NutrientPattern, ...]]] = None,
    ):
        self.rules = rules or default_rules()
        self.patterns = patterns or NUTRIENT_PATTERNS
        self.aggregator = ConfidenceAggregator()

    def is_plausible(self, nutrient: str, value: float, converted: bool = False) -> bool:
        """Sanity bounds per 100g. Out-of-range values are OCR misreads, not clamped."""
        if value is None or math.isnan(value) or value < 0:
            return False

        ceiling = self.rules.nutrient_ceilings.get(nutrient, 1000)
        if nutrient == "sodium":
            # Accepted as mg, except a band too large for grams and too small
            # to be a believable mg reading.
            low, high = self.rules.sodium_ambiguous_band
            if value > ceiling:
                return False
            return converted or not (low < value < high)
        return value <= ceiling

    def extract(
        self,
        region: Optional[str],
        ocr_confidence: float = 0.8,
        anchored: bool = True,
    ) -> NutrientExtraction:
        """
        Extract all known nutrients from ``region``.

        ``anchored=False`` means the text was not recognised as a nutrition
        panel; matches are kept but capped at low confidence.
        """
        values: Dict[str, float] = {}
        tiers: Dict[str, ConfidenceTier] = {}
        missing: List[str] = []

        for nutrient in NUTRIENT_KEYS:
            reading = self._match_nutrient(nutrient, region) if region else None
            if reading is None:
                missing.append(nutrient)
                continue
            value, tier = reading
            values[nutrient] = value
            tiers[nutrient] = tier if anchored else ConfidenceTier.LOW
            logger.debug(f"{nutrient}: {value} ({tiers[nutrient].value} confidence)")

        return NutrientExtraction(
            values=values,
            per_field_confidence=tiers,
            missing=missing,
            confidence=self.aggregator.level(ocr_confidence, len(values)) if anchored else ConfidenceTier.LOW,
            reason=self._reason(len(values), ocr_confidence),
        )

    def _match_nutrient(self, nutrient: str, text: str) -> Optional[Tuple[float, ConfidenceTier]]:
        for entry in self.patterns.get(nutrient, ()):
            match = entry.pattern.search(text)
            if not match:
                continue
            try:
                value = float(match.group(1)) * entry.scale
            except (TypeError, ValueError):
                continue
            if self.is_plausible(nutrient, value, converted=entry.scale != 1.0):
                return round(value, 3), entry.tier
        return None

    def _reason(self, detected: int, ocr_confidence: float) -> str:
        if ocr_confidence < self.aggregator.ocr_floor:
            return "Low OCR confidence detected"
        if detected == 0:
            return "No nutrition values clearly detected"
        if detected >= 4:
            return "Multiple nutrition values detected"
        return "Partial nutrition data detected"


def extract_nutrients(region: Optional[str], ocr_confidence: float = 0.8) -> NutrientExtraction:
    return NutritionParser().extract(region, ocr_confidence)
