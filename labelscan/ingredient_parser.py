"""
LabelScan Ingredient Parser
===========================

Splits the ingredients region of a label into ``IngredientEntry`` objects:
- comma/semicolon split, bracket characters left by the split are dropped
- length guards against OCR noise and over-captured sentences
- quantity taken from the first bracketed group, e.g. "cocoa (12%)"
- rating from the ingredient table via synonym + fuzzy lookup
"""

import logging
import re
from typing import Dict, List, Optional

from labelscan.config import RuleSet, default_rules
from labelscan.fuzzy_matcher import get_best_match
from labelscan.models import IngredientEntry, IngredientRating

logger = logging.getLogger(__name__)

MAX_INGREDIENTS = 15
MIN_TOKEN_LENGTH = 3
MAX_TOKEN_LENGTH = 99
NOT_SPECIFIED = "Not specified"

_SPLIT = re.compile(r"[,;]")
_BRACKETED = re.compile(r"\(([^)]*)\)")
_STRAY_BRACKETS = re.compile(r"[()\[\]]")
_SPACES = re.compile(r"\s+")


def _tokens(region: str):
    """Yield comma/semicolon separated tokens lazily so the entry cap stops the scan."""
    start = 0
    for match in _SPLIT.finditer(region):
        yield region[start:match.start()]
        start = match.end()
    yield region[start:]


class IngredientParser:
    def __init__(self, rules: Optional[RuleSet] = None, max_ingredients: int = MAX_INGREDIENTS):
        self.rules = rules or default_rules()
        self.max_ingredients = max_ingredients

    def extract(self, region: Optional[str]) -> List[IngredientEntry]:
        """
        An empty list means the ingredients are unknown, not that the
        product has none.
        """
        if not region or not isinstance(region, str):
            return []

        entries: List[IngredientEntry] = []
        for token in _tokens(region):
            token = token.strip()
            if len(token) < MIN_TOKEN_LENGTH or len(token) > MAX_TOKEN_LENGTH:
                continue

            name = _STRAY_BRACKETS.sub(" ", _BRACKETED.sub("", token))
            name = _SPACES.sub(" ", name).strip().lower()
            if not name:
                continue
            quantity = _BRACKETED.search(token)

            entries.append(IngredientEntry(
                name=name,
                common_name=token,
                quantity=quantity.group(1).strip() if quantity and quantity.group(1).strip() else NOT_SPECIFIED,
                rating=self.rate(name),
            ))
            if len(entries) >= self.max_ingredients:
                break

        logger.debug(f"Found {len(entries)} ingredients")
        return entries

    def rate(self, name: str) -> IngredientRating:
        matched = get_best_match(name, self.rules.ingredient_ratings, self.rules.synonyms)
        if matched is None:
            return IngredientRating.MODERATE
        return IngredientRating(self.rules.ingredient_ratings[matched])


def ingredient_insights(entries: List[IngredientEntry], rules: Optional[RuleSet] = None) -> Dict[str, List[str]]:
    """Pros for good ingredients, cons for bad ones."""
    rules = rules or default_rules()
    pros: List[str] = []
    cons: List[str] = []
    for entry in entries:
        if entry.rating == IngredientRating.GOOD:
            key = get_best_match(entry.name, rules.ingredient_insights, rules.synonyms)
            pros.append(rules.ingredient_insights.get(key) or f"Contains {entry.name} - Generally safe")
        elif entry.rating == IngredientRating.BAD:
            key = get_best_match(entry.name, rules.ingredient_insights, rules.synonyms)
            cons.append(rules.ingredient_insights.get(key) or f"Contains {entry.name} - May have health concerns")
    return {"pros": pros, "cons": cons}


def extract_ingredients(region: Optional[str]) -> List[IngredientEntry]:
    return IngredientParser().extract(region)
