"""
OCR text clean-up and section detection.

``normalize`` turns raw OCR output into a lowercase, single-spaced string
with common OCR misreads repaired; ``detect_sections`` slices that string
into a nutrition-facts region and an ingredients region.
"""

import logging
import re
from typing import Any, Optional

from labelscan.config import RuleSet, default_rules
from labelscan.models import Sections

logger = logging.getLogger(__name__)

_UNIT = r"(mg|g|kcal)\b"

# Letters misread inside a number, or between a number and its unit.
_DIGIT_CONFUSIONS = (
    (re.compile(r"(?<=\d)o(?=\d)", re.I), "0"),
    (re.compile(r"(?<=\d)[li](?=\d)", re.I), "1"),
    (re.compile(r"(?<=\d)s(?=\d)", re.I), "5"),
    (re.compile(r"(calories?|kcal|energy)\s*o(?=\d)", re.I), r"\1 0"),
    (re.compile(r"(calories?|kcal|energy)\s*[li](?=\d)", re.I), r"\1 1"),
    (re.compile(r"(\d)\s*o\s*" + _UNIT, re.I), r"\g<1>0 \2"),
    (re.compile(r"(\d)\s*[li]\s*" + _UNIT, re.I), r"\g<1>1 \2"),
    (re.compile(r"(\d)\s*s\s*" + _UNIT, re.I), r"\g<1>5 \2"),
)

_SEPARATOR_RUNS = re.compile(r"[|\\/_\-]{2,}")
_NOISE_SYMBOLS = re.compile(r"[^\w\s.,:()%\-]")
_HORIZONTAL_SPACE = re.compile(r"[^\S\n]+")
_SPACE_AROUND_NEWLINE = re.compile(r" *\n[\s]*")
_BROKEN_LINE = re.compile(r"\n(?=[a-z])")

_NUTRITION_REGION = re.compile(
    r"(?:nutrition|energy|calories|per 100\s?g|per serving).*?(?=ingredients|allergens|\Z)",
    re.S,
)
_INGREDIENTS_REGION = re.compile(
    r"ingredients?\s*[:\s]\s*((?:[^.]|(?<=\d)\.(?=\d))*)", re.S
)
_CONTAINS_REGION = re.compile(
    r"contains\s*[:\s]\s*((?:[^.]|(?<=\d)\.(?=\d))*)", re.S
)

# A pass can expose a new misread (e.g. stripping a symbol between a digit
# and a stray "o"), so passes repeat until the text stops changing.
_MAX_PASSES = 5


class TextNormalizer:
    def __init__(self, rules: Optional[RuleSet] = None):
        rules = rules or default_rules()
        self.corrections = tuple(
            (
                re.compile(r"(?<![a-z])" + re.escape(wrong) + r"(?![a-z])", re.I),
                right,
            )
            for wrong, right in rules.ocr_corrections
        )

    def normalize(self, raw_text: Any) -> str:
        if not raw_text or not isinstance(raw_text, str):
            return ""

        logger.debug(f"Normalizing OCR text ({len(raw_text)} chars)")
        text = raw_text
        for _ in range(_MAX_PASSES):
            cleaned = self._single_pass(text)
            if cleaned == text:
                break
            text = cleaned
        logger.debug(f"Normalized text: {len(text)} chars")
        return text

    def _single_pass(self, text: str) -> str:
        text = text.lower().strip()

        for pattern, replacement in _DIGIT_CONFUSIONS:
            text = pattern.sub(replacement, text)

        for pattern, replacement in self.corrections:
            text = pattern.sub(replacement, text)

        text = _SEPARATOR_RUNS.sub(" ", text)
        text = _NOISE_SYMBOLS.sub(" ", text)
        text = _HORIZONTAL_SPACE.sub(" ", text)
        text = _SPACE_AROUND_NEWLINE.sub("\n", text)

        return self.merge_broken_lines(text)

    @staticmethod
    def merge_broken_lines(text: str) -> str:
        """Join a line that continues with a lowercase word onto the previous one."""
        text = _BROKEN_LINE.sub(" ", text)
        return _HORIZONTAL_SPACE.sub(" ", text).strip()


def detect_sections(normalized: str) -> Sections:
    """
    Slice normalized text into nutrition and ingredient regions.
    Either region is None when its anchor keyword is absent.
    """
    if not normalized:
        return Sections()

    nutrition = None
    match = _NUTRITION_REGION.search(normalized)
    if match:
        nutrition = match.group(0).strip() or None

    ingredients = None
    match = _INGREDIENTS_REGION.search(normalized) or _CONTAINS_REGION.search(normalized)
    if match:
        ingredients = match.group(1).strip() or None

    return Sections(nutrition=nutrition, ingredients=ingredients)


def normalize(raw_text: Any) -> str:
    return TextNormalizer().normalize(raw_text)
