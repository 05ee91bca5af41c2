from typing import Iterable, Mapping, Optional

from fuzzywuzzy import fuzz, process

MATCH_CUTOFF = 85


def get_best_match(
    ingredient: str,
    known: Iterable[str],
    synonyms: Optional[Mapping[str, str]] = None,
    cutoff: int = MATCH_CUTOFF,
) -> Optional[str]:
    """Resolve an ingredient name to a key of ``known``: synonym, exact, then fuzzy."""
    ing = ingredient.lower().strip()
    if not ing:
        return None

    # Synonym map first
    if synonyms and ing in synonyms:
        ing = synonyms[ing]

    choices = list(known)
    if ing in choices:
        return ing
    if not choices:
        return None

    # token_sort keeps "wheat flour" from matching "whole wheat flour"
    match = process.extractOne(ing, choices, scorer=fuzz.token_sort_ratio, score_cutoff=cutoff)
    if match:
        return match[0]
    return None
