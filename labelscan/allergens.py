# allergen keyword matching against free ingredient text

from typing import Iterable, List, Mapping, Optional, Sequence

from labelscan.config import default_rules


def keywords_for(allergen: str, allergen_keywords: Optional[Mapping[str, Sequence[str]]] = None) -> Sequence[str]:
    """
    Keyword set for an allergy flag. Unknown flags match on their own name.
    """
    if allergen_keywords is None:
        allergen_keywords = default_rules().allergen_keywords
    key = allergen.lower().strip()
    return allergen_keywords.get(key, (key,))


def match_allergens(
    ingredients_text: Optional[str],
    user_allergens: Iterable[str],
    allergen_keywords: Optional[Mapping[str, Sequence[str]]] = None,
) -> List[str]:
    """
    Returns the user's allergy flags found in the ingredient text, in the
    order the flags were given. Matching is a case-insensitive substring test.
    """
    if not ingredients_text:
        return []
    text = ingredients_text.lower()
    matched = []
    for allergen in user_allergens or []:
        if not allergen or not allergen.strip() or allergen in matched:
            continue
        if any(syn.lower() in text for syn in keywords_for(allergen, allergen_keywords)):
            matched.append(allergen)
    return matched
