"""
Rule tables for the label analysis pipeline.

The thresholds, keyword lists and lookup tables live as JSON files under
``labelscan/data`` and are loaded once into an immutable ``RuleSet``.
Every pipeline component takes a ``RuleSet`` at construction and falls
back to ``default_rules()`` when none is given, so tests can inject
their own tables without touching the packaged ones.
"""

import json
import logging
import os
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data")
DATA_DIR_ENV = "LABELSCAN_DATA_DIR"


class RuleSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    ocr_corrections: Tuple[Tuple[str, str], ...]
    nutrition_thresholds: Dict[str, Dict[str, float]]
    risk_keywords: Dict[str, str]
    risk_penalties: Dict[str, float]
    nutrient_ceilings: Dict[str, float]
    sodium_ambiguous_band: Tuple[float, float]
    ingredient_ratings: Dict[str, str]
    ingredient_insights: Dict[str, str]
    synonyms: Dict[str, str]
    allergen_keywords: Dict[str, Tuple[str, ...]]
    suitability: Dict[str, Dict[str, float]]
    animal_keywords: Tuple[str, ...]
    dairy_keywords: Tuple[str, ...]
    plant_based_exceptions: Tuple[str, ...]


def _load_json(data_dir: str, filename: str):
    path = os.path.join(data_dir, filename)
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_rules(data_dir: Optional[str] = None) -> RuleSet:
    """
    Load every rule table from ``data_dir``.
    Resolution order: explicit argument, ``LABELSCAN_DATA_DIR``, packaged data.
    """
    data_dir = data_dir or os.environ.get(DATA_DIR_ENV) or DATA_DIR
    logger.debug(f"Loading rule tables from {data_dir}")

    corrections: List[List[str]] = _load_json(data_dir, "ocr_corrections.json")
    health = _load_json(data_dir, "health_rules.json")
    ingredient_db = _load_json(data_dir, "ingredient_db.json")
    synonyms = _load_json(data_dir, "synonym_map.json")
    allergens = _load_json(data_dir, "allergens.json")
    suitability = _load_json(data_dir, "suitability_rules.json")

    return RuleSet(
        ocr_corrections=tuple((wrong, right) for wrong, right in corrections),
        nutrition_thresholds=health["nutrition_thresholds"],
        risk_keywords=health["risk_keywords"],
        risk_penalties=health["risk_penalties"],
        nutrient_ceilings=health["nutrient_ceilings"],
        sodium_ambiguous_band=tuple(health["sodium_ambiguous_band"]),
        ingredient_ratings={k: v["rating"] for k, v in ingredient_db.items()},
        ingredient_insights={k: v.get("insight", "") for k, v in ingredient_db.items()},
        synonyms=synonyms,
        allergen_keywords={k: tuple(v) for k, v in allergens.items()},
        suitability={
            k: v for k, v in suitability.items() if isinstance(v, dict)
        },
        animal_keywords=tuple(suitability.get("animal_keywords", [])),
        dairy_keywords=tuple(suitability.get("dairy_keywords", [])),
        plant_based_exceptions=tuple(suitability.get("plant_based_exceptions", [])),
    )


@lru_cache(maxsize=1)
def default_rules() -> RuleSet:
    return load_rules()
