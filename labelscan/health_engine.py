"""
Generic, profile-independent health scoring.

The score starts at a 5.0 baseline and every triggered rule adds or
subtracts a fixed amount. The risk level is banded from the final score
only after every adjustment has been applied.
"""

import logging
from typing import List, Mapping, Optional

from labelscan.config import RuleSet, default_rules
from labelscan.models import (
    ConfidenceTier,
    HealthAnalysis,
    IngredientEntry,
    RiskLevel,
)

logger = logging.getLogger(__name__)

BASELINE_SCORE = 5.0
NO_DATA_SCORE = 4.0
LOW_CONFIDENCE_PENALTY = 1.0
LOW_CONFIDENCE_FLOOR = 3.0
LOW_RISK_SCORE = 6.5
MODERATE_RISK_SCORE = 4.0
SIMPLE_LIST_SIZE = 5
COMPLEX_LIST_SIZE = 15

LOW_CONFIDENCE_WARNING = "Analysis based on unclear text - results may be incomplete"


def risk_level_for(score: float) -> RiskLevel:
    if score >= LOW_RISK_SCORE:
        return RiskLevel.LOW
    if score >= MODERATE_RISK_SCORE:
        return RiskLevel.MODERATE
    return RiskLevel.HIGH


def _fmt(value: float) -> str:
    return f"{value:g}"


class _Accumulator:
    def __init__(self):
        self.score = BASELINE_SCORE
        self.warnings: List[str] = []
        self.positives: List[str] = []
        self.concerns: List[str] = []
        self.notes: List[str] = []


class HealthAnalysisEngine:
    def __init__(self, rules: Optional[RuleSet] = None):
        self.rules = rules or default_rules()
        self.thresholds = self.rules.nutrition_thresholds

    def analyze_health(
        self,
        nutrition: Optional[Mapping[str, float]],
        ingredients: Optional[List[IngredientEntry]],
        confidence=ConfidenceTier.LOW,
    ) -> HealthAnalysis:
        confidence = ConfidenceTier(confidence)
        ingredients = ingredients or []
        acc = _Accumulator()

        if nutrition:
            self._score_nutrition(nutrition, acc)
        if ingredients:
            self._score_ingredients(ingredients, acc)

        no_data = not nutrition and not ingredients
        if no_data:
            # Missing data is never scored as healthy.
            acc.score = NO_DATA_SCORE
            acc.notes.append("Limited data available - conservative assessment applied")
            confidence = ConfidenceTier.LOW

        if confidence == ConfidenceTier.LOW:
            if not no_data:
                acc.score = max(acc.score - LOW_CONFIDENCE_PENALTY, min(acc.score, LOW_CONFIDENCE_FLOOR))
            acc.warnings.insert(0, LOW_CONFIDENCE_WARNING)

        risk_level = risk_level_for(acc.score)
        logger.debug(f"Health score {acc.score:.2f} -> {risk_level.value} risk")

        analysis = HealthAnalysis(
            risk_level=risk_level,
            score=round(acc.score, 2),
            warnings=acc.warnings,
            positives=acc.positives,
            concerns=acc.concerns,
            notes=acc.notes,
            confidence=confidence,
        )
        return analysis.model_copy(update={"notes": acc.notes + self.explain(analysis)})

    def _score_nutrition(self, nutrition: Mapping[str, float], acc: _Accumulator) -> None:
        t = self.thresholds

        calories = nutrition.get("calories")
        if calories is not None:
            if calories >= t["calories"]["high"]:
                acc.score -= 1.5
                acc.concerns.append(f"High calorie content ({_fmt(calories)} kcal)")
            elif calories <= t["calories"]["moderate"]:
                acc.positives.append(f"Moderate calorie content ({_fmt(calories)} kcal)")

        sugar = nutrition.get("sugar")
        if sugar is not None:
            if sugar >= t["sugar"]["high"]:
                acc.score -= 2.0
                acc.concerns.append(f"High sugar content ({_fmt(sugar)}g)")
                acc.warnings.append("High sugar - not suitable for diabetics")
            elif sugar <= t["sugar"]["moderate"]:
                acc.score += 0.5
                acc.positives.append(f"Low sugar content ({_fmt(sugar)}g)")

        saturated = nutrition.get("saturatedFat")
        if saturated is not None:
            if saturated >= t["saturatedFat"]["high"]:
                acc.score -= 2.0
                acc.concerns.append(f"High saturated fat ({_fmt(saturated)}g)")
                acc.warnings.append("High saturated fat - heart health concern")
            elif saturated <= t["saturatedFat"]["moderate"]:
                acc.score += 0.5
                acc.positives.append(f"Low saturated fat ({_fmt(saturated)}g)")

        sodium = nutrition.get("sodium")
        if sodium is not None:
            if sodium >= t["sodium"]["high"]:
                acc.score -= 1.5
                acc.concerns.append(f"High sodium content ({_fmt(sodium)}mg)")
                acc.warnings.append("High sodium - may affect blood pressure")
            elif sodium <= t["sodium"]["moderate"]:
                acc.positives.append(f"Moderate sodium content ({_fmt(sodium)}mg)")

        protein = nutrition.get("protein")
        if protein is not None:
            if protein >= t["protein"]["excellent"]:
                acc.score += 1.0
                acc.positives.append(f"Excellent protein source ({_fmt(protein)}g)")
            elif protein >= t["protein"]["good"]:
                acc.score += 0.5
                acc.positives.append(f"Good protein content ({_fmt(protein)}g)")

        fiber = nutrition.get("fiber")
        if fiber is not None:
            if fiber >= t["fiber"]["excellent"]:
                acc.score += 1.0
                acc.positives.append(f"High fiber content ({_fmt(fiber)}g)")
            elif fiber >= t["fiber"]["good"]:
                acc.score += 0.5
                acc.positives.append(f"Good fiber content ({_fmt(fiber)}g)")

    def _score_ingredients(self, ingredients: List[IngredientEntry], acc: _Accumulator) -> None:
        risk_count = 0
        for ingredient in ingredients:
            name = ingredient.name.lower()
            for keyword, severity in self.rules.risk_keywords.items():
                if keyword in name:
                    risk_count += 1
                    acc.score -= self.rules.risk_penalties.get(severity, 0.5)
                    acc.concerns.append(f"Contains {keyword}")

        if len(ingredients) <= SIMPLE_LIST_SIZE:
            acc.positives.append("Simple ingredient list")
        elif len(ingredients) > COMPLEX_LIST_SIZE:
            acc.score -= 0.5
            acc.concerns.append("Complex ingredient list")

        if risk_count == 0:
            acc.positives.append("No major concerning ingredients detected")

    @staticmethod
    def explain(analysis: HealthAnalysis) -> List[str]:
        explanations = []
        if analysis.warnings:
            explanations.append(f"Health concerns: {', '.join(analysis.warnings)}")
        if analysis.concerns:
            explanations.append(f"Product concerns: {', '.join(analysis.concerns[:2])}")
        if analysis.positives:
            explanations.append(f"Positive aspects: {', '.join(analysis.positives[:2])}")
        if analysis.confidence == ConfidenceTier.LOW:
            explanations.append("Analysis confidence is limited due to unclear label text")
        return explanations


def analyze_health(
    nutrition: Optional[Mapping[str, float]],
    ingredients: Optional[List[IngredientEntry]],
    confidence=ConfidenceTier.LOW,
) -> HealthAnalysis:
    return HealthAnalysisEngine().analyze_health(nutrition, ingredients, confidence)
