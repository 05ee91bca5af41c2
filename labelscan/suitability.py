"""
Product Suitability Engine - rule-based personal verdict.

Scores a product against a user's health profile, starting from 100 and
deducting penalties. Kept separate from the generic health score in
``health_engine``: the two answer different questions and use different
scales.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from labelscan.allergens import match_allergens
from labelscan.config import RuleSet, default_rules
from labelscan.models import (
    DietType,
    HealthProfile,
    Lifestyle,
    ProductRecord,
    ProductSummary,
    RiskTier,
    SuitabilityVerdict,
    Verdict,
)

logger = logging.getLogger(__name__)

MAX_SCORE = 100
ALLERGEN_PENALTY_SCORE = 0
DIET_PENALTY = 50

# Penalties: (above low threshold, above high threshold) for a high-risk
# user; a single penalty for medium and low-risk users.
HIGH_RISK_PENALTIES = (25, 40)
MEDIUM_RISK_PENALTY = 20
LOW_RISK_PENALTY = 15
FAT_PENALTIES = {"high": 15, "moderate": 8}
CALORIE_PENALTIES = {Lifestyle.SEDENTARY.value: 20}
DEFAULT_CALORIE_PENALTY = 10

# grams of salt per mg of sodium
SALT_PER_MG_SODIUM = 2.5 / 1000

VERDICT_DISPLAY = {
    Verdict.GOOD.value: {
        "emoji": "✅",
        "label": "Good for you",
        "color": "#4caf50",
        "bgColor": "#e8f5e8",
    },
    Verdict.MODERATE.value: {
        "emoji": "⚠️",
        "label": "Consume in moderation",
        "color": "#ff9800",
        "bgColor": "#fff8e1",
    },
    Verdict.AVOID.value: {
        "emoji": "❌",
        "label": "Avoid",
        "color": "#f44336",
        "bgColor": "#ffebee",
    },
}

Penalty = Tuple[int, List[str]]


def _fmt(value: float) -> str:
    return f"{value:g}"


class SuitabilityEvaluator:
    def __init__(self, rules: Optional[RuleSet] = None):
        self.rules = rules or default_rules()
        self.limits = self.rules.suitability

    def evaluate(
        self,
        product: Union[ProductSummary, Mapping[str, Any]],
        profile: Union[HealthProfile, Mapping[str, Any]],
    ) -> SuitabilityVerdict:
        if not isinstance(product, ProductSummary):
            product = ProductSummary.model_validate(product)
        if not isinstance(profile, HealthProfile):
            profile = HealthProfile.model_validate(profile)

        # Allergens end the evaluation: no nutritional trade-off outweighs them.
        found = match_allergens(product.ingredients_text, profile.allergy_flags, self.rules.allergen_keywords)
        if found:
            logger.info(f"Allergen match {found}: verdict avoid")
            return SuitabilityVerdict(
                verdict=Verdict.AVOID,
                score=ALLERGEN_PENALTY_SCORE,
                reasons=[f"Contains {', '.join(found)} - matches your allergy profile"],
            )

        score = MAX_SCORE
        reasons: List[str] = []
        for penalty, why in (
            self.evaluate_sugar(product.sugar, profile.sugar_risk),
            self.evaluate_salt(product.salt, profile.salt_risk),
            self.evaluate_fat(product.fat),
            self.evaluate_calories(product.calories, profile.lifestyle),
            self.evaluate_diet(product.ingredients_text, profile.diet_type),
        ):
            score -= penalty
            reasons.extend(why)

        score = max(0, score)
        verdict = self.determine_verdict(score)
        logger.info(f"Suitability score {score}: {verdict.value}")
        return SuitabilityVerdict(verdict=verdict, score=score, reasons=reasons)

    def _risk_penalty(self, value: Optional[float], risk, limits: Mapping[str, float]) -> int:
        if value is None:
            return 0
        risk = RiskTier(risk)
        if risk == RiskTier.HIGH:
            if value > limits["high"]:
                return HIGH_RISK_PENALTIES[1]
            if value > limits["low"]:
                return HIGH_RISK_PENALTIES[0]
            return 0
        if risk == RiskTier.MEDIUM:
            return MEDIUM_RISK_PENALTY if value > limits["high"] else 0
        if value > limits["high"] * limits.get("low_risk_factor", 1.5):
            return LOW_RISK_PENALTY
        return 0

    def evaluate_sugar(self, sugar: Optional[float], sugar_risk) -> Penalty:
        penalty = self._risk_penalty(sugar, sugar_risk, self.limits["sugar"])
        if not penalty:
            return 0, []
        risk = RiskTier(sugar_risk)
        if risk == RiskTier.HIGH:
            why = f"High sugar content ({_fmt(sugar)}g) - not ideal for your sugar sensitivity"
        elif risk == RiskTier.MEDIUM:
            why = f"Very high sugar content ({_fmt(sugar)}g) - consume in moderation"
        else:
            why = f"Extremely high sugar content ({_fmt(sugar)}g)"
        return penalty, [why]

    def evaluate_salt(self, salt: Optional[float], salt_risk) -> Penalty:
        penalty = self._risk_penalty(salt, salt_risk, self.limits["salt"])
        if not penalty:
            return 0, []
        risk = RiskTier(salt_risk)
        if risk == RiskTier.HIGH:
            why = f"High salt content ({_fmt(salt)}g) - not suitable for your blood pressure profile"
        elif risk == RiskTier.MEDIUM:
            why = f"Very high salt content ({_fmt(salt)}g) - monitor your intake"
        else:
            why = f"Extremely high salt content ({_fmt(salt)}g)"
        return penalty, [why]

    def evaluate_fat(self, fat: Optional[float]) -> Penalty:
        if fat is None:
            return 0, []
        limits = self.limits["fat"]
        if fat > limits["high"]:
            return FAT_PENALTIES["high"], [f"High fat content ({_fmt(fat)}g) - limit consumption"]
        if fat > limits["moderate"]:
            return FAT_PENALTIES["moderate"], [f"Moderate fat content ({_fmt(fat)}g) - consume in moderation"]
        return 0, []

    def evaluate_calories(self, calories: Optional[float], lifestyle) -> Penalty:
        if calories is None:
            return 0, []
        lifestyle = Lifestyle(lifestyle).value
        multiplier = self.limits["lifestyle_multipliers"].get(lifestyle, 1.0)
        threshold = self.limits["calories"]["high"] * multiplier
        if calories <= threshold:
            return 0, []
        penalty = CALORIE_PENALTIES.get(lifestyle, DEFAULT_CALORIE_PENALTY)
        if lifestyle == Lifestyle.SEDENTARY.value:
            advice = "consider your activity level"
        else:
            advice = "balance with your active lifestyle"
        return penalty, [f"High calorie content ({_fmt(calories)} kcal) - {advice}"]

    def evaluate_diet(self, ingredients_text: Optional[str], diet_type) -> Penalty:
        diet_type = DietType(diet_type)
        if not ingredients_text or diet_type == DietType.NON_VEGETARIAN:
            return 0, []

        text = ingredients_text.lower()
        for phrase in self.rules.plant_based_exceptions:
            text = text.replace(phrase, " ")

        has_animal = any(word in text for word in self.rules.animal_keywords)
        if diet_type == DietType.VEGAN:
            has_dairy = any(word in text for word in self.rules.dairy_keywords)
            if has_animal or has_dairy:
                return DIET_PENALTY, ["Contains animal products - not suitable for vegan diet"]
        elif has_animal:
            return DIET_PENALTY, ["Contains meat/fish - not suitable for vegetarian diet"]
        return 0, []

    def determine_verdict(self, score: int) -> Verdict:
        bands = self.limits["verdict_bands"]
        if score >= bands["good"]:
            return Verdict.GOOD
        if score >= bands["moderate"]:
            return Verdict.MODERATE
        return Verdict.AVOID


def summary_from_record(record: ProductRecord) -> ProductSummary:
    """Suitability input from a product-database record; salt derived from sodium when absent."""
    nutrients = record.nutrients
    salt = nutrients.get("salt")
    if salt is None and nutrients.get("sodium") is not None:
        salt = round(nutrients["sodium"] * SALT_PER_MG_SODIUM, 3)
    return ProductSummary(
        sugar=nutrients.get("sugar"),
        salt=salt,
        fat=nutrients.get("fat"),
        calories=nutrients.get("calories"),
        ingredients_text=record.ingredients_text,
    )


def verdict_display(verdict) -> Dict[str, str]:
    key = verdict.value if isinstance(verdict, Verdict) else verdict
    return VERDICT_DISPLAY.get(key, VERDICT_DISPLAY[Verdict.MODERATE.value])


def evaluate_product_for_user(product, profile) -> SuitabilityVerdict:
    return SuitabilityEvaluator().evaluate(product, profile)
