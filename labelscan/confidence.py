from labelscan.models import ConfidenceTier

_TIER_RANK = {ConfidenceTier.LOW: 1, ConfidenceTier.MEDIUM: 2, ConfidenceTier.HIGH: 3}


class ConfidenceAggregator:
    """
    Turns OCR confidence and extraction counts into a high/medium/low tier.
    OCR confidence alone can only lower a tier, never raise it.
    """

    def __init__(
        self,
        ocr_floor: float = 0.6,
        high_fields: int = 4,
        medium_fields: int = 2,
        medium_ingredients: int = 3,
    ):
        self.ocr_floor = ocr_floor
        self.high_fields = high_fields
        self.medium_fields = medium_fields
        self.medium_ingredients = medium_ingredients

    def level(self, ocr_confidence: float, extracted_count: int) -> ConfidenceTier:
        if ocr_confidence < self.ocr_floor:
            return ConfidenceTier.LOW
        if extracted_count >= self.high_fields:
            return ConfidenceTier.HIGH
        if extracted_count >= self.medium_fields:
            return ConfidenceTier.MEDIUM
        return ConfidenceTier.LOW

    def ingredient_level(self, ingredient_count: int) -> ConfidenceTier:
        if ingredient_count >= self.medium_ingredients:
            return ConfidenceTier.MEDIUM
        return ConfidenceTier.LOW

    def overall(self, nutrition_tier, ingredient_tier, ocr_confidence: float) -> ConfidenceTier:
        """Average the nutrition and ingredient tiers, gated by the OCR floor."""
        if ocr_confidence < self.ocr_floor:
            return ConfidenceTier.LOW
        average = (
            _TIER_RANK[ConfidenceTier(nutrition_tier)] + _TIER_RANK[ConfidenceTier(ingredient_tier)]
        ) / 2
        if average >= 2.5:
            return ConfidenceTier.HIGH
        if average >= 1.5:
            return ConfidenceTier.MEDIUM
        return ConfidenceTier.LOW


def confidence_level(ocr_confidence: float, extracted_count: int) -> ConfidenceTier:
    return ConfidenceAggregator().level(ocr_confidence, extracted_count)
