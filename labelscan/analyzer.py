"""
Fault-tolerant label analysis.

``FaultTolerantAnalyzer.analyze_text`` is the outer boundary of the
pipeline: whatever the OCR collaborator hands over, it returns a
well-formed ``AnalysisResult`` and never raises. Insufficient input gets a
fixed minimal response; an unexpected fault inside any stage gets an
emergency fallback with the same shape.
"""

import logging
import math
import re
from typing import Any, List, Mapping, Optional

from labelscan.confidence import ConfidenceAggregator
from labelscan.config import RuleSet, default_rules
from labelscan.health_engine import NO_DATA_SCORE, HealthAnalysisEngine
from labelscan.ingredient_parser import IngredientParser, ingredient_insights
from labelscan.models import (
    NUTRIENT_KEYS,
    AnalysisResult,
    ConfidenceTier,
    HealthAnalysis,
    IngredientEntry,
    NutrientExtraction,
    ProductInfo,
    ProductRecord,
    ProsAndCons,
    RawOCRResult,
    RiskLevel,
)
from labelscan.nutrition_parser import NutritionParser
from labelscan.text_normalizer import TextNormalizer, detect_sections

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 5
DEFAULT_OCR_CONFIDENCE = 0.8
MAX_LISTED = 3
MIN_RATING = 1.0
MAX_RATING = 10.0

HEALTH_LABELS = {
    RiskLevel.LOW.value: "Healthy",
    RiskLevel.MODERATE.value: "Moderate",
    RiskLevel.HIGH.value: "Unhealthy",
}

_NAME_EXCLUDE = re.compile(
    r"nutrition|calories|energy|fat|sugar|protein|sodium|ingredients|per 100|per serving", re.I
)
_HAS_LETTER = re.compile(r"[a-zA-Z]")


def extract_product_name(text: str) -> Optional[str]:
    """First short line in the top of the label that is not part of the nutrition panel."""
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    for line in lines[:3]:
        if len(line) < 50 and _HAS_LETTER.search(line) and not _NAME_EXCLUDE.search(line):
            return line
    return None


def determine_category(text: str) -> str:
    lower = (text or "").lower()
    if "drink" in lower or "juice" in lower:
        return "Beverage"
    if "snack" in lower or "chip" in lower:
        return "Snack"
    return "Packaged Food"


def health_label(risk_level: str) -> str:
    return HEALTH_LABELS.get(risk_level, "Moderate")


def data_used(nutrition: Optional[Mapping[str, float]], ingredients: List[IngredientEntry]) -> str:
    if nutrition and ingredients:
        return "Both"
    if nutrition:
        return "Nutrition"
    if ingredients:
        return "Ingredients"
    return "Limited"


def generate_safe_comment(risk_level: str, confidence: str) -> str:
    """Closing sentence for the result; hedged when confidence is low."""
    hedged = confidence == ConfidenceTier.LOW
    qualifier = " (based on limited data)" if hedged else ""
    if risk_level == RiskLevel.LOW:
        return (
            f"This product appears to be a healthy choice{qualifier}. "
            "Suitable for regular consumption as part of a balanced diet."
        )
    if risk_level == RiskLevel.MODERATE:
        verb = "appears to be" if hedged else "is"
        return (
            f"This product {verb} acceptable for occasional consumption{qualifier}. "
            "Monitor portion sizes and balance with healthier options."
        )
    verb = "appears to have" if hedged else "may have"
    return (
        f"This product {verb} health concerns{qualifier}. "
        "Consider healthier alternatives for regular consumption."
    )


def _coerce_confidence(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(confidence):
        return 0.0
    return min(1.0, max(0.0, confidence))


def _clamp_rating(score: float) -> float:
    return round(min(MAX_RATING, max(MIN_RATING, score)), 1)


class FaultTolerantAnalyzer:
    def __init__(self, rules: Optional[RuleSet] = None):
        self.rules = rules or default_rules()
        self.normalizer = TextNormalizer(self.rules)
        self.nutrition_parser = NutritionParser(self.rules)
        self.ingredient_parser = IngredientParser(self.rules)
        self.health_engine = HealthAnalysisEngine(self.rules)
        self.aggregator = ConfidenceAggregator()

    def analyze_text(self, ocr_text: Any, ocr_confidence: Any = DEFAULT_OCR_CONFIDENCE) -> AnalysisResult:
        try:
            result = self._perform_safe_analysis(ocr_text, ocr_confidence)
        except Exception as exc:
            logger.exception("Label analysis failed, returning emergency fallback")
            return self._emergency_fallback(ocr_text, exc)
        logger.info(f"Analysis complete: {result.risk_level} risk, {result.confidence_level} confidence")
        return result

    def analyze_ocr(self, ocr: RawOCRResult) -> AnalysisResult:
        return self.analyze_text(ocr.text, ocr.confidence)

    def analyze_record(self, record: ProductRecord) -> AnalysisResult:
        """Generic health analysis of a product-database record; never raises."""
        try:
            return self._analyze_record(record)
        except Exception as exc:
            logger.exception("Product record analysis failed, returning emergency fallback")
            return self._emergency_fallback("", exc)

    def _perform_safe_analysis(self, ocr_text: Any, ocr_confidence: Any) -> AnalysisResult:
        confidence = _coerce_confidence(ocr_confidence)
        if not ocr_text or not isinstance(ocr_text, str) or len(ocr_text.strip()) < MIN_TEXT_LENGTH:
            return self._minimal_response("Insufficient text detected", confidence)

        normalized = self.normalizer.normalize(ocr_text)
        sections = detect_sections(normalized)

        if sections.nutrition:
            extraction = self.nutrition_parser.extract(sections.nutrition, confidence)
        else:
            # No nutrition panel anchor: search the rest of the text, low confidence only.
            remainder = normalized
            if sections.ingredients:
                remainder = remainder.replace(sections.ingredients, " ")
            extraction = self.nutrition_parser.extract(remainder, confidence, anchored=False)

        ingredients = self.ingredient_parser.extract(sections.ingredients)
        ingredient_tier = self.aggregator.ingredient_level(len(ingredients))
        overall = self.aggregator.overall(extraction.confidence, ingredient_tier, confidence)

        nutrition = dict(extraction.values) or None
        analysis = self.health_engine.analyze_health(nutrition, ingredients, overall)

        return self._build_result(
            product=ProductInfo(
                name=extract_product_name(ocr_text) or "Scanned Product",
                category=determine_category(ocr_text),
                data_used=data_used(nutrition, ingredients),
            ),
            extraction=extraction,
            ingredients=ingredients,
            analysis=analysis,
            overall=overall,
            raw_text=ocr_text,
            ocr_confidence=confidence,
        )

    def _analyze_record(self, record: ProductRecord) -> AnalysisResult:
        values = {}
        for key in NUTRIENT_KEYS:
            value = record.nutrients.get(key)
            # Database sodium is already in mg, so the OCR ambiguity band does not apply.
            if value is not None and self.nutrition_parser.is_plausible(key, value, converted=True):
                values[key] = value
        missing = [key for key in NUTRIENT_KEYS if key not in values]
        extraction = NutrientExtraction(
            values=values,
            per_field_confidence={key: ConfidenceTier.HIGH for key in values},
            missing=missing,
            confidence=self.aggregator.level(1.0, len(values)),
            reason="Nutrition data from product database" if values else "No nutrition data in product database",
        )

        ingredients = self.ingredient_parser.extract(record.ingredients_text)
        ingredient_tier = self.aggregator.ingredient_level(len(ingredients))
        overall = self.aggregator.overall(extraction.confidence, ingredient_tier, 1.0)

        nutrition = dict(values) or None
        analysis = self.health_engine.analyze_health(nutrition, ingredients, overall)

        return self._build_result(
            product=ProductInfo(
                name=record.name,
                category=determine_category(f"{record.name} {record.ingredients_text or ''}"),
                data_used=data_used(nutrition, ingredients),
            ),
            extraction=extraction,
            ingredients=ingredients,
            analysis=analysis,
            overall=overall,
            raw_text="",
            ocr_confidence=None,
        )

    def _build_result(
        self,
        product: ProductInfo,
        extraction: NutrientExtraction,
        ingredients: List[IngredientEntry],
        analysis: HealthAnalysis,
        overall: ConfidenceTier,
        raw_text: str,
        ocr_confidence: Optional[float],
    ) -> AnalysisResult:
        extracted = extraction.detected + (["ingredients"] if ingredients else [])
        missing = extraction.missing + ([] if ingredients else ["ingredients"])
        insights = ingredient_insights(ingredients, self.rules)

        return AnalysisResult(
            product=product,
            overall_rating=_clamp_rating(analysis.score),
            health_label=health_label(analysis.risk_level),
            risk_level=analysis.risk_level,
            nutrition_facts=dict(extraction.values) or None,
            ingredients=ingredients,
            health_warnings=analysis.warnings[:MAX_LISTED],
            pros_and_cons=ProsAndCons(
                pros=analysis.positives[:MAX_LISTED] or ["Text successfully extracted"],
                cons=analysis.concerns[:MAX_LISTED] or ["No major concerns identified"],
            ),
            raw_text=raw_text,
            ocr_confidence=ocr_confidence,
            confidence_level=overall,
            extracted_fields=extracted,
            missing_fields=missing,
            analysis_notes=analysis.notes,
            final_comment=generate_safe_comment(analysis.risk_level, overall),
            reason=self._reason(extraction, ingredients, overall),
            health_analysis=analysis,
            ingredient_insights=ProsAndCons(pros=insights["pros"], cons=insights["cons"]),
        )

    @staticmethod
    def _reason(extraction: NutrientExtraction, ingredients: List[IngredientEntry], confidence) -> str:
        reasons = []
        if confidence == ConfidenceTier.LOW:
            reasons.append("Low analysis confidence due to unclear text")
        reasons.append(extraction.reason)
        if ingredients:
            reasons.append(f"Found {len(ingredients)} ingredients")
        else:
            reasons.append("No ingredient list detected")
        return ". ".join(r for r in reasons if r)

    def _conservative_result(
        self,
        reason: str,
        ocr_confidence: Optional[float],
        raw_text: str,
        data_used_label: str,
        warning: str,
        pros: List[str],
        cons: List[str],
        final_comment: str,
        error: Optional[str] = None,
    ) -> AnalysisResult:
        analysis = HealthAnalysis(
            risk_level=RiskLevel.MODERATE,
            score=NO_DATA_SCORE,
            warnings=[warning],
            notes=[reason],
            confidence=ConfidenceTier.LOW,
        )
        return AnalysisResult(
            product=ProductInfo(name="Scanned Product", category="Food Product", data_used=data_used_label),
            overall_rating=NO_DATA_SCORE,
            health_label=health_label(RiskLevel.MODERATE.value),
            risk_level=RiskLevel.MODERATE,
            nutrition_facts=None,
            ingredients=[],
            health_warnings=[warning],
            pros_and_cons=ProsAndCons(pros=pros, cons=cons),
            raw_text=raw_text,
            ocr_confidence=ocr_confidence,
            confidence_level=ConfidenceTier.LOW,
            extracted_fields=[],
            missing_fields=["nutrition", "ingredients"],
            analysis_notes=[reason],
            final_comment=final_comment,
            reason=reason,
            health_analysis=analysis,
            error=error,
        )

    def _minimal_response(self, reason: str, ocr_confidence: float) -> AnalysisResult:
        return self._conservative_result(
            reason=reason,
            ocr_confidence=ocr_confidence,
            raw_text="",
            data_used_label="Limited",
            warning="Analysis incomplete due to unclear text",
            pros=["Image processed successfully"],
            cons=["Limited data available for analysis"],
            final_comment=(
                "Analysis incomplete due to unclear label text. For accurate results, "
                "ensure clear, well-lit images of nutrition labels."
            ),
        )

    def _emergency_fallback(self, ocr_text: Any, exc: Exception) -> AnalysisResult:
        message = f"System error: {exc}"
        return self._conservative_result(
            reason=message,
            ocr_confidence=None,
            raw_text=ocr_text if isinstance(ocr_text, str) else "",
            data_used_label="Error Recovery",
            warning="System error during analysis",
            pros=["System recovered from error"],
            cons=["Analysis could not be completed"],
            final_comment=(
                "Analysis could not be completed due to a system error. "
                "Please try again with a clearer image."
            ),
            error=f"{type(exc).__name__}: {exc}",
        )


def analyze_text(ocr_text: Any, ocr_confidence: Any = DEFAULT_OCR_CONFIDENCE) -> AnalysisResult:
    return FaultTolerantAnalyzer().analyze_text(ocr_text, ocr_confidence)
