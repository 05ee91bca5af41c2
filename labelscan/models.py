import math
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class NutrientKey(str, Enum):
    CALORIES = "calories"
    CARBOHYDRATES = "carbohydrates"
    SUGAR = "sugar"
    FAT = "fat"
    SATURATED_FAT = "saturatedFat"
    PROTEIN = "protein"
    SODIUM = "sodium"
    FIBER = "fiber"


NUTRIENT_KEYS = tuple(key.value for key in NutrientKey)


class ConfidenceTier(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RiskLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class IngredientRating(str, Enum):
    GOOD = "good"
    MODERATE = "moderate"
    BAD = "bad"


class Verdict(str, Enum):
    GOOD = "good"
    MODERATE = "moderate"
    AVOID = "avoid"


class RiskTier(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DietType(str, Enum):
    NON_VEGETARIAN = "non-vegetarian"
    VEGETARIAN = "vegetarian"
    VEGAN = "vegan"


class Lifestyle(str, Enum):
    SEDENTARY = "sedentary"
    MODERATE = "moderate"
    ACTIVE = "active"


class ScanModel(BaseModel):
    """Immutable value object serialised with the camelCase field names the UI expects."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        use_enum_values=True,
    )


class RawOCRResult(ScanModel):
    text: str = ""
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    provider: str = "unknown"


class Sections(ScanModel):
    nutrition: Optional[str] = None
    ingredients: Optional[str] = None


class NutrientReading(ScanModel):
    nutrient_key: NutrientKey
    value: float = Field(ge=0)
    confidence_tier: ConfidenceTier


class NutrientExtraction(ScanModel):
    # Keys are NutrientKey values. A nutrient that was not found is listed in
    # ``missing`` and never appears in ``values``.
    values: Dict[str, float] = Field(default_factory=dict)
    per_field_confidence: Dict[str, ConfidenceTier] = Field(default_factory=dict)
    missing: List[str] = Field(default_factory=list)
    confidence: ConfidenceTier = ConfidenceTier.LOW
    reason: str = ""

    @property
    def detected(self) -> List[str]:
        return list(self.values)

    def readings(self) -> List[NutrientReading]:
        return [
            NutrientReading(
                nutrient_key=key,
                value=value,
                confidence_tier=self.per_field_confidence[key],
            )
            for key, value in self.values.items()
        ]


class IngredientEntry(ScanModel):
    name: str
    common_name: str
    quantity: str = "Not specified"
    rating: IngredientRating = IngredientRating.MODERATE


class HealthAnalysis(ScanModel):
    risk_level: RiskLevel
    score: float
    warnings: List[str] = Field(default_factory=list)
    positives: List[str] = Field(default_factory=list)
    concerns: List[str] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)
    confidence: ConfidenceTier = ConfidenceTier.LOW


class HealthProfile(ScanModel):
    sugar_risk: RiskTier = RiskTier.LOW
    salt_risk: RiskTier = RiskTier.LOW
    allergy_flags: List[str] = Field(default_factory=list)
    diet_type: DietType = DietType.NON_VEGETARIAN
    lifestyle: Lifestyle = Lifestyle.SEDENTARY

    @field_validator("allergy_flags", mode="before")
    @classmethod
    def _clean_flags(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        return [str(flag).strip().lower() for flag in value if str(flag).strip()]


def _to_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


class ProductSummary(ScanModel):
    """Per-100g figures the suitability evaluator works on. Salt is in grams."""
    sugar: Optional[float] = None
    salt: Optional[float] = None
    fat: Optional[float] = None
    calories: Optional[float] = None
    ingredients_text: Optional[str] = None

    @field_validator("sugar", "salt", "fat", "calories", mode="before")
    @classmethod
    def _coerce_number(cls, value: Any) -> Optional[float]:
        # "N/A", "", garbage: treated as not provided
        return _to_number(value)

    @field_validator("ingredients_text", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        if isinstance(value, (list, tuple)):
            return ", ".join(str(v) for v in value)
        return value if isinstance(value, str) else None


class ProductRecord(ScanModel):
    """
    A product as returned by the product database.
    ``nutrients`` uses NutrientKey names (calories in kcal, macros in grams,
    sodium in mg) plus an optional ``salt`` entry in grams.
    """
    barcode: str
    name: str = "Unknown Product"
    brand: Optional[str] = None
    nutrients: Dict[str, float] = Field(default_factory=dict)
    ingredients_text: Optional[str] = None


class SuitabilityVerdict(ScanModel):
    verdict: Verdict
    score: int = Field(ge=0, le=100)
    reasons: List[str] = Field(default_factory=list)


class ProductInfo(ScanModel):
    name: str = "Scanned Product"
    category: str = "Food Product"
    data_used: str = "Limited"


class ProsAndCons(ScanModel):
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)


class AnalysisResult(ScanModel):
    product: ProductInfo
    overall_rating: float
    health_label: str
    risk_level: RiskLevel
    nutrition_facts: Optional[Dict[str, float]] = None
    ingredients: List[IngredientEntry] = Field(default_factory=list)
    health_warnings: List[str] = Field(default_factory=list)
    pros_and_cons: ProsAndCons
    raw_text: str = ""
    ocr_confidence: Optional[float] = None
    confidence_level: ConfidenceTier = ConfidenceTier.LOW
    extracted_fields: List[str] = Field(default_factory=list)
    missing_fields: List[str] = Field(default_factory=list)
    analysis_notes: List[str] = Field(default_factory=list)
    final_comment: str = ""
    reason: str = ""
    health_analysis: HealthAnalysis
    # per-ingredient notes for good and bad rated ingredients
    ingredient_insights: ProsAndCons = Field(default_factory=ProsAndCons)
    error: Optional[str] = None
