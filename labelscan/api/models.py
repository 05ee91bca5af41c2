from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from labelscan.models import (
    AnalysisResult,
    HealthProfile,
    ProductRecord,
    ProductSummary,
    ScanModel,
    SuitabilityVerdict,
)


class AnalyzeTextRequest(BaseModel):
    text: Optional[str] = None
    confidence: float = 0.8


class SuitabilityRequest(BaseModel):
    product: ProductSummary
    profile: HealthProfile = Field(default_factory=HealthProfile)


class SuitabilityResponse(ScanModel):
    verdict: SuitabilityVerdict
    display: Dict[str, str]


class BarcodeScanResponse(ScanModel):
    barcode: str
    product: ProductRecord
    analysis: AnalysisResult
    source: str = "openfoodfacts"
    allergens_found: List[str] = Field(default_factory=list)
    allergen_warning: Optional[str] = None
    suitability: Optional[SuitabilityResponse] = None
