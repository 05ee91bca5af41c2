import logging
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, HTTPException, Query

from labelscan.allergens import match_allergens
from labelscan.analyzer import FaultTolerantAnalyzer
from labelscan.api.models import (
    AnalyzeTextRequest,
    BarcodeScanResponse,
    SuitabilityRequest,
    SuitabilityResponse,
)
from labelscan.errors import ProductLookupError, ProductNotFound
from labelscan.models import (
    AnalysisResult,
    DietType,
    HealthProfile,
    Lifestyle,
    RiskTier,
)
from labelscan.openfood_api import analyze_product_record, fetch_product
from labelscan.profiles import generate_health_profile
from labelscan.suitability import SuitabilityEvaluator, summary_from_record, verdict_display

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="LabelScan")

analyzer = FaultTolerantAnalyzer()
evaluator = SuitabilityEvaluator()


def _suitability(product, profile: HealthProfile) -> SuitabilityResponse:
    verdict = evaluator.evaluate(product, profile)
    return SuitabilityResponse(verdict=verdict, display=verdict_display(verdict.verdict))


@app.post("/analyze/text", response_model=AnalysisResult)
def analyze_text(request: AnalyzeTextRequest = Body(...)):
    return analyzer.analyze_text(request.text, request.confidence)


@app.post("/suitability", response_model=SuitabilityResponse)
def suitability(request: SuitabilityRequest = Body(...)):
    return _suitability(request.product, request.profile)


@app.post("/profile", response_model=HealthProfile)
def profile(answers: Dict[str, Any] = Body(...)):
    return generate_health_profile(answers)


@app.get("/scan/barcode/{barcode}", response_model=BarcodeScanResponse)
def scan_barcode(
    barcode: str,
    user_allergens: List[str] = Query(None),
    sugar_risk: Optional[RiskTier] = None,
    salt_risk: Optional[RiskTier] = None,
    diet_type: Optional[DietType] = None,
    lifestyle: Optional[Lifestyle] = None,
):
    try:
        record = fetch_product(barcode)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ProductLookupError as e:
        logger.warning(f"Product lookup failed for {barcode}: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    analysis = analyze_product_record(record, analyzer)

    # Only check allergens when the user provided a non-empty list
    allergens = [a for a in (user_allergens or []) if a and a.strip()]
    found = match_allergens(record.ingredients_text, allergens)
    allergen_warning = None
    if found:
        allergen_warning = f"Warning: Product contains your allergens: {', '.join(found)}"

    verdict = None
    flags = {
        "sugar_risk": sugar_risk,
        "salt_risk": salt_risk,
        "diet_type": diet_type,
        "lifestyle": lifestyle,
    }
    if allergens or any(value is not None for value in flags.values()):
        profile = HealthProfile(
            allergy_flags=allergens,
            **{key: value for key, value in flags.items() if value is not None},
        )
        verdict = _suitability(summary_from_record(record), profile)

    return BarcodeScanResponse(
        barcode=barcode,
        product=record,
        analysis=analysis,
        allergens_found=found,
        allergen_warning=allergen_warning,
        suitability=verdict,
    )
