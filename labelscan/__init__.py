from labelscan.analyzer import FaultTolerantAnalyzer, analyze_text
from labelscan.config import RuleSet, default_rules, load_rules
from labelscan.errors import LabelScanError, ProductLookupError, ProductNotFound
from labelscan.health_engine import HealthAnalysisEngine, analyze_health
from labelscan.ingredient_parser import IngredientParser, extract_ingredients
from labelscan.nutrition_parser import NutritionParser, extract_nutrients
from labelscan.profiles import generate_health_profile
from labelscan.suitability import SuitabilityEvaluator, evaluate_product_for_user, verdict_display
from labelscan.text_normalizer import TextNormalizer, detect_sections, normalize

__version__ = "1.0.0"
