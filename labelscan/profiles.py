from typing import Any, Mapping

from labelscan.models import DietType, HealthProfile, Lifestyle, RiskTier

ACTIVE_LEVELS = ("high", "athlete")
MODERATE_LEVELS = ("light", "moderate")


def _risk_from(*answers: Any) -> RiskTier:
    if "high" in answers:
        return RiskTier.HIGH
    if "medium" in answers:
        return RiskTier.MEDIUM
    return RiskTier.LOW


def generate_health_profile(answers: Mapping[str, Any]) -> HealthProfile:
    """
    Build a HealthProfile from questionnaire answers keyed by question id
    (sugarSensitivity, diabetesRisk, saltSensitivity, bloodPressure,
    allergies, dietaryPreference, activityLevel). Unanswered questions
    keep the profile defaults.
    """
    answers = answers or {}

    allergies = answers.get("allergies")
    if not allergies or allergies == "none":
        allergy_flags = []
    elif isinstance(allergies, str):
        allergy_flags = [allergies]
    else:
        allergy_flags = [a for a in allergies if a and a != "none"]

    preference = answers.get("dietaryPreference")
    if preference == "vegan":
        diet_type = DietType.VEGAN
    elif preference == "vegetarian":
        diet_type = DietType.VEGETARIAN
    else:
        diet_type = DietType.NON_VEGETARIAN

    activity = answers.get("activityLevel")
    if activity in ACTIVE_LEVELS:
        lifestyle = Lifestyle.ACTIVE
    elif activity in MODERATE_LEVELS:
        lifestyle = Lifestyle.MODERATE
    else:
        lifestyle = Lifestyle.SEDENTARY

    return HealthProfile(
        sugar_risk=_risk_from(answers.get("sugarSensitivity"), answers.get("diabetesRisk")),
        salt_risk=_risk_from(answers.get("saltSensitivity"), answers.get("bloodPressure")),
        allergy_flags=allergy_flags,
        diet_type=diet_type,
        lifestyle=lifestyle,
    )
