import pytest

from labelscan.models import HealthProfile, ProductRecord, ProductSummary
from labelscan.suitability import (
    SuitabilityEvaluator,
    evaluate_product_for_user,
    summary_from_record,
    verdict_display,
)


@pytest.fixture
def evaluator(rules):
    return SuitabilityEvaluator(rules)


def test_allergen_short_circuits_ideal_product(evaluator):
    product = {"sugar": 0, "salt": 0, "fat": 0, "calories": 50, "ingredientsText": "Oats, almond pieces"}
    verdict = evaluator.evaluate(product, {"allergyFlags": ["nuts"]})
    assert verdict.verdict == "avoid"
    assert verdict.score == 0
    assert verdict.reasons == ["Contains nuts - matches your allergy profile"]


def test_clean_product_scores_full_marks(evaluator):
    verdict = evaluator.evaluate(ProductSummary(sugar=2, salt=0.1, fat=1, calories=120), HealthProfile())
    assert verdict.score == 100
    assert verdict.verdict == "good"
    assert verdict.reasons == []


def test_missing_and_non_numeric_values_are_neutral(evaluator):
    product = {"sugar": "N/A", "salt": None, "fat": "", "calories": "abc"}
    profile = {"sugarRisk": "high", "saltRisk": "high"}
    verdict = evaluator.evaluate(product, profile)
    assert verdict.score == 100
    assert verdict.reasons == []


@pytest.mark.parametrize("risk,sugar,penalty", [
    ("high", 5, 0),
    ("high", 6, 25),
    ("high", 15, 25),
    ("high", 16, 40),
    ("medium", 15, 0),
    ("medium", 16, 20),
    ("low", 22.5, 0),
    ("low", 23, 15),
])
def test_sugar_penalty_by_risk(evaluator, risk, sugar, penalty):
    assert evaluator.evaluate_sugar(sugar, risk)[0] == penalty


@pytest.mark.parametrize("risk,salt,penalty", [
    ("high", 0.3, 0),
    ("high", 1.0, 25),
    ("high", 1.6, 40),
    ("medium", 1.6, 20),
    ("low", 2.0, 0),
    ("low", 2.3, 15),
])
def test_salt_penalty_by_risk(evaluator, risk, salt, penalty):
    assert evaluator.evaluate_salt(salt, risk)[0] == penalty


def test_salt_reason_mentions_blood_pressure(evaluator):
    verdict = evaluator.evaluate({"salt": 1.0}, {"saltRisk": "high"})
    assert verdict.score == 75
    assert verdict.reasons == ["High salt content (1g) - not suitable for your blood pressure profile"]


@pytest.mark.parametrize("fat,penalty", [(3, 0), (4, 8), (5, 8), (6, 15)])
def test_fat_penalty(evaluator, fat, penalty):
    assert evaluator.evaluate_fat(fat)[0] == penalty


@pytest.mark.parametrize("lifestyle,calories,penalty", [
    ("sedentary", 320, 0),
    ("sedentary", 350, 20),
    ("moderate", 400, 0),
    ("moderate", 450, 10),
    ("active", 450, 0),
    ("active", 500, 10),
])
def test_calorie_penalty_scales_with_lifestyle(evaluator, lifestyle, calories, penalty):
    assert evaluator.evaluate_calories(calories, lifestyle)[0] == penalty


def test_vegan_rejects_dairy(evaluator):
    verdict = evaluator.evaluate({"ingredientsText": "sugar, milk powder"}, {"dietType": "vegan"})
    assert verdict.score == 50
    assert verdict.verdict == "moderate"
    assert verdict.reasons == ["Contains animal products - not suitable for vegan diet"]


def test_vegetarian_allows_dairy_but_not_meat(evaluator):
    assert evaluator.evaluate({"ingredientsText": "milk, sugar"}, {"dietType": "vegetarian"}).score == 100
    verdict = evaluator.evaluate({"ingredientsText": "chicken extract, salt"}, {"dietType": "vegetarian"})
    assert verdict.score == 50
    assert verdict.reasons == ["Contains meat/fish - not suitable for vegetarian diet"]


def test_plant_based_butter_is_vegan(evaluator):
    verdict = evaluator.evaluate({"ingredientsText": "sugar, cocoa butter, coconut milk"}, {"dietType": "vegan"})
    assert verdict.score == 100


def test_non_vegetarian_has_no_diet_penalty(evaluator):
    assert evaluator.evaluate({"ingredientsText": "beef, salt"}, {}).score == 100


def test_penalties_landing_on_seventy_are_good(evaluator):
    product = {"sugar": 20, "calories": 500}
    verdict = evaluator.evaluate(product, {"sugarRisk": "medium", "lifestyle": "active"})
    assert verdict.score == 70
    assert verdict.verdict == "good"


def test_penalties_landing_on_forty_are_moderate(evaluator):
    verdict = evaluator.evaluate({"sugar": 20, "calories": 500}, {"sugarRisk": "high"})
    assert verdict.score == 40
    assert verdict.verdict == "moderate"


def test_score_floors_at_zero(evaluator):
    product = {"sugar": 30, "salt": 3, "fat": 10, "calories": 600, "ingredientsText": "pork, milk"}
    profile = {"sugarRisk": "high", "saltRisk": "high", "dietType": "vegan"}
    verdict = evaluator.evaluate(product, profile)
    assert verdict.score == 0
    assert verdict.verdict == "avoid"
    assert len(verdict.reasons) == 5


@pytest.mark.parametrize("score,expected", [
    (100, "good"),
    (70, "good"),
    (69, "moderate"),
    (40, "moderate"),
    (39, "avoid"),
    (0, "avoid"),
])
def test_verdict_banding_is_inclusive_on_lower_bound(evaluator, score, expected):
    assert evaluator.determine_verdict(score) == expected


def test_summary_from_record_derives_salt_from_sodium():
    record = ProductRecord(barcode="1", nutrients={"sodium": 400, "sugar": 12})
    summary = summary_from_record(record)
    assert summary.salt == pytest.approx(1.0)
    assert summary.sugar == 12
    assert summary.fat is None


def test_summary_from_record_prefers_reported_salt():
    record = ProductRecord(barcode="1", nutrients={"sodium": 400, "salt": 0.9})
    assert summary_from_record(record).salt == 0.9


def test_verdict_display():
    assert verdict_display("good")["label"] == "Good for you"
    assert verdict_display(evaluate_product_for_user({}, {}).verdict)["emoji"] == "✅"
    assert verdict_display("unknown")["label"] == "Consume in moderation"
