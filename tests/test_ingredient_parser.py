import time

import pytest

from labelscan.fuzzy_matcher import get_best_match
from labelscan.ingredient_parser import IngredientParser, extract_ingredients, ingredient_insights
from labelscan.models import IngredientEntry


@pytest.fixture
def parser(rules):
    return IngredientParser(rules)


def test_splits_on_commas_and_semicolons(parser):
    entries = parser.extract("wheat flour, sugar; palm oil")
    assert [e.name for e in entries] == ["wheat flour", "sugar", "palm oil"]


def test_quantity_from_first_bracket(parser):
    entries = parser.extract("Cocoa Solids (12%), sugar")
    assert entries[0].name == "cocoa solids"
    assert entries[0].common_name == "Cocoa Solids (12%)"
    assert entries[0].quantity == "12%"
    assert entries[1].quantity == "Not specified"


def test_bracketed_sub_list_is_split_into_entries(parser):
    entries = parser.extract("vegetable oil (palm, sunflower), salt")
    assert [e.name for e in entries] == ["vegetable oil palm", "sunflower", "salt"]
    assert entries[0].common_name == "vegetable oil (palm"
    assert entries[0].quantity == "Not specified"


def test_nested_ingredient_is_rated(parser):
    entries = parser.extract("chocolate (sugar, palm oil, artificial flavour), salt")
    assert [e.name for e in entries] == ["chocolate sugar", "palm oil", "artificial flavour", "salt"]
    assert entries[1].rating == "bad"


def test_long_comma_list_is_parsed_quickly(parser):
    region = ", ".join(["abc"] * 20000)
    started = time.perf_counter()
    entries = parser.extract(region)
    assert time.perf_counter() - started < 2.0
    assert len(entries) == 15


def test_drops_short_and_overlong_tokens(parser):
    entries = parser.extract("a, bb, tea, " + "x" * 100)
    assert [e.name for e in entries] == ["tea"]


def test_caps_at_fifteen_entries(parser):
    region = ", ".join(f"ingredient {i}" for i in range(20))
    assert len(parser.extract(region)) == 15


@pytest.mark.parametrize("region", [None, "", "  "])
def test_no_region_means_unknown_ingredients(region):
    assert extract_ingredients(region) == []


def test_ratings(parser):
    assert parser.rate("palm oil") == "bad"
    assert parser.rate("olive oil") == "good"
    assert parser.rate("msg") == "moderate"
    assert parser.rate("hfcs") == "bad"
    assert parser.rate("dragonfruit essence") == "moderate"


def test_extracted_entries_are_rated(parser):
    entries = parser.extract("olive oil, palm oil")
    assert [e.rating for e in entries] == ["good", "bad"]


def test_fuzzy_match_tolerates_word_order():
    known = ["whole wheat flour", "palm oil"]
    assert get_best_match("oil palm", known) == "palm oil"
    assert get_best_match("wheat flour", known) is None


def test_synonym_then_exact_lookup():
    assert get_best_match("Maida", ["refined wheat flour"], {"maida": "refined wheat flour"}) == "refined wheat flour"
    assert get_best_match("", ["palm oil"]) is None
    assert get_best_match("palm oil", []) is None


def test_ingredient_insights(rules):
    entries = [
        IngredientEntry(name="olive oil", common_name="Olive Oil", rating="good"),
        IngredientEntry(name="palm oil", common_name="Palm Oil", rating="bad"),
        IngredientEntry(name="water", common_name="Water", rating="moderate"),
    ]
    insights = ingredient_insights(entries, rules)
    assert insights["pros"] == ["Healthy fats - Reduces inflammation"]
    assert insights["cons"] == ["High saturated fat - Increases bad cholesterol"]


def test_insight_fallback_for_unlisted_ingredient(rules):
    entries = [IngredientEntry(name="mystery gum", common_name="Mystery Gum", rating="bad")]
    insights = ingredient_insights(entries, rules)
    assert insights["cons"] == ["Contains mystery gum - May have health concerns"]
