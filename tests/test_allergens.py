from labelscan.allergens import keywords_for, match_allergens


def test_matches_keyword_sets():
    assert match_allergens("Wheat flour, peanut oil, salt", ["peanut", "soy"]) == ["peanut"]
    assert match_allergens("Skimmed MILK powder", ["dairy"]) == ["dairy"]


def test_returns_flags_in_given_order_without_duplicates():
    text = "almonds, soya lecithin, wheat"
    assert match_allergens(text, ["soy", "nuts", "gluten", "nuts"]) == ["soy", "nuts", "gluten"]


def test_unknown_flag_matches_its_own_name():
    assert keywords_for("Kiwi ") == ("kiwi",)
    assert match_allergens("kiwi pulp, sugar", ["kiwi"]) == ["kiwi"]


def test_nothing_to_match():
    assert match_allergens(None, ["nuts"]) == []
    assert match_allergens("almonds", []) == []
    assert match_allergens("almonds", None) == []
    assert match_allergens("almonds", ["", "  "]) == []
