import pytest
from fastapi.testclient import TestClient

from labelscan.api import main
from labelscan.errors import ProductLookupError, ProductNotFound
from labelscan.models import ProductRecord

client = TestClient(main.app)

RECORD = ProductRecord(
    barcode="8901234567890",
    name="Peanut Cookies",
    brand="Acme",
    nutrients={"calories": 470, "sugar": 26, "saturatedFat": 9, "fat": 22, "sodium": 300},
    ingredients_text="wheat flour, sugar, peanut (12%), palm oil",
)


@pytest.fixture
def product_db(monkeypatch):
    def fake_fetch(barcode):
        if barcode == RECORD.barcode:
            return RECORD
        if barcode == "offline":
            raise ProductLookupError("Product lookup failed: offline")
        raise ProductNotFound(barcode)

    monkeypatch.setattr(main, "fetch_product", fake_fetch)


def test_analyze_text(sample_label):
    resp = client.post("/analyze/text", json={"text": sample_label, "confidence": 0.92})
    assert resp.status_code == 200
    data = resp.json()
    assert data["riskLevel"] == "high"
    assert data["nutritionFacts"]["calories"] == 520
    assert data["confidenceLevel"] == "high"
    assert len(data["ingredients"]) == 3


def test_analyze_text_without_text():
    resp = client.post("/analyze/text", json={})
    assert resp.status_code == 200
    data = resp.json()
    assert data["riskLevel"] == "moderate"
    assert data["overallRating"] == 4.0


def test_suitability():
    body = {
        "product": {"sugar": 20, "calories": 500},
        "profile": {"sugarRisk": "medium", "lifestyle": "active"},
    }
    resp = client.post("/suitability", json=body)
    assert resp.status_code == 200
    data = resp.json()
    assert data["verdict"]["verdict"] == "good"
    assert data["verdict"]["score"] == 70
    assert data["display"]["label"] == "Good for you"


def test_suitability_allergen():
    body = {
        "product": {"ingredientsText": "milk chocolate, hazelnuts"},
        "profile": {"allergyFlags": ["nuts"]},
    }
    data = client.post("/suitability", json=body).json()
    assert data["verdict"]["verdict"] == "avoid"
    assert data["verdict"]["score"] == 0


def test_profile():
    answers = {"sugarSensitivity": "high", "allergies": "nuts", "dietaryPreference": "vegan", "activityLevel": "athlete"}
    resp = client.post("/profile", json=answers)
    assert resp.status_code == 200
    assert resp.json() == {
        "sugarRisk": "high",
        "saltRisk": "low",
        "allergyFlags": ["nuts"],
        "dietType": "vegan",
        "lifestyle": "active",
    }


def test_scan_barcode(product_db):
    resp = client.get(f"/scan/barcode/{RECORD.barcode}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["product"]["name"] == "Peanut Cookies"
    assert data["analysis"]["riskLevel"] == "high"
    assert data["analysis"]["ocrConfidence"] is None
    assert data["allergenWarning"] is None
    assert data["suitability"] is None


def test_scan_barcode_with_allergens(product_db):
    resp = client.get(f"/scan/barcode/{RECORD.barcode}", params={"user_allergens": ["peanut", "soy"]})
    data = resp.json()
    assert data["allergensFound"] == ["peanut"]
    assert data["allergenWarning"] == "Warning: Product contains your allergens: peanut"
    assert data["suitability"]["verdict"]["verdict"] == "avoid"
    assert data["suitability"]["display"]["label"] == "Avoid"


def test_scan_barcode_with_profile_flags(product_db):
    resp = client.get(f"/scan/barcode/{RECORD.barcode}", params={"sugar_risk": "high", "lifestyle": "active"})
    verdict = resp.json()["suitability"]["verdict"]
    # sugar 26g for a high sugar risk, fat 22g, salt 0.75g
    assert verdict["score"] == 45
    assert verdict["verdict"] == "moderate"


def test_scan_barcode_not_found(product_db):
    resp = client.get("/scan/barcode/0000")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Product 0000 not found"


def test_scan_barcode_lookup_failure(product_db):
    resp = client.get("/scan/barcode/offline")
    assert resp.status_code == 502
