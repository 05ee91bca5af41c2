import pytest

from labelscan.analyzer import FaultTolerantAnalyzer
from labelscan.config import default_rules

SAMPLE_LABEL = (
    "NUTRITION FACTS Per 100g Energy: 520 kcal Sugar: 28.5g Saturated Fat: 14.2g "
    "Sodium: 380mg INGREDIENTS: Wheat flour, Sugar, Palm oil"
)


@pytest.fixture
def rules():
    return default_rules()


@pytest.fixture
def analyzer(rules):
    return FaultTolerantAnalyzer(rules)


@pytest.fixture
def sample_label():
    return SAMPLE_LABEL
