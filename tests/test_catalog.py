"""
tests/test_catalog.py
=====================
Catalog shape, tier selection and catalog <-> calculator table agreement.

Run:  pytest tests/ -v
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from fin_engine import catalog
from fin_engine.catalog import get_all, get_by_category, get_by_id, get_by_tier, position
from fin_engine.errors import CatalogError, UnknownAnalysisError
from fin_engine.registry import REGISTRY, get_calculator, validate_registry
from fin_engine.types import CATEGORIES

EXPECTED_COUNTS = {
    "basic.structural": 15,
    "basic.ratios": 30,
    "basic.flow": 10,
    "intermediate.comparison": 10,
    "intermediate.valuation": 16,
    "intermediate.performance": 12,
    "advanced.modeling": 15,
    "advanced.statistical": 20,
    "advanced.risk": 35,
    "advanced.detection": 18,
}


class TestCatalogContent:
    def test_total(self):
        assert len(get_all()) == 181

    @pytest.mark.parametrize("category,count", sorted(EXPECTED_COUNTS.items()))
    def test_category_counts(self, category, count):
        assert len(get_by_category(category)) == count

    def test_ids_unique(self):
        ids = [d.id for d in get_all()]
        assert len(ids) == len(set(ids))

    def test_every_entry_bilingual(self):
        for d in get_all():
            assert d.name.en and d.name.ar
            assert d.description.en and d.description.ar
            assert d.measure_label.en and d.measure_label.ar

    def test_descriptions_are_specific(self):
        texts = [d.description.en for d in get_all()]
        assert set(catalog._DESCRIPTIONS) == {d.id for d in get_all()}
        assert len(set(texts)) == len(texts)
        assert len({d.description.ar for d in get_all()}) == len(texts)
        for d in get_all():
            assert not d.description.en.startswith(d.name.en + ":")

    def test_counts_table_matches(self):
        assert catalog.CATEGORY_COUNTS == EXPECTED_COUNTS

    def test_categories_known(self):
        assert {d.category for d in get_all()} == set(CATEGORIES)

    def test_directions(self):
        assert get_by_id("ratio.current").direction == "higher"
        assert get_by_id("ratio.debt_to_equity").direction == "lower"
        assert get_by_id("ratio.ccc").direction == "lower"

    def test_benchmark_key(self):
        assert get_by_id("ratio.current").benchmark_key == "liquidity.current_ratio"

    def test_heavy_flag(self):
        assert get_by_id("model.monte_carlo").heavy
        assert get_by_id("model.linear_programming").heavy
        assert not get_by_id("ratio.current").heavy

    def test_unknown_id(self):
        assert get_by_id("ratio.nope") is None

    def test_position_follows_catalog_order(self):
        assert position(get_all()[0].id) == 0
        assert position("detect.blockchain") == 180


class TestTierSelection:
    def test_basic(self):
        assert len(get_by_tier("basic")) == 55

    def test_intermediate(self):
        assert len(get_by_tier("intermediate")) == 38

    def test_advanced(self):
        assert len(get_by_tier("advanced")) == 88

    def test_comprehensive_is_everything(self):
        assert get_by_tier("comprehensive") == get_all()

    def test_selection_by_prefix(self):
        assert all(d.category.startswith("intermediate.") for d in get_by_tier("intermediate"))

    def test_unknown_tier(self):
        with pytest.raises(CatalogError):
            get_by_tier("expert")


DESCRIPTIONS = {"x.one": ("The first test analysis.", "تحليل الاختبار الأول.")}


class TestSeedValidation:
    def test_duplicate_id_rejected(self):
        row = ("x.one", "One", "واحد", "percent", "higher", None, False)
        with pytest.raises(CatalogError):
            catalog._build({"basic.ratios": [row, row]}, DESCRIPTIONS)

    def test_unknown_category_rejected(self):
        row = ("x.one", "One", "واحد", "percent", "higher", None, False)
        with pytest.raises(CatalogError):
            catalog._build({"basic.unknown": [row]}, DESCRIPTIONS)

    def test_invalid_direction_rejected(self):
        row = ("x.one", "One", "واحد", "percent", "sideways", None, False)
        with pytest.raises(CatalogError):
            catalog._build({"basic.ratios": [row]}, DESCRIPTIONS)

    def test_missing_description_rejected(self):
        row = ("x.two", "Two", "اثنان", "percent", "higher", None, False)
        with pytest.raises(CatalogError):
            catalog._build({"basic.ratios": [row]}, DESCRIPTIONS)

    def test_category_count_enforced(self):
        row = ("x.one", "One", "واحد", "percent", "higher", None, False)
        with pytest.raises(CatalogError):
            catalog._build({"basic.ratios": [row]}, DESCRIPTIONS, catalog.CATEGORY_COUNTS)

    def test_category_count_accepted(self):
        row = ("x.one", "One", "واحد", "percent", "higher", None, False)
        built = catalog._build({"basic.ratios": [row]}, DESCRIPTIONS, {"basic.ratios": 1})
        assert built[0].description.en == "The first test analysis."


class TestRegistry:
    def test_one_calculator_per_definition(self):
        validate_registry()
        assert set(REGISTRY) == {d.id for d in get_all()}

    def test_missing_calculator_detected(self):
        partial = {k: v for k, v in REGISTRY.items() if k != "ratio.current"}
        with pytest.raises(UnknownAnalysisError) as exc:
            validate_registry(registry=partial)
        assert "ratio.current" in exc.value.ids

    def test_orphan_calculator_detected(self):
        extra = dict(REGISTRY)
        extra["ratio.imaginary"] = REGISTRY["ratio.current"]
        with pytest.raises(UnknownAnalysisError) as exc:
            validate_registry(registry=extra)
        assert exc.value.ids == ("ratio.imaginary",)

    def test_get_calculator_unknown(self):
        with pytest.raises(UnknownAnalysisError):
            get_calculator("ratio.imaginary")
