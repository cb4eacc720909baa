"""
tests/test_benchmarks.py
========================
Static benchmark provider: sector tables, overrides and fallback.

Run:  pytest tests/ -v
"""

import dataclasses
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from fin_engine.benchmarks import GENERAL_RATIOS, BenchmarkProvider, StaticBenchmarkProvider
from fin_engine.types import AnalysisOptions, BenchmarkSet, DistributionSpec, PeerCompany


class TestStaticBenchmarkProvider:
    def test_is_provider(self):
        assert isinstance(StaticBenchmarkProvider(), BenchmarkProvider)

    async def test_sector_override(self):
        bench = await StaticBenchmarkProvider().get_benchmarks("Technology", "software", "sector")
        assert bench.available
        assert bench.get("profitability.net_margin") == 15.0
        assert bench.get("liquidity.quick_ratio") == 2.0
        assert bench.peers

    async def test_general_defaults(self):
        bench = await StaticBenchmarkProvider().get_benchmarks("general", "", "sector")
        assert bench.get("liquidity.current_ratio") == GENERAL_RATIOS["liquidity.current_ratio"]
        assert 2020 in bench.historical_index

    async def test_unknown_sector_is_empty(self):
        bench = await StaticBenchmarkProvider().get_benchmarks("shipping", "", "sector")
        assert not bench.available
        assert bench.get("liquidity.current_ratio") is None

    async def test_fallback_sector(self):
        provider = StaticBenchmarkProvider(fallback_sector="general")
        bench = await provider.get_benchmarks("shipping", "", "sector")
        assert bench.available
        assert bench.sector == "shipping"

    async def test_activity_override(self):
        provider = StaticBenchmarkProvider(
            overrides={("retail", "grocery", "sector"): {"activity.dso": 3.0}})
        bench = await provider.get_benchmarks("retail", "grocery", "sector")
        assert bench.get("activity.dso") == 3.0
        other = await provider.get_benchmarks("retail", "fashion", "sector")
        assert other.get("activity.dso") == 10.0


class TestSharedInputsAreReadOnly:
    def test_benchmark_tables_cannot_be_mutated(self):
        source = {"liquidity.current_ratio": 1.5}
        bench = BenchmarkSet(ratios=source, historical_index={2022: 100.0},
                             peers=(PeerCompany("Peer A", {"roe": 12.0}),))
        source["liquidity.current_ratio"] = 9.0
        assert bench.get("liquidity.current_ratio") == 1.5
        with pytest.raises(TypeError):
            bench.ratios["liquidity.current_ratio"] = 2.0
        with pytest.raises(TypeError):
            bench.historical_index[2023] = 110.0
        with pytest.raises(TypeError):
            bench.peers[0].metrics["roe"] = 99.0

    def test_options_are_frozen(self):
        options = AnalysisOptions(distributions={"revenue": DistributionSpec("normal", (100.0, 10.0))})
        with pytest.raises(dataclasses.FrozenInstanceError):
            options.seed = 1
        with pytest.raises(TypeError):
            options.distributions["costs"] = DistributionSpec("normal", (50.0, 5.0))
        assert dataclasses.replace(options, seed=1).distributions["revenue"].params == (100.0, 10.0)
