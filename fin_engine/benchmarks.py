"""
fin_engine/benchmarks.py
========================
Benchmark provider interface and a static, table-driven implementation.

A provider is the single suspending boundary of a run: the dispatcher awaits
``get_benchmarks`` once and hands the resulting immutable ``BenchmarkSet`` to
every calculator. Unknown keys degrade to ``BenchmarkSet.empty()``.
"""
from __future__ import annotations
import logging
from typing import Dict, Mapping, Optional, Protocol, Tuple, runtime_checkable

from .types import BenchmarkSet, PeerCompany

logger = logging.getLogger(__name__)


@runtime_checkable
class BenchmarkProvider(Protocol):
    async def get_benchmarks(self, sector: str, activity: str,
                             comparison_level: str) -> BenchmarkSet: ...


# ─── Industry Reference Ratios ────────────────────────────────────────────────

# Percent-valued keys are in percent (debt_to_equity 100 = 1.0x).
GENERAL_RATIOS: Dict[str, float] = {
    "liquidity.current_ratio": 1.5,
    "liquidity.quick_ratio": 1.0,
    "liquidity.cash_ratio": 0.2,
    "liquidity.ocf_ratio": 0.4,
    "activity.inventory_turnover": 6.0,
    "activity.receivables_turnover": 8.0,
    "activity.dso": 45.0,
    "activity.payables_turnover": 8.0,
    "activity.dpo": 45.0,
    "activity.fixed_asset_turnover": 2.0,
    "activity.total_asset_turnover": 1.0,
    "activity.operating_cycle": 90.0,
    "activity.ccc": 60.0,
    "leverage.debt_to_assets": 50.0,
    "leverage.debt_to_equity": 100.0,
    "leverage.interest_coverage": 3.0,
    "leverage.dscr": 1.25,
    "leverage.equity_to_assets": 40.0,
    "profitability.gross_margin": 30.0,
    "profitability.operating_margin": 12.0,
    "profitability.net_margin": 8.0,
    "profitability.roa": 6.0,
    "profitability.roe": 15.0,
    "profitability.roic": 10.0,
    "market.pe": 15.0,
    "market.pb": 2.0,
    "market.dividend_yield": 3.0,
    "valuation.ev_ebitda": 8.0,
    "growth.revenue": 5.0,
    "flow.cash_quality": 1.0,
    "flow.margin_of_safety": 20.0,
    "flow.cost_ratio": 88.0,
    "flow.operating_leverage": 3.0,
    "flow.contribution_margin": 35.0,
    "performance.opex_ratio": 20.0,
    "risk.beta": 1.0,
    "risk.capital_adequacy": 10.5,
    "risk.leverage_ratio": 3.0,
    "risk.lbo_irr": 20.0,
}

SECTOR_OVERRIDES: Dict[str, Dict[str, float]] = {
    "manufacturing": {
        "liquidity.current_ratio": 1.8, "activity.inventory_turnover": 5.0,
        "activity.fixed_asset_turnover": 1.5, "activity.total_asset_turnover": 0.9,
        "profitability.gross_margin": 28.0, "profitability.operating_margin": 10.0,
        "profitability.net_margin": 6.0, "profitability.roe": 14.0, "market.pe": 14.0,
        "valuation.ev_ebitda": 7.5,
    },
    "retail": {
        "liquidity.current_ratio": 1.2, "liquidity.quick_ratio": 0.5,
        "activity.inventory_turnover": 9.0, "activity.total_asset_turnover": 2.0,
        "activity.dso": 10.0, "activity.ccc": 30.0,
        "profitability.gross_margin": 32.0, "profitability.operating_margin": 6.0,
        "profitability.net_margin": 3.5, "profitability.roe": 18.0, "market.pe": 18.0,
        "valuation.ev_ebitda": 9.0,
    },
    "technology": {
        "liquidity.current_ratio": 2.5, "liquidity.quick_ratio": 2.0, "liquidity.cash_ratio": 0.8,
        "activity.total_asset_turnover": 0.7, "leverage.debt_to_equity": 50.0,
        "profitability.gross_margin": 60.0, "profitability.operating_margin": 20.0,
        "profitability.net_margin": 15.0, "profitability.roe": 20.0, "market.pe": 25.0,
        "market.pb": 5.0, "market.dividend_yield": 1.0, "valuation.ev_ebitda": 15.0,
        "growth.revenue": 12.0, "risk.beta": 1.2,
    },
    "services": {
        "liquidity.current_ratio": 1.4, "activity.dso": 60.0,
        "profitability.gross_margin": 40.0, "profitability.operating_margin": 14.0,
        "profitability.net_margin": 10.0, "profitability.roe": 16.0, "market.pe": 17.0,
        "valuation.ev_ebitda": 10.0,
    },
}

_PEER_METRICS = ("revenue", "roe", "net_margin", "gross_margin", "asset_turnover",
                 "current_ratio", "debt_to_equity", "revenue_growth", "pe")

# (name, revenue, roe, net_margin, gross_margin, asset_turnover, current_ratio,
#  debt_to_equity, revenue_growth, pe)
_PEER_ROWS: Dict[str, Tuple[Tuple, ...]] = {
    "general": (
        ("Peer A", 1_200_000, 14.0, 8.0, 31.0, 1.1, 1.6, 90.0, 6.0, 15.0),
        ("Peer B", 850_000, 11.0, 6.5, 27.0, 0.9, 1.3, 120.0, 4.0, 13.0),
        ("Peer C", 2_100_000, 18.0, 10.0, 35.0, 1.2, 1.9, 70.0, 8.0, 18.0),
        ("Peer D", 600_000, 9.0, 4.0, 24.0, 0.8, 1.1, 150.0, 2.5, 11.0),
    ),
    "manufacturing": (
        ("Industrial One", 3_000_000, 13.0, 6.0, 27.0, 0.9, 1.7, 95.0, 5.0, 14.0),
        ("Metals Co", 1_800_000, 10.0, 5.0, 22.0, 0.8, 1.5, 130.0, 3.0, 12.0),
        ("Precision Parts", 900_000, 16.0, 8.0, 32.0, 1.0, 2.0, 60.0, 7.0, 16.0),
    ),
    "retail": (
        ("Hyper Stores", 5_000_000, 19.0, 3.0, 30.0, 2.2, 1.1, 140.0, 6.0, 19.0),
        ("Daily Mart", 2_500_000, 15.0, 2.5, 28.0, 2.0, 1.0, 160.0, 4.0, 16.0),
        ("Style House", 1_000_000, 21.0, 5.0, 45.0, 1.6, 1.4, 80.0, 9.0, 22.0),
    ),
    "technology": (
        ("Cloud Systems", 4_000_000, 22.0, 18.0, 65.0, 0.7, 2.8, 40.0, 15.0, 28.0),
        ("Data Works", 1_500_000, 17.0, 12.0, 58.0, 0.8, 2.2, 55.0, 11.0, 24.0),
        ("Soft Labs", 700_000, 12.0, 9.0, 55.0, 0.6, 3.1, 20.0, 18.0, 30.0),
    ),
    "services": (
        ("Consult Group", 1_100_000, 17.0, 11.0, 42.0, 1.3, 1.5, 70.0, 7.0, 17.0),
        ("Logistics Plus", 2_300_000, 13.0, 7.0, 33.0, 1.5, 1.3, 110.0, 5.0, 15.0),
        ("Care Services", 800_000, 15.0, 9.0, 38.0, 1.1, 1.4, 85.0, 6.0, 16.0),
    ),
}

# Broad market index, year-end levels.
MARKET_INDEX: Dict[int, float] = {
    2014: 1000.0, 2015: 968.0, 2016: 1052.0, 2017: 1178.0, 2018: 1115.0,
    2019: 1290.0, 2020: 1245.0, 2021: 1480.0, 2022: 1362.0, 2023: 1511.0,
    2024: 1668.0, 2025: 1745.0,
}


def _peers(sector: str) -> Tuple[PeerCompany, ...]:
    rows = _PEER_ROWS.get(sector, ())
    return tuple(PeerCompany(name=r[0], metrics=dict(zip(_PEER_METRICS, r[1:]))) for r in rows)


class StaticBenchmarkProvider:
    """
    In-memory benchmark tables keyed by sector (case-insensitive).

    ``overrides`` may replace individual ratios for an exact
    ``(sector, activity, comparison_level)`` key. With ``fallback_sector``
    set, unknown sectors resolve to that table instead of "no benchmark".
    """

    def __init__(self, ratios: Optional[Mapping[str, Mapping[str, float]]] = None,
                 overrides: Optional[Mapping[Tuple[str, str, str], Mapping[str, float]]] = None,
                 fallback_sector: Optional[str] = None):
        base = {"general": {}, **SECTOR_OVERRIDES}
        if ratios is not None:
            base = {k.lower(): dict(v) for k, v in ratios.items()}
        self._tables: Dict[str, Dict[str, float]] = {
            sector: {**GENERAL_RATIOS, **table} for sector, table in base.items()
        }
        self._overrides = {tuple(k.lower() for k in key): dict(v) for key, v in (overrides or {}).items()}
        self._fallback = fallback_sector.lower() if fallback_sector else None

    @property
    def sectors(self) -> Tuple[str, ...]:
        return tuple(sorted(self._tables))

    async def get_benchmarks(self, sector: str, activity: str,
                             comparison_level: str) -> BenchmarkSet:
        key = (sector or "").lower()
        table = self._tables.get(key)
        resolved = key
        if table is None and self._fallback in self._tables:
            logger.info("No benchmark table for sector %r, falling back to %r", sector, self._fallback)
            table = self._tables[self._fallback]
            resolved = self._fallback
        if table is None:
            logger.info("No benchmark table for sector %r", sector)
            return BenchmarkSet.empty(sector, activity, comparison_level)

        ratios = dict(table)
        ratios.update(self._overrides.get((key, (activity or "").lower(), (comparison_level or "").lower()), {}))
        return BenchmarkSet(
            sector=sector,
            activity=activity,
            comparison_level=comparison_level,
            ratios=ratios,
            peers=_peers(resolved),
            historical_index=dict(MARKET_INDEX),
            available=True,
        )
