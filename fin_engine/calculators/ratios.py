"""
fin_engine/calculators/ratios.py
================================
Thirty liquidity, activity, leverage, profitability and market ratios.

Every ratio is a guarded division (0 when the denominator is 0) rounded to 2
decimals; day-count metrics are ``balance / flow x 365`` rounded to whole
days. Where the benchmark set carries peers with the same metric, the
company's rank and percentile among them are attached.
"""
from __future__ import annotations
from typing import Callable, Dict, Optional, Tuple

from ..formatting import localized_number, txt
from ..errors import InputDataError
from ..mathutils import days, percentage, percentile_rank, ratio
from ..types import AnalysisOptions, BenchmarkSet, FinancialStatement, LocalizedText, RatioResult
from ._base import Statements, latest, require, require_nonzero, val

INTEREST_COVERAGE_CAP = 999.0

# Map from ratio id to the peer metric name in BenchmarkSet.peers.
_PEER_KEYS: Dict[str, str] = {
    "ratio.current": "current_ratio",
    "ratio.debt_to_equity": "debt_to_equity",
    "ratio.gross_margin": "gross_margin",
    "ratio.net_margin": "net_margin",
    "ratio.roe": "roe",
    "ratio.total_asset_turnover": "asset_turnover",
    "ratio.pe": "pe",
}


def _peer_position(analysis_id: str, value: float, benchmarks: BenchmarkSet) -> Tuple[Optional[int], Optional[float]]:
    key = _PEER_KEYS.get(analysis_id)
    if not key:
        return None, None
    peers = benchmarks.peer_values(key)
    if not peers:
        return None, None
    ranked = sorted(peers + [value], reverse=True)
    return ranked.index(value) + 1, percentile_rank(value, peers)


def _build(analysis_id: str, label: LocalizedText, value: float, unit: str,
           numerator: Optional[float], denominator: Optional[float],
           benchmarks: BenchmarkSet, statements: Statements,
           fn: Callable[[FinancialStatement], float], note: Optional[LocalizedText] = None) -> RatioResult:
    history: Dict[int, float] = {}
    for s in statements:
        try:
            history[s.year] = fn(s)
        except InputDataError:
            continue
    rank, pct = _peer_position(analysis_id, value, benchmarks)
    shown = localized_number(value, unit)
    en = f"{label.en} is {shown.en}."
    ar = f"بلغت {label.ar} {shown.ar}."
    if pct is not None:
        en += f" It ranks {rank} among {len(benchmarks.peers) + 1} companies (peer percentile {pct:.0f})."
        ar += f" وتحتل المرتبة {rank} بين {len(benchmarks.peers) + 1} شركات (المئين {pct:.0f})."
    if note is not None:
        en += " " + note.en
        ar += " " + note.ar
    return RatioResult(
        value=value,
        unit=unit,
        numerator=numerator,
        denominator=denominator,
        series=history,
        peer_rank=rank,
        peer_percentile=pct,
        interpretation=txt(en, ar),
        chart_hint="gauge" if unit in ("ratio", "times") else "bar",
    )


# ─── Single-year formulas ─────────────────────────────────────────────────────
# Each takes one statement and returns the reported value.

def _current(s): return ratio(s.bs.total_current_assets, s.bs.total_current_liabilities)
def _quick(s): return ratio(val(s.bs.total_current_assets) - val(s.bs.inventory), s.bs.total_current_liabilities)
def _cash(s): return ratio(s.bs.cash_and_equivalents, s.bs.total_current_liabilities)
def _ocf(s): return ratio(s.cf.operating_cash_flow, s.bs.total_current_liabilities)
def _nwc(s): return round(require(s.bs.working_capital, "balance_sheet.total_current_assets"), 2)
def _inv_turn(s): return ratio(s.inc.cogs, s.bs.inventory)
def _rec_turn(s): return ratio(s.inc.revenue, s.bs.receivables)
def _dso(s): return days(s.bs.receivables, s.inc.revenue)
def _pay_turn(s): return ratio(s.inc.cogs, s.bs.payables)
def _dpo(s): return days(s.bs.payables, s.inc.cogs)
def _dio(s): return days(s.bs.inventory, s.inc.cogs)
def _fa_turn(s): return ratio(s.inc.revenue, s.bs.ppe)
def _ta_turn(s): return ratio(s.inc.revenue, s.bs.total_assets)
def _op_cycle(s): return _dio(s) + _dso(s)
def _ccc(s): return _dio(s) + _dso(s) - _dpo(s)
def _d2a(s): return percentage(s.bs.total_liabilities, s.bs.total_assets)
def _d2e(s): return percentage(s.bs.total_liabilities, s.bs.total_equity)
def _e2a(s): return percentage(s.bs.total_equity, s.bs.total_assets)
def _gm(s): return percentage(s.inc.gross_profit if s.inc.gross_profit is not None
                              else val(s.inc.revenue) - val(s.inc.cogs), s.inc.revenue)
def _om(s): return percentage(s.inc.operating_income, s.inc.revenue)
def _nm(s): return percentage(s.inc.net_income, s.inc.revenue)
def _roa(s): return percentage(s.inc.net_income, s.bs.total_assets)
def _roe(s): return percentage(s.inc.net_income, s.bs.total_equity)


def _interest_coverage(s) -> float:
    if not s.inc.interest_expense:
        return INTEREST_COVERAGE_CAP
    return min(ratio(s.inc.operating_income, s.inc.interest_expense), INTEREST_COVERAGE_CAP)


def _debt_service(s) -> float:
    service = val(s.inc.interest_expense) + val(s.bs.current_portion_long_term_debt)
    if service == 0:
        return INTEREST_COVERAGE_CAP
    return ratio(s.inc.ebitda, service)


def _roic(s, tax_rate: float) -> float:
    capital = val(s.bs.total_equity) + val(s.bs.long_term_debt)
    return percentage(val(s.inc.operating_income) * (1 - tax_rate), capital)


def _eps(s) -> float:
    shares = require_nonzero(s.market.shares_outstanding, "market.shares_outstanding")
    return ratio(require(s.inc.net_income, "income_statement.net_income"), shares)


def _bvps(s) -> float:
    shares = require_nonzero(s.market.shares_outstanding, "market.shares_outstanding")
    return ratio(require(s.bs.total_equity, "balance_sheet.total_equity"), shares)


def _pe(s) -> float:
    price = require(s.market.share_price, "market.share_price")
    return ratio(price, _eps(s))


def _pb(s) -> float:
    price = require(s.market.share_price, "market.share_price")
    return ratio(price, _bvps(s))


def _dividend_yield(s) -> float:
    price = require(s.market.share_price, "market.share_price")
    shares = require_nonzero(s.market.shares_outstanding, "market.shares_outstanding")
    dividends = s.inc.dividends if s.inc.dividends is not None else abs(val(s.cf.dividends_paid))
    return percentage(dividends / shares, price)


# ─── Calculators ──────────────────────────────────────────────────────────────

def _simple(analysis_id: str, en: str, ar: str, unit: str,
            fn: Callable[[FinancialStatement], float],
            num: Callable[[FinancialStatement], Optional[float]],
            den: Callable[[FinancialStatement], Optional[float]],
            required: Tuple[Tuple[str, Callable[[FinancialStatement], Optional[float]]], ...] = ()):
    def calculator(statements: Statements, benchmarks: BenchmarkSet,
                   options: AnalysisOptions) -> RatioResult:
        s = latest(statements)
        for field, getter in required:
            require(getter(s), field)
        return _build(analysis_id, txt(en, ar), fn(s), unit, num(s), den(s),
                      benchmarks, statements, fn)
    calculator.__name__ = analysis_id.split(".", 1)[1]
    calculator.__doc__ = f"{en}."
    return calculator


_CA = ("balance_sheet.total_current_assets", lambda s: s.bs.total_current_assets)
_CL = ("balance_sheet.total_current_liabilities", lambda s: s.bs.total_current_liabilities)
_REV = ("income_statement.revenue", lambda s: s.inc.revenue)
_COGS = ("income_statement.cogs", lambda s: s.inc.cogs)
_NI = ("income_statement.net_income", lambda s: s.inc.net_income)
_TA = ("balance_sheet.total_assets", lambda s: s.bs.total_assets)
_TE = ("balance_sheet.total_equity", lambda s: s.bs.total_equity)
_TL = ("balance_sheet.total_liabilities", lambda s: s.bs.total_liabilities)
_EBIT = ("income_statement.operating_income", lambda s: s.inc.operating_income)
_OCF = ("cash_flow.operating_cash_flow", lambda s: s.cf.operating_cash_flow)


def interest_coverage(statements: Statements, benchmarks: BenchmarkSet,
                      options: AnalysisOptions) -> RatioResult:
    s = latest(statements)
    require(s.inc.operating_income, "income_statement.operating_income")
    value = _interest_coverage(s)
    note = txt("No interest expense: coverage is capped.", "لا توجد مصروفات فوائد، لذا تم وضع حد أعلى للتغطية.") \
        if value == INTEREST_COVERAGE_CAP else None
    return _build("ratio.interest_coverage", txt("Interest coverage", "معدل تغطية الفوائد"), value, "times",
                  s.inc.operating_income, s.inc.interest_expense, benchmarks, statements,
                  _interest_coverage, note)


def debt_service_coverage(statements: Statements, benchmarks: BenchmarkSet,
                          options: AnalysisOptions) -> RatioResult:
    s = latest(statements)
    require(s.inc.operating_income, "income_statement.operating_income")
    value = _debt_service(s)
    return _build("ratio.debt_service_coverage", txt("Debt service coverage", "نسبة تغطية خدمة الدين"),
                  value, "times", s.inc.ebitda,
                  val(s.inc.interest_expense) + val(s.bs.current_portion_long_term_debt),
                  benchmarks, statements, _debt_service)


def roic(statements: Statements, benchmarks: BenchmarkSet, options: AnalysisOptions) -> RatioResult:
    s = latest(statements)
    require(s.inc.operating_income, "income_statement.operating_income")
    require(s.bs.total_equity, "balance_sheet.total_equity")
    fn = lambda st: _roic(st, options.tax_rate)
    return _build("ratio.roic", txt("Return on invested capital", "العائد على رأس المال المستثمر"),
                  fn(s), "percent", val(s.inc.operating_income) * (1 - options.tax_rate),
                  val(s.bs.total_equity) + val(s.bs.long_term_debt), benchmarks, statements, fn)


def _market(analysis_id: str, en: str, ar: str, unit: str, fn):
    def calculator(statements: Statements, benchmarks: BenchmarkSet,
                   options: AnalysisOptions) -> RatioResult:
        s = latest(statements)
        value = fn(s)
        return _build(analysis_id, txt(en, ar), value, unit, None, None, benchmarks, statements, fn)
    calculator.__name__ = analysis_id.split(".", 1)[1]
    return calculator


CALCULATORS = {
    "ratio.current": _simple("ratio.current", "Current ratio", "النسبة الجارية", "ratio", _current,
                             lambda s: s.bs.total_current_assets, lambda s: s.bs.total_current_liabilities,
                             (_CA, _CL)),
    "ratio.quick": _simple("ratio.quick", "Quick ratio", "النسبة السريعة", "ratio", _quick,
                           lambda s: val(s.bs.total_current_assets) - val(s.bs.inventory),
                           lambda s: s.bs.total_current_liabilities, (_CA, _CL)),
    "ratio.cash": _simple("ratio.cash", "Cash ratio", "نسبة النقدية", "ratio", _cash,
                          lambda s: s.bs.cash_and_equivalents, lambda s: s.bs.total_current_liabilities,
                          (("balance_sheet.cash", lambda s: s.bs.cash), _CL)),
    "ratio.ocf": _simple("ratio.ocf", "Operating cash flow ratio", "نسبة التدفق النقدي التشغيلي", "ratio",
                         _ocf, lambda s: s.cf.operating_cash_flow, lambda s: s.bs.total_current_liabilities,
                         (_OCF, _CL)),
    "ratio.working_capital": _simple("ratio.working_capital", "Net working capital", "صافي رأس المال العامل",
                                     "currency", _nwc, lambda s: s.bs.total_current_assets,
                                     lambda s: s.bs.total_current_liabilities, (_CA, _CL)),
    "ratio.inventory_turnover": _simple("ratio.inventory_turnover", "Inventory turnover", "معدل دوران المخزون",
                                        "times", _inv_turn, lambda s: s.inc.cogs, lambda s: s.bs.inventory,
                                        (_COGS,)),
    "ratio.receivables_turnover": _simple("ratio.receivables_turnover", "Receivables turnover",
                                          "معدل دوران الذمم المدينة", "times", _rec_turn,
                                          lambda s: s.inc.revenue, lambda s: s.bs.receivables, (_REV,)),
    "ratio.dso": _simple("ratio.dso", "Days sales outstanding", "فترة التحصيل", "days", _dso,
                         lambda s: s.bs.receivables, lambda s: s.inc.revenue, (_REV,)),
    "ratio.payables_turnover": _simple("ratio.payables_turnover", "Payables turnover", "معدل دوران الذمم الدائنة",
                                       "times", _pay_turn, lambda s: s.inc.cogs, lambda s: s.bs.payables,
                                       (_COGS,)),
    "ratio.dpo": _simple("ratio.dpo", "Days payables outstanding", "فترة السداد", "days", _dpo,
                         lambda s: s.bs.payables, lambda s: s.inc.cogs, (_COGS,)),
    "ratio.fixed_asset_turnover": _simple("ratio.fixed_asset_turnover", "Fixed asset turnover",
                                          "معدل دوران الأصول الثابتة", "times", _fa_turn,
                                          lambda s: s.inc.revenue, lambda s: s.bs.ppe, (_REV,)),
    "ratio.total_asset_turnover": _simple("ratio.total_asset_turnover", "Total asset turnover",
                                          "معدل دوران إجمالي الأصول", "times", _ta_turn,
                                          lambda s: s.inc.revenue, lambda s: s.bs.total_assets, (_REV, _TA)),
    "ratio.operating_cycle": _simple("ratio.operating_cycle", "Operating cycle", "الدورة التشغيلية", "days",
                                     _op_cycle, lambda s: None, lambda s: None, (_REV, _COGS)),
    "ratio.ccc": _simple("ratio.ccc", "Cash conversion cycle", "دورة التحويل النقدي", "days", _ccc,
                         lambda s: None, lambda s: None, (_REV, _COGS)),
    "ratio.debt_to_assets": _simple("ratio.debt_to_assets", "Debt to assets", "نسبة الديون إلى الأصول",
                                    "percent", _d2a, lambda s: s.bs.total_liabilities,
                                    lambda s: s.bs.total_assets, (_TL, _TA)),
    "ratio.debt_to_equity": _simple("ratio.debt_to_equity", "Debt to equity", "نسبة الديون إلى حقوق الملكية",
                                    "percent", _d2e, lambda s: s.bs.total_liabilities,
                                    lambda s: s.bs.total_equity, (_TL, _TE)),
    "ratio.interest_coverage": interest_coverage,
    "ratio.debt_service_coverage": debt_service_coverage,
    "ratio.equity_to_assets": _simple("ratio.equity_to_assets", "Equity to assets",
                                      "نسبة حقوق الملكية إلى الأصول", "percent", _e2a,
                                      lambda s: s.bs.total_equity, lambda s: s.bs.total_assets, (_TE, _TA)),
    "ratio.gross_margin": _simple("ratio.gross_margin", "Gross profit margin", "هامش الربح الإجمالي", "percent",
                                  _gm, lambda s: s.inc.gross_profit, lambda s: s.inc.revenue, (_REV,)),
    "ratio.operating_margin": _simple("ratio.operating_margin", "Operating profit margin", "هامش الربح التشغيلي",
                                      "percent", _om, lambda s: s.inc.operating_income,
                                      lambda s: s.inc.revenue, (_REV, _EBIT)),
    "ratio.net_margin": _simple("ratio.net_margin", "Net profit margin", "هامش صافي الربح", "percent", _nm,
                                lambda s: s.inc.net_income, lambda s: s.inc.revenue, (_REV, _NI)),
    "ratio.roa": _simple("ratio.roa", "Return on assets", "العائد على الأصول", "percent", _roa,
                         lambda s: s.inc.net_income, lambda s: s.bs.total_assets, (_NI, _TA)),
    "ratio.roe": _simple("ratio.roe", "Return on equity", "العائد على حقوق الملكية", "percent", _roe,
                         lambda s: s.inc.net_income, lambda s: s.bs.total_equity, (_NI, _TE)),
    "ratio.roic": roic,
    "ratio.pe": _market("ratio.pe", "Price to earnings", "مضاعف الربحية", "times", _pe),
    "ratio.pb": _market("ratio.pb", "Price to book", "مضاعف القيمة الدفترية", "times", _pb),
    "ratio.dividend_yield": _market("ratio.dividend_yield", "Dividend yield", "عائد التوزيعات", "percent",
                                    _dividend_yield),
    "ratio.eps": _market("ratio.eps", "Earnings per share", "ربحية السهم", "currency", _eps),
    "ratio.bvps": _market("ratio.bvps", "Book value per share", "القيمة الدفترية للسهم", "currency", _bvps),
}
