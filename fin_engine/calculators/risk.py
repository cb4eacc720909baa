"""
fin_engine/calculators/risk.py
==============================
Risk analyses: asset pricing, tail risk, stress tests, exposure screens,
capital adequacy and corporate-transaction risk.

Return-based analyses use shareholder returns from ``_base.company_returns``
aligned with the benchmark market index. Where a company's own returns are
too short to estimate beta the industry beta is used and the result carries
the ``estimated_beta`` flag.
"""
from __future__ import annotations
import math
from dataclasses import fields
from typing import Dict, List, Tuple

import numpy as np
from scipy.stats import norm

from ..errors import InputDataError
from ..finance import capm
from ..formatting import format_compact, format_percent, txt
from ..mathutils import clamp, mean, pct_changes, pearson_r, percentage, ratio, safe_div, std_dev
from ..quant import historical_var, max_drawdown, parametric_var
from ..types import AnalysisOptions, BenchmarkSet, RiskResult
from ._base import (
    Statements, aligned_returns, company_returns, estimated_beta, interest_rate_on_debt, latest,
    level, market_cap, market_returns, require, require_nonzero, revenue, revenue_growth, val,
    values,
)

# Nigrini's close-conformity limit for first-digit MAD.
BENFORD_MAD_LIMIT = 0.015
BENFORD = {d: math.log10(1 + 1 / d) for d in range(1, 10)}

# Liquidation recovery rates by asset class.
RECOVERY_RATES: Dict[str, float] = {
    "cash": 1.0, "receivables": 0.8, "inventory": 0.5, "ppe": 0.4, "other": 0.2,
}

SMB_PREMIUM = 0.02
HML_PREMIUM = 0.03


def _returns(statements: Statements, n: int) -> List[float]:
    r = company_returns(statements)
    if len(r) < n:
        raise InputDataError("statements", f"needs {n} annual returns, got {len(r)}")
    return [r[y] for y in sorted(r)]


def _beta_flags(estimated: bool) -> Tuple[str, ...]:
    return () if estimated else ("estimated_beta",)


def _hurdle(options: AnalysisOptions) -> float:
    return round(options.discount_rate * 100, 2)


# ─── Asset pricing ────────────────────────────────────────────────────────────

def modern_portfolio(statements: Statements, benchmarks: BenchmarkSet,
                     options: AnalysisOptions) -> RiskResult:
    """Sharpe ratio of shareholder returns, benchmarked on the market's Sharpe ratio."""
    r = _returns(statements, 2)
    mu, sd = mean(r), std_dev(r)
    if not sd:
        raise InputDataError("statements", "returns have no dispersion")
    sharpe = (mu - options.risk_free_rate) / sd
    mkt = list(market_returns(benchmarks).values())
    mkt_sd = std_dev(mkt)
    bench = round((mean(mkt) - options.risk_free_rate) / mkt_sd, 4) if mkt_sd else None
    return RiskResult(
        value=round(sharpe, 4),
        benchmark=bench,
        level=level(sharpe, 0.0, 0.5, higher_is_riskier=False),
        exposure=round(sd * 100, 2),
        metrics={"mean_return": round(mu * 100, 2), "volatility": round(sd * 100, 2)},
        interpretation=txt(
            f"Shareholder returns average {format_percent(mu * 100)} with {format_percent(sd * 100)} "
            f"volatility, a Sharpe ratio of {sharpe:.2f}.",
            f"متوسط العائد {format_percent(mu * 100)} بتقلب {format_percent(sd * 100)} ونسبة شارب {sharpe:.2f}.",
        ),
        chart_hint="scatter",
    )


def capm_cost(statements: Statements, benchmarks: BenchmarkSet,
              options: AnalysisOptions) -> RiskResult:
    b, estimated = estimated_beta(statements, benchmarks)
    ke = capm(options.risk_free_rate, b, options.market_return) * 100
    return RiskResult(
        value=round(ke, 2),
        benchmark=_hurdle(options),
        level=level(b, 0.8, 1.2),
        metrics={"beta": round(b, 4), "risk_free_rate": options.risk_free_rate,
                 "market_premium": round(options.market_return - options.risk_free_rate, 4)},
        flags=_beta_flags(estimated),
        interpretation=txt(
            f"CAPM cost of equity is {format_percent(ke)} (β = {b:.2f}).",
            f"تكلفة حقوق الملكية وفق CAPM تبلغ {format_percent(ke)} (β = {b:.2f}).",
        ),
        chart_hint="line",
    )


def arbitrage_pricing(statements: Statements, benchmarks: BenchmarkSet,
                      options: AnalysisOptions) -> RiskResult:
    """Market, inflation and leverage factor premia."""
    s = latest(statements)
    b, estimated = estimated_beta(statements, benchmarks)
    de = safe_div(s.bs.total_liabilities, s.bs.total_equity) or 0.0
    premia = {
        "market": b * (options.market_return - options.risk_free_rate),
        "inflation": 0.5 * options.inflation,
        "leverage": 0.01 * clamp(de, 0.0, 3.0),
    }
    ke = (options.risk_free_rate + sum(premia.values())) * 100
    return RiskResult(
        value=round(ke, 2),
        benchmark=_hurdle(options),
        level=level(ke, options.discount_rate * 100, options.discount_rate * 150),
        metrics={k: round(v * 100, 2) for k, v in premia.items()},
        flags=_beta_flags(estimated),
        interpretation=txt(
            f"Required return across market, inflation and leverage factors is {format_percent(ke)}.",
            f"العائد المطلوب عبر عوامل السوق والتضخم والرافعة {format_percent(ke)}.",
        ),
        chart_hint="bar",
    )


def fama_french(statements: Statements, benchmarks: BenchmarkSet,
                options: AnalysisOptions) -> RiskResult:
    s = latest(statements)
    b, estimated = estimated_beta(statements, benchmarks)
    equity = val(s.bs.total_equity)
    mcap = market_cap(s)
    size = mcap if mcap is not None else equity
    smb = 0.5 if size < 2e9 else 0.0
    btm = safe_div(equity, mcap)
    hml = 0.0 if btm is None else (0.5 if btm > 1.0 else (-0.3 if btm < 0.5 else 0.0))
    ke = (options.risk_free_rate + b * (options.market_return - options.risk_free_rate)
          + smb * SMB_PREMIUM + hml * HML_PREMIUM) * 100
    return RiskResult(
        value=round(ke, 2),
        benchmark=_hurdle(options),
        level=level(ke, options.discount_rate * 100, options.discount_rate * 150),
        metrics={"beta": round(b, 4), "smb_loading": smb, "hml_loading": hml,
                 "book_to_market": round(btm, 4) if btm is not None else None},
        flags=_beta_flags(estimated),
        interpretation=txt(
            f"The three-factor cost of equity is {format_percent(ke)}.",
            f"تكلفة حقوق الملكية وفق نموذج العوامل الثلاثة {format_percent(ke)}.",
        ),
        chart_hint="bar",
    )


def beta(statements: Statements, benchmarks: BenchmarkSet,
         options: AnalysisOptions) -> RiskResult:
    b, estimated = estimated_beta(statements, benchmarks)
    if not estimated:
        raise InputDataError("benchmarks.historical_index", "not enough overlapping returns to estimate beta")
    return RiskResult(
        value=round(b, 4),
        level=level(b, 0.8, 1.2),
        interpretation=txt(
            f"Shareholder returns move {b:.2f}x the market.",
            f"تتحرك عوائد المساهمين بمقدار {b:.2f} مرة من حركة السوق.",
        ),
        chart_hint="scatter",
    )


def alpha(statements: Statements, benchmarks: BenchmarkSet,
          options: AnalysisOptions) -> RiskResult:
    comp, mkt = aligned_returns(statements, benchmarks, 3)
    b, _ = estimated_beta(statements, benchmarks)
    jensen = (mean(comp) - (options.risk_free_rate + b * (mean(mkt) - options.risk_free_rate))) * 100
    return RiskResult(
        value=round(jensen, 2),
        benchmark=0.0,
        level=level(jensen, -2.0, 0.0, higher_is_riskier=False),
        metrics={"beta": round(b, 4), "observations": len(comp)},
        interpretation=txt(
            f"Jensen's alpha is {jensen:+.2f}% a year relative to CAPM.",
            f"معامل ألفا لجنسن {jensen:+.2f}% سنوياً.",
        ),
        chart_hint="bar",
    )


# ─── Tail risk / stress ───────────────────────────────────────────────────────

def _tail(statements: Statements, options: AnalysisOptions) -> Tuple[float, float, str]:
    """(VaR, ES) as loss fractions; historical with 3+ returns, parametric with 2."""
    r = _returns(statements, 2)
    if len(r) >= 3:
        var, es = historical_var(r, options.confidence)
        return var, es, "historical"
    mu, sd = mean(r), std_dev(r) or 0.0
    var = parametric_var(mu, sd, options.confidence)
    z = norm.ppf(options.confidence)
    es = max(0.0, sd * norm.pdf(z) / (1 - options.confidence) - mu)
    return var, es, "parametric"


def value_at_risk(statements: Statements, benchmarks: BenchmarkSet,
                  options: AnalysisOptions) -> RiskResult:
    var, es, method = _tail(statements, options)
    equity = val(market_cap(latest(statements)) or latest(statements).bs.total_equity)
    return RiskResult(
        value=round(var * 100, 2),
        level=level(var * 100, 10.0, 25.0),
        exposure=round(var * equity, 2),
        metrics={"method": method, "confidence": options.confidence},
        flags=() if method == "historical" else ("parametric",),
        interpretation=txt(
            f"At {options.confidence:.0%} confidence the one-year loss should not exceed "
            f"{format_percent(var * 100)} ({format_compact(var * equity)}).",
            f"عند ثقة {options.confidence:.0%} لا يتجاوز الخسارة السنوية {format_percent(var * 100)}.",
        ),
        chart_hint="histogram",
    )


def expected_shortfall(statements: Statements, benchmarks: BenchmarkSet,
                       options: AnalysisOptions) -> RiskResult:
    var, es, method = _tail(statements, options)
    equity = val(market_cap(latest(statements)) or latest(statements).bs.total_equity)
    return RiskResult(
        value=round(es * 100, 2),
        level=level(es * 100, 15.0, 35.0),
        exposure=round(es * equity, 2),
        metrics={"method": method, "var": round(var * 100, 2)},
        flags=() if method == "historical" else ("parametric",),
        interpretation=txt(
            f"In the worst {1 - options.confidence:.0%} of years the average loss is {format_percent(es * 100)}.",
            f"في أسوأ {1 - options.confidence:.0%} من السنوات يبلغ متوسط الخسارة {format_percent(es * 100)}.",
        ),
        chart_hint="histogram",
    )


def stress_test(statements: Statements, benchmarks: BenchmarkSet,
                options: AnalysisOptions) -> RiskResult:
    """Interest coverage after a 20% revenue shock with 70% of costs variable."""
    s = latest(statements)
    rev = require(s.inc.revenue, "income_statement.revenue")
    oi = require(s.inc.operating_income, "income_statement.operating_income")
    costs = rev - oi
    stressed = rev * 0.8 - costs * 0.3 - costs * 0.7 * 0.8
    interest = val(s.inc.interest_expense)
    coverage = min(stressed / interest, 999.0) if interest else 999.0
    return RiskResult(
        value=round(coverage, 2),
        benchmark=1.5,
        level=level(coverage, 1.5, 3.0, higher_is_riskier=False),
        exposure=round(oi - stressed, 2),
        metrics={"stressed_operating_income": round(stressed, 2), "base_operating_income": oi},
        interpretation=txt(
            f"After a 20% revenue shock, operating income of {format_compact(stressed)} covers interest "
            f"{coverage:.2f}x.",
            f"بعد صدمة إيرادات 20% يغطي الربح التشغيلي الفوائد {coverage:.2f} مرة.",
        ),
        chart_hint="bar",
    )


def catastrophic(statements: Statements, benchmarks: BenchmarkSet,
                 options: AnalysisOptions) -> RiskResult:
    """Months of cash operating costs covered by liquid funds if revenue stopped."""
    s = latest(statements)
    rev = require(s.inc.revenue, "income_statement.revenue")
    oi = require(s.inc.operating_income, "income_statement.operating_income")
    monthly = (rev - oi - val(s.inc.depreciation)) / 12
    if monthly <= 0:
        raise InputDataError("income_statement.operating_expenses", "no cash operating costs")
    months = s.bs.cash_and_equivalents / monthly
    return RiskResult(
        value=round(months, 2),
        benchmark=6.0,
        level=level(months, 3.0, 6.0, higher_is_riskier=False),
        exposure=round(monthly * 12, 2),
        interpretation=txt(
            f"Liquid funds would cover {months:.1f} months of operating costs in a revenue stoppage.",
            f"تغطي الأموال السائلة {months:.1f} شهراً من التكاليف التشغيلية عند توقف الإيرادات.",
        ),
        chart_hint="gauge",
    )


# ─── Exposure screens ─────────────────────────────────────────────────────────

def operational(statements: Statements, benchmarks: BenchmarkSet,
                options: AnalysisOptions) -> RiskResult:
    """Volatility of the operating margin in percentage points."""
    margins = [percentage(s.inc.operating_income, s.inc.revenue) for s in statements
               if s.inc.operating_income is not None and s.inc.revenue]
    if len(margins) < 2:
        raise InputDataError("income_statement.operating_income", "needs two years")
    sd = std_dev(margins)
    return RiskResult(
        value=round(sd, 2),
        level=level(sd, 2.0, 5.0),
        metrics={"mean_operating_margin": round(mean(margins), 2)},
        interpretation=txt(
            f"Operating margin swings by {sd:.2f} points a year.",
            f"يتذبذب الهامش التشغيلي بمقدار {sd:.2f} نقطة سنوياً.",
        ),
        chart_hint="line",
    )


def market(statements: Statements, benchmarks: BenchmarkSet,
           options: AnalysisOptions) -> RiskResult:
    """Systematic volatility: beta times market index volatility."""
    mkt = list(market_returns(benchmarks).values())
    sd = std_dev(mkt)
    if not sd:
        raise InputDataError("benchmarks.historical_index")
    b, estimated = estimated_beta(statements, benchmarks)
    value = abs(b) * sd * 100
    return RiskResult(
        value=round(value, 2),
        level=level(value, 10.0, 20.0),
        metrics={"beta": round(b, 4), "market_volatility": round(sd * 100, 2)},
        flags=_beta_flags(estimated),
        interpretation=txt(
            f"Systematic volatility is {format_percent(value)} a year.",
            f"التقلب النظامي {format_percent(value)} سنوياً.",
        ),
        chart_hint="bar",
    )


def credit(statements: Statements, benchmarks: BenchmarkSet,
           options: AnalysisOptions) -> RiskResult:
    """Customer credit exposure: receivables as a percentage of revenue."""
    s = latest(statements)
    rev = require_nonzero(s.inc.revenue, "income_statement.revenue")
    rec = require(s.bs.receivables, "balance_sheet.receivables")
    value = percentage(rec, rev)
    bench = round((benchmarks.get("activity.dso") or 45.0) / 365 * 100, 2)
    return RiskResult(
        value=value,
        benchmark=bench,
        level=level(value, bench, bench * 1.5),
        exposure=rec,
        interpretation=txt(
            f"Receivables equal {format_percent(value)} of revenue.",
            f"تعادل الذمم المدينة {format_percent(value)} من الإيرادات.",
        ),
        chart_hint="gauge",
    )


def liquidity(statements: Statements, benchmarks: BenchmarkSet,
              options: AnalysisOptions) -> RiskResult:
    s = latest(statements)
    cl = require_nonzero(s.bs.total_current_liabilities, "balance_sheet.total_current_liabilities")
    value = ratio(s.bs.cash_and_equivalents, cl)
    return RiskResult(
        value=value,
        level=level(value, 0.1, 0.2, higher_is_riskier=False),
        exposure=round(max(cl - s.bs.cash_and_equivalents, 0.0), 2),
        interpretation=txt(
            f"Cash covers {value:.2f}x current liabilities.",
            f"يغطي النقد الالتزامات الجارية {value:.2f} مرة.",
        ),
        chart_hint="gauge",
    )


def _share(part, whole, field: str) -> float:
    whole = require_nonzero(whole, field)
    return percentage(val(part), whole)


def cyber(statements: Statements, benchmarks: BenchmarkSet,
          options: AnalysisOptions) -> RiskResult:
    """Share of assets that are intangible (data, software, IP)."""
    s = latest(statements)
    value = _share(s.bs.intangibles, s.bs.total_assets, "balance_sheet.total_assets")
    return RiskResult(
        value=value,
        level=level(value, 10.0, 30.0),
        exposure=val(s.bs.intangibles),
        interpretation=txt(
            f"Intangibles make up {format_percent(value)} of assets.",
            f"تمثل الأصول غير الملموسة {format_percent(value)} من الأصول.",
        ),
        chart_hint="gauge",
    )


def geopolitical(statements: Statements, benchmarks: BenchmarkSet,
                 options: AnalysisOptions) -> RiskResult:
    """Sensitivity to external shocks proxied by revenue growth volatility."""
    g = pct_changes(values(statements, revenue, "income_statement.revenue", 3))
    sd = (std_dev(g) or 0.0) * 100
    return RiskResult(
        value=round(sd, 2),
        level=level(sd, 5.0, 15.0),
        interpretation=txt(
            f"Revenue growth varies by {format_percent(sd)} a year.",
            f"يتفاوت نمو الإيرادات بنسبة {format_percent(sd)} سنوياً.",
        ),
        chart_hint="line",
    )


def climate(statements: Statements, benchmarks: BenchmarkSet,
            options: AnalysisOptions) -> RiskResult:
    """Transition exposure proxied by fixed-asset intensity."""
    s = latest(statements)
    value = _share(s.bs.ppe, s.bs.total_assets, "balance_sheet.total_assets")
    return RiskResult(
        value=value,
        level=level(value, 30.0, 60.0),
        exposure=val(s.bs.ppe),
        interpretation=txt(
            f"Fixed assets are {format_percent(value)} of total assets.",
            f"تمثل الأصول الثابتة {format_percent(value)} من إجمالي الأصول.",
        ),
        chart_hint="gauge",
    )


def governance(statements: Statements, benchmarks: BenchmarkSet,
               options: AnalysisOptions) -> RiskResult:
    """Total accruals (net income less operating cash flow) over total assets."""
    s = latest(statements)
    ni = require(s.inc.net_income, "income_statement.net_income")
    ocf = require(s.cf.operating_cash_flow, "cash_flow.operating_cash_flow")
    ta = require_nonzero(s.bs.total_assets, "balance_sheet.total_assets")
    value = round((ni - ocf) / ta * 100, 2)
    return RiskResult(
        value=value,
        benchmark=5.0,
        level=level(value, 0.0, 5.0),
        exposure=round(ni - ocf, 2),
        interpretation=txt(
            f"Accruals equal {format_percent(value)} of assets"
            + ("; earnings run ahead of cash." if value > 0 else "; cash backs earnings."),
            f"تعادل الاستحقاقات {format_percent(value)} من الأصول.",
        ),
        chart_hint="bar",
    )


def social(statements: Statements, benchmarks: BenchmarkSet,
           options: AnalysisOptions) -> RiskResult:
    s = latest(statements)
    cost = require(s.inc.employee_costs, "income_statement.employee_costs")
    value = _share(cost, s.inc.revenue, "income_statement.revenue")
    return RiskResult(
        value=value,
        level=level(value, 20.0, 40.0),
        exposure=cost,
        interpretation=txt(
            f"Employee costs absorb {format_percent(value)} of revenue.",
            f"تستهلك تكاليف العاملين {format_percent(value)} من الإيرادات.",
        ),
        chart_hint="gauge",
    )


def forensic_valuation(statements: Statements, benchmarks: BenchmarkSet,
                       options: AnalysisOptions) -> RiskResult:
    """Gap between an earnings-capitalisation value and book value, in percent of book."""
    s = latest(statements)
    ni = require(s.inc.net_income, "income_statement.net_income")
    book = require_nonzero(s.bs.total_equity, "balance_sheet.total_equity")
    earnings_value = ni / options.discount_rate
    value = abs(earnings_value - book) / abs(book) * 100
    return RiskResult(
        value=round(value, 2),
        level=level(value, 25.0, 75.0),
        exposure=round(abs(earnings_value - book), 2),
        metrics={"earnings_value": round(earnings_value, 2), "book_value": book},
        interpretation=txt(
            f"Capitalised earnings ({format_compact(earnings_value)}) differ from book value by {format_percent(value)}.",
            f"تختلف القيمة الرأسمالية للأرباح عن القيمة الدفترية بنسبة {format_percent(value)}.",
        ),
        chart_hint="bar",
    )


def credit_models(statements: Statements, benchmarks: BenchmarkSet,
                  options: AnalysisOptions) -> RiskResult:
    """Merton distance to default with a KMV default point (current liabilities + half long-term debt)."""
    s = latest(statements)
    equity = market_cap(s) or val(s.bs.total_equity)
    if equity <= 0:
        raise InputDataError("balance_sheet.total_equity", "no positive equity value")
    cl = require(s.bs.total_current_liabilities, "balance_sheet.total_current_liabilities")
    default_point = cl + 0.5 * val(s.bs.long_term_debt)
    if default_point <= 0:
        raise InputDataError("balance_sheet.total_current_liabilities", "no liabilities")
    r = company_returns(statements)
    sigma_e = std_dev(list(r.values())) if len(r) >= 2 else None
    sigma_e = sigma_e or 0.30
    assets = equity + val(s.bs.total_liabilities)
    sigma_a = max(sigma_e * equity / assets, 0.01)
    dd = (math.log(assets / default_point) + (options.risk_free_rate - 0.5 * sigma_a ** 2)) / sigma_a
    pd = float(norm.cdf(-dd))
    return RiskResult(
        value=round(dd, 4),
        benchmark=2.0,
        level=level(dd, 1.0, 2.0, higher_is_riskier=False),
        exposure=round(default_point, 2),
        metrics={"default_probability": round(pd, 6), "asset_volatility": round(sigma_a, 4),
                 "asset_value": round(assets, 2)},
        flags=() if len(r) >= 2 else ("estimated_volatility",),
        interpretation=txt(
            f"Assets sit {dd:.2f} standard deviations above the default point (PD {format_percent(pd * 100)}).",
            f"تبعد الأصول {dd:.2f} انحراف معياري عن نقطة التعثر.",
        ),
        chart_hint="gauge",
    )


def concentration(statements: Statements, benchmarks: BenchmarkSet,
                  options: AnalysisOptions) -> RiskResult:
    """Herfindahl index (0-10000) of the asset mix."""
    bs = latest(statements).bs
    ta = require_nonzero(bs.total_assets, "balance_sheet.total_assets")
    parts = {
        "cash": bs.cash_and_equivalents, "receivables": val(bs.receivables), "inventory": val(bs.inventory),
        "ppe": val(bs.ppe), "intangibles": val(bs.intangibles), "investments": val(bs.long_term_investments),
    }
    parts["other"] = max(ta - sum(parts.values()), 0.0)
    shares = {k: v / ta * 100 for k, v in parts.items()}
    hhi = sum(v ** 2 for v in shares.values())
    return RiskResult(
        value=round(hhi, 2),
        level=level(hhi, 1500.0, 2500.0),
        metrics={"shares": {k: round(v, 2) for k, v in shares.items()}},
        interpretation=txt(
            f"The asset mix has a Herfindahl index of {hhi:,.0f}; the largest block is "
            f"{max(shares, key=shares.get)}.",
            f"مؤشر هيرفندال لتركيبة الأصول {hhi:,.0f}.",
        ),
        chart_hint="pie",
    )


def dynamic_correlation(statements: Statements, benchmarks: BenchmarkSet,
                        options: AnalysisOptions) -> RiskResult:
    """Latest 3-year rolling correlation between shareholder and market returns."""
    comp, mkt = aligned_returns(statements, benchmarks, 3)
    rolling = [pearson_r(comp[i - 3:i], mkt[i - 3:i]) for i in range(3, len(comp) + 1)]
    rolling = [r for r in rolling if r is not None]
    if not rolling:
        raise InputDataError("statements", "returns have no dispersion")
    value = rolling[-1]
    return RiskResult(
        value=round(value, 4),
        level=level(value, 0.3, 0.7),
        metrics={"rolling": [round(r, 4) for r in rolling]},
        interpretation=txt(
            f"The latest rolling correlation with the market is {value:.2f}.",
            f"آخر ارتباط متحرك مع السوق {value:.2f}.",
        ),
        chart_hint="line",
    )


def risk_parity(statements: Statements, benchmarks: BenchmarkSet,
                options: AnalysisOptions) -> RiskResult:
    """Weight on the company in an inverse-volatility mix with the market index."""
    comp, mkt = aligned_returns(statements, benchmarks, 2)
    sc, sm = std_dev(comp), std_dev(mkt)
    if not sc or not sm:
        raise InputDataError("statements", "returns have no dispersion")
    w = (1 / sc) / (1 / sc + 1 / sm) * 100
    return RiskResult(
        value=round(w, 2),
        level=level(w, 30.0, 50.0, higher_is_riskier=False),
        metrics={"company_volatility": round(sc * 100, 2), "market_volatility": round(sm * 100, 2)},
        interpretation=txt(
            f"An equal-risk mix holds {format_percent(w)} in the company and the rest in the market.",
            f"يخصص مزيج تعادل المخاطر {format_percent(w)} للشركة.",
        ),
        chart_hint="pie",
    )


def drawdown(statements: Statements, benchmarks: BenchmarkSet,
             options: AnalysisOptions) -> RiskResult:
    prices = [s.market.share_price for s in statements if s.market.share_price]
    basis = "share_price"
    if len(prices) < 2:
        prices = values(statements, lambda s: s.bs.total_equity, "balance_sheet.total_equity", 2)
        basis = "book_equity"
    dd = abs(max_drawdown(prices)) * 100
    return RiskResult(
        value=round(dd, 2),
        level=level(dd, 10.0, 30.0),
        metrics={"basis": basis},
        interpretation=txt(
            f"The deepest peak-to-trough fall in {basis.replace('_', ' ')} was {format_percent(dd)}.",
            f"أكبر تراجع من القمة إلى القاع بلغ {format_percent(dd)}.",
        ),
        chart_hint="line",
    )


# ─── Capital adequacy ─────────────────────────────────────────────────────────

def icaap(statements: Statements, benchmarks: BenchmarkSet,
          options: AnalysisOptions) -> RiskResult:
    """Equity over risk-weighted assets (cash 0%, securities 20%, everything else 100%)."""
    bs = latest(statements).bs
    ta = require_nonzero(bs.total_assets, "balance_sheet.total_assets")
    rwa = ta - val(bs.cash) - 0.8 * val(bs.marketable_securities)
    if rwa <= 0:
        raise InputDataError("balance_sheet.total_assets", "no risk-weighted assets")
    value = percentage(bs.total_equity, rwa)
    return RiskResult(
        value=value,
        level=level(value, 8.0, 10.5, higher_is_riskier=False),
        exposure=round(rwa, 2),
        interpretation=txt(
            f"Equity covers {format_percent(value)} of risk-weighted assets.",
            f"تغطي حقوق الملكية {format_percent(value)} من الأصول المرجحة بالمخاطر.",
        ),
        chart_hint="gauge",
    )


def basel(statements: Statements, benchmarks: BenchmarkSet,
          options: AnalysisOptions) -> RiskResult:
    """Tier-1 leverage ratio: tangible equity over total assets."""
    bs = latest(statements).bs
    ta = require_nonzero(bs.total_assets, "balance_sheet.total_assets")
    tier1 = val(bs.total_equity) - val(bs.intangibles)
    value = percentage(tier1, ta)
    return RiskResult(
        value=value,
        level=level(value, 3.0, 6.0, higher_is_riskier=False),
        exposure=round(tier1, 2),
        interpretation=txt(
            f"Tangible equity is {format_percent(value)} of total assets.",
            f"تمثل حقوق الملكية الملموسة {format_percent(value)} من إجمالي الأصول.",
        ),
        chart_hint="gauge",
    )


def backtesting(statements: Statements, benchmarks: BenchmarkSet,
                options: AnalysisOptions) -> RiskResult:
    """Share of years whose return breached the full-sample parametric VaR."""
    r = _returns(statements, 3)
    var = parametric_var(mean(r), std_dev(r) or 0.0, options.confidence)
    exceptions = sum(1 for x in r if x < -var)
    value = exceptions / len(r) * 100
    expected = round((1 - options.confidence) * 100, 2)
    return RiskResult(
        value=round(value, 2),
        benchmark=expected,
        level="high" if value > 2 * expected else ("medium" if value > expected else "low"),
        metrics={"exceptions": exceptions, "observations": len(r), "var": round(var * 100, 2)},
        interpretation=txt(
            f"{exceptions} of {len(r)} years breached VaR against {expected:.0f}% expected.",
            f"تجاوزت {exceptions} من {len(r)} سنوات القيمة المعرضة للخطر.",
        ),
        chart_hint="bar",
    )


# ─── Transactions ─────────────────────────────────────────────────────────────

def mergers(statements: Statements, benchmarks: BenchmarkSet,
            options: AnalysisOptions) -> RiskResult:
    """EPS accretion from a debt-financed bolt-on earning 20% of current profit at the industry P/E."""
    s = latest(statements)
    ni = require(s.inc.net_income, "income_statement.net_income")
    if ni <= 0:
        raise InputDataError("income_statement.net_income", "accretion needs positive earnings")
    target = 0.2 * ni
    price = target * (benchmarks.get("market.pe") or 15.0)
    after_tax_interest = price * interest_rate_on_debt(s) * (1 - options.tax_rate)
    value = (target - after_tax_interest) / ni * 100
    return RiskResult(
        value=round(value, 2),
        benchmark=0.0,
        level=level(value, -5.0, 0.0, higher_is_riskier=False),
        exposure=round(price, 2),
        metrics={"purchase_price": round(price, 2), "target_earnings": round(target, 2),
                 "financing_cost": round(after_tax_interest, 2)},
        interpretation=txt(
            f"The acquisition would be {'accretive' if value >= 0 else 'dilutive'} to EPS by {abs(value):.2f}%.",
            f"الاستحواذ {'يزيد' if value >= 0 else 'يخفض'} ربحية السهم بنسبة {abs(value):.2f}%.",
        ),
        chart_hint="bar",
    )


def leveraged_buyout(statements: Statements, benchmarks: BenchmarkSet,
                     options: AnalysisOptions) -> RiskResult:
    """Sponsor equity IRR: entry at the industry EV/EBITDA with 60% debt, exit at the same multiple."""
    s = latest(statements)
    ebitda = require(s.inc.ebitda, "income_statement.operating_income")
    if ebitda <= 0:
        raise InputDataError("income_statement.operating_income", "LBO needs positive EBITDA")
    multiple = benchmarks.get("valuation.ev_ebitda") or 8.0
    entry = ebitda * multiple
    debt = 0.6 * entry
    equity = entry - debt
    g = revenue_growth(statements)
    kd = interest_rate_on_debt(s)
    fcf_margin = safe_div(s.cf.free_cash_flow, ebitda) or 0.5
    years = options.forecast_years
    e = ebitda
    for _ in range(years):
        e *= 1 + g
        debt = max(debt - max(e * fcf_margin - debt * kd * (1 - options.tax_rate), 0.0), 0.0)
    exit_equity = e * multiple - debt
    if exit_equity <= 0:
        value = -100.0
    else:
        value = ((exit_equity / equity) ** (1 / years) - 1) * 100
    return RiskResult(
        value=round(value, 2),
        level=level(value, 15.0, 25.0, higher_is_riskier=False),
        exposure=round(0.6 * entry, 2),
        metrics={"entry_value": round(entry, 2), "exit_equity": round(exit_equity, 2),
                 "remaining_debt": round(debt, 2), "multiple": multiple},
        interpretation=txt(
            f"A 60% debt buyout at {multiple:.1f}x EBITDA returns {format_percent(value)} a year to equity.",
            f"يحقق الاستحواذ بالرافعة عند {multiple:.1f} مرة عائداً سنوياً {format_percent(value)}.",
        ),
        chart_hint="waterfall",
    )


def ipo(statements: Statements, benchmarks: BenchmarkSet,
        options: AnalysisOptions) -> RiskResult:
    """Offer value: earnings at the industry P/E less a 15% IPO discount."""
    s = latest(statements)
    ni = require(s.inc.net_income, "income_statement.net_income")
    if ni <= 0:
        raise InputDataError("income_statement.net_income", "IPO pricing needs positive earnings")
    pe = benchmarks.get("market.pe") or 15.0
    fair = ni * pe
    value = fair * 0.85
    per_share = safe_div(value, s.market.shares_outstanding)
    return RiskResult(
        value=round(value, 2),
        level="medium",
        exposure=round(fair - value, 2),
        metrics={"fair_value": round(fair, 2), "pe": pe,
                 "per_share": round(per_share, 4) if per_share is not None else None},
        interpretation=txt(
            f"An IPO would price the equity near {format_compact(value)} after a 15% discount.",
            f"يقدر الطرح العام قيمة حقوق الملكية بنحو {format_compact(value)} بعد خصم 15%.",
        ),
        chart_hint="bar",
    )


def spinoff(statements: Statements, benchmarks: BenchmarkSet,
            options: AnalysisOptions) -> RiskResult:
    """Value uplift (% of assets) from separating non-core assets and removing a 15% conglomerate discount."""
    bs = latest(statements).bs
    ta = require_nonzero(bs.total_assets, "balance_sheet.total_assets")
    non_core = val(bs.long_term_investments) + val(bs.other_non_current_assets)
    share = non_core / ta
    value = 0.15 * share * 100
    return RiskResult(
        value=round(value, 2),
        level=level(share * 100, 10.0, 30.0),
        exposure=round(non_core, 2),
        metrics={"non_core_share": round(share * 100, 2)},
        interpretation=txt(
            f"Non-core assets are {format_percent(share * 100)} of the total; separating them could add "
            f"about {format_percent(value)} of asset value.",
            f"تمثل الأصول غير الأساسية {format_percent(share * 100)} من الإجمالي.",
        ),
        chart_hint="bar",
    )


def restructuring(statements: Statements, benchmarks: BenchmarkSet,
                  options: AnalysisOptions) -> RiskResult:
    """Debt above a sustainable 3x EBITDA."""
    s = latest(statements)
    ebitda = require(s.inc.ebitda, "income_statement.operating_income")
    excess = s.bs.total_debt - 3 * max(ebitda, 0.0)
    return RiskResult(
        value=round(excess, 2),
        benchmark=0.0,
        level="high" if excess > 0 else "low",
        exposure=round(max(excess, 0.0), 2),
        metrics={"debt": s.bs.total_debt, "ebitda": ebitda,
                 "debt_to_ebitda": round(s.bs.total_debt / ebitda, 2) if ebitda > 0 else None},
        interpretation=txt(
            f"Debt is {format_compact(abs(excess))} {'above' if excess > 0 else 'below'} 3x EBITDA.",
            f"الدين {'أعلى' if excess > 0 else 'أقل'} من ثلاثة أضعاف EBITDA بمقدار {format_compact(abs(excess))}.",
        ),
        chart_hint="bar",
    )


def bankruptcy_workout(statements: Statements, benchmarks: BenchmarkSet,
                       options: AnalysisOptions) -> RiskResult:
    """Creditor recovery in liquidation at fixed recovery rates per asset class."""
    bs = latest(statements).bs
    ta = require_nonzero(bs.total_assets, "balance_sheet.total_assets")
    tl = require_nonzero(bs.total_liabilities, "balance_sheet.total_liabilities")
    classes = {"cash": bs.cash_and_equivalents, "receivables": val(bs.receivables),
               "inventory": val(bs.inventory), "ppe": val(bs.ppe)}
    classes["other"] = max(ta - sum(classes.values()), 0.0)
    proceeds = sum(v * RECOVERY_RATES[k] for k, v in classes.items())
    value = min(proceeds / tl * 100, 100.0)
    return RiskResult(
        value=round(value, 2),
        benchmark=50.0,
        level=level(value, 40.0, 70.0, higher_is_riskier=False),
        exposure=round(max(tl - proceeds, 0.0), 2),
        metrics={"liquidation_proceeds": round(proceeds, 2)},
        interpretation=txt(
            f"Liquidation would recover {format_percent(value)} of liabilities.",
            f"تسترد التصفية {format_percent(value)} من الالتزامات.",
        ),
        chart_hint="waterfall",
    )


def _first_digits(statements: Statements) -> List[int]:
    digits = []
    for s in statements:
        for part in (s.balance_sheet, s.income_statement, s.cash_flow):
            for f in fields(part):
                v = getattr(part, f.name)
                if v:
                    text = f"{abs(v):e}"
                    if text[0] != "0":
                        digits.append(int(text[0]))
    return digits


def forensic(statements: Statements, benchmarks: BenchmarkSet,
             options: AnalysisOptions) -> RiskResult:
    """Mean absolute deviation of first digits from Benford's law."""
    digits = _first_digits(statements)
    if len(digits) < 30:
        raise InputDataError("statements", f"Benford test needs 30 figures, got {len(digits)}")
    counts = np.bincount(digits, minlength=10)[1:]
    observed = counts / counts.sum()
    mad = float(np.mean([abs(observed[d - 1] - BENFORD[d]) for d in range(1, 10)]))
    return RiskResult(
        value=round(mad, 4),
        benchmark=BENFORD_MAD_LIMIT,
        level=level(mad, 0.012, BENFORD_MAD_LIMIT),
        metrics={"figures": len(digits),
                 "observed": {d: round(float(observed[d - 1]), 4) for d in range(1, 10)}},
        interpretation=txt(
            f"First digits of {len(digits)} figures deviate from Benford's law by MAD {mad:.4f}.",
            f"انحراف الأرقام الأولى عن قانون بنفورد {mad:.4f}.",
        ),
        chart_hint="bar",
    )


CALCULATORS = {
    "risk.mpt": modern_portfolio,
    "risk.capm": capm_cost,
    "risk.apt": arbitrage_pricing,
    "risk.fama_french": fama_french,
    "risk.beta": beta,
    "risk.alpha": alpha,
    "risk.var": value_at_risk,
    "risk.expected_shortfall": expected_shortfall,
    "risk.stress_test": stress_test,
    "risk.catastrophic": catastrophic,
    "risk.operational": operational,
    "risk.market": market,
    "risk.credit": credit,
    "risk.liquidity": liquidity,
    "risk.cyber": cyber,
    "risk.geopolitical": geopolitical,
    "risk.climate": climate,
    "risk.governance": governance,
    "risk.social": social,
    "risk.forensic_valuation": forensic_valuation,
    "risk.credit_models": credit_models,
    "risk.concentration": concentration,
    "risk.dynamic_correlation": dynamic_correlation,
    "risk.risk_parity": risk_parity,
    "risk.drawdown": drawdown,
    "risk.icaap": icaap,
    "risk.basel": basel,
    "risk.backtesting": backtesting,
    "risk.mna": mergers,
    "risk.lbo": leveraged_buyout,
    "risk.ipo": ipo,
    "risk.spinoff": spinoff,
    "risk.restructuring": restructuring,
    "risk.bankruptcy_workout": bankruptcy_workout,
    "risk.forensic": forensic,
}
