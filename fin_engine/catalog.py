"""
fin_engine/catalog.py
=====================
Static, versioned analysis catalog: 181 bilingual definitions in ten
categories. Position in ``CATALOG`` is the canonical output order.

Each entry declares its preferred direction (``higher`` / ``lower``), an
optional industry ``benchmark_key`` and whether it is a ``heavy``
simulation / optimisation analysis that runs under the timeout. Every entry
carries its own bilingual description, and the per-category sizes are pinned
by ``CATEGORY_COUNTS`` when the catalog is built.
"""
from __future__ import annotations
from typing import Dict, List, Optional, Tuple

from .errors import CatalogError
from .types import CATEGORIES, AnalysisDefinition, LocalizedText

CATALOG_VERSION = "2024.3"

UNITS: Dict[str, LocalizedText] = {
    "percent": LocalizedText("percent", "نسبة مئوية"),
    "ratio": LocalizedText("ratio", "نسبة"),
    "times": LocalizedText("times", "مرة"),
    "days": LocalizedText("days", "يوم"),
    "years": LocalizedText("years", "سنة"),
    "currency": LocalizedText("currency", "عملة"),
    "score": LocalizedText("score", "درجة"),
    "index": LocalizedText("index (base = 100)", "رقم قياسي (الأساس = 100)"),
    "probability": LocalizedText("probability (%)", "احتمال (٪)"),
    "count": LocalizedText("count", "عدد"),
    "coefficient": LocalizedText("coefficient", "معامل"),
}

# (id, name_en, name_ar, unit, direction, benchmark_key, heavy)
_Row = Tuple[str, str, str, str, str, Optional[str], bool]


def _r(id: str, en: str, ar: str, unit: str = "percent", direction: str = "higher",
       key: Optional[str] = None, heavy: bool = False) -> _Row:
    return (id, en, ar, unit, direction, key, heavy)


_SEED: Dict[str, List[_Row]] = {
    "basic.structural": [
        _r("struct.vertical", "Vertical Analysis", "التحليل الرأسي"),
        _r("struct.horizontal", "Horizontal Analysis", "التحليل الأفقي", key="growth.revenue"),
        _r("struct.combined", "Combined Vertical-Horizontal Analysis", "التحليل المختلط"),
        _r("struct.trend", "Trend Analysis", "تحليل الاتجاه", "index"),
        _r("struct.basic_comparative", "Basic Comparative Analysis", "التحليل المقارن الأساسي"),
        _r("struct.value_added", "Value Added Analysis", "تحليل القيمة المضافة"),
        _r("struct.common_size", "Common-Size Analysis", "تحليل الحجم المشترك"),
        _r("struct.time_series", "Simple Time Series Analysis", "تحليل السلاسل الزمنية البسيط", "currency"),
        _r("struct.relative_change", "Relative Change Analysis", "تحليل التغير النسبي"),
        _r("struct.growth_rate", "Growth Rate Analysis", "تحليل معدلات النمو", key="growth.revenue"),
        _r("struct.deviation", "Deviation Analysis", "تحليل الانحرافات"),
        _r("struct.variance", "Variance Analysis", "تحليل التباين", direction="lower"),
        _r("struct.difference", "Difference Analysis", "تحليل الفروقات", "currency"),
        _r("struct.exceptional_items", "Exceptional Items Analysis", "تحليل البنود الاستثنائية",
           direction="lower"),
        _r("struct.index_number", "Index Number Analysis", "تحليل الأرقام القياسية", "index"),
    ],
    "basic.ratios": [
        _r("ratio.current", "Current Ratio", "النسبة الجارية", "ratio", key="liquidity.current_ratio"),
        _r("ratio.quick", "Quick Ratio", "النسبة السريعة", "ratio", key="liquidity.quick_ratio"),
        _r("ratio.cash", "Cash Ratio", "نسبة النقدية", "ratio", key="liquidity.cash_ratio"),
        _r("ratio.ocf", "Operating Cash Flow Ratio", "نسبة التدفق النقدي التشغيلي", "ratio",
           key="liquidity.ocf_ratio"),
        _r("ratio.working_capital", "Net Working Capital", "صافي رأس المال العامل", "currency"),
        _r("ratio.inventory_turnover", "Inventory Turnover", "معدل دوران المخزون", "times",
           key="activity.inventory_turnover"),
        _r("ratio.receivables_turnover", "Receivables Turnover", "معدل دوران الذمم المدينة", "times",
           key="activity.receivables_turnover"),
        _r("ratio.dso", "Days Sales Outstanding", "فترة التحصيل", "days", "lower", "activity.dso"),
        _r("ratio.payables_turnover", "Payables Turnover", "معدل دوران الذمم الدائنة", "times",
           key="activity.payables_turnover"),
        _r("ratio.dpo", "Days Payables Outstanding", "فترة السداد", "days", "lower", "activity.dpo"),
        _r("ratio.fixed_asset_turnover", "Fixed Asset Turnover", "معدل دوران الأصول الثابتة", "times",
           key="activity.fixed_asset_turnover"),
        _r("ratio.total_asset_turnover", "Total Asset Turnover", "معدل دوران إجمالي الأصول", "times",
           key="activity.total_asset_turnover"),
        _r("ratio.operating_cycle", "Operating Cycle", "الدورة التشغيلية", "days", "lower",
           "activity.operating_cycle"),
        _r("ratio.ccc", "Cash Conversion Cycle", "دورة التحويل النقدي", "days", "lower", "activity.ccc"),
        _r("ratio.debt_to_assets", "Debt to Assets", "نسبة الديون إلى الأصول", direction="lower",
           key="leverage.debt_to_assets"),
        _r("ratio.debt_to_equity", "Debt to Equity", "نسبة الديون إلى حقوق الملكية", direction="lower",
           key="leverage.debt_to_equity"),
        _r("ratio.interest_coverage", "Interest Coverage", "معدل تغطية الفوائد", "times",
           key="leverage.interest_coverage"),
        _r("ratio.debt_service_coverage", "Debt Service Coverage", "نسبة تغطية خدمة الدين", "times",
           key="leverage.dscr"),
        _r("ratio.equity_to_assets", "Equity to Assets", "نسبة حقوق الملكية إلى الأصول",
           key="leverage.equity_to_assets"),
        _r("ratio.gross_margin", "Gross Profit Margin", "هامش الربح الإجمالي",
           key="profitability.gross_margin"),
        _r("ratio.operating_margin", "Operating Profit Margin", "هامش الربح التشغيلي",
           key="profitability.operating_margin"),
        _r("ratio.net_margin", "Net Profit Margin", "هامش صافي الربح", key="profitability.net_margin"),
        _r("ratio.roa", "Return on Assets", "العائد على الأصول", key="profitability.roa"),
        _r("ratio.roe", "Return on Equity", "العائد على حقوق الملكية", key="profitability.roe"),
        _r("ratio.roic", "Return on Invested Capital", "العائد على رأس المال المستثمر",
           key="profitability.roic"),
        _r("ratio.pe", "Price to Earnings", "مضاعف الربحية", "times", "lower", "market.pe"),
        _r("ratio.pb", "Price to Book", "مضاعف القيمة الدفترية", "times", "lower", "market.pb"),
        _r("ratio.dividend_yield", "Dividend Yield", "عائد التوزيعات", key="market.dividend_yield"),
        _r("ratio.eps", "Earnings per Share", "ربحية السهم", "currency"),
        _r("ratio.bvps", "Book Value per Share", "القيمة الدفترية للسهم", "currency"),
    ],
    "basic.flow": [
        _r("flow.cash_basic", "Basic Cash Flow Analysis", "تحليل التدفقات النقدية الأساسي", "ratio",
           key="flow.cash_quality"),
        _r("flow.working_capital", "Working Capital Analysis", "تحليل رأس المال العامل", "currency"),
        _r("flow.cash_cycle", "Cash Cycle Analysis", "تحليل الدورة النقدية", "days", "lower",
           "activity.ccc"),
        _r("flow.break_even", "Break-Even Analysis", "تحليل نقطة التعادل", "currency", "lower"),
        _r("flow.margin_of_safety", "Margin of Safety", "هامش الأمان", key="flow.margin_of_safety"),
        _r("flow.cost_structure", "Cost Structure Analysis", "تحليل هيكل التكاليف", direction="lower",
           key="flow.cost_ratio"),
        _r("flow.fixed_variable", "Fixed and Variable Cost Analysis", "تحليل التكاليف الثابتة والمتغيرة",
           direction="lower"),
        _r("flow.operating_leverage", "Operating Leverage", "الرافعة التشغيلية", "times", "lower",
           "flow.operating_leverage"),
        _r("flow.contribution_margin", "Contribution Margin", "هامش المساهمة",
           key="flow.contribution_margin"),
        _r("flow.free_cash_flow", "Free Cash Flow", "التدفق النقدي الحر", "currency"),
    ],
    "intermediate.comparison": [
        _r("comp.industry", "Industry Comparison", "المقارنة مع الصناعة"),
        _r("comp.peer", "Peer Comparison", "المقارنة مع المنافسين"),
        _r("comp.historical", "Historical Comparison", "المقارنة التاريخية"),
        _r("comp.benchmarking", "Best-in-Class Benchmarking", "المقارنة المعيارية"),
        _r("comp.gap", "Gap Analysis", "تحليل الفجوة"),
        _r("comp.competitive_position", "Competitive Position", "تحليل الموقع التنافسي", "score"),
        _r("comp.market_share", "Market Share Analysis", "تحليل الحصة السوقية"),
        _r("comp.competitive_capability", "Competitive Capability", "تحليل القدرة التنافسية", "index"),
        _r("comp.strength_weakness", "Strengths and Weaknesses", "تحليل نقاط القوة والضعف", "count"),
        _r("comp.relative_performance", "Relative Performance", "تحليل الأداء النسبي"),
    ],
    "intermediate.valuation": [
        _r("val.tvm", "Time Value of Money", "القيمة الزمنية للنقود", "currency"),
        _r("val.npv", "Net Present Value", "صافي القيمة الحالية", "currency"),
        _r("val.irr", "Internal Rate of Return", "معدل العائد الداخلي"),
        _r("val.payback", "Payback Period", "فترة الاسترداد", "years", "lower"),
        _r("val.dcf", "Discounted Cash Flow Valuation", "التدفقات النقدية المخصومة", "currency"),
        _r("val.roi", "Return on Investment", "العائد على الاستثمار"),
        _r("val.eva", "Economic Value Added", "القيمة الاقتصادية المضافة", "currency"),
        _r("val.mva", "Market Value Added", "القيمة السوقية المضافة", "currency"),
        _r("val.gordon", "Gordon Growth Model", "نموذج جوردن للنمو", "currency"),
        _r("val.ddm", "Dividend Discount Model", "نموذج خصم التوزيعات", "currency"),
        _r("val.fair_value", "Fair Value", "القيمة العادلة", "currency"),
        _r("val.cost_benefit", "Cost-Benefit Analysis", "تحليل التكلفة والعائد", "ratio"),
        _r("val.feasibility", "Feasibility Study", "دراسة الجدوى", "score"),
        _r("val.project", "Project Evaluation (MIRR)", "تقييم المشروعات"),
        _r("val.alternatives", "Investment Alternatives", "المفاضلة بين البدائل الاستثمارية", "currency"),
        _r("val.company", "Company Valuation (Multiples)", "تقييم الشركة", "currency"),
    ],
    "intermediate.performance": [
        _r("perf.dupont", "DuPont Analysis", "تحليل دوبونت", key="profitability.roe"),
        _r("perf.productivity", "Productivity Analysis", "تحليل الإنتاجية", "currency"),
        _r("perf.operational_efficiency", "Operational Efficiency", "تحليل الكفاءة التشغيلية",
           direction="lower", key="performance.opex_ratio"),
        _r("perf.value_chain", "Value Chain Analysis", "تحليل سلسلة القيمة"),
        _r("perf.abc", "Activity-Based Cost Analysis", "تحليل التكلفة على أساس النشاط"),
        _r("perf.balanced_scorecard", "Balanced Scorecard", "بطاقة الأداء المتوازن", "score"),
        _r("perf.kpi", "Key Performance Indicators", "مؤشرات الأداء الرئيسية"),
        _r("perf.csf", "Critical Success Factors", "عوامل النجاح الحرجة", "score"),
        _r("perf.advanced_variance", "Advanced Variance Analysis", "تحليل الانحرافات المتقدم", "currency"),
        _r("perf.variance_deviation", "Budget Deviation Analysis", "تحليل التباين والانحراف"),
        _r("perf.flexibility", "Financial Flexibility", "تحليل المرونة المالية", "ratio"),
        _r("perf.sensitivity", "Sensitivity Analysis", "تحليل الحساسية", direction="lower"),
    ],
    "advanced.modeling": [
        _r("model.scenario", "Scenario Analysis", "تحليل السيناريوهات", "currency"),
        _r("model.monte_carlo", "Monte Carlo Simulation", "تحليل مونت كارلو", "currency", heavy=True),
        _r("model.financial_model", "Financial Model Projection", "النموذج المالي", "currency"),
        _r("model.multivariate_sensitivity", "Multivariate Sensitivity", "تحليل الحساسية متعدد المتغيرات",
           heavy=True),
        _r("model.decision_tree", "Decision Tree Analysis", "تحليل شجرة القرار", "currency"),
        _r("model.real_options", "Real Options Valuation", "تحليل الخيارات الحقيقية", "currency",
           heavy=True),
        _r("model.forecasting", "Financial Forecasting", "التنبؤ المالي", "currency"),
        _r("model.what_if", "What-If Analysis", "تحليل ماذا لو"),
        _r("model.stochastic", "Stochastic Modeling", "النمذجة العشوائية", "currency", heavy=True),
        _r("model.optimization", "Capital Structure Optimisation", "تحليل التحسين", heavy=True),
        _r("model.linear_programming", "Linear Programming", "البرمجة الخطية", "currency", heavy=True),
        _r("model.dynamic_programming", "Dynamic Programming", "البرمجة الديناميكية", "currency",
           heavy=True),
        _r("model.optimal_allocation", "Optimal Allocation", "التخصيص الأمثل للموارد", heavy=True),
        _r("model.game_theory", "Game Theory", "نظرية الألعاب", "currency"),
        _r("model.network", "Cash Network Analysis", "تحليل الشبكات"),
    ],
    "advanced.statistical": [
        _r("stat.regression", "Regression Analysis", "تحليل الانحدار", "coefficient"),
        _r("stat.time_series", "Advanced Time Series", "تحليل السلاسل الزمنية المتقدم"),
        _r("stat.arima", "ARIMA Forecast", "نموذج ARIMA", "currency"),
        _r("stat.garch", "GARCH Volatility", "نموذج GARCH", direction="lower"),
        _r("stat.pca", "Principal Component Analysis", "تحليل المكونات الرئيسية"),
        _r("stat.factor", "Factor Analysis", "التحليل العاملي"),
        _r("stat.anova", "ANOVA", "تحليل التباين ANOVA", "coefficient"),
        _r("stat.cointegration", "Cointegration Analysis", "تحليل التكامل المشترك", "coefficient", "lower"),
        _r("stat.var_model", "Vector Autoregression", "نموذج الانحدار الذاتي المتجه", "coefficient",
           "lower"),
        _r("stat.vecm", "Vector Error Correction", "نموذج تصحيح الخطأ المتجه", "coefficient", "lower"),
        _r("stat.copula", "Copula Dependence", "تحليل الكوبولا", "coefficient"),
        _r("stat.evt", "Extreme Value Analysis", "نظرية القيم المتطرفة", direction="lower"),
        _r("stat.survival", "Survival Analysis", "تحليل البقاء", "probability"),
        _r("stat.markov", "Markov Chain Analysis", "سلاسل ماركوف", "probability"),
        _r("stat.threshold", "Threshold Model", "نموذج العتبة"),
        _r("stat.regime_switching", "Regime Switching", "نموذج تبديل الأنظمة", "probability"),
        _r("stat.chaos", "Chaos Analysis", "تحليل الفوضى", "coefficient", "lower"),
        _r("stat.fractal", "Fractal Analysis", "التحليل الكسري", "coefficient"),
        _r("stat.bootstrap", "Bootstrap Analysis", "تحليل البوتستراب", heavy=True),
        _r("stat.wavelet", "Wavelet Analysis", "تحليل المويجات", direction="lower"),
    ],
    "advanced.risk": [
        _r("risk.mpt", "Modern Portfolio Theory", "نظرية المحفظة الحديثة", "ratio"),
        _r("risk.capm", "CAPM Cost of Equity", "نموذج تسعير الأصول الرأسمالية", direction="lower"),
        _r("risk.apt", "Arbitrage Pricing Theory", "نظرية تسعير المراجحة", direction="lower"),
        _r("risk.fama_french", "Fama-French Three Factor", "نموذج فاما-فرنش", direction="lower"),
        _r("risk.beta", "Beta", "معامل بيتا", "coefficient", "lower", "risk.beta"),
        _r("risk.alpha", "Jensen's Alpha", "معامل ألفا"),
        _r("risk.var", "Value at Risk", "القيمة المعرضة للخطر", direction="lower"),
        _r("risk.expected_shortfall", "Expected Shortfall", "العجز المتوقع", direction="lower"),
        _r("risk.stress_test", "Stress Testing", "اختبار الضغط", "times"),
        _r("risk.catastrophic", "Catastrophic Risk Runway", "تحليل المخاطر الكارثية", "count"),
        _r("risk.operational", "Operational Risk", "المخاطر التشغيلية", direction="lower"),
        _r("risk.market", "Market Risk", "مخاطر السوق", direction="lower"),
        _r("risk.credit", "Credit Risk", "مخاطر الائتمان", direction="lower"),
        _r("risk.liquidity", "Liquidity Risk", "مخاطر السيولة", "ratio", key="liquidity.cash_ratio"),
        _r("risk.cyber", "Cyber Risk Exposure", "المخاطر السيبرانية", direction="lower"),
        _r("risk.geopolitical", "Geopolitical Risk Exposure", "المخاطر الجيوسياسية", direction="lower"),
        _r("risk.climate", "Climate Transition Risk", "المخاطر المناخية", direction="lower"),
        _r("risk.governance", "Governance Risk (Accruals)", "مخاطر الحوكمة", direction="lower"),
        _r("risk.social", "Social Risk", "المخاطر الاجتماعية", direction="lower"),
        _r("risk.forensic_valuation", "Forensic Valuation", "التقييم الجنائي", direction="lower"),
        _r("risk.credit_models", "Structural Credit Model", "نماذج الائتمان", "coefficient"),
        _r("risk.concentration", "Concentration Risk", "مخاطر التركز", "index", "lower"),
        _r("risk.dynamic_correlation", "Dynamic Correlation", "الارتباط الديناميكي", "coefficient", "lower"),
        _r("risk.risk_parity", "Risk Parity", "تعادل المخاطر"),
        _r("risk.drawdown", "Maximum Drawdown", "أقصى تراجع", direction="lower"),
        _r("risk.icaap", "ICAAP Capital Adequacy", "التقييم الداخلي لكفاية رأس المال",
           key="risk.capital_adequacy"),
        _r("risk.basel", "Basel Leverage Ratio", "معايير بازل", key="risk.leverage_ratio"),
        _r("risk.backtesting", "VaR Backtesting", "الاختبار الرجعي", direction="lower"),
        _r("risk.mna", "Merger Accretion / Dilution", "تحليل الاندماج والاستحواذ"),
        _r("risk.lbo", "Leveraged Buyout", "الاستحواذ بالرافعة المالية", key="risk.lbo_irr"),
        _r("risk.ipo", "IPO Valuation", "تقييم الطرح العام الأولي", "currency"),
        _r("risk.spinoff", "Spin-Off Value", "تحليل الانفصال"),
        _r("risk.restructuring", "Restructuring Need", "تحليل إعادة الهيكلة", "currency", "lower"),
        _r("risk.bankruptcy_workout", "Liquidation Recovery", "تسوية الإفلاس"),
        _r("risk.forensic", "Forensic Accounting (Benford)", "المحاسبة الجنائية", "coefficient", "lower"),
    ],
    "advanced.detection": [
        _r("detect.fraud", "Fraud Detection (M-Score)", "كشف الاحتيال", "score", "lower"),
        _r("detect.aml", "Anti-Money Laundering Screen", "مكافحة غسل الأموال", "score", "lower"),
        _r("detect.market_manipulation", "Market Manipulation Screen", "كشف التلاعب بالسوق",
           direction="lower"),
        _r("detect.bankruptcy", "Bankruptcy Prediction (Altman Z)", "التنبؤ بالإفلاس", "score"),
        _r("detect.crisis", "Crisis Prediction", "التنبؤ بالأزمات", "score", "lower"),
        _r("detect.anomaly", "Anomaly Detection", "كشف الشذوذ", "score", "lower"),
        _r("detect.volatility", "Earnings Volatility", "تحليل التقلبات", direction="lower"),
        _r("detect.early_warning", "Early Warning Signals", "الإنذار المبكر", "count", "lower"),
        _r("detect.behavioral", "Earnings Smoothing Screen", "التحليل السلوكي", "ratio"),
        _r("detect.explainable", "Explainable Distress Score", "التحليل القابل للتفسير", "probability",
           "lower"),
        _r("detect.neural_forecast", "Neural Network Forecast", "التنبؤ بالشبكات العصبية", "currency"),
        _r("detect.lstm", "Sequence Model Forecast", "نموذج LSTM", "currency"),
        _r("detect.credit_rating", "Credit Rating", "التصنيف الائتماني", "score"),
        _r("detect.gradient_boosting", "Gradient Boosting Forecast", "التعزيز التدرجي", "currency"),
        _r("detect.clustering", "Clustering Analysis", "تحليل العناقيد"),
        _r("detect.autoencoder", "Autoencoder Anomaly Score", "المشفر التلقائي", "score", "lower"),
        _r("detect.sentiment", "Financial Sentiment", "تحليل المشاعر المالية", "score"),
        _r("detect.blockchain", "Cash Traceability Readiness", "تحليل البلوكتشين", "score"),
    ],
}

# id -> (description_en, description_ar)
_DESCRIPTIONS: Dict[str, Tuple[str, str]] = {
    # basic.structural
    "struct.vertical": (
        "Each balance-sheet line as a share of total assets and each income line as a share of revenue; "
        "the headline is net income as a percentage of revenue.",
        "كل بند في الميزانية كنسبة من إجمالي الأصول وكل بند في قائمة الدخل كنسبة من الإيرادات؛ "
        "المؤشر الرئيسي هو صافي الربح كنسبة من الإيرادات."),
    "struct.horizontal": (
        "Year-on-year percentage change of the key items; the headline is the latest revenue growth.",
        "نسبة التغير السنوي للبنود الرئيسية؛ المؤشر الرئيسي هو آخر نمو في الإيرادات."),
    "struct.combined": (
        "Movement of each vertical share between the last two years, in percentage points.",
        "تحرك كل نسبة رأسية بين آخر سنتين بالنقاط المئوية."),
    "struct.trend": (
        "Revenue indexed to the first year (base = 100) with a least-squares projection for next year.",
        "الإيرادات كرقم قياسي بالنسبة لسنة الأساس (= 100) مع إسقاط بالمربعات الصغرى للسنة القادمة."),
    "struct.basic_comparative": (
        "Side-by-side comparison of the last two years; the headline is the mean percentage change of the key items.",
        "مقارنة آخر سنتين جنباً إلى جنب؛ المؤشر الرئيسي هو متوسط نسبة التغير في البنود الرئيسية."),
    "struct.value_added": (
        "Value added by the income approach (operating income, employee costs and depreciation) as a share of revenue.",
        "القيمة المضافة بمدخل الدخل (الربح التشغيلي وتكاليف العاملين والإهلاك) كنسبة من الإيرادات."),
    "struct.common_size": (
        "Common-size statements for every year; the headline is the equity share of total assets.",
        "قوائم الحجم المشترك لكل سنة؛ المؤشر الرئيسي هو نسبة حقوق الملكية إلى إجمالي الأصول."),
    "struct.time_series": (
        "Three-year moving average of revenue and an exponentially smoothed forecast for next year.",
        "متوسط متحرك لثلاث سنوات للإيرادات وتنبؤ بالتمهيد الأسي للسنة القادمة."),
    "struct.relative_change": (
        "Change in each key item from the first to the last year, in percent.",
        "التغير في كل بند رئيسي من السنة الأولى إلى الأخيرة بالنسبة المئوية."),
    "struct.growth_rate": (
        "Compound annual growth rate of the key items; the headline is revenue CAGR.",
        "معدل النمو السنوي المركب للبنود الرئيسية؛ المؤشر الرئيسي هو نمو الإيرادات المركب."),
    "struct.deviation": (
        "Latest revenue against the trend line fitted on the earlier years, in percent.",
        "آخر إيرادات مقارنة بخط الاتجاه المقدر من السنوات السابقة بالنسبة المئوية."),
    "struct.variance": (
        "Dispersion of revenue over the history, as a coefficient of variation.",
        "تشتت الإيرادات عبر السنوات كمعامل اختلاف."),
    "struct.difference": (
        "Absolute change of the key items between the last two years; the headline is the change in net income.",
        "التغير المطلق في البنود الرئيسية بين آخر سنتين؛ المؤشر الرئيسي هو التغير في صافي الربح."),
    "struct.exceptional_items": (
        "Weight of exceptional and non-recurring items in pre-tax income.",
        "وزن البنود الاستثنائية وغير المتكررة في الربح قبل الضريبة."),
    "struct.index_number": (
        "Equal-weight composite index of revenue, net income, assets and equity (first year = 100).",
        "رقم قياسي مركب متساوي الأوزان للإيرادات وصافي الربح والأصول وحقوق الملكية (السنة الأولى = 100)."),
    # basic.ratios
    "ratio.current": (
        "Current assets divided by current liabilities.",
        "الأصول المتداولة مقسومة على الخصوم المتداولة."),
    "ratio.quick": (
        "Current assets less inventory, divided by current liabilities.",
        "الأصول المتداولة مطروحاً منها المخزون مقسومة على الخصوم المتداولة."),
    "ratio.cash": (
        "Cash and equivalents divided by current liabilities.",
        "النقدية وما في حكمها مقسومة على الخصوم المتداولة."),
    "ratio.ocf": (
        "Operating cash flow divided by current liabilities.",
        "التدفق النقدي التشغيلي مقسوماً على الخصوم المتداولة."),
    "ratio.working_capital": (
        "Current assets minus current liabilities.",
        "الأصول المتداولة ناقص الخصوم المتداولة."),
    "ratio.inventory_turnover": (
        "Cost of goods sold divided by inventory.",
        "تكلفة المبيعات مقسومة على المخزون."),
    "ratio.receivables_turnover": (
        "Revenue divided by trade receivables.",
        "الإيرادات مقسومة على الذمم المدينة."),
    "ratio.dso": (
        "Days of revenue tied up in receivables (365-day year).",
        "عدد أيام الإيرادات المحتجزة في الذمم المدينة (سنة من 365 يوماً)."),
    "ratio.payables_turnover": (
        "Cost of goods sold divided by trade payables.",
        "تكلفة المبيعات مقسومة على الذمم الدائنة."),
    "ratio.dpo": (
        "Days of cost of goods sold financed by suppliers (365-day year).",
        "عدد أيام تكلفة المبيعات الممولة من الموردين (سنة من 365 يوماً)."),
    "ratio.fixed_asset_turnover": (
        "Revenue divided by property, plant and equipment.",
        "الإيرادات مقسومة على الأصول الثابتة."),
    "ratio.total_asset_turnover": (
        "Revenue divided by total assets.",
        "الإيرادات مقسومة على إجمالي الأصول."),
    "ratio.operating_cycle": (
        "Days inventory outstanding plus days sales outstanding.",
        "فترة بقاء المخزون مضافاً إليها فترة التحصيل."),
    "ratio.ccc": (
        "Days inventory plus days receivables minus days payables, in whole days.",
        "أيام المخزون زائد أيام التحصيل ناقص أيام السداد بأيام كاملة."),
    "ratio.debt_to_assets": (
        "Total liabilities as a percentage of total assets.",
        "إجمالي الخصوم كنسبة مئوية من إجمالي الأصول."),
    "ratio.debt_to_equity": (
        "Total liabilities as a percentage of shareholders' equity.",
        "إجمالي الخصوم كنسبة مئوية من حقوق المساهمين."),
    "ratio.interest_coverage": (
        "Operating income divided by interest expense; capped when there is no interest to cover.",
        "الربح التشغيلي مقسوماً على مصروف الفوائد؛ بحد أعلى عند عدم وجود فوائد."),
    "ratio.debt_service_coverage": (
        "EBITDA divided by interest plus the current portion of long-term debt.",
        "الأرباح قبل الفوائد والضرائب والإهلاك مقسومة على الفوائد والجزء المتداول من الديون طويلة الأجل."),
    "ratio.equity_to_assets": (
        "Shareholders' equity as a percentage of total assets.",
        "حقوق المساهمين كنسبة مئوية من إجمالي الأصول."),
    "ratio.gross_margin": (
        "Gross profit as a percentage of revenue.",
        "مجمل الربح كنسبة مئوية من الإيرادات."),
    "ratio.operating_margin": (
        "Operating income as a percentage of revenue.",
        "الربح التشغيلي كنسبة مئوية من الإيرادات."),
    "ratio.net_margin": (
        "Net income as a percentage of revenue.",
        "صافي الربح كنسبة مئوية من الإيرادات."),
    "ratio.roa": (
        "Net income as a percentage of total assets.",
        "صافي الربح كنسبة مئوية من إجمالي الأصول."),
    "ratio.roe": (
        "Net income as a percentage of shareholders' equity.",
        "صافي الربح كنسبة مئوية من حقوق المساهمين."),
    "ratio.roic": (
        "After-tax operating income as a percentage of equity plus long-term debt.",
        "الربح التشغيلي بعد الضريبة كنسبة مئوية من حقوق الملكية والديون طويلة الأجل."),
    "ratio.pe": (
        "Share price divided by earnings per share.",
        "سعر السهم مقسوماً على ربحية السهم."),
    "ratio.pb": (
        "Share price divided by book value per share.",
        "سعر السهم مقسوماً على القيمة الدفترية للسهم."),
    "ratio.dividend_yield": (
        "Dividends per share as a percentage of the share price.",
        "التوزيعات للسهم كنسبة مئوية من سعر السهم."),
    "ratio.eps": (
        "Net income divided by shares outstanding.",
        "صافي الربح مقسوماً على عدد الأسهم القائمة."),
    "ratio.bvps": (
        "Shareholders' equity divided by shares outstanding.",
        "حقوق المساهمين مقسومة على عدد الأسهم القائمة."),
    # basic.flow
    "flow.cash_basic": (
        "Cash quality: operating cash flow relative to net income.",
        "جودة النقدية: التدفق النقدي التشغيلي بالنسبة إلى صافي الربح."),
    "flow.working_capital": (
        "Net working capital, its change on last year and its weight in revenue.",
        "صافي رأس المال العامل وتغيره عن العام السابق ووزنه في الإيرادات."),
    "flow.cash_cycle": (
        "Inventory, receivable and payable days combined into the cash cycle, to one decimal.",
        "أيام المخزون والتحصيل والسداد مجمعة في الدورة النقدية بدقة منزلة عشرية واحدة."),
    "flow.break_even": (
        "Revenue at which contribution margin covers fixed costs.",
        "الإيرادات التي يغطي عندها هامش المساهمة التكاليف الثابتة."),
    "flow.margin_of_safety": (
        "How far revenue can fall before reaching break-even, as a percentage of revenue.",
        "مقدار الانخفاض الممكن في الإيرادات قبل بلوغ نقطة التعادل كنسبة من الإيرادات."),
    "flow.cost_structure": (
        "Total costs as a percentage of revenue with the split between COGS, operating costs, interest and tax.",
        "إجمالي التكاليف كنسبة من الإيرادات مع توزيعها على تكلفة المبيعات والتشغيل والفوائد والضريبة."),
    "flow.fixed_variable": (
        "Fixed share of total costs, estimated from the cost history or a default split.",
        "نسبة التكاليف الثابتة من إجمالي التكاليف، مقدرة من تاريخ التكاليف أو بتقسيم افتراضي."),
    "flow.operating_leverage": (
        "Degree of operating leverage: contribution margin divided by operating income.",
        "درجة الرافعة التشغيلية: هامش المساهمة مقسوماً على الربح التشغيلي."),
    "flow.contribution_margin": (
        "Revenue less variable costs, as a percentage of revenue.",
        "الإيرادات ناقص التكاليف المتغيرة كنسبة من الإيرادات."),
    "flow.free_cash_flow": (
        "Operating cash flow after capital expenditure.",
        "التدفق النقدي التشغيلي بعد النفقات الرأسمالية."),
    # intermediate.comparison
    "comp.industry": (
        "Share of headline ratios at or better than the industry reference, respecting each ratio's direction.",
        "نسبة المؤشرات الرئيسية التي تساوي مرجع الصناعة أو تتفوق عليه مع مراعاة اتجاه كل مؤشر."),
    "comp.peer": (
        "Return on equity ranked against the peer group, with z-score and gap to the peer mean.",
        "ترتيب العائد على حقوق الملكية بين المنافسين مع الدرجة المعيارية والفجوة عن متوسطهم."),
    "comp.historical": (
        "Latest net margin against the company's own average of earlier years, in percentage points.",
        "آخر هامش صافٍ مقارنة بمتوسط الشركة في السنوات السابقة بالنقاط المئوية."),
    "comp.benchmarking": (
        "Gap between the company's net margin and the best margin in the peer group.",
        "الفجوة بين هامش الشركة الصافي وأفضل هامش بين المنافسين."),
    "comp.gap": (
        "Average gap to the industry references, adjusted for direction, in percent of each reference.",
        "متوسط الفجوة عن مراجع الصناعة، معدلة حسب الاتجاه، كنسبة من كل مرجع."),
    "comp.competitive_position": (
        "Average peer percentile of revenue growth, net margin and return on equity (0-100).",
        "متوسط ترتيب الشركة المئيني بين المنافسين في نمو الإيرادات والهامش الصافي والعائد على حقوق الملكية (0-100)."),
    "comp.market_share": (
        "Company revenue as a share of company plus peer revenue, compared with an equal share.",
        "إيرادات الشركة كنسبة من إيراداتها مع إيرادات المنافسين، مقارنة بالحصة المتساوية."),
    "comp.competitive_capability": (
        "Net margin times asset turnover relative to the peer median, as an index (100 = parity).",
        "الهامش الصافي مضروباً في دوران الأصول نسبة إلى وسيط المنافسين كرقم قياسي (100 = تكافؤ)."),
    "comp.strength_weakness": (
        "Ratios that meet the industry reference minus those that miss it.",
        "عدد المؤشرات التي تحقق مرجع الصناعة ناقص عدد التي لا تحققه."),
    "comp.relative_performance": (
        "Cumulative shareholder return minus the cumulative market index return over the same years.",
        "العائد التراكمي للمساهمين ناقص العائد التراكمي لمؤشر السوق عن السنوات نفسها."),
    # intermediate.valuation
    "val.tvm": (
        "Present and future value of the latest free cash flow held level over the horizon.",
        "القيمة الحالية والمستقبلية لآخر تدفق نقدي حر بافتراض ثباته خلال الأفق."),
    "val.npv": (
        "Project cash flows discounted at the required rate, less the initial investment.",
        "التدفقات النقدية للمشروع مخصومة بالمعدل المطلوب ناقص الاستثمار المبدئي."),
    "val.irr": (
        "Discount rate at which project NPV is zero; multiple roots are reported.",
        "معدل الخصم الذي يجعل صافي القيمة الحالية صفراً مع الإبلاغ عن الجذور المتعددة."),
    "val.payback": (
        "Years until cumulative cash flows recover the investment, with the discounted payback alongside.",
        "عدد السنوات حتى تسترد التدفقات التراكمية الاستثمار مع فترة الاسترداد المخصومة."),
    "val.dcf": (
        "Equity value from projected free cash flows and a Gordon terminal value, with upside to market value.",
        "قيمة حقوق الملكية من التدفقات النقدية الحرة المتوقعة والقيمة النهائية بنموذج جوردن مع الفرق عن القيمة السوقية."),
    "val.roi": (
        "Annualised project return on investment against the discount rate.",
        "العائد السنوي على استثمار المشروع مقارنة بمعدل الخصم."),
    "val.eva": (
        "Net operating profit after tax less a capital charge at the weighted average cost of capital.",
        "صافي الربح التشغيلي بعد الضريبة ناقص تكلفة رأس المال بالمتوسط المرجح لتكلفته."),
    "val.mva": (
        "Market capitalisation less book equity.",
        "القيمة السوقية ناقص القيمة الدفترية لحقوق الملكية."),
    "val.gordon": (
        "Share value from next year's dividend under constant growth.",
        "قيمة السهم من توزيعات العام القادم بافتراض نمو ثابت."),
    "val.ddm": (
        "Two-stage dividend discount: historical dividend growth over the horizon, terminal growth after.",
        "خصم التوزيعات على مرحلتين: النمو التاريخي خلال الأفق ثم النمو النهائي."),
    "val.fair_value": (
        "Per-share blend of the DCF value and the values implied by industry P/E and P/B.",
        "مزيج للسهم الواحد من قيمة التدفقات المخصومة والقيم الضمنية لمضاعفي الربحية والقيمة الدفترية للصناعة."),
    "val.cost_benefit": (
        "Present value of project benefits divided by the investment (profitability index).",
        "القيمة الحالية لمنافع المشروع مقسومة على الاستثمار (مؤشر الربحية)."),
    "val.feasibility": (
        "Score (0-100) over NPV, IRR, payback and profitability-index tests.",
        "درجة (0-100) على اختبارات صافي القيمة الحالية ومعدل العائد الداخلي وفترة الاسترداد ومؤشر الربحية."),
    "val.project": (
        "Modified IRR with financing and reinvestment at the discount rate.",
        "معدل العائد الداخلي المعدل مع التمويل وإعادة الاستثمار بمعدل الخصم."),
    "val.alternatives": (
        "Investment alternatives ranked by NPV, with the profitability index breaking ties.",
        "ترتيب البدائل الاستثمارية حسب صافي القيمة الحالية مع حسم التعادل بمؤشر الربحية."),
    "val.company": (
        "Equity value from the industry EV/EBITDA multiple, less debt and plus cash.",
        "قيمة حقوق الملكية من مضاعف قيمة المنشأة إلى الأرباح التشغيلية للصناعة ناقص الدين زائد النقدية."),
    # intermediate.performance
    "perf.dupont": (
        "Return on equity split into net margin, asset turnover and equity multiplier, with the five-factor view.",
        "تحليل العائد على حقوق الملكية إلى الهامش الصافي ودوران الأصول ومضاعف الملكية مع النموذج الخماسي."),
    "perf.productivity": (
        "Revenue per employee, or per unit of employee cost when headcount is unknown.",
        "الإيرادات لكل موظف، أو لكل وحدة من تكاليف العاملين عند عدم توفر عددهم."),
    "perf.operational_efficiency": (
        "Operating expenses as a percentage of revenue over time.",
        "المصروفات التشغيلية كنسبة من الإيرادات عبر الزمن."),
    "perf.value_chain": (
        "Margin retained at each stage from revenue down to net income.",
        "الهامش المحتفظ به في كل مرحلة من الإيرادات حتى صافي الربح."),
    "perf.abc": (
        "Pareto (A/B/C) classification of the cost pools by size.",
        "تصنيف باريتو (أ/ب/ج) لمجمعات التكاليف حسب حجمها."),
    "perf.balanced_scorecard": (
        "Financial, customer, process and learning perspectives scored 0-100 against targets.",
        "تقييم المنظورات المالية والعملاء والعمليات والتعلم من 0 إلى 100 مقابل المستهدفات."),
    "perf.kpi": (
        "Share of key performance indicators that meet their targets.",
        "نسبة مؤشرات الأداء الرئيسية التي تحقق مستهدفاتها."),
    "perf.csf": (
        "Weighted pass/fail over liquidity, profitability, growth, solvency and cash generation.",
        "نجاح أو إخفاق مرجح في السيولة والربحية والنمو والملاءة وتوليد النقد."),
    "perf.advanced_variance": (
        "Change in gross profit split into a volume (revenue) effect and a margin (rate) effect.",
        "تقسيم التغير في مجمل الربح إلى أثر الحجم (الإيرادات) وأثر الهامش (المعدل)."),
    "perf.variance_deviation": (
        "Actual net income against a budget of last year's income grown at the historical revenue rate.",
        "صافي الربح الفعلي مقابل موازنة من ربح العام السابق منمّى بمعدل نمو الإيرادات التاريخي."),
    "perf.flexibility": (
        "Cash plus operating cash flow, divided by current liabilities.",
        "النقدية مضافاً إليها التدفق النقدي التشغيلي مقسومة على الخصوم المتداولة."),
    "perf.sensitivity": (
        "NPV swing for 10% moves in cash flows, investment and discount rate (tornado).",
        "تغير صافي القيمة الحالية عند تحرك التدفقات والاستثمار ومعدل الخصم بنسبة 10٪ (مخطط الإعصار)."),
    # advanced.modeling
    "model.scenario": (
        "Probability-weighted next-year net income over the configured scenarios.",
        "صافي ربح العام القادم مرجحاً باحتمالات السيناريوهات المحددة."),
    "model.monte_carlo": (
        "Seeded simulation of project NPV from revenue and cost distributions; mean with percentiles.",
        "محاكاة بذرة ثابتة لصافي القيمة الحالية من توزيعات الإيرادات والتكاليف؛ المتوسط مع المئينات."),
    "model.financial_model": (
        "Driver-based projection: revenue at historical growth, average net margin and retained earnings.",
        "إسقاط قائم على المحركات: الإيرادات بالنمو التاريخي ومتوسط الهامش الصافي والأرباح المحتجزة."),
    "model.multivariate_sensitivity": (
        "Share of a joint cash-flow, rate and investment grid on which NPV stays non-negative.",
        "نسبة نقاط شبكة مشتركة للتدفقات والمعدل والاستثمار التي يبقى فيها صافي القيمة الحالية غير سالب."),
    "model.decision_tree": (
        "Expand, continue or abandon, each rolled back over the scenario probabilities.",
        "التوسع أو الاستمرار أو التخلي، كل منها محسوب رجوعياً على احتمالات السيناريوهات."),
    "model.real_options": (
        "Value of an option to expand the project by half, priced on a binomial lattice.",
        "قيمة خيار توسيع المشروع بمقدار النصف مسعرة على شجرة ثنائية."),
    "model.forecasting": (
        "Linear-trend revenue forecast over the horizon with a residual-based error band.",
        "تنبؤ بالإيرادات باتجاه خطي خلال الأفق مع نطاق خطأ من البواقي."),
    "model.what_if": (
        "Operating income if revenue falls 10% while costs rise 5%.",
        "الربح التشغيلي إذا انخفضت الإيرادات 10٪ وارتفعت التكاليف 5٪."),
    "model.stochastic": (
        "Geometric Brownian motion of revenue over the forecast horizon; median terminal revenue.",
        "حركة براونية هندسية للإيرادات خلال أفق التنبؤ؛ الوسيط للإيرادات النهائية."),
    "model.optimization": (
        "Debt ratio that minimises WACC with a levered beta and leverage-priced debt.",
        "نسبة الدين التي تخفض المتوسط المرجح لتكلفة رأس المال إلى أدنى حد مع بيتا مرفوعة وتسعير للدين حسب الرافعة."),
    "model.linear_programming": (
        "Optimal product mix under capacity constraints, with shadow prices of each constraint.",
        "مزيج الإنتاج الأمثل تحت قيود الطاقة مع أسعار الظل لكل قيد."),
    "model.dynamic_programming": (
        "0/1 capital budgeting over candidate projects within the budget.",
        "موازنة رأسمالية (0/1) للمشروعات المرشحة ضمن الميزانية."),
    "model.optimal_allocation": (
        "Fractional allocation of the budget across candidates; NPV per unit of budget.",
        "تخصيص جزئي للميزانية على البدائل؛ صافي القيمة الحالية لكل وحدة من الميزانية."),
    "model.game_theory": (
        "Hold or cut price against a competitor as a zero-sum 2x2 game on operating income.",
        "تثبيت السعر أو خفضه أمام منافس كلعبة صفرية 2×2 على الربح التشغيلي."),
    "model.network": (
        "Cash network: share of investing and financing outflows funded by operations.",
        "شبكة النقد: نسبة التدفقات الخارجة الاستثمارية والتمويلية الممولة من التشغيل."),
    # advanced.statistical
    "stat.regression": (
        "Least-squares regression of net income on revenue: marginal profit per unit of sales.",
        "انحدار صافي الربح على الإيرادات بالمربعات الصغرى: الربح الحدي لكل وحدة مبيعات."),
    "stat.time_series": (
        "Exponentially smoothed revenue growth with a three-year moving average of levels.",
        "نمو الإيرادات الممهد أسياً مع متوسط متحرك لثلاث سنوات للمستويات."),
    "stat.arima": (
        "First-order autoregression on revenue levels, forecast over the horizon.",
        "انحدار ذاتي من الدرجة الأولى على مستويات الإيرادات مع تنبؤ خلال الأفق."),
    "stat.garch": (
        "GARCH(1,1) conditional volatility of revenue growth for next period.",
        "التقلب الشرطي لنمو الإيرادات للفترة القادمة بنموذج GARCH(1,1)."),
    "stat.pca": (
        "Share of variation in the yearly ratio profile explained by the first principal component.",
        "نسبة التباين في ملف المؤشرات السنوي التي يفسرها المكون الرئيسي الأول."),
    "stat.factor": (
        "One common factor fitted to the standardised ratio profile; mean communality and loadings.",
        "عامل مشترك واحد مقدر على ملف المؤشرات المعياري؛ متوسط الاشتراكيات والتشبعات."),
    "stat.anova": (
        "One-way ANOVA of revenue, profit and operating cash flow growth rates.",
        "تحليل تباين أحادي لمعدلات نمو الإيرادات والأرباح والتدفق النقدي التشغيلي."),
    "stat.cointegration": (
        "Engle-Granger test that costs track revenue; the residual's autoregressive coefficient.",
        "اختبار إنجل-جرانجر لتتبع التكاليف للإيرادات؛ معامل الانحدار الذاتي للبواقي."),
    "stat.var_model": (
        "VAR(1) on revenue and net income; the spectral radius measures stability.",
        "نموذج VAR(1) للإيرادات وصافي الربح؛ نصف القطر الطيفي يقيس الاستقرار."),
    "stat.vecm": (
        "Speed at which cost changes correct last year's deviation from the cost-revenue relation.",
        "سرعة تصحيح تغيرات التكاليف لانحراف العام السابق عن علاقة التكاليف بالإيرادات."),
    "stat.copula": (
        "Gaussian-copula correlation of revenue and net income from Kendall's tau.",
        "ارتباط الكوبولا الغاوسية بين الإيرادات وصافي الربح من معامل كندال."),
    "stat.evt": (
        "Peaks over threshold of net income declines, in percent.",
        "القمم فوق العتبة لانخفاضات صافي الربح بالنسبة المئوية."),
    "stat.survival": (
        "Survival probability over the horizon from a logistic hazard on the Altman Z-score.",
        "احتمال البقاء خلال الأفق من معدل خطر لوجستي على مؤشر ألتمان Z."),
    "stat.markov": (
        "Two-state (decline or growth) chain on revenue; probability that growth follows growth.",
        "سلسلة بحالتين (انخفاض أو نمو) للإيرادات؛ احتمال أن يتبع النمو نمواً."),
    "stat.threshold": (
        "Mean revenue growth in the regime the company is in now, splitting at median growth.",
        "متوسط نمو الإيرادات في النظام الحالي للشركة مع الفصل عند وسيط النمو."),
    "stat.regime_switching": (
        "Persistence of high- and low-growth regimes in revenue.",
        "مدى استمرار أنظمة النمو المرتفع والمنخفض في الإيرادات."),
    "stat.chaos": (
        "Lyapunov-style divergence rate of the revenue path.",
        "معدل التباعد بأسلوب ليابونوف لمسار الإيرادات."),
    "stat.fractal": (
        "Hurst exponent of revenue from rescaled-range analysis.",
        "أس هيرست للإيرادات من تحليل المدى المعاد قياسه."),
    "stat.bootstrap": (
        "Bootstrap confidence interval of the mean net margin.",
        "فترة ثقة بطريقة البوتستراب لمتوسط الهامش الصافي."),
    "stat.wavelet": (
        "Share of revenue-growth energy in the Haar detail band (short-term noise).",
        "نسبة طاقة نمو الإيرادات في نطاق تفاصيل هار (الضوضاء قصيرة الأجل)."),
    # advanced.risk
    "risk.mpt": (
        "Sharpe ratio of shareholder returns, benchmarked on the market's Sharpe ratio.",
        "نسبة شارب لعوائد المساهمين مقارنة بنسبة شارب للسوق."),
    "risk.capm": (
        "Cost of equity from the risk-free rate, beta and the market risk premium.",
        "تكلفة حقوق الملكية من المعدل الخالي من المخاطر وبيتا وعلاوة مخاطر السوق."),
    "risk.apt": (
        "Cost of equity from market, inflation and leverage factor premia.",
        "تكلفة حقوق الملكية من علاوات عوامل السوق والتضخم والرافعة."),
    "risk.fama_french": (
        "Cost of equity from market, size and value factors.",
        "تكلفة حقوق الملكية من عوامل السوق والحجم والقيمة."),
    "risk.beta": (
        "Sensitivity of shareholder returns to market index returns.",
        "حساسية عوائد المساهمين لعوائد مؤشر السوق."),
    "risk.alpha": (
        "Jensen's alpha: average return above what CAPM predicts.",
        "ألفا جنسن: متوسط العائد الزائد عما يتوقعه نموذج تسعير الأصول الرأسمالية."),
    "risk.var": (
        "Loss on shareholder returns not exceeded at the configured confidence level.",
        "الخسارة في عوائد المساهمين التي لا يتم تجاوزها عند مستوى الثقة المحدد."),
    "risk.expected_shortfall": (
        "Average loss in the tail beyond value at risk.",
        "متوسط الخسارة في الذيل بعد القيمة المعرضة للخطر."),
    "risk.stress_test": (
        "Interest coverage after a 20% revenue shock with 70% of costs variable.",
        "تغطية الفوائد بعد صدمة في الإيرادات بنسبة 20٪ مع 70٪ من التكاليف متغيرة."),
    "risk.catastrophic": (
        "Months of cash operating costs covered by liquid funds if revenue stopped.",
        "عدد أشهر التكاليف التشغيلية النقدية التي تغطيها الأموال السائلة إذا توقفت الإيرادات."),
    "risk.operational": (
        "Volatility of the operating margin, in percentage points.",
        "تقلب الهامش التشغيلي بالنقاط المئوية."),
    "risk.market": (
        "Systematic volatility: beta times market index volatility.",
        "التقلب المنتظم: بيتا مضروبة في تقلب مؤشر السوق."),
    "risk.credit": (
        "Customer credit exposure: receivables as a percentage of revenue.",
        "التعرض الائتماني للعملاء: الذمم المدينة كنسبة من الإيرادات."),
    "risk.liquidity": (
        "Cash and equivalents against current liabilities.",
        "النقدية وما في حكمها مقابل الخصوم المتداولة."),
    "risk.cyber": (
        "Share of assets that are intangible (data, software, intellectual property).",
        "نسبة الأصول غير الملموسة (البيانات والبرمجيات والملكية الفكرية)."),
    "risk.geopolitical": (
        "Sensitivity to external shocks proxied by revenue growth volatility.",
        "الحساسية للصدمات الخارجية مقاسة بتقلب نمو الإيرادات."),
    "risk.climate": (
        "Transition exposure proxied by fixed-asset intensity.",
        "التعرض لمخاطر التحول مقاساً بكثافة الأصول الثابتة."),
    "risk.governance": (
        "Total accruals (net income less operating cash flow) over total assets.",
        "إجمالي الاستحقاقات (صافي الربح ناقص التدفق النقدي التشغيلي) إلى إجمالي الأصول."),
    "risk.social": (
        "Employee costs as a percentage of revenue.",
        "تكاليف العاملين كنسبة من الإيرادات."),
    "risk.forensic_valuation": (
        "Gap between an earnings-capitalisation value and book value, in percent of book.",
        "الفجوة بين قيمة رسملة الأرباح والقيمة الدفترية كنسبة من القيمة الدفترية."),
    "risk.credit_models": (
        "Merton distance to default with a KMV default point.",
        "المسافة إلى التعثر بنموذج ميرتون مع نقطة تعثر KMV."),
    "risk.concentration": (
        "Herfindahl index (0-10000) of the asset mix.",
        "مؤشر هيرفندال (0-10000) لتركيبة الأصول."),
    "risk.dynamic_correlation": (
        "Latest three-year rolling correlation between shareholder and market returns.",
        "آخر ارتباط متحرك لثلاث سنوات بين عوائد المساهمين وعوائد السوق."),
    "risk.risk_parity": (
        "Weight on the company in an inverse-volatility mix with the market index.",
        "وزن الشركة في مزيج مع مؤشر السوق بأوزان عكسية للتقلب."),
    "risk.drawdown": (
        "Largest peak-to-trough fall in the share price, or in book equity without prices.",
        "أكبر هبوط من القمة إلى القاع في سعر السهم، أو في حقوق الملكية الدفترية عند غياب الأسعار."),
    "risk.icaap": (
        "Equity over risk-weighted assets (cash 0%, securities 20%, everything else 100%).",
        "حقوق الملكية إلى الأصول المرجحة بالمخاطر (النقدية 0٪ والأوراق المالية 20٪ والباقي 100٪)."),
    "risk.basel": (
        "Tier-1 leverage ratio: tangible equity over total assets.",
        "نسبة الرافعة من الشريحة الأولى: حقوق الملكية الملموسة إلى إجمالي الأصول."),
    "risk.backtesting": (
        "Share of years whose return breached the full-sample parametric value at risk.",
        "نسبة السنوات التي تجاوز عائدها القيمة المعرضة للخطر المعلمية للعينة كاملة."),
    "risk.mna": (
        "EPS accretion from a debt-financed acquisition earning 20% of current profit at the industry P/E.",
        "أثر الاستحواذ الممول بالدين على ربحية السهم لهدف يحقق 20٪ من الربح الحالي بمضاعف الصناعة."),
    "risk.lbo": (
        "Sponsor equity IRR with entry and exit at the industry EV/EBITDA and 60% debt.",
        "معدل العائد الداخلي لحقوق الممول مع الدخول والخروج بمضاعف الصناعة وتمويل بالدين بنسبة 60٪."),
    "risk.ipo": (
        "Offer value: earnings at the industry P/E less a 15% IPO discount.",
        "قيمة الطرح: الأرباح بمضاعف ربحية الصناعة ناقص خصم طرح بنسبة 15٪."),
    "risk.spinoff": (
        "Value uplift from separating non-core assets and removing a conglomerate discount, in percent of assets.",
        "الزيادة في القيمة من فصل الأصول غير الأساسية وإزالة خصم التكتل كنسبة من الأصول."),
    "risk.restructuring": (
        "Debt above a sustainable three times EBITDA.",
        "الدين الزائد عن المستوى المستدام البالغ ثلاثة أضعاف الأرباح قبل الفوائد والضرائب والإهلاك."),
    "risk.bankruptcy_workout": (
        "Creditor recovery in liquidation at fixed recovery rates per asset class.",
        "نسبة استرداد الدائنين عند التصفية بمعدلات استرداد ثابتة لكل فئة أصول."),
    "risk.forensic": (
        "Mean absolute deviation of reported first digits from Benford's law.",
        "متوسط الانحراف المطلق للأرقام الأولى المفصح عنها عن قانون بنفورد."),
    # advanced.detection
    "detect.fraud": (
        "Beneish M-score; values above -1.78 suggest earnings manipulation.",
        "مؤشر بنيش M؛ القيم الأعلى من -1.78 تشير إلى احتمال التلاعب بالأرباح."),
    "detect.aml": (
        "Screen (0-100) for unexplained cash: reconciliation gaps, cash build-up and other income.",
        "فحص (0-100) للنقد غير المبرر: فجوات المطابقة وتراكم النقد والإيرادات الأخرى."),
    "detect.market_manipulation": (
        "Gap between the share price move and earnings growth, in percentage points.",
        "الفجوة بين تحرك سعر السهم ونمو الأرباح بالنقاط المئوية."),
    "detect.bankruptcy": (
        "Altman Z-score with safe, grey and distress zones.",
        "مؤشر ألتمان Z مع مناطق الأمان والمنطقة الرمادية ومنطقة التعثر."),
    "detect.crisis": (
        "Share of crisis signals present, from losses and negative operating cash flow to weak coverage and falling revenue.",
        "نسبة إشارات الأزمة القائمة، من الخسائر والتدفق النقدي التشغيلي السالب إلى ضعف التغطية وتراجع الإيرادات."),
    "detect.anomaly": (
        "Latest deviation of net income from its linear trend against mean plus two sigma of earlier deviations.",
        "آخر انحراف لصافي الربح عن اتجاهه الخطي مقابل المتوسط زائد انحرافين معياريين للانحرافات السابقة."),
    "detect.volatility": (
        "Coefficient of variation of net income, in percent.",
        "معامل اختلاف صافي الربح بالنسبة المئوية."),
    "detect.early_warning": (
        "Count of deterioration signals against last year, from margin and collection period to inventory build-up and free cash flow.",
        "عدد إشارات التدهور مقارنة بالعام السابق، من الهامش وفترة التحصيل إلى تراكم المخزون والتدفق النقدي الحر."),
    "detect.behavioral": (
        "Earnings smoothing: volatility of profit changes over volatility of cash-flow changes.",
        "تمهيد الأرباح: تقلب تغيرات الربح إلى تقلب تغيرات التدفق النقدي."),
    "detect.explainable": (
        "Logistic distress probability with each feature's contribution to the log-odds.",
        "احتمال التعثر اللوجستي مع مساهمة كل متغير في لوغاريتم الأرجحية."),
    "detect.neural_forecast": (
        "Random-feature network with a ridge read-out on two revenue lags, forecasting next year.",
        "شبكة بسمات عشوائية وطبقة إخراج بانحدار ريدج على فجوتين زمنيتين للإيرادات للتنبؤ بالعام القادم."),
    "detect.lstm": (
        "Holt linear-trend smoothing of revenue as a lightweight sequence model.",
        "تمهيد هولت ذو الاتجاه الخطي للإيرادات كنموذج تسلسلي خفيف."),
    "detect.credit_rating": (
        "Points over seven ratio tests mapped to a rating band and default probability.",
        "نقاط على سبعة اختبارات للمؤشرات تحول إلى فئة تصنيف واحتمال تعثر."),
    "detect.gradient_boosting": (
        "Linear trend plus boosted decision stumps on its residuals, forecasting next-year revenue.",
        "اتجاه خطي مع أشجار قرار معززة على بواقيه للتنبؤ بإيرادات العام القادم."),
    "detect.clustering": (
        "Two-cluster k-means over yearly ratio profiles; share of years like the latest.",
        "تجميع بطريقة k-means في عنقودين لملفات المؤشرات السنوية؛ نسبة السنوات المشابهة لآخر سنة."),
    "detect.autoencoder": (
        "One-component linear autoencoder over ratio profiles; latest reconstruction error against earlier years.",
        "مشفر تلقائي خطي بمكون واحد لملفات المؤشرات؛ آخر خطأ إعادة بناء مقارنة بالسنوات السابقة."),
    "detect.sentiment": (
        "Share of headline items that improved on last year (0-100).",
        "نسبة البنود الرئيسية التي تحسنت عن العام السابق (0-100)."),
    "detect.blockchain": (
        "Traceability readiness (0-100): cash-flow completeness and cash reconciliation.",
        "الجاهزية للتتبع (0-100): اكتمال قائمة التدفقات النقدية ومطابقة النقد."),
}


CATEGORY_COUNTS: Dict[str, int] = {
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


def _build(seed: Dict[str, List[_Row]], descriptions: Dict[str, Tuple[str, str]],
           counts: Optional[Dict[str, int]] = None) -> Tuple[AnalysisDefinition, ...]:
    """Validate the seed and turn it into definitions. ``counts`` pins the size of each category."""
    seen: set = set()
    out: List[AnalysisDefinition] = []
    for category, rows in seed.items():
        if category not in CATEGORIES:
            raise CatalogError(f"unknown category {category!r}")
        if counts is not None and len(rows) != counts.get(category):
            raise CatalogError(f"{category}: {len(rows)} analyses, expected {counts.get(category)}")
        for id_, en, ar, unit, direction, key, heavy in rows:
            if id_ in seen:
                raise CatalogError(f"duplicate analysis id {id_!r}")
            if direction not in ("higher", "lower"):
                raise CatalogError(f"{id_}: invalid direction {direction!r}")
            if id_ not in descriptions:
                raise CatalogError(f"{id_}: no description")
            seen.add(id_)
            desc_en, desc_ar = descriptions[id_]
            out.append(AnalysisDefinition(
                id=id_,
                category=category,
                name=LocalizedText(en, ar),
                description=LocalizedText(desc_en, desc_ar),
                measure_label=UNITS[unit],
                direction=direction,
                benchmark_key=key,
                heavy=heavy,
            ))
    return tuple(out)


CATALOG: Tuple[AnalysisDefinition, ...] = _build(_SEED, _DESCRIPTIONS, CATEGORY_COUNTS)
_BY_ID: Dict[str, AnalysisDefinition] = {d.id: d for d in CATALOG}
_POSITION: Dict[str, int] = {d.id: i for i, d in enumerate(CATALOG)}


def get_all() -> Tuple[AnalysisDefinition, ...]:
    return CATALOG


def get_by_id(analysis_id: str) -> Optional[AnalysisDefinition]:
    return _BY_ID.get(analysis_id)


def get_by_category(category: str) -> Tuple[AnalysisDefinition, ...]:
    return tuple(d for d in CATALOG if d.category == category)


def get_by_tier(analysis_type: str) -> Tuple[AnalysisDefinition, ...]:
    """``basic`` / ``intermediate`` / ``advanced`` select by category prefix; ``comprehensive`` is all."""
    if analysis_type == "comprehensive":
        return CATALOG
    if analysis_type not in ("basic", "intermediate", "advanced"):
        raise CatalogError(f"unknown analysis type {analysis_type!r}")
    return tuple(d for d in CATALOG if d.tier == analysis_type)


def position(analysis_id: str) -> int:
    return _POSITION[analysis_id]
