"""fin_engine: bilingual financial analysis computation engine."""
from .types import *
from .errors import (
    FinEngineError,
    InputDataError,
    BenchmarkUnavailableError,
    CalculationError,
    UnknownAnalysisError,
    CatalogError,
)
from .catalog import CATALOG_VERSION, get_all, get_by_id, get_by_category, get_by_tier
from .benchmarks import BenchmarkProvider, StaticBenchmarkProvider
from .evaluation import evaluate
from .dispatcher import CancellationToken, run_analysis, run_analysis_sync
from .loader import results_frame, statements_from_frame, statements_from_mapping
from .settings import EngineSettings, configure_logging, get_settings
from .validation import validate_context, validate_statement
