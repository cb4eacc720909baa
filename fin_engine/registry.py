"""
fin_engine/registry.py
======================
Explicit analysis id -> calculator table, checked against the catalog.

``validate_registry`` runs before every dispatch; a catalog entry without a
calculator (or the reverse) is a programming error and aborts the run.
"""
from __future__ import annotations
import logging
from typing import Dict, Iterable, Mapping, Optional

from .catalog import get_all
from .calculators import Calculator, all_calculators
from .errors import UnknownAnalysisError
from .types import AnalysisDefinition

logger = logging.getLogger(__name__)

REGISTRY: Dict[str, Calculator] = all_calculators()


def validate_registry(definitions: Optional[Iterable[AnalysisDefinition]] = None,
                      registry: Optional[Mapping[str, Calculator]] = None) -> None:
    definitions = tuple(definitions) if definitions is not None else get_all()
    registry = REGISTRY if registry is None else registry

    catalog_ids = {d.id for d in definitions}
    missing = catalog_ids - registry.keys()
    if missing:
        raise UnknownAnalysisError(missing, "no calculator registered")
    orphans = registry.keys() - catalog_ids
    if orphans:
        raise UnknownAnalysisError(orphans, "calculator without catalog entry")
    logger.debug("registry validated: %d analyses", len(catalog_ids))


def get_calculator(analysis_id: str, registry: Optional[Mapping[str, Calculator]] = None) -> Calculator:
    registry = REGISTRY if registry is None else registry
    try:
        return registry[analysis_id]
    except KeyError:
        raise UnknownAnalysisError([analysis_id]) from None
