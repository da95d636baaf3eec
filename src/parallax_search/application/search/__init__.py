"""
Search application services.

- UnifiedSearchService: façade (validate → select → cache → provider → paginate)
- AggregatedSearchService: multi-provider fetch, dedup, rank, persist
- EngineSelector: forced / priority / aggregated engine selection
- ResultAggregator: pure dedup and resolution ranking
- compute_pagination / paginate: pagination windows
"""

from .aggregated_search import AggregatedSearchService
from .engine_selector import MAX_AGGREGATED_COUNT, EngineSelection, EngineSelector
from .pagination import compute_pagination, paginate
from .request_validator import build_search_request, validate_search_request
from .result_aggregator import ResultAggregator, compute_fingerprint, extract_keywords
from .service import UnifiedSearchService

__all__ = [
    "MAX_AGGREGATED_COUNT",
    "AggregatedSearchService",
    "EngineSelection",
    "EngineSelector",
    "ResultAggregator",
    "UnifiedSearchService",
    "build_search_request",
    "compute_fingerprint",
    "compute_pagination",
    "extract_keywords",
    "paginate",
    "validate_search_request",
]
