"""
txprivacy - Bitcoin transaction and address privacy analysis.

Runs a fixed set of chain-analysis heuristics over explorer (Esplora) data,
reconciles contradictions between them and reduces the findings to a
0-100 score with a letter grade.

Exports:
    analyze_transaction / analyze_address: Orchestrated entry points
    build_first_degree_cluster: One-hop address cluster estimate
    EsploraAsyncClient: Explorer API client
    check_ofac: Sanctions-list screening
"""

from txprivacy.analysis import analyze_address, analyze_transaction
from txprivacy.clustering import build_first_degree_cluster
from txprivacy.errors import ApiError, ApiErrorCode, OperationCancelled, TxPrivacyError
from txprivacy.models import Finding, FindingKind, Grade, ScoringResult, Severity
from txprivacy.screening import check_ofac
from txprivacy.utils import EsploraAsyncClient

__version__ = "0.1.0"

__all__ = [
    "analyze_address",
    "analyze_transaction",
    "build_first_degree_cluster",
    "ApiError",
    "ApiErrorCode",
    "OperationCancelled",
    "TxPrivacyError",
    "Finding",
    "FindingKind",
    "Grade",
    "ScoringResult",
    "Severity",
    "check_ofac",
    "EsploraAsyncClient",
]
