"""
Analysis pipeline: rules -> reconciler -> scorer.

Exports:
    analyze_transaction / analyze_address: Orchestrated entry points
    get_tx_heuristic_steps / get_address_heuristic_steps: Step lists for progress UIs
    reconcile: RawFindings -> ReconciledFindings
    calculate_score / score_transaction / score_to_grade / summary_sentiment
    clean_input / detect_input_type: User input classification
"""

from txprivacy.analysis.detect_input import clean_input, detect_input_type
from txprivacy.analysis.orchestrator import (
    ADDRESS_HEURISTICS,
    TX_HEURISTICS,
    analyze_address,
    analyze_transaction,
    get_address_heuristic_steps,
    get_tx_heuristic_steps,
)
from txprivacy.analysis.reconciler import reconcile
from txprivacy.analysis.scoring import (
    calculate_score,
    score_to_grade,
    score_transaction,
    summary_sentiment,
)

__all__ = [
    "ADDRESS_HEURISTICS",
    "TX_HEURISTICS",
    "analyze_address",
    "analyze_transaction",
    "get_address_heuristic_steps",
    "get_tx_heuristic_steps",
    "reconcile",
    "calculate_score",
    "score_to_grade",
    "score_transaction",
    "summary_sentiment",
    "clean_input",
    "detect_input_type",
]
