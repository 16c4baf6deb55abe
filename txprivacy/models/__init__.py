"""
Data models for the privacy engine.

Exports:
    Explorer records (pydantic): Transaction, TxInput, TxOutput, TxStatus,
        AddressInfo, AddressStats, Utxo
    Findings: Finding, FindingKind, Severity, Urgency, DataConfidence,
        Remediation, Tool, HeuristicResult
    Results: Grade, ScoringResult, RawFindings, ReconciledFindings,
        ClusterResult, ClusterProgress
"""

from txprivacy.models.finding import (
    SEVERITY_ORDER,
    DataConfidence,
    Finding,
    FindingKind,
    HeuristicResult,
    Remediation,
    Severity,
    Tool,
    Urgency,
)
from txprivacy.models.results import (
    ClusterProgress,
    ClusterResult,
    Grade,
    RawFindings,
    ReconciledFindings,
    ScoringResult,
)
from txprivacy.models.transaction import (
    AddressInfo,
    AddressStats,
    Transaction,
    TxInput,
    TxOutput,
    TxStatus,
    Utxo,
)

__all__ = [
    # Explorer records
    "AddressInfo",
    "AddressStats",
    "Transaction",
    "TxInput",
    "TxOutput",
    "TxStatus",
    "Utxo",
    # Findings
    "SEVERITY_ORDER",
    "DataConfidence",
    "Finding",
    "FindingKind",
    "HeuristicResult",
    "Remediation",
    "Severity",
    "Tool",
    "Urgency",
    # Results
    "ClusterProgress",
    "ClusterResult",
    "Grade",
    "RawFindings",
    "ReconciledFindings",
    "ScoringResult",
]
