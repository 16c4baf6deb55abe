"""
Sanctions screening.

Exports:
    check_ofac / load_sanctions_list / extract_tx_addresses
    SanctionsList / OfacCheckResult
"""

from txprivacy.screening.ofac import (
    OfacCheckResult,
    SanctionsList,
    check_ofac,
    extract_tx_addresses,
    load_sanctions_list,
)

__all__ = [
    "OfacCheckResult",
    "SanctionsList",
    "check_ofac",
    "extract_tx_addresses",
    "load_sanctions_list",
]
