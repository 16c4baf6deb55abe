"""Privacy heuristic rules.

Every rule is a pure function returning a HeuristicResult:
- Transaction rules: ``rule(tx, raw_hex=None)``
- Address rules: ``rule(address, utxos, txs)``

Example usage:
    >>> from txprivacy.heuristics import analyze_cioh
    >>> result = analyze_cioh(tx)
    >>> print(result.total_impact)
"""

# Transaction rules
from txprivacy.heuristics.round_amount import analyze_round_amounts
from txprivacy.heuristics.change_detection import analyze_change_detection
from txprivacy.heuristics.cioh import analyze_cioh, cioh_penalty
from txprivacy.heuristics.coinjoin import (
    analyze_coinjoin,
    is_coinjoin,
    is_coinjoin_finding,
)
from txprivacy.heuristics.entropy import analyze_entropy, count_valid_mappings
from txprivacy.heuristics.fee_analysis import analyze_fees
from txprivacy.heuristics.op_return import analyze_op_return
from txprivacy.heuristics.wallet_fingerprint import analyze_wallet_fingerprint
from txprivacy.heuristics.anonymity_set import analyze_anonymity_set
from txprivacy.heuristics.payjoin import analyze_payjoin
from txprivacy.heuristics.timing import analyze_timing
from txprivacy.heuristics.script_type_mix import analyze_script_type_mix
from txprivacy.heuristics.dust_output import analyze_dust_outputs
from txprivacy.heuristics.coinbase_detection import analyze_coinbase

# Address rules
from txprivacy.heuristics.address_reuse import analyze_address_reuse
from txprivacy.heuristics.utxo_analysis import analyze_utxos
from txprivacy.heuristics.address_type import analyze_address_type
from txprivacy.heuristics.spending_analysis import analyze_spending_pattern

# Shared predicates
from txprivacy.heuristics._common import AddressType, get_address_type

__all__ = [
    # Transaction rules
    "analyze_round_amounts",
    "analyze_change_detection",
    "analyze_cioh",
    "cioh_penalty",
    "analyze_coinjoin",
    "is_coinjoin",
    "is_coinjoin_finding",
    "analyze_entropy",
    "count_valid_mappings",
    "analyze_fees",
    "analyze_op_return",
    "analyze_wallet_fingerprint",
    "analyze_anonymity_set",
    "analyze_payjoin",
    "analyze_timing",
    "analyze_script_type_mix",
    "analyze_dust_outputs",
    "analyze_coinbase",
    # Address rules
    "analyze_address_reuse",
    "analyze_utxos",
    "analyze_address_type",
    "analyze_spending_pattern",
    # Shared
    "AddressType",
    "get_address_type",
]
