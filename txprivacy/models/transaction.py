"""
Pydantic records for block-explorer (Esplora / mempool.space) JSON.

These shapes are consumed read-only by every heuristic. Defaults mirror what
the explorers omit, so partially populated payloads still validate.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Record(BaseModel):
    """Immutable explorer record; unknown keys are ignored."""

    model_config = ConfigDict(frozen=True, extra="ignore")


class TxOutput(_Record):
    """Transaction output (also used as the ``prevout`` of an input)."""

    scriptpubkey: str = ""
    scriptpubkey_asm: str = ""
    scriptpubkey_type: str = ""
    scriptpubkey_address: Optional[str] = None
    value: int = Field(0, ge=0, description="Output value in satoshis")


class TxInput(_Record):
    """Transaction input with the output it spends (None for coinbase)."""

    txid: str = ""
    vout: int = 0
    prevout: Optional[TxOutput] = None
    scriptsig: str = ""
    scriptsig_asm: str = ""
    witness: List[str] = Field(default_factory=list)
    is_coinbase: bool = False
    sequence: int = 0xFFFFFFFF


class TxStatus(_Record):
    confirmed: bool = False
    block_height: Optional[int] = None
    block_hash: Optional[str] = None
    block_time: Optional[int] = None


class Transaction(_Record):
    """A decoded transaction as returned by ``GET /tx/:txid``."""

    txid: str = ""
    version: int = 2
    locktime: int = 0
    vin: List[TxInput] = Field(default_factory=list)
    vout: List[TxOutput] = Field(default_factory=list)
    size: int = 0
    weight: int = 0
    fee: int = 0
    status: TxStatus = Field(default_factory=TxStatus)

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "txid": "323df21f0b0756f98336437aa3d2fb87e02b59f1946b714a7b09df04d429dec2",
                "version": 1,
                "locktime": 0,
                "vin": [],
                "vout": [],
                "weight": 2000,
                "fee": 5000,
                "status": {"confirmed": True, "block_height": 800000},
            }
        },
    )


class AddressStats(_Record):
    """Aggregate counters reported by the indexer for one address."""

    funded_txo_count: int = 0
    funded_txo_sum: int = 0
    spent_txo_count: int = 0
    spent_txo_sum: int = 0
    tx_count: int = 0


class AddressInfo(_Record):
    """Address summary from ``GET /address/:address``."""

    address: str
    chain_stats: AddressStats = Field(default_factory=AddressStats)
    mempool_stats: AddressStats = Field(default_factory=AddressStats)

    @property
    def total_funded_count(self) -> int:
        return self.chain_stats.funded_txo_count + self.mempool_stats.funded_txo_count

    @property
    def total_spent_count(self) -> int:
        return self.chain_stats.spent_txo_count + self.mempool_stats.spent_txo_count

    @property
    def total_tx_count(self) -> int:
        return self.chain_stats.tx_count + self.mempool_stats.tx_count


class Utxo(_Record):
    """Unspent output from ``GET /address/:address/utxo``."""

    txid: str
    vout: int
    value: int = Field(..., ge=0)
    status: TxStatus = Field(default_factory=TxStatus)
