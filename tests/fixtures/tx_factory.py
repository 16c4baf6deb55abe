"""
Test factories for explorer records.

Builds Transaction / AddressInfo / Utxo records with sensible defaults so
each test only spells out the fields it cares about. Addresses are unique
per test (counter reset by an autouse fixture).

Default transaction: one P2WPKH input of 100,000 sats spending into two
P2WPKH outputs of 48,213 and 50,287 sats (fee 1,500), confirmed at 800,000.
"""

import pytest

from txprivacy.models import (
    AddressInfo,
    AddressStats,
    Transaction,
    TxInput,
    TxOutput,
    TxStatus,
    Utxo,
)

SCRIPT_TYPES = {
    "p2wpkh": "v0_p2wpkh",
    "p2wsh": "v0_p2wsh",
    "p2tr": "v1_p2tr",
    "p2sh": "p2sh",
    "p2pkh": "p2pkh",
}

_counter = {"n": 0}


def new_address(kind: str = "p2wpkh") -> str:
    """Unique, well-formed-looking address of the requested type."""
    _counter["n"] += 1
    n = _counter["n"]
    if kind == "p2wpkh":
        return f"bc1q{n:038x}"
    if kind == "p2wsh":
        return f"bc1q{n:058x}"
    if kind == "p2tr":
        return f"bc1p{n:058x}"
    if kind == "p2sh":
        return f"3{n:033x}"
    if kind == "p2pkh":
        return f"1{n:033x}"
    raise ValueError(f"Unknown address kind: {kind}")


def build_vout(
    value: int = 50_287,
    address: str | None = None,
    kind: str = "p2wpkh",
    script_type: str | None = None,
    scriptpubkey: str = "",
) -> TxOutput:
    if script_type == "op_return":
        return TxOutput(scriptpubkey=scriptpubkey or "6a", scriptpubkey_type="op_return", value=value)
    return TxOutput(
        scriptpubkey=scriptpubkey or "0014" + "00" * 20,
        scriptpubkey_type=script_type or SCRIPT_TYPES[kind],
        scriptpubkey_address=address or new_address(kind),
        value=value,
    )


def build_vin(
    value: int = 100_000,
    address: str | None = None,
    kind: str = "p2wpkh",
    txid: str = "b" * 64,
    vout: int = 0,
    sequence: int = 0xFFFFFFFD,
    with_prevout: bool = True,
) -> TxInput:
    prevout = build_vout(value=value, address=address, kind=kind) if with_prevout else None
    return TxInput(txid=txid, vout=vout, prevout=prevout, sequence=sequence)


def build_coinbase_vin() -> TxInput:
    return TxInput(
        txid="0" * 64,
        vout=0xFFFFFFFF,
        prevout=None,
        scriptsig="03a0bb0d",
        is_coinbase=True,
        sequence=0xFFFFFFFF,
    )


def build_tx(
    vin: list[TxInput] | None = None,
    vout: list[TxOutput] | None = None,
    txid: str | None = None,
    version: int = 2,
    locktime: int = 0,
    weight: int = 700,
    fee: int = 1_500,
    confirmed: bool = True,
    block_height: int | None = 800_000,
) -> Transaction:
    _counter["n"] += 1
    return Transaction(
        txid=txid or f"{_counter['n']:064x}",
        version=version,
        locktime=locktime,
        vin=vin if vin is not None else [build_vin()],
        vout=vout if vout is not None else [build_vout(48_213), build_vout(50_287)],
        weight=weight,
        fee=fee,
        status=TxStatus(
            confirmed=confirmed,
            block_height=block_height if confirmed else None,
            block_time=1_690_000_000 if confirmed else None,
        ),
    )


def build_address(
    address: str | None = None,
    funded: int = 1,
    spent: int = 0,
    tx_count: int = 1,
    mempool_funded: int = 0,
    mempool_tx_count: int = 0,
) -> AddressInfo:
    return AddressInfo(
        address=address or new_address(),
        chain_stats=AddressStats(
            funded_txo_count=funded,
            spent_txo_count=spent,
            tx_count=tx_count,
        ),
        mempool_stats=AddressStats(
            funded_txo_count=mempool_funded,
            tx_count=mempool_tx_count,
        ),
    )


def build_utxo(value: int = 50_000, txid: str | None = None, vout: int = 0) -> Utxo:
    _counter["n"] += 1
    return Utxo(
        txid=txid or f"{_counter['n']:064x}",
        vout=vout,
        value=value,
        status=TxStatus(confirmed=True, block_height=800_000),
    )


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_address_counter():
    """Restart unique address numbering for every test."""
    _counter["n"] = 0
    yield


@pytest.fixture
def make_address_str():
    return new_address


@pytest.fixture
def make_vout():
    return build_vout


@pytest.fixture
def make_vin():
    return build_vin


@pytest.fixture
def make_coinbase_vin():
    return build_coinbase_vin


@pytest.fixture
def make_tx():
    return build_tx


@pytest.fixture
def make_address():
    return build_address


@pytest.fixture
def make_utxo():
    return build_utxo
