"""Prevout enrichment.

Some self-hosted backends (e.g. romanz/electrs behind a mempool frontend)
return ``prevout: null`` on inputs. The heuristics need input addresses and
values, so the spent outputs are rebuilt from the parent transactions.

Records are immutable: enrichment returns patched copies.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

import aiohttp

from txprivacy.errors import ApiError
from txprivacy.models import Transaction, TxOutput

logger = logging.getLogger(__name__)

DEFAULT_MAX_PARENTS = 50
DEFAULT_CONCURRENCY = 4

FETCH_ERRORS = (ApiError, aiohttp.ClientError, asyncio.TimeoutError)


@dataclass
class EnrichResult:
    """Outcome of a prevout enrichment pass.

    Attributes:
        txs: Transactions with prevouts filled in where possible
        enriched_count: Inputs whose prevout was rebuilt
        failed_count: Parent transaction fetches that failed
        skipped_count: Parent txids not fetched because of the cap
    """

    txs: list[Transaction] = field(default_factory=list)
    enriched_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0


def needs_enrichment(txs: list[Transaction]) -> bool:
    """Check the first non-coinbase input; backends fill all prevouts or none."""
    for tx in txs:
        for vin in tx.vin:
            if vin.is_coinbase:
                continue
            return vin.prevout is None
    return False


def count_missing_prevouts(txs: list[Transaction]) -> int:
    return sum(
        1 for tx in txs for vin in tx.vin if not vin.is_coinbase and vin.prevout is None
    )


async def enrich_prevouts(
    txs: list[Transaction],
    get_transaction: Callable[[str], Awaitable[Transaction]],
    cancel_event: asyncio.Event | None = None,
    max_parents: int = DEFAULT_MAX_PARENTS,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> EnrichResult:
    """Rebuild missing prevouts by fetching parent transactions.

    Args:
        txs: Transactions to enrich
        get_transaction: Fetches a transaction by txid (e.g. client.get_transaction)
        cancel_event: Stops fetching further batches when set
        max_parents: Maximum unique parent txids to fetch
        concurrency: Parent fetches per batch

    Returns:
        EnrichResult with patched copies of ``txs``
    """
    parent_ids: list[str] = []
    for tx in txs:
        for vin in tx.vin:
            if not vin.is_coinbase and vin.prevout is None and vin.txid not in parent_ids:
                parent_ids.append(vin.txid)

    if not parent_ids:
        return EnrichResult(txs=list(txs))

    to_fetch = parent_ids[:max_parents]
    result = EnrichResult(skipped_count=len(parent_ids) - len(to_fetch))
    parents: dict[str, Transaction] = {}

    for start in range(0, len(to_fetch), concurrency):
        if cancel_event is not None and cancel_event.is_set():
            break
        batch = to_fetch[start : start + concurrency]
        fetched = await asyncio.gather(
            *(get_transaction(txid) for txid in batch), return_exceptions=True
        )
        for txid, outcome in zip(batch, fetched):
            if isinstance(outcome, FETCH_ERRORS):
                result.failed_count += 1
                logger.warning(f"Failed to fetch parent tx {txid[:16]}...: {outcome}")
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                parents[txid] = outcome

    for tx in txs:
        vins = []
        for vin in tx.vin:
            parent = parents.get(vin.txid)
            if vin.is_coinbase or vin.prevout is not None or parent is None:
                vins.append(vin)
                continue
            if vin.vout >= len(parent.vout):
                vins.append(vin)
                continue
            spent: TxOutput = parent.vout[vin.vout]
            vins.append(vin.model_copy(update={"prevout": spent}))
            result.enriched_count += 1
        result.txs.append(tx.model_copy(update={"vin": vins}))

    logger.debug(
        f"Prevout enrichment: {result.enriched_count} inputs rebuilt, "
        f"{result.failed_count} failed, {result.skipped_count} skipped"
    )
    return result
