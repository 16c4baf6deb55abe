"""First-degree address clustering (one-hop CIOH graph walk).

Two phases:
1. inputs: for each of the target's recent transactions where the target
   is an input, every co-input address joins the cluster (CIOH). Change
   outputs identified by change detection are queued.
2. change-follow: each queued change address joins the cluster, its own
   recent transactions are fetched through a throttled API, and CIOH is
   applied again where it is an input.

CoinJoins are skipped in both phases since their inputs belong to different
participants. The result is a lower bound, never a certified cluster.

Reference: Meiklejohn et al. (2013) "A Fistful of Bitcoins"
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Protocol

from txprivacy.clustering.union_find import UnionFind
from txprivacy.config.settings import EngineConfig, get_config
from txprivacy.errors import OperationCancelled
from txprivacy.heuristics._common import get_address_type, input_addresses, spendable_outputs
from txprivacy.heuristics.change_detection import analyze_change_detection
from txprivacy.heuristics.coinjoin import is_coinjoin
from txprivacy.models import ClusterProgress, ClusterResult, FindingKind, Transaction
from txprivacy.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ClusterProgress], None]


class AddressTxsApi(Protocol):
    """The single API capability the cluster builder needs."""

    def get_address_txs(self, address: str) -> Awaitable[list[Transaction]]: ...


def _is_set(event: asyncio.Event | None) -> bool:
    return event is not None and event.is_set()


def change_candidate(tx: Transaction, target: str) -> str | None:
    """Change address of a target spend, when change detection is unambiguous.

    Requires an ``h2-change-detected`` finding (self-sends excluded), exactly
    two spendable outputs, and exactly one output whose address type matches
    the target's.
    """
    findings = analyze_change_detection(tx).findings
    if not any(f.kind == FindingKind.CHANGE_DETECTED for f in findings):
        return None
    outputs = spendable_outputs(tx)
    if len(outputs) != 2:
        return None
    target_type = get_address_type(target)
    matches = [
        out.scriptpubkey_address
        for out in outputs
        if get_address_type(out.scriptpubkey_address) == target_type
    ]
    if len(matches) != 1 or matches[0] == target:
        return None
    return matches[0]


async def _fetch_txs(
    api: AddressTxsApi, address: str, cancel_event: asyncio.Event | None
) -> list[Transaction]:
    """Fetch an address's transactions, abandoning the request on cancellation."""
    if cancel_event is None:
        return await api.get_address_txs(address)

    fetch = asyncio.ensure_future(api.get_address_txs(address))
    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        await asyncio.wait({fetch, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
    if not fetch.done():
        fetch.cancel()
        raise OperationCancelled(f"Cancelled while fetching transactions of {address}")
    return fetch.result()


async def build_first_degree_cluster(
    target: str,
    txs: list[Transaction],
    api: AddressTxsApi,
    cancel_event: asyncio.Event | None = None,
    on_progress: Optional[ProgressCallback] = None,
    config: EngineConfig | None = None,
) -> ClusterResult:
    """Estimate the one-hop cluster of ``target``.

    Args:
        target: Address to cluster
        txs: The target's transactions, most recent first
        api: Object with ``async get_address_txs(address)``
        cancel_event: Set to stop the walk at the next iteration boundary
        on_progress: Called with a ClusterProgress at every iteration
        config: Caps and throttle interval (default: global config)

    Returns:
        ClusterResult; ``cancelled=True`` marks a result the caller should discard
    """
    config = config or get_config()
    uf = UnionFind()
    uf.add(target)
    linked_groups = 0
    txs_analyzed = 0
    coinjoin_txs = 0
    cancelled = False
    change_queue: list[str] = []

    # Phase 1: CIOH on the target's own spends
    capped = txs[: config.cluster_max_txs]
    for i, tx in enumerate(capped):
        if _is_set(cancel_event):
            cancelled = True
            break
        if on_progress is not None:
            on_progress(ClusterProgress(phase="inputs", current=i + 1, total=len(capped)))

        txs_analyzed += 1
        if is_coinjoin(tx):
            coinjoin_txs += 1
            continue

        inputs = input_addresses(tx)
        if target not in inputs:
            continue
        if uf.union_all([target, *inputs]) > 0:
            linked_groups += 1

        change = change_candidate(tx, target)
        if change is not None and change not in change_queue:
            change_queue.append(change)

    # Phase 2: follow change outputs one hop
    to_follow = [] if cancelled else change_queue[: config.cluster_max_change]
    throttle = RateLimiter(config.cluster_throttle_ms, cancel_event)
    for i, change in enumerate(to_follow):
        if _is_set(cancel_event):
            cancelled = True
            break
        if on_progress is not None:
            on_progress(ClusterProgress(phase="change-follow", current=i + 1, total=len(to_follow)))

        uf.union(target, change)
        try:
            change_txs = await throttle(_fetch_txs, api, change, cancel_event)
        except (OperationCancelled, asyncio.CancelledError):
            cancelled = True
            break
        except Exception as e:
            logger.warning(f"Skipping change address {change}: {e}")
            continue

        for ctx in change_txs[: config.cluster_txs_per_change]:
            txs_analyzed += 1
            if is_coinjoin(ctx):
                coinjoin_txs += 1
                continue
            inputs = input_addresses(ctx)
            if change in inputs and uf.union_all([change, *inputs]) > 0:
                linked_groups += 1

    addresses = tuple(sorted(uf.members(target)))
    logger.debug(
        f"Cluster for {target}: {len(addresses)} addresses, {txs_analyzed} txs analyzed, "
        f"{coinjoin_txs} CoinJoins skipped, {len(to_follow)} change addresses followed"
        + (" (cancelled)" if cancelled else "")
    )
    return ClusterResult(
        addresses=addresses,
        size=len(addresses),
        txs_analyzed=txs_analyzed,
        coinjoin_tx_count=coinjoin_txs,
        linked_groups=linked_groups,
        cancelled=cancelled,
    )
