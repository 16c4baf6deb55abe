"""
Tests for the one-hop cluster builder.

The API capability is an AsyncMock; throttling is disabled through the
engine_config fixture so no test sleeps.
"""

import asyncio
import json
import logging
from dataclasses import replace
from unittest.mock import AsyncMock, MagicMock

import pytest

from txprivacy.clustering import build_first_degree_cluster, change_candidate
from txprivacy.errors import ApiError, ApiErrorCode
from txprivacy.models import ClusterProgress


def _spend(make_tx, make_vin, make_vout, inputs, change=None):
    """Spend from ``inputs`` to a Taproot payment plus P2WPKH change."""
    return make_tx(
        vin=[make_vin(address=a, vout=i) for i, a in enumerate(inputs)],
        vout=[make_vout(48_213, kind="p2tr"), make_vout(50_287, address=change)],
    )


@pytest.fixture
def api():
    mock = AsyncMock()
    mock.get_address_txs.return_value = []
    return mock


# =============================================================================
# Change candidate
# =============================================================================


class TestChangeCandidate:
    def test_type_matched_change(self, make_tx, make_vin, make_vout, make_address_str):
        target, change = make_address_str(), make_address_str()
        tx = _spend(make_tx, make_vin, make_vout, [target], change=change)

        assert change_candidate(tx, target) == change

    def test_no_change_signal(self, make_tx, make_vin, make_address_str):
        target = make_address_str()
        tx = make_tx(vin=[make_vin(address=target)])

        assert change_candidate(tx, target) is None

    def test_self_send_is_not_followed(self, make_tx, make_vin, make_vout, make_address_str):
        target = make_address_str()
        tx = make_tx(
            vin=[make_vin(address=target)],
            vout=[make_vout(48_213, kind="p2tr"), make_vout(50_287, address=target)],
        )

        assert change_candidate(tx, target) is None


# =============================================================================
# Cluster walk
# =============================================================================


class TestBuildFirstDegreeCluster:
    @pytest.mark.asyncio
    async def test_no_transactions(self, api, engine_config, make_address_str):
        target = make_address_str()

        result = await build_first_degree_cluster(target, [], api, config=engine_config)

        assert result.addresses == (target,)
        assert result.size == 1
        assert result.txs_analyzed == 0
        assert result.coinjoin_tx_count == 0
        assert not result.cancelled
        api.get_address_txs.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_co_inputs_and_change(self, api, engine_config, make_tx, make_vin, make_vout, make_address_str):
        target, co_input, change = make_address_str(), make_address_str(), make_address_str()
        tx = _spend(make_tx, make_vin, make_vout, [target, co_input], change=change)

        result = await build_first_degree_cluster(target, [tx], api, config=engine_config)

        assert set(result.addresses) == {target, co_input, change}
        assert result.addresses == tuple(sorted(result.addresses))
        assert result.txs_analyzed == 1
        assert result.linked_groups == 1
        api.get_address_txs.assert_awaited_once_with(change)

    @pytest.mark.asyncio
    async def test_change_follow_applies_cioh(
        self, api, engine_config, make_tx, make_vin, make_vout, make_address_str
    ):
        target, change, partner = make_address_str(), make_address_str(), make_address_str()
        spend = _spend(make_tx, make_vin, make_vout, [target], change=change)
        change_spend = make_tx(vin=[make_vin(address=change), make_vin(address=partner, vout=1)])
        unrelated = make_tx()
        api.get_address_txs.return_value = [change_spend, unrelated]

        result = await build_first_degree_cluster(target, [spend], api, config=engine_config)

        assert set(result.addresses) == {target, change, partner}
        assert result.txs_analyzed == 3
        assert result.linked_groups == 1

    @pytest.mark.asyncio
    async def test_receives_do_not_link(self, api, engine_config, make_tx, make_vout, make_address_str):
        target = make_address_str()
        receive = make_tx(vout=[make_vout(50_000, address=target), make_vout(48_213)])

        result = await build_first_degree_cluster(target, [receive], api, config=engine_config)

        assert result.addresses == (target,)
        assert result.txs_analyzed == 1

    @pytest.mark.asyncio
    async def test_coinjoins_skipped(self, api, engine_config, make_tx, make_vin, make_vout, make_address_str):
        target = make_address_str()
        coinjoin = make_tx(
            vin=[make_vin(200_000, address=target)] + [make_vin(200_000) for _ in range(4)],
            vout=[make_vout(123_456) for _ in range(5)],
        )

        result = await build_first_degree_cluster(target, [coinjoin], api, config=engine_config)

        assert result.addresses == (target,)
        assert result.coinjoin_tx_count == 1
        assert result.txs_analyzed == 1

    @pytest.mark.asyncio
    async def test_fetch_failure_is_skipped(
        self, api, engine_config, make_tx, make_vin, make_vout, make_address_str, caplog
    ):
        target, change = make_address_str(), make_address_str()
        tx = _spend(make_tx, make_vin, make_vout, [target], change=change)
        api.get_address_txs.side_effect = ApiError(ApiErrorCode.RATE_LIMITED)

        with caplog.at_level(logging.WARNING):
            result = await build_first_degree_cluster(target, [tx], api, config=engine_config)

        assert set(result.addresses) == {target, change}
        assert not result.cancelled
        assert f"Skipping change address {change}" in caplog.text

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            json.JSONDecodeError("Expecting value", "<html>", 0),
            ValueError("malformed payload"),
        ],
    )
    async def test_any_fetch_error_keeps_partial_cluster(
        self, api, engine_config, make_tx, make_vin, make_vout, make_address_str, error
    ):
        """A bad response for one change address does not discard the others."""
        target, first, second = make_address_str(), make_address_str(), make_address_str()
        partner = make_address_str()
        txs = [
            _spend(make_tx, make_vin, make_vout, [target], change=first),
            _spend(make_tx, make_vin, make_vout, [target], change=second),
        ]
        second_spend = make_tx(vin=[make_vin(address=second), make_vin(address=partner, vout=1)])
        api.get_address_txs.side_effect = [error, [second_spend]]

        result = await build_first_degree_cluster(target, txs, api, config=engine_config)

        assert set(result.addresses) == {target, first, second, partner}
        assert not result.cancelled

    @pytest.mark.asyncio
    async def test_transaction_cap(self, api, engine_config, make_tx, make_vout, make_address_str):
        target = make_address_str()
        txs = [make_tx(vout=[make_vout(50_000, address=target)]) for _ in range(5)]

        result = await build_first_degree_cluster(
            target, txs, api, config=replace(engine_config, cluster_max_txs=2)
        )

        assert result.txs_analyzed == 2

    @pytest.mark.asyncio
    async def test_progress_reported(self, api, engine_config, make_tx, make_vin, make_vout, make_address_str):
        target = make_address_str()
        txs = [_spend(make_tx, make_vin, make_vout, [target]) for _ in range(2)]
        progress = []

        await build_first_degree_cluster(
            target, txs, api, on_progress=progress.append, config=engine_config
        )

        assert progress[:2] == [
            ClusterProgress(phase="inputs", current=1, total=2),
            ClusterProgress(phase="inputs", current=2, total=2),
        ]
        assert progress[2] == ClusterProgress(phase="change-follow", current=1, total=2)
        assert len(progress) == 4


# =============================================================================
# Cancellation
# =============================================================================


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, api, engine_config, make_tx, make_vin, make_vout, make_address_str):
        target = make_address_str()
        cancel = asyncio.Event()
        cancel.set()

        result = await build_first_degree_cluster(
            target,
            [_spend(make_tx, make_vin, make_vout, [target])],
            api,
            cancel_event=cancel,
            config=engine_config,
        )

        assert result.cancelled
        assert result.txs_analyzed == 0
        api.get_address_txs.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancelled_between_iterations(self, api, engine_config, make_tx, make_vout, make_address_str):
        target = make_address_str()
        txs = [make_tx(vout=[make_vout(50_000, address=target)]) for _ in range(3)]
        cancel = asyncio.Event()

        result = await build_first_degree_cluster(
            target,
            txs,
            api,
            cancel_event=cancel,
            on_progress=lambda progress: cancel.set(),
            config=engine_config,
        )

        assert result.cancelled
        assert result.txs_analyzed == 1

    @pytest.mark.asyncio
    async def test_cancel_aborts_pending_fetch(self, engine_config, make_tx, make_vin, make_vout, make_address_str):
        target, change = make_address_str(), make_address_str()
        tx = _spend(make_tx, make_vin, make_vout, [target], change=change)

        async def slow_fetch(address):
            await asyncio.sleep(10)
            return []

        api = MagicMock()
        api.get_address_txs = slow_fetch
        cancel = asyncio.Event()
        asyncio.get_running_loop().call_later(0.05, cancel.set)

        result = await asyncio.wait_for(
            build_first_degree_cluster(target, [tx], api, cancel_event=cancel, config=engine_config),
            timeout=2,
        )

        assert result.cancelled
        assert change in result.addresses
