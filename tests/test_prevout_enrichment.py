"""
Tests for prevout enrichment.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from txprivacy.errors import ApiError, ApiErrorCode
from txprivacy.utils import count_missing_prevouts, enrich_prevouts, needs_enrichment

PARENT_A = "a" * 64
PARENT_B = "c" * 64


@pytest.fixture
def bare_tx(make_tx, make_vin):
    """A transaction whose single input lacks its prevout."""
    return make_tx(vin=[make_vin(txid=PARENT_A, vout=1, with_prevout=False)])


class TestDetection:
    def test_complete_transaction(self, make_tx):
        assert not needs_enrichment([make_tx()])
        assert count_missing_prevouts([make_tx()]) == 0

    def test_missing_prevout(self, bare_tx):
        assert needs_enrichment([bare_tx])
        assert count_missing_prevouts([bare_tx]) == 1

    def test_coinbase_ignored(self, make_tx, make_coinbase_vin):
        tx = make_tx(vin=[make_coinbase_vin()])

        assert not needs_enrichment([tx])
        assert count_missing_prevouts([tx]) == 0


class TestEnrichPrevouts:
    @pytest.mark.asyncio
    async def test_nothing_to_fetch(self, make_tx):
        fetch = AsyncMock()

        result = await enrich_prevouts([make_tx()], fetch)

        assert len(result.txs) == 1
        assert result.enriched_count == 0
        fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rebuilds_prevout_from_parent(self, bare_tx, make_tx, make_vout):
        parent = make_tx(txid=PARENT_A, vout=[make_vout(10_000), make_vout(70_000)])
        fetch = AsyncMock(return_value=parent)

        result = await enrich_prevouts([bare_tx], fetch)

        assert result.enriched_count == 1
        assert result.txs[0].vin[0].prevout == parent.vout[1]
        assert bare_tx.vin[0].prevout is None
        fetch.assert_awaited_once_with(PARENT_A)

    @pytest.mark.asyncio
    async def test_failed_parent_left_missing(self, bare_tx):
        fetch = AsyncMock(side_effect=ApiError(ApiErrorCode.NOT_FOUND))

        result = await enrich_prevouts([bare_tx], fetch)

        assert result.failed_count == 1
        assert result.enriched_count == 0
        assert result.txs[0].vin[0].prevout is None

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self, bare_tx):
        fetch = AsyncMock(side_effect=RuntimeError("bug"))

        with pytest.raises(RuntimeError):
            await enrich_prevouts([bare_tx], fetch)

    @pytest.mark.asyncio
    async def test_parent_cap(self, make_tx, make_vin, make_vout):
        tx = make_tx(
            vin=[
                make_vin(txid=PARENT_A, vout=0, with_prevout=False),
                make_vin(txid=PARENT_B, vout=0, with_prevout=False),
            ]
        )
        fetch = AsyncMock(return_value=make_tx(txid=PARENT_A, vout=[make_vout(9_000)]))

        result = await enrich_prevouts([tx], fetch, max_parents=1)

        assert result.skipped_count == 1
        assert result.enriched_count == 1
        assert result.txs[0].vin[1].prevout is None
        fetch.assert_awaited_once_with(PARENT_A)

    @pytest.mark.asyncio
    async def test_out_of_range_vout(self, make_tx, make_vin, make_vout):
        tx = make_tx(vin=[make_vin(txid=PARENT_A, vout=5, with_prevout=False)])
        fetch = AsyncMock(return_value=make_tx(txid=PARENT_A, vout=[make_vout(9_000)]))

        result = await enrich_prevouts([tx], fetch)

        assert result.enriched_count == 0
        assert result.txs[0].vin[0].prevout is None

    @pytest.mark.asyncio
    async def test_cancelled_before_fetching(self, bare_tx):
        cancel = asyncio.Event()
        cancel.set()
        fetch = AsyncMock()

        result = await enrich_prevouts([bare_tx], fetch, cancel_event=cancel)

        fetch.assert_not_awaited()
        assert result.txs[0].vin[0].prevout is None
