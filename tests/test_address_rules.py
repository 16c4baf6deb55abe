"""
Tests for the address rules: reuse (H8), UTXO set (H9), address type (H10)
and spending patterns.
"""

import pytest

from txprivacy.heuristics import (
    AddressType,
    analyze_address_reuse,
    analyze_address_type,
    analyze_spending_pattern,
    analyze_utxos,
    get_address_type,
)
from txprivacy.heuristics.address_reuse import count_receiving_txs, data_confidence, reuse_tier
from txprivacy.heuristics.spending_analysis import count_counterparties
from txprivacy.models import DataConfidence, FindingKind, Severity, Urgency


def _receive(make_tx, make_vout, address, outputs=1):
    """Transaction paying ``address`` ``outputs`` times."""
    return make_tx(vout=[make_vout(10_000 + i, address=address) for i in range(outputs)])


def _send(make_tx, make_vin, make_vout, address, recipient_kind="p2tr"):
    """Spend from ``address`` to a fresh recipient with P2WPKH change."""
    return make_tx(
        vin=[make_vin(address=address)],
        vout=[make_vout(48_213, kind=recipient_kind), make_vout(50_287)],
    )


# =============================================================================
# Address type classification
# =============================================================================


class TestGetAddressType:
    @pytest.mark.parametrize(
        "address,expected",
        [
            ("bc1p5cyxnuxmeuwuvkwfem96lqzszd02n6xdcjrs20cac6yqjjwudpxqkedrcr", AddressType.P2TR),
            ("bc1qar0srrr7xfkvy5l643lydnw9re59gtzzwf5mdq", AddressType.P2WPKH),
            ("bc1qrp33g0q5c5txsp9arysrx4k6zdkfs4nce4xj0gdcccefvpysxf3qccfmv3", AddressType.P2WSH),
            ("3J98t1WpEZ73CNmQviecrnyiWrnqRhWNLy", AddressType.P2SH),
            ("1BvBMSEYstWetqTFn5Au4m4GFg7xJaNVN2", AddressType.P2PKH),
            ("tb1qw508d6qejxtdg4y5r3zarvary0c5xw7kxpjzsx", AddressType.P2WPKH),
            ("mipcBbFg9gMiCh81Kj8tqqdgoZub1ZJRfn", AddressType.P2PKH),
            ("2MzQwSSnBHWHqSAqtTVQ6v47XtaisrJa1Vc", AddressType.P2SH),
            ("xyz-not-an-address", AddressType.UNKNOWN),
        ],
    )
    def test_classification(self, address, expected):
        assert get_address_type(address) == expected


# =============================================================================
# H8 address reuse
# =============================================================================


class TestAddressReuse:
    def test_single_use(self, make_address, make_tx, make_vout):
        info = make_address(funded=1, tx_count=1)
        txs = [_receive(make_tx, make_vout, info.address)]

        finding = analyze_address_reuse(info, [], txs).findings[0]

        assert finding.kind == FindingKind.NO_REUSE
        assert finding.score_impact == 3
        assert finding.confidence == DataConfidence.CONSISTENT

    def test_reused_twice(self, make_address, make_tx, make_vout):
        info = make_address(funded=2, tx_count=2)
        txs = [_receive(make_tx, make_vout, info.address) for _ in range(2)]

        finding = analyze_address_reuse(info, [], txs).findings[0]

        assert finding.kind == FindingKind.ADDRESS_REUSE
        assert finding.score_impact == -24
        assert finding.severity == Severity.HIGH
        assert finding.remediation.urgency == Urgency.SOON

    def test_heavy_reuse_from_indexer_counters(self, make_address):
        info = make_address(funded=12, tx_count=12)

        finding = analyze_address_reuse(info, [], []).findings[0]

        assert finding.score_impact == -50
        assert finding.severity == Severity.CRITICAL
        assert finding.remediation.urgency == Urgency.IMMEDIATE
        assert finding.confidence == DataConfidence.INCOMPLETE

    def test_batch_receive_is_not_reuse(self, make_address, make_tx, make_vout):
        info = make_address(funded=3, tx_count=1)
        txs = [_receive(make_tx, make_vout, info.address, outputs=3)]

        finding = analyze_address_reuse(info, [], txs).findings[0]

        assert finding.kind == FindingKind.BATCH_RECEIVE
        assert finding.score_impact == 0
        assert finding.params == {"totalFunded": 3}
        assert finding.confidence == DataConfidence.INDEXER_ONLY

    def test_lagging_indexer_counter(self, make_address, make_tx, make_vout):
        """Supplied transactions show more receives than the indexer."""
        info = make_address(funded=1, tx_count=3)
        txs = [_receive(make_tx, make_vout, info.address) for _ in range(3)]

        finding = analyze_address_reuse(info, [], txs).findings[0]

        assert finding.kind == FindingKind.ADDRESS_REUSE
        assert finding.score_impact == -32
        assert finding.confidence == DataConfidence.OBSERVED_ONLY

    def test_reuse_uncertain(self, make_address):
        info = make_address(funded=0, tx_count=4)

        finding = analyze_address_reuse(info, [], []).findings[0]

        assert finding.kind == FindingKind.REUSE_UNCERTAIN
        assert finding.score_impact == 0
        assert finding.confidence == DataConfidence.INCOMPLETE

    def test_mempool_receives_count(self, make_address):
        info = make_address(funded=1, tx_count=1, mempool_funded=1, mempool_tx_count=1)

        assert analyze_address_reuse(info, [], []).findings[0].kind == FindingKind.ADDRESS_REUSE

    def test_count_receiving_txs(self, make_tx, make_vout, make_address_str):
        address = make_address_str()
        txs = [_receive(make_tx, make_vout, address, outputs=2), make_tx()]

        assert count_receiving_txs(address, txs) == 1

    def test_data_confidence_consistent(self, make_address):
        assert data_confidence(make_address(funded=2, tx_count=2), 2, 2) == DataConfidence.CONSISTENT

    @pytest.mark.parametrize(
        "count,impact,severity",
        [(2, -24, Severity.HIGH), (3, -32, Severity.CRITICAL), (5, -45, Severity.CRITICAL),
         (50, -58, Severity.CRITICAL), (100, -65, Severity.CRITICAL), (1000, -70, Severity.CRITICAL)],
    )
    def test_reuse_tiers(self, count, impact, severity):
        assert reuse_tier(count) == (impact, severity)


# =============================================================================
# H9 UTXO analysis
# =============================================================================


class TestUtxoAnalysis:
    def test_no_utxos(self, make_address):
        assert analyze_utxos(make_address(), [], []).findings == []

    def test_clean(self, make_address, make_utxo):
        utxos = [make_utxo(50_000) for _ in range(3)]

        finding = analyze_utxos(make_address(), utxos, []).findings[0]

        assert finding.kind == FindingKind.CLEAN_UTXOS
        assert finding.id == "h9-clean"
        assert finding.score_impact == 2

    def test_single_dust(self, make_address, make_utxo):
        utxos = [make_utxo(546), make_utxo(50_000)]

        finding = analyze_utxos(make_address(), utxos, []).findings[0]

        assert finding.kind == FindingKind.DUST_UTXOS
        assert finding.score_impact == -5
        assert finding.severity == Severity.MEDIUM
        assert finding.remediation.urgency == Urgency.SOON

    def test_moderate_count(self, make_address, make_utxo):
        utxos = [make_utxo(50_000) for _ in range(7)]

        finding = analyze_utxos(make_address(), utxos, []).findings[0]

        assert finding.kind == FindingKind.MODERATE_UTXOS
        assert finding.score_impact == -2

    def test_many(self, make_address, make_utxo):
        utxos = [make_utxo(50_000) for _ in range(20)]

        findings = analyze_utxos(make_address(), utxos, []).findings

        assert [f.kind for f in findings] == [FindingKind.MANY_UTXOS]
        assert findings[0].score_impact == -3


# =============================================================================
# H10 address type
# =============================================================================


class TestAddressTypeRule:
    @pytest.mark.parametrize(
        "kind,expected,impact",
        [
            ("p2tr", FindingKind.TYPE_P2TR, 5),
            ("p2wpkh", FindingKind.TYPE_P2WPKH, 0),
            ("p2wsh", FindingKind.TYPE_P2WSH, -2),
            ("p2sh", FindingKind.TYPE_P2SH, -3),
            ("p2pkh", FindingKind.TYPE_P2PKH, -5),
        ],
    )
    def test_types(self, make_address, make_address_str, kind, expected, impact):
        info = make_address(address=make_address_str(kind))

        finding = analyze_address_type(info, [], []).findings[0]

        assert finding.kind == expected
        assert finding.score_impact == impact

    def test_p2wpkh_is_good_and_neutral(self, make_address):
        finding = analyze_address_type(make_address(), [], []).findings[0]

        assert finding.severity == Severity.GOOD
        assert finding.score_impact == 0

    def test_unknown_type(self, make_address):
        assert analyze_address_type(make_address(address="xyz"), [], []).findings == []


# =============================================================================
# Spending patterns
# =============================================================================


class TestSpendingPattern:
    def test_high_volume(self, make_address):
        info = make_address(funded=80, spent=79, tx_count=150)

        kinds = [f.kind for f in analyze_spending_pattern(info, [], []).findings]

        assert kinds == [FindingKind.SPENDING_HIGH_VOLUME]

    def test_never_spent(self, make_address):
        finding = analyze_spending_pattern(make_address(funded=2, spent=0), [], []).findings[0]

        assert finding.kind == FindingKind.SPENDING_NEVER_SPENT
        assert finding.score_impact == 2

    def test_many_counterparties(self, make_address, make_tx, make_vin, make_vout):
        info = make_address(funded=20, spent=20, tx_count=40)
        txs = [_send(make_tx, make_vin, make_vout, info.address) for _ in range(20)]

        finding = analyze_spending_pattern(info, [], txs).findings[0]

        assert finding.kind == FindingKind.SPENDING_MANY_COUNTERPARTIES
        assert finding.params == {"counterparties": 20}
        assert finding.score_impact == -2

    def test_change_is_not_a_counterparty(self, make_tx, make_vin, make_vout, make_address_str):
        address = make_address_str()
        txs = [_send(make_tx, make_vin, make_vout, address) for _ in range(3)]

        assert count_counterparties(address, txs) == 3

    def test_ambiguous_change_counts_both(self, make_tx, make_vin, make_vout, make_address_str):
        """Both outputs match the sender type, so neither is excluded."""
        address = make_address_str()
        txs = [_send(make_tx, make_vin, make_vout, address, recipient_kind="p2wpkh")]

        assert count_counterparties(address, txs) == 2

    def test_receives_are_not_sends(self, make_tx, make_vout, make_address_str):
        address = make_address_str()

        assert count_counterparties(address, [_receive(make_tx, make_vout, address)]) == 0
