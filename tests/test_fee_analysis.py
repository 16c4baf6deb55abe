"""
Tests for H6 fee fingerprinting.
"""

from txprivacy.heuristics.fee_analysis import analyze_fees, fee_rate
from txprivacy.models import FindingKind


class TestFeeRate:
    def test_vsize_rounds_up(self, make_tx):
        assert fee_rate(make_tx(fee=1_760, weight=701)) == 10.0


class TestAnalyzeFees:
    def test_round_fee_rate(self, make_tx, make_vin):
        tx = make_tx(vin=[make_vin(sequence=0xFFFFFFFF)], fee=1_750, weight=700)

        findings = analyze_fees(tx).findings

        assert [f.kind for f in findings] == [FindingKind.ROUND_FEE_RATE]
        assert findings[0].score_impact == -2
        assert findings[0].params == {"feeRate": 10}

    def test_low_round_rates_are_not_flagged(self, make_tx, make_vin):
        """5 sat/vB is too common to identify anything."""
        tx = make_tx(vin=[make_vin(sequence=0xFFFFFFFF)], fee=875, weight=700)

        assert analyze_fees(tx).findings == []

    def test_rbf_is_informational(self, make_tx):
        findings = analyze_fees(make_tx()).findings

        assert [f.kind for f in findings] == [FindingKind.RBF_SIGNALED]
        assert findings[0].score_impact == 0

    def test_missing_fee_data(self, make_tx):
        assert analyze_fees(make_tx(fee=0)).findings == []
