"""Tests for risk classification of exposure snapshots."""

from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from safegate.config import RiskPolicyConfig
from safegate.models import ExposureSnapshot, NewsSignal, RiskLevel
from safegate.risk.classifier import RiskClassifier, requires_approval

# =============================================================================
# Test: RiskLevel ordering
# =============================================================================


class TestRiskLevel:
    """Tests for RiskLevel total ordering."""

    def test_ordering(self) -> None:
        """Levels order LOW < MEDIUM < HIGH < CRITICAL."""
        assert RiskLevel.LOW < RiskLevel.MEDIUM < RiskLevel.HIGH < RiskLevel.CRITICAL
        assert max(RiskLevel.HIGH, RiskLevel.LOW, RiskLevel.CRITICAL) == RiskLevel.CRITICAL
        assert sorted([RiskLevel.CRITICAL, RiskLevel.LOW, RiskLevel.HIGH]) == [
            RiskLevel.LOW,
            RiskLevel.HIGH,
            RiskLevel.CRITICAL,
        ]

    def test_requires_approval(self) -> None:
        """Only HIGH and CRITICAL require approval."""
        assert requires_approval(RiskLevel.LOW) is False
        assert requires_approval(RiskLevel.MEDIUM) is False
        assert requires_approval(RiskLevel.HIGH) is True
        assert requires_approval(RiskLevel.CRITICAL) is True


# =============================================================================
# Test: Exposure thresholds
# =============================================================================


class TestExposureThresholds:
    """Tests for exposure-amount rules."""

    @pytest.mark.parametrize("exposure", ["500000", "600000", "1000000000000000000000000"])
    def test_critical_at_or_above_threshold(self, make_snapshot, exposure: str) -> None:
        """Exposure >= 500k is CRITICAL."""
        snapshot = make_snapshot(current_exposure=Decimal(exposure))
        assert RiskClassifier().classify(snapshot) == RiskLevel.CRITICAL

    @pytest.mark.parametrize("exposure", ["100000", "250000", "499999.99"])
    def test_high_between_thresholds(self, make_snapshot, exposure: str) -> None:
        """100k <= exposure < 500k is HIGH."""
        snapshot = make_snapshot(current_exposure=Decimal(exposure))
        assert RiskClassifier().classify(snapshot) == RiskLevel.HIGH

    def test_nominal_is_medium_never_low(self, make_snapshot) -> None:
        """Below all thresholds with no other factor is MEDIUM."""
        for exposure in ("0", "1", "99999.99"):
            snapshot = make_snapshot(current_exposure=Decimal(exposure))
            assert RiskClassifier().classify(snapshot) == RiskLevel.MEDIUM

    def test_large_amounts_keep_precision(self, make_snapshot) -> None:
        """Wei-scale amounts one unit below the threshold are not rounded up."""
        policy = RiskPolicyConfig(
            high_threshold=Decimal("100000000000000000000000"),
            critical_threshold=Decimal("500000000000000000000000"),
        )
        snapshot = make_snapshot(current_exposure=Decimal("499999999999999999999999"))
        assert RiskClassifier(policy).classify(snapshot) == RiskLevel.HIGH

    def test_float_input_converted_exactly(self) -> None:
        """Float exposure is converted via its string form."""
        snapshot = ExposureSnapshot(counterparty_id="cp", current_exposure=0.1)
        assert snapshot.current_exposure == Decimal("0.1")

    def test_custom_policy(self, make_snapshot) -> None:
        """Thresholds come from the policy."""
        policy = RiskPolicyConfig(
            high_threshold=Decimal("1000"), critical_threshold=Decimal("5000")
        )
        classifier = RiskClassifier(policy)
        assert classifier.classify(make_snapshot(current_exposure=Decimal("999"))) == (
            RiskLevel.MEDIUM
        )
        assert classifier.classify(make_snapshot(current_exposure=Decimal("1000"))) == (
            RiskLevel.HIGH
        )
        assert classifier.classify(make_snapshot(current_exposure=Decimal("5000"))) == (
            RiskLevel.CRITICAL
        )


# =============================================================================
# Test: Additional risk factors
# =============================================================================


class TestRiskFactors:
    """Tests for volatility, rating and news rules."""

    def test_volatility_above_threshold_is_high(self, make_snapshot) -> None:
        """Volatility strictly above 0.5 is HIGH."""
        assert RiskClassifier().classify(make_snapshot(market_volatility=0.51)) == RiskLevel.HIGH

    def test_volatility_at_threshold_is_medium(self, make_snapshot) -> None:
        """Volatility of exactly 0.5 does not trigger."""
        assert RiskClassifier().classify(make_snapshot(market_volatility=0.5)) == RiskLevel.MEDIUM

    @pytest.mark.parametrize("rating", ["CCC", "ccc+", "Caa1", "C", "BBc"])
    def test_c_grade_rating_is_high(self, make_snapshot, rating: str) -> None:
        """Any 'c' in the rating, case-insensitive, is HIGH."""
        assert RiskClassifier().classify(make_snapshot(credit_rating=rating)) == RiskLevel.HIGH

    @pytest.mark.parametrize("rating", ["AAA", "AA-", "BBB", "Baa2", ""])
    def test_non_c_rating_is_medium(self, make_snapshot, rating: str) -> None:
        """Ratings without a C grade do not trigger."""
        assert RiskClassifier().classify(make_snapshot(credit_rating=rating)) == RiskLevel.MEDIUM

    def test_negative_news_with_overexposure_is_high(self, make_snapshot) -> None:
        """Negative news with exposure above collateral is HIGH."""
        snapshot = make_snapshot(
            current_exposure=Decimal("50000"),
            collateral_held=Decimal("10000"),
            news=NewsSignal(sentiment="negative", risk_hint="medium"),
        )
        assert RiskClassifier().classify(snapshot) == RiskLevel.HIGH

    def test_negative_news_when_covered_is_medium(self, make_snapshot) -> None:
        """Negative news alone does not trigger when collateral covers exposure."""
        snapshot = make_snapshot(
            current_exposure=Decimal("50000"),
            collateral_held=Decimal("50000"),
            news=NewsSignal(sentiment="negative"),
        )
        assert RiskClassifier().classify(snapshot) == RiskLevel.MEDIUM

    def test_positive_news_with_overexposure_is_medium(self, make_snapshot) -> None:
        """Only negative sentiment counts."""
        snapshot = make_snapshot(
            collateral_held=Decimal("0"),
            news=NewsSignal(sentiment="positive", risk_hint="high"),
        )
        assert RiskClassifier().classify(snapshot) == RiskLevel.MEDIUM

    def test_news_parsed_from_camel_case(self) -> None:
        """Snapshots accept the advisory payload's camelCase keys."""
        snapshot = ExposureSnapshot.model_validate(
            {
                "counterpartyId": "cp-9",
                "currentExposure": "20000",
                "collateralHeld": "100",
                "creditRating": "A",
                "newsAnalysis": {"sentiment": "negative", "riskLevel": "high"},
            }
        )
        assert snapshot.news is not None
        assert snapshot.news.risk_hint == "high"
        assert RiskClassifier().classify(snapshot) == RiskLevel.HIGH


# =============================================================================
# Test: Purity and explanations
# =============================================================================


class TestClassifierBehavior:
    """Tests for determinism and explain()."""

    def test_deterministic(self, make_snapshot) -> None:
        """Same input always gives the same level."""
        classifier = RiskClassifier()
        snapshot = make_snapshot(market_volatility=0.7)
        assert {classifier.classify(snapshot) for _ in range(10)} == {RiskLevel.HIGH}

    def test_snapshot_is_immutable(self, make_snapshot) -> None:
        """Snapshots cannot be mutated after construction."""
        snapshot = make_snapshot()
        with pytest.raises(ValidationError):
            snapshot.current_exposure = Decimal("1")  # type: ignore[misc]

    def test_explain_lists_fired_rules(self, make_snapshot) -> None:
        """explain() names every rule that fired."""
        snapshot = make_snapshot(
            current_exposure=Decimal("600000"), market_volatility=0.9, credit_rating="CCC"
        )
        reasons = RiskClassifier().explain(snapshot)
        assert len(reasons) == 3
        assert "critical threshold" in reasons[0]

    def test_explain_empty_for_nominal(self, make_snapshot) -> None:
        """No rules fire for a nominal snapshot."""
        assert RiskClassifier().explain(make_snapshot()) == []
