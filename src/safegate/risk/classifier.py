"""Risk classification of exposure snapshots.

Rules, evaluated in order:
1. current exposure >= critical threshold -> CRITICAL
2. current exposure >= high threshold -> HIGH
3. any of: volatility above threshold, a "C" grade credit rating,
   negative news while exposure exceeds collateral -> HIGH
4. otherwise -> MEDIUM

LOW is never produced from exposure data; it stays a valid level for
callers that assess risk by other means.
"""

from __future__ import annotations

from safegate.config import RiskPolicyConfig
from safegate.models import ExposureSnapshot, RiskLevel

APPROVAL_REQUIRED_LEVELS = frozenset({RiskLevel.HIGH, RiskLevel.CRITICAL})


def requires_approval(level: RiskLevel) -> bool:
    """Check if a risk level requires explicit human approval."""
    return level in APPROVAL_REQUIRED_LEVELS


class RiskClassifier:
    """Pure mapping from exposure data to a RiskLevel."""

    def __init__(self, policy: RiskPolicyConfig | None = None) -> None:
        """Initialize classifier.

        Args:
            policy: Thresholds to apply (defaults to RiskPolicyConfig())
        """
        self.policy = policy or RiskPolicyConfig()

    def classify(self, snapshot: ExposureSnapshot) -> RiskLevel:
        """Classify a snapshot.

        Args:
            snapshot: Exposure data to assess

        Returns:
            The determined risk level
        """
        exposure = snapshot.current_exposure

        if exposure >= self.policy.critical_threshold:
            return RiskLevel.CRITICAL

        if exposure >= self.policy.high_threshold:
            return RiskLevel.HIGH

        if self._risk_factors(snapshot):
            return RiskLevel.HIGH

        return RiskLevel.MEDIUM

    def explain(self, snapshot: ExposureSnapshot) -> list[str]:
        """List the rules that fired for a snapshot, most severe first."""
        reasons: list[str] = []
        exposure = snapshot.current_exposure

        if exposure >= self.policy.critical_threshold:
            reasons.append(
                f"Exposure {exposure} >= critical threshold {self.policy.critical_threshold}"
            )
        elif exposure >= self.policy.high_threshold:
            reasons.append(f"Exposure {exposure} >= high threshold {self.policy.high_threshold}")

        reasons.extend(self._risk_factors(snapshot))
        return reasons

    def _risk_factors(self, snapshot: ExposureSnapshot) -> list[str]:
        """Non-exposure factors that raise risk to HIGH."""
        factors: list[str] = []

        if snapshot.market_volatility > self.policy.volatility_threshold:
            factors.append(
                f"Market volatility {snapshot.market_volatility:.2f} > "
                f"{self.policy.volatility_threshold:.2f}"
            )

        # Substring match: "CCC", "Caa1" and "c" all count as C grade
        if "c" in snapshot.credit_rating.lower():
            factors.append(f"Credit rating '{snapshot.credit_rating}' is C grade")

        news = snapshot.news
        if (
            news is not None
            and news.sentiment == "negative"
            and snapshot.current_exposure > snapshot.collateral_held
        ):
            factors.append(
                f"Negative news with exposure {snapshot.current_exposure} "
                f"above collateral {snapshot.collateral_held}"
            )

        return factors
