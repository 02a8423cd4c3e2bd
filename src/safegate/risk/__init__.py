"""Risk classification for proposed counterparty actions.

This module provides:
- Deterministic classification of exposure data into a RiskLevel
- The approval requirement rule (HIGH and CRITICAL need a human decision)
"""

from safegate.risk.classifier import RiskClassifier, requires_approval

__all__ = [
    "RiskClassifier",
    "requires_approval",
]
