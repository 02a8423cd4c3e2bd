"""Risk agents that route advisory recommendations through the action gate."""

from safegate.agents.exposure import AdvisoryClient, CounterpartyExposureAgent, ExposureAssessment

__all__ = [
    "AdvisoryClient",
    "CounterpartyExposureAgent",
    "ExposureAssessment",
]
