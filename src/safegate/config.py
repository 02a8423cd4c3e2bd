"""Configuration management using pydantic-settings."""

from decimal import Decimal
from pathlib import Path

import yaml
from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApprovalConfig(BaseSettings):
    """Approval request lifetime and expiry sweep schedule."""

    model_config = SettingsConfigDict(env_prefix="SAFEGATE_APPROVAL_")

    timeout_hours: float = Field(
        default=24.0, gt=0, description="Hours a pending request stays open before expiring"
    )
    sweep_interval_seconds: float = Field(
        default=3600.0, gt=0, description="Interval between background expiry sweeps"
    )
    sweep_enabled: bool = Field(
        default=True, description="Run the background expiry sweep in the web service"
    )


class RiskPolicyConfig(BaseSettings):
    """Risk classification thresholds.

    Exposure thresholds are Decimals so comparisons against large on-chain
    amounts never go through binary floats.
    """

    model_config = SettingsConfigDict(env_prefix="SAFEGATE_RISK_")

    high_threshold: Decimal = Field(
        default=Decimal("100000"), description="Exposure at or above which risk is HIGH"
    )
    critical_threshold: Decimal = Field(
        default=Decimal("500000"), description="Exposure at or above which risk is CRITICAL"
    )
    volatility_threshold: float = Field(
        default=0.5, ge=0.0, description="Market volatility above which risk is HIGH"
    )
    policy_file: Path | None = Field(
        default=None, description="Optional YAML file overriding the thresholds above"
    )

    @field_validator("critical_threshold", mode="after")
    @classmethod
    def critical_not_below_high(cls, v: Decimal, info: ValidationInfo) -> Decimal:
        """Ensure the CRITICAL threshold is not below the HIGH threshold."""
        high = info.data.get("high_threshold")
        if high is not None and v < high:
            raise ValueError(f"critical_threshold {v} is below high_threshold {high}")
        return v


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="SAFEGATE_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Path | None = Field(default=None, description="Optional log file path")

    # Nested configs
    approval: ApprovalConfig = Field(default_factory=ApprovalConfig)
    risk: RiskPolicyConfig = Field(default_factory=RiskPolicyConfig)


def load_risk_policy(path: Path, base: RiskPolicyConfig | None = None) -> RiskPolicyConfig:
    """Load risk thresholds from a YAML policy file.

    The file holds a ``risk_policy`` mapping; keys it omits keep the values
    of ``base`` (or the defaults). A missing file returns ``base`` unchanged.

    Example file::

        risk_policy:
          high_threshold: "100000"
          critical_threshold: "500000"
          volatility_threshold: 0.5

    Raises:
        ValueError: The file is not a mapping, or the policy is invalid
    """
    base = base or RiskPolicyConfig()
    if not path.exists():
        return base
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Risk policy file {path} must contain a mapping")
    overrides = data.get("risk_policy") or {}
    if not isinstance(overrides, dict):
        raise ValueError(
            f"risk_policy in {path} must be a mapping, got {type(overrides).__name__}"
        )
    merged = base.model_dump()
    # Floats go through str to keep Decimal precision for large thresholds
    for key in ("high_threshold", "critical_threshold"):
        if isinstance(overrides.get(key), float):
            overrides[key] = Decimal(str(overrides[key]))
    merged.update(overrides)
    return RiskPolicyConfig.model_validate(merged)


def resolve_risk_policy(settings: Settings) -> RiskPolicyConfig:
    """Return the effective risk policy, applying the YAML file if configured."""
    policy = settings.risk
    if policy.policy_file is not None:
        return load_risk_policy(policy.policy_file, base=policy)
    return policy


# Global settings instance (lazy loaded)
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings instance (useful for testing)."""
    global _settings
    _settings = None
