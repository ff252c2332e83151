"""
Dialer Configuration Model
Timing and retry settings for the auto-dialer
"""
from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum

from callcenter.core.config import ConfigManager


class RetryDelayBasis(str, Enum):
    """
    Which retry count the back-off delay is looked up with.

    AFTER_INCREMENT: delay for the count after this failure is recorded
    (first failure -> 10 min). BEFORE_INCREMENT: delay for the count before
    it (first failure -> 5 min), the legacy admin panel behaviour.
    """
    AFTER_INCREMENT = "after_increment"
    BEFORE_INCREMENT = "before_increment"


class DialerConfig(BaseModel):
    """
    Dialer settings.

    Loaded from the `dialer` section of the YAML configuration.
    """

    # Automatic transition delays
    dial_delay_seconds: float = Field(
        default=1.5,
        ge=0,
        description="DIALING -> RINGING delay (dial-out latency)"
    )
    ring_delay_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Simulated ringing time before answer/no-answer"
    )
    wrapup_delay_seconds: float = Field(
        default=2.0,
        ge=0,
        description="WRAPUP -> IDLE settle delay"
    )
    tick_interval_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Live duration ticker period while CONNECTED"
    )

    # Simulated telephony
    answer_rate: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Probability that the simulated backend answers"
    )
    auto_connect: bool = Field(
        default=True,
        description="Resolve RINGING automatically instead of waiting for a connect request"
    )

    # Retry settings
    retry_delay_basis: RetryDelayBasis = Field(default=RetryDelayBasis.AFTER_INCREMENT)
    default_priority: int = Field(default=1, ge=0)

    @classmethod
    def default(cls) -> "DialerConfig":
        """Create default dialer configuration."""
        return cls()

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "DialerConfig":
        """Create from dictionary (YAML section)."""
        if not data:
            return cls.default()
        return cls(**data)

    @classmethod
    def from_config_manager(cls, config: ConfigManager) -> "DialerConfig":
        return cls.from_dict(config.get_section("dialer"))

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")
