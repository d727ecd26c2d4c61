"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SessionConfig:
    """Timing settings for interactive bot sessions."""

    # Overrides each bot's own processing delay when set (0 disables delays).
    processing_delay_seconds: Optional[float] = None
    countdown_seconds: int = 60
    shred_step_seconds: float = 0.03


@dataclass(frozen=True)
class SamplerConfig:
    """Emotion sampler cadence."""

    period_seconds: float = 0.3
