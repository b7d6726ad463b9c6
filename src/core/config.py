"""Configuration models and YAML loader for the job intake engine."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class FetchConfig(BaseModel):
    """HTTP fetch behaviour: timeouts, retries, headers."""

    timeout_s: float = Field(default=15.0, gt=0.0)
    max_retries: int = Field(default=3, ge=0, le=10)
    backoff_min_s: float = Field(default=1.0, ge=0.0)
    backoff_max_s: float = Field(default=4.0, ge=0.0)
    max_redirects: int = Field(default=5, ge=0)
    user_agent: str = DEFAULT_USER_AGENT


class CacheConfig(BaseModel):
    """Extracted-content cache limits."""

    max_age_s: float = Field(default=24 * 60 * 60, gt=0.0)
    max_entries: int = Field(default=100, ge=1)
    cleanup_interval_s: float = Field(default=60 * 60, gt=0.0)


class ExtractionConfig(BaseModel):
    """Escalation thresholds.

    These are empirical cut-offs, not invariants; tune per deployment.
    """

    sufficiency_threshold: int = Field(default=500, ge=1)
    advanced_parse_threshold: int = Field(default=15000, ge=1)
    section_max_chars: int = Field(default=21000, ge=1000)
    main_content_min_chars: int = Field(default=200, ge=1)
    model_fallback: bool = True
    model_page_max_chars: int = Field(default=15000, ge=1000)


class RenderConfig(BaseModel):
    """Headless browser fallback configuration."""

    enabled: bool = True
    timeout_ms: int = Field(default=30000, ge=1000)
    settle_ms: int = Field(default=2000, ge=0)
    wait_timeout_ms: int = Field(default=5000, ge=0)
    viewport_width: int = Field(default=1920, ge=320)
    viewport_height: int = Field(default=1080, ge=240)
    max_scroll_attempts: int = Field(default=3, ge=0, le=10)
    user_agent: str = DEFAULT_USER_AGENT


class LLMConfig(BaseModel):
    """Text-understanding provider selection."""

    provider: str = "anthropic"
    model: str | None = None

    @field_validator("provider")
    @classmethod
    def provider_not_empty(cls, v: str) -> str:
        if not v.strip():
            msg = "provider must not be empty"
            raise ValueError(msg)
        return v.strip().lower()


class ScoringConfig(BaseModel):
    """Weights for match scoring."""

    skills_weight: float = Field(default=0.4, ge=0.0, le=1.0)
    experience_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    education_weight: float = Field(default=0.2, ge=0.0, le=1.0)
    location_weight: float = Field(default=0.1, ge=0.0, le=1.0)
    min_score: int = Field(default=60, ge=0, le=100)
    llm_enabled: bool = True
    rule_weight: float = Field(default=0.0, ge=0.0, le=1.0)
    llm_weight: float = Field(default=1.0, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def weights_sum_to_one(self) -> "ScoringConfig":
        total = (
            self.skills_weight
            + self.experience_weight
            + self.education_weight
            + self.location_weight
        )
        if abs(total - 1.0) > 1e-6:
            msg = f"sub-score weights must sum to 1.0, got {total:.3f}"
            raise ValueError(msg)
        if abs(self.rule_weight + self.llm_weight - 1.0) > 1e-6:
            msg = "rule_weight + llm_weight must sum to 1.0"
            raise ValueError(msg)
        return self


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    fetch: FetchConfig = Field(default_factory=FetchConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
