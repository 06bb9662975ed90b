"""
Runtime configuration.

Settings are read from the environment (and a local .env file via python-dotenv).
The matching thresholds were tuned by hand, so they are exposed here rather than
hard-coded in the scorers.
"""

import os
from dataclasses import dataclass
from typing import Callable, Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class MatchingSettings:
    default_limit: int = 3
    minimum_score: int = 45
    industry_relevance_threshold: float = 0.4
    default_relevance: float = 0.3
    historical_trl_margin: int = 3
    partner_limit: int = 10
    log_level: str = "INFO"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"


def _read(name: str, default, cast: Callable):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from None


def get_settings() -> MatchingSettings:
    """Build settings from the current environment."""
    settings = MatchingSettings(
        default_limit=_read("GRANTMATCH_DEFAULT_LIMIT", 3, int),
        minimum_score=_read("GRANTMATCH_MINIMUM_SCORE", 45, int),
        industry_relevance_threshold=_read("GRANTMATCH_INDUSTRY_RELEVANCE_THRESHOLD", 0.4, float),
        default_relevance=_read("GRANTMATCH_DEFAULT_RELEVANCE", 0.3, float),
        historical_trl_margin=_read("GRANTMATCH_HISTORICAL_TRL_MARGIN", 3, int),
        partner_limit=_read("GRANTMATCH_PARTNER_LIMIT", 10, int),
        log_level=os.getenv("GRANTMATCH_LOG_LEVEL", "INFO"),
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
    )
    for name, value in (("GRANTMATCH_INDUSTRY_RELEVANCE_THRESHOLD", settings.industry_relevance_threshold),
                        ("GRANTMATCH_DEFAULT_RELEVANCE", settings.default_relevance)):
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"Invalid value for {name}: {value} (expected 0.0-1.0)")
    return settings
