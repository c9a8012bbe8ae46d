"""Memory tier configuration with environment variable loading."""

import os
from typing import Literal
from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    """Read a boolean flag from the environment."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class MemoryConfig(BaseModel):
    """
    Configuration for hot/warm/cold memory tiering.

    Built once from defaults, environment variables and keyword overrides;
    frozen afterwards.
    """

    hot_token_limit: int = Field(
        default_factory=lambda: int(os.getenv("AGENTMEM_HOT_TOKEN_LIMIT", "4000")),
        gt=0,
        description="Maximum estimated tokens held in the hot tier",
    )
    warm_access_threshold: int = Field(
        default_factory=lambda: int(os.getenv("AGENTMEM_WARM_ACCESS_THRESHOLD", "3")),
        ge=0,
        description="Access count at which a spilled item lands in warm instead of cold",
    )
    promote_threshold: float = Field(
        default_factory=lambda: float(os.getenv("AGENTMEM_PROMOTE_THRESHOLD", "0.85")),
        ge=0,
        le=1,
        description="Recall relevance at which an item is promoted back to hot",
    )
    max_cold_items: int = Field(
        default_factory=lambda: int(os.getenv("AGENTMEM_MAX_COLD_ITEMS", "1000")),
        ge=0,
        description="Cold tier item cap enforced by prune_cold",
    )
    auto_spill_enabled: bool = Field(
        default_factory=lambda: _env_flag("AGENTMEM_AUTO_SPILL", True),
        description="Spill hot items automatically when the budget would overflow",
    )
    auto_promote_enabled: bool = Field(
        default_factory=lambda: _env_flag("AGENTMEM_AUTO_PROMOTE", True),
        description="Promote highly relevant recalled items by default",
    )
    token_estimator: Literal["chars", "tiktoken"] = Field(
        default_factory=lambda: os.getenv("AGENTMEM_TOKEN_ESTIMATOR", "chars"),
        description="Token counting strategy (chars = ceil(len/4))",
    )

    class Config:
        """Pydantic config."""

        frozen = True
