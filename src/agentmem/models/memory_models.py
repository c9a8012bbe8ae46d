"""Memory data models for hot/warm/cold tiering."""

from pydantic import BaseModel, Field
from typing import Dict, Any, Optional, List
from datetime import datetime
from enum import Enum


class MemoryTier(str, Enum):
    """Memory tier enumeration."""

    HOT = "hot"
    WARM = "warm"
    COLD = "cold"


class MemoryItemType(str, Enum):
    """Kinds of facts an agent keeps in memory."""

    MESSAGE = "message"
    FACT = "fact"
    DECISION = "decision"
    ENTITY = "entity"
    CONTEXT = "context"


class MemoryItem(BaseModel):
    """A memory item owned by one session."""

    id: str = Field(description="Unique memory identifier")
    session_id: str = Field(description="Owning session")
    content: str = Field(description="Memory content/text")
    type: MemoryItemType = Field(description="Kind of memory")
    tier: MemoryTier = Field(default=MemoryTier.HOT, description="Current tier")
    access_count: int = Field(default=0, description="Number of times recalled")
    last_accessed_at: datetime = Field(default_factory=datetime.now)
    created_at: datetime = Field(default_factory=datetime.now)
    relevance_score: float = Field(
        default=1.0, ge=0, le=1, description="Blended usefulness score"
    )
    token_count: int = Field(default=0, description="Estimated token count")
    metadata: Dict[str, Any] = Field(
        default_factory=dict, description="Memory metadata"
    )
    embedding: Optional[List[float]] = Field(
        default=None, description="Vector embedding"
    )


class TierStats(BaseModel):
    """Item and token totals for one tier."""

    items: int = 0
    tokens: int = 0


class HotTierStats(TierStats):
    """Hot tier totals with budget utilisation."""

    limit: int
    utilization_percent: float = 0.0


class MemorySuggestion(BaseModel):
    """Advisory action for keeping tiers healthy."""

    type: str = Field(description="spill, recall or prune")
    reason: str
    item_ids: Optional[List[str]] = None


class MemoryStatus(BaseModel):
    """Per-tier status for a session (or a whole project)."""

    session_id: Optional[str] = None
    hot: HotTierStats
    warm: TierStats = Field(default_factory=TierStats)
    cold: TierStats = Field(default_factory=TierStats)
    suggestions: List[MemorySuggestion] = Field(default_factory=list)


class SpillResult(BaseModel):
    """Outcome of spilling items out of the hot tier."""

    spilled_count: int = 0
    spilled_ids: List[str] = Field(default_factory=list)
    tokens_freed: int = 0
    target_tier: MemoryTier = MemoryTier.WARM
    tier_assignments: Dict[str, MemoryTier] = Field(default_factory=dict)


class RecallResult(BaseModel):
    """Outcome of recalling items from warm/cold storage."""

    items: List[MemoryItem] = Field(default_factory=list)
    promoted: List[str] = Field(default_factory=list)
    relevance_scores: Dict[str, float] = Field(default_factory=dict)
