"""Compact result models returned by the agent service facade."""

from pydantic import BaseModel, Field
from typing import List

from .memory_models import MemoryItemType


class MemorySpillSummary(BaseModel):
    """Outcome of a facade spill."""

    spilled_count: int = 0
    tokens_freed: int = 0


class RecalledMemory(BaseModel):
    """A recalled item without tracking fields."""

    id: str
    content: str
    type: MemoryItemType
    relevance: float


class MemoryRecallSummary(BaseModel):
    """Recalled items and their combined token count."""

    items: List[RecalledMemory] = Field(default_factory=list)
    tokens_recalled: int = 0


class MemoryStatusSummary(BaseModel):
    """Hot versus spilled (warm + cold) totals."""

    hot_count: int = 0
    cold_count: int = 0
    hot_tokens: int = 0
    cold_tokens: int = 0
