"""Hot/warm/cold memory tiering."""

from .similarity import cosine_similarity, keyword_relevance
from .tiers import MemoryTierManager
from .tokens import TiktokenCounter, estimate_tokens, get_token_counter

__all__ = [
    "MemoryTierManager",
    "cosine_similarity",
    "keyword_relevance",
    "TiktokenCounter",
    "estimate_tokens",
    "get_token_counter",
]
