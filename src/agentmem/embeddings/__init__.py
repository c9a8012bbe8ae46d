"""Embedding providers for semantic recall."""

from typing import Optional

from .base import BaseEmbeddingProvider, EmbeddingFunction, FunctionEmbeddingProvider
from .hashing import HashingEmbeddingProvider
from .openai_provider import OpenAIEmbeddingProvider
from ..config.store_config import StoreConfig

__all__ = [
    "BaseEmbeddingProvider",
    "EmbeddingFunction",
    "FunctionEmbeddingProvider",
    "HashingEmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "create_embedding_provider",
]


def create_embedding_provider(
    config: StoreConfig,
) -> Optional[BaseEmbeddingProvider]:
    """
    Factory function to create the configured embedding provider.

    Args:
        config: Store configuration

    Returns:
        OpenAI provider when an API key is configured, else None
        (recall falls back to keyword scoring)
    """
    if not config.openai_api_key:
        return None
    return OpenAIEmbeddingProvider(
        api_key=config.openai_api_key,
        model=config.embedding_model,
    )
