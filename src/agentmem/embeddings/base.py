"""Abstract base class for embedding providers."""

import inspect
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Union

EmbeddingFunction = Callable[[str], Union[List[float], Awaitable[List[float]]]]


class BaseEmbeddingProvider(ABC):
    """Converts text into a fixed-length vector for semantic comparison."""

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """
        Embed a text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector
        """
        pass


class FunctionEmbeddingProvider(BaseEmbeddingProvider):
    """Adapts a plain (sync or async) embedding function to the provider interface."""

    def __init__(self, embedding_function: EmbeddingFunction):
        self.embedding_function = embedding_function

    async def embed(self, text: str) -> List[float]:
        result = self.embedding_function(text)
        if inspect.isawaitable(result):
            result = await result
        return [float(x) for x in result]
