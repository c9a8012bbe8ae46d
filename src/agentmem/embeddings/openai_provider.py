"""OpenAI embedding provider."""

import logging
from typing import List, Optional

from openai import AsyncOpenAI, APIError as OpenAIAPIError

from .base import BaseEmbeddingProvider

logger = logging.getLogger(__name__)


class OpenAIEmbeddingProvider(BaseEmbeddingProvider):
    """
    Embedding provider backed by the OpenAI embeddings API.

    PATTERN: Official OpenAI SDK with async client
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "text-embedding-3-small",
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize OpenAI embedding provider.

        Args:
            api_key: OpenAI API key (falls back to OPENAI_API_KEY)
            model: Embedding model name
            client: Pre-built client, mainly for tests
        """
        self.model = model
        self.client = client or AsyncOpenAI(api_key=api_key)

    async def embed(self, text: str) -> List[float]:
        """
        Embed a text with the configured model.

        Args:
            text: Text to embed

        Returns:
            Embedding vector

        Raises:
            openai.APIError: On API failures
        """
        try:
            response = await self.client.embeddings.create(
                model=self.model,
                input=text,
            )
        except OpenAIAPIError as e:
            logger.error(f"OpenAI embedding request failed: {e}")
            raise

        return list(response.data[0].embedding)
