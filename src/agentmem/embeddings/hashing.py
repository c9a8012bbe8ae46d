"""Deterministic offline embedding provider."""

import hashlib
import math
import re
from typing import List

from .base import BaseEmbeddingProvider

_WORD = re.compile(r"\w+")


class HashingEmbeddingProvider(BaseEmbeddingProvider):
    """
    Bag-of-words feature hashing into a fixed number of dimensions.

    Needs no network or model download; texts sharing words get similar
    vectors, which is enough for local runs and tests.
    """

    def __init__(self, dimensions: int = 256):
        if dimensions <= 0:
            raise ValueError("dimensions must be positive")
        self.dimensions = dimensions

    async def embed(self, text: str) -> List[float]:
        vector = [0.0] * self.dimensions
        for token in _WORD.findall(text.lower()):
            digest = hashlib.sha256(token.encode("utf-8")).digest()
            bucket = int.from_bytes(digest[:4], "big") % self.dimensions
            sign = 1.0 if digest[4] % 2 == 0 else -1.0
            vector[bucket] += sign

        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0:
            return vector
        return [v / norm for v in vector]
