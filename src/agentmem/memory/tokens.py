"""Token estimation for the hot tier budget."""

import logging
import math
from typing import Callable, Optional

import tiktoken

logger = logging.getLogger(__name__)

TokenCounter = Callable[[str], int]


def estimate_tokens(text: str) -> int:
    """
    Rough token estimate: one token per four characters, rounded up.

    Args:
        text: Text to measure

    Returns:
        Estimated token count
    """
    return math.ceil(len(text) / 4)


class TiktokenCounter:
    """
    Exact token counter backed by tiktoken.

    GOTCHA: Encodings are downloaded on first use, so construction is lazy.
    """

    def __init__(self, encoding_name: str = "cl100k_base"):
        self.encoding_name = encoding_name
        self._encoding: Optional[tiktoken.Encoding] = None

    def __call__(self, text: str) -> int:
        if self._encoding is None:
            self._encoding = tiktoken.get_encoding(self.encoding_name)
        return len(self._encoding.encode(text))


def get_token_counter(name: str) -> TokenCounter:
    """
    Resolve a configured token estimator.

    Args:
        name: "chars" or "tiktoken"

    Returns:
        Token counting function

    Raises:
        ValueError: If the estimator name is unknown
    """
    if name == "chars":
        return estimate_tokens
    if name == "tiktoken":
        return TiktokenCounter()
    raise ValueError(f"Unknown token estimator '{name}'")
