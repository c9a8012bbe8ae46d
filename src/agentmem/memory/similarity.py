"""Relevance scoring used by memory recall."""

import math
from typing import Sequence


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """
    Calculate cosine similarity between two vectors.

    Args:
        vec1: First vector
        vec2: Second vector

    Returns:
        Cosine similarity, or 0.0 for empty, mismatched or zero vectors
    """
    if not vec1 or not vec2 or len(vec1) != len(vec2):
        return 0.0

    dot_product = sum(a * b for a, b in zip(vec1, vec2))
    magnitude1 = math.sqrt(sum(a * a for a in vec1))
    magnitude2 = math.sqrt(sum(b * b for b in vec2))

    if magnitude1 == 0 or magnitude2 == 0:
        return 0.0

    return dot_product / (magnitude1 * magnitude2)


def keyword_relevance(query: str, content: str) -> float:
    """
    Keyword overlap score used when embeddings are unavailable.

    Counts query terms longer than two characters that occur as a
    case-insensitive substring of the content, divided by the total
    number of query terms.

    Args:
        query: Recall query
        content: Memory content

    Returns:
        Relevance score (0-1)
    """
    query_words = query.lower().split()
    if not query_words:
        return 0.0

    content_lower = content.lower()
    match_count = sum(
        1 for word in query_words if len(word) > 2 and word in content_lower
    )
    return match_count / len(query_words)
