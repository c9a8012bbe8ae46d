"""Identifier helpers."""

import uuid
from typing import Optional


def generate_id(prefix: Optional[str] = None) -> str:
    """
    Generate a unique identifier.

    Format: {prefix}_{uuid4} when a prefix is given, else a bare uuid4.

    Args:
        prefix: Optional type prefix (e.g. "ckpt", "mem")

    Returns:
        Identifier string
    """
    value = str(uuid.uuid4())
    return f"{prefix}_{value}" if prefix else value
