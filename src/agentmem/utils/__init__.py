"""Utility helpers."""

from .ids import generate_id
from .logging_utils import configure_logging

__all__ = ["generate_id", "configure_logging"]
