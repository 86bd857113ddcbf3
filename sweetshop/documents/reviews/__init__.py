"""Reviews document package."""

from .Review import Review

__all__ = ["Review"]
