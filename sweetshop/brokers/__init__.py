"""Brokers package initialization."""

from .storefront import Storefront

__all__ = ["Storefront"]
