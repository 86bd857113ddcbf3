"""Client logic of the Sweet Shop dessert storefront."""

__version__ = "0.1.0"
