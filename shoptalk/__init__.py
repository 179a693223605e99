"""shoptalk - query understanding for a repair-shop assistant."""

__version__ = "0.1.0"
