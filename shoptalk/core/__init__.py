"""Core components for shoptalk."""

from .intent import (
    QueryParser,
    create_parser,
)

__all__ = ["QueryParser", "create_parser"]
