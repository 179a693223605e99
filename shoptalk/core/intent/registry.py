"""Keyword registry for intent classification.

Each intent category owns a keyword list and a weight. Registries are plain
objects handed to the classifier, so tests and tenants can hold their own
keyword sets side by side. Mutation is append-only and lock-guarded; readers
work on an immutable snapshot.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .taxonomy import Intent

if TYPE_CHECKING:
    from ...config import IntentKeywords

logger = logging.getLogger(__name__)

DEFAULT_WEIGHT = 1.0

# Built-in keyword tables: {intent: (weight, keywords)}
# Keywords are matched as lower-case substrings. Overlapping phrases
# ("how much", "how much for") are intentional: each one that is contained
# counts as a separate match and raises the confidence.
DEFAULT_INTENT_KEYWORDS: dict[str, tuple[float, list[str]]] = {
    Intent.PRICE_INQUIRY.value: (
        1.2,
        [
            "how much",
            "how much for",
            "how much is",
            "how much does",
            "price",
            "cost",
            "charge",
            "quote",
            "what's the price",
            "how much to",
        ],
    ),
    # A single booking verb must clear the clarify threshold
    Intent.SCHEDULING.value: (
        1.0,
        [
            "book",
            "schedule",
            "appointment",
        ],
    ),
    Intent.CUSTOMER_LOOKUP.value: (
        0.8,
        [
            "find customer",
            "customer",
            "client",
            "look up customer",
            "search customer",
            "customer details",
            "customer record",
            "find client",
        ],
    ),
    Intent.STOCK_INQUIRY.value: (
        0.9,
        [
            "in stock",
            "stock",
            "inventory",
            "available",
            "do you have",
            "have any",
            "check stock",
            "parts available",
        ],
    ),
    Intent.WORK_ORDER_STATUS.value: (
        0.9,
        [
            "work order",
            "order",
            "status",
            "progress",
            "is my car ready",
            "service order",
            "ordem de serviço",
            "repair status",
        ],
    ),
    Intent.GREETING.value: (
        0.7,
        [
            "hello",
            "hi there",
            "good morning",
            "good afternoon",
            "good evening",
            "good day",
            "morning",
            "greetings",
        ],
    ),
    Intent.HELP.value: (
        0.8,
        [
            "help",
            "what can you do",
            "how does this work",
            "commands",
            "how to use",
            "i need help",
            "can you help",
        ],
    ),
}


@dataclass
class IntentCategory:
    """Keyword list and weight for one intent."""

    keywords: list[str] = field(default_factory=list)
    weight: float = DEFAULT_WEIGHT


class IntentRegistry:
    """Append-only registry of intent keyword categories."""

    def __init__(self, categories: Mapping[str, IntentCategory] | None = None) -> None:
        self._lock = threading.Lock()
        self._categories: dict[str, IntentCategory] = {}
        for intent, category in (categories or {}).items():
            self._categories[intent] = IntentCategory(
                keywords=list(category.keywords), weight=category.weight
            )

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, "IntentKeywords"]) -> "IntentRegistry":
        """Build a registry from validated configuration entries."""
        registry = cls()
        for intent, entry in mapping.items():
            registry.add_patterns(intent, entry.keywords, weight=entry.weight)
        return registry

    def add_patterns(
        self,
        intent: str | Intent,
        keywords: Iterable[str],
        weight: float | None = None,
    ) -> int:
        """Append keywords to an intent, creating the category if needed.

        Args:
            intent: Intent name (existing or new)
            keywords: Keywords to append (a single string counts as one keyword)
            weight: Weight for a newly created category (ignored when the
                category already exists)

        Returns:
            Number of keywords appended
        """
        name = intent.value if isinstance(intent, Intent) else str(intent)
        # A bare string is one keyword, not a sequence of characters
        if isinstance(keywords, str):
            keywords = [keywords]
        added = [k for k in keywords if isinstance(k, str) and k.strip()]

        with self._lock:
            category = self._categories.get(name)
            if category is None:
                category = IntentCategory(
                    weight=weight if weight is not None else DEFAULT_WEIGHT
                )
                self._categories[name] = category
            category.keywords.extend(added)

        logger.info(f"Added {len(added)} keywords to intent '{name}'")
        return len(added)

    def categories(self) -> tuple[tuple[str, tuple[str, ...], float], ...]:
        """Snapshot of (intent, keywords, weight) in registration order."""
        with self._lock:
            return tuple(
                (name, tuple(category.keywords), category.weight)
                for name, category in self._categories.items()
            )

    def keywords_for(self, intent: str | Intent) -> tuple[str, ...]:
        name = intent.value if isinstance(intent, Intent) else intent
        with self._lock:
            category = self._categories.get(name)
            return tuple(category.keywords) if category else ()

    def __contains__(self, intent: object) -> bool:
        name = intent.value if isinstance(intent, Intent) else intent
        with self._lock:
            return name in self._categories

    def __len__(self) -> int:
        with self._lock:
            return len(self._categories)


def default_registry() -> IntentRegistry:
    """Build a fresh registry holding the built-in keyword tables."""
    return IntentRegistry(
        {
            intent: IntentCategory(keywords=list(keywords), weight=weight)
            for intent, (weight, keywords) in DEFAULT_INTENT_KEYWORDS.items()
        }
    )
