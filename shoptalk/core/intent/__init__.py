"""Query understanding for the shoptalk repair-shop assistant.

This module turns a free-text utterance into a structured query and decides
what the chat layer should do next.

The pipeline has five stages:
1. Intent classification - weighted keyword scoring
2. Entity extraction - ordered regex rules
3. Entity normalization - digits-only phones, upper-case plates, etc.
4. Period resolution - "today", "next week" to absolute windows
5. Response dispatch - clarify, ask for a slot, or dispatch an action

Example usage:
    ```python
    from shoptalk.core.intent import create_parser

    parser = create_parser()

    query = parser.parse_query("how much for an oil change?")
    assert query.intent == "price_inquiry"
    assert query.entities["service"] == "oil change"

    directive = parser.respond(query)
    assert directive.action == "fetch_price"
    ```
"""

from .classifier import (
    IntentClassifier,
)
from .dispatcher import (
    ResponseDispatcher,
)
from .entities import (
    ENTITY_RULES,
    EntityExtractor,
    EntityRule,
    extract_entities,
)
from .normalizer import (
    EntityNormalizer,
)
from .parser import (
    QueryParser,
    create_parser,
)
from .periods import (
    PeriodResolver,
)
from .registry import (
    DEFAULT_INTENT_KEYWORDS,
    IntentCategory,
    IntentRegistry,
    default_registry,
)
from .taxonomy import (
    ClassificationResult,
    DirectiveKind,
    DispatchAction,
    EntityType,
    Intent,
    ParsedQuery,
    Period,
    ResponseDirective,
    ValidationResult,
)

__all__ = [
    # Main parser
    "QueryParser",
    "create_parser",
    # Classification
    "IntentClassifier",
    "IntentRegistry",
    "IntentCategory",
    "default_registry",
    "DEFAULT_INTENT_KEYWORDS",
    # Entities
    "EntityExtractor",
    "EntityRule",
    "ENTITY_RULES",
    "EntityNormalizer",
    "extract_entities",
    # Periods
    "PeriodResolver",
    # Dispatch
    "ResponseDispatcher",
    # Taxonomy
    "Intent",
    "EntityType",
    "DirectiveKind",
    "DispatchAction",
    "ClassificationResult",
    "ParsedQuery",
    "Period",
    "ResponseDirective",
    "ValidationResult",
]
