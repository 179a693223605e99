"""Query parsing orchestrator for shoptalk.

This module runs the full understanding pipeline for one utterance:

1. Intent classification (weighted keywords)
2. Entity extraction (ordered regex rules)
3. Entity normalization
4. Relative period resolution

and hands the resulting ParsedQuery to the response dispatcher. Every stage
is synchronous and side-effect free; invalid input degrades to the unknown
intent instead of raising.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from .classifier import IntentClassifier
from .dispatcher import ResponseDispatcher
from .entities import EntityExtractor
from .normalizer import EntityNormalizer
from .periods import PeriodResolver
from .registry import IntentRegistry
from .taxonomy import ParsedQuery, ResponseDirective

if TYPE_CHECKING:
    from ...config import NluConfig

logger = logging.getLogger(__name__)


class QueryParser:
    """Main query understanding orchestrator.

    Attributes:
        config: Thresholds and limits
        classifier: Weighted keyword intent classifier
        extractor: Regex entity extractor
        normalizer: Entity normalizer and validator
        resolver: Relative period resolver
        dispatcher: Slot-filling response dispatcher
    """

    def __init__(
        self,
        config: "NluConfig | None" = None,
        registry: IntentRegistry | None = None,
    ) -> None:
        """Initialize the query parser.

        Args:
            config: Pipeline configuration (defaults to NluConfig from env)
            registry: Keyword registry (defaults to the configured registry)
        """
        if config is None:
            from ...config import NluConfig

            config = NluConfig()

        self.config = config
        self.classifier = IntentClassifier(
            registry=registry if registry is not None else config.build_registry(),
            max_alternatives=config.max_alternatives,
            multi_intent_threshold=config.multi_intent_threshold,
            preview_length=config.preview_length,
        )
        self.extractor = EntityExtractor()
        self.normalizer = EntityNormalizer()
        self.resolver = PeriodResolver()
        self.dispatcher = ResponseDispatcher(clarify_threshold=config.clarify_threshold)

    def parse_query(self, text: Any, now: datetime | None = None) -> ParsedQuery:
        """Parse one utterance into a ParsedQuery.

        Args:
            text: User utterance
            now: Reference time for period resolution (defaults to now)

        Returns:
            ParsedQuery with intent, entities and period
        """
        if not isinstance(text, str) or not text.strip():
            logger.warning("Invalid text for query parsing")
            return ParsedQuery.unknown(text)

        working = text
        # Security: truncate excessively long input
        if len(working) > self.config.max_input_length:
            logger.warning(
                f"Input truncated from {len(working)} to {self.config.max_input_length} chars"
            )
            working = working[: self.config.max_input_length]

        classification = self.classifier.classify(working)
        entities = self.normalizer.normalize(self.extractor.extract(working))
        period = self.resolver.resolve_period(working, now=now)

        query = ParsedQuery(
            intent=classification.intent,
            confidence=classification.confidence,
            alternatives=list(classification.alternatives),
            entities=entities,
            period=period,
            original_text=text,
        )

        counts = {
            entity_type: len(value) if isinstance(value, list) else 1
            for entity_type, value in entities.items()
        }
        logger.info(
            f"Parsed '{text[: self.config.preview_length]}': intent={query.intent} "
            f"confidence={query.confidence:.2f} entities={counts} "
            f"period={'yes' if period else 'no'}"
        )
        return query

    def respond(self, query: ParsedQuery) -> ResponseDirective:
        """Decide the next step for a parsed query."""
        return self.dispatcher.respond(query)

    def handle(self, text: Any, now: datetime | None = None) -> ResponseDirective:
        """Parse an utterance and return the directive for the chat layer."""
        return self.respond(self.parse_query(text, now=now))

    def enrich_message(self, text: Any, now: datetime | None = None) -> dict[str, Any]:
        """Attach understanding context to an outbound chat message.

        Args:
            text: User utterance
            now: Reference time for period resolution

        Returns:
            Payload with the original text, the NLP result and the directive
            context (kind, action, missing slots)

        Note:
            Payload keys are English snake_case. Chat layers written against
            the older camelCase payload must read ``original_text`` instead of
            ``originalText``, ``context`` instead of ``contexto`` and
            ``missing_slots`` instead of ``missingSlots``.
        """
        query = self.parse_query(text, now=now)
        directive = self.respond(query)

        return {
            "original_text": text,
            "nlp": {
                "intent": query.intent,
                "confidence": query.confidence,
                "entities": query.entity_map(),
                "period": query.period.to_dict() if query.period else None,
            },
            "context": {
                "kind": directive.kind,
                "action": directive.action,
                "missing_slots": list(directive.missing_slots),
            },
        }


def create_parser(
    config: "NluConfig | None" = None,
    registry: IntentRegistry | None = None,
) -> QueryParser:
    """Factory function to create a QueryParser.

    Args:
        config: Optional pipeline configuration
        registry: Optional keyword registry (isolated per caller)

    Returns:
        Configured QueryParser instance
    """
    return QueryParser(config=config, registry=registry)
