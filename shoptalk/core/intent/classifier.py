"""Weighted keyword intent classification for shoptalk.

Every intent category is scored against the utterance: each keyword found in
the lower-cased text adds the category weight. The summed score is divided by
the size of the keyword list and multiplied by the number of matches, then
clipped to 1.0. This is a ranking heuristic, not a calibrated probability.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from .registry import IntentRegistry, default_registry
from .taxonomy import ClassificationResult, Intent

logger = logging.getLogger(__name__)

# Alternatives at or below this confidence are not reported as extra intents
MULTI_INTENT_THRESHOLD = 0.3
MAX_ALTERNATIVES = 2
PREVIEW_LENGTH = 50


class IntentClassifier:
    """Rank intent categories by weighted keyword matches.

    Attributes:
        registry: Keyword registry scored against
        max_alternatives: How many runner-up intents to report
        multi_intent_threshold: Minimum confidence for detect_multiple_intents
    """

    def __init__(
        self,
        registry: IntentRegistry | None = None,
        max_alternatives: int = MAX_ALTERNATIVES,
        multi_intent_threshold: float = MULTI_INTENT_THRESHOLD,
        preview_length: int = PREVIEW_LENGTH,
    ) -> None:
        self.registry = registry if registry is not None else default_registry()
        self.max_alternatives = max_alternatives
        self.multi_intent_threshold = multi_intent_threshold
        self.preview_length = preview_length

    def classify(self, text: Any) -> ClassificationResult:
        """Classify an utterance.

        Args:
            text: User utterance. Anything that is not a non-blank string
                classifies as unknown.

        Returns:
            ClassificationResult with the best intent and up to
            max_alternatives runner-ups
        """
        if not isinstance(text, str) or not text.strip():
            logger.warning("Invalid text for intent classification")
            return ClassificationResult.unknown()

        text_lower = text.lower().strip()

        # (intent, raw confidence) for every category with at least one match
        ranked: list[tuple[str, float]] = []
        for intent, keywords, weight in self.registry.categories():
            if not keywords:
                continue

            score = 0.0
            match_count = 0
            for keyword in keywords:
                if keyword.lower() in text_lower:
                    score += weight
                    match_count += 1

            if match_count > 0:
                normalized = score / len(keywords)
                ranked.append((intent, normalized * match_count))

        if not ranked:
            logger.debug(f"No intent matched: '{text[: self.preview_length]}'")
            return ClassificationResult.unknown()

        # Rank on the raw value so ties at the 1.0 ceiling keep their order
        ranked.sort(key=lambda item: item[1], reverse=True)
        scored = [(intent, min(raw, 1.0)) for intent, raw in ranked]

        best_intent, best_confidence = scored[0]
        alternatives = scored[1 : 1 + self.max_alternatives]

        logger.debug(
            f"Classified '{text[: self.preview_length]}' as {best_intent} "
            f"({best_confidence:.2f}), {len(alternatives)} alternatives"
        )

        return ClassificationResult(
            intent=best_intent,
            confidence=best_confidence,
            alternatives=alternatives,
        )

    def detect_multiple_intents(self, text: Any) -> list[tuple[str, float]]:
        """Return the top intent and alternatives above the multi-intent threshold.

        Supports utterances that blend two requests, such as asking a price
        and booking in the same sentence.
        """
        result = self.classify(text)
        candidates = [(result.intent, result.confidence), *result.alternatives]
        return [
            (intent, confidence)
            for intent, confidence in candidates
            if confidence > self.multi_intent_threshold
        ]

    def add_intent_patterns(self, intent: str | Intent, keywords: Iterable[str]) -> int:
        """Append keywords to an intent category of this classifier's registry."""
        return self.registry.add_patterns(intent, keywords)
