"""Intent taxonomy and result types for shoptalk.

This module defines the closed vocabularies (intents, entity types, response
kinds, dispatch actions) and the value objects passed between the stages of
the query understanding pipeline.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Union

# A single entity type yields either one value or several
EntityValue = Union[str, list[str]]
EntityMap = dict[str, EntityValue]


class Intent(str, Enum):
    """What the caller wants the shop assistant to do."""

    PRICE_INQUIRY = "price_inquiry"  # How much does a service cost
    SCHEDULING = "scheduling"  # Book a service
    CUSTOMER_LOOKUP = "customer_lookup"  # Find a customer record
    STOCK_INQUIRY = "stock_inquiry"  # Check parts in stock
    WORK_ORDER_STATUS = "work_order_status"  # Progress of a work order
    GREETING = "greeting"
    HELP = "help"
    UNKNOWN = "unknown"


class EntityType(str, Enum):
    """Entity types extracted from an utterance."""

    SERVICE = "service"
    PLATE = "plate"
    TAX_ID = "tax_id"
    PHONE = "phone"
    CASE_NUMBER = "case_number"
    RELATIVE_DATE = "relative_date"
    TIME_OF_DAY = "time_of_day"
    PERSON_NAME = "person_name"
    VEHICLE_MODEL = "vehicle_model"


class DirectiveKind(str, Enum):
    """What the chat layer should do with a parsed query."""

    CLARIFY = "clarify"
    ASK_SLOT = "ask_slot"
    DISPATCH = "dispatch"
    GREETING = "greeting"
    HELP = "help"
    UNKNOWN = "unknown"


class DispatchAction(str, Enum):
    """Backend operations the chat layer executes on dispatch."""

    FETCH_PRICE = "fetch_price"
    CREATE_BOOKING = "create_booking"
    FIND_CUSTOMER = "find_customer"
    CHECK_STOCK = "check_stock"
    FIND_WORK_ORDER = "find_work_order"


@dataclass(frozen=True)
class ClassificationResult:
    """Result of intent classification.

    Attributes:
        intent: Best matching intent name
        confidence: Heuristic confidence 0.0-1.0
        alternatives: Runner-up (intent, confidence) pairs, best first
    """

    intent: str
    confidence: float
    alternatives: list[tuple[str, float]] = field(default_factory=list)

    @classmethod
    def unknown(cls) -> "ClassificationResult":
        """Result for input that matched nothing or was not text."""
        return cls(intent=Intent.UNKNOWN.value, confidence=0.0, alternatives=[])


@dataclass(frozen=True)
class Period:
    """Absolute time window resolved from a relative date phrase."""

    start: datetime
    end: datetime

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of entity validation. Errors are human-readable sentences."""

    valid: bool
    errors: list[str] = field(default_factory=list)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ParsedQuery:
    """Everything understood from a single utterance.

    Attributes:
        intent: Classified intent name
        confidence: Classification confidence 0.0-1.0
        alternatives: Runner-up (intent, confidence) pairs
        entities: Normalized entities keyed by entity type (read-only)
        period: Resolved time window, only when a relative date matched
        original_text: The text exactly as received
        created_at: When the query was parsed (UTC)
    """

    intent: str
    confidence: float
    alternatives: tuple[tuple[str, float], ...] = ()
    entities: Mapping[str, Any] = field(default_factory=dict)
    period: Period | None = None
    original_text: Any = None
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        # Read-only view; multi-values become tuples
        frozen = {
            entity_type: tuple(value) if isinstance(value, list) else value
            for entity_type, value in self.entities.items()
        }
        object.__setattr__(self, "entities", MappingProxyType(frozen))
        object.__setattr__(self, "alternatives", tuple(self.alternatives))

    @classmethod
    def unknown(cls, text: Any) -> "ParsedQuery":
        """Query for input that could not be parsed."""
        return cls(intent=Intent.UNKNOWN.value, confidence=0.0, original_text=text)

    def has(self, entity_type: str | EntityType) -> bool:
        """Check if an entity type was extracted."""
        key = entity_type.value if isinstance(entity_type, EntityType) else entity_type
        return bool(self.entities.get(key))

    def entity_map(self) -> EntityMap:
        """Mutable copy of the entities, multi-values as lists."""
        return {
            entity_type: list(value) if isinstance(value, tuple) else value
            for entity_type, value in self.entities.items()
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary."""
        return {
            "intent": self.intent,
            "confidence": self.confidence,
            "alternatives": [
                {"intent": intent, "confidence": confidence}
                for intent, confidence in self.alternatives
            ],
            "entities": self.entity_map(),
            "period": self.period.to_dict() if self.period else None,
            "original_text": self.original_text,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class ResponseDirective:
    """Next step for the chat layer.

    Attributes:
        kind: clarify, ask_slot, dispatch, greeting, help or unknown
        message: Text to show or speak to the user
        suggestions: Quick replies to offer
        missing_slots: Slots still needed before an action can run
        action: Backend operation to run (dispatch only)
        entities: Entities the action needs
    """

    kind: str
    message: str
    suggestions: list[str] = field(default_factory=list)
    missing_slots: list[str] = field(default_factory=list)
    action: str | None = None
    entities: EntityMap = field(default_factory=dict)

    @property
    def is_dispatch(self) -> bool:
        return self.kind == DirectiveKind.DISPATCH.value

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary."""
        return {
            "kind": self.kind,
            "message": self.message,
            "suggestions": list(self.suggestions),
            "missing_slots": list(self.missing_slots),
            "action": self.action,
            "entities": dict(self.entities),
        }
