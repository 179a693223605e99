"""Entity extraction for shoptalk intent parsing.

Entities are pulled from the raw utterance by one declarative table of
regex rules. Rules run in table order; each contributes at most one value
(its first match), and values are deduplicated per entity type.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from .taxonomy import EntityMap, EntityType

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 50

# Upper/lower case letters including accented Latin letters
_UPPER = "A-ZÀ-ÖØ-Þ"
_LOWER = "a-zß-öø-ÿ"

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

VEHICLE_MODELS = (
    "gol",
    "palio",
    "uno",
    "corsa",
    "celta",
    "fox",
    "ka",
    "fiesta",
    "civic",
    "corolla",
    "onix",
    "hb20",
    "kwid",
    "mobi",
    "sandero",
    "logan",
    "duster",
    "kicks",
    "compass",
    "renegade",
    "toro",
    "hilux",
    "ranger",
    "s10",
    "amarok",
    "golf",
    "jetta",
    "camry",
    "accord",
)


@dataclass(frozen=True)
class EntityRule:
    """One extraction rule.

    Attributes:
        entity_type: Entity type the rule produces
        pattern: Compiled regex
        group: Capture group holding the value (0 = whole match)
    """

    entity_type: str
    pattern: re.Pattern[str]
    group: int = 0

    def apply(self, text: str) -> str | None:
        """Return the trimmed value of the first match, or None."""
        match = self.pattern.search(text)
        if not match:
            return None
        value = match.group(self.group) if self.group else None
        # Fall back to the whole match when the group did not participate
        if value is None:
            value = match.group(0)
        value = value.strip()
        return value or None


def _rule(
    entity_type: EntityType, pattern: str, group: int = 0, flags: int = re.IGNORECASE
) -> EntityRule:
    return EntityRule(entity_type.value, re.compile(pattern, flags), group)


# Ordered rule table. Order within a type decides value order.
ENTITY_RULES: tuple[EntityRule, ...] = (
    # Service: common repair and maintenance procedures
    _rule(
        EntityType.SERVICE,
        r"\b(?:oil|filter|brake pads?|timing belt|spark plugs?|battery|tires?|clutch)"
        r" (?:change|replacement)\b",
    ),
    _rule(EntityType.SERVICE, r"\b(?:full |preventive )?(?:inspection|tune[- ]?up)\b"),
    _rule(EntityType.SERVICE, r"\b(?:wheel )?alignment(?: and balancing)?\b"),
    _rule(EntityType.SERVICE, r"\b(?:wheel )?balancing(?: and alignment)?\b"),
    _rule(EntityType.SERVICE, r"\bbrake (?:service|repair|job|inspection)\b"),
    _rule(EntityType.SERVICE, r"\bsuspension (?:service|repair|check)\b"),
    _rule(EntityType.SERVICE, r"\bclutch (?:service|repair)\b"),
    _rule(EntityType.SERVICE, r"\b(?:oil|air|fuel|cabin) filter\b"),
    _rule(EntityType.SERVICE, r"\bdiagnostics?\b"),
    _rule(EntityType.SERVICE, r"\bengine scan\b"),
    _rule(EntityType.SERVICE, r"\b(?:air conditioning(?: service)?|a/c service)\b"),
    _rule(EntityType.SERVICE, r"\b(?:polishing|detailing)\b"),
    # Plate: legacy AAA-9999 and Mercosul AAA9A99
    _rule(EntityType.PLATE, r"\b[A-Z]{3}-?\d{4}\b"),
    _rule(EntityType.PLATE, r"\b[A-Z]{3}-?\d[A-Z]\d{2}\b"),
    # Tax ID: 999.999.999-99 with optional punctuation
    _rule(EntityType.TAX_ID, r"\b\d{3}\.?\d{3}\.?\d{3}-?\d{2}\b"),
    # Phone: (DD) 99999-9999, DD 9999-9999, or a bare 10-11 digit run
    _rule(EntityType.PHONE, r"(?<!\d)\(?\d{2}\)?\s?9?\d{4}-?\d{4}(?!\d)"),
    _rule(EntityType.PHONE, r"\b\d{10,11}\b"),
    # Case number: digits after a work order marker
    _rule(EntityType.CASE_NUMBER, r"\bOS\s*#?\s*(\d+)\b", group=1),
    _rule(EntityType.CASE_NUMBER, r"\bordem\s+(?:de\s+)?servi[çc]o\s+#?\s*(\d+)\b", group=1),
    _rule(EntityType.CASE_NUMBER, r"\border\s+(?:#|no\.?\s*|number\s+)?\s*(\d+)\b", group=1),
    _rule(EntityType.CASE_NUMBER, r"\bn[úu]mero\s+#?\s*(\d+)\b", group=1),
    _rule(EntityType.CASE_NUMBER, r"\bnumber\s+#?\s*(\d+)\b", group=1),
    # Relative date
    _rule(EntityType.RELATIVE_DATE, r"\b(today|tomorrow)\b", group=1),
    _rule(
        EntityType.RELATIVE_DATE,
        rf"\b((?:next\s+)?(?:{'|'.join(WEEKDAYS)}))\b",
        group=1,
    ),
    # Time of day
    _rule(EntityType.TIME_OF_DAY, r"\b(\d{1,2}(?::\d{2})?\s*(?:am|pm))\b", group=1),
    _rule(EntityType.TIME_OF_DAY, r"\b(\d{1,2}:\d{2})(?!\d)(?!\s*(?:am|pm)\b)", group=1),
    _rule(EntityType.TIME_OF_DAY, r"(?<!:)\b\d{1,2}\s*(?:h|hs|hrs|o'clock)\b"),
    _rule(
        EntityType.TIME_OF_DAY,
        r"\b\d{1,2}\s+(?:in\s+the\s+(?:morning|afternoon|evening)|at\s+night)\b",
    ),
    # Person name: two or more capitalized words (case-sensitive)
    _rule(
        EntityType.PERSON_NAME,
        rf"\b([{_UPPER}][{_LOWER}]+(?:\s+[{_UPPER}][{_LOWER}]+)+)\b",
        group=1,
        flags=0,
    ),
    # Vehicle model
    _rule(EntityType.VEHICLE_MODEL, rf"\b({'|'.join(VEHICLE_MODELS)})\b", group=1),
)


class EntityExtractor:
    """Extract typed entities from natural language text."""

    def __init__(self, rules: tuple[EntityRule, ...] = ENTITY_RULES) -> None:
        """Initialize the extractor.

        Args:
            rules: Ordered rule table (defaults to the built-in rules)
        """
        self.rules = rules

    def rules_for(self, entity_type: str | EntityType) -> list[EntityRule]:
        """Rules producing a given entity type, in evaluation order."""
        key = entity_type.value if isinstance(entity_type, EntityType) else entity_type
        return [rule for rule in self.rules if rule.entity_type == key]

    def extract(self, text: Any) -> EntityMap:
        """Extract all entities from an utterance.

        Args:
            text: User input text

        Returns:
            Mapping of entity type to a single value, or a list when a type
            matched several distinct values. Types without matches are absent.
        """
        if not isinstance(text, str) or not text.strip():
            logger.warning("Invalid text for entity extraction")
            return {}

        found: dict[str, list[str]] = {}
        for rule in self.rules:
            value = rule.apply(text)
            if value is None:
                continue
            values = found.setdefault(rule.entity_type, [])
            if value not in values:
                values.append(value)

        entities: EntityMap = {
            entity_type: values[0] if len(values) == 1 else values
            for entity_type, values in found.items()
        }

        logger.debug(
            f"Extracted {len(entities)} entity types from '{text[:PREVIEW_LENGTH]}': "
            f"{sorted(entities)}"
        )
        return entities


# Module-level instance for convenience
_extractor = EntityExtractor()


def extract_entities(text: Any) -> EntityMap:
    """Extract entities from text using the default extractor.

    Args:
        text: User input text

    Returns:
        Mapping of entity type to value(s)
    """
    return _extractor.extract(text)
