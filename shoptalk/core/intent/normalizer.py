"""Canonical forms and sanity checks for extracted entities."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from .taxonomy import EntityMap, EntityType, EntityValue, ValidationResult

logger = logging.getLogger(__name__)

_NON_DIGIT = re.compile(r"\D")
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")
_PLATE_SEPARATORS = re.compile(r"[\s\-.]")


def digits_only(value: str) -> str:
    return _NON_DIGIT.sub("", value)


def _plate(value: str) -> str:
    return _PLATE_SEPARATORS.sub("", value.upper())


def _model(value: str) -> str:
    return value[:1].upper() + value[1:].lower()


_NORMALIZERS: dict[str, Callable[[str], str]] = {
    EntityType.PHONE.value: digits_only,
    EntityType.TAX_ID.value: digits_only,
    EntityType.PLATE.value: _plate,
    EntityType.SERVICE.value: str.lower,
    EntityType.VEHICLE_MODEL.value: _model,
}


def _values(value: EntityValue) -> list[str]:
    return list(value) if isinstance(value, (list, tuple)) else [value]


class EntityNormalizer:
    """Normalize and validate entity maps produced by the extractor."""

    def normalize(self, entities: EntityMap) -> EntityMap:
        """Return a normalized copy of an entity map.

        Phones and tax ids keep digits only, plates are upper-cased without
        separators, services are lower-cased and vehicle models capitalized.
        Other types pass through. The input map is not modified.
        """
        normalized: EntityMap = {}
        for entity_type, value in entities.items():
            convert = _NORMALIZERS.get(entity_type)
            multi = isinstance(value, (list, tuple))
            if convert is None:
                normalized[entity_type] = list(value) if multi else value
            elif multi:
                normalized[entity_type] = [convert(v) for v in value]
            else:
                normalized[entity_type] = convert(value)
        return normalized

    def validate(self, entities: EntityMap) -> ValidationResult:
        """Check entity formats, collecting every violation.

        Args:
            entities: Raw or normalized entity map

        Returns:
            ValidationResult listing one message per invalid value
        """
        errors: list[str] = []

        for value in _values(entities.get(EntityType.TAX_ID.value) or []):
            if len(digits_only(value)) != 11:
                errors.append(f"Tax ID must have 11 digits: '{value}'")

        for value in _values(entities.get(EntityType.PHONE.value) or []):
            if not 10 <= len(digits_only(value)) <= 11:
                errors.append(f"Phone must have 10 or 11 digits: '{value}'")

        for value in _values(entities.get(EntityType.PLATE.value) or []):
            if len(_NON_ALNUM.sub("", value)) != 7:
                errors.append(f"Plate must have 7 characters: '{value}'")

        if errors:
            logger.debug(f"Entity validation found {len(errors)} errors")

        return ValidationResult(valid=not errors, errors=errors)
