"""Slot-filling response decisions for shoptalk.

Turns a ParsedQuery into a ResponseDirective: ask the user to rephrase,
ask for a missing slot, or dispatch a backend action with its entities.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from .taxonomy import (
    DirectiveKind,
    DispatchAction,
    EntityType,
    EntityValue,
    Intent,
    ParsedQuery,
    ResponseDirective,
)

logger = logging.getLogger(__name__)

CLARIFY_THRESHOLD = 0.3

GENERIC_SUGGESTIONS = [
    "Check appointments",
    "Find a customer",
    "Check stock",
    "Work order status",
]

SERVICE_SUGGESTIONS = [
    "Oil change",
    "Inspection",
    "Wheel alignment and balancing",
    "Brake pads replacement",
]

HELP_SUGGESTIONS = [
    "How much is an oil change?",
    "Book an inspection tomorrow at 9am",
    "Find customer John Smith",
    "Do you have an oil filter in stock?",
]

UNKNOWN_SUGGESTIONS = [
    "Check prices",
    "Book a service",
    "Find a customer",
    "Check stock",
]

HELP_MESSAGE = (
    "I can help you with:\n"
    "• Service prices\n"
    "• Booking services\n"
    "• Finding customers\n"
    "• Checking stock\n"
    "• Work order status"
)

# Scheduling asks for a date when neither a relative date nor a period was found
DATE_SLOT = "date"

_SLOT_LABELS = {
    EntityType.SERVICE.value: "service",
    DATE_SLOT: "date",
    EntityType.TIME_OF_DAY.value: "time",
}


def _display(value: EntityValue) -> str:
    return ", ".join(value) if isinstance(value, (list, tuple)) else value


class ResponseDispatcher:
    """Decision table from parsed query to response directive.

    Attributes:
        clarify_threshold: Confidence below which the intent is ignored
    """

    def __init__(self, clarify_threshold: float = CLARIFY_THRESHOLD) -> None:
        self.clarify_threshold = clarify_threshold

    def respond(self, query: ParsedQuery) -> ResponseDirective:
        """Decide what the chat layer should do next.

        Args:
            query: Parsed utterance

        Returns:
            ResponseDirective carrying the query's entities
        """
        if query.confidence < self.clarify_threshold:
            directive = ResponseDirective(
                kind=DirectiveKind.CLARIFY.value,
                message="Sorry, I didn't quite get that. Could you rephrase?",
                suggestions=list(GENERIC_SUGGESTIONS),
                entities=query.entity_map(),
            )
        else:
            handler = self._handlers().get(query.intent, self._unknown)
            directive = handler(query)

        logger.debug(
            f"Directive for {query.intent} ({query.confidence:.2f}): "
            f"{directive.kind} action={directive.action} missing={directive.missing_slots}"
        )
        return directive

    def _handlers(self) -> dict[str, Callable[[ParsedQuery], ResponseDirective]]:
        return {
            Intent.PRICE_INQUIRY.value: self._price_inquiry,
            Intent.SCHEDULING.value: self._scheduling,
            Intent.CUSTOMER_LOOKUP.value: self._customer_lookup,
            Intent.STOCK_INQUIRY.value: self._stock_inquiry,
            Intent.WORK_ORDER_STATUS.value: self._work_order_status,
            Intent.GREETING.value: self._greeting,
            Intent.HELP.value: self._help,
        }

    @staticmethod
    def _dispatch(query: ParsedQuery, action: DispatchAction, message: str) -> ResponseDirective:
        return ResponseDirective(
            kind=DirectiveKind.DISPATCH.value,
            message=message,
            action=action.value,
            entities=query.entity_map(),
        )

    @staticmethod
    def _ask(
        query: ParsedQuery,
        message: str,
        missing: list[str],
        suggestions: list[str] | None = None,
    ) -> ResponseDirective:
        return ResponseDirective(
            kind=DirectiveKind.ASK_SLOT.value,
            message=message,
            suggestions=list(suggestions or []),
            missing_slots=missing,
            entities=query.entity_map(),
        )

    def _price_inquiry(self, query: ParsedQuery) -> ResponseDirective:
        service = query.entities.get(EntityType.SERVICE.value)
        if service:
            return self._dispatch(
                query,
                DispatchAction.FETCH_PRICE,
                f"You want to know the price of: {_display(service)}",
            )
        return self._ask(
            query,
            "Which service would you like a price for?",
            [EntityType.SERVICE.value],
            SERVICE_SUGGESTIONS,
        )

    def _scheduling(self, query: ParsedQuery) -> ResponseDirective:
        missing = []
        if not query.has(EntityType.SERVICE):
            missing.append(EntityType.SERVICE.value)
        if not query.has(EntityType.RELATIVE_DATE) and query.period is None:
            missing.append(DATE_SLOT)
        if not query.has(EntityType.TIME_OF_DAY):
            missing.append(EntityType.TIME_OF_DAY.value)

        if missing:
            labels = ", ".join(_SLOT_LABELS[slot] for slot in missing)
            return self._ask(query, f"To book, I still need: {labels}", missing)

        return self._dispatch(
            query, DispatchAction.CREATE_BOOKING, "I'll set up your booking"
        )

    def _customer_lookup(self, query: ParsedQuery) -> ResponseDirective:
        if any(
            query.has(slot)
            for slot in (EntityType.PERSON_NAME, EntityType.TAX_ID, EntityType.PHONE)
        ):
            return self._dispatch(
                query, DispatchAction.FIND_CUSTOMER, "Looking up the customer..."
            )
        return self._ask(
            query,
            "Which customer are you looking for? Give me a name, tax ID or phone.",
            [EntityType.PERSON_NAME.value],
        )

    def _stock_inquiry(self, query: ParsedQuery) -> ResponseDirective:
        service = query.entities.get(EntityType.SERVICE.value)
        if service:
            return self._dispatch(
                query,
                DispatchAction.CHECK_STOCK,
                f"Checking stock for: {_display(service)}",
            )
        return self._ask(
            query,
            "Which part or product do you want to check in stock?",
            [EntityType.SERVICE.value],
        )

    def _work_order_status(self, query: ParsedQuery) -> ResponseDirective:
        case_number = query.entities.get(EntityType.CASE_NUMBER.value)
        if case_number:
            return self._dispatch(
                query,
                DispatchAction.FIND_WORK_ORDER,
                f"Looking up work order #{_display(case_number)}",
            )
        return self._ask(
            query,
            "What is the work order number?",
            [EntityType.CASE_NUMBER.value],
        )

    def _greeting(self, query: ParsedQuery) -> ResponseDirective:
        return ResponseDirective(
            kind=DirectiveKind.GREETING.value,
            message="Hello! How can I help you today?",
            suggestions=list(GENERIC_SUGGESTIONS),
            entities=query.entity_map(),
        )

    def _help(self, query: ParsedQuery) -> ResponseDirective:
        return ResponseDirective(
            kind=DirectiveKind.HELP.value,
            message=HELP_MESSAGE,
            suggestions=list(HELP_SUGGESTIONS),
            entities=query.entity_map(),
        )

    def _unknown(self, query: ParsedQuery) -> ResponseDirective:
        return ResponseDirective(
            kind=DirectiveKind.UNKNOWN.value,
            message="I didn't understand. How can I help?",
            suggestions=list(UNKNOWN_SUGGESTIONS),
            entities=query.entity_map(),
        )
