"""Comprehensive tests for shoptalk intent classification and entities.

Tests cover:
- Keyword registry (isolation, append-only growth, snapshots)
- Intent classification (scoring, ranking, alternatives, bad input)
- Entity extraction (every entity type, deduplication, rule table)
- Entity normalization and validation
"""

from __future__ import annotations

import threading

import pytest

from shoptalk.core.intent import (
    DEFAULT_INTENT_KEYWORDS,
    EntityExtractor,
    EntityNormalizer,
    EntityType,
    Intent,
    IntentClassifier,
    IntentRegistry,
    default_registry,
    extract_entities,
)
from shoptalk.config import IntentKeywords

# ============================================================================
# Keyword Registry Tests
# ============================================================================


class TestIntentRegistry:
    """Tests for the keyword registry."""

    def test_default_registry_has_all_intents(self) -> None:
        """Every intent except unknown has a keyword category."""
        registry = default_registry()
        for intent in Intent:
            if intent is Intent.UNKNOWN:
                assert intent not in registry
            else:
                assert intent in registry

    def test_default_registries_are_independent(self) -> None:
        """Each call builds a fresh registry."""
        first = default_registry()
        second = default_registry()

        first.add_patterns(Intent.GREETING, ["yo"])

        assert "yo" in first.keywords_for(Intent.GREETING)
        assert "yo" not in second.keywords_for(Intent.GREETING)
        assert "yo" not in DEFAULT_INTENT_KEYWORDS["greeting"][1]

    def test_add_patterns_appends(self) -> None:
        """Existing keywords are kept and new ones go to the end."""
        registry = default_registry()
        before = registry.keywords_for("greeting")

        added = registry.add_patterns("greeting", ["yo", "sup"])

        after = registry.keywords_for("greeting")
        assert added == 2
        assert after[: len(before)] == before
        assert after[-2:] == ("yo", "sup")

    def test_add_patterns_creates_category(self) -> None:
        """Unknown intents get a new category with the default weight."""
        registry = IntentRegistry()
        registry.add_patterns("warranty", ["warranty"])

        assert registry.categories() == (("warranty", ("warranty",), 1.0),)

    def test_add_patterns_weight_only_for_new_category(self) -> None:
        """Weight applies on creation and is ignored afterwards."""
        registry = IntentRegistry()
        registry.add_patterns("warranty", ["warranty"], weight=2.0)
        registry.add_patterns("warranty", ["guarantee"], weight=5.0)

        (_, keywords, weight), = registry.categories()
        assert keywords == ("warranty", "guarantee")
        assert weight == 2.0

    def test_add_patterns_single_string(self) -> None:
        """A bare string is registered as one keyword."""
        registry = IntentRegistry()
        added = registry.add_patterns("warranty", "warranty")

        assert added == 1
        assert registry.keywords_for("warranty") == ("warranty",)

    def test_add_patterns_skips_blank_keywords(self) -> None:
        """Blank strings are not registered."""
        registry = IntentRegistry()
        added = registry.add_patterns("warranty", ["warranty", "", "   "])

        assert added == 1
        assert registry.keywords_for("warranty") == ("warranty",)

    def test_snapshot_is_not_affected_by_later_additions(self) -> None:
        """categories() returns an immutable snapshot."""
        registry = default_registry()
        snapshot = registry.categories()

        registry.add_patterns("greeting", ["yo"])

        greeting = dict((name, kw) for name, kw, _ in snapshot)["greeting"]
        assert "yo" not in greeting

    def test_from_mapping(self) -> None:
        """Registries can be built from configuration entries."""
        registry = IntentRegistry.from_mapping(
            {"warranty": IntentKeywords(keywords=["warranty", "guarantee"], weight=0.5)}
        )

        assert registry.categories() == (("warranty", ("warranty", "guarantee"), 0.5),)

    def test_concurrent_additions(self) -> None:
        """Additions from several threads are all kept."""
        registry = IntentRegistry()

        def add(n: int) -> None:
            for i in range(50):
                registry.add_patterns("bulk", [f"kw-{n}-{i}"])

        threads = [threading.Thread(target=add, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(registry.keywords_for("bulk")) == 200


# ============================================================================
# Intent Classification Tests
# ============================================================================


class TestIntentClassifier:
    """Tests for weighted keyword classification."""

    @pytest.fixture
    def classifier(self) -> IntentClassifier:
        return IntentClassifier()

    # --- Invalid input ---

    @pytest.mark.parametrize("text", [None, "", "   ", 42, ["how much"]])
    def test_invalid_input_is_unknown(self, classifier: IntentClassifier, text) -> None:
        """Non-text and blank input classify as unknown with zero confidence."""
        result = classifier.classify(text)
        assert result.intent == "unknown"
        assert result.confidence == 0
        assert result.alternatives == []

    def test_no_keywords_is_unknown(self, classifier: IntentClassifier) -> None:
        """Text without any keyword is unknown."""
        result = classifier.classify("xyzzy plugh")
        assert result.intent == "unknown"
        assert result.confidence == 0

    # --- Single intents ---

    def test_case_insensitive(self, classifier: IntentClassifier) -> None:
        """Upper and lower case text classify the same."""
        upper = classifier.classify("HOW MUCH")
        lower = classifier.classify("how much")
        assert upper.intent == lower.intent == "price_inquiry"
        assert upper.confidence == lower.confidence

    def test_price_inquiry(self, classifier: IntentClassifier) -> None:
        """Two nested price keywords: 2 * (2 * 1.2 / 10)."""
        result = classifier.classify("how much for an oil change?")
        assert result.intent == "price_inquiry"
        assert result.confidence == pytest.approx(0.48)

    def test_greeting(self, classifier: IntentClassifier) -> None:
        """'good morning' matches two greeting keywords."""
        result = classifier.classify("good morning")
        assert result.intent == "greeting"
        assert result.confidence == pytest.approx(0.35)

    def test_customer_lookup(self, classifier: IntentClassifier) -> None:
        result = classifier.classify("find customer John Smith")
        assert result.intent == "customer_lookup"
        assert result.confidence == pytest.approx(0.4)

    def test_scheduling(self, classifier: IntentClassifier) -> None:
        result = classifier.classify("I want to book an appointment")
        assert result.intent == "scheduling"
        assert result.confidence == 1.0

    def test_single_booking_verb_is_confident(self, classifier: IntentClassifier) -> None:
        """One scheduling keyword is enough to clear the clarify threshold."""
        for text in ("Book an inspection tomorrow at 9am", "schedule an oil change"):
            result = classifier.classify(text)
            assert result.intent == "scheduling"
            assert result.confidence == pytest.approx(1 / 3)

    def test_work_order_status(self, classifier: IntentClassifier) -> None:
        result = classifier.classify("what's the status of work order 1234?")
        assert result.intent == "work_order_status"
        assert result.confidence == 1.0

    def test_help(self, classifier: IntentClassifier) -> None:
        result = classifier.classify("i need help")
        assert result.intent == "help"
        assert result.confidence > 0.3

    def test_confidence_clipped(self, classifier: IntentClassifier) -> None:
        """Many matches are clipped to 1.0."""
        result = classifier.classify("do you have an oil filter in stock?")
        assert result.intent == "stock_inquiry"
        assert result.confidence == 1.0

    def test_single_keyword_low_confidence(self, classifier: IntentClassifier) -> None:
        """One match in a long keyword list gives a low score."""
        result = classifier.classify("hello")
        assert result.intent == "greeting"
        assert 0 < result.confidence < 0.3

    # --- Alternatives ---

    def test_alternatives_ranked(self, classifier: IntentClassifier) -> None:
        """Runner-up intents are reported with their confidence."""
        result = classifier.classify("how much to book an inspection")
        assert result.intent == "price_inquiry"
        assert result.confidence == pytest.approx(0.48)
        assert len(result.alternatives) == 1
        intent, confidence = result.alternatives[0]
        assert intent == "scheduling"
        assert confidence == pytest.approx(1 / 3)

    def test_at_most_two_alternatives(self, classifier: IntentClassifier) -> None:
        """Only the next two intents are kept."""
        result = classifier.classify("hello, how much is the stock for customer order")
        assert result.intent == "price_inquiry"
        assert len(result.alternatives) == 2

    def test_max_alternatives_configurable(self) -> None:
        classifier = IntentClassifier(max_alternatives=0)
        result = classifier.classify("how much to book an inspection")
        assert result.alternatives == []

    @pytest.mark.parametrize(
        "text",
        [
            "do you have an oil filter in stock? how much is it? is it available?",
            "status of my work order, the order status and repair status",
            "hello good morning good day greetings",
        ],
    )
    def test_all_confidences_in_range(self, classifier: IntentClassifier, text: str) -> None:
        """Top and alternative confidences stay within [0, 1]."""
        result = classifier.classify(text)
        assert 0.0 <= result.confidence <= 1.0
        for _, confidence in result.alternatives:
            assert 0.0 <= confidence <= 1.0

    # --- Multiple intents ---

    def test_detect_multiple_intents(self, classifier: IntentClassifier) -> None:
        """Both price and booking are detected."""
        intents = classifier.detect_multiple_intents("how much to book an inspection")
        assert [intent for intent, _ in intents] == ["price_inquiry", "scheduling"]

    def test_detect_multiple_filters_low_confidence(self, classifier: IntentClassifier) -> None:
        """Only intents above 0.3 are returned."""
        assert classifier.detect_multiple_intents("hello") == []

    def test_detect_multiple_invalid_input(self, classifier: IntentClassifier) -> None:
        assert classifier.detect_multiple_intents(None) == []

    # --- Registry extension ---

    def test_add_intent_patterns_new_intent(self) -> None:
        """Runtime categories take part in classification."""
        classifier = IntentClassifier(registry=default_registry())
        classifier.add_intent_patterns("warranty", ["warranty", "guarantee"])

        result = classifier.classify("is this under warranty")
        assert result.intent == "warranty"
        assert result.confidence == pytest.approx(0.5)

    def test_add_intent_patterns_isolated(self) -> None:
        """Extending one classifier's registry leaves others untouched."""
        extended = IntentClassifier(registry=default_registry())
        plain = IntentClassifier(registry=default_registry())

        extended.add_intent_patterns("warranty", ["warranty"])

        assert extended.classify("warranty").intent == "warranty"
        assert plain.classify("warranty").intent == "unknown"


# ============================================================================
# Entity Extraction Tests
# ============================================================================


class TestEntityExtractor:
    """Tests for entity extraction."""

    @pytest.fixture
    def extractor(self) -> EntityExtractor:
        return EntityExtractor()

    # --- Invalid input ---

    @pytest.mark.parametrize("text", [None, "", "  ", 123])
    def test_invalid_input_is_empty(self, extractor: EntityExtractor, text) -> None:
        assert extractor.extract(text) == {}

    def test_no_entities_omits_keys(self, extractor: EntityExtractor) -> None:
        """Types without matches are absent, not empty."""
        assert extractor.extract("hello there") == {}

    # --- Service ---

    def test_service_oil_change(self, extractor: EntityExtractor) -> None:
        result = extractor.extract("how much for an oil change?")
        assert result == {"service": "oil change"}

    def test_service_keeps_text_case(self, extractor: EntityExtractor) -> None:
        """Extraction returns the text as written; normalization lower-cases."""
        result = extractor.extract("Oil Change please")
        assert result["service"] == "Oil Change"

    def test_service_multiple_values(self, extractor: EntityExtractor) -> None:
        """Different rules matching different text give a list."""
        result = extractor.extract("brake job and a diagnostic")
        assert result["service"] == ["brake job", "diagnostic"]

    def test_service_filter(self, extractor: EntityExtractor) -> None:
        result = extractor.extract("do you have an oil filter in stock?")
        assert result["service"] == "oil filter"

    # --- Plate ---

    def test_plate_legacy_with_hyphen(self, extractor: EntityExtractor) -> None:
        result = extractor.extract("car with plate ABC-1234")
        assert result["plate"] == "ABC-1234"

    def test_plate_legacy_without_hyphen(self, extractor: EntityExtractor) -> None:
        result = extractor.extract("plate abc1234")
        assert result["plate"] == "abc1234"

    def test_plate_mercosul(self, extractor: EntityExtractor) -> None:
        result = extractor.extract("plate ABC1D23")
        assert result["plate"] == "ABC1D23"

    # --- Tax ID and phone ---

    def test_tax_id_punctuated(self, extractor: EntityExtractor) -> None:
        result = extractor.extract("tax id 123.456.789-01")
        assert result["tax_id"] == "123.456.789-01"
        assert "phone" not in result

    def test_phone_with_area_code(self, extractor: EntityExtractor) -> None:
        result = extractor.extract("call me at (11) 99999-9999")
        assert result["phone"] == "(11) 99999-9999"

    def test_phone_bare_digits(self, extractor: EntityExtractor) -> None:
        result = extractor.extract("my number is 1133334444")
        assert result["phone"] == "1133334444"

    # --- Case number ---

    def test_case_number_os(self, extractor: EntityExtractor) -> None:
        result = extractor.extract("status da OS 123")
        assert result["case_number"] == "123"

    def test_case_number_work_order(self, extractor: EntityExtractor) -> None:
        result = extractor.extract("where is work order #4567")
        assert result["case_number"] == "4567"

    def test_case_number_ordem_de_servico(self, extractor: EntityExtractor) -> None:
        result = extractor.extract("ordem de serviço 89")
        assert result["case_number"] == "89"

    def test_case_number_deduplicated(self, extractor: EntityExtractor) -> None:
        """Two rules capturing the same digits keep one scalar value."""
        result = extractor.extract("order number 1234")
        assert result["case_number"] == "1234"

    # --- Dates and times ---

    def test_relative_date_tomorrow(self, extractor: EntityExtractor) -> None:
        result = extractor.extract("can I come tomorrow")
        assert result["relative_date"] == "tomorrow"

    def test_relative_date_next_weekday(self, extractor: EntityExtractor) -> None:
        result = extractor.extract("next friday works")
        assert result["relative_date"] == "next friday"

    def test_relative_date_multiple(self, extractor: EntityExtractor) -> None:
        result = extractor.extract("today or monday")
        assert result["relative_date"] == ["today", "monday"]

    def test_time_clock(self, extractor: EntityExtractor) -> None:
        result = extractor.extract("at 10:00")
        assert result["time_of_day"] == "10:00"

    def test_time_am_pm(self, extractor: EntityExtractor) -> None:
        """'3:30 pm' is a single time, not also a bare clock time."""
        result = extractor.extract("around 3:30 pm")
        assert result["time_of_day"] == "3:30 pm"

    def test_time_hour_suffix(self, extractor: EntityExtractor) -> None:
        result = extractor.extract("at 10h")
        assert result["time_of_day"] == "10h"

    def test_time_part_of_day(self, extractor: EntityExtractor) -> None:
        result = extractor.extract("at 3 in the afternoon")
        assert result["time_of_day"] == "3 in the afternoon"

    # --- Names and vehicles ---

    def test_person_name(self, extractor: EntityExtractor) -> None:
        result = extractor.extract("find customer John Smith")
        assert result == {"person_name": "John Smith"}

    def test_person_name_accented(self, extractor: EntityExtractor) -> None:
        result = extractor.extract("Find customer João Silva")
        assert result["person_name"] == "João Silva"

    def test_single_capitalized_word_is_not_a_name(self, extractor: EntityExtractor) -> None:
        result = extractor.extract("find customer John")
        assert "person_name" not in result

    def test_vehicle_model(self, extractor: EntityExtractor) -> None:
        result = extractor.extract("my CIVIC is making noise")
        assert result["vehicle_model"] == "CIVIC"

    # --- Rule table ---

    def test_rules_for_type(self, extractor: EntityExtractor) -> None:
        """Each type's rules can be inspected and applied alone."""
        rules = extractor.rules_for(EntityType.PLATE)
        assert len(rules) == 2
        assert rules[0].apply("ABC-1234") == "ABC-1234"
        assert rules[0].apply("ABC1D23") is None
        assert rules[1].apply("ABC1D23") == "ABC1D23"

    def test_rule_uses_capture_group(self, extractor: EntityExtractor) -> None:
        (os_rule, *_) = extractor.rules_for("case_number")
        assert os_rule.group == 1
        assert os_rule.apply("OS #77") == "77"

    def test_combined_booking(self, extractor: EntityExtractor) -> None:
        """Extracting several entity types from one request."""
        result = extractor.extract("I want to book an oil change tomorrow at 10:00")
        assert result == {
            "service": "oil change",
            "relative_date": "tomorrow",
            "time_of_day": "10:00",
        }


class TestExtractEntitiesFunction:
    """Test the module-level extract_entities function."""

    def test_function_works(self) -> None:
        result = extract_entities("oil change for plate ABC-1234")
        assert result["service"] == "oil change"
        assert result["plate"] == "ABC-1234"


# ============================================================================
# Normalization and Validation Tests
# ============================================================================


class TestEntityNormalizer:
    """Tests for entity normalization and validation."""

    @pytest.fixture
    def normalizer(self) -> EntityNormalizer:
        return EntityNormalizer()

    # --- Normalization ---

    def test_phone_digits_only(self, normalizer: EntityNormalizer) -> None:
        assert normalizer.normalize({"phone": "(11) 99999-9999"}) == {"phone": "11999999999"}

    def test_tax_id_digits_only(self, normalizer: EntityNormalizer) -> None:
        assert normalizer.normalize({"tax_id": "123.456.789-01"})["tax_id"] == "12345678901"

    def test_plate_upper_no_separator(self, normalizer: EntityNormalizer) -> None:
        assert normalizer.normalize({"plate": "abc-1234"})["plate"] == "ABC1234"

    def test_service_lower(self, normalizer: EntityNormalizer) -> None:
        assert normalizer.normalize({"service": "Oil Change"})["service"] == "oil change"

    def test_vehicle_model_capitalized(self, normalizer: EntityNormalizer) -> None:
        assert normalizer.normalize({"vehicle_model": "CIVIC"})["vehicle_model"] == "Civic"

    def test_other_types_pass_through(self, normalizer: EntityNormalizer) -> None:
        entities = {"person_name": "John Smith", "time_of_day": "10:00", "case_number": "12"}
        assert normalizer.normalize(entities) == entities

    def test_list_values_normalized_elementwise(self, normalizer: EntityNormalizer) -> None:
        result = normalizer.normalize({"service": ["Brake Job", "Diagnostic"]})
        assert result["service"] == ["brake job", "diagnostic"]

    def test_input_not_mutated(self, normalizer: EntityNormalizer) -> None:
        entities = {"phone": "(11) 99999-9999", "service": ["Brake Job"]}
        normalizer.normalize(entities)
        assert entities == {"phone": "(11) 99999-9999", "service": ["Brake Job"]}

    # --- Validation ---

    def test_valid_entities(self, normalizer: EntityNormalizer) -> None:
        result = normalizer.validate(
            {"tax_id": "123.456.789-01", "phone": "(11) 99999-9999", "plate": "ABC-1D23"}
        )
        assert result.valid is True
        assert result.errors == []

    def test_tax_id_ten_digits_invalid(self, normalizer: EntityNormalizer) -> None:
        result = normalizer.validate({"tax_id": "1234567890"})
        assert result.valid is False
        assert len(result.errors) == 1
        assert "11 digits" in result.errors[0]

    def test_phone_too_short(self, normalizer: EntityNormalizer) -> None:
        result = normalizer.validate({"phone": "9999-9999"})
        assert result.valid is False
        assert "10 or 11 digits" in result.errors[0]

    def test_plate_wrong_length(self, normalizer: EntityNormalizer) -> None:
        result = normalizer.validate({"plate": "AB-123"})
        assert result.valid is False
        assert "7 characters" in result.errors[0]

    def test_all_errors_collected(self, normalizer: EntityNormalizer) -> None:
        """Validation does not stop at the first problem."""
        result = normalizer.validate({"tax_id": "123", "phone": "123", "plate": "A1"})
        assert result.valid is False
        assert len(result.errors) == 3

    def test_list_values_validated(self, normalizer: EntityNormalizer) -> None:
        result = normalizer.validate({"phone": ["11999999999", "123"]})
        assert result.valid is False
        assert len(result.errors) == 1

    def test_empty_map_valid(self, normalizer: EntityNormalizer) -> None:
        assert normalizer.validate({}).valid is True
