"""
Unit tests for retrieval intent detection.
"""

import pytest

from augmentation.query_intent import (
    detect_browsing_request,
    detect_retrieval_intent,
    extract_product_query,
    is_retailer_query,
)


class TestDetectBrowsingRequest:
    @pytest.mark.parametrize(
        "message,expected",
        [
            ("Search for galaxy tab firmware update", "galaxy tab firmware update"),
            ("Can you look up iPhone battery replacement online?", "iPhone battery replacement"),
            ("What is a mesh router?", "a mesh router"),
            ("Tell me about noise cancelling on the web", "noise cancelling"),
            ("specs for the Pixel 8", "the Pixel 8"),
            ("compare prices for AirPods Pro", "AirPods Pro"),
        ],
    )
    def test_subject_captured(self, message, expected):
        assert detect_browsing_request(message) == expected

    @pytest.mark.parametrize(
        "message",
        ["Hello there", "My phone will not turn on", "Thanks, that worked!"],
    )
    def test_no_request(self, message):
        assert detect_browsing_request(message) is None


class TestRetailerDetection:
    def test_keyword_mention(self):
        assert is_retailer_query("Is this cheaper on Amazon?")
        assert not is_retailer_query("How do I reset my router?")

    def test_retailer_pattern_capture_preferred(self):
        assert extract_product_query("How much is the Kindle Paperwhite?") == "the Kindle Paperwhite"
        assert extract_product_query("search amazon for usb-c hub") == "usb-c hub"


class TestDetectRetrievalIntent:
    """Routing between general fetches and product lookups."""

    def test_price_question_on_amazon(self):
        intent = detect_retrieval_intent(
            "What's the price of Sony WH-1000XM5 headphones on Amazon?"
        )
        assert intent is not None
        assert intent.retailer is True
        assert intent.query == "Sony WH-1000XM5 headphones"
        assert intent.via_retailer_pattern is False

    def test_retailer_pattern(self):
        intent = detect_retrieval_intent("amazon reviews for Echo Dot")
        assert intent.retailer is True
        assert intent.via_retailer_pattern is True
        assert intent.query == "Echo Dot"

    def test_general_request(self):
        intent = detect_retrieval_intent("Look up how to pair galaxy buds")
        assert intent.retailer is False
        assert intent.query == "how to pair galaxy buds"

    @pytest.mark.parametrize("message", ["", "   ", "Good morning", "It keeps crashing"])
    def test_none(self, message):
        assert detect_retrieval_intent(message) is None
