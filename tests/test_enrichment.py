"""
Unit tests for enrichment and feature extraction.
"""

from datetime import datetime

import pytest

from logpipe.processing.enrichment import (
    classify_ip,
    enrich,
    extract_features,
    is_business_hours,
    normalize_message,
    time_of_day,
    tokenize,
)


class TestIPClassification:
    """Tests for address classification."""

    @pytest.mark.parametrize("ip,expected", [
        ("10.0.0.5", "private"),
        ("192.168.1.20", "private"),
        ("172.16.0.1", "private"),
        ("172.20.0.1", "private"),
        ("172.31.255.255", "private"),
        ("172.40.0.1", "public"),
        ("8.8.8.8", "public"),
        ("127.0.0.1", "localhost"),
        ("::1", "localhost"),
        ("localhost", "localhost"),
        ("unknown", "public"),
    ])
    def test_classify(self, ip, expected):
        assert classify_ip(ip) == expected


class TestTimeContext:
    """Tests for time-derived fields."""

    def test_business_hours_boundaries(self):
        # 2024-01-01 is a Monday
        assert is_business_hours(datetime(2024, 1, 1, 9, 0)) is True
        assert is_business_hours(datetime(2024, 1, 1, 8, 59)) is False
        assert is_business_hours(datetime(2024, 1, 1, 16, 59)) is True
        assert is_business_hours(datetime(2024, 1, 1, 17, 0)) is False

    def test_weekend_is_not_business_hours(self):
        assert is_business_hours(datetime(2024, 1, 6, 10, 0)) is False

    @pytest.mark.parametrize("hour,expected", [
        (6, "morning"),
        (11, "morning"),
        (12, "afternoon"),
        (18, "evening"),
        (22, "night"),
        (3, "night"),
    ])
    def test_time_of_day(self, hour, expected):
        assert time_of_day(datetime(2024, 1, 1, hour, 0)) == expected

    def test_enrich(self):
        metadata = enrich("10.0.0.5", datetime(2024, 1, 6, 10, 0))

        assert metadata.ip_type == "private"
        assert metadata.day_of_week == "Saturday"
        assert metadata.time_of_day == "morning"
        assert metadata.is_business_hours is False

    def test_enrich_without_timestamp(self):
        metadata = enrich("8.8.8.8", "garbage")

        assert metadata.ip_type == "public"
        assert metadata.time_of_day is None
        assert metadata.day_of_week is None
        assert metadata.is_business_hours is None


class TestMessageFeatures:
    """Tests for message normalization and features."""

    def test_normalize_message(self):
        assert normalize_message("User LOGIN failed:  bad password!") == "user login failed bad password"

    def test_tokenize(self):
        assert tokenize("user login failed") == ["user", "login", "failed"]
        assert tokenize("") == []

    def test_features(self):
        message = "Connection failed from 10.0.0.5, see https://status.example.com or mail ops@example.com"

        features = extract_features(message)

        assert features.message_length == len(message)
        assert features.has_error is True
        assert features.has_warning is False
        assert features.contains_ip is True
        assert features.contains_url is True
        assert features.contains_email is True
        assert features.word_count == 9
        assert features.special_char_count > 0

    def test_warning_feature(self):
        features = extract_features("Caution: disk at 91%")

        assert features.has_warning is True
        assert features.has_error is False
        assert features.contains_ip is False

    def test_empty_message(self):
        features = extract_features("")

        assert features.message_length == 0
        assert features.word_count == 0
