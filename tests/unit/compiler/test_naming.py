"""Unit tests for identifier normalization."""

import pytest

from declmcp.logic.compiler.utils import to_canonical, to_implementation_name, to_kebab_case


class TestToCanonical:
    """Test camelCase to snake_case conversion."""

    @pytest.mark.parametrize("identifier,expected", [
        ("getWeather", "get_weather"),
        ("mimeType", "mime_type"),
        ("name", "name"),
        ("GetWeather", "get_weather"),
        ("get_weather", "get_weather"),
        ("", ""),
    ])
    def test_conversion(self, identifier, expected):
        """Test canonical forms of common identifiers."""
        assert to_canonical(identifier) == expected

    def test_each_uppercase_letter_starts_a_word(self):
        """Test that acronyms are split letter by letter."""
        assert to_canonical("getHTTPStatus") == "get_h_t_t_p_status"

    def test_identifier_with_separator_is_unchanged(self):
        """Test that anything already containing an underscore passes through."""
        assert to_canonical("already_Mixed") == "already_Mixed"

    @pytest.mark.parametrize("identifier", ["getWeather", "get_weather", "fetchUserProfile", "x"])
    def test_idempotent(self, identifier):
        """Test that normalizing twice equals normalizing once."""
        once = to_canonical(identifier)
        assert to_canonical(once) == once


class TestToImplementationName:
    """Test snake_case to camelCase conversion."""

    def test_conversion(self):
        """Test implementation names derived from canonical names."""
        assert to_implementation_name("get_weather") == "getWeather"
        assert to_implementation_name("fetch_user_profile") == "fetchUserProfile"
        assert to_implementation_name("ping") == "ping"

    def test_round_trip_from_camel_case(self):
        """Test camelCase names survive canonicalization."""
        assert to_implementation_name(to_canonical("getWeather")) == "getWeather"


class TestToKebabCase:
    """Test server name normalization."""

    @pytest.mark.parametrize("identifier,expected", [
        ("weatherServer", "weather-server"),
        ("weather_server", "weather-server"),
        ("Weather Server", "weather-server"),
        ("weather-server", "weather-server"),
    ])
    def test_conversion(self, identifier, expected):
        """Test kebab-case forms."""
        assert to_kebab_case(identifier) == expected
