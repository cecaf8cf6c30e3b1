"""
Tests for deployment property parsing and required-field checks.
"""

import pytest

from streamwright.exceptions import ValidationError
from streamwright.properties import parse_properties, require_text


class TestParseProperties:
    @pytest.mark.parametrize("text", [None, "", "   ", "\n\t"])
    def test_blank_input_yields_empty_mapping(self, text):
        assert parse_properties(text) == {}

    def test_flat_object(self):
        props = parse_properties(
            '{"deployer.*.memory": "1024", "app.log.level": "DEBUG"}'
        )
        assert props == {"deployer.*.memory": "1024", "app.log.level": "DEBUG"}

    def test_preserves_key_order(self):
        props = parse_properties('{"b": "1", "a": "2", "c": "3"}')
        assert list(props) == ["b", "a", "c"]

    def test_malformed_json_raises(self):
        with pytest.raises(ValidationError, match="Failed to parse deployer properties JSON"):
            parse_properties("{not json")

    def test_non_object_raises(self):
        with pytest.raises(ValidationError, match="JSON object"):
            parse_properties('["deployer.*.memory", "1024"]')

    def test_non_string_values_raise(self):
        with pytest.raises(ValidationError, match="deployer.\\*.count"):
            parse_properties('{"deployer.*.count": 2, "app.x": "y"}')

    def test_nested_object_raises(self):
        with pytest.raises(ValidationError):
            parse_properties('{"deployer": {"memory": "1024"}}')


class TestRequireText:
    def test_strips_value(self):
        assert require_text("  ticks ", "name") == "ticks"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank_raises(self, value):
        with pytest.raises(ValidationError, match="name must not be empty"):
            require_text(value, "name")
