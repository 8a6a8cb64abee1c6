import pytest

from car_sitemap_sync.parsing_helpers import (
    collect_image_urls,
    extract_cloudinary_urls,
    first_present,
    image_values,
    normalize_features,
    parse_bool,
)

PLACEHOLDER = "https://www.diksxcars.co.ke/images/placeholder.jpg"


class TestNormalizeFeatures:
    @pytest.mark.parametrize("raw", ["A,B", ["A", "B"], '["A","B"]', " A ; B ", ("A", " B ")])
    def test_equivalent_representations(self, raw):
        assert normalize_features(raw) == ["A", "B"]

    @pytest.mark.parametrize("raw", [None, "", "   ", []])
    def test_absent_or_empty(self, raw):
        assert normalize_features(raw) == []

    def test_sequence_coerces_and_drops_empties(self):
        assert normalize_features([" ABS ", 4, "", "  "]) == ["ABS", "4"]

    def test_json_string_takes_precedence_over_commas(self):
        assert normalize_features('["Leather, heated", "Sunroof"]') == ["Leather, heated", "Sunroof"]

    def test_invalid_json_falls_through_to_comma_split(self):
        assert normalize_features("[Sunroof, ABS") == ["[Sunroof", "ABS"]

    def test_json_object_falls_through(self):
        # An object is not a feature list; the string is split on commas instead.
        assert normalize_features('{"a": 1, "b": 2}') == ['{"a": 1', '"b": 2}']

    def test_comma_wins_over_semicolon(self):
        assert normalize_features("A;B,C") == ["A;B", "C"]

    def test_bare_string(self):
        assert normalize_features("  Bluetooth  ") == ["Bluetooth"]

    def test_order_preserved(self):
        assert normalize_features("C,A,B") == ["C", "A", "B"]

    def test_scalar(self):
        assert normalize_features(42) == ["42"]


class TestImages:
    def test_placeholder_when_empty(self):
        assert collect_image_urls([], PLACEHOLDER) == [PLACEHOLDER]
        assert collect_image_urls(["", "  "], PLACEHOLDER) == [PLACEHOLDER]

    def test_cap_at_ten(self):
        urls = [f"https://res.cloudinary.com/x/{i}.jpg" for i in range(12)]
        result = collect_image_urls(urls, PLACEHOLDER)
        assert result == urls[:10]

    def test_dedupe_and_trim(self):
        urls = [" https://cdn.x/a.jpg", "https://cdn.x/a.jpg", "https://cdn.x/b.jpg"]
        assert collect_image_urls(urls, PLACEHOLDER) == ["https://cdn.x/a.jpg", "https://cdn.x/b.jpg"]

    def test_relative_made_absolute(self):
        result = collect_image_urls(["/uploads/a.jpg"], PLACEHOLDER, site_url="https://s.co")
        assert result == ["https://s.co/uploads/a.jpg"]

    def test_image_values_handles_both_shapes(self):
        refs = ["https://a/1.jpg", {"imageUrl": "https://a/2.jpg"}, {"image_url": "https://a/3.jpg"}, {}, 5]
        assert image_values(refs) == ["https://a/1.jpg", "https://a/2.jpg", "https://a/3.jpg", "", ""]
        assert image_values(None) == []

    def test_extract_cloudinary_urls(self):
        text = 'x <img src="https://res.cloudinary.com/d/a.jpg"> y https://example.com/b.jpg'
        assert extract_cloudinary_urls(text) == ["https://res.cloudinary.com/d/a.jpg"]
        assert extract_cloudinary_urls(None) == []


def test_parse_bool():
    assert parse_bool("true") is True
    assert parse_bool(True) is True
    assert parse_bool("false") is False
    assert parse_bool(None) is None


def test_first_present():
    assert first_present({"a": "", "b": None, "c": 0}, "a", "b", "c") == 0
    assert first_present({}, "a") is None

