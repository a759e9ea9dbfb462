"""Tests for template parsing, validation, and the token catalogue."""

import pytest

from photorenamer.templates import (
    TEMPLATE_PRESETS,
    TEMPLATE_TOKENS,
    InvalidTemplateError,
    is_valid_token,
    parse_template,
    require_valid_template,
    resolve_preset,
    validate_template,
)


def test_parse_template_records_tokens_in_order() -> None:
    parsed = parse_template("{YYYY}-{MM}_{counter:4}_{bogus}")

    assert [token.token for token in parsed.tokens] == ["YYYY", "MM", "counter:4", "bogus"]
    assert [token.position for token in parsed.tokens] == [0, 7, 12, 24]
    assert [token.is_valid for token in parsed.tokens] == [True, True, True, False]
    assert parsed.tokens[0].category == "date"
    assert parsed.tokens[2].category == "utility"
    assert parsed.tokens[3].category is None
    assert parsed.literal_parts == ("", "-", "_", "_", "")
    assert [token.full_token for token in parsed.invalid_tokens] == ["{bogus}"]


def test_parse_template_is_deterministic() -> None:
    template = "{date}_{model}_{counter}"

    assert parse_template(template) == parse_template(template)


def test_parse_template_without_tokens() -> None:
    parsed = parse_template("holiday")

    assert parsed.token_count == 0
    assert parsed.has_valid_tokens is False
    assert parsed.literal_parts == ("holiday",)


@pytest.mark.parametrize("name", ["YYYY", "gps", "counter", "counter:12", "ext"])
def test_is_valid_token_accepts_catalogue_names(name: str) -> None:
    assert is_valid_token(name)


@pytest.mark.parametrize("name", ["year", "counter:", "counter:x", "COUNTER", ""])
def test_is_valid_token_rejects_unknown_names(name: str) -> None:
    assert not is_valid_token(name)


def test_validate_template_reports_errors_and_warnings() -> None:
    assert validate_template("").errors == ["Template cannot be empty"]

    invalid = validate_template("{nope}_{counter}")
    assert invalid.is_valid is False
    assert invalid.errors == ["Invalid token: {nope}"]

    static = validate_template("plain:name")
    assert static.is_valid is True
    assert "Template has no dynamic tokens" in static.warnings
    assert "Template contains characters that may be invalid in filenames" in static.warnings


def test_require_valid_template_rejects_blank() -> None:
    with pytest.raises(InvalidTemplateError):
        require_valid_template("   ")
    assert require_valid_template("{date}") == "{date}"


def test_presets_only_use_catalogue_tokens() -> None:
    for template in TEMPLATE_PRESETS.values():
        assert validate_template(template).is_valid, template


def test_resolve_preset_passes_templates_through() -> None:
    assert resolve_preset("Camera + Date") == "{model}_{date}"
    assert resolve_preset("{custom}") == "{custom}"


def test_catalogue_describes_every_token_kind() -> None:
    assert TEMPLATE_TOKENS["{shutter}"] == "Shutter speed"
    assert "{counter:5}" in TEMPLATE_TOKENS
