"""Template grammar: token catalogue, parser, and validation."""

from .errors import InvalidTemplateError
from .parser import (
    TOKEN_PATTERN,
    ParsedTemplate,
    TemplateToken,
    TemplateValidation,
    is_valid_token,
    parse_template,
    require_valid_template,
    validate_template,
)
from .tokens import (
    TEMPLATE_PRESETS,
    TEMPLATE_TOKENS,
    TOKEN_CATEGORIES,
    describe_tokens,
    resolve_preset,
)

__all__ = [
    "InvalidTemplateError",
    "ParsedTemplate",
    "TEMPLATE_PRESETS",
    "TEMPLATE_TOKENS",
    "TOKEN_CATEGORIES",
    "TOKEN_PATTERN",
    "TemplateToken",
    "TemplateValidation",
    "describe_tokens",
    "is_valid_token",
    "parse_template",
    "require_valid_template",
    "resolve_preset",
    "validate_template",
]
