"""Template parsing and validation."""

from __future__ import annotations

import re
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .errors import InvalidTemplateError
from .tokens import KNOWN_TOKEN_NAMES, token_category

TOKEN_PATTERN = re.compile(r"\{([^}]+)\}")
_COUNTER_PADDING_PATTERN = re.compile(r"^counter:\d+$")
_ILLEGAL_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*]')


class TemplateToken(BaseModel):
    """A single placeholder found in a template.

    Attributes:
        token: Token name without braces (``YYYY``, ``counter:4``).
        full_token: Token text including braces.
        position: Offset of the opening brace within the template.
        is_valid: Whether the name belongs to the token catalogue.
        category: Catalogue category, when known.
    """

    model_config = ConfigDict(frozen=True)

    token: str
    full_token: str
    position: int
    is_valid: bool
    category: str | None = None


class ParsedTemplate(BaseModel):
    """Ordered token and literal segments of a template."""

    model_config = ConfigDict(frozen=True)

    template: str
    tokens: Tuple[TemplateToken, ...] = ()
    literal_parts: Tuple[str, ...] = ()

    @property
    def token_count(self) -> int:
        return len(self.tokens)

    @property
    def has_valid_tokens(self) -> bool:
        return any(token.is_valid for token in self.tokens)

    @property
    def invalid_tokens(self) -> List[TemplateToken]:
        return [token for token in self.tokens if not token.is_valid]


class TemplateValidation(BaseModel):
    """Outcome of validating a template before a batch runs."""

    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


def is_valid_token(name: str) -> bool:
    """Return whether ``name`` is a catalogue token or ``counter:<digits>``."""
    return name in KNOWN_TOKEN_NAMES or bool(_COUNTER_PADDING_PATTERN.match(name))


def parse_template(template: str) -> ParsedTemplate:
    """Split a template into its tokens and the literal text around them.

    Validity is advisory: unknown tokens are reported with ``is_valid=False``
    and only fail later, during resolution.

    Args:
        template: Template string such as ``{YYYY}{MM}{DD}_{counter}``.

    Returns:
        ParsedTemplate: Tokens in order of appearance plus literal spans.
    """
    tokens: List[TemplateToken] = []
    literals: List[str] = []
    cursor = 0
    for match in TOKEN_PATTERN.finditer(template):
        literals.append(template[cursor : match.start()])
        name = match.group(1)
        tokens.append(
            TemplateToken(
                token=name,
                full_token=match.group(0),
                position=match.start(),
                is_valid=is_valid_token(name),
                category=token_category(name),
            )
        )
        cursor = match.end()
    literals.append(template[cursor:])

    return ParsedTemplate(template=template, tokens=tuple(tokens), literal_parts=tuple(literals))


def validate_template(template: str) -> TemplateValidation:
    """Check a template for problems a user should fix before renaming."""
    errors: List[str] = []
    warnings: List[str] = []

    if not template or not template.strip():
        return TemplateValidation(is_valid=False, errors=["Template cannot be empty"])

    parsed = parse_template(template)
    for token in parsed.invalid_tokens:
        errors.append(f"Invalid token: {token.full_token}")

    if parsed.token_count == 0:
        warnings.append("Template has no dynamic tokens")

    if _ILLEGAL_FILENAME_CHARS.search(TOKEN_PATTERN.sub("", template)):
        warnings.append("Template contains characters that may be invalid in filenames")

    return TemplateValidation(is_valid=not errors, errors=errors, warnings=warnings)


def require_valid_template(template: str) -> str:
    """Return ``template`` or raise when it cannot drive a batch.

    Raises:
        InvalidTemplateError: If the template is empty or only whitespace.
    """
    if not template or not template.strip():
        raise InvalidTemplateError("Template cannot be empty")
    return template


__all__ = [
    "TOKEN_PATTERN",
    "ParsedTemplate",
    "TemplateToken",
    "TemplateValidation",
    "is_valid_token",
    "parse_template",
    "require_valid_template",
    "validate_template",
]
