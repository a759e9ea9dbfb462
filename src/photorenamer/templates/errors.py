"""Template validation errors."""


class InvalidTemplateError(ValueError):
    """Raised when a template cannot be used for renaming (e.g. it is empty)."""
