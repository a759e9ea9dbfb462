"""Configuration errors."""


class ConfigError(Exception):
    """Raised when a configuration file, variable, or override is unusable."""
