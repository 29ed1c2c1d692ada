"""Custom exceptions for settings management."""


class ConfigError(Exception):
    """Raised when settings data cannot be processed."""
