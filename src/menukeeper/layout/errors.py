"""Layout persistence errors."""


class LayoutError(Exception):
    """Base exception for layout file operations."""


class MissingLayoutError(LayoutError):
    """Raised when no saved layout exists."""


class LayoutParseError(LayoutError):
    """Raised when a layout file cannot be parsed into the expected shape."""
