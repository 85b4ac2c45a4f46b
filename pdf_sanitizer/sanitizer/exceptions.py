class SanitizationError(Exception):
    """Base exception for all sanitization-related errors."""


class NotApplicableError(SanitizationError):
    """Raised when a file is not a PDF and is passed through unchanged."""


class SizeExceededError(SanitizationError):
    """Raised when a PDF is larger than the configured size cap."""


class PageCountExceededError(SanitizationError):
    """Raised when a PDF has more pages than the configured page cap."""


class DecodeError(SanitizationError):
    """Raised when the source document cannot be decoded."""


class RenderError(SanitizationError):
    """Raised when a page cannot be rasterized."""


class EncodeError(SanitizationError):
    """Raised when a page image or the output document cannot be encoded."""
