from pdf_sanitizer.sanitizer.cache import SingleFlightCache
from pdf_sanitizer.sanitizer.exceptions import SanitizationError
from pdf_sanitizer.sanitizer.models import SanitizableFile, SanitizeOptions
from pdf_sanitizer.sanitizer.pipeline import SanitizationPipeline

__all__ = [
    "SanitizableFile",
    "SanitizationError",
    "SanitizationPipeline",
    "SanitizeOptions",
    "SingleFlightCache",
]
