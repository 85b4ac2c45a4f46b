class PdfError(Exception):
    """Base exception for PDF adapter failures."""


class PdfDecodeError(PdfError):
    """Raised when PDF bytes cannot be opened as a document."""


class PdfRenderError(PdfError):
    """Raised when a page cannot be rendered to pixels."""


class PdfEncodeError(PdfError):
    """Raised when a page raster cannot be encoded as an image."""


class PdfAssembleError(PdfError):
    """Raised when the output document cannot be built or serialized."""
