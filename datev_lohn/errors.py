"""Error types raised by the extraction pipeline."""

from typing import Optional


class DatevExtractionError(Exception):
    """Base class for all errors raised by datev_lohn."""


class ValidationError(DatevExtractionError):
    """Input rejected before any processing happened."""


class ExtractionError(DatevExtractionError):
    """The document (or one of its pages) could not be read."""

    def __init__(self, message: str, page_index: Optional[int] = None):
        self.page_index = page_index
        if page_index is not None:
            message = f"Page {page_index}: {message}"
        super().__init__(message)


class FormDetectionError(DatevExtractionError):
    """A page could not be matched to a required form.

    Raised by ``detector.require_handler`` for form types without a handler.
    """

    def __init__(self, message: str, form_type: Optional[str] = None):
        self.form_type = form_type
        if form_type:
            message = f"Form {form_type}: {message}"
        super().__init__(message)


class PdfGenerationError(DatevExtractionError):
    """An output document could not be assembled."""
