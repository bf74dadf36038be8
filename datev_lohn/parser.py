"""PDF text extraction and page classification using PyMuPDF."""

import logging
import re
from typing import List, Optional, Union
import fitz  # PyMuPDF

from datev_lohn.config import Settings
from datev_lohn.detector import detect_form_type, get_handler
from datev_lohn.errors import ExtractionError, ValidationError
from datev_lohn.models import ExtractedPage

logger = logging.getLogger(__name__)

PDF_SIGNATURE = b"%PDF-"


def validate_pdf_bytes(pdf_bytes: bytes, max_size: Optional[int] = None) -> None:
    """Check that a buffer looks like a PDF file.

    Args:
        pdf_bytes: File content
        max_size: Optional size limit in bytes

    Raises:
        ValidationError: If the buffer is not bytes, empty, too large or
            lacks the %PDF- signature
    """
    if not isinstance(pdf_bytes, (bytes, bytearray)):
        raise ValidationError(f"Input must be bytes. Received: {type(pdf_bytes).__name__}")
    if len(pdf_bytes) == 0:
        raise ValidationError("PDF buffer is empty")
    if max_size is not None and len(pdf_bytes) > max_size:
        raise ValidationError(
            f"PDF is {len(pdf_bytes)} bytes, which exceeds the maximum allowed ({max_size})"
        )
    if not bytes(pdf_bytes[:5]).startswith(PDF_SIGNATURE):
        raise ValidationError("Invalid PDF file: Missing PDF signature. Expected %PDF- header.")


class PDFTextExtractor:
    """Extracts plain text per page from a PDF file or buffer."""

    def __init__(self, source: Union[str, bytes]):
        """Initialize PDF extractor.

        Args:
            source: Path to the PDF file, or its content as bytes
        """
        self.source = source
        self.doc: fitz.Document = None

    def __enter__(self):
        """Context manager entry."""
        try:
            if isinstance(self.source, (bytes, bytearray)):
                self.doc = fitz.open(stream=bytes(self.source), filetype="pdf")
            else:
                self.doc = fitz.open(self.source)
            page_count = len(self.doc)
        except Exception as e:
            raise ExtractionError(f"Failed to load PDF: {e}") from e
        if page_count == 0:
            self.doc.close()
            raise ExtractionError("PDF contains no pages")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        if self.doc:
            self.doc.close()

    def get_page_count(self) -> int:
        if not self.doc:
            raise ValueError("PDF document not open. Use context manager.")
        return len(self.doc)

    def extract_page_text(self, page_index: int) -> str:
        """Extract the text of one page.

        Whitespace runs (including line breaks) are collapsed to single
        spaces, so patterns only depend on token adjacency.

        Args:
            page_index: Page index (0-indexed)

        Returns:
            Page text
        """
        if not self.doc:
            raise ValueError("PDF document not open. Use context manager.")
        page = self.doc[page_index]
        return re.sub(r'\s+', ' ', page.get_text("text")).strip()

    def extract_page_texts(self) -> List[str]:
        """Extract text for every page, in page order."""
        return [self.extract_page_text(i) for i in range(self.get_page_count())]


def classify_page(text: str, page_index: int) -> ExtractedPage:
    """Detect the form of a page and extract its fields.

    Args:
        text: Page text
        page_index: 0-based page index

    Returns:
        Typed page record for the detected form
    """
    handler = get_handler(detect_form_type(text))
    logger.debug("Extracting page %d with %s handler", page_index, handler.name)
    return handler.extract_metadata(text, page_index)


class PageExtractor:
    """Turns a PDF buffer into classified page records."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()

    def extract_pages(self, pdf_bytes: bytes) -> List[ExtractedPage]:
        """Extract and classify all pages of a PDF.

        Args:
            pdf_bytes: PDF file content

        Returns:
            One page record per source page, in page order

        Raises:
            ValidationError: If the buffer is invalid or has too many pages
            ExtractionError: If the PDF or one of its pages cannot be read
        """
        validate_pdf_bytes(pdf_bytes, self.settings.max_file_size)

        pages: List[ExtractedPage] = []
        with PDFTextExtractor(pdf_bytes) as pdf_extractor:
            page_count = pdf_extractor.get_page_count()
            logger.info("Extracted %d page(s) from PDF", page_count)
            if page_count > self.settings.max_page_count:
                raise ValidationError(
                    f"PDF contains {page_count} pages, which exceeds the maximum "
                    f"allowed ({self.settings.max_page_count})"
                )

            for page_index in range(page_count):
                try:
                    text = pdf_extractor.extract_page_text(page_index)
                except Exception as e:
                    raise ExtractionError(f"Failed to extract page: {e}", page_index) from e
                page = classify_page(text, page_index)
                logger.debug("Extracted page %d: %s", page_index, page.form_type)
                pages.append(page)

        return pages
