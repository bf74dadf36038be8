"""Split DATEV payroll PDFs into per-employee and company-wide documents."""

__version__ = "1.0.0"

from datev_lohn.detector import detect_form_type, get_handler, require_handler
from datev_lohn.errors import (
    DatevExtractionError, ExtractionError, FormDetectionError,
    PdfGenerationError, ValidationError,
)
from datev_lohn.grouper import group_by_personnel
from datev_lohn.models import (
    CompanyGroup, DateInfo, ExtractedPage, GroupingResult, PersonnelGroup,
    SalaryPage, SocialSecurityPage, UnknownPage,
)
from datev_lohn.parser import PageExtractor, classify_page
from datev_lohn.pipeline import ProcessingResult, process_pdf
