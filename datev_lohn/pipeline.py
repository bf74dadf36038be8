"""End-to-end processing of a DATEV payroll PDF."""

import logging
from typing import List, Optional

from pydantic import BaseModel

from datev_lohn.config import Settings
from datev_lohn.errors import ValidationError
from datev_lohn.grouper import group_by_personnel
from datev_lohn.models import (
    ExtractedPage, GeneratedCompanyPdf, GeneratedPersonnelPdf, GroupingResult,
)
from datev_lohn.output import (
    PdfGenerator, build_bundle, generate_sepa_transfers_csv,
)
from datev_lohn.parser import PageExtractor

logger = logging.getLogger(__name__)


class ProcessingResult(BaseModel):
    """Everything produced from one input PDF."""
    pages: List[ExtractedPage]
    grouping: GroupingResult
    personnel_pdfs: List[GeneratedPersonnelPdf] = []
    company_pdfs: List[GeneratedCompanyPdf] = []
    sepa_csv: str = ""


def process_pdf(pdf_bytes: bytes, settings: Optional[Settings] = None) -> ProcessingResult:
    """Split a payroll PDF into employee and company documents.

    Args:
        pdf_bytes: Source PDF content
        settings: Limits to apply (defaults to Settings())

    Returns:
        ProcessingResult with the classified pages, groups, generated PDFs
        and the SEPA transfer CSV

    Raises:
        ValidationError: If the input is rejected
        ExtractionError: If the PDF cannot be read
        PdfGenerationError: If an output PDF cannot be assembled
    """
    settings = settings or Settings()

    pages = PageExtractor(settings).extract_pages(pdf_bytes)
    grouping = group_by_personnel(pages)

    generator = PdfGenerator()
    personnel_pdfs = [
        generator.generate_personnel_pdf(group, pdf_bytes)
        for group in grouping.personnel_groups
    ]
    company_pdfs = [
        generator.generate_company_pdf(group, pdf_bytes)
        for group in grouping.company_groups
    ]

    total_pages = sum(pdf.page_count for pdf in personnel_pdfs)
    if total_pages > settings.max_page_count:
        raise ValidationError(
            f"Generated documents contain {total_pages} pages, which exceeds "
            f"the maximum allowed ({settings.max_page_count})"
        )

    return ProcessingResult(
        pages=pages,
        grouping=grouping,
        personnel_pdfs=personnel_pdfs,
        company_pdfs=company_pdfs,
        sepa_csv=generate_sepa_transfers_csv(grouping.personnel_groups),
    )


def bundle_result(result: ProcessingResult, settings: Optional[Settings] = None) -> bytes:
    """Pack a processing result into a ZIP archive."""
    settings = settings or Settings()
    return build_bundle(
        result.personnel_pdfs,
        result.company_pdfs,
        result.sepa_csv,
        sepa_filename=settings.sepa_filename,
        metadata_filename=settings.metadata_filename,
        max_size=settings.max_bundle_size,
    )
