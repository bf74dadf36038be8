"""Output generation: split PDFs, SEPA transfer CSV, statistics and metadata."""

import io
import json
import logging
import re
import zipfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence
import fitz  # PyMuPDF

from datev_lohn.detector import get_handler
from datev_lohn.errors import PdfGenerationError, ValidationError
from datev_lohn.models import (
    CompanyGroup, DateInfo, ExtractedPage, ExtractionStats, FormTypeCount,
    GeneratedCompanyPdf, GeneratedPersonnelPdf, PersonnelGroup, is_salary_page,
)

logger = logging.getLogger(__name__)

SEPA_HEADER = "beneficiary_name,iban,amount,currency,reference"
SEPA_CURRENCY = "EUR"
MAX_FILENAME_LENGTH = 255


# Filenames

def _period_parts(date_info: Optional[DateInfo]) -> List[str]:
    if date_info is None or not date_info.year:
        return []
    if date_info.month:
        return [date_info.year, date_info.month]
    return [date_info.year]


def personnel_filename(personnel_number: str, date_info: Optional[DateInfo]) -> str:
    """Build "PERSONNEL-{year}-{month}-{personnel_number}.pdf"."""
    parts = ["PERSONNEL"] + _period_parts(date_info) + [personnel_number]
    return "-".join(parts) + ".pdf"


def company_filename(date_info: Optional[DateInfo]) -> str:
    """Build "COMPANY-{year}-{month}.pdf"."""
    parts = ["COMPANY"] + _period_parts(date_info)
    return "-".join(parts) + ".pdf"


def sanitize_filename(filename: str) -> str:
    """Make a filename safe to use inside an output directory or archive."""
    cleaned = filename.replace("..", "")
    cleaned = re.sub(r'[/\\]', "_", cleaned)
    cleaned = cleaned.replace("\0", "").strip()
    cleaned = re.sub(r'^\.+', "", cleaned)
    cleaned = re.sub(r'\.+$', "", cleaned)
    return cleaned[:MAX_FILENAME_LENGTH] or "file"


# PDF assembly

class PdfGenerator:
    """Copies the pages of a group from the source PDF into a new PDF."""

    def generate_personnel_pdf(self, group: PersonnelGroup, source_pdf: bytes) -> GeneratedPersonnelPdf:
        """Generate the PDF for one employee.

        Args:
            group: Personnel group to render
            source_pdf: Original PDF content

        Returns:
            Generated PDF data and metadata

        Raises:
            ValidationError: If the group or buffer is invalid
            PdfGenerationError: If PyMuPDF fails
        """
        if not group.pages:
            raise ValidationError("Personnel group must have at least one page")
        if not group.personnel_number:
            raise ValidationError("Personnel group must have a personnel number")
        self._validate_source(source_pdf)

        data = self._copy_pages(source_pdf, group.page_indices, "personnel")
        return GeneratedPersonnelPdf(
            data=data,
            page_count=len(group.pages),
            personnel_number=group.personnel_number,
            employee_name=group.employee_name,
            date_info=group.date_info,
        )

    def generate_company_pdf(self, group: CompanyGroup, source_pdf: bytes) -> GeneratedCompanyPdf:
        """Generate the PDF for one company-wide group."""
        if not group.pages:
            raise ValidationError("Company group must have at least one page")
        self._validate_source(source_pdf)

        data = self._copy_pages(source_pdf, group.page_indices, "company")
        return GeneratedCompanyPdf(
            data=data,
            page_count=len(group.pages),
            date_info=group.date_info,
        )

    def _validate_source(self, source_pdf: bytes) -> None:
        if not isinstance(source_pdf, (bytes, bytearray)):
            raise ValidationError("Source PDF must be bytes")
        if len(source_pdf) == 0:
            raise ValidationError("Source PDF buffer is empty")

    def _copy_pages(self, source_pdf: bytes, page_indices: Iterable[int], kind: str) -> bytes:
        try:
            source = fitz.open(stream=bytes(source_pdf), filetype="pdf")
            try:
                with fitz.open() as target:
                    for page_index in sorted(page_indices):
                        target.insert_pdf(source, from_page=page_index, to_page=page_index)
                    data = target.tobytes()
            finally:
                source.close()
        except Exception as e:
            raise PdfGenerationError(f"Failed to generate {kind} PDF: {e}") from e
        return data


# SEPA transfers

def _csv_field(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def sepa_reference(group: PersonnelGroup) -> str:
    month = group.date_info.month or ""
    year = group.date_info.year or ""
    if month and year:
        return f"Gehalt {month} {year} ({group.personnel_number})"
    return f"Gehalt ({group.personnel_number})"


def generate_sepa_transfers_csv(groups: Sequence[PersonnelGroup]) -> str:
    """Generate SEPA transfer CSV data for salary payments.

    One row per group that has a salary statement page; IBAN and amount come
    from the first such page.

    Args:
        groups: Personnel groups

    Returns:
        CSV text with header "beneficiary_name,iban,amount,currency,reference"

    Raises:
        ValidationError: If groups is not a list or tuple
    """
    if not isinstance(groups, (list, tuple)):
        raise ValidationError("Groups must be a list")

    lines = [SEPA_HEADER]
    for group in groups:
        page = next((p for p in group.pages if is_salary_page(p)), None)
        if page is None:
            logger.warning("No salary statement for personnel number %s, skipped in SEPA export",
                           group.personnel_number)
            continue

        row = [
            group.employee_name or "",
            page.iban or "",
            page.net_amount or "",
            SEPA_CURRENCY,
            sepa_reference(group),
        ]
        lines.append(",".join(_csv_field(value) for value in row))

    return "\n".join(lines)


# Statistics and metadata

def generate_statistics(pages: Sequence[ExtractedPage]) -> ExtractionStats:
    """Summarize form types and personnel numbers of a classified document."""
    form_types: Dict[str, FormTypeCount] = {}
    for page in pages:
        if page.form_type not in form_types:
            form_types[page.form_type] = FormTypeCount(name=get_handler(page.form_type).name)
        form_types[page.form_type].page_count += 1

    personnel_numbers = {p.personnel_number for p in pages if p.personnel_number is not None}

    return ExtractionStats(
        total_pages=len(pages),
        unique_personnel=len(personnel_numbers),
        company_pages=sum(1 for p in pages if p.is_company_wide),
        form_types=form_types,
        pages=[p.model_dump(mode='json', exclude={'raw_text'}) for p in pages],
    )


def build_metadata(personnel_pdfs: Sequence[GeneratedPersonnelPdf],
                   company_pdfs: Sequence[GeneratedCompanyPdf]) -> Dict[str, Any]:
    """Build the metadata document stored next to the generated files."""
    period = None
    if personnel_pdfs:
        period = personnel_pdfs[0].date_info
    elif company_pdfs:
        period = company_pdfs[0].date_info

    return {
        "period": {"year": period.year, "month": period.month} if period else None,
        "fileCount": {
            "personnel": len(personnel_pdfs),
            "company": len(company_pdfs),
        },
    }


class OutputGenerator:
    """Writes generated documents to an output directory or a ZIP bundle."""

    def __init__(self, output_dir: str):
        """Initialize output generator.

        Args:
            output_dir: Output directory path
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _write_bytes(self, filename: str, data: bytes) -> Path:
        output_path = self.output_dir / sanitize_filename(filename)
        with open(output_path, 'wb') as f:
            f.write(data)
        logger.info("Wrote %s", output_path)
        return output_path

    def write_personnel_pdf(self, pdf: GeneratedPersonnelPdf) -> Path:
        return self._write_bytes(personnel_filename(pdf.personnel_number, pdf.date_info), pdf.data)

    def write_company_pdf(self, pdf: GeneratedCompanyPdf) -> Path:
        return self._write_bytes(company_filename(pdf.date_info), pdf.data)

    def write_sepa_csv(self, csv_text: str, filename: str) -> Path:
        return self._write_bytes(filename, csv_text.encode('utf-8'))

    def write_statistics(self, stats: ExtractionStats, filename: str) -> Path:
        """Write statistics as JSON.

        Args:
            stats: Statistics to serialize
            filename: Name of the JSON file

        Returns:
            Path to generated JSON file
        """
        output_path = self.output_dir / sanitize_filename(filename)
        stats_dict = stats.model_dump(mode='json', by_alias=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(stats_dict, f, ensure_ascii=False, indent=2)
        logger.info("Wrote %s", output_path)
        return output_path

    def write_bundle(self, bundle: bytes, filename: str = "datev-extract.zip") -> Path:
        return self._write_bytes(filename, bundle)


def build_bundle(personnel_pdfs: Sequence[GeneratedPersonnelPdf],
                 company_pdfs: Sequence[GeneratedCompanyPdf],
                 sepa_csv: str,
                 sepa_filename: str = "sepa-transfers.csv",
                 metadata_filename: str = "metadata.json",
                 max_size: Optional[int] = None) -> bytes:
    """Pack generated PDFs, the SEPA CSV and metadata into a ZIP archive.

    Returns:
        ZIP archive content

    Raises:
        ValidationError: If the archive is larger than max_size bytes
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w', compression=zipfile.ZIP_DEFLATED, compresslevel=9) as archive:
        for pdf in personnel_pdfs:
            archive.writestr(sanitize_filename(personnel_filename(pdf.personnel_number, pdf.date_info)), pdf.data)
        for pdf in company_pdfs:
            archive.writestr(sanitize_filename(company_filename(pdf.date_info)), pdf.data)
        archive.writestr(sanitize_filename(sepa_filename), sepa_csv)
        metadata = build_metadata(personnel_pdfs, company_pdfs)
        archive.writestr(sanitize_filename(metadata_filename), json.dumps(metadata, ensure_ascii=False, indent=2))
    data = buffer.getvalue()
    if max_size is not None and len(data) > max_size:
        raise ValidationError(
            f"Generated ZIP is {len(data)} bytes, which exceeds the maximum allowed ({max_size})"
        )
    logger.info("Built ZIP bundle (%d bytes)", len(data))
    return data
