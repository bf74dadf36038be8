"""Shared fixtures: small PDFs built in memory with PyMuPDF."""

from typing import List

import fitz  # PyMuPDF
import pytest


def make_pdf(pages: List[List[str]]) -> bytes:
    """Build a PDF with one page per entry, each a list of text lines."""
    doc = fitz.open()
    for lines in pages:
        page = doc.new_page()
        page.insert_text((50, 72), "\n".join(lines), fontsize=10)
    data = doc.tobytes()
    doc.close()
    return data


SALARY_LINES = [
    "Form.-Nr. LOGN17",
    "Lohnabrechnung Oktober 2025",
    "Personalnummer 11111",
    "Gehalt laufend 3.500,00",
    "DE89 3704 0044 0532 0130 00 2.100,50",
]

CONTINUATION_LINES = [
    "Form.-Nr. LOGN17",
    "Seite 2",
]

SECOND_SALARY_LINES = [
    "Form.-Nr. LOGN17",
    "Lohnabrechnung Oktober 2025",
    "Personalnummer 22222",
    "Gehalt laufend 4.000,00",
    "DE12 5001 0517 0648 4898 90 2.450,00",
]

JOURNAL_LINES = [
    "Lohnjournal",
    "Abrechnungsmonat Oktober 2025",
]


@pytest.fixture
def payroll_pdf() -> bytes:
    return make_pdf([SALARY_LINES, CONTINUATION_LINES, SECOND_SALARY_LINES, JOURNAL_LINES])


@pytest.fixture
def pdf_factory():
    return make_pdf
