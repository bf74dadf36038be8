"""Text patterns and field extraction for the known DATEV payroll forms.

Each form is described by a ``FormHandler`` record holding pure functions.
The registry is closed: ``FORM_HANDLERS`` lists every form the detector can
dispatch to, with ``UNKNOWN_FORM`` as the fallback.
"""

import re
from typing import Callable, Dict, NamedTuple, Optional

from datev_lohn.models import (
    DateInfo, SalaryPage, SocialSecurityPage, UnknownPage,
    LOGN17, LOMS05, UNKNOWN,
)


GERMAN_MONTHS = (
    "Januar", "Februar", "März", "April", "Mai", "Juni", "Juli",
    "August", "September", "Oktober", "November", "Dezember",
)

# Shared patterns. Digits are spelled [0-9] so non-ASCII digits never match.
PERSONNEL_PATTERN = re.compile(
    r'(?:Personalnummer|Personal-Nr\.|Pers\.-Nr\.|PN)\s*:?\s*([0-9]{4,6})', re.IGNORECASE
)
DATE_PATTERN = re.compile(r'(' + '|'.join(GERMAN_MONTHS) + r')\s*([0-9]{4})', re.IGNORECASE)
FORM_NUMBER_PATTERN = re.compile(
    r'(?:Form\.-Nr\.|Formular-Nr\.|F\.-Nr\.)\s*:?\s*([A-Z0-9]+)', re.IGNORECASE
)

# LOGN17 patterns
# Name follows "Pers.-Nr. <nr>*" and a one-token code, ending before the street
SALARY_NAME_PATTERN = re.compile(
    r'Pers\.-Nr\.\s+[0-9]+\*\s+[A-Za-z0-9_]+\s+'
    r'([A-ZÄÖÜ][a-zäöüß]+(?:\s+[A-ZÄÖÜ][a-zäöüß]+)?)'
    r'(?=\s+[A-ZÄÖÜ][a-zäöüß]+straße|$)'
)
GROSS_PATTERN = re.compile(r'Gehalt\s+[A-Z\s]+\s+([0-9]{1,3}(?:[.,][0-9]{3})*[.,][0-9]{2})', re.IGNORECASE)
NET_PATTERN = re.compile(r'DE[0-9]{2}(?:\s+[0-9]{2,4})+\s+(?:[0-9]+\s+)?([0-9]{1,3}(?:[.,][0-9]{3})*[.,][0-9]{2})')
IBAN_PATTERN = re.compile(r'(DE[0-9]{2}(?:\s+[0-9]{2,4}){5,6})(?=\s+[0-9])')
SALARY_FIRST_PAGE_PATTERN = re.compile(r'Personalnummer|LOGN17|Lohnabrechnung', re.IGNORECASE)

# LOMS05 patterns
SOCIAL_SECURITY_FIRST_PAGE_PATTERN = re.compile(
    r'Meldebescheinigung|LOMS05|Sozialversicherung', re.IGNORECASE
)

# Years before this on unknown forms are footnote references, not the period
MIN_PLAUSIBLE_YEAR = 2020


class FormHandler(NamedTuple):
    """Extraction functions for one form type."""
    form_type: str
    name: str
    extract_metadata: Callable[[str, int], object]
    is_first_page: Callable[[str], bool]
    has_personnel_numbers: bool


def normalize_amount(amount: str) -> str:
    """Convert a German formatted amount to a canonical decimal string.

    Args:
        amount: Amount such as "1.234,56"

    Returns:
        Amount such as "1234.56"
    """
    return amount.replace(".", "").replace(",", ".", 1)


def _first_group(pattern: re.Pattern, text: str) -> Optional[str]:
    match = pattern.search(text)
    if match and match.group(1):
        return match.group(1)
    return None


def extract_personnel_number(text: str) -> Optional[str]:
    return _first_group(PERSONNEL_PATTERN, text)


def extract_date(text: str) -> DateInfo:
    """Extract the first "<Monat> <Jahr>" pair from the text."""
    match = DATE_PATTERN.search(text)
    if not match:
        return DateInfo()
    return DateInfo(month=match.group(1), year=match.group(2))


def extract_form_code(text: str) -> Optional[str]:
    """Extract an explicit form number ("Form.-Nr. LOGN17"), uppercased."""
    code = _first_group(FORM_NUMBER_PATTERN, text)
    return code.upper() if code else None


# LOGN17 - Lohnabrechnung

def extract_employee_name(text: str) -> Optional[str]:
    return _first_group(SALARY_NAME_PATTERN, text)


def extract_gross_amount(text: str) -> Optional[str]:
    amount = _first_group(GROSS_PATTERN, text)
    return normalize_amount(amount) if amount else None


def extract_net_amount(text: str) -> Optional[str]:
    amount = _first_group(NET_PATTERN, text)
    return normalize_amount(amount) if amount else None


def extract_iban(text: str) -> Optional[str]:
    iban = _first_group(IBAN_PATTERN, text)
    return re.sub(r'\s', '', iban) if iban else None


def salary_is_first_page(text: str) -> bool:
    return bool(SALARY_FIRST_PAGE_PATTERN.search(text))


def extract_salary_page(text: str, page_index: int) -> SalaryPage:
    """Extract a LOGN17 salary statement page.

    Args:
        text: Page text
        page_index: 0-based page index in the source PDF

    Returns:
        SalaryPage with every field that could be found, None otherwise
    """
    return SalaryPage(
        page_index=page_index,
        raw_text=text,
        personnel_number=extract_personnel_number(text),
        employee_name=extract_employee_name(text),
        date_info=extract_date(text),
        gross_amount=extract_gross_amount(text),
        net_amount=extract_net_amount(text),
        iban=extract_iban(text),
        is_first_page=salary_is_first_page(text),
    )


# LOMS05 - Meldebescheinigung zur Sozialversicherung

def social_security_is_first_page(text: str) -> bool:
    return bool(SOCIAL_SECURITY_FIRST_PAGE_PATTERN.search(text))


def extract_social_security_page(text: str, page_index: int) -> SocialSecurityPage:
    """Extract a LOMS05 page. Only the personnel number and period matter here."""
    return SocialSecurityPage(
        page_index=page_index,
        raw_text=text,
        personnel_number=extract_personnel_number(text),
        date_info=extract_date(text),
        is_first_page=social_security_is_first_page(text),
    )


# Unknown forms

def extract_plausible_date(text: str) -> DateInfo:
    """Like extract_date, but drops the match if its year is implausibly old."""
    date_info = extract_date(text)
    if date_info.year and int(date_info.year) >= MIN_PLAUSIBLE_YEAR:
        return date_info
    return DateInfo()


def unknown_is_first_page(text: str) -> bool:
    return True


def extract_unknown_page(text: str, page_index: int) -> UnknownPage:
    return UnknownPage(
        page_index=page_index,
        raw_text=text,
        detected_form_code=extract_form_code(text),
        date_info=extract_plausible_date(text),
    )


SALARY_FORM = FormHandler(
    form_type=LOGN17,
    name="Lohnabrechnung (Individuell)",
    extract_metadata=extract_salary_page,
    is_first_page=salary_is_first_page,
    has_personnel_numbers=True,
)

SOCIAL_SECURITY_FORM = FormHandler(
    form_type=LOMS05,
    name="Meldebescheinigung zur Sozialversicherung",
    extract_metadata=extract_social_security_page,
    is_first_page=social_security_is_first_page,
    has_personnel_numbers=True,
)

UNKNOWN_FORM = FormHandler(
    form_type=UNKNOWN,
    name="Unbekanntes Formular",
    extract_metadata=extract_unknown_page,
    is_first_page=unknown_is_first_page,
    has_personnel_numbers=False,
)

FORM_HANDLERS: Dict[str, FormHandler] = {
    handler.form_type: handler
    for handler in (SALARY_FORM, SOCIAL_SECURITY_FORM, UNKNOWN_FORM)
}
