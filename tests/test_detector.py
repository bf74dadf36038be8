import pytest

from datev_lohn.detector import detect_form_type, get_handler, require_handler
from datev_lohn.errors import FormDetectionError
from datev_lohn.forms import SALARY_FORM, SOCIAL_SECURITY_FORM, UNKNOWN_FORM
from datev_lohn.models import SalaryPage, UnknownPage
from datev_lohn.parser import classify_page


def test_detects_registered_codes():
    assert detect_form_type("Form.-Nr. LOGN17 Lohnabrechnung") == "LOGN17"
    assert detect_form_type("Formular-Nr.: LOMS05") == "LOMS05"
    assert detect_form_type("F.-Nr. logn17") == "LOGN17"
    assert detect_form_type("form.-nr.LOMS05") == "LOMS05"


def test_unregistered_code_is_unknown():
    assert detect_form_type("Form.-Nr. LOJO01 Lohnjournal") == "UNKNOWN"


def test_no_marker_is_unknown_even_with_salary_content():
    text = "Lohnabrechnung Oktober 2025 Personalnummer 12345 Gehalt laufend 3.500,00"
    assert detect_form_type(text) == "UNKNOWN"

    page = classify_page(text, 0)
    assert isinstance(page, UnknownPage)
    assert page.personnel_number is None
    assert page.is_company_wide is True


def test_get_handler_defaults_to_unknown():
    assert get_handler("LOGN17") is SALARY_FORM
    assert get_handler("LOMS05") is SOCIAL_SECURITY_FORM
    assert get_handler("UNKNOWN") is UNKNOWN_FORM
    assert get_handler("LSTB99") is UNKNOWN_FORM


def test_classify_page_dispatches_to_handler():
    page = classify_page("Form.-Nr. LOGN17 Personalnummer 4711 Mai 2025", 5)

    assert isinstance(page, SalaryPage)
    assert page.page_index == 5
    assert page.personnel_number == "4711"


def test_require_handler_rejects_unknown_forms():
    assert require_handler("LOGN17") is SALARY_FORM
    assert require_handler(detect_form_type("Formular-Nr.: LOMS05")) is SOCIAL_SECURITY_FORM

    with pytest.raises(FormDetectionError, match="Form UNKNOWN: No handler registered") as excinfo:
        require_handler(detect_form_type("Lohnjournal ohne Formularnummer"))
    assert excinfo.value.form_type == "UNKNOWN"

    with pytest.raises(FormDetectionError, match="Form LSTB99:"):
        require_handler("LSTB99")
