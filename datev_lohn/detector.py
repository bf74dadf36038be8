"""Form type detection from page text."""

import logging

from datev_lohn.errors import FormDetectionError
from datev_lohn.forms import FORM_HANDLERS, UNKNOWN_FORM, FormHandler, extract_form_code
from datev_lohn.models import UNKNOWN

logger = logging.getLogger(__name__)


def detect_form_type(text: str) -> str:
    """Detect the form type of a page.

    Only an explicit form number ("Form.-Nr.", "Formular-Nr.", "F.-Nr.") is
    considered. Pages without one, or with a code that has no registered
    handler, are UNKNOWN.

    Args:
        text: Page text

    Returns:
        Form type tag (LOGN17, LOMS05 or UNKNOWN)
    """
    form_code = extract_form_code(text)
    if form_code is None:
        return UNKNOWN

    handler = FORM_HANDLERS.get(form_code)
    if handler is None:
        logger.debug("Unregistered form code %s", form_code)
        return UNKNOWN
    return handler.form_type


def get_handler(form_type: str) -> FormHandler:
    """Get the handler for a form type, falling back to the unknown form."""
    return FORM_HANDLERS.get(form_type, UNKNOWN_FORM)


def require_handler(form_type: str) -> FormHandler:
    """Get the handler for a known form type.

    Unlike get_handler there is no fallback, for callers that only accept
    pages of a registered form.

    Raises:
        FormDetectionError: If form_type is UNKNOWN or has no registered handler
    """
    handler = FORM_HANDLERS.get(form_type)
    if handler is None or handler.form_type == UNKNOWN:
        raise FormDetectionError("No handler registered for this form", form_type or None)
    return handler
