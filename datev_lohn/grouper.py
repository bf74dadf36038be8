"""Grouping of classified pages into per-employee and company-wide documents."""

from functools import reduce
import logging
from typing import Dict, List, NamedTuple, Optional, Sequence

from datev_lohn.errors import ValidationError
from datev_lohn.models import (
    CompanyGroup, DateInfo, ExtractedPage, GroupingResult, PersonnelGroup,
    UNKNOWN_EMPLOYEE,
)

logger = logging.getLogger(__name__)

NO_DATE_KEY = "no-date"


class _RoutingState(NamedTuple):
    """Accumulator for the single pass over the pages."""
    current_personnel_number: Optional[str]
    personnel_pages: Dict[str, List[ExtractedPage]]
    company_pages: List[ExtractedPage]


def _route_page(state: _RoutingState, page: ExtractedPage) -> _RoutingState:
    # Company-wide pages never join an employee, whatever they contain
    if page.is_company_wide:
        state.company_pages.append(page)
        return state

    current = state.current_personnel_number
    if page.personnel_number:
        current = page.personnel_number

    if current:
        state.personnel_pages.setdefault(current, []).append(page)
    else:
        # Continuation page before any personnel number was seen
        state.company_pages.append(page)

    return state._replace(current_personnel_number=current)


def _build_personnel_group(personnel_number: str, pages: List[ExtractedPage]) -> PersonnelGroup:
    first_page = pages[0]
    return PersonnelGroup(
        personnel_number=personnel_number,
        employee_name=first_page.employee_name or UNKNOWN_EMPLOYEE,
        pages=pages,
        date_info=DateInfo(month=first_page.month, year=first_page.year),
    )


def infer_period(personnel_groups: Sequence[PersonnelGroup]) -> Optional[DateInfo]:
    """Return the period shared by all personnel groups, if there is one.

    Args:
        personnel_groups: Groups built from the same document

    Returns:
        The common DateInfo when every group has the same complete period,
        otherwise None
    """
    if not personnel_groups:
        return None

    first = personnel_groups[0].date_info
    if not first.is_complete:
        return None
    for group in personnel_groups[1:]:
        if (group.date_info.month, group.date_info.year) != (first.month, first.year):
            return None
    return DateInfo(month=first.month, year=first.year)


def _period_key(date_info: DateInfo) -> str:
    return f"{date_info.year}-{date_info.month}"


def _build_company_groups(
    company_pages: List[ExtractedPage], inferred: Optional[DateInfo]
) -> List[CompanyGroup]:
    buckets: Dict[str, List[ExtractedPage]] = {}
    for page in company_pages:
        if page.date_info.is_complete:
            key = _period_key(page.date_info)
        elif inferred is not None:
            key = _period_key(inferred)
        else:
            key = NO_DATE_KEY
        buckets.setdefault(key, []).append(page)

    company_groups = []
    for key, pages in buckets.items():
        date_info = None
        if key != NO_DATE_KEY:
            dated = next((p for p in pages if p.date_info.is_complete), None)
            if dated is not None:
                date_info = DateInfo(month=dated.month, year=dated.year)
            elif inferred is not None:
                date_info = inferred
        company_groups.append(CompanyGroup(pages=pages, date_info=date_info))
    return company_groups


def group_by_personnel(pages: Sequence[ExtractedPage]) -> GroupingResult:
    """Group pages by personnel number.

    Pages are visited once, in order. A page without a personnel number of
    its own continues the most recent employee document; company-wide pages
    always go to the company groups. Undated company pages receive the period
    shared by all personnel groups, when all groups agree on one.

    Args:
        pages: Classified pages in source page order

    Returns:
        GroupingResult with personnel and company groups

    Raises:
        ValidationError: If pages is not a list or tuple
    """
    if not isinstance(pages, (list, tuple)):
        raise ValidationError(f"Pages must be a list. Received: {type(pages).__name__}")

    initial = _RoutingState(current_personnel_number=None, personnel_pages={}, company_pages=[])
    state = reduce(_route_page, pages, initial)

    personnel_groups = [
        _build_personnel_group(personnel_number, group_pages)
        for personnel_number, group_pages in state.personnel_pages.items()
    ]

    inferred = infer_period(personnel_groups)
    if inferred is not None:
        logger.debug("Inferred period %s %s for undated company pages", inferred.month, inferred.year)

    company_groups = _build_company_groups(state.company_pages, inferred)

    logger.info(
        "Grouped %d page(s) into %d personnel and %d company group(s)",
        len(pages), len(personnel_groups), len(company_groups),
    )
    return GroupingResult(personnel_groups=personnel_groups, company_groups=company_groups)
