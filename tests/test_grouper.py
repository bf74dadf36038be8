import pytest

from datev_lohn.errors import ValidationError
from datev_lohn.grouper import group_by_personnel, infer_period
from datev_lohn.models import DateInfo, SalaryPage, SocialSecurityPage, UnknownPage

OCT_2025 = DateInfo(month="Oktober", year="2025")
NOV_2025 = DateInfo(month="November", year="2025")


def salary(index, personnel_number=None, date_info=None, name=None):
    return SalaryPage(
        page_index=index,
        personnel_number=personnel_number,
        employee_name=name,
        date_info=date_info or DateInfo(),
        is_first_page=personnel_number is not None,
    )


def unknown(index, date_info=None):
    return UnknownPage(page_index=index, date_info=date_info or DateInfo())


def by_number(result):
    return {g.personnel_number: g for g in result.personnel_groups}


def test_continuation_page_joins_previous_employee():
    pages = [salary(0, "111"), salary(1), salary(2, "222")]
    groups = by_number(group_by_personnel(pages))

    assert set(groups) == {"111", "222"}
    assert groups["111"].page_indices == [0, 1]
    assert groups["222"].page_indices == [2]


def test_groups_reference_the_extracted_pages():
    pages = [salary(0, "111"), salary(1)]
    group = group_by_personnel(pages).personnel_groups[0]

    assert group.pages[0] is pages[0]
    assert group.pages[1] is pages[1]


def test_company_wide_pages_never_join_employee():
    pages = [salary(0, "111"), unknown(1), salary(2)]
    result = group_by_personnel(pages)

    assert by_number(result)["111"].page_indices == [0, 2]
    assert len(result.company_groups) == 1
    assert result.company_groups[0].page_indices == [1]


def test_leading_continuation_page_goes_to_company():
    pages = [salary(0), salary(1, "111")]
    result = group_by_personnel(pages)

    assert by_number(result)["111"].page_indices == [1]
    assert result.company_groups[0].page_indices == [0]


def test_returning_personnel_number_appends_to_existing_group():
    pages = [salary(0, "111"), salary(1, "222"), SocialSecurityPage(page_index=2, personnel_number="111")]
    groups = by_number(group_by_personnel(pages))

    assert groups["111"].page_indices == [0, 2]
    assert groups["222"].page_indices == [1]


def test_group_name_and_date_come_from_first_page():
    pages = [
        salary(0, "111", OCT_2025, name=None),
        salary(1, "111", NOV_2025, name="Erika Muster"),
    ]
    group = group_by_personnel(pages).personnel_groups[0]

    assert group.employee_name == "Unknown"
    assert group.date_info == OCT_2025


def test_undated_company_pages_get_shared_period():
    pages = [salary(0, "111", OCT_2025), salary(1, "222", OCT_2025), unknown(2), unknown(3, NOV_2025)]
    result = group_by_personnel(pages)

    dates = {g.date_info: g.page_indices for g in result.company_groups}
    assert dates == {OCT_2025: [2], NOV_2025: [3]}


def test_inferred_and_explicit_period_share_a_bucket():
    pages = [salary(0, "111", OCT_2025), unknown(1, OCT_2025), unknown(2)]
    result = group_by_personnel(pages)

    assert len(result.company_groups) == 1
    assert result.company_groups[0].page_indices == [1, 2]
    assert result.company_groups[0].date_info == OCT_2025


def test_disagreeing_periods_leave_company_pages_undated():
    pages = [salary(0, "111", OCT_2025), salary(1, "222", NOV_2025), unknown(2)]
    result = group_by_personnel(pages)

    assert len(result.company_groups) == 1
    assert result.company_groups[0].date_info is None


def test_partial_page_date_is_not_a_period():
    pages = [unknown(0, DateInfo(month=None, year="2025"))]
    result = group_by_personnel(pages)

    assert result.company_groups[0].date_info is None


def test_infer_period():
    assert infer_period([]) is None


def test_empty_input():
    result = group_by_personnel([])

    assert result.personnel_groups == []
    assert result.company_groups == []


def test_rejects_non_list_input():
    with pytest.raises(ValidationError):
        group_by_personnel("not pages")
