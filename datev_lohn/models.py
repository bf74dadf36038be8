"""Data models for extracted pages and page groups."""

from typing import Annotated, Any, List, Optional, Dict, Union, Literal
from pydantic import BaseModel, ConfigDict, Field


LOGN17 = "LOGN17"
LOMS05 = "LOMS05"
UNKNOWN = "UNKNOWN"

UNKNOWN_EMPLOYEE = "Unknown"


class DateInfo(BaseModel):
    """Period a page or group pertains to (German month name and year)."""
    model_config = ConfigDict(frozen=True)

    month: Optional[str] = None
    year: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.month and self.year)


class _Page(BaseModel):
    model_config = ConfigDict(frozen=True)

    page_index: int = Field(..., ge=0, description="0-based position in the source PDF")
    raw_text: str = ""
    date_info: DateInfo = Field(default_factory=DateInfo)

    @property
    def month(self) -> Optional[str]:
        return self.date_info.month

    @property
    def year(self) -> Optional[str]:
        return self.date_info.year


class SalaryPage(_Page):
    """LOGN17 - individual salary statement (Lohnabrechnung)."""
    form_type: Literal["LOGN17"] = LOGN17
    personnel_number: Optional[str] = None
    employee_name: Optional[str] = None
    gross_amount: Optional[str] = Field(None, description="Brutto as canonical decimal string")
    net_amount: Optional[str] = Field(None, description="Netto as canonical decimal string")
    iban: Optional[str] = None
    is_first_page: bool = False
    is_company_wide: Literal[False] = False


class SocialSecurityPage(_Page):
    """LOMS05 - social security notice (Meldebescheinigung zur Sozialversicherung)."""
    form_type: Literal["LOMS05"] = LOMS05
    personnel_number: Optional[str] = None
    employee_name: None = None
    is_first_page: bool = False
    is_company_wide: Literal[False] = False


class UnknownPage(_Page):
    """Unrecognized form, always treated as a company-wide page."""
    form_type: Literal["UNKNOWN"] = UNKNOWN
    detected_form_code: Optional[str] = None
    personnel_number: None = None
    employee_name: None = None
    is_first_page: Literal[True] = True
    is_company_wide: Literal[True] = True


ExtractedPage = Annotated[
    Union[SalaryPage, SocialSecurityPage, UnknownPage],
    Field(discriminator="form_type"),
]


def is_salary_page(page: "ExtractedPage") -> bool:
    return page.form_type == LOGN17


def is_social_security_page(page: "ExtractedPage") -> bool:
    return page.form_type == LOMS05


def is_unknown_page(page: "ExtractedPage") -> bool:
    return page.form_type == UNKNOWN


def is_employee_page(page: "ExtractedPage") -> bool:
    """True for page types that can carry a personnel number."""
    return page.form_type in (LOGN17, LOMS05)


# Grouping models

class PersonnelGroup(BaseModel):
    """Pages belonging to a single employee, in source order."""
    model_config = ConfigDict(frozen=True)

    personnel_number: str = Field(..., min_length=1)
    employee_name: str = UNKNOWN_EMPLOYEE
    pages: List[ExtractedPage] = Field(default_factory=list)
    date_info: DateInfo = Field(default_factory=DateInfo, description="Taken from the group's first page")

    @property
    def page_indices(self) -> List[int]:
        return [page.page_index for page in self.pages]


class CompanyGroup(BaseModel):
    """Company-wide pages sharing one period (or none)."""
    model_config = ConfigDict(frozen=True)

    pages: List[ExtractedPage] = Field(default_factory=list)
    date_info: Optional[DateInfo] = None

    @property
    def page_indices(self) -> List[int]:
        return [page.page_index for page in self.pages]


class GroupingResult(BaseModel):
    """Output of the page grouper."""
    model_config = ConfigDict(frozen=True)

    personnel_groups: List[PersonnelGroup] = []
    company_groups: List[CompanyGroup] = []


# Output models

class GeneratedPersonnelPdf(BaseModel):
    """Serialized PDF for one employee."""
    data: bytes
    page_count: int
    personnel_number: str
    employee_name: str
    date_info: DateInfo


class GeneratedCompanyPdf(BaseModel):
    """Serialized PDF for one company-wide period."""
    data: bytes
    page_count: int
    date_info: Optional[DateInfo] = None


class FormTypeCount(BaseModel):
    """Number of pages classified as one form type."""
    name: str
    page_count: int = Field(0, serialization_alias="pageCount")


class ExtractionStats(BaseModel):
    """Statistics over a classified document."""
    total_pages: int = Field(..., serialization_alias="totalPages")
    unique_personnel: int = Field(..., serialization_alias="uniquePersonnel")
    company_pages: int = Field(..., serialization_alias="companyPages")
    form_types: Dict[str, FormTypeCount] = Field(default_factory=dict, serialization_alias="formTypes")
    pages: List[Dict[str, Any]] = []
