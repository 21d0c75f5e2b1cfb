"""Static catalog of supported compliance tests and the fields they consume.

Field names are the semantic column names the calculation service expects.
Every test lists its fields in the order they appear in its CSV template;
the lists are fixed and never mutated at runtime.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel

# --- Identity / demographic ---
EMPLOYEE_ID = "Employee ID"
FIRST_NAME = "First Name"
LAST_NAME = "Last Name"
DOB = "DOB"
DOH = "DOH"  # Date of hire
PLAN_ENTRY_DATE = "Plan Entry Date"
TERMINATION_DATE = "Termination Date"
EMPLOYMENT_STATUS = "Employment Status"
HOURS_WORKED = "Hours Worked"

# --- Ownership / family attribution ---
OWNERSHIP_PERCENTAGE = "OwnershipPercentage"
FAMILY_RELATIONSHIP = "FamilyRelationshipToOwner"
FAMILY_MEMBER_OWNER_ID = "FamilyMemberOwnerID"

# --- Status flags ---
EXCLUDED_FROM_TEST = "Excluded from Test"
UNION_EMPLOYEE = "Union Employee"
PART_TIME_SEASONAL = "Part-Time / Seasonal"
ELIGIBLE_FOR_PLAN = "Eligible for Plan"
PARTICIPATING = "Participating"
HCE = "HCE"
HCI = "HCI"
KEY_EMPLOYEE = "Key Employee"

# --- Money ---
COMPENSATION = "Compensation"
EMPLOYEE_DEFERRAL = "Employee Deferral"
EMPLOYER_MATCH = "Employer Match"
CONTRIBUTION_PERCENTAGE = "Contribution Percentage"
TOTAL_CONTRIBUTION = "Total Contribution"
PLAN_ASSETS = "Plan Assets"
CAFETERIA_PLAN_BENEFITS = "Cafeteria Plan Benefits"
ELIGIBLE_FOR_FSA = "Eligible for FSA"
HEALTH_FSA_BENEFITS = "Health FSA Benefits"
ELIGIBLE_FOR_DCAP = "Eligible for DCAP"
DCAP_CONTRIBUTIONS = "DCAP Contributions"
ELIGIBLE_FOR_HRA = "Eligible for HRA"
HRA_BENEFITS = "HRA Benefits"

# --- Derived only ---
YEARS_OF_SERVICE = "Years of Service"
PLAN_YEAR_COLUMN = "PlanYear"

DERIVABLE_FIELDS = frozenset({HCE, KEY_EMPLOYEE, YEARS_OF_SERVICE})

# Fields that can be left unmapped because a derive flag can fill them.
OPTIONAL_FIELDS = frozenset({HCE, KEY_EMPLOYEE})

BOOLEAN_FIELDS = frozenset({
    EXCLUDED_FROM_TEST,
    UNION_EMPLOYEE,
    PART_TIME_SEASONAL,
    ELIGIBLE_FOR_PLAN,
    PARTICIPATING,
    HCE,
    KEY_EMPLOYEE,
})

SELECT_ALL = "all"

_EMPLOYMENT_BLOCK = (
    EMPLOYMENT_STATUS, EXCLUDED_FROM_TEST, PLAN_ENTRY_DATE,
    UNION_EMPLOYEE, PART_TIME_SEASONAL,
)


class FieldKind(StrEnum):
    MANDATORY = "mandatory"
    DERIVABLE = "derivable"


class TestDefinition(BaseModel):
    """One supported compliance test."""

    __test__ = False  # not a pytest class
    model_config = {"frozen": True}

    label: str
    code: str
    required_fields: tuple[str, ...]
    route: str


CATALOG: tuple[TestDefinition, ...] = (
    TestDefinition(
        label="ADP Test",
        code="adp",
        route="/test-adp",
        required_fields=(
            EMPLOYEE_ID, FIRST_NAME, LAST_NAME, DOB, DOH, PLAN_ENTRY_DATE,
            EXCLUDED_FROM_TEST, OWNERSHIP_PERCENTAGE, FAMILY_RELATIONSHIP,
            FAMILY_MEMBER_OWNER_ID, EMPLOYMENT_STATUS, UNION_EMPLOYEE,
            PART_TIME_SEASONAL, COMPENSATION, EMPLOYEE_DEFERRAL, HCE,
            HOURS_WORKED, TERMINATION_DATE,
        ),
    ),
    TestDefinition(
        label="ACP Test",
        code="acp",
        route="/test-acp-standard",
        required_fields=(
            LAST_NAME, FIRST_NAME, EMPLOYEE_ID, COMPENSATION, EMPLOYER_MATCH,
            HCE, DOB, DOH, EMPLOYMENT_STATUS, EXCLUDED_FROM_TEST,
            PLAN_ENTRY_DATE, UNION_EMPLOYEE, PART_TIME_SEASONAL,
            CONTRIBUTION_PERCENTAGE, PARTICIPATING, TOTAL_CONTRIBUTION,
            FAMILY_RELATIONSHIP, FAMILY_MEMBER_OWNER_ID,
        ),
    ),
    TestDefinition(
        label="Top Heavy Test",
        code="top_heavy",
        route="/test-top-heavy",
        required_fields=(
            LAST_NAME, FIRST_NAME, EMPLOYEE_ID, PLAN_ASSETS, COMPENSATION,
            KEY_EMPLOYEE, OWNERSHIP_PERCENTAGE, FAMILY_RELATIONSHIP,
            FAMILY_MEMBER_OWNER_ID, DOB, DOH, EXCLUDED_FROM_TEST,
            EMPLOYMENT_STATUS,
        ),
    ),
    TestDefinition(
        label="Average Benefit Test",
        code="average_benefit",
        route="/test-average-benefit",
        required_fields=(
            LAST_NAME, FIRST_NAME, EMPLOYEE_ID, DOB, DOH, EMPLOYMENT_STATUS,
            EXCLUDED_FROM_TEST, UNION_EMPLOYEE, PART_TIME_SEASONAL,
            PLAN_ENTRY_DATE, PLAN_ASSETS, KEY_EMPLOYEE, FAMILY_RELATIONSHIP,
            FAMILY_MEMBER_OWNER_ID,
        ),
    ),
    TestDefinition(
        label="Coverage Test",
        code="coverage",
        route="/test-coverage",
        required_fields=(
            LAST_NAME, FIRST_NAME, EMPLOYEE_ID, ELIGIBLE_FOR_PLAN, HCE,
            DOB, DOH, EMPLOYMENT_STATUS, EXCLUDED_FROM_TEST,
            UNION_EMPLOYEE, PART_TIME_SEASONAL, PLAN_ENTRY_DATE,
            FAMILY_RELATIONSHIP, FAMILY_MEMBER_OWNER_ID,
        ),
    ),
    TestDefinition(
        label="Key Employee Test",
        code="cafeteria_key_employee",
        route="/test-key-employee",
        required_fields=(
            LAST_NAME, FIRST_NAME, EMPLOYEE_ID, COMPENSATION,
            CAFETERIA_PLAN_BENEFITS, KEY_EMPLOYEE, OWNERSHIP_PERCENTAGE,
            FAMILY_MEMBER_OWNER_ID, DOB, DOH, *_EMPLOYMENT_BLOCK,
        ),
    ),
    TestDefinition(
        label="Health FSA Eligibility Test",
        code="health_fsa_eligibility",
        route="/test-health-fsa-eligibility",
        required_fields=(
            LAST_NAME, FIRST_NAME, EMPLOYEE_ID, ELIGIBLE_FOR_FSA, HCE,
            DOB, DOH, *_EMPLOYMENT_BLOCK,
        ),
    ),
    TestDefinition(
        label="Health FSA Benefits Test",
        code="health_fsa_benefits",
        route="/test-health-fsa-benefits",
        required_fields=(
            LAST_NAME, FIRST_NAME, EMPLOYEE_ID, HEALTH_FSA_BENEFITS, HCI,
            DOB, DOH, *_EMPLOYMENT_BLOCK,
        ),
    ),
    TestDefinition(
        label="DCAP Eligibility Test",
        code="dcap_eligibility",
        route="/test-dcap-eligibility",
        required_fields=(
            LAST_NAME, FIRST_NAME, EMPLOYEE_ID, ELIGIBLE_FOR_DCAP, HCE,
            DOB, DOH, *_EMPLOYMENT_BLOCK,
        ),
    ),
    TestDefinition(
        label="DCAP Contributions Test",
        code="dcap_contributions",
        route="/test-dcap-contributions",
        required_fields=(
            LAST_NAME, FIRST_NAME, EMPLOYEE_ID, DCAP_CONTRIBUTIONS, HCE,
            DOB, DOH, *_EMPLOYMENT_BLOCK,
        ),
    ),
    TestDefinition(
        label="HRA Eligibility Test",
        code="hra_eligibility",
        route="/test-hra-eligibility",
        required_fields=(
            LAST_NAME, FIRST_NAME, EMPLOYEE_ID, HCI, ELIGIBLE_FOR_HRA,
            DOB, DOH, *_EMPLOYMENT_BLOCK,
        ),
    ),
    TestDefinition(
        label="HRA Benefits Test",
        code="hra_benefits",
        route="/test-hra-benefits",
        required_fields=(
            LAST_NAME, FIRST_NAME, EMPLOYEE_ID, HRA_BENEFITS, HCE,
            DOB, DOH, *_EMPLOYMENT_BLOCK,
        ),
    ),
)

CATALOG_BY_CODE: dict[str, TestDefinition] = {t.code: t for t in CATALOG}
CATALOG_BY_LABEL: dict[str, TestDefinition] = {t.label: t for t in CATALOG}


def field_kind(field: str) -> FieldKind:
    """Classify a field as mandatory or derivable."""
    return FieldKind.DERIVABLE if field in DERIVABLE_FIELDS else FieldKind.MANDATORY
