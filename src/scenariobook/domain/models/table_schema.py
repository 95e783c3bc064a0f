from __future__ import annotations

from dataclasses import dataclass

# Column orders must match the header row of each table in the workbook template.

SCENARIO_KIND = "scenario"
LINES_KIND = "lines"
SUB_LINES_KIND = "sub_lines"
FUND_SOURCES_KIND = "fund_sources"


@dataclass(frozen=True, slots=True)
class LogicalTable:
    kind: str
    sheet_name: str
    fields: tuple[str, ...]
    numeric_fields: frozenset[str]

    def __post_init__(self) -> None:
        unknown = self.numeric_fields.difference(self.fields)
        if unknown:
            raise ValueError(f"Numeric fields not in {self.sheet_name} schema: {sorted(unknown)}")

    @property
    def field_count(self) -> int:
        return len(self.fields)


SCENARIO_TABLE = LogicalTable(
    kind=SCENARIO_KIND,
    sheet_name="Data_Scenario",
    fields=(
        "Name",
        "Appr Type",
        "Status",
        "Component",
        "Appropriation Type (from Component)",
        "1000 Expenditures",
        "2000 Expenditures",
        "3000 Expenditures",
        "4000 Expenditures",
        "5000 Expenditures",
        "Final Notes",
        "Fiscal Year 2",
        "Month 2",
        "Actuals Date (from Month 2)",
        "Personal Services Projection Description",
        "Projection Mode",
        "Created By",
        "Created Time",
    ),
    numeric_fields=frozenset(
        {
            "1000 Expenditures",
            "2000 Expenditures",
            "3000 Expenditures",
            "4000 Expenditures",
            "5000 Expenditures",
        }
    ),
)

LINES_TABLE = LogicalTable(
    kind=LINES_KIND,
    sheet_name="Data_Lines",
    fields=(
        "Name",
        "Projection Type",
        "Object Class (from Object Class)",
        "Obj. Type (from Object Class)",
        "Obj. Group (from Object Class)",
        "Object Class with Name",
        "Personal Services?",
        "Pre-Encumbrance",
        "Encumbrance",
        "Expenditure",
        "Expected Expenditures",
        "Total Expenditures",
        "Total Plan (Manual)",
        "Expected Expenditures (Calc)",
        "Notes",
        "RSA Budget",
        "Program Code",
        "RSA Description",
        "PY Actuals",
    ),
    numeric_fields=frozenset(
        {
            "Pre-Encumbrance",
            "Encumbrance",
            "Expenditure",
            "Expected Expenditures",
            "Total Expenditures",
            "Total Plan (Manual)",
            "Expected Expenditures (Calc)",
            "RSA Budget",
            "PY Actuals",
        }
    ),
)

SUB_LINES_TABLE = LogicalTable(
    kind=SUB_LINES_KIND,
    sheet_name="Data_Sub_Lines",
    fields=(
        "Name",
        "Projection Lines",
        "Object Class",
        "Pre-Encumbrances",
        "Encumbrances",
        "Expenditures",
        "Projected Expenditures",
        "Total Projected Spend",
        "Notes",
        "District Note",
        "Total Plan (Manual)",
        "Projected Expenditures (Calc)",
        "Total Expenditures (Calc)",
    ),
    numeric_fields=frozenset(
        {
            "Pre-Encumbrances",
            "Encumbrances",
            "Expenditures",
            "Projected Expenditures",
            "Total Projected Spend",
            "Total Plan (Manual)",
            "Projected Expenditures (Calc)",
            "Total Expenditures (Calc)",
        }
    ),
)

_FUND_SOURCES_FIELDS = (
    "Appr Unit",
    "Fund",
    "Expected Revenue",
    "1000",
    "2000",
    "3000",
    "4000",
    "5000",
    "Total Expenditures",
    "Balance",
    "1000 Exp Budget",
    "2000 Exp Budget",
    "3000 Exp Budget",
    "4000 Exp Budget",
    "5000 Exp Budget",
    "1000 Pending Budget Changes",
    "2000 Pending Budget Changes",
    "3000 Pending Budget Changes",
    "4000 Pending Budget Changes",
    "5000 Pending Budget Changes",
    "1000 Balance",
    "2000 Balance",
    "3000 Balance",
    "4000 Balance",
    "5000 Balance",
    "Support Lines Total Budget",
    "Support Lines Balance",
    "Support Lines Expenditures",
    "Expenditure Budget",
    "Budget Change Notes",
    "Balance (Exp Budget)",
)

FUND_SOURCES_TABLE = LogicalTable(
    kind=FUND_SOURCES_KIND,
    sheet_name="Data_Fund-Sources",
    fields=_FUND_SOURCES_FIELDS,
    numeric_fields=frozenset(_FUND_SOURCES_FIELDS).difference(
        {"Appr Unit", "Fund", "Budget Change Notes"}
    ),
)

# Write order for a report.
LOGICAL_TABLES: tuple[LogicalTable, ...] = (
    SCENARIO_TABLE,
    LINES_TABLE,
    SUB_LINES_TABLE,
    FUND_SOURCES_TABLE,
)
