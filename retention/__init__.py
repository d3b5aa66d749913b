"""Risk scoring and table joins behind the student retention advising dashboard."""

from retention.engine import AdvisingEngine, paginate
from retention.errors import MissingTableError, StudentNotFoundError, TableParseError
from retention.risk import RiskAssessment, calculate_risk
from retention.rules import derive_credits, grade_to_letter
from retention.tables import TableRepository, parse_table

__all__ = [
    "AdvisingEngine",
    "MissingTableError",
    "RiskAssessment",
    "StudentNotFoundError",
    "TableParseError",
    "TableRepository",
    "calculate_risk",
    "derive_credits",
    "grade_to_letter",
    "paginate",
    "parse_table",
]
