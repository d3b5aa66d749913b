"""Exceptions raised by the table loader and the advising engine."""


class RetentionError(Exception):
    """Base class for errors raised by this package."""


class TableParseError(RetentionError, ValueError):
    """A table's raw text could not be parsed into rows."""

    def __init__(self, table: str, reason: str):
        super().__init__(f"Could not parse table '{table}': {reason}")
        self.table = table
        self.reason = reason


class MissingTableError(RetentionError, KeyError):
    """No source text was supplied for a requested table."""

    def __init__(self, table: str):
        super().__init__(table)
        self.table = table

    def __str__(self) -> str:
        return f"No source configured for table '{self.table}'"


class StudentNotFoundError(RetentionError, LookupError):
    def __init__(self, student_id):
        super().__init__(f"Student {student_id} not found")
        self.student_id = student_id
