"""
retention/rules.py

Small named business rules shared by the engine: grade letters, derived
credits, display rounding and note wording.
"""

from __future__ import annotations

import math
from typing import Optional

# Lower bound (inclusive) of course GPA for each letter, highest first.
LETTER_GRADE_CUTOFFS = [
    (4.0, "A"),
    (3.7, "A-"),
    (3.3, "B+"),
    (3.0, "B"),
    (2.7, "B-"),
    (2.3, "C+"),
    (2.0, "C"),
    (1.7, "C-"),
    (1.3, "D+"),
    (1.0, "D"),
]

NO_GRADE = "N/A"

# Credits assumed for an enrollment whose course is missing from the catalogue.
FALLBACK_CREDITS = 3


def is_missing(value) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def grade_to_letter(course_gpa: Optional[float]) -> str:
    if is_missing(course_gpa):
        return NO_GRADE
    for cutoff, letter in LETTER_GRADE_CUTOFFS:
        if course_gpa >= cutoff:
            return letter
    return "F"


def derive_credits(level: Optional[float]) -> int:
    """
    Credits are not stored anywhere; they are approximated from the course
    number: floor(level / 100) + 2, so a 230-level course is worth 4.
    """
    if is_missing(level):
        return FALLBACK_CREDITS
    return int(math.floor(level / 100)) + 2


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like a spreadsheet does (2.25 -> 2.3), not banker's rounding."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def humanize_intervention(intervention_type: str, note_date: str) -> str:
    """
    >>> humanize_intervention("advising_meeting", "2024-09-12")
    'Advising meeting on 2024-09-12'
    """
    text = str(intervention_type).replace("_", " ").strip()
    if text:
        text = text[0].upper() + text[1:]
    return f"{text} on {note_date}"
