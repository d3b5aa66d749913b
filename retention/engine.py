"""
retention/engine.py

Join & aggregation engine.

Every public method is a pure function of the repository's tables and its
arguments, and returns a plain JSON-ready dict keyed in camelCase to match
the dashboard's contract. Nothing here writes back to a table: filters and
joins always produce new frames.

Join keys
---------
- student_id links every per-student table
- term_id scopes enrollments, grades, attendance, LMS activity and term GPAs
- course_id links enrollments, grades and attendance to the course catalogue
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from retention.config import DEFAULT_PAGE_SIZE, DEFAULT_TERM_ID
from retention.errors import StudentNotFoundError
from retention.risk import RISK_TIERS, calculate_risk, score_frame
from retention.rules import derive_credits, grade_to_letter, humanize_intervention, round_half_up
from retention.tables import TableRepository

logger = logging.getLogger(__name__)

UNKNOWN_COURSE = "Unknown Course"

GPA_BINS = [0.0, 1.0, 2.0, 2.5, 3.0, 3.5, np.inf]
GPA_BIN_LABELS = ["0.0-1.0", "1.0-2.0", "2.0-2.5", "2.5-3.0", "3.0-3.5", "3.5-4.0"]


def _native(value: Any) -> Any:
    """numpy scalar -> Python scalar, NaN -> None."""
    if value is None:
        return None
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def _rounded_mean(series: pd.Series, digits: int) -> float:
    values = series.dropna()
    if values.empty:
        return 0.0
    return round_half_up(float(values.mean()), digits)


def _filter_unset(value: Optional[str]) -> bool:
    return value is None or value.strip() == "" or value.strip().lower() == "all"


def paginate(items: Sequence, page: int, page_size: int) -> Tuple[list, Dict[str, int]]:
    """
    Slice one page (1-indexed) out of ``items`` in their existing order.

    A page past the end is not an error: it yields no items, and the
    metadata still reports the requested page.
    """
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")

    total = len(items)
    start = (page - 1) * page_size
    pagination = {
        "currentPage": page,
        "pageSize": page_size,
        "totalFiltered": total,
        "totalPages": math.ceil(total / page_size),
    }
    return list(items[start:start + page_size]), pagination


class AdvisingEngine:
    """Builds dashboard view models from a TableRepository."""

    def __init__(self, repository: TableRepository, term_id: int = DEFAULT_TERM_ID):
        self.repository = repository
        self.term_id = term_id

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------
    def _attendance_by_student(self) -> pd.Series:
        attendance = self.repository.attendance()
        return attendance.groupby("student_id")["attendance_pct"].mean()

    def _roster_frame(self) -> pd.DataFrame:
        """
        One row per student in table order, with averaged attendance and
        risk columns attached.
        """
        students = self.repository.students()
        frame = students[["student_id", "name", "major", "cumulative_gpa"]].copy()

        # Students with no attendance rows count as 0% attended.
        means = frame["student_id"].map(self._attendance_by_student()).fillna(0.0)
        frame["attendance_pct"] = means.map(lambda v: round_half_up(float(v), 1))

        scoring_input = frame.assign(cumulative_gpa=frame["cumulative_gpa"].fillna(0.0))
        return frame.join(score_frame(scoring_input))

    @staticmethod
    def _roster_rows(frame: pd.DataFrame) -> List[Dict[str, Any]]:
        return [
            {
                "studentId": _native(row.student_id),
                "name": _native(row.name),
                "major": _native(row.major),
                "riskTier": str(row.risk_tier),
                "riskScore": int(row.risk_score),
                "termGpa": _native(row.cumulative_gpa),
                "attendancePct": float(row.attendance_pct),
            }
            for row in frame.itertuples(index=False)
        ]

    @staticmethod
    def _summary(frame: pd.DataFrame) -> Dict[str, Any]:
        tiers = frame["risk_tier"].value_counts()
        return {
            "totalStudents": int(len(frame)),
            "highRiskStudents": int(tiers.get("High", 0)),
            "mediumRiskStudents": int(tiers.get("Medium", 0)),
            "lowRiskStudents": int(tiers.get("Low", 0)),
            "averageTermGpa": _rounded_mean(frame["cumulative_gpa"], 2),
            "averageAttendance": _rounded_mean(frame["attendance_pct"], 1),
        }

    def roster(self) -> List[Dict[str, Any]]:
        return self._roster_rows(self._roster_frame())

    def advisor_dashboard(
        self,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        risk_filter: Optional[str] = None,
        major_filter: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Summary statistics over every student, plus one page of the roster.

        ``risk_filter`` matches the tier case-insensitively; ``major_filter``
        must match the major exactly. ``None``, ``""`` and ``"all"`` disable a
        filter. Both filters apply before pagination.
        """
        frame = self._roster_frame()
        summary = self._summary(frame)

        filtered = frame
        if not _filter_unset(risk_filter):
            filtered = filtered[filtered["risk_tier"].str.lower() == risk_filter.strip().lower()]
        if not _filter_unset(major_filter):
            filtered = filtered[filtered["major"] == major_filter]

        rows, pagination = paginate(self._roster_rows(filtered), page, page_size)
        return {**summary, "studentRows": rows, "pagination": pagination}

    def search_students(
        self,
        query: str = "",
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Dict[str, Any]:
        """Case-insensitive substring search over name or major."""
        frame = self._roster_frame()

        needle = (query or "").lower()
        if needle:
            in_name = frame["name"].astype(str).str.lower().str.contains(needle, regex=False)
            in_major = frame["major"].astype(str).str.lower().str.contains(needle, regex=False)
            frame = frame[in_name | in_major]

        rows, pagination = paginate(self._roster_rows(frame), page, page_size)
        return {"query": query or "", "students": rows, "pagination": pagination}

    # ------------------------------------------------------------------
    # Per-student views
    # ------------------------------------------------------------------
    def _find_student(self, student_id: int) -> pd.Series:
        students = self.repository.students()
        match = students[students["student_id"] == student_id]
        if match.empty:
            raise StudentNotFoundError(student_id)
        return match.iloc[0]

    def _student_attendance_pct(self, student_id: int) -> float:
        attendance = self.repository.attendance()
        values = attendance.loc[attendance["student_id"] == student_id, "attendance_pct"].dropna()
        if values.empty:
            return 0.0
        return round_half_up(float(values.mean()), 1)

    def _course_catalogue(self) -> pd.DataFrame:
        return self.repository.courses().drop_duplicates("course_id").set_index("course_id")

    def _term_gpas(self, student_id: int) -> pd.DataFrame:
        term_gpas = self.repository.term_gpas()
        return term_gpas[term_gpas["student_id"] == student_id].sort_values("term_id", kind="stable")

    def _current_term_gpa(self, student_id: int, term_id: int) -> Optional[float]:
        gpas = self._term_gpas(student_id)
        match = gpas[gpas["term_id"] == term_id]
        if match.empty:
            return None
        return _native(match["term_gpa"].iloc[0])

    def _courses(self, student_id: int, term_id: int) -> List[Dict[str, Any]]:
        enrollments = self.repository.enrollments()
        enrolled = enrollments[
            (enrollments["student_id"] == student_id) & (enrollments["term_id"] == term_id)
        ]

        catalogue = self._course_catalogue()
        grades = self.repository.enrollment_grades()
        graded = grades[
            (grades["student_id"] == student_id) & (grades["term_id"] == term_id)
        ].drop_duplicates("course_id").set_index("course_id")

        courses = []
        for enrollment in enrolled.itertuples(index=False):
            course_id = enrollment.course_id
            if course_id in catalogue.index:
                course = catalogue.loc[course_id]
                title = _native(course["title"])
                credits = derive_credits(_native(course["level"]))
            else:
                title = UNKNOWN_COURSE
                credits = derive_credits(None)

            if course_id in graded.index:
                grade = graded.loc[course_id]
                course_gpa = _native(grade["course_gpa"])
                numeric_grade = _native(grade["numeric_grade"])
            else:
                course_gpa = None
                numeric_grade = None

            courses.append({
                "courseId": _native(course_id),
                "courseName": title,
                "credits": credits,
                "grade": grade_to_letter(course_gpa),
                "numericGrade": numeric_grade,
                "courseGpa": course_gpa,
            })
        return courses

    def _attendance_by_course(self, student_id: int, term_id: int) -> List[Dict[str, Any]]:
        attendance = self.repository.attendance()
        rows = attendance[
            (attendance["student_id"] == student_id) & (attendance["term_id"] == term_id)
        ]
        means = rows.groupby("course_id", sort=False)["attendance_pct"].mean()

        catalogue = self._course_catalogue()
        result = []
        for course_id, mean in means.items():
            title = _native(catalogue.loc[course_id, "title"]) if course_id in catalogue.index else UNKNOWN_COURSE
            result.append({
                "courseId": _native(course_id),
                "courseName": title,
                "percentage": round_half_up(float(mean), 1),
            })
        return result

    def _lms_activity(self, student_id: int, term_id: int) -> Dict[str, List[Any]]:
        events = self.repository.lms_events()
        weekly = (
            events[(events["student_id"] == student_id) & (events["term_id"] == term_id)]
            .sort_values("week_number", kind="stable")
            .drop_duplicates("week_number", keep="first")
        )

        hours = [
            None if _native(minutes) is None else round_half_up(float(minutes) / 60, 1)
            for minutes in weekly["time_on_platform_min"]
        ]
        return {
            "weeks": [_native(v) for v in weekly["week_number"]],
            "logins": [_native(v) for v in weekly["logins"]],
            "hoursOnPlatform": hours,
            "assignmentsSubmitted": [_native(v) for v in weekly["assignments_submitted"]],
        }

    def _financial_aid(self, student_id: int) -> Dict[str, Any]:
        aid = self.repository.financial_aid()
        match = aid[aid["student_id"] == student_id]
        row = match.iloc[0] if not match.empty else None

        def field(column: str) -> Any:
            return None if row is None else _native(row[column])

        return {
            "householdIncomeUsd": field("household_income_usd"),
            "scholarshipFlag": field("scholarship_flag"),
            "aidAmountUsd": field("aid_amount_usd"),
            "workHoursPerWeek": field("work_hours_per_week"),
            "outstandingBalanceUsd": field("outstanding_balance_usd"),
        }

    @staticmethod
    def _note_rows(notes: pd.DataFrame) -> List[Dict[str, Any]]:
        return [
            {
                "noteId": _native(note.note_id),
                "termId": _native(note.term_id),
                "type": _native(note.intervention_type),
                "date": _native(note.note_date),
                "description": humanize_intervention(note.intervention_type, note.note_date),
            }
            for note in notes.itertuples(index=False)
        ]

    def _profile(self, student: pd.Series) -> Dict[str, Any]:
        student_id = _native(student["student_id"])
        cumulative_gpa = _native(student["cumulative_gpa"])
        attendance_pct = self._student_attendance_pct(student_id)
        risk = calculate_risk(cumulative_gpa if cumulative_gpa is not None else 0.0, attendance_pct)

        first_gen = _native(student["first_gen"])
        return {
            "studentId": student_id,
            "name": _native(student["name"]),
            "major": _native(student["major"]),
            "gender": _native(student["gender"]),
            "age": _native(student["age"]),
            "residencyStatus": _native(student["residency_status"]),
            "firstGen": None if first_gen is None else first_gen == 1,
            "creditsCompleted": _native(student["credits_completed"]),
            "cumulativeGpa": cumulative_gpa,
            "attendancePct": attendance_pct,
            **risk.to_dict(),
        }

    def student_dashboard(self, student_id: int, term_id: Optional[int] = None) -> Dict[str, Any]:
        """
        Everything the student dashboard shows for one student and term.

        Raises StudentNotFoundError for an unknown id; missing joined data
        (no grade row, no aid row, no activity) never raises.
        """
        term_id = self.term_id if term_id is None else term_id
        student = self._find_student(student_id)
        student_id = _native(student["student_id"])

        notes = self.repository.advising_notes()
        student_notes = notes[notes["student_id"] == student_id]

        gpa_trend = [
            {"termId": _native(row.term_id), "term": f"Term {_native(row.term_id)}", "gpa": _native(row.term_gpa)}
            for row in self._term_gpas(student_id).itertuples(index=False)
        ]

        return {
            **self._profile(student),
            "termId": term_id,
            "currentTermGpa": self._current_term_gpa(student_id, term_id),
            "gpaTrend": gpa_trend,
            "courses": self._courses(student_id, term_id),
            "attendanceByCourse": self._attendance_by_course(student_id, term_id),
            "lmsActivity": self._lms_activity(student_id, term_id),
            "financialAid": self._financial_aid(student_id),
            "notes": self._note_rows(student_notes),
        }

    def notes_context(self, student_id: int, term_id: Optional[int] = None) -> Dict[str, Any]:
        """Student summary plus that student's notes for the term, newest first."""
        term_id = self.term_id if term_id is None else term_id
        student = self._find_student(student_id)
        profile = self._profile(student)
        student_id = profile["studentId"]

        notes = self.repository.advising_notes()
        term_notes = notes[
            (notes["student_id"] == student_id) & (notes["term_id"] == term_id)
        ].sort_values("note_date", ascending=False, kind="stable")

        return {
            "student": {
                "id": student_id,
                "name": profile["name"],
                "major": profile["major"],
                "riskTier": profile["riskTier"],
                "riskScore": profile["riskScore"],
                "termGpa": self._current_term_gpa(student_id, term_id),
                "attendance": profile["attendancePct"],
            },
            "termId": term_id,
            "notes": self._note_rows(term_notes),
        }

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------
    def risk_report(self, term_id: Optional[int] = None) -> Dict[str, Any]:
        """Tier distribution, term GPA histogram and per-major counts."""
        term_id = self.term_id if term_id is None else term_id
        frame = self._roster_frame()
        summary = self._summary(frame)
        total = summary["totalStudents"]

        tiers = frame["risk_tier"].value_counts()
        risk_distribution = []
        for tier in RISK_TIERS:
            count = int(tiers.get(tier, 0))
            risk_distribution.append({
                "name": f"{tier} Risk",
                "tier": tier,
                "value": count,
                "percentage": round_half_up(count / total * 100, 1) if total else 0.0,
            })

        term_gpas = self.repository.term_gpas()
        gpas = term_gpas.loc[term_gpas["term_id"] == term_id, "term_gpa"]
        bins = pd.cut(gpas, bins=GPA_BINS, right=False, labels=GPA_BIN_LABELS)
        bin_counts = bins.value_counts().reindex(GPA_BIN_LABELS, fill_value=0)
        gpa_distribution = [
            {"range": label, "count": int(count)} for label, count in bin_counts.items()
        ]

        by_major = (
            frame.assign(is_high=frame["risk_tier"] == "High")
            .groupby("major", sort=True)
            .agg(students=("student_id", "size"), highRisk=("is_high", "sum"))
        )
        major_breakdown = [
            {"major": major, "students": int(row.students), "highRisk": int(row.highRisk)}
            for major, row in by_major.iterrows()
        ]

        logger.debug("Built risk report for term %s over %d students", term_id, total)
        return {
            **summary,
            "termId": term_id,
            "riskDistribution": risk_distribution,
            "gpaDistribution": gpa_distribution,
            "majorBreakdown": major_breakdown,
        }
