"""
retention/make_synthetic_data.py

Creates a realistic-looking synthetic advising data set: the nine tables the
dashboard reads, with consistent join keys across all of them.

Outputs (one CSV per table, see data_dictionary.TABLE_FILES):
  data/students.csv, data/attendance.csv, data/courses.csv, ...

Run
---
python -m retention.make_synthetic_data --n-students 500 --out-dir data
"""

from __future__ import annotations

import argparse
from datetime import date, timedelta
from pathlib import Path
from typing import Dict

import numpy as np
import pandas as pd

from retention.data_dictionary import DATA_DICTIONARY, TABLE_FILES


FIRST_NAMES = [
    "Aarav", "Emily", "Daniel", "Sofia", "Mei", "James", "Fatima", "Lucas",
    "Priya", "Noah", "Amara", "Mateo", "Hana", "Omar", "Grace", "Kwame",
]
LAST_NAMES = [
    "Patel", "Nguyen", "Owusu", "Martinez", "Chen", "Wilson", "Hassan", "Brown",
    "Singh", "Garcia", "Kim", "Okafor", "Rossi", "Ali", "Johnson", "Mensah",
]
MAJORS = [
    "Computer Science", "Biology", "Business Admin", "Art History",
    "Engineering", "Psychology",
]
RESIDENCY = ["In-State", "Out-of-State", "International"]

COURSES = [
    (101, "CS", 120, "Intro to Programming"),
    (102, "CS", 230, "Data Structures"),
    (103, "BIO", 110, "General Biology"),
    (104, "BIO", 301, "Molecular Genetics"),
    (105, "BUS", 150, "Principles of Management"),
    (106, "ENG", 210, "Statics"),
    (107, "PSY", 100, "Intro to Psychology"),
    (108, "MATH", 140, "Calculus I"),
    (109, "ENGL", 101, "Academic Writing"),
    (110, "ART", 220, "Renaissance Art"),
]

INTERVENTIONS = [
    "advising_meeting", "tutoring_referral", "financial_aid_referral",
    "check_in", "counseling_referral",
]

TERM_MONTHS = {1: [9, 10, 11, 12], 2: [1, 2, 3, 4]}
TERM_START = {1: date(2024, 9, 2), 2: date(2025, 1, 13)}
WEEKS_PER_TERM = 12


def sigmoid(x: np.ndarray) -> np.ndarray:
    return 1 / (1 + np.exp(-x))


def gpa_from_grade(numeric_grade: np.ndarray) -> np.ndarray:
    """Map a 0–100 grade onto the 4.0 scale in 0.1 steps (60 -> 1.0, 90+ -> 4.0)."""
    return np.round(np.clip((numeric_grade - 50) / 10, 0.0, 4.0), 1)


def generate_advising_dataset(
    n_students: int = 500,
    random_state: int = 42,
) -> Dict[str, pd.DataFrame]:
    rng = np.random.default_rng(random_state)

    # A latent "engagement" factor drives attendance, grades and LMS activity
    # so the tables tell a consistent story about each student.
    engagement = rng.normal(0, 1, size=n_students)

    student_ids = np.arange(1, n_students + 1)
    names = [
        f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}" for _ in range(n_students)
    ]
    cumulative_gpa = np.round(np.clip(2.9 + 0.55 * engagement + rng.normal(0, 0.3, n_students), 0.0, 4.0), 2)

    students = pd.DataFrame(
        {
            "student_id": student_ids,
            "name": names,
            "gender": rng.choice(["Female", "Male", "Nonbinary"], size=n_students, p=[0.5, 0.46, 0.04]),
            "age": rng.integers(17, 31, size=n_students),
            "residency_status": rng.choice(RESIDENCY, size=n_students, p=[0.6, 0.3, 0.1]),
            "first_gen": rng.binomial(1, 0.35, size=n_students),
            "major": rng.choice(MAJORS, size=n_students),
            "cumulative_gpa": cumulative_gpa,
            "credits_completed": rng.integers(0, 121, size=n_students),
        }
    )

    courses = pd.DataFrame(COURSES, columns=["course_id", "dept", "level", "title"])
    course_ids = courses["course_id"].to_numpy()

    enrollment_rows, grade_rows, attendance_rows = [], [], []
    lms_rows, term_gpa_rows, note_rows = [], [], []
    enrollment_id = 1
    note_id = 1

    for i, student_id in enumerate(student_ids):
        base_attendance = 100 * sigmoid(2.2 + 0.9 * engagement[i])

        for term_id, months in TERM_MONTHS.items():
            taken = rng.choice(course_ids, size=int(rng.integers(3, 6)), replace=False)
            term_course_gpas = []

            for course_id in taken:
                enrollment_rows.append((enrollment_id, student_id, course_id, term_id))

                # Roughly one enrollment in twenty has no grade posted yet.
                if rng.random() > 0.05:
                    numeric_grade = float(np.clip(rng.normal(80 + 8 * engagement[i], 7), 30, 100))
                    course_gpa = float(gpa_from_grade(np.array([numeric_grade]))[0])
                    term_course_gpas.append(course_gpa)
                    grade_rows.append(
                        (enrollment_id, student_id, course_id, term_id, round(numeric_grade, 1), course_gpa)
                    )
                enrollment_id += 1

                for month in months:
                    pct = float(np.clip(base_attendance + rng.normal(0, 6), 0, 100))
                    attendance_rows.append((student_id, term_id, course_id, month, round(pct, 1)))

            if term_course_gpas:
                term_gpa_rows.append((student_id, term_id, round(float(np.mean(term_course_gpas)), 2)))

            for week in range(1, WEEKS_PER_TERM + 1):
                logins = int(rng.poisson(max(0.5, 5 + 2 * engagement[i])))
                minutes = float(np.clip(rng.normal(240 + 90 * engagement[i], 60), 0, 1200))
                submitted = int(rng.poisson(max(0.2, 2 + 0.8 * engagement[i])))
                lms_rows.append((student_id, term_id, week, logins, round(minutes, 1), submitted))

            # Struggling students see an advisor more often.
            n_notes = int(rng.poisson(max(0.1, 0.6 - 0.8 * engagement[i])))
            for _ in range(n_notes):
                when = TERM_START[term_id] + timedelta(days=int(rng.integers(0, WEEKS_PER_TERM * 7)))
                note_rows.append((note_id, student_id, term_id, rng.choice(INTERVENTIONS), when.isoformat()))
                note_id += 1

    # Not every student has a financial aid record.
    has_aid = rng.random(n_students) < 0.8
    aid_ids = student_ids[has_aid]
    n_aid = len(aid_ids)
    financial_aid = pd.DataFrame(
        {
            "student_id": aid_ids,
            "household_income_usd": np.round(np.clip(rng.lognormal(11, 0.6, n_aid), 8000, 400000), -2),
            "scholarship_flag": rng.binomial(1, 0.3, size=n_aid),
            "aid_amount_usd": np.round(np.clip(rng.normal(9000, 4000, n_aid), 0, 30000), -1),
            "work_hours_per_week": np.clip(rng.poisson(12, size=n_aid), 0, 40),
            "outstanding_balance_usd": np.round(np.clip(rng.normal(1500, 2000, n_aid), 0, 20000), -1),
        }
    )

    def frame(table: str, rows) -> pd.DataFrame:
        return pd.DataFrame(rows, columns=list(DATA_DICTIONARY[table]))

    return {
        "students": students,
        "attendance": frame("attendance", attendance_rows),
        "courses": courses,
        "enrollments": frame("enrollments", enrollment_rows),
        "enrollment_grades": frame("enrollment_grades", grade_rows),
        "financial_aid": financial_aid,
        "lms_events": frame("lms_events", lms_rows),
        "term_gpas": frame("term_gpas", term_gpa_rows),
        "advising_notes": frame("advising_notes", note_rows),
    }


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate the synthetic advising tables.")
    parser.add_argument("--n-students", type=int, default=500, help="Number of students to generate.")
    parser.add_argument("--random-state", type=int, default=42, help="Random seed for reproducibility.")
    parser.add_argument("--out-dir", type=str, default="data", help="Folder to write the CSV files to.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    tables = generate_advising_dataset(n_students=args.n_students, random_state=args.random_state)

    for name, filename in TABLE_FILES.items():
        out_path = out_dir / filename
        tables[name].to_csv(out_path, index=False)
        print(f"Wrote {len(tables[name]):>6} rows to {out_path}")

    # Quick sanity check on the joins
    students = tables["students"]
    print("Students with attendance:", tables["attendance"]["student_id"].nunique(), "/", len(students))
    print("Mean cumulative GPA:", round(float(students["cumulative_gpa"].mean()), 2))


if __name__ == "__main__":
    main()
