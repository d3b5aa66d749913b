"""
retention/data_dictionary.py

Column -> description mappings for the nine source tables.
The loader treats every column listed here as required in that table's header.
"""

TABLE_FILES = {
    "students": "students.csv",
    "attendance": "attendance.csv",
    "courses": "courses.csv",
    "enrollments": "enrollments.csv",
    "enrollment_grades": "enrollment_grades.csv",
    "financial_aid": "financial_aid.csv",
    "lms_events": "lms_events.csv",
    "term_gpas": "term_gpas.csv",
    "advising_notes": "advising_notes.csv",
}

DATA_DICTIONARY = {
    "students": {
        "student_id": "Unique identifier for the student; join key for every other table.",
        "name": "Student full name.",
        "gender": "Self-reported gender.",
        "age": "Age in years.",
        "residency_status": "In-state / out-of-state / international.",
        "first_gen": "First-generation college student flag (1 = yes).",
        "major": "Declared major.",
        "cumulative_gpa": "Cumulative GPA on a 0–4.0 scale.",
        "credits_completed": "Credits completed to date.",
    },
    "attendance": {
        "student_id": "Student identifier.",
        "term_id": "Academic term identifier.",
        "course_id": "Course identifier.",
        "month": "Calendar month the attendance was recorded for.",
        "attendance_pct": "Share of sessions attended in that month (0–100).",
    },
    "courses": {
        "course_id": "Unique identifier for the course.",
        "dept": "Owning department code.",
        "level": "Course number (e.g. 230); credits are derived from it.",
        "title": "Course title.",
    },
    "enrollments": {
        "enrollment_id": "Unique identifier for the enrollment.",
        "student_id": "Student identifier.",
        "course_id": "Course identifier.",
        "term_id": "Term the student took the course in.",
    },
    "enrollment_grades": {
        "enrollment_id": "Enrollment the grade belongs to.",
        "student_id": "Student identifier.",
        "course_id": "Course identifier.",
        "term_id": "Term identifier.",
        "numeric_grade": "Final grade percentage (0–100).",
        "course_gpa": "Grade points earned in the course (0–4.0).",
    },
    "financial_aid": {
        "student_id": "Student identifier (at most one row per student).",
        "household_income_usd": "Reported household income.",
        "scholarship_flag": "Scholarship recipient flag (1 = yes).",
        "aid_amount_usd": "Total aid awarded.",
        "work_hours_per_week": "Hours of paid work per week.",
        "outstanding_balance_usd": "Unpaid tuition balance.",
    },
    "lms_events": {
        "student_id": "Student identifier.",
        "term_id": "Term identifier.",
        "week_number": "Week of term.",
        "logins": "Learning-platform logins that week.",
        "time_on_platform_min": "Minutes active on the platform that week.",
        "assignments_submitted": "Assignments submitted that week.",
    },
    "term_gpas": {
        "student_id": "Student identifier.",
        "term_id": "Term identifier.",
        "term_gpa": "GPA earned in that term (0–4.0).",
    },
    "advising_notes": {
        "note_id": "Unique identifier for the note.",
        "student_id": "Student identifier.",
        "term_id": "Term the intervention happened in.",
        "intervention_type": "Kind of intervention, snake_case (e.g. advising_meeting).",
        "note_date": "Date of the intervention (YYYY-MM-DD).",
    },
}

# Fields computed by the engine rather than read from a table.
VIEW_FIELDS = {
    "riskScore": "Weighted risk (0–100): 60% GPA shortfall, 40% attendance shortfall.",
    "riskTier": "Low (<30), Medium (30–59) or High (>=60), derived from riskScore.",
    "attendancePct": "Mean of the student's attendance rows, rounded to 1 decimal.",
    "credits": "Derived from course level: floor(level / 100) + 2.",
    "grade": "Letter grade from course_gpa; N/A when no grade row exists.",
}
