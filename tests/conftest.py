# tests/conftest.py
"""
Shared fixtures: a small, hand-checked set of the nine tables.

Expected values used across the suite
-------------------------------------
student  gpa  attendance  score  tier
1        2.0  80.0        38     Medium
2        3.9  98.0         2     Low
3        1.0  55.0        63     High
4        3.0  85.0        21     Low
5        0.0   0.0 (none) 100    High
"""

import pytest

from retention.engine import AdvisingEngine
from retention.tables import TableRepository

SOURCES = {
    "students": """student_id,name,gender,age,residency_status,first_gen,major,cumulative_gpa,credits_completed
1,Ana Lopez,Female,19,In-State,1,Biology,2.0,30
2,Ben Carter,Male,20,In-State,0,Biology,3.9,60
3,Cara Diaz,Female,21,International,0,History,1.0,45

4,Dev Shah,Male,22,Out-of-State,1,Computer Science,3.0,90
5,Eve Stone,Female,18,In-State,0,Biology,0.0,10
""",
    "attendance": """student_id,term_id,course_id,month,attendance_pct
1,1,10,9,80
1,1,10,10,90
1,1,20,9,70
1,2,10,1,80
2,1,10,9,100
2,1,10,10,96
3,1,30,9,50
3,1,30,10,60
4,1,20,9,85
""",
    "courses": """course_id,dept,level,title
10,BIO,230,Cell Biology
20,HIST,100,World History
30,CS,301,Algorithms
""",
    "enrollments": """enrollment_id,student_id,course_id,term_id
1,1,10,1
2,1,20,1
3,1,99,1
4,1,30,2
5,2,10,1
""",
    "enrollment_grades": """enrollment_id,student_id,course_id,term_id,numeric_grade,course_gpa
1,1,10,1,88.0,3.0
3,1,99,1,95.0,4.0
5,2,10,1,97.0,4.0
""",
    "financial_aid": """student_id,household_income_usd,scholarship_flag,aid_amount_usd,work_hours_per_week,outstanding_balance_usd
1,42000,1,8000,15,500
""",
    "lms_events": """student_id,term_id,week_number,logins,time_on_platform_min,assignments_submitted
1,1,2,5,90,2
1,1,1,3,45,1
1,1,2,9,999,9
1,2,1,7,60,3
""",
    "term_gpas": """student_id,term_id,term_gpa
1,1,2.1
1,0,2.5
2,1,3.8
3,1,0.9
4,1,3.5
""",
    "advising_notes": """note_id,student_id,term_id,intervention_type,note_date
1,1,1,advising_meeting,2024-09-10
2,1,1,tutoring_referral,2024-10-01
3,1,2,check_in,2025-02-01
4,3,1,financial_aid_referral,2024-09-20
""",
}


@pytest.fixture
def sources():
    return dict(SOURCES)


@pytest.fixture
def repository(sources):
    return TableRepository(sources)


@pytest.fixture
def engine(repository):
    return AdvisingEngine(repository, term_id=1)


@pytest.fixture
def data_dir(tmp_path, sources):
    from retention.data_dictionary import TABLE_FILES

    for name, filename in TABLE_FILES.items():
        (tmp_path / filename).write_text(sources[name], encoding="utf-8")
    return tmp_path
