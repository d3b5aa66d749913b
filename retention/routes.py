# retention/routes.py
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request
import logging

from retention.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from retention.engine import AdvisingEngine
from retention.errors import StudentNotFoundError

logger = logging.getLogger(__name__)
router = APIRouter()


def get_engine(request: Request) -> AdvisingEngine:
    return request.app.state.engine


@router.get("/dashboard/advisor")
def advisor_dashboard(
    request: Request,
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, alias="pageSize"),
    risk: Optional[str] = Query(None, description="Low / Medium / High / all"),
    major: Optional[str] = Query(None, description="Exact major name, or all"),
):
    """Summary statistics plus one page of the risk-scored roster."""
    return get_engine(request).advisor_dashboard(
        page=page, page_size=page_size, risk_filter=risk, major_filter=major
    )


@router.get("/students")
def search_students(
    request: Request,
    q: str = Query("", description="Substring of the student's name or major"),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, alias="pageSize"),
):
    return get_engine(request).search_students(query=q, page=page, page_size=page_size)


@router.get("/student/{student_id}/dashboard")
def student_dashboard(
    request: Request,
    student_id: int,
    term_id: Optional[int] = Query(None, alias="termId"),
):
    try:
        return get_engine(request).student_dashboard(student_id, term_id=term_id)
    except StudentNotFoundError as e:
        logger.info(f"Dashboard requested for unknown student {student_id}")
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/notes/student/{student_id}")
def notes_context(
    request: Request,
    student_id: int,
    term_id: Optional[int] = Query(None, alias="termId"),
):
    try:
        return get_engine(request).notes_context(student_id, term_id=term_id)
    except StudentNotFoundError as e:
        logger.info(f"Notes requested for unknown student {student_id}")
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/reports/term")
def term_report(
    request: Request,
    term_id: Optional[int] = Query(None, alias="termId"),
):
    return get_engine(request).risk_report(term_id=term_id)
