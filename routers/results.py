from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError
from sqlalchemy.orm import Session

from database.db import SessionLocal
from schemas.common import SuccessEnvelope
from schemas.reports import StudentReport
from schemas.results import DashboardCounts, FilterOptions, GeneralResultRecord, GeneralResultsFilter
from services.report_service import build_assembler

router = APIRouter(prefix="/results", tags=["results"])

# ==========================================================
# [공통] DB 세션 관리
# ==========================================================
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ==========================================================
# [1단계] 정적 조회 라우터 (조회 화면 보조 데이터)
# ==========================================================

# ✅ [FILTERS] 시험/학급/과목/학생 선택 목록
@router.get("/filters", response_model=SuccessEnvelope[FilterOptions])
def get_filter_options(db: Session = Depends(get_db)):
    data = build_assembler(db).filter_options()
    return SuccessEnvelope(data=data, message="Filter options loaded")


# ✅ [STATS] 대시보드 카운트 (학생 수, 과목 수, 세션 수)
@router.get("/stats", response_model=SuccessEnvelope[DashboardCounts])
def get_dashboard_counts(db: Session = Depends(get_db)):
    data = build_assembler(db).dashboard_counts()
    return SuccessEnvelope(data=data, message="Dashboard counts loaded")


# ==========================================================
# [2단계] General Results (석차 없는 평면 목록, 일괄 내보내기용)
# ==========================================================
@router.get("/general", response_model=SuccessEnvelope[List[GeneralResultRecord]])
def get_general_results(
    scope: Literal["all", "specific_class"] = "all",
    examination_id: Optional[int] = None,
    class_id: Optional[int] = None,
    subject_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    try:
        results_filter = GeneralResultsFilter(
            scope=scope,
            examination_id=examination_id,
            class_id=class_id,
            subject_id=subject_id,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=[err["msg"] for err in e.errors()])

    records = build_assembler(db).build_general_results(results_filter)
    message = "General results loaded" if records else "No results found for the current selection"
    return SuccessEnvelope(data=records, message=message)


# ==========================================================
# [3단계] 동적 라우터 (학생 단위 성적표)
# ==========================================================

# ✅ [READ] 학생 성적표: 시험별 과목 점수, 합계, 석차
@router.get("/students/{student_id}/report", response_model=SuccessEnvelope[StudentReport])
def get_student_report(student_id: int, db: Session = Depends(get_db)):
    report = build_assembler(db).build_student_report(student_id)
    message = "Student report generated" if report.examinations else "No results found for this student"
    return SuccessEnvelope(data=report, message=message)
