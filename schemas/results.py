from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, model_validator


# ==========================================================
# [저장소 조회 결과] ResultStore 가 돌려주는 행 단위 스키마
# ==========================================================
class StudentResultRow(BaseModel):
    """학생 한 명의 점수 한 행 (세션 → 시험/학급/과목 조인 결과)"""
    result_id: Optional[int] = None
    marks: Optional[float] = None
    session_id: int
    examination_id: Optional[int] = None
    class_id: Optional[int] = None
    subject_id: Optional[int] = None
    examination_name: Optional[str] = None
    examination_date: Optional[date] = None
    class_name: Optional[str] = None
    subject_name: Optional[str] = None
    recorded_at: Optional[datetime] = None      # 점수 입력 시각

    model_config = ConfigDict(from_attributes=True)


class CohortTotal(BaseModel):
    """코호트(같은 시험·같은 반) 학생별 합계 점수"""
    student_id: int
    total_marks: float


# ==========================================================
# [General Results] 일괄 내보내기용 평면 목록
# ==========================================================
class GeneralResultRecord(BaseModel):
    result_id: int
    marks: float
    student_id: int
    student_name: Optional[str] = None
    examination_id: Optional[int] = None
    examination_name: Optional[str] = None
    examination_date: Optional[date] = None
    class_id: Optional[int] = None
    class_name: Optional[str] = None
    subject_id: Optional[int] = None
    subject_name: Optional[str] = None
    teacher_id: Optional[int] = None
    teacher_name: Optional[str] = None
    teacher_email: Optional[str] = None
    session_id: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class GeneralResultsFilter(BaseModel):
    """
    General Results 필터
    - all            : 전체 점수 (최신순)
    - specific_class : 시험 × 학급 × 과목 으로 세션을 찾은 뒤 해당 세션의 점수만
    """
    scope: Literal["all", "specific_class"] = "all"
    examination_id: Optional[int] = None
    class_id: Optional[int] = None
    subject_id: Optional[int] = None

    @model_validator(mode="after")
    def _require_ids_for_specific(self):
        if self.scope == "specific_class":
            missing = [
                name for name in ("examination_id", "class_id", "subject_id")
                if getattr(self, name) is None
            ]
            if missing:
                raise ValueError(f"specific_class scope requires: {', '.join(missing)}")
        return self


# ==========================================================
# [조회 화면용 보조 데이터]
# ==========================================================
class NamedItem(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class ExaminationItem(NamedItem):
    examination_date: Optional[date] = None


class StudentItem(NamedItem):
    class_id: Optional[int] = None
    class_name: Optional[str] = None


class FilterOptions(BaseModel):
    examinations: List[ExaminationItem] = []
    classes: List[NamedItem] = []
    subjects: List[NamedItem] = []
    students: List[StudentItem] = []
    current_date: date


class DashboardCounts(BaseModel):
    students: int = 0
    subjects: int = 0
    sessions: int = 0
