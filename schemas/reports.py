from datetime import date, datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field

# 석차: 1 이상 정수 또는 "N/A" (데이터 없음)
Rank = Union[int, Literal["N/A"]]


# ==========================================================
# [과목 단위]
# ==========================================================
class SubjectResult(BaseModel):
    subject_id: int                         # 과목 ID
    subject_name: str                       # 과목 이름
    marks: float                            # 점수
    is_core: bool = False                   # 핵심 과목 여부
    session_id: int                         # 점수가 저장된 세션 ID
    recorded_at: Optional[datetime] = None  # 점수 입력 시각
    rank: Rank = "N/A"                      # 같은 세션(반·시험·과목) 내 석차


# ==========================================================
# [시험 단위] 집계 엔진 출력 (석차 계산 전)
# ==========================================================
class ExaminationAggregate(BaseModel):
    examination_id: int
    examination_name: Optional[str] = None
    examination_date: Optional[date] = None
    class_id: Optional[int] = None
    class_name: Optional[str] = None
    subjects: List[SubjectResult] = []
    overall_total: float = 0                # 응시한 전 과목 합계
    core_total: float = 0                   # 핵심 과목 합계
    sat_core_subject: bool = False          # 핵심 과목을 하나라도 응시했는지


# ==========================================================
# [시험 단위] 석차 포함 최종 요약
# ==========================================================
class ExaminationSummary(BaseModel):
    examination_id: int
    examination_name: Optional[str] = None
    examination_date: Optional[date] = None
    class_name: Optional[str] = None
    subjects: List[SubjectResult] = []
    overall_total: float = 0
    overall_rank: Rank = "N/A"
    core_total: float = 0
    core_rank: Rank = "N/A"


# ==========================================================
# [학생 단위] 성적표
# ==========================================================
class StudentReport(BaseModel):
    student_id: int
    student_name: str = "Unknown Student"
    class_name: str = "N/A"
    generated_on: date = Field(default_factory=date.today)
    examinations: List[ExaminationSummary] = []   # 최신 시험 먼저
