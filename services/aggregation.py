"""
services/aggregation.py

학생 한 명의 점수 행들을 시험별로 묶어 과목 목록 / 전 과목 합계 / 핵심 과목 합계를 만든다.
- 석차는 여기서 계산하지 않음 (report_service 담당)
- 세션이 시험/학급/과목으로 풀리지 않는 행은 조용히 제외
- 같은 시험에 같은 과목이 두 번 나오면 무결성 오류로 기록하고 뒤에 나온 행은 제외 (이중 합산 금지)
"""

import logging
from typing import Dict, Iterable, List

from schemas.reports import ExaminationAggregate, SubjectResult
from schemas.results import StudentResultRow
from services.exceptions import DataIntegrityError
from services.result_store import ResultStore, TOTAL_PRECISION

logger = logging.getLogger(__name__)

MIN_MARKS = 0
MAX_MARKS = 100


class CoreSubjectSet:
    """핵심 과목 이름 집합. 대소문자 무시 완전 일치 (부분 일치/별칭 없음)"""

    def __init__(self, names: Iterable[str]):
        self.names = [n.strip() for n in names if n and n.strip()]
        self._normalized = {n.lower() for n in self.names}

    def __contains__(self, subject_name) -> bool:
        if not isinstance(subject_name, str):
            return False
        return subject_name.strip().lower() in self._normalized

    def __iter__(self):
        return iter(self.names)

    def __len__(self):
        return len(self.names)


class AggregationEngine:
    def __init__(self, store: ResultStore, core_subjects: CoreSubjectSet):
        self.store = store
        self.core_subjects = core_subjects

    def aggregate(self, student_id: int) -> Dict[int, ExaminationAggregate]:
        rows = self.store.get_results_for_student(student_id)
        return self.aggregate_rows(student_id, rows)

    def aggregate_rows(self, student_id: int, rows: List[StudentResultRow]) -> Dict[int, ExaminationAggregate]:
        by_examination: Dict[int, ExaminationAggregate] = {}

        for row in rows:
            if not self._resolvable(row):
                logger.debug(f"세션 해석 불가 → 제외: student_id={student_id}, session_id={row.session_id}")
                continue

            try:
                marks = self._checked_marks(row)
            except DataIntegrityError as e:
                logger.warning(f"{e} → 제외 (student_id={student_id}, session_id={row.session_id})")
                continue

            summary = by_examination.get(row.examination_id)
            if summary is None:
                summary = ExaminationAggregate(
                    examination_id=row.examination_id,
                    examination_name=row.examination_name,
                    examination_date=row.examination_date,
                    class_id=row.class_id,
                    class_name=row.class_name,
                )
                by_examination[row.examination_id] = summary

            if any(s.subject_id == row.subject_id for s in summary.subjects):
                logger.warning(
                    f"같은 시험에 과목 중복 → 제외: student_id={student_id}, "
                    f"examination_id={row.examination_id}, subject_id={row.subject_id}, session_id={row.session_id}"
                )
                continue

            is_core = row.subject_name in self.core_subjects
            summary.subjects.append(
                SubjectResult(
                    subject_id=row.subject_id,
                    subject_name=row.subject_name,
                    marks=marks,
                    is_core=is_core,
                    session_id=row.session_id,
                    recorded_at=row.recorded_at,
                )
            )
            summary.overall_total += marks
            if is_core:
                summary.core_total += marks
                summary.sat_core_subject = True

        # 원점수를 모두 더한 뒤 한 번만 반올림 (코호트 SUM 쿼리와 같은 방식)
        for summary in by_examination.values():
            summary.overall_total = round(summary.overall_total, TOTAL_PRECISION)
            summary.core_total = round(summary.core_total, TOTAL_PRECISION)
        return by_examination

    @staticmethod
    def _resolvable(row: StudentResultRow) -> bool:
        return (
            row.examination_id is not None
            and row.examination_name is not None
            and row.class_id is not None
            and row.subject_id is not None
            and row.subject_name is not None
        )

    @staticmethod
    def _checked_marks(row: StudentResultRow) -> float:
        if row.marks is None:
            raise DataIntegrityError("점수 없음")
        if not MIN_MARKS <= row.marks <= MAX_MARKS:
            raise DataIntegrityError(f"점수 범위 초과: {row.marks}")
        return row.marks
