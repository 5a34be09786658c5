"""
services/result_store.py

성적 저장소(Result Store) 조회 인터페이스
- ResultStore     : 집계 엔진이 소비하는 추상 인터페이스 (테스트에서는 가짜 구현으로 대체)
- SqlResultStore  : SQLAlchemy 세션 기반 구현 (읽기 전용)

SQLAlchemy 오류는 모두 StorageFailure 로 감싸서 올린다. 재시도는 호출자 책임.
"""

import functools
import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.classes import Class as ClassModel
from models.examinations import Examination as ExaminationModel
from models.results import Result as ResultModel
from models.sessions import ExamSession as ExamSessionModel
from models.students import Student as StudentModel
from models.subjects import Subject as SubjectModel
from models.teachers import Teacher as TeacherModel
from schemas.results import (
    CohortTotal,
    DashboardCounts,
    ExaminationItem,
    FilterOptions,
    GeneralResultRecord,
    NamedItem,
    StudentItem,
    StudentResultRow,
)
from services.exceptions import StorageFailure

logger = logging.getLogger(__name__)

# 합계 비교 시 부동소수 오차 방지
TOTAL_PRECISION = 2


class ResultStore(ABC):
    @abstractmethod
    def find_sessions(self, examination_id: int, class_id: int, subject_id: int) -> List[int]: ...
    @abstractmethod
    def get_results_for_student(self, student_id: int) -> List[StudentResultRow]: ...
    @abstractmethod
    def get_cohort_scores_for_session(self, session_id: int) -> List[float]: ...
    @abstractmethod
    def get_cohort_totals_for_examination_and_class(self, examination_id: int, class_id: int) -> List[CohortTotal]: ...
    @abstractmethod
    def get_cohort_core_totals_for_examination_and_class(
        self, examination_id: int, class_id: int, core_subject_names: Iterable[str]
    ) -> List[CohortTotal]: ...
    @abstractmethod
    def get_general_results(self, session_ids: Optional[List[int]] = None) -> List[GeneralResultRecord]: ...
    @abstractmethod
    def get_student(self, student_id: int) -> Optional[StudentItem]: ...
    @abstractmethod
    def get_filter_options(self) -> FilterOptions: ...
    @abstractmethod
    def count_entities(self) -> DashboardCounts: ...


def _storage_guard(fn):
    """SQLAlchemy 예외 → StorageFailure"""
    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        try:
            return fn(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.exception(f"Result store query failed: {fn.__name__}")
            raise StorageFailure(f"Result store unavailable ({fn.__name__})") from e
    return wrapper


class SqlResultStore(ResultStore):
    def __init__(self, db: Session):
        self.db = db

    # ==========================================================
    # [세션] 시험 × 학급 × 과목 → 세션 ID
    # ==========================================================
    @_storage_guard
    def find_sessions(self, examination_id: int, class_id: int, subject_id: int) -> List[int]:
        rows = (
            self.db.query(ExamSessionModel.id)
            .filter(
                ExamSessionModel.examination_id == examination_id,
                ExamSessionModel.class_id == class_id,
                ExamSessionModel.subject_id == subject_id,
            )
            .order_by(ExamSessionModel.id)
            .all()
        )
        return [r.id for r in rows]

    # ==========================================================
    # [학생] 한 학생의 모든 점수 (세션 경유 조인)
    # ==========================================================
    @_storage_guard
    def get_results_for_student(self, student_id: int) -> List[StudentResultRow]:
        # 외부 조인: 세션/과목이 사라진 행도 돌려주고, 제외 판단은 집계 엔진이 함
        rows = (
            self.db.query(
                ResultModel.id.label("result_id"),
                ResultModel.marks,
                ResultModel.session_id,
                ExamSessionModel.examination_id,
                ExamSessionModel.class_id,
                ExamSessionModel.subject_id,
                ExaminationModel.name.label("examination_name"),
                ExaminationModel.examination_date,
                ClassModel.name.label("class_name"),
                SubjectModel.name.label("subject_name"),
                ResultModel.created_at.label("recorded_at"),
            )
            .outerjoin(ExamSessionModel, ExamSessionModel.id == ResultModel.session_id)
            .outerjoin(ExaminationModel, ExaminationModel.id == ExamSessionModel.examination_id)
            .outerjoin(ClassModel, ClassModel.id == ExamSessionModel.class_id)
            .outerjoin(SubjectModel, SubjectModel.id == ExamSessionModel.subject_id)
            .filter(ResultModel.student_id == student_id)
            .order_by(ResultModel.id)
            .all()
        )
        return [StudentResultRow(**r._mapping) for r in rows]

    # ==========================================================
    # [코호트] 과목 석차용: 같은 세션의 점수 전체
    # ==========================================================
    @_storage_guard
    def get_cohort_scores_for_session(self, session_id: int) -> List[float]:
        rows = self.db.query(ResultModel.marks).filter(ResultModel.session_id == session_id).all()
        return [r.marks for r in rows if r.marks is not None]

    # ==========================================================
    # [코호트] 종합 석차용: 같은 시험·같은 반 학생별 전 과목 합계
    # ==========================================================
    @_storage_guard
    def get_cohort_totals_for_examination_and_class(self, examination_id: int, class_id: int) -> List[CohortTotal]:
        rows = (
            self._cohort_totals_query(examination_id, class_id)
            .group_by(ResultModel.student_id)
            .all()
        )
        return [CohortTotal(student_id=r.student_id, total_marks=round(float(r.total_marks), TOTAL_PRECISION)) for r in rows]

    # ==========================================================
    # [코호트] 핵심 과목 석차용: 핵심 과목만 합계
    # ==========================================================
    @_storage_guard
    def get_cohort_core_totals_for_examination_and_class(
        self, examination_id: int, class_id: int, core_subject_names: Iterable[str]
    ) -> List[CohortTotal]:
        names = [n.strip().lower() for n in core_subject_names]
        if not names:
            return []
        rows = (
            self._cohort_totals_query(examination_id, class_id)
            .filter(func.lower(func.trim(SubjectModel.name)).in_(names))
            .group_by(ResultModel.student_id)
            .all()
        )
        return [CohortTotal(student_id=r.student_id, total_marks=round(float(r.total_marks), TOTAL_PRECISION)) for r in rows]

    def _cohort_totals_query(self, examination_id: int, class_id: int):
        # 내부 조인: 과목/시험이 사라진 세션의 점수는 학생 본인 집계와 마찬가지로 제외
        return (
            self.db.query(
                ResultModel.student_id,
                func.sum(ResultModel.marks).label("total_marks"),
            )
            .join(ExamSessionModel, ExamSessionModel.id == ResultModel.session_id)
            .join(ExaminationModel, ExaminationModel.id == ExamSessionModel.examination_id)
            .join(SubjectModel, SubjectModel.id == ExamSessionModel.subject_id)
            .filter(
                ExamSessionModel.examination_id == examination_id,
                ExamSessionModel.class_id == class_id,
                ResultModel.marks.between(0, 100),
            )
        )

    # ==========================================================
    # [General Results] 평면 목록 (석차 없음)
    # ==========================================================
    @_storage_guard
    def get_general_results(self, session_ids: Optional[List[int]] = None) -> List[GeneralResultRecord]:
        query = (
            self.db.query(
                ResultModel.id.label("result_id"),
                ResultModel.marks,
                ResultModel.student_id,
                StudentModel.name.label("student_name"),
                ExamSessionModel.examination_id,
                ExaminationModel.name.label("examination_name"),
                ExaminationModel.examination_date,
                ExamSessionModel.class_id,
                ClassModel.name.label("class_name"),
                ExamSessionModel.subject_id,
                SubjectModel.name.label("subject_name"),
                ExamSessionModel.teacher_id,
                TeacherModel.name.label("teacher_name"),
                TeacherModel.email.label("teacher_email"),
                ResultModel.session_id,
                ResultModel.created_at,
            )
            .outerjoin(StudentModel, StudentModel.id == ResultModel.student_id)
            .outerjoin(ExamSessionModel, ExamSessionModel.id == ResultModel.session_id)
            .outerjoin(ExaminationModel, ExaminationModel.id == ExamSessionModel.examination_id)
            .outerjoin(ClassModel, ClassModel.id == ExamSessionModel.class_id)
            .outerjoin(SubjectModel, SubjectModel.id == ExamSessionModel.subject_id)
            .outerjoin(TeacherModel, TeacherModel.id == ExamSessionModel.teacher_id)
        )
        if session_ids is not None:
            if not session_ids:
                return []
            query = query.filter(ResultModel.session_id.in_(session_ids)).order_by(StudentModel.name, ResultModel.id)
        else:
            query = query.order_by(ResultModel.created_at.desc(), ResultModel.id.desc())
        return [GeneralResultRecord(**r._mapping) for r in query.all()]

    # ==========================================================
    # [보조 조회] 학생 / 필터 목록 / 대시보드 집계
    # ==========================================================
    @_storage_guard
    def get_student(self, student_id: int) -> Optional[StudentItem]:
        row = (
            self.db.query(
                StudentModel.id,
                StudentModel.name,
                StudentModel.class_id,
                ClassModel.name.label("class_name"),
            )
            .outerjoin(ClassModel, ClassModel.id == StudentModel.class_id)
            .filter(StudentModel.id == student_id)
            .first()
        )
        return StudentItem(**row._mapping) if row else None

    @_storage_guard
    def get_filter_options(self) -> FilterOptions:
        examinations = (
            self.db.query(ExaminationModel)
            .order_by(ExaminationModel.examination_date.desc(), ExaminationModel.name)
            .all()
        )
        classes = self.db.query(ClassModel).order_by(ClassModel.name).all()
        subjects = self.db.query(SubjectModel).order_by(SubjectModel.name).all()
        students = (
            self.db.query(
                StudentModel.id,
                StudentModel.name,
                StudentModel.class_id,
                ClassModel.name.label("class_name"),
            )
            .outerjoin(ClassModel, ClassModel.id == StudentModel.class_id)
            .order_by(StudentModel.name)
            .all()
        )
        return FilterOptions(
            examinations=[ExaminationItem.model_validate(e) for e in examinations],
            classes=[NamedItem.model_validate(c) for c in classes],
            subjects=[NamedItem.model_validate(s) for s in subjects],
            students=[StudentItem(**s._mapping) for s in students],
            current_date=date.today(),
        )

    @_storage_guard
    def count_entities(self) -> DashboardCounts:
        return DashboardCounts(
            students=self.db.query(func.count(StudentModel.id)).scalar() or 0,
            subjects=self.db.query(func.count(SubjectModel.id)).scalar() or 0,
            sessions=self.db.query(func.count(ExamSessionModel.id)).scalar() or 0,
        )
