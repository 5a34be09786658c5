"""
services/report_service.py

성적표 조립기 (Report Assembler)
- build_student_report : 집계 엔진 결과에 과목/종합/핵심 과목 석차를 붙여 학생 성적표 생성
- build_general_results: 석차 없는 평면 점수 목록 (일괄 내보내기용)

개별 필드 조회 실패(세션 없음, 코호트 없음)는 해당 필드만 "N/A" 로 두고 계속 진행한다.
StorageFailure 만 요청 단위로 호출자에게 전달된다.
"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from config.settings import settings
from schemas.reports import ExaminationAggregate, ExaminationSummary, Rank, StudentReport
from schemas.results import (
    CohortTotal,
    DashboardCounts,
    FilterOptions,
    GeneralResultRecord,
    GeneralResultsFilter,
)
from services.aggregation import AggregationEngine, CoreSubjectSet
from services.exceptions import NotFoundError
from services.ranking import NA, rank
from services.result_store import ResultStore, SqlResultStore
from services.session_resolver import SessionResolver

logger = logging.getLogger(__name__)


class ReportAssembler:
    def __init__(self, store: ResultStore, core_subjects: CoreSubjectSet):
        self.store = store
        self.core_subjects = core_subjects
        self.engine = AggregationEngine(store, core_subjects)
        self.resolver = SessionResolver(store)

    # ==========================================================
    # [1] 학생 성적표 (석차 포함)
    # ==========================================================
    def build_student_report(self, student_id: int) -> StudentReport:
        student = self.store.get_student(student_id)
        aggregates = self.engine.aggregate(student_id)

        examinations = [
            self._rank_examination(student_id, aggregate)
            for aggregate in aggregates.values()
        ]
        # 최신 시험 먼저, 날짜 없는 시험은 마지막
        examinations.sort(
            key=lambda e: (e.examination_date or date.min, e.examination_id),
            reverse=True,
        )

        report = StudentReport(student_id=student_id, examinations=examinations)
        if student is not None:
            report.student_name = student.name
            report.class_name = student.class_name or NA
        else:
            logger.debug(f"학생 정보 없음: student_id={student_id}")
        return report

    def _rank_examination(self, student_id: int, aggregate: ExaminationAggregate) -> ExaminationSummary:
        summary = ExaminationSummary(
            examination_id=aggregate.examination_id,
            examination_name=aggregate.examination_name,
            examination_date=aggregate.examination_date,
            class_name=aggregate.class_name,
            subjects=[s.model_copy() for s in aggregate.subjects],
            overall_total=aggregate.overall_total,
            core_total=aggregate.core_total,
        )

        # (a) 과목 석차: 같은 세션(반·시험·과목) 점수 기준
        for subject in summary.subjects:
            subject.rank = self._subject_rank(aggregate, subject.subject_id, subject.marks)

        # (b) 종합 석차: 같은 반·같은 시험 학생들의 전 과목 합계 기준
        summary.overall_rank = self._cohort_rank(
            student_id,
            aggregate.overall_total,
            lambda: self.store.get_cohort_totals_for_examination_and_class(
                aggregate.examination_id, aggregate.class_id
            ),
        )

        # (c) 핵심 과목 석차: 핵심 과목을 하나도 응시하지 않았으면 N/A
        if aggregate.sat_core_subject:
            summary.core_rank = self._cohort_rank(
                student_id,
                aggregate.core_total,
                lambda: self.store.get_cohort_core_totals_for_examination_and_class(
                    aggregate.examination_id, aggregate.class_id, list(self.core_subjects)
                ),
            )
        return summary

    def _subject_rank(self, aggregate: ExaminationAggregate, subject_id: int, marks: float) -> Rank:
        # 한 시험에서 학생은 한 반에만 속한다고 가정 → 시험의 class_id 로 세션을 찾음
        session_id = self.resolver.resolve(aggregate.examination_id, aggregate.class_id, subject_id)
        if session_id is None:
            return NA
        try:
            cohort = self.store.get_cohort_scores_for_session(session_id)
        except NotFoundError:
            logger.debug(f"과목 코호트 없음: session_id={session_id}")
            return NA
        return rank(marks, cohort)

    @staticmethod
    def _cohort_rank(student_id: int, own_total: float, fetch_cohort) -> Rank:
        try:
            cohort: List[CohortTotal] = fetch_cohort()
        except NotFoundError:
            logger.debug(f"코호트 합계 없음: student_id={student_id}")
            return NA
        if not any(c.student_id == student_id for c in cohort):
            # 본인 기록이 코호트에 없으면 석차를 매기지 않음
            return NA
        scores = [own_total if c.student_id == student_id else c.total_marks for c in cohort]
        return rank(own_total, scores)

    # ==========================================================
    # [2] General Results (석차 없음)
    # ==========================================================
    def build_general_results(self, results_filter: Optional[GeneralResultsFilter] = None) -> List[GeneralResultRecord]:
        results_filter = results_filter or GeneralResultsFilter()
        if results_filter.scope == "all":
            return self.store.get_general_results()

        session_ids = self.store.find_sessions(results_filter.examination_id, results_filter.class_id, results_filter.subject_id)
        if not session_ids:
            logger.info(
                f"General results: 일치하는 세션 없음 (examination_id={results_filter.examination_id}, "
                f"class_id={results_filter.class_id}, subject_id={results_filter.subject_id})"
            )
            return []
        return self.store.get_general_results(session_ids)

    # ==========================================================
    # [3] 조회 화면 보조 데이터
    # ==========================================================
    def filter_options(self) -> FilterOptions:
        return self.store.get_filter_options()

    def dashboard_counts(self) -> DashboardCounts:
        return self.store.count_entities()


def build_assembler(db: Session) -> ReportAssembler:
    """요청 단위 DB 세션 + 설정의 핵심 과목으로 조립기 생성"""
    return ReportAssembler(SqlResultStore(db), CoreSubjectSet(settings.CORE_SUBJECTS))
