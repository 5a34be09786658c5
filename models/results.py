from datetime import datetime, timezone

from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from database.db import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Result(Base):
    __tablename__ = "results"  # 학생별 과목 점수 테이블
    __table_args__ = (
        # (세션, 학생) 당 한 행만 허용 → 재제출은 덮어쓰기(upsert)
        UniqueConstraint("session_id", "student_id", name="uq_result_session_student"),
        CheckConstraint("marks >= 0 AND marks <= 100", name="ck_result_marks_range"),
    )

    id = Column(Integer, primary_key=True, index=True)                                # 점수 고유 ID
    session_id = Column(Integer, ForeignKey("sessions.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    marks = Column(Float, nullable=False)                                             # 점수 (0~100)
    created_at = Column(DateTime(timezone=True), default=_utcnow)                     # 입력 시각
