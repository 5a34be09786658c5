from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from database.db import Base


def _utcnow():
    return datetime.now(timezone.utc)


class ExamSession(Base):
    """
    성적 입력 단위 (시험 × 학급 × 과목)
    - 학생별 점수(results)는 이 세션 ID 아래에 저장됨
    - 세션 생성은 성적 입력 쪽 책임이며, 집계 엔진은 조회만 함
    """
    __tablename__ = "sessions"
    __table_args__ = (
        UniqueConstraint("examination_id", "class_id", "subject_id", name="uq_session_exam_class_subject"),
    )

    id = Column(Integer, primary_key=True, index=True)                                     # 세션 고유 ID
    examination_id = Column(Integer, ForeignKey("examinations.id"), nullable=False)       # 시험 ID
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False)                  # 학급 ID
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False)               # 과목 ID
    teacher_id = Column(Integer, ForeignKey("teachers.id"))                               # 입력 교사 ID (귀속 정보)
    status = Column(String(20), nullable=False, default="open")                           # open / submitted / locked
    created_at = Column(DateTime(timezone=True), default=_utcnow)                         # 생성 시각
