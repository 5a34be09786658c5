from sqlalchemy import Column, Integer, String, Date
from database.db import Base

class Examination(Base):
    __tablename__ = "examinations"  # 시험 정보 테이블

    id = Column(Integer, primary_key=True, index=True)        # 시험 고유 ID
    name = Column(String(100), nullable=False)               # 시험명 (예: Mid-Term)
    examination_date = Column(Date)                          # 시험 날짜 (보고서 정렬 기준)
