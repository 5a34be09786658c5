from sqlalchemy import Column, Integer, String
from database.db import Base

class Subject(Base):
    __tablename__ = "subjects"  # 과목 정보 테이블

    id = Column(Integer, primary_key=True, index=True)         # 과목 고유 ID (Primary Key)
    name = Column(String(100), nullable=False, unique=True)   # 과목 이름 (예: Mathematics, ICT)
    # 핵심 과목 여부는 저장하지 않음 → settings.CORE_SUBJECTS 로 판정
