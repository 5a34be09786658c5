from sqlalchemy import Column, Integer, String
from database.db import Base

class Class(Base):
    __tablename__ = "classes"  # 학급 정보 테이블 (석차 산출 시 코호트 경계)

    id = Column(Integer, primary_key=True, index=True)      # 학급 고유 ID (PK)
    name = Column(String(100), nullable=False, unique=True) # 학급명 (예: JHS 2A)
