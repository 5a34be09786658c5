from sqlalchemy import Column, Integer, String
from database.db import Base

class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(Integer, primary_key=True, index=True)      # 교사 고유 ID (PK)
    name = Column(String(100), nullable=False)              # 교사 이름
    email = Column(String(100), unique=True)                # 이메일
