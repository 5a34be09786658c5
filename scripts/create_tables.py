from database.db import Base, engine

# ✅ 테이블 등록을 위해 모델 import (사용하지 않아도 필요)
from models.classes import Class  # noqa: F401
from models.students import Student  # noqa: F401
from models.subjects import Subject  # noqa: F401
from models.teachers import Teacher  # noqa: F401
from models.examinations import Examination  # noqa: F401
from models.sessions import ExamSession  # noqa: F401
from models.results import Result  # noqa: F401


def create_tables():
    Base.metadata.create_all(bind=engine)
    print("✅ 성적 관련 테이블 생성 완료")

if __name__ == "__main__":
    create_tables()
