from sqlalchemy import create_engine               # SQLAlchemy 엔진 생성 도구
from sqlalchemy.orm import declarative_base        # 모델의 Base 클래스
from sqlalchemy.orm import sessionmaker            # 세션 팩토리 함수
from sqlalchemy.pool import StaticPool

from config.settings import settings               # ✅ 환경변수 설정 파일 불러오기


def _engine_options(url: str) -> dict:
    """드라이버별 연결 옵션 (읽기 타임아웃 포함)"""
    if url.startswith("sqlite"):
        # 인메모리 SQLite는 커넥션 하나를 공유해야 테이블이 유지됨
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    if url.startswith("mysql"):
        return {
            "connect_args": {
                "connect_timeout": settings.DB_CONNECT_TIMEOUT,
                "read_timeout": settings.DB_READ_TIMEOUT,
            },
            "pool_pre_ping": True,
        }
    return {"pool_pre_ping": True}


# ✅ 환경변수에서 DB 연결 URL을 불러와 엔진 생성
engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# ✅ 세션 팩토리: DB 연결에 사용할 세션 생성기 정의
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# ✅ 모델 정의 시 상속할 Base 클래스 (Declarative 방식 사용)
Base = declarative_base()
