"""
services/exceptions.py

성적 집계/석차 산출 과정의 오류 분류
- NotFoundError       : 세션/코호트/레코드 없음 → 해당 필드만 "N/A" 처리, 예외로 밖에 나가지 않음
- DataIntegrityError  : 중복 점수, 범위 밖 점수 등 → 로그 남기고 해당 값만 집계에서 제외
- StorageFailure      : DB 연결/쿼리 실패 → 요청 전체 실패, 호출자에게 재시도 가능 오류로 전달
"""


class ResultsError(Exception):
    """성적 집계 엔진 공통 예외"""


class NotFoundError(ResultsError):
    pass


class DataIntegrityError(ResultsError):
    pass


class StorageFailure(ResultsError):
    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable
