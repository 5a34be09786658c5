import logging
from typing import Optional

from services.exceptions import DataIntegrityError
from services.result_store import ResultStore

logger = logging.getLogger(__name__)


class SessionResolver:
    """(시험, 학급, 과목) → 세션 ID. 조회만 하며 세션을 새로 만들지 않는다."""

    def __init__(self, store: ResultStore):
        self.store = store

    def resolve(self, examination_id: int, class_id: int, subject_id: int) -> Optional[int]:
        session_ids = self.store.find_sessions(examination_id, class_id, subject_id)
        if not session_ids:
            logger.debug(
                f"세션 없음: examination_id={examination_id}, class_id={class_id}, subject_id={subject_id}"
            )
            return None
        try:
            return self._single(session_ids)
        except DataIntegrityError as e:
            logger.warning(f"{e} (examination_id={examination_id}, class_id={class_id}, subject_id={subject_id})")
            return None

    @staticmethod
    def _single(session_ids):
        if len(session_ids) > 1:
            raise DataIntegrityError(f"세션 중복: {session_ids}")
        return session_ids[0]
