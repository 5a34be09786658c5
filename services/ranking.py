from typing import Iterable, Optional, Union

NA = "N/A"


def rank(target_score: Optional[float], cohort_scores: Iterable[float]) -> Union[int, str]:
    """
    코호트 내 석차 계산 (I/O 없음)
    - 중복 제거한 점수를 내림차순으로 보고, 대상 점수보다 높은 서로 다른 점수 개수 + 1
    - 동점은 같은 석차, 동점 뒤에 석차를 건너뛰지 않음 (90, 90, 80, 70 → 1, 1, 2, 3)
    - 코호트가 비었거나 대상 점수가 코호트에 없으면 "N/A"
    """
    distinct = {score for score in cohort_scores if score is not None}
    if target_score is None or not distinct or target_score not in distinct:
        return NA
    return 1 + sum(1 for score in distinct if score > target_score)
