"""스킬 선택 엔진의 오류 분류와 제외 사유 코드.

## 분류

1. **로드 오류** (`LoadError`): `load` 호출 전체를 실패시킴. 이전 스냅샷은 유지됨.
2. **세션 오류** (`SessionError`): 단일 `select` 호출을 실패시킴. 부분 결과 없음.
3. **제외 사유** (`ExclusionReason`): 예외로 발생시키지 않음.
   후보에 메타데이터로만 기록되어 호출자가 로깅/표시할 수 있음.
"""

from enum import Enum


class SkillEngineError(Exception):
    """엔진이 발생시키는 모든 오류의 기본 클래스."""

    code: str = "SkillEngineError"


class LoadError(SkillEngineError):
    """스토어 로드 실패."""

    code = "LoadError"


class DuplicateIdError(LoadError):
    """하나의 로드 배치에 같은 id가 두 번 이상 등장함."""

    code = "DuplicateIdError"

    def __init__(self, ids: list[str]) -> None:
        self.ids = sorted(set(ids))
        super().__init__(f"중복된 스킬 id: {', '.join(self.ids)}")


class MalformedRecordError(LoadError):
    """필수 필드가 비어 있거나 형식이 잘못된 문서."""

    code = "MalformedRecordError"

    def __init__(self, record_id: str | None, field: str, message: str = "") -> None:
        self.record_id = record_id
        self.field = field
        detail = message or f"'{field}' 필드가 비어 있음"
        super().__init__(f"잘못된 스킬 레코드 {record_id!r}: {detail}")


class SessionError(SkillEngineError):
    """선택 세션 실패."""

    code = "SessionError"


class EmptyStoreError(SessionError):
    code = "EmptyStoreError"

    def __init__(self) -> None:
        super().__init__("스킬 스토어 스냅샷에 레코드가 없음")


class InvalidBudgetError(SessionError):
    code = "InvalidBudgetError"

    def __init__(self, budget: object) -> None:
        self.budget = budget
        super().__init__(f"예산은 양의 정수여야 함: {budget!r}")


class ExclusionReason(str, Enum):
    """후보가 최종 선택에서 빠진 이유 (기계 판독용 코드)."""

    BELOW_MIN_SCORE = "BelowMinScore"
    """관련도 점수가 min_score 미만."""

    INCOMPATIBLE_SKILL = "IncompatibleSkillError"
    """호스트 capability 티어와 호환되지 않음."""

    SUPERSEDED = "Superseded"
    """태그가 겹치는 상위 후보에 밀려남."""

    BUDGET_EXCEEDED = "BudgetExceeded"
    """남은 예산에 들어가지 않음."""
