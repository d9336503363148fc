"""스킬 선택 파이프라인 모듈.

작업 설명을 받아 주입할 스킬 목록을 결정하는 네 단계를
독립 모듈로 분리했습니다.

1. **scoring**: 작업과 description 사이의 관련도 점수, 순위
2. **resolution**: 호환성 필터, 상호 배제, 우선순위 선점
3. **packing**: 예산 안에 탐욕적으로 담기 (잘린 포함 지원)
4. **session**: 위 단계를 작업 하나마다 조율
"""

from skill_context_engine.selection.packing import (
    BudgetPacker,
    CharMeter,
    PackingResult,
    SelectionEntry,
    SizeMeter,
    TokenEstimateMeter,
    meter_for,
)
from skill_context_engine.selection.resolution import (
    ConflictResolver,
    ResolutionConfig,
    tag_overlap_ratio,
)
from skill_context_engine.selection.scoring import (
    Candidate,
    Exclusion,
    IncludedReason,
    RelevanceScorer,
    TokenOverlapScorer,
    rank_candidates,
)
from skill_context_engine.selection.session import Selection, SelectionSession

__all__ = [
    "BudgetPacker",
    "CharMeter",
    "TokenEstimateMeter",
    "SizeMeter",
    "meter_for",
    "PackingResult",
    "SelectionEntry",
    "ConflictResolver",
    "ResolutionConfig",
    "tag_overlap_ratio",
    "Candidate",
    "Exclusion",
    "IncludedReason",
    "RelevanceScorer",
    "TokenOverlapScorer",
    "rank_candidates",
    "Selection",
    "SelectionSession",
]
