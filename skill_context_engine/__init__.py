"""Skill Selection & Context-Injection 엔진.

스킬 문서 풀과 작업 설명이 주어지면 어떤 스킬을 어떤 순서로
활성화할지 결정하고, 제한된 컨텍스트 예산 안에 중복 없이 담습니다.

## 파이프라인

```
task → Relevance Scorer (Skill Record Store 스냅샷 대상)
     → 순위 후보 → Conflict Resolver → 중복 제거/정렬
     → Budget Packer → 예산 내 최종 Selection → 호스트에 반환
```

1. **Skill Record Store**: 불변 스냅샷, 원자적 재로드
2. **Relevance Scorer**: 토큰 겹침 + 태그 보너스, 결정적 순위
3. **Conflict Resolver**: 호환성 필터, 상호 배제, 우선순위 선점
4. **Budget Packer**: 탐욕적 패킹, 잘린 포함
5. **Selection Session**: 작업 하나마다 위 단계를 조율

## 모듈 구조

```
skill_context_engine/
├── __init__.py          # 이 파일
├── errors.py            # 오류 분류, 제외 사유 코드
├── records.py           # SkillRecord, 토큰화
├── store.py             # Skill Record Store
├── config.py            # SelectionConfig
├── selection/           # 선택 파이프라인
│   ├── scoring.py
│   ├── resolution.py
│   ├── packing.py
│   └── session.py
└── skills/              # 문서 소스, 호스트 미들웨어
    ├── load.py
    └── middleware.py
```

## 사용 예시

```python
from skill_context_engine import SelectionSession, SkillRecordStore

store = SkillRecordStore()
store.load([
    {"id": "prettier", "description": "format code with prettier", "body": "..."},
    {"id": "vitest", "description": "run unit tests with vitest", "body": "..."},
])

session = SelectionSession(store)
selection = session.select("write a unit test for formatDate", budget=10000)
selection.ids  # ("vitest", "prettier")
```
"""

__version__ = "0.1.0"

from skill_context_engine.config import SelectionConfig
from skill_context_engine.errors import (
    DuplicateIdError,
    EmptyStoreError,
    ExclusionReason,
    InvalidBudgetError,
    LoadError,
    MalformedRecordError,
    SessionError,
    SkillEngineError,
)
from skill_context_engine.records import RawSkillDocument, SkillRecord, tokenize
from skill_context_engine.selection import (
    BudgetPacker,
    Candidate,
    ConflictResolver,
    Exclusion,
    Selection,
    SelectionEntry,
    SelectionSession,
    TokenOverlapScorer,
)
from skill_context_engine.store import SkillRecordStore, SkillSnapshot

__all__ = [
    "SelectionConfig",
    "SkillEngineError",
    "LoadError",
    "DuplicateIdError",
    "MalformedRecordError",
    "SessionError",
    "EmptyStoreError",
    "InvalidBudgetError",
    "ExclusionReason",
    "RawSkillDocument",
    "SkillRecord",
    "tokenize",
    "SkillRecordStore",
    "SkillSnapshot",
    "TokenOverlapScorer",
    "ConflictResolver",
    "BudgetPacker",
    "Candidate",
    "Exclusion",
    "SelectionEntry",
    "Selection",
    "SelectionSession",
]
