"""Relevance Scorer 구현.

## 개요

작업 설명과 각 스킬의 description 사이의 유사도를 [0, 1] 점수로 계산합니다.

## 기본 알고리즘 (토큰 겹침)

```
score = 2 * |T ∩ D| / (|T| + |D|)
      + tag_boost * min(1, |tags ∩ T|)     # 최대 1.0으로 제한
```

- T: 작업 토큰 집합, D: description 토큰 집합 (불용어 제거)
- 단순하고 결정적이며 설명 가능한 기준선
- 같은 계약(`RelevanceScorer`)만 지키면 임베딩 기반 scorer로 교체 가능
  (단, 같은 입력에 항상 같은 점수를 내야 함)

## 순위

min_score 미만은 순위에서 제외되고 `BelowMinScore` 사유로 기록됩니다.
동점은 priority 내림차순, 그다음 id 오름차순으로 깹니다 (전순서).
"""

from collections.abc import Iterable
from dataclasses import dataclass, replace
from enum import Enum
from typing import Protocol, runtime_checkable

from skill_context_engine.errors import ExclusionReason
from skill_context_engine.records import SkillRecord, tokenize


class IncludedReason(str, Enum):
    """후보가 목록에 포함된 이유."""

    RELEVANCE = "relevance"
    PRIORITY_PREEMPT = "priority_preempt"


@dataclass(frozen=True)
class Exclusion:
    """제외된 후보의 추적 기록."""

    id: str
    reason: ExclusionReason
    score: float
    detail: str = ""


@dataclass(frozen=True)
class Candidate:
    """한 세션 안에서 점수와 포함/제외 결정이 붙은 스킬."""

    record: SkillRecord
    score: float
    included_reason: IncludedReason = IncludedReason.RELEVANCE
    exclusion: ExclusionReason | None = None
    detail: str = ""

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def priority(self) -> int:
        return self.record.priority

    @property
    def is_excluded(self) -> bool:
        return self.exclusion is not None

    def exclude(self, reason: ExclusionReason, detail: str = "") -> "Candidate":
        return replace(self, exclusion=reason, detail=detail)

    def to_exclusion(self) -> Exclusion:
        if self.exclusion is None:
            raise ValueError(f"후보 {self.id!r}는 제외되지 않았음")
        return Exclusion(
            id=self.id, reason=self.exclusion, score=self.score, detail=self.detail
        )


def rank_key(candidate: Candidate) -> tuple[float, int, str]:
    """점수 내림차순, priority 내림차순, id 오름차순 정렬 키."""
    return (-candidate.score, -candidate.priority, candidate.id)


@runtime_checkable
class RelevanceScorer(Protocol):
    """작업과 스킬 사이의 결정적 관련도 점수 계약."""

    def score(self, task: str, record: SkillRecord) -> float: ...


class TokenOverlapScorer:
    """토큰 겹침 기반 기본 scorer.

    Args:
        tag_boost: 태그가 작업 토큰과 하나라도 겹칠 때 더하는 값.
    """

    def __init__(self, tag_boost: float = 0.1) -> None:
        self.tag_boost = tag_boost

    def score(self, task: str, record: SkillRecord) -> float:
        return self.score_tokens(tokenize(task), record)

    def score_tokens(self, task_tokens: frozenset[str], record: SkillRecord) -> float:
        description_tokens = record.description_tokens
        if not task_tokens or not description_tokens:
            overlap = 0.0
        else:
            shared = len(task_tokens & description_tokens)
            overlap = (2 * shared) / (len(task_tokens) + len(description_tokens))

        tag_overlap = len(record.tags & task_tokens)
        boost = self.tag_boost * min(1, tag_overlap)

        return min(1.0, overlap + boost)


def rank_candidates(
    task: str,
    records: Iterable[SkillRecord],
    scorer: RelevanceScorer,
    min_score: float,
) -> tuple[list[Candidate], list[Candidate]]:
    """레코드에 점수를 매기고 순위를 정합니다.

    Args:
        task: 작업 설명.
        records: 스냅샷의 레코드.
        scorer: 관련도 scorer.
        min_score: 이 점수 미만은 제외.

    Returns:
        (순위가 매겨진 후보, min_score 미만으로 제외된 후보).

    Raises:
        ValueError: scorer가 [0, 1] 범위를 벗어난 점수를 반환할 때.
    """
    ranked: list[Candidate] = []
    below: list[Candidate] = []

    for record in records:
        value = float(scorer.score(task, record))
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"스킬 {record.id!r}의 점수가 범위를 벗어남: {value}")

        candidate = Candidate(record=record, score=value)
        if value < min_score:
            below.append(
                candidate.exclude(
                    ExclusionReason.BELOW_MIN_SCORE,
                    f"score={value:.4f} < min_score={min_score}",
                )
            )
        else:
            ranked.append(candidate)

    ranked.sort(key=rank_key)
    below.sort(key=rank_key)
    return ranked, below
