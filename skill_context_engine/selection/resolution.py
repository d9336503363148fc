"""Conflict Resolver 구현.

## 개요

여러 스킬이 동시에 적용될 수 있을 때 포함/제외/순서를 결정합니다.
입력보다 길어지지 않으며, 제외된 후보에는 항상 사유가 기록됩니다.

## 규칙 (순서대로 적용)

1. **호환성 필터**: 호스트 capability 티어와 맞지 않는 후보 제외
   (`IncompatibleSkillError` 사유로 기록, 예외 발생 없음)
2. **상호 배제**: 태그 겹침 비율이 임계값 이상이고 서로를 companion으로
   선언하지 않은 두 후보 중 하위 후보를 `Superseded`로 제외
3. **우선순위 하한**: priority가 `priority_preempt` 이상인 후보를
   점수와 무관하게 맨 앞으로 이동

## 태그 겹침 비율

```
overlap(A, B) = |A ∩ B| / min(|A|, |B|)
```

Jaccard보다 관대해서 작은 태그 집합이 큰 집합에 포함되는 경우
(예: vitest-testing vs jest-testing)를 충돌로 판단합니다.
"""

from collections.abc import Sequence
from dataclasses import dataclass, replace

from skill_context_engine.errors import ExclusionReason
from skill_context_engine.records import SkillRecord
from skill_context_engine.selection.scoring import Candidate, IncludedReason


@dataclass(frozen=True)
class ResolutionConfig:
    """Conflict Resolution 설정."""

    mutual_exclusion_overlap: float = 0.6
    """태그 겹침 비율 임계값."""

    priority_preempt: int = 100
    """선점 우선순위 하한."""


def tag_overlap_ratio(left: SkillRecord, right: SkillRecord) -> float:
    """두 레코드의 태그 겹침 비율. 한쪽이라도 태그가 없으면 0."""
    if not left.tags or not right.tags:
        return 0.0
    shared = len(left.tags & right.tags)
    return shared / min(len(left.tags), len(right.tags))


def are_companions(left: SkillRecord, right: SkillRecord) -> bool:
    return right.id in left.companions or left.id in right.companions


class ConflictResolver:
    """순위가 매겨진 후보 목록의 충돌을 해소합니다.

    Args:
        config: Resolution 설정. None이면 기본값 사용.
    """

    def __init__(self, config: ResolutionConfig | None = None) -> None:
        self.config = config or ResolutionConfig()

    def _is_preempt(self, candidate: Candidate) -> bool:
        return candidate.priority >= self.config.priority_preempt

    def filter_compatible(
        self,
        candidates: Sequence[Candidate],
        host_capability: str | None,
    ) -> tuple[list[Candidate], list[Candidate]]:
        kept: list[Candidate] = []
        excluded: list[Candidate] = []
        for candidate in candidates:
            if candidate.record.is_compatible_with(host_capability):
                kept.append(candidate)
                continue
            tiers = ", ".join(sorted(candidate.record.compatibility))
            excluded.append(
                candidate.exclude(
                    ExclusionReason.INCOMPATIBLE_SKILL,
                    f"host={host_capability!r}, requires=[{tiers}]",
                )
            )
        return kept, excluded

    def apply_mutual_exclusion(
        self,
        candidates: Sequence[Candidate],
    ) -> tuple[list[Candidate], list[Candidate]]:
        """태그가 크게 겹치는 후보 중 상위 후보만 남깁니다.

        선점 우선순위 후보는 먼저 자리를 잡고 절대 밀려나지 않습니다.
        나머지는 순위 순서대로 이미 남은 후보와 비교합니다.
        """
        threshold = self.config.mutual_exclusion_overlap
        preempt = [c for c in candidates if self._is_preempt(c)]
        regular = [c for c in candidates if not self._is_preempt(c)]

        winners: list[Candidate] = list(preempt)
        excluded: list[Candidate] = []

        for candidate in regular:
            rival = next(
                (
                    winner
                    for winner in winners
                    if not are_companions(winner.record, candidate.record)
                    and tag_overlap_ratio(winner.record, candidate.record) >= threshold
                ),
                None,
            )
            if rival is None:
                winners.append(candidate)
                continue
            ratio = tag_overlap_ratio(rival.record, candidate.record)
            excluded.append(
                candidate.exclude(
                    ExclusionReason.SUPERSEDED,
                    f"superseded by {rival.id} (tag overlap {ratio:.2f})",
                )
            )

        survivors = {id(c) for c in winners}
        kept = [c for c in candidates if id(c) in survivors]
        return kept, excluded

    def apply_priority_floor(self, candidates: Sequence[Candidate]) -> list[Candidate]:
        """선점 우선순위 후보를 맨 앞으로 옮깁니다 (priority 내림차순, 그다음 기존 순위)."""
        preempt = [
            replace(candidate, included_reason=IncludedReason.PRIORITY_PREEMPT)
            for candidate in candidates
            if self._is_preempt(candidate)
        ]
        preempt.sort(key=lambda c: -c.priority)
        regular = [c for c in candidates if not self._is_preempt(c)]
        return preempt + regular

    def resolve(
        self,
        candidates: Sequence[Candidate],
        host_capability: str | None = None,
    ) -> tuple[list[Candidate], list[Candidate]]:
        """세 규칙을 순서대로 적용합니다.

        Args:
            candidates: 순위가 매겨진 후보 목록.
            host_capability: 현재 호스트의 capability 티어.

        Returns:
            (해소된 후보 목록, 사유가 기록된 제외 후보 목록).
        """
        compatible, incompatible = self.filter_compatible(candidates, host_capability)
        survivors, superseded = self.apply_mutual_exclusion(compatible)
        ordered = self.apply_priority_floor(survivors)
        return ordered, incompatible + superseded
