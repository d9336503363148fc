"""Selection Session 구현.

작업 하나마다 스킬 선택 파이프라인을 실행합니다.

```
task → Relevance Scorer → 순위 후보 → Conflict Resolver → Budget Packer → Selection
```

세션은 호출 간 상태가 없습니다. 같은 스냅샷에 같은 인자로 두 번 호출하면
같은 `Selection`이 나옵니다.
"""

import logging
from dataclasses import dataclass

from skill_context_engine.config import SelectionConfig
from skill_context_engine.errors import EmptyStoreError, InvalidBudgetError
from skill_context_engine.selection.packing import BudgetPacker, SelectionEntry, meter_for
from skill_context_engine.selection.resolution import ConflictResolver, ResolutionConfig
from skill_context_engine.selection.scoring import (
    Candidate,
    Exclusion,
    RelevanceScorer,
    TokenOverlapScorer,
    rank_candidates,
)
from skill_context_engine.store import SkillRecordStore, SkillSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Selection:
    """한 작업에 대한 최종 주입 목록. 반환 후에는 호출자가 소유합니다."""

    entries: tuple[SelectionEntry, ...] = ()
    """순서가 있는 포함 항목."""

    excluded: tuple[Exclusion, ...] = ()
    """사유가 기록된 제외 후보 (해소 추적)."""

    budget: int = 0
    total_size: int = 0
    snapshot_version: int = 0

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(entry.id for entry in self.entries)

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def exclusion_for(self, skill_id: str) -> Exclusion | None:
        return next((e for e in self.excluded if e.id == skill_id), None)

    def render(self, separator: str = "\n\n") -> str:
        """호스트가 컨텍스트에 넣을 수 있도록 본문을 순서대로 이어 붙입니다."""
        return separator.join(entry.content for entry in self.entries)


class SelectionSession:
    """스킬 선택 세션.

    Args:
        store: 스킬 레코드 스토어.
        config: 선택 설정. None이면 기본값 사용.
        scorer: 관련도 scorer. None이면 토큰 겹침 scorer.
    """

    def __init__(
        self,
        store: SkillRecordStore,
        config: SelectionConfig | None = None,
        scorer: RelevanceScorer | None = None,
    ) -> None:
        self.store = store
        self.config = config or SelectionConfig()
        self.scorer = scorer or TokenOverlapScorer(tag_boost=self.config.tag_boost)
        self.resolver = ConflictResolver(
            ResolutionConfig(
                mutual_exclusion_overlap=self.config.mutual_exclusion_overlap,
                priority_preempt=self.config.priority_preempt,
            )
        )
        self.packer = BudgetPacker(
            min_fragment_size=self.config.min_fragment_size,
            meter=meter_for(self.config.size_unit, self.config.chars_per_token),
        )

    @staticmethod
    def _validate_budget(budget: object) -> int:
        if isinstance(budget, bool) or not isinstance(budget, int) or budget <= 0:
            raise InvalidBudgetError(budget)
        return budget

    def _capture_snapshot(self) -> SkillSnapshot:
        snapshot = self.store.snapshot()
        if len(snapshot) == 0:
            raise EmptyStoreError()
        return snapshot

    def explain(
        self,
        task: str,
        host_capability: str | None = None,
    ) -> tuple[list[Candidate], list[Candidate]]:
        """패킹 전의 해소된 후보 목록과 제외 후보를 반환합니다 (디버깅용)."""
        snapshot = self._capture_snapshot()
        return self._resolve(snapshot, task, host_capability)

    def _resolve(
        self,
        snapshot: SkillSnapshot,
        task: str,
        host_capability: str | None,
    ) -> tuple[list[Candidate], list[Candidate]]:
        ranked, below = rank_candidates(
            task, snapshot.records, self.scorer, self.config.min_score
        )
        resolved, conflicts = self.resolver.resolve(ranked, host_capability)
        return resolved, below + conflicts

    def select(
        self,
        task: str,
        budget: int,
        host_capability: str | None = None,
    ) -> Selection:
        """작업에 주입할 스킬을 선택합니다.

        Args:
            task: 작업 설명.
            budget: 최대 전체 크기 (size_unit 기준 양의 정수).
            host_capability: 현재 호스트의 capability 티어.

        Returns:
            순서가 있는 Selection. 적용되는 스킬이 없으면 빈 Selection.

        Raises:
            InvalidBudgetError: budget이 양의 정수가 아닐 때.
            EmptyStoreError: 스냅샷에 레코드가 없을 때.
        """
        budget = self._validate_budget(budget)
        snapshot = self._capture_snapshot()

        resolved, excluded = self._resolve(snapshot, task, host_capability)
        packed = self.packer.pack(resolved, budget)

        selection = Selection(
            entries=packed.entries,
            excluded=tuple(c.to_exclusion() for c in [*excluded, *packed.excluded]),
            budget=budget,
            total_size=packed.total_size,
            snapshot_version=snapshot.version,
        )

        logger.debug(
            "스킬 선택 완료: %d개 포함, %d개 제외, %d/%d %s (스냅샷 버전 %d)",
            len(selection.entries),
            len(selection.excluded),
            selection.total_size,
            budget,
            self.packer.meter.unit,
            snapshot.version,
        )
        return selection
