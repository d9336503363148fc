"""Skill Record Store 구현.

## 개요

프로세스 전역의 스킬 레코드 컬렉션입니다. 읽기가 대부분이며,
다시 로드할 때는 컬렉션 전체를 원자적으로 교체합니다.

## 스냅샷 격리

1. 각 세션은 시작 시점에 `snapshot()`으로 현재 스냅샷 참조를 캡처
2. `load`는 새 스냅샷을 완전히 만든 뒤 참조 하나만 교체
3. 진행 중인 세션은 캡처한 스냅샷을 끝까지 사용 (찢어진 로드 없음)
4. 재로드는 뮤텍스로 직렬화되어 한 번에 하나만 진행

## 사용 예시

```python
store = SkillRecordStore()
store.load([
    {"id": "vitest-testing", "description": "run unit tests with vitest", "body": "..."},
])
snapshot = store.snapshot()
```
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from skill_context_engine.errors import DuplicateIdError
from skill_context_engine.records import RawSkillDocument, SkillRecord

logger = logging.getLogger(__name__)

DocumentSource = Callable[[], Iterable[RawSkillDocument]]


@dataclass(frozen=True)
class SkillSnapshot:
    """특정 시점의 불변 스킬 컬렉션."""

    records: tuple[SkillRecord, ...] = ()
    """id 오름차순으로 정렬된 레코드."""

    version: int = 0
    """로드할 때마다 1씩 증가하는 스냅샷 버전. 0은 아직 로드되지 않음."""

    _by_id: Mapping[str, SkillRecord] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "_by_id",
            MappingProxyType({record.id: record for record in self.records}),
        )

    def get(self, record_id: str) -> SkillRecord | None:
        return self._by_id.get(record_id)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[SkillRecord]:
        return iter(self.records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._by_id


def build_snapshot(documents: Iterable[RawSkillDocument | dict[str, Any]], version: int) -> SkillSnapshot:
    """문서 배치를 검증하고 새 스냅샷을 만듭니다.

    Raises:
        MalformedRecordError: 필수 필드가 비어 있는 문서가 있을 때.
        DuplicateIdError: 배치 안에 같은 id가 두 번 이상 있을 때.
    """
    records: dict[str, SkillRecord] = {}
    duplicates: list[str] = []

    for document in documents:
        record = SkillRecord.from_document(document)
        if record.id in records:
            duplicates.append(record.id)
            continue
        records[record.id] = record

    if duplicates:
        raise DuplicateIdError(duplicates)

    ordered = tuple(records[record_id] for record_id in sorted(records))
    return SkillSnapshot(records=ordered, version=version)


class SkillRecordStore:
    """원자적 재로드를 지원하는 스킬 레코드 저장소.

    Args:
        documents: 생성 시 바로 로드할 문서 배치. None이면 빈 스토어.
    """

    def __init__(self, documents: Iterable[RawSkillDocument] | None = None) -> None:
        self._reload_lock = threading.Lock()
        self._snapshot = SkillSnapshot()
        if documents is not None:
            self.load(documents)

    def snapshot(self) -> SkillSnapshot:
        """현재 스냅샷 참조를 반환합니다. 세션 시작 시 한 번 호출합니다."""
        return self._snapshot

    def all(self) -> tuple[SkillRecord, ...]:
        return self._snapshot.records

    @property
    def version(self) -> int:
        return self._snapshot.version

    def load(self, documents: Iterable[RawSkillDocument | dict[str, Any]]) -> SkillSnapshot:
        """문서 배치로 스토어 전체를 교체합니다.

        실패하면 이전 스냅샷이 그대로 유지됩니다.

        Args:
            documents: 구조화된 스킬 문서 목록.

        Returns:
            새로 활성화된 스냅샷.

        Raises:
            DuplicateIdError: 배치 안에 같은 id가 두 번 이상 있을 때.
            MalformedRecordError: description 또는 body가 비어 있을 때.
        """
        return self._swap(lambda: documents)

    def load_from(self, source: DocumentSource) -> SkillSnapshot:
        """문서 소스를 재로드 가드 안에서 읽고 스토어를 교체합니다."""
        return self._swap(source)

    def _swap(self, read_documents: DocumentSource) -> SkillSnapshot:
        with self._reload_lock:
            snapshot = build_snapshot(
                read_documents(), version=self._snapshot.version + 1
            )
            self._snapshot = snapshot

        logger.info(
            "스킬 스토어 재로드: %d개 레코드 (버전 %d)", len(snapshot), snapshot.version
        )
        return snapshot

    async def aload(self, documents: Iterable[RawSkillDocument | dict[str, Any]]) -> SkillSnapshot:
        """비동기 호스트용 `load`. 이벤트 루프를 막지 않도록 스레드에서 실행합니다."""
        return await asyncio.to_thread(self.load, list(documents))
