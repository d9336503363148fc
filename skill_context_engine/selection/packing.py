"""Budget Packer 구현.

## 개요

해소된 후보 목록을 순위 순서대로 탐욕적으로 담아
전체 크기가 예산을 넘지 않는 최종 선택을 만듭니다.

## 동작 원리

1. 본문이 남은 예산에 통째로 들어가면 전체 포함
2. 들어가지 않으면 남은 예산만큼 앞부분만 잘라서 포함 시도
   (남은 예산이 `min_fragment_size` 이상일 때만, `truncated=True`)
3. 그것도 안 되면 `BudgetExceeded`로 건너뛰고 다음 후보 계속
   (접두사에서 멈추지 않음: 큰 스킬 뒤의 작은 스킬은 여전히 들어갈 수 있음)
4. 후보가 소진되거나 누적 크기가 예산과 같아지면 종료

예산을 절대 넘지 않으며, 내용이 비어 있는 조각은 포함하지 않습니다.

## 크기 단위

- `CharMeter`: 문자 수 (기본값)
- `TokenEstimateMeter`: `len(text) / chars_per_token` 올림 (토크나이저 없이 추정)
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from skill_context_engine.errors import ExclusionReason
from skill_context_engine.selection.scoring import Candidate, IncludedReason


class SizeMeter(Protocol):
    """본문 크기 측정과 단위 기준 자르기."""

    unit: str

    def measure(self, text: str) -> int: ...

    def truncate(self, text: str, size: int) -> str: ...


class CharMeter:
    unit = "chars"

    def measure(self, text: str) -> int:
        return len(text)

    def truncate(self, text: str, size: int) -> str:
        return text[: max(size, 0)]


class TokenEstimateMeter:
    """문자 수 기반 토큰 추정 측정기.

    Args:
        chars_per_token: 토큰당 문자 수 근사값.
    """

    unit = "tokens"

    def __init__(self, chars_per_token: int = 4) -> None:
        if chars_per_token <= 0:
            raise ValueError(f"chars_per_token은 양수여야 함: {chars_per_token}")
        self.chars_per_token = chars_per_token

    def measure(self, text: str) -> int:
        return math.ceil(len(text) / self.chars_per_token)

    def truncate(self, text: str, size: int) -> str:
        return text[: max(size, 0) * self.chars_per_token]


def meter_for(size_unit: str, chars_per_token: int = 4) -> SizeMeter:
    if size_unit == "chars":
        return CharMeter()
    if size_unit == "tokens":
        return TokenEstimateMeter(chars_per_token)
    raise ValueError(f"알 수 없는 size_unit: {size_unit!r}")


@dataclass(frozen=True)
class SelectionEntry:
    """최종 주입 목록의 한 항목."""

    id: str
    content: str
    truncated: bool
    size: int
    score: float
    included_reason: IncludedReason = IncludedReason.RELEVANCE


@dataclass(frozen=True)
class PackingResult:
    """Budget Packing 결과."""

    entries: tuple[SelectionEntry, ...]
    excluded: tuple[Candidate, ...]
    total_size: int


class BudgetPacker:
    """탐욕적 예산 패커.

    Args:
        min_fragment_size: 잘린 포함을 허용하는 최소 조각 크기.
        meter: 크기 측정기. None이면 문자 수.
    """

    def __init__(self, min_fragment_size: int = 200, meter: SizeMeter | None = None) -> None:
        self.min_fragment_size = min_fragment_size
        self.meter = meter or CharMeter()

    def pack(self, candidates: Sequence[Candidate], budget: int) -> PackingResult:
        """후보를 예산 안에 담습니다.

        Args:
            candidates: 해소된 순위 순서의 후보.
            budget: 최대 전체 크기 (양의 정수).

        Returns:
            포함 항목, 제외 후보, 누적 크기.
        """
        if budget <= 0:
            raise ValueError(f"예산은 양수여야 함: {budget}")

        entries: list[SelectionEntry] = []
        excluded: list[Candidate] = []
        running_total = 0

        for candidate in candidates:
            remaining = budget - running_total
            if remaining <= 0:
                excluded.append(
                    candidate.exclude(ExclusionReason.BUDGET_EXCEEDED, "budget exhausted")
                )
                continue

            body = candidate.record.body
            size = self.meter.measure(body)

            if size <= remaining:
                entries.append(self._entry(candidate, body, size, truncated=False))
                running_total += size
                continue

            if remaining >= self.min_fragment_size:
                fragment = self.meter.truncate(body, remaining)
                fragment_size = self.meter.measure(fragment)
                if fragment and fragment_size <= remaining:
                    entries.append(
                        self._entry(candidate, fragment, fragment_size, truncated=True)
                    )
                    running_total += fragment_size
                    continue

            excluded.append(
                candidate.exclude(
                    ExclusionReason.BUDGET_EXCEEDED,
                    f"size={size} > remaining={remaining} "
                    f"(min_fragment_size={self.min_fragment_size})",
                )
            )

        return PackingResult(
            entries=tuple(entries),
            excluded=tuple(excluded),
            total_size=running_total,
        )

    @staticmethod
    def _entry(
        candidate: Candidate, content: str, size: int, *, truncated: bool
    ) -> SelectionEntry:
        return SelectionEntry(
            id=candidate.id,
            content=content,
            truncated=truncated,
            size=size,
            score=candidate.score,
            included_reason=candidate.included_reason,
        )
