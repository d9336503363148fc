"""스킬 레코드 데이터 모델과 토큰화 도구.

외부 문서 소스(SKILL.md 파서, 플러그인 배포 시스템 등)가 넘겨준
구조화된 문서(`RawSkillDocument`)를 불변 `SkillRecord`로 변환합니다.
엔진은 Markdown/프론트매터 문법을 직접 파싱하지 않습니다.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, NotRequired, TypedDict

from skill_context_engine.errors import MalformedRecordError

STOPWORDS = frozenset(
    {
        "a", "about", "above", "after", "again", "all", "also", "an", "and",
        "any", "are", "as", "at", "be", "because", "been", "before", "being",
        "but", "by", "can", "could", "did", "do", "does", "doing", "for",
        "from", "further", "had", "has", "have", "having", "he", "her", "here",
        "him", "his", "how", "i", "if", "in", "into", "is", "it", "its",
        "itself", "just", "me", "more", "most", "my", "no", "nor", "not", "of",
        "off", "on", "once", "only", "or", "other", "our", "out", "over", "own",
        "please", "same", "she", "should", "so", "some", "such", "than", "that",
        "the", "their", "them", "then", "there", "these", "they", "this",
        "those", "through", "to", "too", "under", "until", "up", "use", "used",
        "using", "very", "via", "was", "we", "were", "what", "when", "where",
        "which", "while", "who", "whom", "why", "will", "with", "would", "you",
        "your",
    }
)

UNIVERSAL_COMPATIBILITY = frozenset({"*", "any", "all"})

_WORD_PATTERN = re.compile(r"[^\W_]+")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_LIST_SEPARATOR = re.compile(r"[,\s]+")


def _normalize_token(token: str) -> str:
    """복수형 어미만 가볍게 정규화합니다 (tests -> test, libraries -> library)."""
    if len(token) > 4 and token.endswith("ies"):
        return token[:-3] + "y"
    if len(token) > 3 and token.endswith("s") and not token.endswith(("ss", "us", "is")):
        return token[:-1]
    return token


@lru_cache(maxsize=1024)
def tokenize(text: str | None) -> frozenset[str]:
    """텍스트를 소문자 토큰 집합으로 변환합니다.

    camelCase, snake_case, kebab-case 식별자는 단어 단위로 분리하고,
    불용어와 한 글자 토큰은 버립니다.

    Args:
        text: 원본 텍스트.

    Returns:
        정규화된 토큰 집합. 입력이 비어 있으면 빈 집합.
    """
    if not text:
        return frozenset()

    tokens: set[str] = set()
    for word in _WORD_PATTERN.findall(text):
        for part in _CAMEL_BOUNDARY.sub(" ", word).split():
            token = part.lower()
            if len(token) < 2 or token in STOPWORDS:
                continue
            tokens.add(_normalize_token(token))
    return frozenset(tokens)


def normalize_tags(tags: Iterable[str] | str | None) -> frozenset[str]:
    """태그 목록을 점수 계산과 같은 토큰 공간으로 정규화합니다."""
    if not tags:
        return frozenset()
    if isinstance(tags, str):
        tags = [tags]
    normalized: set[str] = set()
    for tag in tags:
        normalized |= tokenize(str(tag))
    return frozenset(normalized)


def normalize_compatibility(value: Iterable[str] | str | None) -> frozenset[str]:
    """호환성 태그를 소문자 티어 집합으로 정규화합니다.

    빈 값이나 `*`, `any`, `all`은 모든 호스트와 호환됨을 의미하며 빈 집합이 됩니다.
    """
    if not value:
        return frozenset()
    items = _LIST_SEPARATOR.split(value) if isinstance(value, str) else value
    tiers = frozenset(str(item).strip().lower() for item in items if str(item).strip())
    if tiers & UNIVERSAL_COMPATIBILITY:
        return frozenset()
    return tiers


def _normalize_ids(value: Iterable[str] | str | None) -> frozenset[str]:
    if not value:
        return frozenset()
    items = _LIST_SEPARATOR.split(value) if isinstance(value, str) else value
    return frozenset(str(item).strip() for item in items if str(item).strip())


_LIST_FIELD_TYPES = (str, list, tuple, set, frozenset)


def _list_field(document: dict[str, Any], record_id: str, name: str) -> Any:
    value = document.get(name)
    if value is None or isinstance(value, _LIST_FIELD_TYPES):
        return value
    raise MalformedRecordError(
        record_id, name, f"{name}는 문자열이나 목록이어야 함: {value!r}"
    )


class RawSkillDocument(TypedDict):
    """외부 문서 소스가 엔진에 넘기는 구조화된 스킬 문서."""

    id: str
    description: str
    body: str
    compatibility: NotRequired[str | list[str] | None]
    priority: NotRequired[int | None]
    tags: NotRequired[list[str] | None]
    companions: NotRequired[list[str] | None]
    source: NotRequired[str | None]
    path: NotRequired[str | None]


@dataclass(frozen=True)
class SkillRecord:
    """로드된 스킬 하나. 생성 후 변경되지 않습니다."""

    id: str
    """고유 식별자 (slug)."""

    description: str
    """매칭에 사용하는 자연어 설명."""

    body: str
    """선택 시 주입할 지침 본문."""

    compatibility: frozenset[str] = field(default_factory=frozenset)
    """허용 호스트 티어. 비어 있으면 모든 호스트 허용."""

    priority: int = 0
    """우선순위. 높을수록 동점에서 이김."""

    tags: frozenset[str] = field(default_factory=frozenset)
    """정규화된 키워드 태그."""

    companions: frozenset[str] = field(default_factory=frozenset)
    """함께 쓰여야 하는 스킬 id. 상호 배제 규칙에서 면제됨."""

    source: str | None = None
    path: str | None = None

    description_tokens: frozenset[str] = field(
        init=False, repr=False, compare=False, default=frozenset()
    )

    def __post_init__(self) -> None:
        # 직접 생성해도 from_document와 같은 정규화를 거침 (정규화는 멱등)
        object.__setattr__(
            self, "compatibility", normalize_compatibility(self.compatibility)
        )
        object.__setattr__(self, "tags", normalize_tags(self.tags))
        object.__setattr__(self, "companions", _normalize_ids(self.companions))
        object.__setattr__(self, "description_tokens", tokenize(self.description))

    def is_compatible_with(self, host_capability: str | None) -> bool:
        if not self.compatibility:
            return True
        if host_capability is None:
            return False
        return host_capability.strip().lower() in self.compatibility

    @classmethod
    def from_document(cls, document: RawSkillDocument | dict[str, Any]) -> SkillRecord:
        """원시 문서를 검증하고 레코드로 변환합니다.

        Raises:
            MalformedRecordError: id, description, body가 비어 있거나
                priority가 정수가 아니거나, compatibility/tags/companions가
                문자열이나 목록이 아닐 때.
        """
        if not isinstance(document, dict):
            raise MalformedRecordError(None, "document", "문서가 매핑이 아님")

        record_id = str(document.get("id") or "").strip()
        if not record_id:
            raise MalformedRecordError(None, "id")

        description = document.get("description")
        if not isinstance(description, str) or not description.strip():
            raise MalformedRecordError(record_id, "description")

        body = document.get("body")
        if not isinstance(body, str) or not body.strip():
            raise MalformedRecordError(record_id, "body")

        priority = document.get("priority")
        if priority is None:
            priority = 0
        elif isinstance(priority, bool):
            raise MalformedRecordError(record_id, "priority", "priority는 정수여야 함")
        elif not isinstance(priority, int):
            try:
                priority = int(str(priority).strip())
            except ValueError:
                raise MalformedRecordError(
                    record_id, "priority", f"priority는 정수여야 함: {priority!r}"
                ) from None

        list_fields = {
            name: _list_field(document, record_id, name)
            for name in ("compatibility", "tags", "companions")
        }

        return cls(
            id=record_id,
            description=description.strip(),
            body=body,
            priority=priority,
            **list_fields,
            source=document.get("source"),
            path=document.get("path"),
        )
